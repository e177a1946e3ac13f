from __future__ import annotations

import base64

import pytest

import move_abi.args as args_mod
from move_abi import ModuleABI, encode_args, encode_args_base64
from move_abi.args import EncodedArgument
from move_abi.config import EncoderConfig, StructPolicy
from move_abi.decoding import decode_args
from move_abi.errors import (ArityMismatchError, FunctionNotFoundError,
                             IntegerOverflowError, InvalidAddressError,
                             TypeMismatchError, TypeParseError,
                             UnresolvedGenericError)


def _addr(short: str) -> bytes:
    return bytes.fromhex(short[2:].rjust(64, "0"))


def _hexes(encoded):
    return [bytes(e).hex() for e in encoded]


# ---------------------------------------------------------------------------
# Happy paths
# ---------------------------------------------------------------------------


def test_transfer_skips_signer_and_encodes_in_order(vault: ModuleABI) -> None:
    out = encode_args(vault, "transfer", [], ["0x2", 1000])
    assert len(out) == 2
    assert bytes(out[0]) == _addr("0x2")
    assert out[1].hex() == "0xe803000000000000"
    assert out[1].hex(prefix=False) == "e803000000000000"
    assert len(out[1]) == 8


def test_by_value_signer_is_skipped_too(vault: ModuleABI) -> None:
    out = encode_args(vault, "set_flags", [], [[True, False], [[1, 2], []]])
    assert _hexes(out) == ["020100", "0202010200"]


def test_string_and_option_arguments(vault: ModuleABI) -> None:
    assert _hexes(encode_args(vault, "register", [], ["hi", None])) == ["026869", "00"]
    assert _hexes(encode_args(vault, "register", [], ["héllo", "5"])) == [
        "0668c3a96c6c6f",
        "010500000000000000",
    ]


def test_struct_literal_argument(vault: ModuleABI) -> None:
    out = encode_args(vault, "set_point", [], [{"x": 1, "y": 2, "label": "a"}])
    assert _hexes(out) == ["0100000000000000" "0200000000000000" "0161"]


def test_opaque_struct_argument_passes_through(vault: ModuleABI) -> None:
    assert _hexes(encode_args(vault, "set_opaque", [], [b"\xde\xad"])) == ["dead"]
    assert _hexes(encode_args(vault, "set_opaque", [], ["0xdead"])) == ["dead"]


def test_generic_parameters_bind_type_args(vault: ModuleABI) -> None:
    out = encode_args(vault, "swap", ["u8", "address"], [7, ["0x1"]])
    assert _hexes(out) == ["07", "01" + _addr("0x1").hex()]


def test_object_parameter_with_type_arg(vault: ModuleABI) -> None:
    out = encode_args(vault, "deposit", ["0x1::fungible_asset::Metadata"], ["0xa", "3"])
    assert bytes(out[0]) == _addr("0xa")
    assert out[1].hex(prefix=False) == "0300000000000000"


def test_function_with_only_signer_yields_empty_list(vault: ModuleABI) -> None:
    assert encode_args(vault, "claim") == []


def test_view_function_requires_opt_in(vault: ModuleABI) -> None:
    with pytest.raises(FunctionNotFoundError):
        encode_args(vault, "balance", [], ["0x1"])
    out = encode_args(vault, "balance", [], ["0x1"], allow_view=True)
    assert bytes(out[0]) == _addr("0x1")


def test_base64_forms(vault: ModuleABI) -> None:
    encoded = encode_args(vault, "transfer", [], ["0x2", 1000])
    b64 = encode_args_base64(vault, "transfer", [], ["0x2", 1000])
    assert b64 == [e.base64() for e in encoded]
    assert base64.b64decode(b64[1]) == bytes.fromhex("e803000000000000")


def test_output_decodes_back_to_coerced_values(vault: ModuleABI) -> None:
    fn = vault.resolve("set_flags")
    out = encode_args(vault, "set_flags", [], [[True], [b"\x01\x02"]])
    assert decode_args([bytes(e) for e in out], fn.explicit_params, abi=vault) == [(True,), ((1, 2),)]


# ---------------------------------------------------------------------------
# Bounds and address normalization
# ---------------------------------------------------------------------------


def _u8_abi() -> ModuleABI:
    return ModuleABI.from_dict(
        {
            "address": "0x1",
            "name": "m",
            "exposed_functions": [
                {"name": "f", "is_entry": True, "params": ["u8"]},
                {"name": "g", "is_entry": True, "params": ["&signer", "address"]},
                {"name": "h", "is_entry": True, "params": ["vector<u8>"]},
            ],
        },
        config=EncoderConfig(),
    )


def test_u8_bounds() -> None:
    abi = _u8_abi()
    assert encode_args(abi, "f", [], [255])[0].data == b"\xff"
    with pytest.raises(IntegerOverflowError) as ei:
        encode_args(abi, "f", [], [300])
    assert ei.value.context["arg_index"] == 0
    assert ei.value.context["param_type"] == "u8"
    assert ei.value.context["function"] == "f"


def test_vector_u8_layout() -> None:
    assert encode_args(_u8_abi(), "h", [], [[1, 2, 3]])[0].data == b"\x03\x01\x02\x03"


def test_short_and_full_addresses_encode_identically() -> None:
    abi = _u8_abi()
    short = encode_args(abi, "g", [], ["0x1"])
    full = encode_args(abi, "g", [], ["0x" + "0" * 63 + "1"])
    assert short == full
    assert len(short[0]) == 32


# ---------------------------------------------------------------------------
# Failures
# ---------------------------------------------------------------------------


@pytest.mark.parametrize("raw_args", [[], ["0x2"], ["0x2", 1, 2]])
def test_arity_mismatch(vault: ModuleABI, raw_args) -> None:
    with pytest.raises(ArityMismatchError) as ei:
        encode_args(vault, "transfer", [], raw_args)
    assert ei.value.context["expected"] == 2
    assert ei.value.context["got"] == len(raw_args)


def test_arity_checked_before_any_coercion(vault: ModuleABI, monkeypatch) -> None:
    def boom(*_a, **_kw):
        raise AssertionError("coercer must not be constructed")

    monkeypatch.setattr(args_mod, "ValueCoercer", boom)
    with pytest.raises(ArityMismatchError):
        encode_args(vault, "transfer", [], ["not-an-address"])


def test_unknown_function_touches_no_argument(vault: ModuleABI, monkeypatch) -> None:
    def boom(*_a, **_kw):
        raise AssertionError("coercer must not be constructed")

    monkeypatch.setattr(args_mod, "ValueCoercer", boom)
    with pytest.raises(FunctionNotFoundError) as ei:
        encode_args(vault, "withdraw", [], [object()])
    assert ei.value.context["function"] == "withdraw"


def test_non_entry_function_is_rejected(vault: ModuleABI) -> None:
    with pytest.raises(FunctionNotFoundError):
        encode_args(vault, "internal_helper", [], [1])


def test_too_many_type_args(vault: ModuleABI) -> None:
    with pytest.raises(ArityMismatchError):
        encode_args(vault, "swap", ["u8", "u8", "u8"], [1, []])


def test_missing_type_arg_is_unresolved(vault: ModuleABI) -> None:
    with pytest.raises(UnresolvedGenericError) as ei:
        encode_args(vault, "swap", ["u8"], [1, []])
    # the failing parameter is vector<T1>; T0 was bound
    assert ei.value.context["arg_index"] == 1
    assert ei.value.context["param_type"] == "vector<T1>"


def test_malformed_type_arg(vault: ModuleABI) -> None:
    with pytest.raises(TypeParseError) as ei:
        encode_args(vault, "swap", ["u8", "vector<"], [1, []])
    assert ei.value.context["type_arg_index"] == 1


def test_first_failing_argument_aborts_the_call(vault: ModuleABI) -> None:
    with pytest.raises(InvalidAddressError) as ei:
        encode_args(vault, "transfer", [], ["0xnothex", "also bad"])
    assert ei.value.context["arg_index"] == 0
    assert ei.value.context["param_type"] == "address"

    with pytest.raises(TypeMismatchError) as ei:
        encode_args(vault, "transfer", [], ["0x2", "ten"])
    assert ei.value.context["arg_index"] == 1


def test_struct_policy_from_config(vault: ModuleABI) -> None:
    cfg = EncoderConfig(struct_policy=StructPolicy.RAW)
    with pytest.raises(TypeMismatchError):
        encode_args(vault, "set_point", [], [{"x": 1, "y": 2, "label": "a"}], config=cfg)


def test_encoded_argument_value_semantics() -> None:
    a = EncodedArgument(b"\x01\x02")
    assert a == EncodedArgument(b"\x01\x02")
    assert a.hex() == "0x0102"
    assert a.base64() == "AQI="
    assert bytes(a) == b"\x01\x02"


def _edge_abi() -> ModuleABI:
    return ModuleABI.from_dict(
        {
            "address": "0x1",
            "name": "edge",
            "exposed_functions": [
                {"name": "n", "is_entry": True, "params": ["u256"]},
                {"name": "s", "is_entry": True, "params": ["0x1::string::String"]},
                {"name": "d", "is_entry": True, "params": ["0x1::decimal128::Decimal128"]},
            ],
        },
        config=EncoderConfig(),
    )


@pytest.mark.parametrize(
    "function,raw,error",
    [
        ("n", "9" * 5000, IntegerOverflowError),
        ("s", "\ud800", TypeMismatchError),
        ("d", "1e999999999", IntegerOverflowError),
    ],
)
def test_oversized_or_unencodable_inputs_raise_typed_errors(function, raw, error) -> None:
    with pytest.raises(error) as ei:
        encode_args(_edge_abi(), function, [], [raw])
    assert ei.value.context["arg_index"] == 0
    assert ei.value.context["function"] == function
