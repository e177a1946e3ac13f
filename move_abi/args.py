"""
Argument encoding for entry-function calls.

    encode_args(abi, "transfer", ["0x1::coin::Coin"], ["0x2", "100"])
        -> [EncodedArgument(...), EncodedArgument(...)]

Steps: resolve the function (fails fast, before any value is touched), drop
leading signer parameters, check arity, bind concrete type arguments to the
generic slots, then coerce and encode each argument in parameter order.
The call is all-or-nothing: the first failing argument aborts it with that
argument's error, annotated with its index and declared type.
"""

from __future__ import annotations

import base64
import logging
from dataclasses import dataclass
from typing import Any, List, Optional, Sequence

from .coerce import ValueCoercer
from .config import EncoderConfig, load_config
from .encoding import encode_value
from .errors import ArityMismatchError, MoveAbiError, UnresolvedGenericError
from .model import ModuleABI
from .parser import parse_type_args
from .typetag import contains_generic, format_type, substitute

__all__ = ["EncodedArgument", "encode_args", "encode_args_base64"]

log = logging.getLogger(__name__)


@dataclass(frozen=True)
class EncodedArgument:
    """Encoded bytes for one argument plus its textual transmission forms."""

    data: bytes

    def hex(self, prefix: bool = True) -> str:
        s = self.data.hex()
        return f"0x{s}" if prefix else s

    def base64(self) -> str:
        return base64.b64encode(self.data).decode("ascii")

    def __bytes__(self) -> bytes:
        return self.data

    def __len__(self) -> int:
        return len(self.data)


def encode_args(
    abi: ModuleABI,
    function_name: str,
    type_args: Sequence[str] = (),
    raw_args: Sequence[Any] = (),
    *,
    allow_view: bool = False,
    config: Optional[EncoderConfig] = None,
) -> List[EncodedArgument]:
    """
    Encode `raw_args` for `function_name` of `abi`.

    Raises:
        FunctionNotFoundError, ArityMismatchError, TypeParseError (type args),
        and per-argument TypeMismatchError / IntegerOverflowError /
        InvalidAddressError / UnresolvedGenericError.
    """
    cfg = config or load_config()
    fn = abi.resolve(function_name, allow_view=allow_view)
    params = fn.explicit_params

    if len(raw_args) != len(params):
        raise ArityMismatchError(
            f"expected {len(params)} arguments, got {len(raw_args)}",
            {"function": function_name, "expected": len(params), "got": len(raw_args)},
        )
    if len(type_args) > fn.generic_count:
        raise ArityMismatchError(
            f"expected at most {fn.generic_count} type arguments, got {len(type_args)}",
            {"function": function_name, "expected": fn.generic_count, "got": len(type_args)},
        )

    concrete = parse_type_args(type_args, config=cfg)
    bound = [substitute(p, concrete) for p in params]
    coercer = ValueCoercer(abi=abi, type_args=concrete, config=cfg)

    log.debug(
        "encoding arguments",
        extra={"function": function_name, "arg_count": len(bound), "type_arg_count": len(concrete)},
    )
    out: List[EncodedArgument] = []
    for idx, (t, raw) in enumerate(zip(bound, raw_args)):
        try:
            if contains_generic(t):
                raise UnresolvedGenericError(
                    "parameter uses a generic slot with no concrete type argument",
                    {"type_args": len(concrete)},
                )
            value = coercer.coerce(t, raw)
            out.append(EncodedArgument(encode_value(t, value)))
        except MoveAbiError as e:
            raise e.with_context(
                function=function_name, arg_index=idx, param_type=format_type(params[idx])
            ) from e
    return out


def encode_args_base64(
    abi: ModuleABI,
    function_name: str,
    type_args: Sequence[str] = (),
    raw_args: Sequence[Any] = (),
    *,
    allow_view: bool = False,
    config: Optional[EncoderConfig] = None,
) -> List[str]:
    """Base64 strings ready to embed in a request body's ``args`` field."""
    encoded = encode_args(
        abi, function_name, type_args, raw_args, allow_view=allow_view, config=config
    )
    return [e.base64() for e in encoded]
