from __future__ import annotations

import json
import logging

import pytest
from typer.testing import CliRunner

from move_abi import __version__
from move_abi.cli import app

runner = CliRunner()


@pytest.fixture(autouse=True)
def _restore_root_logger():
    root = logging.getLogger()
    handlers, level = list(root.handlers), root.level
    yield
    for h in list(root.handlers):
        root.removeHandler(h)
    for h in handlers:
        root.addHandler(h)
    root.setLevel(level)


@pytest.fixture
def abi_file(tmp_path, vault_doc):
    p = tmp_path / "vault.json"
    p.write_text(json.dumps(vault_doc), encoding="utf-8")
    return p


def test_version() -> None:
    result = runner.invoke(app, ["version"])
    assert result.exit_code == 0
    assert result.stdout.strip() == __version__


def test_encode_hex_from_file(abi_file) -> None:
    result = runner.invoke(
        app, ["encode", "--abi", str(abi_file), "-f", "transfer", "-a", '["0x2", "1000"]']
    )
    assert result.exit_code == 0, result.output
    out = json.loads(result.stdout)
    assert out == ["0x" + "0" * 63 + "2", "0xe803000000000000"]


def test_encode_base64_with_type_args(vault_b64) -> None:
    result = runner.invoke(
        app,
        [
            "encode",
            "--abi-b64",
            vault_b64,
            "--func",
            "swap",
            "-t",
            "u8",
            "-t",
            "bool",
            "--args-json",
            "[7, [true]]",
            "--format",
            "base64",
        ],
    )
    assert result.exit_code == 0, result.output
    assert json.loads(result.stdout) == ["Bw==", "AQE="]


def test_encode_view_function_needs_flag(abi_file) -> None:
    base = ["encode", "--abi", str(abi_file), "-f", "balance", "-a", '["0x1"]']
    failed = runner.invoke(app, base)
    assert failed.exit_code == 1
    assert "ABI/FUNCTION_NOT_FOUND" in failed.output

    ok = runner.invoke(app, base + ["--view"])
    assert ok.exit_code == 0, ok.output
    assert len(json.loads(ok.stdout)) == 1


def test_encode_error_is_reported_as_json(abi_file) -> None:
    result = runner.invoke(app, ["encode", "--abi", str(abi_file), "-f", "transfer", "-a", '["0x2", 1, 2]'])
    assert result.exit_code == 1
    assert "ABI/ARITY_MISMATCH" in result.output


def test_encode_overflow(abi_file) -> None:
    result = runner.invoke(app, ["encode", "--abi", str(abi_file), "-f", "transfer", "-a", '["0x2", -1]'])
    assert result.exit_code == 1
    assert "ABI/INTEGER_OVERFLOW" in result.output


@pytest.mark.parametrize(
    "extra",
    [
        ["-a", "not json"],
        ["-a", '{"a": 1}'],
        ["--format", "raw"],
    ],
)
def test_encode_usage_errors(abi_file, extra) -> None:
    result = runner.invoke(app, ["encode", "--abi", str(abi_file), "-f", "claim"] + extra)
    assert result.exit_code == 2


def test_encode_requires_exactly_one_abi_source(abi_file, vault_b64) -> None:
    neither = runner.invoke(app, ["encode", "-f", "claim"])
    assert neither.exit_code == 2
    both = runner.invoke(app, ["encode", "--abi", str(abi_file), "--abi-b64", vault_b64, "-f", "claim"])
    assert both.exit_code == 2


def test_bad_abi_blob() -> None:
    result = runner.invoke(app, ["encode", "--abi-b64", "!!!", "-f", "claim"])
    assert result.exit_code == 1
    assert "ABI/BAD_DOCUMENT" in result.output


def test_functions_lists_callable_functions(abi_file) -> None:
    result = runner.invoke(app, ["functions", "--abi", str(abi_file)])
    assert result.exit_code == 0, result.output
    listing = json.loads(result.stdout)
    assert listing["module"] == "0x42::vault"
    rows = {r["name"]: r for r in listing["functions"]}
    assert "internal_helper" not in rows
    assert rows["transfer"]["params"] == ["address", "u64"]
    assert rows["swap"]["generics"] == 2
    assert rows["balance"]["view"] is True and rows["balance"]["entry"] is False


def test_parse_type_prints_canonical_form() -> None:
    result = runner.invoke(app, ["parse-type", "vector<0x0001::string::String>"])
    assert result.exit_code == 0
    assert result.stdout.strip() == "vector<0x1::string::String>"

    generic = runner.invoke(app, ["parse-type", "vector< T1 >", "--generics", "2"])
    assert generic.stdout.strip() == "vector<T1>"


def test_parse_type_error() -> None:
    result = runner.invoke(app, ["parse-type", "vector<u8"])
    assert result.exit_code == 1
    assert "ABI/TYPE_PARSE" in result.output
