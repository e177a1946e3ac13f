"""
move_abi.cli
============

`move-abi`: encode entry-function arguments from a module ABI on the command
line.

Examples
--------
    $ move-abi encode --abi ./coin.json --func transfer \
        --args-json '["0x2", "1000"]'
    $ move-abi encode --abi-b64 "$(cat abi.b64)" --func swap \
        --type-arg 0x1::aptos_coin::AptosCoin --args-json '[10]' --format base64
    $ move-abi functions --abi ./coin.json
    $ move-abi parse-type "vector<0x0001::string::String>"

Errors are printed to stderr as JSON (code, message, context) and the process
exits with status 1.
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any, List, NoReturn, Optional

import typer

from . import logging as mlog
from .args import encode_args
from .errors import MoveAbiError
from .model import ModuleABI
from .parser import generic_names, parse_type
from .typetag import format_type
from .version import version

app = typer.Typer(
    name="move-abi",
    help="Encode Move entry-function arguments using a module ABI.",
    no_args_is_help=True,
    add_completion=False,
)

__all__ = ["app", "main"]


def _print_json(obj: Any) -> None:
    typer.echo(json.dumps(obj, indent=2, ensure_ascii=False))


def _fail(err: MoveAbiError) -> NoReturn:
    typer.echo(json.dumps(err.to_dict(), ensure_ascii=False), err=True)
    raise typer.Exit(code=1)


def _load_abi(abi: Optional[Path], abi_b64: Optional[str]) -> ModuleABI:
    if (abi is None) == (abi_b64 is None):
        raise typer.BadParameter("pass exactly one of --abi or --abi-b64")
    if abi_b64 is not None:
        return ModuleABI.from_base64(abi_b64.strip())
    try:
        text = abi.read_text(encoding="utf-8")  # type: ignore[union-attr]
    except FileNotFoundError as e:
        raise typer.BadParameter(f"File not found: {abi}") from e
    return ModuleABI.from_json(text)


@app.callback()
def _root(
    log_level: Optional[str] = typer.Option(
        None, "--log-level", help="Log level (default from MOVE_ABI_LOG_LEVEL).", envvar="MOVE_ABI_LOG_LEVEL"
    ),
    log_json: Optional[bool] = typer.Option(
        None, "--log-json/--log-text", help="Log format (default from MOVE_ABI_LOG_FORMAT)."
    ),
) -> None:
    mlog.configure(json=log_json, level=log_level)


@app.command("version")
def version_cmd() -> None:
    """Print the package version."""
    typer.echo(version())


@app.command("encode")
def encode_cmd(
    func: str = typer.Option(..., "--func", "-f", help="Entry function name."),
    abi: Optional[Path] = typer.Option(None, "--abi", help="Path to the module ABI JSON."),
    abi_b64: Optional[str] = typer.Option(None, "--abi-b64", help="Base64-encoded module ABI JSON."),
    type_arg: List[str] = typer.Option([], "--type-arg", "-t", help="Concrete type argument (repeatable)."),
    args_json: str = typer.Option("[]", "--args-json", "-a", help="JSON array of arguments."),
    fmt: str = typer.Option("hex", "--format", help="Output form: hex or base64."),
    view: bool = typer.Option(False, "--view", help="Also accept view functions."),
) -> None:
    """Encode arguments and print them as a JSON array of strings."""
    if fmt not in ("hex", "base64"):
        raise typer.BadParameter("--format must be hex or base64")
    try:
        raw_args = json.loads(args_json)
    except ValueError as e:
        raise typer.BadParameter(f"--args-json must be valid JSON: {e}") from e
    if not isinstance(raw_args, list):
        raise typer.BadParameter("--args-json must be a JSON array")

    try:
        module = _load_abi(abi, abi_b64)
        encoded = encode_args(module, func, type_arg, raw_args, allow_view=view)
    except MoveAbiError as e:
        _fail(e)
    _print_json([e.hex() if fmt == "hex" else e.base64() for e in encoded])


@app.command("functions")
def functions_cmd(
    abi: Optional[Path] = typer.Option(None, "--abi", help="Path to the module ABI JSON."),
    abi_b64: Optional[str] = typer.Option(None, "--abi-b64", help="Base64-encoded module ABI JSON."),
) -> None:
    """List entry and view functions with the parameters a caller supplies."""
    try:
        module = _load_abi(abi, abi_b64)
    except MoveAbiError as e:
        _fail(e)
    rows = []
    for fn in module.functions.values():
        if not (fn.is_entry or fn.is_view):
            continue
        rows.append(
            {
                "name": fn.name,
                "entry": fn.is_entry,
                "view": fn.is_view,
                "generics": fn.generic_count,
                "params": [format_type(p) for p in fn.explicit_params],
            }
        )
    _print_json({"module": f"{module.address}::{module.name}", "functions": rows})


@app.command("parse-type")
def parse_type_cmd(
    signature: str = typer.Argument(..., help="Type signature, e.g. vector<u64>."),
    generics: int = typer.Option(0, "--generics", help="Number of T0..Tn generic slots in scope."),
) -> None:
    """Print the canonical form of a type signature."""
    try:
        t = parse_type(signature, generics=generic_names(generics))
    except MoveAbiError as e:
        _fail(e)
    typer.echo(format_type(t))


def main() -> None:  # pragma: no cover - console entry point
    app()


if __name__ == "__main__":  # pragma: no cover
    main()
