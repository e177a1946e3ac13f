"""
Parser for textual Move type signatures.

Grammar (whitespace is insignificant between tokens):

    type      := "&" ["mut"] type
               | PRIMITIVE
               | "vector" "<" type ">"
               | ADDR "::" IDENT "::" IDENT [ "<" type { "," type } ">" ]
               | GENERIC
    PRIMITIVE := bool | u8 | u16 | u32 | u64 | u128 | u256 | address | signer
    GENERIC   := a name bound to a generic slot of the enclosing function or
                 struct (``T0``, ``T1``, ... unless explicit names are given)

Examples:
    >>> parse_type("vector<u64>")
    VectorType(elem=UIntType(bits=64))
    >>> str(parse_type("0x0001::option::Option<address>"))
    '0x1::option::Option<address>'

Parsed descriptors are immutable; with the parse cache enabled the same
instance is returned for repeated signatures.
"""

from __future__ import annotations

import logging
import re
from functools import lru_cache
from typing import Dict, List, Optional, Sequence, Tuple

from .address import to_short_hex
from .config import EncoderConfig, load_config
from .errors import TypeParseError
from .typetag import (
    ADDRESS,
    BOOL,
    SIGNER,
    GenericParam,
    ReferenceType,
    StructTag,
    TypeDescriptor,
    UIntType,
    VectorType,
)

__all__ = [
    "tokenize",
    "parse_type",
    "parse_type_args",
    "generic_names",
    "clear_parse_cache",
]

log = logging.getLogger(__name__)

_TOKEN_RE = re.compile(r"\s*(?:([<>,&])|([A-Za-z0-9_:]+))")
_IDENT_RE = re.compile(r"^[A-Za-z_][A-Za-z0-9_]*$")
_ADDR_RE = re.compile(r"^(?:0[xX])?[0-9a-fA-F]+$")

_PRIMITIVES: Dict[str, TypeDescriptor] = {
    "bool": BOOL,
    "u8": UIntType(8),
    "u16": UIntType(16),
    "u32": UIntType(32),
    "u64": UIntType(64),
    "u128": UIntType(128),
    "u256": UIntType(256),
    "address": ADDRESS,
    "signer": SIGNER,
}


def generic_names(count: int) -> Tuple[str, ...]:
    """Positional slot names used by ABI documents: ``("T0", "T1", ...)``."""
    return tuple(f"T{i}" for i in range(count))


def tokenize(signature: str) -> List[str]:
    """Split on ``<``, ``>``, ``,`` and ``&``; identifiers keep their ``::`` paths."""
    tokens: List[str] = []
    pos = 0
    text = signature.rstrip()
    while pos < len(text):
        m = _TOKEN_RE.match(text, pos)
        if not m or m.end() == pos:
            raise TypeParseError(
                f"unexpected character {text[pos:].lstrip()[:1]!r}",
                {"signature": signature, "position": pos},
            )
        tokens.append(m.group(1) or m.group(2))
        pos = m.end()
    return tokens


class _Parser:
    def __init__(
        self,
        signature: str,
        generics: Sequence[str],
        max_depth: int,
    ) -> None:
        self.signature = signature
        self.tokens = tokenize(signature)
        self.pos = 0
        self.generics = {name: i for i, name in enumerate(generics)}
        self.max_depth = max_depth

    # -- token cursor --------------------------------------------------------

    def _fail(self, message: str) -> TypeParseError:
        return TypeParseError(message, {"signature": self.signature, "token_index": self.pos})

    def _peek(self) -> Optional[str]:
        return self.tokens[self.pos] if self.pos < len(self.tokens) else None

    def _next(self) -> str:
        tok = self._peek()
        if tok is None:
            raise self._fail("unexpected end of type signature")
        self.pos += 1
        return tok

    def _expect(self, tok: str) -> None:
        got = self._next()
        if got != tok:
            raise self._fail(f"expected {tok!r}, got {got!r}")

    # -- grammar ---------------------------------------------------------------

    def parse(self) -> TypeDescriptor:
        if not self.tokens:
            raise self._fail("empty type signature")
        t = self._type(0)
        if self._peek() is not None:
            raise self._fail(f"trailing token {self._peek()!r}")
        return t

    def _type(self, depth: int) -> TypeDescriptor:
        if depth > self.max_depth:
            raise self._fail(f"type nesting exceeds maximum depth {self.max_depth}")
        tok = self._next()

        if tok == "&":
            mutable = False
            if self._peek() == "mut":
                self.pos += 1
                mutable = True
            if self._peek() == "&":
                raise self._fail("reference to a reference is not a valid type")
            return ReferenceType(self._type(depth + 1), mutable)

        if tok in ("<", ">", ","):
            raise self._fail(f"unexpected {tok!r}")

        if tok in _PRIMITIVES:
            if self._peek() == "<":
                raise self._fail(f"primitive {tok!r} takes no type arguments")
            return _PRIMITIVES[tok]

        if tok == "vector":
            self._expect("<")
            elem = self._type(depth + 1)
            self._expect(">")
            return VectorType(elem)

        if "::" in tok:
            return self._struct(tok, depth)

        if tok in self.generics:
            return GenericParam(self.generics[tok])

        raise self._fail(f"unknown type identifier {tok!r}")

    def _struct(self, path: str, depth: int) -> StructTag:
        parts = path.split("::")
        if len(parts) != 3:
            raise self._fail(f"struct path must be address::module::Name, got {path!r}")
        addr, module, name = parts
        if not _ADDR_RE.match(addr):
            raise self._fail(f"invalid struct address {addr!r}")
        if not _IDENT_RE.match(module) or not _IDENT_RE.match(name):
            raise self._fail(f"invalid struct path {path!r}")
        body = addr[2:] if addr[:2] in ("0x", "0X") else addr
        if len(body) % 2:
            body = "0" + body

        args: List[TypeDescriptor] = []
        if self._peek() == "<":
            self.pos += 1
            args.append(self._type(depth + 1))
            while self._peek() == ",":
                self.pos += 1
                args.append(self._type(depth + 1))
            self._expect(">")
        return StructTag(to_short_hex(bytes.fromhex(body)), module, name, tuple(args))


@lru_cache(maxsize=4096)
def _parse_cached(signature: str, generics: Tuple[str, ...], max_depth: int) -> TypeDescriptor:
    log.debug("parse cache miss", extra={"signature": signature})
    return _Parser(signature, generics, max_depth).parse()


def parse_type(
    signature: str,
    *,
    generics: Sequence[str] = (),
    config: Optional[EncoderConfig] = None,
) -> TypeDescriptor:
    """
    Parse `signature` into a TypeDescriptor.

    `generics` names the generic slots in scope, in declaration order; any
    other bare identifier is an error.

    Raises:
        TypeParseError on malformed input or nesting deeper than
        ``config.max_type_depth``.
    """
    if not isinstance(signature, str):
        raise TypeParseError(
            "type signature must be a string", {"signature": repr(signature)}
        )
    cfg = config or load_config()
    if cfg.parse_cache:
        return _parse_cached(signature.strip(), tuple(generics), cfg.max_type_depth)
    return _Parser(signature.strip(), generics, cfg.max_type_depth).parse()


def parse_type_args(
    type_args: Sequence[str], *, config: Optional[EncoderConfig] = None
) -> Tuple[TypeDescriptor, ...]:
    """Parse caller-supplied concrete type arguments (no generics in scope)."""
    out: List[TypeDescriptor] = []
    for idx, raw in enumerate(type_args):
        try:
            out.append(parse_type(raw, config=config))
        except TypeParseError as e:
            raise e.with_context(type_arg_index=idx) from e
    return tuple(out)


def clear_parse_cache() -> None:
    _parse_cached.cache_clear()
