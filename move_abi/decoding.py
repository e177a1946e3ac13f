"""
Inverse decoder for the argument encoding (see encoding.py).

Top-level:
- decode_value(buf, typ, offset=0, ...) -> (value, new_offset)
- decode_exact(buf, typ, ...)           -> value  (no trailing bytes allowed)
- decode_args(bufs, types, ...)         -> [value, ...]

Decoded values use the same representation the coercer produces, so
``decode_exact(encode_value(t, v), t) == v`` for every coerced `v`.
Decoding is always strict: non-minimal ULEB128, bool bytes other than 0/1
and invalid UTF-8 are rejected. Opaque structs cannot be decoded without a
field schema.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, List, Optional, Sequence, Tuple

from .coerce import StructValue
from .config import EncoderConfig, load_config
from .encoding import MAX_SEQUENCE_LENGTH
from .errors import DecodeError, MoveAbiError
from .typetag import (AddressType, BoolType, StructTag, TypeDescriptor,
                      UIntType, VectorType, framework_struct, substitute)

if TYPE_CHECKING:  # pragma: no cover
    from .model import ModuleABI

__all__ = [
    "uleb128_decode",
    "decode_value",
    "decode_exact",
    "decode_args",
]


# ──────────────────────────────────────────────────────────────────────────────
# ULEB128
# ──────────────────────────────────────────────────────────────────────────────


def uleb128_decode(buf: bytes, offset: int = 0) -> Tuple[int, int]:
    """
    Decode unsigned LEB128 at buf[offset:].
    Returns (value, new_offset).
    Raises DecodeError on truncated, non-minimal or oversized input.
    """
    n = 0
    shift = 0
    i = offset
    while i < len(buf):
        b = buf[i]
        i += 1
        n |= (b & 0x7F) << shift
        if (b & 0x80) == 0:
            if b == 0 and shift > 0:
                raise DecodeError("non-minimal uleb128", {"offset": offset})
            if n > MAX_SEQUENCE_LENGTH:
                raise DecodeError("uleb128 length out of range", {"offset": offset, "value": n})
            return n, i
        shift += 7
        if shift > 28:
            raise DecodeError("uleb128 too long", {"offset": offset})
    raise DecodeError("truncated uleb128", {"offset": offset})


def _read_exact(buf: bytes, offset: int, n: int) -> Tuple[bytes, int]:
    j = offset + n
    if j > len(buf):
        raise DecodeError("truncated payload", {"offset": offset, "need": n, "have": len(buf) - offset})
    return bytes(buf[offset:j]), j


# ──────────────────────────────────────────────────────────────────────────────
# Decoder
# ──────────────────────────────────────────────────────────────────────────────


class _Decoder:
    def __init__(self, abi: Optional["ModuleABI"], config: EncoderConfig) -> None:
        self.abi = abi
        self.config = config

    def read(self, buf: bytes, t: TypeDescriptor, offset: int, depth: int) -> Tuple[Any, int]:
        if depth > self.config.max_type_depth:
            raise DecodeError("value nesting exceeds maximum depth", {"type": str(t)})

        if isinstance(t, BoolType):
            b, j = _read_exact(buf, offset, 1)
            if b[0] not in (0, 1):
                raise DecodeError("invalid boolean byte", {"offset": offset, "byte": b[0]})
            return b[0] == 1, j

        if isinstance(t, UIntType):
            b, j = _read_exact(buf, offset, t.width)
            return int.from_bytes(b, "little", signed=False), j

        if isinstance(t, AddressType):
            return _read_exact(buf, offset, self.config.address_length)

        if isinstance(t, VectorType):
            count, i = uleb128_decode(buf, offset)
            # every element occupies at least one byte
            if count > len(buf) - i:
                raise DecodeError("vector count exceeds remaining bytes", {"offset": offset, "count": count})
            items = []
            for _ in range(count):
                v, i = self.read(buf, t.elem, i, depth + 1)
                items.append(v)
            return tuple(items), i

        if isinstance(t, StructTag):
            return self._struct(buf, t, offset, depth)

        raise DecodeError("type cannot be decoded", {"type": str(t)})

    def _struct(self, buf: bytes, t: StructTag, offset: int, depth: int) -> Tuple[Any, int]:
        fw = framework_struct(t)
        if fw is not None:
            if fw.kind == "string":
                length, i = uleb128_decode(buf, offset)
                raw, j = _read_exact(buf, i, length)
                try:
                    return raw.decode("utf-8"), j
                except UnicodeDecodeError as e:
                    raise DecodeError("string is not valid UTF-8", {"offset": offset}) from e
            if fw.kind == "option":
                count, i = uleb128_decode(buf, offset)
                if count > 1:
                    raise DecodeError("option holds more than one element", {"offset": offset})
                if count == 0:
                    return (), i
                v, j = self.read(buf, t.type_args[0], i, depth + 1)
                return (v,), j
            return self.read(buf, fw.layout, offset, depth)

        sd = self.abi.struct_def(t) if self.abi is not None else None
        if sd is None or not sd.has_schema:
            raise DecodeError("no field schema known for struct", {"type": str(t)})
        if len(t.type_args) != sd.generic_count:
            raise DecodeError("struct type argument count mismatch", {"type": str(t)})
        items = []
        i = offset
        for f in sd.fields:
            ftype = substitute(f.type, t.type_args)
            v, i = self.read(buf, ftype, i, depth + 1)
            items.append((f.name, ftype, v))
        return StructValue(t, tuple(items)), i


def decode_value(
    buf: bytes,
    typ: TypeDescriptor,
    offset: int = 0,
    *,
    abi: Optional["ModuleABI"] = None,
    config: Optional[EncoderConfig] = None,
) -> Tuple[Any, int]:
    """
    Decode a single value of type `typ` from buf[offset:].
    Returns (value, new_offset).
    """
    return _Decoder(abi, config or load_config()).read(bytes(buf), typ, offset, 0)


def decode_exact(
    buf: bytes,
    typ: TypeDescriptor,
    *,
    abi: Optional["ModuleABI"] = None,
    config: Optional[EncoderConfig] = None,
) -> Any:
    value, end = decode_value(buf, typ, 0, abi=abi, config=config)
    if end != len(buf):
        raise DecodeError("trailing bytes after value", {"consumed": end, "length": len(buf)})
    return value


def decode_args(
    bufs: Sequence[bytes],
    types: Sequence[TypeDescriptor],
    *,
    abi: Optional["ModuleABI"] = None,
    config: Optional[EncoderConfig] = None,
) -> List[Any]:
    """Decode one independently encoded buffer per explicit parameter."""
    if len(bufs) != len(types):
        raise DecodeError(
            "argument count mismatch", {"encoded": len(bufs), "expected": len(types)}
        )
    out: List[Any] = []
    for idx, (buf, t) in enumerate(zip(bufs, types)):
        try:
            out.append(decode_exact(buf, t, abi=abi, config=config))
        except MoveAbiError as e:
            raise e.with_context(arg_index=idx) from e
    return out
