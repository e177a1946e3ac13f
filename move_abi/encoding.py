"""
Canonical binary (BCS) encoding of coerced argument values.

Rules
-----
All values are encoded *tagless*; composites are plain concatenation.

- bool:               1 byte: 0x00 (false) or 0x01 (true)
- uN:                 N/8 bytes, little-endian, fixed width
- address:            `address_length` raw bytes, no length prefix
- vector<T>:          ULEB128(count) || item1 || item2 || ... || itemN
- struct (fields):    field1 || field2 || ... in declared order
- struct (opaque):    caller-supplied bytes verbatim
- String:             ULEB128(len) || UTF-8 bytes
- Option<T>:          as vector<T> with zero or one element
- Object<T>:          as address
- FixedPoint/Decimal: as the underlying unsigned integer (raw scaled value)

Encoding is a pure function of (descriptor, coerced value). Value
validation/normalization lives in move_abi.coerce; decoding is in
move_abi.decoding.
"""

from __future__ import annotations

from typing import Any

from .coerce import OpaqueBytes, StructValue
from .errors import MoveAbiError, TypeMismatchError
from .typetag import (AddressType, BoolType, StructTag, TypeDescriptor,
                      UIntType, VectorType, framework_struct)

__all__ = [
    "uleb128_encode",
    "encode_bool",
    "encode_uint",
    "encode_bytes",
    "encode_value",
]


# ──────────────────────────────────────────────────────────────────────────────
# ULEB128 for lengths and counts
# ──────────────────────────────────────────────────────────────────────────────

# BCS caps sequence lengths at 2**31 - 1.
MAX_SEQUENCE_LENGTH = (1 << 31) - 1


def uleb128_encode(n: int) -> bytes:
    """
    Unsigned LEB128 encoding.

    - n must be >= 0
    - returns minimal-length representation
    """
    if not isinstance(n, int):
        raise TypeError("uleb128 value must be int")
    if n < 0:
        raise ValueError("uleb128 cannot encode negative values")
    out = bytearray()
    while True:
        b = n & 0x7F
        n >>= 7
        if n:
            out.append(b | 0x80)
        else:
            out.append(b)
            break
    return bytes(out)


# ──────────────────────────────────────────────────────────────────────────────
# Primitive encoders
# ──────────────────────────────────────────────────────────────────────────────


def encode_bool(value: bool) -> bytes:
    return b"\x01" if value else b"\x00"


def encode_uint(value: int, bits: int) -> bytes:
    return value.to_bytes(bits // 8, "little", signed=False)


def encode_bytes(data: bytes) -> bytes:
    """Length-prefixed byte string (vector<u8> layout)."""
    if len(data) > MAX_SEQUENCE_LENGTH:
        raise TypeMismatchError("byte string too long", {"length": len(data)})
    return uleb128_encode(len(data)) + data


# ──────────────────────────────────────────────────────────────────────────────
# Dispatch
# ──────────────────────────────────────────────────────────────────────────────


def encode_value(t: TypeDescriptor, value: Any) -> bytes:
    """
    Encode a single coerced value according to `t`.

    `t` must be concrete: generic slots substituted, no signer/reference.
    """
    out = bytearray()
    _write(out, t, value)
    return bytes(out)


def _bad(t: Any, value: Any) -> TypeMismatchError:
    return TypeMismatchError(
        "value is not a coerced value of the declared type",
        {"expected": str(t), "python_type": type(value).__name__},
    )


def _write(out: bytearray, t: TypeDescriptor, value: Any) -> None:
    if isinstance(t, BoolType):
        if not isinstance(value, bool):
            raise _bad(t, value)
        out += encode_bool(value)
        return

    if isinstance(t, UIntType):
        if isinstance(value, bool) or not isinstance(value, int) or not 0 <= value <= t.max_value:
            raise _bad(t, value)
        out += encode_uint(value, t.bits)
        return

    if isinstance(t, AddressType):
        if not isinstance(value, bytes):
            raise _bad(t, value)
        out += value
        return

    if isinstance(t, VectorType):
        if not isinstance(value, (tuple, list)):
            raise _bad(t, value)
        if len(value) > MAX_SEQUENCE_LENGTH:
            raise TypeMismatchError("vector too long", {"length": len(value)})
        out += uleb128_encode(len(value))
        for idx, item in enumerate(value):
            try:
                _write(out, t.elem, item)
            except MoveAbiError as e:
                raise e.with_context(element_index=idx) from e
        return

    if isinstance(t, StructTag):
        _write_struct(out, t, value)
        return

    raise TypeMismatchError("type cannot be encoded as an argument", {"type": str(t)})


def _write_struct(out: bytearray, t: StructTag, value: Any) -> None:
    if isinstance(value, OpaqueBytes):
        out += value.data
        return

    fw = framework_struct(t)
    if fw is not None:
        if fw.kind == "string":
            if not isinstance(value, str):
                raise _bad(t, value)
            try:
                data = value.encode("utf-8")
            except UnicodeEncodeError as e:
                raise _bad(t, value) from e
            out += encode_bytes(data)
            return
        if fw.kind == "option" and (not isinstance(value, tuple) or len(value) > 1):
            raise _bad(t, value)
        _write(out, fw.layout, value)
        return

    if not isinstance(value, StructValue) or value.tag != t:
        raise _bad(t, value)
    for name, ftype, fvalue in value.fields:
        try:
            _write(out, ftype, fvalue)
        except MoveAbiError as e:
            raise e.with_context(field=name) from e
