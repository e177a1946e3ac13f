"""
Account address helpers.

Addresses travel as hex text (``0x1``, ``0x000…01`` or without the ``0x``
prefix) and are encoded as a fixed-width byte string. Short forms are left
padded with zeros, so ``0x1`` and its fully padded spelling are the same
address.
"""

from __future__ import annotations

import re
from typing import Any, Union

from .errors import InvalidAddressError

__all__ = [
    "DEFAULT_ADDRESS_LENGTH",
    "parse_address",
    "to_full_hex",
    "to_short_hex",
    "normalize_address",
]

DEFAULT_ADDRESS_LENGTH = 32

_HEX_BODY_RE = re.compile(r"^[0-9a-fA-F]+$")

BytesLike = Union[bytes, bytearray, memoryview]


def parse_address(value: Any, *, length: int = DEFAULT_ADDRESS_LENGTH) -> bytes:
    """
    Accept hex text (with or without ``0x``) or raw bytes and return exactly
    `length` bytes.

    Raises:
        InvalidAddressError on bad charset, empty body, or too many digits.
    """
    if isinstance(value, (bytes, bytearray, memoryview)):
        raw = bytes(value)
        if len(raw) != length:
            raise InvalidAddressError(
                f"address must be exactly {length} bytes, got {len(raw)}",
                {"value": raw},
            )
        return raw
    if not isinstance(value, str):
        raise InvalidAddressError(
            "address must be a hex string",
            {"value": repr(value), "python_type": type(value).__name__},
        )

    body = value.strip()
    if body[:2] in ("0x", "0X"):
        body = body[2:]
    if not body or not _HEX_BODY_RE.match(body):
        raise InvalidAddressError("address must be non-empty hex", {"value": value})
    if len(body) > 2 * length:
        raise InvalidAddressError(
            f"address longer than {length} bytes", {"value": value, "digits": len(body)}
        )
    return bytes.fromhex(body.rjust(2 * length, "0"))


def to_full_hex(raw: BytesLike) -> str:
    """Fixed-width lowercase form, e.g. ``0x00…0001``."""
    return "0x" + bytes(raw).hex()


def to_short_hex(raw: BytesLike) -> str:
    """Leading zeros stripped, e.g. ``0x1``; the all-zero address is ``0x0``."""
    return "0x" + (bytes(raw).hex().lstrip("0") or "0")


def normalize_address(value: Any, *, length: int = DEFAULT_ADDRESS_LENGTH) -> str:
    return to_full_hex(parse_address(value, length=length))
