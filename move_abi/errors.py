"""
move_abi.errors
---------------

Typed error classes for the argument encoder.

Design goals
------------
- One root `MoveAbiError` with a machine-stable `code` and a `context` dict
  (argument index, parameter type, offending value, function name).
- One subclass per failure mode so callers can catch precisely.
- Safe JSON representation (`to_dict`) suitable for logs and API bridges.

None of these failures are transient: the caller must fix its input and
re-invoke, so every error reports `retryable = False`.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, ClassVar, Dict

__all__ = [
    "AbiErrorCode",
    "MoveAbiError",
    "TypeParseError",
    "FunctionNotFoundError",
    "ArityMismatchError",
    "TypeMismatchError",
    "IntegerOverflowError",
    "InvalidAddressError",
    "UnresolvedGenericError",
    "AbiDocumentError",
    "DecodeError",
]


class AbiErrorCode(str, Enum):
    INTERNAL = "ABI/INTERNAL"
    TYPE_PARSE = "ABI/TYPE_PARSE"
    FUNCTION_NOT_FOUND = "ABI/FUNCTION_NOT_FOUND"
    ARITY_MISMATCH = "ABI/ARITY_MISMATCH"
    TYPE_MISMATCH = "ABI/TYPE_MISMATCH"
    INTEGER_OVERFLOW = "ABI/INTEGER_OVERFLOW"
    INVALID_ADDRESS = "ABI/INVALID_ADDRESS"
    UNRESOLVED_GENERIC = "ABI/UNRESOLVED_GENERIC"
    BAD_DOCUMENT = "ABI/BAD_DOCUMENT"
    DECODE = "ABI/DECODE"


@dataclass(eq=False)
class MoveAbiError(Exception):
    """
    Root error for the encoder.

    Attributes
    ----------
    message: str
        Human hint suitable for logs.
    context: dict
        Diagnostic fields (``arg_index``, ``param_type``, ``value``,
        ``function``, ``signature``...). Values are made JSON-safe by
        :meth:`to_dict`.
    """

    code: ClassVar[AbiErrorCode] = AbiErrorCode.INTERNAL
    retryable: ClassVar[bool] = False

    message: str
    context: Dict[str, Any] = field(default_factory=dict)

    def __post_init__(self) -> None:
        super().__init__(self.message)

    def with_context(self, **ctx: Any) -> "MoveAbiError":
        """Return a *new* error of the same class with `ctx` merged in."""
        merged = dict(self.context)
        merged.update(ctx)
        return type(self)(self.message, merged)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "code": self.code.value,
            "message": self.message,
            "context": {k: _coerce_json(v) for k, v in self.context.items()},
            "retryable": self.retryable,
        }

    def __str__(self) -> str:
        parts = [f"{self.code.value}: {self.message}"]
        if self.context:
            preview = ", ".join(f"{k}={_preview(v)}" for k, v in self.context.items())
            parts.append(f"[{preview}]")
        return " ".join(parts)


class TypeParseError(MoveAbiError):
    """Malformed type signature (unbalanced brackets, unknown identifier, too deep)."""

    code = AbiErrorCode.TYPE_PARSE


class FunctionNotFoundError(MoveAbiError):
    """No exposed function of that name, or it is not callable from a transaction."""

    code = AbiErrorCode.FUNCTION_NOT_FOUND


class ArityMismatchError(MoveAbiError):
    code = AbiErrorCode.ARITY_MISMATCH


class TypeMismatchError(MoveAbiError):
    """Value shape is incompatible with the declared parameter type."""

    code = AbiErrorCode.TYPE_MISMATCH


class IntegerOverflowError(MoveAbiError):
    """Negative value, or a value wider than the declared integer type."""

    code = AbiErrorCode.INTEGER_OVERFLOW


class InvalidAddressError(MoveAbiError):
    code = AbiErrorCode.INVALID_ADDRESS


class UnresolvedGenericError(MoveAbiError):
    """A generic slot is used but no concrete type argument was supplied for it."""

    code = AbiErrorCode.UNRESOLVED_GENERIC


class AbiDocumentError(MoveAbiError):
    """The module ABI document does not have the expected shape."""

    code = AbiErrorCode.BAD_DOCUMENT


class DecodeError(MoveAbiError):
    """Truncated, trailing or non-canonical bytes handed to the decoder."""

    code = AbiErrorCode.DECODE


# ---------------------------------------------------------------------------
# Internals
# ---------------------------------------------------------------------------


def _coerce_json(v: Any) -> Any:
    if v is None or isinstance(v, (bool, int, float, str)):
        return v
    if isinstance(v, (bytes, bytearray, memoryview)):
        return "0x" + bytes(v).hex()
    if isinstance(v, dict):
        return {str(k): _coerce_json(x) for k, x in v.items()}
    if isinstance(v, (list, tuple)):
        return [_coerce_json(x) for x in v]
    return str(v)


def _preview(v: Any, limit: int = 64) -> str:
    s = repr(_coerce_json(v))
    return s if len(s) <= limit else s[: limit - 1] + "…"
