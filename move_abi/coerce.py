"""
Reconcile loosely-typed caller values with declared parameter types.

Coerced representation (what the encoder consumes and the decoder returns):

    bool                      -> bool
    u8 … u256                 -> int
    address, Object<T>        -> bytes (exactly `address_length` long)
    vector<T>                 -> tuple of coerced elements
    0x1::string::String       -> str
    0x1::option::Option<T>    -> () or (value,)
    FixedPoint32/64,
    Decimal128/256            -> int (raw scaled integer)
    struct with known fields  -> StructValue
    opaque struct             -> OpaqueBytes (caller pre-serialized, emitted verbatim)

Raw inputs are whatever JSON-ish values the caller has: bool, int, decimal
strings (for integers wider than a float can hold), text, sequences and
mappings. Integral floats are accepted for integer types; ``bool`` never is.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from decimal import ROUND_FLOOR, Decimal, InvalidOperation, localcontext
from typing import TYPE_CHECKING, Any, Mapping, Optional, Sequence, Tuple

from .address import parse_address
from .config import EncoderConfig, StructPolicy, load_config
from .errors import (IntegerOverflowError, InvalidAddressError, MoveAbiError,
                     TypeMismatchError, UnresolvedGenericError)
from .typetag import (AddressType, BoolType, GenericParam, ReferenceType,
                      SignerType, StructTag, TypeDescriptor, UIntType,
                      VectorType, FrameworkStruct, framework_struct,
                      substitute)

if TYPE_CHECKING:  # pragma: no cover
    from .model import ModuleABI, StructDef

__all__ = [
    "StructValue",
    "OpaqueBytes",
    "ValueCoercer",
    "coerce_value",
    "coerce_uint",
    "coerce_bool",
]

log = logging.getLogger(__name__)

_DECIMAL_INT_RE = re.compile(r"^[+-]?[0-9]+$")
_HEX_BYTES_RE = re.compile(r"^0[xX](?:[0-9a-fA-F]{2})*$")


@dataclass(frozen=True)
class StructValue:
    """A struct literal with fields in declared order: ``(name, type, value)``."""

    tag: StructTag
    fields: Tuple[Tuple[str, TypeDescriptor, Any], ...]

    def as_dict(self) -> dict:
        return {name: value for name, _, value in self.fields}


@dataclass(frozen=True)
class OpaqueBytes:
    """Pre-serialized struct bytes supplied by the caller; emitted unmodified."""

    data: bytes


def _mismatch(message: str, t: Any, raw: Any) -> TypeMismatchError:
    return TypeMismatchError(
        message, {"expected": str(t), "value": _short_repr(raw), "python_type": type(raw).__name__}
    )


def _short_repr(raw: Any, limit: int = 80) -> str:
    s = _int_text(raw) if isinstance(raw, int) else repr(raw)
    return s if len(s) <= limit else s[: limit - 1] + "…"


# ──────────────────────────────────────────────────────────────────────────────
# Scalar coercion
# ──────────────────────────────────────────────────────────────────────────────


def coerce_bool(value: Any) -> bool:
    if isinstance(value, bool):
        return value
    if isinstance(value, str) and value == "true":
        return True
    if isinstance(value, str) and value == "false":
        return False
    raise _mismatch("bool must be a boolean or 'true'/'false'", "bool", value)


def _int_text(v: int) -> str:
    # str() refuses very long integers; keep error context printable.
    if v.bit_length() > 1024:
        return f"<{v.bit_length()}-bit integer>"
    return str(v)


def _too_wide(t: UIntType, value: Any, digits: int) -> IntegerOverflowError:
    return IntegerOverflowError(
        f"{t} out of range [0, {t.max_value}]",
        {"expected": str(t), "value": _short_repr(value), "digits": digits},
    )


def coerce_uint(value: Any, t: UIntType) -> int:
    """Accept int, integral float, or a decimal string; enforce 0 <= v <= 2**bits-1."""
    max_digits = len(str(t.max_value))
    if isinstance(value, bool):
        raise _mismatch("boolean is not an integer", t, value)
    if isinstance(value, int):
        v = value
    elif isinstance(value, float):
        if not value.is_integer():
            raise _mismatch("integer value has a fractional part", t, value)
        v = int(value)
    elif isinstance(value, Decimal):
        if not value.is_finite() or value != value.to_integral_value():
            raise _mismatch("integer value has a fractional part", t, value)
        if not value.is_zero() and value.adjusted() >= max_digits:
            raise _too_wide(t, value, value.adjusted() + 1)
        v = int(value)
    elif isinstance(value, str):
        s = value.strip()
        if not _DECIMAL_INT_RE.match(s):
            raise _mismatch("integer string must be decimal digits", t, value)
        significant = s.lstrip("+-").lstrip("0")
        if len(significant) > max_digits:
            raise _too_wide(t, value, len(significant))
        v = int(significant or "0", 10)
        if s.startswith("-"):
            v = -v
    else:
        raise _mismatch("integer must be a number or decimal string", t, value)

    if v < 0:
        raise IntegerOverflowError(
            f"{t} cannot be negative", {"expected": str(t), "value": _int_text(v)}
        )
    if v > t.max_value:
        raise IntegerOverflowError(
            f"{t} out of range [0, {t.max_value}]", {"expected": str(t), "value": _int_text(v)}
        )
    return v


def _coerce_scaled(value: Any, tag: StructTag, layout: UIntType, scale: int) -> int:
    if isinstance(value, bool) or not isinstance(value, (int, float, str, Decimal)):
        raise _mismatch("decimal value must be a number or numeric string", tag, value)
    with localcontext() as ctx:
        ctx.prec = 200
        try:
            if isinstance(value, str):
                d = Decimal(value.strip())
            elif isinstance(value, int):
                d = Decimal(value)
            else:
                d = Decimal(str(value))
        except InvalidOperation as e:
            raise _mismatch("not a decimal number", tag, value) from e
        if not d.is_finite():
            raise _mismatch("decimal value must be finite", tag, value)
        if d < 0:
            raise IntegerOverflowError(f"{tag} cannot be negative", {"expected": str(tag), "value": _short_repr(value)})
        # the integer part alone must fit before scaling
        if not d.is_zero() and d.adjusted() >= len(str(layout.max_value)):
            raise IntegerOverflowError(
                f"{tag} value does not fit in {layout}", {"expected": str(tag), "value": _short_repr(value)}
            )
        raw = int((d * scale).to_integral_value(rounding=ROUND_FLOOR))
    if raw > layout.max_value:
        raise IntegerOverflowError(
            f"{tag} value does not fit in {layout}", {"expected": str(tag), "value": _short_repr(value)}
        )
    return raw


def _as_bytes(value: Any) -> Optional[bytes]:
    if isinstance(value, (bytes, bytearray, memoryview)):
        return bytes(value)
    if isinstance(value, str) and _HEX_BYTES_RE.match(value):
        return bytes.fromhex(value[2:])
    return None


# ──────────────────────────────────────────────────────────────────────────────
# Coercer
# ──────────────────────────────────────────────────────────────────────────────


class ValueCoercer:
    """
    Coerce raw values against descriptors for one encoding call.

    `abi` supplies field schemas for structs declared by the target module;
    `type_args` are the concrete types bound to the function's generic slots.
    """

    def __init__(
        self,
        *,
        abi: Optional["ModuleABI"] = None,
        type_args: Sequence[TypeDescriptor] = (),
        config: Optional[EncoderConfig] = None,
    ) -> None:
        self.abi = abi
        self.type_args = tuple(type_args)
        self.config = config or load_config()

    def coerce(self, t: TypeDescriptor, raw: Any) -> Any:
        return self._coerce(t, raw, 0)

    def _coerce(self, t: TypeDescriptor, raw: Any, depth: int) -> Any:
        if depth > self.config.max_type_depth:
            raise _mismatch(f"value nesting exceeds maximum depth {self.config.max_type_depth}", t, raw)

        if isinstance(t, BoolType):
            return coerce_bool(raw)

        if isinstance(t, UIntType):
            return coerce_uint(raw, t)

        if isinstance(t, AddressType):
            try:
                return parse_address(raw, length=self.config.address_length)
            except InvalidAddressError as e:
                raise e.with_context(expected="address") from e

        if isinstance(t, VectorType):
            return self._vector(t, raw, depth)

        if isinstance(t, StructTag):
            return self._struct(t, raw, depth)

        if isinstance(t, GenericParam):
            if t.index >= len(self.type_args):
                raise UnresolvedGenericError(
                    f"no concrete type supplied for generic slot T{t.index}",
                    {"slot": t.index, "type_args": len(self.type_args)},
                )
            return self._coerce(self.type_args[t.index], raw, depth)

        if isinstance(t, (SignerType, ReferenceType)):
            raise _mismatch("signer and reference parameters cannot be supplied by the caller", t, raw)

        raise _mismatch("unsupported type descriptor", t, raw)

    # -- composites ------------------------------------------------------------

    def _vector(self, t: VectorType, raw: Any, depth: int) -> Tuple[Any, ...]:
        if t.elem == UIntType(8) and isinstance(raw, (bytes, bytearray, memoryview)):
            return tuple(bytes(raw))
        if isinstance(raw, (str, bytes, bytearray, Mapping)) or not isinstance(raw, Sequence):
            raise _mismatch("vector value must be a sequence", t, raw)
        out = []
        for idx, item in enumerate(raw):
            try:
                out.append(self._coerce(t.elem, item, depth + 1))
            except MoveAbiError as e:
                raise e.with_context(element_index=idx) from e
        return tuple(out)

    def _struct(self, t: StructTag, raw: Any, depth: int) -> Any:
        fw = framework_struct(t)
        if fw is not None:
            return self._framework(t, fw, raw, depth)

        policy = self.config.struct_policy
        sd = self.abi.struct_def(t) if self.abi is not None else None
        schema = sd if sd is not None and sd.has_schema else None

        if isinstance(raw, Mapping):
            if policy is StructPolicy.RAW:
                raise _mismatch("struct arguments must be pre-serialized bytes", t, raw)
            if schema is None:
                raise _mismatch("no field schema known for struct; pass pre-serialized bytes", t, raw)
            return self._fields(t, schema, raw, depth)

        blob = _as_bytes(raw)
        if blob is not None:
            if policy is StructPolicy.FIELDS:
                raise _mismatch("struct arguments must be field mappings", t, raw)
            log.debug("struct pass-through", extra={"struct": str(t), "size": len(blob)})
            return OpaqueBytes(blob)

        raise _mismatch("struct value must be a field mapping or pre-serialized bytes", t, raw)

    def _fields(self, t: StructTag, schema: "StructDef", raw: Mapping[str, Any], depth: int) -> StructValue:
        if len(t.type_args) != schema.generic_count:
            raise _mismatch(
                f"struct expects {schema.generic_count} type arguments, got {len(t.type_args)}", t, raw
            )
        names = [f.name for f in schema.fields]
        unknown = [k for k in raw if k not in names]
        if unknown:
            raise _mismatch(f"unknown struct fields: {', '.join(map(str, unknown))}", t, raw)
        missing = [n for n in names if n not in raw]
        if missing:
            raise _mismatch(f"missing struct fields: {', '.join(missing)}", t, raw)

        items = []
        for f in schema.fields:
            ftype = substitute(f.type, t.type_args)
            try:
                value = self._coerce(ftype, raw[f.name], depth + 1)
            except MoveAbiError as e:
                raise e.with_context(field=f.name) from e
            items.append((f.name, ftype, value))
        return StructValue(t, tuple(items))

    def _framework(self, t: StructTag, fw: FrameworkStruct, raw: Any, depth: int) -> Any:
        if fw.kind == "string":
            if not isinstance(raw, str):
                raise _mismatch("string value must be text", t, raw)
            try:
                raw.encode("utf-8")
            except UnicodeEncodeError as e:
                raise _mismatch("string value is not valid UTF-8", t, raw) from e
            return raw
        if fw.kind == "option":
            if raw is None:
                return ()
            return (self._coerce(t.type_args[0], raw, depth + 1),)
        if fw.kind == "object":
            try:
                return parse_address(raw, length=self.config.address_length)
            except InvalidAddressError as e:
                raise e.with_context(expected=str(t)) from e
        return _coerce_scaled(raw, t, fw.layout, fw.scale)


def coerce_value(
    t: TypeDescriptor,
    raw: Any,
    *,
    abi: Optional["ModuleABI"] = None,
    type_args: Sequence[TypeDescriptor] = (),
    config: Optional[EncoderConfig] = None,
) -> Any:
    """One-shot helper around :class:`ValueCoercer`."""
    return ValueCoercer(abi=abi, type_args=type_args, config=config).coerce(t, raw)
