"""
Type descriptors for Move parameter types.

A parsed signature is a tree of small frozen dataclasses:

  - BoolType, UIntType(bits), AddressType, SignerType   (primitives)
  - VectorType(elem)
  - StructTag(address, module, name, type_args)
  - GenericParam(index)                                 (T0, T1, ... of the enclosing function/struct)
  - ReferenceType(inner, mutable)

Descriptors are immutable and hashable, so a parse cache can hand the same
instance to concurrent callers. Textual parsing lives in move_abi.parser; this
module only defines the shapes plus a few structural helpers.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional, Sequence, Tuple, Union

__all__ = [
    "BoolType",
    "UIntType",
    "AddressType",
    "SignerType",
    "VectorType",
    "StructTag",
    "GenericParam",
    "ReferenceType",
    "TypeDescriptor",
    "BOOL",
    "U8",
    "U16",
    "U32",
    "U64",
    "U128",
    "U256",
    "ADDRESS",
    "SIGNER",
    "UINT_BITS",
    "format_type",
    "substitute",
    "is_signer",
    "type_depth",
    "contains_generic",
    "FrameworkStruct",
    "framework_struct",
]

UINT_BITS = (8, 16, 32, 64, 128, 256)


# ──────────────────────────────────────────────────────────────────────────────
# Variants
# ──────────────────────────────────────────────────────────────────────────────


@dataclass(frozen=True)
class BoolType:
    def __str__(self) -> str:
        return "bool"


@dataclass(frozen=True)
class UIntType:
    bits: int

    def __post_init__(self) -> None:
        if self.bits not in UINT_BITS:
            raise ValueError(f"unsupported integer width: {self.bits}")

    @property
    def max_value(self) -> int:
        return (1 << self.bits) - 1

    @property
    def width(self) -> int:
        return self.bits // 8

    def __str__(self) -> str:
        return f"u{self.bits}"


@dataclass(frozen=True)
class AddressType:
    def __str__(self) -> str:
        return "address"


@dataclass(frozen=True)
class SignerType:
    def __str__(self) -> str:
        return "signer"


@dataclass(frozen=True)
class VectorType:
    elem: "TypeDescriptor"

    def __str__(self) -> str:
        return f"vector<{self.elem}>"


@dataclass(frozen=True)
class StructTag:
    address: str  # short lowercase hex, e.g. "0x1"
    module: str
    name: str
    type_args: Tuple["TypeDescriptor", ...] = ()

    @property
    def qualified_name(self) -> str:
        """``0x1::string::String`` (type arguments omitted)."""
        return f"{self.address}::{self.module}::{self.name}"

    def __str__(self) -> str:
        if not self.type_args:
            return self.qualified_name
        return f"{self.qualified_name}<{', '.join(str(t) for t in self.type_args)}>"


@dataclass(frozen=True)
class GenericParam:
    index: int

    def __str__(self) -> str:
        return f"T{self.index}"


@dataclass(frozen=True)
class ReferenceType:
    inner: "TypeDescriptor"
    mutable: bool = False

    def __str__(self) -> str:
        return f"&mut {self.inner}" if self.mutable else f"&{self.inner}"


TypeDescriptor = Union[
    BoolType,
    UIntType,
    AddressType,
    SignerType,
    VectorType,
    StructTag,
    GenericParam,
    ReferenceType,
]

BOOL = BoolType()
U8 = UIntType(8)
U16 = UIntType(16)
U32 = UIntType(32)
U64 = UIntType(64)
U128 = UIntType(128)
U256 = UIntType(256)
ADDRESS = AddressType()
SIGNER = SignerType()


# ──────────────────────────────────────────────────────────────────────────────
# Structural helpers
# ──────────────────────────────────────────────────────────────────────────────


def format_type(t: TypeDescriptor) -> str:
    """Canonical text form; `parse_type(format_type(t)) == t`."""
    return str(t)


def substitute(t: TypeDescriptor, type_args: Sequence[TypeDescriptor]) -> TypeDescriptor:
    """
    Replace every GenericParam(i) with ``type_args[i]``.

    Slots without a concrete argument are left in place; the coercer reports
    them as unresolved when (and only if) a value actually reaches them.
    """
    if isinstance(t, GenericParam):
        if t.index < len(type_args):
            return type_args[t.index]
        return t
    if isinstance(t, VectorType):
        return VectorType(substitute(t.elem, type_args))
    if isinstance(t, StructTag):
        if not t.type_args:
            return t
        return StructTag(
            t.address, t.module, t.name, tuple(substitute(a, type_args) for a in t.type_args)
        )
    if isinstance(t, ReferenceType):
        return ReferenceType(substitute(t.inner, type_args), t.mutable)
    return t


def is_signer(t: TypeDescriptor) -> bool:
    """True for ``signer``, ``&signer`` and ``&mut signer``."""
    if isinstance(t, ReferenceType):
        t = t.inner
    return isinstance(t, SignerType)


def type_depth(t: TypeDescriptor) -> int:
    if isinstance(t, VectorType):
        return 1 + type_depth(t.elem)
    if isinstance(t, ReferenceType):
        return 1 + type_depth(t.inner)
    if isinstance(t, StructTag) and t.type_args:
        return 1 + max(type_depth(a) for a in t.type_args)
    return 0


def contains_generic(t: TypeDescriptor) -> bool:
    if isinstance(t, GenericParam):
        return True
    if isinstance(t, VectorType):
        return contains_generic(t.elem)
    if isinstance(t, ReferenceType):
        return contains_generic(t.inner)
    if isinstance(t, StructTag):
        return any(contains_generic(a) for a in t.type_args)
    return False


# ──────────────────────────────────────────────────────────────────────────────
# Framework structs with a fixed wire layout
# ──────────────────────────────────────────────────────────────────────────────


@dataclass(frozen=True)
class FrameworkStruct:
    """
    A standard-library struct whose encoding is known without a field schema.

    kind:
      "string"  UTF-8 text, laid out as vector<u8>
      "option"  zero or one element, laid out as vector<T>
      "object"  laid out as address
      "fixed"   decimal scaled by `scale` into the integer `layout`
    """

    kind: str
    layout: TypeDescriptor
    scale: int = 1


_FIXED_LAYOUTS = {
    ("fixed_point32", "FixedPoint32"): (U64, 1 << 32),
    ("fixed_point64", "FixedPoint64"): (U128, 1 << 64),
    ("decimal128", "Decimal128"): (U128, 10**18),
    ("decimal256", "Decimal256"): (U256, 10**18),
}


def framework_struct(tag: StructTag) -> Optional[FrameworkStruct]:
    """Return the fixed layout for well-known ``0x1`` structs, else None."""
    if tag.address != "0x1":
        return None
    key = (tag.module, tag.name)
    if key == ("string", "String") and not tag.type_args:
        return FrameworkStruct("string", VectorType(U8))
    if key == ("option", "Option") and len(tag.type_args) == 1:
        return FrameworkStruct("option", VectorType(tag.type_args[0]))
    if key == ("object", "Object") and len(tag.type_args) == 1:
        return FrameworkStruct("object", ADDRESS)
    if key in _FIXED_LAYOUTS and not tag.type_args:
        layout, scale = _FIXED_LAYOUTS[key]
        return FrameworkStruct("fixed", layout, scale)
    return None
