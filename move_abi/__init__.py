"""
move_abi
========

ABI-directed argument encoder for Move entry functions.

This package provides:
  • A parser for textual Move type signatures (``vector<u64>``,
    ``0x1::option::Option<address>``, ``&signer``...).
  • An immutable model of a module ABI with function lookup.
  • A value coercer reconciling loosely-typed caller values with declared types.
  • The canonical BCS encoder (and its inverse decoder).
  • `encode_args`, which turns raw caller values into one encoded byte string
    per explicit parameter.

Everything here is pure-Python, synchronous and deterministic; no I/O.

    from move_abi import ModuleABI, encode_args

    abi = ModuleABI.from_base64(module["abi"])
    args = encode_args(abi, "transfer", [], ["0x2", "1000"])
    payload = {"type_args": [], "args": [a.base64() for a in args]}
"""

from __future__ import annotations

from .version import __version__
from .address import normalize_address, parse_address
from .args import EncodedArgument, encode_args, encode_args_base64
from .coerce import OpaqueBytes, StructValue, ValueCoercer, coerce_value
from .config import EncoderConfig, StructPolicy, load_config
from .decoding import decode_args, decode_exact, decode_value
from .encoding import encode_value, uleb128_encode
from .errors import (AbiDocumentError, ArityMismatchError, DecodeError,
                     FunctionNotFoundError, IntegerOverflowError,
                     InvalidAddressError, MoveAbiError, TypeMismatchError,
                     TypeParseError, UnresolvedGenericError)
from .model import ExposedFunction, FieldDef, ModuleABI, StructDef
from .parser import parse_type, parse_type_args
from .typetag import (AddressType, BoolType, GenericParam, ReferenceType,
                      SignerType, StructTag, TypeDescriptor, UIntType,
                      VectorType, format_type)

__all__ = (
    "__version__",
    # types
    "TypeDescriptor",
    "BoolType",
    "UIntType",
    "AddressType",
    "SignerType",
    "VectorType",
    "StructTag",
    "GenericParam",
    "ReferenceType",
    "format_type",
    "parse_type",
    "parse_type_args",
    # model
    "ModuleABI",
    "ExposedFunction",
    "StructDef",
    "FieldDef",
    # values
    "ValueCoercer",
    "coerce_value",
    "StructValue",
    "OpaqueBytes",
    "parse_address",
    "normalize_address",
    # codec
    "encode_value",
    "uleb128_encode",
    "decode_value",
    "decode_exact",
    "decode_args",
    "EncodedArgument",
    "encode_args",
    "encode_args_base64",
    # config
    "EncoderConfig",
    "StructPolicy",
    "load_config",
    # errors
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
)
