"""
Module ABI model.

Builds an immutable, name-indexed view of a module's published interface from
the decoded ABI document the node returns. The accepted shape (extra keys are
ignored):

    {
      "address": "0x1",
      "name": "coin",
      "exposed_functions": [
        {"name": "transfer", "visibility": "public", "is_entry": true,
         "is_view": false, "generic_type_params": [{"constraints": []}],
         "params": ["&signer", "address", "u64"], "return": []}
      ],
      "structs": [
        {"name": "Pair", "is_native": false, "abilities": ["copy", "drop"],
         "generic_type_params": [], "fields": [{"name": "a", "type": "u64"}]}
      ]
    }

Only `exposed_functions[].name` and `exposed_functions[].params` are strictly
required; everything else defaults sensibly.
"""

from __future__ import annotations

import base64
import binascii
import json
import logging
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any, Dict, List, Mapping, Optional, Tuple, TypedDict, Union

from .address import DEFAULT_ADDRESS_LENGTH, parse_address, to_short_hex
from .config import EncoderConfig, load_config
from .errors import (AbiDocumentError, FunctionNotFoundError,
                     InvalidAddressError, TypeParseError)
from .parser import generic_names, parse_type
from .typetag import StructTag, TypeDescriptor, is_signer

__all__ = [
    "FunctionDoc",
    "StructDoc",
    "ModuleDoc",
    "FieldDef",
    "StructDef",
    "ExposedFunction",
    "ModuleABI",
]

log = logging.getLogger(__name__)


# --- Document shapes ------------------------------------------------------------


class FunctionDoc(TypedDict, total=False):
    name: str
    visibility: str
    is_entry: bool
    is_view: bool
    generic_type_params: List[Dict[str, Any]]
    params: List[str]
    # "return" is a keyword; read with doc.get("return")


class FieldDoc(TypedDict):
    name: str
    type: str


class StructDoc(TypedDict, total=False):
    name: str
    is_native: bool
    abilities: List[str]
    generic_type_params: List[Dict[str, Any]]
    fields: List[FieldDoc]


class ModuleDoc(TypedDict, total=False):
    address: str
    name: str
    friends: List[str]
    exposed_functions: List[FunctionDoc]
    structs: List[StructDoc]


# --- Model ------------------------------------------------------------------------


@dataclass(frozen=True)
class FieldDef:
    name: str
    type: TypeDescriptor


@dataclass(frozen=True)
class StructDef:
    name: str
    fields: Tuple[FieldDef, ...] = ()
    generic_count: int = 0
    is_native: bool = False
    abilities: Tuple[str, ...] = ()

    @property
    def has_schema(self) -> bool:
        """Native structs and structs without declared fields are opaque."""
        return not self.is_native and bool(self.fields)


@dataclass(frozen=True)
class ExposedFunction:
    name: str
    params: Tuple[TypeDescriptor, ...]
    generic_count: int = 0
    is_entry: bool = False
    is_view: bool = False
    visibility: str = "public"
    returns: Tuple[TypeDescriptor, ...] = ()

    @property
    def signer_count(self) -> int:
        """Number of leading implicit authorization parameters."""
        n = 0
        for p in self.params:
            if not is_signer(p):
                break
            n += 1
        return n

    @property
    def explicit_params(self) -> Tuple[TypeDescriptor, ...]:
        """Parameters the caller supplies, in call order."""
        return self.params[self.signer_count :]


@dataclass(frozen=True)
class ModuleABI:
    address: str
    name: str
    functions: Mapping[str, ExposedFunction] = field(default_factory=dict)
    structs: Mapping[str, StructDef] = field(default_factory=dict)
    friends: Tuple[str, ...] = ()

    # ---------------- lookup ----------------

    def resolve(self, function_name: str, *, allow_view: bool = False) -> ExposedFunction:
        """
        Return the callable function named `function_name`.

        Entry functions always qualify; view functions qualify only when
        `allow_view` is set.

        Raises:
            FunctionNotFoundError if absent or not callable.
        """
        fn = self.functions.get(function_name)
        ctx = {"module": f"{self.address}::{self.name}", "function": function_name}
        if fn is None:
            raise FunctionNotFoundError("function not found", ctx)
        if not (fn.is_entry or (allow_view and fn.is_view)):
            raise FunctionNotFoundError(
                "function is not an entry function"
                + (" or view function" if allow_view else ""),
                ctx,
            )
        log.debug("resolved function", extra={"function": function_name, "params": len(fn.params)})
        return fn

    def struct_def(self, tag: StructTag) -> Optional[StructDef]:
        """Field schema for `tag` if the struct is declared by this module."""
        if tag.address != self.address or tag.module != self.name:
            return None
        return self.structs.get(tag.name)

    def entry_functions(self) -> List[ExposedFunction]:
        return [f for f in self.functions.values() if f.is_entry]

    # ---------------- loaders ----------------

    @classmethod
    def from_dict(cls, doc: Mapping[str, Any], *, config: Optional[EncoderConfig] = None) -> "ModuleABI":
        if not isinstance(doc, Mapping):
            raise AbiDocumentError("ABI document must be an object", {"got": type(doc).__name__})
        cfg = config or load_config()

        address = _module_address(doc.get("address", "0x0"), cfg.address_length)
        name = str(doc.get("name", ""))

        raw_fns = doc.get("exposed_functions", [])
        if not isinstance(raw_fns, list):
            raise AbiDocumentError("exposed_functions must be an array")
        functions: Dict[str, ExposedFunction] = {}
        for item in raw_fns:
            try:
                fn = _function_from_doc(item, cfg)
            except TypeParseError as e:
                # only entry and view functions can be called through this encoder
                if item.get("is_entry") or item.get("is_view"):
                    raise
                log.warning(
                    "skipping function with unsupported signature",
                    extra={"function": item["name"], "reason": e.message},
                )
                continue
            if fn.name in functions:
                raise AbiDocumentError("duplicate function name", {"function": fn.name})
            functions[fn.name] = fn

        raw_structs = doc.get("structs", []) or []
        if not isinstance(raw_structs, list):
            raise AbiDocumentError("structs must be an array")
        structs: Dict[str, StructDef] = {}
        for item in raw_structs:
            sd = _struct_from_doc(item, cfg)
            structs[sd.name] = sd

        return cls(
            address=address,
            name=name,
            functions=MappingProxyType(functions),
            structs=MappingProxyType(structs),
            friends=tuple(str(f) for f in doc.get("friends", []) or []),
        )

    @classmethod
    def from_json(cls, text: Union[str, bytes], *, config: Optional[EncoderConfig] = None) -> "ModuleABI":
        try:
            doc = json.loads(text)
        except (ValueError, UnicodeDecodeError) as e:
            raise AbiDocumentError(f"ABI document is not valid JSON: {e}") from e
        return cls.from_dict(doc, config=config)

    @classmethod
    def from_base64(cls, blob: str, *, config: Optional[EncoderConfig] = None) -> "ModuleABI":
        """Load the base64-encoded JSON ABI string served by the node's module endpoint."""
        try:
            raw = base64.b64decode(blob, validate=True)
        except (binascii.Error, ValueError) as e:
            raise AbiDocumentError(f"ABI blob is not valid base64: {e}") from e
        return cls.from_json(raw, config=config)


# --- Internals ----------------------------------------------------------------------


def _module_address(raw: Any, length: int) -> str:
    # Module addresses may be longer than the configured argument width on
    # some chains; keep the short form for struct tag comparison.
    try:
        return to_short_hex(parse_address(raw, length=max(length, DEFAULT_ADDRESS_LENGTH)))
    except InvalidAddressError as e:
        raise AbiDocumentError("invalid module address", {"address": raw}) from e


def _parse_list(types: Any, generics: Tuple[str, ...], cfg: EncoderConfig, where: Dict[str, Any]) -> Tuple[TypeDescriptor, ...]:
    if not isinstance(types, list):
        raise AbiDocumentError("type list must be an array", where)
    out = []
    for idx, sig in enumerate(types):
        try:
            out.append(parse_type(sig, generics=generics, config=cfg))
        except TypeParseError as e:
            raise e.with_context(position=idx, **where) from e
    return tuple(out)


def _function_from_doc(item: Any, cfg: EncoderConfig) -> ExposedFunction:
    if not isinstance(item, Mapping) or not isinstance(item.get("name"), str):
        raise AbiDocumentError("exposed function entry needs a string name", {"entry": repr(item)[:80]})
    name = item["name"]
    if "params" not in item:
        raise AbiDocumentError("exposed function entry needs params", {"function": name})
    generic_count = len(item.get("generic_type_params", []) or [])
    generics = generic_names(generic_count)
    where = {"function": name}
    return ExposedFunction(
        name=name,
        params=_parse_list(item["params"], generics, cfg, where),
        generic_count=generic_count,
        is_entry=bool(item.get("is_entry", False)),
        is_view=bool(item.get("is_view", False)),
        visibility=str(item.get("visibility", "public")),
        returns=_parse_list(item.get("return", []) or [], generics, cfg, where),
    )


def _struct_from_doc(item: Any, cfg: EncoderConfig) -> StructDef:
    if not isinstance(item, Mapping) or not isinstance(item.get("name"), str):
        raise AbiDocumentError("struct entry needs a string name", {"entry": repr(item)[:80]})
    name = item["name"]
    generic_count = len(item.get("generic_type_params", []) or [])
    generics = generic_names(generic_count)
    fields: List[FieldDef] = []
    for f in item.get("fields", []) or []:
        if not isinstance(f, Mapping) or "name" not in f or "type" not in f:
            raise AbiDocumentError("struct field needs name and type", {"struct": name})
        try:
            ftype = parse_type(f["type"], generics=generics, config=cfg)
        except TypeParseError as e:
            # keep the struct usable as an opaque (pass-through) type
            log.warning(
                "struct field type not understood; treating struct as opaque",
                extra={"struct": name, "field": f["name"], "reason": e.message},
            )
            fields = []
            break
        fields.append(FieldDef(str(f["name"]), ftype))
    return StructDef(
        name=name,
        fields=tuple(fields),
        generic_count=generic_count,
        is_native=bool(item.get("is_native", False)),
        abilities=tuple(str(a) for a in item.get("abilities", []) or []),
    )
