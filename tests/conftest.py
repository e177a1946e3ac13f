from __future__ import annotations

import base64
import copy
import json
from typing import Any, Dict

import pytest

from move_abi import ModuleABI
from move_abi.config import EncoderConfig
from move_abi.parser import clear_parse_cache

# A module ABI in the shape the node serves it (after base64/JSON decoding).
VAULT_ABI: Dict[str, Any] = {
    "address": "0x42",
    "name": "vault",
    "friends": [],
    "exposed_functions": [
        {
            "name": "transfer",
            "visibility": "public",
            "is_entry": True,
            "is_view": False,
            "generic_type_params": [],
            "params": ["&signer", "address", "u64"],
            "return": [],
        },
        {
            "name": "set_flags",
            "visibility": "public",
            "is_entry": True,
            "is_view": False,
            "generic_type_params": [],
            "params": ["signer", "vector<bool>", "vector<vector<u8>>"],
            "return": [],
        },
        {
            "name": "register",
            "visibility": "public",
            "is_entry": True,
            "is_view": False,
            "generic_type_params": [],
            "params": ["&signer", "0x1::string::String", "0x1::option::Option<u64>"],
            "return": [],
        },
        {
            "name": "set_point",
            "visibility": "public",
            "is_entry": True,
            "is_view": False,
            "generic_type_params": [],
            "params": ["&signer", "0x42::vault::Point"],
            "return": [],
        },
        {
            "name": "set_opaque",
            "visibility": "public",
            "is_entry": True,
            "is_view": False,
            "generic_type_params": [],
            "params": ["&signer", "0x99::other::Thing"],
            "return": [],
        },
        {
            "name": "swap",
            "visibility": "public",
            "is_entry": True,
            "is_view": False,
            "generic_type_params": [{"constraints": []}, {"constraints": ["copy"]}],
            "params": ["&signer", "T0", "vector<T1>"],
            "return": [],
        },
        {
            "name": "deposit",
            "visibility": "public",
            "is_entry": True,
            "is_view": False,
            "generic_type_params": [{"constraints": ["key"]}],
            "params": ["&signer", "0x1::object::Object<T0>", "u64"],
            "return": [],
        },
        {
            "name": "claim",
            "visibility": "public",
            "is_entry": True,
            "is_view": False,
            "generic_type_params": [],
            "params": ["&signer"],
            "return": [],
        },
        {
            "name": "balance",
            "visibility": "public",
            "is_entry": False,
            "is_view": True,
            "generic_type_params": [],
            "params": ["address"],
            "return": ["u64"],
        },
        {
            "name": "internal_helper",
            "visibility": "friend",
            "is_entry": False,
            "is_view": False,
            "generic_type_params": [],
            "params": ["u8"],
            "return": [],
        },
    ],
    "structs": [
        {
            "name": "Point",
            "is_native": False,
            "abilities": ["copy", "drop"],
            "generic_type_params": [],
            "fields": [
                {"name": "x", "type": "u64"},
                {"name": "y", "type": "u64"},
                {"name": "label", "type": "0x1::string::String"},
            ],
        },
        {
            "name": "Pair",
            "is_native": False,
            "abilities": ["copy", "drop", "store"],
            "generic_type_params": [{"constraints": []}],
            "fields": [
                {"name": "first", "type": "T0"},
                {"name": "rest", "type": "vector<T0>"},
            ],
        },
        {
            "name": "Handle",
            "is_native": True,
            "abilities": [],
            "generic_type_params": [],
            "fields": [],
        },
    ],
}


@pytest.fixture(autouse=True)
def _fresh_parse_cache():
    clear_parse_cache()
    yield
    clear_parse_cache()


@pytest.fixture
def vault_doc() -> Dict[str, Any]:
    return copy.deepcopy(VAULT_ABI)


@pytest.fixture
def vault(vault_doc) -> ModuleABI:
    return ModuleABI.from_dict(vault_doc, config=EncoderConfig())


@pytest.fixture
def vault_b64(vault_doc) -> str:
    return base64.b64encode(json.dumps(vault_doc).encode("utf-8")).decode("ascii")
