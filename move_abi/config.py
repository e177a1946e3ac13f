"""
move_abi.config: encoder limits and policy switches.

Configuration precedence:
  1) Explicit `EncoderConfig` passed to an operation
  2) Environment variables (MOVE_ABI_*)
  3) Hardcoded safe defaults below

Key env vars (case-insensitive where boolean):
  - MOVE_ABI_ADDRESS_LENGTH   (int)    default: 32
  - MOVE_ABI_MAX_TYPE_DEPTH   (int)    default: 32
  - MOVE_ABI_STRUCT_POLICY    (str)    default: auto   (auto | raw | fields)
  - MOVE_ABI_PARSE_CACHE      (bool)   default: true

Usage:
    from move_abi.config import load_config
    CFG = load_config()
    if CFG.struct_policy is StructPolicy.RAW: ...
"""

from __future__ import annotations

import os
from dataclasses import asdict, dataclass, replace
from enum import Enum
from functools import lru_cache
from typing import Any, Dict

__all__ = ["StructPolicy", "EncoderConfig", "load_config"]


# ----------------------------- helpers ---------------------------------------


def _env_bool(name: str, default: bool) -> bool:
    raw = os.getenv(name)
    if raw is None:
        return default
    return raw.strip().lower() in ("1", "true", "t", "yes", "y", "on")


def _env_int(name: str, default: int, *, min_v: int, max_v: int) -> int:
    raw = os.getenv(name)
    if raw is None:
        return default
    try:
        v = int(raw, 0)
    except ValueError:
        return default
    if v < min_v:
        return min_v
    if v > max_v:
        return max_v
    return v


# ------------------------------- config --------------------------------------


class StructPolicy(str, Enum):
    """
    How struct-typed arguments without a framework mapping are handled.

    AUTO    coerce a field mapping when the struct's fields are known locally,
            otherwise accept caller pre-serialized bytes verbatim.
    RAW     always require pre-serialized bytes.
    FIELDS  always require a known field schema; never pass bytes through.
    """

    AUTO = "auto"
    RAW = "raw"
    FIELDS = "fields"

    @classmethod
    def parse(cls, raw: str, default: "StructPolicy") -> "StructPolicy":
        try:
            return cls(raw.strip().lower())
        except ValueError:
            return default


@dataclass(frozen=True)
class EncoderConfig:
    address_length: int = 32
    max_type_depth: int = 32
    struct_policy: StructPolicy = StructPolicy.AUTO
    parse_cache: bool = True

    def with_overrides(self, **overrides: Any) -> "EncoderConfig":
        """Unknown keys are ignored."""
        known = {k: v for k, v in overrides.items() if k in self.as_dict()}
        if "struct_policy" in known and not isinstance(known["struct_policy"], StructPolicy):
            known["struct_policy"] = StructPolicy(str(known["struct_policy"]).lower())
        return replace(self, **known)

    def as_dict(self) -> Dict[str, Any]:
        out = asdict(self)
        out["struct_policy"] = self.struct_policy.value
        return out


@lru_cache(maxsize=1)
def load_config() -> EncoderConfig:
    """
    Build and cache an EncoderConfig from environment + safe defaults.
    """
    return EncoderConfig(
        address_length=_env_int("MOVE_ABI_ADDRESS_LENGTH", 32, min_v=1, max_v=64),
        max_type_depth=_env_int("MOVE_ABI_MAX_TYPE_DEPTH", 32, min_v=1, max_v=256),
        struct_policy=StructPolicy.parse(
            os.getenv("MOVE_ABI_STRUCT_POLICY", "auto"), StructPolicy.AUTO
        ),
        parse_cache=_env_bool("MOVE_ABI_PARSE_CACHE", True),
    )
