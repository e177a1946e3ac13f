"""
Hypothesis profiles for the codec property suites.

HYPOTHESIS_PROFILE=dev|ci|stress selects one explicitly; otherwise "ci" when
the CI env var is truthy and "dev" locally.
"""
from __future__ import annotations

import os

from hypothesis import HealthCheck, settings

_QUIET = (HealthCheck.too_slow, HealthCheck.filter_too_much)

settings.register_profile("dev", deadline=None, suppress_health_check=_QUIET)
settings.register_profile("ci", deadline=None, suppress_health_check=_QUIET, derandomize=True)
settings.register_profile(
    "stress",
    max_examples=2000,
    deadline=None,
    suppress_health_check=_QUIET + (HealthCheck.data_too_large,),
)


def _env_truthy(name: str) -> bool:
    return (os.getenv(name) or "").lower() not in ("", "0", "false", "no", "off")


settings.load_profile(os.getenv("HYPOTHESIS_PROFILE") or ("ci" if _env_truthy("CI") else "dev"))
