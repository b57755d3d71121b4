"""Environment switches for the model, quota metering and verification emails.

All three default to on; an empty value counts as off.
"""

from __future__ import annotations

import os
from functools import lru_cache
from typing import Dict

_ENV_VARS = {
    "llm_features_enabled": "LLM_FEATURES_ENABLED",
    "usage_limits_enforced": "USAGE_LIMITS_ENFORCED",
    "verification_emails_enabled": "VERIFICATION_EMAILS_ENABLED",
}

_OFF_VALUES = {"", "0", "false", "no", "off"}


def _env_switch(env_var: str) -> bool:
    raw = os.getenv(env_var)
    return raw is None or raw.strip().lower() not in _OFF_VALUES


@lru_cache(maxsize=None)
def get_feature_flags() -> Dict[str, bool]:
    """Read every flag once; call `refresh_feature_flag_cache` after env changes."""
    return {key: _env_switch(env_var) for key, env_var in _ENV_VARS.items()}


def llm_features_enabled() -> bool:
    """Journal analysis and ask-journal replies call the model only when on."""
    return get_feature_flags()["llm_features_enabled"]


def usage_limits_enforced() -> bool:
    """When off, plan quotas are neither checked nor counted."""
    return get_feature_flags()["usage_limits_enforced"]


def verification_emails_enabled() -> bool:
    return get_feature_flags()["verification_emails_enabled"]


def refresh_feature_flag_cache() -> None:
    get_feature_flags.cache_clear()
