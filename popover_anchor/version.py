"""Central version identifier for Popover Anchor."""
from __future__ import annotations

import os
from typing import Optional

__all__ = ["__version__", "coerce_bool", "is_dev_build", "DEV_MODE_ENV_VAR"]

__version__ = "0.3.0-dev"
DEV_MODE_ENV_VAR = "POPOVER_ANCHOR_DEV_MODE"


def coerce_bool(value: Optional[str]) -> Optional[bool]:
    if value is None:
        return None
    token = value.strip().lower()
    if token in {"1", "true", "yes", "on"}:
        return True
    if token in {"0", "false", "no", "off"}:
        return False
    return None


def is_dev_build(version: Optional[str] = None) -> bool:
    """Return True when debug logging should be on by default."""

    env_override = coerce_bool(os.getenv(DEV_MODE_ENV_VAR))
    if env_override is not None:
        return env_override

    identifier = (version or __version__ or "").strip().lower()
    if not identifier:
        return False

    if identifier.endswith("-dev") or ".dev" in identifier:
        return True
    return any(part == "dev" for part in identifier.replace(".", "-").split("-"))
