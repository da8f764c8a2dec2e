"""Settings for the popover positioner."""
from __future__ import annotations

import json
import logging
import math
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Mapping, Optional

from popover_anchor.version import coerce_bool, is_dev_build

_LOGGER = logging.getLogger("PopoverAnchor.Config")

FIT_MODE_FIRST = "first"
FIT_MODE_VIEWPORT = "viewport"
_FIT_MODES = {FIT_MODE_FIRST, FIT_MODE_VIEWPORT}
_MAX_VIEWPORT_MARGIN = 500.0


@dataclass
class PopoverSettings:
    """Values used when a popover has no explicit alignment of its own.

    ``fit_mode`` ``first`` always takes the first candidate; ``viewport`` picks
    the first candidate that keeps the popover on screen.
    """

    default_alignment: str = ""
    clamp: bool = True
    fit_mode: str = FIT_MODE_FIRST
    viewport_margin: float = 0.0
    debug_logging: bool = field(default_factory=is_dev_build)

    @property
    def log_level(self) -> int:
        return logging.DEBUG if self.debug_logging else logging.INFO

    @classmethod
    def from_payload(cls, payload: Mapping[str, Any]) -> "PopoverSettings":
        """Create an instance from a settings mapping, falling back per field."""
        defaults = cls()

        def _bool(value: Any, fallback: bool) -> bool:
            if value is None:
                return fallback
            if isinstance(value, str):
                token = coerce_bool(value)
                return fallback if token is None else token
            return bool(value)

        alignment_value = payload.get("default_alignment", defaults.default_alignment)
        try:
            alignment = str(alignment_value if alignment_value is not None else "").strip()
        except Exception:
            alignment = defaults.default_alignment

        mode = str(payload.get("fit_mode", defaults.fit_mode) or defaults.fit_mode).strip().lower()
        if mode not in _FIT_MODES:
            _LOGGER.debug("Ignoring unknown fit_mode %r", mode)
            mode = defaults.fit_mode

        try:
            margin = float(payload.get("viewport_margin", defaults.viewport_margin))
        except (TypeError, ValueError):
            margin = defaults.viewport_margin
        if not math.isfinite(margin):
            margin = defaults.viewport_margin
        margin = max(0.0, min(margin, _MAX_VIEWPORT_MARGIN))

        return cls(
            default_alignment=alignment,
            clamp=_bool(payload.get("clamp"), defaults.clamp),
            fit_mode=mode,
            viewport_margin=margin,
            debug_logging=_bool(payload.get("debug_logging"), defaults.debug_logging),
        )


def apply_log_level(settings: PopoverSettings, logger_name: str = "PopoverAnchor") -> logging.Logger:
    """Set the package logger level from ``settings``; child loggers inherit it."""
    logger = logging.getLogger(logger_name)
    logger.setLevel(settings.log_level)
    return logger


def load_popover_settings(settings_path: Path, logger: Optional[logging.Logger] = None) -> PopoverSettings:
    """Read settings from a JSON file, returning defaults when it is missing or invalid."""
    log = logger or _LOGGER
    try:
        raw = settings_path.read_text(encoding="utf-8")
    except FileNotFoundError:
        return PopoverSettings()
    except OSError as exc:
        log.warning("Unable to read popover settings %s: %s", settings_path, exc)
        return PopoverSettings()

    try:
        data = json.loads(raw)
    except json.JSONDecodeError as exc:
        log.warning("Popover settings %s are not valid JSON: %s", settings_path, exc)
        return PopoverSettings()
    if not isinstance(data, Mapping):
        log.warning("Popover settings %s must contain a JSON object", settings_path)
        return PopoverSettings()
    return PopoverSettings.from_payload(data)
