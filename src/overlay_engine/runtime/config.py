"""Environment-driven engine settings.

Every knob is read from an ``OVERLAY_ENGINE_*`` variable so hosts can tune
the engine without code changes.
"""

from __future__ import annotations

import locale
import os
from dataclasses import dataclass
from typing import Optional

ENV_PREFIX = "OVERLAY_ENGINE_"

_TRUTHY = {"1", "true", "yes", "on"}


def env_value(name: str, default: Optional[str] = None) -> Optional[str]:
    return os.getenv(f"{ENV_PREFIX}{name}", default)


def env_flag(name: str, default: bool) -> bool:
    raw = env_value(name)
    if raw is None:
        return default
    return raw.strip().lower() in _TRUTHY


def platform_encoding() -> str:
    """Byte encoding used when neither the project nor the environment names one."""

    return locale.getpreferredencoding(False)


@dataclass(frozen=True, slots=True)
class EngineSettings:
    """Process-wide defaults applied to new projects and stores."""

    encoding: Optional[str] = None
    keep_history: bool = True
    history_dir: str = ".history"


def load_settings() -> EngineSettings:
    encoding = (env_value("ENCODING") or "").strip() or None
    return EngineSettings(
        encoding=encoding,
        keep_history=env_flag("KEEP_HISTORY", True),
        history_dir=env_value("HISTORY_DIR") or ".history",
    )


__all__ = [
    "ENV_PREFIX",
    "EngineSettings",
    "env_flag",
    "env_value",
    "load_settings",
    "platform_encoding",
]
