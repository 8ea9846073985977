"""Environment-driven settings."""

from __future__ import annotations

import os
from dataclasses import dataclass, replace
from typing import Mapping, Optional

DEFAULT_APP = "iTerm2"
DEFAULT_TIMEOUT = 10.0
DEFAULT_OSASCRIPT = "osascript"
DEFAULT_LOG_LEVEL = "INFO"


def _env_float(env: Mapping[str, str], key: str, default: float) -> float:
    raw = env.get(key, "").strip()
    if not raw:
        return default
    try:
        value = float(raw)
    except ValueError:
        return default
    return value if value > 0 else default


@dataclass(frozen=True)
class Settings:
    """Runtime settings, read once at startup."""

    app_name: str = DEFAULT_APP
    timeout: float = DEFAULT_TIMEOUT
    osascript: str = DEFAULT_OSASCRIPT
    log_level: str = DEFAULT_LOG_LEVEL
    log_file: Optional[str] = None

    @classmethod
    def from_env(cls, env: Optional[Mapping[str, str]] = None) -> "Settings":
        env = os.environ if env is None else env
        return cls(
            app_name=env.get("ITERM_MCP_APP", "").strip() or DEFAULT_APP,
            timeout=_env_float(env, "ITERM_MCP_TIMEOUT", DEFAULT_TIMEOUT),
            osascript=env.get("ITERM_MCP_OSASCRIPT", "").strip() or DEFAULT_OSASCRIPT,
            log_level=env.get("ITERM_MCP_LOG_LEVEL", "").strip().upper() or DEFAULT_LOG_LEVEL,
            log_file=env.get("ITERM_MCP_LOG_FILE", "").strip() or None,
        )

    def override(self, **changes: object) -> "Settings":
        """Return a copy with every non-None value in ``changes`` applied."""
        return replace(self, **{k: v for k, v in changes.items() if v is not None})
