from __future__ import annotations

import os
from dataclasses import dataclass, replace
from typing import Any, Dict, Mapping, Optional

from .paths import HttplabPaths

DEFAULT_HOST = "127.0.0.1"
DEFAULT_PORT = 10080
DEFAULT_STATUS = 200

__all__ = [
    "DEFAULT_HOST",
    "DEFAULT_PORT",
    "DEFAULT_STATUS",
    "HttplabPaths",
    "HttplabSettings",
    "load_settings",
]


@dataclass(frozen=True)
class HttplabSettings:
    host: str = DEFAULT_HOST
    port: int = DEFAULT_PORT
    status: int = DEFAULT_STATUS
    debug: Optional[str] = None

    def merged(self, **overrides: Any) -> "HttplabSettings":
        """Return a copy where every non-None override wins."""
        values = {key: value for key, value in overrides.items() if value is not None}
        return replace(self, **values)


def load_settings(env: Optional[Mapping[str, str]] = None) -> HttplabSettings:
    """Build settings from HTTPLAB_* environment variables."""
    source = os.environ if env is None else env
    resolved: Dict[str, Any] = {
        "host": (source.get("HTTPLAB_HOST") or "").strip() or None,
        "port": _to_int(source.get("HTTPLAB_PORT")),
        "status": _to_int(source.get("HTTPLAB_STATUS")),
        "debug": _to_debug(source.get("HTTPLAB_DEBUG")),
    }
    return HttplabSettings().merged(**resolved)


def _to_int(value: Optional[str]) -> Optional[int]:
    if value is None:
        return None
    try:
        return int(value)
    except ValueError:
        return None


def _to_debug(value: Optional[str]) -> Optional[str]:
    if value is None:
        return None
    cleaned = value.strip().lower()
    return cleaned or None
