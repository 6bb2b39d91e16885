"""
Internal diagnostics for non-fatal chainlog errors.

Diagnostics are structured JSON lines written to stderr. They are off by
default and enabled with ``CHAINLOG_CORE__INTERNAL_LOGGING_ENABLED=true``.
Emitting a diagnostic never raises.
"""

from __future__ import annotations

import sys
import time
from typing import Any

import orjson

# Cached on first use; tests reset this to None between runs.
_internal_logging_enabled: bool | None = None


def _enabled() -> bool:
    global _internal_logging_enabled
    if _internal_logging_enabled is None:
        try:
            from .settings import Settings

            _internal_logging_enabled = bool(
                Settings().core.internal_logging_enabled
            )
        except Exception:
            _internal_logging_enabled = False
    return _internal_logging_enabled


def _emit(level: str, component: str, message: str, fields: dict[str, Any]) -> None:
    if not _enabled():
        return
    payload: dict[str, Any] = {
        "ts": time.time(),
        "level": level,
        "component": component,
        "message": message,
    }
    payload.update(fields)
    try:
        line = orjson.dumps(payload, default=str)
        stream = sys.stderr
        stream.write(line.decode("utf-8") + "\n")
        stream.flush()
    except Exception:
        # Diagnostics must never break the caller
        return


def warn(component: str, message: str, **fields: Any) -> None:
    """Emit a WARN diagnostic for ``component``."""
    _emit("WARN", component, message, fields)


def debug(component: str, message: str, **fields: Any) -> None:
    """Emit a DEBUG diagnostic for ``component``."""
    _emit("DEBUG", component, message, fields)


__all__ = ["debug", "warn"]
