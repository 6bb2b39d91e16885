"""Contextual metadata for chain entries.

Codecs that record who and where (user id, client address) read them from
context variables so callers can bind them once per request or task:

Example:
    >>> from chainlog.context import bind_context
    >>>
    >>> with bind_context(user_id="alice", client_ip="10.0.0.7"):
    ...     appender.append("transfer approved")
"""

from __future__ import annotations

import contextvars
from contextlib import contextmanager
from typing import Iterator

__all__ = [
    "bind_context",
    "clear_context",
    "current_context",
]

_bound: contextvars.ContextVar[dict[str, str] | None] = contextvars.ContextVar(
    "chainlog_context", default=None
)


def current_context() -> dict[str, str]:
    """Return a copy of the metadata bound in the current context."""
    return dict(_bound.get() or {})


@contextmanager
def bind_context(**fields: str | None) -> Iterator[dict[str, str]]:
    """Bind metadata for the duration of the ``with`` block.

    Bindings nest: inner values override outer ones and are undone on exit.
    ``None`` values remove a key for the block.
    """
    merged = current_context()
    for key, value in fields.items():
        if value is None:
            merged.pop(key, None)
        else:
            merged[key] = str(value)
    token = _bound.set(merged)
    try:
        yield dict(merged)
    finally:
        _bound.reset(token)


def clear_context() -> None:
    """Drop all metadata bound in the current context."""
    _bound.set(None)
