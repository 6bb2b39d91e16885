"""
Shared types for tamper-evident chains.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Mapping, Sequence, Union


@dataclass(frozen=True)
class LogEntry:
    """One chain entry as handed to a codec.

    ``timestamp`` and ``metadata`` are contextual; only ``message`` and
    ``previous_hash`` feed the MAC that produced ``current_hash``.
    """

    message: str
    current_hash: str
    previous_hash: str
    timestamp: datetime | None = None
    metadata: Mapping[str, str] = field(default_factory=dict)


@dataclass(frozen=True)
class ParsedFields:
    """Decoded line in the codec's native shape (field list or mapping)."""

    values: Sequence[str] | Mapping[str, Any]


@dataclass(frozen=True)
class ParseFailure:
    """A line that did not decode into the codec's expected fields."""

    detail: str


ParseResult = Union[ParsedFields, ParseFailure]


__all__ = ["LogEntry", "ParseFailure", "ParseResult", "ParsedFields"]
