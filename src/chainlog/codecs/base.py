from __future__ import annotations

from datetime import datetime
from typing import Protocol, Sequence, runtime_checkable

from ..core.errors import CodecError
from ..core.types import LogEntry, ParsedFields, ParseResult


@runtime_checkable
class EntryCodec(Protocol):
    """Text encoding of one chain entry per store line.

    Appender and verifier only ever talk to this capability; the chain logic
    never encodes or decodes text itself. ``parse`` must not raise for bad
    input: it returns a ``ParseFailure`` instead. The ``extract_*`` accessors
    are only called on values returned by ``parse``.
    """

    name: str

    def format(self, entry: LogEntry) -> str:  # noqa: D401
        """Encode ``entry`` as a single line without a trailing newline."""
        ...

    def parse(self, line: str) -> ParseResult: ...

    def extract_message(self, fields: ParsedFields) -> str: ...

    def extract_current_hash(self, fields: ParsedFields) -> str: ...

    def extract_previous_hash(self, fields: ParsedFields) -> str: ...

    def extract_timestamp(self, fields: ParsedFields) -> datetime | None: ...


SEPARATOR = " | "


def join_fields(codec_name: str, parts: Sequence[str]) -> str:
    """Join ``parts`` with the pipe separator, refusing lossy encodings.

    A field that contains the separator or a line break would be split
    differently on the way back, so the line is rejected up front.
    """
    for part in parts:
        if "\n" in part or "\r" in part:
            raise CodecError(f"{codec_name}: fields must not contain line breaks")
    line = SEPARATOR.join(parts)
    if line.split(SEPARATOR, len(parts) - 1) != list(parts):
        raise CodecError(
            f"{codec_name}: a field contains the '{SEPARATOR.strip()}' separator"
        )
    return line


def split_fields(line: str, count: int) -> list[str] | str:
    """Split ``line`` into exactly ``count`` fields or return a failure detail."""
    parts = line.split(SEPARATOR, count - 1)
    if len(parts) != count:
        return f"field count mismatch (expected {count}, got {len(parts)})"
    return parts


def require_non_empty(**fields: str) -> str | None:
    for name, value in fields.items():
        if not value.strip():
            return f"{name} is empty"
    return None


__all__ = [
    "SEPARATOR",
    "EntryCodec",
    "join_fields",
    "require_non_empty",
    "split_fields",
]
