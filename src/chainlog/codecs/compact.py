"""
Compact pipe-delimited codec: ``epoch_millis | message | current | previous``.
"""

from __future__ import annotations

from datetime import datetime, timedelta, timezone

from ..core.errors import CodecError
from ..core.types import LogEntry, ParsedFields, ParseFailure, ParseResult
from .base import join_fields, require_non_empty, split_fields

_FIELD_COUNT = 4
_EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)
_MILLI = timedelta(milliseconds=1)


def _to_millis(ts: datetime) -> int:
    if ts.tzinfo is None:
        ts = ts.replace(tzinfo=timezone.utc)
    return (ts - _EPOCH) // _MILLI


def _from_millis(millis: int) -> datetime:
    return _EPOCH + millis * _MILLI


class CompactCodec:
    name = "compact"

    def format(self, entry: LogEntry) -> str:
        if not entry.message.strip():
            raise CodecError(f"{self.name}: message must not be blank")
        ts = entry.timestamp or datetime.now(timezone.utc)
        millis = _to_millis(ts)
        return join_fields(
            self.name,
            [str(millis), entry.message, entry.current_hash, entry.previous_hash],
        )

    def parse(self, line: str) -> ParseResult:
        parts = split_fields(line, _FIELD_COUNT)
        if isinstance(parts, str):
            return ParseFailure(parts)
        raw_ts = parts[0].strip()
        if not raw_ts.lstrip("-").isdigit():
            return ParseFailure(f"timestamp is not numeric: {parts[0]!r}")
        try:
            _from_millis(int(raw_ts))
        except (OverflowError, ValueError):
            return ParseFailure(f"timestamp out of range: {raw_ts}")
        problem = require_non_empty(
            message=parts[1], current_hash=parts[2], previous_hash=parts[3]
        )
        if problem:
            return ParseFailure(problem)
        return ParsedFields(tuple(parts))

    def extract_message(self, fields: ParsedFields) -> str:
        return fields.values[1]  # type: ignore[index]

    def extract_current_hash(self, fields: ParsedFields) -> str:
        return fields.values[2]  # type: ignore[index]

    def extract_previous_hash(self, fields: ParsedFields) -> str:
        return fields.values[3]  # type: ignore[index]

    def extract_timestamp(self, fields: ParsedFields) -> datetime | None:
        millis = int(fields.values[0].strip())  # type: ignore[index]
        return _from_millis(millis)


PLUGIN_METADATA = {
    "name": "compact",
    "version": "1.0.0",
    "plugin_type": "codec",
    "entry_point": "chainlog.codecs.compact:CompactCodec",
    "description": "Epoch-millis pipe-delimited lines without context",
}
