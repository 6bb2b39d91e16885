"""
Pipe-delimited codec with request context.

Line layout::

    2024-05-01 09:30:00 | alice | 10.0.0.7 | login | <current> | <previous>

The time is rendered in the configured zone and format; user id and client
address come from ``chainlog.context`` and fall back to ``SYSTEM`` and
``N/A``.
"""

from __future__ import annotations

from datetime import datetime, timezone
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from ..core.errors import CodecError
from ..core.types import LogEntry, ParsedFields, ParseFailure, ParseResult
from .base import join_fields, require_non_empty, split_fields

DEFAULT_USER_ID = "SYSTEM"
DEFAULT_CLIENT_IP = "N/A"

_FIELD_COUNT = 6
_TIME, _USER, _CLIENT, _MESSAGE, _CURRENT, _PREVIOUS = range(_FIELD_COUNT)


class DelimitedCodec:
    name = "delimited"

    def __init__(
        self,
        *,
        time_zone: str = "UTC",
        date_format: str = "%Y-%m-%d %H:%M:%S",
    ) -> None:
        try:
            self._zone = ZoneInfo(time_zone)
        except (ZoneInfoNotFoundError, ValueError) as e:
            raise CodecError(f"{self.name}: unknown time zone {time_zone!r}") from e
        self._date_format = date_format

    def format(self, entry: LogEntry) -> str:
        if not entry.message.strip():
            raise CodecError(f"{self.name}: message must not be blank")
        ts = entry.timestamp or datetime.now(timezone.utc)
        rendered = ts.astimezone(self._zone).strftime(self._date_format)
        metadata = entry.metadata or {}
        return join_fields(
            self.name,
            [
                rendered,
                metadata.get("user_id") or DEFAULT_USER_ID,
                metadata.get("client_ip") or DEFAULT_CLIENT_IP,
                entry.message,
                entry.current_hash,
                entry.previous_hash,
            ],
        )

    def parse(self, line: str) -> ParseResult:
        if not line.strip():
            return ParseFailure("line is empty")
        parts = split_fields(line, _FIELD_COUNT)
        if isinstance(parts, str):
            return ParseFailure(parts)
        problem = require_non_empty(
            message=parts[_MESSAGE],
            current_hash=parts[_CURRENT],
            previous_hash=parts[_PREVIOUS],
        )
        if problem:
            return ParseFailure(problem)
        if self._parse_time(parts[_TIME]) is None:
            return ParseFailure(f"time is not in format {self._date_format!r}")
        return ParsedFields(tuple(parts))

    def extract_message(self, fields: ParsedFields) -> str:
        return fields.values[_MESSAGE]  # type: ignore[index]

    def extract_current_hash(self, fields: ParsedFields) -> str:
        return fields.values[_CURRENT]  # type: ignore[index]

    def extract_previous_hash(self, fields: ParsedFields) -> str:
        return fields.values[_PREVIOUS]  # type: ignore[index]

    def extract_timestamp(self, fields: ParsedFields) -> datetime | None:
        return self._parse_time(fields.values[_TIME])  # type: ignore[index]

    def extract_metadata(self, fields: ParsedFields) -> dict[str, str]:
        values = fields.values
        return {"user_id": values[_USER], "client_ip": values[_CLIENT]}  # type: ignore[index]

    def _parse_time(self, value: str) -> datetime | None:
        try:
            parsed = datetime.strptime(value.strip(), self._date_format)
        except ValueError:
            return None
        if parsed.tzinfo is None:
            parsed = parsed.replace(tzinfo=self._zone)
        return parsed


PLUGIN_METADATA = {
    "name": "delimited",
    "version": "1.0.0",
    "plugin_type": "codec",
    "entry_point": "chainlog.codecs.delimited:DelimitedCodec",
    "description": "Pipe-delimited lines with time, user id and client address",
}
