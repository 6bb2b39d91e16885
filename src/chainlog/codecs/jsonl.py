"""
JSON lines codec.

Each entry is one compact JSON object with sorted keys::

    {"current_hash":"...","message":"login","meta":{"user_id":"alice"},
     "previous_hash":"INIT_SEED_0000","ts":"2024-05-01T09:30:00.120000Z"}

Unlike the pipe codecs, messages may contain any character, including line
breaks, because JSON escapes them.
"""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Any

import orjson

from ..core.errors import CodecError
from ..core.types import LogEntry, ParsedFields, ParseFailure, ParseResult

_REQUIRED = ("message", "current_hash", "previous_hash")


def _format_ts(ts: datetime) -> str:
    return ts.astimezone(timezone.utc).isoformat().replace("+00:00", "Z")


def _parse_ts(value: Any) -> datetime | None:
    if value is None:
        return None
    if not isinstance(value, str):
        raise ValueError("ts must be a string")
    parsed = datetime.fromisoformat(value.replace("Z", "+00:00"))
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


class JsonLinesCodec:
    name = "jsonl"

    def format(self, entry: LogEntry) -> str:
        if not entry.message.strip():
            raise CodecError(f"{self.name}: message must not be blank")
        ts = entry.timestamp or datetime.now(timezone.utc)
        payload = {
            "ts": _format_ts(ts),
            "message": entry.message,
            "current_hash": entry.current_hash,
            "previous_hash": entry.previous_hash,
            "meta": dict(entry.metadata or {}),
        }
        try:
            data = orjson.dumps(payload, option=orjson.OPT_SORT_KEYS)
        except TypeError as e:
            raise CodecError(f"{self.name}: entry is not serializable", cause=e) from e
        return data.decode("utf-8")

    def parse(self, line: str) -> ParseResult:
        try:
            data = orjson.loads(line)
        except orjson.JSONDecodeError as e:
            return ParseFailure(f"invalid JSON: {e}")
        if not isinstance(data, dict):
            return ParseFailure("entry is not a JSON object")
        for key in _REQUIRED:
            value = data.get(key)
            if not isinstance(value, str) or not value.strip():
                return ParseFailure(f"{key} is missing or empty")
        try:
            _parse_ts(data.get("ts"))
        except ValueError as e:
            return ParseFailure(f"ts is invalid: {e}")
        meta = data.get("meta", {})
        if not isinstance(meta, dict):
            return ParseFailure("meta is not an object")
        return ParsedFields(data)

    def extract_message(self, fields: ParsedFields) -> str:
        return fields.values["message"]  # type: ignore[index,call-overload]

    def extract_current_hash(self, fields: ParsedFields) -> str:
        return fields.values["current_hash"]  # type: ignore[index,call-overload]

    def extract_previous_hash(self, fields: ParsedFields) -> str:
        return fields.values["previous_hash"]  # type: ignore[index,call-overload]

    def extract_timestamp(self, fields: ParsedFields) -> datetime | None:
        return _parse_ts(fields.values.get("ts"))  # type: ignore[union-attr]

    def extract_metadata(self, fields: ParsedFields) -> dict[str, str]:
        meta = fields.values.get("meta") or {}  # type: ignore[union-attr]
        return {str(k): str(v) for k, v in meta.items()}


PLUGIN_METADATA = {
    "name": "jsonl",
    "version": "1.0.0",
    "plugin_type": "codec",
    "entry_point": "chainlog.codecs.jsonl:JsonLinesCodec",
    "description": "One sorted-key JSON object per line (orjson)",
}
