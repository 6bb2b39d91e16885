from datetime import datetime, timedelta, timezone

import orjson
import pytest

from chainlog.codecs import CompactCodec, DelimitedCodec, EntryCodec, JsonLinesCodec
from chainlog.codecs.base import join_fields, split_fields
from chainlog.core.errors import CodecError
from chainlog.core.types import LogEntry, ParsedFields, ParseFailure
from chainlog.testing import validate_codec

TS = datetime(2024, 5, 1, 9, 30, 0, 120000, tzinfo=timezone.utc)


def _entry(message: str = "login", **metadata: str) -> LogEntry:
    return LogEntry(
        message=message,
        current_hash="Q1VSUkVOVA==",
        previous_hash="INIT_SEED_0000",
        timestamp=TS,
        metadata=metadata,
    )


@pytest.mark.parametrize("codec", [DelimitedCodec(), CompactCodec(), JsonLinesCodec()])
def test_builtin_codecs_satisfy_protocol(codec) -> None:
    assert isinstance(codec, EntryCodec)
    result = validate_codec(codec)
    assert result.valid, result.errors


@pytest.mark.parametrize("codec", [DelimitedCodec(), CompactCodec(), JsonLinesCodec()])
def test_extractors_return_hashed_fields(codec) -> None:
    parsed = codec.parse(codec.format(_entry("transfer 100 EUR")))
    assert isinstance(parsed, ParsedFields)
    assert codec.extract_message(parsed) == "transfer 100 EUR"
    assert codec.extract_current_hash(parsed) == "Q1VSUkVOVA=="
    assert codec.extract_previous_hash(parsed) == "INIT_SEED_0000"


@pytest.mark.parametrize("codec", [DelimitedCodec(), CompactCodec(), JsonLinesCodec()])
def test_empty_message_is_rejected(codec) -> None:
    with pytest.raises(CodecError):
        codec.format(_entry(""))


@pytest.mark.parametrize("codec", [DelimitedCodec(), CompactCodec(), JsonLinesCodec()])
@pytest.mark.parametrize("message", [" ", "   ", "\t", " \t "])
def test_whitespace_only_message_is_rejected(codec, message: str) -> None:
    with pytest.raises(CodecError, match="blank"):
        codec.format(_entry(message))


@pytest.mark.parametrize("codec", [DelimitedCodec(), CompactCodec(), JsonLinesCodec()])
def test_padded_message_keeps_its_whitespace(codec) -> None:
    parsed = codec.parse(codec.format(_entry("  padded  ")))
    assert isinstance(parsed, ParsedFields)
    assert codec.extract_message(parsed) == "  padded  "


def test_delimited_layout_and_defaults() -> None:
    codec = DelimitedCodec()
    line = codec.format(_entry())
    assert line == "2024-05-01 09:30:00 | SYSTEM | N/A | login | Q1VSUkVOVA== | INIT_SEED_0000"


def test_delimited_uses_context_metadata() -> None:
    codec = DelimitedCodec()
    line = codec.format(_entry(user_id="alice", client_ip="10.0.0.7"))
    assert line.split(" | ")[1:3] == ["alice", "10.0.0.7"]
    parsed = codec.parse(line)
    assert isinstance(parsed, ParsedFields)
    assert codec.extract_metadata(parsed) == {"user_id": "alice", "client_ip": "10.0.0.7"}


def test_delimited_renders_in_configured_zone() -> None:
    codec = DelimitedCodec(time_zone="Asia/Seoul")
    line = codec.format(_entry())
    assert line.startswith("2024-05-01 18:30:00 | ")
    parsed = codec.parse(line)
    assert isinstance(parsed, ParsedFields)
    assert codec.extract_timestamp(parsed) == TS.replace(microsecond=0)


def test_delimited_unknown_zone() -> None:
    with pytest.raises(CodecError, match="unknown time zone"):
        DelimitedCodec(time_zone="Mars/Olympus")


def test_delimited_rejects_separator_in_message() -> None:
    with pytest.raises(CodecError, match="separator"):
        DelimitedCodec().format(_entry("a | b"))


def test_pipe_codecs_reject_line_breaks() -> None:
    for codec in (DelimitedCodec(), CompactCodec()):
        with pytest.raises(CodecError, match="line breaks"):
            codec.format(_entry("two\nlines"))


@pytest.mark.parametrize(
    "line,detail",
    [
        ("", "line is empty"),
        ("only | three | fields", "field count mismatch"),
        ("2024-05-01 09:30:00 | u | ip |  | cur | prev", "message is empty"),
        ("2024-05-01 09:30:00 | u | ip | msg |   | prev", "current_hash is empty"),
        ("yesterday | u | ip | msg | cur | prev", "time is not in format"),
    ],
)
def test_delimited_parse_failures(line: str, detail: str) -> None:
    result = DelimitedCodec().parse(line)
    assert isinstance(result, ParseFailure)
    assert detail in result.detail


def test_compact_layout() -> None:
    codec = CompactCodec()
    line = codec.format(_entry())
    assert line == "1714555800120 | login | Q1VSUkVOVA== | INIT_SEED_0000"
    parsed = codec.parse(line)
    assert isinstance(parsed, ParsedFields)
    assert codec.extract_timestamp(parsed) == TS


@pytest.mark.parametrize(
    "line",
    [
        "abc | m | c | p",
        "1 | m | c",
        "99999999999999999999 | m | c | p",
        "1 | m |  | p",
    ],
)
def test_compact_parse_failures(line: str) -> None:
    assert isinstance(CompactCodec().parse(line), ParseFailure)


def test_jsonl_layout_is_sorted_and_utc() -> None:
    codec = JsonLinesCodec()
    eastern = TS.astimezone(timezone(timedelta(hours=-5)))
    line = codec.format(
        LogEntry("login", "Q1VSUkVOVA==", "INIT_SEED_0000", eastern, {"user_id": "a"})
    )
    data = orjson.loads(line)
    assert list(data) == sorted(data)
    assert data["ts"] == "2024-05-01T09:30:00.120000Z"
    assert data["meta"] == {"user_id": "a"}


def test_jsonl_allows_line_breaks_and_pipes_in_message() -> None:
    codec = JsonLinesCodec()
    line = codec.format(_entry("two\nlines | piped"))
    assert "\n" not in line
    parsed = codec.parse(line)
    assert isinstance(parsed, ParsedFields)
    assert codec.extract_message(parsed) == "two\nlines | piped"
    assert codec.extract_timestamp(parsed) == TS


@pytest.mark.parametrize(
    "line,detail",
    [
        ("{not json", "invalid JSON"),
        ("[1, 2]", "not a JSON object"),
        ('{"message": "m", "current_hash": "c"}', "previous_hash is missing"),
        ('{"message": 1, "current_hash": "c", "previous_hash": "p"}', "message"),
        (
            '{"message": "m", "current_hash": "c", "previous_hash": "p", "ts": "soon"}',
            "ts is invalid",
        ),
        (
            '{"message": "m", "current_hash": "c", "previous_hash": "p", "meta": []}',
            "meta is not an object",
        ),
    ],
)
def test_jsonl_parse_failures(line: str, detail: str) -> None:
    result = JsonLinesCodec().parse(line)
    assert isinstance(result, ParseFailure)
    assert detail in result.detail


def test_join_and_split_fields() -> None:
    assert join_fields("t", ["a", "b"]) == "a | b"
    assert split_fields("a | b | c | d", 3) == ["a", "b", "c | d"]
    assert split_fields("a | b", 3) == "field count mismatch (expected 3, got 2)"


def test_join_fields_allows_separator_in_last_field_only_if_lossless() -> None:
    # A trailing field may contain the separator without changing the split
    assert join_fields("t", ["a", "b | c"]) == "a | b | c"
    with pytest.raises(CodecError):
        join_fields("t", ["a | b", "c"])
