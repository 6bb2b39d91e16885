from pathlib import Path

import pytest

from chainlog.core.head import HeadPointer
from chainlog.core.settings import default_head_path
from chainlog.core.store import LineStore


def test_append_returns_offset_before_write(store_path: Path) -> None:
    store = LineStore(store_path)
    assert store.size() == 0
    assert store.append("one") == 0
    assert store.append("two") == 4
    assert store_path.read_text(encoding="utf-8") == "one\ntwo\n"


def test_append_creates_parent_directories(tmp_path: Path) -> None:
    store = LineStore(tmp_path / "nested" / "dir" / "audit.log", fsync=True)
    store.append("x")
    assert store.path.read_text(encoding="utf-8") == "x\n"


def test_append_rejects_line_breaks(store_path: Path) -> None:
    store = LineStore(store_path)
    with pytest.raises(ValueError):
        store.append("a\nb")
    with pytest.raises(ValueError):
        store.append("a\rb")
    assert not store_path.exists()


def test_truncate_undoes_append(store_path: Path) -> None:
    store = LineStore(store_path)
    store.append("one")
    offset = store.append("two")
    store.truncate(offset)
    assert store_path.read_text(encoding="utf-8") == "one\n"


def test_iter_lines_is_one_indexed_and_strips_newlines(store_path: Path) -> None:
    store_path.write_bytes(b"a\r\n\nb\n")
    assert list(LineStore(store_path).iter_lines()) == [(1, "a"), (2, ""), (3, "b")]


def test_iter_lines_replaces_invalid_utf8(store_path: Path) -> None:
    store_path.write_bytes(b"ok\n\xff\xfe broken\n")
    lines = [line for _, line in LineStore(store_path).iter_lines()]
    assert lines[0] == "ok"
    assert lines[1].endswith(" broken")
    assert "�" in lines[1]


def test_iter_lines_missing_store_raises(store_path: Path) -> None:
    with pytest.raises(OSError):
        list(LineStore(store_path).iter_lines())


def test_last_line_skips_trailing_blanks(store_path: Path) -> None:
    store = LineStore(store_path)
    assert store.last_line() is None
    store_path.write_text("first\nsecond\n\n  \n", encoding="utf-8")
    assert store.last_line() == "second"


def test_head_round_trip(head_path: Path) -> None:
    head = HeadPointer(head_path)
    assert head.exists() is False
    assert head.read() is None
    head.write("abc=")
    assert head.read() == "abc="
    head.write("def=", fsync=False)
    assert head.read() == "def="
    assert not head_path.with_name(head_path.name + ".tmp").exists()


def test_head_read_strips_and_treats_blank_as_missing(head_path: Path) -> None:
    head_path.write_text("  abc=\n", encoding="utf-8")
    assert HeadPointer(head_path).read() == "abc="
    head_path.write_text(" \n", encoding="utf-8")
    assert HeadPointer(head_path).read() is None


def test_head_read_of_directory_raises(tmp_path: Path) -> None:
    with pytest.raises(OSError):
        HeadPointer(tmp_path).read()


def test_default_head_path_sits_next_to_store(tmp_path: Path) -> None:
    assert default_head_path(tmp_path / "audit.log") == tmp_path / "audit.log.head"
    assert default_head_path("audit.log") == Path("audit.log.head")
