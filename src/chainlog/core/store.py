"""
Append-only, line oriented store.
"""

from __future__ import annotations

import os
from pathlib import Path
from typing import Iterator


class LineStore:
    """One entry per line, UTF-8, written in append mode."""

    def __init__(self, path: str | Path, *, fsync: bool = False) -> None:
        self._path = Path(path)
        self._fsync = fsync

    @property
    def path(self) -> Path:
        return self._path

    def size(self) -> int:
        try:
            return self._path.stat().st_size
        except FileNotFoundError:
            return 0

    def append(self, line: str) -> int:
        """Append ``line`` plus a newline and return the size before writing.

        The returned offset can be passed to ``truncate`` to undo the write.
        """
        if "\n" in line or "\r" in line:
            raise ValueError("store lines must not contain line breaks")
        self._path.parent.mkdir(parents=True, exist_ok=True)
        offset = self.size()
        with open(self._path, "a", encoding="utf-8", newline="\n") as f:
            f.write(line + "\n")
            f.flush()
            if self._fsync:
                os.fsync(f.fileno())
        return offset

    def truncate(self, offset: int) -> None:
        """Cut the store back to ``offset`` bytes.

        A store that was never created is already at offset 0.
        """
        if offset == 0 and not self._path.exists():
            return
        with open(self._path, "r+b") as f:
            f.truncate(offset)
            f.flush()
            if self._fsync:
                os.fsync(f.fileno())

    def iter_lines(self) -> Iterator[tuple[int, str]]:
        """Yield ``(line_number, line)`` pairs, 1-indexed, without newlines.

        Undecodable bytes are replaced so a corrupted line still reaches the
        verifier. Raises OSError when the store is missing or unreadable.
        """
        with open(
            self._path, encoding="utf-8", errors="replace", newline=""
        ) as f:
            for idx, raw in enumerate(f, start=1):
                yield idx, raw.rstrip("\r\n")

    def last_line(self) -> str | None:
        """Last non-blank line, or None for a missing or empty store."""
        if not self._path.exists():
            return None
        last: str | None = None
        for _, line in self.iter_lines():
            if line.strip():
                last = line
        return last


__all__ = ["LineStore"]
