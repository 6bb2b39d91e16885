"""
Head pointer persistence.

The head pointer holds the ``current_hash`` of the most recent entry in a
file separate from the store. It is overwritten on every append and lets
the verifier detect deletion or rollback of trailing entries.
"""

from __future__ import annotations

import os
from pathlib import Path


class HeadPointer:
    """Reads and atomically overwrites a chain head file."""

    def __init__(self, path: str | Path) -> None:
        self._path = Path(path)

    @property
    def path(self) -> Path:
        return self._path

    def exists(self) -> bool:
        return self._path.exists()

    def read(self) -> str | None:
        """Return the stored head, or None when missing or blank.

        Raises OSError if the file exists but cannot be read.
        """
        if not self._path.exists():
            return None
        value = self._path.read_text(encoding="utf-8").strip()
        return value or None

    def write(self, value: str, *, fsync: bool = True) -> None:
        """Replace the stored head with ``value`` (temp file + os.replace)."""
        self._path.parent.mkdir(parents=True, exist_ok=True)
        temp_path = self._path.with_name(self._path.name + ".tmp")
        with open(temp_path, "w", encoding="utf-8") as f:
            f.write(value)
            f.flush()
            if fsync:
                os.fsync(f.fileno())
        os.replace(temp_path, self._path)

    def __repr__(self) -> str:
        return f"HeadPointer({str(self._path)!r})"


__all__ = ["HeadPointer"]
