"""
Issue and report model produced by chain verification.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any

import orjson


class IssueKind(str, Enum):
    SYSTEM_ERROR = "SYSTEM_ERROR"
    PARSE_ERROR = "PARSE_ERROR"
    TIMESTAMP_ROLLBACK = "TIMESTAMP_ROLLBACK"
    PREV_HASH_MISMATCH = "PREV_HASH_MISMATCH"
    CURRENT_HASH_MISMATCH = "CURRENT_HASH_MISMATCH"
    HASH_CALC_ERROR = "HASH_CALC_ERROR"
    TAIL_TRUNCATION = "TAIL_TRUNCATION"


@dataclass(frozen=True)
class VerificationIssue:
    """A single anomaly found in a store.

    ``cascade`` is False for the first anomaly of a run (the root cause) and
    True for anomalies found after the chain was already known broken.
    """

    line_number: int
    kind: IssueKind
    reason: str
    expected: str | None = None
    actual: str | None = None
    raw_line: str | None = None
    cascade: bool = False

    @classmethod
    def system_error(cls, reason: str) -> VerificationIssue:
        return cls(0, IssueKind.SYSTEM_ERROR, reason)

    @classmethod
    def parse_error(
        cls, line_number: int, detail: str, raw_line: str, cascade: bool
    ) -> VerificationIssue:
        return cls(
            line_number,
            IssueKind.PARSE_ERROR,
            f"log line could not be parsed: {detail}",
            raw_line=raw_line,
            cascade=cascade,
        )

    @classmethod
    def timestamp_rollback(
        cls,
        line_number: int,
        previous: str,
        current: str,
        raw_line: str,
        cascade: bool,
    ) -> VerificationIssue:
        return cls(
            line_number,
            IssueKind.TIMESTAMP_ROLLBACK,
            "timestamp moved backwards",
            expected=f"previousTimestamp={previous}",
            actual=f"currentTimestamp={current}",
            raw_line=raw_line,
            cascade=cascade,
        )

    @classmethod
    def prev_hash_mismatch(
        cls,
        line_number: int,
        expected: str,
        actual: str,
        raw_line: str,
        cascade: bool,
    ) -> VerificationIssue:
        return cls(
            line_number,
            IssueKind.PREV_HASH_MISMATCH,
            "previous_hash does not continue the chain",
            expected=expected,
            actual=actual,
            raw_line=raw_line,
            cascade=cascade,
        )

    @classmethod
    def current_hash_mismatch(
        cls,
        line_number: int,
        expected: str,
        actual: str,
        raw_line: str,
        cascade: bool,
    ) -> VerificationIssue:
        return cls(
            line_number,
            IssueKind.CURRENT_HASH_MISMATCH,
            "current_hash does not match the recomputed MAC",
            expected=expected,
            actual=actual,
            raw_line=raw_line,
            cascade=cascade,
        )

    @classmethod
    def hash_calc_error(
        cls, line_number: int, detail: str, raw_line: str, cascade: bool
    ) -> VerificationIssue:
        return cls(
            line_number,
            IssueKind.HASH_CALC_ERROR,
            f"MAC calculation failed: {detail}",
            raw_line=raw_line,
            cascade=cascade,
        )

    @classmethod
    def tail_truncation(
        cls, line_number: int, stored_head: str, last_hash: str | None
    ) -> VerificationIssue:
        return cls(
            line_number,
            IssueKind.TAIL_TRUNCATION,
            "head pointer does not match the last entry "
            "(trailing entries deleted or rolled back)",
            expected=stored_head,
            actual=last_hash,
            cascade=False,
        )

    def render(self) -> str:
        parts = [
            f"[line {self.line_number}] {self.kind.value} "
            f"({'cascade' if self.cascade else 'root'}) - {self.reason}"
        ]
        if self.expected is not None:
            parts.append(f"expected={self.expected}")
        if self.actual is not None:
            parts.append(f"actual={self.actual}")
        if self.raw_line is not None:
            parts.append(f"raw={self.raw_line}")
        return " | ".join(parts)

    def to_dict(self) -> dict[str, Any]:
        return {
            "line_number": self.line_number,
            "kind": self.kind.value,
            "reason": self.reason,
            "expected": self.expected,
            "actual": self.actual,
            "raw_line": self.raw_line,
            "cascade": self.cascade,
        }


@dataclass
class VerificationReport:
    valid: bool
    processed_lines: int
    issues: list[VerificationIssue] = field(default_factory=list)

    @classmethod
    def system_failure(cls, reason: str) -> VerificationReport:
        return cls(
            valid=False,
            processed_lines=0,
            issues=[VerificationIssue.system_error(reason)],
        )

    @property
    def first_issue(self) -> VerificationIssue | None:
        return self.issues[0] if self.issues else None

    @property
    def root_causes(self) -> list[VerificationIssue]:
        """Issues not marked as cascading from an earlier break."""
        return [i for i in self.issues if not i.cascade]

    def issues_of(self, kind: IssueKind) -> list[VerificationIssue]:
        return [i for i in self.issues if i.kind is kind]

    def render(self) -> str:
        if self.valid:
            return f"OK (processedLines={self.processed_lines})"
        lines = [f"FAIL (processedLines={self.processed_lines})"]
        lines.extend(issue.render() for issue in self.issues)
        return "\n".join(lines)

    def to_dict(self) -> dict[str, Any]:
        return {
            "valid": self.valid,
            "processed_lines": self.processed_lines,
            "issues": [i.to_dict() for i in self.issues],
        }

    def to_json(self) -> str:
        return orjson.dumps(self.to_dict()).decode("utf-8")

    def __str__(self) -> str:
        return self.render()


__all__ = ["IssueKind", "VerificationIssue", "VerificationReport"]
