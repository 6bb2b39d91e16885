"""
Error taxonomy for chainlog.

Every library exception derives from ``ChainlogError`` and carries a
category, a severity and an ``ErrorContext`` with free-form details. Data
anomalies found while verifying a chain are *not* exceptions; they are
reported as issues on a ``VerificationReport``.
"""

from __future__ import annotations

import time
from dataclasses import dataclass, field
from enum import Enum
from typing import Any


class ErrorCategory(str, Enum):
    CONFIG = "config"
    CRYPTO = "crypto"
    IO = "io"
    SERIALIZATION = "serialization"
    CHAIN = "chain"


class ErrorSeverity(str, Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    CRITICAL = "critical"


@dataclass
class ErrorContext:
    """Structured context attached to a ChainlogError."""

    category: ErrorCategory
    severity: ErrorSeverity
    timestamp: float = field(default_factory=time.time)
    details: dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        return {
            "category": self.category.value,
            "severity": self.severity.value,
            "timestamp": self.timestamp,
            "details": dict(self.details),
        }


def create_error_context(
    category: ErrorCategory,
    severity: ErrorSeverity = ErrorSeverity.MEDIUM,
    **details: Any,
) -> ErrorContext:
    """Build an ErrorContext, dropping ``None`` detail values."""
    return ErrorContext(
        category=category,
        severity=severity,
        details={k: v for k, v in details.items() if v is not None},
    )


class ChainlogError(Exception):
    """Base class for all chainlog errors."""

    default_category: ErrorCategory = ErrorCategory.CHAIN
    default_severity: ErrorSeverity = ErrorSeverity.MEDIUM

    def __init__(
        self,
        message: str,
        *,
        category: ErrorCategory | None = None,
        severity: ErrorSeverity | None = None,
        error_context: ErrorContext | None = None,
        cause: BaseException | None = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.category = category or (
            error_context.category if error_context else self.default_category
        )
        self.severity = severity or (
            error_context.severity if error_context else self.default_severity
        )
        self.context = error_context or create_error_context(
            self.category, self.severity
        )
        self.cause = cause

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {
            "error": type(self).__name__,
            "message": self.message,
            "context": self.context.to_dict(),
        }
        if self.cause is not None:
            data["cause"] = f"{type(self.cause).__name__}: {self.cause}"
        return data

    def __str__(self) -> str:
        if self.cause is not None:
            return f"{self.message} ({type(self.cause).__name__}: {self.cause})"
        return self.message


class ConfigurationError(ChainlogError):
    default_category = ErrorCategory.CONFIG
    default_severity = ErrorSeverity.HIGH


class KeyConfigurationError(ConfigurationError):
    """Secret key material is missing, blank or unreadable."""

    default_severity = ErrorSeverity.CRITICAL


class HashCalculationError(ChainlogError):
    """The MAC primitive could not produce a tag."""

    default_category = ErrorCategory.CRYPTO
    default_severity = ErrorSeverity.HIGH


class CodecError(ChainlogError):
    """An entry could not be encoded by its codec."""

    default_category = ErrorCategory.SERIALIZATION


class AppendError(ChainlogError):
    """An append did not extend the chain.

    ``stage`` names the step that failed: ``hash``, ``format``, ``store``,
    ``head`` or ``diverged``.
    """

    default_category = ErrorCategory.CHAIN
    default_severity = ErrorSeverity.HIGH

    def __init__(self, message: str, *, stage: str, **kwargs: Any) -> None:
        super().__init__(message, **kwargs)
        self.stage = stage

    def to_dict(self) -> dict[str, Any]:
        data = super().to_dict()
        data["stage"] = self.stage
        return data


__all__ = [
    "AppendError",
    "ChainlogError",
    "CodecError",
    "ConfigurationError",
    "ErrorCategory",
    "ErrorContext",
    "ErrorSeverity",
    "HashCalculationError",
    "KeyConfigurationError",
    "create_error_context",
]
