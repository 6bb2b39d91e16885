"""
Keyed MAC wrapper used to link chain entries.

Each entry's hash is ``HMAC(message + previous_hash, secret_key)`` encoded
as standard base64 text. A plain digest is never used: without the key an
attacker who edits the store cannot recompute a valid chain.
"""

from __future__ import annotations

import base64
import hashlib
import hmac
from typing import Callable

from .errors import (
    ErrorCategory,
    ErrorSeverity,
    HashCalculationError,
    create_error_context,
)

DEFAULT_ALGORITHM = "HMAC-SHA256"

_DIGESTS: dict[str, Callable[..., object]] = {
    "HMAC-SHA256": hashlib.sha256,
    "HMAC-SHA384": hashlib.sha384,
    "HMAC-SHA512": hashlib.sha512,
}


def supported_algorithms() -> tuple[str, ...]:
    return tuple(_DIGESTS)


def _as_bytes(value: bytes | str, what: str, algorithm: str) -> bytes:
    if isinstance(value, bytes):
        return value
    if isinstance(value, str):
        return value.encode("utf-8")
    context = create_error_context(
        ErrorCategory.CRYPTO,
        ErrorSeverity.HIGH,
        algorithm=algorithm,
        field=what,
        type=type(value).__name__,
    )
    raise HashCalculationError(
        f"{what} must be bytes or str, got {type(value).__name__}",
        error_context=context,
    )


def mac(
    data: bytes | str,
    key: bytes | str,
    algorithm: str = DEFAULT_ALGORITHM,
) -> str:
    """Return the base64 MAC tag of ``data`` under ``key``.

    Raises HashCalculationError for unsupported algorithms, empty keys or
    inputs that are neither bytes nor str. An empty or default tag is never
    returned.
    """
    digest = _DIGESTS.get(algorithm)
    if digest is None:
        context = create_error_context(
            ErrorCategory.CRYPTO, ErrorSeverity.HIGH, algorithm=algorithm
        )
        raise HashCalculationError(
            f"Unsupported MAC algorithm: {algorithm}", error_context=context
        )
    key_bytes = _as_bytes(key, "key", algorithm)
    if not key_bytes:
        context = create_error_context(
            ErrorCategory.CRYPTO, ErrorSeverity.CRITICAL, algorithm=algorithm
        )
        raise HashCalculationError("MAC key must not be empty", error_context=context)
    data_bytes = _as_bytes(data, "data", algorithm)
    try:
        raw = hmac.new(key_bytes, data_bytes, digest).digest()
    except Exception as e:
        context = create_error_context(
            ErrorCategory.CRYPTO, ErrorSeverity.HIGH, algorithm=algorithm
        )
        raise HashCalculationError(
            "MAC computation failed", error_context=context, cause=e
        ) from e
    return base64.b64encode(raw).decode("ascii")


def chain_input(message: str, previous_hash: str) -> str:
    """MAC input for an entry: its message followed by its predecessor's hash."""
    return message + previous_hash


def tags_equal(a: str, b: str) -> bool:
    """Constant-time tag comparison."""
    return hmac.compare_digest(a.encode("utf-8"), b.encode("utf-8"))


__all__ = [
    "DEFAULT_ALGORITHM",
    "chain_input",
    "mac",
    "supported_algorithms",
    "tags_equal",
]
