"""
Chain appender: extends a tamper-evident chain by one entry per call.

Each append computes ``HMAC(message + previous_hash, key)``, writes the
encoded entry to the store, overwrites the head pointer and only then
advances the in-memory cursor. The whole sequence runs under a lock so two
threads can never derive entries from the same predecessor.

Failures are returned as ``AppendResult(ok=False, error=AppendError(...))``
rather than raised, so a broken disk never takes down the application that
is logging. The cursor only moves when store and head were both written.
"""

from __future__ import annotations

import threading
from dataclasses import dataclass
from datetime import datetime, timezone
from pathlib import Path
from typing import Callable

from ..codecs.base import EntryCodec
from . import diagnostics
from .errors import (
    AppendError,
    ConfigurationError,
    ErrorCategory,
    ErrorSeverity,
    KeyConfigurationError,
    create_error_context,
)
from .hasher import DEFAULT_ALGORITHM, chain_input, mac
from .head import HeadPointer
from .settings import DEFAULT_GENESIS_SEED, Settings, default_head_path
from .store import LineStore
from .types import LogEntry, ParsedFields


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


@dataclass(frozen=True)
class AppendResult:
    """Outcome of one append."""

    ok: bool
    entry: LogEntry | None = None
    error: AppendError | None = None

    def raise_for_error(self) -> None:
        if self.error is not None:
            raise self.error

    def __bool__(self) -> bool:
        return self.ok


class ChainAppender:
    """Single writer for one chain (store file + head pointer file)."""

    def __init__(
        self,
        store_path: str | Path,
        *,
        secret_key: bytes | str,
        codec: EntryCodec | None = None,
        head_path: str | Path | None = None,
        genesis_seed: str = DEFAULT_GENESIS_SEED,
        algorithm: str = DEFAULT_ALGORITHM,
        fsync: bool = False,
        resume: bool = True,
        clock: Callable[[], datetime] | None = None,
    ) -> None:
        if not secret_key:
            raise KeyConfigurationError("secret_key must not be empty")
        if codec is None:
            from ..codecs import DelimitedCodec

            codec = DelimitedCodec()
        self._key = secret_key
        self._codec = codec
        self._algorithm = algorithm
        self._genesis_seed = genesis_seed
        self._clock = clock or _utcnow
        self._store = LineStore(store_path, fsync=fsync)
        self._head = HeadPointer(
            head_path if head_path is not None else default_head_path(store_path)
        )
        self._lock = threading.Lock()
        self._diverged = False
        self._previous_hash = self._recover_cursor() if resume else genesis_seed

    @classmethod
    def from_settings(
        cls,
        settings: Settings | None = None,
        *,
        key_provider: object | None = None,
        codec: EntryCodec | None = None,
    ) -> ChainAppender:
        """Build an appender from ``Settings`` (environment by default)."""
        from ..codecs import get_codec
        from ..keys import KeyProvider, build_key_provider

        settings = settings or Settings()
        provider: KeyProvider = key_provider or build_key_provider(settings.keys)  # type: ignore[assignment]
        chain = settings.chain
        return cls(
            chain.store_path,
            secret_key=provider.get_key(),
            codec=codec
            or get_codec(
                chain.codec,
                time_zone=settings.codec.time_zone,
                date_format=settings.codec.date_format,
            ),
            head_path=chain.resolved_head_path(),
            genesis_seed=chain.genesis_seed,
            algorithm=chain.algorithm,
            fsync=chain.fsync_on_write,
            resume=chain.resume,
        )

    @property
    def previous_hash(self) -> str:
        """Hash the next entry will commit to."""
        return self._previous_hash

    @property
    def diverged(self) -> bool:
        """True once store and cursor could not be reconciled after a failure."""
        return self._diverged

    @property
    def store_path(self) -> Path:
        return self._store.path

    @property
    def head_path(self) -> Path:
        return self._head.path

    def append(self, message: str) -> AppendResult:
        """Hash, encode and persist ``message`` as the next chain entry."""
        with self._lock:
            if self._diverged:
                return self._fail(
                    "diverged",
                    "appender disabled after an unrecoverable write failure",
                )
            if not isinstance(message, str):
                return self._fail(
                    "format", f"message must be str, got {type(message).__name__}"
                )

            previous = self._previous_hash
            try:
                current = mac(chain_input(message, previous), self._key, self._algorithm)
            except Exception as e:
                return self._fail("hash", "MAC calculation failed", e)

            entry = LogEntry(
                message=message,
                current_hash=current,
                previous_hash=previous,
                timestamp=self._clock(),
                metadata=_context_metadata(),
            )
            try:
                line = self._codec.format(entry)
            except Exception as e:
                return self._fail("format", "entry could not be encoded", e)

            try:
                offset = self._store.size()
            except OSError as e:
                return self._fail("store", "store size unavailable", e)
            try:
                self._store.append(line)
            except Exception as e:
                # Bytes may have reached the file before the failure
                return self._rollback("store", "store write failed", offset, e)

            try:
                self._head.write(current)
            except Exception as e:
                return self._rollback("head", "head pointer write failed", offset, e)

            self._previous_hash = current
            return AppendResult(ok=True, entry=entry)

    def _rollback(
        self, stage: str, message: str, offset: int, cause: Exception
    ) -> AppendResult:
        """Cut the store back to ``offset`` after a failed ``stage``."""
        try:
            self._store.truncate(offset)
        except Exception as rollback_error:
            self._diverged = True
            diagnostics.warn(
                "appender",
                "store rollback failed; appender disabled",
                store=str(self._store.path),
                failed_stage=stage,
                error=str(rollback_error),
            )
            return self._fail(
                "diverged", f"{message} and store rollback failed", cause
            )
        diagnostics.debug(
            "appender",
            "store rolled back",
            failed_stage=stage,
            offset=offset,
        )
        return self._fail(stage, message, cause)

    def _fail(
        self, stage: str, message: str, cause: Exception | None = None
    ) -> AppendResult:
        context = create_error_context(
            ErrorCategory.IO if stage in ("store", "head", "diverged") else ErrorCategory.CHAIN,
            ErrorSeverity.CRITICAL if stage == "diverged" else ErrorSeverity.HIGH,
            stage=stage,
            store=str(self._store.path),
        )
        error = AppendError(message, stage=stage, error_context=context, cause=cause)
        diagnostics.warn(
            "appender",
            message,
            stage=stage,
            store=str(self._store.path),
            error=str(cause) if cause is not None else None,
        )
        return AppendResult(ok=False, error=error)

    def _recover_cursor(self) -> str:
        """Cursor for a reopened chain: head, else last entry, else genesis."""
        try:
            head = self._head.read()
            last_line = self._store.last_line()
        except (OSError, UnicodeDecodeError) as e:
            raise ConfigurationError(
                "cannot read existing chain state", cause=e
            ) from e

        last_hash: str | None = None
        if last_line is not None:
            parsed = self._codec.parse(last_line)
            if isinstance(parsed, ParsedFields):
                last_hash = self._codec.extract_current_hash(parsed)
            elif head is None:
                raise ConfigurationError(
                    f"cannot resume chain: last entry of {self._store.path} "
                    f"is unreadable ({parsed.detail})"
                )

        if head is not None:
            if last_hash is not None and last_hash != head:
                diagnostics.warn(
                    "appender",
                    "head pointer disagrees with last stored entry; resuming from head",
                    store=str(self._store.path),
                )
            return head
        if last_hash is not None:
            diagnostics.debug(
                "appender", "resuming from last stored entry", store=str(self._store.path)
            )
            return last_hash
        return self._genesis_seed


def _context_metadata() -> dict[str, str]:
    from ..context import current_context

    return current_context()


__all__ = ["AppendResult", "ChainAppender"]
