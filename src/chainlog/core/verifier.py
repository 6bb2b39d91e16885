"""
Chain verification with anomaly classification.

The verifier reads a store end to end in one forward pass, recomputes every
entry's MAC and reports each anomaly it finds instead of stopping at the
first one:

- ``PARSE_ERROR``: the line does not decode into entry fields
- ``TIMESTAMP_ROLLBACK``: an entry is older than its predecessor (opt-in)
- ``PREV_HASH_MISMATCH``: the chain link is broken (deletion, insertion,
  reordering)
- ``CURRENT_HASH_MISMATCH``: the entry content was modified
- ``HASH_CALC_ERROR``: the MAC primitive failed
- ``TAIL_TRUNCATION``: the head pointer names an entry that is no longer the
  last one (trailing deletion or rollback)

The expected previous hash for the next line always comes from the current
line's *stored* hash, not the recomputed one, so the rest of the file is
still checked for self-consistency after a content tamper. The first
anomaly is the root cause (``cascade=False``); anything after it is marked
``cascade=True``. Tail truncation is judged independently and never cascades.
"""

from __future__ import annotations

import asyncio
from datetime import datetime
from pathlib import Path

from ..codecs.base import EntryCodec
from . import diagnostics
from .errors import KeyConfigurationError
from .hasher import DEFAULT_ALGORITHM, chain_input, mac, tags_equal
from .head import HeadPointer
from .report import VerificationIssue, VerificationReport
from .settings import DEFAULT_GENESIS_SEED, Settings, default_head_path
from .store import LineStore
from .types import ParseFailure


class ChainVerifier:
    """Recomputes and cross-checks a persisted chain.

    Holds no per-run state, so one instance can verify several stores,
    including concurrently from different threads.
    """

    def __init__(
        self,
        *,
        secret_key: bytes | str,
        codec: EntryCodec | None = None,
        genesis_seed: str = DEFAULT_GENESIS_SEED,
        algorithm: str = DEFAULT_ALGORITHM,
        head_path: str | Path | None = None,
        check_timestamps: bool = False,
    ) -> None:
        if not secret_key:
            raise KeyConfigurationError("secret_key must not be empty")
        if codec is None:
            from ..codecs import DelimitedCodec

            codec = DelimitedCodec()
        self._key = secret_key
        self._codec = codec
        self._genesis_seed = genesis_seed
        self._algorithm = algorithm
        self._head_path = Path(head_path) if head_path is not None else None
        self._check_timestamps = check_timestamps

    @classmethod
    def from_settings(
        cls,
        settings: Settings | None = None,
        *,
        key_provider: object | None = None,
        codec: EntryCodec | None = None,
    ) -> ChainVerifier:
        """Build a verifier from ``Settings`` (environment by default)."""
        from ..codecs import get_codec
        from ..keys import KeyProvider, build_key_provider

        settings = settings or Settings()
        provider: KeyProvider = key_provider or build_key_provider(settings.keys)  # type: ignore[assignment]
        chain = settings.chain
        return cls(
            secret_key=provider.get_key(),
            codec=codec
            or get_codec(
                chain.codec,
                time_zone=settings.codec.time_zone,
                date_format=settings.codec.date_format,
            ),
            genesis_seed=chain.genesis_seed,
            algorithm=chain.algorithm,
            head_path=chain.resolved_head_path(),
            check_timestamps=chain.check_timestamps,
        )

    def verify(
        self,
        store_path: str | Path | None,
        head_path: str | Path | None = None,
    ) -> VerificationReport:
        """Verify the store at ``store_path`` and its head pointer.

        The head pointer is looked up at ``head_path``, else the path given
        at construction, else ``<store_path>.head``.
        """
        if store_path is None:
            return VerificationReport.system_failure("store path is None")
        path = Path(store_path)
        if not path.exists():
            return VerificationReport.system_failure(f"store does not exist: {path}")
        if not path.is_file():
            return VerificationReport.system_failure(f"store is not a file: {path}")

        try:
            report = self._scan(LineStore(path), self._resolve_head(path, head_path))
        except OSError as e:
            diagnostics.warn(
                "verifier", "store unreadable", store=str(path), error=str(e)
            )
            return VerificationReport.system_failure(
                f"store is unreadable: {path} ({e.strerror or e})"
            )
        if not report.valid:
            diagnostics.debug(
                "verifier",
                "chain verification failed",
                store=str(path),
                issues=len(report.issues),
                root_causes=len(report.root_causes),
            )
        return report

    async def verify_async(
        self,
        store_path: str | Path | None,
        head_path: str | Path | None = None,
    ) -> VerificationReport:
        """Run ``verify`` in a worker thread."""
        return await asyncio.to_thread(self.verify, store_path, head_path)

    def _resolve_head(
        self, store_path: Path, head_path: str | Path | None
    ) -> HeadPointer:
        if head_path is not None:
            return HeadPointer(head_path)
        if self._head_path is not None:
            return HeadPointer(self._head_path)
        return HeadPointer(default_head_path(store_path))

    def _scan(self, store: LineStore, head: HeadPointer) -> VerificationReport:
        codec = self._codec
        expected_prev = self._genesis_seed
        chain_broken = False
        processed = 0
        total_lines = 0
        last_observed: str | None = None
        last_timestamp: datetime | None = None
        issues: list[VerificationIssue] = []

        for line_number, line in store.iter_lines():
            total_lines = line_number
            if not line.strip():
                continue

            try:
                parsed = codec.parse(line)
            except Exception as e:
                parsed = ParseFailure(f"codec raised {type(e).__name__}: {e}")
            if isinstance(parsed, ParseFailure):
                issues.append(
                    VerificationIssue.parse_error(
                        line_number, parsed.detail, line, chain_broken
                    )
                )
                chain_broken = True
                continue
            try:
                message = codec.extract_message(parsed)
                current_hash = codec.extract_current_hash(parsed)
                previous_hash = codec.extract_previous_hash(parsed)
                timestamp = (
                    codec.extract_timestamp(parsed) if self._check_timestamps else None
                )
            except Exception as e:
                issues.append(
                    VerificationIssue.parse_error(
                        line_number, f"field extraction failed: {e}", line, chain_broken
                    )
                )
                chain_broken = True
                continue
            non_text = _non_text_fields(
                message=message,
                current_hash=current_hash,
                previous_hash=previous_hash,
            )
            if non_text:
                issues.append(
                    VerificationIssue.parse_error(
                        line_number,
                        f"codec returned non-text fields: {', '.join(non_text)}",
                        line,
                        chain_broken,
                    )
                )
                chain_broken = True
                continue

            last_observed = current_hash

            if timestamp is not None:
                if last_timestamp is not None and _is_before(timestamp, last_timestamp):
                    issues.append(
                        VerificationIssue.timestamp_rollback(
                            line_number,
                            last_timestamp.isoformat(),
                            timestamp.isoformat(),
                            line,
                            chain_broken,
                        )
                    )
                    chain_broken = True
                last_timestamp = timestamp

            if previous_hash != expected_prev:
                issues.append(
                    VerificationIssue.prev_hash_mismatch(
                        line_number, expected_prev, previous_hash, line, chain_broken
                    )
                )
                chain_broken = True

            try:
                recomputed = mac(
                    chain_input(message, previous_hash), self._key, self._algorithm
                )
            except Exception as e:
                issues.append(
                    VerificationIssue.hash_calc_error(
                        line_number, str(e), line, chain_broken
                    )
                )
                chain_broken = True
            else:
                if not tags_equal(recomputed, current_hash):
                    issues.append(
                        VerificationIssue.current_hash_mismatch(
                            line_number, recomputed, current_hash, line, chain_broken
                        )
                    )
                    chain_broken = True

            expected_prev = current_hash
            processed += 1

        try:
            stored_head = head.read()
        except OSError as e:
            issues.append(
                VerificationIssue.system_error(
                    f"head pointer is unreadable: {head.path} ({e.strerror or e})"
                )
            )
            stored_head = None
        except UnicodeDecodeError as e:
            issues.append(
                VerificationIssue.system_error(
                    f"head pointer is not valid UTF-8: {head.path} ({e.reason})"
                )
            )
            stored_head = None

        if stored_head is not None and (
            last_observed is None or stored_head != last_observed
        ):
            issues.append(
                VerificationIssue.tail_truncation(
                    max(1, total_lines), stored_head, last_observed
                )
            )

        return VerificationReport(
            valid=not issues, processed_lines=processed, issues=issues
        )


def _non_text_fields(**fields: object) -> list[str]:
    return [name for name, value in fields.items() if not isinstance(value, str)]


def _is_before(current: datetime, previous: datetime) -> bool:
    try:
        return current < previous
    except TypeError:
        # Naive vs aware values from a custom codec; compare wall time
        return current.replace(tzinfo=None) < previous.replace(tzinfo=None)


def verify(
    store_path: str | Path,
    *,
    secret_key: bytes | str,
    codec: EntryCodec | None = None,
    genesis_seed: str = DEFAULT_GENESIS_SEED,
    algorithm: str = DEFAULT_ALGORITHM,
    head_path: str | Path | None = None,
    check_timestamps: bool = False,
) -> VerificationReport:
    """One-shot convenience wrapper around ``ChainVerifier.verify``."""
    verifier = ChainVerifier(
        secret_key=secret_key,
        codec=codec,
        genesis_seed=genesis_seed,
        algorithm=algorithm,
        check_timestamps=check_timestamps,
    )
    return verifier.verify(store_path, head_path)


__all__ = ["ChainVerifier", "verify"]
