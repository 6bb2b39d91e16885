"""
chainlog: tamper-evident, hash-chained audit logs.

Every entry commits to its predecessor with an HMAC so that modification,
deletion, insertion or reordering of entries is detectable later:

    >>> from chainlog import ChainAppender, ChainVerifier
    >>> appender = ChainAppender("audit.log", secret_key=b"k")
    >>> appender.append("login").ok
    True
    >>> ChainVerifier(secret_key=b"k").verify("audit.log").render()
    'OK (processedLines=1)'
"""

from __future__ import annotations

from ._version import __version__
from .codecs import (
    CompactCodec,
    DelimitedCodec,
    EntryCodec,
    JsonLinesCodec,
    available_codecs,
    get_codec,
    register_codec,
)
from .context import bind_context, current_context
from .core.appender import AppendResult, ChainAppender
from .core.errors import (
    AppendError,
    ChainlogError,
    CodecError,
    ConfigurationError,
    HashCalculationError,
    KeyConfigurationError,
)
from .core.hasher import mac
from .core.report import IssueKind, VerificationIssue, VerificationReport
from .core.settings import DEFAULT_GENESIS_SEED, Settings
from .core.types import LogEntry, ParsedFields, ParseFailure
from .core.verifier import ChainVerifier, verify

__all__ = [
    "DEFAULT_GENESIS_SEED",
    "AppendError",
    "AppendResult",
    "ChainAppender",
    "ChainVerifier",
    "ChainlogError",
    "CodecError",
    "CompactCodec",
    "ConfigurationError",
    "DelimitedCodec",
    "EntryCodec",
    "HashCalculationError",
    "IssueKind",
    "JsonLinesCodec",
    "KeyConfigurationError",
    "LogEntry",
    "ParseFailure",
    "ParsedFields",
    "Settings",
    "VerificationIssue",
    "VerificationReport",
    "__version__",
    "available_codecs",
    "bind_context",
    "current_context",
    "get_codec",
    "mac",
    "register_codec",
    "verify",
]

VERSION = __version__
