from __future__ import annotations

from .base import EntryCodec
from .compact import CompactCodec
from .delimited import DelimitedCodec
from .jsonl import JsonLinesCodec
from .loader import (
    CodecLoadError,
    CodecNotFoundError,
    ValidationMode,
    available_codecs,
    get_codec,
    register_codec,
)

register_codec("delimited", DelimitedCodec, aliases=("default", "pipe"))
register_codec("compact", CompactCodec)
register_codec("jsonl", JsonLinesCodec, aliases=("json",))

__all__ = [
    "CodecLoadError",
    "CodecNotFoundError",
    "CompactCodec",
    "DelimitedCodec",
    "EntryCodec",
    "JsonLinesCodec",
    "ValidationMode",
    "available_codecs",
    "get_codec",
    "register_codec",
]
