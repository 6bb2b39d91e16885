"""
Testing utilities for chainlog codecs and audit pipelines.

Example:
    from chainlog.testing import validate_codec

    def test_my_codec():
        result = validate_codec(MyCodec())
        assert result.valid
"""

from .factories import build_chain_lines, rewrite_lines
from .validators import ProtocolViolationError, ValidationResult, validate_codec

__all__ = [
    "ProtocolViolationError",
    "ValidationResult",
    "build_chain_lines",
    "rewrite_lines",
    "validate_codec",
]
