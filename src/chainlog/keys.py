"""
Secret key providers.

The MAC key is provisioned out of band and never written into the store.
Providers only load it; a missing or blank key is a configuration error,
never an empty key.
"""

from __future__ import annotations

import base64
import binascii
import os
from pathlib import Path
from typing import Literal, Protocol

from .core.errors import (
    ErrorCategory,
    ErrorSeverity,
    KeyConfigurationError,
    create_error_context,
)
from .core.settings import KeySettings

KeyEncoding = Literal["raw", "base64"]


class KeyProvider(Protocol):
    """Protocol for retrieving the chain's secret key."""

    def get_key(self) -> bytes:
        """Return key material or raise KeyConfigurationError."""
        ...


def _missing(source: str, detail: str) -> KeyConfigurationError:
    context = create_error_context(
        ErrorCategory.CONFIG, ErrorSeverity.CRITICAL, source=source
    )
    return KeyConfigurationError(
        f"Secret key unavailable ({source}): {detail}", error_context=context
    )


def _decode_key(raw: str, encoding: KeyEncoding, source: str) -> bytes:
    value = raw.strip()
    if not value:
        raise _missing(source, "value is blank")
    if encoding == "raw":
        return value.encode("utf-8")
    padding = "=" * (-len(value) % 4)
    try:
        decoded = base64.b64decode(value + padding, altchars=b"-_", validate=True)
    except (binascii.Error, ValueError) as e:
        raise _missing(source, "value is not valid base64") from e
    if not decoded:
        raise _missing(source, "decoded key is empty")
    return decoded


class StaticKeyProvider:
    """Key supplied directly, e.g. from a secrets manager client."""

    def __init__(self, key: bytes | str) -> None:
        material = key.encode("utf-8") if isinstance(key, str) else key
        if not material or not material.strip():
            raise _missing("static", "value is blank")
        self._key = material

    def get_key(self) -> bytes:
        return self._key


class EnvKeyProvider:
    """Key read from an environment variable on every call."""

    def __init__(self, env_var: str, *, encoding: KeyEncoding = "raw") -> None:
        self._env_var = env_var
        self._encoding = encoding

    def get_key(self) -> bytes:
        value = os.getenv(self._env_var)
        if value is None:
            raise _missing(f"env:{self._env_var}", "variable is not set")
        return _decode_key(value, self._encoding, f"env:{self._env_var}")


class FileKeyProvider:
    """Key read from a file holding only the key."""

    def __init__(self, path: str | Path, *, encoding: KeyEncoding = "raw") -> None:
        self._path = Path(path)
        self._encoding = encoding

    def get_key(self) -> bytes:
        source = f"file:{self._path}"
        try:
            text = self._path.read_text(encoding="utf-8")
        except OSError as e:
            raise _missing(source, f"cannot read file ({e.strerror or e})") from e
        return _decode_key(text, self._encoding, source)


class PropertiesKeyProvider:
    """Key read from a ``.properties`` file (``key=value`` or ``key: value``).

    Lines starting with ``#`` or ``!`` are comments.
    """

    def __init__(
        self,
        path: str | Path,
        property_name: str = "audit.secret.key",
        *,
        encoding: KeyEncoding = "raw",
    ) -> None:
        self._path = Path(path)
        self._property = property_name
        self._encoding = encoding

    def get_key(self) -> bytes:
        source = f"properties:{self._path}#{self._property}"
        try:
            text = self._path.read_text(encoding="utf-8")
        except OSError as e:
            raise _missing(source, f"cannot read file ({e.strerror or e})") from e
        properties = parse_properties(text)
        if self._property not in properties:
            raise _missing(source, "property is not set")
        return _decode_key(properties[self._property], self._encoding, source)


def parse_properties(text: str) -> dict[str, str]:
    """Parse the simple subset of java ``.properties`` syntax used for keys."""
    result: dict[str, str] = {}
    for raw in text.splitlines():
        line = raw.strip()
        if not line or line[0] in "#!":
            continue
        positions = [p for p in (line.find("="), line.find(":")) if p >= 0]
        if not positions:
            result[line] = ""
            continue
        split_at = min(positions)
        result[line[:split_at].strip()] = line[split_at + 1 :].strip()
    return result


def build_key_provider(settings: KeySettings) -> KeyProvider:
    """Create the provider selected by ``settings.source``."""
    if settings.source == "env":
        return EnvKeyProvider(settings.env_var, encoding=settings.encoding)
    if settings.source == "file":
        if not settings.file_path:
            raise _missing("file", "keys.file_path is not configured")
        return FileKeyProvider(settings.file_path, encoding=settings.encoding)
    return PropertiesKeyProvider(
        settings.properties_path,
        settings.properties_key,
        encoding=settings.encoding,
    )


__all__ = [
    "EnvKeyProvider",
    "FileKeyProvider",
    "KeyProvider",
    "PropertiesKeyProvider",
    "StaticKeyProvider",
    "build_key_provider",
    "parse_properties",
]
