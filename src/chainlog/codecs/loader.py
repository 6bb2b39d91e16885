"""
Codec registry: built-ins plus the ``chainlog.codecs`` entry point group.

Names are normalized (hyphens/underscores, case) and may have aliases.
Built-ins win over entry points when names collide.
"""

from __future__ import annotations

import importlib.metadata
import inspect
from enum import Enum
from typing import Any, Callable, Iterable

from ..core import diagnostics
from ..core.errors import ConfigurationError
from .base import EntryCodec

ENTRY_POINT_GROUP = "chainlog.codecs"

BUILTIN_CODECS: dict[str, Callable[..., EntryCodec]] = {}
BUILTIN_ALIASES: dict[str, str] = {}


class CodecNotFoundError(ConfigurationError):
    """No codec registered under the requested name."""


class CodecLoadError(ConfigurationError):
    """Codec found but failed to instantiate or validate."""


class ValidationMode(Enum):
    DISABLED = "disabled"
    WARN = "warn"
    STRICT = "strict"


def _normalize(name: str) -> str:
    return name.replace("-", "_").lower()


def register_codec(
    name: str,
    factory: Callable[..., EntryCodec],
    *,
    aliases: Iterable[str] | None = None,
) -> None:
    """Register a codec factory (usually the class) under ``name``."""
    canonical = _normalize(name)
    BUILTIN_CODECS[canonical] = factory
    for alias in aliases or ():
        BUILTIN_ALIASES[_normalize(alias)] = canonical


def available_codecs() -> list[str]:
    """Registered names, aliases and entry point names, sorted."""
    names: set[str] = set(BUILTIN_CODECS) | set(BUILTIN_ALIASES)
    try:
        for ep in importlib.metadata.entry_points(group=ENTRY_POINT_GROUP):
            names.add(_normalize(ep.name))
    except Exception:
        # Discovery is best-effort
        pass
    return sorted(names)


def get_codec(
    name: str,
    *,
    validation_mode: ValidationMode = ValidationMode.DISABLED,
    **options: Any,
) -> EntryCodec:
    """Instantiate the codec registered as ``name``.

    ``options`` not accepted by the codec's constructor are dropped, so a
    shared options block (time zone, date format) can be passed to any codec.
    """
    canonical = _normalize(name)
    target = BUILTIN_ALIASES.get(canonical, canonical)
    factory = BUILTIN_CODECS.get(target)
    if factory is None:
        factory = _from_entry_points(canonical)
    if factory is None:
        raise CodecNotFoundError(f"Codec '{name}' not found")
    return _instantiate(factory, options, validation_mode)


def _from_entry_points(canonical: str) -> Callable[..., EntryCodec] | None:
    try:
        for ep in importlib.metadata.entry_points(group=ENTRY_POINT_GROUP):
            if _normalize(ep.name) == canonical:
                loaded: Callable[..., EntryCodec] = ep.load()
                return loaded
    except Exception as exc:
        raise CodecLoadError(f"Failed to load codec '{canonical}': {exc}") from exc
    return None


def _accepted_options(
    factory: Callable[..., EntryCodec], options: dict[str, Any]
) -> dict[str, Any]:
    try:
        params = inspect.signature(factory).parameters.values()
    except (TypeError, ValueError):
        return {}
    if any(p.kind is inspect.Parameter.VAR_KEYWORD for p in params):
        return dict(options)
    names = {p.name for p in params}
    return {k: v for k, v in options.items() if k in names}


def _instantiate(
    factory: Callable[..., EntryCodec],
    options: dict[str, Any],
    validation_mode: ValidationMode,
) -> EntryCodec:
    try:
        codec = factory(**_accepted_options(factory, options))
    except Exception as exc:
        diagnostics.warn(
            "codecs",
            "codec instantiation failed",
            codec=str(factory),
            error=str(exc),
        )
        raise CodecLoadError(str(exc), cause=exc) from exc
    if validation_mode is not ValidationMode.DISABLED:
        _validate(codec, validation_mode)
    return codec


def _validate(codec: EntryCodec, mode: ValidationMode) -> None:
    from ..testing.validators import validate_codec

    result = validate_codec(codec)
    if result.valid:
        return
    name = getattr(codec, "name", type(codec).__name__)
    if mode is ValidationMode.STRICT:
        raise CodecLoadError(
            f"Codec '{name}' failed validation: " + "; ".join(result.errors)
        )
    diagnostics.warn(
        "codecs",
        "codec validation failed",
        codec=name,
        errors=result.errors,
        warnings=result.warnings,
    )


__all__ = [
    "BUILTIN_ALIASES",
    "BUILTIN_CODECS",
    "ENTRY_POINT_GROUP",
    "CodecLoadError",
    "CodecNotFoundError",
    "ValidationMode",
    "available_codecs",
    "get_codec",
    "register_codec",
]
