"""
Configuration models for chainlog using Pydantic v2 Settings.

All values can be supplied through environment variables with the
``CHAINLOG_`` prefix and ``__`` as the nested delimiter, for example
``CHAINLOG_CHAIN__STORE_PATH=/var/log/audit.log``.
"""

from __future__ import annotations

from pathlib import Path
from typing import Literal

from pydantic import BaseModel, Field, field_validator, model_validator
from pydantic_settings import (  # type: ignore[import-not-found]
    BaseSettings,
    SettingsConfigDict,
)

LATEST_CONFIG_SCHEMA_VERSION = "1.0"

DEFAULT_GENESIS_SEED = "INIT_SEED_0000"

MacAlgorithm = Literal["HMAC-SHA256", "HMAC-SHA384", "HMAC-SHA512"]


class CoreSettings(BaseModel):
    """Library-wide behavior."""

    internal_logging_enabled: bool = Field(
        default=False,
        description="Emit DEBUG/WARN diagnostics for internal errors",
    )


class ChainSettings(BaseModel):
    """Where the chain lives and how entries are hashed."""

    store_path: str = Field(
        default="audit.log", description="Append-only store file"
    )
    head_path: str | None = Field(
        default=None,
        description="Head pointer file; defaults to '<store_path>.head'",
    )
    genesis_seed: str = Field(
        default=DEFAULT_GENESIS_SEED,
        description="previous_hash of the first entry; must match on both ends",
    )
    algorithm: MacAlgorithm = Field(default="HMAC-SHA256")
    codec: str = Field(default="delimited", description="Entry codec name")
    fsync_on_write: bool = Field(
        default=False,
        description="fsync the store after every append (the head is always fsynced)",
    )
    check_timestamps: bool = Field(
        default=False,
        description="Report entries whose timestamp moves backwards",
    )
    resume: bool = Field(
        default=True,
        description="Restore the appender cursor from head/store on open",
    )

    @field_validator("genesis_seed")
    @classmethod
    def _ensure_seed_non_empty(cls, value: str) -> str:
        if not value.strip():
            raise ValueError("genesis_seed must not be empty")
        return value

    @field_validator("store_path")
    @classmethod
    def _ensure_store_path_non_empty(cls, value: str) -> str:
        if not value.strip():
            raise ValueError("store_path must not be empty")
        return value

    def resolved_head_path(self) -> Path:
        if self.head_path:
            return Path(self.head_path)
        return default_head_path(self.store_path)


class KeySettings(BaseModel):
    """Where the secret MAC key is loaded from. The key is never stored here."""

    source: Literal["env", "file", "properties"] = Field(default="env")
    env_var: str = Field(default="CHAINLOG_SECRET_KEY")
    file_path: str | None = Field(default=None)
    properties_path: str = Field(default="audit.properties")
    properties_key: str = Field(default="audit.secret.key")
    encoding: Literal["raw", "base64"] = Field(
        default="raw",
        description="'raw' uses the UTF-8 bytes of the value; 'base64' decodes it",
    )

    @model_validator(mode="after")
    def _require_file_path(self) -> KeySettings:
        if self.source == "file" and not self.file_path:
            raise ValueError("keys.file_path is required when keys.source is 'file'")
        return self


class CodecSettings(BaseModel):
    """Options passed to the configured codec."""

    time_zone: str = Field(default="UTC", description="IANA zone for rendered times")
    date_format: str = Field(default="%Y-%m-%d %H:%M:%S")


class Settings(BaseSettings):
    """Top-level configuration model."""

    schema_version: str = Field(default=LATEST_CONFIG_SCHEMA_VERSION)

    core: CoreSettings = Field(default_factory=CoreSettings)
    chain: ChainSettings = Field(default_factory=ChainSettings)
    keys: KeySettings = Field(default_factory=KeySettings)
    codec: CodecSettings = Field(default_factory=CodecSettings)

    model_config = SettingsConfigDict(
        env_prefix="CHAINLOG_",
        env_nested_delimiter="__",
        extra="ignore",
        case_sensitive=False,
    )

    def to_dict(self) -> dict[str, object]:
        from typing import cast

        return cast(
            dict[str, object],
            self.model_dump(by_alias=True, exclude_none=True),
        )


def default_head_path(store_path: str | Path) -> Path:
    """Head pointer location used when none is configured."""
    store = Path(store_path)
    return store.with_name(store.name + ".head")


__all__ = [
    "DEFAULT_GENESIS_SEED",
    "ChainSettings",
    "CodecSettings",
    "CoreSettings",
    "KeySettings",
    "MacAlgorithm",
    "Settings",
    "default_head_path",
]
