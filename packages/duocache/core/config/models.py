"""Configuration models for duocache."""

from __future__ import annotations

from pathlib import Path

from pydantic import BaseModel, ConfigDict, Field, field_validator

from duocache.core.caching.expiry import DEFAULT_TTL_MS, MAX_TTL_MS, MIN_TTL_MS
from duocache.core.caching.stream import DEFAULT_CHUNK_SIZE


class LoggingConfig(BaseModel):
    """Process-wide logging setup."""

    model_config = ConfigDict(extra="forbid")

    level: str = Field(
        default="INFO",
        pattern="^(DEBUG|INFO|WARNING|ERROR|CRITICAL)$",
        description="Root logging level",
    )
    structured: bool = Field(default=False, description="Emit JSON log lines")
    filename: str | None = Field(default=None, description="Log file (stdout if None)")

    @field_validator("level", mode="before")
    @classmethod
    def _upper_level(cls, value: object) -> object:
        return value.upper() if isinstance(value, str) else value


class CacheConfig(BaseModel):
    """Cache directory and store defaults."""

    model_config = ConfigDict(extra="forbid")

    directory: Path = Field(default=Path("files"), description="Directory holding all entries")
    default_ttl_ms: int = Field(
        default=DEFAULT_TTL_MS,
        ge=MIN_TTL_MS,
        le=MAX_TTL_MS,
        description="Ttl applied when a write passes no options",
    )
    chunk_size: int = Field(
        default=DEFAULT_CHUNK_SIZE, gt=0, description="Read/write chunk size for streams"
    )
    logging: LoggingConfig = Field(default_factory=LoggingConfig)
