"""Models for the entry store.

CacheEntry is the metadata record persisted next to each payload file;
WriteOptions enumerates every write option with its default.
"""

from __future__ import annotations

import base64
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any

from pydantic import BaseModel, ConfigDict, Field, field_serializer, field_validator

from duocache.core.caching.encodings import Encoding, parse_encoding
from duocache.core.caching.expiry import DEFAULT_TTL_MS, clamp_ttl

if TYPE_CHECKING:
    from duocache.core.caching.stream import PayloadStream


class FileInfo(BaseModel):
    """Location and save status of the payload file."""

    model_config = ConfigDict(populate_by_name=True)

    path: str = Field(description="Absolute path of the payload file")
    saved: bool = Field(default=False, description="True only once the payload write completed")
    encoding: Encoding


class CacheEntry(BaseModel):
    """
    Metadata record for one cache entry.

    Serialized with camelCase keys. ``expires - last_modified`` is the ttl the
    entry was written with and is preserved across resets.
    """

    model_config = ConfigDict(populate_by_name=True)

    name: str
    data: Any = Field(description="Payload as passed by the caller")
    encoding: Encoding
    related_data: Any = Field(default_factory=dict, alias="relatedData")
    last_modified: int = Field(alias="lastModified", description="Write time (ms since epoch)")
    expires: int = Field(description="last_modified + ttl (ms since epoch)")
    file: FileInfo

    @field_serializer("data", when_used="json")
    def _serialize_data(self, value: Any) -> Any:
        if isinstance(value, (bytes, bytearray, memoryview)):
            return base64.b64encode(bytes(value)).decode("ascii")
        return value

    @property
    def ttl_ms(self) -> int:
        """Original cache time."""
        return self.expires - self.last_modified


class WriteOptions(BaseModel):
    """
    Per-write options.

    Invalid values fall back to their defaults instead of failing: an
    unrecognized encoding means "pick from the payload type", an out-of-range
    ttl means one hour, a non-boolean override means True.
    """

    model_config = ConfigDict(extra="forbid")

    encoding: Encoding | None = Field(default=None, description="None picks from the payload type")
    subname: str | None = Field(default=None, description="Payload file sub-name, defaults to name")
    ttl_ms: int = Field(default=DEFAULT_TTL_MS, description="Clamped to [1 s, 365 days]")
    related_data: Any = Field(default_factory=dict)
    override: bool = Field(default=True, description="False fails if the entry exists")

    @field_validator("encoding", mode="before")
    @classmethod
    def _parse_encoding(cls, value: Any) -> Encoding | None:
        return parse_encoding(value)

    @field_validator("subname", mode="before")
    @classmethod
    def _parse_subname(cls, value: Any) -> str | None:
        return value if isinstance(value, str) and value.strip() else None

    @field_validator("ttl_ms", mode="before")
    @classmethod
    def _clamp_ttl(cls, value: Any) -> int:
        return clamp_ttl(value)

    @field_validator("override", mode="before")
    @classmethod
    def _parse_override(cls, value: Any) -> bool:
        return value if isinstance(value, bool) else True


class ClearSummary(BaseModel):
    """Outcome of clearing the cache directory."""

    removed: int = Field(ge=0)
    message: str


@dataclass
class ReadResult:
    """A decoded record plus the opened payload stream."""

    record: CacheEntry
    stream: PayloadStream
