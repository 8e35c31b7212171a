"""Metadata codec.

Encodes CacheEntry records to JSON bytes and decodes them back from metadata
files. Strict decoding distinguishes a missing or unreadable file from a
malformed one; tolerant decoding collapses every failure into a default.
"""

from __future__ import annotations

import logging
from typing import Any

from pydantic import ValidationError

from duocache.core.caching.errors import CacheError, ParseError, from_os_error
from duocache.core.caching.models import CacheEntry
from duocache.core.io import AbsolutePath, FileSystem, FileSystemSync

logger = logging.getLogger(__name__)

_MISSING: Any = object()


class MetadataCodec:
    """
    JSON codec for metadata records, bound to async and blocking filesystems.

    Args:
        fs: Async filesystem used by ``decode`` and ``decode_or_default``
        sync_fs: Blocking filesystem used by the ``*_sync`` variants
    """

    def __init__(self, fs: FileSystem, sync_fs: FileSystemSync) -> None:
        self.fs = fs
        self.sync_fs = sync_fs

    @staticmethod
    def encode(record: CacheEntry) -> bytes:
        """Serialize a record (two-space indented JSON, camelCase keys)."""
        return record.model_dump_json(indent=2, by_alias=True).encode("utf-8")

    @staticmethod
    def parse(raw: bytes, path: AbsolutePath | None = None) -> CacheEntry:
        """
        Validate raw metadata bytes into a record.

        Raises:
            ParseError: If the content is not a valid record
        """
        try:
            return CacheEntry.model_validate_json(raw)
        except ValidationError as e:
            raise ParseError(
                f"malformed metadata record: {e.error_count()} error(s)", path=path, cause=e
            ) from e

    async def decode(self, path: AbsolutePath) -> CacheEntry:
        """
        Read and parse a metadata file.

        Raises:
            NotFoundError: If the file does not exist
            CacheIOError: If the file cannot be read
            ParseError: If the content is not a valid record
        """
        try:
            raw = await self.fs.read_bytes(path)
        except OSError as e:
            raise from_os_error(e, path=path) from e
        return self.parse(raw, path)

    def decode_sync(self, path: AbsolutePath) -> CacheEntry:
        """Blocking variant of ``decode`` with the same failures."""
        try:
            raw = self.sync_fs.read_bytes(path)
        except OSError as e:
            raise from_os_error(e, path=path) from e
        return self.parse(raw, path)

    async def decode_or_default(self, path: AbsolutePath, default: Any = _MISSING) -> Any:
        """Decode, returning ``default`` (an empty dict if omitted) on any failure."""
        try:
            return await self.decode(path)
        except CacheError as e:
            logger.debug(f"Metadata decode fell back to default: {e}")
            return {} if default is _MISSING else default

    def decode_or_default_sync(self, path: AbsolutePath, default: Any = _MISSING) -> Any:
        """Blocking variant of ``decode_or_default``."""
        try:
            return self.decode_sync(path)
        except CacheError as e:
            logger.debug(f"Metadata decode fell back to default: {e}")
            return {} if default is _MISSING else default
