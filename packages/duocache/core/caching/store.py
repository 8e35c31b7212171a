"""Filesystem-backed entry store.

Each named entry is a pair of files in one directory:

- ``<name>_conf.json``: the metadata record (CacheEntry as JSON)
- ``<name>_conf.json_<subname>``: the raw payload

Buffered writes persist the payload first and the metadata second, so the
metadata always describes whether the payload made it to disk. Streaming
writes run both sinks concurrently behind a CompletionBarrier. The only
concurrency primitive relied upon is the filesystem's exclusive-create flag.
"""

from __future__ import annotations

import asyncio
import itertools
import logging
import time
from collections.abc import Callable, Iterator
from contextlib import contextmanager
from pathlib import Path
from typing import TYPE_CHECKING, Any

from duocache.core.caching.barrier import CompletionBarrier
from duocache.core.caching.codec import MetadataCodec
from duocache.core.caching.encodings import resolve_encoding, serialize_payload
from duocache.core.caching.errors import (
    CacheError,
    CacheIOError,
    ErrorCode,
    ExpiredError,
    InvalidInputError,
    ParseError,
    PartialWriteError,
    from_os_error,
)
from duocache.core.caching.expiry import is_valid
from duocache.core.caching.models import (
    CacheEntry,
    ClearSummary,
    FileInfo,
    ReadResult,
    WriteOptions,
)
from duocache.core.caching.stream import DEFAULT_CHUNK_SIZE, open_payload_stream
from duocache.core.io import (
    AbsolutePath,
    FileSystem,
    FileSystemSync,
    RealFileSystem,
    RealFileSystemSync,
    absolute_path,
)
from duocache.core.utils.timing import Stopwatch

if TYPE_CHECKING:
    from duocache.core.config.models import CacheConfig

logger = logging.getLogger(__name__)

CONF_SUFFIX = "_conf.json"

_FORBIDDEN_NAME_CHARS = ("/", "\\", "\0")

_MISSING: Any = object()

Clock = Callable[[], int]
WriteCallback = Callable[[CacheError | None, CacheEntry | None], None]


def now_ms() -> int:
    """Current time in milliseconds since epoch."""
    return int(time.time() * 1000)


def validate_name(name: Any) -> str:
    """
    Check an entry name.

    Raises:
        InvalidInputError: If name is not a non-blank string or contains a path separator
    """
    if not isinstance(name, str) or not name.strip():
        raise InvalidInputError("name of the entry must be a non-empty string")
    if any(char in name for char in _FORBIDDEN_NAME_CHARS):
        raise InvalidInputError(f"name must not contain path separators: {name!r}")
    return name


def validate_payload(payload: Any) -> None:
    """
    Reject missing or empty payloads.

    Raises:
        InvalidInputError: If payload is None or an empty string, buffer or container
    """
    if payload is None:
        raise InvalidInputError("no data to cache")
    if isinstance(payload, (str, bytes, bytearray, memoryview, dict, list, tuple)):
        if len(payload) == 0:
            raise InvalidInputError("no data to cache: payload is empty")


def metadata_file_name(name: str) -> str:
    return f"{name}{CONF_SUFFIX}"


def payload_file_name(name: str, subname: str | None = None) -> str:
    """
    Payload file name for an entry.

    Falls back to ``name`` when no sub-name is given or when the sub-name
    would collide with the metadata file name.
    """
    conf_name = metadata_file_name(name)
    if subname is None or not subname.strip() or subname == conf_name:
        return f"{conf_name}_{name}"
    if any(char in subname for char in _FORBIDDEN_NAME_CHARS):
        raise InvalidInputError(f"subname must not contain path separators: {subname!r}")
    return f"{conf_name}_{subname}"


def _chunked(content: bytes, size: int) -> Iterator[bytes]:
    for offset in range(0, len(content), size):
        yield content[offset : offset + size]


class EntryStore:
    """
    Named, time-limited entries stored as metadata + payload file pairs.

    Async operations are primary. The ``*_sync`` operations block the calling
    thread, never raise, and report failures as ``False`` or a default value.

    Args:
        fs: Async filesystem implementation
        root: Absolute path of the cache directory
        sync_fs: Blocking filesystem for the ``*_sync`` operations
        clock: Returns "now" in milliseconds since epoch
        chunk_size: Chunk size for streaming reads and writes
        default_ttl_ms: Ttl used when a write passes no options
        stopwatch: Optional instrumentation; each async operation is timed
    """

    def __init__(
        self,
        fs: FileSystem,
        root: AbsolutePath,
        sync_fs: FileSystemSync | None = None,
        *,
        clock: Clock | None = None,
        chunk_size: int = DEFAULT_CHUNK_SIZE,
        default_ttl_ms: int | None = None,
        stopwatch: Stopwatch | None = None,
    ) -> None:
        self.fs = fs
        self.root = root
        self.sync_fs = sync_fs if sync_fs is not None else RealFileSystemSync()
        self.codec = MetadataCodec(fs, self.sync_fs)
        self.chunk_size = chunk_size
        self.default_ttl_ms = default_ttl_ms
        self.stopwatch = stopwatch
        self._clock = clock or now_ms
        self._lap_ids = itertools.count(1)
        self._initialized = False
        self._init_lock = asyncio.Lock()

    @classmethod
    def from_config(cls, config: CacheConfig, **kwargs: Any) -> EntryStore:
        """Build a store on the real filesystem from a CacheConfig."""
        return cls(
            RealFileSystem(),
            absolute_path(config.directory),
            RealFileSystemSync(),
            chunk_size=config.chunk_size,
            default_ttl_ms=config.default_ttl_ms,
            **kwargs,
        )

    async def initialize(self) -> None:
        """
        Ensure the cache directory exists.

        Called automatically before writes and clears. Safe to call multiple times.
        """
        async with self._init_lock:
            if not self._initialized:
                await self.fs.mkdirs(self.root, exist_ok=True)
                self._initialized = True

    # ------------------------------------------------------------------
    # Paths
    # ------------------------------------------------------------------

    def _join(self, file_name: str) -> AbsolutePath:
        try:
            return self.fs.join(self.root, file_name)
        except ValueError as e:
            raise InvalidInputError(str(e), cause=e) from e

    def _meta_path(self, name: str) -> AbsolutePath:
        return self._join(metadata_file_name(name))

    def _payload_path(self, name: str, subname: str | None) -> AbsolutePath:
        return self._join(payload_file_name(name, subname))

    def _recorded_payload_path(self, record: CacheEntry, meta_path: AbsolutePath) -> AbsolutePath:
        """Payload path stored in a record, refused if it points outside the cache directory."""
        try:
            return self.fs.join(self.root, record.file.path)
        except ValueError as e:
            raise ParseError(
                f"payload path outside cache directory: {record.file.path}",
                path=meta_path,
                cause=e,
            ) from e

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    @contextmanager
    def _timed(self, operation: str, name: str = "") -> Iterator[None]:
        if self.stopwatch is None:
            yield
            return
        label = f"{operation}:{name}#{next(self._lap_ids)}"
        with self.stopwatch.measure(label) as lap:
            yield
        logger.debug(f"{operation} {name} took {lap.elapsed_ms:.3f} ms")

    def _options(self, options: WriteOptions | None) -> WriteOptions:
        if options is not None:
            return options
        if self.default_ttl_ms is not None:
            return WriteOptions(ttl_ms=self.default_ttl_ms)
        return WriteOptions()

    def _prepare(
        self, name: str, payload: Any, options: WriteOptions, saved: bool
    ) -> tuple[CacheEntry, bytes]:
        """Build the record and the payload bytes for a write (no I/O)."""
        encoding = resolve_encoding(options.encoding, payload)
        content = serialize_payload(payload, encoding)
        payload_path = self._payload_path(name, options.subname)

        last_modified = self._clock()
        record = CacheEntry(
            name=name,
            data=payload,
            encoding=encoding,
            related_data=options.related_data,
            last_modified=last_modified,
            expires=last_modified + options.ttl_ms,
            file=FileInfo(path=str(payload_path), saved=saved, encoding=encoding),
        )
        return record, content

    def _is_live(self, record: Any) -> bool:
        return (
            isinstance(record, CacheEntry)
            and is_valid(record.last_modified, record.expires, self._clock())
            and record.data is not None
            and record.file.saved
        )

    def _refreshed(self, record: CacheEntry, meta_path: AbsolutePath) -> CacheEntry:
        """
        Copy of ``record`` whose ttl restarts now, keeping the original cache time.

        Both timestamps move forward by at least one millisecond, even when
        the clock has not advanced since the record was written.
        """
        if not record.expires or not record.last_modified:
            raise ParseError(
                f"no expires or lastModified in record {record.name!r}", path=meta_path
            )
        now = max(self._clock(), record.last_modified + 1)
        return record.model_copy(
            update={"last_modified": now, "expires": now + record.ttl_ms}, deep=True
        )

    async def _pour(
        self,
        path: AbsolutePath,
        chunks: Iterator[bytes],
        exclusive: bool,
        opened: list[AbsolutePath],
    ) -> None:
        """Write chunks through an append-only sink, noting the path once it is open."""
        writer = await self.fs.open_writer(path, exclusive=exclusive)
        opened.append(path)
        try:
            for chunk in chunks:
                await writer.write(chunk)
        finally:
            await writer.close()

    async def _discard(self, paths: list[AbsolutePath]) -> None:
        """Best-effort removal of files left by a failed write."""
        for path in paths:
            try:
                await self.fs.remove(path)
            except OSError as e:
                logger.warning(f"Could not remove {path} after failed write: {e}")

    # ------------------------------------------------------------------
    # Writes
    # ------------------------------------------------------------------

    async def write(
        self, name: str, payload: Any, options: WriteOptions | None = None
    ) -> CacheEntry:
        """
        Buffered write: payload file first, then metadata file.

        The metadata is written even when the payload write failed, with
        ``file.saved`` left False, and the call then raises PartialWriteError.

        Returns:
            The persisted record

        Raises:
            InvalidInputError: Bad name or empty payload (nothing written)
            AlreadyExistsError: Override disabled and the entry exists
            CacheIOError: Metadata write failed
            PartialWriteError: Metadata written but payload write failed
        """
        name = validate_name(name)
        validate_payload(payload)
        options = self._options(options)
        record, content = self._prepare(name, payload, options, saved=False)
        exclusive = not options.override
        meta_path = self._meta_path(name)
        payload_path = AbsolutePath(Path(record.file.path))

        await self.initialize()
        with self._timed("write", name):
            payload_error: OSError | None = None
            try:
                await self.fs.write_bytes(payload_path, content, exclusive=exclusive)
                record.file.saved = True
            except OSError as e:
                payload_error = e

            try:
                await self.fs.write_bytes(
                    meta_path, self.codec.encode(record), exclusive=exclusive
                )
            except OSError as e:
                # A conflict here means the payload file was created by this call
                if isinstance(e, FileExistsError) and record.file.saved:
                    await self._discard([payload_path])
                raise from_os_error(e, path=meta_path) from e

        if payload_error is not None:
            code = (
                ErrorCode.ALREADY_EXISTS
                if isinstance(payload_error, FileExistsError)
                else ErrorCode.IO_ERROR
            )
            logger.warning(f"Partial write for {name}: payload not saved ({payload_error})")
            raise PartialWriteError(
                f"metadata saved but payload write failed: {payload_error}",
                code=code,
                path=payload_path,
                cause=payload_error,
                record=record,
            ) from payload_error

        logger.info(f"Cached {name} (ttl_ms={options.ttl_ms}, encoding={record.encoding.value})")
        return record

    async def write_streaming(
        self,
        name: str,
        payload: Any,
        options: WriteOptions | None = None,
        callback: WriteCallback | None = None,
    ) -> CacheEntry | None:
        """
        Streaming write: payload and metadata sinks run concurrently.

        Completes once both sinks finished; the first sink error wins and
        later errors or completions are dropped. ``file.saved`` is set True
        up front since the write succeeds or fails as a whole: on failure the
        remaining sink is allowed to finish and every file this call opened
        is removed again.

        With ``callback`` the outcome is delivered exactly once as
        ``callback(error, None)`` or ``callback(None, record)`` and nothing is
        raised; without it the record is returned or the error raised.
        """
        try:
            record = await self._write_streaming(name, payload, options)
        except CacheError as e:
            if callback is None:
                raise
            callback(e, None)
            return None

        if callback is not None:
            callback(None, record)
        return record

    async def _write_streaming(
        self, name: str, payload: Any, options: WriteOptions | None
    ) -> CacheEntry:
        name = validate_name(name)
        validate_payload(payload)
        options = self._options(options)
        record, content = self._prepare(name, payload, options, saved=True)
        exclusive = not options.override
        paths = {
            "payload": AbsolutePath(Path(record.file.path)),
            "metadata": self._meta_path(name),
        }

        opened: list[AbsolutePath] = []

        await self.initialize()
        with self._timed("write_streaming", name):
            barrier = CompletionBarrier()
            barrier.add(
                "payload",
                self._pour(
                    paths["payload"], _chunked(content, self.chunk_size), exclusive, opened
                ),
            )
            barrier.add(
                "metadata",
                self._pour(
                    paths["metadata"], iter([self.codec.encode(record)]), exclusive, opened
                ),
            )
            try:
                await barrier.wait()
            except OSError as e:
                # The other sink may still be running; let it finish before cleaning up
                await barrier.settle()
                await self._discard(opened)
                raise from_os_error(e, path=paths.get(barrier.failed_label or "")) from e

        logger.info(f"Cached {name} via streams (ttl_ms={options.ttl_ms})")
        return record

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    async def read(self, name: str) -> ReadResult:
        """
        Decode the record, open the payload stream, then check expiry.

        Raises:
            NotFoundError: No metadata file (nothing attached), or no payload
                file (record attached)
            ParseError: Metadata file is malformed
            ExpiredError: Ttl elapsed; record and opened stream are attached
            CacheIOError: Other I/O failure
        """
        name = validate_name(name)
        meta_path = self._meta_path(name)

        with self._timed("read", name):
            record = await self.codec.decode(meta_path)

            try:
                payload_path = self._recorded_payload_path(record, meta_path)
                stream = await open_payload_stream(
                    self.fs, payload_path, record.file.encoding, self.chunk_size
                )
            except CacheError as e:
                e.record = record
                raise

        if not is_valid(record.last_modified, record.expires, self._clock()):
            logger.debug(f"Cache entry expired: {name}")
            raise ExpiredError(
                f"entry {name!r} has expired", path=payload_path, record=record, stream=stream
            )

        return ReadResult(record=record, stream=stream)

    def read_sync(self, name: str, default: Any = _MISSING) -> Any:
        """
        Decoded record without expiry check or stream.

        Returns ``default`` (an empty dict if omitted) when the entry is
        absent or malformed. Never raises.
        """
        fallback = {} if default is _MISSING else default
        try:
            meta_path = self._meta_path(validate_name(name))
        except InvalidInputError:
            return fallback
        return self.codec.decode_or_default_sync(meta_path, fallback)

    async def exists(self, name: str) -> bool:
        """True iff the record decodes, is not expired, has data and a saved payload."""
        try:
            meta_path = self._meta_path(validate_name(name))
        except InvalidInputError:
            return False
        return self._is_live(await self.codec.decode_or_default(meta_path, None))

    def exists_sync(self, name: str) -> bool:
        """Blocking variant of ``exists``."""
        try:
            meta_path = self._meta_path(validate_name(name))
        except InvalidInputError:
            return False
        return self._is_live(self.codec.decode_or_default_sync(meta_path, None))

    # ------------------------------------------------------------------
    # Reset
    # ------------------------------------------------------------------

    async def reset(self, name: str) -> CacheEntry:
        """
        Restart an entry's ttl from now, keeping its original cache time.

        Returns:
            The refreshed record

        Raises:
            NotFoundError: No metadata file
            ParseError: Malformed record or missing timestamps
            CacheIOError: Metadata could not be rewritten
        """
        name = validate_name(name)
        meta_path = self._meta_path(name)

        with self._timed("reset", name):
            record = await self.codec.decode(meta_path)
            refreshed = self._refreshed(record, meta_path)
            try:
                await self.fs.write_bytes(meta_path, self.codec.encode(refreshed))
            except OSError as e:
                raise from_os_error(e, path=meta_path) from e

        logger.info(f"Reset {name} (expires={refreshed.expires})")
        return refreshed

    def reset_sync(self, name: str) -> bool:
        """Blocking ``reset``; returns False instead of raising."""
        try:
            meta_path = self._meta_path(validate_name(name))
            record = self.codec.decode_or_default_sync(meta_path, None)
            if record is None:
                return False
            refreshed = self._refreshed(record, meta_path)
            self.sync_fs.write_bytes(meta_path, self.codec.encode(refreshed))
        except (CacheError, OSError) as e:
            logger.debug(f"reset_sync({name!r}) failed: {e}")
            return False
        return True

    # ------------------------------------------------------------------
    # Delete / clear
    # ------------------------------------------------------------------

    async def delete(self, name: str) -> str:
        """
        Remove the payload file, then the metadata file.

        A payload that was never saved (``file.saved`` False) may be missing.

        Returns:
            Confirmation message

        Raises:
            NotFoundError: No metadata file, or a saved payload is missing
            ParseError: Malformed record
            CacheIOError: A removal failed; the message says which file survived
        """
        name = validate_name(name)
        meta_path = self._meta_path(name)

        with self._timed("delete", name):
            record = await self.codec.decode(meta_path)
            payload_path = self._recorded_payload_path(record, meta_path)

            try:
                await self.fs.remove(payload_path)
            except FileNotFoundError as e:
                if record.file.saved:
                    raise from_os_error(e, path=payload_path, record=record) from e
                logger.debug(f"Payload of {name} was never saved: {payload_path}")
            except OSError as e:
                raise from_os_error(e, path=payload_path, record=record) from e

            try:
                await self.fs.remove(meta_path)
            except OSError as e:
                raise CacheIOError(
                    f"payload removed but metadata removal failed: {e}",
                    path=meta_path,
                    cause=e,
                    record=record,
                ) from e

        logger.info(f"Deleted {name}")
        return f"{meta_path} and {payload_path} have been deleted"

    def delete_sync(self, name: str) -> bool:
        """Blocking ``delete``; returns False instead of raising."""
        try:
            meta_path = self._meta_path(validate_name(name))
            record = self.codec.decode_sync(meta_path)
            payload_path = self._recorded_payload_path(record, meta_path)
            try:
                self.sync_fs.remove(payload_path)
            except FileNotFoundError:
                if record.file.saved:
                    raise
            self.sync_fs.remove(meta_path)
        except (CacheError, OSError) as e:
            logger.debug(f"delete_sync({name!r}) failed: {e}")
            return False
        return True

    async def clear(self) -> ClearSummary:
        """
        Remove every file in the cache directory.

        Raises:
            CacheIOError: On the first listing or removal failure
        """
        await self.initialize()
        with self._timed("clear"):
            try:
                names = await self.fs.listdir(self.root)
            except OSError as e:
                raise from_os_error(e, path=self.root) from e

            for file_name in names:
                path = self._join(file_name)
                try:
                    await self.fs.remove(path)
                except OSError as e:
                    raise CacheIOError(
                        f"could not remove {file_name}: {e}", path=path, cause=e
                    ) from e

        if not names:
            return ClearSummary(removed=0, message="cache is already cleared")

        logger.info(f"Cleared {len(names)} files from {self.root}")
        return ClearSummary(
            removed=len(names), message=f"{len(names)} files have been removed from cache"
        )

    def clear_sync(self) -> bool:
        """Blocking ``clear``; returns False instead of raising."""
        try:
            for file_name in self.sync_fs.listdir(self.root):
                self.sync_fs.remove(self.sync_fs.join(self.root, file_name))
        except (OSError, ValueError) as e:
            logger.debug(f"clear_sync failed: {e}")
            return False
        return True
