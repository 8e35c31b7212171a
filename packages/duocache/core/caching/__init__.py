"""Filesystem-backed cache of named, time-limited entries.

Each entry is stored as two files in one directory: a JSON metadata record
and the raw payload, which can be read back as a stream.

Key features:
- Async file I/O using core.io FileSystem, plus never-raising sync variants
- Buffered writes (payload, then metadata) and concurrent streaming writes
- Expiry with ttl preserved across resets
- Exclusive-create "no override" semantics with no in-process locking

Example:
    >>> from duocache.core.caching import EntryStore, WriteOptions
    >>> from duocache.core.io import RealFileSystem, absolute_path
    >>>
    >>> store = EntryStore(RealFileSystem(), absolute_path("files"))
    >>> await store.write("styles", ".a { color: red; }", WriteOptions(ttl_ms=60_000))
    >>> result = await store.read("styles")
    >>> css = await result.stream.read()
"""

from duocache.core.caching.barrier import CompletionBarrier
from duocache.core.caching.codec import MetadataCodec
from duocache.core.caching.encodings import DEFAULT_ENCODING, Encoding
from duocache.core.caching.errors import (
    AlreadyExistsError,
    CacheError,
    CacheIOError,
    ErrorCode,
    ExpiredError,
    InvalidInputError,
    NotFoundError,
    ParseError,
    PartialWriteError,
)
from duocache.core.caching.expiry import DEFAULT_TTL_MS, clamp_ttl, is_valid
from duocache.core.caching.models import (
    CacheEntry,
    ClearSummary,
    FileInfo,
    ReadResult,
    WriteOptions,
)
from duocache.core.caching.store import CONF_SUFFIX, EntryStore
from duocache.core.caching.stream import PayloadStream, open_payload_stream

__all__ = [
    # Store
    "CONF_SUFFIX",
    "EntryStore",
    # Models
    "CacheEntry",
    "ClearSummary",
    "FileInfo",
    "ReadResult",
    "WriteOptions",
    # Components
    "CompletionBarrier",
    "MetadataCodec",
    "PayloadStream",
    "open_payload_stream",
    # Encodings / expiry
    "DEFAULT_ENCODING",
    "DEFAULT_TTL_MS",
    "Encoding",
    "clamp_ttl",
    "is_valid",
    # Errors
    "AlreadyExistsError",
    "CacheError",
    "CacheIOError",
    "ErrorCode",
    "ExpiredError",
    "InvalidInputError",
    "NotFoundError",
    "ParseError",
    "PartialWriteError",
]
