"""Filesystem abstraction layer for duocache.

Provides safe, testable, async-first filesystem operations with blocking
counterparts for the synchronous cache API.

Example (async):
    >>> from duocache.core.io import RealFileSystem, absolute_path
    >>> fs = RealFileSystem()
    >>> path = fs.join(absolute_path("/tmp"), "cache", "test.bin")
    >>> await fs.write_bytes(path, b"Hello, world!")
    >>> content = await fs.read_bytes(path)

Example (sync):
    >>> from duocache.core.io import RealFileSystemSync, absolute_path
    >>> fs = RealFileSystemSync()
    >>> path = fs.join(absolute_path("/tmp"), "cache", "test.bin")
    >>> fs.write_bytes(path, b"Hello, world!")
    >>> content = fs.read_bytes(path)
"""

from .impl_fake import FakeFileSystem, FakeFileSystemSync
from .impl_real import RealFileSystem, RealFileSystemSync
from .models import AbsolutePath, WriteResult, absolute_path
from .protocols import ByteReader, ByteWriter, FileSystem, FileSystemSync

__all__ = [
    # Path types and constructors
    "AbsolutePath",
    "absolute_path",
    # Result types
    "WriteResult",
    # Protocols
    "ByteReader",
    "ByteWriter",
    "FileSystem",
    "FileSystemSync",
    # Implementations
    "RealFileSystem",
    "RealFileSystemSync",
    "FakeFileSystem",
    "FakeFileSystemSync",
]
