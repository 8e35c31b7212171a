"""Protocols for filesystem operations.

Defines the async-first FileSystem protocol, the blocking FileSystemSync
protocol, and the byte reader/writer handles used for streaming.
"""

from typing import Protocol

from .models import AbsolutePath, WriteResult


class ByteReader(Protocol):
    """Forward-only handle on an open file."""

    async def read(self, size: int = -1) -> bytes:
        """Read up to ``size`` bytes; ``b""`` at end of file."""
        ...

    async def close(self) -> None:
        """Release the underlying file."""
        ...


class ByteWriter(Protocol):
    """Append-only handle on a file opened for writing."""

    async def write(self, data: bytes) -> int:
        """Append ``data`` and return the number of bytes written."""
        ...

    async def close(self) -> None:
        """Flush and release the underlying file."""
        ...


class FileSystem(Protocol):
    """
    Protocol for async filesystem operations.

    Writes with ``exclusive=True`` must rely on the platform's atomic
    exclusive-create flag and raise FileExistsError when the target exists.
    """

    # Path operations (sync - no I/O)
    def join(self, base: AbsolutePath, *parts: str) -> AbsolutePath:
        """
        Safely join path components.

        Raises:
            ValueError: If result escapes base directory
        """
        ...

    async def exists(self, path: AbsolutePath) -> bool:
        """Check if path exists (file or directory)."""
        ...

    async def read_bytes(self, path: AbsolutePath) -> bytes:
        """
        Read file contents.

        Raises:
            FileNotFoundError: If file doesn't exist
            OSError: On read failure
        """
        ...

    async def write_bytes(
        self,
        path: AbsolutePath,
        content: bytes,
        exclusive: bool = False,
    ) -> WriteResult:
        """
        Write a whole file.

        Args:
            path: Target file path
            content: Bytes to write
            exclusive: Fail if the file already exists (atomic create)

        Raises:
            FileExistsError: If exclusive and the file exists
            OSError: On write failure
        """
        ...

    async def open_reader(self, path: AbsolutePath) -> ByteReader:
        """
        Open a file for sequential reading.

        Raises:
            FileNotFoundError: If file doesn't exist
            OSError: On open failure
        """
        ...

    async def open_writer(self, path: AbsolutePath, exclusive: bool = False) -> ByteWriter:
        """
        Open an append-only sink, truncating unless ``exclusive``.

        Raises:
            FileExistsError: If exclusive and the file exists
            OSError: On open failure
        """
        ...

    async def mkdirs(self, path: AbsolutePath, exist_ok: bool = True) -> None:
        """Create directory and all parents."""
        ...

    async def listdir(self, path: AbsolutePath) -> list[str]:
        """
        List directory contents (names only).

        Raises:
            FileNotFoundError: If directory doesn't exist
        """
        ...

    async def remove(self, path: AbsolutePath) -> None:
        """
        Remove a file.

        Raises:
            FileNotFoundError: If file doesn't exist
            OSError: On removal failure
        """
        ...


class FileSystemSync(Protocol):
    """
    Blocking counterpart of FileSystem.

    Used by the ``*_sync`` cache operations, which must work whether or not
    an event loop is running in the calling thread.
    """

    def join(self, base: AbsolutePath, *parts: str) -> AbsolutePath:
        """Safely join path components (no I/O)."""
        ...

    def exists(self, path: AbsolutePath) -> bool:
        """Check if path exists (blocking)."""
        ...

    def read_bytes(self, path: AbsolutePath) -> bytes:
        """Read file contents (blocking)."""
        ...

    def write_bytes(
        self,
        path: AbsolutePath,
        content: bytes,
        exclusive: bool = False,
    ) -> WriteResult:
        """Write a whole file (blocking)."""
        ...

    def mkdirs(self, path: AbsolutePath, exist_ok: bool = True) -> None:
        """Create directory and parents (blocking)."""
        ...

    def listdir(self, path: AbsolutePath) -> list[str]:
        """List directory contents (blocking)."""
        ...

    def remove(self, path: AbsolutePath) -> None:
        """Remove file (blocking)."""
        ...
