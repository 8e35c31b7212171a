"""In-memory filesystem for fast, isolated testing.

Simulates filesystem operations without disk I/O. Failures can be injected
per path to exercise partial-write and removal error handling.
"""

import asyncio
import os
from pathlib import Path

from .models import AbsolutePath, WriteResult


class FakeReader:
    """Forward-only reader over an in-memory snapshot."""

    def __init__(self, content: bytes) -> None:
        self._content = content
        self._offset = 0
        self.closed = False

    async def read(self, size: int = -1) -> bytes:
        if self.closed:
            raise ValueError("read of closed file")
        await asyncio.sleep(0)
        if size < 0:
            size = len(self._content) - self._offset
        chunk = self._content[self._offset : self._offset + size]
        self._offset += len(chunk)
        return chunk

    async def close(self) -> None:
        self.closed = True


class FakeWriter:
    """Append-only writer into a FakeFileSystem entry."""

    def __init__(self, fs: "FakeFileSystem", path_str: str) -> None:
        self._fs = fs
        self._path_str = path_str
        self.closed = False

    async def write(self, data: bytes) -> int:
        if self.closed:
            raise ValueError("write to closed file")
        # Yield so concurrent writers interleave
        await asyncio.sleep(0)
        self._fs._check_fault(self._fs.write_faults, self._path_str)
        self._fs._files[self._path_str] += bytes(data)
        return len(data)

    async def close(self) -> None:
        self.closed = True


class FakeFileSystem:
    """
    In-memory async filesystem for testing.

    Async operations complete immediately but maintain async interface.
    Not thread-safe (use per-test instance).

    Attributes:
        write_faults: Path string -> exception raised on write to that path
        remove_faults: Path string -> exception raised on removal of that path
    """

    def __init__(self) -> None:
        self._files: dict[str, bytes] = {}
        self._dirs: set[str] = {"/"}  # Root always exists
        self.write_faults: dict[str, OSError] = {}
        self.remove_faults: dict[str, OSError] = {}

    @staticmethod
    def _key(path: AbsolutePath | str) -> str:
        return str(Path(path))

    def _check_fault(self, faults: dict[str, OSError], path_str: str) -> None:
        exc = faults.get(path_str)
        if exc is not None:
            raise exc

    def _children(self, path_str: str) -> list[str]:
        parent = Path(path_str)
        children = {Path(p).name for p in self._files if Path(p).parent == parent}
        children |= {Path(p).name for p in self._dirs if p != path_str and Path(p).parent == parent}
        return sorted(children)

    def _check_parent(self, path_str: str) -> None:
        parent = str(Path(path_str).parent)
        if parent not in self._dirs:
            raise FileNotFoundError(f"Directory not found: {parent}")

    def join(self, base: AbsolutePath, *parts: str) -> AbsolutePath:
        """Join paths (sync - no I/O)."""
        base_str = os.path.normpath(str(Path("/") / base))
        result = os.path.normpath(os.path.join(base_str, *parts))
        if result != base_str and not result.startswith(base_str.rstrip("/") + "/"):
            raise ValueError(f"Path traversal detected: {result} escapes {base}")
        return AbsolutePath(Path(result))

    async def exists(self, path: AbsolutePath) -> bool:
        """Check existence (async, immediate)."""
        path_str = self._key(path)
        return path_str in self._files or path_str in self._dirs

    async def is_file(self, path: AbsolutePath) -> bool:
        """Check if file (async, immediate)."""
        return self._key(path) in self._files

    async def read_bytes(self, path: AbsolutePath) -> bytes:
        """Read bytes (async, immediate)."""
        path_str = self._key(path)
        if path_str in self._dirs:
            raise IsADirectoryError(f"Is a directory: {path}")
        if path_str not in self._files:
            raise FileNotFoundError(f"File not found: {path}")
        return self._files[path_str]

    async def write_bytes(
        self,
        path: AbsolutePath,
        content: bytes,
        exclusive: bool = False,
    ) -> WriteResult:
        """Write bytes (async, immediate)."""
        path_str = self._key(path)
        self._check_parent(path_str)
        if exclusive and path_str in self._files:
            raise FileExistsError(f"File exists: {path}")
        self._check_fault(self.write_faults, path_str)

        self._files[path_str] = bytes(content)

        return WriteResult(path=path_str, bytes_written=len(content), duration_ms=0.0)

    async def open_reader(self, path: AbsolutePath) -> FakeReader:
        """Open reader over the current contents."""
        return FakeReader(await self.read_bytes(path))

    async def open_writer(self, path: AbsolutePath, exclusive: bool = False) -> FakeWriter:
        """Open append-only writer, truncating unless exclusive."""
        path_str = self._key(path)
        self._check_parent(path_str)
        if exclusive and path_str in self._files:
            raise FileExistsError(f"File exists: {path}")
        self._files[path_str] = b""
        return FakeWriter(self, path_str)

    async def mkdirs(self, path: AbsolutePath, exist_ok: bool = True) -> None:
        """Create directory (async, immediate)."""
        path_str = self._key(path)
        if not exist_ok and path_str in self._dirs:
            raise FileExistsError(f"Directory exists: {path}")
        parts = Path(path_str).parts
        for i in range(1, len(parts) + 1):
            self._dirs.add(str(Path(*parts[:i])))

    async def listdir(self, path: AbsolutePath) -> list[str]:
        """List directory (async, immediate)."""
        path_str = self._key(path)
        if path_str not in self._dirs:
            raise FileNotFoundError(f"Directory not found: {path}")

        return self._children(path_str)

    async def remove(self, path: AbsolutePath) -> None:
        """Remove file (async, immediate)."""
        path_str = self._key(path)
        if path_str not in self._files:
            raise FileNotFoundError(f"File not found: {path}")
        self._check_fault(self.remove_faults, path_str)
        del self._files[path_str]


class FakeFileSystemSync:
    """
    Blocking view onto a FakeFileSystem.

    Shares state with the wrapped async instance so sync and async cache
    operations observe the same files.
    """

    def __init__(self, fs: FakeFileSystem | None = None) -> None:
        self._async_fs = fs if fs is not None else FakeFileSystem()

    def join(self, base: AbsolutePath, *parts: str) -> AbsolutePath:
        """Join paths (no I/O)."""
        return self._async_fs.join(base, *parts)

    def exists(self, path: AbsolutePath) -> bool:
        """Check existence (blocking)."""
        path_str = self._async_fs._key(path)
        return path_str in self._async_fs._files or path_str in self._async_fs._dirs

    def read_bytes(self, path: AbsolutePath) -> bytes:
        """Read file (blocking)."""
        path_str = self._async_fs._key(path)
        if path_str not in self._async_fs._files:
            raise FileNotFoundError(f"File not found: {path}")
        return self._async_fs._files[path_str]

    def write_bytes(
        self,
        path: AbsolutePath,
        content: bytes,
        exclusive: bool = False,
    ) -> WriteResult:
        """Write file (blocking)."""
        fs = self._async_fs
        path_str = fs._key(path)
        fs._check_parent(path_str)
        if exclusive and path_str in fs._files:
            raise FileExistsError(f"File exists: {path}")
        fs._check_fault(fs.write_faults, path_str)
        fs._files[path_str] = bytes(content)
        return WriteResult(path=path_str, bytes_written=len(content), duration_ms=0.0)

    def mkdirs(self, path: AbsolutePath, exist_ok: bool = True) -> None:
        """Create directory (blocking)."""
        fs = self._async_fs
        path_str = fs._key(path)
        if not exist_ok and path_str in fs._dirs:
            raise FileExistsError(f"Directory exists: {path}")
        parts = Path(path_str).parts
        for i in range(1, len(parts) + 1):
            fs._dirs.add(str(Path(*parts[:i])))

    def listdir(self, path: AbsolutePath) -> list[str]:
        """List directory (blocking)."""
        fs = self._async_fs
        path_str = fs._key(path)
        if path_str not in fs._dirs:
            raise FileNotFoundError(f"Directory not found: {path}")
        return fs._children(path_str)

    def remove(self, path: AbsolutePath) -> None:
        """Remove file (blocking)."""
        fs = self._async_fs
        path_str = fs._key(path)
        if path_str not in fs._files:
            raise FileNotFoundError(f"File not found: {path}")
        fs._check_fault(fs.remove_faults, path_str)
        del fs._files[path_str]
