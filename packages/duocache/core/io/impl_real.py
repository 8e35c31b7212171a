"""Real filesystem implementation using aiofiles for async I/O.

Non-exclusive writes are atomic via temp file + os.replace(); exclusive
writes use the O_EXCL create flag so the existence check and the create are
a single filesystem operation.
"""

import asyncio
import contextlib
import os
import time
from pathlib import Path
from tempfile import NamedTemporaryFile

import aiofiles  # type: ignore[import-untyped]
import aiofiles.os  # type: ignore[import-untyped]

from .models import AbsolutePath, WriteResult
from .protocols import ByteReader, ByteWriter


def _join(base: AbsolutePath, *parts: str) -> AbsolutePath:
    result = Path(base).joinpath(*parts).resolve()

    # Security: Ensure result is still under base
    base_resolved = Path(base).resolve()
    try:
        result.relative_to(base_resolved)
    except ValueError as e:
        raise ValueError(f"Path traversal detected: {result} escapes {base}") from e

    return AbsolutePath(result)


def _create_temp_file(directory: Path) -> str:
    tmp = NamedTemporaryFile(mode="wb", dir=directory, delete=False)
    tmp_path = tmp.name
    tmp.close()
    return tmp_path


class RealFileSystem:
    """
    Real filesystem implementation using aiofiles for async I/O.

    Async-first with non-blocking I/O; blocking calls (temp file creation,
    os.replace) run in the default executor.
    """

    def join(self, base: AbsolutePath, *parts: str) -> AbsolutePath:
        """Join paths (sync - no I/O)."""
        return _join(base, *parts)

    async def exists(self, path: AbsolutePath) -> bool:
        """Check existence asynchronously."""
        return bool(await aiofiles.os.path.exists(path))

    async def read_bytes(self, path: AbsolutePath) -> bytes:
        """Read whole file asynchronously."""
        async with aiofiles.open(path, mode="rb") as f:
            content: bytes = await f.read()
            return content

    async def write_bytes(
        self,
        path: AbsolutePath,
        content: bytes,
        exclusive: bool = False,
    ) -> WriteResult:
        """Write file asynchronously (atomic replace, or exclusive create)."""
        start = time.perf_counter()
        path_obj = Path(path)

        if exclusive:
            f = await aiofiles.open(path_obj, mode="xb")
            try:
                await f.write(content)
                await f.close()
            except OSError:
                await f.close()
                with contextlib.suppress(OSError):
                    await aiofiles.os.unlink(path_obj)
                raise
        else:
            loop = asyncio.get_running_loop()
            tmp_path = await loop.run_in_executor(None, _create_temp_file, path_obj.parent)

            try:
                async with aiofiles.open(tmp_path, mode="wb") as f:
                    await f.write(content)

                await loop.run_in_executor(None, os.replace, tmp_path, str(path_obj))
            except Exception:
                # Clean up temp on failure
                with contextlib.suppress(OSError):
                    await aiofiles.os.unlink(tmp_path)
                raise

        duration = (time.perf_counter() - start) * 1000

        return WriteResult(
            path=str(path),
            bytes_written=len(content),
            duration_ms=duration,
        )

    async def open_reader(self, path: AbsolutePath) -> ByteReader:
        """Open file for sequential binary reading."""
        reader: ByteReader = await aiofiles.open(path, mode="rb")
        return reader

    async def open_writer(self, path: AbsolutePath, exclusive: bool = False) -> ByteWriter:
        """Open append-only binary sink."""
        writer: ByteWriter = await aiofiles.open(path, mode="xb" if exclusive else "wb")
        return writer

    async def mkdirs(self, path: AbsolutePath, exist_ok: bool = True) -> None:
        """Create directory and parents asynchronously."""
        await aiofiles.os.makedirs(path, exist_ok=exist_ok)

    async def listdir(self, path: AbsolutePath) -> list[str]:
        """List directory contents asynchronously."""
        entries: list[str] = await aiofiles.os.listdir(path)
        return sorted(entries)

    async def remove(self, path: AbsolutePath) -> None:
        """Remove file asynchronously."""
        await aiofiles.os.unlink(path)


class RealFileSystemSync:
    """
    Blocking filesystem implementation on pathlib.

    Does not go through an event loop, so it can be called from inside
    running coroutines as well as from plain scripts.
    """

    def join(self, base: AbsolutePath, *parts: str) -> AbsolutePath:
        """Join paths (no I/O)."""
        return _join(base, *parts)

    def exists(self, path: AbsolutePath) -> bool:
        """Check existence (blocking)."""
        return Path(path).exists()

    def read_bytes(self, path: AbsolutePath) -> bytes:
        """Read whole file (blocking)."""
        return Path(path).read_bytes()

    def write_bytes(
        self,
        path: AbsolutePath,
        content: bytes,
        exclusive: bool = False,
    ) -> WriteResult:
        """Write file (blocking, atomic replace or exclusive create)."""
        start = time.perf_counter()
        path_obj = Path(path)

        if exclusive:
            with path_obj.open("xb") as f:
                f.write(content)
        else:
            tmp_path = _create_temp_file(path_obj.parent)
            try:
                Path(tmp_path).write_bytes(content)
                os.replace(tmp_path, path_obj)
            except Exception:
                with contextlib.suppress(OSError):
                    os.unlink(tmp_path)
                raise

        return WriteResult(
            path=str(path),
            bytes_written=len(content),
            duration_ms=(time.perf_counter() - start) * 1000,
        )

    def mkdirs(self, path: AbsolutePath, exist_ok: bool = True) -> None:
        """Create directory and parents (blocking)."""
        Path(path).mkdir(parents=True, exist_ok=exist_ok)

    def listdir(self, path: AbsolutePath) -> list[str]:
        """List directory contents (blocking)."""
        return sorted(os.listdir(path))

    def remove(self, path: AbsolutePath) -> None:
        """Remove file (blocking)."""
        Path(path).unlink()
