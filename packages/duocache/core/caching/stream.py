"""Payload stream source.

Opens a payload file and exposes its contents as a one-shot, forward-only
async sequence of decoded chunks.
"""

from __future__ import annotations

import logging
from types import TracebackType

from duocache.core.caching.encodings import ChunkDecoder, Encoding
from duocache.core.caching.errors import from_os_error
from duocache.core.io import AbsolutePath, ByteReader, FileSystem

logger = logging.getLogger(__name__)

DEFAULT_CHUNK_SIZE = 64 * 1024


class PayloadStream:
    """
    Forward-only async iterator over a payload file.

    Iterating a second time yields nothing. The file is closed once the end is
    reached or ``aclose`` is called.
    """

    def __init__(
        self,
        reader: ByteReader,
        encoding: Encoding,
        path: AbsolutePath,
        first_chunk: bytes,
        chunk_size: int = DEFAULT_CHUNK_SIZE,
    ) -> None:
        self.encoding = encoding
        self.path = path
        self._reader = reader
        self._decoder = ChunkDecoder(encoding)
        self._buffered: bytes | None = first_chunk
        self._chunk_size = chunk_size
        self._done = False

    @property
    def closed(self) -> bool:
        return self._done

    def __aiter__(self) -> PayloadStream:
        return self

    async def __anext__(self) -> str | bytes:
        while not self._done:
            if self._buffered is not None:
                chunk, self._buffered = self._buffered, None
            else:
                try:
                    chunk = await self._reader.read(self._chunk_size)
                except OSError as e:
                    await self.aclose()
                    raise from_os_error(e, path=self.path) from e

            if chunk:
                item = self._decoder.decode(chunk)
            else:
                item = self._decoder.decode(b"", final=True)
                await self.aclose()

            if item:
                return item
        raise StopAsyncIteration

    async def read(self) -> str | bytes:
        """Consume the rest of the stream and return it joined."""
        parts = [part async for part in self]
        if self.encoding is Encoding.BINARY:
            return b"".join(parts)  # type: ignore[arg-type]
        return "".join(parts)  # type: ignore[arg-type]

    async def aclose(self) -> None:
        """Close the underlying file. Safe to call more than once."""
        if self._done:
            return
        self._done = True
        self._buffered = None
        await self._reader.close()

    async def __aenter__(self) -> PayloadStream:
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        await self.aclose()


async def open_payload_stream(
    fs: FileSystem,
    path: AbsolutePath,
    encoding: Encoding,
    chunk_size: int = DEFAULT_CHUNK_SIZE,
) -> PayloadStream:
    """
    Open a payload file for sequential reading.

    Resolves only after the first chunk has been read, so an unreadable file
    fails here rather than during iteration.

    Raises:
        NotFoundError: If the payload file does not exist
        CacheIOError: If it cannot be opened or read
    """
    try:
        reader = await fs.open_reader(path)
    except OSError as e:
        raise from_os_error(e, path=path) from e

    try:
        first_chunk = await reader.read(chunk_size)
    except OSError as e:
        await reader.close()
        raise from_os_error(e, path=path) from e

    logger.debug(f"Opened payload stream: {path}")
    return PayloadStream(reader, encoding, path, first_chunk, chunk_size)
