"""Byte sources, file-size based source selection, and the character cursor.

WHY: The tokenizer needs a character stream with one character of
look-ahead, but input arrives as bytes from very different places: an
in-memory string, an uploaded file, a small file on disk, or a file too
large to load at once. This module hides those differences behind one
async read(size) contract and one cursor.

HOW: Every source is an async context manager with ``read(size) ->
bytes`` (b"" at end of input). open_file_source() stats the file and
picks a read-only mmap view for large files or a buffered binary file
(reads offloaded to the default thread pool) for small ones.
CharCursor pulls chunks, decodes them incrementally as UTF-8, and serves
characters from its buffer, so the source is awaited once per chunk and
never once per character.

RULES:
- Sources yield raw bytes; decoding happens only in CharCursor
- A leading UTF-8 byte-order mark is stripped ("utf-8-sig")
- Invalid UTF-8 decodes to U+FFFD instead of raising
- Files with size >= threshold are memory-mapped (empty files never are)
- The mmap view is read-only and safe to open from several readers
- I/O errors (missing file, permissions) propagate unchanged
"""

from __future__ import annotations

import asyncio
import codecs
import logging
import mmap
import os
from pathlib import Path
from typing import Any, BinaryIO, Protocol, Union

from vertical_csv.config import MMAP_THRESHOLD_BYTES, READ_CHUNK_SIZE

logger = logging.getLogger(__name__)


class ByteSource(Protocol):
    """Anything the cursor can pull bytes from."""

    async def read(self, size: int) -> bytes: ...


class _SourceBase:
    """Async context manager plumbing shared by the concrete sources."""

    async def __aenter__(self):
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        self.close()

    def close(self) -> None:
        pass


class BytesSource(_SourceBase):
    """In-memory source over bytes (a str is encoded as UTF-8 first)."""

    def __init__(self, data: Union[bytes, str]) -> None:
        if isinstance(data, str):
            data = data.encode("utf-8")
        self._view = memoryview(data)
        self._pos = 0

    async def read(self, size: int) -> bytes:
        chunk = self._view[self._pos:self._pos + size].tobytes()
        self._pos += len(chunk)
        return chunk


class AsyncReaderSource(_SourceBase):
    """Adapter for objects exposing ``async read(size)``.

    Used for FastAPI ``UploadFile`` and ``asyncio.StreamReader``. The
    wrapped object is not closed; its owner is responsible for it.
    """

    def __init__(self, reader: Any) -> None:
        self._reader = reader

    async def read(self, size: int) -> bytes:
        return await self._reader.read(size)


class BufferedFileSource(_SourceBase):
    """Buffered binary file whose blocking reads run in a worker thread."""

    def __init__(self, path: Union[str, Path]) -> None:
        self.path = Path(path)
        self._file: BinaryIO = open(self.path, "rb")

    async def read(self, size: int) -> bytes:
        return await asyncio.to_thread(self._file.read, size)

    def close(self) -> None:
        self._file.close()


class MappedFileSource(_SourceBase):
    """Read-only memory-mapped view of a file.

    WHY: Large files must not be loaded into addressable memory at once.
    The OS pages the mapping in on demand as chunks are sliced off.
    """

    def __init__(self, path: Union[str, Path]) -> None:
        self.path = Path(path)
        with open(self.path, "rb") as f:
            self._map = mmap.mmap(f.fileno(), 0, access=mmap.ACCESS_READ)
        self._pos = 0

    async def read(self, size: int) -> bytes:
        chunk = self._map[self._pos:self._pos + size]
        self._pos += len(chunk)
        return chunk

    def close(self) -> None:
        self._map.close()


def open_file_source(
    path: Union[str, Path],
    threshold: int = MMAP_THRESHOLD_BYTES,
) -> Union[BufferedFileSource, MappedFileSource]:
    """Open a file through the read path suited to its size.

    RULES:
    - size >= threshold and size > 0 → MappedFileSource
    - otherwise → BufferedFileSource
    - Raises FileNotFoundError / PermissionError from the stat or open

    Args:
        path: File to read.
        threshold: Size in bytes from which the file is memory-mapped.

    Returns:
        An open source; use it as an async context manager.
    """
    size = os.stat(path).st_size
    if size > 0 and size >= threshold:
        logger.debug("Memory-mapping %s (%d bytes)", path, size)
        return MappedFileSource(path)
    logger.debug("Buffered read of %s (%d bytes)", path, size)
    return BufferedFileSource(path)


def as_source(source: Union[ByteSource, bytes, str]) -> ByteSource:
    """Wrap raw bytes/str in a BytesSource; pass real sources through."""
    if isinstance(source, (bytes, bytearray, str)):
        return BytesSource(source)
    return source


class CharCursor:
    """Character reader with one character of look-ahead over a ByteSource.

    WHY: The tokenizer's state machine works character by character and
    must peek at the next character for "" escapes and CRLF. Awaiting
    the source for every character would add a suspension point per
    character; the cursor only awaits when its buffer runs dry.

    HOW: ``_buf`` holds the current decoded chunk and ``_pos`` the index
    of the next unread character. ``fill()`` replaces the buffer with
    the next non-empty decoded chunk, flushing the decoder at end of
    input.
    """

    def __init__(self, source: ByteSource, chunk_size: int = READ_CHUNK_SIZE) -> None:
        self._source = source
        self._chunk_size = chunk_size
        self._decoder = codecs.getincrementaldecoder("utf-8-sig")(errors="replace")
        self._buf = ""
        self._pos = 0
        self._eof = False

    async def fill(self) -> bool:
        """Make sure at least one character is buffered.

        Returns False once the source is exhausted.
        """
        while self._pos >= len(self._buf):
            if self._eof:
                return False
            data = await self._source.read(self._chunk_size)
            if data:
                self._buf = self._decoder.decode(data)
            else:
                self._buf = self._decoder.decode(b"", final=True)
                self._eof = True
            self._pos = 0
        return True

    async def read(self) -> str | None:
        """Consume and return the next character, or None at end of input."""
        if self._pos >= len(self._buf) and not await self.fill():
            return None
        ch = self._buf[self._pos]
        self._pos += 1
        return ch

    async def peek(self) -> str | None:
        """Return the next character without consuming it."""
        if self._pos >= len(self._buf) and not await self.fill():
            return None
        return self._buf[self._pos]
