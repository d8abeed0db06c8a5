"""Byte sources consumed by the decoder.

A source only has to offer ``await read(n)``: up to *n* bytes, ``b""`` at
end of stream, :class:`~tramwatch.errors.TransportError` on failure.
"""

from __future__ import annotations

import asyncio
import logging
from pathlib import Path
from typing import IO, Protocol, runtime_checkable

from tramwatch.errors import TransportError

logger = logging.getLogger(__name__)


@runtime_checkable
class ByteSource(Protocol):
    async def read(self, n: int) -> bytes: ...


class MemorySource:
    """Serve an in-memory byte string in fixed-size chunks.

    ``chunk_size`` caps every read, so ``chunk_size=1`` replays the stream
    one byte at a time.
    """

    def __init__(self, data: bytes, *, chunk_size: int | None = None) -> None:
        if chunk_size is not None and chunk_size < 1:
            raise ValueError("chunk_size must be at least 1")
        self._data = bytes(data)
        self._chunk_size = chunk_size
        self._pos = 0
        self._read_calls = 0

    @property
    def read_calls(self) -> int:
        return self._read_calls

    async def read(self, n: int) -> bytes:
        self._read_calls += 1
        if self._chunk_size is not None:
            n = min(n, self._chunk_size)
        chunk = self._data[self._pos : self._pos + n]
        self._pos += len(chunk)
        # Yield so long replays don't starve other tasks.
        await asyncio.sleep(0)
        return chunk


class FileSource:
    """Replay a recorded capture of the feed from disk."""

    def __init__(self, path: Path | str, *, chunk_size: int | None = None) -> None:
        if chunk_size is not None and chunk_size < 1:
            raise ValueError("chunk_size must be at least 1")
        self._path = Path(path)
        self._chunk_size = chunk_size
        self._fh: IO[bytes] | None = None

    @property
    def path(self) -> Path:
        return self._path

    def open(self) -> None:
        try:
            self._fh = self._path.open("rb")
        except OSError as exc:
            raise TransportError(f"Cannot open capture {self._path}: {exc}") from exc
        logger.info("Replaying capture %s", self._path)

    def close(self) -> None:
        if self._fh is not None:
            self._fh.close()
            self._fh = None

    async def read(self, n: int) -> bytes:
        if self._fh is None:
            self.open()
        assert self._fh is not None
        if self._chunk_size is not None:
            n = min(n, self._chunk_size)
        try:
            chunk = self._fh.read(n)
        except OSError as exc:
            raise TransportError(f"Error reading capture {self._path}: {exc}") from exc
        await asyncio.sleep(0)
        return chunk

    async def __aenter__(self) -> FileSource:
        self.open()
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        self.close()
