"""Async TCP client for the tram publisher.

Connects with :func:`asyncio.open_connection` and exposes the stream as a
:class:`~tramwatch.stream.source.ByteSource`.  Socket errors surface as
:class:`~tramwatch.errors.TransportError`.
"""

from __future__ import annotations

import asyncio
import logging

from tramwatch.errors import TransportError

logger = logging.getLogger(__name__)

DEFAULT_HOST = "127.0.0.1"


class TramFeedClient:
    """Reads raw bytes from the publisher over TCP."""

    def __init__(
        self,
        port: int,
        host: str = DEFAULT_HOST,
        *,
        connect_timeout: float | None = 10.0,
    ) -> None:
        self._host = host
        self._port = port
        self._connect_timeout = connect_timeout
        self._reader: asyncio.StreamReader | None = None
        self._writer: asyncio.StreamWriter | None = None
        self._bytes_received = 0

    @property
    def address(self) -> str:
        return f"{self._host}:{self._port}"

    @property
    def connected(self) -> bool:
        return self._reader is not None

    @property
    def bytes_received(self) -> int:
        return self._bytes_received

    async def connect(self) -> None:
        """Open the TCP connection to ``host:port``."""
        try:
            self._reader, self._writer = await asyncio.wait_for(
                asyncio.open_connection(self._host, self._port),
                timeout=self._connect_timeout,
            )
        except TimeoutError as exc:
            raise TransportError(
                f"Timed out connecting to {self.address}", host=self._host, port=self._port
            ) from exc
        except OSError as exc:
            raise TransportError(
                f"Connection to {self.address} failed: {exc}", host=self._host, port=self._port
            ) from exc
        logger.info("Connected to tram publisher at %s", self.address)

    async def close(self) -> None:
        """Close the connection; safe to call more than once."""
        writer = self._writer
        self._reader = None
        self._writer = None
        if writer is None:
            return
        writer.close()
        try:
            await writer.wait_closed()
        except (ConnectionError, OSError):
            logger.debug("Error while closing connection to %s", self.address, exc_info=True)
        logger.info("Disconnected from %s (%d bytes received)", self.address, self._bytes_received)

    async def read(self, n: int) -> bytes:
        """Read up to *n* bytes; ``b""`` once the publisher closes the stream."""
        if self._reader is None:
            raise TransportError(
                f"Not connected to {self.address}", host=self._host, port=self._port
            )
        try:
            chunk = await self._reader.read(n)
        except (ConnectionError, OSError) as exc:
            raise TransportError(
                f"Error reading from {self.address}: {exc}", host=self._host, port=self._port
            ) from exc
        self._bytes_received += len(chunk)
        if not chunk:
            logger.info("Publisher at %s closed the stream", self.address)
        return chunk

    async def __aenter__(self) -> TramFeedClient:
        await self.connect()
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.close()
