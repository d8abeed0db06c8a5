"""Length-prefixed content framing for the tram feed.

Wire format::

    <len:u8><payload:len bytes><len:u8><payload:len bytes>...

Contents arrive in pairs: the first content of a pair is a field name,
the second is that field's value.  One pair is one :class:`Record`.

For example the bytes of a location update look like::

    \\x07MSGTYPE\\x08LOCATION\\x07TRAM_ID\\x07TRAMABC\\x05VALUE\\x04CITY

which decode to three records ``MSGTYPE=LOCATION``, ``TRAM_ID=TRAMABC``
and ``VALUE=CITY``.

Transport reads are not aligned with record boundaries, so
:class:`FrameDecoder` buffers partial contents between :meth:`feed`
calls.
"""

from __future__ import annotations

import logging
from collections import deque
from dataclasses import dataclass
from typing import TYPE_CHECKING

from tramwatch.errors import UnexpectedEndOfStream

if TYPE_CHECKING:
    from tramwatch.stream.source import ByteSource

logger = logging.getLogger(__name__)

MAX_CONTENT_LENGTH = 255

DEFAULT_READ_SIZE = 4096


@dataclass(frozen=True)
class Record:
    """One decoded ``(field name, field value)`` pair.

    Both halves are kept as the raw payload bytes; text decoding happens
    when records are assembled into messages.
    """

    name: bytes
    value: bytes

    @property
    def name_text(self) -> str:
        return self.name.decode("utf-8", errors="replace")

    @property
    def value_text(self) -> str:
        return self.value.decode("utf-8", errors="replace")


class FrameDecoder:
    """Incremental decoder from raw bytes to :class:`Record` values.

    Feed bytes in arbitrary chunks and collect every record that became
    complete.  Output is independent of how the input was split.
    """

    def __init__(self) -> None:
        self._buffer = bytearray()
        self._pending_name: bytes | None = None
        self._record_count = 0

    @property
    def pending(self) -> int:
        """Number of buffered bytes not yet part of a complete content."""
        return len(self._buffer)

    @property
    def record_count(self) -> int:
        """Total records produced since construction."""
        return self._record_count

    def has_partial(self) -> bool:
        """Return ``True`` if a record is half-read (partial content or lone name)."""
        return bool(self._buffer) or self._pending_name is not None

    def feed(self, data: bytes) -> list[Record]:
        """Append *data* and return all records completed by it."""
        self._buffer.extend(data)
        records: list[Record] = []
        buf = self._buffer
        pos = 0
        while pos < len(buf):
            length = buf[pos]
            end = pos + 1 + length
            if end > len(buf):
                break
            content = bytes(buf[pos + 1 : end])
            pos = end
            if self._pending_name is None:
                self._pending_name = content
            else:
                records.append(Record(name=self._pending_name, value=content))
                self._pending_name = None
        if pos:
            del buf[:pos]
        self._record_count += len(records)
        return records

    def finish(self) -> None:
        """Signal end of stream.

        Raises:
            UnexpectedEndOfStream: If the stream stopped mid-record.
        """
        if self.has_partial():
            pending = len(self._buffer)
            half = " after a field name" if self._pending_name is not None else ""
            raise UnexpectedEndOfStream(
                f"Stream ended mid-record{half} ({pending} byte(s) buffered)",
                pending_bytes=pending,
            )

    def reset(self) -> None:
        """Discard any partial record."""
        if self.has_partial():
            logger.debug("Discarding %d buffered byte(s) of a partial record", len(self._buffer))
        self._buffer.clear()
        self._pending_name = None


class RecordStream:
    """Pull :class:`Record` values out of a :class:`ByteSource`.

    ``next_record()`` awaits transport reads until one full record is
    available.  ``None`` means the stream ended cleanly on a record
    boundary.
    """

    def __init__(
        self,
        source: ByteSource,
        decoder: FrameDecoder | None = None,
        *,
        read_size: int = DEFAULT_READ_SIZE,
    ) -> None:
        if read_size < 1:
            raise ValueError("read_size must be at least 1")
        self._source = source
        self._decoder = decoder or FrameDecoder()
        self._read_size = read_size
        self._ready: deque[Record] = deque()
        self._eof = False
        self._bytes_read = 0

    @property
    def decoder(self) -> FrameDecoder:
        return self._decoder

    @property
    def bytes_read(self) -> int:
        return self._bytes_read

    async def next_record(self) -> Record | None:
        """Return the next record, or ``None`` at a clean end of stream.

        Raises:
            UnexpectedEndOfStream: If the source closed mid-record.
            TransportError: Propagated from the byte source.
        """
        while not self._ready:
            if self._eof:
                return None
            chunk = await self._source.read(self._read_size)
            if not chunk:
                self._eof = True
                self._decoder.finish()
                return None
            self._bytes_read += len(chunk)
            if logger.isEnabledFor(logging.DEBUG):
                logger.debug("read %d byte(s): %s", len(chunk), chunk.hex(" "))
            self._ready.extend(self._decoder.feed(chunk))
        return self._ready.popleft()

    def discard_partial(self) -> None:
        """Drop buffered bytes and undelivered records (used on cancellation)."""
        self._ready.clear()
        self._decoder.reset()

    def __aiter__(self) -> RecordStream:
        return self

    async def __anext__(self) -> Record:
        record = await self.next_record()
        if record is None:
            raise StopAsyncIteration
        return record


# ---------------------------------------------------------------------------
# Encoding
# ---------------------------------------------------------------------------


def encode_content(content: bytes | str) -> bytes:
    """Encode one content unit as ``<len><payload>``."""
    payload = content.encode("utf-8") if isinstance(content, str) else bytes(content)
    if len(payload) > MAX_CONTENT_LENGTH:
        raise ValueError(
            f"Content is {len(payload)} bytes; the wire format allows at most "
            f"{MAX_CONTENT_LENGTH}"
        )
    return bytes([len(payload)]) + payload


def encode_record(name: bytes | str, value: bytes | str) -> bytes:
    """Encode a name/value pair as two content units."""
    return encode_content(name) + encode_content(value)
