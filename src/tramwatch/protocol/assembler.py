"""Group records into messages using the ``MSGTYPE`` marker.

A ``MSGTYPE`` record opens a new message; every following record up to
the next ``MSGTYPE`` belongs to it.  The assembler is a two-state machine:

* awaiting ``MSGTYPE`` -- only at stream start; other records are discarded.
* accumulating fields for ``(kind, partial)`` -- the next ``MSGTYPE``
  finalizes ``partial`` and opens the next message.

Recoverable problems (unknown kinds, missing fields, stray prelude records)
are reported as :class:`~tramwatch.errors.ProtocolWarning` values and never
stop the stream.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from tramwatch.errors import ProtocolWarning, WarningKind
from tramwatch.protocol.messages import (
    MSGTYPE,
    REQUIRED_FIELDS,
    TRAM_ID,
    VALUE,
    LocationUpdate,
    Message,
    MessageKind,
    PassengerCountUpdate,
)

if TYPE_CHECKING:
    from collections.abc import Callable

    from tramwatch.protocol.framing import Record, RecordStream

logger = logging.getLogger(__name__)


class MessageAssembler:
    """Turn a record sequence into :data:`~tramwatch.protocol.messages.Message` values."""

    def __init__(self, on_warning: Callable[[ProtocolWarning], None] | None = None) -> None:
        self._on_warning = on_warning
        # None while awaiting the first MSGTYPE.
        self._raw_kind: bytes | None = None
        self._kind: MessageKind | None = None
        self._partial: dict[bytes, bytes] = {}
        self._prelude_warned = False
        self._unknown_kinds_warned: set[bytes] = set()
        self._emitted = 0
        self._dropped = 0
        self._skipped = 0

    # -- Counters -------------------------------------------------------------

    @property
    def messages_emitted(self) -> int:
        return self._emitted

    @property
    def messages_dropped(self) -> int:
        """Known-kind messages dropped for missing fields."""
        return self._dropped

    @property
    def messages_skipped(self) -> int:
        """Messages of an unknown kind that were skipped."""
        return self._skipped

    @property
    def awaiting_msgtype(self) -> bool:
        return self._raw_kind is None

    # -- State machine --------------------------------------------------------

    def push(self, record: Record) -> Message | None:
        """Consume one record; return a message if *record* completed one."""
        if record.name == MSGTYPE:
            message = self._finalize() if self._raw_kind is not None else None
            self._open(record.value)
            return message

        if self._raw_kind is None:
            if not self._prelude_warned:
                self._prelude_warned = True
                self._warn(
                    WarningKind.PRELUDE_SKIPPED,
                    f"Discarding record(s) before the first MSGTYPE "
                    f"(first: {record.name_text}={record.value_text})",
                )
            return None

        if self._kind is not None:
            # Duplicate fields: last occurrence wins.
            self._partial[record.name] = record.value
        return None

    def finish(self) -> Message | None:
        """Signal end of stream; return the final message if it is complete."""
        if self._raw_kind is None:
            return None
        message = self._finalize()
        self._raw_kind = None
        self._kind = None
        return message

    def reset(self) -> None:
        """Forget the message in progress (warning bookkeeping is kept)."""
        self._raw_kind = None
        self._kind = None
        self._partial = {}

    def _open(self, raw_kind: bytes) -> None:
        self._raw_kind = raw_kind
        self._kind = MessageKind.from_wire(raw_kind)
        self._partial = {}
        if self._kind is None:
            self._skipped += 1
            if raw_kind not in self._unknown_kinds_warned:
                self._unknown_kinds_warned.add(raw_kind)
                kind_text = raw_kind.decode("utf-8", errors="replace")
                self._warn(
                    WarningKind.UNKNOWN_MESSAGE_KIND,
                    f"Skipping message of unknown kind {kind_text!r}",
                )

    def _finalize(self) -> Message | None:
        kind = self._kind
        partial = self._partial
        self._partial = {}
        if kind is None:
            return None

        missing = [name.decode("ascii") for name in REQUIRED_FIELDS if name not in partial]
        if missing:
            self._dropped += 1
            tram_id = partial.get(TRAM_ID)
            self._warn(
                WarningKind.MALFORMED_MESSAGE,
                f"Dropping {kind} message missing {', '.join(missing)}",
                tram_id=tram_id.decode("utf-8", errors="replace") if tram_id is not None else None,
            )
            return None

        tram_id_text = partial[TRAM_ID].decode("utf-8", errors="replace")
        value_text = partial[VALUE].decode("utf-8", errors="replace")
        self._emitted += 1
        if kind is MessageKind.LOCATION:
            return LocationUpdate(tram_id=tram_id_text, location=value_text)
        return PassengerCountUpdate(tram_id=tram_id_text, raw_count=value_text)

    def _warn(self, kind: WarningKind, message: str, *, tram_id: str | None = None) -> None:
        logger.warning(message)
        if self._on_warning is not None:
            self._on_warning(ProtocolWarning(kind=kind, message=message, tram_id=tram_id))


class MessageStream:
    """Pull messages out of a :class:`~tramwatch.protocol.framing.RecordStream`."""

    def __init__(self, records: RecordStream, assembler: MessageAssembler | None = None) -> None:
        self._records = records
        self._assembler = assembler or MessageAssembler()
        self._done = False

    @property
    def assembler(self) -> MessageAssembler:
        return self._assembler

    @property
    def records(self) -> RecordStream:
        return self._records

    async def next_message(self) -> Message | None:
        """Return the next complete message, or ``None`` at end of stream.

        Raises:
            UnexpectedEndOfStream: If the stream stopped mid-record.
            TransportError: Propagated from the byte source.
        """
        while not self._done:
            record = await self._records.next_record()
            if record is None:
                self._done = True
                return self._assembler.finish()
            message = self._assembler.push(record)
            if message is not None:
                return message
        return None

    def __aiter__(self) -> MessageStream:
        return self

    async def __anext__(self) -> Message:
        message = await self.next_message()
        if message is None:
            raise StopAsyncIteration
        return message
