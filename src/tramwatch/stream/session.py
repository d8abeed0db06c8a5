"""One monitoring session: read, decode, assemble, apply, publish.

The pipeline is a straight line driven by the byte source::

    ByteSource -> RecordStream -> MessageStream -> FleetAggregator -> on_snapshot

Only the transport read awaits; everything after it is synchronous, so
snapshots reach the sink in exactly the order the publisher sent the
messages.
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING

from tramwatch.errors import DecodeError, ProtocolWarning, TransportError
from tramwatch.fleet.aggregator import FleetAggregator
from tramwatch.protocol.assembler import MessageAssembler, MessageStream
from tramwatch.protocol.framing import DEFAULT_READ_SIZE, RecordStream

if TYPE_CHECKING:
    from collections.abc import Awaitable, Callable

    from tramwatch.fleet.state import FleetSnapshot
    from tramwatch.stream.source import ByteSource

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SessionStats:
    bytes_read: int
    records: int
    messages_applied: int
    messages_rejected: int
    messages_dropped: int
    messages_skipped: int
    warnings: int


class FleetSession:
    """Drive a :class:`ByteSource` through the decoder into the fleet.

    ``on_snapshot`` is awaited with a fresh :class:`FleetSnapshot` after
    every applied message.  Rejected messages produce no snapshot.
    """

    def __init__(
        self,
        source: ByteSource,
        on_snapshot: Callable[[FleetSnapshot], Awaitable[None]],
        *,
        read_size: int = DEFAULT_READ_SIZE,
        on_warning: Callable[[ProtocolWarning], None] | None = None,
    ) -> None:
        self._on_snapshot = on_snapshot
        self._on_warning = on_warning
        self._warnings: list[ProtocolWarning] = []
        self._records = RecordStream(source, read_size=read_size)
        self._assembler = MessageAssembler(on_warning=self._record_warning)
        self._messages = MessageStream(self._records, self._assembler)
        self._aggregator = FleetAggregator(on_warning=self._record_warning)

    @property
    def aggregator(self) -> FleetAggregator:
        return self._aggregator

    @property
    def warnings(self) -> list[ProtocolWarning]:
        return list(self._warnings)

    @property
    def stats(self) -> SessionStats:
        return SessionStats(
            bytes_read=self._records.bytes_read,
            records=self._records.decoder.record_count,
            messages_applied=self._aggregator.applied_count,
            messages_rejected=self._aggregator.rejected_count,
            messages_dropped=self._assembler.messages_dropped,
            messages_skipped=self._assembler.messages_skipped,
            warnings=len(self._warnings),
        )

    def snapshot(self) -> FleetSnapshot:
        return self._aggregator.snapshot()

    async def run(self) -> FleetSnapshot:
        """Consume the source until it ends; return the final snapshot.

        Raises:
            UnexpectedEndOfStream: The source closed mid-record.
            TransportError: The source failed.
            asyncio.CancelledError: The owner cancelled the session; the
                partial record in flight is discarded.
        """
        try:
            async for message in self._messages:
                if not self._aggregator.apply(message):
                    continue
                await self._on_snapshot(self._aggregator.snapshot())
        except asyncio.CancelledError:
            self._records.discard_partial()
            self._assembler.reset()
            logger.info(
                "Session cancelled after %d message(s)", self._aggregator.applied_count
            )
            raise
        except (DecodeError, TransportError) as exc:
            logger.error(
                "Session aborted after %d message(s): %s", self._aggregator.applied_count, exc
            )
            raise

        stats = self.stats
        logger.info(
            "Stream ended: %d byte(s), %d record(s), %d message(s) applied, %d tram(s)",
            stats.bytes_read,
            stats.records,
            stats.messages_applied,
            len(self._aggregator.fleet),
        )
        return self._aggregator.snapshot()

    def _record_warning(self, warning: ProtocolWarning) -> None:
        self._warnings.append(warning)
        if self._on_warning is not None:
            self._on_warning(warning)
