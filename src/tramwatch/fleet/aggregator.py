"""Fleet aggregator: the only component that changes fleet state.

Deterministic: given the same message sequence it produces the same
snapshots (apart from ``taken_at``).
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from datetime import UTC, datetime

from tramwatch.errors import InvalidPassengerCount, ProtocolWarning, WarningKind
from tramwatch.fleet.state import Fleet, FleetSnapshot, apply_message
from tramwatch.protocol.messages import Message

logger = logging.getLogger(__name__)


def _utcnow() -> datetime:
    return datetime.now(UTC)


class FleetAggregator:
    """Holds the current :class:`Fleet` and hands out snapshots."""

    def __init__(
        self,
        fleet: Fleet | None = None,
        *,
        on_warning: Callable[[ProtocolWarning], None] | None = None,
        clock: Callable[[], datetime] = _utcnow,
    ) -> None:
        self._fleet = fleet if fleet is not None else Fleet()
        self._on_warning = on_warning
        self._clock = clock
        self._applied = 0
        self._rejected = 0
        self._last_changed: str | None = None

    @property
    def fleet(self) -> Fleet:
        return self._fleet

    @property
    def applied_count(self) -> int:
        return self._applied

    @property
    def rejected_count(self) -> int:
        return self._rejected

    def apply(self, message: Message) -> bool:
        """Apply *message*; return ``False`` if it was rejected.

        A rejected message leaves the fleet exactly as it was.
        """
        try:
            fleet = apply_message(self._fleet, message)
        except InvalidPassengerCount as exc:
            self._rejected += 1
            text = f"Ignoring passenger count {exc.raw!r} for {message.tram_id}"
            logger.warning(text)
            if self._on_warning is not None:
                self._on_warning(
                    ProtocolWarning(
                        kind=WarningKind.INVALID_PASSENGER_COUNT,
                        message=text,
                        tram_id=message.tram_id,
                    )
                )
            return False

        if len(fleet) > len(self._fleet):
            logger.info("New tram %s (slot %d)", message.tram_id, len(self._fleet) + 1)
        self._fleet = fleet
        self._applied += 1
        self._last_changed = message.tram_id
        return True

    def snapshot(self) -> FleetSnapshot:
        """Return a read-only view ordered by ``first_seen_order``."""
        return FleetSnapshot(
            trams=self._fleet.trams(),
            sequence=self._applied,
            taken_at=self._clock(),
            changed=self._last_changed,
        )
