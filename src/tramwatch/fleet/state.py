"""Fleet state values.

:class:`TramState` and :class:`Fleet` are immutable; :func:`apply_message`
folds one message into a fleet and returns the new fleet.  Trams keep the
slot they were first seen in, so display order never shifts.
"""

from __future__ import annotations

from collections.abc import Iterator, Mapping, Sequence
from dataclasses import dataclass
from datetime import datetime
from typing import overload

from pydantic import BaseModel, ConfigDict, Field

from tramwatch.protocol.messages import LocationUpdate, Message, PassengerCountUpdate


class TramState(BaseModel):
    """Latest known state of one tram."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    tram_id: str
    location: str | None = None
    passenger_count: int | None = Field(default=None, ge=0)
    first_seen_order: int = Field(ge=0)


class Fleet(Mapping[str, TramState]):
    """Immutable mapping of ``tram_id`` to :class:`TramState`.

    Iteration follows ``first_seen_order`` ascending.
    """

    __slots__ = ("_trams",)

    def __init__(self, trams: Mapping[str, TramState] | None = None) -> None:
        ordered = sorted((trams or {}).values(), key=lambda t: t.first_seen_order)
        self._trams: dict[str, TramState] = {t.tram_id: t for t in ordered}

    def __getitem__(self, tram_id: str) -> TramState:
        return self._trams[tram_id]

    def __iter__(self) -> Iterator[str]:
        return iter(self._trams)

    def __len__(self) -> int:
        return len(self._trams)

    def __repr__(self) -> str:
        return f"Fleet({list(self._trams)!r})"

    def trams(self) -> tuple[TramState, ...]:
        """All trams in first-seen order."""
        return tuple(self._trams.values())

    def with_tram(self, state: TramState) -> Fleet:
        """Return a new fleet with *state* inserted or replaced."""
        fleet = Fleet.__new__(Fleet)
        trams = dict(self._trams)
        trams[state.tram_id] = state
        fleet._trams = trams
        return fleet


def apply_message(fleet: Fleet, message: Message) -> Fleet:
    """Return the fleet that results from applying *message* to *fleet*.

    Location and passenger count are last-write-wins per field.  A new
    tram gets ``first_seen_order == len(fleet)``.

    Raises:
        InvalidPassengerCount: If a passenger count is not plain decimal
            digits.  *fleet* is left untouched (no tram is created).
    """
    update: dict[str, object]
    if isinstance(message, PassengerCountUpdate):
        update = {"passenger_count": message.count}
    elif isinstance(message, LocationUpdate):
        update = {"location": message.location}
    else:
        raise TypeError(f"Unsupported message type: {type(message).__name__}")

    current = fleet.get(message.tram_id)
    if current is None:
        current = TramState(tram_id=message.tram_id, first_seen_order=len(fleet))
    return fleet.with_tram(current.model_copy(update=update))


@dataclass(frozen=True)
class FleetSnapshot(Sequence[TramState]):
    """Read-only, point-in-time view of the fleet in first-seen order.

    Attributes:
        trams: Every tram observed so far; ``trams[i].first_seen_order == i``.
        sequence: Number of messages applied when the snapshot was taken.
        taken_at: When the snapshot was taken (UTC).
        changed: ``tram_id`` touched by the latest applied message.
    """

    trams: tuple[TramState, ...]
    sequence: int
    taken_at: datetime
    changed: str | None = None

    @overload
    def __getitem__(self, index: int) -> TramState: ...

    @overload
    def __getitem__(self, index: slice) -> Sequence[TramState]: ...

    def __getitem__(self, index: int | slice) -> TramState | Sequence[TramState]:
        return self.trams[index]

    def __len__(self) -> int:
        return len(self.trams)

    def get(self, tram_id: str) -> TramState | None:
        for tram in self.trams:
            if tram.tram_id == tram_id:
                return tram
        return None
