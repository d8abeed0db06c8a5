"""In-memory fleet state and the aggregator that maintains it."""

from __future__ import annotations

from tramwatch.fleet.aggregator import FleetAggregator
from tramwatch.fleet.state import Fleet, FleetSnapshot, TramState, apply_message

__all__ = [
    "Fleet",
    "FleetAggregator",
    "FleetSnapshot",
    "TramState",
    "apply_message",
]
