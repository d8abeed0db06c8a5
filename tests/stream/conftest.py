"""Fixtures for session and transport tests."""

from __future__ import annotations

import asyncio
from collections.abc import Callable

import pytest

from tramwatch.fleet.state import FleetSnapshot


class SnapshotCollector:
    """Async sink that records every snapshot it receives."""

    def __init__(self) -> None:
        self.snapshots: list[FleetSnapshot] = []
        self.received = asyncio.Event()

    async def __call__(self, snapshot: FleetSnapshot) -> None:
        self.snapshots.append(snapshot)
        self.received.set()

    @property
    def last(self) -> FleetSnapshot:
        return self.snapshots[-1]


@pytest.fixture()
def make_collector() -> Callable[[], SnapshotCollector]:
    return SnapshotCollector


@pytest.fixture()
def collector() -> SnapshotCollector:
    return SnapshotCollector()
