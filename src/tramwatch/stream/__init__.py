"""Feed streaming: byte sources, TCP client, session pipeline and dashboards."""

from __future__ import annotations

from tramwatch.stream.client import TramFeedClient
from tramwatch.stream.dashboard import FleetDashboard
from tramwatch.stream.fanout import SnapshotFanout
from tramwatch.stream.session import FleetSession, SessionStats
from tramwatch.stream.source import ByteSource, FileSource, MemorySource

__all__ = [
    "ByteSource",
    "FileSource",
    "FleetDashboard",
    "FleetSession",
    "MemorySource",
    "SessionStats",
    "SnapshotFanout",
    "TramFeedClient",
]
