"""Exception hierarchy and recoverable protocol warnings for tramwatch."""

from __future__ import annotations

import enum
from dataclasses import dataclass


class TramwatchError(Exception):
    """Base exception for all tramwatch errors."""


class ConfigError(TramwatchError):
    """Invalid or missing configuration."""


class TransportError(TramwatchError):
    """The byte source failed (connect, read, or unexpected close)."""

    def __init__(self, message: str, *, host: str = "", port: int | None = None) -> None:
        self.host = host
        self.port = port
        super().__init__(message)


class DecodeError(TramwatchError):
    """The byte stream could not be framed into records."""


class UnexpectedEndOfStream(DecodeError):
    """The stream closed in the middle of a record."""

    def __init__(self, message: str, *, pending_bytes: int = 0) -> None:
        self.pending_bytes = pending_bytes
        super().__init__(message)


class InvalidPassengerCount(TramwatchError, ValueError):
    """A PASSENGER_COUNT value is not a plain run of ASCII digits."""

    def __init__(self, raw: str) -> None:
        self.raw = raw
        super().__init__(f"Invalid passenger count: {raw!r}")


# ---------------------------------------------------------------------------
# Recoverable warnings
# ---------------------------------------------------------------------------


class WarningKind(enum.StrEnum):
    UNKNOWN_MESSAGE_KIND = "unknown_message_kind"
    MALFORMED_MESSAGE = "malformed_message"
    INVALID_PASSENGER_COUNT = "invalid_passenger_count"
    PRELUDE_SKIPPED = "prelude_skipped"


@dataclass(frozen=True)
class ProtocolWarning:
    """A recoverable problem observed in the feed.

    Warnings never abort a session and never mutate fleet state.
    """

    kind: WarningKind
    message: str
    tram_id: str | None = None
