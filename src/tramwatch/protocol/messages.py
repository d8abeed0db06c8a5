"""Logical messages carried by the tram feed.

A message opens with a ``MSGTYPE`` record whose value is the message kind,
followed by its field records::

    MSGTYPE => LOCATION
    TRAM_ID => TRAMABC
    VALUE   => CITY

Both known kinds require exactly the ``TRAM_ID`` and ``VALUE`` fields.
"""

from __future__ import annotations

import enum
from collections.abc import Iterable
from dataclasses import dataclass

from tramwatch.errors import InvalidPassengerCount
from tramwatch.protocol.framing import encode_record

MSGTYPE = b"MSGTYPE"
TRAM_ID = b"TRAM_ID"
VALUE = b"VALUE"

REQUIRED_FIELDS: tuple[bytes, ...] = (TRAM_ID, VALUE)


class MessageKind(enum.StrEnum):
    LOCATION = "LOCATION"
    PASSENGER_COUNT = "PASSENGER_COUNT"

    @classmethod
    def from_wire(cls, raw: bytes) -> MessageKind | None:
        """Map a raw ``MSGTYPE`` value to a known kind (``None`` if unknown)."""
        try:
            return cls(raw.decode("ascii"))
        except (UnicodeDecodeError, ValueError):
            return None


@dataclass(frozen=True)
class LocationUpdate:
    """TRAM ``tram_id`` is now at ``location``."""

    tram_id: str
    location: str

    kind = MessageKind.LOCATION


@dataclass(frozen=True)
class PassengerCountUpdate:
    """TRAM ``tram_id`` now carries ``raw_count`` passengers.

    ``raw_count`` is the wire text; :func:`parse_passenger_count` turns it
    into an integer and rejects anything that is not plain decimal digits.
    """

    tram_id: str
    raw_count: str

    kind = MessageKind.PASSENGER_COUNT

    @property
    def count(self) -> int:
        return parse_passenger_count(self.raw_count)


Message = LocationUpdate | PassengerCountUpdate


def parse_passenger_count(raw: str) -> int:
    """Parse a passenger count: ASCII digits only, no sign, no whitespace.

    Raises:
        InvalidPassengerCount: If *raw* is empty or contains anything else.
    """
    # str.isdigit() accepts non-ASCII digits such as "²", so test the ASCII range.
    if not raw or not all("0" <= ch <= "9" for ch in raw):
        raise InvalidPassengerCount(raw)
    return int(raw)


def encode_message(
    kind: MessageKind | str,
    fields: Iterable[tuple[bytes | str, bytes | str]],
) -> bytes:
    """Encode a full message: the ``MSGTYPE`` record followed by *fields*."""
    parts = [encode_record(MSGTYPE, str(kind))]
    parts.extend(encode_record(name, value) for name, value in fields)
    return b"".join(parts)


def encode_location(tram_id: str, location: str) -> bytes:
    return encode_message(MessageKind.LOCATION, [(TRAM_ID, tram_id), (VALUE, location)])


def encode_passenger_count(tram_id: str, count: int | str) -> bytes:
    return encode_message(MessageKind.PASSENGER_COUNT, [(TRAM_ID, tram_id), (VALUE, str(count))])
