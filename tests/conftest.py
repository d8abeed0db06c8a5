"""Shared wire fixtures for the tram feed tests."""

from __future__ import annotations

import pytest

from tramwatch.protocol.messages import (
    encode_location,
    encode_message,
    encode_passenger_count,
)

# 7 MSGTYPE 8 LOCATION 7 TRAM_ID 7 TRAMABC 5 VALUE 4 CITY
SINGLE_LOCATION = (
    b"\x07MSGTYPE\x08LOCATION\x07TRAM_ID\x07TRAMABC\x05VALUE\x04CITY"
)


@pytest.fixture()
def single_location() -> bytes:
    return SINGLE_LOCATION


@pytest.fixture()
def two_trams_interleaved() -> bytes:
    return b"".join(
        [
            encode_location("TRAM001", "Flinders"),
            encode_passenger_count("TRAM002", "22"),
            encode_passenger_count("TRAM001", "50"),
            encode_location("TRAM002", "Williams"),
        ]
    )


@pytest.fixture()
def heartbeat_then_location() -> bytes:
    heartbeat = encode_message("HEARTBEAT", [("SEQ", "1"), ("NODE", "pub-a")])
    return heartbeat + encode_location("TRAMX", "Depot")


@pytest.fixture()
def truncated_stream() -> bytes:
    # 7 MSGTYPE 8 LOCATION 7 TRAM_ID 7 TRAMAB  (one payload byte short)
    return b"\x07MSGTYPE\x08LOCATION\x07TRAM_ID\x07TRAMAB"
