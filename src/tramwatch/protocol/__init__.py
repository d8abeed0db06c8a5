"""Tram feed wire protocol: content framing and message assembly."""

from __future__ import annotations

from tramwatch.protocol.assembler import MessageAssembler, MessageStream
from tramwatch.protocol.framing import (
    FrameDecoder,
    Record,
    RecordStream,
    encode_content,
    encode_record,
)
from tramwatch.protocol.messages import (
    LocationUpdate,
    Message,
    MessageKind,
    PassengerCountUpdate,
    encode_location,
    encode_message,
    encode_passenger_count,
    parse_passenger_count,
)

__all__ = [
    "FrameDecoder",
    "LocationUpdate",
    "Message",
    "MessageAssembler",
    "MessageKind",
    "MessageStream",
    "PassengerCountUpdate",
    "Record",
    "RecordStream",
    "encode_content",
    "encode_location",
    "encode_message",
    "encode_passenger_count",
    "encode_record",
    "parse_passenger_count",
]
