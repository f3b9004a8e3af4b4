from __future__ import annotations

from .extract import ExtractMethod, Extraction, FieldConversionFailure, FieldRule, extract_field, extract_record
from .packets import (
    MSG_QUESTOFFER,
    MSG_SENDGOAL,
    MSG_SENDQUEST,
    PacketSpec,
    QuestOfferPacket,
    SendGoalPacket,
    SendQuestPacket,
    all_packets,
    packet_spec,
    register_packet,
)
from .reader import (
    CaptureError,
    CaptureFile,
    CaptureNotFoundError,
    MalformedCaptureError,
    decode_capture,
    extract_packet_records,
    extract_packets,
    extract_packets_async,
    iter_packets,
    load_capture,
)

__all__ = [
    "MSG_QUESTOFFER",
    "MSG_SENDGOAL",
    "MSG_SENDQUEST",
    "CaptureError",
    "CaptureFile",
    "CaptureNotFoundError",
    "ExtractMethod",
    "Extraction",
    "FieldConversionFailure",
    "FieldRule",
    "MalformedCaptureError",
    "PacketSpec",
    "QuestOfferPacket",
    "SendGoalPacket",
    "SendQuestPacket",
    "all_packets",
    "decode_capture",
    "extract_field",
    "extract_packet_records",
    "extract_packets",
    "extract_packets_async",
    "extract_record",
    "iter_packets",
    "load_capture",
    "packet_spec",
    "register_packet",
]
