from __future__ import annotations

import asyncio
from collections.abc import Iterator
from dataclasses import dataclass
import gzip
import logging
from pathlib import Path
from typing import TypeVar

import msgspec

from .extract import Extraction, extract_record
from .packets import PacketSpec, packet_spec

logger = logging.getLogger(__name__)

_RecordT = TypeVar("_RecordT")

_GZIP_MAGIC = b"\x1f\x8b"


class CaptureError(ValueError):
    pass


class CaptureNotFoundError(CaptureError, FileNotFoundError):
    pass


class MalformedCaptureError(CaptureError):
    pass


class CapturePacketData(msgspec.Struct):
    name: str = ""
    fields: dict[str, object] = msgspec.field(default_factory=dict)


class CapturePacket(msgspec.Struct):
    # Upstream capture tools attach extra metadata; only these keys matter here.
    timestamp: object = None
    data: CapturePacketData | None = None


@dataclass(frozen=True, slots=True)
class CaptureFile:
    path: Path | None
    records: tuple[object, ...]

    def __len__(self) -> int:
        return len(self.records)


def _read_capture_bytes(path: Path) -> bytes:
    try:
        with path.open("rb") as handle:
            raw = handle.read()
    except FileNotFoundError as exc:
        raise CaptureNotFoundError(f"capture file not found: {path}") from exc
    if raw.startswith(_GZIP_MAGIC):
        try:
            raw = gzip.decompress(raw)
        except (OSError, EOFError) as exc:
            raise MalformedCaptureError(f"invalid gzip capture file: {path}") from exc
    return raw


def decode_capture(raw: bytes, path: Path | None = None) -> CaptureFile:
    label = str(path) if path is not None else "<bytes>"
    try:
        doc = msgspec.json.decode(raw)
    except msgspec.DecodeError as exc:
        raise MalformedCaptureError(f"invalid JSON in capture file: {label}") from exc
    if doc is None:
        raise MalformedCaptureError(f"empty capture file: {label}")

    records = tuple(doc) if isinstance(doc, list) else (doc,)
    return CaptureFile(path=path, records=records)


def load_capture(path: str | Path) -> CaptureFile:
    path = Path(path)
    if not path.is_file():
        raise CaptureNotFoundError(f"capture file not found: {path}")
    capture = decode_capture(_read_capture_bytes(path), path)
    logger.debug("loaded %d capture records from %s", len(capture), path)
    return capture


def _as_packet(record: object) -> CapturePacket | None:
    try:
        return msgspec.convert(record, type=CapturePacket, strict=False)
    except msgspec.ValidationError:
        return None


def iter_packets(capture: CaptureFile, packet_name: str) -> Iterator[CapturePacket]:
    for index, record in enumerate(capture.records):
        if not isinstance(record, dict):
            continue
        data = record.get("data")
        if not isinstance(data, dict) or data.get("name") != packet_name:
            continue
        packet = _as_packet(record)
        if packet is None:
            logger.warning("skipping malformed %s record #%d", packet_name, index)
            continue
        yield packet


def _resolve_capture(source: str | Path | CaptureFile) -> CaptureFile:
    if isinstance(source, CaptureFile):
        return source
    return load_capture(source)


def extract_packet_records(
    source: str | Path | CaptureFile,
    record_type: type[_RecordT],
    packet_name: str | None = None,
) -> list[Extraction[_RecordT]]:
    spec: PacketSpec = packet_spec(record_type)
    name = spec.name if packet_name is None else packet_name
    capture = _resolve_capture(source)

    out: list[Extraction[_RecordT]] = []
    for packet in iter_packets(capture, name):
        fields = packet.data.fields if packet.data is not None else {}
        out.append(
            extract_record(
                fields,
                record_type,
                spec.rules,
                timestamp=packet.timestamp,
                timestamp_field=spec.timestamp_field,
            )
        )
    return out


def extract_packets(
    source: str | Path | CaptureFile,
    record_type: type[_RecordT],
    packet_name: str | None = None,
) -> list[_RecordT]:
    return [extraction.record for extraction in extract_packet_records(source, record_type, packet_name)]


async def extract_packets_async(
    source: str | Path | CaptureFile,
    record_type: type[_RecordT],
    packet_name: str | None = None,
) -> list[_RecordT]:
    return await asyncio.to_thread(extract_packets, source, record_type, packet_name)
