from __future__ import annotations

from dataclasses import dataclass
import io
from typing import Protocol, TypeVar

from construct import ConstructError, Int32ul, StreamError, Terminated, TerminatedError

from .schema import SCHEMAS_BY_HASH, SCHEMAS_BY_TYPE

_ObjectT = TypeVar("_ObjectT")


class BlobEncodeError(ValueError):
    pass


@dataclass(frozen=True, slots=True)
class BlobDecodeFailure:
    reason: str
    schema: str = ""


class ObjectCodec(Protocol):
    def decode(self, data: bytes, schema: type[_ObjectT]) -> _ObjectT | BlobDecodeFailure: ...


class TaggedObjectCodec:
    """Reads blobs laid out as `<u32 schema hash><schema body>` with nothing after the body."""

    def decode(self, data: bytes, schema: type[_ObjectT]) -> _ObjectT | BlobDecodeFailure:
        wanted = SCHEMAS_BY_TYPE.get(schema)
        if wanted is None:
            return BlobDecodeFailure(f"unsupported schema type: {schema.__name__}")
        if not data:
            return BlobDecodeFailure("empty blob", schema=wanted.name)

        stream = io.BytesIO(bytes(data))
        try:
            found_hash = int(Int32ul.parse_stream(stream))
        except StreamError:
            return BlobDecodeFailure("truncated schema header", schema=wanted.name)

        found = SCHEMAS_BY_HASH.get(found_hash)
        if found is None:
            return BlobDecodeFailure(f"unknown schema hash 0x{found_hash:08x}", schema=wanted.name)
        if found is not wanted:
            return BlobDecodeFailure(f"schema mismatch: blob holds {found.name}", schema=wanted.name)

        try:
            parsed = found.layout.parse_stream(stream)
            Terminated.parse_stream(stream)
        except StreamError:
            return BlobDecodeFailure("unexpected end of blob", schema=wanted.name)
        except TerminatedError:
            return BlobDecodeFailure("trailing data after blob", schema=wanted.name)
        except ConstructError as exc:
            return BlobDecodeFailure(str(exc), schema=wanted.name)
        except UnicodeDecodeError:
            return BlobDecodeFailure("invalid utf-8 string", schema=wanted.name)

        return found.from_container(parsed)  # ty:ignore[invalid-return-type]

    def encode(self, value: object) -> bytes:
        schema = SCHEMAS_BY_TYPE.get(type(value))
        if schema is None:
            raise BlobEncodeError(f"unsupported schema type: {type(value).__name__}")
        try:
            body = schema.layout.build(schema.to_container(value))
        except ConstructError as exc:
            raise BlobEncodeError(f"failed to build {schema.name}: {exc}") from exc
        return Int32ul.build(schema.hash) + body


DEFAULT_CODEC = TaggedObjectCodec()


def decode_hex(text: str) -> bytes | BlobDecodeFailure:
    compact = "".join(str(text).split())
    try:
        return bytes.fromhex(compact)
    except ValueError:
        return BlobDecodeFailure(f"invalid hex blob: {text[:32]!r}")


def decode_hex_blob(
    text: str,
    schema: type[_ObjectT],
    codec: ObjectCodec = DEFAULT_CODEC,
) -> _ObjectT | BlobDecodeFailure:
    data = decode_hex(text)
    if isinstance(data, BlobDecodeFailure):
        return BlobDecodeFailure(data.reason, schema=schema.__name__)
    return codec.decode(data, schema)
