from __future__ import annotations

from .codec import (
    DEFAULT_CODEC,
    BlobDecodeFailure,
    BlobEncodeError,
    ObjectCodec,
    TaggedObjectCodec,
    decode_hex,
    decode_hex_blob,
)
from .schema import ClientTagList, GoalCompilation, GoalDescriptor, schema_hash

__all__ = [
    "DEFAULT_CODEC",
    "BlobDecodeFailure",
    "BlobEncodeError",
    "ClientTagList",
    "GoalCompilation",
    "GoalDescriptor",
    "ObjectCodec",
    "TaggedObjectCodec",
    "decode_hex",
    "decode_hex_blob",
    "schema_hash",
]
