from __future__ import annotations

from collections.abc import Mapping, Sequence
from dataclasses import dataclass
import datetime as dt
from enum import Enum
import logging
import math
from typing import Generic, TypeVar

import msgspec

logger = logging.getLogger(__name__)

_RecordT = TypeVar("_RecordT")

TIMESTAMP_FIELD = "timestamp"
TIMESTAMP_MISSING = dt.datetime.min

U8_BITS = 8
U32_BITS = 32
U64_BITS = 64
I32_MIN = -(1 << 31)
I32_MAX = (1 << 31) - 1


class ExtractMethod(Enum):
    DEFAULT = "default"
    TEXT = "text"
    HEX = "hex"
    GID = "gid"
    UBYTE = "ubyte"
    UINT = "uint"
    INT = "int"


_METHOD_VALUE_TYPES: dict[ExtractMethod, type] = {
    ExtractMethod.TEXT: str,
    ExtractMethod.HEX: str,
    ExtractMethod.GID: int,
    ExtractMethod.UBYTE: int,
    ExtractMethod.UINT: int,
    ExtractMethod.INT: int,
}

_ZERO_VALUES: dict[type, object] = {
    str: "",
    int: 0,
    float: 0.0,
    bool: False,
}


def zero_value(value_type: type) -> object:
    try:
        return _ZERO_VALUES[value_type]
    except KeyError:
        raise TypeError(f"unsupported field type: {value_type!r}") from None


@dataclass(frozen=True, slots=True)
class FieldRule:
    """One destination field, the capture field it reads, and how to read it.

    `value_type` is implied by every method except DEFAULT, which coerces the
    raw payload into whatever type the rule declares.
    """

    dest: str
    source: str
    method: ExtractMethod = ExtractMethod.DEFAULT
    value_type: type | None = None

    def __post_init__(self) -> None:
        value_type = self.value_type
        if value_type is None:
            value_type = _METHOD_VALUE_TYPES.get(self.method)
            if value_type is None:
                raise ValueError(f"rule {self.dest!r} uses DEFAULT extraction and needs a value_type")
            object.__setattr__(self, "value_type", value_type)
        zero_value(value_type)

    @property
    def zero(self) -> object:
        return zero_value(self.value_type)  # ty:ignore[invalid-argument-type]


@dataclass(frozen=True, slots=True)
class FieldConversionFailure:
    dest: str
    source: str
    method: ExtractMethod
    raw: object
    reason: str


@dataclass(frozen=True, slots=True)
class Extraction(Generic[_RecordT]):
    record: _RecordT
    failures: tuple[FieldConversionFailure, ...] = ()


_MISSING = object()


def _parse_int_text(raw: str) -> int:
    # Hex only with an explicit 0x prefix; "0123" is decimal.
    text = raw.strip()
    digits = text.lstrip("+-")
    if digits[:2].lower() == "0x":
        body = digits[2:]
        if body.startswith(("+", "-")):
            raise ValueError(f"invalid hex literal {raw!r}")
        sign = text[: len(text) - len(digits)]
        return int(sign + body, 16)
    return int(text, 10)


def _coerce_unsigned(raw: object, bits: int) -> int:
    if isinstance(raw, bool):
        raise TypeError("expected an integer, got bool")
    if isinstance(raw, int):
        value = int(raw)
    elif isinstance(raw, float):
        if not math.isfinite(raw) or not raw.is_integer():
            raise ValueError(f"expected an integer, got {raw!r}")
        value = int(raw)
    elif isinstance(raw, str):
        value = _parse_int_text(raw)
    else:
        raise TypeError(f"expected an integer, got {type(raw).__name__}")
    if value < 0 or value >= (1 << bits):
        raise ValueError(f"{value} does not fit in u{bits}")
    return value


def _coerce_i32(raw: object) -> int:
    if isinstance(raw, bool):
        raise TypeError("expected an integer, got bool")
    if isinstance(raw, str):
        value = _parse_int_text(raw)
    elif isinstance(raw, float):
        if not math.isfinite(raw) or not raw.is_integer():
            raise ValueError(f"expected an integer, got {raw!r}")
        value = int(raw)
    elif isinstance(raw, int):
        value = int(raw)
    else:
        raise TypeError(f"expected an integer, got {type(raw).__name__}")
    if value < I32_MIN or value > I32_MAX:
        raise ValueError(f"{value} does not fit in i32")
    return value


def _coerce_text(raw: object) -> str:
    if not isinstance(raw, str):
        raise TypeError(f"expected a string, got {type(raw).__name__}")
    return raw


def _coerce_default(raw: object, value_type: type) -> object:
    if value_type is str and isinstance(raw, (bool, int, float)):
        return str(raw)
    try:
        return msgspec.convert(raw, type=value_type, strict=False)
    except msgspec.ValidationError as exc:
        raise ValueError(str(exc)) from exc


def _convert(raw: object, rule: FieldRule) -> object:
    method = rule.method
    if method is ExtractMethod.TEXT or method is ExtractMethod.HEX:
        return _coerce_text(raw)
    if method is ExtractMethod.GID:
        return _coerce_unsigned(raw, U64_BITS)
    if method is ExtractMethod.UBYTE:
        return _coerce_unsigned(raw, U8_BITS)
    if method is ExtractMethod.UINT:
        return _coerce_unsigned(raw, U32_BITS)
    if method is ExtractMethod.INT:
        return _coerce_i32(raw)
    return _coerce_default(raw, rule.value_type)  # ty:ignore[invalid-argument-type]


def _field_payload(fields: Mapping[str, object], source: str) -> object:
    node = fields.get(source)
    if node is None:
        return _MISSING
    if not isinstance(node, Mapping):
        raise TypeError(f"field node is {type(node).__name__}, expected an object with a value")
    value = node.get("value")
    if value is None:
        return _MISSING
    return value


def extract_field(fields: Mapping[str, object], rule: FieldRule) -> object | FieldConversionFailure:
    """Read one rule's value out of a capture record's `fields` mapping.

    A missing field (or a null payload) yields the rule's zero value. Anything
    that cannot be coerced comes back as a `FieldConversionFailure` instead.
    """

    raw: object = fields.get(rule.source)
    try:
        payload = _field_payload(fields, rule.source)
        if payload is _MISSING:
            return rule.zero
        raw = payload
        return _convert(payload, rule)
    except (TypeError, ValueError) as exc:
        return FieldConversionFailure(
            dest=rule.dest,
            source=rule.source,
            method=rule.method,
            raw=raw,
            reason=str(exc),
        )


def extract_timestamp(raw: object) -> dt.datetime:
    if raw is None:
        return TIMESTAMP_MISSING
    try:
        return msgspec.convert(raw, type=dt.datetime, strict=False)
    except msgspec.ValidationError:
        logger.debug("unparsable capture timestamp %r", raw)
        return TIMESTAMP_MISSING


def extract_record(
    fields: Mapping[str, object],
    record_type: type[_RecordT],
    rules: Sequence[FieldRule],
    *,
    timestamp: object = None,
    timestamp_field: str | None = None,
) -> Extraction[_RecordT]:
    values: dict[str, object] = {}
    failures: list[FieldConversionFailure] = []
    for rule in rules:
        if rule.dest == timestamp_field:
            continue
        result = extract_field(fields, rule)
        if isinstance(result, FieldConversionFailure):
            logger.debug(
                "field %s (%s) of %s fell back to zero: %s",
                rule.source,
                rule.method.value,
                record_type.__name__,
                result.reason,
            )
            failures.append(result)
            result = rule.zero
        values[rule.dest] = result

    if timestamp_field is not None:
        values[timestamp_field] = extract_timestamp(timestamp)

    return Extraction(record=record_type(**values), failures=tuple(failures))
