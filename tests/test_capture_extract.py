from __future__ import annotations

import datetime as dt

import pytest

from questcap.capture.extract import (
    TIMESTAMP_MISSING,
    ExtractMethod,
    FieldConversionFailure,
    FieldRule,
    extract_field,
    extract_record,
)
from questcap.capture.packets import QuestOfferPacket, SendGoalPacket, packet_spec


def _fields(**values: object) -> dict[str, object]:
    return {name: {"value": value} for name, value in values.items()}


@pytest.mark.parametrize(
    "method",
    [ExtractMethod.GID, ExtractMethod.UINT, ExtractMethod.UBYTE, ExtractMethod.INT],
)
def test_missing_numeric_field_is_zero(method: ExtractMethod) -> None:
    assert extract_field({}, FieldRule("dest", "Missing", method)) == 0


def test_missing_text_and_hex_fields_are_empty() -> None:
    assert extract_field({}, FieldRule("dest", "Missing", ExtractMethod.TEXT)) == ""
    assert extract_field({}, FieldRule("dest", "Missing", ExtractMethod.HEX)) == ""


def test_null_payload_counts_as_missing() -> None:
    fields = {"QuestID": {"value": None}}
    assert extract_field(fields, FieldRule("quest_id", "QuestID", ExtractMethod.GID)) == 0


def test_gid_reads_full_u64_range() -> None:
    top = (1 << 64) - 1
    assert extract_field(_fields(QuestID=top), FieldRule("quest_id", "QuestID", ExtractMethod.GID)) == top
    assert extract_field(_fields(QuestID="12345"), FieldRule("quest_id", "QuestID", ExtractMethod.GID)) == 12345


def test_negative_gid_is_a_conversion_failure() -> None:
    result = extract_field(_fields(QuestID=-1), FieldRule("quest_id", "QuestID", ExtractMethod.GID))
    assert isinstance(result, FieldConversionFailure)
    assert result.source == "QuestID"
    assert result.raw == -1


def test_ubyte_out_of_range_is_a_conversion_failure() -> None:
    result = extract_field(_fields(Mainline=256), FieldRule("mainline", "Mainline", ExtractMethod.UBYTE))
    assert isinstance(result, FieldConversionFailure)


def test_text_rejects_non_string_payload() -> None:
    result = extract_field(_fields(QuestTitle=7), FieldRule("quest_title", "QuestTitle", ExtractMethod.TEXT))
    assert isinstance(result, FieldConversionFailure)
    assert result.method is ExtractMethod.TEXT


def test_hex_is_kept_as_raw_text() -> None:
    rule = FieldRule("goal_data", "GoalData", ExtractMethod.HEX)
    assert extract_field(_fields(GoalData="de ad be ef"), rule) == "de ad be ef"


def test_int_reads_signed_values() -> None:
    rule = FieldRule("delta", "Delta", ExtractMethod.INT)
    assert extract_field(_fields(Delta=-5), rule) == -5
    assert isinstance(extract_field(_fields(Delta=1 << 31), rule), FieldConversionFailure)


def test_numeric_text_is_decimal_unless_hex_prefixed() -> None:
    gid = FieldRule("quest_id", "QuestID", ExtractMethod.GID)
    assert extract_field(_fields(QuestID="0123"), gid) == 123
    assert extract_field(_fields(QuestID="0x10"), gid) == 16
    assert extract_field(_fields(QuestID=" 0X1f "), gid) == 31
    assert isinstance(extract_field(_fields(QuestID="0o17"), gid), FieldConversionFailure)

    delta = FieldRule("delta", "Delta", ExtractMethod.INT)
    assert extract_field(_fields(Delta="-0123"), delta) == -123
    assert extract_field(_fields(Delta="-0x10"), delta) == -16
    assert isinstance(extract_field(_fields(Delta="0x-10"), delta), FieldConversionFailure)


def test_default_method_coerces_to_declared_type() -> None:
    assert extract_field(_fields(Level="42"), FieldRule("level", "Level", value_type=int)) == 42
    assert extract_field(_fields(Flag="true"), FieldRule("flag", "Flag", value_type=bool)) is True
    assert extract_field(_fields(Ratio=2), FieldRule("ratio", "Ratio", value_type=float)) == 2.0


def test_default_method_stringifies_scalars_for_text_fields() -> None:
    rule = FieldRule("label", "X", value_type=str)
    assert extract_field(_fields(X=5), rule) == "5"
    assert extract_field(_fields(X=2.5), rule) == "2.5"
    assert extract_field(_fields(X=True), rule) == "True"
    assert extract_field(_fields(X="kept"), rule) == "kept"


def test_default_method_failure_is_reported() -> None:
    result = extract_field(_fields(Level="forty"), FieldRule("level", "Level", value_type=int))
    assert isinstance(result, FieldConversionFailure)


def test_field_node_without_value_wrapper_is_a_failure() -> None:
    result = extract_field({"Level": 3}, FieldRule("level", "Level", value_type=int))
    assert isinstance(result, FieldConversionFailure)


def test_default_rule_requires_value_type() -> None:
    with pytest.raises(ValueError):
        FieldRule("level", "Level")


def test_rule_rejects_unsupported_value_type() -> None:
    with pytest.raises(TypeError):
        FieldRule("blob", "Blob", value_type=bytes)


def test_extract_record_absorbs_failures_and_keeps_other_fields() -> None:
    spec = packet_spec(QuestOfferPacket)
    fields = _fields(QuestName="Q_Name", QuestTitle="A Title", Level="oops", Mainline=1, MobileID=99)

    extraction = extract_record(
        fields,
        QuestOfferPacket,
        spec.rules,
        timestamp="2024-05-01T12:00:00",
        timestamp_field=spec.timestamp_field,
    )

    offer = extraction.record
    assert offer.quest_name == "Q_Name"
    assert offer.quest_title == "A Title"
    assert offer.level == 0
    assert offer.mainline == 1
    assert offer.mobile_id == 99
    assert offer.goal_data == ""
    assert offer.timestamp == dt.datetime(2024, 5, 1, 12, 0, 0)
    assert [failure.dest for failure in extraction.failures] == ["level"]


def test_extract_record_timestamp_falls_back_when_missing_or_bad() -> None:
    spec = packet_spec(SendGoalPacket)
    missing = extract_record({}, SendGoalPacket, spec.rules, timestamp=None, timestamp_field=spec.timestamp_field)
    bad = extract_record({}, SendGoalPacket, spec.rules, timestamp="yesterday", timestamp_field=spec.timestamp_field)
    assert missing.record.timestamp == TIMESTAMP_MISSING
    assert bad.record.timestamp == TIMESTAMP_MISSING
    assert missing.failures == ()
