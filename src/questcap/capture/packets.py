from __future__ import annotations

from dataclasses import dataclass, fields
import datetime as dt
from typing import Callable, Generic, TypeVar

from .extract import TIMESTAMP_FIELD, TIMESTAMP_MISSING, ExtractMethod, FieldRule

_RecordT = TypeVar("_RecordT")

MSG_QUESTOFFER = "MSG_QUESTOFFER"
MSG_SENDQUEST = "MSG_SENDQUEST"
MSG_SENDGOAL = "MSG_SENDGOAL"


@dataclass(frozen=True, slots=True)
class PacketSpec(Generic[_RecordT]):
    name: str
    record_type: type[_RecordT]
    rules: tuple[FieldRule, ...]
    timestamp_field: str | None = None


_PACKETS_BY_NAME: dict[str, PacketSpec] = {}
_PACKETS_BY_TYPE: dict[type, PacketSpec] = {}


def register_packet(name: str, *rules: FieldRule) -> Callable[[type[_RecordT]], type[_RecordT]]:
    def decorator(record_type: type[_RecordT]) -> type[_RecordT]:
        existing = _PACKETS_BY_NAME.get(name)
        if existing is not None:
            raise ValueError(
                f"duplicate packet {name}: {existing.record_type.__name__} vs {record_type.__name__}"
            )
        field_names = [f.name for f in fields(record_type)]  # ty:ignore[invalid-argument-type]
        for rule in rules:
            if rule.dest not in field_names:
                raise ValueError(f"{record_type.__name__} has no field {rule.dest!r} (rule for {rule.source!r})")
        timestamp_field = next((n for n in field_names if n.lower() == TIMESTAMP_FIELD), None)

        spec = PacketSpec(name=name, record_type=record_type, rules=tuple(rules), timestamp_field=timestamp_field)
        _PACKETS_BY_NAME[name] = spec
        _PACKETS_BY_TYPE[record_type] = spec
        return record_type

    return decorator


def packet_spec(key: str | type) -> PacketSpec:
    spec = _PACKETS_BY_NAME.get(key) if isinstance(key, str) else _PACKETS_BY_TYPE.get(key)
    if spec is None:
        raise KeyError(f"unregistered packet: {key!r}")
    return spec


def all_packets() -> list[PacketSpec]:
    return sorted(_PACKETS_BY_NAME.values(), key=lambda spec: spec.name)


@register_packet(
    MSG_QUESTOFFER,
    FieldRule("mobile_id", "MobileID", ExtractMethod.GID),
    FieldRule("quest_name", "QuestName", ExtractMethod.TEXT),
    FieldRule("quest_title", "QuestTitle", ExtractMethod.TEXT),
    FieldRule("quest_info", "QuestInfo", ExtractMethod.TEXT),
    FieldRule("level", "Level", value_type=int),
    FieldRule("rewards", "Rewards", ExtractMethod.HEX),
    FieldRule("goal_data", "GoalData", ExtractMethod.HEX),
    FieldRule("mainline", "Mainline", ExtractMethod.UBYTE),
)
@dataclass(frozen=True, slots=True, kw_only=True)
class QuestOfferPacket:
    mobile_id: int = 0
    quest_name: str = ""
    quest_title: str = ""
    quest_info: str = ""
    level: int = 0
    rewards: str = ""
    goal_data: str = ""
    mainline: int = 0
    timestamp: dt.datetime = TIMESTAMP_MISSING


@register_packet(
    MSG_SENDQUEST,
    FieldRule("quest_id", "QuestID", ExtractMethod.GID),
    FieldRule("quest_title", "QuestTitle", ExtractMethod.TEXT),
)
@dataclass(frozen=True, slots=True, kw_only=True)
class SendQuestPacket:
    quest_id: int = 0
    quest_title: str = ""
    timestamp: dt.datetime = TIMESTAMP_MISSING


@register_packet(
    MSG_SENDGOAL,
    FieldRule("quest_id", "QuestID", ExtractMethod.GID),
    FieldRule("goal_name_id", "GoalNameID", ExtractMethod.UINT),
    FieldRule("goal_title", "GoalTitle", ExtractMethod.TEXT),
    FieldRule("goal_location", "GoalLocation", ExtractMethod.TEXT),
    FieldRule("goal_destination_zone", "GoalDestinationZone", ExtractMethod.TEXT),
    FieldRule("goal_image1", "GoalImage1", ExtractMethod.TEXT),
    FieldRule("goal_image2", "GoalImage2", ExtractMethod.HEX),
    FieldRule("goal_type", "GoalType", ExtractMethod.UBYTE),
    FieldRule("goal_total", "GoalTotal", ExtractMethod.UINT),
    FieldRule("client_tags", "ClientTags", ExtractMethod.HEX),
    FieldRule("no_quest_helper", "NoQuestHelper", ExtractMethod.UBYTE),
    FieldRule("pet_only_quest", "PetOnlyQuest", ExtractMethod.UBYTE),
)
@dataclass(frozen=True, slots=True, kw_only=True)
class SendGoalPacket:
    quest_id: int = 0
    goal_name_id: int = 0
    goal_title: str = ""
    goal_location: str = ""
    goal_destination_zone: str = ""
    goal_image1: str = ""
    goal_image2: str = ""
    goal_type: int = 0
    goal_total: int = 0
    client_tags: str = ""
    no_quest_helper: int = 0
    pet_only_quest: int = 0
    timestamp: dt.datetime = TIMESTAMP_MISSING
