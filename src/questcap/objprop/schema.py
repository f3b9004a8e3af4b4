from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Callable
import zlib

from construct import Int32ul, PascalString, PrefixedArray, Struct

# Blobs open with a u32 schema hash: crc32 of the schema's class name.
SCHEMA_HASH_PREFIX = b"class "


def schema_hash(name: str) -> int:
    return zlib.crc32(SCHEMA_HASH_PREFIX + name.encode("ascii")) & 0xFFFFFFFF


KI_STRING = PascalString(Int32ul, "utf8")

GOAL_DESCRIPTOR_STRUCT = Struct(
    "goal_name_id" / Int32ul,
    "goal_type" / Int32ul,
    "goal_total" / Int32ul,
    "goal_title" / KI_STRING,
    "goal_location" / KI_STRING,
    "goal_destination_zone" / KI_STRING,
    "goal_image1" / KI_STRING,
    "goal_image2" / KI_STRING,
)

GOAL_COMPILATION_STRUCT = Struct(
    "goals" / PrefixedArray(Int32ul, GOAL_DESCRIPTOR_STRUCT),
)

CLIENT_TAG_LIST_STRUCT = Struct(
    "client_tags" / PrefixedArray(Int32ul, KI_STRING),
)


@dataclass(frozen=True, slots=True, kw_only=True)
class GoalDescriptor:
    goal_name_id: int = 0
    goal_type: int = 0
    goal_total: int = 0
    goal_title: str = ""
    goal_location: str = ""
    goal_destination_zone: str = ""
    goal_image1: str = ""
    goal_image2: str = ""


@dataclass(frozen=True, slots=True)
class GoalCompilation:
    goals: tuple[GoalDescriptor, ...] = ()


@dataclass(frozen=True, slots=True)
class ClientTagList:
    client_tags: tuple[str, ...] = ()


def _goal_descriptor_from(entry: Any) -> GoalDescriptor:
    return GoalDescriptor(
        goal_name_id=int(entry["goal_name_id"]),
        goal_type=int(entry["goal_type"]),
        goal_total=int(entry["goal_total"]),
        goal_title=str(entry["goal_title"]),
        goal_location=str(entry["goal_location"]),
        goal_destination_zone=str(entry["goal_destination_zone"]),
        goal_image1=str(entry["goal_image1"]),
        goal_image2=str(entry["goal_image2"]),
    )


def _goal_descriptor_to(goal: GoalDescriptor) -> dict[str, object]:
    return {
        "goal_name_id": int(goal.goal_name_id),
        "goal_type": int(goal.goal_type),
        "goal_total": int(goal.goal_total),
        "goal_title": goal.goal_title,
        "goal_location": goal.goal_location,
        "goal_destination_zone": goal.goal_destination_zone,
        "goal_image1": goal.goal_image1,
        "goal_image2": goal.goal_image2,
    }


@dataclass(frozen=True, slots=True)
class ObjectSchema:
    name: str
    object_type: type
    layout: Struct
    from_container: Callable[[Any], object]
    to_container: Callable[[Any], dict[str, object]]

    @property
    def hash(self) -> int:
        return schema_hash(self.name)


SCHEMAS: tuple[ObjectSchema, ...] = (
    ObjectSchema(
        name="GoalCompilation",
        object_type=GoalCompilation,
        layout=GOAL_COMPILATION_STRUCT,
        from_container=lambda parsed: GoalCompilation(
            goals=tuple(_goal_descriptor_from(entry) for entry in parsed["goals"]),
        ),
        to_container=lambda value: {"goals": [_goal_descriptor_to(goal) for goal in value.goals]},
    ),
    ObjectSchema(
        name="ClientTagList",
        object_type=ClientTagList,
        layout=CLIENT_TAG_LIST_STRUCT,
        from_container=lambda parsed: ClientTagList(
            client_tags=tuple(str(tag) for tag in parsed["client_tags"]),
        ),
        to_container=lambda value: {"client_tags": [str(tag) for tag in value.client_tags]},
    ),
)

SCHEMAS_BY_HASH: dict[int, ObjectSchema] = {schema.hash: schema for schema in SCHEMAS}
SCHEMAS_BY_TYPE: dict[type, ObjectSchema] = {schema.object_type: schema for schema in SCHEMAS}
