from __future__ import annotations

from dataclasses import dataclass, field
from enum import IntEnum


class GoalType(IntEnum):
    """Goal type codes as carried by goal descriptors and `MSG_SENDGOAL`."""

    UNKNOWN = 0
    BOUNTY = 1
    BOUNTY_COLLECT = 2
    SCAVENGE = 3
    WAYPOINT = 4
    PERSONA = 5
    USAGE = 6
    ACHIEVE_RANK = 7
    SCAVENGE_FAKE = 8
    SOUND_COLLECT = 9


@dataclass(slots=True, kw_only=True)
class GoalTemplate:
    goal_name: str = ""
    goal_name_id: int = 0
    goal_title: str = ""
    location_name: str = ""
    destination_zone: str = ""
    display_image1: str = ""
    display_image2: str = ""
    # Codes outside GoalType are kept as plain ints.
    goal_type: GoalType | int = GoalType.UNKNOWN
    client_tags: list[str] = field(default_factory=list)


@dataclass(slots=True, kw_only=True)
class BountyGoalTemplate(GoalTemplate):
    bounty_total: int = 0


@dataclass(slots=True, kw_only=True)
class ScavengeGoalTemplate(GoalTemplate):
    pass


@dataclass(slots=True, kw_only=True)
class PersonaGoalTemplate(GoalTemplate):
    pass


@dataclass(slots=True, kw_only=True)
class WaypointGoalTemplate(GoalTemplate):
    pass


@dataclass(slots=True, kw_only=True)
class AchieveRankGoalTemplate(GoalTemplate):
    pass


GoalRecord = (
    BountyGoalTemplate
    | ScavengeGoalTemplate
    | PersonaGoalTemplate
    | WaypointGoalTemplate
    | AchieveRankGoalTemplate
)


# Announced goals of an unsupported type stay as the base template.
QuestGoal = GoalRecord | GoalTemplate


@dataclass(frozen=True, slots=True)
class UnknownGoalType:
    goal_type: int
    goal_title: str = ""


def goal_type_code(code: int) -> GoalType | int:
    try:
        return GoalType(int(code))
    except ValueError:
        return int(code)


def goal_type_label(goal_type: GoalType | int) -> str:
    if isinstance(goal_type, GoalType):
        return goal_type.name.lower()
    return str(int(goal_type))


def goal_variant_for(code: int) -> type[GoalRecord] | UnknownGoalType:
    try:
        goal_type = GoalType(int(code))
    except ValueError:
        return UnknownGoalType(goal_type=int(code))

    match goal_type:
        case GoalType.BOUNTY | GoalType.BOUNTY_COLLECT:
            return BountyGoalTemplate
        case GoalType.SCAVENGE | GoalType.USAGE:
            return ScavengeGoalTemplate
        case GoalType.PERSONA:
            return PersonaGoalTemplate
        case GoalType.WAYPOINT:
            return WaypointGoalTemplate
        case GoalType.ACHIEVE_RANK:
            return AchieveRankGoalTemplate
        case _:
            return UnknownGoalType(goal_type=int(goal_type))


def goal_name(ordinal: int, title: str) -> str:
    return f"{int(ordinal)}_{title}"


@dataclass(slots=True, kw_only=True)
class QuestTemplate:
    quest_name: str = ""
    quest_title: str = ""
    quest_level: int = 0
    mainline: bool = False
    goals: list[QuestGoal] = field(default_factory=list)
    start_goals: list[str] = field(default_factory=list)
