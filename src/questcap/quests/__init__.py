from __future__ import annotations

from .builder import (
    BuildIssue,
    CorrelationMiss,
    QuestBuildReport,
    build_quest_report,
    build_quests,
    build_quests_async,
)
from .types import (
    AchieveRankGoalTemplate,
    BountyGoalTemplate,
    GoalRecord,
    GoalTemplate,
    GoalType,
    PersonaGoalTemplate,
    QuestGoal,
    QuestTemplate,
    ScavengeGoalTemplate,
    UnknownGoalType,
    WaypointGoalTemplate,
    goal_type_label,
)

__all__ = [
    "AchieveRankGoalTemplate",
    "BountyGoalTemplate",
    "BuildIssue",
    "CorrelationMiss",
    "GoalRecord",
    "GoalTemplate",
    "GoalType",
    "PersonaGoalTemplate",
    "QuestBuildReport",
    "QuestGoal",
    "QuestTemplate",
    "ScavengeGoalTemplate",
    "UnknownGoalType",
    "WaypointGoalTemplate",
    "build_quest_report",
    "build_quests",
    "build_quests_async",
    "goal_type_label",
]
