from __future__ import annotations

import asyncio
from collections.abc import Sequence
from dataclasses import dataclass, field, replace
import logging
from pathlib import Path

from ..capture.extract import Extraction, FieldConversionFailure
from ..capture.packets import MSG_QUESTOFFER, MSG_SENDGOAL, MSG_SENDQUEST, QuestOfferPacket, SendGoalPacket, SendQuestPacket
from ..capture.reader import CaptureFile, extract_packet_records, load_capture
from ..objprop.codec import DEFAULT_CODEC, BlobDecodeFailure, ObjectCodec, decode_hex_blob
from ..objprop.schema import ClientTagList, GoalCompilation, GoalDescriptor
from .types import (
    BountyGoalTemplate,
    GoalRecord,
    GoalTemplate,
    QuestGoal,
    QuestTemplate,
    UnknownGoalType,
    goal_name,
    goal_type_code,
    goal_variant_for,
)

logger = logging.getLogger(__name__)

CORRELATION_QUEST_ID = "quest_id"
CORRELATION_GOALS = "goals"


@dataclass(frozen=True, slots=True)
class CorrelationMiss:
    quest_title: str
    kind: str


BuildIssueDetail = FieldConversionFailure | BlobDecodeFailure | UnknownGoalType | CorrelationMiss


@dataclass(frozen=True, slots=True)
class BuildIssue:
    packet: str
    index: int
    detail: BuildIssueDetail


@dataclass(slots=True)
class QuestBuildReport:
    quests: list[QuestTemplate] = field(default_factory=list)
    # Offer index -> announced quest id; scoped to the build that produced it.
    quest_ids: dict[int, int] = field(default_factory=dict)
    issues: list[BuildIssue] = field(default_factory=list)

    def issues_of(self, kind: type) -> list[BuildIssue]:
        return [issue for issue in self.issues if isinstance(issue.detail, kind)]


def _field_issues(packet: str, extractions: Sequence[Extraction]) -> list[BuildIssue]:
    return [
        BuildIssue(packet=packet, index=index, detail=failure)
        for index, extraction in enumerate(extractions)
        for failure in extraction.failures
    ]


def _make_goal(
    variant: type[QuestGoal],
    *,
    ordinal: int,
    goal_name_id: int,
    goal_title: str,
    location_name: str,
    destination_zone: str,
    display_image1: str,
    display_image2: str,
    goal_type: int,
    goal_total: int,
) -> QuestGoal:
    goal = variant(
        goal_name=goal_name(ordinal, goal_title),
        goal_name_id=int(goal_name_id),
        goal_title=goal_title,
        location_name=location_name,
        destination_zone=destination_zone,
        display_image1=display_image1,
        display_image2=display_image2,
        goal_type=goal_type_code(goal_type),
    )
    if isinstance(goal, BountyGoalTemplate):
        goal.bounty_total = int(goal_total)
    return goal


def _goal_from_descriptor(descriptor: GoalDescriptor, ordinal: int) -> GoalRecord | UnknownGoalType:
    variant = goal_variant_for(descriptor.goal_type)
    if isinstance(variant, UnknownGoalType):
        return replace(variant, goal_title=descriptor.goal_title)
    return _make_goal(
        variant,
        ordinal=ordinal,
        goal_name_id=descriptor.goal_name_id,
        goal_title=descriptor.goal_title,
        location_name=descriptor.goal_location,
        destination_zone=descriptor.goal_destination_zone,
        display_image1=descriptor.goal_image1,
        display_image2=descriptor.goal_image2,
        goal_type=descriptor.goal_type,
        goal_total=descriptor.goal_total,
    )


def goals_from_compilation(compilation: GoalCompilation) -> tuple[list[GoalRecord], list[UnknownGoalType]]:
    """Map decoded goal descriptors onto goal variants.

    Names are `<ordinal>_<title>`; the ordinal only advances for goals that
    were actually produced, so a skipped unknown type leaves no gap.
    """

    goals: list[GoalRecord] = []
    skipped: list[UnknownGoalType] = []
    for descriptor in compilation.goals:
        result = _goal_from_descriptor(descriptor, ordinal=len(goals) + 1)
        if isinstance(result, UnknownGoalType):
            skipped.append(result)
            continue
        goals.append(result)
    return goals, skipped


def quest_from_offer(
    offer: QuestOfferPacket,
    *,
    codec: ObjectCodec = DEFAULT_CODEC,
) -> tuple[QuestTemplate, list[BlobDecodeFailure | UnknownGoalType]]:
    quest = QuestTemplate(
        quest_name=offer.quest_name,
        quest_title=offer.quest_title,
        quest_level=int(offer.level),
        mainline=int(offer.mainline) == 1,
    )

    compilation = decode_hex_blob(offer.goal_data, GoalCompilation, codec)
    if isinstance(compilation, BlobDecodeFailure):
        return quest, [compilation]

    goals, skipped = goals_from_compilation(compilation)
    quest.goals = goals
    # Every goal shipped with the offer is active as soon as the quest starts.
    quest.start_goals = [goal.goal_name for goal in goals]
    return quest, list(skipped)


def find_quest_id(quest_title: str, announcements: Sequence[SendQuestPacket]) -> int | None:
    for announcement in announcements:
        if announcement.quest_title == quest_title:
            return int(announcement.quest_id)
    return None


def add_announced_goals(
    quest: QuestTemplate,
    quest_id: int,
    announcements: Sequence[SendGoalPacket],
    *,
    codec: ObjectCodec = DEFAULT_CODEC,
) -> tuple[bool, list[tuple[int, BlobDecodeFailure]]]:
    """Append goals announced for `quest_id` that the quest does not already have.

    Announcements of an unsupported goal type are kept as plain `GoalTemplate`
    goals carrying the raw code. Returns whether any announcement carried the
    quest id, plus the client-tag decode failures keyed by announcement index.
    """

    matched = False
    problems: list[tuple[int, BlobDecodeFailure]] = []
    known_ids = {int(goal.goal_name_id) for goal in quest.goals}
    for index, packet in enumerate(announcements):
        if int(packet.quest_id) != int(quest_id):
            continue
        matched = True
        if int(packet.goal_name_id) in known_ids:
            continue

        variant = goal_variant_for(packet.goal_type)
        if isinstance(variant, UnknownGoalType):
            logger.debug("quest %r: goal %r has unsupported type %d, keeping it untyped", quest.quest_title, packet.goal_title, variant.goal_type)
            variant = GoalTemplate

        goal = _make_goal(
            variant,
            ordinal=len(quest.goals) + 1,
            goal_name_id=packet.goal_name_id,
            goal_title=packet.goal_title,
            location_name=packet.goal_location,
            destination_zone=packet.goal_destination_zone,
            display_image1=packet.goal_image1,
            display_image2=packet.goal_image2,
            goal_type=packet.goal_type,
            goal_total=packet.goal_total,
        )
        if packet.client_tags.strip():
            tags = decode_hex_blob(packet.client_tags, ClientTagList, codec)
            if isinstance(tags, BlobDecodeFailure):
                problems.append((index, tags))
            else:
                goal.client_tags = list(tags.client_tags)

        quest.goals.append(goal)
        known_ids.add(int(goal.goal_name_id))
    return matched, problems


def build_quest_report(
    source: str | Path | CaptureFile,
    *,
    codec: ObjectCodec = DEFAULT_CODEC,
) -> QuestBuildReport:
    capture = source if isinstance(source, CaptureFile) else load_capture(source)
    offer_records = extract_packet_records(capture, QuestOfferPacket)
    quest_records = extract_packet_records(capture, SendQuestPacket)
    goal_records = extract_packet_records(capture, SendGoalPacket)

    report = QuestBuildReport()
    report.issues.extend(_field_issues(MSG_QUESTOFFER, offer_records))
    report.issues.extend(_field_issues(MSG_SENDQUEST, quest_records))
    report.issues.extend(_field_issues(MSG_SENDGOAL, goal_records))

    announcements = [extraction.record for extraction in quest_records]
    goal_announcements = [extraction.record for extraction in goal_records]

    for index, extraction in enumerate(offer_records):
        quest, problems = quest_from_offer(extraction.record, codec=codec)
        for problem in problems:
            if isinstance(problem, BlobDecodeFailure):
                logger.warning("quest %r: goal data not decoded (%s)", quest.quest_title, problem.reason)
            else:
                logger.warning("quest %r: skipping goal %r with unsupported type %d", quest.quest_title, problem.goal_title, problem.goal_type)
            report.issues.append(BuildIssue(packet=MSG_QUESTOFFER, index=index, detail=problem))

        quest_id = find_quest_id(quest.quest_title, announcements)
        if quest_id is None:
            logger.debug("quest %r: no %s announcement", quest.quest_title, MSG_SENDQUEST)
            report.issues.append(
                BuildIssue(
                    packet=MSG_QUESTOFFER,
                    index=index,
                    detail=CorrelationMiss(quest_title=quest.quest_title, kind=CORRELATION_QUEST_ID),
                )
            )
        else:
            report.quest_ids[index] = quest_id
            matched, goal_problems = add_announced_goals(quest, quest_id, goal_announcements, codec=codec)
            if not matched:
                logger.debug("quest %r: no %s announcements for id %d", quest.quest_title, MSG_SENDGOAL, quest_id)
                report.issues.append(
                    BuildIssue(
                        packet=MSG_QUESTOFFER,
                        index=index,
                        detail=CorrelationMiss(quest_title=quest.quest_title, kind=CORRELATION_GOALS),
                    )
                )
            for goal_index, problem in goal_problems:
                logger.warning("quest %r: problem with %s #%d: %s", quest.quest_title, MSG_SENDGOAL, goal_index, problem)
                report.issues.append(BuildIssue(packet=MSG_SENDGOAL, index=goal_index, detail=problem))

        report.quests.append(quest)

    logger.debug("built %d quests with %d issues", len(report.quests), len(report.issues))
    return report


def build_quests(
    source: str | Path | CaptureFile,
    *,
    codec: ObjectCodec = DEFAULT_CODEC,
) -> list[QuestTemplate]:
    return build_quest_report(source, codec=codec).quests


async def build_quests_async(
    source: str | Path | CaptureFile,
    *,
    codec: ObjectCodec = DEFAULT_CODEC,
) -> list[QuestTemplate]:
    return await asyncio.to_thread(build_quests, source, codec=codec)
