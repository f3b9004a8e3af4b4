from __future__ import annotations

import json
from pathlib import Path

from typer.testing import CliRunner

from questcap.cli import app
from questcap.objprop import DEFAULT_CODEC, GoalCompilation, GoalDescriptor


def _record(name: str, **fields: object) -> dict[str, object]:
    return {
        "timestamp": "2024-05-01T12:00:00",
        "data": {"name": name, "fields": {key: {"value": value} for key, value in fields.items()}},
    }


def _capture(write_capture) -> Path:
    blob = DEFAULT_CODEC.encode(
        GoalCompilation(
            goals=(
                GoalDescriptor(goal_name_id=1, goal_type=1, goal_total=3, goal_title="Defeat Rats"),
                GoalDescriptor(goal_name_id=2, goal_type=4, goal_title="Visit Gamma"),
            )
        )
    ).hex()
    return write_capture(
        [
            _record("MSG_QUESTOFFER", QuestName="Q_Rats", QuestTitle="Rat Problem", Level=2, GoalData=blob),
            _record("MSG_SENDQUEST", QuestID=44, QuestTitle="Rat Problem"),
        ]
    )


def test_quests_command_prints_summary(write_capture) -> None:
    path = _capture(write_capture)
    result = CliRunner().invoke(app, ["quests", str(path)])
    assert result.exit_code == 0, result.output
    assert "Rat Problem (Q_Rats) level=2 goals=2 start=2" in result.output
    assert "* 1_Defeat Rats [bounty]" in result.output
    assert "* 2_Visit Gamma [waypoint]" in result.output
    assert "found 1 quests" in result.output


def test_quests_command_json(write_capture) -> None:
    path = _capture(write_capture)
    result = CliRunner().invoke(app, ["quests", str(path), "--json"])
    assert result.exit_code == 0, result.output
    quests = json.loads(result.output)
    assert [goal["kind"] for goal in quests[0]["goals"]] == ["BountyGoalTemplate", "WaypointGoalTemplate"]
    assert quests[0]["start_goals"] == ["1_Defeat Rats", "2_Visit Gamma"]


def test_quests_command_reports_missing_capture(tmp_path: Path) -> None:
    result = CliRunner().invoke(app, ["quests", str(tmp_path / "missing.json")])
    assert result.exit_code == 1
    assert "failed to read packet capture" in result.output


def test_packets_command_prints_json_lines(write_capture) -> None:
    path = _capture(write_capture)
    result = CliRunner().invoke(app, ["packets", str(path), "MSG_SENDQUEST"])
    assert result.exit_code == 0, result.output
    rows = [json.loads(line) for line in result.output.splitlines() if line.strip()]
    assert rows == [{"quest_id": 44, "quest_title": "Rat Problem", "timestamp": "2024-05-01T12:00:00"}]


def test_packets_command_rejects_unknown_packet(write_capture) -> None:
    path = _capture(write_capture)
    result = CliRunner().invoke(app, ["packets", str(path), "MSG_NOPE"])
    assert result.exit_code == 1
    assert "unknown packet" in result.output
    assert "known: MSG_QUESTOFFER, MSG_SENDGOAL, MSG_SENDQUEST" in result.output
