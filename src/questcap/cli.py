from __future__ import annotations

from pathlib import Path

import msgspec
import typer

from .capture import CaptureError, all_packets, extract_packets, packet_spec
from .debug import configure_logging, set_debug_enabled
from .quests import QuestTemplate, build_quest_report, goal_type_label

app = typer.Typer(add_completion=False)


def _setup(debug: bool) -> None:
    if debug:
        set_debug_enabled(True)
    configure_logging()


def _quest_line(quest: QuestTemplate) -> str:
    mainline = " mainline" if quest.mainline else ""
    return (
        f"{quest.quest_title} ({quest.quest_name}) level={int(quest.quest_level)}{mainline} "
        f"goals={len(quest.goals)} start={len(quest.start_goals)}"
    )


def _quest_builtins(quest: QuestTemplate) -> dict[str, object]:
    out = msgspec.to_builtins(quest)
    for goal, goal_obj in zip(quest.goals, out["goals"]):
        goal_obj["kind"] = type(goal).__name__
    return out


@app.command("quests")
def cmd_quests(
    capture_file: Path = typer.Argument(..., help="packet capture (.json/.json.gz)"),
    as_json: bool = typer.Option(False, "--json", help="print quests as JSON"),
    debug: bool = typer.Option(False, "--debug", help="log skipped goals and correlation misses"),
) -> None:
    """Rebuild quest templates from a packet capture."""
    _setup(debug)
    try:
        report = build_quest_report(capture_file)
    except CaptureError as exc:
        typer.echo(f"failed to read packet capture: {exc}", err=True)
        raise typer.Exit(code=1) from exc

    if as_json:
        payload = [_quest_builtins(quest) for quest in report.quests]
        typer.echo(msgspec.json.format(msgspec.json.encode(payload)).decode("utf-8"))
        return

    for quest in report.quests:
        typer.echo(_quest_line(quest))
        for goal in quest.goals:
            start = "*" if goal.goal_name in quest.start_goals else " "
            typer.echo(f"  {start} {goal.goal_name} [{goal_type_label(goal.goal_type)}]")
    typer.echo(f"found {len(report.quests)} quests ({len(report.issues)} issues)")


@app.command("packets")
def cmd_packets(
    capture_file: Path = typer.Argument(..., help="packet capture (.json/.json.gz)"),
    packet_name: str = typer.Argument(..., help="packet name, e.g. MSG_QUESTOFFER"),
    debug: bool = typer.Option(False, "--debug", help="log field conversion fallbacks"),
) -> None:
    """Print the records of one packet kind as JSON lines."""
    _setup(debug)
    try:
        spec = packet_spec(packet_name)
    except KeyError:
        known = ", ".join(known_spec.name for known_spec in all_packets())
        typer.echo(f"unknown packet {packet_name!r} (known: {known})", err=True)
        raise typer.Exit(code=1) from None
    try:
        records = extract_packets(capture_file, spec.record_type, spec.name)
    except CaptureError as exc:
        typer.echo(f"failed to read packet capture: {exc}", err=True)
        raise typer.Exit(code=1) from exc

    for record in records:
        typer.echo(msgspec.json.encode(record).decode("utf-8"))


def main(argv: list[str] | None = None) -> None:
    app(prog_name="questcap", args=argv)


if __name__ == "__main__":
    main()
