"""CLI interface using Typer."""

from __future__ import annotations

import json
from pathlib import Path
from typing import NoReturn, Optional

import typer
from rich.console import Console
from rich.table import Table

from fithouse.app_logging import configure_logging
from fithouse.calculations import DeficitBand
from fithouse.config import get_settings
from fithouse.db import SqliteSnapshotStorage, get_db
from fithouse.models import AppState
from fithouse.reports import describe_log, sorted_logs, summarize_day
from fithouse.serialization import profile_to_dict, settings_to_dict
from fithouse.store import Store, backup_filename
from fithouse.trajectory import build_trajectory

app = typer.Typer(
    help="FitHouse: personal weight and calorie tracking",
    no_args_is_help=True,
)
console = Console()

# Subcommand groups
item_app = typer.Typer(help="Add and remove items for today")
weight_app = typer.Typer(help="Record today's weight")
day_app = typer.Typer(help="Finalize the day in progress")
history_app = typer.Typer(help="Manage logged days")
profile_app = typer.Typer(help="Show and update the profile")
settings_app = typer.Typer(help="Show and update display settings")

app.add_typer(item_app, name="item")
app.add_typer(weight_app, name="weight")
app.add_typer(day_app, name="day")
app.add_typer(history_app, name="history")
app.add_typer(profile_app, name="profile")
app.add_typer(settings_app, name="settings")

BAND_STYLES = {
    DeficitBand.GREEN: "green",
    DeficitBand.YELLOW: "yellow",
    DeficitBand.ORANGE: "dark_orange",
    DeficitBand.RED: "red",
}


# ============================================================================
# Helpers
# ============================================================================


def output_json(response: dict, file=None) -> None:
    """Output JSON response to stdout or file."""
    json_str = json.dumps(response, indent=2)
    if file:
        file.write(json_str)
    else:
        print(json_str)


def build_store() -> Store:
    """Create the process-wide store on the configured database and load it."""
    settings = get_settings()
    store = Store(SqliteSnapshotStorage(get_db(), key=settings.storage.key))
    store.init()
    return store


def get_store(ctx: typer.Context) -> Store:
    store = ctx.obj
    if store is None:
        store = build_store()
        ctx.obj = store
    return store


def format_deficit(deficit: float, band: Optional[DeficitBand]) -> str:
    if band is None:
        return f"{deficit:.0f}"
    return f"[{BAND_STYLES[band]}]{deficit:.0f} ({band.label})[/{BAND_STYLES[band]}]"


def print_day(state: AppState) -> None:
    """Render the current-day items and the deficit gauge."""
    day = state.current_day
    if day.items:
        table = Table(title="Today")
        table.add_column("#", justify="right", style="dim")
        table.add_column("Item", style="cyan")
        table.add_column("Points", justify="right")
        table.add_column("Calories", justify="right")
        for index, item in enumerate(day.items):
            style = "green" if item.points > 0 else "red"
            table.add_row(
                str(index),
                item.name,
                f"[{style}]{item.points:+d}[/{style}]",
                str(item.calories),
            )
        console.print(table)
    else:
        console.print("No items logged today")

    summary = summarize_day(state)
    console.print(f"Total: {summary.total_calories} kcal")
    console.print(f"TDEE: {summary.tdee} kcal")
    console.print(f"Deficit: {format_deficit(summary.deficit, summary.band)}")
    if day.weight is not None:
        console.print(f"Weight: {day.weight:.1f} kg")


def redraw_day_on_change(store: Store) -> None:
    store.subscribe(lambda: print_day(store.state))


def fail(message: str) -> NoReturn:
    console.print(f"[red]{message}[/red]")
    raise typer.Exit(1)


@app.callback()
def main(
    ctx: typer.Context,
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Debug logging"),
) -> None:
    """Track daily calories against TDEE and project weight toward a goal."""
    settings = get_settings()
    configure_logging("DEBUG" if verbose else settings.logging.level)
    ctx.obj = build_store()


# ============================================================================
# Today
# ============================================================================


@app.command()
def today(
    ctx: typer.Context,
    json_output: bool = typer.Option(False, "--json", help="Output as JSON"),
) -> None:
    """Show today's items, TDEE and deficit."""
    store = get_store(ctx)
    state = store.state

    if json_output:
        summary = summarize_day(state)
        output_json({
            "success": True,
            "command": "today",
            "data": {
                "items": [
                    {"name": item.name, "points": item.points}
                    for item in state.current_day.items
                ],
                "weight": state.current_day.weight,
                "total_calories": summary.total_calories,
                "tdee": summary.tdee,
                "deficit": summary.deficit,
                "band": summary.band.value if summary.band else None,
            },
            "human_summary": f"{summary.total_calories} kcal in, deficit {summary.deficit:.0f}",
        })
        return

    print_day(state)


@item_app.command("add")
def item_add(
    ctx: typer.Context,
    name: Optional[str] = typer.Argument(None, help="Item name (default: 'Item N')"),
    points: str = typer.Option(
        "1", "--points", "-p", help="Points (1 point = 100 kcal, negative for activity)"
    ),
) -> None:
    """Add a food or activity to today."""
    store = get_store(ctx)
    if not name:
        name = f"Item {len(store.state.current_day.items) + 1}"
    redraw_day_on_change(store)
    if not store.add_item(name, points):
        fail(f"Invalid points: {points!r}")


@item_app.command("remove")
def item_remove(
    ctx: typer.Context,
    index: int = typer.Argument(..., help="Item number as shown by 'today'"),
) -> None:
    """Remove an item from today."""
    store = get_store(ctx)
    redraw_day_on_change(store)
    store.remove_item(index)


@weight_app.command("set")
def weight_set(
    ctx: typer.Context,
    weight: str = typer.Argument(..., help="Weight in kg"),
) -> None:
    """Set today's weight."""
    store = get_store(ctx)
    redraw_day_on_change(store)
    if not store.set_daily_weight(weight):
        fail(f"Invalid weight: {weight!r}")


@day_app.command("log")
def day_log(
    ctx: typer.Context,
    yes: bool = typer.Option(False, "--yes", "-y", help="Skip confirmation"),
) -> None:
    """Wrap up today and save it to the log."""
    store = get_store(ctx)
    if not yes and not typer.confirm("Wrap up this day and save to log?"):
        raise typer.Abort()
    store.log_day()
    console.print("[green]Day logged![/green]")


# ============================================================================
# History
# ============================================================================


@history_app.command("add")
def history_add(
    ctx: typer.Context,
    date_str: str = typer.Argument(..., help="Date (YYYY-MM-DD)"),
    weight: str = typer.Option(..., "--weight", "-w", help="Weight in kg"),
    points: str = typer.Option(..., "--points", "-p", help="Total points for the day"),
) -> None:
    """Add or replace the log for a past date."""
    store = get_store(ctx)
    if not store.add_historical_log(date_str, weight, points):
        fail("Invalid entry: check date, weight and points")
    console.print("[green]Entry Added/Updated[/green]")


@history_app.command("list")
def history_list(
    ctx: typer.Context,
    json_output: bool = typer.Option(False, "--json", help="Output as JSON"),
) -> None:
    """List logged days, newest first, with their deficit."""
    store = get_store(ctx)
    state = store.state
    breakdowns = [
        describe_log(log, state.profile, state.settings)
        for log in sorted_logs(state.logs)
    ]

    if json_output:
        output_json({
            "success": True,
            "command": "history list",
            "data": {
                "entries": [
                    {
                        "id": b.log.id,
                        "date": b.log.date.isoformat(),
                        "weight": b.log.weight,
                        "total_points": b.log.total_points,
                        "calories": b.calories,
                        "tdee": b.tdee,
                        "deficit": b.deficit,
                        "band": b.band.value,
                    }
                    for b in breakdowns
                ]
            },
            "human_summary": f"{len(breakdowns)} logged days",
        })
        return

    if not breakdowns:
        console.print("No logged days")
        return

    table = Table(title="History")
    table.add_column("ID", style="dim")
    table.add_column("Date", style="cyan")
    table.add_column("Weight", justify="right")
    table.add_column("Points", justify="right")
    table.add_column("Calories", justify="right")
    table.add_column("TDEE", justify="right")
    table.add_column("Deficit", justify="right")

    use_color = state.settings.use_color_coding
    for b in breakdowns:
        weight = f"{b.log.weight:.1f}" if b.log.weight is not None else "-"
        table.add_row(
            str(b.log.id),
            b.log.date.isoformat(),
            weight,
            str(b.log.total_points),
            str(b.calories),
            str(b.tdee),
            format_deficit(b.deficit, b.band if use_color else None),
        )
    console.print(table)


@history_app.command("delete")
def history_delete(
    ctx: typer.Context,
    log_id: int = typer.Argument(..., help="Log ID as shown by 'history list'"),
) -> None:
    """Delete a logged day."""
    store = get_store(ctx)
    if all(log.id != log_id for log in store.state.logs):
        fail(f"No log with ID {log_id}")
    store.delete_log(log_id)
    console.print(f"[green]Deleted log {log_id}[/green]")


# ============================================================================
# Profile and Settings
# ============================================================================


@profile_app.command("show")
def profile_show(
    ctx: typer.Context,
    json_output: bool = typer.Option(False, "--json", help="Output as JSON"),
) -> None:
    """Show the profile."""
    profile = get_store(ctx).state.profile

    if json_output:
        output_json({
            "success": True,
            "command": "profile show",
            "data": profile_to_dict(profile),
            "human_summary": f"{profile.gender}, {profile.age}y, {profile.height}cm, {profile.current_weight}kg",
        })
        return

    console.print("[bold]Profile[/bold]")
    console.print(f"  Age: {profile.age}")
    console.print(f"  Height: {profile.height} cm")
    console.print(f"  Gender: {profile.gender}")
    console.print(f"  Base weight: {profile.base_weight} kg")
    console.print(f"  Current weight: {profile.current_weight} kg")
    console.print(f"  Target weight: {profile.target_weight} kg")
    console.print(f"  Plan: {profile.start_date} to {profile.target_date}")


@profile_app.command("update")
def profile_update(
    ctx: typer.Context,
    age: Optional[int] = typer.Option(None, "--age", help="Age in years"),
    height: Optional[int] = typer.Option(None, "--height", help="Height in cm"),
    base_weight: Optional[float] = typer.Option(None, "--base-weight", help="Weight at plan start (kg)"),
    current_weight: Optional[float] = typer.Option(None, "--current-weight", help="Current weight (kg)"),
    target_weight: Optional[float] = typer.Option(None, "--target-weight", help="Target weight (kg)"),
    start_date: Optional[str] = typer.Option(None, "--start-date", help="Plan start (YYYY-MM-DD)"),
    target_date: Optional[str] = typer.Option(None, "--target-date", help="Plan end (YYYY-MM-DD)"),
    gender: Optional[str] = typer.Option(None, "--gender", help="male or female"),
) -> None:
    """Update profile fields."""
    fields = {
        "age": age,
        "height": height,
        "base_weight": base_weight,
        "current_weight": current_weight,
        "target_weight": target_weight,
        "start_date": start_date,
        "target_date": target_date,
        "gender": gender,
    }
    changes = {name: value for name, value in fields.items() if value is not None}
    if not changes:
        fail("Nothing to update")

    if not get_store(ctx).update_profile(**changes):
        fail("Invalid profile values")
    console.print("[green]Profile updated[/green]")


@settings_app.command("show")
def settings_show(
    ctx: typer.Context,
    json_output: bool = typer.Option(False, "--json", help="Output as JSON"),
) -> None:
    """Show display settings."""
    settings = get_store(ctx).state.settings

    if json_output:
        output_json({
            "success": True,
            "command": "settings show",
            "data": settings_to_dict(settings),
            "human_summary": f"Colour coding {'on' if settings.use_color_coding else 'off'}",
        })
        return

    console.print("[bold]Settings[/bold]")
    console.print(f"  Colour coding: {'on' if settings.use_color_coding else 'off'}")
    console.print(f"  Green deficit: >= {settings.deficit_green} kcal")
    console.print(f"  Yellow deficit: >= {settings.deficit_yellow} kcal")
    console.print(f"  Orange deficit: >= {settings.deficit_orange} kcal")


@settings_app.command("update")
def settings_update(
    ctx: typer.Context,
    color: Optional[bool] = typer.Option(None, "--color/--no-color", help="Colour-code deficits"),
    green: Optional[int] = typer.Option(None, "--green", help="Green threshold (kcal)"),
    yellow: Optional[int] = typer.Option(None, "--yellow", help="Yellow threshold (kcal)"),
    orange: Optional[int] = typer.Option(None, "--orange", help="Orange threshold (kcal)"),
) -> None:
    """Update display settings."""
    fields = {
        "use_color_coding": color,
        "deficit_green": green,
        "deficit_yellow": yellow,
        "deficit_orange": orange,
    }
    changes = {name: value for name, value in fields.items() if value is not None}
    if not changes:
        fail("Nothing to update")

    if not get_store(ctx).update_settings(**changes):
        fail("Invalid settings values")
    console.print("[green]Settings updated[/green]")


# ============================================================================
# Chart
# ============================================================================


@app.command()
def chart(
    ctx: typer.Context,
    step: int = typer.Option(7, "--step", "-s", min=1, help="Show every Nth day"),
    json_output: bool = typer.Option(False, "--json", help="Output as JSON"),
) -> None:
    """Show goal line, logged weights and projection over the plan."""
    store = get_store(ctx)
    trajectory = build_trajectory(store.state, store.clock())

    if json_output:
        output_json({
            "success": True,
            "command": "chart",
            "data": {
                "labels": [d.isoformat() for d in trajectory.dates],
                "goal": trajectory.goal_series,
                "actual": trajectory.actual_series,
                "projected": trajectory.projected_series,
                "average_deficit": trajectory.average_deficit,
            },
            "human_summary": f"Average deficit {trajectory.average_deficit:.0f} kcal/day",
        })
        return

    if not trajectory.points:
        console.print("[yellow]Target date is before start date; nothing to chart[/yellow]")
        return

    table = Table(title="Weight Trajectory")
    table.add_column("Date", style="cyan")
    table.add_column("Goal", justify="right", style="dim")
    table.add_column("Actual", justify="right", style="bright_cyan")
    table.add_column("Projected", justify="right", style="green")

    last = len(trajectory.points) - 1
    for index, point in enumerate(trajectory.points):
        # Keep every logged day and the final day even between steps
        if index % step and index != last and point.actual is None:
            continue
        table.add_row(
            point.date.isoformat(),
            f"{point.goal:.1f}",
            f"{point.actual:.1f}" if point.actual is not None else "",
            f"{point.projected:.1f}" if point.projected is not None else "",
        )
    console.print(table)
    console.print(f"Average deficit since start: {trajectory.average_deficit:.0f} kcal/day")


# ============================================================================
# Import / Export / Reset
# ============================================================================


@app.command("export")
def export_cmd(
    ctx: typer.Context,
    directory: Optional[Path] = typer.Option(None, "--dir", "-d", help="Output directory"),
) -> None:
    """Write a JSON backup of all data."""
    store = get_store(ctx)
    if directory is None:
        directory = get_settings().export.directory
    directory.mkdir(parents=True, exist_ok=True)
    path = directory / backup_filename(store.clock().date())
    path.write_text(store.export_data())
    console.print(f"[green]Exported to {path}[/green]")


@app.command("import")
def import_cmd(
    ctx: typer.Context,
    path: Path = typer.Argument(..., exists=True, dir_okay=False, help="Backup JSON file"),
) -> None:
    """Replace all data with a JSON backup."""
    store = get_store(ctx)
    try:
        text = path.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError):
        fail("Failed to load data.")
    if not store.import_data(text):
        fail("Failed to load data.")
    console.print("[green]Data loaded successfully![/green]")


@app.command()
def reset(
    ctx: typer.Context,
    yes: bool = typer.Option(False, "--yes", "-y", help="Skip confirmation"),
) -> None:
    """Wipe all data and restore defaults."""
    store = get_store(ctx)
    if not yes and not typer.confirm("WARNING: This will wipe all data. Are you sure?"):
        raise typer.Abort()
    store.reset_data()
    console.print("[green]Database reset.[/green]")


if __name__ == "__main__":
    app()
