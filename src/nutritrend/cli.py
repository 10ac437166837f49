"""CLI interface using Typer."""

from __future__ import annotations

import json
from datetime import date
from pathlib import Path
from typing import NoReturn, Optional

import typer
from rich.console import Console
from rich.table import Table

from nutritrend.app_logging import configure_logging
from nutritrend.config import get_settings
from nutritrend.config.settings import Settings, default_config_path
from nutritrend.db import get_db
from nutritrend.targets.models import WEEKDAY_LABELS, DayTargets

app = typer.Typer(
    help="Weight trend tracking and daily macro targets",
    no_args_is_help=True,
)
console = Console()

weight_app = typer.Typer(help="Log weight and track the smoothed trend")
macros_app = typer.Typer(help="Daily macro targets, cycling and overrides")
redistribute_app = typer.Typer(help="Move calories between days of the week")
goals_app = typer.Typer(help="Goal-based calorie and macro calculators")
import_app = typer.Typer(help="Import nutrition history from CSV exports")
config_app = typer.Typer(help="Show or create the configuration file")

app.add_typer(weight_app, name="weight")
app.add_typer(macros_app, name="macros")
app.add_typer(redistribute_app, name="redistribute")
app.add_typer(goals_app, name="goals")
app.add_typer(import_app, name="import")
app.add_typer(config_app, name="config")


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


def fail(command: str, message: str, json_output: bool, suggestions=None) -> NoReturn:
    """Report an error in the requested format and exit with status 1."""
    if json_output:
        response = {"success": False, "command": command, "errors": [message]}
        if suggestions:
            response["suggestions"] = suggestions
        output_json(response)
    else:
        console.print(f"[red]{message}[/red]")
    raise typer.Exit(1)


def ensure_tables() -> None:
    """Ensure tables exist (idempotent)."""
    get_db().initialize_schema()


def parse_date_option(value: Optional[str]) -> date:
    """Parse YYYY-MM-DD, defaulting to today."""
    return date.fromisoformat(value) if value else date.today()


def parse_weekday(value: str) -> int:
    """Parse a weekday given as 0-6 (0 = Sunday) or a name like "Mon"."""
    text = value.strip()
    if text.isdigit():
        day = int(text)
        if 0 <= day <= 6:
            return day
    else:
        for index, label in enumerate(WEEKDAY_LABELS):
            if text[:3].lower() == label.lower():
                return index
    raise ValueError(f"Not a weekday: {value!r} (use 0-6 or Sun..Sat)")


def parse_weekdays(value: Optional[str]) -> list[int]:
    """Parse a comma-separated weekday list."""
    if not value:
        return []
    return sorted({parse_weekday(part) for part in value.split(",") if part.strip()})


def base_targets() -> DayTargets:
    """Base targets from settings."""
    targets = get_settings().targets
    return DayTargets(
        calories=targets.calories,
        protein=targets.protein,
        carbs=targets.carbs,
        fat=targets.fat,
    )


def format_macros(targets) -> str:
    return (
        f"{targets.calories} kcal, P {targets.protein:g}g, "
        f"C {targets.carbs:g}g, F {targets.fat:g}g"
    )


@app.callback()
def main_callback() -> None:
    """Configure logging from settings before any command."""
    configure_logging(get_settings().logging.level)


# Callbacks for sub-apps to auto-create tables on first use
@weight_app.callback()
def weight_callback() -> None:
    """Ensure tables exist before any weight command."""
    ensure_tables()


@macros_app.callback()
def macros_callback() -> None:
    """Ensure tables exist before any macros command."""
    ensure_tables()


@redistribute_app.callback()
def redistribute_callback() -> None:
    """Ensure tables exist before any redistribute command."""
    ensure_tables()


@import_app.callback()
def import_callback() -> None:
    """Ensure tables exist before any import command."""
    ensure_tables()


# ============================================================================
# Weight Tracking Commands
# ============================================================================


@weight_app.command("add")
def weight_add(
    weight: float = typer.Argument(..., help="Weight in kg"),
    date_str: Optional[str] = typer.Option(
        None, "--date", "-d", help="Date (YYYY-MM-DD, default: today)"
    ),
    notes: Optional[str] = typer.Option(None, "--notes", "-n", help="Optional notes"),
    json_output: bool = typer.Option(False, "--json", help="Output as JSON"),
) -> None:
    """Add or replace a weigh-in (trend recomputed automatically)."""
    from nutritrend.tracking.queries import WeightQueries

    half_life = get_settings().tracking.half_life_days
    try:
        measured_at = parse_date_option(date_str)
        with get_db().get_connection() as conn:
            entry = WeightQueries.add_weight(
                conn, weight, measured_at, notes, half_life_days=half_life
            )
    except ValueError as e:
        fail("weight add", str(e), json_output)

    if json_output:
        output_json({
            "success": True,
            "command": "weight add",
            "data": {
                "entry_id": entry.entry_id,
                "date": entry.date.isoformat(),
                "weight_kg": entry.weight_kg,
                "trend_weight_kg": round(entry.trend_weight_kg, 2),
            },
            "human_summary": (
                f"Logged {entry.weight_kg:.1f} kg, trend: {entry.trend_weight_kg:.1f} kg"
            ),
        })
    else:
        console.print(f"[green]Logged:[/green] {entry.weight_kg:.1f} kg on {entry.date}")
        console.print(f"[blue]Trend:[/blue] {entry.trend_weight_kg:.1f} kg")


@weight_app.command("list")
def weight_list(
    days: int = typer.Option(30, "--days", "-d", help="Number of entries to show"),
    json_output: bool = typer.Option(False, "--json", help="Output as JSON"),
) -> None:
    """List weight history with trends."""
    from nutritrend.tracking.queries import WeightQueries
    from nutritrend.tracking.trend import (
        estimate_daily_calorie_balance,
        estimate_weekly_change,
    )

    with get_db().get_connection() as conn:
        history = WeightQueries.get_history(conn, days=days)

    if not history:
        if json_output:
            output_json({
                "success": True,
                "command": "weight list",
                "data": {"entries": []},
                "human_summary": "No weight entries found",
            })
        else:
            console.print("No weight entries found")
        return

    weekly_change = None
    if len(history) >= 2:
        span = (history[-1].date - history[0].date).days
        weekly_change = estimate_weekly_change(
            history[0].trend_weight_kg, history[-1].trend_weight_kg, span
        )

    if json_output:
        output_json({
            "success": True,
            "command": "weight list",
            "data": {
                "entries": [
                    {
                        "date": e.date.isoformat(),
                        "weight_kg": e.weight_kg,
                        "trend_weight_kg": round(e.trend_weight_kg, 2),
                        "notes": e.notes,
                    }
                    for e in history
                ],
                "weekly_change_kg": (
                    round(weekly_change, 2) if weekly_change is not None else None
                ),
                "daily_balance_kcal": (
                    round(estimate_daily_calorie_balance(weekly_change))
                    if weekly_change is not None
                    else None
                ),
            },
            "human_summary": f"{len(history)} entries",
        })
        return

    table = Table(title=f"Weight History (last {len(history)} entries)")
    table.add_column("Date", style="cyan")
    table.add_column("Weight", justify="right")
    table.add_column("Trend", justify="right", style="blue")
    table.add_column("", justify="right")
    table.add_column("Notes")

    prev_trend = None
    for entry in history:
        delta = ""
        if prev_trend is not None:
            delta = f"{entry.trend_weight_kg - prev_trend:+.2f}"
        prev_trend = entry.trend_weight_kg
        table.add_row(
            entry.date.isoformat(),
            f"{entry.weight_kg:.1f}",
            f"{entry.trend_weight_kg:.2f}",
            delta,
            entry.notes or "",
        )

    console.print(table)
    if weekly_change is not None:
        console.print(f"Trend change: [bold]{weekly_change:+.2f} kg/week[/bold]")
        console.print(
            f"Implied balance: {estimate_daily_calorie_balance(weekly_change):+.0f} kcal/day"
        )


@weight_app.command("recompute")
def weight_recompute(
    from_str: Optional[str] = typer.Option(
        None, "--from", help="Recompute from this date (default: all entries)"
    ),
    json_output: bool = typer.Option(False, "--json", help="Output as JSON"),
) -> None:
    """Recompute stored trend values."""
    from nutritrend.tracking.queries import WeightQueries

    half_life = get_settings().tracking.half_life_days
    try:
        start = date.fromisoformat(from_str) if from_str else None
    except ValueError as e:
        fail("weight recompute", str(e), json_output)

    with get_db().get_connection() as conn:
        updated = WeightQueries.recompute_trends(conn, start, half_life_days=half_life)

    if json_output:
        output_json({
            "success": True,
            "command": "weight recompute",
            "data": {"updated": updated},
            "human_summary": f"Recomputed {updated} trend values",
        })
    else:
        console.print(f"[green]Recomputed {updated} trend values[/green]")


@weight_app.command("delete")
def weight_delete(
    date_str: str = typer.Argument(..., help="Date of the weigh-in (YYYY-MM-DD)"),
    json_output: bool = typer.Option(False, "--json", help="Output as JSON"),
) -> None:
    """Delete the weigh-in for a date."""
    from nutritrend.tracking.queries import WeightQueries

    half_life = get_settings().tracking.half_life_days
    try:
        measured_at = date.fromisoformat(date_str)
    except ValueError as e:
        fail("weight delete", str(e), json_output)

    with get_db().get_connection() as conn:
        deleted = WeightQueries.delete_entry_by_date(
            conn, measured_at, half_life_days=half_life
        )

    if not deleted:
        fail("weight delete", f"No weigh-in on {measured_at}", json_output)

    if json_output:
        output_json({
            "success": True,
            "command": "weight delete",
            "data": {"date": measured_at.isoformat()},
            "human_summary": f"Deleted weigh-in on {measured_at}",
        })
    else:
        console.print(f"[green]Deleted weigh-in on {measured_at}[/green]")


# ============================================================================
# Macro Target Commands
# ============================================================================


@macros_app.command("targets")
def macros_targets(
    date_str: Optional[str] = typer.Option(
        None, "--date", "-d", help="Date (YYYY-MM-DD, default: today)"
    ),
    json_output: bool = typer.Option(False, "--json", help="Output as JSON"),
) -> None:
    """Show the effective targets for a date and where they come from."""
    from nutritrend.targets.resolver import resolve_targets_with_source

    try:
        on_date = parse_date_option(date_str)
    except ValueError as e:
        fail("macros targets", str(e), json_output)

    with get_db().get_connection() as conn:
        resolved = resolve_targets_with_source(conn, on_date, base_targets())

    fields = ("calories", "protein", "carbs", "fat")
    if json_output:
        output_json({
            "success": True,
            "command": "macros targets",
            "data": {
                "date": on_date.isoformat(),
                "source": resolved.source.value,
                "targets": resolved.targets.to_dict(),
                "ranges": {name: list(resolved.range(name)) for name in fields},
            },
            "human_summary": (
                f"{on_date}: {format_macros(resolved.targets)} ({resolved.source.value})"
            ),
        })
        return

    table = Table(title=f"Targets for {on_date} ({resolved.source.value})")
    table.add_column("Macro", style="cyan")
    table.add_column("Target", justify="right")
    table.add_column("Range", justify="right", style="dim")
    for name in fields:
        low, high = resolved.range(name)
        table.add_row(name, f"{getattr(resolved.targets, name):g}", f"{low}-{high}")
    console.print(table)


@macros_app.command("override")
def macros_override(
    date_str: str = typer.Argument(..., help="Date (YYYY-MM-DD)"),
    calories: int = typer.Option(..., "--calories", "-c", help="Calories"),
    protein: float = typer.Option(..., "--protein", "-p", help="Protein (g)"),
    carbs: float = typer.Option(..., "--carbs", help="Carbs (g)"),
    fat: float = typer.Option(..., "--fat", "-f", help="Fat (g)"),
    json_output: bool = typer.Option(False, "--json", help="Output as JSON"),
) -> None:
    """Pin targets to a date, replacing any existing override."""
    from nutritrend.targets.queries import MacroCycleQueries

    try:
        on_date = date.fromisoformat(date_str)
        targets = DayTargets(calories=calories, protein=protein, carbs=carbs, fat=fat)
    except ValueError as e:
        fail("macros override", str(e), json_output)

    with get_db().get_connection() as conn:
        override = MacroCycleQueries.set_override(conn, on_date, targets)

    if json_output:
        output_json({
            "success": True,
            "command": "macros override",
            "data": {"date": on_date.isoformat(), **override.targets.to_dict()},
            "human_summary": f"Override for {on_date}: {format_macros(targets)}",
        })
    else:
        console.print(f"[green]Override set for {on_date}:[/green] {format_macros(targets)}")


@macros_app.command("clear")
def macros_clear(
    date_str: Optional[str] = typer.Argument(None, help="Date (YYYY-MM-DD)"),
    all_dates: bool = typer.Option(False, "--all", help="Clear every override"),
    json_output: bool = typer.Option(False, "--json", help="Output as JSON"),
) -> None:
    """Remove the override for a date, or all overrides."""
    from nutritrend.targets.queries import MacroCycleQueries

    if not all_dates and not date_str:
        fail("macros clear", "Give a date or --all", json_output)

    try:
        on_date = date.fromisoformat(date_str) if date_str else None
    except ValueError as e:
        fail("macros clear", str(e), json_output)

    with get_db().get_connection() as conn:
        if all_dates:
            MacroCycleQueries.clear_all_overrides(conn)
        else:
            MacroCycleQueries.clear_override(conn, on_date)

    summary = "Cleared all overrides" if all_dates else f"Cleared override for {on_date}"
    if json_output:
        output_json({
            "success": True,
            "command": "macros clear",
            "data": {"date": on_date.isoformat() if on_date else None, "all": all_dates},
            "human_summary": summary,
        })
    else:
        console.print(f"[green]{summary}[/green]")


@macros_app.command("overrides")
def macros_overrides(
    json_output: bool = typer.Option(False, "--json", help="Output as JSON"),
) -> None:
    """List all per-date overrides."""
    from nutritrend.targets.queries import MacroCycleQueries
    from nutritrend.targets.resolver import day_of_week

    with get_db().get_connection() as conn:
        overrides = MacroCycleQueries.get_all_overrides(conn)

    if json_output:
        output_json({
            "success": True,
            "command": "macros overrides",
            "data": {
                "overrides": [
                    {"date": o.date.isoformat(), **o.targets.to_dict()} for o in overrides
                ]
            },
            "human_summary": f"{len(overrides)} overrides",
        })
        return

    if not overrides:
        console.print("No overrides set")
        return

    table = Table(title="Date Overrides")
    table.add_column("Date", style="cyan")
    table.add_column("Day")
    table.add_column("Calories", justify="right")
    table.add_column("Protein", justify="right")
    table.add_column("Carbs", justify="right")
    table.add_column("Fat", justify="right")
    for o in overrides:
        table.add_row(
            o.date.isoformat(),
            WEEKDAY_LABELS[day_of_week(o.date)],
            str(o.calories),
            f"{o.protein:g}",
            f"{o.carbs:g}",
            f"{o.fat:g}",
        )
    console.print(table)


@macros_app.command("average")
def macros_average(
    json_output: bool = typer.Option(False, "--json", help="Output as JSON"),
) -> None:
    """Show the average of the configured cycling days."""
    from nutritrend.targets.queries import MacroCycleQueries
    from nutritrend.targets.resolver import calculate_weekly_average

    with get_db().get_connection() as conn:
        config = MacroCycleQueries.get_or_create_config(conn)

    average = calculate_weekly_average(config)
    if json_output:
        output_json({
            "success": True,
            "command": "macros average",
            "data": {"days": len(config.day_targets), **average.to_dict()},
            "human_summary": f"Weekly average: {format_macros(average)}",
        })
    else:
        console.print(
            f"Average over {len(config.day_targets)} days: {format_macros(average)}"
        )


@macros_app.command("day-type")
def macros_day_type(
    weekday: str = typer.Argument(..., help="Weekday (0-6 or Sun..Sat)"),
    json_output: bool = typer.Option(False, "--json", help="Output as JSON"),
) -> None:
    """Show how a weekday is classified under the active pattern."""
    from nutritrend.targets.queries import MacroCycleQueries
    from nutritrend.targets.resolver import get_day_type

    try:
        day = parse_weekday(weekday)
    except ValueError as e:
        fail("macros day-type", str(e), json_output)

    with get_db().get_connection() as conn:
        config = MacroCycleQueries.get_or_create_config(conn)

    day_type = get_day_type(day, config)
    label = day_type.value if day_type else None
    if json_output:
        output_json({
            "success": True,
            "command": "macros day-type",
            "data": {"weekday": day, "day_type": label},
            "human_summary": f"{WEEKDAY_LABELS[day]}: {label or 'no cycling'}",
        })
    else:
        console.print(f"{WEEKDAY_LABELS[day]}: [bold]{label or 'no cycling'}[/bold]")


@macros_app.command("cycle")
def macros_cycle(
    pattern: str = typer.Option(
        "training_rest",
        "--pattern",
        help="training_rest, high_low_carb, even_distribution or custom",
    ),
    marked: Optional[str] = typer.Option(
        None, "--marked", "-m", help="Training/high-carb days, e.g. Mon,Wed,Fri"
    ),
    adjust_calories: int = typer.Option(0, "--calories", help="Calorie adjustment"),
    adjust_protein: float = typer.Option(0, "--protein", help="Protein adjustment (g)"),
    adjust_carbs: float = typer.Option(0, "--carbs", help="Carb adjustment (g)"),
    adjust_fat: float = typer.Option(0, "--fat", help="Fat adjustment (g)"),
    json_output: bool = typer.Option(False, "--json", help="Output as JSON"),
) -> None:
    """Enable cycling, building the week's targets from base targets."""
    from nutritrend.targets.models import MacroAdjustment, PatternType
    from nutritrend.targets.queries import MacroCycleQueries
    from nutritrend.targets.resolver import calculate_day_targets

    try:
        pattern_type = PatternType(pattern)
        if pattern_type == PatternType.REDISTRIBUTION:
            raise ValueError("Use 'nutritrend redistribute' for redistribution")
        marked_days = parse_weekdays(marked)
        week = calculate_day_targets(
            base_targets(),
            pattern_type,
            marked_days,
            MacroAdjustment(adjust_calories, adjust_protein, adjust_carbs, adjust_fat),
        )
    except ValueError as e:
        fail("macros cycle", str(e), json_output)

    with get_db().get_connection() as conn:
        config = MacroCycleQueries.update_config(
            conn,
            enabled=True,
            pattern_type=pattern_type,
            marked_days=marked_days,
            day_targets=week,
        )

    if json_output:
        output_json({
            "success": True,
            "command": "macros cycle",
            "data": {
                "pattern_type": pattern_type.value,
                "marked_days": config.marked_days,
                "day_targets": {
                    str(day): targets.to_dict()
                    for day, targets in sorted(config.day_targets.items())
                },
            },
            "human_summary": f"Cycling enabled ({pattern_type.value})",
        })
        return

    table = Table(title=f"Macro Cycling: {pattern_type.value}")
    table.add_column("Day", style="cyan")
    table.add_column("Calories", justify="right")
    table.add_column("Protein", justify="right")
    table.add_column("Carbs", justify="right")
    table.add_column("Fat", justify="right")
    for day, targets in sorted(config.day_targets.items()):
        table.add_row(
            WEEKDAY_LABELS[day] + (" *" if day in config.marked_days else ""),
            str(targets.calories),
            f"{targets.protein:g}",
            f"{targets.carbs:g}",
            f"{targets.fat:g}",
        )
    console.print(table)


@macros_app.command("disable")
def macros_disable(
    json_output: bool = typer.Option(False, "--json", help="Output as JSON"),
) -> None:
    """Turn macro cycling off (overrides still apply)."""
    from nutritrend.targets.queries import MacroCycleQueries

    with get_db().get_connection() as conn:
        MacroCycleQueries.disable_cycling(conn)

    if json_output:
        output_json({
            "success": True,
            "command": "macros disable",
            "data": {"enabled": False},
            "human_summary": "Cycling disabled",
        })
    else:
        console.print("[green]Cycling disabled[/green]")


# ============================================================================
# Redistribution Commands
# ============================================================================


def _budget_rows(days) -> list[dict]:
    from nutritrend.targets.redistribution import get_day_warning, get_deviation_percent

    total = sum(day.calories for day in days)
    average = total / 7 if days else 0
    return [
        {
            "date": day.date.isoformat(),
            "day": day.day_label,
            "calories": day.calories,
            "protein": day.protein,
            "carbs": day.carbs,
            "fat": day.fat,
            "locked": day.locked,
            "is_today": day.is_today,
            "is_past": day.is_past,
            "deviation_percent": get_deviation_percent(day.calories, total),
            "warning": get_day_warning(day.calories, average),
        }
        for day in days
    ]


def _print_budget(days, title: str) -> None:
    rows = _budget_rows(days)
    table = Table(title=title)
    table.add_column("Date", style="cyan")
    table.add_column("Day")
    table.add_column("Calories", justify="right")
    table.add_column("P/C/F", justify="right")
    table.add_column("vs avg", justify="right")
    table.add_column("")
    for row in rows:
        flags = []
        if row["locked"]:
            flags.append("locked")
        if row["is_past"]:
            flags.append("past")
        if row["is_today"]:
            flags.append("today")
        if row["warning"]:
            flags.append(f"[yellow]{row['warning']}[/yellow]")
        table.add_row(
            row["date"],
            row["day"],
            str(row["calories"]),
            f"{row['protein']:g}/{row['carbs']:g}/{row['fat']:g}",
            f"{row['deviation_percent']:+d}%",
            ", ".join(flags),
        )
    console.print(table)
    console.print(f"Weekly total: [bold]{sum(r['calories'] for r in rows)} kcal[/bold]")


def _current_week(conn, today: date):
    """Saved redistribution week, or a fresh week at base targets."""
    from nutritrend.targets.queries import MacroCycleQueries
    from nutritrend.targets.redistribution import (
        generate_initial_budget,
        load_redistribution,
        week_start_for,
    )

    saved = load_redistribution(conn, today)
    if saved is not None:
        return saved, True

    locked_days, start_day = MacroCycleQueries.get_redistribution_config(conn)
    base = base_targets()
    days = generate_initial_budget(
        base.calories,
        base.protein,
        base.carbs,
        base.fat,
        week_start_for(today, start_day),
        today,
    )
    for day in days:
        day.locked = day.day_of_week in locked_days
    return days, False


@redistribute_app.command("show")
def redistribute_show(
    json_output: bool = typer.Option(False, "--json", help="Output as JSON"),
) -> None:
    """Show this week's calorie budget."""
    today = date.today()
    with get_db().get_connection() as conn:
        days, saved = _current_week(conn, today)

    if json_output:
        output_json({
            "success": True,
            "command": "redistribute show",
            "data": {
                "saved": saved,
                "weekly_total": sum(d.calories for d in days),
                "days": _budget_rows(days),
            },
            "human_summary": f"Week of {days[0].date} ({'saved' if saved else 'base targets'})",
        })
    else:
        _print_budget(days, f"Week of {days[0].date}" + ("" if saved else " (not saved)"))


@redistribute_app.command("adjust")
def redistribute_adjust(
    date_str: str = typer.Argument(..., help="Day to change (YYYY-MM-DD)"),
    calories: int = typer.Argument(..., help="New calories for that day"),
    lock: Optional[str] = typer.Option(
        None, "--lock", help="Weekdays to hold fixed, e.g. Sat,Sun"
    ),
    json_output: bool = typer.Option(False, "--json", help="Output as JSON"),
) -> None:
    """Change one day's calories and rebalance the rest of the week."""
    from nutritrend.targets.redistribution import redistribute_calories, save_redistribution

    today = date.today()
    protein_floor = get_settings().targets.protein_floor
    try:
        on_date = date.fromisoformat(date_str)
        locked = parse_weekdays(lock) if lock is not None else None
    except ValueError as e:
        fail("redistribute adjust", str(e), json_output)

    with get_db().get_connection() as conn:
        days, _ = _current_week(conn, today)
        if locked is not None:
            for day in days:
                day.locked = day.day_of_week in locked

        index = next((i for i, d in enumerate(days) if d.date == on_date), None)
        if index is None:
            fail(
                "redistribute adjust",
                f"{on_date} is not in the week of {days[0].date}",
                json_output,
            )
        if days[index].is_past:
            fail("redistribute adjust", f"{on_date} is already past", json_output)

        result = redistribute_calories(days, index, calories, protein_floor)
        if result is None:
            fail(
                "redistribute adjust",
                "Cannot absorb that change in the remaining days",
                json_output,
                suggestions=["Unlock some days or choose a smaller change"],
            )
        save_redistribution(conn, result, days[0].day_of_week)

    if json_output:
        output_json({
            "success": True,
            "command": "redistribute adjust",
            "data": {
                "weekly_total": sum(d.calories for d in result),
                "days": _budget_rows(result),
            },
            "human_summary": f"{on_date} set to {calories} kcal, week rebalanced",
        })
    else:
        _print_budget(result, f"Week of {result[0].date}")


@redistribute_app.command("save")
def redistribute_save(
    start_day: Optional[str] = typer.Option(
        None, "--start-day", help="Weekday the budget week starts on (0-6 or Sun..Sat)"
    ),
    lock: Optional[str] = typer.Option(
        None, "--lock", help="Weekdays to hold fixed, e.g. Sat,Sun"
    ),
    json_output: bool = typer.Option(False, "--json", help="Output as JSON"),
) -> None:
    """Start a fresh week at base targets and save it."""
    from nutritrend.targets.queries import MacroCycleQueries
    from nutritrend.targets.redistribution import (
        generate_initial_budget,
        save_redistribution,
        week_start_for,
    )

    today = date.today()
    try:
        start = parse_weekday(start_day) if start_day is not None else None
        locked = parse_weekdays(lock) if lock is not None else None
    except ValueError as e:
        fail("redistribute save", str(e), json_output)

    with get_db().get_connection() as conn:
        saved_locked, saved_start = MacroCycleQueries.get_redistribution_config(conn)
        start = saved_start if start is None else start
        locked = saved_locked if locked is None else locked

        base = base_targets()
        days = generate_initial_budget(
            base.calories,
            base.protein,
            base.carbs,
            base.fat,
            week_start_for(today, start),
            today,
        )
        for day in days:
            day.locked = day.day_of_week in locked
        save_redistribution(conn, days, start)

    if json_output:
        output_json({
            "success": True,
            "command": "redistribute save",
            "data": {"start_day": start, "locked_days": locked, "days": _budget_rows(days)},
            "human_summary": f"Saved week of {days[0].date}",
        })
    else:
        _print_budget(days, f"Saved week of {days[0].date}")


# ============================================================================
# Goal Calculator Commands
# ============================================================================


@goals_app.command("calc")
def goals_calc(
    sex: str = typer.Option(..., "--sex", help="male or female"),
    age: int = typer.Option(..., "--age", help="Age in years"),
    height_cm: float = typer.Option(..., "--height", help="Height in cm"),
    weight_kg: float = typer.Option(..., "--weight", help="Weight in kg"),
    activity: str = typer.Option(
        "moderately_active",
        "--activity",
        help="sedentary, lightly_active, moderately_active, very_active, extremely_active",
    ),
    goal: str = typer.Option("maintain", "--goal", help="lose, maintain or gain"),
    rate: float = typer.Option(0.5, "--rate", help="% of body weight per week"),
    target_weight: Optional[float] = typer.Option(
        None, "--target-weight", help="Target weight in kg"
    ),
    json_output: bool = typer.Option(False, "--json", help="Output as JSON"),
) -> None:
    """Calculate BMR, TDEE and goal-based daily targets."""
    from nutritrend.profiles.body_calc import (
        BodyMetrics,
        GoalType,
        calculate_bmr,
        calculate_goal_macros,
        calculate_tdee,
        calculate_time_to_goal,
        validate_goal,
    )

    try:
        metrics = BodyMetrics(
            sex=sex,
            age_years=age,
            height_cm=height_cm,
            weight_kg=weight_kg,
            activity_level=activity,
        )
        goal_type = GoalType(goal.lower())
    except ValueError as e:
        fail("goals calc", str(e), json_output)

    if goal_type == GoalType.MAINTAIN:
        rate = 0.0
    bmr = calculate_bmr(metrics)
    tdee = calculate_tdee(metrics)
    macros = calculate_goal_macros(metrics, goal_type, rate)
    timeline = calculate_time_to_goal(weight_kg, target_weight, rate)
    validation = validate_goal(metrics, goal_type, rate)

    if json_output:
        output_json({
            "success": True,
            "command": "goals calc",
            "data": {
                "bmr": bmr,
                "tdee": tdee,
                "targets": macros.to_dict(),
                "weeks_to_goal": timeline[0] if timeline else None,
                "months_to_goal": timeline[1] if timeline else None,
                "warnings": validation.warnings,
            },
            "human_summary": f"TDEE {tdee} kcal, target {macros.calories} kcal",
        })
        return

    console.print(f"BMR: {bmr} kcal/day")
    console.print(f"TDEE: {tdee} kcal/day")
    console.print(f"[bold]Target:[/bold] {format_macros(macros)}")
    if timeline:
        console.print(f"Projected: {timeline[0]} weeks (~{timeline[1]} months)")
    for warning in validation.warnings:
        console.print(f"[yellow]Warning:[/yellow] {warning}")


@goals_app.command("macros")
def goals_macros(
    weight_kg: float = typer.Option(..., "--weight", help="Weight in kg"),
    calories: int = typer.Option(..., "--calories", help="Daily calorie target"),
    style: str = typer.Option(
        "flexible",
        "--style",
        help="flexible, carb_focused, fat_focused or very_low_carb",
    ),
    protein: str = typer.Option(
        "active", "--protein", help="standard, active, athletic or maximum"
    ),
    json_output: bool = typer.Option(False, "--json", help="Output as JSON"),
) -> None:
    """Split a calorie target into macros by eating style."""
    from nutritrend.profiles.body_calc import (
        EatingStyle,
        ProteinPriority,
        calculate_macro_breakdown,
        validate_macros,
    )

    try:
        breakdown = calculate_macro_breakdown(
            weight_kg, calories, EatingStyle(style), ProteinPriority(protein)
        )
    except ValueError as e:
        fail("goals macros", str(e), json_output)

    validation = validate_macros(breakdown)
    if json_output:
        output_json({
            "success": True,
            "command": "goals macros",
            "data": {**breakdown.to_dict(), "warnings": validation.warnings},
            "human_summary": format_macros(breakdown),
        })
        return

    table = Table(title=f"{calories} kcal, {style}")
    table.add_column("Macro", style="cyan")
    table.add_column("Grams", justify="right")
    table.add_column("kcal", justify="right")
    table.add_column("%", justify="right")
    table.add_row("Protein", str(breakdown.protein), str(breakdown.protein_calories), str(breakdown.protein_percent))
    table.add_row("Carbs", str(breakdown.carbs), str(breakdown.carbs_calories), str(breakdown.carbs_percent))
    table.add_row("Fat", str(breakdown.fat), str(breakdown.fat_calories), str(breakdown.fat_percent))
    console.print(table)
    if breakdown.carb_cap_applied:
        console.print("[dim]Carb cap applied; excess moved to fat[/dim]")
    for warning in validation.warnings:
        console.print(f"[yellow]Warning:[/yellow] {warning}")


# ============================================================================
# Import Commands
# ============================================================================


@import_app.command("csv")
def import_csv(
    csv_path: Path = typer.Argument(..., help="Path to the exported CSV file"),
    dry_run: bool = typer.Option(False, "--dry-run", help="Parse only, write nothing"),
    json_output: bool = typer.Option(False, "--json", help="Output as JSON"),
) -> None:
    """Import daily meals from a MacroFactor or NutritionRx CSV export."""
    from nutritrend.importing import NutritionImporter, NutritionImportError

    importer = NutritionImporter()
    try:
        session = importer.analyze(csv_path)
    except NutritionImportError as e:
        fail("import csv", str(e), json_output)

    imported = 0
    if not dry_run:
        with get_db().get_connection() as conn:
            imported = importer.run(conn, session)

    summary = (
        f"Parsed {session.total_days} days from {session.file_name}"
        if dry_run
        else f"Imported {imported} days from {session.file_name}"
    )
    if json_output:
        output_json({
            "success": True,
            "command": "import csv",
            "data": {
                "source": session.source,
                "total_days": session.total_days,
                "imported_days": imported,
                "first_date": session.days[0].date.isoformat(),
                "last_date": session.days[-1].date.isoformat(),
                "warnings": [
                    {"line": w.line, "message": w.message} for w in session.warnings
                ],
            },
            "human_summary": summary,
        })
        return

    console.print(f"[green]{summary}[/green]")
    for warning in session.warnings:
        console.print(f"[yellow]Line {warning.line}:[/yellow] {warning.message}")


# ============================================================================
# Config Commands
# ============================================================================


@config_app.command("show")
def config_show(
    json_output: bool = typer.Option(False, "--json", help="Output as JSON"),
) -> None:
    """Show the active settings."""
    settings = get_settings()
    data = {
        "config_path": str(default_config_path()),
        "database_path": str(settings.database.path),
        "half_life_days": settings.tracking.half_life_days,
        "targets": {
            "calories": settings.targets.calories,
            "protein": settings.targets.protein,
            "carbs": settings.targets.carbs,
            "fat": settings.targets.fat,
            "protein_floor": settings.targets.protein_floor,
        },
        "log_level": settings.logging.level,
    }
    if json_output:
        output_json({
            "success": True,
            "command": "config show",
            "data": data,
            "human_summary": f"Config at {data['config_path']}",
        })
        return

    console.print(f"Config: {data['config_path']}")
    console.print(f"Database: {data['database_path']}")
    console.print(f"Trend half-life: {data['half_life_days']:g} days")
    console.print(f"Base targets: {format_macros(base_targets())}")
    console.print(f"Protein floor: {settings.targets.protein_floor:g}g")
    console.print(f"Log level: {data['log_level']}")


@config_app.command("init")
def config_init(
    force: bool = typer.Option(False, "--force", help="Overwrite an existing file"),
    json_output: bool = typer.Option(False, "--json", help="Output as JSON"),
) -> None:
    """Write a config file with default settings."""
    path = default_config_path()
    if path.exists() and not force:
        fail(
            "config init",
            f"{path} already exists",
            json_output,
            suggestions=["Use --force to overwrite"],
        )

    Settings().save(path)
    if json_output:
        output_json({
            "success": True,
            "command": "config init",
            "data": {"config_path": str(path)},
            "human_summary": f"Wrote {path}",
        })
    else:
        console.print(f"[green]Wrote {path}[/green]")


if __name__ == "__main__":
    app()
