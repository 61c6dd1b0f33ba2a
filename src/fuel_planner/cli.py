#!/usr/bin/env python3
"""
Fuel Planner CLI.

Race-training plans with carbohydrate fueling, synced to Intervals.icu.

Usage:
    fuel-planner plan --race-date 2026-06-13 --race-dist 16 --weeks 18
    fuel-planner upload --race-date 2026-06-13 --race-dist 16 --weeks 18
    fuel-planner analyze --prefix eco16
    fuel-planner calendar --days 14
"""

import argparse
import asyncio
import json
import logging
import sys
from datetime import date, datetime, time, timedelta
from typing import List, Optional

from pydantic import ValidationError as PydanticValidationError
from rich import box
from rich.console import Console
from rich.markup import escape
from rich.panel import Panel
from rich.table import Table

from .config import Settings, get_settings
from .exceptions import AnalysisError, ConfigurationError, FuelPlannerError, PlanGenerationError
from .integrations.base import IntegrationError
from .integrations.intervals import IntervalsClient
from .models.analysis import AnalysisResult, CategoryAnalysis
from .models.plan import FuelRates, RaceConfig
from .services.calendar import fetch_calendar_data
from .services.history_analyzer import ANALYSIS_FAILED_MSG, HistoryAnalyzer
from .services.plan_generator import generate_plan, summarize_weekly_volume

console = Console()
err_console = Console(stderr=True)


def get_category_color(category: str) -> str:
    """Get rich color for a workout category."""
    colors = {
        "long": "cyan",
        "interval": "magenta",
        "easy": "green",
        "race": "red",
    }
    return colors.get(category, "white")


def format_trend(trend: float) -> str:
    """Format a glucose trend with color."""
    if trend < -3:
        color = "red"
        status = "Dropping"
    elif trend > 3:
        color = "yellow"
        status = "Rising"
    else:
        color = "green"
        status = "Stable"
    return f"[{color}]{trend:+.1f} mmol/L/hr ({status})[/{color}]"


def make_client(settings: Settings) -> IntervalsClient:
    """Create an Intervals.icu client from settings."""
    if not settings.intervals_api_key:
        raise ConfigurationError("INTERVALS_API_KEY")
    return IntervalsClient(
        settings.intervals_api_key,
        athlete_id=settings.intervals_athlete_id,
        base_url=settings.intervals_base_url,
        timeout=settings.request_timeout,
        max_retries=settings.max_retries,
    )


def build_race_config(args) -> RaceConfig:
    """Build a validated RaceConfig from plan arguments."""
    return RaceConfig(
        race_name=args.race_name,
        race_date=args.race_date,
        race_dist_km=args.race_dist,
        lthr=args.lthr,
        prefix=args.prefix,
        total_weeks=args.weeks,
        start_km=args.start_km,
        fuel=FuelRates(
            interval=args.fuel_interval,
            long=args.fuel_long,
            easy=args.fuel_easy,
        ),
    )


def cmd_plan(args, settings: Settings):
    """Generate and print a training plan."""
    config = build_race_config(args)
    events = generate_plan(config, args.today)

    if args.json:
        print(json.dumps([e.to_dict() for e in events], indent=2))
        return

    console.print()
    console.print(Panel("[bold]Fuel Planner - Training Plan[/bold]"))
    console.print(f"Race: {escape(config.race_name or config.prefix)} on {config.race_date} ({config.race_dist_km} km)")
    console.print(f"Fuel (g/10min): interval {config.fuel.interval}, long {config.fuel.long}, easy {config.fuel.easy_rate}")
    console.print()

    table = Table(box=box.ROUNDED)
    table.add_column("Date", style="cyan")
    table.add_column("Workout")
    table.add_column("Rate", justify="right")
    table.add_column("Carbs", justify="right")
    for event in events:
        color = get_category_color(event.category.value)
        table.add_row(
            f"{event.start_date_local:%a %d %b}",
            f"[{color}]{escape(event.name)}[/{color}]",
            f"{event.fuel_rate:g}g",
            f"{event.total_carbs_g}g",
        )
    console.print(table)

    console.print()
    console.print("[bold]Weekly volume (estimated minutes)[/bold]")
    for week in summarize_weekly_volume(events):
        console.print(f"  {week.name}: {week.minutes}")
    console.print()
    console.print(f"{len(events)} workouts")


def cmd_upload(args, settings: Settings):
    """Generate a plan and replace future workouts on Intervals.icu."""
    config = build_race_config(args)
    events = generate_plan(config, args.today)
    if not events:
        raise PlanGenerationError(
            "No workouts to upload; the race date has passed",
            details={"race_date": config.race_date.isoformat()},
        )

    # Clear from the same "today" the plan was generated against
    now = datetime.combine(args.today, time.min) if args.today else None

    async def run() -> int:
        async with make_client(settings) as client:
            return await client.upload_plan(events, now=now)

    count = asyncio.run(run())
    console.print(f"[green]Uploaded {count} workouts to Intervals.icu[/green]")


def print_category(label: str, analysis: Optional[CategoryAnalysis]) -> None:
    console.print(f"[bold]{label}[/bold]")
    if analysis is None:
        console.print("  No recent workout")
        console.print()
        return
    console.print(f"  {escape(analysis.activity_name)}")
    console.print(f"  Trend: {format_trend(analysis.trend)}")
    color = "green" if analysis.fuel_change == 0 else "yellow"
    console.print(
        f"  Fuel: {analysis.current_fuel}g -> [{color}]{analysis.suggested_fuel}g[/{color}] per 10 min"
    )
    console.print()


def cmd_analyze(args, settings: Settings):
    """Analyze glucose trends of recent workouts and suggest fuel rates."""
    prefix = args.prefix or settings.default_prefix

    async def run() -> AnalysisResult:
        async with make_client(settings) as client:
            analyzer = HistoryAnalyzer(
                client,
                lookback_days=args.days or settings.lookback_days,
                batch_size=settings.stream_batch_size,
                batch_delay=settings.stream_batch_delay,
            )
            return await analyzer.analyze(prefix, args.today)

    result = asyncio.run(run())
    if result.msg == ANALYSIS_FAILED_MSG:
        raise AnalysisError(result.msg, details={"prefix": prefix})

    if args.json:
        print(json.dumps(result.to_dict(), indent=2))
        return

    console.print()
    console.print(Panel("[bold]Fuel Planner - Glucose Analysis[/bold]"))
    if not result.has_data:
        console.print(f"[yellow]{result.msg or 'No activities found'} for '{escape(prefix)}'[/yellow]")
        return

    print_category("Long run", result.long_run)
    print_category("Interval", result.interval)
    print_category("Easy run", result.easy_run)


def cmd_calendar(args, settings: Settings):
    """Print completed runs and planned workouts around today."""
    today = args.today or date.today()
    start = today - timedelta(days=args.days)
    end = today + timedelta(days=args.days)

    async def run():
        async with make_client(settings) as client:
            return await fetch_calendar_data(
                client,
                start,
                end,
                lthr=args.lthr or settings.default_lthr,
                batch_size=settings.stream_batch_size,
                batch_delay=settings.stream_batch_delay,
            )

    calendar = asyncio.run(run())

    if args.json:
        print(json.dumps([e.to_dict() for e in calendar], indent=2))
        return

    console.print()
    console.print(Panel(f"[bold]Fuel Planner - Calendar[/bold] ({start} to {end})"))
    if not calendar:
        console.print("No entries")
        return

    table = Table(box=box.ROUNDED)
    table.add_column("Date", style="cyan")
    table.add_column("Type")
    table.add_column("Name")
    table.add_column("Km", justify="right")
    table.add_column("Pace", justify="right")
    table.add_column("HR", justify="right")

    type_colors = {"completed": "green", "planned": "blue", "race": "red"}
    for entry in calendar:
        color = type_colors.get(entry.type, "white")
        table.add_row(
            f"{entry.date:%a %d %b}",
            f"[{color}]{entry.type}[/{color}]",
            escape(entry.name),
            f"{entry.distance / 1000:.1f}" if entry.distance else "-",
            f"{entry.pace:.2f}" if entry.pace else "-",
            str(entry.avg_hr) if entry.avg_hr else "-",
        )
    console.print(table)


def add_common_arguments(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        "--today", type=date.fromisoformat, help="Treat this date (YYYY-MM-DD) as today"
    )
    parser.add_argument("--json", action="store_true", help="Print JSON instead of text")


def add_plan_arguments(parser: argparse.ArgumentParser, settings: Settings) -> None:
    parser.add_argument("--race-date", required=True, help="Race date (YYYY-MM-DD)")
    parser.add_argument("--race-name", default="", help="Race name shown on race day")
    parser.add_argument("--race-dist", type=float, default=16, help="Race distance in km")
    parser.add_argument("--weeks", "-w", type=int, default=18, help="Plan length in weeks")
    parser.add_argument("--start-km", type=float, default=8, help="First long run distance in km")
    parser.add_argument("--lthr", type=int, default=settings.default_lthr, help="Lactate threshold HR")
    parser.add_argument("--prefix", default=settings.default_prefix, help="Tag added to workout names")
    parser.add_argument("--fuel-interval", type=float, default=5, help="Interval fuel rate (g/10min)")
    parser.add_argument("--fuel-long", type=float, default=10, help="Long run fuel rate (g/10min)")
    parser.add_argument("--fuel-easy", type=float, help="Easy run fuel rate (defaults to long)")
    add_common_arguments(parser)


def build_parser(settings: Settings) -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="fuel-planner",
        description="Fuel Planner - race training with carbohydrate fueling",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  fuel-planner plan --race-date 2026-06-13 --race-dist 16 --weeks 18 --start-km 8
  fuel-planner upload --race-date 2026-06-13 --race-dist 16 --weeks 18 --start-km 8
  fuel-planner analyze --prefix eco16
  fuel-planner calendar --days 14
        """,
    )

    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    # Plan command
    plan_p = subparsers.add_parser("plan", help="Generate and print a training plan")
    add_plan_arguments(plan_p, settings)

    # Upload command
    upload_p = subparsers.add_parser("upload", help="Generate a plan and upload it to Intervals.icu")
    add_plan_arguments(upload_p, settings)

    # Analyze command
    analyze_p = subparsers.add_parser("analyze", help="Suggest fuel rates from glucose trends")
    analyze_p.add_argument("--prefix", help="Tag contained in workout names")
    analyze_p.add_argument("--days", "-d", type=int, help="Days of history to search")
    add_common_arguments(analyze_p)

    # Calendar command
    calendar_p = subparsers.add_parser("calendar", help="Show completed and planned workouts")
    calendar_p.add_argument("--days", "-d", type=int, default=14, help="Days before and after today")
    calendar_p.add_argument("--lthr", type=int, help="Lactate threshold HR for zone breakdowns")
    add_common_arguments(calendar_p)

    return parser


def main(argv: Optional[List[str]] = None) -> int:
    """Main CLI entry point."""
    settings = get_settings()
    logging.basicConfig(
        level=getattr(logging, settings.log_level.upper(), logging.INFO),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    parser = build_parser(settings)
    args = parser.parse_args(argv)

    commands = {
        "plan": cmd_plan,
        "upload": cmd_upload,
        "analyze": cmd_analyze,
        "calendar": cmd_calendar,
    }
    command = commands.get(args.command)
    if command is None:
        parser.print_help()
        return 1

    try:
        command(args, settings)
    except (FuelPlannerError, IntegrationError, PydanticValidationError) as e:
        err_console.print(f"[red]Error: {escape(str(e))}[/red]")
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
