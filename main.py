import sys
import asyncio
import argparse
from typing import List, Optional

# --- Settings/Logging ---
from team_schedule.logging.setup import setup_logging

setup_logging()

from loguru import logger

from team_schedule.models.enums import EventTypeFilter, WindowMode
from team_schedule.models.event import ScheduleEvent
from team_schedule.storage.supabase_client import (
    initialize_supabase,
    SupabaseDataSource,
)
from team_schedule.aggregation.aggregator import (
    ScheduleAggregator,
    filter_by_type,
    partition_by_time,
    count_by_source,
)

from rich import print
from rich.panel import Panel
from rich.table import Table

TYPE_CHOICES = {
    "all": EventTypeFilter.ALL,
    "practice": EventTypeFilter.PRACTICE,
    "meeting": EventTypeFilter.MEETING,
    "game": EventTypeFilter.GAME,
}


def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Show a team's merged schedule.")
    parser.add_argument("team_id", help="Team identifier.")
    parser.add_argument(
        "--upcoming", action="store_true", help="Only events starting from now."
    )
    parser.add_argument(
        "--type", choices=sorted(TYPE_CHOICES), default="all", help="Event type filter."
    )
    return parser.parse_args(argv)


def build_table(title: str, events: List[ScheduleEvent]) -> Table:
    table = Table(title=title, expand=True)
    table.add_column("When")
    table.add_column("Type")
    table.add_column("Title")
    table.add_column("Location")
    for event in events:
        table.add_row(
            event.start_time.strftime("%a %b %d %Y %H:%M"),
            event.label,
            event.title or "Untitled",
            event.location or "TBD",
        )
    return table


async def main(argv: Optional[List[str]] = None) -> None:
    """Main entry point for the application."""
    args = parse_args(argv)
    window_mode = WindowMode.UPCOMING_ONLY if args.upcoming else WindowMode.ALL

    supabase_client = await initialize_supabase()
    if not supabase_client:
        logger.critical("Failed to initialize Supabase client. Exiting.")
        return

    aggregator = ScheduleAggregator(SupabaseDataSource(supabase_client))
    events = await aggregator.fetch_team_schedule(args.team_id, window_mode)
    events = filter_by_type(events, TYPE_CHOICES[args.type])

    if not events:
        logger.warning(f"No events found for team {args.team_id}.")
        print(Panel("No events scheduled.", title=f"Team {args.team_id}"))
        return

    counts = count_by_source(events)
    summary = ", ".join(f"{source.value}: {n}" for source, n in counts.items())
    print(Panel(summary, title=f"Team {args.team_id} schedule"))

    upcoming, past = partition_by_time(events)
    if upcoming:
        print(build_table("Upcoming", upcoming))
    if past:
        print(build_table("Completed", past))


if __name__ == "__main__":
    try:
        asyncio.run(main())
    except KeyboardInterrupt:
        logger.info("Execution interrupted by user (KeyboardInterrupt).")
        sys.exit(0)
    except Exception as e:
        logger.exception(f"Unhandled exception in main execution: {e}")
        sys.exit(1)
