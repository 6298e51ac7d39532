import asyncio
from collections import OrderedDict
from datetime import date, datetime, timezone
from typing import Callable, Dict, Iterable, List, Optional, Tuple

from loguru import logger

from team_schedule.config.settings import settings
from team_schedule.models.auth import AuthContext
from team_schedule.models.enums import EventSource, EventTypeFilter, WindowMode
from team_schedule.models.event import ScheduleEvent
from team_schedule.normalization.normalizer import normalize_rows
from team_schedule.storage.data_source import (
    AnyOf,
    DataSource,
    Eq,
    FilterExpr,
    Gte,
    OrderBy,
    QuerySourceError,
)

START_TIME = "start_time"

# Query order doubles as the tie-break order for events starting together
SOURCE_ORDER: Tuple[EventSource, ...] = (
    EventSource.PRACTICE,
    EventSource.MEETING,
    EventSource.GAME,
)


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


class ScheduleAggregator:
    """Merges practices, meetings and games of a team into one timeline.

    Each call issues three independent queries concurrently and waits for all
    of them. A source that fails or times out contributes no events; the
    failure is logged and never raised, so a schedule view shows whatever the
    other sources returned. Nothing is cached between calls.
    """

    def __init__(
        self,
        data_source: DataSource,
        query_timeout: Optional[float] = None,
        now: Callable[[], datetime] = utc_now,
    ):
        self.data_source = data_source
        self.query_timeout = (
            query_timeout if query_timeout is not None else settings.query_timeout_seconds
        )
        self.now = now
        self.tables: Dict[EventSource, str] = {
            EventSource.PRACTICE: settings.practice_table,
            EventSource.MEETING: settings.meeting_table,
            EventSource.GAME: settings.game_table,
        }

    def _filters_for(
        self, source: EventSource, team_id: str, window_mode: WindowMode
    ) -> List[FilterExpr]:
        if source == EventSource.GAME:
            filters: List[FilterExpr] = [
                AnyOf(
                    left=Eq(field="team1_id", value=team_id),
                    right=Eq(field="team2_id", value=team_id),
                )
            ]
        else:
            filters = [Eq(field="team_id", value=team_id)]
        if window_mode == WindowMode.UPCOMING_ONLY:
            filters.append(Gte(field=START_TIME, value=self.now()))
        return filters

    async def _fetch_source(
        self,
        source: EventSource,
        team_id: str,
        window_mode: WindowMode,
        limit: Optional[int],
    ) -> List[ScheduleEvent]:
        table = self.tables[source]
        try:
            rows = await asyncio.wait_for(
                self.data_source.query_rows(
                    table,
                    self._filters_for(source, team_id, window_mode),
                    OrderBy(field=START_TIME, ascending=True),
                    limit,
                ),
                timeout=self.query_timeout,
            )
            return normalize_rows(rows, source)
        except QuerySourceError as e:
            logger.error(
                f"{source.value} query failed, showing no {source.value} events: {e}"
            )
            return []
        except asyncio.TimeoutError:
            logger.error(
                f"{source.value} query on {table} timed out after {self.query_timeout}s."
            )
            return []
        except Exception as e:
            logger.exception(f"Unexpected error loading {table}: {e}")
            return []

    async def fetch_team_schedule(
        self,
        team_id: str,
        window_mode: WindowMode = WindowMode.ALL,
        limit: Optional[int] = None,
    ) -> List[ScheduleEvent]:
        """Fetches and merges the team's practices, meetings and games.

        Args:
            team_id: The team whose schedule to load. Games match on either side.
            window_mode: ``UPCOMING_ONLY`` restricts every source to events
                starting at or after now.
            limit: Optional row limit applied to each source query.

        Returns:
            Events of all sources sorted by start time. Ties keep the
            practice, meeting, game order. Empty if every source failed.
        """
        if not team_id:
            raise ValueError("team_id is required to fetch a team schedule.")

        logger.info(f"Fetching {window_mode.value} schedule for team {team_id}...")
        results = await asyncio.gather(
            *(
                self._fetch_source(source, team_id, window_mode, limit)
                for source in SOURCE_ORDER
            )
        )

        merged: List[ScheduleEvent] = []
        for events in results:
            merged.extend(events)
        merged.sort(key=lambda event: event.start_time)

        logger.success(
            f"Aggregated {len(merged)} events for team {team_id} "
            f"({', '.join(f'{s.value}={len(r)}' for s, r in zip(SOURCE_ORDER, results))})."
        )
        return merged

    async def upcoming_events(
        self,
        team_id: str,
        per_source_limit: Optional[int] = None,
        limit: Optional[int] = None,
    ) -> List[ScheduleEvent]:
        """The next few events of a team, as shown on the player and coach dashboards."""
        if per_source_limit is None:
            per_source_limit = settings.dashboard_per_source_limit
        if limit is None:
            limit = settings.dashboard_event_limit
        events = await self.fetch_team_schedule(
            team_id, WindowMode.UPCOMING_ONLY, limit=per_source_limit
        )
        return events[:limit]

    async def fetch_for_context(
        self, ctx: AuthContext, window_mode: WindowMode = WindowMode.ALL
    ) -> List[ScheduleEvent]:
        if not ctx.team_id:
            logger.info(f"User {ctx.user_id} has no team; schedule is empty.")
            return []
        return await self.fetch_team_schedule(ctx.team_id, window_mode)


def filter_by_type(
    events: Iterable[ScheduleEvent], event_type: EventTypeFilter
) -> List[ScheduleEvent]:
    if event_type == EventTypeFilter.ALL:
        return list(events)
    return [event for event in events if event.source == event_type]


def partition_by_time(
    events: Iterable[ScheduleEvent], reference: Optional[datetime] = None
) -> Tuple[List[ScheduleEvent], List[ScheduleEvent]]:
    """Splits events into ``(upcoming, past)`` around ``reference`` (default: now).

    An event starting exactly at the reference instant counts as past.
    """
    if reference is None:
        reference = utc_now()
    elif reference.tzinfo is None:
        reference = reference.replace(tzinfo=timezone.utc)
    upcoming: List[ScheduleEvent] = []
    past: List[ScheduleEvent] = []
    for event in events:
        if event.is_upcoming(reference):
            upcoming.append(event)
        else:
            past.append(event)
    return upcoming, past


def group_by_date(
    events: Iterable[ScheduleEvent],
) -> "OrderedDict[date, List[ScheduleEvent]]":
    """Groups events by UTC calendar date, dates ascending."""
    groups: Dict[date, List[ScheduleEvent]] = {}
    for event in events:
        groups.setdefault(event.start_date, []).append(event)
    return OrderedDict(sorted(groups.items(), key=lambda item: item[0]))


def count_by_source(events: Iterable[ScheduleEvent]) -> Dict[EventSource, int]:
    counts = {source: 0 for source in SOURCE_ORDER}
    for event in events:
        counts[event.source] += 1
    return counts
