from datetime import date, datetime, timezone
from typing import Optional, Tuple

from pydantic import BaseModel, ConfigDict, computed_field, field_validator

from .enums import EventSource, GameType, MeetingType

MEETING_LABELS = {
    MeetingType.TEAM_MEETING.value: "Team Meeting",
    MeetingType.PARENT_MEETING.value: "Parent Meeting",
    MeetingType.COACH_MEETING.value: "Coach Meeting",
}

GAME_LABELS = {
    GameType.SCRIMMAGE.value: "Scrimmage",
    GameType.TOURNAMENT.value: "Tournament",
}


class ScheduleEvent(BaseModel):
    """A practice, meeting or game row projected into one uniform shape.

    Built fresh for every aggregation request and never written back. The
    ``id`` is only unique within its source table, so ``key`` is the identity
    to use when events from several sources are mixed.
    """

    model_config = ConfigDict(frozen=True)  # Make instances immutable

    id: str
    source: EventSource
    start_time: datetime
    title: Optional[str] = None
    description: Optional[str] = None
    end_time: Optional[datetime] = None
    location: Optional[str] = None

    team_id: Optional[str] = None  # Practice and meeting rows
    team1_id: Optional[str] = None  # Game rows
    team2_id: Optional[str] = None

    # meeting_type for meetings, schedule_type for games, never set for practices
    subtype: Optional[str] = None

    @field_validator("start_time", "end_time")
    @classmethod
    def _assume_utc(cls, value: Optional[datetime]) -> Optional[datetime]:
        if value is not None and value.tzinfo is None:
            return value.replace(tzinfo=timezone.utc)
        return value

    @property
    def key(self) -> Tuple[EventSource, str]:
        return (self.source, self.id)

    @property
    def start_date(self) -> date:
        """Calendar date of the start time, in UTC."""
        return self.start_time.astimezone(timezone.utc).date()

    @computed_field  # type: ignore[misc]
    @property
    def label(self) -> str:
        """A human-readable event type, as shown on the dashboards."""
        if self.source == EventSource.PRACTICE:
            return "Practice"
        if self.source == EventSource.MEETING:
            return MEETING_LABELS.get(self.subtype or "", "Meeting")
        return GAME_LABELS.get(self.subtype or "", "Game")

    def involves_team(self, team_id: str) -> bool:
        return team_id in (self.team_id, self.team1_id, self.team2_id)

    def is_upcoming(self, reference: datetime) -> bool:
        return self.start_time > reference
