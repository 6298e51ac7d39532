from enum import Enum


class EventSource(str, Enum):
    """Which schedule table an event was read from."""

    PRACTICE = "Practice"
    MEETING = "Meeting"
    GAME = "Game"


class EventTypeFilter(str, Enum):
    ALL = "All"
    PRACTICE = "Practice"
    MEETING = "Meeting"
    GAME = "Game"


class WindowMode(str, Enum):
    ALL = "All"
    UPCOMING_ONLY = "UpcomingOnly"


class MeetingType(str, Enum):
    TEAM_MEETING = "team_meeting"
    PARENT_MEETING = "parent_meeting"
    COACH_MEETING = "coach_meeting"
    OTHER = "other"


class GameType(str, Enum):
    SCRIMMAGE = "scrimmage"
    TOURNAMENT = "tournament"


class Role(str, Enum):
    ADMIN = "admin"
    COACH = "coach"
    PLAYER = "player"
