from datetime import datetime
from typing import Any, Dict, Iterable, List, Mapping, Optional

from loguru import logger
from pydantic import TypeAdapter, ValidationError

from team_schedule.models.enums import EventSource
from team_schedule.models.event import ScheduleEvent

_TIMESTAMP = TypeAdapter(datetime)
_TEXT = TypeAdapter(str)

# Optional columns shared by every schedule table, copied through when readable
COMMON_FIELDS: Dict[str, TypeAdapter] = {
    "title": _TEXT,
    "description": _TEXT,
    "end_time": _TIMESTAMP,
    "location": _TEXT,
}

# Column carrying the subtype, per source
SUBTYPE_FIELDS: Dict[EventSource, str] = {
    EventSource.MEETING: "meeting_type",
    EventSource.GAME: "schedule_type",
}

TEAM_FIELDS: Dict[EventSource, tuple] = {
    EventSource.PRACTICE: ("team_id",),
    EventSource.MEETING: ("team_id",),
    EventSource.GAME: ("team1_id", "team2_id"),
}


class MalformedRowError(Exception):
    """A schedule row lacks its id or a readable start time."""

    def __init__(self, source: EventSource, message: str, row_id: Any = None):
        super().__init__(f"{source.value} row {row_id!r}: {message}")
        self.source = source
        self.row_id = row_id


def _optional_value(
    row_id: Any, source: EventSource, column: str, value: Any, adapter: TypeAdapter
) -> Optional[Any]:
    try:
        return adapter.validate_python(value)
    except ValidationError:
        logger.warning(
            f"{source.value} row {row_id!r}: ignoring unreadable {column}={value!r}"
        )
        return None


def normalize_row(row: Mapping[str, Any], source: EventSource) -> ScheduleEvent:
    """Converts one raw table row into a ScheduleEvent tagged with ``source``.

    Only columns the row actually has are copied; missing ones stay unset.
    An optional column holding an unreadable value is logged and left unset.
    Meeting and game subtypes are passed through verbatim, without validation.

    Raises:
        MalformedRowError: if the row is not a mapping, or ``id`` or
            ``start_time`` is missing, null or (for ``start_time``) unparseable.
    """
    if not isinstance(row, Mapping):
        raise MalformedRowError(source, f"expected a mapping, got {type(row).__name__}")

    row_id = row.get("id")
    if row_id is None:
        raise MalformedRowError(source, "missing id")
    if row.get("start_time") is None:
        raise MalformedRowError(source, "missing start_time", row_id)
    try:
        start_time = _TIMESTAMP.validate_python(row["start_time"])
    except ValidationError as e:
        raise MalformedRowError(
            source, f"unreadable start_time {row['start_time']!r}", row_id
        ) from e

    data: Dict[str, Any] = {
        "id": str(row_id),
        "source": source,
        "start_time": start_time,
    }
    for column, adapter in COMMON_FIELDS.items():
        if row.get(column) is not None:
            value = _optional_value(row_id, source, column, row[column], adapter)
            if value is not None:
                data[column] = value
    for column in TEAM_FIELDS[source]:
        if row.get(column) is not None:
            data[column] = str(row[column])

    subtype_column = SUBTYPE_FIELDS.get(source)
    if subtype_column and row.get(subtype_column) is not None:
        subtype = _optional_value(
            row_id, source, subtype_column, row[subtype_column], _TEXT
        )
        if subtype is not None:
            data["subtype"] = subtype

    return ScheduleEvent(**data)


def normalize_rows(
    rows: Iterable[Mapping[str, Any]], source: EventSource
) -> List[ScheduleEvent]:
    """Normalizes a batch, skipping (and logging) malformed rows."""
    events: List[ScheduleEvent] = []
    skipped = 0
    for row in rows:
        try:
            events.append(normalize_row(row, source))
        except MalformedRowError as e:
            skipped += 1
            logger.warning(f"Skipping malformed schedule row: {e}")

    if skipped:
        logger.warning(
            f"Normalized {len(events)} {source.value} rows, skipped {skipped} malformed."
        )
    else:
        logger.debug(f"Normalized {len(events)} {source.value} rows.")
    return events
