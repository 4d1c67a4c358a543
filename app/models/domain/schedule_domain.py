# app/models/domain/schedule_domain.py
"""
Schedule Domain Models
Domain models for the trainer calendar: sessions, calendar cells, the
navigable view window and the working-hours policy.
Used by the schedule services; never persisted directly.
"""

from collections.abc import Mapping
from dataclasses import dataclass, field
from datetime import UTC, date, datetime, timedelta
from enum import Enum
from typing import Any


class MalformedSessionError(Exception):
    """Raised when a stored row cannot be turned into a Session."""

    def __init__(self, message: str, session_id: str | None = None, field_name: str | None = None):
        super().__init__(message)
        self.session_id = session_id
        self.field_name = field_name


class ViewMode(str, Enum):
    MONTH = "month"
    WEEK = "week"


@dataclass(frozen=True, slots=True)
class WorkingHoursPolicy:
    """Daily hour range inside which sessions may be proposed and saved."""

    start_hour: int
    end_hour: int

    def __post_init__(self):
        if not 0 <= self.start_hour < self.end_hour <= 24:
            raise ValueError(
                f"Invalid working hours {self.start_hour}-{self.end_hour}: "
                "expected 0 <= start < end <= 24"
            )

    def contains_hour(self, hour: int) -> bool:
        return self.start_hour <= hour < self.end_hour


@dataclass(frozen=True, slots=True)
class Session:
    """A scheduled workout between the trainer and one participant."""

    id: str
    participant_id: str
    title: str
    start_time: datetime
    end_time: datetime
    participant_first_name: str | None = None
    participant_last_name: str | None = None

    @property
    def participant_name(self) -> str:
        parts = [p for p in (self.participant_first_name, self.participant_last_name) if p]
        return " ".join(parts)

    def duration_minutes(self) -> int:
        delta = self.end_time - self.start_time
        return int(delta.total_seconds() / 60)

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for API responses."""
        return {
            "id": self.id,
            "participant_id": self.participant_id,
            "participant_name": self.participant_name,
            "title": self.title,
            "start_time": self.start_time.isoformat(),
            "end_time": self.end_time.isoformat(),
            "duration_minutes": self.duration_minutes(),
        }


@dataclass(frozen=True, slots=True)
class CalendarCell:
    date: date
    in_current_period: bool
    is_today: bool = False


@dataclass(frozen=True, slots=True)
class ViewWindow:
    """
    The calendar period currently on screen.

    anchor_day remembers the day-of-month navigation started from, so that
    stepping Jan 31 -> Feb 29 -> Jan 31 returns to the same date.
    """

    reference_date: date
    mode: ViewMode = ViewMode.MONTH
    anchor_day: int | None = None

    @property
    def preferred_day(self) -> int:
        return self.anchor_day or self.reference_date.day


@dataclass(slots=True)
class SessionDraft:
    """Pre-filled values for the session editing surface."""

    start_time: datetime
    duration_minutes: int
    title: str
    participant_id: str | None = None
    session_id: str | None = None

    @property
    def end_time(self) -> datetime:
        return self.start_time + timedelta(minutes=self.duration_minutes)

    @property
    def is_new(self) -> bool:
        return self.session_id is None


@dataclass(slots=True)
class Notification:
    """Transient, dismissible message surfaced to the trainer."""

    kind: str  # fetch_failed | mutation_failed | validation_failed | success
    message: str
    created_at: datetime = field(default_factory=lambda: datetime.now(UTC))

    @property
    def is_error(self) -> bool:
        return self.kind != "success"


REQUIRED_SESSION_FIELDS = ("id", "client_id", "start_time", "end_time")


def _parse_instant(value: Any, field_name: str, session_id: str | None) -> datetime:
    if isinstance(value, datetime):
        parsed = value
    elif isinstance(value, str):
        try:
            parsed = datetime.fromisoformat(value.replace("Z", "+00:00"))
        except ValueError as e:
            raise MalformedSessionError(
                f"Unparseable {field_name}: {value!r}", session_id, field_name
            ) from e
    else:
        raise MalformedSessionError(
            f"Unsupported {field_name} type: {type(value).__name__}", session_id, field_name
        )

    # timestamptz columns come back aware; naive values are stored as UTC
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=UTC)
    return parsed


def _optional_text(value: Any) -> str | None:
    return None if value is None else str(value)


def session_from_row(row: Mapping[str, Any]) -> Session:
    """
    Build a Session from a workout_details row.

    Raises:
        MalformedSessionError: row is not a mapping, required fields missing
            or start >= end
    """
    if not isinstance(row, Mapping):
        raise MalformedSessionError(f"Expected a mapping, got {type(row).__name__}")

    session_id = row.get("id")
    session_id = str(session_id) if session_id is not None else None

    for name in REQUIRED_SESSION_FIELDS:
        if row.get(name) in (None, ""):
            raise MalformedSessionError(f"Missing required field: {name}", session_id, name)

    start_time = _parse_instant(row["start_time"], "start_time", session_id)
    end_time = _parse_instant(row["end_time"], "end_time", session_id)
    if start_time >= end_time:
        raise MalformedSessionError(
            "Session must start before it ends", session_id, "end_time"
        )

    return Session(
        id=session_id,
        participant_id=str(row["client_id"]),
        title=str(row.get("title") or ""),
        start_time=start_time,
        end_time=end_time,
        participant_first_name=_optional_text(row.get("client_first_name")),
        participant_last_name=_optional_text(row.get("client_last_name")),
    )
