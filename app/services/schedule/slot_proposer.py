"""
Working-hours rules for new sessions.

propose_slot picks a default start for a session created from an empty cell.
It never looks at existing sessions, so two sessions may share a slot; the
trainer reviews the draft before saving.
"""

from datetime import datetime, time, timedelta

from app.models.domain.schedule_domain import WorkingHoursPolicy


class SessionValidationError(Exception):
    """A session's times fall outside the trainer's working hours."""

    def __init__(self, message: str, field_name: str | None = None):
        super().__init__(message)
        self.field_name = field_name


def propose_slot(candidate: datetime, policy: WorkingHoursPolicy) -> datetime:
    """
    Clamp a candidate instant to a valid session start.

    - before working hours: same day at start_hour:00
    - at or after end_hour: next day at start_hour:00
    - otherwise: candidate snapped to the top of its hour
    """
    top_of_hour = candidate.replace(minute=0, second=0, microsecond=0)

    if candidate.hour < policy.start_hour:
        return top_of_hour.replace(hour=policy.start_hour)

    if candidate.hour >= policy.end_hour:
        next_day = top_of_hour + timedelta(days=1)
        return next_day.replace(hour=policy.start_hour)

    return top_of_hour


def validate_session_times(start: datetime, end: datetime, policy: WorkingHoursPolicy) -> None:
    """
    Check a session against working hours before it is saved.

    Raises:
        SessionValidationError: if the session is empty, starts outside
            working hours, or ends after the end of the working day
    """
    if start >= end:
        raise SessionValidationError("Session must end after it starts", field_name="end_time")

    if not policy.contains_hour(start.hour):
        raise SessionValidationError(
            f"Session must start between {policy.start_hour}:00 and {policy.end_hour}:00",
            field_name="start_time",
        )

    # ending exactly at end_hour:00 is allowed, so a 20:00-21:00 session is valid
    day_end = start.replace(hour=0, minute=0, second=0, microsecond=0) + timedelta(
        hours=policy.end_hour
    )
    if end > day_end:
        raise SessionValidationError(
            f"Session must finish by {policy.end_hour}:00", field_name="end_time"
        )


def start_time_options(policy: WorkingHoursPolicy, step_minutes: int = 30) -> list[time]:
    """Selectable start times inside working hours."""
    if step_minutes <= 0:
        raise ValueError("step_minutes must be positive")

    options = []
    minute_of_day = policy.start_hour * 60
    while minute_of_day < policy.end_hour * 60:
        hour, minute = divmod(minute_of_day, 60)
        options.append(time(hour, minute))
        minute_of_day += step_minutes
    return options
