# app/models/api/schedule_response.py
"""
Schedule API response models.
Used by routes for output formatting.
"""

from datetime import date, datetime

from pydantic import BaseModel, Field

from app.models.domain.schedule_domain import Notification, Session, SessionDraft


class SessionResponse(BaseModel):
    """Response model for a workout session."""

    id: str = Field(..., description="Session ID")
    participant_id: str = Field(..., description="Client ID")
    participant_name: str = Field(default="", description="Client display name")
    title: str = Field(..., description="Session title")
    start_time: datetime = Field(..., description="Session start")
    end_time: datetime = Field(..., description="Session end")
    duration_minutes: int = Field(..., description="Session length in minutes")

    @classmethod
    def from_domain(cls, session: Session) -> "SessionResponse":
        return cls(
            id=session.id,
            participant_id=session.participant_id,
            participant_name=session.participant_name,
            title=session.title,
            start_time=session.start_time,
            end_time=session.end_time,
            duration_minutes=session.duration_minutes(),
        )


class CalendarCellResponse(BaseModel):
    """One day of the calendar grid."""

    day: date = Field(..., description="Calendar date of the cell")
    in_current_period: bool = Field(..., description="False for lead-in/lead-out days")
    is_today: bool = Field(default=False, description="Whether the cell is today")
    sessions: list[SessionResponse] = Field(..., description="Sessions starting on this day")
    hours: dict[int, list[SessionResponse]] = Field(
        default_factory=dict, description="Week view: sessions per hour row"
    )


class ViewWindowResponse(BaseModel):
    """The period the grid covers."""

    reference_date: date = Field(..., description="Anchor date of the period")
    mode: str = Field(..., description="month or week")
    label: str = Field(..., description="Header text for the period")
    range_start: datetime = Field(..., description="First instant of the period (inclusive)")
    range_end: datetime = Field(..., description="End of the period (exclusive)")


class NotificationResponse(BaseModel):
    kind: str = Field(..., description="fetch_failed, mutation_failed, validation_failed, success")
    message: str = Field(..., description="User-facing message")
    created_at: datetime = Field(..., description="When the notification was raised")

    @classmethod
    def from_domain(cls, notification: Notification) -> "NotificationResponse":
        return cls(
            kind=notification.kind,
            message=notification.message,
            created_at=notification.created_at,
        )


class ScheduleGridResponse(BaseModel):
    """Response for the calendar grid with bucketed sessions."""

    window: ViewWindowResponse = Field(..., description="Displayed period")
    cells: list[CalendarCellResponse] = Field(..., description="Grid cells, Monday-first")
    hour_rows: list[int] = Field(default_factory=list, description="Week view hour rows")
    start_time_options: list[str] = Field(
        default_factory=list, description="Selectable session start times (HH:MM)"
    )
    total_sessions: int = Field(..., description="Sessions loaded for the period")
    notifications: list[NotificationResponse] = Field(
        default_factory=list, description="Messages raised while building the grid"
    )


class SessionsListResponse(BaseModel):
    """Response for listing sessions in a time range."""

    sessions: list[SessionResponse] = Field(..., description="Sessions ordered by start")
    total_count: int = Field(..., description="Number of sessions returned")
    time_range: dict[str, datetime] = Field(..., description="Time range queried")


class SlotProposalResponse(BaseModel):
    """Response for slot proposal."""

    candidate: datetime = Field(..., description="Requested instant")
    proposed: datetime = Field(..., description="Valid start inside working hours")
    working_hours: dict[str, int] = Field(..., description="start_hour and end_hour")


class SessionDraftResponse(BaseModel):
    """Pre-filled values for the session editor."""

    session_id: str | None = Field(None, description="Existing session ID; null for new")
    participant_id: str | None = Field(None, description="Client ID")
    title: str = Field(..., description="Session title")
    start_time: datetime = Field(..., description="Proposed start")
    end_time: datetime = Field(..., description="Proposed end")
    duration_minutes: int = Field(..., description="Session length in minutes")
    is_new: bool = Field(..., description="Whether saving creates a new session")

    @classmethod
    def from_domain(cls, draft: SessionDraft) -> "SessionDraftResponse":
        return cls(
            session_id=draft.session_id,
            participant_id=draft.participant_id,
            title=draft.title,
            start_time=draft.start_time,
            end_time=draft.end_time,
            duration_minutes=draft.duration_minutes,
            is_new=draft.is_new,
        )


class SessionMutationResponse(BaseModel):
    """Response for create/update/delete, with the refreshed grid."""

    success: bool = Field(..., description="Whether the mutation succeeded")
    message: str = Field(..., description="User-friendly message")
    session_id: str | None = Field(None, description="Affected session ID")
    grid: ScheduleGridResponse = Field(..., description="Grid re-fetched after the mutation")
