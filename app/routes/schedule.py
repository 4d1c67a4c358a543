"""
Schedule API Routes
HTTP endpoints for the trainer calendar: grid, sessions, slot proposals and
session drafts. Every request builds a short-lived ScheduleView over the
authenticated trainer's sessions.
"""

from datetime import date, datetime, timedelta

from fastapi import APIRouter, Depends, HTTPException, Query, status

from app.auth.verify import auth_dependency
from app.config import settings
from app.infrastructure.observability.logging import get_logger
from app.models.api.schedule_request import SessionUpsertRequest, SlotProposalRequest
from app.models.api.schedule_response import (
    CalendarCellResponse,
    NotificationResponse,
    ScheduleGridResponse,
    SessionDraftResponse,
    SessionMutationResponse,
    SessionResponse,
    SessionsListResponse,
    SlotProposalResponse,
    ViewWindowResponse,
)
from app.models.domain.schedule_domain import SessionDraft, ViewMode
from app.services.schedule.clock import Clock, SystemClock
from app.services.schedule.data_source import SessionDataSource, TrainerSessionSource
from app.services.schedule.schedule_view import (
    ScheduleView,
    SessionNotFoundError,
    admit_session_rows,
)
from app.services.schedule.slot_proposer import propose_slot

logger = get_logger(__name__)

router = APIRouter(prefix="/schedule", tags=["schedule"])

MAX_LIST_RANGE = timedelta(days=92)


def get_trainer_id(claims: dict = Depends(auth_dependency)) -> str:
    trainer_id = claims.get("sub")
    if not trainer_id:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid token")
    return trainer_id


def get_session_source(trainer_id: str = Depends(get_trainer_id)) -> SessionDataSource:
    return TrainerSessionSource(trainer_id)


def get_clock() -> Clock:
    return SystemClock(settings.schedule_tz())


def _localize(value: datetime) -> datetime:
    tz = settings.schedule_tz()
    if value.tzinfo is None:
        return value.replace(tzinfo=tz)
    return value.astimezone(tz)


def _build_view(
    source: SessionDataSource,
    clock: Clock,
    reference_date: date | None,
    mode: ViewMode,
    participant_id: str | None = None,
) -> ScheduleView:
    return ScheduleView.from_settings(
        source,
        settings,
        clock=clock,
        reference_date=reference_date,
        mode=mode,
        participant_id=participant_id,
    )


def _grid_response(view: ScheduleView) -> ScheduleGridResponse:
    range_start, range_end = view.range
    cells = [
        CalendarCellResponse(
            day=cell_view.cell.date,
            in_current_period=cell_view.cell.in_current_period,
            is_today=cell_view.cell.is_today,
            sessions=[SessionResponse.from_domain(s) for s in cell_view.sessions],
            hours={
                hour: [SessionResponse.from_domain(s) for s in sessions]
                for hour, sessions in cell_view.hours.items()
            },
        )
        for cell_view in view.cells()
    ]

    return ScheduleGridResponse(
        window=ViewWindowResponse(
            reference_date=view.window.reference_date,
            mode=view.window.mode.value,
            label=view.label,
            range_start=range_start,
            range_end=range_end,
        ),
        cells=cells,
        hour_rows=view.hour_rows(),
        start_time_options=[t.strftime("%H:%M") for t in view.start_time_options()],
        total_sessions=len(view.sessions),
        notifications=[NotificationResponse.from_domain(n) for n in view.notifications],
    )


def _raise_for_failure(view: ScheduleView, fallback: str) -> None:
    error = view.last_error()
    if error and error.kind == "validation_failed":
        raise HTTPException(status_code=422, detail=error.message)
    raise HTTPException(
        status_code=status.HTTP_502_BAD_GATEWAY, detail=error.message if error else fallback
    )


@router.get("/grid", response_model=ScheduleGridResponse)
async def get_schedule_grid(
    reference_date: date | None = Query(default=None, description="Any date in the period"),
    mode: ViewMode = Query(default=ViewMode.MONTH, description="month or week"),
    source: SessionDataSource = Depends(get_session_source),
    clock: Clock = Depends(get_clock),
):
    """Calendar grid for the period with sessions bucketed per day."""
    view = _build_view(source, clock, reference_date, mode)

    if not await view.refresh():
        _raise_for_failure(view, "Failed to load schedule")

    return _grid_response(view)


@router.get("/sessions", response_model=SessionsListResponse)
async def list_sessions(
    start: datetime = Query(..., description="Range start (inclusive)"),
    end: datetime = Query(..., description="Range end (exclusive)"),
    source: SessionDataSource = Depends(get_session_source),
):
    """Sessions starting in [start, end), earliest first."""
    start, end = _localize(start), _localize(end)
    if end <= start:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST, detail="end must be after start"
        )
    if end - start > MAX_LIST_RANGE:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"Range may not exceed {MAX_LIST_RANGE.days} days",
        )

    try:
        rows = await source.fetch_sessions(start, end)
    except Exception as e:
        logger.error("Error listing sessions", error=str(e), error_type=type(e).__name__)
        raise HTTPException(
            status_code=status.HTTP_502_BAD_GATEWAY, detail="Failed to load sessions"
        )

    sessions = [SessionResponse.from_domain(s) for s in admit_session_rows(rows)]
    return SessionsListResponse(
        sessions=sessions,
        total_count=len(sessions),
        time_range={"start": start, "end": end},
    )


@router.post("/slots/propose", response_model=SlotProposalResponse)
async def propose_session_slot(
    request: SlotProposalRequest, trainer_id: str = Depends(get_trainer_id)
):
    """Clamp a desired start into working hours."""
    policy = settings.working_hours()
    candidate = _localize(request.candidate)

    return SlotProposalResponse(
        candidate=candidate,
        proposed=propose_slot(candidate, policy),
        working_hours={"start_hour": policy.start_hour, "end_hour": policy.end_hour},
    )


@router.get("/drafts", response_model=SessionDraftResponse)
async def draft_for_cell(
    day: date | None = Query(default=None, description="Cell date; now when omitted"),
    hour: int | None = Query(default=None, ge=0, le=23, description="Week view hour row"),
    participant_id: str | None = Query(default=None, description="Pre-selected client"),
    source: SessionDataSource = Depends(get_session_source),
    clock: Clock = Depends(get_clock),
):
    """Draft for a new session created from an empty cell, or from now when no day is given."""
    view = _build_view(source, clock, day, ViewMode.MONTH, participant_id=participant_id)
    if day is None and hour is None:
        draft = view.draft_for_now()
    else:
        draft = view.select_cell(day or view.today(), hour)
    return SessionDraftResponse.from_domain(draft)


@router.get("/sessions/{session_id}/draft", response_model=SessionDraftResponse)
async def draft_for_session(
    session_id: str,
    reference_date: date | None = Query(
        default=None, description="A date in the period that shows the session"
    ),
    mode: ViewMode = Query(default=ViewMode.MONTH),
    source: SessionDataSource = Depends(get_session_source),
    clock: Clock = Depends(get_clock),
):
    """Draft pre-filled from an existing session."""
    view = _build_view(source, clock, reference_date, mode)
    if not await view.refresh():
        _raise_for_failure(view, "Failed to load schedule")

    try:
        draft = view.select_session(session_id)
    except SessionNotFoundError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))

    return SessionDraftResponse.from_domain(draft)


async def _save(
    request: SessionUpsertRequest,
    session_id: str | None,
    mode: ViewMode,
    source: SessionDataSource,
    clock: Clock,
) -> SessionMutationResponse:
    start_time = _localize(request.start_time)
    view = _build_view(source, clock, start_time.date(), mode)
    draft = SessionDraft(
        start_time=start_time,
        duration_minutes=request.duration_minutes,
        title=request.title,
        participant_id=request.participant_id,
        session_id=session_id,
    )

    if not await view.save_session(draft):
        _raise_for_failure(view, "Failed to save session")

    return SessionMutationResponse(
        success=True,
        message="Session scheduled" if draft.is_new else "Session updated",
        session_id=view.last_saved_session_id,
        grid=_grid_response(view),
    )


@router.post("/sessions", response_model=SessionMutationResponse)
async def create_session(
    request: SessionUpsertRequest,
    mode: ViewMode = Query(default=ViewMode.MONTH),
    source: SessionDataSource = Depends(get_session_source),
    clock: Clock = Depends(get_clock),
):
    """Schedule a new session and return the refreshed grid."""
    return await _save(request, None, mode, source, clock)


@router.put("/sessions/{session_id}", response_model=SessionMutationResponse)
async def update_session(
    session_id: str,
    request: SessionUpsertRequest,
    mode: ViewMode = Query(default=ViewMode.MONTH),
    source: SessionDataSource = Depends(get_session_source),
    clock: Clock = Depends(get_clock),
):
    """Update a session and return the refreshed grid."""
    return await _save(request, session_id, mode, source, clock)


@router.delete("/sessions/{session_id}", response_model=SessionMutationResponse)
async def delete_session(
    session_id: str,
    reference_date: date | None = Query(default=None, description="Period to return"),
    mode: ViewMode = Query(default=ViewMode.MONTH),
    source: SessionDataSource = Depends(get_session_source),
    clock: Clock = Depends(get_clock),
):
    """Delete a session and return the refreshed grid."""
    view = _build_view(source, clock, reference_date, mode)

    if not await view.delete_session(session_id):
        _raise_for_failure(view, "Failed to delete session")

    return SessionMutationResponse(
        success=True,
        message="Session deleted",
        session_id=session_id,
        grid=_grid_response(view),
    )
