"""
Schedule view orchestration.

ScheduleView holds one trainer's calendar state: the visible window, the last
successfully fetched sessions and the pending notifications. Navigation
replaces the window immediately and starts a fetch in the background; the
previous session list stays visible until that fetch lands.

Every fetch is numbered. Only the response for the latest number is applied,
so a slow response for an old window can never overwrite a newer one.
Superseded fetches are also cancelled unless cancel_superseded is off.

Mutations are never applied locally: after the data source accepts a change,
the whole window is fetched again.
"""

import asyncio
import dataclasses
from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field
from datetime import date, datetime, time, tzinfo
from typing import Any

from app.infrastructure.observability.logging import get_logger
from app.models.domain.schedule_domain import (
    CalendarCell,
    MalformedSessionError,
    Notification,
    Session,
    SessionDraft,
    ViewMode,
    ViewWindow,
    WorkingHoursPolicy,
    session_from_row,
)
from app.services.schedule.clock import Clock, SystemClock
from app.services.schedule.data_source import SessionDataSource
from app.services.schedule.grid_builder import (
    build_grid,
    hour_rows,
    period_label,
    shift_reference,
    window_instants,
)
from app.services.schedule.session_bucketer import sessions_in_hour, sessions_on_day
from app.services.schedule.slot_proposer import (
    SessionValidationError,
    propose_slot,
    start_time_options,
    validate_session_times,
)

logger = get_logger(__name__)


class SessionNotFoundError(LookupError):
    """The session is not part of the currently loaded window."""

    def __init__(self, session_id: str):
        super().__init__(f"Session {session_id} is not in the current window")
        self.session_id = session_id


def admit_session_rows(rows: Iterable[Mapping[str, Any]]) -> list[Session]:
    """Convert stored rows to Sessions, dropping (and logging) malformed ones."""
    admitted = []
    for row in rows:
        try:
            admitted.append(session_from_row(row))
        except MalformedSessionError as e:
            logger.warning(
                "Skipping malformed session row",
                session_id=e.session_id,
                field=e.field_name,
                error=str(e),
            )
    return admitted


@dataclass(slots=True)
class CellView:
    """A calendar cell with the sessions that start on its day."""

    cell: CalendarCell
    sessions: list[Session]
    hours: dict[int, list[Session]] = field(default_factory=dict)


class ScheduleView:
    """Navigable month/week calendar over a SessionDataSource."""

    def __init__(
        self,
        data_source: SessionDataSource,
        *,
        policy: WorkingHoursPolicy,
        tz: tzinfo,
        clock: Clock | None = None,
        reference_date: date | None = None,
        mode: ViewMode | str = ViewMode.MONTH,
        fetch_timeout: float = 10.0,
        cancel_superseded: bool = True,
        default_duration_minutes: int = 60,
        default_title: str = "Personal training",
        slot_step_minutes: int = 30,
        participant_id: str | None = None,
    ):
        self.data_source = data_source
        self.policy = policy
        self.tz = tz
        self.clock = clock or SystemClock(tz)
        self.fetch_timeout = fetch_timeout
        self.cancel_superseded = cancel_superseded
        self.default_duration_minutes = default_duration_minutes
        self.default_title = default_title
        self.slot_step_minutes = slot_step_minutes
        self.participant_id = participant_id

        if reference_date is None:
            reference_date = self.today()
        self.window = ViewWindow(reference_date=reference_date, mode=ViewMode(mode))

        self.sessions: list[Session] = []
        self.notifications: list[Notification] = []
        self.last_fetch_ok: bool | None = None
        self.last_saved_session_id: str | None = None

        self._fetch_seq = 0
        self._inflight: asyncio.Task | None = None

    @classmethod
    def from_settings(cls, data_source: SessionDataSource, settings, **overrides) -> "ScheduleView":
        """Build a view with working hours, zone and defaults taken from Settings."""
        options: dict[str, Any] = {
            "policy": settings.working_hours(),
            "tz": settings.schedule_tz(),
            "fetch_timeout": settings.SESSION_FETCH_TIMEOUT,
            "cancel_superseded": settings.SCHEDULE_CANCEL_STALE_FETCHES,
            "default_duration_minutes": settings.DEFAULT_SESSION_MINUTES,
            "default_title": settings.DEFAULT_SESSION_TITLE,
            "slot_step_minutes": settings.SLOT_STEP_MINUTES,
        }
        options.update(overrides)
        return cls(data_source, **options)

    # ------------------------------------------------------------------
    # Derived window state
    # ------------------------------------------------------------------

    def today(self) -> date:
        return self.clock.now().astimezone(self.tz).date()

    @property
    def range(self) -> tuple[datetime, datetime]:
        return window_instants(self.window.reference_date, self.window.mode, self.tz)

    @property
    def label(self) -> str:
        return period_label(self.window.reference_date, self.window.mode)

    def hour_rows(self) -> list[int]:
        return hour_rows(self.policy) if self.window.mode is ViewMode.WEEK else []

    def start_time_options(self) -> list[time]:
        return start_time_options(self.policy, self.slot_step_minutes)

    def cells(self) -> list[CellView]:
        """Grid cells for the window with sessions bucketed per day (and hour in week mode)."""
        grid = build_grid(self.window.reference_date, self.window.mode, today=self.today())
        rows = self.hour_rows()

        views = []
        for cell in grid:
            day_sessions = sessions_on_day(self.sessions, cell.date, self.tz)
            hours = {
                hour: sessions_in_hour(day_sessions, cell.date, hour, self.tz) for hour in rows
            }
            views.append(CellView(cell=cell, sessions=day_sessions, hours=hours))
        return views

    # ------------------------------------------------------------------
    # Navigation
    # ------------------------------------------------------------------

    def next(self) -> asyncio.Task:
        return self._navigate(1)

    def previous(self) -> asyncio.Task:
        return self._navigate(-1)

    def set_mode(self, mode: ViewMode | str) -> asyncio.Task:
        return self._set_window(dataclasses.replace(self.window, mode=ViewMode(mode)))

    def go_to(self, day: date) -> asyncio.Task:
        return self._set_window(ViewWindow(reference_date=day, mode=self.window.mode))

    def _navigate(self, steps: int) -> asyncio.Task:
        current = self.window
        reference_date = shift_reference(
            current.reference_date, current.mode, steps, current.preferred_day
        )
        anchor_day = current.preferred_day if current.mode is ViewMode.MONTH else None
        return self._set_window(
            ViewWindow(reference_date=reference_date, mode=current.mode, anchor_day=anchor_day)
        )

    def _set_window(self, window: ViewWindow) -> asyncio.Task:
        self.window = window
        logger.debug(
            "Schedule window changed",
            reference_date=window.reference_date.isoformat(),
            mode=window.mode.value,
        )
        return self._start_fetch()

    # ------------------------------------------------------------------
    # Fetching
    # ------------------------------------------------------------------

    async def refresh(self) -> bool:
        """Fetch the current window. Returns False on failure or when superseded."""
        return await self._await_fetch(self._start_fetch())

    def _start_fetch(self) -> asyncio.Task:
        self._fetch_seq += 1
        seq = self._fetch_seq

        if self.cancel_superseded and self._inflight is not None and not self._inflight.done():
            self._inflight.cancel()

        self._inflight = asyncio.create_task(self._fetch(seq, self.window))
        return self._inflight

    @staticmethod
    async def _await_fetch(task: asyncio.Task) -> bool:
        # asyncio.wait does not propagate the inner task's cancellation
        await asyncio.wait([task])
        return not task.cancelled() and task.result()

    async def _fetch(self, seq: int, window: ViewWindow) -> bool:
        range_start, range_end = window_instants(window.reference_date, window.mode, self.tz)

        try:
            rows = await asyncio.wait_for(
                self.data_source.fetch_sessions(range_start, range_end),
                timeout=self.fetch_timeout,
            )
        except asyncio.CancelledError:
            logger.debug("Superseded session fetch cancelled", seq=seq)
            raise
        except Exception as e:
            if seq != self._fetch_seq:
                logger.debug("Ignoring failure of superseded fetch", seq=seq, error=str(e))
                return False

            logger.warning(
                "Session fetch failed, keeping previous sessions",
                seq=seq,
                range_start=range_start.isoformat(),
                range_end=range_end.isoformat(),
                error=str(e),
                error_type=type(e).__name__,
            )
            self.last_fetch_ok = False
            self._notify("fetch_failed", "Could not load the schedule")
            return False

        if seq != self._fetch_seq:
            logger.info("Dropping stale session fetch", seq=seq, latest_seq=self._fetch_seq)
            return False

        self.sessions = admit_session_rows(rows)
        self.last_fetch_ok = True
        logger.debug(
            "Sessions loaded",
            seq=seq,
            range_start=range_start.isoformat(),
            count=len(self.sessions),
        )
        return True

    # ------------------------------------------------------------------
    # Editing surface
    # ------------------------------------------------------------------

    def select_cell(self, day: date, hour: int | None = None) -> SessionDraft:
        """
        Draft for a new session created from an empty cell.

        Month cells start from midnight of ``day``, which clamps to the opening
        hour; week-view hour rows use ``hour:00`` on ``day``.
        """
        return self._new_draft(datetime.combine(day, time(hour or 0), tzinfo=self.tz))

    def draft_for_now(self) -> SessionDraft:
        """Draft starting at the current hour, or the next opening if closed."""
        return self._new_draft(self.clock.now().astimezone(self.tz))

    def _new_draft(self, candidate: datetime) -> SessionDraft:
        return SessionDraft(
            start_time=propose_slot(candidate, self.policy),
            duration_minutes=self.default_duration_minutes,
            title=self.default_title,
            participant_id=self.participant_id,
        )

    def find_session(self, session_id: str) -> Session:
        for session in self.sessions:
            if session.id == session_id:
                return session
        raise SessionNotFoundError(session_id)

    def select_session(self, session_id: str) -> SessionDraft:
        """Draft pre-filled from an existing session (edit path)."""
        session = self.find_session(session_id)
        return SessionDraft(
            start_time=session.start_time.astimezone(self.tz),
            duration_minutes=session.duration_minutes(),
            title=session.title,
            participant_id=session.participant_id,
            session_id=session.id,
        )

    # ------------------------------------------------------------------
    # Mutations
    # ------------------------------------------------------------------

    async def save_session(self, draft: SessionDraft) -> bool:
        """Create or update a session, then re-fetch the window."""
        try:
            if not draft.participant_id:
                raise SessionValidationError(
                    "Choose a participant for the session", field_name="participant_id"
                )
            validate_session_times(
                draft.start_time.astimezone(self.tz),
                draft.end_time.astimezone(self.tz),
                self.policy,
            )
        except SessionValidationError as e:
            logger.info("Session draft rejected", field=e.field_name, error=str(e))
            self._notify("validation_failed", str(e))
            return False

        draft = dataclasses.replace(draft, title=draft.title.strip() or self.default_title)

        try:
            session_id = await asyncio.wait_for(
                self.data_source.create_or_update_session(draft), timeout=self.fetch_timeout
            )
        except Exception as e:
            logger.error(
                "Saving session failed",
                session_id=draft.session_id,
                error=str(e),
                error_type=type(e).__name__,
            )
            self._notify("mutation_failed", "Could not save the session")
            return False

        self.last_saved_session_id = session_id
        logger.info("Session saved", session_id=session_id, created=draft.is_new)
        self._notify("success", "Session scheduled" if draft.is_new else "Session updated")
        await self.refresh()
        return True

    async def delete_session(self, session_id: str) -> bool:
        """Delete a session, then re-fetch the window."""
        try:
            await asyncio.wait_for(
                self.data_source.delete_session(session_id), timeout=self.fetch_timeout
            )
        except Exception as e:
            logger.error(
                "Deleting session failed",
                session_id=session_id,
                error=str(e),
                error_type=type(e).__name__,
            )
            self._notify("mutation_failed", "Could not delete the session")
            return False

        logger.info("Session deleted", session_id=session_id)
        self._notify("success", "Session deleted")
        await self.refresh()
        return True

    # ------------------------------------------------------------------
    # Notifications
    # ------------------------------------------------------------------

    def _notify(self, kind: str, message: str) -> None:
        self.notifications.append(Notification(kind=kind, message=message))

    def dismiss_notification(self, index: int) -> Notification:
        return self.notifications.pop(index)

    def clear_notifications(self) -> None:
        self.notifications.clear()

    def last_error(self) -> Notification | None:
        return next((n for n in reversed(self.notifications) if n.is_error), None)
