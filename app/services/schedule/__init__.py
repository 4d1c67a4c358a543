"""
Trainer schedule engine: calendar grids, day bucketing, slot proposal and
the view orchestrator that ties them to a session data source.
"""

from .clock import Clock, FixedClock, SystemClock
from .data_source import SessionDataSource, TrainerSessionSource
from .grid_builder import build_grid, hour_rows, period_label, window_bounds
from .schedule_view import CellView, ScheduleView, SessionNotFoundError
from .session_bucketer import sessions_in_hour, sessions_on_day
from .slot_proposer import SessionValidationError, propose_slot, validate_session_times

__all__ = [
    "CellView",
    "Clock",
    "FixedClock",
    "ScheduleView",
    "SessionDataSource",
    "SessionNotFoundError",
    "SessionValidationError",
    "SystemClock",
    "TrainerSessionSource",
    "build_grid",
    "hour_rows",
    "period_label",
    "propose_slot",
    "sessions_in_hour",
    "sessions_on_day",
    "validate_session_times",
    "window_bounds",
]
