"""
Calendar grid construction for the trainer schedule.

All functions here are pure: the same (reference_date, mode) always gives the
same cells. Month grids are always 6 Monday-first weeks (42 cells) so the
layout does not jump between months.
"""

import calendar
from datetime import date, datetime, time, timedelta
from zoneinfo import ZoneInfo

from app.models.domain.schedule_domain import CalendarCell, ViewMode, WorkingHoursPolicy

MONTH_GRID_CELLS = 42
WEEK_GRID_CELLS = 7


def _coerce_mode(mode: ViewMode | str) -> ViewMode:
    return mode if isinstance(mode, ViewMode) else ViewMode(mode)


def week_start(day: date) -> date:
    """Monday on or before ``day`` (Sunday is the 7th day of its week)."""
    return day - timedelta(days=day.isoweekday() - 1)


def _add_months(day: date, months: int, preferred_day: int | None = None) -> date:
    month_index = day.year * 12 + (day.month - 1) + months
    year, month = divmod(month_index, 12)
    month += 1
    last_day = calendar.monthrange(year, month)[1]
    return date(year, month, min(preferred_day or day.day, last_day))


def build_grid(
    reference_date: date, mode: ViewMode | str, *, today: date | None = None
) -> list[CalendarCell]:
    """
    Lay out the calendar cells for the period containing reference_date.

    Args:
        reference_date: Any date inside the period to show
        mode: "month" or "week"
        today: Date to mark with is_today (nothing is marked when omitted)

    Returns:
        list[CalendarCell]: 42 cells for month mode, 7 for week mode
    """
    mode = _coerce_mode(mode)

    if mode is ViewMode.WEEK:
        monday = week_start(reference_date)
        days = [monday + timedelta(days=i) for i in range(WEEK_GRID_CELLS)]
        return [CalendarCell(date=d, in_current_period=True, is_today=d == today) for d in days]

    first = reference_date.replace(day=1)
    days_in_month = calendar.monthrange(first.year, first.month)[1]

    cells: list[CalendarCell] = []

    # Lead-in: previous-month days completing the first Monday-first week
    lead_in = first.isoweekday() - 1
    for offset in range(lead_in, 0, -1):
        d = first - timedelta(days=offset)
        cells.append(CalendarCell(date=d, in_current_period=False, is_today=d == today))

    for day_number in range(1, days_in_month + 1):
        d = first.replace(day=day_number)
        cells.append(CalendarCell(date=d, in_current_period=True, is_today=d == today))

    next_first = first + timedelta(days=days_in_month)
    for offset in range(MONTH_GRID_CELLS - len(cells)):
        d = next_first + timedelta(days=offset)
        cells.append(CalendarCell(date=d, in_current_period=False, is_today=d == today))

    return cells


def window_bounds(reference_date: date, mode: ViewMode | str) -> tuple[date, date]:
    """Half-open [start, end) date range covered by the period."""
    mode = _coerce_mode(mode)
    if mode is ViewMode.WEEK:
        start = week_start(reference_date)
        return start, start + timedelta(days=WEEK_GRID_CELLS)

    start = reference_date.replace(day=1)
    return start, _add_months(start, 1)


def window_instants(
    reference_date: date, mode: ViewMode | str, tz: ZoneInfo
) -> tuple[datetime, datetime]:
    """Local-midnight instants bounding the period, for querying sessions."""
    start, end = window_bounds(reference_date, mode)
    return (
        datetime.combine(start, time.min, tzinfo=tz),
        datetime.combine(end, time.min, tzinfo=tz),
    )


def shift_reference(
    reference_date: date, mode: ViewMode | str, steps: int, preferred_day: int | None = None
) -> date:
    """
    Move the reference date by whole periods.

    Month steps keep preferred_day where the target month has it and clamp to
    the month's last day otherwise. Week steps move by 7 days.
    """
    mode = _coerce_mode(mode)
    if mode is ViewMode.WEEK:
        return reference_date + timedelta(days=7 * steps)
    return _add_months(reference_date, steps, preferred_day)


def hour_rows(policy: WorkingHoursPolicy) -> list[int]:
    """Hour rows shown in the week view."""
    return list(range(policy.start_hour, policy.end_hour))


def period_label(reference_date: date, mode: ViewMode | str) -> str:
    """Header text for the period, e.g. "June 2024" or "10 - 16 June 2024"."""
    mode = _coerce_mode(mode)
    if mode is ViewMode.MONTH:
        return f"{calendar.month_name[reference_date.month]} {reference_date.year}"

    start = week_start(reference_date)
    end = start + timedelta(days=6)
    if start.year != end.year:
        return (
            f"{start.day} {calendar.month_name[start.month]} {start.year} - "
            f"{end.day} {calendar.month_name[end.month]} {end.year}"
        )
    if start.month != end.month:
        return (
            f"{start.day} {calendar.month_name[start.month]} - "
            f"{end.day} {calendar.month_name[end.month]} {end.year}"
        )
    return f"{start.day} - {end.day} {calendar.month_name[end.month]} {end.year}"
