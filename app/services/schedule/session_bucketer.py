"""Assign sessions to calendar cells by the local day their start falls on."""

from collections.abc import Iterable
from datetime import date, tzinfo

from app.models.domain.schedule_domain import Session


def local_start(session: Session, tz: tzinfo):
    return session.start_time.astimezone(tz)


def sessions_on_day(sessions: Iterable[Session], day: date, tz: tzinfo) -> list[Session]:
    """
    Sessions whose start, in local time, is on ``day``.

    A session crossing midnight belongs only to the day it starts on.
    Input order is preserved.
    """
    return [s for s in sessions if local_start(s, tz).date() == day]


def sessions_in_hour(
    sessions: Iterable[Session], day: date, hour: int, tz: tzinfo
) -> list[Session]:
    """Week-view bucket: sessions starting on ``day`` within ``hour``."""
    return [s for s in sessions_on_day(sessions, day, tz) if local_start(s, tz).hour == hour]
