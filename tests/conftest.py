from datetime import UTC, date, datetime

import pytest

from app.auth.verify import auth_dependency
from app.models.domain.schedule_domain import WorkingHoursPolicy
from app.services.schedule.clock import FixedClock
from app.services.schedule.schedule_view import ScheduleView
from tests.fakes import FakeSessionSource, make_row


@pytest.fixture
def policy():
    return WorkingHoursPolicy(start_hour=8, end_hour=21)


@pytest.fixture
def clock():
    return FixedClock(datetime(2024, 6, 10, 14, 37, tzinfo=UTC))


@pytest.fixture
def june_rows():
    return [
        make_row("s1", datetime(2024, 6, 10, 9, 0, tzinfo=UTC)),
        make_row("s2", datetime(2024, 6, 10, 23, 50, tzinfo=UTC), client_id="client-2"),
        make_row("s3", datetime(2024, 6, 11, 0, 10, tzinfo=UTC)),
        make_row("s4", datetime(2024, 6, 28, 18, 0, tzinfo=UTC)),
    ]


@pytest.fixture
def source(june_rows):
    return FakeSessionSource(june_rows)


@pytest.fixture
def make_view(policy, clock):
    def _make(data_source, **overrides):
        options = {
            "policy": policy,
            "tz": UTC,
            "clock": clock,
            "reference_date": date(2024, 6, 15),
        }
        options.update(overrides)
        return ScheduleView(data_source, **options)

    return _make


@pytest.fixture
def auth_override():
    def _override():
        return {"sub": "trainer-1"}

    return _override


@pytest.fixture
def apply_auth_override(auth_override):
    def _apply(app):
        app.dependency_overrides[auth_dependency] = auth_override

    return _apply
