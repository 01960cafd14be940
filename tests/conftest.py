"""
Shared fixtures.

- Every test gets its own SQLite file under tmp_path (real locking, real WAL)
- The clock is fixed at 2024-03-05 12:00 UTC unless a test says otherwise
- The API client swaps the app's PollService for the test one
"""

from datetime import date, datetime, timezone
from typing import List

import pytest
from fastapi.testclient import TestClient
from sqlmodel import Session, select

from datepoll.config import settings
from datepoll.database import build_engine, init_db
from datepoll.main import app
from datepoll.api.deps import get_service
from datepoll.models import Voter, VoteSubmission
from datepoll.services.poll import PollService

NOW = datetime(2024, 3, 5, 12, 0, tzinfo=timezone.utc)
MARCH_START = date(2024, 3, 1)
MARCH_END = date(2024, 3, 31)
ADMIN_PASSWORD = "test-admin"


class FakeClock:
    def __init__(self, now: datetime) -> None:
        self.now = now

    def __call__(self) -> datetime:
        return self.now


@pytest.fixture
def engine(tmp_path):
    eng = build_engine(f"sqlite:///{tmp_path / 'poll.sqlite'}")
    init_db(eng)
    yield eng
    eng.dispose()


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock(NOW)


@pytest.fixture
def sleeps() -> List[float]:
    return []


@pytest.fixture
def service(engine, clock, sleeps) -> PollService:
    return PollService(engine, clock=clock, retry_attempts=3, retry_base_delay=0.5, sleep=sleeps.append)


@pytest.fixture
def march_poll(service: PollService) -> PollService:
    """Roster Mari + Jaan, window covering March 2024."""
    service.add_voter("Mari")
    service.add_voter("Jaan")
    service.set_window(MARCH_START, MARCH_END)
    return service


@pytest.fixture
def client(service: PollService, monkeypatch):
    monkeypatch.setattr(settings, "admin_password", ADMIN_PASSWORD)
    app.dependency_overrides[get_service] = lambda: service
    yield TestClient(app)
    app.dependency_overrides.clear()


@pytest.fixture
def admin_headers():
    return {"X-Admin-Password": ADMIN_PASSWORD}


def assert_voted_flags_consistent(engine) -> None:
    """has_voted / voted_at must match the presence of a submission for every voter."""
    with Session(engine) as db:
        submitted = {s.voter_name for s in db.exec(select(VoteSubmission)).all()}
        for v in db.exec(select(Voter)).all():
            assert v.has_voted == (v.name in submitted), v.name
            assert (v.voted_at is not None) == v.has_voted, v.name
