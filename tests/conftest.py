"""Shared test fixtures and configuration.

Sets up fake environment variables so safereach.config doesn't sys.exit(),
and provides common fixtures like a temp DB and a pinned clock.
"""

import os

# Patch env vars BEFORE any safereach imports
os.environ.setdefault("DATABASE_PATH", ":memory:")
os.environ.setdefault("TIMEZONE", "Asia/Shanghai")
os.environ.setdefault("LEAVE_CONCLUSION_POLICY", "retain")

from datetime import date, datetime

import pytest

TODAY = date(2024, 3, 15)


@pytest.fixture
def tmp_db_path(tmp_path):
    """Return a temporary SQLite DB path."""
    return str(tmp_path / "test_safereach.db")


@pytest.fixture
def db(tmp_db_path):
    """Return a SafeReachDB instance backed by a temp file."""
    from safereach.data.db import SafeReachDB
    repo = SafeReachDB(db_path=tmp_db_path, timezone="Asia/Shanghai")
    yield repo
    repo.close()


@pytest.fixture
def clock():
    """A clock pinned to TODAY in the operational timezone."""
    from safereach.core.clock import FixedClock
    return FixedClock(TODAY)


@pytest.fixture
def away_person(db):
    """Factory: add a person and an active leave in one call."""
    from safereach.data.models import LeaveType

    def _make(
        name="Li Wei",
        start=date(2024, 3, 5),
        end=date(2024, 3, 25),
        created_at=datetime(2024, 3, 1, 9, 0),
        last_contact_date=None,
        created_by=None,
        department_id=None,
    ):
        person = db.add_person(
            name,
            created_by=created_by,
            department_id=department_id,
            created_at=created_at,
            last_contact_date=last_contact_date,
        )
        leave = db.add_leave(person.id, LeaveType.VACATION, start, end)
        return person, leave

    return _make
