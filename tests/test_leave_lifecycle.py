"""Tests for safereach.core.leave_lifecycle — closing leaves that ended."""

from datetime import date
from unittest.mock import MagicMock

from safereach.core.leave_lifecycle import LeaveConclusionPolicy, resolve_concluded_leaves
from safereach.data.models import (
    Leave,
    LeaveStatus,
    LeaveType,
    Priority,
    Reminder,
    ReminderType,
)
from safereach.ports.repository_port import RepositoryError


def _open_reminder(db, person_id, leave_id):
    return db.upsert_reminder(Reminder(
        person_id=person_id, leave_id=leave_id,
        reminder_type=ReminderType.OVERDUE, priority=Priority.HIGH,
        reminder_date=date(2024, 3, 10),
    ))


class TestRetainPolicy:
    def test_leave_completed_and_reminders_handled(self, db, clock, away_person):
        person, leave = away_person(start=date(2024, 3, 1), end=date(2024, 3, 14))
        on_leave = _open_reminder(db, person.id, leave.id)
        leave_less = _open_reminder(db, person.id, None)

        result = resolve_concluded_leaves(db, clock, LeaveConclusionPolicy.RETAIN)

        assert result.concluded == 1
        assert result.reminders_handled == 2
        assert db.get_leave(leave.id).status is LeaveStatus.COMPLETED
        assert db.get_person(person.id) is not None
        for rid in (on_leave.id, leave_less.id):
            reminder = db.get_reminder(rid)
            assert reminder.is_handled is True
            assert reminder.handled_at == clock.now()

    def test_upcoming_leave_reminder_untouched(self, db, clock, away_person):
        person, ended = away_person(start=date(2024, 3, 1), end=date(2024, 3, 14))
        upcoming = db.add_leave(person.id, LeaveType.BUSINESS, date(2024, 3, 20), date(2024, 3, 25))
        pending = _open_reminder(db, person.id, upcoming.id)

        resolve_concluded_leaves(db, clock)

        assert db.get_reminder(pending.id).is_handled is False
        assert db.get_leave(upcoming.id).status is LeaveStatus.ACTIVE

    def test_running_leave_untouched(self, db, clock, away_person):
        _, leave = away_person(start=date(2024, 3, 1), end=date(2024, 3, 15))
        result = resolve_concluded_leaves(db, clock)
        assert result.concluded == 0
        assert db.get_leave(leave.id).status is LeaveStatus.ACTIVE


class TestPurgePolicy:
    def test_person_and_records_deleted(self, db, clock, away_person):
        person, leave = away_person(start=date(2024, 3, 1), end=date(2024, 3, 14))
        _open_reminder(db, person.id, leave.id)

        result = resolve_concluded_leaves(db, clock, LeaveConclusionPolicy.PURGE)

        assert result.concluded == 1
        assert result.persons_purged == 1
        assert db.get_person(person.id) is None
        assert db.get_leave(leave.id) is None
        assert db.list_reminders_for_person(person.id) == []

    def test_two_leaves_of_one_person(self, db, clock, away_person):
        person, _ = away_person(start=date(2024, 3, 1), end=date(2024, 3, 14))
        db.add_leave(person.id, LeaveType.STUDY, date(2024, 3, 10), date(2024, 3, 14))
        db.add_leave(person.id, LeaveType.STUDY, date(2024, 3, 1), date(2024, 3, 5))

        result = resolve_concluded_leaves(db, clock, LeaveConclusionPolicy.PURGE)

        assert result.failed == 0
        assert result.persons_purged == 1
        assert result.concluded == 2
        assert result.stale_completed == 0
        assert db.list_active_leaves() == []

    def test_other_persons_kept(self, db, clock, away_person):
        away_person(start=date(2024, 3, 1), end=date(2024, 3, 14))
        other, _ = away_person("Zhang Min")
        resolve_concluded_leaves(db, clock, LeaveConclusionPolicy.PURGE)
        assert db.get_person(other.id) is not None


class TestStaleLeaves:
    def test_missed_leave_only_completed(self, db, clock, away_person):
        person, leave = away_person(start=date(2024, 3, 1), end=date(2024, 3, 10))
        reminder = _open_reminder(db, person.id, leave.id)

        result = resolve_concluded_leaves(db, clock, LeaveConclusionPolicy.PURGE)

        assert result.stale_completed == 1
        assert result.concluded == 0
        assert db.get_person(person.id) is not None
        assert db.get_leave(leave.id).status is LeaveStatus.COMPLETED
        assert db.get_reminder(reminder.id).is_handled is False


class TestFailureIsolation:
    def test_one_failure_does_not_stop_the_rest(self, clock):
        leaves = [
            Leave(id=i, person_id=i, leave_type=LeaveType.VACATION,
                  start_date=date(2024, 3, 1), end_date=date(2024, 3, 14))
            for i in (1, 2)
        ]
        repo = MagicMock()
        repo.list_active_leaves.return_value = leaves
        repo.mark_leave_completed.side_effect = [RepositoryError("disk full"), None]
        repo.mark_reminders_handled.return_value = 0

        result = resolve_concluded_leaves(repo, clock)

        assert result.failed == 1
        assert result.concluded == 1
        assert repo.mark_leave_completed.call_count == 2

    def test_uses_supplied_leaves(self, clock):
        repo = MagicMock()
        result = resolve_concluded_leaves(repo, clock, active_leaves=[])
        repo.list_active_leaves.assert_not_called()
        assert result.concluded == 0
