"""Repository port — abstract interface over the stored records.

Core modules depend on these protocols, never on a specific storage engine.
"""

from __future__ import annotations

from datetime import date, datetime
from typing import Protocol

from safereach.data.models import (
    AwayPerson,
    Contact,
    Department,
    Leave,
    Person,
    Reminder,
)


class RepositoryError(Exception):
    """Raised when any repository operation fails."""


class ReminderRepository(Protocol):
    """Read/write interface used by the daily reminder batch."""

    def list_active_leaves(self) -> list[Leave]: ...

    def list_persons_with_active_leave(
        self, on: date, department_id: int | None = None,
    ) -> list[AwayPerson]: ...

    def get_person(self, person_id: int) -> Person | None: ...

    def list_unhandled_reminders(
        self, person_id: int, leave_id: int | None = None,
    ) -> list[Reminder]: ...

    def upsert_reminder(self, reminder: Reminder) -> Reminder: ...

    def mark_leave_completed(self, leave_id: int) -> None: ...

    def mark_reminders_handled(
        self,
        *,
        leave_id: int | None = None,
        person_id: int | None = None,
        handled_at: datetime,
        handled_by: int | None = None,
    ) -> int: ...

    def delete_person(self, person_id: int) -> None: ...

    def find_system_marker(self, on: date) -> Reminder | None: ...

    def close(self) -> None: ...


class StatisticsSource(Protocol):
    """Read-only interface used by reporting."""

    def list_departments(self) -> list[Department]: ...

    def count_persons(self, department_id: int | None = None) -> int: ...

    def list_reminders(
        self,
        department_id: int | None = None,
        since: date | None = None,
        until: date | None = None,
    ) -> list[Reminder]: ...

    def list_contacts(
        self,
        department_id: int | None = None,
        since: date | None = None,
        until: date | None = None,
    ) -> list[Contact]: ...

    def list_persons_with_active_leave(
        self, on: date, department_id: int | None = None,
    ) -> list[AwayPerson]: ...

    def list_contacts_for_person(
        self, person_id: int, since: date | None = None,
    ) -> list[Contact]: ...
