"""
SafeReach — SQLite repository.

Reference implementation of ReminderRepository and StatisticsSource.
Persons, leaves, contacts, reminders and reminder settings live in one
SQLite file; deleting a person cascades to everything that references it.
Also carries the operator-side writes (adding persons and leaves, logging
contacts) that the batch itself never performs.
"""

from __future__ import annotations

import logging
import sqlite3
from contextlib import contextmanager
from dataclasses import replace
from datetime import date, datetime, timezone
from pathlib import Path
from typing import Iterator
from zoneinfo import ZoneInfo

from safereach.data.models import (
    AwayPerson,
    Contact,
    ContactMethod,
    Department,
    Leave,
    LeaveStatus,
    LeaveType,
    Person,
    Priority,
    Reminder,
    ReminderSetting,
    ReminderType,
)
from safereach.ports.repository_port import RepositoryError

logger = logging.getLogger(__name__)

_SCHEMA = """
CREATE TABLE IF NOT EXISTS departments (
    id    INTEGER PRIMARY KEY AUTOINCREMENT,
    name  TEXT NOT NULL
);

CREATE TABLE IF NOT EXISTS persons (
    id                INTEGER PRIMARY KEY AUTOINCREMENT,
    name              TEXT NOT NULL,
    department_id     INTEGER REFERENCES departments(id),
    last_contact_date TEXT,
    created_by        INTEGER,
    created_at        TEXT NOT NULL
);

CREATE TABLE IF NOT EXISTS leaves (
    id          INTEGER PRIMARY KEY AUTOINCREMENT,
    person_id   INTEGER NOT NULL REFERENCES persons(id) ON DELETE CASCADE,
    leave_type  TEXT NOT NULL,
    start_date  TEXT NOT NULL,
    end_date    TEXT NOT NULL,
    status      TEXT NOT NULL DEFAULT 'active',
    CHECK (start_date <= end_date)
);

CREATE TABLE IF NOT EXISTS reminders (
    id             INTEGER PRIMARY KEY AUTOINCREMENT,
    person_id      INTEGER REFERENCES persons(id) ON DELETE CASCADE,
    leave_id       INTEGER REFERENCES leaves(id) ON DELETE SET NULL,
    reminder_type  TEXT NOT NULL,
    priority       TEXT NOT NULL,
    reminder_date  TEXT NOT NULL,
    is_handled     INTEGER NOT NULL DEFAULT 0,
    handled_by     INTEGER,
    handled_at     TEXT,
    created_at     TEXT NOT NULL
);

CREATE TABLE IF NOT EXISTS contacts (
    id            INTEGER PRIMARY KEY AUTOINCREMENT,
    person_id     INTEGER NOT NULL REFERENCES persons(id) ON DELETE CASCADE,
    leave_id      INTEGER REFERENCES leaves(id) ON DELETE SET NULL,
    contact_date  TEXT NOT NULL,
    contact_by    INTEGER,
    method        TEXT,
    reminder_id   INTEGER REFERENCES reminders(id) ON DELETE SET NULL
);

CREATE TABLE IF NOT EXISTS reminder_settings (
    user_id            INTEGER PRIMARY KEY,
    urgent_threshold   INTEGER NOT NULL DEFAULT 10,
    suggest_threshold  INTEGER NOT NULL DEFAULT 7
);

CREATE INDEX IF NOT EXISTS idx_reminders_person_open
    ON reminders (person_id, leave_id, is_handled);
CREATE INDEX IF NOT EXISTS idx_leaves_status_end
    ON leaves (status, end_date);
"""

# Columns added after the first release: (table, column, DDL)
_MIGRATIONS = (
    ("leaves", "location", "ALTER TABLE leaves ADD COLUMN location TEXT"),
    ("reminders", "updated_at", "ALTER TABLE reminders ADD COLUMN updated_at TEXT"),
)

_AWAY_COLUMNS = """
    p.id AS p_id, p.name AS p_name, p.department_id AS p_department_id,
    p.last_contact_date AS p_last_contact_date, p.created_by AS p_created_by,
    p.created_at AS p_created_at,
    l.id AS l_id, l.person_id AS l_person_id, l.leave_type AS l_leave_type,
    l.start_date AS l_start_date, l.end_date AS l_end_date,
    l.status AS l_status, l.location AS l_location,
    s.user_id AS s_user_id, s.urgent_threshold AS s_urgent_threshold,
    s.suggest_threshold AS s_suggest_threshold
"""


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _date(raw: str | None) -> date | None:
    return date.fromisoformat(raw) if raw else None


def _datetime(raw: str | None) -> datetime | None:
    return datetime.fromisoformat(raw) if raw else None


class SafeReachDB:
    """SQLite-backed storage for the reminder engine."""

    def __init__(self, db_path: str | None = None, timezone: str | None = None) -> None:
        if db_path is None or timezone is None:
            from safereach.config import settings
            db_path = db_path or settings.DATABASE_PATH
            timezone = timezone or settings.TIMEZONE

        self._db_path = db_path
        self._tz = ZoneInfo(timezone)
        try:
            if db_path != ":memory:":
                Path(db_path).parent.mkdir(parents=True, exist_ok=True)
            self._conn = sqlite3.connect(db_path)
        except (sqlite3.Error, OSError) as exc:
            raise RepositoryError(f"Cannot open database {db_path}: {exc}") from exc
        self._conn.row_factory = sqlite3.Row
        self._conn.execute("PRAGMA foreign_keys = ON")
        self._init_db()

    @contextmanager
    def _transaction(self) -> Iterator[sqlite3.Connection]:
        """Run statements in one transaction; sqlite errors become RepositoryError."""
        try:
            with self._conn:
                yield self._conn
        except sqlite3.Error as exc:
            raise RepositoryError(str(exc)) from exc

    def _to_local(self, value: datetime) -> datetime:
        """Aware timestamps are stored in the operational timezone; naive ones as given."""
        if value.tzinfo is None:
            return value
        return value.astimezone(self._tz)

    def _init_db(self) -> None:
        """Create tables if they don't exist, and migrate older schemas."""
        with self._transaction() as conn:
            conn.executescript(_SCHEMA)
            for table, column, ddl in _MIGRATIONS:
                existing_cols = {
                    row[1] for row in conn.execute(f"PRAGMA table_info({table})").fetchall()
                }
                if column not in existing_cols:
                    conn.execute(ddl)
        logger.debug("SafeReach schema initialized at %s", self._db_path)

    def close(self) -> None:
        try:
            self._conn.close()
        except sqlite3.Error as exc:
            raise RepositoryError(f"Cannot close database: {exc}") from exc
        logger.debug("Database %s closed", self._db_path)

    # ------------------------------------------------------------------
    # Row mapping
    # ------------------------------------------------------------------

    @staticmethod
    def _row_to_person(row: sqlite3.Row, prefix: str = "") -> Person:
        return Person(
            id=row[f"{prefix}id"],
            name=row[f"{prefix}name"],
            department_id=row[f"{prefix}department_id"],
            last_contact_date=_date(row[f"{prefix}last_contact_date"]),
            created_by=row[f"{prefix}created_by"],
            created_at=_datetime(row[f"{prefix}created_at"]),
        )

    @staticmethod
    def _row_to_leave(row: sqlite3.Row, prefix: str = "") -> Leave:
        return Leave(
            id=row[f"{prefix}id"],
            person_id=row[f"{prefix}person_id"],
            leave_type=LeaveType(row[f"{prefix}leave_type"]),
            start_date=_date(row[f"{prefix}start_date"]),
            end_date=_date(row[f"{prefix}end_date"]),
            status=LeaveStatus(row[f"{prefix}status"]),
            location=row[f"{prefix}location"],
        )

    @staticmethod
    def _row_to_reminder(row: sqlite3.Row) -> Reminder:
        return Reminder(
            id=row["id"],
            person_id=row["person_id"],
            leave_id=row["leave_id"],
            reminder_type=ReminderType(row["reminder_type"]),
            priority=Priority(row["priority"]),
            reminder_date=_date(row["reminder_date"]),
            is_handled=bool(row["is_handled"]),
            handled_by=row["handled_by"],
            handled_at=_datetime(row["handled_at"]),
            created_at=_datetime(row["created_at"]),
            updated_at=_datetime(row["updated_at"]),
        )

    @staticmethod
    def _row_to_contact(row: sqlite3.Row) -> Contact:
        return Contact(
            id=row["id"],
            person_id=row["person_id"],
            leave_id=row["leave_id"],
            contact_date=_datetime(row["contact_date"]),
            contact_by=row["contact_by"],
            method=ContactMethod(row["method"]) if row["method"] else None,
            reminder_id=row["reminder_id"],
        )

    @classmethod
    def _row_to_away(cls, row: sqlite3.Row) -> AwayPerson:
        setting = None
        if row["s_user_id"] is not None:
            setting = ReminderSetting(
                user_id=row["s_user_id"],
                urgent_threshold=row["s_urgent_threshold"],
                suggest_threshold=row["s_suggest_threshold"],
            )
        return AwayPerson(
            person=cls._row_to_person(row, "p_"),
            leave=cls._row_to_leave(row, "l_"),
            setting=setting,
        )

    # ------------------------------------------------------------------
    # Operator writes
    # ------------------------------------------------------------------

    def add_department(self, name: str) -> Department:
        with self._transaction() as conn:
            cursor = conn.execute("INSERT INTO departments (name) VALUES (?)", (name,))
        department = Department(id=cursor.lastrowid, name=name)
        logger.info("Department added: #%d '%s'", department.id, name)
        return department

    def add_person(
        self,
        name: str,
        created_by: int | None = None,
        department_id: int | None = None,
        created_at: datetime | None = None,
        last_contact_date: date | None = None,
    ) -> Person:
        """Insert a new person. created_at defaults to now."""
        if created_at is None:
            created_at = _utcnow()

        with self._transaction() as conn:
            cursor = conn.execute(
                """
                INSERT INTO persons
                    (name, department_id, last_contact_date, created_by, created_at)
                VALUES (?, ?, ?, ?, ?)
                """,
                (
                    name, department_id,
                    last_contact_date.isoformat() if last_contact_date else None,
                    created_by, created_at.isoformat(),
                ),
            )
        person = Person(
            id=cursor.lastrowid,
            name=name,
            created_at=created_at,
            last_contact_date=last_contact_date,
            created_by=created_by,
            department_id=department_id,
        )
        logger.info("Person added: #%d '%s'", person.id, name)
        return person

    def get_person(self, person_id: int) -> Person | None:
        """Fetch a single person by ID."""
        with self._transaction() as conn:
            row = conn.execute("SELECT * FROM persons WHERE id = ?", (person_id,)).fetchone()
        if row is None:
            return None
        return self._row_to_person(row)

    def add_leave(
        self,
        person_id: int,
        leave_type: LeaveType | str,
        start_date: date,
        end_date: date,
        status: LeaveStatus = LeaveStatus.ACTIVE,
        location: str | None = None,
    ) -> Leave:
        """Insert a leave window. Raises ValueError if it ends before it starts."""
        if start_date > end_date:
            raise ValueError(f"Leave ends ({end_date}) before it starts ({start_date})")
        leave_type = LeaveType(leave_type)

        with self._transaction() as conn:
            cursor = conn.execute(
                """
                INSERT INTO leaves
                    (person_id, leave_type, start_date, end_date, status, location)
                VALUES (?, ?, ?, ?, ?, ?)
                """,
                (
                    person_id, leave_type.value, start_date.isoformat(),
                    end_date.isoformat(), LeaveStatus(status).value, location,
                ),
            )
        leave = Leave(
            id=cursor.lastrowid,
            person_id=person_id,
            leave_type=leave_type,
            start_date=start_date,
            end_date=end_date,
            status=LeaveStatus(status),
            location=location,
        )
        logger.info(
            "Leave added: #%d person #%d %s %s..%s",
            leave.id, person_id, leave_type.value, start_date, end_date,
        )
        return leave

    def get_leave(self, leave_id: int) -> Leave | None:
        with self._transaction() as conn:
            row = conn.execute("SELECT * FROM leaves WHERE id = ?", (leave_id,)).fetchone()
        if row is None:
            return None
        return self._row_to_leave(row)

    def set_reminder_setting(
        self, user_id: int, urgent_threshold: int, suggest_threshold: int,
    ) -> ReminderSetting:
        """Create or replace a user's thresholds."""
        with self._transaction() as conn:
            conn.execute(
                """
                INSERT INTO reminder_settings (user_id, urgent_threshold, suggest_threshold)
                VALUES (?, ?, ?)
                ON CONFLICT(user_id) DO UPDATE SET
                    urgent_threshold = excluded.urgent_threshold,
                    suggest_threshold = excluded.suggest_threshold
                """,
                (user_id, urgent_threshold, suggest_threshold),
            )
        logger.info(
            "Reminder thresholds for user %d: urgent=%d suggest=%d",
            user_id, urgent_threshold, suggest_threshold,
        )
        return ReminderSetting(user_id, urgent_threshold, suggest_threshold)

    def get_reminder_setting(self, user_id: int) -> ReminderSetting | None:
        with self._transaction() as conn:
            row = conn.execute(
                "SELECT * FROM reminder_settings WHERE user_id = ?", (user_id,),
            ).fetchone()
        if row is None:
            return None
        return ReminderSetting(
            user_id=row["user_id"],
            urgent_threshold=row["urgent_threshold"],
            suggest_threshold=row["suggest_threshold"],
        )

    def log_contact(
        self,
        person_id: int,
        contact_date: datetime,
        contact_by: int | None = None,
        method: ContactMethod | str | None = None,
        leave_id: int | None = None,
    ) -> Contact:
        """Record a contact, move last_contact_date and resolve open reminders.

        Every unhandled reminder of the person is marked handled at
        ``contact_date``; the contact is linked to the oldest of them.
        A contact with no open reminder is proactive. Aware timestamps are
        converted to the operational timezone before the day is taken, so
        stored contacts and last_contact_date agree with the batch's calendar.
        """
        method = ContactMethod(method) if method else None
        contact_date = self._to_local(contact_date)
        contact_day = contact_date.date()

        with self._transaction() as conn:
            person = conn.execute(
                "SELECT last_contact_date FROM persons WHERE id = ?", (person_id,),
            ).fetchone()
            if person is None:
                raise ValueError(f"Person {person_id} not found")

            open_ids = [
                row["id"] for row in conn.execute(
                    "SELECT id FROM reminders WHERE person_id = ? AND is_handled = 0 ORDER BY id",
                    (person_id,),
                ).fetchall()
            ]
            reminder_id = open_ids[0] if open_ids else None
            if open_ids:
                conn.execute(
                    """
                    UPDATE reminders
                    SET is_handled = 1, handled_by = ?, handled_at = ?, updated_at = ?
                    WHERE person_id = ? AND is_handled = 0
                    """,
                    (contact_by, contact_date.isoformat(), _utcnow().isoformat(), person_id),
                )

            previous = _date(person["last_contact_date"])
            if previous is None or contact_day > previous:
                conn.execute(
                    "UPDATE persons SET last_contact_date = ? WHERE id = ?",
                    (contact_day.isoformat(), person_id),
                )

            cursor = conn.execute(
                """
                INSERT INTO contacts
                    (person_id, leave_id, contact_date, contact_by, method, reminder_id)
                VALUES (?, ?, ?, ?, ?, ?)
                """,
                (
                    person_id, leave_id, contact_date.isoformat(), contact_by,
                    method.value if method else None, reminder_id,
                ),
            )

        if open_ids:
            logger.info(
                "Contact with person #%d resolved %d reminder(s)", person_id, len(open_ids),
            )
        return Contact(
            id=cursor.lastrowid,
            person_id=person_id,
            contact_date=contact_date,
            leave_id=leave_id,
            contact_by=contact_by,
            method=method,
            reminder_id=reminder_id,
        )

    def handle_reminder(
        self,
        reminder_id: int,
        handled_at: datetime,
        handled_by: int | None = None,
    ) -> bool:
        """Mark one reminder handled. Returns False if it was already handled."""
        with self._transaction() as conn:
            cursor = conn.execute(
                """
                UPDATE reminders
                SET is_handled = 1, handled_by = ?, handled_at = ?, updated_at = ?
                WHERE id = ? AND is_handled = 0
                """,
                (handled_by, handled_at.isoformat(), _utcnow().isoformat(), reminder_id),
            )
        return cursor.rowcount > 0

    def get_reminder(self, reminder_id: int) -> Reminder | None:
        with self._transaction() as conn:
            row = conn.execute("SELECT * FROM reminders WHERE id = ?", (reminder_id,)).fetchone()
        if row is None:
            return None
        return self._row_to_reminder(row)

    def list_reminders_for_person(self, person_id: int) -> list[Reminder]:
        with self._transaction() as conn:
            rows = conn.execute(
                "SELECT * FROM reminders WHERE person_id = ? ORDER BY id", (person_id,),
            ).fetchall()
        return [self._row_to_reminder(r) for r in rows]

    # ------------------------------------------------------------------
    # ReminderRepository
    # ------------------------------------------------------------------

    def list_active_leaves(self) -> list[Leave]:
        with self._transaction() as conn:
            rows = conn.execute(
                "SELECT * FROM leaves WHERE status = 'active' ORDER BY end_date, id",
            ).fetchall()
        return [self._row_to_leave(r) for r in rows]

    def list_persons_with_active_leave(
        self, on: date, department_id: int | None = None,
    ) -> list[AwayPerson]:
        """Persons whose active leave window contains ``on``."""
        query = f"""
            SELECT {_AWAY_COLUMNS}
            FROM leaves l
            JOIN persons p ON p.id = l.person_id
            LEFT JOIN reminder_settings s ON s.user_id = p.created_by
            WHERE l.status = 'active' AND l.start_date <= ? AND l.end_date >= ?
        """
        params: list = [on.isoformat(), on.isoformat()]
        if department_id is not None:
            query += " AND p.department_id = ?"
            params.append(department_id)
        query += " ORDER BY p.id, l.start_date"

        with self._transaction() as conn:
            rows = conn.execute(query, params).fetchall()
        return [self._row_to_away(r) for r in rows]

    def list_unhandled_reminders(
        self, person_id: int, leave_id: int | None = None,
    ) -> list[Reminder]:
        """Open reminders for one key; leave_id None matches leave-less rows."""
        query = "SELECT * FROM reminders WHERE person_id = ? AND is_handled = 0"
        params: list = [person_id]
        if leave_id is None:
            query += " AND leave_id IS NULL"
        else:
            query += " AND leave_id = ?"
            params.append(leave_id)
        query += " ORDER BY id"

        with self._transaction() as conn:
            rows = conn.execute(query, params).fetchall()
        return [self._row_to_reminder(r) for r in rows]

    def upsert_reminder(self, reminder: Reminder) -> Reminder:
        """Insert a reminder without an id, or overwrite the stored row."""
        now = _utcnow()
        values = (
            reminder.person_id,
            reminder.leave_id,
            ReminderType(reminder.reminder_type).value,
            Priority(reminder.priority).value,
            reminder.reminder_date.isoformat(),
            int(reminder.is_handled),
            reminder.handled_by,
            reminder.handled_at.isoformat() if reminder.handled_at else None,
        )

        with self._transaction() as conn:
            if reminder.id is None:
                cursor = conn.execute(
                    """
                    INSERT INTO reminders
                        (person_id, leave_id, reminder_type, priority, reminder_date,
                         is_handled, handled_by, handled_at, created_at, updated_at)
                    VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
                    """,
                    values + (now.isoformat(), now.isoformat()),
                )
                return replace(reminder, id=cursor.lastrowid, created_at=now, updated_at=now)

            cursor = conn.execute(
                """
                UPDATE reminders
                SET person_id = ?, leave_id = ?, reminder_type = ?, priority = ?,
                    reminder_date = ?, is_handled = ?, handled_by = ?, handled_at = ?,
                    updated_at = ?
                WHERE id = ?
                """,
                values + (now.isoformat(), reminder.id),
            )
            if cursor.rowcount == 0:
                raise RepositoryError(f"Reminder {reminder.id} not found")
        return replace(reminder, updated_at=now)

    def mark_leave_completed(self, leave_id: int) -> None:
        with self._transaction() as conn:
            conn.execute(
                "UPDATE leaves SET status = 'completed' WHERE id = ? AND status = 'active'",
                (leave_id,),
            )
        logger.debug("Leave #%d marked completed", leave_id)

    def mark_reminders_handled(
        self,
        *,
        leave_id: int | None = None,
        person_id: int | None = None,
        handled_at: datetime,
        handled_by: int | None = None,
    ) -> int:
        """Close open reminders of a leave, or a person's leave-less reminders.

        With both ids, only that person's reminders for that leave match.
        Returns the number of reminders closed.
        """
        if leave_id is None and person_id is None:
            raise ValueError("mark_reminders_handled needs a leave_id or a person_id")

        query = """
            UPDATE reminders
            SET is_handled = 1, handled_by = ?, handled_at = ?, updated_at = ?
            WHERE is_handled = 0
        """
        params: list = [handled_by, handled_at.isoformat(), _utcnow().isoformat()]
        if leave_id is not None:
            query += " AND leave_id = ?"
            params.append(leave_id)
            if person_id is not None:
                query += " AND person_id = ?"
                params.append(person_id)
        else:
            query += " AND person_id = ? AND leave_id IS NULL"
            params.append(person_id)

        with self._transaction() as conn:
            cursor = conn.execute(query, params)
        return cursor.rowcount

    def delete_person(self, person_id: int) -> None:
        """Permanently delete a person with their leaves, contacts and reminders."""
        with self._transaction() as conn:
            conn.execute("DELETE FROM persons WHERE id = ?", (person_id,))
        logger.info("Person #%d deleted", person_id)

    def find_system_marker(self, on: date) -> Reminder | None:
        with self._transaction() as conn:
            row = conn.execute(
                """
                SELECT * FROM reminders
                WHERE reminder_type = 'system' AND person_id IS NULL AND reminder_date = ?
                ORDER BY id LIMIT 1
                """,
                (on.isoformat(),),
            ).fetchone()
        if row is None:
            return None
        return self._row_to_reminder(row)

    # ------------------------------------------------------------------
    # StatisticsSource
    # ------------------------------------------------------------------

    def list_departments(self) -> list[Department]:
        with self._transaction() as conn:
            rows = conn.execute("SELECT * FROM departments ORDER BY name").fetchall()
        return [Department(id=r["id"], name=r["name"]) for r in rows]

    def count_persons(self, department_id: int | None = None) -> int:
        query = "SELECT COUNT(*) FROM persons"
        params: list = []
        if department_id is not None:
            query += " WHERE department_id = ?"
            params.append(department_id)
        with self._transaction() as conn:
            return conn.execute(query, params).fetchone()[0]

    def list_reminders(
        self,
        department_id: int | None = None,
        since: date | None = None,
        until: date | None = None,
    ) -> list[Reminder]:
        """Person reminders (system markers excluded) in an optional date window."""
        query = """
            SELECT r.* FROM reminders r
            JOIN persons p ON p.id = r.person_id
            WHERE r.reminder_type != 'system'
        """
        params: list = []
        if department_id is not None:
            query += " AND p.department_id = ?"
            params.append(department_id)
        if since is not None:
            query += " AND r.reminder_date >= ?"
            params.append(since.isoformat())
        if until is not None:
            query += " AND r.reminder_date <= ?"
            params.append(until.isoformat())
        query += " ORDER BY r.reminder_date, r.id"

        with self._transaction() as conn:
            rows = conn.execute(query, params).fetchall()
        return [self._row_to_reminder(r) for r in rows]

    def list_contacts(
        self,
        department_id: int | None = None,
        since: date | None = None,
        until: date | None = None,
    ) -> list[Contact]:
        query = """
            SELECT c.* FROM contacts c
            JOIN persons p ON p.id = c.person_id
            WHERE 1 = 1
        """
        params: list = []
        if department_id is not None:
            query += " AND p.department_id = ?"
            params.append(department_id)
        if since is not None:
            query += " AND substr(c.contact_date, 1, 10) >= ?"
            params.append(since.isoformat())
        if until is not None:
            query += " AND substr(c.contact_date, 1, 10) <= ?"
            params.append(until.isoformat())
        query += " ORDER BY c.contact_date, c.id"

        with self._transaction() as conn:
            rows = conn.execute(query, params).fetchall()
        return [self._row_to_contact(r) for r in rows]

    def list_contacts_for_person(
        self, person_id: int, since: date | None = None,
    ) -> list[Contact]:
        query = "SELECT * FROM contacts WHERE person_id = ?"
        params: list = [person_id]
        if since is not None:
            query += " AND substr(contact_date, 1, 10) >= ?"
            params.append(since.isoformat())
        query += " ORDER BY contact_date, id"

        with self._transaction() as conn:
            rows = conn.execute(query, params).fetchall()
        return [self._row_to_contact(r) for r in rows]
