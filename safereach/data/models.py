"""
SafeReach — Data Models.

Records the reminder engine reads and writes. Dates are plain calendar
dates; timestamps are datetimes. Enumerations are str-valued so they
round-trip through storage as their literal values.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, datetime, timedelta
from enum import Enum

DEFAULT_URGENT_THRESHOLD = 10
DEFAULT_SUGGEST_THRESHOLD = 7


class LeaveType(str, Enum):
    VACATION = "vacation"
    BUSINESS = "business"
    STUDY = "study"
    HOSPITALIZATION = "hospitalization"
    CARE = "care"


class LeaveStatus(str, Enum):
    ACTIVE = "active"
    COMPLETED = "completed"
    CANCELLED = "cancelled"


class ReminderType(str, Enum):
    BEFORE = "before"
    DURING = "during"
    ENDING = "ending"
    OVERDUE = "overdue"
    SYSTEM = "system"


class Priority(str, Enum):
    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"


class ContactMethod(str, Enum):
    PHONE = "phone"
    MESSAGE = "message"
    VISIT = "visit"


@dataclass
class Department:
    id: int
    name: str


@dataclass
class Person:
    """A tracked individual who may be away on leave."""

    id: int
    name: str
    created_at: datetime
    last_contact_date: date | None = None
    created_by: int | None = None     # owning user; selects the thresholds
    department_id: int | None = None


@dataclass
class Leave:
    """One continuous absence window, end date inclusive."""

    id: int
    person_id: int
    leave_type: LeaveType
    start_date: date
    end_date: date
    status: LeaveStatus = LeaveStatus.ACTIVE
    location: str | None = None

    @property
    def days(self) -> int:
        return (self.end_date - self.start_date).days + 1

    def contains(self, day: date) -> bool:
        return self.start_date <= day <= self.end_date

    @property
    def day_before_start(self) -> date:
        return self.start_date - timedelta(days=1)

    @property
    def day_before_end(self) -> date:
        return self.end_date - timedelta(days=1)


@dataclass
class Reminder:
    """An actionable contact flag.

    ``id`` is None until the repository has stored the row.
    """

    person_id: int | None
    leave_id: int | None
    reminder_type: ReminderType
    priority: Priority
    reminder_date: date
    is_handled: bool = False
    handled_by: int | None = None
    handled_at: datetime | None = None
    id: int | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None


@dataclass
class ReminderSetting:
    """Per-user thresholds, in days without contact."""

    user_id: int
    urgent_threshold: int = DEFAULT_URGENT_THRESHOLD
    suggest_threshold: int = DEFAULT_SUGGEST_THRESHOLD


@dataclass
class Contact:
    """A logged contact with an away person."""

    id: int
    person_id: int
    contact_date: datetime
    leave_id: int | None = None
    contact_by: int | None = None
    method: ContactMethod | None = None
    reminder_id: int | None = None    # reminder this contact resolved, if any

    @property
    def has_related_reminder(self) -> bool:
        return self.reminder_id is not None


@dataclass
class AwayPerson:
    """A person joined with their current leave and owner's settings."""

    person: Person
    leave: Leave
    setting: ReminderSetting | None = field(default=None)
