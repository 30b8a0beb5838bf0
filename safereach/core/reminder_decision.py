"""Reminder decision — pure business logic.

Decides, for one person on one leave, whether a contact reminder should
exist today and with which type and priority.

No I/O: this module only transforms data.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import date

from safereach.core.clock import Clock
from safereach.data.models import (
    DEFAULT_SUGGEST_THRESHOLD,
    DEFAULT_URGENT_THRESHOLD,
    Leave,
    Person,
    Priority,
    ReminderSetting,
    ReminderType,
)

logger = logging.getLogger(__name__)

SHORT_LEAVE_DAYS = range(3, 7)      # 3..6 days inclusive
SHORT_LEAVE_MIN_SILENCE = 3
ENDING_MIN_SILENCE = 5

STATUS_NORMAL = "normal"
STATUS_SUGGEST = "suggest"
STATUS_URGENT = "urgent"

_PRIORITY_RANK = {Priority.LOW: 0, Priority.MEDIUM: 1, Priority.HIGH: 2}


@dataclass(frozen=True)
class Thresholds:
    urgent: int = DEFAULT_URGENT_THRESHOLD
    suggest: int = DEFAULT_SUGGEST_THRESHOLD


@dataclass(frozen=True)
class ReminderDecision:
    """What the open reminder for a (person, leave) key should look like."""

    reminder_type: ReminderType
    priority: Priority
    reason: str = ""


def resolve_thresholds(
    setting: ReminderSetting | None,
    defaults: Thresholds = Thresholds(),
) -> Thresholds:
    """The owning user's thresholds, or the global defaults when unset.

    urgent >= suggest is not enforced; each threshold is used as stored.
    """
    if setting is None:
        return defaults
    return Thresholds(
        urgent=setting.urgent_threshold or defaults.urgent,
        suggest=setting.suggest_threshold or defaults.suggest,
    )


def compute_baseline_date(person: Person, leave: Leave, clock: Clock) -> date:
    """The date from which days without contact are counted.

    The last contact when there is one; otherwise whichever came later, the
    leave start or the person's creation (a person added mid-leave is
    counted from the day they were added).
    """
    if person.last_contact_date is not None:
        return person.last_contact_date
    created = clock.local_date(person.created_at)
    return max(leave.start_date, created)


def decide_contact_reminder(
    days_since_base: int,
    leave: Leave,
    today: date,
    thresholds: Thresholds,
) -> ReminderDecision | None:
    """Apply the silence rules in order; the first match wins."""
    if days_since_base >= thresholds.urgent:
        return ReminderDecision(
            ReminderType.OVERDUE, Priority.HIGH,
            f"{days_since_base} days without contact (urgent at {thresholds.urgent})",
        )
    if days_since_base >= thresholds.suggest:
        return ReminderDecision(
            ReminderType.OVERDUE, Priority.MEDIUM,
            f"{days_since_base} days without contact (suggest at {thresholds.suggest})",
        )
    if leave.days in SHORT_LEAVE_DAYS and days_since_base >= SHORT_LEAVE_MIN_SILENCE:
        return ReminderDecision(
            ReminderType.DURING, Priority.MEDIUM,
            f"{leave.days}-day leave, {days_since_base} days without contact",
        )
    if leave.day_before_end == today and days_since_base >= ENDING_MIN_SILENCE:
        return ReminderDecision(
            ReminderType.ENDING, Priority.MEDIUM,
            f"leave ends tomorrow, {days_since_base} days without contact",
        )
    return None


def decide_leave_date_reminder(leave: Leave, today: date) -> ReminderDecision | None:
    """Fire once on the day before the leave starts, and the day before it ends."""
    if leave.day_before_start == today:
        return ReminderDecision(ReminderType.BEFORE, Priority.MEDIUM, "leave starts tomorrow")
    if leave.day_before_end == today:
        return ReminderDecision(ReminderType.ENDING, Priority.MEDIUM, "leave ends tomorrow")
    return None


def merge_decisions(
    contact: ReminderDecision | None,
    dated: ReminderDecision | None,
) -> ReminderDecision | None:
    """Collapse both rule families into the single decision for one key.

    The contact decision wins unless the dated one has strictly higher
    priority.
    """
    if contact is None:
        return dated
    if dated is None:
        return contact
    if _PRIORITY_RANK[dated.priority] > _PRIORITY_RANK[contact.priority]:
        return dated
    return contact


def plan_leave_reminder(
    person: Person,
    leave: Leave,
    setting: ReminderSetting | None,
    clock: Clock,
    defaults: Thresholds = Thresholds(),
) -> ReminderDecision | None:
    """Decide the reminder for one (person, leave) pair on the clock's today."""
    today = clock.today()
    contact = None
    if leave.contains(today):
        thresholds = resolve_thresholds(setting, defaults)
        baseline = compute_baseline_date(person, leave, clock)
        days = clock.days_between(baseline, today)
        contact = decide_contact_reminder(days, leave, today, thresholds)
        logger.debug(
            "Person #%d baseline %s, %d days since base, thresholds %d/%d",
            person.id, baseline, days, thresholds.urgent, thresholds.suggest,
        )
    return merge_decisions(contact, decide_leave_date_reminder(leave, today))


# ---------------------------------------------------------------------------
# Status buckets
# ---------------------------------------------------------------------------


def classify_status(days_since_base: int, thresholds: Thresholds) -> str:
    """Deterministic normal/suggest/urgent bucket for one away person."""
    if days_since_base >= thresholds.urgent:
        return STATUS_URGENT
    if days_since_base >= thresholds.suggest:
        return STATUS_SUGGEST
    return STATUS_NORMAL


_PRIORITY_STATUS = {
    Priority.HIGH: STATUS_URGENT,
    Priority.MEDIUM: STATUS_SUGGEST,
    Priority.LOW: STATUS_NORMAL,
}


def status_from_priority(priority: Priority | str) -> str:
    """Bucket an open reminder by its priority: high is urgent, medium suggest."""
    return _PRIORITY_STATUS[Priority(priority)]
