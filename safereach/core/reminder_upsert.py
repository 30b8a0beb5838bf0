"""Reminder upsert — converges the single open reminder for a (person, leave) key.

Repeated runs with the same decision do not write. A changed decision
escalates the existing row in place instead of opening a new one.
"""

from __future__ import annotations

import logging
from dataclasses import replace
from datetime import date
from enum import Enum
from typing import TYPE_CHECKING

from safereach.data.models import Reminder

if TYPE_CHECKING:
    from safereach.core.reminder_decision import ReminderDecision
    from safereach.data.models import Person
    from safereach.ports.repository_port import ReminderRepository

logger = logging.getLogger(__name__)


class UpsertOutcome(Enum):
    CREATED = "created"
    UPDATED = "updated"
    UNCHANGED = "unchanged"
    SKIPPED = "skipped"


def upsert_reminder(
    repo: ReminderRepository,
    person: Person,
    leave_id: int | None,
    decision: ReminderDecision | None,
    today: date,
) -> UpsertOutcome:
    """Apply one decision to the repository.

    A ``None`` decision never retracts an existing open reminder.
    """
    if decision is None:
        return UpsertOutcome.SKIPPED

    existing = repo.list_unhandled_reminders(person.id, leave_id)
    if len(existing) > 1:
        logger.warning(
            "Person #%d '%s' has %d open reminders for leave %s; converging the oldest",
            person.id, person.name, len(existing), leave_id,
        )

    if not existing:
        created = repo.upsert_reminder(Reminder(
            person_id=person.id,
            leave_id=leave_id,
            reminder_type=decision.reminder_type,
            priority=decision.priority,
            reminder_date=today,
        ))
        logger.info(
            "Reminder #%s created for '%s': %s/%s (%s)",
            created.id, person.name, decision.reminder_type.value,
            decision.priority.value, decision.reason,
        )
        return UpsertOutcome.CREATED

    current = existing[0]
    if (current.reminder_type, current.priority) == (decision.reminder_type, decision.priority):
        logger.debug("Reminder #%s for '%s' unchanged", current.id, person.name)
        return UpsertOutcome.UNCHANGED

    repo.upsert_reminder(replace(
        current,
        reminder_type=decision.reminder_type,
        priority=decision.priority,
        reminder_date=today,
    ))
    logger.info(
        "Reminder #%s updated for '%s': %s/%s -> %s/%s (%s)",
        current.id, person.name,
        current.reminder_type.value, current.priority.value,
        decision.reminder_type.value, decision.priority.value, decision.reason,
    )
    return UpsertOutcome.UPDATED
