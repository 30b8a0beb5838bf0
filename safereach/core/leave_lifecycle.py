"""Leave lifecycle — closes leaves that have ended.

A leave that ended yesterday has just concluded: depending on the policy
its person is either kept (leave completed, open reminders resolved) or
purged with all their records. Leaves that ended earlier were missed by a
previous run and are only marked completed.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from safereach.core.clock import Clock
    from safereach.data.models import Leave
    from safereach.ports.repository_port import ReminderRepository

logger = logging.getLogger(__name__)


class LeaveConclusionPolicy(Enum):
    RETAIN = "retain"   # keep the person, complete the leave, handle reminders
    PURGE = "purge"     # delete the person and everything attached


@dataclass
class LifecycleResult:
    concluded: int = 0
    stale_completed: int = 0
    persons_purged: int = 0
    reminders_handled: int = 0
    failed: int = 0


def resolve_concluded_leaves(
    repo: ReminderRepository,
    clock: Clock,
    policy: LeaveConclusionPolicy = LeaveConclusionPolicy.RETAIN,
    active_leaves: list[Leave] | None = None,
) -> LifecycleResult:
    """Close every active leave whose end date has passed."""
    yesterday = clock.yesterday()
    if active_leaves is None:
        active_leaves = repo.list_active_leaves()

    result = LifecycleResult()
    just_ended = [lv for lv in active_leaves if lv.end_date == yesterday]
    missed = [lv for lv in active_leaves if lv.end_date < yesterday]

    if not just_ended:
        logger.info("No leave ended on %s", yesterday)

    purged: set[int] = set()
    for leave in just_ended:
        if leave.person_id in purged:
            # Cascade already removed this leave with its person
            result.concluded += 1
            continue
        try:
            if policy is LeaveConclusionPolicy.PURGE:
                _purge(repo, leave)
                purged.add(leave.person_id)
                result.persons_purged += 1
            else:
                result.reminders_handled += _retain(repo, leave, clock)
            result.concluded += 1
        except Exception as exc:
            result.failed += 1
            logger.error(
                "Failed to conclude leave #%d of person #%d: %s",
                leave.id, leave.person_id, exc,
            )

    for leave in missed:
        if leave.person_id in purged:
            continue
        try:
            repo.mark_leave_completed(leave.id)
            result.stale_completed += 1
            logger.info(
                "Leave #%d of person #%d (ended %s) marked completed",
                leave.id, leave.person_id, leave.end_date,
            )
        except Exception as exc:
            result.failed += 1
            logger.error(
                "Failed to complete stale leave #%d of person #%d: %s",
                leave.id, leave.person_id, exc,
            )

    return result


def _retain(repo: ReminderRepository, leave: Leave, clock: Clock) -> int:
    now = clock.now()
    repo.mark_leave_completed(leave.id)
    handled = repo.mark_reminders_handled(leave_id=leave.id, handled_at=now)
    handled += repo.mark_reminders_handled(person_id=leave.person_id, handled_at=now)
    logger.info(
        "Leave #%d of person #%d concluded, %d open reminder(s) handled",
        leave.id, leave.person_id, handled,
    )
    return handled


def _purge(repo: ReminderRepository, leave: Leave) -> None:
    person = repo.get_person(leave.person_id)
    name = person.name if person is not None else "?"
    repo.delete_person(leave.person_id)
    logger.info(
        "Person #%d '%s' deleted after leave #%d ended",
        leave.person_id, name, leave.id,
    )
