"""
SafeReach — Daily reminder batch.

Run once per day by cron: closes leaves that ended, then decides and
upserts the open reminder for every person who is away today or leaves
tomorrow, and reports what changed.

This module is storage-agnostic: it depends on the ReminderRepository and
LeasePort protocols, not on specific implementations.
"""

from __future__ import annotations

import argparse
import logging
from dataclasses import dataclass, field
from datetime import date, timedelta
from typing import TYPE_CHECKING

from safereach.core.clock import Clock, FixedClock
from safereach.core.leave_lifecycle import (
    LeaveConclusionPolicy,
    LifecycleResult,
    resolve_concluded_leaves,
)
from safereach.core.reminder_decision import Thresholds, plan_leave_reminder
from safereach.core.reminder_upsert import UpsertOutcome, upsert_reminder
from safereach.data.models import Priority, Reminder, ReminderType
from safereach.ports.lease_port import LeaseError
from safereach.ports.repository_port import RepositoryError

if TYPE_CHECKING:
    from safereach.data.models import Leave, Person, ReminderSetting
    from safereach.ports.lease_port import LeasePort
    from safereach.ports.repository_port import ReminderRepository

logger = logging.getLogger(__name__)

EXIT_OK = 0
EXIT_SETUP_FAILURE = 1


@dataclass
class BatchReport:
    """Counts of what one run changed. Failed items are not counted as applied."""

    run_date: date
    lifecycle: LifecycleResult = field(default_factory=LifecycleResult)
    evaluated: int = 0
    created: int = 0
    updated: int = 0
    unchanged: int = 0
    skipped: int = 0
    failed: int = 0
    marker_recorded: bool = False

    def count(self, outcome: UpsertOutcome) -> None:
        if outcome is UpsertOutcome.CREATED:
            self.created += 1
        elif outcome is UpsertOutcome.UPDATED:
            self.updated += 1
        elif outcome is UpsertOutcome.UNCHANGED:
            self.unchanged += 1
        else:
            self.skipped += 1


# ---------------------------------------------------------------------------
# Batch
# ---------------------------------------------------------------------------


def run_daily_batch(
    repo: ReminderRepository,
    clock: Clock,
    policy: LeaveConclusionPolicy = LeaveConclusionPolicy.RETAIN,
    defaults: Thresholds = Thresholds(),
    record_marker: bool = True,
    lease: LeasePort | None = None,
) -> BatchReport:
    """One sequential pass: lifecycle, then decide and upsert per leave.

    Listing failures propagate (nothing sensible can be done without the
    candidates); a failure on one person is logged and skipped.
    """
    today = clock.today()
    report = BatchReport(run_date=today)

    report.lifecycle = resolve_concluded_leaves(repo, clock, policy)
    if lease is not None:
        try:
            lease.renew()
        except LeaseError as exc:
            logger.error("Failed to renew batch lease, continuing: %s", exc)

    for person, leave, setting in _collect_candidates(repo, today):
        report.evaluated += 1
        try:
            decision = plan_leave_reminder(person, leave, setting, clock, defaults)
            outcome = upsert_reminder(repo, person, leave.id, decision, today)
        except Exception as exc:
            report.failed += 1
            logger.error(
                "Failed to process reminder for '%s' (#%d, leave #%d): %s",
                person.name, person.id, leave.id, exc,
            )
            continue
        report.count(outcome)

    if record_marker:
        report.marker_recorded = _record_run_marker(repo, clock)

    return report


def _collect_candidates(
    repo: ReminderRepository, today: date,
) -> list[tuple[Person, Leave, ReminderSetting | None]]:
    """Persons away today, plus persons whose leave starts tomorrow."""
    away = repo.list_persons_with_active_leave(today)
    candidates = [(a.person, a.leave, a.setting) for a in away]
    seen = {a.leave.id for a in away}

    tomorrow = today + timedelta(days=1)
    for leave in repo.list_active_leaves():
        if leave.id in seen or leave.start_date != tomorrow:
            continue
        person = repo.get_person(leave.person_id)
        if person is None:
            logger.warning("Leave #%d points at missing person #%d", leave.id, leave.person_id)
            continue
        candidates.append((person, leave, None))

    logger.info("%d leave(s) to evaluate on %s", len(candidates), today)
    return candidates


def _record_run_marker(repo: ReminderRepository, clock: Clock) -> bool:
    """Store one handled system reminder per day. Returns True if written."""
    today = clock.today()
    try:
        if repo.find_system_marker(today) is not None:
            return False
        repo.upsert_reminder(Reminder(
            person_id=None,
            leave_id=None,
            reminder_type=ReminderType.SYSTEM,
            priority=Priority.LOW,
            reminder_date=today,
            is_handled=True,
            handled_at=clock.now(),
        ))
    except RepositoryError as exc:
        logger.error("Failed to record run marker for %s: %s", today, exc)
        return False
    return True


def format_report(report: BatchReport) -> str:
    """One-paragraph human-readable summary for the operator log."""
    lc = report.lifecycle
    lines = [
        f"Reminder batch for {report.run_date.isoformat()}",
        f"Leaves concluded: {lc.concluded} (persons purged: {lc.persons_purged}, "
        f"reminders handled: {lc.reminders_handled}), stale completed: {lc.stale_completed}",
        f"Evaluated: {report.evaluated}, created: {report.created}, "
        f"updated: {report.updated}, unchanged: {report.unchanged}, "
        f"no action: {report.skipped}",
    ]
    failed = report.failed + lc.failed
    if failed:
        lines.append(f"Failed items: {failed}")
    return "\n".join(lines)


# ---------------------------------------------------------------------------
# Entry point
# ---------------------------------------------------------------------------


def _parse_args(argv: list[str] | None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Run the daily SafeReach reminder batch.")
    parser.add_argument(
        "--date",
        type=date.fromisoformat,
        default=None,
        help="operational day to run for (YYYY-MM-DD); defaults to today",
    )
    parser.add_argument(
        "--policy",
        choices=[p.value for p in LeaveConclusionPolicy],
        default=None,
        help="what to do with persons whose leave ended yesterday",
    )
    return parser.parse_args(argv)


def main(argv: list[str] | None = None) -> int:
    """Run one batch. Returns the process exit code."""
    from safereach.adapters.file_lease import FileLease
    from safereach.config import settings
    from safereach.data.db import SafeReachDB

    args = _parse_args(argv)
    logging.basicConfig(
        level=settings.LOG_LEVEL,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    )

    if args.date is not None:
        clock = FixedClock(args.date, settings.TIMEZONE)
    else:
        clock = Clock(settings.TIMEZONE)
    policy = LeaveConclusionPolicy(args.policy or settings.LEAVE_CONCLUSION_POLICY)
    defaults = Thresholds(
        urgent=settings.DEFAULT_URGENT_THRESHOLD,
        suggest=settings.DEFAULT_SUGGEST_THRESHOLD,
    )

    lease = FileLease(settings.LOCK_PATH, ttl_seconds=settings.LOCK_TTL_SECONDS)
    try:
        if not lease.acquire():
            logger.info("Another reminder batch is running, exiting")
            return EXIT_OK
    except LeaseError as exc:
        logger.error("Cannot acquire batch lease: %s", exc)
        return EXIT_SETUP_FAILURE

    repo = None
    try:
        logger.info(
            "Reminder batch starting: today=%s yesterday=%s timezone=%s policy=%s",
            clock.today(), clock.yesterday(), settings.TIMEZONE, policy.value,
        )
        repo = SafeReachDB(settings.DATABASE_PATH, settings.TIMEZONE)
        report = run_daily_batch(
            repo, clock, policy, defaults,
            record_marker=settings.RECORD_RUN_MARKER, lease=lease,
        )
        logger.info("%s", format_report(report))
        return EXIT_OK
    except (RepositoryError, LeaseError) as exc:
        logger.error("Reminder batch aborted: %s", exc)
        return EXIT_SETUP_FAILURE
    finally:
        try:
            lease.release()
        except LeaseError as exc:
            logger.error("Failed to release batch lease: %s", exc)
        if repo is not None:
            try:
                repo.close()
            except RepositoryError as exc:
                logger.error("Failed to close repository: %s", exc)
