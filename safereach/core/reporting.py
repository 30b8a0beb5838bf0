"""Reporting — feeds the scoring and health calculators from storage.

Called on demand by statistics consumers, never by the daily batch.
"""

from __future__ import annotations

import logging
from collections import Counter
from dataclasses import dataclass
from datetime import date
from typing import TYPE_CHECKING

from safereach.core.contact_health import (
    average_contact_interval,
    department_health_score,
    overall_health_score,
    person_health_penalty,
    person_intervals,
)
from safereach.core.reminder_decision import (
    Thresholds,
    classify_status,
    compute_baseline_date,
    resolve_thresholds,
    status_from_priority,
)
from safereach.core.response_scoring import (
    DepartmentRank,
    ResponseMetrics,
    calculate_response_metrics,
    rank_departments,
    status_distribution,
)

if TYPE_CHECKING:
    from safereach.core.clock import Clock
    from safereach.data.models import Department
    from safereach.ports.repository_port import StatisticsSource

logger = logging.getLogger(__name__)


@dataclass
class DepartmentReport:
    department: Department
    metrics: ResponseMetrics
    health_score: int
    avg_contact_interval: float
    status: dict[str, dict[str, int]]
    reminder_status: dict[str, dict[str, int]]


def department_metrics(
    source: StatisticsSource,
    department_id: int | None = None,
    since: date | None = None,
    until: date | None = None,
) -> ResponseMetrics:
    """Response metrics for one department, or everyone when id is None."""
    return calculate_response_metrics(
        source.list_reminders(department_id, since, until),
        source.list_contacts(department_id, since, until),
        source.count_persons(department_id),
    )


def department_status(
    source: StatisticsSource,
    clock: Clock,
    department_id: int | None = None,
    defaults: Thresholds = Thresholds(),
) -> dict[str, dict[str, int]]:
    """Exact normal/suggest/urgent split of the persons away today."""
    today = clock.today()
    away = source.list_persons_with_active_leave(today, department_id)
    counts: Counter[str] = Counter()
    for entry in away:
        baseline = compute_baseline_date(entry.person, entry.leave, clock)
        days = clock.days_between(baseline, today)
        counts[classify_status(days, resolve_thresholds(entry.setting, defaults))] += 1
    return status_distribution(counts, len(away))


def department_reminder_status(
    source: StatisticsSource,
    clock: Clock,
    department_id: int | None = None,
) -> dict[str, dict[str, int]]:
    """Open reminders that are due, bucketed by priority, over the persons away today.

    Counts reminders rather than persons, so a person with several open
    reminders is counted once per reminder.
    """
    today = clock.today()
    counts: Counter[str] = Counter(
        status_from_priority(r.priority)
        for r in source.list_reminders(department_id, until=today)
        if not r.is_handled
    )
    active = len(source.list_persons_with_active_leave(today, department_id))
    return status_distribution(counts, active)


def department_health(
    source: StatisticsSource,
    clock: Clock,
    department_id: int | None = None,
) -> tuple[int, float]:
    """(health score, average contact interval) for persons away today."""
    today = clock.today()
    penalties: list[int] = []
    all_intervals: list[list[int]] = []

    for entry in source.list_persons_with_active_leave(today, department_id):
        leave, person = entry.leave, entry.person
        contacts = source.list_contacts_for_person(person.id, since=leave.start_date)
        intervals = person_intervals(
            leave.start_date,
            leave.end_date,
            (clock.local_date(c.contact_date) for c in contacts),
            today,
            clock.local_date(person.created_at),
        )
        all_intervals.append(intervals)
        penalties.append(person_health_penalty(intervals))

    return department_health_score(penalties), average_contact_interval(all_intervals)


def build_department_reports(
    source: StatisticsSource,
    clock: Clock,
    since: date | None = None,
    until: date | None = None,
    defaults: Thresholds = Thresholds(),
) -> list[DepartmentReport]:
    """One report per department, in department-name order."""
    reports = []
    for department in source.list_departments():
        metrics = department_metrics(source, department.id, since, until)
        health, interval = department_health(source, clock, department.id)
        reports.append(DepartmentReport(
            department=department,
            metrics=metrics,
            health_score=health,
            avg_contact_interval=interval,
            status=department_status(source, clock, department.id, defaults),
            reminder_status=department_reminder_status(source, clock, department.id),
        ))
        logger.debug(
            "Department '%s': score %.2f (%s), health %d",
            department.name, metrics.total_score, metrics.response_grade, health,
        )
    return reports


def department_ranking(reports: list[DepartmentReport]) -> list[DepartmentRank]:
    return rank_departments({r.department.name: r.metrics for r in reports})


def overall_health(reports: list[DepartmentReport]) -> int:
    return overall_health_score([r.health_score for r in reports])
