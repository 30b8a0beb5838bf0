"""Response scoring — pure business logic.

Turns reminder and contact history into a 0-100 responsiveness score and
an A-F grade.

Score rules, starting from 100:
  - each unhandled reminder: -10 high, -5 medium, -2 low; overdue ones -5 more
  - each handled reminder: +1 if handled on its reminder day (or earlier),
    otherwise -1 per day of delay
  - each proactive contact (one that resolved no reminder): +0.5
The result is clamped to [0, 100].

No I/O: this module only transforms data.
"""

from __future__ import annotations

import math
import random
from dataclasses import dataclass
from datetime import datetime, time
from typing import Iterable, Mapping

from safereach.data.models import Contact, Priority, Reminder, ReminderType

BASE_SCORE = 100.0
PRIORITY_PENALTIES = {
    Priority.HIGH: 10,
    Priority.MEDIUM: 5,
    Priority.LOW: 2,
}
OVERDUE_PENALTY = 5
DELAY_PENALTY_PER_DAY = 1
ON_TIME_BONUS = 1
PROACTIVE_BONUS = 0.5

_GRADES = ((90, "A"), (80, "B"), (70, "C"), (60, "D"))

_SECONDS_PER_DAY = 24 * 60 * 60


def round_half_up(value: float) -> int:
    """Nearest integer, halves rounded up (84.5 -> 85)."""
    return math.floor(value + 0.5)


@dataclass(frozen=True)
class ResponseMetrics:
    total_score: float
    total_persons: int
    total_contacts: int
    total_reminders: int
    unhandled_reminders: int
    handled_on_time: int
    handled_late: int
    proactive_contacts: int
    avg_response_days: float
    response_grade: str


@dataclass(frozen=True)
class DepartmentRank:
    name: str
    avg_response: float
    percentage: int


def response_grade(score: float) -> str:
    for floor, grade in _GRADES:
        if score >= floor:
            return grade
    return "F"


def handling_delay_days(reminder: Reminder) -> int | None:
    """Whole days between the reminder day and when it was handled.

    Floor of the elapsed time, not a calendar difference: handling early
    the next morning still counts as 0. The reminder day starts at midnight
    in the handled_at timezone. None if the reminder was never handled.
    """
    if reminder.handled_at is None:
        return None
    start = datetime.combine(reminder.reminder_date, time.min, tzinfo=reminder.handled_at.tzinfo)
    elapsed = (reminder.handled_at - start).total_seconds()
    return math.floor(elapsed / _SECONDS_PER_DAY)


def calculate_response_metrics(
    reminders: Iterable[Reminder],
    contacts: Iterable[Contact],
    total_persons: int,
) -> ResponseMetrics:
    """Score a scope (a department, or everything) from its history."""
    reminders = list(reminders)
    contacts = list(contacts)

    score = BASE_SCORE
    handled_on_time = 0
    handled_late = 0
    unhandled = 0
    total_delay_days = 0

    for reminder in reminders:
        if not reminder.is_handled:
            unhandled += 1
            try:
                score -= PRIORITY_PENALTIES[Priority(reminder.priority)]
            except (KeyError, ValueError) as exc:
                raise ValueError(f"Unknown reminder priority: {reminder.priority!r}") from exc
            if reminder.reminder_type == ReminderType.OVERDUE:
                score -= OVERDUE_PENALTY
            continue

        delay = handling_delay_days(reminder)
        if delay is None:
            continue
        if delay <= 0:
            handled_on_time += 1
            score += ON_TIME_BONUS
        else:
            handled_late += 1
            score -= delay * DELAY_PENALTY_PER_DAY
            total_delay_days += delay

    proactive = sum(1 for c in contacts if not c.has_related_reminder)
    score += proactive * PROACTIVE_BONUS

    score = max(0.0, min(BASE_SCORE, score))
    avg_response_days = total_delay_days / handled_late if handled_late else 0.0

    return ResponseMetrics(
        total_score=round(score, 2),
        total_persons=total_persons,
        total_contacts=len(contacts),
        total_reminders=len(reminders),
        unhandled_reminders=unhandled,
        handled_on_time=handled_on_time,
        handled_late=handled_late,
        proactive_contacts=proactive,
        avg_response_days=round(avg_response_days, 2),
        response_grade=response_grade(score),
    )


# ---------------------------------------------------------------------------
# Status distribution
# ---------------------------------------------------------------------------

# (min score, max unhandled ratio, normal band, suggest band) — bands are (low, width)
_ILLUSTRATIVE_BANDS = (
    (85, 0.1, (80, 15), (10, 10)),
    (70, 0.3, (60, 20), (20, 15)),
    (50, 1.0, (40, 20), (30, 20)),
    (0, 1.0, (20, 20), (30, 20)),
)


def illustrative_status_distribution(
    metrics: ResponseMetrics,
    rng: random.Random | None = None,
) -> dict[str, int]:
    """Illustrative normal/suggest/urgent percentages for dashboards.

    Presentation smoothing only: picks a band from the score and the
    unhandled ratio and jitters inside it. Not a count of anyone; use
    status_distribution() when real numbers are needed.
    """
    rng = rng or random.Random()
    ratio = (
        metrics.unhandled_reminders / metrics.total_reminders
        if metrics.total_reminders else 0.0
    )

    for min_score, max_ratio, (n_low, n_width), (s_low, s_width) in _ILLUSTRATIVE_BANDS:
        if metrics.total_score >= min_score and ratio <= max_ratio:
            break

    normal = n_low + rng.random() * n_width
    suggest = s_low + rng.random() * s_width
    urgent = max(0.0, 100 - normal - suggest)

    total = normal + suggest + urgent
    normal_pct = round_half_up(normal / total * 100)
    suggest_pct = min(round_half_up(suggest / total * 100), 100 - normal_pct)
    return {
        "normal": normal_pct,
        "suggest": suggest_pct,
        "urgent": 100 - normal_pct - suggest_pct,
    }


def status_distribution(
    counts: Mapping[str, int],
    active_persons: int,
) -> dict[str, dict[str, int]]:
    """Exact bucket counts with their share of the active persons."""
    result = {}
    for bucket in ("normal", "suggest", "urgent"):
        n = counts.get(bucket, 0)
        result[bucket] = {
            "count": n,
            "percentage": round_half_up(n / active_persons * 100) if active_persons else 0,
        }
    return result


# ---------------------------------------------------------------------------
# Ranking
# ---------------------------------------------------------------------------


def rank_departments(department_metrics: Mapping[str, ResponseMetrics]) -> list[DepartmentRank]:
    """Departments ordered by total score, best first."""
    ordered = sorted(
        department_metrics.items(),
        key=lambda item: item[1].total_score,
        reverse=True,
    )
    return [
        DepartmentRank(
            name=name,
            avg_response=metrics.avg_response_days,
            percentage=round_half_up(metrics.total_score),
        )
        for name, metrics in ordered
    ]
