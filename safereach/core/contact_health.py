"""Contact health — how regularly away persons are being contacted.

Looks at the gaps between contacts during a leave: from the baseline to
the first contact, between consecutive contacts, and from the last contact
to today while the leave is still running. Gaps beyond the suggest
threshold cost points, gaps beyond the urgent threshold cost more, and
each gap's penalty is capped.

No I/O: this module only transforms data.
"""

from __future__ import annotations

import math
from datetime import date
from typing import Iterable, Sequence

SUGGEST_GAP_DAYS = 7
URGENT_GAP_DAYS = 10
URGENT_PENALTY_PER_DAY = 3
URGENT_PENALTY_MAX_DAYS = 2


def contact_intervals(
    baseline: date,
    contact_days: Sequence[date],
    today: date,
    leave_end: date,
) -> list[int]:
    """Gaps in days, in chronological order. ``contact_days`` must be sorted."""
    if not contact_days:
        return [(today - baseline).days]

    intervals = [(contact_days[0] - baseline).days]
    for prev, curr in zip(contact_days, contact_days[1:]):
        intervals.append((curr - prev).days)
    if today <= leave_end:
        intervals.append((today - contact_days[-1]).days)
    return intervals


def interval_penalty(
    interval: int,
    suggest: int = SUGGEST_GAP_DAYS,
    urgent: int = URGENT_GAP_DAYS,
) -> int:
    """Points lost for one gap.

    Nothing up to ``suggest`` days; one point per day up to ``urgent``;
    beyond that the full suggest-band penalty plus three points per day,
    counting at most two such days.
    """
    if interval > urgent:
        over = min(interval - urgent, URGENT_PENALTY_MAX_DAYS)
        return (urgent - suggest) + over * URGENT_PENALTY_PER_DAY
    if interval > suggest:
        return interval - suggest
    return 0


def person_intervals(
    leave_start: date,
    leave_end: date,
    contact_days: Iterable[date],
    today: date,
    person_created: date | None = None,
) -> list[int]:
    """Contact gaps for one person on their current leave.

    Counting starts at the leave start, or at the person's creation when
    they were added after the leave began.
    """
    baseline = leave_start
    if person_created is not None and person_created > leave_start:
        baseline = person_created
    return contact_intervals(baseline, sorted(contact_days), today, leave_end)


def person_health_penalty(intervals: Iterable[int]) -> int:
    return sum(interval_penalty(i) for i in intervals)


def department_health_score(penalties: Iterable[int]) -> int:
    return max(0, round(100 - sum(penalties)))


def overall_health_score(department_scores: Sequence[int]) -> int:
    """Equal-weight average of department scores; 100 with no departments."""
    if not department_scores:
        return 100
    return math.floor(sum(department_scores) / len(department_scores) + 0.5)


def average_contact_interval(all_intervals: Iterable[Sequence[int]]) -> float:
    """Mean gap over every person's intervals, to one decimal."""
    flat = [i for intervals in all_intervals for i in intervals]
    if not flat:
        return 0.0
    return round(sum(flat) / len(flat), 1)
