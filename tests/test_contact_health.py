"""Tests for safereach.core.contact_health — contact gaps and health scores."""

from datetime import date

import pytest

from safereach.core.contact_health import (
    average_contact_interval,
    contact_intervals,
    department_health_score,
    interval_penalty,
    overall_health_score,
    person_health_penalty,
    person_intervals,
)


class TestContactIntervals:
    def test_no_contacts(self):
        assert contact_intervals(date(2024, 3, 1), [], date(2024, 3, 15), date(2024, 3, 31)) == [14]

    def test_gaps_with_running_leave(self):
        intervals = contact_intervals(
            date(2024, 3, 1),
            [date(2024, 3, 4), date(2024, 3, 12)],
            date(2024, 3, 15),
            date(2024, 3, 31),
        )
        assert intervals == [3, 8, 3]

    def test_no_trailing_gap_after_leave_end(self):
        intervals = contact_intervals(
            date(2024, 3, 1),
            [date(2024, 3, 4)],
            date(2024, 3, 15),
            date(2024, 3, 10),
        )
        assert intervals == [3]


class TestIntervalPenalty:
    @pytest.mark.parametrize("interval,penalty", [
        (0, 0), (7, 0), (8, 1), (10, 3), (11, 6), (12, 9), (20, 9),
    ])
    def test_penalty_bands(self, interval, penalty):
        assert interval_penalty(interval) == penalty

    def test_custom_thresholds(self):
        assert interval_penalty(6, suggest=3, urgent=5) == 5


class TestPersonIntervals:
    def test_baseline_is_leave_start(self):
        intervals = person_intervals(
            date(2024, 3, 1), date(2024, 3, 31), [], date(2024, 3, 15),
            person_created=date(2024, 2, 1),
        )
        assert intervals == [14]

    def test_baseline_is_creation_when_later(self):
        intervals = person_intervals(
            date(2024, 3, 1), date(2024, 3, 31), [], date(2024, 3, 15),
            person_created=date(2024, 3, 10),
        )
        assert intervals == [5]

    def test_contacts_sorted(self):
        intervals = person_intervals(
            date(2024, 3, 1), date(2024, 3, 31),
            [date(2024, 3, 12), date(2024, 3, 4)],
            date(2024, 3, 15),
        )
        assert intervals == [3, 8, 3]


class TestScores:
    def test_person_penalty_sums_gaps(self):
        assert person_health_penalty([3, 8, 12]) == 10

    def test_department_score(self):
        assert department_health_score([9, 0, 1]) == 90

    def test_department_score_floors_at_zero(self):
        assert department_health_score([9] * 20) == 0

    def test_department_score_without_persons(self):
        assert department_health_score([]) == 100

    def test_overall_equal_weight(self):
        assert overall_health_score([80, 100]) == 90

    def test_overall_half_rounds_up(self):
        assert overall_health_score([85, 100]) == 93

    def test_overall_without_departments(self):
        assert overall_health_score([]) == 100


class TestAverageInterval:
    def test_mean_over_everyone(self):
        assert average_contact_interval([[2, 3], [14]]) == 6.3

    def test_no_intervals(self):
        assert average_contact_interval([]) == 0.0
