"""Tests for safereach.core.clock — calendar-day arithmetic in one timezone."""

from datetime import date, datetime, timedelta, timezone

from safereach.core.clock import Clock, FixedClock

UTC = timezone.utc


class TestClockToday:
    def test_today_uses_operational_timezone(self):
        # 20:00 UTC is already the next day in Shanghai (UTC+8)
        clock = Clock("Asia/Shanghai", now=lambda: datetime(2024, 3, 14, 20, 0, tzinfo=UTC))
        assert clock.today() == date(2024, 3, 15)
        assert clock.yesterday() == date(2024, 3, 14)

    def test_naive_now_is_taken_as_local(self):
        clock = Clock("Asia/Shanghai", now=lambda: datetime(2024, 3, 15, 1, 0))
        assert clock.today() == date(2024, 3, 15)
        assert clock.now().tzinfo is not None

    def test_yesterday_across_month_boundary(self):
        clock = FixedClock(date(2024, 3, 1))
        assert clock.yesterday() == date(2024, 2, 29)


class TestDaysBetween:
    def test_23_hours_across_midnight_is_one_day(self):
        clock = Clock("Asia/Shanghai")
        earlier = datetime(2024, 3, 14, 15, 30, tzinfo=UTC)   # 23:30 local, Mar 14
        later = earlier + timedelta(hours=23)                  # 22:30 local, Mar 15
        assert clock.days_between(earlier, later) == 1

    def test_one_hour_across_midnight_is_one_day(self):
        clock = Clock("Asia/Shanghai")
        earlier = datetime(2024, 3, 14, 15, 30, tzinfo=UTC)   # 23:30 local
        later = datetime(2024, 3, 14, 16, 30, tzinfo=UTC)     # 00:30 local next day
        assert clock.days_between(earlier, later) == 1

    def test_23_hours_same_local_day_is_zero(self):
        clock = Clock("Asia/Shanghai")
        earlier = datetime(2024, 3, 14, 16, 30, tzinfo=UTC)   # 00:30 local, Mar 15
        later = earlier + timedelta(hours=23)                  # 23:30 local, Mar 15
        assert clock.days_between(earlier, later) == 0

    def test_dates_and_datetimes_mix(self):
        clock = Clock("Asia/Shanghai")
        assert clock.days_between(date(2024, 3, 5), datetime(2024, 3, 15, 9, 0)) == 10

    def test_reversed_is_negative(self):
        clock = Clock("Asia/Shanghai")
        assert clock.days_between(date(2024, 3, 15), date(2024, 3, 10)) == -5


class TestLocalDate:
    def test_aware_timestamp_converted(self):
        clock = Clock("Asia/Shanghai")
        assert clock.local_date(datetime(2024, 3, 14, 18, 0, tzinfo=UTC)) == date(2024, 3, 15)

    def test_naive_timestamp_kept(self):
        clock = Clock("Asia/Shanghai")
        assert clock.local_date(datetime(2024, 3, 14, 23, 59)) == date(2024, 3, 14)

    def test_date_passes_through(self):
        clock = Clock("Asia/Shanghai")
        assert clock.local_date(date(2024, 3, 14)) == date(2024, 3, 14)


class TestFixedClock:
    def test_pinned_to_midnight(self):
        clock = FixedClock(date(2024, 3, 15), "Europe/Berlin")
        now = clock.now()
        assert now.date() == date(2024, 3, 15)
        assert (now.hour, now.minute) == (0, 0)
        assert str(clock.tz) == "Europe/Berlin"
