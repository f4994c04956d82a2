from dataclasses import replace
from datetime import date

import pytest

from amenibook.jobs.models import InvalidJobError, RecurrenceFrequency
from amenibook.jobs.recurrence import day_of_week, is_day_allowed, next_candidate_dates

MONDAY = date(2026, 6, 1)


class TestDayOfWeek:

    def test_sunday_is_zero(self):
        assert day_of_week(date(2026, 5, 31)) == 0
        assert day_of_week(MONDAY) == 1
        assert day_of_week(date(2026, 6, 6)) == 6

    def test_no_days_means_any_day(self):
        assert is_day_allowed(MONDAY, None)
        assert is_day_allowed(MONDAY, frozenset())

    def test_int_and_string_days(self):
        assert is_day_allowed(MONDAY, {1, 4})
        assert is_day_allowed(MONDAY, ["1", "4"])
        assert is_day_allowed(MONDAY, "1,4")
        assert not is_day_allowed(MONDAY, {2})

    def test_out_of_range_day_rejected(self):
        with pytest.raises(InvalidJobError):
            is_day_allowed(MONDAY, {7})


class TestNextCandidateDates:

    def test_weekly_lists_every_allowed_day_for_four_weeks(self, recurring_job):
        job = replace(recurring_job, preferred_days_of_week=frozenset({1, 4}))

        dates = next_candidate_dates(job, MONDAY)

        assert dates == [
            date(2026, 6, 4), date(2026, 6, 8), date(2026, 6, 11), date(2026, 6, 15),
            date(2026, 6, 18), date(2026, 6, 22), date(2026, 6, 25), date(2026, 6, 29),
        ]

    def test_weekly_without_days(self, recurring_job):
        job = replace(recurring_job, preferred_days_of_week=frozenset())

        dates = next_candidate_dates(job, MONDAY)

        assert len(dates) == 28
        assert dates[0] == date(2026, 6, 2)

    def test_never_includes_today(self, recurring_job):
        job = replace(recurring_job, preferred_days_of_week=frozenset({1}))

        assert MONDAY not in next_candidate_dates(job, MONDAY)

    def test_daily_is_tomorrow(self, recurring_job):
        job = replace(recurring_job, recurrence_frequency=RecurrenceFrequency.DAILY,
                      preferred_days_of_week=frozenset())

        assert next_candidate_dates(job, MONDAY) == [date(2026, 6, 2)]

    def test_daily_filtered_by_allowed_days(self, recurring_job):
        job = replace(recurring_job, recurrence_frequency=RecurrenceFrequency.DAILY,
                      preferred_days_of_week=frozenset({5}))

        assert next_candidate_dates(job, MONDAY) == []

    def test_monthly_same_day_next_month(self, recurring_job):
        job = replace(recurring_job, recurrence_frequency=RecurrenceFrequency.MONTHLY,
                      preferred_days_of_week=frozenset())

        assert next_candidate_dates(job, date(2026, 1, 31)) == [date(2026, 2, 28)]
        assert next_candidate_dates(job, MONDAY) == [date(2026, 7, 1)]

    def test_always_next_seven_days(self, recurring_job):
        job = replace(recurring_job, recurrence_frequency=RecurrenceFrequency.ALWAYS,
                      preferred_days_of_week=frozenset({0, 6}))

        assert next_candidate_dates(job, MONDAY) == [date(2026, 6, 6), date(2026, 6, 7)]

    def test_missing_frequency(self, recurring_job):
        job = replace(recurring_job, recurrence_frequency=None)

        assert next_candidate_dates(job, MONDAY) == []
