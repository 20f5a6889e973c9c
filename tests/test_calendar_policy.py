"""Tests for calendar policy, working week and training season helpers."""

from calendar import Day
from datetime import date, time

import numpy as np
import pandas as pd
import pytest

from building_energy_modeling.preprocessing.calendar_policy import (
    STANDARD_WEEK,
    CalendarPolicy,
    TrainingSeason,
    build_policy,
    parse_mmdd,
    parse_time_of_day,
    parse_working_days,
    working_weekdays_for_naics,
)


class TestCalendarPolicy:
    def test_defaults(self):
        policy = CalendarPolicy()
        assert policy.working_day_end == time(18, 0)
        assert policy.energy_threshold == 1.0
        assert policy.non_working_days == frozenset()
        assert policy.working_weekdays == STANDARD_WEEK

    def test_holidays_are_normalised_to_dates(self):
        policy = build_policy(["2014-07-04", pd.Timestamp("2014-12-25 13:00")])
        assert policy.non_working_days == {date(2014, 7, 4), date(2014, 12, 25)}
        assert policy.is_non_working(date(2014, 7, 4))
        assert not policy.is_non_working("2014-07-05")

    def test_working_day_mask(self):
        policy = build_policy([date(2014, 7, 4)])
        index = pd.DatetimeIndex(
            ["2014-07-03 23:45", "2014-07-04 00:00", "2014-07-04 23:45",
             "2014-07-05 00:00"]
        )
        np.testing.assert_array_equal(
            policy.working_day_mask(index), [True, False, False, True]
        )

    def test_non_finite_threshold_rejected(self):
        with pytest.raises(ValueError):
            CalendarPolicy(energy_threshold=float("nan"))

    def test_describe_week(self):
        policy = build_policy(working_weekdays=[Day.FRIDAY, Day.MONDAY])
        assert policy.describe_week() == "Monday, Friday"


class TestWorkingWeek:
    def test_sunday_is_one(self):
        assert parse_working_days("1") == {Day.SUNDAY}
        assert parse_working_days("7") == {Day.SATURDAY}

    def test_standard_week(self):
        assert parse_working_days("23456") == STANDARD_WEEK

    def test_duplicates_ignored(self):
        assert parse_working_days("2223") == {Day.MONDAY, Day.TUESDAY}

    @pytest.mark.parametrize("text", ["", "0", "8", "2a", "2,3"])
    def test_invalid(self, text):
        with pytest.raises(ValueError):
            parse_working_days(text)

    def test_retail_trades_at_weekends(self):
        assert working_weekdays_for_naics("445110") == (
            STANDARD_WEEK | {Day.SATURDAY, Day.SUNDAY}
        )
        assert working_weekdays_for_naics("611310") == STANDARD_WEEK
        assert working_weekdays_for_naics(None) == STANDARD_WEEK


class TestTrainingSeason:
    def test_parse_mmdd(self):
        assert parse_mmdd("0601") == 601
        assert parse_mmdd(" 1231 ") == 1231

    @pytest.mark.parametrize("text", ["abc", "1301", "0100", "0", "1232"])
    def test_parse_mmdd_invalid(self, text):
        with pytest.raises(ValueError):
            parse_mmdd(text)

    def test_summer_bounds_inclusive(self):
        season = TrainingSeason(601, 930)
        assert season.contains(date(2014, 6, 1))
        assert season.contains(date(2014, 9, 30))
        assert not season.contains(date(2014, 5, 31))
        assert not season.contains(date(2014, 10, 1))

    def test_winter_wraps_year_end(self):
        season = TrainingSeason(1101, 331)
        assert season.contains(date(2014, 11, 1))
        assert season.contains(date(2015, 1, 15))
        assert season.contains(date(2015, 3, 31))
        assert not season.contains(date(2015, 6, 1))

    def test_filter(self):
        index = pd.date_range("2014-05-31", periods=4, freq="D")
        series = pd.Series([1.0, 2.0, 3.0, 4.0], index=index)
        kept = TrainingSeason(601, 602).filter(series)
        assert list(kept) == [2.0, 3.0]

    def test_full_year_is_default(self):
        assert TrainingSeason().is_full_year


class TestTimeOfDay:
    @pytest.mark.parametrize(
        "text, expected",
        [("18:15", time(18, 15)), ("1815", time(18, 15)),
         ("07:30:15", time(7, 30, 15))],
    )
    def test_formats(self, text, expected):
        assert parse_time_of_day(text) == expected

    def test_invalid(self):
        with pytest.raises(ValueError):
            parse_time_of_day("25:00")
