"""
Daily aggregation of interval readings.

Every function here groups explicitly by calendar date, so the order in
which readings arrive never affects the result, and returns a
``pandas.Series`` indexed by ``datetime.date`` in ascending order. Dates
with no qualifying readings are absent rather than zero.
"""
# stdlib
from datetime import date, datetime, time, timedelta
from typing import Optional, Tuple
# thirdpartylib
import numpy as np
import pandas as pd
# projectlib
from building_energy_modeling.data.naming import (
    AVG_TEMPERATURE,
    DAILY_TOTAL_ENERGY,
    AVERAGE_HOURLY_ENERGY,
    DATE_INDEX,
)
from building_energy_modeling.models.regression import FailureKind
from building_energy_modeling.preprocessing.calendar_policy import (
    CalendarPolicy
)
from building_energy_modeling.utils.logging import Logger, resolve_logger
from building_energy_modeling.utils.typing import (
    DailyAggregate,
    IntervalSeries,
)

# Any date works as anchor; only the time of day is kept
_ANCHOR_DATE = date(2000, 1, 2)

def window_bounds(
        working_day_end: time,
        window_size_hours: float,
        lag_hours: float,
    ) -> Tuple[time, time]:
    """
    Compute the time-of-day averaging window for a lag and window size.

    The window ends ``lag_hours`` before ``working_day_end`` and starts
    ``window_size_hours`` before that. Both bounds are times of day. If
    the start would fall on the previous day (``end < start``), it is
    clamped to midnight: the window never crosses midnight.

    Parameters
    ----------
    working_day_end : datetime.time
        End of the working day.
    window_size_hours : float
        Width of the averaging window in hours.
    lag_hours : float
        Hours between the window end and the end of the working day.

    Returns
    -------
    tuple[datetime.time, datetime.time]
        ``(window_start, window_end)``, both inclusive.

    Examples
    --------
    >>> window_bounds(time(18), 8, 0)
    (datetime.time(10, 0), datetime.time(18, 0))
    >>> window_bounds(time(18), 10, 10)
    (datetime.time(0, 0), datetime.time(8, 0))
    """
    anchor = datetime.combine(_ANCHOR_DATE, working_day_end)
    end = anchor - timedelta(hours=lag_hours)
    start = end - timedelta(hours=window_size_hours)
    window_start, window_end = start.time(), end.time()
    if window_end < window_start:
        window_start = time(0, 0, 0)
    return window_start, window_end


def _seconds(t: time) -> float:
    return t.hour * 3600 + t.minute * 60 + t.second + t.microsecond / 1e6


def _unpack(series: IntervalSeries) -> Tuple[pd.DatetimeIndex, np.ndarray]:
    """Split an interval series into its timestamps and float values."""
    index = pd.DatetimeIndex(series.index)
    values = series.to_numpy(dtype=float, na_value=np.nan)
    return index, values


def _seconds_of_day(index: pd.DatetimeIndex) -> np.ndarray:
    return np.asarray(
        index.hour * 3600
        + index.minute * 60
        + index.second
        + index.microsecond / 1e6,
        dtype=float,
    )


def _empty(name: str) -> DailyAggregate:
    out = pd.Series(dtype=float, name=name)
    out.index.name = DATE_INDEX
    return out


def _group_by_date(
        values: np.ndarray,
        index: pd.DatetimeIndex,
        how: str,
        name: str,
    ) -> DailyAggregate:
    """Reduce readings per calendar date with ``how`` ("mean"/"sum")."""
    if len(values) == 0:
        return _empty(name)
    grouped = pd.Series(values, index=index).groupby(
        np.asarray(index.date), sort=True
    )
    out = getattr(grouped, how)()
    out.name = name
    out.index.name = DATE_INDEX
    return out.astype(float)


def calculate_lagged_window_average(
        temperatures: IntervalSeries,
        policy: CalendarPolicy,
        window_size_hours: float,
        lag_hours: float,
    ) -> DailyAggregate:
    """
    Average temperature per date over the lagged time-of-day window.

    Readings are kept when their time of day lies within
    :func:`window_bounds` (inclusive at both ends), their date is not a
    non-working day and their value is not NaN.

    Parameters
    ----------
    temperatures : IntervalSeries
        Interval temperature readings indexed by timestamp.
    policy : CalendarPolicy
        Holidays and working-day end time.
    window_size_hours : float
        Width of the averaging window.
    lag_hours : float
        Lag between the window end and the working-day end.

    Returns
    -------
    DailyAggregate
        Mean temperature per date.
    """
    window_start, window_end = window_bounds(
        policy.working_day_end, window_size_hours, lag_hours
    )
    index, values = _unpack(temperatures)
    tod = _seconds_of_day(index)
    keep = (
        (tod >= _seconds(window_start))
        & (tod <= _seconds(window_end))
        & policy.working_day_mask(index)
        & ~np.isnan(values)
    )
    return _group_by_date(values[keep], index[keep], "mean", AVG_TEMPERATURE)


def _energy_mask(
        index: pd.DatetimeIndex,
        values: np.ndarray,
        policy: CalendarPolicy,
    ) -> np.ndarray:
    # Strictly above threshold; NaN compares False and drops out too
    with np.errstate(invalid="ignore"):
        above = values > policy.energy_threshold
    return above & ~np.isnan(values) & policy.working_day_mask(index)


def calculate_daily_total_energy(
        energy: IntervalSeries,
        policy: CalendarPolicy,
    ) -> DailyAggregate:
    """
    Total energy per date over readings strictly above the threshold.

    Non-working dates and NaN readings are excluded.
    """
    index, values = _unpack(energy)
    keep = _energy_mask(index, values, policy)
    return _group_by_date(values[keep], index[keep], "sum", DAILY_TOTAL_ENERGY)


def calculate_average_hourly_energy(
        energy: IntervalSeries,
        policy: CalendarPolicy,
        *,
        logger: Optional[Logger] = None,
    ) -> DailyAggregate:
    """
    Average hourly energy per date while the plant is operating.

    For each date, the sum of readings strictly above the threshold is
    divided by the hours elapsed between that date's earliest and latest
    qualifying timestamps.

    A date with a single qualifying reading has no elapsed span. Such a
    date is dropped from the result and logged, so that no infinite
    value reaches the regression.

    Parameters
    ----------
    energy : IntervalSeries
        Interval energy readings indexed by timestamp.
    policy : CalendarPolicy
        Holidays and energy threshold.
    logger : Logger, optional
        Receives a warning per dropped date.

    Returns
    -------
    DailyAggregate
        Average hourly energy per date.
    """
    log = resolve_logger(logger)
    index, values = _unpack(energy)
    keep = _energy_mask(index, values, policy)
    if not keep.any():
        return _empty(AVERAGE_HOURLY_ENERGY)
    kept = index[keep]
    frame = pd.DataFrame({
        "value": values[keep],
        "timestamp": kept,
        "day": np.asarray(kept.date),
    })
    daily = frame.groupby("day", sort=True).agg(
        total=("value", "sum"),
        first=("timestamp", "min"),
        last=("timestamp", "max"),
    )
    hours = (daily["last"] - daily["first"]).dt.total_seconds() / 3600.0
    degenerate = hours <= 0
    for day in daily.index[degenerate]:
        log.warning(
            f"[{FailureKind.DEGENERATE_ELAPSED_SPAN.value}] Single qualifying "
            f"energy reading on {day:%Y-%m-%d}, day omitted from average "
            "hourly energy"
        )
    out = (daily["total"][~degenerate] / hours[~degenerate]).astype(float)
    out.name = AVERAGE_HOURLY_ENERGY
    out.index.name = DATE_INDEX
    return out
