# stdlib
from calendar import Day
from dataclasses import dataclass, field
from datetime import date, datetime, time
from typing import Iterable, Optional
# thirdpartylib
import numpy as np
import pandas as pd
# projectlib
from building_energy_modeling.config.constants import (
    DEFAULT_ENERGY_THRESHOLD,
    DEFAULT_WORKDAY_END,
)
from building_energy_modeling.utils.typing import DateLike, IntervalSeries

# Monday to Friday
STANDARD_WEEK = frozenset(
    (Day.MONDAY, Day.TUESDAY, Day.WEDNESDAY, Day.THURSDAY, Day.FRIDAY)
)
# NAICS sectors trading seven days a week
RETAIL_NAICS_PREFIXES = ("44", "45")


def _to_date(value: DateLike) -> date:
    """Coerce a date-like value to ``datetime.date``."""
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    return pd.Timestamp(value).date()


@dataclass(frozen=True)
class CalendarPolicy:
    """
    Calendar rules applied when aggregating interval readings.

    Attributes
    ----------
    non_working_days : frozenset[date]
        Holidays. Readings on these dates are excluded from every daily
        aggregate.
    working_weekdays : frozenset[Day]
        Weekdays on which the building operates. Reported alongside the
        model; aggregation does not filter on it.
    working_day_end : datetime.time
        Time of day from which lag and averaging window are measured
        backward.
    energy_threshold : float
        Energy readings at or below this level are treated as plant off
        and excluded from energy aggregation.
    """
    non_working_days: frozenset[date] = field(default_factory=frozenset)
    working_weekdays: frozenset[Day] = STANDARD_WEEK
    working_day_end: time = DEFAULT_WORKDAY_END
    energy_threshold: float = DEFAULT_ENERGY_THRESHOLD

    def __post_init__(self) -> None:
        # Frozen dataclass, normalise through object.__setattr__
        object.__setattr__(
            self,
            "non_working_days",
            frozenset(_to_date(d) for d in self.non_working_days),
        )
        object.__setattr__(
            self, "working_weekdays", frozenset(self.working_weekdays)
        )
        if not np.isfinite(self.energy_threshold):
            raise ValueError(
                f"Energy threshold must be finite, got "
                f"{self.energy_threshold!r}."
            )

    def is_non_working(self, day: DateLike) -> bool:
        return _to_date(day) in self.non_working_days

    def working_day_mask(self, index: pd.DatetimeIndex) -> np.ndarray:
        """Boolean mask, True where the timestamp is not a holiday."""
        if not self.non_working_days:
            return np.ones(len(index), dtype=bool)
        holidays = pd.DatetimeIndex(
            [pd.Timestamp(d) for d in self.non_working_days]
        )
        return ~index.normalize().isin(holidays)

    def describe_week(self) -> str:
        """Working weekdays as names, Monday first."""
        return ", ".join(
            d.name.title() for d in sorted(self.working_weekdays)
        )


@dataclass(frozen=True)
class TrainingSeason:
    """
    Range of the year, as MMDD integers, used for training.

    A season whose start comes after its end wraps the year end, e.g.
    ``TrainingSeason(1101, 331)`` covers November to March. Both bounds
    are inclusive.
    """
    start_mmdd: int = 101
    end_mmdd: int = 1231

    def __post_init__(self) -> None:
        for value in (self.start_mmdd, self.end_mmdd):
            validate_mmdd(value)

    @property
    def is_full_year(self) -> bool:
        return self.start_mmdd == 101 and self.end_mmdd == 1231

    def contains(self, day: DateLike) -> bool:
        d = _to_date(day)
        mmdd = d.month * 100 + d.day
        if self.start_mmdd <= self.end_mmdd:
            return self.start_mmdd <= mmdd <= self.end_mmdd
        return mmdd >= self.start_mmdd or mmdd <= self.end_mmdd

    def filter(self, series: IntervalSeries) -> IntervalSeries:
        """Keep only readings whose date falls inside the season."""
        if self.is_full_year or series.empty:
            return series
        index = pd.DatetimeIndex(series.index)
        mmdd = np.asarray(index.month * 100 + index.day)
        if self.start_mmdd <= self.end_mmdd:
            keep = (mmdd >= self.start_mmdd) & (mmdd <= self.end_mmdd)
        else:
            keep = (mmdd >= self.start_mmdd) | (mmdd <= self.end_mmdd)
        return series[keep]


def validate_mmdd(value: int) -> int:
    """Raise ``ValueError`` unless ``value`` looks like an MMDD date."""
    if value < 101 or value // 100 > 12 or value % 100 > 31 \
            or value % 100 == 0:
        raise ValueError(f"Invalid MMDD value {value!r}.")
    return value


def parse_mmdd(text: str) -> int:
    """
    Parse an MMDD string such as ``"1015"`` into an integer.

    Raises
    ------
    ValueError
        If the text is not numeric or not a plausible month/day.
    """
    try:
        value = int(text.strip())
    except ValueError as e:
        raise ValueError(f"Invalid MMDD value {text!r}.") from e
    return validate_mmdd(value)


def parse_working_days(text: str) -> frozenset[Day]:
    """
    Parse a working week written as digits, 1 = Sunday to 7 = Saturday.

    ``"23456"`` is Monday to Friday. Duplicate digits are ignored.

    Raises
    ------
    ValueError
        If any character is not a digit from 1 to 7, or nothing is
        given.
    """
    days = set()
    for ch in text.strip():
        if ch < "1" or ch > "7":
            raise ValueError(
                f"Weekday {ch!r} in {text!r} not in range 1..7."
            )
        # SQL numbering starts the week on Sunday
        days.add(Day((int(ch) - 2) % 7))
    if not days:
        raise ValueError("Working week is empty.")
    return frozenset(days)


def working_weekdays_for_naics(naics_code: Optional[str]) -> frozenset[Day]:
    """
    Default working week for a building type.

    Every building works Monday to Friday; retail (NAICS 44 and 45) also
    trades at weekends.
    """
    code = (naics_code or "").strip()
    if len(code) > 2 and code[:2] in RETAIL_NAICS_PREFIXES:
        return STANDARD_WEEK | {Day.SATURDAY, Day.SUNDAY}
    return STANDARD_WEEK


def parse_time_of_day(text: str) -> time:
    """
    Parse a time of day such as ``"18:15"``, ``"1815"`` or
    ``"18:15:00"``.

    Raises
    ------
    ValueError
        If none of the accepted formats match.
    """
    text = text.strip()
    # Insert the colon if the user forgot it
    if len(text) == 4 and text.isdigit():
        text = f"{text[:2]}:{text[2:]}"
    for fmt in ("%H:%M", "%H:%M:%S"):
        try:
            return datetime.strptime(text, fmt).time()
        except ValueError:
            continue
    raise ValueError(f"Invalid time of day {text!r}.")


def build_policy(
        non_working_days: Iterable[DateLike] = (),
        *,
        working_weekdays: Optional[Iterable[Day]] = None,
        working_day_end: time = DEFAULT_WORKDAY_END,
        energy_threshold: float = DEFAULT_ENERGY_THRESHOLD,
    ) -> CalendarPolicy:
    """Convenience constructor accepting any iterable of date-likes."""
    return CalendarPolicy(
        non_working_days=frozenset(_to_date(d) for d in non_working_days),
        working_weekdays=(
            STANDARD_WEEK if working_weekdays is None
            else frozenset(working_weekdays)
        ),
        working_day_end=working_day_end,
        energy_threshold=float(energy_threshold),
    )
