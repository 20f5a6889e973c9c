"""
Readers for the LBNL building data files.

All files share the same layout: ``#`` comment lines, a header block of
field names followed by one line of values, and (for interval files) a
time series section introduced by a ``TIME.LOCAL`` column header.
Field names are case-insensitive and are upper-cased on read.
"""
# stdlib
import io
from calendar import Day
from dataclasses import dataclass, field
from datetime import date, datetime, time
from pathlib import Path
from typing import Callable, Dict, List, Optional, Sequence
# thirdpartylib
import numpy as np
import pandas as pd
import polars as pl
# projectlib
from building_energy_modeling.config.constants import (
    DEFAULT_WORKDAY_END,
    SUPP_DEFAULT_ENERGY_THRESHOLD,
    SUPP_DEFAULT_MAX_WINDOW,
    SUPP_DEFAULT_MIN_WINDOW,
)
from building_energy_modeling.data.schemas import (
    Column,
    HeaderField,
    SuppField,
    ENERGY_FIELDS,
    HOLIDAY_SECTION,
    MAIN_REQUIRED,
    SUPP_REQUIRED,
    TEMPERATURE_FIELDS,
)
from building_energy_modeling.preprocessing.calendar_policy import (
    TrainingSeason,
    parse_mmdd,
    parse_time_of_day,
    parse_working_days,
)
from building_energy_modeling.utils.logging import Logger, resolve_logger
from building_energy_modeling.utils.paths import validate_address
from building_energy_modeling.utils.typing import Address, IntervalSeries

COMMENT_MARKER = "#"
SEPARATOR = ","
# Two-digit years first: "%Y" would read "14" as year 14
TIMESTAMP_FORMATS = (
    "%m/%d/%y %H:%M:%S",
    "%m/%d/%y %H:%M",
    "%m/%d/%Y %H:%M:%S",
    "%m/%d/%Y %H:%M",
    "%Y-%m-%d %H:%M:%S",
    "%Y-%m-%d %H:%M",
)
DATE_FORMATS = ("%Y-%m-%d", "%m/%d/%Y", "%m/%d/%y")


class LBNLFormatError(ValueError):
    """Raised when an LBNL file does not follow the expected layout."""


@dataclass
class TrainingData:
    """Parsed training (main) file."""
    path: Path
    header: Dict[str, str]
    energy_field: str
    temperature_field: str
    energy: IntervalSeries
    temperature: IntervalSeries

    @property
    def building_id(self) -> str:
        return self.header[HeaderField.BUILDING_ID.value]

    @property
    def naics_code(self) -> str:
        return self.header.get(HeaderField.BUILDING_TYPE_NAICS.value, "")


@dataclass
class ForecastInput:
    """Parsed forecast (prediction) file: header and temperatures."""
    path: Path
    header: Dict[str, str]
    temperature_field: str
    temperature: IntervalSeries

    @property
    def building_id(self) -> str:
        return self.header[HeaderField.BUILDING_ID.value]


@dataclass
class SupplementaryConfig:
    """Model parameters read from a supplementary file."""
    header: Dict[str, str]
    lag_hours: float
    working_weekdays: frozenset[Day]
    energy_to_model: str
    season: TrainingSeason
    working_day_end: time = DEFAULT_WORKDAY_END
    min_window: int = SUPP_DEFAULT_MIN_WINDOW
    max_window: int = SUPP_DEFAULT_MAX_WINDOW
    energy_threshold: float = SUPP_DEFAULT_ENERGY_THRESHOLD
    non_working_days: List[date] = field(default_factory=list)


def is_comment(line: str) -> bool:
    """Empty lines and lines starting with ``#`` are comments."""
    return len(line.strip()) == 0 or line.startswith(COMMENT_MARKER)


def pairs_to_dict(
        names: Sequence[str],
        values: Sequence[str],
    ) -> Dict[str, str]:
    """
    Zip header field names with their values.

    Names are trimmed and upper-cased; values are trimmed. Columns with
    an empty name are ignored.

    Raises
    ------
    LBNLFormatError
        If the number of names and values differ.
    """
    if len(names) != len(values):
        raise LBNLFormatError(
            f"Nr fields specified does not match data: Nr Fields:"
            f"[{len(names)}] Nr Data Values:[{len(values)}]"
        )
    return {
        name.strip().upper(): value.strip()
        for name, value in zip(names, values)
        if name.strip()
    }


def read_lines(path: Address) -> List[str]:
    """Read a text file into lines without trailing newlines."""
    source = validate_address(path, extension=None)
    with open(source, "r", encoding="utf-8-sig") as file:
        return file.read().splitlines()


def parse_header(
        lines: Sequence[str],
        *,
        source: str = "<lines>",
        required: Sequence[str] = (),
        logger: Optional[Logger] = None,
    ) -> Dict[str, str]:
    """
    Parse the header block: first non-comment line holds field names,
    the following line their values.

    Raises
    ------
    LBNLFormatError
        If the block is missing or malformed, or a required field is
        absent.
    """
    log = resolve_logger(logger)
    for i, line in enumerate(lines):
        if is_comment(line):
            continue
        if i + 1 >= len(lines):
            raise LBNLFormatError(f"Bad header formatting in [{source}]")
        header = pairs_to_dict(
            line.split(SEPARATOR), lines[i + 1].split(SEPARATOR)
        )
        missing = [f for f in required if f not in header]
        if missing:
            raise LBNLFormatError(
                f"[{source}] - Mandatory field(s) missing {missing}"
            )
        log.info(
            f"Header successfully parsed for [{source}]: "
            + ", ".join(f"[{k}]=[{v}]" for k, v in header.items())
        )
        return header
    raise LBNLFormatError(f"No header found in [{source}]")


def find_section(lines: Sequence[str], marker: str) -> Optional[int]:
    """Index of the first line whose leading field is ``marker``."""
    for i, line in enumerate(lines):
        first = line.split(SEPARATOR, 1)[0].strip().upper()
        if first == marker:
            return i
    return None


def _timestamp_expr(column: str) -> pl.Expr:
    text = pl.col(column).str.strip_chars()
    return pl.coalesce([
        text.str.strptime(pl.Datetime("us"), fmt, strict=False)
        for fmt in TIMESTAMP_FORMATS
    ])


def read_timeseries(
        lines: Sequence[str],
        columns: Sequence[str],
        *,
        source: str = "<lines>",
        logger: Optional[Logger] = None,
    ) -> pl.DataFrame:
    """
    Read the ``TIME.LOCAL`` section into a polars frame.

    Timestamps are parsed as US ``MM/DD/YY HH:MM`` (two or four digit
    year, optional seconds) or ISO; rows whose timestamp cannot be
    parsed are dropped with a warning. Requested value columns are cast
    to float, with unparseable values becoming NaN. Duplicate
    timestamps keep their first reading.

    Parameters
    ----------
    lines : Sequence[str]
        All lines of the file.
    columns : Sequence[str]
        Upper-cased value columns to keep.

    Returns
    -------
    polars.DataFrame
        ``TIME.LOCAL`` (Datetime) plus the requested Float64 columns.

    Raises
    ------
    LBNLFormatError
        If the section is missing or a requested column is absent.
    """
    log = resolve_logger(logger)
    ts = Column.TIMESTAMP.value
    start = find_section(lines, ts)
    if start is None:
        raise LBNLFormatError(
            f"No timeseries [{ts}] detected in [{source}]"
        )
    body = "\n".join(
        line for line in lines[start:] if not is_comment(line)
    )
    try:
        frame = pl.read_csv(
            io.BytesIO(body.encode("utf-8")),
            infer_schema=False,
        )
    except pl.exceptions.PolarsError as e:
        raise LBNLFormatError(
            f"Malformed timeseries in [{source}]: {e}"
        ) from e
    frame = frame.rename({c: c.strip().upper() for c in frame.columns})
    missing = [c for c in columns if c not in frame.columns]
    if missing:
        raise LBNLFormatError(f"[{source}] - Column(s) missing {missing}")
    frame = frame.select(
        pl.col(ts).alias("raw_timestamp"),
        _timestamp_expr(ts).alias(ts),
        *[
            pl.col(c).str.strip_chars().cast(pl.Float64, strict=False)
            .fill_null(float("nan"))
            for c in columns
        ],
    )
    invalid = frame.filter(pl.col(ts).is_null())
    for raw in invalid["raw_timestamp"].to_list():
        log.warning(f"Invalid Date format:[{raw}], skipping...")
    frame = frame.filter(pl.col(ts).is_not_null()).drop("raw_timestamp")
    n_rows = frame.height
    frame = frame.unique(subset=[ts], keep="first", maintain_order=True)
    if frame.height < n_rows:
        log.warning(
            f"{n_rows - frame.height} duplicate timestamp(s) in "
            f"[{source}], keeping first reading"
        )
    log.info(f"[{frame.height}] records successfully parsed from [{source}]")
    return frame


def to_interval_series(frame: pl.DataFrame, column: str) -> IntervalSeries:
    """Convert one value column of a timeseries frame to pandas."""
    ts = Column.TIMESTAMP.value
    index = pd.DatetimeIndex(frame[ts].to_list(), name=ts)
    values = frame[column].to_numpy().astype(float)
    return pd.Series(values, index=index, name=column, dtype=float)


def _select_field(
        available: Sequence[str],
        preferred: Sequence[str],
    ) -> Optional[str]:
    """First column, in file order, that is one of ``preferred``."""
    for name in available:
        if name.strip().upper() in preferred:
            return name.strip().upper()
    return None


def _timeseries_columns(lines: Sequence[str]) -> List[str]:
    start = find_section(lines, Column.TIMESTAMP.value)
    if start is None:
        return []
    return [c.strip().upper() for c in lines[start].split(SEPARATOR)]


def load_training_file(
        path: Address,
        *,
        season: Optional[TrainingSeason] = None,
        energy_field: Optional[str] = None,
        logger: Optional[Logger] = None,
    ) -> TrainingData:
    """
    Load interval energy and temperature from a training (main) file.

    The temperature column is the first of ``DBOAT.F``/``WBOAT.F`` in
    the file; the energy column is ``energy_field`` if given, otherwise
    the first known energy column in the file. Readings outside the
    training season are dropped.

    Raises
    ------
    LBNLFormatError
        If the header lacks ``BUILDINGID`` or no usable temperature or
        energy column exists.
    """
    log = resolve_logger(logger)
    source = Path(path)
    lines = read_lines(source)
    header = parse_header(
        lines,
        source=str(source),
        required=[f.value for f in MAIN_REQUIRED],
        logger=log,
    )
    available = _timeseries_columns(lines)
    temperature_field = _select_field(
        available, [f.value for f in TEMPERATURE_FIELDS]
    )
    if energy_field is not None:
        energy_field = energy_field.strip().upper()
        if energy_field not in available:
            raise LBNLFormatError(
                f"Energy field [{energy_field}] not found in [{source}]"
            )
    else:
        energy_field = _select_field(
            available, [f.value for f in ENERGY_FIELDS]
        )
    if temperature_field is None or energy_field is None:
        raise LBNLFormatError(
            f"No temperature and energy columns found in [{source}]"
        )
    log.info(
        f"Modelling [{energy_field}] against [{temperature_field}]"
    )
    frame = read_timeseries(
        lines,
        [energy_field, temperature_field],
        source=str(source),
        logger=log,
    )
    energy = to_interval_series(frame, energy_field)
    temperature = to_interval_series(frame, temperature_field)
    if season is not None and not season.is_full_year:
        energy = season.filter(energy)
        temperature = season.filter(temperature)
        log.info(
            f"Training season {season.start_mmdd:04d}-"
            f"{season.end_mmdd:04d}: {len(energy)} reading(s) retained"
        )
    return TrainingData(
        path=source,
        header=header,
        energy_field=energy_field,
        temperature_field=temperature_field,
        energy=energy,
        temperature=temperature,
    )


def load_forecast_file(
        path: Address,
        *,
        temperature_field: Optional[str] = None,
        logger: Optional[Logger] = None,
    ) -> ForecastInput:
    """
    Load the header and interval temperatures of a forecast file.

    ``temperature_field`` defaults to the first temperature column in
    the file, normally ``DBOAT.F``.
    """
    log = resolve_logger(logger)
    source = Path(path)
    lines = read_lines(source)
    header = parse_header(
        lines,
        source=str(source),
        required=[f.value for f in MAIN_REQUIRED],
        logger=log,
    )
    available = _timeseries_columns(lines)
    if temperature_field is None:
        temperature_field = _select_field(
            available, [f.value for f in TEMPERATURE_FIELDS]
        )
    else:
        temperature_field = temperature_field.strip().upper()
    if temperature_field is None or temperature_field not in available:
        raise LBNLFormatError(
            f"No temperature column found in [{source}]"
        )
    frame = read_timeseries(
        lines, [temperature_field], source=str(source), logger=log
    )
    return ForecastInput(
        path=source,
        header=header,
        temperature_field=temperature_field,
        temperature=to_interval_series(frame, temperature_field),
    )


def parse_date(text: str) -> date:
    """Parse an ISO or US formatted calendar date."""
    text = text.split(SEPARATOR, 1)[0].strip()
    for fmt in DATE_FORMATS:
        try:
            return datetime.strptime(text, fmt).date()
        except ValueError:
            continue
    raise ValueError(f"Invalid date {text!r}.")


def _read_date_section(
        lines: Sequence[str],
        marker: str,
        *,
        source: str,
        log: Logger,
    ) -> Optional[List[date]]:
    """Dates listed one per line after ``marker``; None if no section."""
    start = find_section(lines, marker)
    if start is None:
        return None
    dates: List[date] = []
    for line in lines[start + 1:]:
        if is_comment(line):
            continue
        try:
            dates.append(parse_date(line))
        except ValueError:
            log.warning(
                f"[{source}] - invalid Date format:[{line}], skipping..."
            )
    return dates


def load_holiday_file(
        path: Address,
        *,
        logger: Optional[Logger] = None,
    ) -> List[date]:
    """
    Read non-working days from a holiday file.

    Dates follow a ``DATE`` header line, one per line, in ISO format
    (``YYYY-MM-DD``). Unreadable lines are skipped with a warning, and a
    file without a ``DATE`` section yields no holidays.
    """
    log = resolve_logger(logger)
    source = Path(path)
    holidays = _read_date_section(
        read_lines(source), HOLIDAY_SECTION, source=str(source), log=log
    )
    if holidays is None:
        log.warning(
            f"Holiday File [{source}] has no [{HOLIDAY_SECTION}] section, "
            "continuing without holidays."
        )
        return []
    log.info(f"Holiday File [{source}] read: {len(holidays)} date(s)")
    return sorted(set(holidays))


def _extract[T](
        header: Dict[str, str],
        name: SuppField,
        parse: Callable[[str], T],
        default: T,
        log: Logger,
    ) -> T:
    """Parse an optional header field, keeping ``default`` on failure."""
    raw = header.get(name.value, "")
    if not raw:
        log.warning(
            f"[{name.value}] absent or empty, using default value: "
            f"[{default}]"
        )
        return default
    try:
        value = parse(raw)
    except ValueError:
        log.warning(
            f"[{name.value}] format error in Supp File, using default "
            f"value: [{default}]"
        )
        return default
    log.info(f"Extracted [{name.value}] = [{raw}] from Supp File")
    return value


def load_supplementary_file(
        path: Address,
        *,
        logger: Optional[Logger] = None,
    ) -> SupplementaryConfig:
    """
    Read model parameters from a supplementary file.

    Required header fields are the building id, lag window, working
    days, energy field to model and the training season bounds.
    Working-day end, window range and energy threshold are optional and
    fall back to defaults (with a warning) when absent or malformed. A
    ``NONWORKINGDAYS`` section may list additional holidays.

    Raises
    ------
    LBNLFormatError
        If a required field is missing or malformed.
    """
    log = resolve_logger(logger)
    source = Path(path)
    lines = read_lines(source)
    header = parse_header(
        lines,
        source=str(source),
        required=[f.value for f in SUPP_REQUIRED],
        logger=log,
    )
    try:
        lag_hours = float(header[SuppField.LAG_WINDOW.value])
        working_weekdays = parse_working_days(
            header[SuppField.WORKING_DAYS.value]
        )
        season = TrainingSeason(
            parse_mmdd(header[SuppField.SEASON_START.value]),
            parse_mmdd(header[SuppField.SEASON_END.value]),
        )
    except ValueError as e:
        raise LBNLFormatError(f"[{source}] - {e}") from e
    if not np.isfinite(lag_hours) or lag_hours < 0:
        raise LBNLFormatError(
            f"[{source}] - invalid lag window [{lag_hours}]"
        )
    non_working_days = _read_date_section(
        lines, SuppField.NON_WORKING_DAYS.value, source=str(source), log=log
    )
    return SupplementaryConfig(
        header=header,
        lag_hours=lag_hours,
        working_weekdays=working_weekdays,
        energy_to_model=header[SuppField.ENERGY_TO_MODEL.value].upper(),
        season=season,
        working_day_end=_extract(
            header, SuppField.WORKING_DAY_END, parse_time_of_day,
            DEFAULT_WORKDAY_END, log,
        ),
        min_window=_extract(
            header, SuppField.MIN_WINDOW_SIZE, int,
            SUPP_DEFAULT_MIN_WINDOW, log,
        ),
        max_window=_extract(
            header, SuppField.MAX_WINDOW_SIZE, int,
            SUPP_DEFAULT_MAX_WINDOW, log,
        ),
        energy_threshold=_extract(
            header, SuppField.ENERGY_THRESHOLD, float,
            SUPP_DEFAULT_ENERGY_THRESHOLD, log,
        ),
        non_working_days=non_working_days or [],
    )
