"""
Pytest configuration and fixtures for the building energy model tests.

Provides synthetic interval data with a known quadratic dependence of
energy on daily temperature, and helpers writing that data as LBNL
files into a temporary directory.
"""

from pathlib import Path
from typing import Callable, Dict, Tuple

import matplotlib

matplotlib.use("Agg")

import numpy as np
import pandas as pd
import pytest

from building_energy_modeling.models.search import SearchGrid
from building_energy_modeling.preprocessing.calendar_policy import (
    CalendarPolicy,
)
from building_energy_modeling.utils.logging import Logger

# A Monday
START = "2014-06-02"
FREQ = "15min"


def build_building(
    n_days: int = 20,
    *,
    seed: int = 0,
    diurnal: bool = True,
) -> Tuple[pd.Series, pd.Series]:
    """
    Synthetic building: one integer temperature level per day, plus an
    optional diurnal swing, and plant load growing quadratically with
    the day's temperature between 06:00 and 20:00.
    """
    rng = np.random.default_rng(seed)
    per_day = int(pd.Timedelta("1D") / pd.Timedelta(FREQ))
    index = pd.date_range(START, periods=n_days * per_day, freq=FREQ)
    day_temp = rng.integers(55, 95, n_days).astype(float)
    day_pos = np.repeat(np.arange(n_days), per_day)
    hours = np.asarray(index.hour + index.minute / 60.0, dtype=float)
    temperature = day_temp[day_pos]
    if diurnal:
        temperature = temperature + 8.0 * np.sin(2 * np.pi * (hours - 9) / 24)
    operating = (hours >= 6) & (hours <= 20)
    load = (
        5.0
        + 0.02 * (day_temp[day_pos] - 65.0) ** 2
        + rng.normal(0.0, 0.3, len(index))
    )
    energy = np.where(operating, load, 0.5)
    return (
        pd.Series(temperature, index=index, name="DBOAT.F"),
        pd.Series(energy, index=index, name="WBELECTRICITY.KWH"),
    )


@pytest.fixture
def building() -> Tuple[pd.Series, pd.Series]:
    """Twenty days of 15-minute temperature and energy readings."""
    return build_building()


@pytest.fixture
def flat_building() -> Tuple[pd.Series, pd.Series]:
    """Like ``building`` but with temperature constant within each day."""
    return build_building(diurnal=False)


@pytest.fixture
def policy() -> CalendarPolicy:
    return CalendarPolicy()


@pytest.fixture
def small_grid() -> SearchGrid:
    """Five lags by three windows, enough to exercise the search."""
    return SearchGrid(lag_max=1.0, window_min=8, window_max=10)


@pytest.fixture
def quiet_logger() -> Logger:
    return Logger(verbose=0)


def write_interval_file(
    path: Path,
    header: Dict[str, str],
    columns: Dict[str, pd.Series],
    *,
    comment: str = "# synthetic LBNL file",
) -> Path:
    """Write series sharing one index as an LBNL interval file."""
    names = list(columns)
    index = columns[names[0]].index
    lines = [comment, ",".join(header), ",".join(header.values())]
    lines.append(",".join(["TIME.LOCAL", *names]))
    for i, ts in enumerate(index):
        values = [repr(float(columns[n].iloc[i])) for n in names]
        lines.append(",".join([ts.strftime("%m/%d/%y %H:%M"), *values]))
    path.write_text("\n".join(lines) + "\n", encoding="utf-8")
    return path


@pytest.fixture
def write_lbnl(tmp_path) -> Callable[..., Path]:
    """Factory writing an LBNL interval file into ``tmp_path``."""

    def _write(name: str, header: Dict[str, str], columns, **kwargs) -> Path:
        return write_interval_file(tmp_path / name, header, columns, **kwargs)

    return _write


@pytest.fixture
def lbnl_files(tmp_path) -> Dict[str, Path]:
    """
    Training, forecast and holiday files for one synthetic building.

    The first twenty days are for training, the last five for the
    forecast; 2014-06-04 is a holiday.
    """
    temperature, energy = build_building(25)
    split = pd.Timestamp(START) + pd.Timedelta(days=20)
    train = temperature.index < split
    header = {
        "BUILDINGID": "B1",
        "ZIP": "94720",
        "BUILDINGTYPE.NAICS": "611310",
    }
    training = write_interval_file(
        tmp_path / "training.csv",
        header,
        {"DBOAT.F": temperature[train], "WBELECTRICITY.KWH": energy[train]},
    )
    forecast = write_interval_file(
        tmp_path / "forecast.csv",
        header,
        {"DBOAT.F": temperature[~train]},
    )
    holidays = tmp_path / "holidays.csv"
    holidays.write_text("DATE\n2014-06-04\n", encoding="utf-8")
    return {
        "training": training,
        "forecast": forecast,
        "holidays": holidays,
        "dir": tmp_path,
    }
