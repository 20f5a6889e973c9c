"""Tests for the forecast output file."""

from datetime import date, datetime
from pathlib import Path

import numpy as np
import pandas as pd
import pytest

from building_energy_modeling.data.loaders import ForecastInput, load_forecast_file
from building_energy_modeling.data.naming import forecast_output_path
from building_energy_modeling.data.schemas import EnergyAggregation
from building_energy_modeling.data.writers import (
    model_comments,
    render_forecast,
    write_forecast,
)
from building_energy_modeling.models.regression import QuadraticCoefficients
from building_energy_modeling.models.search import ModelCandidate


def make_model(r_squared=0.8):
    return ModelCandidate(
        lag_hours=1.25,
        window_size_hours=9,
        energy_aggregation=EnergyAggregation.DAILY_TOTAL,
        coefficients=QuadraticCoefficients(1.0, 2.0, 3.0),
        r_squared=r_squared,
        rmse=1.5,
        grid_index=14,
    )


@pytest.fixture
def forecast_input(tmp_path):
    index = pd.DatetimeIndex(
        ["2014-12-25 00:00", "2014-12-25 00:15", "2014-12-26 00:00"],
        name="TIME.LOCAL",
    )
    return ForecastInput(
        path=tmp_path / "ModelInput6P.csv",
        header={"BUILDINGID": "B1", "ZIP": "94720"},
        temperature_field="DBOAT.F",
        temperature=pd.Series([40.5, np.nan, 42.0], index=index),
    )


class TestOutputPath:
    def test_prefixed_with_run_date(self):
        assert forecast_output_path(
            "in/ModelInput6P.csv", run_date=date(2014, 12, 25)
        ) == Path("in/2014.12.25.ModelInput6P.csv")


class TestModelComments:
    def test_describes_model(self):
        lines = model_comments(make_model())
        assert lines[0] == "# Model type: [DailyTotal]"
        assert "Energy = 3.0 * Temp^2 + 2.0 * Temp + 1.0" in lines[2]
        assert all(line.startswith("#") for line in lines)
        assert not any("WARNING" in line for line in lines)

    def test_low_r_squared_warning(self):
        assert "WARNING" in model_comments(make_model(0.3))[-1]


class TestRenderForecast:
    def test_layout(self, forecast_input):
        predicted = pd.Series(
            [123.456], index=pd.Index([date(2014, 12, 25)], name="date")
        )
        lines = render_forecast(
            forecast_input, make_model(), predicted, "WBELECTRICITY.KWH"
        )
        assert "BUILDINGID, ZIP" in lines
        assert "B1, 94720" in lines
        start = lines.index("TIME.LOCAL,DBOAT.F,WBELECTRICITY.KWH")
        assert lines[start + 1:] == [
            "12/25/2014 00:00:00,40.5,123.46",
            "12/25/2014 00:15:00,NaN,0.0",
            "12/26/2014 00:00:00,42.0,0.0",
        ]


class TestWriteForecast:
    def test_written_beside_input_and_readable(self, forecast_input):
        predicted = pd.Series(
            [10.0, 20.0],
            index=pd.Index([date(2014, 12, 25), date(2014, 12, 26)], name="date"),
        )
        path = write_forecast(
            forecast_input,
            make_model(),
            predicted,
            "WBELECTRICITY.KWH",
            run_date=datetime(2015, 1, 2),
        )
        assert path.name == "2015.01.02.ModelInput6P.csv"
        assert path.parent == forecast_input.path.parent
        reread = load_forecast_file(path)
        assert reread.header == forecast_input.header
        assert reread.temperature.iloc[0] == 40.5

    def test_never_overwrites(self, forecast_input):
        predicted = pd.Series(dtype=float)
        first = write_forecast(
            forecast_input, make_model(), predicted, "WBELECTRICITY.KWH",
            run_date=datetime(2015, 1, 2),
        )
        second = write_forecast(
            forecast_input, make_model(), predicted, "WBELECTRICITY.KWH",
            run_date=datetime(2015, 1, 2),
        )
        assert first != second
        assert first.exists() and second.exists()
