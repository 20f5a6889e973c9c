# stdlib
from datetime import datetime
from pathlib import Path
from typing import List, Optional
# thirdpartylib
import numpy as np
import pandas as pd
# projectlib
from building_energy_modeling.config.constants import LOW_RSQ_WARNING
from building_energy_modeling.data.loaders import ForecastInput
from building_energy_modeling.data.naming import forecast_output_path
from building_energy_modeling.data.schemas import Column
from building_energy_modeling.models.search import ModelCandidate
from building_energy_modeling.utils.logging import Logger, resolve_logger
from building_energy_modeling.utils.paths import validate_address
from building_energy_modeling.utils.typing import Address, DailyAggregate

SEPARATOR = ","
TIMESTAMP_FORMAT = "%m/%d/%Y %H:%M:%S"
# Written on every interval row that carries no daily forecast
EMPTY_ENERGY = "0.0"


def _format_value(value: float) -> str:
    return "NaN" if np.isnan(value) else repr(float(value))


def model_comments(model: ModelCandidate) -> List[str]:
    """Comment block describing the selected model."""
    if model.coefficients is None:
        raise ValueError("Cannot describe a model without coefficients.")
    lines = [
        f"# Model type: [{model.energy_aggregation.value}]",
        f"# Lag: [{model.lag_hours}] hours, "
        f"Window: [{model.window_size_hours}] hours",
        f"# Model formula: {model.coefficients.formula()}",
        f"# RSQ: [{model.r_squared}]",
        f"# RMSE: [{model.rmse}]",
    ]
    if model.r_squared < LOW_RSQ_WARNING:
        lines.append(
            f"# WARNING: RSQ below {LOW_RSQ_WARNING}, "
            "forecast is unreliable"
        )
    return lines


def render_forecast(
        forecast_input: ForecastInput,
        model: ModelCandidate,
        predicted: DailyAggregate,
        energy_field: str,
    ) -> List[str]:
    """
    Lay out a forecast file as lines of text.

    The file repeats the forecast input's header block, then lists every
    input temperature reading. The daily forecast is attached to the
    midnight reading of its date; other rows carry ``0.0``.
    """
    header = forecast_input.header
    lines = model_comments(model)
    lines.append(", ".join(header.keys()))
    lines.append(", ".join(header.values()))
    lines.append(
        f"# [{energy_field}] is {model.energy_aggregation.value} energy"
    )
    lines.append(SEPARATOR.join([
        Column.TIMESTAMP.value, forecast_input.temperature_field, energy_field
    ]))
    by_date = {d: float(v) for d, v in predicted.items()}
    temperature = forecast_input.temperature
    for ts, temp in zip(pd.DatetimeIndex(temperature.index), temperature):
        energy = EMPTY_ENERGY
        if ts == ts.normalize() and ts.date() in by_date:
            energy = f"{by_date[ts.date()]:.2f}"
        lines.append(SEPARATOR.join([
            ts.strftime(TIMESTAMP_FORMAT), _format_value(temp), energy
        ]))
    return lines


def write_forecast(
        forecast_input: ForecastInput,
        model: ModelCandidate,
        predicted: DailyAggregate,
        energy_field: str,
        *,
        output: Optional[Address] = None,
        run_date: Optional[datetime] = None,
        logger: Optional[Logger] = None,
    ) -> Path:
    """
    Write a forecast beside its input file.

    Parameters
    ----------
    forecast_input : ForecastInput
        Parsed forecast file supplying header and temperatures.
    model : ModelCandidate
        Model used for the forecast, described in the comment block.
    predicted : DailyAggregate
        Daily forecast from :func:`models.forecasting.forecast`.
    energy_field : str
        Name of the modelled energy column.
    output : Address, optional
        Output path. Defaults to the input path prefixed with the run
        date (``YYYY.MM.DD.``). An existing file is never overwritten.
    run_date : datetime, optional
        Date used for the default output name. Defaults to today.

    Returns
    -------
    pathlib.Path
        Path actually written.
    """
    log = resolve_logger(logger)
    if output is None:
        output = forecast_output_path(
            forecast_input.path,
            run_date=run_date.date() if run_date else None,
        )
    path = validate_address(output, extension=None, mode="w")
    lines = render_forecast(forecast_input, model, predicted, energy_field)
    with open(path, "w", encoding="utf-8", newline="\n") as file:
        file.write("\n".join(lines) + "\n")
    log.info(f"Forecast for {len(predicted)} day(s) written to [{path}]")
    return path
