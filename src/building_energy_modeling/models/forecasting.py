# thirdpartylib
import pandas as pd
# projectlib
from building_energy_modeling.data.naming import PREDICTED_ENERGY
from building_energy_modeling.models.search import ModelCandidate
from building_energy_modeling.preprocessing.aggregation import (
    calculate_lagged_window_average
)
from building_energy_modeling.preprocessing.calendar_policy import (
    CalendarPolicy
)
from building_energy_modeling.utils.typing import (
    DailyAggregate,
    IntervalSeries,
)


def forecast(
        model: ModelCandidate,
        temperatures: IntervalSeries,
        policy: CalendarPolicy,
    ) -> DailyAggregate:
    """
    Predict daily energy from a temperature series with a fitted model.

    The lagged window average temperature is recomputed with the
    model's lag and window size, then the model's quadratic is applied
    per date:

        predicted = intercept + linear·t + quadratic·t²

    No filtering is applied beyond that of the window average, so a
    date absent from the average (holiday, no readings in the window)
    has no forecast.

    Parameters
    ----------
    model : ModelCandidate
        Selected model, usually the result of the model search.
    temperatures : IntervalSeries
        Interval temperature readings for the forecast period.
    policy : CalendarPolicy
        Holidays and working-day end used for windowing.

    Returns
    -------
    DailyAggregate
        Predicted energy per date, in the model's energy aggregation
        (daily total or average hourly).

    Raises
    ------
    ValueError
        If the model has no coefficients (a failed candidate).
    """
    if model.coefficients is None:
        raise ValueError(
            "Cannot forecast with a model that has no coefficients."
        )
    avg_temp = calculate_lagged_window_average(
        temperatures, policy, model.window_size_hours, model.lag_hours
    )
    predicted = pd.Series(
        model.coefficients.predict(avg_temp.to_numpy(dtype=float)),
        index=avg_temp.index,
        name=PREDICTED_ENERGY,
        dtype=float,
    )
    return predicted
