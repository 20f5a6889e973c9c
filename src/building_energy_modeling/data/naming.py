# stdlib
from datetime import date
from pathlib import Path
from typing import Optional
# projectlib
from building_energy_modeling.utils.typing import Address

# Names given to daily aggregates
AVG_TEMPERATURE = 'avg_temperature'
DAILY_TOTAL_ENERGY = 'daily_total_energy'
AVERAGE_HOURLY_ENERGY = 'average_hourly_energy'
PREDICTED_ENERGY = 'predicted_energy'
# Index name shared by every daily aggregate
DATE_INDEX = 'date'

def forecast_output_path(
        forecast_file: Address,
        *,
        run_date: Optional[date] = None,
    ) -> Path:
    """
    Build the output path for a forecast written beside its input.

    The output keeps the forecast file's name and directory and prefixes
    the name with the run date in ``YYYY.MM.DD.`` form.

    Parameters
    ----------
    forecast_file : Address
        Path of the forecast (prediction) input file.
    run_date : datetime.date, optional
        Date used for the prefix. Defaults to today.

    Returns
    -------
    pathlib.Path
        Output file path.

    Examples
    --------
    >>> forecast_output_path("in/ModelInput6P.csv", run_date=date(2014, 12, 25))
    PosixPath('in/2014.12.25.ModelInput6P.csv')
    """
    path = Path(forecast_file)
    stamp = (run_date or date.today()).strftime("%Y.%m.%d.")
    return path.with_name(stamp + path.name)
