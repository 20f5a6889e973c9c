# stdlib
from dataclasses import dataclass
from enum import Enum
from typing import Optional, Tuple, Union
# thirdpartylib
import numpy as np
import pandas as pd
from numpy.typing import ArrayLike, NDArray
# projectlib
from building_energy_modeling.config.constants import (
    MIN_REGRESSION_POINTS,
    SINGULAR_RCOND,
)
from building_energy_modeling.evaluation.metrics import rmse, strict_r2
from building_energy_modeling.utils.logging import Logger, resolve_logger
from building_energy_modeling.utils.typing import DailyAggregate


class FailureKind(str, Enum):
    """
    Reasons a grid point, or one day of its data, yields no usable value.

    A degenerate elapsed span marks a day dropped from the average
    hourly energy; the other kinds mark a failed quadratic fit.
    """
    INSUFFICIENT_DATA = 'InsufficientData'
    NUMERICAL_DEGENERATE = 'NumericalDegenerate'
    DEGENERATE_ELAPSED_SPAN = 'DegenerateElapsedSpan'


@dataclass(frozen=True)
class QuadraticCoefficients:
    """Coefficients of ``energy = intercept + linear·t + quadratic·t²``."""
    intercept: float
    linear: float
    quadratic: float

    def predict(self, temperature: ArrayLike) -> NDArray[np.float64]:
        t = np.asarray(temperature, dtype=float)
        return self.intercept + self.linear * t + self.quadratic * t * t

    def formula(self) -> str:
        return (
            f"Energy = {self.quadratic} * Temp^2 + {self.linear} * Temp "
            f"+ {self.intercept}"
        )


@dataclass(frozen=True)
class RegressionResult:
    """Successful fit of daily energy against daily temperature."""
    coefficients: QuadraticCoefficients
    r_squared: float
    rmse: float
    n_points: int


@dataclass(frozen=True)
class RegressionFailure:
    """A fit that could not be scored, with the reason why."""
    kind: FailureKind
    reason: str
    n_points: int = 0


type RegressionOutcome = Union[RegressionResult, RegressionFailure]


def align_daily(
        temperatures: DailyAggregate,
        energy: DailyAggregate,
        *,
        logger: Optional[Logger] = None,
    ) -> Tuple[pd.Index, NDArray[np.float64], NDArray[np.float64]]:
    """
    Pair daily temperature and energy by date.

    Only dates present in both aggregates are kept, in ascending order.
    Pairs where either value is NaN or infinite are dropped and logged.

    Returns
    -------
    tuple[pandas.Index, numpy.ndarray, numpy.ndarray]
        Retained dates, temperatures and energies.
    """
    log = resolve_logger(logger)
    common = temperatures.index.intersection(energy.index).sort_values()
    xs = temperatures.loc[common].to_numpy(dtype=float)
    ys = energy.loc[common].to_numpy(dtype=float)
    good = np.isfinite(xs) & np.isfinite(ys)
    for day in common[~good]:
        log(
            f"Omitting data from [{day:%Y-%m-%d}]: non-finite value",
            verbosity=1,
            level="WARNING",
        )
    return common[good], xs[good], ys[good]


def fit_quadratic(
        temperatures: DailyAggregate,
        energy: DailyAggregate,
        *,
        logger: Optional[Logger] = None,
    ) -> RegressionOutcome:
    """
    Fit daily energy as a quadratic function of daily temperature.

    Solves ``y = a + b·x + c·x²`` by ordinary least squares over the
    design matrix ``[1, x, x²]`` built from the date-aligned, finite
    pairs of the two aggregates.

    Parameters
    ----------
    temperatures : DailyAggregate
        Daily average temperatures, indexed by date.
    energy : DailyAggregate
        Daily energy (total or average hourly), indexed by date.
    logger : Logger, optional
        Receives notices about dropped pairs and failures.

    Returns
    -------
    RegressionResult or RegressionFailure
        The fit with its R² and RMSE, or a failure value:

        - ``INSUFFICIENT_DATA`` if fewer than three pairs remain
        - ``NUMERICAL_DEGENERATE`` if the design matrix is rank
          deficient (e.g. constant temperature) or energy has no
          variance, leaving R² undefined

    Notes
    -----
    Failures are returned, never raised. Model search scores them as
    zero through :func:`score`.
    """
    log = resolve_logger(logger)
    _, x, y = align_daily(temperatures, energy, logger=log)
    n = len(x)
    if n < MIN_REGRESSION_POINTS:
        return RegressionFailure(
            FailureKind.INSUFFICIENT_DATA,
            f"{n} aligned day(s), at least {MIN_REGRESSION_POINTS} required",
            n,
        )
    design = np.column_stack([np.ones(n), x, x * x])
    beta, _, rank, _ = np.linalg.lstsq(design, y, rcond=SINGULAR_RCOND)
    if rank < design.shape[1]:
        return RegressionFailure(
            FailureKind.NUMERICAL_DEGENERATE,
            f"design matrix rank {rank} < {design.shape[1]}",
            n,
        )
    fitted = design @ beta
    r_squared = strict_r2(y, fitted)
    if not np.isfinite(r_squared):
        return RegressionFailure(
            FailureKind.NUMERICAL_DEGENERATE,
            "energy has no variance, R² undefined",
            n,
        )
    return RegressionResult(
        coefficients=QuadraticCoefficients(
            intercept=float(beta[0]),
            linear=float(beta[1]),
            quadratic=float(beta[2]),
        ),
        r_squared=r_squared,
        rmse=rmse(y, fitted),
        n_points=n,
    )


def score(outcome: RegressionOutcome) -> float:
    """R² of a fit, with any failure scored as zero."""
    if isinstance(outcome, RegressionResult):
        return outcome.r_squared
    return 0.0
