# stdlib
import math
from dataclasses import dataclass
from datetime import time
from typing import Iterable, List, NamedTuple, Optional, Tuple
# thirdpartylib
import numpy as np
import pandas as pd
from joblib import Parallel, delayed # pyright: ignore[reportMissingTypeStubs]
# projectlib
from building_energy_modeling.config.constants import (
    LAG_MIN_HOURS,
    LAG_MAX_HOURS,
    LAG_STEP_HOURS,
    WINDOW_MIN_HOURS,
    WINDOW_MAX_HOURS,
    WINDOW_STEP_HOURS,
)
from building_energy_modeling.data.schemas import EnergyAggregation
from building_energy_modeling.models.regression import (
    QuadraticCoefficients,
    RegressionFailure,
    RegressionOutcome,
    RegressionResult,
    fit_quadratic,
    score,
)
from building_energy_modeling.preprocessing.aggregation import (
    calculate_average_hourly_energy,
    calculate_daily_total_energy,
    calculate_lagged_window_average,
    window_bounds,
)
from building_energy_modeling.preprocessing.calendar_policy import (
    CalendarPolicy
)
from building_energy_modeling.utils.logging import Logger, resolve_logger
from building_energy_modeling.utils.typing import (
    Address,
    DailyAggregate,
    IntervalSeries,
    Verbosity,
)


class NoViableModelError(RuntimeError):
    """Raised when no grid point produces a fit with positive R²."""

    def __init__(self, n_candidates: int, max_r2: Optional[float] = None):
        self.n_candidates = n_candidates
        self.max_r2 = max_r2
        super().__init__(
            f"No viable model among {n_candidates} candidate(s) "
            f"(max_r2={max_r2!r})"
        )


class GridPoint(NamedTuple):
    """A lag/window combination and its position in search order."""
    index: int
    lag_hours: float
    window_size_hours: int


@dataclass(frozen=True)
class SearchGrid:
    """
    Lag and window-size values explored by the model search.

    Iteration order is lag ascending in the outer loop and window size
    ascending in the inner loop. That order decides ties, so it is part
    of the search result.
    """
    lag_min: float = LAG_MIN_HOURS
    lag_max: float = LAG_MAX_HOURS
    lag_step: float = LAG_STEP_HOURS
    window_min: int = WINDOW_MIN_HOURS
    window_max: int = WINDOW_MAX_HOURS
    window_step: int = WINDOW_STEP_HOURS

    def __post_init__(self) -> None:
        if self.lag_step <= 0 or self.window_step <= 0:
            raise ValueError("Grid steps must be positive.")
        if self.lag_min < 0 or self.lag_min > self.lag_max:
            raise ValueError(
                f"Invalid lag range [{self.lag_min}, {self.lag_max}]."
            )
        if self.window_min < 1 or self.window_min > self.window_max:
            raise ValueError(
                f"Invalid window range [{self.window_min}, "
                f"{self.window_max}]."
            )

    def lags(self) -> List[float]:
        # Multiples of the step avoid accumulating float error
        n = int(math.floor(
            (self.lag_max - self.lag_min) / self.lag_step + 1e-9
        )) + 1
        return [self.lag_min + i * self.lag_step for i in range(n)]

    def windows(self) -> List[int]:
        return list(range(
            int(self.window_min), int(self.window_max) + 1,
            int(self.window_step)
        ))

    def points(self) -> List[GridPoint]:
        windows = self.windows()
        return [
            GridPoint(i * len(windows) + j, lag, window)
            for i, lag in enumerate(self.lags())
            for j, window in enumerate(windows)
        ]

    def __len__(self) -> int:
        return len(self.lags()) * len(self.windows())

    @classmethod
    def fixed_lag(
            cls,
            lag_hours: float,
            window_min: int,
            window_max: int,
            working_day_end: time,
            logger: Optional[Logger] = None,
        ) -> "SearchGrid":
        """
        Grid with a single lag, as set by a supplementary file.

        The largest window is cut to the hour of ``end - lag`` when it
        would otherwise reach back past midnight.
        """
        log = resolve_logger(logger)
        _, end = window_bounds(working_day_end, 0, lag_hours)
        if end.hour < window_max:
            log.warning(
                f"Max window size [{window_max}] reaches past midnight "
                f"with lag [{lag_hours}], reduced to [{end.hour}]"
            )
            window_max = end.hour
        return cls(
            lag_min=lag_hours,
            lag_max=lag_hours,
            window_min=window_min,
            window_max=window_max,
        )


@dataclass(frozen=True)
class ModelCandidate:
    """
    Scored lag/window combination.

    ``coefficients`` is ``None`` when neither energy aggregation could
    be fitted; such a candidate scores ``r_squared = 0.0`` and carries
    the failure of the aggregation it reports.
    """
    lag_hours: float
    window_size_hours: int
    energy_aggregation: EnergyAggregation
    coefficients: Optional[QuadraticCoefficients]
    r_squared: float
    rmse: float
    grid_index: int
    n_days: int = 0
    failure: Optional[RegressionFailure] = None

    @classmethod
    def from_outcome(
            cls,
            point: GridPoint,
            kind: EnergyAggregation,
            outcome: RegressionOutcome,
        ) -> "ModelCandidate":
        if isinstance(outcome, RegressionResult):
            return cls(
                lag_hours=point.lag_hours,
                window_size_hours=point.window_size_hours,
                energy_aggregation=kind,
                coefficients=outcome.coefficients,
                r_squared=outcome.r_squared,
                rmse=outcome.rmse,
                grid_index=point.index,
                n_days=outcome.n_points,
            )
        return cls(
            lag_hours=point.lag_hours,
            window_size_hours=point.window_size_hours,
            energy_aggregation=kind,
            coefficients=None,
            r_squared=score(outcome),
            rmse=float("nan"),
            grid_index=point.index,
            n_days=outcome.n_points,
            failure=outcome,
        )

    @property
    def is_viable(self) -> bool:
        return (
            self.coefficients is not None
            and np.isfinite(self.r_squared)
            and self.r_squared > 0.0
        )

    def to_dict(self) -> dict[str, object]:
        """Flat representation for tables and reports."""
        coefs = self.coefficients
        return {
            "grid_index": self.grid_index,
            "lag_hours": self.lag_hours,
            "window_size_hours": self.window_size_hours,
            "energy_aggregation": self.energy_aggregation.value,
            "intercept": coefs.intercept if coefs else np.nan,
            "linear": coefs.linear if coefs else np.nan,
            "quadratic": coefs.quadratic if coefs else np.nan,
            "r_squared": self.r_squared,
            "rmse": self.rmse,
            "n_days": self.n_days,
            "failure": self.failure.kind.value if self.failure else None,
        }


def evaluate_point(
        point: GridPoint,
        temperatures: IntervalSeries,
        daily_total: DailyAggregate,
        average_hourly: DailyAggregate,
        policy: CalendarPolicy,
        logger: Optional[Logger] = None,
    ) -> ModelCandidate:
    """
    Score one lag/window combination against both energy aggregates.

    The aggregation with the greater or equal R² is kept, so a tie goes
    to the daily total. Failed fits score zero.
    """
    log = resolve_logger(logger)
    avg_temp = calculate_lagged_window_average(
        temperatures, policy, point.window_size_hours, point.lag_hours
    )
    vs_total = fit_quadratic(avg_temp, daily_total, logger=log)
    vs_hourly = fit_quadratic(avg_temp, average_hourly, logger=log)
    total_r2, hourly_r2 = score(vs_total), score(vs_hourly)
    log.debug(
        f"Window [{point.window_size_hours}] Lag [{point.lag_hours}] "
        f"RSQ Daily=[{total_r2:.6f}] Hourly=[{hourly_r2:.6f}]"
    )
    if total_r2 >= hourly_r2:
        return ModelCandidate.from_outcome(
            point, EnergyAggregation.DAILY_TOTAL, vs_total
        )
    return ModelCandidate.from_outcome(
        point, EnergyAggregation.AVERAGE_HOURLY, vs_hourly
    )


def select_best(
        candidates: Iterable[ModelCandidate]
    ) -> Optional[ModelCandidate]:
    """
    Pick the candidate with the greatest R².

    Ties go to the lowest grid index, so the result does not depend on
    the order in which candidates are supplied. Candidates that are not
    viable (no coefficients, or R² not above zero) are never selected.

    Returns
    -------
    ModelCandidate or None
        The best candidate, or ``None`` if none is viable.
    """
    best: Optional[ModelCandidate] = None
    for candidate in candidates:
        if not candidate.is_viable:
            continue
        if best is None or (
            (candidate.r_squared, -candidate.grid_index)
            > (best.r_squared, -best.grid_index)
        ):
            best = candidate
    return best


class ModelSearch(object):
    """
    Exhaustive lag/window search for the best quadratic energy model.

    Daily energy aggregates are computed once per run; each grid point
    then recomputes only the lagged window temperature average. Grid
    points share no state, so ``n_jobs > 1`` scores them in parallel
    with joblib. The reduction uses grid indices, so parallel and
    sequential runs select the same model.

    Typical usage
    -------------
    >>> search = ModelSearch(policy, SearchGrid(), verbosity=1)
    >>> best = search.find_best_model(temperatures, energy)
    >>> search.summary().head()

    Attributes
    ----------
    candidates : list[ModelCandidate]
        Every scored grid point of the last run, in grid order.
    best : ModelCandidate or None
        Best candidate of the last run.
    daily_total, average_hourly : DailyAggregate or None
        Energy aggregates of the last run.
    """

    def __init__(
            self,
            policy: CalendarPolicy,
            grid: Optional[SearchGrid] = None,
            *,
            n_jobs: int = 1,
            verbosity: Verbosity = 0,
            log_dir: Optional[Address] = None,
            write_log: bool = False,
            logger: Optional[Logger] = None,
        ) -> None:
        """
        Parameters
        ----------
        policy : CalendarPolicy
            Holidays, working-day end and energy threshold.
        grid : SearchGrid, optional
            Lag/window values to explore. Defaults to ``SearchGrid()``.
        n_jobs : int, default 1
            Worker count passed to ``joblib.Parallel``.
        verbosity : Verbosity, default 0
            Logging verbosity, used when ``logger`` is not given.
        log_dir : Address, optional
            Log directory, used when ``logger`` is not given.
        write_log : bool, default False
            Write to ``log.txt`` instead of stderr.
        logger : Logger, optional
            Shared logger instance.
        """
        self.policy = policy
        self.grid = grid if grid is not None else SearchGrid()
        self.n_jobs = n_jobs
        self.log = logger if logger is not None else Logger(
            verbose=verbosity, log_dir=log_dir, write_log=write_log
        )
        self.candidates: List[ModelCandidate] = []
        self.best: Optional[ModelCandidate] = None
        self.daily_total: Optional[DailyAggregate] = None
        self.average_hourly: Optional[DailyAggregate] = None

    def prepare_energy(
            self, energy: IntervalSeries
        ) -> Tuple[DailyAggregate, DailyAggregate]:
        """Compute both daily energy aggregates for the run."""
        self.daily_total = calculate_daily_total_energy(energy, self.policy)
        self.average_hourly = calculate_average_hourly_energy(
            energy, self.policy, logger=self.log
        )
        self.log.info(
            f"Calculated daily energy for {len(self.daily_total)} day(s), "
            f"average hourly energy for {len(self.average_hourly)} day(s)"
        )
        return self.daily_total, self.average_hourly

    def evaluate(
            self,
            temperatures: IntervalSeries,
            energy: IntervalSeries,
        ) -> List[ModelCandidate]:
        """Score every grid point and return candidates in grid order."""
        daily_total, average_hourly = self.prepare_energy(energy)
        points = self.grid.points()
        self.log.info(
            f"Searching {len(points)} lag/window combination(s) "
            f"with n_jobs={self.n_jobs}"
        )
        candidates = Parallel(n_jobs=self.n_jobs)(
            delayed(evaluate_point)(
                point,
                temperatures,
                daily_total,
                average_hourly,
                self.policy,
                self.log,
            )
            for point in points
        )
        self.candidates = sorted(candidates, key=lambda c: c.grid_index)
        return self.candidates

    def find_best_model(
            self,
            temperatures: IntervalSeries,
            energy: IntervalSeries,
        ) -> ModelCandidate:
        """
        Run the search and return the best candidate.

        Raises
        ------
        NoViableModelError
            If no grid point produced a fit with R² above zero.
        """
        candidates = self.evaluate(temperatures, energy)
        self.best = select_best(candidates)
        if self.best is None:
            finite = [c.r_squared for c in candidates
                      if np.isfinite(c.r_squared)]
            raise NoViableModelError(
                len(candidates), max(finite) if finite else None
            )
        best = self.best
        self.log.info(
            f"Best model: lag [{best.lag_hours}] window "
            f"[{best.window_size_hours}] {best.energy_aggregation.value} "
            f"RSQ [{best.r_squared:.6f}] RMSE [{best.rmse:.6f}]"
        )
        return best

    def energy_for(self, kind: EnergyAggregation) -> DailyAggregate:
        """Daily energy aggregate of the last run for ``kind``."""
        aggregate = (
            self.daily_total if kind is EnergyAggregation.DAILY_TOTAL
            else self.average_hourly
        )
        if aggregate is None:
            raise RuntimeError("No search has been run yet.")
        return aggregate

    def summary(self) -> pd.DataFrame:
        """Candidates of the last run as a table, in grid order."""
        return pd.DataFrame(
            [c.to_dict() for c in self.candidates],
            columns=[
                "grid_index", "lag_hours", "window_size_hours",
                "energy_aggregation", "intercept", "linear", "quadratic",
                "r_squared", "rmse", "n_days", "failure",
            ],
        )


def find_best_model(
        temperatures: IntervalSeries,
        energy: IntervalSeries,
        policy: CalendarPolicy,
        grid: Optional[SearchGrid] = None,
        *,
        n_jobs: int = 1,
        logger: Optional[Logger] = None,
    ) -> ModelCandidate:
    """
    Find the best lag/window quadratic model for the given series.

    Functional front end to :class:`ModelSearch`; see
    :meth:`ModelSearch.find_best_model`.
    """
    search = ModelSearch(
        policy, grid, n_jobs=n_jobs, logger=resolve_logger(logger)
    )
    return search.find_best_model(temperatures, energy)
