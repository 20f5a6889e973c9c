# stdlib
import argparse
import sys
from pathlib import Path
from typing import NoReturn, Optional, Sequence
# projectlib
from building_energy_modeling.config.constants import (
    DEFAULT_ENERGY_THRESHOLD,
    DEFAULT_WORKDAY_END,
    EXIT_BAD_ARGS,
    EXIT_INVALID_COMMAND_LINE,
    EXIT_NO_MODEL,
)
from building_energy_modeling.config.env import LOG_DIR, N_JOBS, VERBOSITY
from building_energy_modeling.data.loaders import (
    LBNLFormatError,
    SupplementaryConfig,
    load_forecast_file,
    load_holiday_file,
    load_supplementary_file,
    load_training_file,
)
from building_energy_modeling.data.writers import write_forecast
from building_energy_modeling.models.forecasting import forecast
from building_energy_modeling.models.search import (
    ModelSearch,
    NoViableModelError,
    SearchGrid,
)
from building_energy_modeling.preprocessing.aggregation import (
    calculate_lagged_window_average
)
from building_energy_modeling.preprocessing.calendar_policy import (
    TrainingSeason,
    build_policy,
    parse_mmdd,
    parse_time_of_day,
    parse_working_days,
    working_weekdays_for_naics,
)
from building_energy_modeling.utils.logging import Logger
from building_energy_modeling.visualization.diagnostics import Plot


class ArgumentParser(argparse.ArgumentParser):
    """Argument parser exiting with the invalid command line code."""

    def error(self, message: str) -> NoReturn:
        self.print_usage(sys.stderr)
        self.exit(
            EXIT_INVALID_COMMAND_LINE, f"{self.prog}: error: {message}\n"
        )


def parse_args(argv: Optional[Sequence[str]] = None) -> argparse.Namespace:
    """Parse input arguments for the lag/window energy model."""
    parser = ArgumentParser(
        prog="lag-model",
        description=(
            "Fit a lag/window quadratic model of daily energy against "
            "outside air temperature and forecast from new temperatures"
        ),
    )
    parser.add_argument("training", type=Path, help="Training (main) file")
    parser.add_argument("forecast", type=Path, help="Forecast file")
    parser.add_argument("holidays", type=Path, help="Holiday file")
    parser.add_argument(
        "--debug",
        action="store_true",
        help="Debug output, same as --verbosity 2",
    )
    parser.add_argument(
        "--verbosity",
        type=int,
        default=VERBOSITY,
        choices=(0, 1, 2),
        help=(
            "Verbosity level: "
            "0 = warnings, "
            "1 = info, "
            "2 = debug"
        ),
    )
    parser.add_argument(
        "--working-week",
        type=parse_working_days,
        default=None,
        help="Working days as digits, 1 = Sunday, e.g. 23456",
    )
    parser.add_argument(
        "--workday-end",
        type=parse_time_of_day,
        default=None,
        help="End of the working day, e.g. 18:15",
    )
    parser.add_argument(
        "--training-start",
        type=parse_mmdd,
        default=None,
        help="First day of the training season as MMDD",
    )
    parser.add_argument(
        "--training-end",
        type=parse_mmdd,
        default=None,
        help="Last day of the training season as MMDD",
    )
    parser.add_argument(
        "--energy-threshold",
        type=float,
        default=None,
        help="Energy readings at or below this value are ignored",
    )
    parser.add_argument(
        "--supplementary",
        type=Path,
        default=None,
        help="Supplementary file fixing lag, season and working week",
    )
    parser.add_argument(
        "--n-jobs",
        type=int,
        default=N_JOBS,
        help="Parallel workers for the model search",
    )
    parser.add_argument(
        "--write-log",
        action="store_true",
        help="Append messages to log.txt instead of stderr",
    )
    parser.add_argument(
        "--log-dir",
        type=Path,
        default=LOG_DIR,
        help="Directory of log.txt",
    )
    parser.add_argument(
        "--plot-dir",
        type=Path,
        default=None,
        help="Save fit and search surface plots in this directory",
    )

    return parser.parse_args(argv)


def _season(
        args: argparse.Namespace,
        supp: Optional[SupplementaryConfig],
    ) -> TrainingSeason:
    default = supp.season if supp is not None else TrainingSeason()
    return TrainingSeason(
        args.training_start or default.start_mmdd,
        args.training_end or default.end_mmdd,
    )


def run(args: argparse.Namespace, log: Logger) -> int:
    """
    Train on the training file, forecast the forecast file and write the
    result beside it.

    Command line values override the supplementary file, which overrides
    built-in defaults.

    Returns
    -------
    int
        Process exit code.
    """
    inputs = [args.training, args.forecast, args.holidays]
    if args.supplementary is not None:
        inputs.append(args.supplementary)
    for path in inputs:
        if not path.is_file():
            log.error(f"File [{path}] does not exist")
            return EXIT_BAD_ARGS
    try:
        supp = (
            load_supplementary_file(args.supplementary, logger=log)
            if args.supplementary is not None else None
        )
        season = _season(args, supp)
        holidays = load_holiday_file(args.holidays, logger=log)
        training = load_training_file(
            args.training,
            season=season,
            energy_field=supp.energy_to_model if supp else None,
            logger=log,
        )
    except (LBNLFormatError, ValueError) as e:
        log.error(str(e))
        return EXIT_BAD_ARGS

    working_weekdays = args.working_week
    if working_weekdays is None:
        working_weekdays = (
            supp.working_weekdays if supp is not None
            else working_weekdays_for_naics(training.naics_code)
        )
    working_day_end = args.workday_end or (
        supp.working_day_end if supp is not None else DEFAULT_WORKDAY_END
    )
    energy_threshold = args.energy_threshold
    if energy_threshold is None:
        energy_threshold = (
            supp.energy_threshold if supp is not None
            else DEFAULT_ENERGY_THRESHOLD
        )
    try:
        policy = build_policy(
            [*holidays, *(supp.non_working_days if supp else [])],
            working_weekdays=working_weekdays,
            working_day_end=working_day_end,
            energy_threshold=energy_threshold,
        )
    except ValueError as e:
        log.error(str(e))
        return EXIT_INVALID_COMMAND_LINE
    try:
        grid = SearchGrid() if supp is None else SearchGrid.fixed_lag(
            supp.lag_hours,
            supp.min_window,
            supp.max_window,
            working_day_end,
            logger=log,
        )
    except ValueError as e:
        # Window sizes come from the supplementary file
        log.error(f"[{args.supplementary}]: {e}")
        return EXIT_BAD_ARGS
    log(
        f"Building [{training.building_id}]: working week "
        f"[{policy.describe_week()}], working day end "
        f"[{policy.working_day_end}], energy threshold "
        f"[{policy.energy_threshold}], {len(policy.non_working_days)} "
        "non-working day(s)",
        verbosity=0,
    )

    search = ModelSearch(policy, grid, n_jobs=args.n_jobs, logger=log)
    try:
        best = search.find_best_model(training.temperature, training.energy)
    except NoViableModelError as e:
        log.error(f"Model search failed, no forecast written: {e}")
        return EXIT_NO_MODEL

    try:
        forecast_input = load_forecast_file(
            args.forecast,
            temperature_field=training.temperature_field,
            logger=log,
        )
    except LBNLFormatError as e:
        log.error(str(e))
        return EXIT_BAD_ARGS
    predicted = forecast(best, forecast_input.temperature, policy)
    output = write_forecast(
        forecast_input, best, predicted, training.energy_field, logger=log
    )
    log(f"Forecast written to [{output}]", verbosity=0)

    if args.plot_dir is not None:
        plot_dir = args.plot_dir
        plot_dir.mkdir(parents=True, exist_ok=True)
        plot = Plot()
        avg_temp = calculate_lagged_window_average(
            training.temperature,
            policy,
            best.window_size_hours,
            best.lag_hours,
        )
        fit = plot.plot_fit(
            avg_temp, search.energy_for(best.energy_aggregation), best
        )
        surface = plot.plot_search_surface(search.candidates)
        for ax, name in ((fit, "fit"), (surface, "search_surface")):
            saved = Plot.save(
                ax, plot_dir / f"{training.building_id}_{name}.png"
            )
            log.info(f"Plot saved in: {saved}")
    return 0


def main(argv: Optional[Sequence[str]] = None) -> int:
    """
    Entry point of the ``lag-model`` command.

    Parses the command line, sets up logging and runs the training and
    forecast pipeline. Exit codes: ``0`` on success, ``0xA0`` for an
    invalid command line, ``0xA1`` for missing or malformed input files
    and ``1`` when no model could be fitted.
    """
    args = parse_args(argv)
    verbosity = 2 if args.debug else args.verbosity
    try:
        log = Logger(
            verbose=verbosity, log_dir=args.log_dir, write_log=args.write_log
        )
    except OSError as e:
        print(f"lag-model: error: {e}", file=sys.stderr)
        return EXIT_INVALID_COMMAND_LINE
    with log:
        return run(args, log)


if __name__ == "__main__":
    raise SystemExit(main())
