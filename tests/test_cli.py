"""Tests for the ``lag-model`` command line."""

import pytest

from building_energy_modeling.cli import main, parse_args
from building_energy_modeling.config.constants import (
    EXIT_BAD_ARGS,
    EXIT_INVALID_COMMAND_LINE,
    EXIT_NO_MODEL,
)
from building_energy_modeling.data.loaders import load_forecast_file


def arguments(files, *extra):
    return [
        str(files["training"]),
        str(files["forecast"]),
        str(files["holidays"]),
        *extra,
    ]


def outputs(files):
    return sorted(files["dir"].glob("*.forecast.csv"))


class TestParseArgs:
    def test_defaults(self, lbnl_files):
        args = parse_args(arguments(lbnl_files))
        assert args.supplementary is None
        assert args.working_week is None
        assert not args.debug

    def test_missing_positional_is_invalid_command_line(self):
        with pytest.raises(SystemExit) as info:
            parse_args(["training.csv"])
        assert info.value.code == EXIT_INVALID_COMMAND_LINE

    def test_bad_working_week_is_invalid_command_line(self, lbnl_files):
        with pytest.raises(SystemExit) as info:
            parse_args(arguments(lbnl_files, "--working-week", "289"))
        assert info.value.code == EXIT_INVALID_COMMAND_LINE


class TestMain:
    def test_full_run_writes_forecast(self, lbnl_files):
        assert main(arguments(lbnl_files)) == 0
        written = outputs(lbnl_files)
        assert len(written) == 1
        text = written[0].read_text(encoding="utf-8")
        assert text.startswith("# Model type: [")
        assert "TIME.LOCAL,DBOAT.F,WBELECTRICITY.KWH" in text
        forecast = load_forecast_file(written[0])
        assert len(forecast.temperature) == 5 * 96

    def test_missing_file(self, lbnl_files):
        lbnl_files["holidays"].unlink()
        assert main(arguments(lbnl_files)) == EXIT_BAD_ARGS
        assert outputs(lbnl_files) == []

    def test_malformed_training_file(self, lbnl_files):
        lbnl_files["training"].write_text("ZIP\n94720\n", encoding="utf-8")
        assert main(arguments(lbnl_files)) == EXIT_BAD_ARGS

    def test_no_viable_model_writes_nothing(self, lbnl_files):
        # Everything at or below the threshold leaves no energy to fit
        code = main(arguments(lbnl_files, "--energy-threshold", "1e9"))
        assert code == EXIT_NO_MODEL
        assert outputs(lbnl_files) == []

    def test_supplementary_fixes_lag(self, lbnl_files, capsys):
        supp = lbnl_files["dir"] / "supp.csv"
        supp.write_text(
            "BUILDINGID,LAGWINDOW,WORKINGDAYS,ENERGYTOMODEL,"
            "TRAININGSEASONSTARTDATE,TRAININGSEASONENDDATE,MAXWINDOWSIZE\n"
            "B1,0.5,23456,WBELECTRICITY.KWH,0101,1231,12\n",
            encoding="utf-8",
        )
        code = main(arguments(
            lbnl_files, "--supplementary", str(supp), "--verbosity", "1"
        ))
        assert code == 0
        assert "Searching 8 lag/window combination(s)" in capsys.readouterr().err
        text = outputs(lbnl_files)[0].read_text(encoding="utf-8")
        assert "# Lag: [0.5] hours" in text

    def test_plots_and_log_file(self, lbnl_files, tmp_path):
        plot_dir = tmp_path / "plots"
        log_dir = tmp_path / "logs"
        code = main(arguments(
            lbnl_files,
            "--plot-dir", str(plot_dir),
            "--write-log",
            "--log-dir", str(log_dir),
        ))
        assert code == 0
        assert sorted(p.name for p in plot_dir.glob("*.png")) == [
            "B1_fit.png", "B1_search_surface.png"
        ]
        assert "Forecast written to" in (log_dir / "log.txt").read_text()

    def test_supplementary_window_range_past_midnight(self, lbnl_files):
        # An 8 hour lag leaves 10 hours before 18:00, less than the minimum
        supp = lbnl_files["dir"] / "supp.csv"
        supp.write_text(
            "BUILDINGID,LAGWINDOW,WORKINGDAYS,ENERGYTOMODEL,"
            "TRAININGSEASONSTARTDATE,TRAININGSEASONENDDATE,MINWINDOWSIZE\n"
            "B1,8,23456,WBELECTRICITY.KWH,0101,1231,12\n",
            encoding="utf-8",
        )
        code = main(arguments(lbnl_files, "--supplementary", str(supp)))
        assert code == EXIT_BAD_ARGS
        assert outputs(lbnl_files) == []
