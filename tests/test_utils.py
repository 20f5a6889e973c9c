"""Tests for logging, path and environment helpers."""

import pytest

from building_energy_modeling.config.env import fetch_int, fetch_var
from building_energy_modeling.utils.logging import Logger
from building_energy_modeling.utils.paths import validate_address


class TestLogger:
    def test_verbosity_threshold(self, capsys):
        log = Logger(verbose=1)
        log.info("shown")
        log.debug("hidden")
        err = capsys.readouterr().err
        assert "-[INFO] shown" in err
        assert "hidden" not in err

    def test_write_log(self, tmp_path, capsys):
        log = Logger(verbose=0, log_dir=tmp_path / "logs", write_log=True)
        log.warning("to file")
        assert capsys.readouterr().err == ""
        assert "-[WARNING] to file" in (tmp_path / "logs" / "log.txt").read_text()

    def test_missing_dir_ignored_without_write_log(self, tmp_path, capsys):
        log_dir = tmp_path / "absent"
        log = Logger(verbose=0, log_dir=log_dir)
        log.warning("to stderr")
        assert not log_dir.exists()
        assert "-[WARNING] to stderr" in capsys.readouterr().err

    def test_context_logs_exception(self, capsys):
        with pytest.raises(KeyError):
            with Logger(verbose=0):
                raise KeyError("boom")
        assert "[ERROR] KeyError" in capsys.readouterr().err


class TestValidateAddress:
    def test_missing_file(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            validate_address(tmp_path / "absent.csv")

    def test_missing_parent(self, tmp_path):
        with pytest.raises(NotADirectoryError):
            validate_address(tmp_path / "no" / "file.csv", mode="w")

    def test_any_extension(self, tmp_path):
        path = tmp_path / "input.dat"
        path.write_text("x")
        assert validate_address(path, extension=None) == path

    def test_write_renames_existing(self, tmp_path):
        path = tmp_path / "out.csv"
        path.write_text("x")
        renamed = validate_address(path, mode="w")
        assert renamed != path
        assert renamed.stem.startswith("out_")

    def test_exclusive(self, tmp_path):
        path = tmp_path / "out.csv"
        path.write_text("x")
        with pytest.raises(FileExistsError):
            validate_address(path, mode="x")


class TestEnv:
    def test_fetch_var_default(self, monkeypatch):
        monkeypatch.delenv("LAG_MODEL_TEST_VAR", raising=False)
        assert fetch_var("LAG_MODEL_TEST_VAR", "fallback") == "fallback"

    def test_empty_var_is_an_error(self, monkeypatch):
        monkeypatch.setenv("LAG_MODEL_TEST_VAR", "  ")
        with pytest.raises(RuntimeError):
            fetch_var("LAG_MODEL_TEST_VAR")

    def test_fetch_int(self, monkeypatch):
        monkeypatch.setenv("LAG_MODEL_TEST_VAR", "4")
        assert fetch_int("LAG_MODEL_TEST_VAR", 1) == 4
        monkeypatch.setenv("LAG_MODEL_TEST_VAR", "four")
        with pytest.raises(RuntimeError):
            fetch_int("LAG_MODEL_TEST_VAR", 1)
