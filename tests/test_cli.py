"""Tests for the command-line interface."""

import json

import pytest
from click.testing import CliRunner

from odeforge import __version__
from odeforge.cli import main


@pytest.fixture
def runner():
    return CliRunner()


@pytest.fixture
def square_csv(tmp_path):
    path = tmp_path / "square.csv"
    path.write_text("time,position\n0,0\n1,1\n2,4\n3,9\n")
    return path


class TestCLI:
    """Test CLI commands."""

    def test_version(self, runner):
        result = runner.invoke(main, ["--version"])
        assert result.exit_code == 0
        assert __version__ in result.output

    def test_run(self, runner, square_csv, tmp_path):
        output = tmp_path / "result.json"

        result = runner.invoke(
            main,
            [
                "run", str(square_csv),
                "--population", "20",
                "--generations", "2",
                "--max-depth", "4",
                "--seed", "3",
                "--output", str(output),
            ],
        )

        assert result.exit_code == 0, result.output
        assert "Best fit: x' =" in result.output
        assert "gen    2" in result.output

        saved = json.loads(output.read_text())
        assert saved["formula"]
        assert saved["n_generations"] == 2
        assert len(saved["generation_stats"]) == 3

    def test_run_invalid_data(self, runner, tmp_path):
        path = tmp_path / "bad.csv"
        path.write_text("time,position\n0,0\n1,1\n1,2\n")

        result = runner.invoke(main, ["run", str(path)])

        assert result.exit_code == 1
        assert "Invalid data" in result.output

    def test_run_empty_csv(self, runner, tmp_path):
        path = tmp_path / "empty.csv"
        path.write_text("")

        result = runner.invoke(main, ["run", str(path)])

        assert result.exit_code == 1
        assert "Invalid data" in result.output
        assert result.exception is None or isinstance(result.exception, SystemExit)

    def test_run_show_top(self, runner, square_csv):
        result = runner.invoke(
            main,
            [
                "run", str(square_csv),
                "--population", "20",
                "--generations", "1",
                "--max-depth", "4",
                "--seed", "3",
                "--show-top", "3",
            ],
        )

        assert result.exit_code == 0, result.output
        assert "       1. fitness=" in result.output
        assert "       3. fitness=" in result.output
        assert "       4. fitness=" not in result.output

    def test_show_top_out_of_range(self, runner, square_csv):
        result = runner.invoke(main, ["run", str(square_csv), "--show-top", "11"])
        assert result.exit_code == 2

    def test_run_missing_column(self, runner, square_csv):
        result = runner.invoke(main, ["run", str(square_csv), "--time-column", "t"])

        assert result.exit_code == 1
        assert "Missing columns" in result.output

    def test_run_invalid_operator(self, runner, square_csv):
        result = runner.invoke(main, ["run", str(square_csv), "--operators", "add,foo"])

        assert result.exit_code == 1
        assert "Invalid configuration" in result.output

    def test_operators(self, runner):
        result = runner.invoke(main, ["operators"])

        assert result.exit_code == 0
        assert "add" in result.output
        assert "tan" in result.output
