"""Integration tests for the pyinterp CLI."""

import sys
from pathlib import Path

import pytest
import typer
from typer.testing import CliRunner

from pyinterp.cli.__main__ import app, parse_assignment
from pyinterp.version import VERSION

pytestmark = pytest.mark.integration

runner = CliRunner()


def test_run_scripts_and_get() -> None:
    result = runner.invoke(
        app,
        [
            "run",
            "--python",
            sys.executable,
            "--set",
            "xs=[1, 2, 3]",
            "total = sum(xs)",
            "print(total)",
            "--get",
            "total",
        ],
    )

    assert result.exit_code == 0, result.output
    assert "6\n" in result.output
    assert "total =" in result.output


def test_missing_interpreter(tmp_path: Path) -> None:
    result = runner.invoke(
        app, ["run", "--python", str(tmp_path / "no-such-python"), "print(1)"]
    )
    assert result.exit_code == 1


def test_version() -> None:
    result = runner.invoke(app, ["version"])

    assert result.exit_code == 0
    assert result.output.strip() == VERSION


def test_parse_assignment() -> None:
    assert parse_assignment("x={\"a\": 1}") == ("x", {"a": 1})
    assert parse_assignment("s=\"a=b\"") == ("s", "a=b")

    with pytest.raises(typer.BadParameter):
        parse_assignment("no-equals")
    with pytest.raises(typer.BadParameter):
        parse_assignment("x=not json")
