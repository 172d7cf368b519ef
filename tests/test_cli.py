"""
Tests for the typer CLI.
"""

import json

from typer.testing import CliRunner

from intake.main import app

from conftest import slots_for

runner = CliRunner()


def test_version():
    result = runner.invoke(app, ["version"])
    assert result.exit_code == 0
    assert "1.0.0" in result.output


def test_match_reports_dayparts(tmp_path):
    path = tmp_path / "sm.json"
    path.write_text(json.dumps({"beschikbaarheid": slots_for("maandag", range(9, 14))}))

    result = runner.invoke(app, ["match", str(path), "--hours", "3"])

    assert result.exit_code == 0
    assert "maandag" in result.output
    assert "ja" in result.output


def test_match_without_grid_hours(tmp_path):
    path = tmp_path / "leeg.json"
    path.write_text(json.dumps(slots_for("maandag", [5, 6])))

    result = runner.invoke(app, ["match", str(path), "--hours", "1"])

    assert result.exit_code == 0
    assert "No availability" in result.output


def test_rank(tmp_path, sample_providers):
    path = tmp_path / "providers.json"
    path.write_text(json.dumps(sample_providers))

    result = runner.invoke(app, ["rank", str(path), "--lat", "52.09", "--lon", "5.12", "--hours", "3"])

    assert result.exit_code == 0
    assert "sm-1" in result.output
    assert "sm-3" not in result.output


def test_unreadable_file(tmp_path):
    result = runner.invoke(app, ["rank", str(tmp_path / "weg.json"), "--lat", "0", "--lon", "0"])
    assert result.exit_code == 1


def test_steps_lists_schemas():
    result = runner.invoke(app, ["steps"])
    assert result.exit_code == 0
    assert "abb_adres-form" in result.output
