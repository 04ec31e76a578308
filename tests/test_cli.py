# -*- coding: utf-8 -*-
"""Tests for the opterra command line."""

import json

import pytest
import yaml
from typer.testing import CliRunner

from opterra._version import __version__
from opterra.cli.main import app
from opterra.risk.models import ALGORITHM_VERSION

runner = CliRunner()


@pytest.fixture
def failing_json(tmp_path, failing_tank_payload):
    path = tmp_path / "failing.json"
    path.write_text(json.dumps(failing_tank_payload), encoding="utf-8")
    return path


@pytest.fixture
def healthy_yaml(tmp_path, healthy_tank_payload):
    path = tmp_path / "healthy.yaml"
    path.write_text(yaml.safe_dump(healthy_tank_payload), encoding="utf-8")
    return path


class TestAssess:

    def test_table(self, failing_json):
        result = runner.invoke(app, ["assess", str(failing_json)])
        assert result.exit_code == 0
        assert "REPLACE" in result.output
        assert "Tank Failure Detected" in result.output

    def test_json(self, failing_json):
        result = runner.invoke(app, ["assess", str(failing_json), "--format", "json"])
        assert result.exit_code == 0
        data = json.loads(result.stdout)
        assert data["result"]["verdict"]["action"] == "REPLACE"
        assert data["result"]["metrics"]["health_score"] == 2
        assert data["result"]["algorithm_version"] == ALGORITHM_VERSION
        assert "schedule" not in data

    def test_json_with_schedule_and_projection(self, healthy_yaml):
        result = runner.invoke(
            app, ["assess", str(healthy_yaml), "-f", "json", "--schedule", "--projection"],
        )
        assert result.exit_code == 0
        data = json.loads(result.stdout)
        assert data["result"]["verdict"]["reason"] == "system_healthy"
        assert data["schedule"]["primary_task"] is not None
        assert data["infrastructure_tasks"] == []
        assert [p["months"] for p in data["projection"]] == [6, 12, 24, 36]

    def test_table_with_schedule(self, healthy_yaml):
        result = runner.invoke(app, ["assess", str(healthy_yaml), "--schedule"])
        assert result.exit_code == 0
        assert "Maintenance" in result.output

    def test_violation_banner(self, failing_json):
        result = runner.invoke(app, ["assess", str(failing_json), "--schedule"])
        assert result.exit_code == 0
        assert "CODE VIOLATION" in result.output
        assert "No maintenance scheduled" in result.output

    def test_default_format_from_env(self, failing_json, monkeypatch):
        monkeypatch.setenv("OPTERRA_RISK_OUTPUT_FORMAT", "json")
        result = runner.invoke(app, ["assess", str(failing_json)])
        assert json.loads(result.stdout)["result"]["verdict"]["action"] == "REPLACE"

    def test_missing_file(self, tmp_path):
        result = runner.invoke(app, ["assess", str(tmp_path / "nope.json")])
        assert result.exit_code == 1
        assert "not found" in result.output

    def test_unsupported_suffix(self, tmp_path):
        path = tmp_path / "unit.txt"
        path.write_text("calendar_age: 3", encoding="utf-8")
        result = runner.invoke(app, ["assess", str(path)])
        assert result.exit_code == 1
        assert "Unsupported input format" in result.output

    def test_non_mapping(self, tmp_path):
        path = tmp_path / "unit.json"
        path.write_text("[1, 2, 3]", encoding="utf-8")
        result = runner.invoke(app, ["assess", str(path)])
        assert result.exit_code == 1
        assert "mapping" in result.output

    @pytest.mark.parametrize(
        "name, text, message",
        [
            ("unit.json", '{"calendar_age": 3,', "Invalid JSON"),
            ("unit.json", "{calendar_age: [3]}", "Invalid JSON"),
            ("unit.yaml", "calendar_age: [3\nhouse_psi: 80\n", "Invalid YAML"),
            ("unit.yml", "a: b: c\n", "Invalid YAML"),
        ],
    )
    def test_malformed_file(self, tmp_path, name, text, message):
        path = tmp_path / name
        path.write_text(text, encoding="utf-8")
        result = runner.invoke(app, ["assess", str(path)])
        assert result.exit_code == 1
        assert message in result.output
        assert result.exception is None or isinstance(result.exception, SystemExit)

    def test_invalid_fields_listed(self, tmp_path):
        path = tmp_path / "unit.yaml"
        path.write_text("fuel_type: plasma\n", encoding="utf-8")
        result = runner.invoke(app, ["assess", str(path)])
        assert result.exit_code == 1
        assert "fuel_type" in result.output

    def test_bad_format(self, failing_json):
        result = runner.invoke(app, ["assess", str(failing_json), "--format", "xml"])
        assert result.exit_code == 2

    def test_hard_water_panel(self, failing_json):
        result = runner.invoke(app, ["assess", str(failing_json)])
        assert result.exit_code == 0
        assert "Hard water tax" in result.output
        assert "RECOMMEND" in result.output

    def test_hard_water_in_json(self, failing_json):
        result = runner.invoke(app, ["assess", str(failing_json), "-f", "json"])
        tax = json.loads(result.stdout)["result"]["hard_water_tax"]
        assert tax["hardness_gpg"] == 18.0
        assert tax["recommendation"] == "RECOMMEND"
        assert json.loads(result.stdout)["result"]["financial"] is None

    def test_financial_json(self, failing_json):
        result = runner.invoke(
            app,
            ["assess", str(failing_json), "-f", "json", "--financial", "--as-of", "2026-10-19"],
        )
        assert result.exit_code == 0
        plan = json.loads(result.stdout)["result"]["financial"]
        assert plan["as_of"] == "2026-10-19"
        assert plan["target_replacement_date"] == "2026-10-01"
        assert plan["months_until_target"] == 0
        assert plan["budget_urgency"] == "IMMEDIATE"
        assert plan["est_replacement_cost"] == 1900
        assert plan["recommendation"] == "Prepare for Replacement"

    def test_financial_table(self, healthy_yaml):
        result = runner.invoke(
            app, ["assess", str(healthy_yaml), "--financial", "--as-of", "2026-10-19"],
        )
        assert result.exit_code == 0
        assert "Replacement budget" in result.output
        assert "2026-10-19" in result.output

    def test_financial_defaults_to_today(self, healthy_yaml):
        result = runner.invoke(app, ["assess", str(healthy_yaml), "-f", "json", "--financial"])
        assert result.exit_code == 0
        assert json.loads(result.stdout)["result"]["financial"]["as_of"]

    def test_bad_as_of(self, healthy_yaml):
        result = runner.invoke(
            app, ["assess", str(healthy_yaml), "--financial", "--as-of", "19/10/2026"],
        )
        assert result.exit_code == 2
        assert "Invalid --as-of date" in result.output


class TestProject:

    def test_custom_months(self, healthy_yaml):
        result = runner.invoke(
            app, ["project", str(healthy_yaml), "-m", "60", "-m", "12", "-f", "json"],
        )
        assert result.exit_code == 0
        points = json.loads(result.stdout)
        assert [p["months"] for p in points] == [12, 60]
        assert points[0]["health_score"] >= points[1]["health_score"]

    def test_table(self, healthy_yaml):
        result = runner.invoke(app, ["project", str(healthy_yaml)])
        assert result.exit_code == 0
        assert "Projection" in result.output


class TestSimulate:

    def test_json(self, failing_json):
        result = runner.invoke(
            app, ["simulate", str(failing_json), "-r", "replace_tank", "-f", "json"],
        )
        assert result.exit_code == 0
        data = json.loads(result.stdout)
        assert data["new_score"] == 98
        assert data["repair_ids"] == ["replace_tank"]

    def test_table(self, healthy_yaml):
        result = runner.invoke(app, ["simulate", str(healthy_yaml), "--repair", "flush"])
        assert result.exit_code == 0
        assert "Repair simulation" in result.output

    def test_unknown_repair(self, healthy_yaml):
        result = runner.invoke(app, ["simulate", str(healthy_yaml), "-r", "gold_plating"])
        assert result.exit_code == 1
        assert "gold_plating" in result.output
        assert "Known repairs" in result.output


class TestRepairs:

    def test_json(self, failing_json):
        result = runner.invoke(app, ["repairs", str(failing_json), "-f", "json"])
        assert result.exit_code == 0
        assert [o["id"] for o in json.loads(result.stdout)] == ["replace_tank"]

    def test_none_needed(self, healthy_yaml):
        result = runner.invoke(app, ["repairs", str(healthy_yaml)])
        assert result.exit_code == 0
        assert "No repairs needed" in result.output


def test_version():
    result = runner.invoke(app, ["version"])
    assert result.exit_code == 0
    assert f"Opterra v{__version__}" in result.output
    assert ALGORITHM_VERSION in result.output


def test_verbose_flag(failing_json):
    result = runner.invoke(app, ["--verbose", "assess", str(failing_json), "-f", "json"])
    assert result.exit_code == 0
