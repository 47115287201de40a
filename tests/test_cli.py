"""Tests for CLI commands."""

from __future__ import annotations

import json
import logging

import pytest
from typer.testing import CliRunner

from fithouse.cli import app
from fithouse.config.settings import CONFIG_ENV_VAR, reload_settings
from fithouse.db import DatabaseConnection, set_db
from fithouse.store import Store

runner = CliRunner()


@pytest.fixture(autouse=True)
def cli_env(tmp_path, monkeypatch):
    """Point the CLI at a throwaway database and config file."""
    monkeypatch.setenv(CONFIG_ENV_VAR, str(tmp_path / "config.yaml"))
    reload_settings()
    set_db(DatabaseConnection(tmp_path / "fithouse.db"))
    # Keep configure_logging from binding a handler to the runner's stream
    logging.getLogger("fithouse").handlers = [logging.NullHandler()]

    yield tmp_path

    set_db(None)


def invoke_json(*args: str) -> dict:
    result = runner.invoke(app, [*args, "--json"])
    assert result.exit_code == 0, result.output
    return json.loads(result.output)


class TestMainCommands:
    """Tests for main CLI commands."""

    def test_help(self):
        """Test that --help works."""
        result = runner.invoke(app, ["--help"])
        assert result.exit_code == 0
        assert "fithouse" in result.output.lower() or "calorie" in result.output.lower()

    def test_today_defaults(self):
        """Test today on a fresh database."""
        response = invoke_json("today")
        assert response["success"] is True
        assert response["command"] == "today"
        data = response["data"]
        assert data["items"] == []
        assert data["total_calories"] == 0
        assert data["deficit"] == data["tdee"]
        assert data["band"] == "green"


class TestItemCommands:
    """Tests for item and weight subcommands."""

    def test_item_add_and_remove(self):
        """Test that items persist between invocations."""
        result = runner.invoke(app, ["item", "add", "Pasta", "--points", "8"])
        assert result.exit_code == 0
        result = runner.invoke(app, ["item", "add", "Run", "--points=-3"])
        assert result.exit_code == 0

        data = invoke_json("today")["data"]
        assert data["items"] == [
            {"name": "Pasta", "points": 8},
            {"name": "Run", "points": -3},
        ]
        assert data["total_calories"] == 500

        result = runner.invoke(app, ["item", "remove", "0"])
        assert result.exit_code == 0
        assert invoke_json("today")["data"]["items"] == [{"name": "Run", "points": -3}]

    def test_item_add_default_name(self):
        """Test that an unnamed item gets a numbered name."""
        runner.invoke(app, ["item", "add"])
        assert invoke_json("today")["data"]["items"] == [{"name": "Item 1", "points": 1}]

    def test_item_add_invalid_points(self):
        """Test that non-numeric points fail without changing state."""
        result = runner.invoke(app, ["item", "add", "Cake", "--points", "lots"])
        assert result.exit_code == 1
        assert "Invalid points" in result.output
        assert invoke_json("today")["data"]["items"] == []

    def test_weight_set(self):
        """Test setting today's weight."""
        result = runner.invoke(app, ["weight", "set", "86.4"])
        assert result.exit_code == 0
        assert invoke_json("today")["data"]["weight"] == 86.4

    def test_weight_set_invalid(self):
        """Test that a non-numeric weight fails."""
        result = runner.invoke(app, ["weight", "set", "heavy"])
        assert result.exit_code == 1


class TestDayAndHistoryCommands:
    """Tests for day and history subcommands."""

    def test_day_log(self):
        """Test that logging the day moves items into history."""
        runner.invoke(app, ["item", "add", "Lunch", "--points", "6"])
        runner.invoke(app, ["weight", "set", "86"])

        result = runner.invoke(app, ["day", "log", "--yes"])
        assert result.exit_code == 0
        assert "Day logged!" in result.output

        assert invoke_json("today")["data"]["items"] == []
        [entry] = invoke_json("history", "list")["data"]["entries"]
        assert entry["weight"] == 86.0
        assert entry["total_points"] == 6
        assert entry["calories"] == 600
        assert invoke_json("profile", "show")["data"]["currentWeight"] == 86.0

    def test_day_log_declined(self):
        """Test that answering no leaves the day in progress."""
        runner.invoke(app, ["item", "add", "Lunch", "--points", "6"])
        result = runner.invoke(app, ["day", "log"], input="n\n")
        assert result.exit_code != 0
        assert invoke_json("history", "list")["data"]["entries"] == []

    def test_history_add_list_delete(self):
        """Test manual history entries, newest first, and deletion by ID."""
        result = runner.invoke(
            app, ["history", "add", "2026-01-20", "--weight", "86.5", "--points", "18"]
        )
        assert result.exit_code == 0
        assert "Entry Added/Updated" in result.output
        runner.invoke(app, ["history", "add", "2026-01-22", "-w", "86.1", "-p", "12"])

        entries = invoke_json("history", "list")["data"]["entries"]
        assert [e["date"] for e in entries] == ["2026-01-22", "2026-01-20"]
        assert entries[1]["deficit"] == entries[1]["tdee"] - 1800

        result = runner.invoke(app, ["history", "delete", str(entries[0]["id"])])
        assert result.exit_code == 0
        entries = invoke_json("history", "list")["data"]["entries"]
        assert [e["date"] for e in entries] == ["2026-01-20"]

    def test_history_add_replaces_same_date(self):
        """Test that a second entry for a date replaces the first."""
        runner.invoke(app, ["history", "add", "2026-01-20", "-w", "86.5", "-p", "18"])
        runner.invoke(app, ["history", "add", "2026-01-20", "-w", "86.0", "-p", "10"])
        [entry] = invoke_json("history", "list")["data"]["entries"]
        assert entry["weight"] == 86.0
        assert entry["total_points"] == 10

    def test_history_add_invalid_date(self):
        """Test that a malformed date fails."""
        result = runner.invoke(app, ["history", "add", "20/01/2026", "-w", "86", "-p", "1"])
        assert result.exit_code == 1

    def test_history_delete_unknown(self):
        """Test that deleting an unknown ID fails."""
        result = runner.invoke(app, ["history", "delete", "12345"])
        assert result.exit_code == 1
        assert "No log with ID" in result.output


class TestProfileAndSettingsCommands:
    """Tests for profile and settings subcommands."""

    def test_profile_update(self):
        """Test updating profile fields."""
        result = runner.invoke(
            app, ["profile", "update", "--age", "41", "--gender", "female", "--target-date", "2026-06-30"]
        )
        assert result.exit_code == 0
        assert "Profile updated" in result.output

        data = invoke_json("profile", "show")["data"]
        assert data["age"] == 41
        assert data["gender"] == "female"
        assert data["targetDate"] == "2026-06-30"
        assert data["height"] == 175

    def test_profile_update_nothing(self):
        """Test that update without options fails."""
        result = runner.invoke(app, ["profile", "update"])
        assert result.exit_code == 1

    def test_profile_update_invalid_date(self):
        """Test that a bad date rejects the whole update."""
        result = runner.invoke(app, ["profile", "update", "--age", "41", "--start-date", "soon"])
        assert result.exit_code == 1
        assert invoke_json("profile", "show")["data"]["age"] == 30

    def test_settings_update(self):
        """Test updating settings."""
        result = runner.invoke(app, ["settings", "update", "--no-color", "--green", "650"])
        assert result.exit_code == 0

        data = invoke_json("settings", "show")["data"]
        assert data["useColorCoding"] is False
        assert data["deficitGreen"] == 650
        assert data["deficitYellow"] == 300

        assert invoke_json("today")["data"]["band"] is None

    def test_settings_update_rejected(self, monkeypatch):
        """Test that a rejected update is reported, not announced as saved."""
        monkeypatch.setattr(Store, "update_settings", lambda self, **fields: False)
        result = runner.invoke(app, ["settings", "update", "--green", "650"])
        assert result.exit_code == 1
        assert "Invalid settings values" in result.output
        assert "Settings updated" not in result.output


class TestChartCommand:
    """Tests for the chart command."""

    def test_chart_json(self):
        """Test one point per plan day for the default profile."""
        data = invoke_json("chart")["data"]
        assert len(data["labels"]) == 137
        assert data["labels"][0] == "2026-01-15"
        assert data["labels"][-1] == "2026-05-31"
        assert data["goal"][0] == 88.0
        assert data["goal"][-1] == 80.0
        assert all(value is None for value in data["actual"])

    def test_chart_table(self):
        """Test the table rendering."""
        result = runner.invoke(app, ["chart", "--step", "30"])
        assert result.exit_code == 0
        assert "Weight Trajectory" in result.output


class TestBackupCommands:
    """Tests for export, import and reset."""

    def test_export_reset_import(self, cli_env):
        """Test that a backup restores data after a reset."""
        runner.invoke(app, ["history", "add", "2026-01-20", "-w", "86.5", "-p", "18"])
        runner.invoke(app, ["profile", "update", "--age", "41"])

        result = runner.invoke(app, ["export", "--dir", str(cli_env / "backups")])
        assert result.exit_code == 0
        [backup] = list((cli_env / "backups").glob("fithouse_backup_*.json"))
        assert json.loads(backup.read_text())["profile"]["age"] == 41

        result = runner.invoke(app, ["reset", "--yes"])
        assert result.exit_code == 0
        assert "Database reset." in result.output
        assert invoke_json("history", "list")["data"]["entries"] == []

        result = runner.invoke(app, ["import", str(backup)])
        assert result.exit_code == 0
        assert "Data loaded successfully!" in result.output
        assert invoke_json("profile", "show")["data"]["age"] == 41
        assert len(invoke_json("history", "list")["data"]["entries"]) == 1

    def test_import_invalid(self, cli_env):
        """Test that a corrupt backup fails and keeps existing data."""
        runner.invoke(app, ["profile", "update", "--age", "41"])
        bad = cli_env / "bad.json"
        bad.write_text("{not json")

        result = runner.invoke(app, ["import", str(bad)])
        assert result.exit_code == 1
        assert "Failed to load data." in result.output
        assert invoke_json("profile", "show")["data"]["age"] == 41

    def test_import_not_utf8(self, cli_env):
        """Test that an undecodable backup fails cleanly."""
        runner.invoke(app, ["profile", "update", "--age", "41"])
        bad = cli_env / "binary.json"
        bad.write_bytes(b"\xff\xfe{not json")

        result = runner.invoke(app, ["import", str(bad)])
        assert result.exit_code == 1
        assert not isinstance(result.exception, UnicodeDecodeError)
        assert "Failed to load data." in result.output
        assert invoke_json("profile", "show")["data"]["age"] == 41

    def test_import_requires_existing_file(self, cli_env):
        """Test that import rejects a missing path."""
        result = runner.invoke(app, ["import", str(cli_env / "missing.json")])
        assert result.exit_code != 0
