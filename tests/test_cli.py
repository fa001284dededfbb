"""Tests for the mathlearn-seed CLI."""

import json

import pytest
from typer.testing import CliRunner

from mathlearn.cli import app
from mathlearn.models import Lesson, User

runner = CliRunner()


@pytest.fixture
def seed_config(tmp_path):
    data = tmp_path / "data"
    data.mkdir()
    (data / "users.json").write_text(json.dumps([
        {"id": "1", "email": "demo@mathlearn.com", "password": "DemoPass123"},
    ]))
    (data / "lessons.json").write_text(json.dumps([
        {"id": "lesson-1", "title": "Basic Arithmetic", "order": 1},
    ]))
    config = {
        "version": "cli-test",
        "description": "CLI test data",
        "seedOrder": [
            {"table": "users", "file": "users.json", "description": "Users", "dependencies": [],
             "requiredFields": ["email"], "hashFields": ["password"]},
            {"table": "lessons", "file": "lessons.json", "description": "Lesson catalogue",
             "dependencies": [], "requiredFields": ["id", "title", "order"]},
        ],
        "settings": {"saltRounds": 4, "skipExisting": False, "logLevel": "warn"},
    }
    path = tmp_path / "seed-config.json"
    path.write_text(json.dumps(config))
    return path


@pytest.fixture
def cli_db(db_session, monkeypatch):
    """Route the CLI's sessions to the test database."""
    monkeypatch.setattr("mathlearn.cli.SessionLocal", lambda: db_session)
    return db_session


class TestSeedCommands:
    def test_no_command_seeds_everything(self, cli_db, seed_config):
        result = runner.invoke(app, ["--config", str(seed_config)])

        assert result.exit_code == 0, result.output
        assert "Database seeded" in result.output
        assert cli_db.query(User).count() == 1
        assert cli_db.query(Lesson).count() == 1

    def test_list(self, cli_db, seed_config):
        result = runner.invoke(app, ["--config", str(seed_config), "list"])

        assert result.exit_code == 0
        assert "users" in result.output
        assert "Lesson catalogue" in result.output

    def test_table(self, cli_db, seed_config):
        result = runner.invoke(app, ["--config", str(seed_config), "table", "lessons"])

        assert result.exit_code == 0
        assert cli_db.query(Lesson).count() == 1
        assert cli_db.query(User).count() == 0

    def test_unknown_table_fails(self, cli_db, seed_config):
        result = runner.invoke(app, ["--config", str(seed_config), "table", "widgets"])

        assert result.exit_code == 1
        assert "Available tables" in result.output

    def test_clean_and_reset(self, cli_db, seed_config):
        runner.invoke(app, ["--config", str(seed_config)])

        cleaned = runner.invoke(app, ["--config", str(seed_config), "clean"])
        assert cleaned.exit_code == 0
        assert cli_db.query(Lesson).count() == 0
        assert cli_db.query(User).count() == 1

        reset = runner.invoke(app, ["--config", str(seed_config), "reset"])
        assert reset.exit_code == 0
        assert cli_db.query(Lesson).count() == 1

    def test_connection(self, cli_db, seed_config):
        result = runner.invoke(app, ["--config", str(seed_config), "test"])

        assert result.exit_code == 0
        assert "connection OK" in result.output

    def test_missing_config_exits_1(self, cli_db, tmp_path):
        result = runner.invoke(app, ["--config", str(tmp_path / "missing.json")])

        assert result.exit_code == 1

    def test_bad_log_level_exits_1(self, cli_db, seed_config):
        config = json.loads(seed_config.read_text())
        config["settings"]["logLevel"] = "chatty"
        seed_config.write_text(json.dumps(config))

        result = runner.invoke(app, ["--config", str(seed_config)])

        assert result.exit_code == 1
        assert "Invalid settings" in result.output
