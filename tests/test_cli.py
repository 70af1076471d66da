"""Tests for the click command line in __main__.py."""

import logging

import pytest
from click.testing import CliRunner

from wakasync.__main__ import cli
from wakasync.sessions import project_identifier

ROWS = [
    ("alice", "webapp", "2024-01-15 10:00:00+00:00"),
    ("alice", "webapp", "2024-01-15 10:04:00+00:00"),
    ("alice", "cli", "2024-01-15 14:00:00+00:00"),
    ("bob", "other", "2024-01-15 15:00:00+00:00"),
]

RANGE = ["--from", "2024-01-15", "--to", "2024-01-15", "--tz", "UTC"]


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    for name in ("SOLIDTIME_URL", "SOLIDTIME_API_KEY", "SOLIDTIME_ORGANIZATION_ID",
                 "SOLIDTIME_MEMBER_ID", "WAKAPI_USER", "WAKASYNC_TZ"):
        monkeypatch.delenv(name, raising=False)
    yield
    # Handlers bound to one runner's streams must not leak into the next test.
    logger = logging.getLogger("wakasync")
    for handler in list(logger.handlers):
        logger.removeHandler(handler)


@pytest.fixture
def runner():
    return CliRunner()


class TestExport:
    def test_mock_remote_export(self, runner, wakapi_db):
        db = wakapi_db(ROWS)
        result = runner.invoke(cli, ["export", *RANGE, "--db", str(db), "--mock-remote"])

        assert result.exit_code == 0, result.output
        assert "Done. 4 heartbeats, 3 sessions, 3 to create, 3 created, 0 already exported." in result.output

    def test_user_filter(self, runner, wakapi_db):
        db = wakapi_db(ROWS)
        result = runner.invoke(cli, ["export", *RANGE, "--db", str(db), "--user", "alice", "--mock-remote"])

        assert result.exit_code == 0, result.output
        assert "3 heartbeats, 2 sessions" in result.output

    def test_dry_run_lists_planned_sessions(self, runner, wakapi_db):
        db = wakapi_db(ROWS)
        result = runner.invoke(cli, ["export", *RANGE, "--db", str(db), "--mock-remote", "--dry-run"])

        assert result.exit_code == 0, result.output
        assert "Would create:" in result.output
        assert "2024-01-15 10:00:00 - 10:04:00 | 0d 0h 4m 0s | webapp" in result.output
        assert "3 to create, 0 created" in result.output
        assert "This was a dry run" in result.output

    def test_missing_solidtime_settings(self, runner, wakapi_db):
        db = wakapi_db(ROWS)
        result = runner.invoke(cli, ["export", *RANGE, "--db", str(db)])

        assert result.exit_code == 1
        assert "SOLIDTIME_URL" in result.output
        assert "SOLIDTIME_API_KEY" in result.output

    def test_missing_database(self, runner, tmp_path):
        result = runner.invoke(cli, ["export", *RANGE, "--db", str(tmp_path / "nope.db"), "--mock-remote"])

        assert result.exit_code == 1
        assert "Wakapi database not found" in result.output

    def test_bad_date(self, runner, wakapi_db):
        db = wakapi_db(ROWS)
        result = runner.invoke(
            cli, ["export", "--from", "15.01.2024", "--to", "2024-01-15", "--db", str(db), "--mock-remote"]
        )

        assert result.exit_code == 1
        assert "Use YYYY-MM-DD" in result.output

    def test_from_and_to_required(self, runner):
        result = runner.invoke(cli, ["export", "--mock-remote"])
        assert result.exit_code == 2


class TestReport:
    def test_prints_sessions(self, runner, wakapi_db):
        db = wakapi_db(ROWS)
        result = runner.invoke(cli, ["report", *RANGE, "--db", str(db)])

        assert result.exit_code == 0, result.output
        assert "(3 sessions)" in result.output
        assert "| webapp" in result.output
        assert "Total: 0d 0h 4m 0s" in result.output

    def test_per_day_and_min_duration(self, runner, wakapi_db):
        db = wakapi_db(ROWS)
        result = runner.invoke(cli, ["report", *RANGE, "--db", str(db), "--per-day", "--min-duration", "60"])

        assert result.exit_code == 0, result.output
        assert "(1 sessions)" in result.output


class TestProjects:
    def test_lists_projects_with_identifiers(self, runner, wakapi_db):
        db = wakapi_db(ROWS)
        result = runner.invoke(cli, ["projects", *RANGE, "--db", str(db)])

        assert result.exit_code == 0, result.output
        assert f"[{project_identifier('webapp')}] webapp" in result.output
        assert "3 projects." in result.output
