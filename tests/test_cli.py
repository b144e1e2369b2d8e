"""
Tests for the command-line interface.
"""

import json

import pytest
from typer.testing import CliRunner

from conftest import FIXTURES_DIR, make_program
from program_pipeline.cli import app
from program_pipeline.config import get_settings
from program_pipeline.database import SqlGenerationStore
from program_pipeline.schemas import UserProfile

runner = CliRunner()


@pytest.fixture(autouse=True)
def clean_settings(monkeypatch):
    """Run every command without an API key and with fresh settings."""
    monkeypatch.setenv("OPENAI_API_KEY", "")
    monkeypatch.setenv("LOG_LEVEL", "WARNING")
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


def test_analyze_profile():
    result = runner.invoke(app, ["analyze", "--profile", str(FIXTURES_DIR / "profile_intermediate.json")])

    assert result.exit_code == 0
    assert "Volume Landmarks" in result.output
    assert "benchToDeadlift" in result.output
    assert "Hypertrophy-Focused Block Periodization" in result.output


def test_validate_valid_program():
    result = runner.invoke(
        app, ["validate-program", "--program", str(FIXTURES_DIR / "program_valid.json")]
    )

    assert result.exit_code == 0
    assert "Program is valid" in result.output


def test_validate_invalid_program_exits_nonzero(tmp_path):
    program_path = tmp_path / "program.json"
    program_path.write_text(json.dumps(make_program(total_weeks=9)))

    result = runner.invoke(app, ["validate-program", "--program", str(program_path)])

    assert result.exit_code == 1
    assert "Program is invalid" in result.output


def test_validate_writes_report(tmp_path):
    report_dir = tmp_path / "reports"
    result = runner.invoke(
        app,
        [
            "validate-program",
            "--program",
            str(FIXTURES_DIR / "program_valid.json"),
            "--report-dir",
            str(report_dir),
            "--report-format",
            "json",
        ],
    )

    assert result.exit_code == 0
    reports = list(report_dir.glob("validation_*.json"))
    assert len(reports) == 1
    assert json.loads(reports[0].read_text())["program_name"] == "Foundations Hypertrophy Block"


def test_generate_without_api_key_fails(tmp_path):
    database_url = f"sqlite:///{tmp_path / 'pipeline.db'}"
    result = runner.invoke(
        app,
        [
            "generate",
            "--profile",
            str(FIXTURES_DIR / "profile_beginner.json"),
            "--database-url",
            database_url,
        ],
    )

    assert result.exit_code == 1
    assert "API key not set" in result.output


def test_status_of_existing_record(tmp_path):
    database_url = f"sqlite:///{tmp_path / 'pipeline.db'}"
    store = SqlGenerationStore.from_url(database_url)
    record_id = store.create_generation_record(UserProfile(user_id="user_cli"))

    result = runner.invoke(app, ["status", record_id, "--database-url", database_url])

    assert result.exit_code == 0
    assert "pending" in result.output
    assert "user_cli" in result.output


def test_status_of_unknown_record(tmp_path):
    database_url = f"sqlite:///{tmp_path / 'pipeline.db'}"
    result = runner.invoke(app, ["status", "missing", "--database-url", database_url])

    assert result.exit_code == 1
    assert "not found" in result.output
