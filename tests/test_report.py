"""
Tests for validation report export.
"""

import json

import pytest

from conftest import make_program
from program_pipeline.guardian import GuardianValidator
from program_pipeline.report import (
    save_validation_report,
    validation_report_to_dict,
    validation_report_to_markdown,
)


@pytest.fixture
def invalid_result():
    program = make_program(total_weeks=9)
    program["phases"][0]["weeks"][0]["days"][0]["exercises"][0]["isAnchorLift"] = False
    program["phases"][0]["weeks"][0]["days"][0]["exercises"][0]["tier"] = "Primary"
    return GuardianValidator().validate(program)


def test_markdown_for_valid_program(valid_program):
    result = GuardianValidator().validate(valid_program)
    markdown = validation_report_to_markdown(result, "Foundations Hypertrophy Block")

    assert markdown.startswith("# Program Validation Report")
    assert "**Program:** Foundations Hypertrophy Block" in markdown
    assert "**Result:** **VALID**" in markdown
    assert "*No errors found*" in markdown
    assert "*No warnings*" in markdown


def test_markdown_lists_errors_with_fixes(invalid_result):
    markdown = validation_report_to_markdown(invalid_result)

    assert "**Result:** **INVALID**" in markdown
    assert "### [HIGH] STRUCTURAL" in markdown
    assert "### [HIGH] SCIENTIFIC" in markdown
    assert "- **Location:** Phase 1, Week 1, Monday" in markdown
    assert "- **Suggested fix:** Ensure phase durations sum to total program duration" in markdown
    assert "**Program:**" not in markdown


def test_report_dict_is_json_ready(invalid_result):
    report = validation_report_to_dict(invalid_result, "Test Program")

    assert report["program_name"] == "Test Program"
    assert report["is_valid"] is False
    assert report["errors"][0]["severity"] in ("HIGH", "MEDIUM")
    assert "generated_at" in report
    json.dumps(report)


def test_save_markdown_report(tmp_path, invalid_result):
    path = save_validation_report(invalid_result, tmp_path / "reports")

    assert path.suffix == ".md"
    assert path.parent == tmp_path / "reports"
    assert "INVALID" in path.read_text()


def test_save_json_report(tmp_path, invalid_result):
    path = save_validation_report(invalid_result, tmp_path, fmt="json", program_name="Test Program")

    assert path.suffix == ".json"
    data = json.loads(path.read_text())
    assert data["program_name"] == "Test Program"
    assert len(data["errors"]) == 2


def test_save_rejects_unknown_format(tmp_path, invalid_result):
    with pytest.raises(ValueError, match="Unsupported report format"):
        save_validation_report(invalid_result, tmp_path, fmt="html")
