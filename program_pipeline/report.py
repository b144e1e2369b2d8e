"""
Validation report export.

Renders Guardian results as JSON or Markdown for human review and audit.
"""

import json
from datetime import datetime
from pathlib import Path
from typing import Optional

from program_pipeline.schemas import ValidationResult


def validation_report_to_dict(
    result: ValidationResult, program_name: Optional[str] = None
) -> dict:
    """JSON-serializable report with a generation timestamp."""
    return {
        "program_name": program_name,
        "generated_at": datetime.now().isoformat(),
        **result.model_dump(mode="json"),
    }


def validation_report_to_markdown(
    result: ValidationResult, program_name: Optional[str] = None
) -> str:
    """
    Export a validation result as Markdown.

    Args:
        result: Guardian output
        program_name: Optional program name for the header

    Returns:
        Markdown-formatted report
    """
    lines = ["# Program Validation Report", ""]
    lines.append(f"**Timestamp:** {datetime.now().strftime('%Y-%m-%d %H:%M:%S')}")
    if program_name:
        lines.append(f"**Program:** {program_name}")
    lines.append(f"**Result:** **{'VALID' if result.is_valid else 'INVALID'}**")
    lines.append(f"**Errors:** {len(result.errors)} | **Warnings:** {len(result.warnings)}")
    lines.append("")
    lines.append("---")
    lines.append("")

    lines.append("## Errors")
    lines.append("")
    if not result.errors:
        lines.append("*No errors found*")
    for error in result.errors:
        lines.append(f"### [{error.severity.value}] {error.kind.value}")
        lines.append(f"- **Message:** {error.message}")
        if error.location:
            lines.append(f"- **Location:** {error.location}")
        if error.suggested_fix:
            lines.append(f"- **Suggested fix:** {error.suggested_fix}")
        lines.append("")
    lines.append("")

    lines.append("## Warnings")
    lines.append("")
    if not result.warnings:
        lines.append("*No warnings*")
    for warning in result.warnings:
        location = f" ({warning.location})" if warning.location else ""
        lines.append(f"- **{warning.kind.value}:** {warning.message}{location}")
    lines.append("")

    return "\n".join(lines)


def save_validation_report(
    result: ValidationResult,
    output_dir: Path,
    fmt: str = "markdown",
    program_name: Optional[str] = None,
) -> Path:
    """
    Write a validation report to disk.

    Args:
        result: Guardian output
        output_dir: Directory to write into (created if missing)
        fmt: "markdown" or "json"
        program_name: Optional program name

    Returns:
        Path of the written file

    Raises:
        ValueError: If fmt is not supported
    """
    if fmt not in ("markdown", "json"):
        raise ValueError(f"Unsupported report format: {fmt}")

    output_dir.mkdir(parents=True, exist_ok=True)
    timestamp = datetime.now().strftime("%Y%m%d_%H%M%S")

    if fmt == "json":
        path = output_dir / f"validation_{timestamp}.json"
        with open(path, "w") as f:
            json.dump(validation_report_to_dict(result, program_name), f, indent=2)
    else:
        path = output_dir / f"validation_{timestamp}.md"
        with open(path, "w") as f:
            f.write(validation_report_to_markdown(result, program_name))

    return path
