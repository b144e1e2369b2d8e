"""
Command-line interface for the program pipeline.

Provides commands for:
- Previewing enrichment, volume landmarks, weak points and periodization
- Validating a program JSON file with the Guardian
- Running the full generation pipeline against the configured database
- Inspecting generation records
"""

import json
from pathlib import Path
from typing import Optional

import typer
from rich import box
from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from program_pipeline.config import get_settings
from program_pipeline.database import SqlGenerationStore
from program_pipeline.enrichment import ProfileEnricher
from program_pipeline.exceptions import PipelineError
from program_pipeline.guardian import GuardianValidator
from program_pipeline.logger import setup_logger
from program_pipeline.periodization import PeriodizationPlanner
from program_pipeline.pipeline import build_orchestrator
from program_pipeline.report import save_validation_report
from program_pipeline.schemas import (
    GenerationRecord,
    GenerationStatus,
    PeriodizationPlan,
    UserProfile,
    ValidationResult,
    WeakPointProtocol,
)
from program_pipeline.volume import VolumeLandmarkCalculator
from program_pipeline.weak_points import WeakPointAnalyzer

app = typer.Typer(help="Training Program Pipeline - enrichment, generation and Guardian validation")
console = Console()


@app.callback()
def main(
    log_level: Optional[str] = typer.Option(None, "--log-level", help="Override LOG_LEVEL"),
):
    """Configure logging before any command runs."""
    settings = get_settings()
    setup_logger(level=(log_level or settings.log_level).upper(), log_file=settings.log_file)


# ===== DISPLAY HELPER FUNCTIONS =====


def _load_json(path: Path) -> dict:
    with open(path) as f:
        return json.load(f)


def _display_landmarks(landmarks: dict) -> None:
    table = Table(title="Volume Landmarks (weekly sets)", box=box.ROUNDED)
    table.add_column("Muscle Group", style="cyan")
    table.add_column("MEV", justify="right")
    table.add_column("MAV", justify="right", style="green")
    table.add_column("MRV", justify="right", style="red")
    for group, landmark in landmarks.items():
        table.add_row(group.capitalize(), str(landmark.mev), str(landmark.mav), str(landmark.mrv))
    console.print(table)


def _display_weak_points(weak_points: Optional[WeakPointProtocol]) -> None:
    if weak_points is None:
        console.print("[dim]Weak points: not analyzed (incomplete 1RM estimates)[/dim]\n")
        return
    if not weak_points.issues:
        console.print("[green]✓ No strength ratio imbalances detected[/green]\n")
        return

    table = Table(title="Strength Ratio Issues", box=box.ROUNDED)
    table.add_column("Ratio", style="cyan")
    table.add_column("Measured", justify="right")
    table.add_column("Minimum", justify="right")
    table.add_column("Severity")
    for issue in weak_points.issues:
        color = "red" if issue.severity.value == "High" else "yellow"
        table.add_row(
            issue.ratio_name,
            f"{issue.measured_ratio:.3f}",
            f"{issue.standard_minimum:g}",
            f"[{color}]{issue.severity.value}[/{color}]",
        )
    console.print(table)
    console.print(f"Corrective exercises: {', '.join(weak_points.correction_exercises)}")
    console.print(f"Reassess in {weak_points.reassessment_period_weeks} weeks\n")


def _display_plan(plan: PeriodizationPlan) -> None:
    table = Table(title=plan.model_name, box=box.ROUNDED)
    table.add_column("Phase", style="cyan")
    table.add_column("Week", justify="right")
    table.add_column("Sets", justify="right")
    table.add_column("Intensity", justify="right")
    table.add_column("Focus")
    for entry in plan.phases:
        for week in entry.weeks:
            table.add_row(
                entry.phase.name if week.week_in_phase == 1 else "",
                str(week.week_in_phase),
                str(week.target_volume_sets),
                f"{week.target_intensity_percent:g}%",
                week.focus,
            )
    console.print(table)
    deload = plan.deload
    console.print(
        f"Deload: [bold]{deload.type.value}[/bold], {deload.duration_days} days, "
        f"-{deload.volume_reduction_percent}% volume, -{deload.intensity_reduction_percent}% intensity\n"
    )


def _display_validation(result: ValidationResult) -> None:
    if result.is_valid:
        console.print(Panel("[bold green]✓ Program is valid[/bold green]", border_style="green"))
    else:
        console.print(Panel("[bold red]✗ Program is invalid[/bold red]", border_style="red"))

    if result.errors:
        table = Table(title="Errors", box=box.ROUNDED)
        table.add_column("Severity", style="red")
        table.add_column("Kind")
        table.add_column("Message")
        table.add_column("Location", style="dim")
        for error in result.errors:
            table.add_row(error.severity.value, error.kind.value, error.message, error.location or "")
        console.print(table)

    for warning in result.warnings:
        location = f" [dim]({warning.location})[/dim]" if warning.location else ""
        console.print(f"[yellow]⚠ {warning.kind.value}:[/yellow] {warning.message}{location}")


def _display_record(record: GenerationRecord) -> None:
    colors = {
        GenerationStatus.COMPLETED: "green",
        GenerationStatus.FAILED: "red",
        GenerationStatus.PROCESSING: "yellow",
        GenerationStatus.PENDING: "cyan",
    }
    color = colors[record.status]
    lines = [
        f"Record: {record.id}",
        f"User: {record.user_id}",
        f"Status: [{color}]{record.status.value}[/{color}]",
    ]
    if record.periodization_model:
        lines.append(f"Model: {record.periodization_model}")
    if record.program:
        lines.append(
            f"Program: {record.program.program_name} ({record.program.duration_weeks_total} weeks)"
        )
    if record.error:
        lines.append(f"Error: {record.error}")
    console.print(Panel("\n".join(lines), title="Generation Record", border_style=color))


# ===== COMMANDS =====


@app.command()
def analyze(
    profile: Path = typer.Option(
        ..., "--profile", "-p", help="Path to user profile JSON file", exists=True
    ),
):
    """
    Show what the pipeline infers from a profile, without generating a program.
    """
    user_profile = UserProfile(**_load_json(profile))
    enriched = ProfileEnricher().enrich(user_profile)
    params = enriched.volume_parameters

    console.print(
        Panel(
            f"Experience: {enriched.experience_level.value}\n"
            f"Training age: {params.training_age:g} years\n"
            f"Recovery capacity: {params.recovery_capacity}/10\n"
            f"Stress level: {params.stress_level}/10\n"
            f"Injury areas: {', '.join(enriched.injuries.identified_areas) or 'None'}",
            title=f"Profile: {user_profile.name or user_profile.user_id}",
            border_style="cyan",
        )
    )

    landmarks = VolumeLandmarkCalculator().calculate_all_landmarks(params)
    _display_landmarks(landmarks)
    _display_weak_points(WeakPointAnalyzer().analyze_profile(user_profile))
    _display_plan(PeriodizationPlanner().plan(enriched, landmarks))


@app.command("validate-program")
def validate_program(
    program: Path = typer.Option(
        ..., "--program", "-p", help="Path to program JSON file", exists=True
    ),
    report_dir: Optional[Path] = typer.Option(
        None, "--report-dir", "-o", help="Write a validation report to this directory"
    ),
    report_format: str = typer.Option(
        "markdown", "--report-format", "-f", help="Report format (markdown or json)"
    ),
):
    """
    Validate a program JSON file with the Guardian.

    Exits with status 1 when the program is invalid.
    """
    candidate = _load_json(program)
    result = GuardianValidator().validate(candidate)
    _display_validation(result)

    if report_dir:
        path = save_validation_report(
            result,
            report_dir,
            fmt=report_format,
            program_name=candidate.get("programName") if isinstance(candidate, dict) else None,
        )
        console.print(f"\n[green]✓ Report saved to {path}[/green]")

    if not result.is_valid:
        raise typer.Exit(code=1)


@app.command()
def generate(
    profile: Path = typer.Option(
        ..., "--profile", "-p", help="Path to user profile JSON file", exists=True
    ),
    database_url: Optional[str] = typer.Option(
        None, "--database-url", help="Override DATABASE_URL"
    ),
    output: Optional[Path] = typer.Option(
        None, "--output", "-o", help="Write the accepted program JSON to this file"
    ),
):
    """
    Run the full pipeline for a profile: enrich, plan, generate and validate.
    """
    settings = get_settings()
    store = SqlGenerationStore.from_url(database_url or settings.database_url)
    orchestrator = build_orchestrator(settings, store)

    user_profile = UserProfile(**_load_json(profile))
    with console.status("[cyan]Generating program...[/cyan]"):
        try:
            record = orchestrator.create_and_run(user_profile)
        except PipelineError as e:
            console.print(f"[red]✗ {e}[/red]")
            raise typer.Exit(code=1)

    _display_record(record)

    if record.status != GenerationStatus.COMPLETED:
        raise typer.Exit(code=1)

    if output:
        with open(output, "w") as f:
            json.dump(record.program.model_dump(mode="json", by_alias=True), f, indent=2)
        console.print(f"[green]✓ Program saved to {output}[/green]")


@app.command()
def status(
    record_id: str = typer.Argument(..., help="Generation record id"),
    database_url: Optional[str] = typer.Option(
        None, "--database-url", help="Override DATABASE_URL"
    ),
):
    """
    Show the status of a generation record.
    """
    store = SqlGenerationStore.from_url(database_url or get_settings().database_url)
    try:
        record = store.get_generation_record(record_id)
    except PipelineError as e:
        console.print(f"[red]✗ {e}[/red]")
        raise typer.Exit(code=1)
    _display_record(record)


if __name__ == "__main__":
    app()
