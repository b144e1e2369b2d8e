#!/usr/bin/env python3
"""
Quick start script to demonstrate the Training Program Pipeline.

This script shows the complete workflow without calling a real AI service:
1. Load a user profile and enrich it
2. Calculate volume landmarks and strength ratio weak points
3. Plan the periodization block
4. Validate a program with the Guardian
5. Run the full pipeline against an in-memory database
"""

import json
from pathlib import Path

from rich import box
from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from program_pipeline.database import SqlGenerationStore
from program_pipeline.enrichment import ProfileEnricher
from program_pipeline.generator import ProgramGenerator
from program_pipeline.guardian import GuardianValidator
from program_pipeline.logger import setup_logger
from program_pipeline.periodization import PeriodizationPlanner
from program_pipeline.pipeline import PipelineOrchestrator
from program_pipeline.schemas import UserProfile
from program_pipeline.volume import VolumeLandmarkCalculator
from program_pipeline.weak_points import WeakPointAnalyzer

FIXTURES = Path("tests/fixtures")

console = Console()


class CannedTextService:
    """Stands in for the AI service by replying with a saved program."""

    model_name = "canned-demo"

    def __init__(self, program_path: Path):
        self.reply = program_path.read_text()

    def generate(self, prompt: str, structured_output: bool = True) -> str:
        return self.reply


def print_header(title: str):
    """Print a formatted header."""
    console.print(f"\n[bold cyan]{title}[/bold cyan]")
    console.print("=" * len(title))


def main():
    """Run the complete demonstration workflow."""
    setup_logger(level="WARNING")
    console.print("\n[bold magenta]🏋 Training Program Pipeline[/bold magenta]")
    console.print("[dim]Demonstration of complete workflow[/dim]\n")

    # ===== STEP 1: Load and Enrich Profile =====
    print_header("Step 1: Load and Enrich Profile")

    with open(FIXTURES / "profile_intermediate.json") as f:
        profile = UserProfile(**json.load(f))
    enriched = ProfileEnricher().enrich(profile)
    params = enriched.volume_parameters

    console.print(f"✓ Loaded: [green]{profile.name}[/green] ({enriched.experience_level.value})")
    console.print(f"  Goal: {enriched.primary_goal}")
    console.print(f"  Training age: {params.training_age:g} years")
    console.print(f"  Recovery capacity: {params.recovery_capacity}/10, stress: {params.stress_level}/10")
    console.print(f"  Injury areas: {', '.join(enriched.injuries.identified_areas) or 'None'}")

    # ===== STEP 2: Volume Landmarks and Weak Points =====
    print_header("Step 2: Volume Landmarks and Weak Points")

    landmarks = VolumeLandmarkCalculator().calculate_all_landmarks(params)
    table = Table(box=box.ROUNDED)
    table.add_column("Muscle Group", style="cyan")
    table.add_column("MEV", justify="right")
    table.add_column("MAV", justify="right")
    table.add_column("MRV", justify="right")
    for group, landmark in landmarks.items():
        table.add_row(group.capitalize(), str(landmark.mev), str(landmark.mav), str(landmark.mrv))
    console.print(table)

    weak_points = WeakPointAnalyzer().analyze_profile(profile)
    if weak_points and weak_points.issues:
        for issue in weak_points.issues:
            console.print(
                f"[yellow]⚠ {issue.ratio_name}: {issue.measured_ratio} "
                f"(minimum {issue.standard_minimum}, {issue.severity.value})[/yellow]"
            )
        console.print(f"  Corrective work: {', '.join(weak_points.correction_exercises)}")
    else:
        console.print("[green]✓ No strength ratio imbalances[/green]")

    # ===== STEP 3: Periodization =====
    print_header("Step 3: Periodization Plan")

    plan = PeriodizationPlanner().plan(enriched, landmarks)
    console.print(f"✓ Model: [green]{plan.model_name}[/green], {plan.program_duration_weeks} weeks")
    for entry in plan.phases:
        low, high = entry.phase.intensity_range
        console.print(f"  • {entry.phase.name}: {entry.phase.duration_weeks} weeks at {low:g}-{high:g}%")
    console.print(f"  Deload: {plan.deload.type.value}, {plan.deload.duration_days} days")

    # ===== STEP 4: Guardian Validation =====
    print_header("Step 4: Guardian Validation")

    with open(FIXTURES / "program_valid.json") as f:
        candidate = json.load(f)
    result = GuardianValidator().validate(candidate)
    status = "[green]VALID[/green]" if result.is_valid else "[red]INVALID[/red]"
    console.print(f"✓ {candidate['programName']}: {status}")
    console.print(f"  Errors: {len(result.errors)}, warnings: {len(result.warnings)}")

    # ===== STEP 5: Full Pipeline =====
    print_header("Step 5: Full Pipeline Run")

    store = SqlGenerationStore.from_url("sqlite://")
    orchestrator = PipelineOrchestrator(
        store=store,
        generator=ProgramGenerator(CannedTextService(FIXTURES / "program_valid.json")),
    )
    record = orchestrator.create_and_run(profile)

    console.print(
        Panel(
            f"Record: {record.id}\n"
            f"Status: {record.status.value}\n"
            f"Model: {record.periodization_model}\n"
            f"Program: {record.program.program_name if record.program else '-'}",
            title="Generation Record",
            border_style="green" if record.program else "red",
        )
    )

    console.print("\n[bold green]✓ Demonstration complete![/bold green]")
    console.print("\nNext steps:")
    console.print("  • Run the API: [cyan]uvicorn program_pipeline.api.main:app --reload[/cyan]")
    console.print("  • Analyze a profile: [cyan]program-pipeline analyze -p tests/fixtures/profile_advanced.json[/cyan]")
    console.print("  • Run tests: [cyan]pytest tests/ -v[/cyan]\n")


if __name__ == "__main__":
    main()
