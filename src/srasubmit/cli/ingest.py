"""
srasubmit ingest - Stage one uploaded archive as a READY submission.
"""

import json
from pathlib import Path

import typer
from rich.console import Console

from srasubmit.models import Contact, SubmissionData, UploadMetadata
from srasubmit.utils.logging import get_logger

logger = get_logger("srasubmit.cli.ingest")

console = Console()


def _load_submission_data(path: Path) -> SubmissionData:
    try:
        with open(path) as f:
            return SubmissionData.from_dict(json.load(f))
    except (OSError, ValueError) as e:
        typer.echo(f"Error: cannot read submission data from {path}: {e}", err=True)
        raise typer.Exit(1) from e


def ingest(
    archive: Path = typer.Argument(..., exists=True, dir_okay=False, help="Zip or tar archive of raw read files"),
    data: Path = typer.Option(
        ..., "--data", exists=True, dir_okay=False, help="JSON file with bio_samples and sra_metadata"
    ),
    samples: list[str] = typer.Option(..., "--samples", "-s", help="Sample name to submit (repeatable)"),
    project: int = typer.Option(..., "--project", help="Project id"),
    expedition: str = typer.Option(..., "--expedition", help="Expedition code"),
    user: str = typer.Option(..., "--user", help="Submitting user"),
    title: str = typer.Option("", "--title", help="BioProject title"),
    description: str = typer.Option("", "--description", help="BioProject description"),
    accession: str | None = typer.Option(None, "--bioproject-accession", help="Existing BioProject accession"),
    release_date: str | None = typer.Option(None, "--release-date", help="Hold data until this date (YYYY-MM-DD)"),
    contact_email: str = typer.Option("", "--contact-email", help="Submission contact email"),
    env: str | None = typer.Option(None, help="Environment (dev, staging, prod)"),
    project_dir: Path = typer.Option(Path.cwd(), "--project-dir", "-d", help="Project directory"),
) -> None:
    """
    Unpack ARCHIVE, check it against the requested samples and record a READY submission.
    """
    from srasubmit.initialization import InitializationError, build_coordinator, initialize

    try:
        config, store = initialize(project_dir, env=env)
    except InitializationError as e:
        logger.error(f"Initialization failed: {e}")
        typer.echo(f"Error: {e}", err=True)
        raise typer.Exit(1) from e

    submission_data = _load_submission_data(data)
    metadata = UploadMetadata(
        project_id=project,
        expedition_code=expedition,
        bio_samples=tuple(samples),
        bioproject_title=title,
        bioproject_description=description,
        bioproject_accession=accession,
        release_date=release_date,
        contact=Contact(email=contact_email),
    )

    try:
        outcome = build_coordinator(config, store).upload(metadata, archive, submission_data, user)
    finally:
        store.close()

    if outcome.invalid_files:
        console.print(f"[yellow]Skipped {len(outcome.invalid_files)} invalid entries:[/yellow]")
        for name in outcome.invalid_files:
            console.print(f"  [dim]{name}[/dim]")

    if not outcome.success:
        typer.echo(f"Error: {outcome.message}", err=True)
        raise typer.Exit(1)

    submission = outcome.submission
    console.print(f"[green]Staged submission {submission.id}[/green] in {submission.submission_dir}")
