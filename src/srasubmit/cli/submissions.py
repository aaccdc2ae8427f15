"""
srasubmit submissions - Inspect and manage submission records.
"""

from pathlib import Path

import typer
from rich.console import Console
from rich.table import Table

from srasubmit.exceptions import StateStoreError
from srasubmit.models import SubmissionStatus
from srasubmit.utils.logging import get_logger

logger = get_logger("srasubmit.cli.submissions")

app = typer.Typer(name="submissions", help="Inspect and manage submissions")

console = Console()

_STATUS_STYLES = {
    SubmissionStatus.READY: "yellow",
    SubmissionStatus.SUBMITTED: "green",
    SubmissionStatus.FAILED: "red",
}


def _open_store(project_dir: Path, env: str | None):
    from srasubmit.initialization import InitializationError, initialize

    try:
        _, store = initialize(project_dir, env=env)
    except InitializationError as e:
        typer.echo(f"Error: {e}", err=True)
        raise typer.Exit(1) from e
    return store


@app.command("list")
def list_submissions(
    status: SubmissionStatus | None = typer.Option(None, "--status", help="Only show this status"),
    env: str | None = typer.Option(None, help="Environment (dev, staging, prod)"),
    project_dir: Path = typer.Option(Path.cwd(), "--project-dir", "-d", help="Project directory"),
) -> None:
    """List submission records."""
    store = _open_store(project_dir, env)
    try:
        records = store.find_by_status(status) if status else store.list_all()
    finally:
        store.close()

    if not records:
        console.print("[dim]No submissions[/dim]")
        return

    table = Table(title=f"Submissions ({len(records)})", show_header=True)
    table.add_column("ID", style="cyan")
    table.add_column("Expedition", style="green")
    table.add_column("Project")
    table.add_column("User")
    table.add_column("Status")
    table.add_column("Updated", style="dim")
    table.add_column("Last error", style="dim")

    for record in records:
        style = _STATUS_STYLES.get(record.status, "")
        table.add_row(
            record.id or "",
            record.expedition_code,
            str(record.project_id) if record.project_id is not None else "-",
            record.user or "-",
            f"[{style}]{record.status.value}[/{style}]",
            record.updated_at.isoformat(sep=" ", timespec="seconds") if record.updated_at else "-",
            record.last_error or "",
        )
    console.print(table)


@app.command("retry")
def retry_submission(
    submission_id: str = typer.Argument(..., help="Submission id"),
    env: str | None = typer.Option(None, help="Environment (dev, staging, prod)"),
    project_dir: Path = typer.Option(Path.cwd(), "--project-dir", "-d", help="Project directory"),
) -> None:
    """Put a FAILED submission back to READY for the next dispatch run."""
    store = _open_store(project_dir, env)
    try:
        store.reset(submission_id)
    except StateStoreError as e:
        typer.echo(f"Error: {e.message}", err=True)
        raise typer.Exit(1) from e
    finally:
        store.close()
    console.print(f"Submission [cyan]{submission_id}[/cyan] is READY again")
