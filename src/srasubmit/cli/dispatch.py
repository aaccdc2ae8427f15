"""
srasubmit dispatch - Deliver READY submissions to the remote archive.
"""

import asyncio
from pathlib import Path

import typer

from srasubmit.utils.logging import get_logger

logger = get_logger("srasubmit.cli.dispatch")

app = typer.Typer(name="dispatch", help="Deliver READY submissions", invoke_without_command=True)


@app.callback()
def dispatch(
    ctx: typer.Context,
    once: bool = typer.Option(False, "--once", help="Run a single dispatch pass and exit"),
    env: str | None = typer.Option(None, help="Environment (dev, staging, prod)"),
    project_dir: Path = typer.Option(Path.cwd(), "--project-dir", "-d", help="Project directory"),
) -> None:
    """
    Transfer every READY submission, once or on the configured interval.
    """
    if ctx.invoked_subcommand is not None:
        return

    from srasubmit.initialization import InitializationError, build_scheduler, initialize

    try:
        config, store = initialize(project_dir, env=env)
    except InitializationError as e:
        logger.error(f"Initialization failed: {e}")
        typer.echo(f"Error: {e}", err=True)
        raise typer.Exit(1) from e

    scheduler = build_scheduler(config, store)
    try:
        if once:
            summary = scheduler.run_once()
            typer.echo(
                f"Dispatched {summary['selected']} submission(s): {summary['submitted']} submitted, "
                f"{summary['failed']} failed, {summary['skipped']} skipped"
            )
            if summary["failed"] or summary["errors"]:
                raise typer.Exit(1)
            return

        try:
            asyncio.run(scheduler.run_forever())
        except KeyboardInterrupt:
            logger.info("Dispatch interrupted")
    finally:
        store.close()
