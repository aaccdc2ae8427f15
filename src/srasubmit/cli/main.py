"""
Main CLI entry point.
"""

import typer

from srasubmit import __version__
from srasubmit.cli import dispatch, ingest, submissions


def version_callback(value: bool):
    """Callback to display version and exit."""
    if value:
        typer.echo(f"srasubmit version {__version__}")
        raise typer.Exit()


app = typer.Typer(
    name="srasubmit",
    help="srasubmit - stage sequencing-read archives and deliver them to the SRA",
    add_completion=True,
)

app.command("ingest", help="Stage an uploaded archive for submission")(ingest.ingest)
app.add_typer(dispatch.app, name="dispatch")
app.add_typer(submissions.app, name="submissions")


@app.callback(invoke_without_command=True)
def entrypoint(
    ctx: typer.Context,
    version: bool = typer.Option(
        False,
        "--version",
        "-v",
        callback=version_callback,
        help="Show version and exit.",
    ),
):
    """
    srasubmit - stage sequencing-read archives and deliver them to the SRA.

    Run 'srasubmit <command> --help' for help on a specific command.
    """
    if ctx.invoked_subcommand is None:
        if not version:
            typer.echo(ctx.get_help())
            raise typer.Exit()


def main():
    """Main CLI entry point."""
    app()


if __name__ == "__main__":
    main()
