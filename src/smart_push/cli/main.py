"""Global options shared by every subcommand."""

from pathlib import Path
from typing import Optional

import typer

from . import app
from ._common import console


@app.callback(invoke_without_command=True)
def main(
    ctx: typer.Context,
    path: Optional[Path] = typer.Option(
        None,
        "-C",
        "--path",
        help="Project root (default: current directory)",
        exists=True,
        file_okay=False,
        dir_okay=True,
        readable=True,
    ),
    config: Optional[Path] = typer.Option(
        None,
        "-c",
        "--config",
        help="Configuration file (TOML)",
        exists=True,
        file_okay=True,
        dir_okay=False,
        readable=True,
    ),
    verbose: bool = typer.Option(
        False,
        "--verbose",
        "-v",
        help="Enable debug logging",
    ),
    log_file: Optional[Path] = typer.Option(
        None,
        "--log-file",
        help="Also append log records to this file",
        file_okay=True,
        dir_okay=False,
    ),
    version: bool = typer.Option(
        False,
        "--version",
        help="Show version and exit",
    ),
):
    """
    Pick and run pre-push validation based on how risky the change is.

    Scores the change from the paths it touches, its size and the branch,
    then runs the matching tier: minimal, fast, standard or comprehensive.
    A critical-vulnerability audit always runs first.

    [bold cyan]Examples:[/bold cyan]

      smart-push run

      smart-push run --dry-run

      smart-push explain --branch main --hour 22

      FORCE_COMPREHENSIVE=1 smart-push run
    """
    ctx.ensure_object(dict)
    ctx.obj["path"] = path if path else Path.cwd()
    ctx.obj["config"] = config
    ctx.obj["verbose"] = verbose
    ctx.obj["log_file"] = log_file

    if version:
        from .. import __version__

        console.print(f"[bold cyan]smart-push[/bold cyan] version [green]{__version__}[/green]")
        raise typer.Exit(0)

    if ctx.invoked_subcommand is None:
        typer.echo(ctx.get_help())
        raise typer.Exit(0)
