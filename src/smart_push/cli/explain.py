"""Explain command -- show how a change would be scored, without running it."""

from typing import List, Optional

import typer

from ..exceptions import SmartPushError
from ..git import collect_change_context
from ..overrides import apply_override, resolve_override
from ..package_manager import step_commands
from ..selector import select_tier
from . import app
from ._common import (
    ci_mode,
    console,
    project_path,
    resolve_config,
    resolve_package_manager,
    start_logging,
)
from ._display import plan_dict, print_context, print_json, print_selection


@app.command()
def explain(
    ctx: typer.Context,
    ref: Optional[str] = typer.Option(
        None,
        "--ref",
        help="Diff the change against this ref (default: HEAD~1)",
    ),
    branch: Optional[str] = typer.Option(
        None,
        "--branch",
        "-b",
        help="Pretend the change is on this branch",
    ),
    hour: Optional[int] = typer.Option(
        None,
        "--hour",
        help="Pretend the local hour is this (0-23)",
        min=0,
        max=23,
    ),
    weekday: Optional[int] = typer.Option(
        None,
        "--weekday",
        help="Pretend the ISO weekday is this (1 = Monday)",
        min=1,
        max=7,
    ),
    files: Optional[List[str]] = typer.Option(
        None,
        "--file",
        "-f",
        help="Pretend these paths changed (repeatable)",
    ),
    lines: Optional[int] = typer.Option(
        None,
        "--lines",
        help="Pretend this many lines were inserted",
        min=0,
    ),
    ci: Optional[bool] = typer.Option(
        None,
        "--ci/--no-ci",
        help="Add CI-only steps to the comprehensive tier (default: follow $CI)",
    ),
    json_output: bool = typer.Option(
        False,
        "--json",
        help="Output in machine-readable JSON format",
    ),
):
    """
    Show the risk score, rule breakdown and tier for a change.

    Reads the change from git, then applies any what-if flags on top.
    Never runs the gate or any validation step.

    [bold cyan]Examples:[/bold cyan]

      smart-push explain

      smart-push explain --branch hotfix/login --hour 23

      smart-push explain -f lib/core.js -f api/users.js --lines 300 --json
    """
    logger = start_logging(ctx)

    try:
        config = resolve_config(ctx, diff_ref=ref)
        logger = start_logging(ctx, config)
        project = project_path(ctx)
        package_manager = resolve_package_manager(config, project)
        in_ci = ci_mode(ci)

        context = collect_change_context(
            str(project), ref=config.diff_ref, timeout=config.git_timeout_seconds
        )
        context = context.replace(
            changed_file_paths=files,
            changed_line_count=lines,
            branch_name=branch,
            hour=hour,
            day_of_week=weekday,
        )

        selection = select_tier(context, config.patterns, ci=in_ci)
        selection = apply_override(selection, resolve_override(), ci=in_ci)
        commands = step_commands(package_manager, config.commands)

        if json_output:
            print_json(plan_dict(context, selection, commands, package_manager))
            return

        print_context(context)
        print_selection(selection, commands)
        console.print("[bold]Why:[/bold]")
        for line in selection.justification:
            console.print(f"  - {line}", markup=False, highlight=False)

    except SmartPushError as e:
        logger.error(f"{e.__class__.__name__}: {e}")
        console.print(f"[red]Error:[/red] {e}")
        raise typer.Exit(1)
