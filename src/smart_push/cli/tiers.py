"""Tiers command -- list every tier with its steps and resolved commands."""

import typer
from rich.markup import escape
from rich.table import Table

from ..exceptions import SmartPushError
from ..package_manager import step_commands
from ..selector import CI_ONLY_STEPS, TIER_DESCRIPTIONS, TIER_STEPS
from . import app
from ._common import (
    console,
    project_path,
    resolve_config,
    resolve_package_manager,
    start_logging,
)
from ._display import TIER_COLORS, print_json


@app.command()
def tiers(
    ctx: typer.Context,
    json_output: bool = typer.Option(
        False,
        "--json",
        help="Output in machine-readable JSON format",
    ),
):
    """
    List the validation tiers and the command each step runs here.

    [bold cyan]Examples:[/bold cyan]

      smart-push tiers

      smart-push -C ../web-app tiers --json
    """
    try:
        config = resolve_config(ctx)
    except SmartPushError as e:
        start_logging(ctx).error(f"{e.__class__.__name__}: {e}")
        console.print(f"[red]Error:[/red] {e}")
        raise typer.Exit(1)

    start_logging(ctx, config)
    project = project_path(ctx)
    package_manager = resolve_package_manager(config, project)
    commands = step_commands(package_manager, config.commands)

    if json_output:
        print_json(
            {
                "package_manager": package_manager,
                "tiers": {
                    tier.label: [{"step": s.value, "command": commands[s]} for s in steps]
                    for tier, steps in TIER_STEPS.items()
                },
                "ci_only": [{"step": s.value, "command": commands[s]} for s in CI_ONLY_STEPS],
            }
        )
        return

    console.print(f"[bold cyan]VALIDATION TIERS[/bold cyan] -- package manager: {package_manager}")
    console.print()

    table = Table(show_header=True, show_lines=True, pad_edge=True)
    table.add_column("Tier", min_width=14)
    table.add_column("When")
    table.add_column("Steps")

    for tier, steps in TIER_STEPS.items():
        color = TIER_COLORS[tier]
        table.add_row(
            f"[{color}]{tier.label}[/{color}]",
            TIER_DESCRIPTIONS[tier],
            "\n".join(f"{s.value}: {escape(commands[s])}" for s in steps),
        )
    console.print(table)
    console.print(
        "[dim]CI only (comprehensive tier): "
        + ", ".join(f"{s.value} ({escape(commands[s])})" for s in CI_ONLY_STEPS)
        + "[/dim]"
    )
