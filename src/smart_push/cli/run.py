"""The pre-push command: gate, score, select, execute."""

from typing import Optional

import typer
from rich.markup import escape

from ..exceptions import SmartPushError, StepFailedError, VulnerabilityGateError
from ..gate import run_vulnerability_gate
from ..git import collect_change_context
from ..overrides import apply_override, resolve_override
from ..package_manager import step_commands
from ..runner import run_steps
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
from ._display import (
    gate_failure_dict,
    plan_dict,
    print_context,
    print_gate,
    print_gate_failure,
    print_json,
    print_report,
    print_selection,
)


@app.command()
def run(
    ctx: typer.Context,
    ref: Optional[str] = typer.Option(
        None,
        "--ref",
        help="Diff the change against this ref (default: HEAD~1)",
    ),
    dry_run: bool = typer.Option(
        False,
        "--dry-run",
        help="Select the tier and show the plan without running anything",
    ),
    ci: Optional[bool] = typer.Option(
        None,
        "--ci/--no-ci",
        help="Add CI-only steps to the comprehensive tier (default: follow $CI)",
    ),
    json_output: bool = typer.Option(
        False,
        "--json",
        help="Print the plan as JSON instead of the rich summary",
    ),
):
    """
    Run risk-based validation for the pending push.

    Exits 1 when the vulnerability gate trips, with the failing step's exit
    code when a step fails, and 0 otherwise.

    [bold cyan]Examples:[/bold cyan]

      smart-push run

      smart-push run --ref origin/main

      SKIP_SMART=1 smart-push run
    """
    try:
        config = resolve_config(ctx, diff_ref=ref)
    except SmartPushError as e:
        start_logging(ctx).error(f"{e.__class__.__name__}: {e}")
        console.print(f"[red]Error:[/red] {e}")
        raise typer.Exit(1)
    logger = start_logging(ctx, config)

    try:
        project = project_path(ctx)
        package_manager = resolve_package_manager(config, project)
        in_ci = ci_mode(ci)

        gate = None
        if config.gate_enabled and not dry_run:
            if not json_output:
                console.print("[bold cyan]Checking for critical vulnerabilities...[/bold cyan]")
            gate = run_vulnerability_gate(
                project,
                package_manager,
                command=config.gate_command,
                timeout=config.step_timeout_seconds,
            )
            if not json_output:
                print_gate(gate)
                console.print()

        context = collect_change_context(
            str(project), ref=config.diff_ref, timeout=config.git_timeout_seconds
        )
        selection = select_tier(context, config.patterns, ci=in_ci)
        selection = apply_override(selection, resolve_override(), ci=in_ci)
        commands = step_commands(package_manager, config.commands)
        logger.info("Selected %s (score %d)", selection.tier.label, selection.score)

        if json_output:
            print_json(plan_dict(context, selection, commands, package_manager, gate))
        else:
            print_context(context)
            print_selection(selection, commands)

        if dry_run or not selection.steps:
            return

        report = run_steps(
            selection.steps,
            commands,
            cwd=project,
            timeout=config.step_timeout_seconds,
            on_start=None if json_output else _announce,
            output_to_stderr=json_output,
        )
        if not json_output:
            print_report(report)
        report.raise_for_failure()

    except typer.Exit:
        raise

    except VulnerabilityGateError as e:
        if json_output:
            print_json(gate_failure_dict(e))
        else:
            print_gate_failure(e)
        raise typer.Exit(1)

    except StepFailedError as e:
        logger.error(f"{e.__class__.__name__}: {e}")
        raise typer.Exit(e.returncode if e.returncode > 0 else 1)

    except SmartPushError as e:
        logger.error(f"{e.__class__.__name__}: {e}")
        console.print(f"[red]Error:[/red] {e}")
        raise typer.Exit(1)

    except KeyboardInterrupt:
        logger.info("Validation interrupted by user")
        console.print("\n[yellow]Validation interrupted[/yellow]")
        raise typer.Exit(130)

    except Exception as e:
        logger.exception("Unexpected error during validation")
        console.print(f"[red]Unexpected error:[/red] {e}")
        raise typer.Exit(1)


def _announce(step, command: str) -> None:
    console.print(f"[bold]> {step.value}[/bold] [dim]{escape(command)}[/dim]")
