"""Rich and JSON rendering for selections, plans and run results."""

import json
from typing import Mapping, Optional

from rich.markup import escape
from rich.table import Table

from ..context import ChangeContext
from ..exceptions import VulnerabilityGateError
from ..gate import GateResult
from ..runner import RunReport
from ..selector import Step, TierSelection, ValidationTier
from ._common import console

TIER_COLORS = {
    ValidationTier.MINIMAL: "white",
    ValidationTier.FAST: "green",
    ValidationTier.STANDARD: "yellow",
    ValidationTier.COMPREHENSIVE: "red",
}

_WEEKDAYS = ("Mon", "Tue", "Wed", "Thu", "Fri", "Sat", "Sun")


def print_gate(result: GateResult) -> None:
    if result.skipped:
        console.print(f"[dim]Vulnerability gate skipped ({result.reason})[/dim]")
    else:
        console.print("[green]No critical vulnerabilities found[/green]")


def print_gate_failure(error: VulnerabilityGateError) -> None:
    if error.output:
        console.print(error.output.rstrip(), markup=False, highlight=False)
    if error.vulnerable:
        console.print("[red]CRITICAL vulnerabilities detected! Fix before pushing.[/red]")
        console.print(f"   Run: [bold]{escape(error.hint)}[/bold]")
    else:
        console.print(f"[red]Vulnerability audit could not run ({error.reason}).[/red]")
        console.print(f"   Fix: [bold]{escape(error.hint)}[/bold]")


def print_context(context: ChangeContext) -> None:
    console.print("[bold cyan]CHANGE[/bold cyan]")
    console.print(f"  Files:  {context.file_count}")
    console.print(f"  Lines:  {context.changed_line_count}")
    console.print(f"  Branch: {escape(context.branch_name) or '[dim]unknown[/dim]'}")
    when = f"{_WEEKDAYS[context.day_of_week - 1]} {context.hour:02d}h"
    hours = "work hours" if context.during_work_hours else "off hours"
    console.print(f"  Time:   {when} ({hours})")
    console.print()


def print_selection(selection: TierSelection, commands: Mapping[Step, str]) -> None:
    color = TIER_COLORS[selection.tier]
    console.print(
        f"[bold {color}]{selection.tier.label.upper()}[/bold {color}] "
        f"{selection.description} -- risk score [bold]{selection.score}[/bold]"
    )
    if selection.forced_by:
        console.print(f"[yellow]Tier forced by {selection.forced_by}[/yellow]")

    if selection.contributions:
        table = Table(show_header=True, show_lines=False, pad_edge=True)
        table.add_column("Rule", min_width=24)
        table.add_column("Points", justify="right")
        table.add_column("Evidence")
        for c in selection.contributions:
            table.add_row(c.label, f"+{c.points}", escape(c.evidence))
        console.print(table)
    else:
        console.print("[dim]No risk rules fired[/dim]")

    console.print()
    if selection.steps:
        console.print("[bold]Steps:[/bold]")
        for i, step in enumerate(selection.steps, 1):
            console.print(f"  {i}. {step.value:<15} [dim]{escape(commands[step])}[/dim]")
    else:
        console.print("[dim]No validation steps to run[/dim]")
    console.print()


def print_report(report: RunReport) -> None:
    failed = report.failed_step
    if failed is None:
        console.print(f"[green]All {len(report.results)} step(s) passed[/green]")
    else:
        console.print(
            f"[red]Step '{failed.step.value}' failed[/red] (exit {failed.returncode}): "
            f"{escape(failed.command)}"
        )


def plan_dict(
    context: ChangeContext,
    selection: TierSelection,
    commands: Mapping[Step, str],
    package_manager: str,
    gate: Optional[GateResult] = None,
) -> dict:
    data = {
        "context": context.to_dict(),
        "selection": selection.to_dict(),
        "package_manager": package_manager,
        "commands": [commands[s] for s in selection.steps],
    }
    if gate is not None:
        data["gate"] = {
            "command": gate.command,
            "passed": gate.passed,
            "skipped": gate.skipped,
            "reason": gate.reason,
        }
    return data


def gate_failure_dict(error: VulnerabilityGateError) -> dict:
    return {
        "gate": {
            "command": error.command,
            "passed": False,
            "vulnerable": error.vulnerable,
            "returncode": error.returncode,
            "reason": error.reason,
            "hint": error.hint,
            "output": error.output,
        }
    }


def print_json(data) -> None:
    print(json.dumps(data, indent=2))
