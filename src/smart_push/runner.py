"""Run the selected validation steps in order, stopping at the first failure."""

import shlex
import subprocess
from dataclasses import dataclass, field
from pathlib import Path
from typing import Callable, Mapping, Optional, Sequence

from .exceptions import StepFailedError
from .logging_config import get_logger
from .selector import Step

logger = get_logger(__name__)

# Shell conventions for "command not found" and "timed out"
NOT_FOUND_RETURNCODE = 127
TIMEOUT_RETURNCODE = 124

STDERR_FD = 2


@dataclass
class StepResult:
    step: Step
    command: str
    returncode: int

    @property
    def ok(self) -> bool:
        return self.returncode == 0


@dataclass
class RunReport:
    results: list[StepResult] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return all(r.ok for r in self.results)

    @property
    def failed_step(self) -> Optional[StepResult]:
        return next((r for r in self.results if not r.ok), None)

    @property
    def returncode(self) -> int:
        failed = self.failed_step
        return failed.returncode if failed else 0

    def raise_for_failure(self) -> None:
        failed = self.failed_step
        if failed is not None:
            raise StepFailedError(failed.step.value, failed.command, failed.returncode)


def run_steps(
    steps: Sequence[Step],
    commands: Mapping[Step, str],
    cwd: Path,
    timeout: Optional[int] = None,
    on_start: Optional[Callable[[Step, str], None]] = None,
    output_to_stderr: bool = False,
) -> RunReport:
    """Run *steps* one after another in *cwd*.

    Output streams straight to the terminal; with *output_to_stderr* the
    steps' stdout goes to stderr too, leaving stdout to the caller. Steps
    after the first failing one are not run.
    """
    stdout = STDERR_FD if output_to_stderr else None
    report = RunReport()
    for step in steps:
        command = commands[step]
        if on_start is not None:
            on_start(step, command)
        logger.info("Running %s: %s", step.value, command)

        try:
            completed = subprocess.run(
                shlex.split(command), cwd=str(cwd), timeout=timeout, stdout=stdout
            )
            returncode = completed.returncode
        except FileNotFoundError:
            logger.error("Command not found for step %s: %s", step.value, command)
            returncode = NOT_FOUND_RETURNCODE
        except subprocess.TimeoutExpired:
            logger.error("Step %s timed out after %ss", step.value, timeout)
            returncode = TIMEOUT_RETURNCODE

        report.results.append(StepResult(step, command, returncode))
        if returncode != 0:
            break

    return report
