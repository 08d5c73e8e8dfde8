"""Critical-vulnerability gate run before tier selection.

The gate is independent of the risk score: any critical advisory against a
production dependency blocks the push, whichever tier would have run. An
audit that cannot run blocks it too.
"""

import shlex
import subprocess
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from .exceptions import VulnerabilityGateError
from .logging_config import get_logger
from .package_manager import audit_command, audit_fix_hint
from .runner import NOT_FOUND_RETURNCODE, TIMEOUT_RETURNCODE

logger = get_logger(__name__)


@dataclass
class GateResult:
    command: str
    passed: bool
    skipped: bool = False
    reason: str = ""
    output: str = ""


def run_vulnerability_gate(
    project_path: Path,
    package_manager: str,
    command: Optional[str] = None,
    timeout: Optional[int] = None,
) -> GateResult:
    """Audit dependencies for critical vulnerabilities.

    Args:
        project_path: Project root the audit runs in
        package_manager: Selects the default audit command and fix hint
        command: Replaces the default audit command
        timeout: Seconds before the audit is abandoned

    Returns:
        GateResult; ``skipped`` only when the default audit has no
        package.json to read

    Raises:
        VulnerabilityGateError: If the audit exits non-zero, its executable
            is missing, or it times out
    """
    cmd = command or audit_command(package_manager)

    if command is None and not (project_path / "package.json").exists():
        logger.warning("No package.json in %s, skipping vulnerability gate", project_path)
        return GateResult(cmd, passed=True, skipped=True, reason="no package.json")

    logger.debug("Running vulnerability gate: %s", cmd)
    try:
        result = subprocess.run(
            shlex.split(cmd),
            cwd=str(project_path),
            capture_output=True,
            text=True,
            timeout=timeout,
        )
    except FileNotFoundError:
        logger.error("Audit tool not found for '%s'", cmd)
        raise VulnerabilityGateError(
            cmd,
            NOT_FOUND_RETURNCODE,
            _unavailable_hint(cmd, command),
            reason="audit tool not found",
        )
    except subprocess.TimeoutExpired:
        logger.error("Vulnerability gate timed out after %ss", timeout)
        raise VulnerabilityGateError(
            cmd, TIMEOUT_RETURNCODE, _unavailable_hint(cmd, command), reason="audit timed out"
        )

    output = (result.stdout or "") + (result.stderr or "")
    if result.returncode != 0:
        logger.error("Vulnerability gate failed (exit %d)", result.returncode)
        raise VulnerabilityGateError(
            cmd, result.returncode, audit_fix_hint(package_manager), output=output
        )

    return GateResult(cmd, passed=True, output=output)


def _unavailable_hint(cmd: str, configured: Optional[str]) -> str:
    if configured is not None:
        return f"check gate_command ({cmd}) or set gate_enabled = false"
    return f"install {shlex.split(cmd)[0]} or raise step_timeout_seconds"
