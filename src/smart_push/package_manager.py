"""Package manager detection and the shell command behind each step."""

import json
from pathlib import Path
from typing import Mapping, Optional

from .logging_config import get_logger
from .selector import Step

logger = get_logger(__name__)

# Checked in order; the first lockfile present wins
LOCKFILES = (
    ("pnpm-lock.yaml", "pnpm"),
    ("yarn.lock", "yarn"),
    ("bun.lockb", "bun"),
    ("package-lock.json", "npm"),
)

DEFAULT_PACKAGE_MANAGER = "npm"

# package.json script run by each step
STEP_SCRIPTS: dict[Step, str] = {
    Step.LINT: "lint",
    Step.FORMAT_CHECK: "format:check",
    Step.UNIT_TESTS: "test:fast",
    Step.PATTERN_CHECK: "test:patterns",
    Step.SECURITY_AUDIT: "security:audit",
    Step.COMMAND_TESTS: "test:commands",
    Step.E2E_TESTS: "test:e2e",
}

# Production dependencies only, critical severity only
AUDIT_COMMANDS = {
    "npm": "npm audit --audit-level=critical --omit=dev",
    "pnpm": "pnpm audit --audit-level critical --prod",
    "yarn": "yarn audit --level critical --groups dependencies",
    "bun": "bun audit --audit-level=critical",
}

AUDIT_FIX_HINTS = {
    "npm": "npm audit fix",
    "pnpm": "pnpm audit --fix",
    "yarn": "yarn upgrade-interactive",
    "bun": "bun update",
}


def detect_package_manager(project_path: Path) -> str:
    """Return 'pnpm', 'yarn', 'bun' or 'npm' for the project at *project_path*."""
    for lockfile, manager in LOCKFILES:
        if (project_path / lockfile).exists():
            return manager

    # Corepack: "packageManager": "pnpm@8.0.0"
    package_json = project_path / "package.json"
    if package_json.exists():
        try:
            data = json.loads(package_json.read_text(encoding="utf-8"))
        except (OSError, ValueError) as e:
            logger.debug("Could not read %s: %s", package_json, e)
            data = {}
        field = data.get("packageManager") if isinstance(data, dict) else None
        if isinstance(field, str):
            name = field.split("@")[0]
            if name in AUDIT_COMMANDS:
                return name

    return DEFAULT_PACKAGE_MANAGER


def script_command(package_manager: str, script: str) -> str:
    return f"{package_manager} run {script}"


def step_commands(
    package_manager: str, overrides: Optional[Mapping[str, str]] = None
) -> dict[Step, str]:
    """Command for every step; configured overrides win over the defaults."""
    overrides = overrides or {}
    commands = {}
    for step, script in STEP_SCRIPTS.items():
        commands[step] = overrides.get(step.value) or script_command(package_manager, script)
    return commands


def audit_command(package_manager: str) -> str:
    return AUDIT_COMMANDS.get(package_manager, AUDIT_COMMANDS[DEFAULT_PACKAGE_MANAGER])


def audit_fix_hint(package_manager: str) -> str:
    return AUDIT_FIX_HINTS.get(package_manager, AUDIT_FIX_HINTS[DEFAULT_PACKAGE_MANAGER])
