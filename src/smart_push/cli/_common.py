"""Shared CLI helpers."""

import logging
from pathlib import Path
from typing import Optional

import typer
from rich.console import Console

from ..config import SmartPushConfig, load_config
from ..logging_config import setup_logging
from ..overrides import running_in_ci
from ..package_manager import detect_package_manager

console = Console()


def resolve_config(ctx: typer.Context, **overrides) -> SmartPushConfig:
    """Build config from the global options stored on the context."""
    obj = ctx.obj or {}
    return load_config(
        config_file=obj.get("config"),
        project_dir=project_path(ctx),
        verbose=obj.get("verbose", False),
        **overrides,
    )


def start_logging(ctx: typer.Context, config: Optional[SmartPushConfig] = None) -> logging.Logger:
    """Configure logging from the resolved config, or from -v alone before one exists.

    ``-v`` already resolves to ``verbosity = "verbose"`` inside the config.
    """
    obj = ctx.obj or {}
    if config is None:
        verbosity = "verbose" if obj.get("verbose") else "normal"
    else:
        verbosity = config.verbosity
    log_file = obj.get("log_file")
    return setup_logging(
        verbose=verbosity == "verbose",
        quiet=verbosity == "quiet",
        log_file=str(log_file) if log_file else None,
    )


def project_path(ctx: typer.Context) -> Path:
    obj = ctx.obj or {}
    return Path(obj.get("path") or Path.cwd()).resolve()


def resolve_package_manager(config: SmartPushConfig, project: Path) -> str:
    return config.package_manager or detect_package_manager(project)


def ci_mode(flag: Optional[bool]) -> bool:
    """Explicit --ci/--no-ci wins; otherwise follow the CI variable."""
    return running_in_ci() if flag is None else flag
