"""Configuration loading and management for smart-push.

Configuration sources are merged in priority order:
    1. Defaults (defined in SmartPushConfig)
    2. Global config (~/.smart-push.toml)
    3. Project config (<project>/smart-push.toml)
    4. Explicit config file
    5. Environment variables (SMART_PUSH_* prefix)
    6. CLI overrides (passed as kwargs)

Example:
    >>> config = load_config(diff_ref="origin/main")
    >>> config.diff_ref
    'origin/main'
"""

from __future__ import annotations

import os
import re
import sys
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Literal, Optional, get_type_hints

from .exceptions import ConfigurationError, InvalidConfigError

if sys.version_info >= (3, 11):
    import tomllib
else:
    import tomli as tomllib

Verbosity = Literal["quiet", "normal", "verbose"]

PACKAGE_MANAGERS = ("npm", "pnpm", "yarn", "bun")

# Step ids accepted in the [commands] section
STEP_IDS = (
    "lint",
    "format_check",
    "unit_tests",
    "pattern_check",
    "security_audit",
    "command_tests",
    "e2e_tests",
)


@dataclass(frozen=True)
class RiskPatternConfig:
    """Path patterns for the three risk classes.

    Each entry is a regular expression searched (unanchored) in every
    changed path. A class contributes its weight once when any path matches
    any of its expressions.

    Attributes:
        high_risk: Core paths (entry script, library, templates, config dir)
        api: API surface paths
        config: Package manifests, env files, anything named config
    """

    high_risk: tuple[str, ...] = (r"setup\.js", r"lib/.*", r"templates/.*", r"config/.*")
    api: tuple[str, ...] = (r"api/",)
    config: tuple[str, ...] = (r"package\.json", r"\.env", r"config")

    def __post_init__(self) -> None:
        """Validate that every pattern compiles."""
        for class_name in ("high_risk", "api", "config"):
            patterns = getattr(self, class_name)
            if isinstance(patterns, str):
                raise ValueError(f"patterns.{class_name} must be a list of strings")
            for pattern in patterns:
                try:
                    re.compile(pattern)
                except re.error as e:
                    raise ValueError(f"patterns.{class_name}: bad regex {pattern!r}: {e}")


DEFAULT_PATTERNS = RiskPatternConfig()


@dataclass(frozen=True)
class SmartPushConfig:
    """Configuration for a smart-push invocation.

    Attributes:
        diff_ref: Git ref the pending change is diffed against (HEAD is the tip)
        package_manager: npm/pnpm/yarn/bun, or None to detect from lockfiles
        gate_enabled: Run the critical-vulnerability audit before selection
        gate_command: Replace the package manager's audit command
        git_timeout_seconds: Timeout for each git subprocess
        step_timeout_seconds: Timeout for each validation step (None = no limit)
        verbosity: Logging verbosity level
        commands: Per-step command overrides, keyed by step id
        patterns: Path patterns used for risk scoring
    """

    diff_ref: str = "HEAD~1"
    package_manager: Optional[str] = None
    gate_enabled: bool = True
    gate_command: Optional[str] = None
    git_timeout_seconds: int = 10
    step_timeout_seconds: Optional[int] = None
    verbosity: Verbosity = "normal"
    commands: dict[str, str] = field(default_factory=dict)
    patterns: RiskPatternConfig = field(default_factory=RiskPatternConfig)

    def __post_init__(self) -> None:
        """Validate configuration after initialization."""
        if not self.diff_ref:
            raise InvalidConfigError("diff_ref", self.diff_ref, "must not be empty")
        if self.package_manager is not None and self.package_manager not in PACKAGE_MANAGERS:
            raise InvalidConfigError(
                "package_manager",
                self.package_manager,
                f"expected one of {', '.join(PACKAGE_MANAGERS)}",
            )
        if self.git_timeout_seconds < 1:
            raise InvalidConfigError(
                "git_timeout_seconds", self.git_timeout_seconds, "must be at least 1"
            )
        if self.step_timeout_seconds is not None and self.step_timeout_seconds < 1:
            raise InvalidConfigError(
                "step_timeout_seconds", self.step_timeout_seconds, "must be at least 1"
            )
        if self.verbosity not in ("quiet", "normal", "verbose"):
            raise InvalidConfigError("verbosity", self.verbosity, "expected quiet/normal/verbose")

        unknown = sorted(set(self.commands) - set(STEP_IDS))
        if unknown:
            raise InvalidConfigError(
                "commands", ", ".join(unknown), f"unknown step id, expected {', '.join(STEP_IDS)}"
            )
        for step_id, command in self.commands.items():
            if not isinstance(command, str) or not command.strip():
                raise InvalidConfigError(
                    f"commands.{step_id}", command, "must be a non-empty string"
                )


def load_config(
    config_file: Optional[Path] = None, project_dir: Optional[Path] = None, **overrides
) -> SmartPushConfig:
    """Load configuration with auto-discovery and merging.

    Args:
        config_file: Optional explicit config file path
        project_dir: Directory searched for smart-push.toml (default: cwd)
        **overrides: Direct overrides (typically from CLI flags). ``None``
            values are ignored so unset CLI options keep lower layers.

    Returns:
        Validated SmartPushConfig instance

    Raises:
        ConfigurationError: If a config file is invalid or missing
    """
    merged: dict = {}

    global_config = Path.home() / ".smart-push.toml"
    if global_config.exists():
        _merge(merged, _load_toml_file(global_config), global_config)

    project_config = (project_dir or Path.cwd()) / "smart-push.toml"
    if project_config.exists():
        _merge(merged, _load_toml_file(project_config), project_config)

    if config_file is not None:
        if not config_file.exists():
            raise ConfigurationError(f"Config file not found: {config_file}")
        _merge(merged, _load_toml_file(config_file), config_file)

    merged.update(_load_env_vars())

    if "verbose" in overrides:
        if overrides["verbose"]:
            overrides["verbosity"] = "verbose"
        del overrides["verbose"]
    if "quiet" in overrides:
        if overrides["quiet"]:
            overrides["verbosity"] = "quiet"
        del overrides["quiet"]

    merged.update({k: v for k, v in overrides.items() if v is not None})

    patterns = merged.pop("patterns", None)
    if patterns is not None:
        if isinstance(patterns, dict):
            try:
                merged["patterns"] = RiskPatternConfig(
                    **{
                        k: v if isinstance(v, str) else tuple(v) for k, v in patterns.items()
                    }
                )
            except (TypeError, ValueError) as e:
                raise ConfigurationError(f"Invalid [patterns] config: {e}")
        elif isinstance(patterns, RiskPatternConfig):
            merged["patterns"] = patterns
        else:
            raise ConfigurationError("[patterns] must be a table")

    commands = merged.get("commands")
    if commands is not None and not isinstance(commands, dict):
        raise ConfigurationError("[commands] must be a table")

    try:
        return SmartPushConfig(**merged)
    except TypeError as e:
        raise ConfigurationError(f"Invalid configuration: {e}")


def _merge(merged: dict, loaded: dict, source: Path) -> None:
    """Merge one file layer; the [commands] table merges key by key."""
    if not isinstance(loaded, dict):
        raise ConfigurationError(f"Invalid config file '{source}'")
    commands = loaded.pop("commands", None)
    if commands is not None:
        if not isinstance(commands, dict):
            raise ConfigurationError(f"Invalid config file '{source}': [commands] must be a table")
        merged["commands"] = {**merged.get("commands", {}), **commands}
    merged.update(loaded)


def _load_env_vars() -> dict[str, Any]:
    """Load configuration from SMART_PUSH_* environment variables.

    Supported environment variables:
        SMART_PUSH_DIFF_REF: str
        SMART_PUSH_PACKAGE_MANAGER: npm/pnpm/yarn/bun
        SMART_PUSH_GATE_ENABLED: bool (true/false/1/0)
        SMART_PUSH_GATE_COMMAND: str
        SMART_PUSH_GIT_TIMEOUT_SECONDS: int
        SMART_PUSH_STEP_TIMEOUT_SECONDS: int
        SMART_PUSH_VERBOSITY: quiet/normal/verbose

    Returns:
        Dict of field_name -> parsed_value for any SMART_PUSH_* vars found.
    """
    type_hints = get_type_hints(SmartPushConfig)

    result: dict[str, Any] = {}

    for field_name in SmartPushConfig.__dataclass_fields__:
        env_key = f"SMART_PUSH_{field_name.upper()}"
        env_value = os.environ.get(env_key)

        if env_value is None:
            continue

        type_hint = type_hints.get(field_name)
        if type_hint is None:
            continue

        try:
            parsed = _parse_env_value(env_value, type_hint)
            if parsed is not None:
                result[field_name] = parsed
        except ValueError as e:
            raise ConfigurationError(f"Invalid {env_key}: {e}")

    return result


def _parse_env_value(value: str, type_hint: Any) -> Any:
    """Parse environment variable string to the correct type.

    Returns None for types that cannot come from the environment (tables).

    Raises:
        ValueError: If value can't be parsed to expected type
    """
    origin = getattr(type_hint, "__origin__", None)

    # Optional[X] is Union[X, None]
    args = getattr(type_hint, "__args__", ())
    if type(None) in args:
        non_none_types = [t for t in args if t is not type(None)]
        if non_none_types:
            type_hint = non_none_types[0]
            origin = getattr(type_hint, "__origin__", None)

    if origin is dict or type_hint is dict or type_hint is RiskPatternConfig:
        return None

    if type_hint is bool:
        lower = value.lower()
        if lower in ("true", "1", "yes", "on"):
            return True
        elif lower in ("false", "0", "no", "off"):
            return False
        else:
            raise ValueError(f"expected true/false, got '{value}'")

    if type_hint is int:
        return int(value)

    if type_hint is str or origin is Literal:
        return value

    return None


def _load_toml_file(path: Path) -> dict:
    """Load TOML file and return parsed dict.

    Raises:
        ConfigurationError: If TOML parsing fails
    """
    try:
        with open(path, "rb") as f:
            return tomllib.load(f)
    except (OSError, tomllib.TOMLDecodeError) as e:
        raise ConfigurationError(f"Invalid config file '{path}': {e}")
