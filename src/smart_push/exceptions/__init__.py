"""Exception hierarchy for smart-push."""

from .base import SmartPushError
from .config import ConfigurationError, InvalidConfigError
from .validation import StepFailedError, ValidationError, VulnerabilityGateError

__all__ = [
    "SmartPushError",
    "ConfigurationError",
    "InvalidConfigError",
    "ValidationError",
    "VulnerabilityGateError",
    "StepFailedError",
]
