"""Validation exceptions: the vulnerability gate and failing steps."""

from typing import Optional

from .base import SmartPushError


class ValidationError(SmartPushError):
    """Base class for errors that must block the push."""

    pass


class VulnerabilityGateError(ValidationError):
    """Raised when the dependency audit reports critical vulnerabilities.

    Also raised when the audit cannot run at all; ``reason`` then says why
    and ``vulnerable`` is False.
    """

    def __init__(
        self,
        command: str,
        returncode: int,
        hint: str,
        output: str = "",
        reason: Optional[str] = None,
    ):
        message = (
            f"Vulnerability audit could not run ({reason}), fix before pushing"
            if reason
            else "Critical vulnerabilities detected, fix before pushing"
        )
        super().__init__(
            message,
            details={"command": command, "returncode": str(returncode)},
        )
        self.command = command
        self.returncode = returncode
        self.hint = hint
        self.output = output
        self.reason = reason

    @property
    def vulnerable(self) -> bool:
        return self.reason is None


class StepFailedError(ValidationError):
    """Raised when a validation step exits non-zero."""

    def __init__(self, step: str, command: str, returncode: int):
        super().__init__(
            f"Validation step '{step}' failed",
            details={"command": command, "returncode": str(returncode)},
        )
        self.step = step
        self.command = command
        self.returncode = returncode
