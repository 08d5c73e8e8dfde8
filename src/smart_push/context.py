"""The immutable snapshot of a pending change that the selector scores."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Iterable, Optional

WORK_HOURS = range(9, 18)  # 9:00-17:59
WORK_DAYS = range(1, 6)  # Monday-Friday, ISO numbering


@dataclass(frozen=True)
class ChangeContext:
    """Facts about one pending push, gathered once by the caller.

    Attributes:
        changed_file_paths: Repository-relative paths, in diff order
        changed_line_count: Total inserted lines across the change
        branch_name: Current branch (empty when unknown)
        hour: Local hour, 0-23
        day_of_week: ISO weekday, 1 = Monday ... 7 = Sunday
    """

    changed_file_paths: tuple[str, ...] = ()
    changed_line_count: int = 0
    branch_name: str = ""
    hour: int = 0
    day_of_week: int = 1

    def __post_init__(self) -> None:
        # Accept any iterable of paths but store a tuple
        if not isinstance(self.changed_file_paths, tuple):
            object.__setattr__(self, "changed_file_paths", tuple(self.changed_file_paths))
        if self.changed_line_count < 0:
            raise ValueError("changed_line_count must be non-negative")
        if not 0 <= self.hour <= 23:
            raise ValueError("hour must be between 0 and 23")
        if not 1 <= self.day_of_week <= 7:
            raise ValueError("day_of_week must be between 1 and 7")

    @property
    def file_count(self) -> int:
        return len(self.changed_file_paths)

    @property
    def during_work_hours(self) -> bool:
        """Monday-Friday between 9:00 and 17:59."""
        return self.hour in WORK_HOURS and self.day_of_week in WORK_DAYS

    @classmethod
    def at(
        cls,
        when: datetime,
        changed_file_paths: Iterable[str] = (),
        changed_line_count: int = 0,
        branch_name: str = "",
    ) -> "ChangeContext":
        """Build a context whose clock fields come from *when*."""
        return cls(
            changed_file_paths=tuple(changed_file_paths),
            changed_line_count=changed_line_count,
            branch_name=branch_name,
            hour=when.hour,
            day_of_week=when.isoweekday(),
        )

    def replace(
        self,
        changed_file_paths: Optional[Iterable[str]] = None,
        changed_line_count: Optional[int] = None,
        branch_name: Optional[str] = None,
        hour: Optional[int] = None,
        day_of_week: Optional[int] = None,
    ) -> "ChangeContext":
        """Return a copy with the given fields replaced (None keeps the field)."""
        return ChangeContext(
            changed_file_paths=(
                self.changed_file_paths
                if changed_file_paths is None
                else tuple(changed_file_paths)
            ),
            changed_line_count=(
                self.changed_line_count if changed_line_count is None else changed_line_count
            ),
            branch_name=self.branch_name if branch_name is None else branch_name,
            hour=self.hour if hour is None else hour,
            day_of_week=self.day_of_week if day_of_week is None else day_of_week,
        )

    def to_dict(self) -> dict:
        return {
            "changed_file_paths": list(self.changed_file_paths),
            "changed_line_count": self.changed_line_count,
            "branch_name": self.branch_name,
            "hour": self.hour,
            "day_of_week": self.day_of_week,
            "during_work_hours": self.during_work_hours,
        }
