"""Gather the ChangeContext for a pending push from git and the clock.

Missing history is not an error: outside a repository, without a git
binary, or on the first commit (no ``HEAD~1``) every fact falls back to its
zero value and the push is scored as an empty change.
"""

import re
import subprocess
from datetime import datetime
from pathlib import Path
from typing import Optional

from .context import ChangeContext
from .logging_config import get_logger

logger = get_logger(__name__)

# "3 files changed, 120 insertions(+), 4 deletions(-)" / "1 insertion(+)"
_INSERTIONS_RE = re.compile(r"(\d+) insertions?\(\+\)")


class GitCollector:
    """Read diff stats and branch name for one repository."""

    def __init__(self, repo_path: str, ref: str = "HEAD~1", timeout: int = 10):
        self.repo_path = str(Path(repo_path).resolve())
        self.ref = ref
        self.timeout = timeout

    def _git(self, *args: str) -> Optional[str]:
        """Run a git command; return stdout, or None when it is unavailable."""
        cmd = ["git", "-C", self.repo_path, *args]
        try:
            result = subprocess.run(
                cmd,
                capture_output=True,
                text=True,
                encoding="utf-8",
                errors="replace",
                timeout=self.timeout,
            )
        except (FileNotFoundError, subprocess.TimeoutExpired) as e:
            logger.info("git %s unavailable: %s", " ".join(args), e)
            return None
        if result.returncode != 0:
            logger.info("git %s failed: %s", " ".join(args), result.stderr.strip())
            return None
        return result.stdout

    def changed_files(self) -> list[str]:
        # Unquoted, NUL-separated: paths come back exactly as committed
        out = self._git(
            "-c", "core.quotepath=off", "diff", "--name-only", "-z", self.ref, "HEAD"
        )
        if out is None:
            return []
        return [path for path in out.split("\0") if path]

    def inserted_lines(self) -> int:
        out = self._git("diff", "--shortstat", self.ref, "HEAD")
        if not out:
            return 0
        match = _INSERTIONS_RE.search(out)
        return int(match.group(1)) if match else 0

    def branch_name(self) -> str:
        out = self._git("branch", "--show-current")
        if out and out.strip():
            return out.strip()
        # Detached HEAD prints nothing
        out = self._git("rev-parse", "--abbrev-ref", "HEAD")
        return out.strip() if out else ""

    def collect(self, now: Optional[datetime] = None) -> ChangeContext:
        when = now or datetime.now()
        context = ChangeContext.at(
            when,
            changed_file_paths=self.changed_files(),
            changed_line_count=self.inserted_lines(),
            branch_name=self.branch_name(),
        )
        logger.debug(
            "Collected %d files, %d lines on '%s' against %s",
            context.file_count,
            context.changed_line_count,
            context.branch_name,
            self.ref,
        )
        return context


def collect_change_context(
    repo_path: str,
    ref: str = "HEAD~1",
    now: Optional[datetime] = None,
    timeout: int = 10,
) -> ChangeContext:
    """Snapshot the pending change between *ref* and HEAD in *repo_path*."""
    return GitCollector(repo_path, ref=ref, timeout=timeout).collect(now=now)
