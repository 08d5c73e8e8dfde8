"""Risk scoring and validation-tier selection for a pending push.

The score is a sum of independent contributions:

    path classes   high-risk core +4, API surface +2, config/metadata +2
                   (each at most once, however many paths match)
    change size    >10 files +2, >20 files +3 more, >200 inserted lines +2
    branch         main/master/production +3, hotfix/* +4, release/* +2,
                   develop +1

and maps onto four tiers:

    score >= 7                                 COMPREHENSIVE
    4 <= score < 7                             STANDARD
    score in (2, 3), or score < 2 off-hours    FAST
    score < 2 during work hours                MINIMAL

Low-risk pushes outside work hours get FAST rather than MINIMAL; only
business-hours pushes may drop to lint and format checks.

Everything here is pure: no git, no clock, no environment.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from enum import Enum, IntEnum
from functools import lru_cache
from typing import Optional

from .config import DEFAULT_PATTERNS, RiskPatternConfig
from .context import ChangeContext

# === Weights ===
HIGH_RISK_WEIGHT = 4
API_WEIGHT = 2
CONFIG_WEIGHT = 2

MANY_FILES_THRESHOLD = 10
MANY_FILES_WEIGHT = 2
VERY_MANY_FILES_THRESHOLD = 20
VERY_MANY_FILES_WEIGHT = 3
LARGE_CHANGE_LINES = 200
LARGE_CHANGE_WEIGHT = 2

PROTECTED_BRANCHES = ("main", "master", "production")
PROTECTED_BRANCH_WEIGHT = 3
HOTFIX_PREFIX = "hotfix/"
HOTFIX_WEIGHT = 4
RELEASE_PREFIX = "release/"
RELEASE_WEIGHT = 2
DEVELOP_BRANCH = "develop"
DEVELOP_WEIGHT = 1

# === Tier boundaries ===
COMPREHENSIVE_MIN_SCORE = 7
STANDARD_MIN_SCORE = 4
FAST_MIN_SCORE = 2

# Evidence lines list at most this many matching paths
_MAX_EVIDENCE_PATHS = 3


class ValidationTier(IntEnum):
    """Validation strictness, ordered from cheapest to most thorough."""

    MINIMAL = 0
    FAST = 1
    STANDARD = 2
    COMPREHENSIVE = 3

    @property
    def label(self) -> str:
        return self.name.lower()


class Step(str, Enum):
    """Named validation steps. Values double as config keys."""

    LINT = "lint"
    FORMAT_CHECK = "format_check"
    UNIT_TESTS = "unit_tests"
    PATTERN_CHECK = "pattern_check"
    SECURITY_AUDIT = "security_audit"
    # CI-only
    COMMAND_TESTS = "command_tests"
    E2E_TESTS = "e2e_tests"


TIER_STEPS: dict[ValidationTier, tuple[Step, ...]] = {
    ValidationTier.MINIMAL: (Step.LINT, Step.FORMAT_CHECK),
    ValidationTier.FAST: (Step.UNIT_TESTS,),
    ValidationTier.STANDARD: (Step.PATTERN_CHECK, Step.UNIT_TESTS),
    ValidationTier.COMPREHENSIVE: (Step.PATTERN_CHECK, Step.UNIT_TESTS, Step.SECURITY_AUDIT),
}

# Slow steps that only run on a CI runner, never on the local pre-push path
CI_ONLY_STEPS: tuple[Step, ...] = (Step.COMMAND_TESTS, Step.E2E_TESTS)

TIER_DESCRIPTIONS: dict[ValidationTier, str] = {
    ValidationTier.MINIMAL: "Minimal risk - quality checks only",
    ValidationTier.FAST: "Low risk - fast validation",
    ValidationTier.STANDARD: "Medium risk - standard validation",
    ValidationTier.COMPREHENSIVE: "High risk - comprehensive validation",
}


@dataclass(frozen=True)
class RiskContribution:
    """One scoring rule that fired."""

    label: str
    points: int
    evidence: str = ""

    def describe(self) -> str:
        text = f"{self.label} (+{self.points})"
        return f"{text}: {self.evidence}" if self.evidence else text


@dataclass(frozen=True)
class TierSelection:
    """Result of classifying a change.

    ``forced_by`` names the environment override that replaced the scored
    tier, if any; ``score`` and ``contributions`` always reflect the change
    itself.
    """

    score: int
    tier: ValidationTier
    steps: tuple[Step, ...]
    justification: tuple[str, ...]
    contributions: tuple[RiskContribution, ...] = field(default=())
    during_work_hours: bool = False
    forced_by: Optional[str] = None

    @property
    def description(self) -> str:
        return TIER_DESCRIPTIONS[self.tier]

    def to_dict(self) -> dict:
        return {
            "score": self.score,
            "tier": self.tier.label,
            "steps": [s.value for s in self.steps],
            "justification": list(self.justification),
            "contributions": [
                {"label": c.label, "points": c.points, "evidence": c.evidence}
                for c in self.contributions
            ],
            "during_work_hours": self.during_work_hours,
            "forced_by": self.forced_by,
        }


@lru_cache(maxsize=32)
def _compile(patterns: tuple[str, ...]) -> tuple[re.Pattern, ...]:
    return tuple(re.compile(p) for p in patterns)


def _matching_paths(paths: tuple[str, ...], patterns: tuple[str, ...]) -> list[str]:
    compiled = _compile(patterns)
    return [p for p in paths if any(rx.search(p) for rx in compiled)]


def _format_paths(paths: list[str]) -> str:
    shown = ", ".join(paths[:_MAX_EVIDENCE_PATHS])
    extra = len(paths) - _MAX_EVIDENCE_PATHS
    return f"{shown} (+{extra} more)" if extra > 0 else shown


def _branch_contribution(branch: str) -> Optional[RiskContribution]:
    """First matching branch category wins."""
    if branch in PROTECTED_BRANCHES:
        return RiskContribution("Protected branch", PROTECTED_BRANCH_WEIGHT, branch)
    if branch.startswith(HOTFIX_PREFIX):
        return RiskContribution("Hotfix branch", HOTFIX_WEIGHT, branch)
    if branch.startswith(RELEASE_PREFIX):
        return RiskContribution("Release branch", RELEASE_WEIGHT, branch)
    if branch == DEVELOP_BRANCH:
        return RiskContribution("Integration branch", DEVELOP_WEIGHT, branch)
    return None


def score_change(
    context: ChangeContext, patterns: RiskPatternConfig = DEFAULT_PATTERNS
) -> tuple[int, tuple[RiskContribution, ...]]:
    """Compute the risk score of *context* and the rules that produced it."""
    contributions: list[RiskContribution] = []
    paths = context.changed_file_paths

    path_classes = (
        ("High-risk core files changed", patterns.high_risk, HIGH_RISK_WEIGHT),
        ("API files changed", patterns.api, API_WEIGHT),
        ("Configuration files changed", patterns.config, CONFIG_WEIGHT),
    )
    for label, class_patterns, weight in path_classes:
        matched = _matching_paths(paths, class_patterns)
        if matched:
            contributions.append(RiskContribution(label, weight, _format_paths(matched)))

    if context.file_count > MANY_FILES_THRESHOLD:
        contributions.append(
            RiskContribution(
                f"More than {MANY_FILES_THRESHOLD} files",
                MANY_FILES_WEIGHT,
                f"{context.file_count} files",
            )
        )
    if context.file_count > VERY_MANY_FILES_THRESHOLD:
        contributions.append(
            RiskContribution(
                f"More than {VERY_MANY_FILES_THRESHOLD} files",
                VERY_MANY_FILES_WEIGHT,
                f"{context.file_count} files",
            )
        )
    if context.changed_line_count > LARGE_CHANGE_LINES:
        contributions.append(
            RiskContribution(
                f"More than {LARGE_CHANGE_LINES} lines inserted",
                LARGE_CHANGE_WEIGHT,
                f"{context.changed_line_count} lines",
            )
        )

    branch = _branch_contribution(context.branch_name)
    if branch is not None:
        contributions.append(branch)

    score = sum(c.points for c in contributions)
    return score, tuple(contributions)


def tier_for_score(score: int, during_work_hours: bool) -> ValidationTier:
    """Map a score to its tier. Total over all integers."""
    if score >= COMPREHENSIVE_MIN_SCORE:
        return ValidationTier.COMPREHENSIVE
    if score >= STANDARD_MIN_SCORE:
        return ValidationTier.STANDARD
    if score >= FAST_MIN_SCORE or not during_work_hours:
        return ValidationTier.FAST
    return ValidationTier.MINIMAL


def steps_for(tier: ValidationTier, ci: bool = False) -> tuple[Step, ...]:
    """Steps bound to *tier*; in CI the comprehensive tier adds the CI-only steps."""
    steps = TIER_STEPS[tier]
    if ci and tier is ValidationTier.COMPREHENSIVE:
        steps = steps + CI_ONLY_STEPS
    return steps


def select_tier(
    context: ChangeContext,
    patterns: RiskPatternConfig = DEFAULT_PATTERNS,
    ci: bool = False,
) -> TierSelection:
    """Classify a pending change into a validation tier.

    Args:
        context: The change to classify; never modified
        patterns: Path patterns for the three path classes
        ci: Include the CI-only steps in the comprehensive bundle

    Returns:
        TierSelection with score, tier, steps and a readable justification
    """
    score, contributions = score_change(context, patterns)
    work_hours = context.during_work_hours
    tier = tier_for_score(score, work_hours)

    justification = [c.describe() for c in contributions]
    hours = "during work hours" if work_hours else "outside work hours"
    justification.append(f"Risk score {score} {hours} -> {tier.label}")

    return TierSelection(
        score=score,
        tier=tier,
        steps=steps_for(tier, ci=ci),
        justification=tuple(justification),
        contributions=contributions,
        during_work_hours=work_hours,
    )
