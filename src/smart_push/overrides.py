"""Environment escape hatches that bypass or force the scored tier.

    SKIP_SMART=1            run the vulnerability gate, then no steps
    FORCE_COMPREHENSIVE=1   run the comprehensive bundle whatever the score
    FORCE_MINIMAL=1         run the minimal bundle whatever the score

When several are set, the first in that order wins.
"""

from __future__ import annotations

import os
from dataclasses import replace
from enum import Enum
from typing import Mapping, Optional

from .selector import TierSelection, ValidationTier, steps_for

_TRUTHY = ("1", "true", "yes", "on")


class Override(str, Enum):
    SKIP = "SKIP_SMART"
    FORCE_COMPREHENSIVE = "FORCE_COMPREHENSIVE"
    FORCE_MINIMAL = "FORCE_MINIMAL"


_FORCED_TIERS = {
    Override.FORCE_COMPREHENSIVE: ValidationTier.COMPREHENSIVE,
    Override.FORCE_MINIMAL: ValidationTier.MINIMAL,
}


def _is_set(value: Optional[str]) -> bool:
    return value is not None and value.strip().lower() in _TRUTHY


def resolve_override(environ: Optional[Mapping[str, str]] = None) -> Optional[Override]:
    """Return the active override, or None."""
    env = os.environ if environ is None else environ
    for override in Override:
        if _is_set(env.get(override.value)):
            return override
    return None


def apply_override(
    selection: TierSelection, override: Optional[Override], ci: bool = False
) -> TierSelection:
    """Return *selection* with its tier and steps replaced by *override*."""
    if override is None:
        return selection

    if override is Override.SKIP:
        return replace(
            selection,
            steps=(),
            justification=selection.justification + (f"{override.value} set -> no steps",),
            forced_by=override.value,
        )

    tier = _FORCED_TIERS[override]
    return replace(
        selection,
        tier=tier,
        steps=steps_for(tier, ci=ci),
        justification=selection.justification + (f"{override.value} set -> {tier.label}",),
        forced_by=override.value,
    )


def running_in_ci(environ: Optional[Mapping[str, str]] = None) -> bool:
    """True when the CI variable set by most CI providers is truthy."""
    env = os.environ if environ is None else environ
    return _is_set(env.get("CI"))
