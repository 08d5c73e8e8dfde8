"""
smart-push - risk-based pre-push validation.

Scores a pending change from the paths it touches, its size and the branch
it is on, then picks one of four validation tiers to run before the push.
"""

__version__ = "0.1.0"

from .context import ChangeContext
from .selector import Step, TierSelection, ValidationTier, score_change, select_tier

__all__ = [
    "select_tier",  # Main entry point
    "score_change",
    "ChangeContext",
    "TierSelection",
    "ValidationTier",
    "Step",
]
