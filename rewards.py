"""
Reward estimation and the award-once rule.

    base            = 20
    impact boost    = 40 for "safety" and "water", else 0
    engagement      = min(upvotes, 20)
    estimate        = min(base + impact + engagement, 200)

A caller-supplied amount replaces the estimate. It is trusted as-is
unless ``REWARD_OVERRIDE_LIMIT`` is configured.
"""

import logging
import math
from typing import Any, Optional

from errors import AlreadyAwardedError, NotResolvedError, ValidationError
from lifecycle import RESOLVED, REWARDED, LifecycleStateMachine
from schemas import Issue, User

logger = logging.getLogger(__name__)

BASE_REWARD = 20
IMPACT_BOOST = 40
IMPACT_CATEGORIES = frozenset({"safety", "water"})
ENGAGEMENT_CAP = 20
MAX_ESTIMATE = 200


def estimate_reward(issue: Issue) -> int:
    impact = IMPACT_BOOST if issue.category in IMPACT_CATEGORIES else 0
    engagement = min(issue.upvotes or 0, ENGAGEMENT_CAP)
    return min(BASE_REWARD + impact + engagement, MAX_ESTIMATE)


def supplied_amount(amount: Any) -> Optional[float]:
    """Return amount only if it is a real number (bools and strings don't count)."""
    if isinstance(amount, bool) or not isinstance(amount, (int, float)):
        return None
    return amount


def format_amount(amount) -> str:
    return f"{amount:.15g}" if isinstance(amount, float) else str(amount)


class RewardEngine:
    def __init__(self, lifecycle: LifecycleStateMachine, override_limit: Optional[float] = None):
        self.lifecycle = lifecycle
        self.override_limit = override_limit

    def check(self, issue: Issue):
        """Preconditions in order; first failure wins."""
        if issue.status != RESOLVED:
            raise NotResolvedError()
        if issue.reward.awarded:
            raise AlreadyAwardedError()

    def resolve_amount(self, issue: Issue, amount: Any = None):
        supplied = supplied_amount(amount)
        if supplied is None:
            return estimate_reward(issue)
        # json.loads accepts NaN and Infinity
        if isinstance(supplied, float) and not math.isfinite(supplied):
            raise ValidationError("amount must be a finite number")
        if supplied < 0:
            raise ValidationError("amount must not be negative")
        if self.override_limit is not None and supplied > self.override_limit:
            raise ValidationError(f"amount exceeds the override limit of {format_amount(self.override_limit)}")
        return supplied

    def award(self, issue: Issue, reporter: User, amount: Any = None):
        """Credit the reporter once. Returns the applied amount.

        Everything that can fail runs before the first mutation.
        """
        self.check(issue)
        applied = self.resolve_amount(issue, amount)

        issue.reward.amount = applied
        issue.reward.awarded = True
        reporter.points += applied
        reporter.totalRewards += applied
        self.lifecycle.record(issue, REWARDED, f"Reward of ₹{format_amount(applied)} approved")
        logger.info("Awarded %s to %s for %s", applied, reporter.id, issue.complaintId)
        return applied
