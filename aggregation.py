"""Leaderboard and per-citizen summaries, derived from the store on each call."""

from typing import List, Optional

from database import Store
from errors import NotFoundError, ValidationError
from identity import IdentityResolver
from schemas import RewardHistoryItem, User, UserSummary, UserTotals

LEADERBOARD_SIZE = 20


def leaderboard(store: Store, size: int = LEADERBOARD_SIZE) -> List[User]:
    """Users by points, highest first; ties keep registration order."""
    return store.top_users(size)


def user_summary(store: Store, phone: Optional[str] = None, name: Optional[str] = None) -> UserSummary:
    if not phone and not name:
        raise ValidationError("phone or name is required")

    user = IdentityResolver(store).lookup(name, phone)
    if user is None:
        raise NotFoundError("Citizen not found yet")

    reported = store.issues_by_reporter(user.id)
    history = [
        RewardHistoryItem(
            complaintId=i.complaintId,
            category=i.category,
            amount=i.reward.amount,
            createdAt=i.createdAt,
            status=i.status,
        )
        for i in reported
        if i.reward.awarded
    ]
    return UserSummary(
        user=user,
        totals=UserTotals(
            totalRewards=user.totalRewards,
            points=user.points,
            issuesReported=len(reported),
            rewardsCount=len(history),
        ),
        rewardsHistory=history,
    )
