"""
Issue lifecycle: status literals, department routing and transitions.

Transitions are deliberately unrestricted. Any of the four statuses may
follow any other, including itself (each application is recorded on the
timeline). ``resolved`` only matters to the reward engine, which refuses
to pay out before it.
"""

import logging
from datetime import datetime, timezone
from typing import Callable, Optional

from errors import InvalidStatusError
from schemas import Issue, TimelineEntry

logger = logging.getLogger(__name__)

NEW = "new"
IN_PROGRESS = "in_progress"
RESOLVED = "resolved"
REJECTED = "rejected"

ISSUE_STATUSES = (NEW, IN_PROGRESS, RESOLVED, REJECTED)

# Timeline-only event tag; never a value of Issue.status.
REWARDED = "rewarded"

PUBLIC_WORKS = "Public Works Department (PWD)"
WATER_BOARD = "Water Supply & Sewerage Board"
SANITATION = "Municipal Sanitation Department"
ELECTRICITY = "Electricity Board"
TRAFFIC = "Traffic Police / Municipal Engineering"
DEFAULT_DEPARTMENT = "Municipal Corporation"

DEPARTMENTS = {
    "roads": PUBLIC_WORKS,
    "road": PUBLIC_WORKS,
    "pothole": PUBLIC_WORKS,
    "water": WATER_BOARD,
    "sanitation": SANITATION,
    "garbage": SANITATION,
    "electricity": ELECTRICITY,
    "streetlight": ELECTRICITY,
    "safety": TRAFFIC,
}


def infer_department(category: Optional[str]) -> str:
    return DEPARTMENTS.get(str(category or "").lower(), DEFAULT_DEPARTMENT)


def utcnow() -> str:
    return datetime.now(timezone.utc).isoformat()


class LifecycleStateMachine:
    def __init__(self, clock: Callable[[], str] = utcnow):
        self.clock = clock

    def record(self, issue: Issue, event: str, note: str = "") -> TimelineEntry:
        """Append an audit entry; the timeline is never reordered or pruned."""
        entry = TimelineEntry(at=self.clock(), status=event, note=note or "")
        issue.timeline.append(entry)
        return entry

    def transition(self, issue: Issue, new_status: Optional[str], note: Optional[str] = None) -> Issue:
        if new_status not in ISSUE_STATUSES:
            raise InvalidStatusError(new_status)
        previous = issue.status
        issue.status = new_status
        issue.updatedAt = self.clock()
        self.record(issue, new_status, note or "")
        logger.info("Issue %s moved %s -> %s", issue.complaintId, previous, new_status)
        return issue
