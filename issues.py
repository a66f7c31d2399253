"""
Issue repository: creation, lookup, engagement, status changes and rewards.

Mutations on one issue run under that issue's lock. The threaded server
can therefore not interleave two award requests between the
``awarded`` check and the write.
"""

import logging
import threading
import uuid
from collections import defaultdict
from contextlib import contextmanager
from datetime import datetime, timezone
from typing import Any, Callable, List, Optional, Tuple

from config import Settings, settings as default_settings
from database import Store
from errors import NotFoundError, ValidationError
from identity import IdentityResolver
from lifecycle import NEW, LifecycleStateMachine, infer_department
from rewards import RewardEngine
from schemas import Issue, IssueCreate, Location, Reward, User

logger = logging.getLogger(__name__)

REQUIRED_FIELDS = ("category", "description", "imageData")


def complaint_code(sequence: int, year: int) -> str:
    return f"FIX-{year}-{sequence:04d}"


def new_issue_id() -> str:
    return uuid.uuid4().hex


class IssueLocks:
    """One lock per stored issue or citizen; callers check existence first."""

    def __init__(self):
        self._guard = threading.Lock()
        self._locks = defaultdict(threading.Lock)

    def __len__(self):
        return len(self._locks)

    @contextmanager
    def hold(self, key: str):
        with self._guard:
            lock = self._locks[key]
        with lock:
            yield


class IssueService:
    def __init__(self, store: Store, config: Optional[Settings] = None,
                 now: Callable[[], datetime] = lambda: datetime.now(timezone.utc)):
        self.config = config or default_settings
        self.store = store
        self.now = now
        self.identity = IdentityResolver(store)
        self.lifecycle = LifecycleStateMachine(clock=lambda: self.now().isoformat())
        self.rewards = RewardEngine(self.lifecycle, override_limit=self.config.reward_override_limit)
        self.locks = IssueLocks()

    # ---------- Reads ----------

    def get(self, issue_id: str) -> Issue:
        issue = self.store.get_issue(issue_id)
        if issue is None:
            raise NotFoundError("Issue not found")
        return issue

    def get_by_complaint(self, complaint_id: str) -> Issue:
        issue = self.store.find_issue_by_complaint(complaint_id)
        if issue is None:
            raise NotFoundError("Complaint ID not found")
        return issue

    def list(self, status: Optional[str] = None, category: Optional[str] = None,
             city: Optional[str] = None) -> List[Issue]:
        return self.store.list_issues(status=status, category=category, city=city)

    # ---------- Mutations ----------

    def create(self, data: IssueCreate) -> Issue:
        missing = [f for f in REQUIRED_FIELDS if not getattr(data, f)]
        if missing:
            raise ValidationError("category, description and imageData are required")

        reporter = self.identity.resolve(data.reporterName, data.reporterPhone)
        now = self.now()
        stamp = now.isoformat()
        issue = Issue(
            id=new_issue_id(),
            complaintId=complaint_code(self.store.sequence.next(), now.year),
            title=data.title or f"{data.category} issue",
            description=data.description,
            category=data.category,
            location=Location(
                latitude=data.latitude,
                longitude=data.longitude,
                address=data.address or "",
                city=data.city or "",
            ),
            imageData=data.imageData,
            status=NEW,
            department=infer_department(data.category),
            createdAt=stamp,
            updatedAt=stamp,
            upvotes=0,
            reporterId=reporter.id,
            reward=Reward(currency=self.config.reward_currency),
        )
        self.lifecycle.record(issue, NEW, "Issue created by citizen")
        self.store.insert_issue(issue)
        logger.info("Created %s (%s) routed to %s", issue.complaintId, issue.category, issue.department)
        return issue

    @contextmanager
    def locked(self, issue_id: str):
        """Yield the issue under its lock. Unknown ids fail before a lock is made."""
        self.get(issue_id)
        with self.locks.hold(issue_id):
            yield self.get(issue_id)

    def upvote(self, issue_id: str) -> Issue:
        with self.locked(issue_id) as issue:
            issue.upvotes = (issue.upvotes or 0) + 1
            return self.store.save_issue(issue)

    def set_status(self, issue_id: str, status: Optional[str], note: Optional[str] = None) -> Issue:
        with self.locked(issue_id) as issue:
            self.lifecycle.transition(issue, status, note)
            return self.store.save_issue(issue)

    def award(self, issue_id: str, amount: Any = None) -> Tuple[Issue, User]:
        with self.locked(issue_id) as issue:
            self.rewards.check(issue)
            reporter = self.store.get_user(issue.reporterId)
            if reporter is None:
                raise NotFoundError("Reporter not found")
            # Lock order: issue, then reporter.
            with self.locks.hold(f"user:{reporter.id}"):
                reporter = self.store.get_user(reporter.id)
                self.rewards.award(issue, reporter, amount)
                self.store.save_issue(issue)
                self.store.save_user(reporter)
            return issue, reporter
