"""
Storage for issues and citizens.

Two interchangeable stores share one interface:

- ``MemoryStore``: process-local dicts. Nothing survives a restart.
- ``MongoStore``: pymongo collections ``issue``, ``user`` and ``counter``.

``get_store()`` picks one from the environment (``DATABASE_URL``).
Complaint numbering goes through a separate sequence collaborator so
tests can reset it.
"""

import itertools
import logging
import threading
from typing import Dict, Iterable, List, Optional

from pymongo import ASCENDING, DESCENDING, MongoClient, ReturnDocument
from pymongo.database import Database

from config import Settings, settings as default_settings
from schemas import Issue, User

logger = logging.getLogger(__name__)


# ---------- Complaint sequence ----------

class SequenceGenerator:
    """Global, never-reused counter behind complaint codes."""

    def next(self) -> int:
        raise NotImplementedError

    def reset(self, start: int = 1):
        raise NotImplementedError


class MemorySequence(SequenceGenerator):
    def __init__(self, start: int = 1):
        self._lock = threading.Lock()
        self._counter = itertools.count(start)

    def next(self) -> int:
        with self._lock:
            return next(self._counter)

    def reset(self, start: int = 1):
        with self._lock:
            self._counter = itertools.count(start)


class MongoSequence(SequenceGenerator):
    def __init__(self, collection, name: str = "complaint"):
        self._collection = collection
        self._name = name

    def next(self) -> int:
        doc = self._collection.find_one_and_update(
            {"_id": self._name},
            {"$inc": {"value": 1}},
            upsert=True,
            return_document=ReturnDocument.AFTER,
        )
        return doc["value"]

    def reset(self, start: int = 1):
        self._collection.update_one(
            {"_id": self._name}, {"$set": {"value": start - 1}}, upsert=True
        )


# ---------- Stores ----------

def matches(issue: Issue, status: Optional[str] = None, category: Optional[str] = None,
            city: Optional[str] = None) -> bool:
    """AND of the supplied filters; city compares case-insensitively."""
    if status and issue.status != status:
        return False
    if category and issue.category != category:
        return False
    if city and (issue.location.city or "").lower() != city.lower():
        return False
    return True


class Store:
    """Interface shared by the storage backends."""

    name = "abstract"
    sequence: SequenceGenerator

    def insert_issue(self, issue: Issue) -> Issue:
        raise NotImplementedError

    def save_issue(self, issue: Issue) -> Issue:
        raise NotImplementedError

    def get_issue(self, issue_id: str) -> Optional[Issue]:
        raise NotImplementedError

    def find_issue_by_complaint(self, complaint_id: str) -> Optional[Issue]:
        raise NotImplementedError

    def list_issues(self, status: Optional[str] = None, category: Optional[str] = None,
                    city: Optional[str] = None) -> List[Issue]:
        raise NotImplementedError

    def issues_by_reporter(self, reporter_id: str) -> List[Issue]:
        raise NotImplementedError

    def get_user(self, user_id: str) -> Optional[User]:
        raise NotImplementedError

    def insert_user(self, user: User) -> User:
        raise NotImplementedError

    def save_user(self, user: User) -> User:
        raise NotImplementedError

    def list_users(self) -> List[User]:
        raise NotImplementedError

    def top_users(self, limit: int) -> List[User]:
        # sorted() is stable, so equal points keep insertion order
        return sorted(self.list_users(), key=lambda u: u.points, reverse=True)[:limit]


class MemoryStore(Store):
    """Insertion-ordered in-memory store handing out live records."""

    name = "memory"

    def __init__(self, sequence: Optional[SequenceGenerator] = None):
        self.sequence = sequence or MemorySequence()
        self._issues: Dict[str, Issue] = {}
        self._users: Dict[str, User] = {}

    def insert_issue(self, issue: Issue) -> Issue:
        self._issues[issue.id] = issue
        return issue

    def save_issue(self, issue: Issue) -> Issue:
        self._issues[issue.id] = issue
        return issue

    def get_issue(self, issue_id: str) -> Optional[Issue]:
        return self._issues.get(issue_id)

    def find_issue_by_complaint(self, complaint_id: str) -> Optional[Issue]:
        return next((i for i in self._issues.values() if i.complaintId == complaint_id), None)

    def list_issues(self, status=None, category=None, city=None) -> List[Issue]:
        return [i for i in list(self._issues.values()) if matches(i, status, category, city)]

    def issues_by_reporter(self, reporter_id: str) -> List[Issue]:
        return [i for i in list(self._issues.values()) if i.reporterId == reporter_id]

    def get_user(self, user_id: str) -> Optional[User]:
        return self._users.get(user_id)

    def insert_user(self, user: User) -> User:
        return self._users.setdefault(user.id, user)

    def save_user(self, user: User) -> User:
        self._users[user.id] = user
        return user

    def list_users(self) -> List[User]:
        return list(self._users.values())


class MongoStore(Store):
    """MongoDB-backed store. Records returned are copies; persist with save_*."""

    name = "mongodb"

    def __init__(self, db: Database):
        self.db = db
        self.sequence = MongoSequence(db["counter"])
        db["issue"].create_index("id", unique=True)
        db["issue"].create_index("complaintId", unique=True)
        db["user"].create_index("id", unique=True)

    @staticmethod
    def _issue(doc) -> Optional[Issue]:
        if not doc:
            return None
        doc.pop("_id", None)
        return Issue.model_validate(doc)

    @staticmethod
    def _user(doc) -> Optional[User]:
        if not doc:
            return None
        doc.pop("_id", None)
        return User.model_validate(doc)

    def _issues(self, query: dict) -> Iterable[Issue]:
        for doc in self.db["issue"].find(query).sort("_id", ASCENDING):
            yield self._issue(doc)

    def insert_issue(self, issue: Issue) -> Issue:
        self.db["issue"].insert_one(issue.model_dump())
        return issue

    def save_issue(self, issue: Issue) -> Issue:
        self.db["issue"].replace_one({"id": issue.id}, issue.model_dump(), upsert=True)
        return issue

    def get_issue(self, issue_id: str) -> Optional[Issue]:
        return self._issue(self.db["issue"].find_one({"id": issue_id}))

    def find_issue_by_complaint(self, complaint_id: str) -> Optional[Issue]:
        return self._issue(self.db["issue"].find_one({"complaintId": complaint_id}))

    def list_issues(self, status=None, category=None, city=None) -> List[Issue]:
        query = {}
        if status:
            query["status"] = status
        if category:
            query["category"] = category
        # City is filtered in Python to keep the case-insensitive rule in one place.
        return [i for i in self._issues(query) if matches(i, city=city)]

    def issues_by_reporter(self, reporter_id: str) -> List[Issue]:
        return list(self._issues({"reporterId": reporter_id}))

    def get_user(self, user_id: str) -> Optional[User]:
        return self._user(self.db["user"].find_one({"id": user_id}))

    def insert_user(self, user: User) -> User:
        doc = self.db["user"].find_one_and_update(
            {"id": user.id},
            {"$setOnInsert": user.model_dump()},
            upsert=True,
            return_document=ReturnDocument.AFTER,
        )
        return self._user(doc)

    def save_user(self, user: User) -> User:
        self.db["user"].replace_one({"id": user.id}, user.model_dump(), upsert=True)
        return user

    def list_users(self) -> List[User]:
        return [self._user(d) for d in self.db["user"].find().sort("_id", ASCENDING)]

    def top_users(self, limit: int) -> List[User]:
        cursor = self.db["user"].find().sort([("points", DESCENDING), ("_id", ASCENDING)]).limit(limit)
        return [self._user(d) for d in cursor]


def get_store(config: Optional[Settings] = None) -> Store:
    config = config or default_settings
    if config.database_url:
        logger.info("Using MongoDB store (database=%s)", config.database_name)
        client = MongoClient(config.database_url)
        return MongoStore(client[config.database_name])
    logger.info("Using in-memory store; data is discarded on restart")
    return MemoryStore()
