"""
MongoStore behaviour against a real server.

Runs only when ``TEST_DATABASE_URL`` points at a disposable MongoDB.
"""

import os
import uuid

import pytest
from pymongo import MongoClient

from config import Settings
from database import MongoStore
from errors import AlreadyAwardedError
from issues import IssueService
from schemas import IssueCreate

TEST_DATABASE_URL = os.getenv("TEST_DATABASE_URL")

pytestmark = pytest.mark.skipif(not TEST_DATABASE_URL, reason="TEST_DATABASE_URL not set")


@pytest.fixture()
def mongo_service(settings):
    client = MongoClient(TEST_DATABASE_URL)
    name = f"nagarseva_test_{uuid.uuid4().hex[:8]}"
    try:
        yield IssueService(MongoStore(client[name]), settings)
    finally:
        client.drop_database(name)
        client.close()


def _file(service, **overrides):
    fields = {"category": "water", "description": "Leak", "imageData": "img",
              "city": "Pune", "reporterPhone": "9999999999"}
    fields.update(overrides)
    return service.create(IssueCreate(**fields))


def test_sequence_and_lookup(mongo_service):
    first = _file(mongo_service)
    second = _file(mongo_service)

    assert first.complaintId.endswith("-0001")
    assert second.complaintId.endswith("-0002")
    assert mongo_service.get_by_complaint(second.complaintId).id == second.id


def test_filters_and_award(mongo_service):
    issue = _file(mongo_service)
    _file(mongo_service, city="Mumbai")
    mongo_service.upvote(issue.id)
    mongo_service.set_status(issue.id, "resolved")

    assert [i.id for i in mongo_service.list(status="resolved", city="PUNE")] == [issue.id]

    issue, reporter = mongo_service.award(issue.id)
    assert issue.reward.amount == 61
    assert mongo_service.store.get_user(reporter.id).points == 61
    assert mongo_service.get(issue.id).timeline[-1].status == "rewarded"

    with pytest.raises(AlreadyAwardedError):
        mongo_service.award(issue.id)


def test_leaderboard_order(mongo_service):
    a = _file(mongo_service, reporterPhone="111")
    _file(mongo_service, reporterPhone="222")
    mongo_service.set_status(a.id, "resolved")
    mongo_service.award(a.id, 5)

    assert [u.id for u in mongo_service.store.top_users(20)] == ["111", "222"]
