"""Citizen identity: contact details -> stable User record."""

import logging
from typing import Optional

from database import Store
from schemas import User

logger = logging.getLogger(__name__)

ANONYMOUS_NAME = "Anonymous Citizen"


def identity_key(name: Optional[str] = None, phone: Optional[str] = None) -> str:
    """Phone number when present, otherwise the lowercased name."""
    if phone:
        return phone
    return (name or ANONYMOUS_NAME).lower()


class IdentityResolver:
    """Maps self-asserted contact details to users, creating them on first sight.

    There is no verification: whoever supplies a phone number is the owner
    of that record. Swap this class out to plug in verified accounts.
    """

    def __init__(self, store: Store):
        self.store = store

    def resolve(self, name: Optional[str] = None, phone: Optional[str] = None) -> User:
        name = name or ANONYMOUS_NAME
        phone = phone or ""
        key = identity_key(name, phone)
        user = self.store.get_user(key)
        if user is None:
            user = self.store.insert_user(User(id=key, name=name, phone=phone))
            logger.info("Registered citizen %s", key)
        return user

    def lookup(self, name: Optional[str] = None, phone: Optional[str] = None) -> Optional[User]:
        """Like resolve, but never creates a record."""
        return self.store.get_user(identity_key(name, phone))
