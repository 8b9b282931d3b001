"""
Shared pytest fixtures: an in-memory user store and API clients wired to it.
"""

import copy

import pytest
from bson import ObjectId
from bson.errors import InvalidId
from fastapi.testclient import TestClient

from app.api.deps import get_user_store
from app.core.config import settings
from app.core.exceptions import DuplicateKeyStoreError, StoreError
from app.main import app
from app.models.user import PUBLIC_FIELDS, new_user_document


class FakeUserStore:
    """
    In-memory stand-in for UserStore.

    Operations named in ``failing`` raise StoreError, and ``count_result``
    overrides what count() returns.
    """

    def __init__(self):
        self.users = {}
        self.cohorts = {}
        self.failing = set()
        self.count_result = None
        self.calls = []

    def _call(self, name):
        self.calls.append(name)
        if name in self.failing:
            raise StoreError(detail=f"{name} failed")

    def _oid(self, value):
        try:
            return ObjectId(value)
        except (InvalidId, TypeError) as e:
            raise StoreError(detail=str(e)) from e

    def add_user(self, external_id, **fields):
        user = new_user_document(external_id)
        user["_id"] = ObjectId()
        user.update(fields)
        self.users[user["_id"]] = user
        return copy.deepcopy(user)

    def add_cohort_document(self, name):
        cohort = {"_id": ObjectId(), "name": name}
        self.cohorts[cohort["_id"]] = cohort
        return cohort

    def stored(self, user_id):
        return self.users.get(ObjectId(user_id))

    async def list(self, skip, take):
        self._call("list")
        users = sorted(self.users.values(), key=lambda u: u["_id"])[skip:skip + take]
        return [
            {k: v for k, v in u.items() if k == "_id" or k in PUBLIC_FIELDS}
            for u in copy.deepcopy(users)
        ]

    async def count(self, filter=None):
        self._call("count")
        if self.count_result is not None:
            return self.count_result
        return len(self.users)

    async def get_by_id(self, user_id):
        self._call("get_by_id")
        return copy.deepcopy(self.users.get(self._oid(user_id)))

    async def get_cohorts_by_id(self, user_id):
        self._call("get_cohorts_by_id")
        user = self.users.get(self._oid(user_id))
        if user is None:
            return None
        return [copy.deepcopy(self.cohorts[c]) for c in user["cohorts"] if c in self.cohorts]

    async def add_cohort(self, user_id, cohort_id):
        self._call("add_cohort")
        user = self.users.get(self._oid(user_id))
        if user is None:
            return None
        cohort = self._oid(cohort_id)
        if cohort not in user["cohorts"]:
            user["cohorts"].append(cohort)
        return list(user["cohorts"])

    async def remove_cohort(self, user_id, cohort_id):
        self._call("remove_cohort")
        user = self.users.get(self._oid(user_id))
        if user is None:
            return None
        cohort = self._oid(cohort_id)
        user["cohorts"] = [c for c in user["cohorts"] if c != cohort]
        return list(user["cohorts"])

    async def find_by_external_id(self, external_id):
        self._call("find_by_external_id")
        for user in self.users.values():
            if user["externalId"] == external_id:
                return copy.deepcopy(user)
        return None

    async def save(self, user):
        self._call("save")
        for other in self.users.values():
            if (
                other["_id"] != user["_id"]
                and user.get("username") is not None
                and other.get("username") == user["username"]
            ):
                raise DuplicateKeyStoreError(detail="username_unique")
        self.users[user["_id"]] = copy.deepcopy(user)
        return user

    async def remove(self, user):
        self._call("remove")
        self.users.pop(user["_id"], None)
        return user

    async def get_messages(self, user_id):
        self._call("get_messages")
        user = self.users.get(self._oid(user_id))
        if user is None:
            return None
        doc = {"_id": user["_id"], "messages": copy.deepcopy(user.get("messages"))}
        user["messages"] = []
        return doc


@pytest.fixture
def store():
    return FakeUserStore()


@pytest.fixture
def client(store):
    """TestClient whose user store is the in-memory fake."""
    app.dependency_overrides[get_user_store] = lambda: store
    yield TestClient(app)
    app.dependency_overrides.pop(get_user_store, None)


@pytest.fixture
def auth_headers():
    """Builds the auth gateway header for a given external id."""
    def build(external_id):
        return {settings.AUTH_HEADER: external_id}
    return build
