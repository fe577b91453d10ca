import os
import sys
from pathlib import Path as _Path
sys.path.insert(0, str(_Path(__file__).resolve().parents[1] / "src"))

# Cheap hashing for the test run; must be set before portal.auth.passwords is imported.
os.environ["PORTAL_HASH_COST"] = "1"

from types import SimpleNamespace

import pytest
from bson import ObjectId
from fastapi.testclient import TestClient

from portal.app import create_app
from portal.config import Settings


class FakeCollection:
    """In-memory stand-in for the handful of pymongo Collection methods the app uses."""

    def __init__(self, name: str):
        self.name = name
        self.docs = []
        self.indexes = []
        self.fail_with = None

    def _check(self):
        if self.fail_with is not None:
            raise self.fail_with

    @staticmethod
    def _match(doc, flt):
        return all(doc.get(k) == v for k, v in (flt or {}).items())

    def find_one(self, flt=None):
        self._check()
        for doc in self.docs:
            if self._match(doc, flt):
                return dict(doc)
        return None

    def count_documents(self, flt):
        return sum(1 for doc in self.docs if self._match(doc, flt))

    def insert_one(self, doc):
        self._check()
        stored = dict(doc)
        stored.setdefault("_id", ObjectId())
        self.docs.append(stored)
        return SimpleNamespace(inserted_id=stored["_id"])

    def replace_one(self, flt, doc, upsert=False):
        self._check()
        for i, existing in enumerate(self.docs):
            if self._match(existing, flt):
                self.docs[i] = dict(doc)
                return SimpleNamespace(matched_count=1)
        if upsert:
            self.docs.append(dict(doc))
        return SimpleNamespace(matched_count=0)

    def delete_one(self, flt):
        self._check()
        for i, doc in enumerate(self.docs):
            if self._match(doc, flt):
                del self.docs[i]
                return SimpleNamespace(deleted_count=1)
        return SimpleNamespace(deleted_count=0)

    def create_index(self, keys, **kwargs):
        self._check()
        self.indexes.append((keys, kwargs))
        return f"{keys}_1"


class FakeDatabase:
    def __init__(self):
        self.collections = {}

    def __getitem__(self, name):
        if name not in self.collections:
            self.collections[name] = FakeCollection(name)
        return self.collections[name]


@pytest.fixture()
def db() -> FakeDatabase:
    return FakeDatabase()


@pytest.fixture()
def settings() -> Settings:
    return Settings(session_secret="test-session-secret", store_secret="test-store-secret")


@pytest.fixture()
def app(settings, db):
    return create_app(settings, database=db)


@pytest.fixture()
def client(app) -> TestClient:
    return TestClient(app)


@pytest.fixture()
def signup(client):
    """Post the signup form and return the (unfollowed) response."""

    def _signup(name="Alice", email="alice@mail.com", password="secret"):
        return client.post(
            "/signup",
            data={"name": name, "email": email, "password": password},
            follow_redirects=False,
        )

    return _signup
