"""Shared fixtures: an in-memory stand-in for the MongoDB collection accessor.

``FakeCollection`` implements the handful of collection calls the handlers
make (insert/find/find-one/find-one-and-update/update-one/delete-one and
``create_index``), including unique indexes that raise the driver's
``DuplicateKeyError``.  Each call completes without suspending, so every
operation is atomic with respect to other coroutines.
"""

import copy
from types import SimpleNamespace

import pytest
from bson import ObjectId
from httpx import ASGITransport, AsyncClient
from pymongo import ReturnDocument
from pymongo.errors import DuplicateKeyError

from foodstore.api import SCHEMAS, create_app
from foodstore.core.config import Settings
from foodstore.db import ConnectionState, Database, ensure_indexes


def _matches(document: dict, query: dict) -> bool:
    for key, expected in query.items():
        if expected is None:
            # like MongoDB: null matches a missing field too
            if document.get(key) is not None:
                return False
        elif key not in document or document[key] != expected:
            return False
    return True


def _sort_key(document: dict, field: str):
    value = document.get(field)
    return (value is not None, value if value is not None else 0)


class FakeCursor:
    def __init__(self, documents: list[dict]):
        self._documents = documents

    def sort(self, keys):
        for field, direction in reversed(list(keys)):
            self._documents.sort(key=lambda doc, f=field: _sort_key(doc, f), reverse=direction == -1)
        return self

    async def to_list(self, length=None):
        return [copy.deepcopy(doc) for doc in self._documents[:length]]


class FakeCollection:
    def __init__(self, name: str):
        self.name = name
        self.documents: list[dict] = []
        self.unique_indexes: list[tuple[str, ...]] = []
        self.fail_with: BaseException | None = None
        self.calls: list[str] = []

    def _record(self, operation: str) -> None:
        self.calls.append(operation)
        if self.fail_with is not None:
            exc, self.fail_with = self.fail_with, None
            raise exc

    def _check_unique(self, candidate: dict) -> None:
        for fields in self.unique_indexes:
            key = tuple(candidate.get(field) for field in fields)
            for existing in self.documents:
                if existing.get("_id") == candidate.get("_id"):
                    continue
                if tuple(existing.get(field) for field in fields) == key:
                    raise DuplicateKeyError(f"E11000 duplicate key error collection: {self.name}", code=11000)

    def _apply(self, document: dict, update: dict, inserting: bool) -> dict:
        result = copy.deepcopy(document)
        result.update(copy.deepcopy(update.get("$set", {})))
        if inserting:
            result.update(copy.deepcopy(update.get("$setOnInsert", {})))
        for field in update.get("$unset", {}):
            result.pop(field, None)
        return result

    def _find_index(self, query: dict):
        for index, document in enumerate(self.documents):
            if _matches(document, query):
                return index
        return None

    async def create_index(self, keys, unique=False):
        self._record("create_index")
        fields = tuple(field for field, _ in keys)
        if unique and fields not in self.unique_indexes:
            self.unique_indexes.append(fields)
        return "_".join(f"{field}_{direction}" for field, direction in keys)

    async def insert_one(self, document: dict):
        self._record("insert_one")
        document.setdefault("_id", ObjectId())
        self._check_unique(document)
        self.documents.append(copy.deepcopy(document))
        return SimpleNamespace(inserted_id=document["_id"], acknowledged=True)

    async def find_one(self, query: dict):
        self._record("find_one")
        index = self._find_index(query)
        return None if index is None else copy.deepcopy(self.documents[index])

    def find(self, query: dict | None = None):
        self._record("find")
        return FakeCursor([doc for doc in self.documents if _matches(doc, query or {})])

    async def find_one_and_update(self, query, update, return_document=ReturnDocument.BEFORE, upsert=False):
        self._record("find_one_and_update")
        index = self._find_index(query)
        if index is None:
            return None
        before = self.documents[index]
        after = self._apply(before, update, inserting=False)
        self._check_unique(after)
        self.documents[index] = after
        chosen = after if return_document == ReturnDocument.AFTER else before
        return copy.deepcopy(chosen)

    async def update_one(self, query, update, upsert=False):
        self._record("update_one")
        index = self._find_index(query)
        if index is not None:
            after = self._apply(self.documents[index], update, inserting=False)
            self._check_unique(after)
            modified = after != self.documents[index]
            self.documents[index] = after
            return SimpleNamespace(matched_count=1, modified_count=int(modified), upserted_id=None)
        if not upsert:
            return SimpleNamespace(matched_count=0, modified_count=0, upserted_id=None)

        seed = {key: value for key, value in query.items() if not isinstance(value, dict)}
        seed["_id"] = ObjectId()
        inserted = self._apply(seed, update, inserting=True)
        self._check_unique(inserted)
        self.documents.append(inserted)
        return SimpleNamespace(matched_count=0, modified_count=0, upserted_id=inserted["_id"])

    async def delete_one(self, query):
        self._record("delete_one")
        index = self._find_index(query)
        if index is None:
            return SimpleNamespace(deleted_count=0)
        del self.documents[index]
        return SimpleNamespace(deleted_count=1)


class FakeMongo:
    def __init__(self):
        self.collections: dict[str, FakeCollection] = {}

    def __getitem__(self, name: str) -> FakeCollection:
        return self.collections.setdefault(name, FakeCollection(name))

    async def command(self, name: str):
        return {"ok": 1.0}


LOCATION_ID = "64b7f0c2a1b2c3d4e5f60718"
ITEM_ID = "64b7f0c2a1b2c3d4e5f60719"
LOT_ID = "64b7f0c2a1b2c3d4e5f6071a"


@pytest.fixture
def settings() -> Settings:
    return Settings(_env_file=None, secret_key="test-secret", bcrypt_rounds=4, log_level="WARNING")


@pytest.fixture
def mongo() -> FakeMongo:
    return FakeMongo()


@pytest.fixture
def state() -> ConnectionState:
    return ConnectionState(ready=True)


@pytest.fixture
async def database(mongo, state) -> Database:
    db = Database(mongo, state)
    await ensure_indexes(db, SCHEMAS)
    return db


@pytest.fixture
def app(settings, database):
    return create_app(settings, database)


@pytest.fixture
async def client(app):
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://testserver") as ac:
        yield ac
