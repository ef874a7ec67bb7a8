# foodstore/resources/handlers.py
"""Generic create/read/update/delete handlers driven by a ``ResourceSchema``.

Each operation runs the same steps in order: readiness check, payload guard,
wrapper check, field sanitizers, persistence with a re-read, serialization.
Any exception on the way is classified once into a ``Failure``.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Iterator
from contextlib import contextmanager
from typing import Any

from fastapi import status
from pymongo import ReturnDocument
from pymongo.errors import DuplicateKeyError

from foodstore.core.errors import DuplicateKey, NotFound
from foodstore.db import Database
from foodstore.resources.schema import ResourceSchema, utcnow
from foodstore.responses import Failure, NoContent, Outcome, Success, classify
from foodstore.validation import assert_safe, sanitize_object_id

logger = logging.getLogger(__name__)


class ResourceHandlers:
    def __init__(self, schema: ResourceSchema) -> None:
        self.schema = schema

    def collection(self, database: Database) -> Any:
        return database.collection(self.schema.collection)

    def read_draft(self, body: Any) -> dict[str, Any]:
        return self.schema.unwrap(body)

    async def prepare(self, values: dict[str, Any], *, partial: bool) -> dict[str, Any]:
        """Last asynchronous step before a write; resources override it."""
        return values

    def fail(self, exc: Exception, action: str) -> Failure:
        return classify(
            exc,
            fallback_message=f"Failed to {action} {self.schema.name}.",
            duplicate_message=self.schema.duplicate_message,
        )

    @contextmanager
    def translate_write_errors(self) -> Iterator[None]:
        try:
            yield
        except DuplicateKeyError as exc:
            raise DuplicateKey(self.schema.name, self.schema.duplicate_message) from exc

    def parse_id(self, resource_id: Any) -> Any:
        return sanitize_object_id(resource_id, f"{self.schema.name}.id")

    async def create(self, database: Database, body: Any) -> Outcome:
        try:
            database.require_ready()
            assert_safe(body)
            draft = self.schema.normalize(self.read_draft(body))
            document = await self.prepare(draft.values, partial=False)
            now = utcnow()
            document.update(createdAt=now, updatedAt=now)

            # a started write runs to completion even if the request goes away
            created = await asyncio.shield(self._insert(self.collection(database), document))
            logger.info("created %s %s", self.schema.name, created["_id"])
            return Success(status.HTTP_201_CREATED, {self.schema.wrapper: self.schema.serialize(created)})
        except Exception as exc:
            return self.fail(exc, "create")

    async def _insert(self, collection: Any, document: dict[str, Any]) -> dict[str, Any]:
        with self.translate_write_errors():
            result = await collection.insert_one(document)
        created = await collection.find_one({"_id": result.inserted_id})
        if created is None:
            raise RuntimeError(f"{self.schema.name} could not be retrieved after creation")
        return created

    async def update(self, database: Database, resource_id: Any, body: Any) -> Outcome:
        try:
            database.require_ready()
            assert_safe(body)
            raw = self.read_draft(body)
            object_id = self.parse_id(resource_id)
            draft = self.schema.normalize(raw, partial=True)
            values = await self.prepare(draft.values, partial=True)

            changes: dict[str, Any] = {"$set": {**values, "updatedAt": utcnow()}}
            if draft.unset:
                changes["$unset"] = {name: "" for name in draft.unset}

            updated = await asyncio.shield(self._patch(self.collection(database), object_id, changes))
            if updated is None:
                raise NotFound(self.schema.name, resource_id)
            return Success(status.HTTP_200_OK, {self.schema.wrapper: self.schema.serialize(updated)})
        except Exception as exc:
            return self.fail(exc, "update")

    async def _patch(self, collection: Any, object_id: Any, changes: dict[str, Any]) -> dict[str, Any] | None:
        with self.translate_write_errors():
            return await collection.find_one_and_update(
                {"_id": object_id}, changes, return_document=ReturnDocument.AFTER
            )

    async def get(self, database: Database, resource_id: Any) -> Outcome:
        try:
            database.require_ready()
            object_id = self.parse_id(resource_id)
            document = await self.collection(database).find_one({"_id": object_id})
            if document is None:
                raise NotFound(self.schema.name, resource_id)
            return Success(status.HTTP_200_OK, {self.schema.wrapper: self.schema.serialize(document)})
        except Exception as exc:
            return self.fail(exc, "fetch")

    async def list(self, database: Database, filters: dict[str, Any] | None = None) -> Outcome:
        try:
            database.require_ready()
            query = self.schema.build_filter(filters or {})
            cursor = self.collection(database).find(query).sort(list(self.schema.sort))
            documents = await cursor.to_list(length=None)
            if not documents:
                return NoContent()
            records = [self.schema.serialize(document) for document in documents]
            return Success(status.HTTP_200_OK, {self.schema.plural: records})
        except Exception as exc:
            return self.fail(exc, "list")

    async def delete(self, database: Database, resource_id: Any) -> Outcome:
        try:
            database.require_ready()
            object_id = self.parse_id(resource_id)
            result = await asyncio.shield(self.collection(database).delete_one({"_id": object_id}))
            if result.deleted_count == 0:
                raise NotFound(self.schema.name, resource_id)
            logger.info("deleted %s %s", self.schema.name, resource_id)
            return Success(status.HTTP_200_OK, {"deleted": True})
        except Exception as exc:
            return self.fail(exc, "delete")
