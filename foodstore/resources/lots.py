# foodstore/resources/lots.py
"""Inventory lots and their compound-key upsert.

A lot is identified by ``(itemId, locationId, lotCode)``.  A lot without a
code is stored with an explicit ``null`` code, so equality on ``null`` finds
exactly the uncoded lot for an item at a location and never a coded one.
An empty code is kept as ``""`` and is a lot of its own.
The unique index on the full key covers the uncoded class as well.
"""

from __future__ import annotations

import asyncio
import logging
from functools import partial
from typing import Any

from fastapi import status

from foodstore.db import Database
from foodstore.models.inventory import InventoryLot
from foodstore.resources.handlers import ResourceHandlers
from foodstore.resources.schema import FieldSpec, ResourceSchema, optional, utcnow
from foodstore.responses import Outcome, Success
from foodstore.validation import (
    assert_safe,
    sanitize_number,
    sanitize_optional_date,
    sanitize_optional_object_id,
    sanitize_string,
)

logger = logging.getLogger(__name__)

KEY_FIELDS = ("itemId", "locationId", "lotCode")
# cleared on upsert when the draft leaves them out
CLEARABLE_FIELDS = ("expiresAt", "note")

LOT = ResourceSchema(
    name="inventory lot",
    plural="lots",
    wrapper="lot",
    collection="inventorylots",
    model=InventoryLot,
    fields=(
        FieldSpec("itemId", sanitize_optional_object_id, required=True),
        FieldSpec("locationId", sanitize_optional_object_id, required=True),
        FieldSpec("qtyOnHand", optional(sanitize_number, min=0), required=True),
        FieldSpec("unit", partial(sanitize_string, lowercase=True, max_length=16), default="ea"),
        FieldSpec("lotCode", partial(sanitize_string, allow_empty=True, max_length=64)),
        FieldSpec("expiresAt", sanitize_optional_date),
        FieldSpec("receivedAt", sanitize_optional_date),
        FieldSpec("note", partial(sanitize_string, max_length=1000)),
    ),
    duplicate_message="An inventory lot with that item, location and lot code already exists.",
    indexes=([("itemId", 1), ("locationId", 1), ("lotCode", 1)],),
    list_filters=(
        FieldSpec("itemId", sanitize_optional_object_id),
        FieldSpec("locationId", sanitize_optional_object_id),
    ),
    sort=(("expiresAt", 1), ("receivedAt", 1)),
)


def lot_key(values: dict[str, Any]) -> dict[str, Any]:
    return {name: values.get(name) for name in KEY_FIELDS}


def upsert_changes(values: dict[str, Any], now) -> dict[str, Any]:
    """Build the single update document applied by the upsert.

    The key fields are not repeated here; on insert the server copies them
    from the equality filter.
    """
    to_set = {name: value for name, value in values.items() if name not in KEY_FIELDS}
    to_set["updatedAt"] = now

    on_insert: dict[str, Any] = {"createdAt": now}
    if "receivedAt" not in values:
        on_insert["receivedAt"] = now

    changes: dict[str, Any] = {"$set": to_set, "$setOnInsert": on_insert}
    to_unset = {name: "" for name in CLEARABLE_FIELDS if name not in values}
    if to_unset:
        changes["$unset"] = to_unset
    return changes


class LotHandlers(ResourceHandlers):
    async def upsert(self, database: Database, body: Any) -> Outcome:
        """Record a lot's quantity at a location, creating the lot if needed.

        Returns 201 when this call created the lot and 200 when it updated an
        existing one.  The write is one ``update_one(..., upsert=True)``, so
        identical concurrent requests converge on a single record.
        """
        try:
            database.require_ready()
            assert_safe(body)
            values = self.schema.normalize(self.read_draft(body)).values
            created, lot = await asyncio.shield(self._upsert(self.collection(database), values))
            logger.info("%s inventory lot %s", "created" if created else "updated", lot["_id"])
            status_code = status.HTTP_201_CREATED if created else status.HTTP_200_OK
            return Success(status_code, {self.schema.wrapper: self.schema.serialize(lot)})
        except Exception as exc:
            return self.fail(exc, "upsert")

    async def _upsert(self, collection: Any, values: dict[str, Any]) -> tuple[bool, dict[str, Any]]:
        key = lot_key(values)
        with self.translate_write_errors():
            result = await collection.update_one(key, upsert_changes(values, utcnow()), upsert=True)
        lot = await collection.find_one(key)
        if lot is None:
            raise RuntimeError("inventory lot could not be retrieved after upsert")
        return result.upserted_id is not None, lot


handlers = LotHandlers(LOT)
