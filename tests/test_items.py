"""Generic handler behaviour, exercised through items and locations."""

import pytest
from bson import ObjectId
from pymongo.errors import WriteError

from foodstore.resources.items import handlers as items
from foodstore.resources.locations import handlers as locations
from foodstore.responses import Failure, NoContent, Success

from tests.conftest import LOCATION_ID


def _item(**overrides):
    draft = {"name": "Canned Beans", "locationId": LOCATION_ID}
    draft.update(overrides)
    return {"item": draft}


class TestCreate:
    async def test_defaults_and_identity(self, database):
        outcome = await items.create(database, _item())

        assert isinstance(outcome, Success)
        assert outcome.status == 201
        item = outcome.body["item"]
        assert item["name"] == "Canned Beans"
        assert item["unit"] == "ea"
        assert item["isActive"] is True
        assert item["locationId"] == LOCATION_ID
        assert ObjectId.is_valid(item["_id"])
        assert item["createdAt"] == item["updatedAt"]

    async def test_absent_optionals_omitted(self, database):
        item = (await items.create(database, _item())).body["item"]
        for name in ("upc", "category", "tags", "expiresAt", "note"):
            assert name not in item

    async def test_duplicate_name_is_conflict(self, database, mongo):
        await items.create(database, _item())
        outcome = await items.create(database, _item(upc="123"))

        assert outcome == Failure(409, "An item with that name already exists.", {"kind": "duplicate_key"})
        assert len(mongo["items"].documents) == 1

    async def test_unsafe_key_rejected_before_sanitizing(self, database, mongo):
        outcome = await items.create(database, {"item": {"name": "x", "$where": "1"}})

        assert outcome.status == 400
        assert outcome.issues["kind"] == "unsafe_payload"
        assert mongo["items"].calls == ["create_index"]

    async def test_script_rejected(self, database):
        outcome = await items.create(database, _item(note="<script>alert(1)</script>"))
        assert outcome.status == 400
        assert outcome.issues == {"kind": "unsafe_payload", "path": "payload.item.note"}

    @pytest.mark.parametrize("body", [None, {"name": "Canned Beans"}, {"item": "Canned Beans"}])
    async def test_missing_wrapper(self, database, body):
        outcome = await items.create(database, body)
        assert outcome == Failure(400, "Invalid item request payload.", {"kind": "malformed_request"})

    async def test_field_validation(self, database):
        outcome = await items.create(database, _item(locationId="nope"))
        assert outcome.status == 400
        assert outcome.message == "item.locationId must be a valid ObjectId string."
        assert outcome.issues["validation"] == {"item.locationId": "must be a valid ObjectId string"}

    async def test_oversized_integer_is_field_failure(self, database):
        outcome = await items.create(database, _item(caseSize=10**400))
        assert outcome.status == 400
        assert outcome.message == "item.caseSize must be a finite number."

    async def test_storage_unavailable_short_circuits(self, database, state, mongo):
        state.mark_lost(ConnectionError("no primary"))
        outcome = await items.create(database, {"item": {"$where": "1"}})

        assert outcome.status == 503
        assert "/health" in outcome.message
        assert outcome.issues == {"kind": "storage_unavailable", "health": "/health"}
        assert "insert_one" not in mongo["items"].calls

    async def test_driver_failure_is_generic(self, database, mongo):
        mongo["items"].fail_with = RuntimeError("connection reset by 10.0.0.3")
        outcome = await items.create(database, _item())
        assert outcome == Failure(500, "Failed to create item.")

    async def test_document_validation_is_bad_request(self, database, mongo):
        mongo["items"].fail_with = WriteError("Document failed validation", code=121)
        outcome = await items.create(database, _item())
        assert outcome.status == 400
        assert outcome.message == "Failed to create item."


class TestUpdate:
    async def test_partial_update(self, database):
        created = (await items.create(database, _item(note="top shelf"))).body["item"]
        outcome = await items.update(database, created["_id"], {"item": {"category": "Legumes", "note": ""}})

        assert outcome.status == 200
        item = outcome.body["item"]
        assert item["name"] == "Canned Beans"
        assert item["category"] == "Legumes"
        assert "note" not in item
        assert item["createdAt"] == created["createdAt"]

    async def test_unknown_id(self, database):
        outcome = await items.update(database, str(ObjectId()), {"item": {"category": "x"}})
        assert outcome == Failure(404, "Item not found.", {"kind": "not_found"})

    async def test_invalid_id(self, database):
        outcome = await items.update(database, "abc", {"item": {"category": "x"}})
        assert outcome.status == 400
        assert outcome.message == "item.id must be a valid ObjectId string."

    async def test_rename_into_duplicate(self, database):
        await items.create(database, _item())
        other = (await items.create(database, _item(name="Rice"))).body["item"]
        outcome = await items.update(database, other["_id"], {"item": {"name": "Canned Beans"}})
        assert outcome.status == 409

    async def test_cannot_blank_required_field(self, database):
        created = (await items.create(database, _item())).body["item"]
        outcome = await items.update(database, created["_id"], {"item": {"name": " "}})
        assert outcome.message == "item.name is required."


class TestReadAndDelete:
    async def test_get(self, database):
        created = (await items.create(database, _item())).body["item"]
        outcome = await items.get(database, created["_id"])
        assert outcome == Success(200, {"item": created})

    async def test_get_unknown(self, database):
        assert (await items.get(database, str(ObjectId()))).status == 404

    async def test_empty_list_is_no_content(self, database):
        assert await items.list(database) == NoContent()

    async def test_list_sorted_and_filtered(self, database):
        other_location = str(ObjectId())
        await items.create(database, _item(name="Rice"))
        await items.create(database, _item(name="Beans"))
        await items.create(database, _item(name="Oats", locationId=other_location))

        everything = await items.list(database)
        assert [item["name"] for item in everything.body["items"]] == ["Beans", "Oats", "Rice"]

        filtered = await items.list(database, {"locationId": LOCATION_ID})
        assert [item["name"] for item in filtered.body["items"]] == ["Beans", "Rice"]

    async def test_list_rejects_bad_filter(self, database):
        outcome = await items.list(database, {"locationId": "nope"})
        assert outcome.status == 400

    async def test_delete(self, database, mongo):
        created = (await items.create(database, _item())).body["item"]
        assert await items.delete(database, created["_id"]) == Success(200, {"deleted": True})
        assert mongo["items"].documents == []
        assert (await items.delete(database, created["_id"])).status == 404


class TestLocations:
    async def test_create_and_filter_by_type(self, database):
        body = {
            "location": {
                "name": "Walk-in",
                "type": "Freezer",
                "address": {"line1": "1 Main St", "city": "Springfield", "state": "il", "zip": "62701"},
            }
        }
        outcome = await locations.create(database, body)
        assert outcome.status == 201
        assert outcome.body["location"]["address"]["state"] == "IL"

        assert (await locations.list(database, {"type": "pantry"})) == NoContent()
        listed = await locations.list(database, {"type": "freezer"})
        assert [loc["name"] for loc in listed.body["locations"]] == ["Walk-in"]

        duplicate = await locations.create(database, body)
        assert duplicate.message == "A location with that name already exists."
