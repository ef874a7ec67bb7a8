"""Inventory lot upsert: compound key, idempotence, null lot codes."""

import asyncio

from bson import ObjectId

from foodstore.resources.lots import handlers as lots
from foodstore.responses import Failure

from tests.conftest import ITEM_ID, LOCATION_ID


def _lot(**overrides):
    draft = {"itemId": ITEM_ID, "locationId": LOCATION_ID, "qtyOnHand": 10}
    draft.update(overrides)
    return {"lot": draft}


class TestUpsert:
    async def test_create_then_update_same_key(self, database, mongo):
        first = await lots.upsert(database, _lot())
        second = await lots.upsert(database, _lot(qtyOnHand=7))

        assert first.status == 201
        assert second.status == 200
        assert second.body["lot"]["_id"] == first.body["lot"]["_id"]
        assert second.body["lot"]["qtyOnHand"] == 7
        assert len(mongo["inventorylots"].documents) == 1

    async def test_defaults_on_insert(self, database):
        lot = (await lots.upsert(database, _lot())).body["lot"]
        assert lot["unit"] == "ea"
        assert lot["itemId"] == ITEM_ID
        assert lot["receivedAt"] == lot["createdAt"]
        assert "lotCode" not in lot

    async def test_received_at_kept_on_update(self, database):
        first = (await lots.upsert(database, _lot())).body["lot"]
        second = (await lots.upsert(database, _lot(qtyOnHand=3))).body["lot"]
        assert second["receivedAt"] == first["receivedAt"]
        assert second["createdAt"] == first["createdAt"]

    async def test_null_and_coded_lots_stay_apart(self, database, mongo):
        uncoded = await lots.upsert(database, _lot())
        coded = await lots.upsert(database, _lot(lotCode="A1", qtyOnHand=4))
        uncoded_again = await lots.upsert(database, _lot(qtyOnHand=2))
        coded_again = await lots.upsert(database, _lot(lotCode="A1", qtyOnHand=5))

        assert [uncoded.status, coded.status, uncoded_again.status, coded_again.status] == [201, 201, 200, 200]
        assert uncoded_again.body["lot"]["_id"] == uncoded.body["lot"]["_id"]
        assert coded_again.body["lot"]["_id"] == coded.body["lot"]["_id"]
        stored = {doc.get("lotCode"): doc["qtyOnHand"] for doc in mongo["inventorylots"].documents}
        assert stored == {None: 2.0, "A1": 5.0}

    async def test_empty_code_is_not_absent(self, database, mongo):
        await lots.upsert(database, _lot())
        outcome = await lots.upsert(database, _lot(lotCode="   ", qtyOnHand=1))
        assert outcome.status == 201
        assert outcome.body["lot"]["lotCode"] == ""
        assert len(mongo["inventorylots"].documents) == 2

    async def test_absent_optionals_cleared(self, database):
        await lots.upsert(database, _lot(note="back shelf", expiresAt="2026-01-01"))
        lot = (await lots.upsert(database, _lot(qtyOnHand=9))).body["lot"]
        assert "note" not in lot
        assert "expiresAt" not in lot

    async def test_other_location_is_separate_lot(self, database, mongo):
        await lots.upsert(database, _lot())
        outcome = await lots.upsert(database, _lot(locationId=str(ObjectId())))
        assert outcome.status == 201
        assert len(mongo["inventorylots"].documents) == 2

    async def test_concurrent_identical_upserts_converge(self, database, mongo):
        outcomes = await asyncio.gather(*(lots.upsert(database, _lot(qtyOnHand=6)) for _ in range(5)))

        assert sorted(outcome.status for outcome in outcomes) == [200, 200, 200, 200, 201]
        assert len({outcome.body["lot"]["_id"] for outcome in outcomes}) == 1
        assert len(mongo["inventorylots"].documents) == 1

    async def test_negative_quantity(self, database):
        outcome = await lots.upsert(database, _lot(qtyOnHand=-1))
        assert outcome.status == 400
        assert outcome.message == "lot.qtyOnHand must be >= 0."

    async def test_missing_quantity(self, database):
        outcome = await lots.upsert(database, _lot(qtyOnHand=None))
        assert outcome.message == "lot.qtyOnHand is required."

    async def test_malformed(self, database):
        outcome = await lots.upsert(database, {"inventory": {}})
        assert outcome == Failure(400, "Invalid inventory lot request payload.", {"kind": "malformed_request"})

    async def test_storage_unavailable(self, database, state):
        state.mark_lost()
        assert (await lots.upsert(database, _lot())).status == 503

    async def test_driver_failure(self, database, mongo):
        mongo["inventorylots"].fail_with = RuntimeError("boom")
        assert await lots.upsert(database, _lot()) == Failure(500, "Failed to upsert inventory lot.")


class TestQueries:
    async def test_list_filters(self, database):
        other_item = str(ObjectId())
        await lots.upsert(database, _lot())
        await lots.upsert(database, _lot(itemId=other_item))

        listed = await lots.list(database, {"itemId": other_item, "locationId": LOCATION_ID})
        assert [lot["itemId"] for lot in listed.body["lots"]] == [other_item]

    async def test_get_and_delete(self, database):
        lot = (await lots.upsert(database, _lot())).body["lot"]
        assert (await lots.get(database, lot["_id"])).body == {"lot": lot}
        assert (await lots.delete(database, lot["_id"])).status == 200
        missing = await lots.get(database, lot["_id"])
        assert missing.message == "Inventory lot not found."
