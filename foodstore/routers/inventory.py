# foodstore/routers/inventory.py
from typing import Any, Optional

from fastapi import APIRouter, Body, Depends

from foodstore.db import Database
from foodstore.dependencies import get_database
from foodstore.resources.lots import handlers

router = APIRouter(prefix="/inventory", tags=["inventory"])


@router.get("/lots")
async def list_lots(
    itemId: Optional[str] = None,
    locationId: Optional[str] = None,
    database: Database = Depends(get_database),
):
    return (await handlers.list(database, {"itemId": itemId, "locationId": locationId})).to_response()


# idempotent: 201 when the lot is new, 200 when it already existed
@router.put("/lots")
async def upsert_lot(payload: Any = Body(None), database: Database = Depends(get_database)):
    return (await handlers.upsert(database, payload)).to_response()


@router.get("/lots/{lot_id}")
async def get_lot(lot_id: str, database: Database = Depends(get_database)):
    return (await handlers.get(database, lot_id)).to_response()


@router.delete("/lots/{lot_id}")
async def delete_lot(lot_id: str, database: Database = Depends(get_database)):
    return (await handlers.delete(database, lot_id)).to_response()
