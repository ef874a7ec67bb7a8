# foodstore/routers/items.py
from typing import Any, Optional

from fastapi import APIRouter, Body, Depends

from foodstore.db import Database
from foodstore.dependencies import get_database
from foodstore.resources.items import handlers

router = APIRouter(prefix="/items", tags=["items"])


@router.get("")
async def list_items(locationId: Optional[str] = None, database: Database = Depends(get_database)):
    outcome = await handlers.list(database, {"locationId": locationId})
    return outcome.to_response()


@router.post("")
async def create_item(payload: Any = Body(None), database: Database = Depends(get_database)):
    outcome = await handlers.create(database, payload)
    return outcome.to_response()


@router.get("/{item_id}")
async def get_item(item_id: str, database: Database = Depends(get_database)):
    outcome = await handlers.get(database, item_id)
    return outcome.to_response()


@router.put("/{item_id}")
async def update_item(item_id: str, payload: Any = Body(None), database: Database = Depends(get_database)):
    outcome = await handlers.update(database, item_id, payload)
    return outcome.to_response()


@router.delete("/{item_id}")
async def delete_item(item_id: str, database: Database = Depends(get_database)):
    outcome = await handlers.delete(database, item_id)
    return outcome.to_response()
