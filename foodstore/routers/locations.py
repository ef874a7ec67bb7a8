# foodstore/routers/locations.py
from typing import Any, Optional

from fastapi import APIRouter, Body, Depends

from foodstore.db import Database
from foodstore.dependencies import get_database
from foodstore.resources.locations import handlers

router = APIRouter(prefix="/locations", tags=["locations"])


@router.get("")
async def list_locations(type: Optional[str] = None, database: Database = Depends(get_database)):
    return (await handlers.list(database, {"type": type})).to_response()


@router.post("")
async def create_location(payload: Any = Body(None), database: Database = Depends(get_database)):
    return (await handlers.create(database, payload)).to_response()


@router.get("/{location_id}")
async def get_location(location_id: str, database: Database = Depends(get_database)):
    return (await handlers.get(database, location_id)).to_response()


@router.put("/{location_id}")
async def update_location(location_id: str, payload: Any = Body(None), database: Database = Depends(get_database)):
    return (await handlers.update(database, location_id, payload)).to_response()


@router.delete("/{location_id}")
async def delete_location(location_id: str, database: Database = Depends(get_database)):
    return (await handlers.delete(database, location_id)).to_response()
