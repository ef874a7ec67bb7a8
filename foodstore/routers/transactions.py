# foodstore/routers/transactions.py
from typing import Any, Optional

from fastapi import APIRouter, Body, Depends

from foodstore.db import Database
from foodstore.dependencies import get_database
from foodstore.resources.transactions import handlers

router = APIRouter(prefix="/stock-transactions", tags=["stock-transactions"])


@router.get("")
async def list_transactions(itemId: Optional[str] = None, database: Database = Depends(get_database)):
    return (await handlers.list(database, {"itemId": itemId})).to_response()


@router.post("")
async def record_transaction(payload: Any = Body(None), database: Database = Depends(get_database)):
    return (await handlers.create(database, payload)).to_response()
