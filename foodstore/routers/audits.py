# foodstore/routers/audits.py
from typing import Any, Optional

from fastapi import APIRouter, Body, Depends

from foodstore.db import Database
from foodstore.dependencies import get_database
from foodstore.resources.audits import handlers

router = APIRouter(prefix="/audits", tags=["audits"])


@router.get("")
async def list_audits(status: Optional[str] = None, database: Database = Depends(get_database)):
    return (await handlers.list(database, {"status": status})).to_response()


@router.post("")
async def create_audit(payload: Any = Body(None), database: Database = Depends(get_database)):
    return (await handlers.create(database, payload)).to_response()
