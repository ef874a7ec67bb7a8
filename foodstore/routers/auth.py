# foodstore/routers/auth.py
from typing import Any

from fastapi import APIRouter, Body, Depends

from foodstore.db import Database
from foodstore.dependencies import get_database, get_user_handlers
from foodstore.resources.users import UserHandlers

router = APIRouter(prefix="/auth", tags=["auth"])


@router.post("/login")
async def login(
    payload: Any = Body(None),
    database: Database = Depends(get_database),
    users: UserHandlers = Depends(get_user_handlers),
):
    return (await users.authenticate(database, payload)).to_response()
