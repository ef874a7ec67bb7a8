# foodstore/routers/users.py
from typing import Any, Optional

from fastapi import APIRouter, Body, Depends

from foodstore.db import Database
from foodstore.dependencies import get_database, get_user_handlers
from foodstore.resources.users import UserHandlers

router = APIRouter(prefix="/users", tags=["users"])


@router.get("")
async def list_users(
    role: Optional[str] = None,
    database: Database = Depends(get_database),
    users: UserHandlers = Depends(get_user_handlers),
):
    return (await users.list(database, {"role": role})).to_response()


@router.post("")
async def create_user(
    payload: Any = Body(None),
    database: Database = Depends(get_database),
    users: UserHandlers = Depends(get_user_handlers),
):
    return (await users.create(database, payload)).to_response()


@router.get("/{user_id}")
async def get_user(
    user_id: str,
    database: Database = Depends(get_database),
    users: UserHandlers = Depends(get_user_handlers),
):
    return (await users.get(database, user_id)).to_response()


@router.put("/{user_id}")
async def update_user(
    user_id: str,
    payload: Any = Body(None),
    database: Database = Depends(get_database),
    users: UserHandlers = Depends(get_user_handlers),
):
    return (await users.update(database, user_id, payload)).to_response()


@router.delete("/{user_id}")
async def delete_user(
    user_id: str,
    database: Database = Depends(get_database),
    users: UserHandlers = Depends(get_user_handlers),
):
    return (await users.delete(database, user_id)).to_response()
