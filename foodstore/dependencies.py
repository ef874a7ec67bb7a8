# foodstore/dependencies.py
from fastapi import Request

from foodstore.core.config import Settings
from foodstore.db import Database
from foodstore.resources.users import UserHandlers


def get_database(request: Request) -> Database:
    return request.app.state.database


def get_settings(request: Request) -> Settings:
    return request.app.state.settings


def get_user_handlers(request: Request) -> UserHandlers:
    return request.app.state.users
