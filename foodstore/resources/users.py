# foodstore/resources/users.py
"""Users: write-only hashed passwords, a single role, login.

Emails are stored lower-cased, so the unique index on ``email`` makes
uniqueness and login lookups case-insensitive.
"""

from __future__ import annotations

import logging
from functools import partial
from typing import Any

from fastapi import status
from pydantic import EmailStr, TypeAdapter
from pydantic import ValidationError as PydanticValidationError

from foodstore.core.config import Settings
from foodstore.core.errors import AccountDisabled, AuthenticationFailed, MalformedRequest, ValidationFailed
from foodstore.core.security import PasswordHasher, create_access_token
from foodstore.db import Database
from foodstore.models.user import ROLES, User, first_role
from foodstore.resources.handlers import ResourceHandlers
from foodstore.resources.schema import FieldSpec, ResourceSchema
from foodstore.responses import Outcome, Success
from foodstore.validation import assert_safe, sanitize_bool, sanitize_choice, sanitize_string

logger = logging.getLogger(__name__)

_email_adapter = TypeAdapter(EmailStr)

PASSWORD_MIN_LENGTH = 6
# bcrypt only looks at the first 72 bytes
PASSWORD_MAX_BYTES = 72


def sanitize_email(value: Any, field: str) -> str | None:
    email = sanitize_string(value, field, lowercase=True, max_length=254)
    if email is None:
        return None
    try:
        _email_adapter.validate_python(email)
    except PydanticValidationError:
        raise ValidationFailed(field, "must be a valid email address") from None
    return email


def sanitize_password(value: Any, field: str) -> str | None:
    password = sanitize_string(value, field)
    if password is None:
        return None
    if len(password) < PASSWORD_MIN_LENGTH:
        raise ValidationFailed(field, f"must be at least {PASSWORD_MIN_LENGTH} characters")
    if len(password.encode("utf-8")) > PASSWORD_MAX_BYTES:
        raise ValidationFailed(field, f"must be at most {PASSWORD_MAX_BYTES} bytes")
    return password


def sanitize_role(value: Any, field: str) -> str | None:
    if isinstance(value, list):
        value = first_role(value)
    return sanitize_choice(value, field, ROLES, lowercase=True)


USER = ResourceSchema(
    name="user",
    plural="users",
    wrapper="user",
    collection="users",
    model=User,
    fields=(
        FieldSpec("email", sanitize_email, required=True),
        FieldSpec("name", partial(sanitize_string, max_length=200), required=True),
        FieldSpec("password", sanitize_password, required=True),
        FieldSpec("role", sanitize_role, default="volunteer"),
        FieldSpec("enabled", sanitize_bool, default=True),
    ),
    duplicate_message="A user with that email already exists.",
    indexes=([("email", 1)],),
    list_filters=(FieldSpec("role", sanitize_role),),
    sort=(("email", 1),),
)


class UserHandlers(ResourceHandlers):
    def __init__(self, schema: ResourceSchema, hasher: PasswordHasher, settings: Settings) -> None:
        super().__init__(schema)
        self.hasher = hasher
        self.settings = settings

    def read_draft(self, body: Any) -> dict[str, Any]:
        draft = super().read_draft(body)
        # older clients send a one-element ``roles`` list
        if "role" not in draft and "roles" in draft:
            draft = {**draft, "role": draft["roles"]}
        return draft

    async def prepare(self, values: dict[str, Any], *, partial: bool) -> dict[str, Any]:
        if "password" in values:
            values = dict(values)
            values["passwordHash"] = await self.hasher.hash(values.pop("password"))
        return values

    async def authenticate(self, database: Database, body: Any) -> Outcome:
        try:
            database.require_ready()
            assert_safe(body)
            if not isinstance(body, dict):
                raise MalformedRequest("login")

            email = sanitize_string(body.get("email"), "email", required=True, lowercase=True)
            password = sanitize_string(body.get("password"), "password", required=True)

            user = await self.collection(database).find_one({"email": email})
            if user is None or not user.get("passwordHash"):
                raise AuthenticationFailed()
            if not await self.hasher.verify(password, user["passwordHash"]):
                raise AuthenticationFailed()
            if user.get("enabled") is False:
                raise AccountDisabled()

            record = self.schema.serialize(user)
            token = create_access_token(
                {"sub": record["_id"], "email": record["email"], "role": record.get("role")},
                self.settings,
            )
            logger.info("user %s logged in", record["_id"])
            return Success(
                status.HTTP_200_OK,
                {"user": record, "accessToken": token, "tokenType": "bearer"},
            )
        except Exception as exc:
            return self.fail(exc, "authenticate")
