# foodstore/models/user.py
from typing import Any, Literal, Optional

from pydantic import model_validator

from foodstore.models.base import Record

ROLES = ("admin", "staff", "volunteer")


def first_role(roles: Any) -> Optional[str]:
    """Reduce a legacy ``roles`` list to its first allowed entry."""
    if not isinstance(roles, list):
        return None
    for role in roles:
        if isinstance(role, str) and role.strip().lower() in ROLES:
            return role.strip().lower()
    return None


class User(Record):
    """Public user shape. ``passwordHash`` is never declared, so never serialized."""

    email: str
    name: Optional[str] = None
    role: Optional[Literal["admin", "staff", "volunteer"]] = None
    enabled: bool = True

    @model_validator(mode="before")
    @classmethod
    def _legacy_roles(cls, data: Any) -> Any:
        if isinstance(data, dict) and "role" not in data and "roles" in data:
            data = {**data, "role": first_role(data["roles"])}
        return data
