# foodstore/resources/locations.py
from functools import partial
from typing import Any

from foodstore.core.errors import ValidationFailed
from foodstore.models.location import Location
from foodstore.resources.handlers import ResourceHandlers
from foodstore.resources.schema import FieldSpec, ResourceSchema
from foodstore.validation import sanitize_bool, sanitize_choice, sanitize_string

LOCATION_TYPES = ("freezer", "fridge", "pantry")
ADDRESS_PARTS = ("line1", "city", "state", "zip")


def sanitize_address(value: Any, field: str) -> dict[str, str] | None:
    if value is None:
        return None
    if not isinstance(value, dict):
        raise ValidationFailed(field, "must be an object")

    address = {
        part: sanitize_string(value.get(part), f"{field}.{part}", required=True, max_length=200)
        for part in ADDRESS_PARTS
    }
    address["state"] = address["state"].upper()
    return address


LOCATION = ResourceSchema(
    name="location",
    plural="locations",
    wrapper="location",
    collection="locations",
    model=Location,
    fields=(
        FieldSpec("name", partial(sanitize_string, max_length=200), required=True),
        FieldSpec("type", partial(sanitize_choice, choices=LOCATION_TYPES, lowercase=True), required=True),
        FieldSpec("address", sanitize_address, required=True),
        FieldSpec("isActive", sanitize_bool, default=True),
    ),
    duplicate_message="A location with that name already exists.",
    indexes=([("name", 1)],),
    list_filters=(FieldSpec("type", partial(sanitize_choice, choices=LOCATION_TYPES, lowercase=True)),),
    sort=(("name", 1),),
)

handlers = ResourceHandlers(LOCATION)
