# foodstore/resources/items.py
from functools import partial

from foodstore.models.item import Item
from foodstore.resources.handlers import ResourceHandlers
from foodstore.resources.schema import FieldSpec, ResourceSchema, optional
from foodstore.validation import (
    sanitize_bool,
    sanitize_number,
    sanitize_optional_date,
    sanitize_optional_object_id,
    sanitize_string,
    sanitize_string_list,
)

ITEM = ResourceSchema(
    name="item",
    plural="items",
    wrapper="item",
    collection="items",
    model=Item,
    fields=(
        FieldSpec("name", partial(sanitize_string, max_length=200), required=True),
        FieldSpec("locationId", sanitize_optional_object_id, required=True),
        FieldSpec("upc", partial(sanitize_string, max_length=64)),
        FieldSpec("category", partial(sanitize_string, max_length=100)),
        FieldSpec("tags", partial(sanitize_string_list, max_length=50)),
        FieldSpec("unit", partial(sanitize_string, lowercase=True, max_length=16), default="ea"),
        FieldSpec("caseSize", optional(sanitize_number, min=0)),
        FieldSpec("expiresAt", sanitize_optional_date),
        FieldSpec("shelfLifeDays", optional(sanitize_number, min=0)),
        FieldSpec("allergens", partial(sanitize_string_list, max_length=50)),
        FieldSpec("isActive", sanitize_bool, default=True),
        FieldSpec("note", partial(sanitize_string, max_length=1000)),
    ),
    duplicate_message="An item with that name already exists.",
    indexes=([("name", 1)],),
    list_filters=(FieldSpec("locationId", sanitize_optional_object_id),),
    sort=(("name", 1),),
)

handlers = ResourceHandlers(ITEM)
