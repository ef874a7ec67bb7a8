# foodstore/resources/transactions.py
from functools import partial
from typing import Any

from foodstore.core.errors import ValidationFailed
from foodstore.models.transaction import StockTransaction
from foodstore.resources.handlers import ResourceHandlers
from foodstore.resources.schema import FieldSpec, ResourceSchema, optional, utcnow
from foodstore.validation import (
    sanitize_choice,
    sanitize_number,
    sanitize_object_id,
    sanitize_optional_date,
    sanitize_optional_object_id,
    sanitize_string,
)

TRANSACTION_TYPES = ("IN", "OUT", "MOVE", "ADJUST")
TRANSACTION_REASONS = ("donation", "distribution", "damage", "count", "correction", "other")


def sanitize_positive_number(value: Any, field: str) -> float:
    number = sanitize_number(value, field)
    if number <= 0:
        raise ValidationFailed(field, "must be a positive number")
    return number


def sanitize_ref(value: Any, field: str) -> dict[str, Any] | None:
    if value is None:
        return None
    if not isinstance(value, dict):
        raise ValidationFailed(field, "must be an object")
    return {
        "model": sanitize_string(value.get("model"), f"{field}.model", required=True, max_length=64),
        "id": sanitize_object_id(value.get("id"), f"{field}.id"),
    }


TRANSACTION = ResourceSchema(
    name="stock transaction",
    plural="transactions",
    wrapper="transaction",
    collection="stocktransactions",
    model=StockTransaction,
    fields=(
        FieldSpec("type", partial(sanitize_choice, choices=TRANSACTION_TYPES, uppercase=True), required=True),
        FieldSpec("reason", partial(sanitize_choice, choices=TRANSACTION_REASONS, lowercase=True)),
        FieldSpec("itemId", sanitize_optional_object_id, required=True),
        FieldSpec("qty", optional(sanitize_positive_number), required=True),
        FieldSpec("unit", partial(sanitize_string, lowercase=True, max_length=16), default="ea"),
        FieldSpec("actorId", sanitize_optional_object_id),
        FieldSpec("ref", sanitize_ref),
        FieldSpec("note", partial(sanitize_string, max_length=1000)),
        FieldSpec("occurredAt", sanitize_optional_date, default=utcnow),
    ),
    list_filters=(FieldSpec("itemId", sanitize_optional_object_id),),
    sort=(("occurredAt", -1),),
)

handlers = ResourceHandlers(TRANSACTION)
