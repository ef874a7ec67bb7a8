# foodstore/resources/audits.py
from functools import partial
from typing import Any

from foodstore.core.errors import ValidationFailed
from foodstore.models.audit import Audit
from foodstore.resources.handlers import ResourceHandlers
from foodstore.resources.schema import FieldSpec, ResourceSchema, utcnow
from foodstore.validation import (
    sanitize_choice,
    sanitize_number,
    sanitize_object_id,
    sanitize_optional_date,
    sanitize_optional_object_id,
    sanitize_string,
)

AUDIT_STATUSES = ("draft", "posted")


def sanitize_line(value: Any, field: str) -> dict[str, Any]:
    """One counted lot.  ``delta`` defaults to counted minus expected."""
    if not isinstance(value, dict):
        raise ValidationFailed(field, "must be an object")

    expected = sanitize_number(value.get("expectedQty"), f"{field}.expectedQty", min=0)
    counted = sanitize_number(value.get("countedQty"), f"{field}.countedQty", min=0)
    if value.get("delta") is None:
        delta = counted - expected
    else:
        delta = sanitize_number(value["delta"], f"{field}.delta")

    line = {
        "lotId": sanitize_object_id(value.get("lotId"), f"{field}.lotId"),
        "expectedQty": expected,
        "countedQty": counted,
        "delta": delta,
    }
    note = sanitize_string(value.get("note"), f"{field}.note", max_length=500)
    if note:
        line["note"] = note
    return line


def sanitize_lines(value: Any, field: str) -> list[dict[str, Any]] | None:
    if value is None:
        return None
    if not isinstance(value, list) or not value:
        raise ValidationFailed(field, "must include at least one line")
    return [sanitize_line(line, f"{field}[{index}]") for index, line in enumerate(value)]


AUDIT = ResourceSchema(
    name="audit",
    plural="audits",
    wrapper="audit",
    collection="audits",
    model=Audit,
    fields=(
        FieldSpec("countedAt", sanitize_optional_date, default=utcnow),
        FieldSpec("lines", sanitize_lines, required=True),
        FieldSpec("createdBy", sanitize_optional_object_id),
        FieldSpec("status", partial(sanitize_choice, choices=AUDIT_STATUSES, lowercase=True), default="posted"),
    ),
    list_filters=(FieldSpec("status", partial(sanitize_choice, choices=AUDIT_STATUSES, lowercase=True)),),
    sort=(("countedAt", -1),),
)

handlers = ResourceHandlers(AUDIT)
