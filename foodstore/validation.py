# foodstore/validation.py
"""Payload guard and field sanitizers shared by every write endpoint.

``assert_safe`` runs once over a whole request body before any field is
interpreted.  The ``sanitize_*`` functions each coerce one untyped field into
its canonical form or raise ``ValidationFailed`` naming the field.
"""

from __future__ import annotations

import math
import re
from collections.abc import Iterable
from datetime import datetime, timezone
from typing import Any

from bson import ObjectId

from foodstore.core.errors import UnsafePayload, ValidationFailed

ILLEGAL_KEY_PATTERN = re.compile(r"(^\$)|(\.)")
MALICIOUS_STRING_PATTERN = re.compile(r"<\s*script|<\/\s*script|javascript:", re.IGNORECASE)


def is_malicious(value: str) -> bool:
    candidate = value.strip()
    return bool(candidate) and MALICIOUS_STRING_PATTERN.search(candidate) is not None


def assert_safe(value: Any, path: str = "payload") -> None:
    """Reject operator-injection keys and script-like strings anywhere in *value*."""
    if isinstance(value, list):
        for index, entry in enumerate(value):
            assert_safe(entry, f"{path}[{index}]")
        return

    if isinstance(value, str):
        if is_malicious(value):
            raise UnsafePayload(path, "Potentially malicious content detected")
        return

    if not isinstance(value, dict):
        return

    for key, child in value.items():
        if not isinstance(key, str) or ILLEGAL_KEY_PATTERN.search(key):
            raise UnsafePayload(path, f'Unsafe key "{key}" detected')
        assert_safe(child, f"{path}.{key}")


def sanitize_string(
    value: Any,
    field: str,
    *,
    required: bool = False,
    allow_empty: bool = False,
    lowercase: bool = False,
    max_length: int | None = None,
) -> str | None:
    if value is None:
        if required:
            raise ValidationFailed(field, "is required")
        return None

    if not isinstance(value, str):
        raise ValidationFailed(field, "must be a string")

    value = value.strip()

    if not value and not allow_empty:
        if required:
            raise ValidationFailed(field, "is required")
        return None

    if is_malicious(value):
        raise ValidationFailed(field, "contains disallowed content")

    if lowercase:
        value = value.lower()

    # truncation, not rejection
    if max_length and len(value) > max_length:
        value = value[:max_length]

    return value


def sanitize_number(
    value: Any,
    field: str,
    *,
    min: float | None = None,
    max: float | None = None,
) -> float:
    if isinstance(value, bool):
        raise ValidationFailed(field, "must be a finite number")

    if not isinstance(value, (int, float, str)):
        raise ValidationFailed(field, "must be a finite number")

    try:
        number = float(value.strip() if isinstance(value, str) else value)
    except (ValueError, OverflowError):
        # OverflowError: an int too large for a float
        raise ValidationFailed(field, "must be a finite number") from None

    if not math.isfinite(number):
        raise ValidationFailed(field, "must be a finite number")
    if min is not None and number < min:
        raise ValidationFailed(field, f"must be >= {min:g}")
    if max is not None and number > max:
        raise ValidationFailed(field, f"must be <= {max:g}")
    return number


def sanitize_object_id(value: Any, field: str) -> ObjectId:
    if isinstance(value, ObjectId):
        return value
    if isinstance(value, str) and ObjectId.is_valid(value):
        return ObjectId(value)
    raise ValidationFailed(field, "must be a valid ObjectId string")


def sanitize_optional_object_id(value: Any, field: str) -> ObjectId | None:
    if value is None or value == "":
        return None
    return sanitize_object_id(value, field)


def _as_utc(moment: datetime) -> datetime:
    if moment.tzinfo is None:
        return moment.replace(tzinfo=timezone.utc)
    return moment.astimezone(timezone.utc)


def sanitize_optional_date(value: Any, field: str) -> datetime | None:
    """Parse an ISO-8601 string or a millisecond epoch timestamp.

    An unparsable value is a hard failure, never a silent drop.
    """
    if value is None or value == "":
        return None

    if isinstance(value, datetime):
        return _as_utc(value)

    try:
        if isinstance(value, str):
            return _as_utc(datetime.fromisoformat(value.strip()))
        if isinstance(value, (int, float)) and not isinstance(value, bool):
            return datetime.fromtimestamp(value / 1000, tz=timezone.utc)
    except (ValueError, OverflowError, OSError):
        pass

    raise ValidationFailed(field, "must be a valid date")


def sanitize_bool(value: Any, field: str) -> bool | None:
    if value is None:
        return None
    if not isinstance(value, bool):
        raise ValidationFailed(field, "must be a boolean")
    return value


def sanitize_choice(
    value: Any,
    field: str,
    choices: Iterable[str],
    *,
    lowercase: bool = False,
    uppercase: bool = False,
) -> str | None:
    text = sanitize_string(value, field, lowercase=lowercase)
    if text is None:
        return None
    if uppercase:
        text = text.upper()
    allowed = list(choices)
    if text not in allowed:
        raise ValidationFailed(field, f"must be one of {', '.join(allowed)}")
    return text


def sanitize_string_list(value: Any, field: str, *, max_length: int | None = None) -> list[str] | None:
    """Trim every entry and drop the empty ones."""
    if value is None:
        return None
    if not isinstance(value, list):
        raise ValidationFailed(field, "must be a list of strings")
    cleaned = []
    for index, entry in enumerate(value):
        text = sanitize_string(entry, f"{field}[{index}]", max_length=max_length)
        if text:
            cleaned.append(text)
    return cleaned
