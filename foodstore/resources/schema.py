# foodstore/resources/schema.py
"""Declarative field tables for the stored resources.

A ``ResourceSchema`` lists each field once, with the sanitizer that coerces
it, whether it is required and what it defaults to.  One generic handler
(``foodstore.resources.handlers``) consumes any schema.
"""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any

from foodstore.core.errors import MalformedRequest, ValidationFailed
from foodstore.models.base import Record
from foodstore.validation import assert_safe

Sanitizer = Callable[[Any, str], Any]
IndexKeys = list[tuple[str, int]]


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def optional(sanitizer: Callable[..., Any], **options: Any) -> Sanitizer:
    """Wrap a sanitizer that always demands a value so absent input yields ``None``."""

    def sanitize(value: Any, path: str) -> Any:
        if value is None or value == "":
            return None
        return sanitizer(value, path, **options)

    return sanitize


@dataclass(frozen=True)
class FieldSpec:
    name: str
    sanitize: Sanitizer
    required: bool = False
    # a plain value, or a zero-argument callable evaluated per request
    default: Any = None

    def default_value(self) -> Any:
        return self.default() if callable(self.default) else self.default


@dataclass
class Draft:
    values: dict[str, Any]
    unset: set[str] = field(default_factory=set)


@dataclass(frozen=True)
class ResourceSchema:
    name: str
    plural: str
    wrapper: str
    collection: str
    model: type[Record]
    fields: tuple[FieldSpec, ...]
    duplicate_message: str | None = None
    indexes: tuple[IndexKeys, ...] = ()
    list_filters: tuple[FieldSpec, ...] = ()
    sort: tuple[tuple[str, int], ...] = (("createdAt", 1),)

    def unwrap(self, body: Any) -> dict[str, Any]:
        """Return the draft carried under the single top-level wrapper key."""
        if not isinstance(body, dict) or not isinstance(body.get(self.wrapper), dict):
            raise MalformedRequest(self.name)
        return body[self.wrapper]

    def normalize(self, draft: dict[str, Any], *, partial: bool = False) -> Draft:
        """Run every declared field's sanitizer; the first failure aborts.

        On create, missing required fields fail and defaults fill the gaps.
        With ``partial`` only fields present in *draft* are touched, and an
        optional field explicitly emptied is reported in ``Draft.unset``.
        """
        values: dict[str, Any] = {}
        unset: set[str] = set()

        for spec in self.fields:
            if partial and spec.name not in draft:
                continue

            path = f"{self.wrapper}.{spec.name}"
            value = spec.sanitize(draft.get(spec.name), path)

            if value is not None:
                values[spec.name] = value
            elif spec.required:
                raise ValidationFailed(path, "is required")
            elif spec.default is not None:
                values[spec.name] = spec.default_value()
            elif partial:
                unset.add(spec.name)

        return Draft(values, unset)

    def build_filter(self, params: dict[str, Any]) -> dict[str, Any]:
        """Turn list query parameters into a query on the declared filter fields."""
        assert_safe(params, "query")
        query: dict[str, Any] = {}
        for spec in self.list_filters:
            value = spec.sanitize(params.get(spec.name), spec.name)
            if value is not None:
                query[spec.name] = value
        return query

    def serialize(self, document: dict[str, Any]) -> dict[str, Any]:
        return self.model.serialize(document)
