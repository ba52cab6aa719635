"""Input validation helpers that raise field-level ``ValidationError``."""

from __future__ import annotations

import re
from typing import Any, TypeVar
from uuid import UUID

from teamgate_service.errors import validation_error

T = TypeVar("T")

# 8-4-4-4-12 hex; accepts the nil UUID and non-RFC variants.
_UUID_RE = re.compile(r"^[0-9a-f]{8}-[0-9a-f]{4}-[0-9a-f]{4}-[0-9a-f]{4}-[0-9a-f]{12}$", re.I)


def validate_required(value: T | None, field: str) -> T:
    if value is None or value == "":
        raise validation_error(f"{field} is required", field, received=value)
    return value


def parse_uuid(value: Any, field: str = "id") -> UUID:
    """Parse a required UUID-shaped string."""
    validate_required(value, field)
    if isinstance(value, UUID):
        return value
    if not isinstance(value, str) or not _UUID_RE.match(value):
        raise validation_error(
            f"Invalid {field} format", field, received=value, expected="UUID format"
        )
    return UUID(value)


def validate_string_length(value: str, field: str, min_length: int = 0, max_length: int = 1000) -> str:
    if len(value) < min_length:
        raise validation_error(
            f"{field} must be at least {min_length} characters",
            field,
            min_length=min_length,
            received=len(value),
        )
    if len(value) > max_length:
        raise validation_error(
            f"{field} must be no more than {max_length} characters",
            field,
            max_length=max_length,
            received=len(value),
        )
    return value
