"""Request-level input guards.

Thin wrappers over tripguard.security that turn a failed check into
InputRejected, which the error handlers render as 400 {"error": ...}.
Handlers call them right after parsing the body and before any business
logic:

    trip_id = require_identifier(trip_id, "trip ID")
    fields = clean_fields(await request.json(), TRIP_FIELDS)
    require_choice(fields.get("status", "DRAFT"), TRIP_STATUS_VALUES, "trip status")
"""

from __future__ import annotations

from collections.abc import Collection, Iterable
from typing import Any

from tripguard.security.errors import InputRejected
from tripguard.security.sanitizer import sanitize_fields, sanitize_text
from tripguard.security.validators import (
    validate_date_format,
    validate_email_format,
    validate_enum_membership,
    validate_identifier,
)


def clean_fields(body: Any, allowed_fields: Iterable[str]) -> dict[str, Any]:
    """Whitelist and sanitize a parsed JSON body. The body must be an object."""
    if not isinstance(body, dict):
        raise InputRejected("Request body must be a JSON object")
    return sanitize_fields(body, allowed_fields)


def require_identifier(value: Any, label: str = "ID") -> str:
    if not isinstance(value, str) or not validate_identifier(value):
        raise InputRejected(f"Invalid {label}")
    return value


def require_email(value: Any, label: str = "email address") -> str:
    if not isinstance(value, str) or not validate_email_format(value):
        raise InputRejected(f"Invalid {label}")
    return value


def require_date(value: Any, label: str = "date") -> str:
    if not isinstance(value, str) or not validate_date_format(value):
        raise InputRejected(f"Invalid {label}")
    return value


def require_choice(value: Any, allowed: Collection[str], label: str = "value") -> str:
    if not isinstance(value, str) or not validate_enum_membership(value, allowed):
        raise InputRejected(f"Invalid {label}")
    return value


def require_text(value: Any, label: str, max_length: int | None = None) -> str:
    """Require a non-blank string; return it sanitized and length-capped."""
    if not isinstance(value, str):
        raise InputRejected(f"{label} is required")
    cleaned = sanitize_text(value)
    if not cleaned:
        raise InputRejected(f"{label} is required")
    if max_length is not None:
        cleaned = cleaned[:max_length]
    return cleaned
