"""Format validators for request input.

Each validator returns a bool and never raises for string/bytes input;
deciding what to do with a False is up to the caller (normally a 400).
"""

from __future__ import annotations

import re
from collections.abc import Collection
from datetime import datetime, timedelta, timezone

MAX_EMAIL_LENGTH = 254

_EMAIL_RE = re.compile(r"[a-zA-Z0-9._%+-]+@[a-zA-Z0-9.-]+\.[a-zA-Z]{2,}")
_UUID_RE = re.compile(
    r"[0-9a-f]{8}-[0-9a-f]{4}-[0-9a-f]{4}-[0-9a-f]{4}-[0-9a-f]{12}", re.IGNORECASE
)
# Record ids come from two generators: UUIDs (auth user ids) and CUIDs (ORM rows).
_CUID_RE = re.compile(r"c[a-z0-9]{20,30}")
_ISO_DATE_RE = re.compile(
    r"(?P<year>\d{4})-(?P<month>\d{2})-(?P<day>\d{2})"
    r"(?:T(?P<hour>\d{2}):(?P<minute>\d{2})"
    r"(?::(?P<second>\d{2})(?:\.(?P<fraction>\d+))?)?"
    r"(?P<tz>Z|[+-]\d{2}:\d{2})?)?",
    re.ASCII,
)

# Domain enums accepted by the travel manager API.
TRIP_STATUS_VALUES = ("DRAFT", "PLANNED", "IN_PROGRESS", "COMPLETED", "CANCELLED")
VENDOR_CATEGORY_VALUES = ("SUPPLIER", "HOTEL", "TRANSPORT", "RESTAURANT", "OTHER")
EXPENSE_CATEGORY_VALUES = (
    "FLIGHT",
    "HOTEL",
    "TRANSPORT",
    "FOOD",
    "ACTIVITIES",
    "INSURANCE",
    "VISA",
    "SHOPPING",
    "OTHER",
)
BOOKING_TYPE_VALUES = ("FLIGHT", "HOTEL", "CAR_RENTAL", "TRAIN", "BUS", "OTHER")
ATTACHMENT_CATEGORY_VALUES = ("FLIGHT", "HOTEL", "CAR_RENTAL", "OTHER")

# Each entry: MIME type -> list of (offset, expected bytes)
MAGIC_SIGNATURES: dict[str, list[tuple[int, bytes]]] = {
    "application/pdf": [(0, b"%PDF")],
    "image/png": [(0, b"\x89PNG")],
    "image/jpeg": [(0, b"\xff\xd8\xff")],
    "image/webp": [(0, b"RIFF"), (8, b"WEBP")],
}
MIN_SIGNATURE_BYTES = 12


def validate_email_format(value: str) -> bool:
    """Practical email check: local@domain.tld, at most 254 characters."""
    if not value or len(value) > MAX_EMAIL_LENGTH:
        return False
    return _EMAIL_RE.fullmatch(value) is not None


def validate_identifier(value: str) -> bool:
    """Accept a canonical UUID (any case) or a CUID-style id."""
    return _UUID_RE.fullmatch(value) is not None or _CUID_RE.fullmatch(value) is not None


def validate_date_format(value: str) -> bool:
    """Accept YYYY-MM-DD or an ISO 8601 datetime that is a real calendar instant.

    "2024-13-01" matches the digit pattern but is rejected because month 13
    does not exist; the same goes for out-of-range times and offsets.
    """
    match = _ISO_DATE_RE.fullmatch(value)
    if match is None:
        return False

    parts = match.groupdict()
    tzinfo = None
    if parts["tz"] and parts["tz"] != "Z":
        sign = -1 if parts["tz"][0] == "-" else 1
        offset_hours, offset_minutes = int(parts["tz"][1:3]), int(parts["tz"][4:6])
        if offset_hours > 23 or offset_minutes > 59:
            return False
        tzinfo = timezone(sign * timedelta(hours=offset_hours, minutes=offset_minutes))

    try:
        datetime(
            int(parts["year"]),
            int(parts["month"]),
            int(parts["day"]),
            int(parts["hour"] or 0),
            int(parts["minute"] or 0),
            int(parts["second"] or 0),
            tzinfo=tzinfo,
        )
    except ValueError:
        return False
    return True


def validate_enum_membership(value: str, allowed: Collection[str]) -> bool:
    """Exact, case-sensitive membership test."""
    return value in allowed


def validate_magic_bytes(data: bytes, declared_mime_type: str) -> bool:
    """Check that the leading bytes match the declared MIME type.

    Only the types in MAGIC_SIGNATURES are vetted; anything else is let
    through. Vetted types need at least 12 bytes (the WEBP marker sits at
    offsets 8-11).
    """
    signature = MAGIC_SIGNATURES.get(declared_mime_type)
    if signature is None:
        return True
    if len(data) < MIN_SIGNATURE_BYTES:
        return False
    return all(data[offset : offset + len(magic)] == magic for offset, magic in signature)
