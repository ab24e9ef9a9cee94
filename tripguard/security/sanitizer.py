"""Markup stripping and output escaping for user-supplied text.

Free-text input (trip titles, notes, vendor names...) is stripped of
HTML before it is stored so that stored payloads cannot carry script into
later renderings. Values that must be shown verbatim go through
escape_for_display() instead.
"""

from __future__ import annotations

import re
from collections.abc import Iterable, Mapping
from typing import Any

_COMMENT_RE = re.compile(r"<!--.*?-->", re.DOTALL)
_TAG_RE = re.compile(r"<[^>]*>")
_WHITESPACE_RE = re.compile(r"\s+")
_UNSAFE_FILENAME_CHARS_RE = re.compile(r"[^a-zA-Z0-9._-]")

# Ampersand must come first so later entities are not double-escaped.
_DISPLAY_ESCAPES: list[tuple[str, str]] = [
    ("&", "&amp;"),
    ("<", "&lt;"),
    (">", "&gt;"),
    ('"', "&quot;"),
    ("'", "&#x27;"),
]


def sanitize_text(value: str) -> str:
    """Strip HTML comments and tags, collapse whitespace, trim.

    Tags are removed as flat patterns, repeatedly, so nested and
    self-closing forms all disappear while the text between them is kept.
    """
    text = _COMMENT_RE.sub("", value)
    while True:
        stripped = _TAG_RE.sub("", text)
        if stripped == text:
            break
        text = stripped
    return _WHITESPACE_RE.sub(" ", text).strip()


def sanitize_fields(data: Mapping[str, Any], allowed_fields: Iterable[str]) -> dict[str, Any]:
    """Keep only whitelisted keys, sanitizing string values.

    Keys missing from `data` are omitted rather than set to None.
    Non-string values pass through unchanged.
    """
    result: dict[str, Any] = {}
    for field in allowed_fields:
        if field not in data:
            continue
        value = data[field]
        result[field] = sanitize_text(value) if isinstance(value, str) else value
    return result


def escape_for_display(value: str) -> str:
    """Encode the five HTML-significant characters as entities."""
    for char, entity in _DISPLAY_ESCAPES:
        value = value.replace(char, entity)
    return value


def safe_filename(name: str) -> str:
    """Replace every character outside [A-Za-z0-9._-] with an underscore.

    Neutralizes path separators, traversal sequences and control bytes in
    client-supplied upload names.
    """
    return _UNSAFE_FILENAME_CHARS_RE.sub("_", name)
