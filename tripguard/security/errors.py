"""Exceptions raised when request input fails validation."""

from __future__ import annotations


class InputRejected(ValueError):
    """Client input failed a format or safety check.

    The message is returned to the client verbatim as {"error": message}
    with status 400, so it must never contain internal details.
    """

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message
