"""Error kinds shared by the store, the adapters and the HTTP layer.

Each kind carries the HTTP status the API answers with, so routers never
build error responses by hand.
"""

from __future__ import annotations


class SecondBrainError(Exception):
    """Base class for every error the service reports to callers."""

    status_code = 500

    def __init__(self, message: str = "") -> None:
        super().__init__(message or self.__class__.__name__)
        self.message = message or self.__class__.__name__


class Unauthenticated(SecondBrainError):
    """No valid caller session."""

    status_code = 401


class NotFound(SecondBrainError):
    """Entry absent, or owned by someone else. Both look the same."""

    status_code = 404


class BadRequest(SecondBrainError):
    """Malformed body, invalid payload or missing query parameter."""

    status_code = 400


class UpstreamParseFailure(SecondBrainError):
    """Model or maps reply did not match the expected shape."""

    status_code = 502


class UpstreamCallFailure(SecondBrainError):
    """Network error or non-success answer from the model or maps provider."""

    status_code = 502


class PersistenceFailure(SecondBrainError):
    """Store read or write failed."""

    status_code = 500
