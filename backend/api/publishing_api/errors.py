"""
Error taxonomy for the publishing API.

Services raise these; main.py turns every one of them into the
{ok, status, message, data} envelope. Nothing here is retried.
"""

from __future__ import annotations


class ApiError(Exception):
    """Base error. `status` is the HTTP code the envelope carries."""

    status: int = 500

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class BadRequest(ApiError):
    """Missing or invalid required field."""

    status = 400


class Unauthorized(ApiError):
    """Missing, invalid or expired credential."""

    status = 401


class Forbidden(ApiError):
    """Valid credential, but wrong role or inactive account."""

    status = 403


class NotFound(ApiError):
    """Entity absent, or not owned by the caller (the two look the same)."""

    status = 404


class Conflict(ApiError):
    """Duplicate unique field."""

    status = 409


class Internal(ApiError):
    """Unexpected store or filesystem failure."""

    status = 500
