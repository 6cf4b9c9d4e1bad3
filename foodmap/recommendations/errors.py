from __future__ import annotations


class PlaceFinderError(Exception):
    """Base error for the place-finding pipeline; carries an HTTP status."""

    status_code: int = 500

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class ValidationError(PlaceFinderError):
    """Required request input is missing; raised before any store access."""

    status_code = 400


class NotFoundError(PlaceFinderError):
    status_code = 404


class InternalError(PlaceFinderError):
    """Store unreachable or query failed. The message is always generic."""

    status_code = 500
