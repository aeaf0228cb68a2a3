"""Exceptions raised by the tournament engine and rendered by the API."""

from typing import Dict


class LeagueError(Exception):
    """Base exception for all Spin League errors.

    Carries a stable machine-readable ``code`` and the HTTP status the API
    layer renders it with.
    """

    code = "internal"
    status_code = 500

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message

    def to_dict(self) -> Dict[str, str]:
        return {"error": self.code, "detail": self.message}


class NotFoundError(LeagueError):
    """Raised when a tournament, match or participant id is unknown."""

    code = "not_found"
    status_code = 404


class InvalidInputError(LeagueError):
    """Raised for malformed payloads, unknown finish types and bad scores."""

    code = "invalid_input"
    status_code = 400


class PreconditionFailedError(LeagueError):
    """Raised when the tournament or match is in the wrong state for a request."""

    code = "precondition_failed"
    status_code = 409


class ConflictError(LeagueError):
    """Raised when a record would violate a uniqueness rule."""

    code = "conflict"
    status_code = 409


class InternalError(LeagueError):
    """Raised when the persistence layer fails during an engine operation."""

    code = "internal"
    status_code = 500
