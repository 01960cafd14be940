from __future__ import annotations


class PollError(Exception):
    """
    Base for every business and store error the poll can raise.

    code is API-stable and safe to show to clients; status_code is the HTTP
    status the error envelope uses.
    """

    code = "poll_error"
    status_code = 500

    def __init__(self, message: str = "") -> None:
        super().__init__(message or self.code)
        self.message = message or self.code


class ValidationError(PollError):
    """Malformed input. Raised before the store is touched."""

    code = "validation_error"
    status_code = 400


class UnknownVoter(PollError):
    code = "unknown_voter"
    status_code = 404


class NotFound(PollError):
    code = "not_found"
    status_code = 404


class AlreadyVoted(PollError):
    code = "already_voted"
    status_code = 409


class DuplicateName(PollError):
    code = "duplicate_name"
    status_code = 409


class Conflict(PollError):
    """Concurrent write conflict reported by the store. Safe to retry once."""

    code = "conflict"
    status_code = 409


class TransientStoreFailure(PollError):
    """Store unreachable or timed out after every retry attempt."""

    code = "store_unavailable"
    status_code = 503
