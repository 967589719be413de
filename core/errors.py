"""
POS Core - Domain Errors
========================
The four failure kinds every engine surfaces to its caller, plus
NotFoundError for unknown identifiers.

None of these are fatal. Each one is a decision the operator (or the
calling terminal) has to make: fix the input, re-fetch and retry,
deactivate instead of delete. Engines never recover from them silently.

Failed mutations leave every entity in its pre-call state; the raising
service has already rolled back its store transaction.
"""

from __future__ import annotations

from typing import Optional


class PosError(Exception):
    """Base error for all POS core failures."""

    default_code = "POS_ERROR"

    def __init__(self, message: str, *, code: Optional[str] = None):
        self.code = code or self.default_code
        self.message = message
        super().__init__(message)

    @classmethod
    def from_rejection(cls, rejection) -> "PosError":
        """Build the error from a policy RejectionReason."""
        return cls(rejection.message, code=rejection.code)


class ValidationError(PosError, ValueError):
    """Malformed input: empty order, non-positive quantity, bad enum value."""

    default_code = "VALIDATION_FAILED"


class InvalidTransitionError(PosError):
    """Requested state change is not legal from the current state."""

    default_code = "INVALID_TRANSITION"


class ConflictError(PosError):
    """
    Mutual-exclusion violation or stale write.

    Duplicate open shift, already-closed shift, order settled with another
    method, or an order header that changed since it was read.
    """

    default_code = "CONFLICT"


class ReferentialError(PosError):
    """Delete blocked by live references."""

    default_code = "REFERENCED"


class NotFoundError(PosError, LookupError):
    """Referenced entity does not exist."""

    default_code = "NOT_FOUND"
