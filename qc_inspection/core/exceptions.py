"""
Domain errors raised by the service layer.

Each error carries a machine-readable ``code`` and a human message.
The FastAPI app maps them to HTTP responses (see ``qc_inspection.main``).
"""

from typing import Optional


class QCError(Exception):
    """Base class for inspection-tracking errors."""

    status_code = 500
    default_code = "QC_ERROR"

    def __init__(self, message: str, code: Optional[str] = None):
        self.code = code or self.default_code
        self.message = message
        super().__init__(message)


class NotFoundError(QCError):
    """A referenced record does not exist."""

    status_code = 404
    default_code = "NOT_FOUND"


class InspectionValidationError(QCError):
    """Missing or malformed input (station, lot number, work week...)."""

    status_code = 400
    default_code = "VALIDATION_FAILED"

    def __init__(self, message: str, code: Optional[str] = None, errors: Optional[list[str]] = None):
        super().__init__(message, code)
        self.errors = errors or [message]


class StoreError(QCError):
    """The persistence layer failed to read or write. Safe to retry."""

    status_code = 503
    default_code = "STORE_ERROR"


class UniquenessConflictError(QCError):
    """An identifier or round collides with an existing record."""

    status_code = 409
    default_code = "UNIQUENESS_CONFLICT"
