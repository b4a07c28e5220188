"""
Domain errors raised by the services.

Each one carries the HTTP status it is surfaced as; the mapping to JSON
responses lives in boutique.common.error_handlers.
"""


class BoutiqueError(Exception):
    status_code = 500

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class NotFoundError(BoutiqueError):
    """Referenced order, payment, expense, transaction or user does not exist."""
    status_code = 404


class ValidationError(BoutiqueError):
    """Malformed or disallowed amount, missing required field, bad enum value."""
    status_code = 400


class PermissionDeniedError(BoutiqueError):
    """Role check failed."""
    status_code = 403


class ConflictError(BoutiqueError):
    """Unique constraint violated (order number, username)."""
    status_code = 409
