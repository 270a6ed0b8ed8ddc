"""Domain exception hierarchy for ceksenet.

Routers never build HTTP errors for these by hand; ``main.py`` registers one
handler per family and maps it to a status code.
"""


class CekSenetError(Exception):
    """Base exception for all ceksenet errors."""

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class ValidationError(CekSenetError):
    """Raised when input has a bad shape or value."""


class ConflictError(ValidationError):
    """Raised for a no-op, disallowed or duplicate state change."""


class FormatError(ValidationError):
    """Raised when a spreadsheet cannot be opened or its header is unusable."""


class EmptyDataError(ValidationError):
    """Raised when a spreadsheet has no data rows after the header."""


class NotFoundError(CekSenetError):
    """Raised when a referenced entity does not exist."""
