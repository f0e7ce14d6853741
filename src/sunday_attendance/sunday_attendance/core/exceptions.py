class DomainError(Exception):
    """Base exception for business rule violations."""


class ValidationError(DomainError):
    """Raised when input data is invalid or violates domain rules."""


class NotFoundError(ValidationError):
    """Raised when a referenced row does not exist."""


class AuthenticationError(DomainError):
    """Raised when login credentials are invalid."""


class AuthorizationError(DomainError):
    """Raised when an authenticated identity is not an active teacher."""


class AuthStateError(DomainError):
    """Raised on an illegal auth session transition."""


class DataAccessError(DomainError):
    """Raised when a backend request fails (network, validation, constraint).

    The message is always prefixed with the operation, e.g.
    ``"Failed to fetch teachers: ..."``.
    """

    def __init__(self, message: str, *, duplicate: bool = False):
        super().__init__(message)
        self.duplicate = duplicate


class AbsenceAlertError(DomainError):
    """Raised when absence alerts cannot be computed. Never carries partial results."""


class MigrationError(DomainError):
    """Raised when the spreadsheet migration cannot fetch or apply its payload."""
