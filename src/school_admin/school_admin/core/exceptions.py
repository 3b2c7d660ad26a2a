class DomainError(Exception):
    """Base exception for business rule violations."""

    status_code = 400


class ValidationError(DomainError):
    """Raised when input data is invalid or violates domain rules."""

    status_code = 400


class AuthenticationError(DomainError):
    """Raised when login credentials are invalid."""

    status_code = 401


class AuthorizationError(DomainError):
    """Raised when a user lacks permission for an action."""

    status_code = 403


class NotFoundError(DomainError):
    status_code = 404


class ConflictError(DomainError):
    """Raised when a write would clash with existing data (duplicates, overlapping schedules)."""

    status_code = 409
