class DomainError(Exception):
    """Base exception for business rule violations."""

    status_code = 400


class ValidationError(DomainError):
    """Raised when input data is invalid or violates domain rules."""


class AuthenticationError(DomainError):
    """Raised when the bearer token is missing, invalid or expired."""

    status_code = 401


class AuthorizationError(DomainError):
    """Raised when a user lacks permission for an action."""

    status_code = 403


class QuotaExceededError(AuthorizationError):
    """Raised when a per-period request quota is used up."""


class NotFoundError(DomainError):
    status_code = 404


class ConflictError(DomainError):
    """Raised when the action clashes with the current state of a record."""

    status_code = 409
