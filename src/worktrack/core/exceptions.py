class DomainError(Exception):
    """Base exception for business rule violations."""

    code = "DOMAIN_ERROR"


class AuthenticationError(DomainError):
    """Raised when there is no authenticated caller."""

    code = "UNAUTHENTICATED"


class NotFoundError(DomainError):
    """Raised when a task, entry, timer, workspace or user is absent or not owned by the caller."""

    code = "NOT_FOUND"


class ValidationError(DomainError):
    """Raised when input data is invalid or violates domain rules."""

    code = "INVALID_INPUT"


class ConflictError(DomainError):
    """Raised when a concurrent timer operation for the same user wins the race."""

    code = "CONFLICT"


class InternalError(DomainError):
    """Raised when storage is unavailable."""

    code = "INTERNAL"
