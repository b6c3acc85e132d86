class DomainError(Exception):
    """Base exception for business rule violations."""


class ValidationError(DomainError):
    """Raised when input data is invalid or violates domain rules."""


class ConflictError(DomainError):
    """Raised when a punch precondition is violated (member already on break)."""


class NotFoundError(DomainError):
    """Raised when an expected resource is absent (no active interval, member removed)."""


class AuthorizationError(DomainError):
    """Raised when the caller lacks the privileged flag for an action."""


class TransportError(DomainError):
    """Raised when the persistence or notification channel fails."""
