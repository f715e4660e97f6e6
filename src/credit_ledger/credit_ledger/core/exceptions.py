class DomainError(Exception):
    """Base exception for business rule violations."""


class ValidationError(DomainError):
    """Raised when input data is invalid or violates domain rules."""


class NotFound(DomainError):
    """Raised when a referenced student, course, package, credit or attendance is missing."""


class InsufficientCredits(DomainError):
    """Raised when a credit lot has no remaining balance to debit."""


class CreditExpired(DomainError):
    """Raised when a credit lot is past its expiry date."""


class CreditNotActive(ValidationError):
    """Raised when a credit lot is suspended or otherwise not usable."""


class DuplicateCheckIn(ValidationError):
    """Raised when the same-day duplicate guard is enabled and a check-in already exists."""


class TransactionConflict(DomainError):
    """Raised when an optimistic write lost a race; the whole operation may be retried."""


class AuthorizationError(DomainError):
    """Raised when a request carries no usable actor context."""
