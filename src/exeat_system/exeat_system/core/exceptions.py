class DomainError(Exception):
    """Base exception for business rule violations."""


class ValidationError(DomainError):
    """Raised when input data is invalid or violates domain rules."""


class AuthorizationError(DomainError):
    """Raised when a user lacks permission for an action."""


class InvalidStageTransition(DomainError):
    """Raised when an approval does not match the request's current stage."""


class RequestNotFound(DomainError):
    """Raised when an exeat request id does not exist."""


class DebtNotFound(DomainError):
    """Raised when a debt id does not exist."""


class StaleState(DomainError):
    """Raised when the request changed underneath a transition; retry with fresh state."""


class DeliveryFailure(DomainError):
    """Raised by notification dispatchers when a notification cannot be delivered."""
