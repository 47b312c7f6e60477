from typing import Optional


class DomainError(Exception):
    """Base exception for business rule violations.

    Carries the operation and entity id so the transport layer can report
    what failed without parsing the message.
    """

    def __init__(self, message: str = "", *, operation: Optional[str] = None, entity_id: Optional[int] = None):
        super().__init__(message)
        self.operation = operation
        self.entity_id = entity_id


class ValidationError(DomainError):
    """Raised when input data is invalid or violates domain rules."""


class Forbidden(DomainError):
    """Raised when the access guard denies an operation."""


class NotFound(DomainError):
    """Raised when a referenced entity does not exist."""


class InvalidTransition(DomainError):
    """Raised when a justification is asked to move to a state it cannot reach."""


class ConflictRetryable(DomainError):
    """Raised when the store lost a concurrent-write race; safe to retry."""
