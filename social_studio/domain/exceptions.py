"""
Domain-level exceptions for the account lifecycle.

These exceptions are raised by the application services and mapped to
HTTP status codes by the interface layer. None of them is retried
automatically; they are surfaced to the caller for user-facing messaging.
"""

from typing import Any


class DomainException(Exception):
    """Base exception for all domain-level errors."""

    def __init__(self, message: str, details: dict[str, Any] | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.details = details or {}


class ValidationFailedException(DomainException):
    """Malformed or missing input. The caller's fault, never retried."""

    def __init__(self, message: str, errors: list[str] | None = None) -> None:
        super().__init__(message, details={"errors": errors or [message]})
        self.errors = errors or [message]


class DuplicateEmailException(DomainException):
    """An account with the normalized email already exists."""

    def __init__(self, email: str) -> None:
        super().__init__("An account with this email already exists", details={"email": email})
        self.email = email


class InvalidCredentialsException(DomainException):
    """
    Wrong email, wrong password or missing account.

    Deliberately undifferentiated so the message never reveals which check
    failed.
    """

    def __init__(self) -> None:
        super().__init__("Invalid email or password")


class InvalidTwoFactorCodeException(DomainException):
    """The one-time code did not match the shared secret."""

    def __init__(self, message: str = "Invalid two-factor code") -> None:
        super().__init__(message)


class InvalidBackupCodeException(DomainException):
    """The backup code is unknown or was already used."""

    def __init__(self) -> None:
        super().__init__("Invalid backup code")


class TwoFactorStateException(DomainException):
    """The requested 2FA operation does not fit the account's current 2FA state."""


class TokenExpiredException(DomainException):
    """Token signature is valid but its validity window has elapsed."""

    def __init__(self, purpose: str | None = None) -> None:
        super().__init__("Token has expired", details={"purpose": purpose})
        self.purpose = purpose


class InvalidTokenException(DomainException):
    """
    Token could not be trusted.

    ``reason`` is one of ``malformed``, ``bad_signature``, ``wrong_purpose``,
    ``superseded`` or ``unknown_subject``.
    """

    def __init__(self, reason: str, message: str = "Invalid token") -> None:
        super().__init__(message, details={"reason": reason})
        self.reason = reason


class NotFoundException(DomainException):
    """
    Internal lookup failed after validation passed.

    Treated as a logged, non-retriable condition.
    """

    def __init__(self, entity_type: str, entity_id: str) -> None:
        super().__init__(
            f"{entity_type} {entity_id} not found",
            details={"entity_type": entity_type, "entity_id": entity_id},
        )
        self.entity_type = entity_type
        self.entity_id = entity_id
