"""
Password management service.

Handles password hashing, verification and input rules.
"""

import logging
import secrets

import bcrypt

logger = logging.getLogger(__name__)


class PasswordHasher:
    """Bcrypt password hashing utility."""

    def __init__(self, rounds: int = 12) -> None:
        """Initialize with bcrypt rounds (cost factor)."""
        self.rounds = rounds

    def hash(self, password: str) -> str:
        """Hash a password using bcrypt. The salt is embedded in the output."""
        salt = bcrypt.gensalt(rounds=self.rounds)
        hashed = bcrypt.hashpw(password.encode("utf-8"), salt)
        return hashed.decode("utf-8")

    def verify(self, password: str, password_hash: str) -> bool:
        """
        Verify a password against its hash.

        A malformed hash counts as a mismatch so callers can treat it like a
        wrong password.
        """
        try:
            return bcrypt.checkpw(password.encode("utf-8"), password_hash.encode("utf-8"))
        except (ValueError, TypeError) as e:
            logger.warning(f"Password verification against malformed hash: {e}")
            return False

    def needs_rehash(self, password_hash: str) -> bool:
        """Check if password needs rehashing with updated rounds."""
        hash_parts = password_hash.split("$")
        if len(hash_parts) >= 3 and hash_parts[2].isdigit():
            return int(hash_parts[2]) < self.rounds
        return False


class PasswordValidator:
    """Password input rules."""

    MIN_LENGTH = 8
    MAX_LENGTH = 128

    @classmethod
    def validate(cls, password: str | None) -> tuple[bool, list[str]]:
        """
        Validate a candidate password.

        Returns:
            Tuple of (is_valid, list_of_errors)
        """
        errors = []

        if not password:
            return False, ["Password is required"]

        if len(password) < cls.MIN_LENGTH:
            errors.append(f"Password must be at least {cls.MIN_LENGTH} characters long")
        if len(password) > cls.MAX_LENGTH:
            errors.append(f"Password must not exceed {cls.MAX_LENGTH} characters")
        # bcrypt only looks at the first 72 bytes
        if len(password.encode("utf-8")) > 72:
            errors.append("Password must not exceed 72 bytes")

        return len(errors) == 0, errors


class PasswordService:
    """Password management service."""

    def __init__(self, rounds: int = 12) -> None:
        self.hasher = PasswordHasher(rounds=rounds)
        self.validator = PasswordValidator()
        self._dummy_hash: str | None = None

    def hash_password(self, password: str) -> str:
        """Hash a password."""
        return self.hasher.hash(password)

    def verify_password(self, password: str, password_hash: str) -> bool:
        """Verify a password against its hash."""
        return self.hasher.verify(password, password_hash)

    def validate_password(self, password: str | None) -> tuple[bool, list[str]]:
        """Validate password rules."""
        return self.validator.validate(password)

    def perform_dummy_verification(self, password: str) -> None:
        """Spend a verification's worth of time when there is no account to check."""
        if self._dummy_hash is None:
            self._dummy_hash = self.hasher.hash(secrets.token_urlsafe(16))
        self.hasher.verify(password, self._dummy_hash)

    def needs_rehash(self, password_hash: str) -> bool:
        """Check if password needs rehashing."""
        return self.hasher.needs_rehash(password_hash)

