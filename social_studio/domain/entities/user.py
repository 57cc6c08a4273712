"""
User Entity - Identity and credential state for one account
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import UTC, datetime
from enum import Enum
from typing import Any
from uuid import UUID, uuid4

from ..exceptions import TwoFactorStateException
from ..value_objects import normalize_email


class UserRole(Enum):
    """Closed set of account roles"""

    CLIENT = "client"
    INTERN = "intern"
    ADMIN = "admin"


class TwoFactorState(Enum):
    """Two-factor enrollment state"""

    DISABLED = "disabled"
    PENDING_ENROLLMENT = "pending_enrollment"
    ENABLED = "enabled"


@dataclass
class User:
    """
    User entity.

    Holds identity, credential and 2FA state. ``backup_codes`` stores
    SHA-256 digests of the recovery codes, never the codes themselves.
    State transitions go through the methods below so that
    ``two_factor_secret`` is set exactly when ``two_factor_enabled`` is.
    """

    email: str
    password_hash: str
    role: UserRole = UserRole.CLIENT

    # Identity
    id: UUID = field(default_factory=uuid4)

    # Profile
    full_name: str = ""
    phone: str | None = None
    profile: dict[str, Any] = field(default_factory=dict)

    # Credential state
    email_verified: bool = False
    two_factor_enabled: bool = False
    two_factor_secret: str | None = None
    pending_two_factor_secret: str | None = None
    backup_codes: set[str] = field(default_factory=set)
    password_reset_jti: str | None = None

    # Timestamps
    created_at: datetime = field(default_factory=lambda: datetime.now(UTC))
    updated_at: datetime = field(default_factory=lambda: datetime.now(UTC))

    def __post_init__(self) -> None:
        self.email = normalize_email(self.email)
        if self.two_factor_enabled != (self.two_factor_secret is not None):
            raise TwoFactorStateException(
                "two_factor_secret must be present exactly when 2FA is enabled"
            )

    @property
    def two_factor_state(self) -> TwoFactorState:
        if self.two_factor_enabled:
            return TwoFactorState.ENABLED
        if self.pending_two_factor_secret:
            return TwoFactorState.PENDING_ENROLLMENT
        return TwoFactorState.DISABLED

    def mark_email_verified(self) -> bool:
        """Set ``email_verified``. Returns False when it was already set."""
        if self.email_verified:
            return False
        self.email_verified = True
        self._touch()
        return True

    def change_password_hash(self, password_hash: str) -> None:
        self.password_hash = password_hash
        self.password_reset_jti = None
        self._touch()

    def upgrade_password_hash(self, previous_hash: str, password_hash: str) -> bool:
        """
        Store a stronger hash of the same password.

        Skipped (returns False) when the password changed since
        ``previous_hash`` was read. A pending reset link stays valid.
        """
        if self.password_hash != previous_hash:
            return False
        self.password_hash = password_hash
        self._touch()
        return True

    def start_password_reset(self, jti: str) -> None:
        """Record the latest reset link; earlier ones stop working."""
        self.password_reset_jti = jti
        self._touch()

    def start_two_factor_enrollment(self, secret: str) -> None:
        if self.two_factor_enabled:
            raise TwoFactorStateException("Two-factor authentication is already enabled")
        self.pending_two_factor_secret = secret
        self._touch()

    def enable_two_factor(self, backup_code_digests: set[str]) -> None:
        """Promote the pending secret to the confirmed one."""
        if not self.pending_two_factor_secret:
            raise TwoFactorStateException("Two-factor setup has not been started")
        self.two_factor_secret = self.pending_two_factor_secret
        self.pending_two_factor_secret = None
        self.two_factor_enabled = True
        self.backup_codes = set(backup_code_digests)
        self._touch()

    def replace_backup_codes(self, backup_code_digests: set[str]) -> None:
        if not self.two_factor_enabled:
            raise TwoFactorStateException("Two-factor authentication is not enabled")
        self.backup_codes = set(backup_code_digests)
        self._touch()

    def disable_two_factor(self) -> None:
        """Return to the disabled state from any state."""
        self.two_factor_enabled = False
        self.two_factor_secret = None
        self.pending_two_factor_secret = None
        self.backup_codes = set()
        self._touch()

    def _touch(self) -> None:
        self.updated_at = datetime.now(UTC)

    def to_public_dict(self) -> dict[str, Any]:
        """Fields that are safe to return to the account owner."""
        return {
            "id": str(self.id),
            "email": self.email,
            "full_name": self.full_name,
            "phone": self.phone,
            "role": self.role.value,
            "profile": dict(self.profile),
            "email_verified": self.email_verified,
            "two_factor_enabled": self.two_factor_enabled,
            "created_at": self.created_at.isoformat(),
        }
