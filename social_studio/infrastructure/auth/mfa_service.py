"""
Two-factor authentication engine.

Handles TOTP enrollment, login-time code checks, and the single-use
backup codes that stand in for the authenticator app.
"""

import hashlib
import logging
import secrets
from dataclasses import dataclass

import pyotp

from social_studio.application.interfaces.repositories import IUsedCodeCache, IUserRepository
from social_studio.domain.entities import User
from social_studio.domain.exceptions import TwoFactorStateException

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class TwoFactorEnrollment:
    """Material for the authenticator app, shown once during setup."""

    secret: str
    provisioning_uri: str


def normalize_backup_code(code: str) -> str:
    """Backup codes are case-insensitive and may be typed with dashes or spaces."""
    return code.replace("-", "").replace(" ", "").strip().upper()


def digest_backup_code(code: str) -> str:
    return hashlib.sha256(normalize_backup_code(code).encode("utf-8")).hexdigest()


class TwoFactorEngine:
    """
    TOTP two-factor engine.

    State per user: Disabled -> PendingEnrollment -> Enabled -> Disabled.
    Enrollment, regeneration and disabling mutate the ``User`` they are
    handed; callers run them inside ``IUserRepository.modify``. Redeeming a
    backup code goes to the store directly so that consumption is atomic.
    """

    def __init__(
        self,
        user_repository: IUserRepository,
        issuer_name: str = "Social Studio",
        valid_window: int = 2,
        backup_code_count: int = 10,
        used_code_cache: IUsedCodeCache | None = None,
    ):
        self.users = user_repository
        self.issuer_name = issuer_name
        self.valid_window = valid_window
        self.backup_code_count = backup_code_count
        self.used_code_cache = used_code_cache

    def begin_enrollment(self, user: User) -> TwoFactorEnrollment:
        """
        Generate a fresh secret and park it as the pending secret.

        Args:
            user: Account starting enrollment

        Returns:
            Secret and provisioning URI for QR rendering

        Raises:
            TwoFactorStateException: If 2FA is already enabled
        """
        secret = pyotp.random_base32()
        user.start_two_factor_enrollment(secret)

        uri = pyotp.TOTP(secret).provisioning_uri(name=user.email, issuer_name=self.issuer_name)
        logger.info(f"Two-factor enrollment started for user {user.id}")
        return TwoFactorEnrollment(secret=secret, provisioning_uri=uri)

    def confirm_enrollment(self, user: User, code: str) -> list[str] | None:
        """
        Confirm enrollment with a code from the authenticator app.

        Returns:
            The new plaintext backup codes on success, None if the code was
            wrong (pending state is kept so the user may retry)

        Raises:
            TwoFactorStateException: If enrollment was never started or 2FA
                is already enabled
        """
        if user.two_factor_enabled:
            raise TwoFactorStateException("Two-factor authentication is already enabled")
        if not user.pending_two_factor_secret:
            raise TwoFactorStateException("Two-factor setup has not been started")

        if not self._verify_totp(user.pending_two_factor_secret, code):
            logger.warning(f"Two-factor enrollment code rejected for user {user.id}")
            return None

        codes = self._generate_backup_codes()
        user.enable_two_factor({digest_backup_code(c) for c in codes})
        logger.info(f"Two-factor authentication enabled for user {user.id}")
        return codes

    def verify_login(self, user: User, code: str) -> bool:
        """Check a login-time code against the confirmed secret."""
        if not user.two_factor_enabled or not user.two_factor_secret:
            return False

        is_valid = self._verify_totp(user.two_factor_secret, code)
        if not is_valid:
            logger.warning(f"Invalid two-factor code attempt for user {user.id}")
        return is_valid

    def verify_backup_code(self, user: User, code: str) -> bool:
        """
        Redeem a backup code.

        The store removes the code atomically; the in-memory copy on ``user``
        is brought in line afterwards.
        """
        if not user.two_factor_enabled or not code:
            return False

        digest = digest_backup_code(code)
        if not self.users.consume_backup_code(user.id, digest):
            logger.warning(f"Backup code rejected for user {user.id}")
            return False

        user.backup_codes.discard(digest)
        logger.info(f"Backup code used for user {user.id}")
        return True

    def regenerate_backup_codes(self, user: User) -> list[str]:
        """
        Replace every backup code.

        Raises:
            TwoFactorStateException: If 2FA is not enabled
        """
        if not user.two_factor_enabled:
            raise TwoFactorStateException("Two-factor authentication is not enabled")

        codes = self._generate_backup_codes()
        user.replace_backup_codes({digest_backup_code(c) for c in codes})
        logger.info(f"Backup codes regenerated for user {user.id}")
        return codes

    def disable(self, user: User) -> None:
        """Clear all 2FA state. Checking the password is up to the caller."""
        user.disable_two_factor()
        logger.info(f"Two-factor authentication disabled for user {user.id}")

    def backup_code_status(self, user: User) -> dict[str, int | bool]:
        if not user.two_factor_enabled:
            return {"two_factor_enabled": False, "remaining_codes": 0}
        return {"two_factor_enabled": True, "remaining_codes": len(user.backup_codes)}

    def _verify_totp(self, secret: str, code: str) -> bool:
        code = (code or "").replace(" ", "")
        if len(code) != 6 or not code.isdigit():
            return False

        totp = pyotp.TOTP(secret)
        if not totp.verify(code, valid_window=self.valid_window):
            return False

        if self.used_code_cache is not None:
            key = f"{hashlib.sha256(secret.encode('utf-8')).hexdigest()[:32]}:{code}"
            ttl = totp.interval * (2 * self.valid_window + 1)
            if not self.used_code_cache.mark_used(key, ttl):
                logger.warning("Replayed one-time code rejected")
                return False

        return True

    def _generate_backup_codes(self) -> list[str]:
        # 10 hex characters per code, shown as XXXXX-XXXXX
        codes = []
        for _ in range(self.backup_code_count):
            raw = secrets.token_hex(5).upper()
            codes.append(f"{raw[:5]}-{raw[5:]}")
        return codes
