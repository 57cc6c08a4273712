"""
Account lifecycle service.

Handles signup, login (including the two-factor follow-up), email
verification, password reset and change, and two-factor enrollment.
The only component with business rules; storage, hashing, tokens and
TOTP are delegated to the injected collaborators.
"""

import asyncio
import logging
import secrets
from dataclasses import dataclass
from urllib.parse import urlencode
from uuid import UUID

from social_studio.application.interfaces.notifier import (
    EmailVerifiedNotice,
    INotifier,
    Notice,
    PasswordChangedNotice,
    PasswordResetNotice,
    TwoFactorEnabledNotice,
    WelcomeNotice,
)
from social_studio.application.interfaces.repositories import IUserRepository
from social_studio.application.requests import SignupRequest
from social_studio.domain.entities import User, UserRole
from social_studio.domain.exceptions import (
    DuplicateEmailException,
    InvalidBackupCodeException,
    InvalidCredentialsException,
    InvalidTokenException,
    InvalidTwoFactorCodeException,
    NotFoundException,
    TwoFactorStateException,
    ValidationFailedException,
)
from social_studio.domain.value_objects import normalize_email
from social_studio.infrastructure.auth.jwt_service import JWTService, TokenClaims, TokenPurpose
from social_studio.infrastructure.auth.mfa_service import TwoFactorEngine, TwoFactorEnrollment
from social_studio.infrastructure.auth.password_service import PasswordService

logger = logging.getLogger(__name__)


@dataclass
class SignupResult:
    """Signup result data."""

    user: User
    verification_token: str


@dataclass
class LoginResult:
    """
    Login result data.

    When ``two_factor_required`` is set there is no session token yet; the
    client must present ``challenge_token`` with a second factor.
    """

    user_id: str
    session_token: str | None = None
    expires_in: int = 0
    two_factor_required: bool = False
    challenge_token: str | None = None


class AccountService:
    """Account & credential lifecycle service."""

    def __init__(
        self,
        user_repository: IUserRepository,
        password_service: PasswordService,
        jwt_service: JWTService,
        two_factor: TwoFactorEngine,
        notifier: INotifier,
        public_base_url: str = "http://localhost:3000",
    ):
        self.users = user_repository
        self.password_service = password_service
        self.jwt_service = jwt_service
        self.two_factor = two_factor
        self.notifier = notifier
        self.public_base_url = public_base_url.rstrip("/")

    # ------------------------------------------------------------------
    # Signup and email verification
    # ------------------------------------------------------------------

    async def signup(self, request: SignupRequest) -> SignupResult:
        """
        Register a new account.

        Args:
            request: Signup form

        Returns:
            The created user and its email verification token

        Raises:
            ValidationFailedException: If the form is invalid
            DuplicateEmailException: If the normalized email is taken
        """
        request.ensure_valid()
        is_valid, errors = self.password_service.validate_password(request.password)
        if not is_valid:
            raise ValidationFailedException(errors[0], errors)

        email = normalize_email(request.email)
        if await asyncio.to_thread(self.users.get_by_email, email) is not None:
            raise DuplicateEmailException(email)

        password_hash = await asyncio.to_thread(
            self.password_service.hash_password, request.password
        )
        user = User(
            email=email,
            password_hash=password_hash,
            role=UserRole(request.role),
            full_name=request.full_name.strip(),
            phone=request.phone.strip() or None,
            profile=request.profile(),
        )
        # The store's uniqueness guarantee settles concurrent signups
        await asyncio.to_thread(self.users.add, user)

        token = self.jwt_service.issue(user.id, user.email, TokenPurpose.EMAIL_VERIFICATION)
        await self._notify(
            WelcomeNotice(
                name=user.full_name,
                email=user.email,
                verification_link=self._link("/verify-email", token),
            )
        )

        logger.info(f"User registered: {user.id} ({user.role.value})")
        return SignupResult(user=user, verification_token=token)

    async def verify_email(self, token: str) -> User:
        """
        Mark the token's account as verified.

        Idempotent: a still-valid token for an already verified account
        succeeds without changes.

        Raises:
            TokenExpiredException: If the link has expired
            InvalidTokenException: If the token is not a verification token
        """
        claims = self.jwt_service.validate(token, TokenPurpose.EMAIL_VERIFICATION)

        def verify(user: User) -> tuple[bool, User]:
            self._check_subject(user, claims)
            return user.mark_email_verified(), user

        newly_verified, user = await asyncio.to_thread(
            self.users.modify, claims.user_id, verify
        )
        if newly_verified:
            await self._notify(EmailVerifiedNotice(name=user.full_name, email=user.email))
            logger.info(f"Email verified for user {user.id}")
        return user

    async def resend_verification(self, email: str) -> None:
        """Send a fresh verification link. Same outcome whether or not the account exists."""
        user = await asyncio.to_thread(self.users.get_by_email, normalize_email(email))
        if user is None or user.email_verified:
            return

        token = self.jwt_service.issue(user.id, user.email, TokenPurpose.EMAIL_VERIFICATION)
        await self._notify(
            WelcomeNotice(
                name=user.full_name,
                email=user.email,
                verification_link=self._link("/verify-email", token),
            )
        )

    # ------------------------------------------------------------------
    # Login
    # ------------------------------------------------------------------

    async def login(self, email: str, password: str) -> LoginResult:
        """
        Authenticate with email and password.

        Returns:
            A session token, or a two-factor challenge when 2FA is enabled

        Raises:
            InvalidCredentialsException: For an unknown email or a wrong
                password alike
        """
        user = await asyncio.to_thread(self.users.get_by_email, normalize_email(email))

        # Always perform a password verification to keep timing uniform
        if user is None:
            await asyncio.to_thread(self.password_service.perform_dummy_verification, password)
            logger.info("Login failed: unknown account")
            raise InvalidCredentialsException()

        matches = await asyncio.to_thread(
            self.password_service.verify_password, password, user.password_hash
        )
        if not matches:
            logger.info(f"Login failed: wrong password for user {user.id}")
            raise InvalidCredentialsException()

        if self.password_service.needs_rehash(user.password_hash):
            await self._upgrade_hash(user, password)

        if user.two_factor_enabled:
            challenge = self.jwt_service.issue(user.id, user.email, TokenPurpose.TWO_FACTOR)
            logger.info(f"Two-factor challenge issued for user {user.id}")
            return LoginResult(
                user_id=str(user.id), two_factor_required=True, challenge_token=challenge
            )

        return self._session_for(user)

    async def complete_two_factor_login(self, challenge_token: str, code: str) -> LoginResult:
        """
        Finish a login that is waiting on the second factor.

        Six digits are checked as a TOTP code, anything else as a backup code.

        Raises:
            InvalidTwoFactorCodeException: If the TOTP code is wrong
            InvalidBackupCodeException: If the backup code is unknown or used
        """
        claims = self.jwt_service.validate(challenge_token, TokenPurpose.TWO_FACTOR)
        user = await self._user_for_claims(claims)
        if not user.two_factor_enabled:
            raise InvalidTokenException("superseded", "Two-factor challenge is no longer valid")

        code = (code or "").strip()
        if len(code) == 6 and code.isdigit():
            if not await asyncio.to_thread(self.two_factor.verify_login, user, code):
                raise InvalidTwoFactorCodeException()
        elif not await asyncio.to_thread(self.two_factor.verify_backup_code, user, code):
            raise InvalidBackupCodeException()

        return self._session_for(user)

    async def authenticate(self, session_token: str) -> User:
        """
        Resolve a session token to its account.

        Raises:
            TokenExpiredException: If the session has expired
            InvalidTokenException: If the token is not a valid session token
        """
        claims = self.jwt_service.validate(session_token, TokenPurpose.SESSION)
        user = await asyncio.to_thread(self.users.get_by_id, claims.user_id)
        if user is None:
            raise InvalidTokenException("unknown_subject")
        return user

    # ------------------------------------------------------------------
    # Passwords
    # ------------------------------------------------------------------

    async def request_password_reset(self, email: str) -> None:
        """
        Send a reset link if the account exists.

        The caller sees the same outcome either way. Issuing a new link
        supersedes any earlier one.
        """
        user = await asyncio.to_thread(self.users.get_by_email, normalize_email(email))
        if user is None:
            logger.info("Password reset requested for unknown account")
            return

        jti = secrets.token_urlsafe(16)
        token = self.jwt_service.issue(user.id, user.email, TokenPurpose.PASSWORD_RESET, jti=jti)
        await asyncio.to_thread(
            self.users.modify, user.id, lambda current: current.start_password_reset(jti)
        )

        await self._notify(
            PasswordResetNotice(
                name=user.full_name,
                email=user.email,
                reset_link=self._link("/reset-password", token),
            )
        )
        logger.info(f"Password reset requested for user {user.id}")

    async def reset_password(self, token: str, new_password: str) -> None:
        """
        Set a new password with a reset token.

        Only the latest reset token works, and only once. The new hash is
        computed first; the token is then checked and spent in the same
        write, so of two concurrent resets with one token only one lands.

        Raises:
            TokenExpiredException: If the link has expired
            InvalidTokenException: If the token is invalid, used or superseded
            ValidationFailedException: If the new password breaks the rules
        """
        claims = self.jwt_service.validate(token, TokenPurpose.PASSWORD_RESET)

        is_valid, errors = self.password_service.validate_password(new_password)
        if not is_valid:
            raise ValidationFailedException(errors[0], errors)

        # Reject stale links before paying for a hash
        self._check_reset_jti(await self._user_for_claims(claims), claims)
        new_hash = await asyncio.to_thread(self.password_service.hash_password, new_password)

        def spend(user: User) -> User:
            self._check_subject(user, claims)
            self._check_reset_jti(user, claims)
            user.change_password_hash(new_hash)
            return user

        user = await asyncio.to_thread(self.users.modify, claims.user_id, spend)

        await self._notify(PasswordChangedNotice(name=user.full_name, email=user.email))
        logger.info(f"Password reset for user {user.id}")

    async def change_password(
        self, user_id: UUID, current_password: str, new_password: str
    ) -> None:
        """
        Change the password of a signed-in account.

        Raises:
            InvalidCredentialsException: If the current password is wrong,
                or the password was changed elsewhere while this ran
            ValidationFailedException: If the new password breaks the rules
        """
        user = await self._require_user(user_id)
        await self._require_password(user, current_password)

        is_valid, errors = self.password_service.validate_password(new_password)
        if not is_valid:
            raise ValidationFailedException(errors[0], errors)

        new_hash = await asyncio.to_thread(self.password_service.hash_password, new_password)
        verified_hash = user.password_hash

        def change(current: User) -> None:
            if current.password_hash != verified_hash:
                raise InvalidCredentialsException()
            current.change_password_hash(new_hash)

        await asyncio.to_thread(self.users.modify, user_id, change)

        await self._notify(PasswordChangedNotice(name=user.full_name, email=user.email))
        logger.info(f"Password changed for user {user.id}")

    # ------------------------------------------------------------------
    # Two-factor authentication
    # ------------------------------------------------------------------

    async def begin_two_factor_setup(self, user_id: UUID) -> TwoFactorEnrollment:
        """Start (or restart) enrollment with a fresh secret."""
        return await asyncio.to_thread(
            self.users.modify, user_id, self.two_factor.begin_enrollment
        )

    async def confirm_two_factor_setup(self, user_id: UUID, code: str) -> list[str]:
        """
        Confirm enrollment with a code from the authenticator app.

        Returns:
            The plaintext backup codes; they are not retrievable later

        Raises:
            InvalidTwoFactorCodeException: If the code is wrong (retry allowed)
            TwoFactorStateException: If enrollment was not started
        """

        def confirm(user: User) -> tuple[list[str] | None, User]:
            return self.two_factor.confirm_enrollment(user, code), user

        codes, user = await asyncio.to_thread(self.users.modify, user_id, confirm)
        if codes is None:
            raise InvalidTwoFactorCodeException()

        await self._notify(
            TwoFactorEnabledNotice(
                name=user.full_name, email=user.email, backup_code_count=len(codes)
            )
        )
        return codes

    async def disable_two_factor(self, user_id: UUID, password: str) -> None:
        """Turn 2FA off after re-checking the password."""
        user = await self._require_user(user_id)
        await self._require_password(user, password)

        await asyncio.to_thread(self.users.modify, user_id, self.two_factor.disable)

    async def regenerate_backup_codes(self, user_id: UUID, password: str) -> list[str]:
        """Replace every backup code after re-checking the password."""
        user = await self._require_user(user_id)
        if not user.two_factor_enabled:
            raise TwoFactorStateException("Two-factor authentication is not enabled")
        await self._require_password(user, password)

        return await asyncio.to_thread(
            self.users.modify, user_id, self.two_factor.regenerate_backup_codes
        )

    async def backup_code_status(self, user_id: UUID) -> dict[str, int | bool]:
        return self.two_factor.backup_code_status(await self._require_user(user_id))

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def _session_for(self, user: User) -> LoginResult:
        token = self.jwt_service.issue(user.id, user.email, TokenPurpose.SESSION)
        logger.info(f"Session issued for user {user.id}")
        return LoginResult(
            user_id=str(user.id),
            session_token=token,
            expires_in=self.jwt_service.ttl_seconds(TokenPurpose.SESSION),
        )

    async def _upgrade_hash(self, user: User, password: str) -> None:
        new_hash = await asyncio.to_thread(self.password_service.hash_password, password)
        previous_hash = user.password_hash
        upgraded = await asyncio.to_thread(
            self.users.modify,
            user.id,
            lambda current: current.upgrade_password_hash(previous_hash, new_hash),
        )
        if upgraded:
            logger.info(f"Password hash upgraded for user {user.id}")

    async def _require_user(self, user_id: UUID) -> User:
        user = await asyncio.to_thread(self.users.get_by_id, user_id)
        if user is None:
            logger.error(f"User {user_id} not found after authentication")
            raise NotFoundException("User", str(user_id))
        return user

    async def _user_for_claims(self, claims: TokenClaims) -> User:
        user = await self._require_user(claims.user_id)
        self._check_subject(user, claims)
        return user

    @staticmethod
    def _check_subject(user: User, claims: TokenClaims) -> None:
        if user.email != claims.subject_email:
            raise InvalidTokenException("superseded")

    @staticmethod
    def _check_reset_jti(user: User, claims: TokenClaims) -> None:
        if not user.password_reset_jti or not secrets.compare_digest(
            user.password_reset_jti, claims.jti or ""
        ):
            logger.warning(f"Stale password reset token presented for user {user.id}")
            raise InvalidTokenException(
                "superseded", "This reset link has already been used or replaced"
            )

    async def _require_password(self, user: User, password: str) -> None:
        matches = await asyncio.to_thread(
            self.password_service.verify_password, password or "", user.password_hash
        )
        if not matches:
            raise InvalidCredentialsException()

    def _link(self, path: str, token: str) -> str:
        return f"{self.public_base_url}{path}?{urlencode({'token': token})}"

    async def _notify(self, notice: Notice) -> None:
        # Delivery problems never undo an account change; SMTP runs off the loop
        try:
            delivered = await asyncio.to_thread(self.notifier.notify, notice)
        except Exception:
            logger.exception(f"Notifier raised while sending {type(notice).__name__}")
            return
        if not delivered:
            logger.warning(f"Notification {type(notice).__name__} was not delivered")
