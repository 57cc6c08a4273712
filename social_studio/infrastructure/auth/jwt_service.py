"""
JWT token management service.

Creates and validates signed, time-bound tokens for every purpose the
account lifecycle needs. One signing mechanism serves all purposes; the
``purpose`` claim is part of the signed payload so a token minted for one
flow is rejected by every other flow.
"""

import logging
import secrets
from dataclasses import dataclass
from datetime import UTC, datetime, timedelta
from enum import Enum
from typing import Any
from uuid import UUID

import jwt

from social_studio.domain.exceptions import InvalidTokenException, TokenExpiredException

logger = logging.getLogger(__name__)


class TokenPurpose(Enum):
    """Purpose discriminator embedded in every token"""

    SESSION = "session"
    EMAIL_VERIFICATION = "email-verification"
    PASSWORD_RESET = "password-reset"
    TWO_FACTOR = "two-factor"


@dataclass(frozen=True)
class TokenClaims:
    """Validated claim set."""

    subject_id: str
    subject_email: str
    purpose: TokenPurpose
    issued_at: datetime
    expires_at: datetime
    jti: str

    @property
    def user_id(self) -> UUID:
        return UUID(self.subject_id)


class JWTService:
    """
    JWT token service for creating and validating purpose-bound tokens.

    Supports:
    - Session tokens (7 days default)
    - Email verification tokens (24 hours default)
    - Password reset tokens (1 hour default)
    - Two-factor login challenge tokens (5 minutes default)
    """

    def __init__(
        self,
        secret_key: str | None = None,
        issuer: str = "social-studio",
        ttls: dict[TokenPurpose, timedelta] | None = None,
        environment: str = "development",
    ):
        """
        Initialize JWT service.

        Args:
            secret_key: Symmetric signing secret
            issuer: Token issuer identifier
            ttls: Lifetime per purpose, overriding the defaults
            environment: Deployment environment name
        """
        self.issuer = issuer
        self.algorithm = "HS256"
        self.ttls: dict[TokenPurpose, timedelta] = {
            TokenPurpose.SESSION: timedelta(days=7),
            TokenPurpose.EMAIL_VERIFICATION: timedelta(hours=24),
            TokenPurpose.PASSWORD_RESET: timedelta(hours=1),
            TokenPurpose.TWO_FACTOR: timedelta(minutes=5),
        }
        if ttls:
            self.ttls.update(ttls)

        if secret_key:
            self._secret_key = secret_key
        elif environment == "production":
            raise RuntimeError(
                "JWT_SECRET_KEY is required for production. "
                'Generate one with: python -c "import secrets; print(secrets.token_urlsafe(64))"'
            )
        else:
            logger.warning(
                "No JWT secret configured - generating an ephemeral secret for DEVELOPMENT ONLY. "
                "All tokens will be invalidated on restart!"
            )
            self._secret_key = secrets.token_urlsafe(64)

    def issue(
        self,
        user_id: UUID | str,
        email: str,
        purpose: TokenPurpose,
        ttl: timedelta | None = None,
        jti: str | None = None,
    ) -> str:
        """
        Create a signed token.

        Args:
            user_id: Subject identifier
            email: Subject email
            purpose: What the token may be used for
            ttl: Lifetime override; the purpose's policy TTL otherwise
            jti: Token identifier; generated when omitted

        Returns:
            Encoded JWT
        """
        now = datetime.now(UTC)
        lifetime = ttl if ttl is not None else self.ttls[purpose]

        payload: dict[str, Any] = {
            "iss": self.issuer,
            "sub": str(user_id),
            "email": email,
            "purpose": purpose.value,
            "iat": now,
            "exp": now + lifetime,
            "jti": jti or secrets.token_urlsafe(16),
        }

        token = jwt.encode(payload, self._secret_key, algorithm=self.algorithm)
        logger.debug(f"Issued {purpose.value} token for user {user_id}")
        return token

    def validate(self, token: str, expected_purpose: TokenPurpose) -> TokenClaims:
        """
        Verify signature, expiry and purpose.

        Args:
            token: Encoded JWT
            expected_purpose: Purpose the caller is about to act on

        Returns:
            Validated claims

        Raises:
            TokenExpiredException: If the token's validity window has elapsed
            InvalidTokenException: If the token is malformed, forged or for
                another purpose
        """
        if not token:
            raise InvalidTokenException("malformed")

        try:
            payload = jwt.decode(
                token,
                self._secret_key,
                algorithms=[self.algorithm],
                issuer=self.issuer,
                options={"require": ["exp", "iat", "sub", "purpose", "jti"]},
            )
        except jwt.ExpiredSignatureError:
            raise TokenExpiredException(expected_purpose.value)
        except jwt.InvalidSignatureError:
            logger.warning("Token with invalid signature presented")
            raise InvalidTokenException("bad_signature")
        except jwt.InvalidTokenError as e:
            raise InvalidTokenException("malformed", f"Invalid token: {e!s}")

        purpose = payload.get("purpose")
        if purpose != expected_purpose.value:
            logger.warning(
                f"Token purpose mismatch: expected {expected_purpose.value}, got {purpose}"
            )
            raise InvalidTokenException("wrong_purpose")

        try:
            UUID(payload["sub"])
        except (TypeError, ValueError):
            raise InvalidTokenException("malformed", "Invalid token subject")

        return TokenClaims(
            subject_id=payload["sub"],
            subject_email=payload.get("email", ""),
            purpose=expected_purpose,
            issued_at=datetime.fromtimestamp(payload["iat"], UTC),
            expires_at=datetime.fromtimestamp(payload["exp"], UTC),
            jti=payload["jti"],
        )

    def ttl_seconds(self, purpose: TokenPurpose) -> int:
        return int(self.ttls[purpose].total_seconds())
