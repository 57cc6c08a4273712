"""
Credential primitives for the account system.

Password hashing, purpose-bound JWTs, TOTP two-factor authentication with
backup codes, and the FastAPI session guard built on them.
"""

from .jwt_service import JWTService, TokenClaims, TokenPurpose
from .mfa_service import (
    TwoFactorEngine,
    TwoFactorEnrollment,
    digest_backup_code,
    normalize_backup_code,
)
from .middleware import RequestIDMiddleware, RequireRole, SessionBearer
from .password_service import PasswordHasher, PasswordService, PasswordValidator
from .replay_cache import InMemoryUsedCodeCache, RedisUsedCodeCache

__all__ = [
    # JWT Service
    "JWTService",
    "TokenClaims",
    "TokenPurpose",
    # Two-factor
    "TwoFactorEngine",
    "TwoFactorEnrollment",
    "digest_backup_code",
    "normalize_backup_code",
    "InMemoryUsedCodeCache",
    "RedisUsedCodeCache",
    # Passwords
    "PasswordHasher",
    "PasswordService",
    "PasswordValidator",
    # Middleware
    "RequestIDMiddleware",
    "RequireRole",
    "SessionBearer",
]
