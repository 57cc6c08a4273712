"""Global pytest configuration and fixtures."""

import time
from collections.abc import Callable

import pyotp
import pytest

from social_studio.application.requests import SignupRequest
from social_studio.application.services import AccountService, LeadService
from social_studio.infrastructure.auth import (
    InMemoryUsedCodeCache,
    JWTService,
    PasswordService,
    TwoFactorEngine,
)
from social_studio.infrastructure.config import (
    CacheConfig,
    Config,
    DatabaseConfig,
    EmailConfig,
    SecurityConfig,
)
from social_studio.infrastructure.notifications import LoggingNotifier
from social_studio.infrastructure.repositories import (
    InMemoryLeadRepository,
    InMemoryUserRepository,
)

TEST_SECRET = "test-secret-key-with-enough-entropy-for-hs256-signing"

# Cheapest cost bcrypt accepts; keeps the suite fast
TEST_BCRYPT_ROUNDS = 4


def totp_code(secret: str, steps_ahead: int = 0) -> str:
    """Code for ``secret`` at the current time step plus ``steps_ahead``."""
    totp = pyotp.TOTP(secret)
    return totp.at(time.time() + steps_ahead * totp.interval)


@pytest.fixture
def totp() -> Callable[..., str]:
    return totp_code


@pytest.fixture
def test_config() -> Config:
    """Configuration with in-memory backends and fast hashing."""
    return Config(
        security=SecurityConfig(
            jwt_secret_key=TEST_SECRET,
            jwt_issuer="social-studio-test",
            session_token_ttl_days=7,
            password_reset_ttl_hours=1,
            email_verification_ttl_hours=24,
            two_factor_challenge_ttl_minutes=5,
            bcrypt_rounds=TEST_BCRYPT_ROUNDS,
            totp_issuer="Social Studio",
            totp_valid_window=2,
            backup_code_count=10,
            totp_replay_protection=True,
        ),
        database=DatabaseConfig(url=None, echo=False),
        cache=CacheConfig(redis_url=None, key_prefix="social-studio-test"),
        email=EmailConfig(
            smtp_host=None,
            smtp_port=587,
            smtp_user=None,
            smtp_password=None,
            smtp_use_tls=True,
            email_from="no-reply@socialstudio.com",
            admin_email="studio@example.com",
            public_base_url="https://socialstudio.example.com",
        ),
        environment="testing",
        log_level="DEBUG",
        log_format="text",
        cors_origins=["http://localhost:3000"],
    )


@pytest.fixture
def password_service() -> PasswordService:
    return PasswordService(rounds=TEST_BCRYPT_ROUNDS)


@pytest.fixture
def jwt_service() -> JWTService:
    return JWTService(secret_key=TEST_SECRET, issuer="social-studio-test")


@pytest.fixture
def user_repository() -> InMemoryUserRepository:
    return InMemoryUserRepository()


@pytest.fixture
def lead_repository() -> InMemoryLeadRepository:
    return InMemoryLeadRepository()


@pytest.fixture
def notifier() -> LoggingNotifier:
    return LoggingNotifier()


@pytest.fixture
def used_code_cache() -> InMemoryUsedCodeCache:
    return InMemoryUsedCodeCache()


@pytest.fixture
def two_factor(user_repository, used_code_cache) -> TwoFactorEngine:
    return TwoFactorEngine(user_repository, used_code_cache=used_code_cache)


@pytest.fixture
def account_service(
    user_repository, password_service, jwt_service, two_factor, notifier
) -> AccountService:
    return AccountService(
        user_repository=user_repository,
        password_service=password_service,
        jwt_service=jwt_service,
        two_factor=two_factor,
        notifier=notifier,
        public_base_url="https://socialstudio.example.com",
    )


@pytest.fixture
def lead_service(lead_repository, notifier) -> LeadService:
    return LeadService(lead_repository, notifier)


@pytest.fixture
def make_signup() -> Callable[..., SignupRequest]:
    """Factory for a valid client signup, with overrides."""

    def _make(**overrides) -> SignupRequest:
        fields = {
            "full_name": "Jane Doe",
            "email": "jane@example.com",
            "password": "Secret123!",
            "phone": "555-123-4567",
            "role": "client",
            "company_name": "Doe Bakery",
            "industry": "Food & Beverage",
        }
        fields.update(overrides)
        return SignupRequest(**fields)

    return _make
