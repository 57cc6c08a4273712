"""
Configuration Management - Loads settings from the environment
"""

import logging
import os
from dataclasses import dataclass

from dotenv import load_dotenv

logger = logging.getLogger(__name__)

# Load environment variables from .env file
load_dotenv()


def _env_bool(name: str, default: bool) -> bool:
    return os.getenv(name, str(default)).strip().lower() in ("1", "true", "yes", "on")


@dataclass
class SecurityConfig:
    """Token, hashing and two-factor settings"""

    jwt_secret_key: str | None
    jwt_issuer: str
    session_token_ttl_days: int
    password_reset_ttl_hours: int
    email_verification_ttl_hours: int
    two_factor_challenge_ttl_minutes: int
    bcrypt_rounds: int
    totp_issuer: str
    totp_valid_window: int
    backup_code_count: int
    totp_replay_protection: bool

    @classmethod
    def from_env(cls) -> "SecurityConfig":
        """Load security config from environment variables"""
        return cls(
            jwt_secret_key=os.getenv("JWT_SECRET_KEY") or None,
            jwt_issuer=os.getenv("JWT_ISSUER", "social-studio"),
            session_token_ttl_days=int(os.getenv("SESSION_TOKEN_TTL_DAYS", "7")),
            password_reset_ttl_hours=int(os.getenv("PASSWORD_RESET_TTL_HOURS", "1")),
            email_verification_ttl_hours=int(os.getenv("EMAIL_VERIFICATION_TTL_HOURS", "24")),
            two_factor_challenge_ttl_minutes=int(
                os.getenv("TWO_FACTOR_CHALLENGE_TTL_MINUTES", "5")
            ),
            bcrypt_rounds=int(os.getenv("BCRYPT_ROUNDS", "12")),
            totp_issuer=os.getenv("TOTP_ISSUER", "Social Studio"),
            totp_valid_window=int(os.getenv("TOTP_VALID_WINDOW", "2")),
            backup_code_count=int(os.getenv("BACKUP_CODE_COUNT", "10")),
            totp_replay_protection=_env_bool("TOTP_REPLAY_PROTECTION", True),
        )


@dataclass
class DatabaseConfig:
    """Database configuration settings"""

    url: str | None
    echo: bool

    @classmethod
    def from_env(cls) -> "DatabaseConfig":
        """An empty DATABASE_URL selects the in-memory stores"""
        return cls(url=os.getenv("DATABASE_URL") or None, echo=_env_bool("DATABASE_ECHO", False))


@dataclass
class CacheConfig:
    """Cache configuration settings"""

    redis_url: str | None
    key_prefix: str

    @classmethod
    def from_env(cls) -> "CacheConfig":
        """Load cache config from environment variables"""
        return cls(
            redis_url=os.getenv("REDIS_URL") or None,
            key_prefix=os.getenv("CACHE_KEY_PREFIX", "social-studio"),
        )


@dataclass
class EmailConfig:
    """Outbound email settings"""

    smtp_host: str | None
    smtp_port: int
    smtp_user: str | None
    smtp_password: str | None
    smtp_use_tls: bool
    email_from: str
    admin_email: str
    public_base_url: str

    @classmethod
    def from_env(cls) -> "EmailConfig":
        """Load email config from environment variables"""
        smtp_user = os.getenv("SMTP_USER") or None
        return cls(
            smtp_host=os.getenv("SMTP_HOST") or None,
            smtp_port=int(os.getenv("SMTP_PORT", "587")),
            smtp_user=smtp_user,
            smtp_password=os.getenv("SMTP_PASSWORD") or None,
            smtp_use_tls=_env_bool("SMTP_USE_TLS", True),
            email_from=os.getenv("EMAIL_FROM", smtp_user or "no-reply@socialstudio.com"),
            admin_email=os.getenv("ADMIN_EMAIL", "pv.socialstudio@gmail.com"),
            public_base_url=os.getenv("PUBLIC_BASE_URL", "http://localhost:3000").rstrip("/"),
        )

    @property
    def smtp_configured(self) -> bool:
        return bool(self.smtp_host)


@dataclass
class Config:
    """Application configuration"""

    security: SecurityConfig
    database: DatabaseConfig
    cache: CacheConfig
    email: EmailConfig
    environment: str
    log_level: str
    log_format: str
    cors_origins: list[str]

    @classmethod
    def from_env(cls) -> "Config":
        """Load all configuration from environment"""
        return cls(
            security=SecurityConfig.from_env(),
            database=DatabaseConfig.from_env(),
            cache=CacheConfig.from_env(),
            email=EmailConfig.from_env(),
            environment=os.getenv("ENVIRONMENT", "development"),
            log_level=os.getenv("LOG_LEVEL", "INFO"),
            log_format=os.getenv("LOG_FORMAT", "json"),
            cors_origins=[
                origin.strip()
                for origin in os.getenv("CORS_ORIGINS", "http://localhost:3000").split(",")
                if origin.strip()
            ],
        )

    @property
    def is_production(self) -> bool:
        return self.environment.lower() == "production"


_config: Config | None = None


def get_config() -> Config:
    """Get the process-wide configuration instance"""
    global _config
    if _config is None:
        _config = Config.from_env()
        logger.debug(f"Configuration loaded for environment {_config.environment}")
    return _config


def reset_config() -> None:
    """Drop the cached configuration (tests)"""
    global _config
    _config = None
