"""
Dependency Injection Container - Wires the account and lead services.

Backends are picked from configuration: SQLAlchemy stores when a database
URL is set (in-memory otherwise), a Redis replay cache when a Redis URL is
set, and SMTP delivery when an SMTP host is set.
"""

import logging
from collections.abc import Callable
from datetime import timedelta
from typing import Any, TypeVar, cast

from social_studio.application.interfaces.notifier import INotifier
from social_studio.application.interfaces.repositories import (
    ILeadRepository,
    IUsedCodeCache,
    IUserRepository,
)
from social_studio.application.services import AccountService, LeadService
from social_studio.infrastructure.auth import (
    InMemoryUsedCodeCache,
    JWTService,
    PasswordService,
    RedisUsedCodeCache,
    TokenPurpose,
    TwoFactorEngine,
)
from social_studio.infrastructure.config import Config, get_config
from social_studio.infrastructure.database import create_session_factory
from social_studio.infrastructure.notifications import LoggingNotifier, SmtpEmailNotifier
from social_studio.infrastructure.repositories import (
    InMemoryLeadRepository,
    InMemoryUserRepository,
    SqlAlchemyLeadRepository,
    SqlAlchemyUserRepository,
)

logger = logging.getLogger(__name__)

T = TypeVar("T")


class Container:
    """
    Dependency Injection Container for Social Studio.

    Components are created on first use and shared for the container's
    lifetime. Tests swap pieces in with ``register`` before first use.
    """

    def __init__(self, config: Config | None = None) -> None:
        self.config = config or get_config()
        self._singletons: dict[type[Any], Any] = {}
        self._factories: dict[type[Any], Callable[[], Any]] = {}

        self._register_infrastructure()
        self._register_application_services()

        logger.info("Dependency injection container initialized")

    def _register_infrastructure(self) -> None:
        """Register infrastructure components."""
        if self.config.database.url:
            session_factory = create_session_factory(
                self.config.database.url, echo=self.config.database.echo
            )
            self._register_singleton(
                IUserRepository,  # type: ignore[type-abstract]
                lambda: SqlAlchemyUserRepository(session_factory),
            )
            self._register_singleton(
                ILeadRepository,  # type: ignore[type-abstract]
                lambda: SqlAlchemyLeadRepository(session_factory),
            )
        else:
            logger.warning("DATABASE_URL not set - accounts and leads are kept in memory")
            self._register_singleton(IUserRepository, InMemoryUserRepository)  # type: ignore[type-abstract]
            self._register_singleton(ILeadRepository, InMemoryLeadRepository)  # type: ignore[type-abstract]

        self._register_singleton(IUsedCodeCache, self._create_used_code_cache)  # type: ignore[type-abstract]
        self._register_singleton(INotifier, self._create_notifier)  # type: ignore[type-abstract]

        security = self.config.security
        self._register_singleton(PasswordService, lambda: PasswordService(security.bcrypt_rounds))
        self._register_singleton(
            JWTService,
            lambda: JWTService(
                secret_key=security.jwt_secret_key,
                issuer=security.jwt_issuer,
                ttls={
                    TokenPurpose.SESSION: timedelta(days=security.session_token_ttl_days),
                    TokenPurpose.EMAIL_VERIFICATION: timedelta(
                        hours=security.email_verification_ttl_hours
                    ),
                    TokenPurpose.PASSWORD_RESET: timedelta(
                        hours=security.password_reset_ttl_hours
                    ),
                    TokenPurpose.TWO_FACTOR: timedelta(
                        minutes=security.two_factor_challenge_ttl_minutes
                    ),
                },
                environment=self.config.environment,
            ),
        )
        self._register_singleton(
            TwoFactorEngine,
            lambda: TwoFactorEngine(
                self.get(IUserRepository),  # type: ignore[type-abstract]
                issuer_name=security.totp_issuer,
                valid_window=security.totp_valid_window,
                backup_code_count=security.backup_code_count,
                used_code_cache=(
                    self.get(IUsedCodeCache)  # type: ignore[type-abstract]
                    if security.totp_replay_protection
                    else None
                ),
            ),
        )

    def _register_application_services(self) -> None:
        """Register application-level services."""
        self._register_singleton(
            AccountService,
            lambda: AccountService(
                user_repository=self.get(IUserRepository),  # type: ignore[type-abstract]
                password_service=self.get(PasswordService),
                jwt_service=self.get(JWTService),
                two_factor=self.get(TwoFactorEngine),
                notifier=self.get(INotifier),  # type: ignore[type-abstract]
                public_base_url=self.config.email.public_base_url,
            ),
        )
        self._register_singleton(
            LeadService,
            lambda: LeadService(
                lead_repository=self.get(ILeadRepository),  # type: ignore[type-abstract]
                notifier=self.get(INotifier),  # type: ignore[type-abstract]
            ),
        )

    def _create_used_code_cache(self) -> IUsedCodeCache:
        if self.config.cache.redis_url:
            return RedisUsedCodeCache.from_url(
                self.config.cache.redis_url, self.config.cache.key_prefix
            )
        return InMemoryUsedCodeCache()

    def _create_notifier(self) -> INotifier:
        email = self.config.email
        if not email.smtp_configured:
            logger.warning("SMTP_HOST not set - outbound email will only be logged")
            return LoggingNotifier()
        return SmtpEmailNotifier(
            host=cast(str, email.smtp_host),
            port=email.smtp_port,
            sender=email.email_from,
            admin_email=email.admin_email,
            username=email.smtp_user,
            password=email.smtp_password,
            use_tls=email.smtp_use_tls,
        )

    def _register_singleton(self, cls: type[T], factory: Callable[[], Any]) -> None:
        """Register a singleton component."""
        self._factories[cls] = factory

    def get(self, cls: type[T]) -> T:
        """
        Get an instance of a registered component.

        Raises:
            KeyError: If the class is not registered
        """
        if cls in self._singletons:
            return cast(T, self._singletons[cls])

        if cls not in self._factories:
            raise KeyError(f"No registration found for {cls.__name__}")

        instance = self._factories[cls]()
        self._singletons[cls] = instance
        return cast(T, instance)

    def register(self, cls: type[T], instance: T) -> None:
        """
        Register a pre-created instance.

        Args:
            cls: The class type
            instance: The instance to register
        """
        self._singletons[cls] = instance
        self._factories[cls] = lambda: instance

    @property
    def account_service(self) -> AccountService:
        return self.get(AccountService)

    @property
    def lead_service(self) -> LeadService:
        return self.get(LeadService)
