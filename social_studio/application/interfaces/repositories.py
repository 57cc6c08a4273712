"""
Repository Interface Definitions

Defines the contracts that infrastructure repositories must implement.
Users change only through ``modify``, which reads and writes one record
atomically; the normalized email is unique and backup codes are single use.
"""

from abc import abstractmethod
from collections.abc import Callable
from typing import Protocol, TypeVar
from uuid import UUID

from social_studio.domain.entities import Lead, User

T = TypeVar("T")


class IUserRepository(Protocol):
    """
    Credential store interface.

    Emails passed in are already normalized.
    """

    @abstractmethod
    def add(self, user: User) -> User:
        """
        Insert a new user.

        Args:
            user: The user entity to insert

        Returns:
            The stored user

        Raises:
            DuplicateEmailException: If a user with the same email exists
        """
        ...

    @abstractmethod
    def modify(self, user_id: UUID, change: Callable[[User], T]) -> T:
        """
        Atomically read, change and write back one user.

        ``change`` receives a fresh copy of the stored user and mutates it;
        whatever it returns is returned. No other write to the record lands
        between the read and the write. If ``change`` raises, nothing is
        written and the exception propagates.

        Backup codes are written only when ``change`` replaced them, so a
        code consumed concurrently is not resurrected.

        Raises:
            NotFoundException: If the user does not exist
            ValueError: If ``change`` alters the id or email
        """
        ...

    @abstractmethod
    def get_by_id(self, user_id: UUID) -> User | None:
        """Retrieve a user by ID, None if absent."""
        ...

    @abstractmethod
    def get_by_email(self, email: str) -> User | None:
        """Retrieve a user by normalized email, None if absent."""
        ...

    @abstractmethod
    def consume_backup_code(self, user_id: UUID, code_digest: str) -> bool:
        """
        Atomically remove one backup code digest.

        Of two concurrent calls with the same digest exactly one returns True.

        Returns:
            True if the digest was present and is now removed
        """
        ...


class ILeadRepository(Protocol):
    """Storage for lead-capture submissions."""

    @abstractmethod
    def add(self, lead: Lead) -> Lead:
        """Persist a submission."""
        ...

    @abstractmethod
    def list_recent(self, limit: int = 50) -> list[Lead]:
        """Most recent submissions first."""
        ...


class IUsedCodeCache(Protocol):
    """Short-lived memory of accepted one-time codes."""

    @abstractmethod
    def mark_used(self, key: str, ttl_seconds: int) -> bool:
        """
        Record ``key`` as used.

        Returns:
            True if the key was not already recorded, False on replay
        """
        ...
