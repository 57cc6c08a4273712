"""
In-memory user repository.

Process-local store guarded by a lock. Suitable for development and
tests; production deployments use ``SqlAlchemyUserRepository``.
"""

import copy
import logging
import threading
from collections.abc import Callable
from typing import TypeVar
from uuid import UUID

from social_studio.domain.entities import User
from social_studio.domain.exceptions import DuplicateEmailException, NotFoundException

logger = logging.getLogger(__name__)

T = TypeVar("T")


class InMemoryUserRepository:
    """
    Lock-guarded user store keyed by id with a unique email index.

    Returns copies; stored state changes only inside ``modify``, which holds
    the lock for the whole read-change-write.
    """

    def __init__(self) -> None:
        self._users: dict[UUID, User] = {}
        self._ids_by_email: dict[str, UUID] = {}
        self._lock = threading.RLock()

    def add(self, user: User) -> User:
        with self._lock:
            if user.email in self._ids_by_email:
                raise DuplicateEmailException(user.email)
            self._users[user.id] = copy.deepcopy(user)
            self._ids_by_email[user.email] = user.id
        logger.debug(f"Stored user {user.id}")
        return user

    def modify(self, user_id: UUID, change: Callable[[User], T]) -> T:
        with self._lock:
            stored = self._users.get(user_id)
            if stored is None:
                raise NotFoundException("User", str(user_id))

            working = copy.deepcopy(stored)
            result = change(working)
            if working.id != user_id or working.email != stored.email:
                raise ValueError("modify cannot change a user's id or email")
            self._users[user_id] = copy.deepcopy(working)
        return result

    def get_by_id(self, user_id: UUID) -> User | None:
        with self._lock:
            user = self._users.get(user_id)
            return copy.deepcopy(user) if user else None

    def get_by_email(self, email: str) -> User | None:
        with self._lock:
            user_id = self._ids_by_email.get(email)
            if user_id is None:
                return None
            return copy.deepcopy(self._users[user_id])

    def consume_backup_code(self, user_id: UUID, code_digest: str) -> bool:
        with self._lock:
            user = self._users.get(user_id)
            if user is None or code_digest not in user.backup_codes:
                return False
            user.backup_codes.discard(code_digest)
            return True

    def __len__(self) -> int:
        with self._lock:
            return len(self._users)
