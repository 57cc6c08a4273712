"""
SQLAlchemy user repository.

Uniqueness of the normalized email is enforced by the ``uq_users_email``
index. ``modify`` runs in one transaction holding the row lock; backup
code redemption is a single conditional ``DELETE``.
"""

import logging
from collections.abc import Callable
from typing import TypeVar
from uuid import UUID

from sqlalchemy import delete, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session, sessionmaker

from social_studio.domain.entities import User
from social_studio.domain.exceptions import DuplicateEmailException, NotFoundException
from social_studio.infrastructure.database.models import BackupCodeModel, UserModel

logger = logging.getLogger(__name__)

T = TypeVar("T")


class SqlAlchemyUserRepository:
    """User store backed by a relational database."""

    def __init__(self, session_factory: sessionmaker[Session]) -> None:
        self.session_factory = session_factory

    def add(self, user: User) -> User:
        model = UserModel()
        model.apply(user)
        try:
            with self.session_factory() as session, session.begin():
                session.add(model)
        except IntegrityError as e:
            logger.info(f"Rejected duplicate signup for {user.email}: {e.orig}")
            raise DuplicateEmailException(user.email)
        return user

    def modify(self, user_id: UUID, change: Callable[[User], T]) -> T:
        with self.session_factory() as session, session.begin():
            # Row lock until commit where the backend supports it
            model = session.get(UserModel, user_id, with_for_update=True)
            if model is None:
                raise NotFoundException("User", str(user_id))

            working = self._load(session, model)
            codes_before = set(working.backup_codes)
            result = change(working)
            if working.id != user_id or working.email != model.email:
                raise ValueError("modify cannot change a user's id or email")

            model.apply(working)
            if working.backup_codes != codes_before:
                session.execute(delete(BackupCodeModel).where(BackupCodeModel.user_id == user_id))
                session.add_all(
                    BackupCodeModel(user_id=user_id, code_digest=digest)
                    for digest in working.backup_codes
                )
        return result

    def get_by_id(self, user_id: UUID) -> User | None:
        with self.session_factory() as session:
            model = session.get(UserModel, user_id)
            return self._load(session, model) if model else None

    def get_by_email(self, email: str) -> User | None:
        with self.session_factory() as session:
            model = session.scalars(select(UserModel).where(UserModel.email == email)).first()
            return self._load(session, model) if model else None

    def consume_backup_code(self, user_id: UUID, code_digest: str) -> bool:
        with self.session_factory() as session, session.begin():
            result = session.execute(
                delete(BackupCodeModel).where(
                    BackupCodeModel.user_id == user_id,
                    BackupCodeModel.code_digest == code_digest,
                )
            )
            return result.rowcount == 1

    @staticmethod
    def _load(session: Session, model: UserModel) -> User:
        digests = session.scalars(
            select(BackupCodeModel.code_digest).where(BackupCodeModel.user_id == model.id)
        ).all()
        return model.to_entity(set(digests))
