"""Repository implementations."""

from .lead_repository import InMemoryLeadRepository, SqlAlchemyLeadRepository
from .sql_user_repository import SqlAlchemyUserRepository
from .user_repository import InMemoryUserRepository

__all__ = [
    "InMemoryLeadRepository",
    "InMemoryUserRepository",
    "SqlAlchemyLeadRepository",
    "SqlAlchemyUserRepository",
]
