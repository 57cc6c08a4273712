"""SQLAlchemy persistence."""

from .models import Base
from .session import create_session_factory

__all__ = ["Base", "create_session_factory"]
