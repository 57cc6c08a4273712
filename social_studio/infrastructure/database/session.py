"""Engine and session factory construction."""

import logging

from sqlalchemy import create_engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from .models import Base

logger = logging.getLogger(__name__)


def create_session_factory(
    database_url: str, echo: bool = False, create_tables: bool = True
) -> sessionmaker[Session]:
    """
    Build a session factory for ``database_url``.

    In-memory SQLite shares one connection across threads so every session
    sees the same database.
    """
    kwargs: dict = {"echo": echo}
    if database_url.startswith("sqlite"):
        kwargs["connect_args"] = {"check_same_thread": False}
        if ":memory:" in database_url or database_url == "sqlite://":
            kwargs["poolclass"] = StaticPool

    engine = create_engine(database_url, **kwargs)
    if create_tables:
        Base.metadata.create_all(engine)
        logger.info(f"Database schema ensured on {engine.url.render_as_string()}")

    return sessionmaker(bind=engine, autoflush=False, expire_on_commit=False)
