"""
Lead repositories.

Storage for prototype requests, internship applications and contact
messages.
"""

import logging
import threading

from sqlalchemy import select
from sqlalchemy.orm import Session, sessionmaker

from social_studio.domain.entities import (
    ContactMessage,
    InternshipApplication,
    Lead,
    PrototypeRequest,
)
from social_studio.infrastructure.database.models import (
    ContactMessageModel,
    InternshipApplicationModel,
    PrototypeRequestModel,
)

logger = logging.getLogger(__name__)


class InMemoryLeadRepository:
    """Process-local lead store."""

    def __init__(self) -> None:
        self._leads: list[Lead] = []
        self._lock = threading.Lock()

    def add(self, lead: Lead) -> Lead:
        with self._lock:
            self._leads.append(lead)
        return lead

    def list_recent(self, limit: int = 50) -> list[Lead]:
        with self._lock:
            ordered = sorted(self._leads, key=lambda lead: lead.submitted_at, reverse=True)
        return ordered[:limit]


class SqlAlchemyLeadRepository:
    """Lead store backed by the three lead tables."""

    def __init__(self, session_factory: sessionmaker[Session]) -> None:
        self.session_factory = session_factory

    def add(self, lead: Lead) -> Lead:
        with self.session_factory() as session, session.begin():
            session.add(self._to_model(lead))
        return lead

    def list_recent(self, limit: int = 50) -> list[Lead]:
        leads: list[Lead] = []
        with self.session_factory() as session:
            for model_cls in (PrototypeRequestModel, InternshipApplicationModel, ContactMessageModel):
                stmt = select(model_cls).order_by(model_cls.submitted_at.desc()).limit(limit)
                leads.extend(row.to_entity() for row in session.scalars(stmt))
        leads.sort(key=lambda lead: lead.submitted_at, reverse=True)
        return leads[:limit]

    @staticmethod
    def _to_model(
        lead: Lead,
    ) -> PrototypeRequestModel | InternshipApplicationModel | ContactMessageModel:
        if isinstance(lead, PrototypeRequest):
            return PrototypeRequestModel.from_entity(lead)
        if isinstance(lead, InternshipApplication):
            return InternshipApplicationModel.from_entity(lead)
        if isinstance(lead, ContactMessage):
            return ContactMessageModel.from_entity(lead)
        raise TypeError(f"Unsupported lead type: {type(lead).__name__}")
