"""
Lead Entities - Submissions from the marketing site's capture forms
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import UTC, datetime
from enum import Enum
from uuid import UUID, uuid4


class LeadKind(Enum):
    """Kinds of lead-capture submissions"""

    PROTOTYPE_REQUEST = "prototype_request"
    INTERNSHIP_APPLICATION = "internship_application"
    CONTACT_MESSAGE = "contact_message"


@dataclass
class PrototypeRequest:
    """Free prototype request from a prospective client."""

    name: str
    email: str
    business: str
    industry: str
    phone: str = ""
    message: str = ""
    id: UUID = field(default_factory=uuid4)
    submitted_at: datetime = field(default_factory=lambda: datetime.now(UTC))

    kind = LeadKind.PROTOTYPE_REQUEST


@dataclass
class InternshipApplication:
    """Application for the internship program."""

    name: str
    email: str
    phone: str
    track: str
    portfolio_or_linkedin: str
    availability: str
    about: str
    location: str = ""
    id: UUID = field(default_factory=uuid4)
    submitted_at: datetime = field(default_factory=lambda: datetime.now(UTC))

    kind = LeadKind.INTERNSHIP_APPLICATION


@dataclass
class ContactMessage:
    """Message sent through the contact form."""

    name: str
    email: str
    message: str
    subject: str = ""
    id: UUID = field(default_factory=uuid4)
    submitted_at: datetime = field(default_factory=lambda: datetime.now(UTC))

    kind = LeadKind.CONTACT_MESSAGE


Lead = PrototypeRequest | InternshipApplication | ContactMessage
