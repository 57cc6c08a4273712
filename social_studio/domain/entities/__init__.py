"""Domain entities."""

from .lead import ContactMessage, InternshipApplication, Lead, LeadKind, PrototypeRequest
from .user import TwoFactorState, User, UserRole

__all__ = [
    "ContactMessage",
    "InternshipApplication",
    "Lead",
    "LeadKind",
    "PrototypeRequest",
    "TwoFactorState",
    "User",
    "UserRole",
]
