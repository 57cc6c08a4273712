"""
Notifier Interface Definitions

The account lifecycle emits plain data payloads; rendering and delivery
belong to the notifier implementation.
"""

from abc import abstractmethod
from dataclasses import dataclass, field
from typing import Protocol


@dataclass(frozen=True)
class WelcomeNotice:
    """Welcome + email verification."""

    name: str
    email: str
    verification_link: str


@dataclass(frozen=True)
class EmailVerifiedNotice:
    name: str
    email: str


@dataclass(frozen=True)
class PasswordResetNotice:
    name: str
    email: str
    reset_link: str


@dataclass(frozen=True)
class PasswordChangedNotice:
    name: str
    email: str


@dataclass(frozen=True)
class TwoFactorEnabledNotice:
    name: str
    email: str
    backup_code_count: int


@dataclass(frozen=True)
class LeadNotice:
    """New lead-capture submission for the studio inbox."""

    subject: str
    fields: dict[str, str] = field(default_factory=dict)


Notice = (
    WelcomeNotice
    | EmailVerifiedNotice
    | PasswordResetNotice
    | PasswordChangedNotice
    | TwoFactorEnabledNotice
    | LeadNotice
)


class INotifier(Protocol):
    """Outbound notification delivery."""

    @abstractmethod
    def notify(self, notice: Notice) -> bool:
        """
        Deliver a notice.

        Returns:
            True if delivery succeeded. Failures are reported, not raised.
        """
        ...
