"""Contracts the infrastructure layer must implement."""

from .notifier import (
    EmailVerifiedNotice,
    INotifier,
    LeadNotice,
    PasswordChangedNotice,
    PasswordResetNotice,
    TwoFactorEnabledNotice,
    WelcomeNotice,
)
from .repositories import ILeadRepository, IUsedCodeCache, IUserRepository

__all__ = [
    "EmailVerifiedNotice",
    "ILeadRepository",
    "INotifier",
    "IUsedCodeCache",
    "IUserRepository",
    "LeadNotice",
    "PasswordChangedNotice",
    "PasswordResetNotice",
    "TwoFactorEnabledNotice",
    "WelcomeNotice",
]
