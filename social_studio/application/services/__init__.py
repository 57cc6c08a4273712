"""Application services."""

from .account_service import AccountService, LoginResult, SignupResult
from .lead_service import LeadService

__all__ = ["AccountService", "LeadService", "LoginResult", "SignupResult"]
