"""
FastAPI dependencies.

The container lives on ``app.state``; routes reach services through it.
"""

from typing import cast

from fastapi import Depends, Request

from social_studio.application.services import AccountService, LeadService
from social_studio.domain.entities import User
from social_studio.infrastructure.auth import SessionBearer
from social_studio.infrastructure.container import Container


def get_container(request: Request) -> Container:
    """Get the application container."""
    return request.app.state.container  # type: ignore[no-any-return]


def get_account_service(container: Container = Depends(get_container)) -> AccountService:
    """Get account service instance."""
    return container.account_service


def get_lead_service(container: Container = Depends(get_container)) -> LeadService:
    """Get lead service instance."""
    return container.lead_service


async def get_current_user(
    request: Request, account_service: AccountService = Depends(get_account_service)
) -> User:
    """Get current authenticated account."""
    # auto_error raises instead of returning None
    return cast(User, await SessionBearer(account_service)(request))
