"""
Authentication middleware for FastAPI.

Session bearer validation, role requirements and request correlation ids.
"""

import logging
from collections.abc import Callable
from typing import TYPE_CHECKING, Any

from fastapi import HTTPException, Request, status
from fastapi.responses import Response
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from starlette.middleware.base import BaseHTTPMiddleware

from social_studio.domain.entities import User
from social_studio.domain.exceptions import InvalidTokenException, TokenExpiredException
from social_studio.infrastructure.monitoring.logging import correlation_context, set_user_context

if TYPE_CHECKING:
    from social_studio.application.services import AccountService

logger = logging.getLogger(__name__)


class SessionBearer(HTTPBearer):
    """
    Session token authentication.

    Validates the bearer token in the Authorization header as a ``session``
    token and stores the account context in ``request.state``.
    """

    def __init__(self, account_service: "AccountService", auto_error: bool = True):
        """
        Initialize session bearer authentication.

        Args:
            account_service: Service resolving session tokens to accounts
            auto_error: Automatically raise HTTPException on error
        """
        # Missing or non-bearer credentials are answered here with a uniform 401
        super().__init__(auto_error=False)
        self.raise_on_error = auto_error
        self.account_service = account_service

    async def __call__(self, request: Request) -> User | None:  # type: ignore[override]
        """
        Validate the session token from the Authorization header.

        Returns:
            The authenticated account

        Raises:
            HTTPException: If the token is missing, expired or invalid
        """
        credentials: HTTPAuthorizationCredentials | None = await super().__call__(request)

        if not credentials:
            if self.raise_on_error:
                raise HTTPException(
                    status_code=status.HTTP_401_UNAUTHORIZED,
                    detail="Authorization required",
                    headers={"WWW-Authenticate": "Bearer"},
                )
            return None

        try:
            user = await self.account_service.authenticate(credentials.credentials)
        except TokenExpiredException:
            raise HTTPException(
                status_code=status.HTTP_401_UNAUTHORIZED,
                detail="Session has expired",
                headers={"WWW-Authenticate": "Bearer"},
            )
        except InvalidTokenException as e:
            logger.info(f"Rejected session token: {e.reason}")
            raise HTTPException(
                status_code=status.HTTP_401_UNAUTHORIZED,
                detail="Invalid session token",
                headers={"WWW-Authenticate": "Bearer"},
            )

        request.state.user_id = str(user.id)
        request.state.email = user.email
        request.state.roles = [user.role.value]
        set_user_context(str(user.id))
        return user


class RequireRole:
    """
    Role requirement dependency.

    Checks if the authenticated account has one of the required roles.
    Must run after ``SessionBearer``.
    """

    def __init__(self, *roles: str) -> None:
        self.roles = roles

    async def __call__(self, request: Request) -> bool:
        if not hasattr(request.state, "roles"):
            raise HTTPException(
                status_code=status.HTTP_401_UNAUTHORIZED, detail="Not authenticated"
            )

        if not any(role in request.state.roles for role in self.roles):
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail=f"One of these roles required: {', '.join(self.roles)}",
            )

        return True


class RequestIDMiddleware(BaseHTTPMiddleware):
    """
    Request ID middleware.

    Reuses the caller's X-Request-ID or generates one, and makes it the
    logging correlation id for the duration of the request.
    """

    async def dispatch(self, request: Request, call_next: Callable[[Request], Any]) -> Response:
        with correlation_context(request.headers.get("X-Request-ID")) as request_id:
            request.state.request_id = request_id
            response = await call_next(request)

        response.headers["X-Request-ID"] = request_id
        return response  # type: ignore[no-any-return]
