"""
FastAPI application factory.

Builds the app around a ``Container`` and maps domain exceptions to HTTP
responses. Error bodies carry a single ``error`` message, which is what
the website's forms display.
"""

import logging
from typing import Any

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from social_studio import __version__
from social_studio.domain.exceptions import (
    DomainException,
    DuplicateEmailException,
    InvalidBackupCodeException,
    InvalidCredentialsException,
    InvalidTokenException,
    InvalidTwoFactorCodeException,
    NotFoundException,
    TokenExpiredException,
    TwoFactorStateException,
    ValidationFailedException,
)
from social_studio.infrastructure.auth import RequestIDMiddleware
from social_studio.infrastructure.container import Container
from social_studio.interfaces.api import auth_routes, lead_routes
from social_studio.interfaces.api.schemas import HealthResponse

logger = logging.getLogger(__name__)

# Checked in order; subclasses before DomainException
_STATUS_BY_EXCEPTION: list[tuple[type[DomainException], int]] = [
    (ValidationFailedException, status.HTTP_400_BAD_REQUEST),
    (DuplicateEmailException, status.HTTP_409_CONFLICT),
    (TwoFactorStateException, status.HTTP_409_CONFLICT),
    (InvalidCredentialsException, status.HTTP_401_UNAUTHORIZED),
    (InvalidTwoFactorCodeException, status.HTTP_401_UNAUTHORIZED),
    (InvalidBackupCodeException, status.HTTP_401_UNAUTHORIZED),
    (TokenExpiredException, status.HTTP_401_UNAUTHORIZED),
    (InvalidTokenException, status.HTTP_401_UNAUTHORIZED),
    (NotFoundException, status.HTTP_404_NOT_FOUND),
]


def status_for(exc: DomainException) -> int:
    for exc_type, status_code in _STATUS_BY_EXCEPTION:
        if isinstance(exc, exc_type):
            return status_code
    return status.HTTP_400_BAD_REQUEST


def _error_body(message: str, **extra: Any) -> dict[str, Any]:
    return {"success": False, "error": message, **extra}


async def domain_exception_handler(request: Request, exc: DomainException) -> JSONResponse:
    status_code = status_for(exc)

    if isinstance(exc, NotFoundException):
        # Lookups only fail here after authentication already succeeded
        logger.error(f"{exc.message} while handling {request.method} {request.url.path}")
        return JSONResponse(status_code=status_code, content=_error_body("Not found"))

    extra: dict[str, Any] = {}
    if isinstance(exc, ValidationFailedException):
        extra["errors"] = exc.errors
    elif isinstance(exc, InvalidTokenException | TokenExpiredException):
        extra["reason"] = getattr(exc, "reason", "expired")

    headers = {"WWW-Authenticate": "Bearer"} if status_code == 401 else None
    return JSONResponse(
        status_code=status_code, content=_error_body(exc.message, **extra), headers=headers
    )


async def request_validation_handler(
    request: Request, exc: RequestValidationError
) -> JSONResponse:
    errors = []
    for error in exc.errors():
        field = ".".join(str(part) for part in error.get("loc", ()) if part != "body")
        errors.append(f"{field}: {error.get('msg')}" if field else str(error.get("msg")))
    message = errors[0] if errors else "Invalid request"
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST, content=_error_body(message, errors=errors)
    )


async def http_exception_handler(
    request: Request, exc: StarletteHTTPException
) -> JSONResponse:
    return JSONResponse(
        status_code=exc.status_code,
        content=_error_body(str(exc.detail)),
        headers=getattr(exc, "headers", None),
    )


async def unhandled_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.exception(f"Unhandled error on {request.method} {request.url.path}: {exc!s}")
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content=_error_body("Something went wrong. Please try again."),
    )


def create_app(container: Container | None = None) -> FastAPI:
    """
    Create the Social Studio API.

    Args:
        container: Wired services; built from the environment when omitted

    Returns:
        Configured FastAPI application
    """
    container = container or Container()

    app = FastAPI(
        title="Social Studio API",
        description="Accounts and lead capture for the Social Studio website",
        version=__version__,
    )
    app.state.container = container

    app.add_middleware(RequestIDMiddleware)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=container.config.cors_origins,
        allow_credentials=True,
        allow_methods=["GET", "POST"],
        allow_headers=["Authorization", "Content-Type", "X-Request-ID"],
        max_age=3600,
    )

    app.add_exception_handler(DomainException, domain_exception_handler)  # type: ignore[arg-type]
    app.add_exception_handler(RequestValidationError, request_validation_handler)  # type: ignore[arg-type]
    app.add_exception_handler(StarletteHTTPException, http_exception_handler)  # type: ignore[arg-type]
    app.add_exception_handler(Exception, unhandled_exception_handler)

    app.include_router(auth_routes.router)
    app.include_router(lead_routes.router)

    @app.get("/health", response_model=HealthResponse, tags=["Health"])
    async def health() -> HealthResponse:
        return HealthResponse(status="healthy", version=__version__)

    logger.info(f"Social Studio API created ({container.config.environment})")
    return app
