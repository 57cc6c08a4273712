"""
Account API endpoints.

Signup, login, email verification, password management and two-factor
operations. Domain exceptions propagate to the handlers registered in
``app.create_app`` which map them to status codes.
"""

import logging

from fastapi import APIRouter, Depends, status

from social_studio.application.requests import SignupRequest
from social_studio.application.services import AccountService
from social_studio.domain.entities import User
from social_studio.interfaces.api.dependencies import get_account_service, get_current_user
from social_studio.interfaces.api.schemas import (
    BackupCodeStatusResponse,
    BackupCodesResponse,
    ChangePasswordBody,
    EmailBody,
    LoginBody,
    LoginResponse,
    MessageResponse,
    PasswordConfirmBody,
    PasswordResetBody,
    SignupBody,
    SignupResponse,
    TokenBody,
    TwoFactorCodeBody,
    TwoFactorLoginBody,
    TwoFactorSetupResponse,
    UserResponse,
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api", tags=["Accounts"])

RESET_REQUESTED_MESSAGE = "If an account exists for that email, a password reset link has been sent."
VERIFICATION_RESENT_MESSAGE = (
    "If an unverified account exists for that email, a new verification link has been sent."
)


def _user_response(user: User) -> UserResponse:
    return UserResponse(**user.to_public_dict())


# Public endpoints (no authentication required)
@router.post("/signup", response_model=SignupResponse, status_code=status.HTTP_201_CREATED)
async def signup(
    body: SignupBody, account_service: AccountService = Depends(get_account_service)
) -> SignupResponse:
    """
    Create an account.

    A verification link is emailed; the account works before it is
    verified.
    """
    result = await account_service.signup(
        SignupRequest(
            full_name=body.full_name,
            email=str(body.email),
            password=body.password.get_secret_value(),
            phone=body.phone,
            role=body.user_type,
            company_name=body.company_name,
            industry=body.industry,
            university=body.university,
            graduation_year=body.graduation_year,
            skills=body.skills,
        )
    )
    return SignupResponse(
        message="Account created successfully! Welcome to Social Studio.",
        user=_user_response(result.user),
    )


@router.post("/login", response_model=LoginResponse)
async def login(
    body: LoginBody, account_service: AccountService = Depends(get_account_service)
) -> LoginResponse:
    """
    Authenticate with email and password.

    Returns a session token, or a two-factor challenge if 2FA is enabled.
    """
    result = await account_service.login(body.email, body.password.get_secret_value())
    if result.two_factor_required:
        return LoginResponse(
            message="Two-factor authentication required",
            user_id=result.user_id,
            two_factor_required=True,
            challenge_token=result.challenge_token,
        )
    return LoginResponse(
        message="Login successful!",
        user_id=result.user_id,
        access_token=result.session_token,
        expires_in=result.expires_in,
    )


@router.post("/login/two-factor", response_model=LoginResponse)
async def login_two_factor(
    body: TwoFactorLoginBody, account_service: AccountService = Depends(get_account_service)
) -> LoginResponse:
    """Complete a login with a TOTP code or a backup code."""
    result = await account_service.complete_two_factor_login(body.challenge_token, body.code)
    return LoginResponse(
        message="Login successful!",
        user_id=result.user_id,
        access_token=result.session_token,
        expires_in=result.expires_in,
    )


@router.post("/verify-email", response_model=MessageResponse)
async def verify_email(
    body: TokenBody, account_service: AccountService = Depends(get_account_service)
) -> MessageResponse:
    await account_service.verify_email(body.token)
    return MessageResponse(message="Email verified successfully")


@router.post("/verify-email/resend", response_model=MessageResponse)
async def resend_verification(
    body: EmailBody, account_service: AccountService = Depends(get_account_service)
) -> MessageResponse:
    await account_service.resend_verification(str(body.email))
    return MessageResponse(message=VERIFICATION_RESENT_MESSAGE)


@router.post("/password/forgot", response_model=MessageResponse)
async def forgot_password(
    body: EmailBody, account_service: AccountService = Depends(get_account_service)
) -> MessageResponse:
    """
    Request a password reset link.

    The response is the same whether or not the account exists.
    """
    await account_service.request_password_reset(str(body.email))
    return MessageResponse(message=RESET_REQUESTED_MESSAGE)


@router.post("/password/reset", response_model=MessageResponse)
async def reset_password(
    body: PasswordResetBody, account_service: AccountService = Depends(get_account_service)
) -> MessageResponse:
    await account_service.reset_password(body.token, body.new_password.get_secret_value())
    return MessageResponse(message="Password has been reset. You can now sign in.")


# Authenticated endpoints
@router.post("/password/change", response_model=MessageResponse)
async def change_password(
    body: ChangePasswordBody,
    user: User = Depends(get_current_user),
    account_service: AccountService = Depends(get_account_service),
) -> MessageResponse:
    await account_service.change_password(
        user.id,
        body.current_password.get_secret_value(),
        body.new_password.get_secret_value(),
    )
    return MessageResponse(message="Password changed successfully")


@router.get("/me", response_model=UserResponse)
async def me(user: User = Depends(get_current_user)) -> UserResponse:
    return _user_response(user)


@router.post("/two-factor/setup", response_model=TwoFactorSetupResponse)
async def two_factor_setup(
    user: User = Depends(get_current_user),
    account_service: AccountService = Depends(get_account_service),
) -> TwoFactorSetupResponse:
    """
    Start two-factor enrollment.

    Returns the secret and an otpauth:// URI for the authenticator app.
    Calling it again restarts enrollment with a new secret.
    """
    enrollment = await account_service.begin_two_factor_setup(user.id)
    return TwoFactorSetupResponse(
        secret=enrollment.secret, provisioning_uri=enrollment.provisioning_uri
    )


@router.post("/two-factor/confirm", response_model=BackupCodesResponse)
async def two_factor_confirm(
    body: TwoFactorCodeBody,
    user: User = Depends(get_current_user),
    account_service: AccountService = Depends(get_account_service),
) -> BackupCodesResponse:
    codes = await account_service.confirm_two_factor_setup(user.id, body.code)
    return BackupCodesResponse(
        message="Two-factor authentication enabled. Store these backup codes safely.",
        backup_codes=codes,
    )


@router.post("/two-factor/disable", response_model=MessageResponse)
async def two_factor_disable(
    body: PasswordConfirmBody,
    user: User = Depends(get_current_user),
    account_service: AccountService = Depends(get_account_service),
) -> MessageResponse:
    await account_service.disable_two_factor(user.id, body.password.get_secret_value())
    return MessageResponse(message="Two-factor authentication disabled")


@router.post("/two-factor/backup-codes", response_model=BackupCodesResponse)
async def two_factor_regenerate_codes(
    body: PasswordConfirmBody,
    user: User = Depends(get_current_user),
    account_service: AccountService = Depends(get_account_service),
) -> BackupCodesResponse:
    codes = await account_service.regenerate_backup_codes(
        user.id, body.password.get_secret_value()
    )
    return BackupCodesResponse(
        message="Backup codes regenerated. Previous codes no longer work.", backup_codes=codes
    )


@router.get("/two-factor/backup-codes", response_model=BackupCodeStatusResponse)
async def two_factor_backup_code_status(
    user: User = Depends(get_current_user),
    account_service: AccountService = Depends(get_account_service),
) -> BackupCodeStatusResponse:
    return BackupCodeStatusResponse(**await account_service.backup_code_status(user.id))
