"""
Request/Response models for the HTTP API.

Signup accepts the camelCase field names the website forms post
(``fullName``, ``userType``, ...) as well as snake_case.
"""

from typing import Any

from pydantic import (
    BaseModel,
    ConfigDict,
    EmailStr,
    Field,
    SecretStr,
    ValidationInfo,
    field_validator,
)


class ApiRequest(BaseModel):
    model_config = ConfigDict(str_strip_whitespace=True, populate_by_name=True)


class CredentialRequest(BaseModel):
    """
    Request that carries a password.

    Text fields are trimmed like any other request, but passwords are
    kept exactly as typed.
    """

    model_config = ConfigDict(populate_by_name=True)

    @field_validator("*", mode="before")
    @classmethod
    def strip_text(cls, value: Any, info: ValidationInfo) -> Any:
        field = cls.model_fields.get(info.field_name or "")
        if isinstance(value, str) and field is not None and field.annotation is not SecretStr:
            return value.strip()
        return value


# Account requests


class SignupBody(CredentialRequest):
    """Account signup request."""

    full_name: str = Field("", alias="fullName", max_length=100)
    email: EmailStr
    phone: str = Field("", max_length=30)
    password: SecretStr = Field(..., min_length=8, max_length=128)
    user_type: str = Field("client", alias="userType")
    company_name: str | None = Field(None, alias="companyName", max_length=200)
    industry: str | None = Field(None, max_length=100)
    university: str | None = Field(None, max_length=200)
    graduation_year: str | None = Field(None, alias="graduationYear", max_length=10)
    skills: list[str] = Field(default_factory=list)

    @field_validator("skills", mode="before")
    @classmethod
    def split_skills(cls, value: Any) -> Any:
        # The signup form posts skills as one comma-separated string
        if isinstance(value, str):
            return [s.strip() for s in value.split(",") if s.strip()]
        return value or []

    @field_validator("graduation_year", mode="before")
    @classmethod
    def year_as_text(cls, value: Any) -> Any:
        if isinstance(value, int):
            return str(value)
        return value


class LoginBody(CredentialRequest):
    """Login request."""

    email: str = Field(..., min_length=1, max_length=254)
    password: SecretStr = Field(..., min_length=1, max_length=128)


class TwoFactorLoginBody(ApiRequest):
    """Second login step: TOTP code or backup code."""

    challenge_token: str = Field(..., min_length=1)
    code: str = Field(..., min_length=6, max_length=16)


class TokenBody(ApiRequest):
    """Email verification request."""

    token: str = Field(..., min_length=1)


class EmailBody(ApiRequest):
    """Request that only identifies an account by email."""

    email: EmailStr


class PasswordResetBody(CredentialRequest):
    """Password reset confirmation."""

    token: str = Field(..., min_length=1)
    new_password: SecretStr = Field(..., min_length=8, max_length=128)


class ChangePasswordBody(CredentialRequest):
    """Change password request."""

    current_password: SecretStr
    new_password: SecretStr = Field(..., min_length=8, max_length=128)


class TwoFactorCodeBody(ApiRequest):
    code: str = Field(..., min_length=6, max_length=6)


class PasswordConfirmBody(CredentialRequest):
    """Re-authentication for sensitive 2FA changes."""

    password: SecretStr


# Lead requests


class PrototypeRequestBody(ApiRequest):
    name: str = ""
    email: str = ""
    business: str = ""
    industry: str = ""
    phone: str = ""
    message: str = ""
    company_website: str = ""


class InternshipApplicationBody(ApiRequest):
    name: str = ""
    email: str = ""
    phone: str = ""
    track: str = ""
    portfolio_or_linkedin: str = ""
    availability: str = ""
    location: str = ""
    about: str = ""
    website: str = ""


class ContactMessageBody(ApiRequest):
    name: str = ""
    email: str = ""
    subject: str = ""
    message: str = ""


# Responses


class MessageResponse(BaseModel):
    success: bool = True
    message: str


class UserResponse(BaseModel):
    """Account profile response."""

    id: str
    email: str
    full_name: str
    phone: str | None
    role: str
    profile: dict[str, Any]
    email_verified: bool
    two_factor_enabled: bool
    created_at: str


class SignupResponse(BaseModel):
    success: bool = True
    message: str
    user: UserResponse
    email_verification_required: bool = True


class LoginResponse(BaseModel):
    """
    Login response.

    Either a session token, or ``two_factor_required`` with the challenge
    token to send to ``/api/login/two-factor``.
    """

    success: bool = True
    message: str
    user_id: str
    access_token: str | None = None
    token_type: str = "Bearer"
    expires_in: int = 0
    two_factor_required: bool = False
    challenge_token: str | None = None


class TwoFactorSetupResponse(BaseModel):
    secret: str
    provisioning_uri: str


class BackupCodesResponse(BaseModel):
    """Plaintext backup codes. Shown exactly once."""

    success: bool = True
    message: str
    backup_codes: list[str]


class BackupCodeStatusResponse(BaseModel):
    two_factor_enabled: bool
    remaining_codes: int


class LeadResponse(BaseModel):
    ok: bool = True
    message: str
    id: str


class LeadSummary(BaseModel):
    id: str
    kind: str
    name: str
    email: str
    submitted_at: str


class HealthResponse(BaseModel):
    status: str
    version: str
