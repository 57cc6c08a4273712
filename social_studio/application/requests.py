"""
Request DTOs

One validated input type per operation. Each ``validate`` returns the
list of human-readable problems (empty when the request is acceptable);
``ensure_valid`` raises ``ValidationFailedException`` with all of them.
"""

from dataclasses import dataclass, field

from social_studio.domain.entities import UserRole
from social_studio.domain.exceptions import ValidationFailedException
from social_studio.domain.value_objects import is_valid_email

MAX_MESSAGE_LENGTH = 2000
MIN_PASSWORD_LENGTH = 8


def _blank(value: str | None) -> bool:
    return not value or not value.strip()


def _too_short(value: str | None, minimum: int) -> bool:
    return not value or len(value.strip()) < minimum


@dataclass
class ValidatedRequest:
    """Base class for validated request DTOs."""

    def validate(self) -> list[str]:
        return []

    def ensure_valid(self) -> None:
        errors = self.validate()
        if errors:
            raise ValidationFailedException(errors[0], errors)


@dataclass
class SignupRequest(ValidatedRequest):
    """Account signup form."""

    full_name: str
    email: str
    password: str
    phone: str = ""
    role: str = UserRole.CLIENT.value

    # Client profile
    company_name: str | None = None
    industry: str | None = None

    # Intern profile
    university: str | None = None
    graduation_year: str | None = None
    skills: list[str] = field(default_factory=list)

    def validate(self) -> list[str]:
        errors = []
        if _too_short(self.full_name, 2):
            errors.append("Please provide your full name (at least 2 characters)")
        if not is_valid_email(self.email):
            errors.append("Please provide a valid email address")
        if _too_short(self.phone, 10):
            errors.append("Please provide a valid phone number (at least 10 digits)")
        if not self.password or len(self.password) < MIN_PASSWORD_LENGTH:
            errors.append(f"Password must be at least {MIN_PASSWORD_LENGTH} characters long")

        # Admins are provisioned, never self-registered
        if self.role == UserRole.CLIENT.value:
            if _too_short(self.company_name, 2):
                errors.append("Company name must be at least 2 characters")
            if _blank(self.industry):
                errors.append("Please select your industry")
        elif self.role == UserRole.INTERN.value:
            if _too_short(self.university, 2):
                errors.append("University name must be at least 2 characters")
            if _blank(self.graduation_year):
                errors.append("Please select your graduation year")
        else:
            errors.append("Please select a valid user type")
        return errors

    def profile(self) -> dict[str, object]:
        if self.role == UserRole.INTERN.value:
            return {
                "university": (self.university or "").strip(),
                "graduation_year": (self.graduation_year or "").strip(),
                "skills": [s.strip() for s in self.skills if s and s.strip()],
            }
        return {
            "company_name": (self.company_name or "").strip(),
            "industry": (self.industry or "").strip(),
        }


@dataclass
class PrototypeRequestInput(ValidatedRequest):
    """Free prototype request form. ``company_website`` is the honeypot field."""

    name: str
    email: str
    business: str
    industry: str
    phone: str = ""
    message: str = ""
    company_website: str = ""

    def validate(self) -> list[str]:
        errors = []
        if _too_short(self.name, 2):
            errors.append("Name must be at least 2 characters")
        if not is_valid_email(self.email):
            errors.append("Please provide a valid email address")
        if _too_short(self.business, 2):
            errors.append("Business name must be at least 2 characters")
        if _blank(self.industry):
            errors.append("Please select an industry")
        if self.message and len(self.message) > MAX_MESSAGE_LENGTH:
            errors.append(f"Message must be less than {MAX_MESSAGE_LENGTH} characters")
        return errors

    @property
    def is_bot(self) -> bool:
        return not _blank(self.company_website)


@dataclass
class InternshipApplicationInput(ValidatedRequest):
    """Internship application form. ``website`` is the honeypot field."""

    name: str
    email: str
    phone: str
    track: str
    portfolio_or_linkedin: str
    availability: str
    about: str
    location: str = ""
    website: str = ""

    def validate(self) -> list[str]:
        errors = []
        if _too_short(self.name, 2):
            errors.append("Name must be at least 2 characters")
        if not is_valid_email(self.email):
            errors.append("Please provide a valid email address")
        if _too_short(self.phone, 10):
            errors.append("Please provide a valid phone number (at least 10 digits)")
        if _blank(self.track):
            errors.append("Please select a track")
        if _blank(self.portfolio_or_linkedin):
            errors.append("Please provide your Portfolio or LinkedIn profile URL")
        if _blank(self.availability):
            errors.append("Please specify your availability")
        if _too_short(self.about, 10):
            errors.append(
                "Please provide more details about yourself (at least 10 characters)"
            )
        return errors

    @property
    def is_bot(self) -> bool:
        return not _blank(self.website)


@dataclass
class ContactMessageInput(ValidatedRequest):
    """Contact form."""

    name: str
    email: str
    message: str
    subject: str = ""

    def validate(self) -> list[str]:
        errors = []
        if _too_short(self.name, 2):
            errors.append("Name must be at least 2 characters")
        if not is_valid_email(self.email):
            errors.append("Please provide a valid email address")
        if _too_short(self.message, 10):
            errors.append("Message must be at least 10 characters")
        if self.message and len(self.message) > MAX_MESSAGE_LENGTH:
            errors.append(f"Message must be less than {MAX_MESSAGE_LENGTH} characters")
        return errors
