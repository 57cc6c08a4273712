"""
Database models for accounts and lead-capture submissions.

The unique index on ``users.email`` (stored normalized) is what keeps two
concurrent signups with the same address from both succeeding.
"""

from datetime import UTC, datetime
from typing import Any

from sqlalchemy import (
    JSON,
    Boolean,
    Column,
    DateTime,
    ForeignKey,
    Index,
    String,
    Text,
    UniqueConstraint,
    Uuid,
)
from sqlalchemy.orm import declarative_base

from social_studio.domain.entities import (
    ContactMessage,
    InternshipApplication,
    PrototypeRequest,
    User,
    UserRole,
)

Base = declarative_base()


def _utcnow() -> datetime:
    return datetime.now(UTC)


def _aware(value: datetime | None) -> datetime | None:
    # SQLite drops tzinfo on the way back
    if value is not None and value.tzinfo is None:
        return value.replace(tzinfo=UTC)
    return value


class UserModel(Base):  # type: ignore[valid-type, misc]
    """User model."""

    __tablename__ = "users"

    id = Column(Uuid, primary_key=True)
    email = Column(String(255), nullable=False)
    password_hash = Column(String(255), nullable=False)
    role = Column(String(20), nullable=False, default=UserRole.CLIENT.value)

    # Profile information
    full_name = Column(String(200), nullable=False, default="")
    phone = Column(String(40))
    profile = Column(JSON, nullable=False, default=dict)

    # Credential state
    email_verified = Column(Boolean, nullable=False, default=False)
    two_factor_enabled = Column(Boolean, nullable=False, default=False)
    two_factor_secret = Column(String(64))
    pending_two_factor_secret = Column(String(64))
    password_reset_jti = Column(String(64))

    # Timestamps
    created_at = Column(DateTime(timezone=True), nullable=False, default=_utcnow)
    updated_at = Column(DateTime(timezone=True), nullable=False, default=_utcnow)

    __table_args__ = (Index("uq_users_email", "email", unique=True),)

    def apply(self, user: User) -> None:
        """Copy every scalar field from the entity. Backup codes are stored separately."""
        self.id = user.id
        self.email = user.email
        self.password_hash = user.password_hash
        self.role = user.role.value
        self.full_name = user.full_name
        self.phone = user.phone
        self.profile = dict(user.profile)
        self.email_verified = user.email_verified
        self.two_factor_enabled = user.two_factor_enabled
        self.two_factor_secret = user.two_factor_secret
        self.pending_two_factor_secret = user.pending_two_factor_secret
        self.password_reset_jti = user.password_reset_jti
        self.created_at = user.created_at
        self.updated_at = user.updated_at

    def to_entity(self, backup_codes: set[str]) -> User:
        return User(
            id=self.id,
            email=self.email,
            password_hash=self.password_hash,
            role=UserRole(self.role),
            full_name=self.full_name,
            phone=self.phone,
            profile=dict(self.profile or {}),
            email_verified=bool(self.email_verified),
            two_factor_enabled=bool(self.two_factor_enabled),
            two_factor_secret=self.two_factor_secret,
            pending_two_factor_secret=self.pending_two_factor_secret,
            backup_codes=set(backup_codes),
            password_reset_jti=self.password_reset_jti,
            created_at=_aware(self.created_at),
            updated_at=_aware(self.updated_at),
        )


class BackupCodeModel(Base):  # type: ignore[valid-type, misc]
    """One unused backup code digest. Rows are deleted when redeemed."""

    __tablename__ = "two_factor_backup_codes"

    user_id = Column(Uuid, ForeignKey("users.id", ondelete="CASCADE"), primary_key=True)
    code_digest = Column(String(64), primary_key=True)
    created_at = Column(DateTime(timezone=True), nullable=False, default=_utcnow)

    __table_args__ = (UniqueConstraint("user_id", "code_digest", name="uq_backup_code"),)


class PrototypeRequestModel(Base):  # type: ignore[valid-type, misc]
    __tablename__ = "prototype_requests"

    id = Column(Uuid, primary_key=True)
    name = Column(String(200), nullable=False)
    email = Column(String(255), nullable=False)
    business = Column(String(200), nullable=False)
    industry = Column(String(100), nullable=False)
    phone = Column(String(40), nullable=False, default="")
    message = Column(Text, nullable=False, default="")
    submitted_at = Column(DateTime(timezone=True), nullable=False, default=_utcnow, index=True)

    @classmethod
    def from_entity(cls, lead: PrototypeRequest) -> "PrototypeRequestModel":
        return cls(**_lead_columns(lead))

    def to_entity(self) -> PrototypeRequest:
        return PrototypeRequest(
            id=self.id,
            name=self.name,
            email=self.email,
            business=self.business,
            industry=self.industry,
            phone=self.phone,
            message=self.message,
            submitted_at=_aware(self.submitted_at),
        )


class InternshipApplicationModel(Base):  # type: ignore[valid-type, misc]
    __tablename__ = "internship_applications"

    id = Column(Uuid, primary_key=True)
    name = Column(String(200), nullable=False)
    email = Column(String(255), nullable=False)
    phone = Column(String(40), nullable=False)
    track = Column(String(100), nullable=False)
    portfolio_or_linkedin = Column(String(500), nullable=False)
    availability = Column(String(100), nullable=False)
    location = Column(String(200), nullable=False, default="")
    about = Column(Text, nullable=False)
    submitted_at = Column(DateTime(timezone=True), nullable=False, default=_utcnow, index=True)

    @classmethod
    def from_entity(cls, lead: InternshipApplication) -> "InternshipApplicationModel":
        return cls(**_lead_columns(lead))

    def to_entity(self) -> InternshipApplication:
        return InternshipApplication(
            id=self.id,
            name=self.name,
            email=self.email,
            phone=self.phone,
            track=self.track,
            portfolio_or_linkedin=self.portfolio_or_linkedin,
            availability=self.availability,
            location=self.location,
            about=self.about,
            submitted_at=_aware(self.submitted_at),
        )


class ContactMessageModel(Base):  # type: ignore[valid-type, misc]
    __tablename__ = "contact_messages"

    id = Column(Uuid, primary_key=True)
    name = Column(String(200), nullable=False)
    email = Column(String(255), nullable=False)
    subject = Column(String(300), nullable=False, default="")
    message = Column(Text, nullable=False)
    submitted_at = Column(DateTime(timezone=True), nullable=False, default=_utcnow, index=True)

    @classmethod
    def from_entity(cls, lead: ContactMessage) -> "ContactMessageModel":
        return cls(**_lead_columns(lead))

    def to_entity(self) -> ContactMessage:
        return ContactMessage(
            id=self.id,
            name=self.name,
            email=self.email,
            subject=self.subject,
            message=self.message,
            submitted_at=_aware(self.submitted_at),
        )


def _lead_columns(lead: Any) -> dict[str, Any]:
    # Dataclass fields map one to one onto the lead tables
    return {name: getattr(lead, name) for name in lead.__dataclass_fields__}
