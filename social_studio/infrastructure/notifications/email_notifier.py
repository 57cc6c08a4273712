"""
Email notifiers.

Turns lifecycle notices into plain-text emails. ``SmtpEmailNotifier``
delivers them over SMTP; ``LoggingNotifier`` stands in when no SMTP
server is configured.
"""

import logging
import smtplib
from dataclasses import dataclass
from email.message import EmailMessage

from social_studio.application.interfaces.notifier import (
    EmailVerifiedNotice,
    LeadNotice,
    Notice,
    PasswordChangedNotice,
    PasswordResetNotice,
    TwoFactorEnabledNotice,
    WelcomeNotice,
)

logger = logging.getLogger(__name__)

SIGNATURE = "Best regards,\nThe Social Studio Team"


@dataclass(frozen=True)
class RenderedEmail:
    to: str | None
    subject: str
    body: str


def render_notice(notice: Notice) -> RenderedEmail:
    """
    Render a notice as a plain-text email.

    ``to`` is None for notices addressed to the studio inbox.
    """
    if isinstance(notice, WelcomeNotice):
        return RenderedEmail(
            to=notice.email,
            subject="Welcome to Social Studio - please verify your email",
            body=(
                f"Hi {notice.name},\n\n"
                "Thank you for creating your account with Social Studio.\n"
                "Please confirm your email address by opening the link below:\n\n"
                f"{notice.verification_link}\n\n"
                "The link expires in 24 hours.\n\n"
                f"{SIGNATURE}"
            ),
        )
    if isinstance(notice, EmailVerifiedNotice):
        return RenderedEmail(
            to=notice.email,
            subject="Your email address is verified",
            body=f"Hi {notice.name},\n\nYour email address has been verified.\n\n{SIGNATURE}",
        )
    if isinstance(notice, PasswordResetNotice):
        return RenderedEmail(
            to=notice.email,
            subject="Reset your Social Studio password",
            body=(
                f"Hi {notice.name},\n\n"
                "We received a request to reset your password. Use the link below to choose "
                "a new one:\n\n"
                f"{notice.reset_link}\n\n"
                "The link expires in 1 hour. If you did not ask for this, ignore this email.\n\n"
                f"{SIGNATURE}"
            ),
        )
    if isinstance(notice, PasswordChangedNotice):
        return RenderedEmail(
            to=notice.email,
            subject="Your Social Studio password was changed",
            body=(
                f"Hi {notice.name},\n\n"
                "Your password was just changed. If this wasn't you, reset your password "
                "immediately and contact us.\n\n"
                f"{SIGNATURE}"
            ),
        )
    if isinstance(notice, TwoFactorEnabledNotice):
        return RenderedEmail(
            to=notice.email,
            subject="Two-factor authentication enabled",
            body=(
                f"Hi {notice.name},\n\n"
                "Two-factor authentication is now enabled on your account. "
                f"You have {notice.backup_code_count} backup codes; keep them somewhere safe.\n\n"
                f"{SIGNATURE}"
            ),
        )
    if isinstance(notice, LeadNotice):
        lines = [f"{label}: {value or 'Not provided'}" for label, value in notice.fields.items()]
        return RenderedEmail(to=None, subject=notice.subject, body="\n".join(lines))
    raise TypeError(f"Unsupported notice: {type(notice).__name__}")


class SmtpEmailNotifier:
    """Sends notices synchronously over SMTP."""

    def __init__(
        self,
        host: str,
        port: int,
        sender: str,
        admin_email: str,
        username: str | None = None,
        password: str | None = None,
        use_tls: bool = True,
        timeout: float = 10.0,
    ) -> None:
        self.host = host
        self.port = port
        self.sender = sender
        self.admin_email = admin_email
        self.username = username
        self.password = password
        self.use_tls = use_tls
        self.timeout = timeout

    def notify(self, notice: Notice) -> bool:
        rendered = render_notice(notice)
        message = EmailMessage()
        message["From"] = self.sender
        message["To"] = rendered.to or self.admin_email
        message["Subject"] = rendered.subject
        message.set_content(rendered.body)

        try:
            with smtplib.SMTP(self.host, self.port, timeout=self.timeout) as smtp:
                if self.use_tls:
                    smtp.starttls()
                if self.username and self.password:
                    smtp.login(self.username, self.password)
                smtp.send_message(message)
        except (smtplib.SMTPException, OSError) as e:
            logger.error(f"Email delivery failed for '{rendered.subject}': {e}")
            return False

        logger.info(f"Email sent: {rendered.subject}")
        return True


class LoggingNotifier:
    """Logs notices instead of sending them. Keeps the last ones for inspection."""

    def __init__(self, keep: int = 100) -> None:
        self.keep = keep
        self.sent: list[Notice] = []

    def notify(self, notice: Notice) -> bool:
        rendered = render_notice(notice)
        logger.info(
            f"Email (not sent, SMTP not configured): {rendered.subject}",
            extra={"recipient": rendered.to or "studio inbox", "notice": type(notice).__name__},
        )
        self.sent.append(notice)
        del self.sent[: -self.keep]
        return True
