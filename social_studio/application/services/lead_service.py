"""
Lead capture service for the public website forms.
"""

import asyncio
import logging

from social_studio.application.interfaces.notifier import INotifier, LeadNotice
from social_studio.application.interfaces.repositories import ILeadRepository
from social_studio.application.requests import (
    ContactMessageInput,
    InternshipApplicationInput,
    PrototypeRequestInput,
)
from social_studio.domain.entities import (
    ContactMessage,
    InternshipApplication,
    Lead,
    PrototypeRequest,
)
from social_studio.domain.exceptions import ValidationFailedException
from social_studio.domain.value_objects import normalize_email

logger = logging.getLogger(__name__)


class LeadService:
    """Validates, stores and forwards website form submissions."""

    def __init__(self, lead_repository: ILeadRepository, notifier: INotifier):
        self.leads = lead_repository
        self.notifier = notifier

    async def submit_prototype_request(self, form: PrototypeRequestInput) -> PrototypeRequest:
        self._reject_bot(form.is_bot, "prototype request")
        form.ensure_valid()

        lead = PrototypeRequest(
            name=form.name.strip(),
            email=normalize_email(form.email),
            business=form.business.strip(),
            industry=form.industry.strip(),
            phone=(form.phone or "").strip(),
            message=(form.message or "").strip(),
        )
        await asyncio.to_thread(self.leads.add, lead)
        logger.info(f"Prototype request {lead.id} received")

        await self._forward(
            LeadNotice(
                subject=f"New Prototype Request: {lead.business}",
                fields={
                    "Name": lead.name,
                    "Email": lead.email,
                    "Phone": lead.phone or "Not provided",
                    "Business": lead.business,
                    "Industry": lead.industry,
                    "Message": lead.message or "No message provided",
                },
            )
        )
        return lead

    async def submit_internship_application(
        self, form: InternshipApplicationInput
    ) -> InternshipApplication:
        self._reject_bot(form.is_bot, "internship application")
        form.ensure_valid()

        application = InternshipApplication(
            name=form.name.strip(),
            email=normalize_email(form.email),
            phone=form.phone.strip(),
            track=form.track.strip(),
            portfolio_or_linkedin=form.portfolio_or_linkedin.strip(),
            availability=form.availability.strip(),
            about=form.about.strip(),
            location=(form.location or "").strip(),
        )
        await asyncio.to_thread(self.leads.add, application)
        logger.info(f"Internship application {application.id} received")

        await self._forward(
            LeadNotice(
                subject=f"New Internship Application: {application.name} - {application.track}",
                fields={
                    "Name": application.name,
                    "Email": application.email,
                    "Phone": application.phone,
                    "Location": application.location or "Not provided",
                    "Track": application.track,
                    "Portfolio/LinkedIn": application.portfolio_or_linkedin,
                    "Availability": application.availability,
                    "About": application.about,
                },
            )
        )
        return application

    async def submit_contact_message(self, form: ContactMessageInput) -> ContactMessage:
        form.ensure_valid()

        message = ContactMessage(
            name=form.name.strip(),
            email=normalize_email(form.email),
            message=form.message.strip(),
            subject=(form.subject or "").strip(),
        )
        await asyncio.to_thread(self.leads.add, message)
        logger.info(f"Contact message {message.id} received")

        await self._forward(
            LeadNotice(
                subject=f"New Contact Message: {message.subject or 'General Inquiry'}",
                fields={
                    "Name": message.name,
                    "Email": message.email,
                    "Subject": message.subject or "Not specified",
                    "Message": message.message,
                },
            )
        )
        return message

    async def recent_leads(self, limit: int = 50) -> list[Lead]:
        """Newest submissions of every kind, for the studio's admins."""
        return await asyncio.to_thread(self.leads.list_recent, limit=max(1, min(limit, 200)))

    @staticmethod
    def _reject_bot(is_bot: bool, form_name: str) -> None:
        if is_bot:
            logger.warning(f"Honeypot field filled on {form_name}; submission rejected")
            raise ValidationFailedException("Invalid submission")

    async def _forward(self, notice: LeadNotice) -> None:
        # The submission is already stored; a failed email only gets logged
        try:
            delivered = await asyncio.to_thread(self.notifier.notify, notice)
        except Exception:
            logger.exception(f"Notifier raised while forwarding '{notice.subject}'")
            return
        if not delivered:
            logger.warning(f"Lead notification '{notice.subject}' was not delivered")
