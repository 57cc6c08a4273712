"""
Unit tests for the lead capture service.
"""

import asyncio
from unittest.mock import MagicMock

import pytest

from social_studio.application.interfaces.notifier import LeadNotice
from social_studio.application.requests import (
    ContactMessageInput,
    InternshipApplicationInput,
    PrototypeRequestInput,
)
from social_studio.application.services import LeadService
from social_studio.domain.entities import ContactMessage, LeadKind
from social_studio.domain.exceptions import ValidationFailedException

pytestmark = pytest.mark.asyncio


def prototype_form(**overrides):
    fields = {
        "name": "Sam Rivera",
        "email": " Sam@Example.com",
        "business": "Sam's Shop",
        "industry": "Retail",
    }
    fields.update(overrides)
    return PrototypeRequestInput(**fields)


def internship_form(**overrides):
    fields = {
        "name": "Ana Lopez",
        "email": "ana@example.com",
        "phone": "555-987-6543",
        "track": "Marketing",
        "portfolio_or_linkedin": "https://linkedin.com/in/ana",
        "availability": "20 hours/week",
        "about": "Marketing student who loves small brands.",
    }
    fields.update(overrides)
    return InternshipApplicationInput(**fields)


class TestPrototypeRequests:
    async def test_stored_and_forwarded(self, lead_service, lead_repository, notifier):
        lead = await lead_service.submit_prototype_request(prototype_form())

        assert lead.email == "sam@example.com"
        assert lead_repository.list_recent() == [lead]

        [notice] = notifier.sent
        assert isinstance(notice, LeadNotice)
        assert notice.subject == "New Prototype Request: Sam's Shop"
        assert notice.fields["Phone"] == "Not provided"
        assert notice.fields["Message"] == "No message provided"

    async def test_honeypot_rejects_without_storing(self, lead_service, lead_repository, notifier):
        with pytest.raises(ValidationFailedException) as exc_info:
            await lead_service.submit_prototype_request(
                prototype_form(company_website="http://spam.example")
            )

        assert exc_info.value.message == "Invalid submission"
        assert lead_repository.list_recent() == []
        assert notifier.sent == []

    async def test_validation(self, lead_service):
        with pytest.raises(ValidationFailedException) as exc_info:
            await lead_service.submit_prototype_request(prototype_form(business="S", industry=""))

        assert exc_info.value.errors == [
            "Business name must be at least 2 characters",
            "Please select an industry",
        ]


class TestInternshipApplications:
    async def test_stored_and_forwarded(self, lead_service, lead_repository, notifier):
        application = await lead_service.submit_internship_application(internship_form())

        assert application.kind == LeadKind.INTERNSHIP_APPLICATION
        assert lead_repository.list_recent() == [application]
        assert notifier.sent[0].subject == "New Internship Application: Ana Lopez - Marketing"
        assert notifier.sent[0].fields["Location"] == "Not provided"

    async def test_honeypot(self, lead_service):
        with pytest.raises(ValidationFailedException):
            await lead_service.submit_internship_application(internship_form(website="x"))

    async def test_about_too_short(self, lead_service):
        with pytest.raises(ValidationFailedException) as exc_info:
            await lead_service.submit_internship_application(internship_form(about="Hi"))

        assert "at least 10 characters" in exc_info.value.message


class TestContactMessages:
    async def test_stored_and_forwarded(self, lead_service, notifier):
        message = await lead_service.submit_contact_message(
            ContactMessageInput(
                name="Lee", email="lee@example.com", message="Do you work with nonprofits?"
            )
        )

        assert isinstance(message, ContactMessage)
        assert notifier.sent[0].subject == "New Contact Message: General Inquiry"

    async def test_message_too_long(self, lead_service):
        with pytest.raises(ValidationFailedException):
            await lead_service.submit_contact_message(
                ContactMessageInput(name="Lee", email="lee@example.com", message="x" * 2001)
            )


class TestDeliveryFailures:
    @pytest.mark.parametrize("failure", [RuntimeError("smtp down"), False])
    async def test_submission_survives_notifier_failure(self, lead_repository, failure):
        notifier = MagicMock()
        if isinstance(failure, Exception):
            notifier.notify.side_effect = failure
        else:
            notifier.notify.return_value = failure
        service = LeadService(lead_repository, notifier)

        lead = await service.submit_prototype_request(prototype_form())

        assert lead_repository.list_recent() == [lead]

    async def test_slow_email_runs_off_the_event_loop(self, lead_repository):
        on_loop = []

        def notify(notice):
            try:
                asyncio.get_running_loop()
                on_loop.append(True)
            except RuntimeError:
                on_loop.append(False)
            return True

        service = LeadService(lead_repository, MagicMock(notify=notify))

        await service.submit_contact_message(
            ContactMessageInput(name="Lee", email="lee@example.com", message="Hello there")
        )

        assert on_loop == [False]


class TestRecentLeads:
    async def test_limit_is_clamped(self, lead_service, lead_repository):
        lead_repository.list_recent = MagicMock(return_value=[])

        await lead_service.recent_leads(limit=0)
        await lead_service.recent_leads(limit=5000)

        assert [c.kwargs["limit"] for c in lead_repository.list_recent.call_args_list] == [1, 200]
