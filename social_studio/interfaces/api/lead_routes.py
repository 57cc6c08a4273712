"""
Lead capture endpoints for the website forms.
"""

from fastapi import APIRouter, Depends, Query

from social_studio.application.requests import (
    ContactMessageInput,
    InternshipApplicationInput,
    PrototypeRequestInput,
)
from social_studio.application.services import LeadService
from social_studio.domain.entities import Lead
from social_studio.infrastructure.auth import RequireRole
from social_studio.interfaces.api.dependencies import get_current_user, get_lead_service
from social_studio.interfaces.api.schemas import (
    ContactMessageBody,
    InternshipApplicationBody,
    LeadResponse,
    LeadSummary,
    PrototypeRequestBody,
)

router = APIRouter(prefix="/api", tags=["Leads"])


@router.post("/prototype-request", response_model=LeadResponse)
async def prototype_request(
    body: PrototypeRequestBody, lead_service: LeadService = Depends(get_lead_service)
) -> LeadResponse:
    lead = await lead_service.submit_prototype_request(PrototypeRequestInput(**body.model_dump()))
    return LeadResponse(message="Prototype request submitted successfully", id=str(lead.id))


@router.post("/internship-application", response_model=LeadResponse)
async def internship_application(
    body: InternshipApplicationBody, lead_service: LeadService = Depends(get_lead_service)
) -> LeadResponse:
    application = await lead_service.submit_internship_application(
        InternshipApplicationInput(**body.model_dump())
    )
    return LeadResponse(message="Application submitted successfully", id=str(application.id))


@router.post("/contact-message", response_model=LeadResponse)
async def contact_message(
    body: ContactMessageBody, lead_service: LeadService = Depends(get_lead_service)
) -> LeadResponse:
    message = await lead_service.submit_contact_message(ContactMessageInput(**body.model_dump()))
    return LeadResponse(message="Message sent successfully", id=str(message.id))


@router.get(
    "/leads",
    response_model=list[LeadSummary],
    dependencies=[Depends(get_current_user), Depends(RequireRole("admin"))],
)
async def recent_leads(
    limit: int = Query(50, ge=1, le=200), lead_service: LeadService = Depends(get_lead_service)
) -> list[LeadSummary]:
    """Newest form submissions. Admins only."""
    return [_summary(lead) for lead in await lead_service.recent_leads(limit)]


def _summary(lead: Lead) -> LeadSummary:
    return LeadSummary(
        id=str(lead.id),
        kind=lead.kind.value,
        name=lead.name,
        email=lead.email,
        submitted_at=lead.submitted_at.isoformat(),
    )
