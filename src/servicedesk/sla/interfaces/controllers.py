"""
SLA Controllers (API Routes)
=============================

FastAPI routes for SLA monitoring endpoints.

Controllers are thin - they delegate to application services.
"""

from uuid import UUID

from fastapi import APIRouter, Depends

from servicedesk.config import RoleName
from servicedesk.container import ServiceContainer
from servicedesk.directory.domain import Actor
from servicedesk.shared.api.dependencies import get_container, get_current_actor
from servicedesk.shared.infrastructure.logging import get_logger
from servicedesk.sla.application.dto import (
    SLABreachResponse,
    SLAClockResponse,
    SLAPolicyListResponse,
    SLAPolicyResponse,
    ScanResponse,
    TicketSLAResponse,
)

logger = get_logger(__name__)
router = APIRouter(prefix="/sla", tags=["SLA Monitoring"])


# ========== Example payloads for Swagger ==========

TICKET_SLA_RESPONSE_EXAMPLE = {
    "ticket_id": "123e4567-e89b-12d3-a456-426614174000",
    "ticket_type": "Incident",
    "priority": "high",
    "has_policy": True,
    "response": {
        "target_minutes": 30,
        "deadline": "2024-01-15T10:30:00Z",
        "state": "met",
        "met_at": "2024-01-15T10:12:00Z",
        "remaining_minutes": None
    },
    "resolution": {
        "target_minutes": 240,
        "deadline": "2024-01-15T14:00:00Z",
        "state": "breached",
        "met_at": None,
        "remaining_minutes": -35.0
    },
    "breaches": [
        {
            "id": "0b8f3f4e-3c9a-4d0e-9f0a-6e0f1f3b2c1d",
            "kind": "current_resolution",
            "reference_at": "2024-01-15T10:00:00Z",
            "detected_at": "2024-01-15T14:01:00Z",
            "elapsed_minutes": 241.0,
            "target_minutes": 240,
            "attributed_to": None
        }
    ]
}


@router.get(
    "/policies",
    response_model=SLAPolicyListResponse,
    summary="List active SLA policies",
    description="""
    Policies currently loaded from the SLA configuration file.

    Each policy is keyed by (ticket type, priority). A ticket whose pair has
    no policy is never evaluated.
    """
)
async def list_policies(
    actor: Actor = Depends(get_current_actor),
    container: ServiceContainer = Depends(get_container)
):
    config = container.sla_config.get_config()
    return SLAPolicyListResponse(
        default_priority=config.default_priority,
        notifying_roles=list(config.notifying_roles),
        policies=[
            SLAPolicyResponse(
                ticket_type=p.ticket_type,
                priority=p.priority,
                response_minutes=p.response_minutes,
                resolution_minutes=p.resolution_minutes,
            )
            for p in container.sla_service.list_policies()
        ],
    )


@router.get(
    "/tickets/{ticket_id}",
    response_model=TicketSLAResponse,
    summary="Get ticket SLA status",
    description="""
    Deadlines and states of the response and resolution budgets of one
    ticket, with the breaches recorded for it so far.

    **SLA States:**
    - `on_track`: deadline not reached
    - `breached`: deadline passed without the budget being met
    - `met`: first response / resolution happened in time
    """,
    responses={
        200: {
            "description": "Ticket SLA information",
            "content": {"application/json": {"example": TICKET_SLA_RESPONSE_EXAMPLE}}
        },
        404: {"description": "Ticket not found"}
    }
)
async def get_ticket_sla(
    ticket_id: UUID,
    actor: Actor = Depends(get_current_actor),
    container: ServiceContainer = Depends(get_container)
):
    ticket = await container.ticket_service.get_ticket(actor, ticket_id)
    sla_status = await container.sla_service.ticket_status(ticket)

    def clock(c):
        if c is None:
            return None
        return SLAClockResponse(
            target_minutes=c.target_minutes,
            deadline=c.deadline,
            state=c.state.value,
            met_at=c.met_at,
            remaining_minutes=c.remaining_minutes,
        )

    return TicketSLAResponse(
        ticket_id=sla_status.ticket_id,
        ticket_type=sla_status.ticket_type,
        priority=sla_status.priority,
        has_policy=sla_status.has_policy,
        response=clock(sla_status.response),
        resolution=clock(sla_status.resolution),
        breaches=[SLABreachResponse.model_validate(b, from_attributes=True) for b in sla_status.breaches],
    )


@router.post(
    "/scan",
    response_model=ScanResponse,
    summary="Run an SLA scan now",
    description="Managers only. Evaluates every open ticket, the same job the scheduler runs."
)
async def trigger_scan(
    actor: Actor = Depends(get_current_actor),
    container: ServiceContainer = Depends(get_container)
):
    container.policy.require_role(actor, RoleName.MANAGER, message="Only managers can trigger SLA scans")
    recorded = await container.sla_evaluator.scan_open_tickets()
    logger.info("Manual SLA scan", extra={"user_id": str(actor.user_id), "breaches": recorded})
    return ScanResponse(message="SLA scan completed", breaches_recorded=recorded)


# Export router for inclusion in main app
sla_router = router
