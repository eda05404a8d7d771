"""
Analytics Controllers (API Routes)
==================================
"""

from datetime import datetime
from typing import Optional
from uuid import UUID

from fastapi import APIRouter, Depends, Query

from servicedesk.analytics.application.dto import AnalyticsResponse, ReportResponse, ReportTicket
from servicedesk.container import ServiceContainer
from servicedesk.directory.domain import Actor
from servicedesk.shared.api.dependencies import get_container, get_current_actor

router = APIRouter(tags=["Analytics"])


@router.get(
    "/analytics",
    response_model=AnalyticsResponse,
    summary="Ticket statistics",
    description="Analysts and Managers. Breach counts come from the SLA breach ledger."
)
async def get_analytics(
    actor: Actor = Depends(get_current_actor),
    container: ServiceContainer = Depends(get_container)
):
    return AnalyticsResponse(**await container.analytics_service.overview(actor))


@router.get(
    "/reports",
    response_model=ReportResponse,
    summary="Ticket report for a period",
    description="Tickets created between start_date and end_date, optionally of one ticket type."
)
async def get_report(
    start_date: Optional[datetime] = Query(None, description="Inclusive lower bound on creation time"),
    end_date: Optional[datetime] = Query(None, description="Inclusive upper bound on creation time"),
    type_id: Optional[UUID] = Query(None, description="Only tickets of this type"),
    actor: Actor = Depends(get_current_actor),
    container: ServiceContainer = Depends(get_container)
):
    report = await container.analytics_service.report(actor, start_date, end_date, type_id)
    report["tickets"] = [ReportTicket.model_validate(t, from_attributes=True) for t in report["tickets"]]
    return ReportResponse(**report)


# Export router for inclusion in main app
analytics_router = router
