"""
Event Log Controllers (API Routes)
==================================

Per-ticket history is served by the tickets router; this router exposes
the system-wide event log to Managers.
"""

from typing import List, Optional

from fastapi import APIRouter, Depends, Query

from servicedesk.container import ServiceContainer
from servicedesk.directory.domain import Actor
from servicedesk.history.application.dto import EventLogResponse
from servicedesk.shared.api.dependencies import get_container, get_current_actor

router = APIRouter(prefix="/event-log", tags=["Event Log"])


@router.get("", response_model=List[EventLogResponse], summary="Browse the event log (Managers)")
async def list_events(
    action: Optional[str] = Query(None, description="Filter by action, e.g. CREATE_TICKET"),
    limit: int = Query(100, ge=1, le=1000, description="Results per page"),
    offset: int = Query(0, ge=0, description="Page offset"),
    actor: Actor = Depends(get_current_actor),
    container: ServiceContainer = Depends(get_container)
):
    entries = await container.event_log.list_events(actor, limit=limit, offset=offset, action=action)
    return [EventLogResponse.model_validate(e, from_attributes=True) for e in entries]


# Export router for inclusion in main app
event_log_router = router
