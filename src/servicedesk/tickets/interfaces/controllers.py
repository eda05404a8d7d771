"""
Ticket Controllers (API Routes)
===============================

FastAPI routes for tickets.

Controllers are thin - they delegate to application services.
"""

from typing import List, Optional
from uuid import UUID

from fastapi import APIRouter, Depends, File, Query, UploadFile, status
from fastapi.responses import FileResponse

from servicedesk.container import ServiceContainer
from servicedesk.core import ResourceNotFoundException
from servicedesk.directory.domain import Actor
from servicedesk.history.application.dto import ChangeHistoryResponse
from servicedesk.shared.api.dependencies import get_container, get_current_actor
from servicedesk.tickets.application.dto import (
    AssignRequest,
    AttachmentResponse,
    FeedbackResponse,
    PostCreateRequest,
    PostResponse,
    ReopenRequest,
    ResolveRequest,
    SatisfactionRequest,
    StatusChangeRequest,
    TicketCreateRequest,
    TicketResponse,
)
from servicedesk.tickets.domain import Ticket

router = APIRouter(tags=["Tickets"])


# ========== Example payloads for Swagger ==========

TICKET_CREATE_EXAMPLE = {
    "project_id": "3fa85f64-5717-4562-b3fc-2c963f66afa6",
    "type_id": "9b2e1c7a-4d0f-4a55-9a1c-2f7b8c1d0e11",
    "title": "VPN drops every few minutes",
    "description": "Since this morning the VPN client disconnects roughly every five minutes.",
    "priority": "high"
}


def to_ticket_response(ticket: Ticket) -> TicketResponse:
    return TicketResponse.model_validate(ticket, from_attributes=True)


# ========== Tickets ==========

@router.post(
    "/tickets",
    response_model=TicketResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Create a ticket",
    description="""
    File a ticket against a project visible to the caller.

    The ticket type must be one of the project's ticket types. The project
    manager and the project's subscribers are notified.
    """,
    openapi_extra={"requestBody": {"content": {"application/json": {"example": TICKET_CREATE_EXAMPLE}}}}
)
async def create_ticket(
    request: TicketCreateRequest,
    actor: Actor = Depends(get_current_actor),
    container: ServiceContainer = Depends(get_container)
):
    return to_ticket_response(await container.ticket_service.create_ticket(actor, request))


@router.get("/tickets", response_model=List[TicketResponse], summary="List visible tickets")
async def list_tickets(
    project_id: Optional[UUID] = Query(None, description="Only tickets of this project"),
    ticket_status: Optional[str] = Query(None, alias="status", description="Filter by status"),
    actor: Actor = Depends(get_current_actor),
    container: ServiceContainer = Depends(get_container)
):
    tickets = await container.ticket_service.list_tickets(actor, project_id=project_id, status=ticket_status)
    return [to_ticket_response(t) for t in tickets]


@router.get(
    "/projects/{project_id}/tickets",
    response_model=List[TicketResponse],
    summary="List a project's tickets"
)
async def list_project_tickets(
    project_id: UUID,
    actor: Actor = Depends(get_current_actor),
    container: ServiceContainer = Depends(get_container)
):
    tickets = await container.ticket_service.list_tickets(actor, project_id=project_id)
    return [to_ticket_response(t) for t in tickets]


@router.get(
    "/tickets/{ticket_id}",
    response_model=TicketResponse,
    summary="Get a ticket",
    responses={404: {"description": "Ticket not found"}}
)
async def get_ticket(
    ticket_id: UUID,
    actor: Actor = Depends(get_current_actor),
    container: ServiceContainer = Depends(get_container)
):
    return to_ticket_response(await container.ticket_service.get_ticket(actor, ticket_id))


@router.put(
    "/tickets/{ticket_id}/status",
    response_model=TicketResponse,
    summary="Change ticket status",
    description="Specialists and Managers only. Accepts new, in_progress, resolved, reopened and closed."
)
async def change_status(
    ticket_id: UUID,
    request: StatusChangeRequest,
    actor: Actor = Depends(get_current_actor),
    container: ServiceContainer = Depends(get_container)
):
    return to_ticket_response(await container.ticket_service.change_status(actor, ticket_id, request.status))


@router.post("/tickets/{ticket_id}/resolve", response_model=TicketResponse, summary="Resolve a ticket")
async def resolve_ticket(
    ticket_id: UUID,
    request: ResolveRequest,
    actor: Actor = Depends(get_current_actor),
    container: ServiceContainer = Depends(get_container)
):
    return to_ticket_response(await container.ticket_service.resolve(actor, ticket_id, request.resolution))


@router.post("/tickets/{ticket_id}/reopen", response_model=TicketResponse, summary="Reopen a resolved ticket")
async def reopen_ticket(
    ticket_id: UUID,
    request: ReopenRequest,
    actor: Actor = Depends(get_current_actor),
    container: ServiceContainer = Depends(get_container)
):
    return to_ticket_response(await container.ticket_service.reopen(actor, ticket_id, request.reason))


@router.post(
    "/tickets/{ticket_id}/satisfaction",
    response_model=TicketResponse,
    summary="Rate a resolved ticket",
    description="Only the ticket's creator may rate it; the rating must be 1 to 5."
)
async def rate_ticket(
    ticket_id: UUID,
    request: SatisfactionRequest,
    actor: Actor = Depends(get_current_actor),
    container: ServiceContainer = Depends(get_container)
):
    ticket = await container.ticket_service.rate(actor, ticket_id, request.rating, request.comment)
    return to_ticket_response(ticket)


@router.post("/tickets/{ticket_id}/assign", response_model=TicketResponse, summary="Assign a ticket")
async def assign_ticket(
    ticket_id: UUID,
    request: AssignRequest,
    actor: Actor = Depends(get_current_actor),
    container: ServiceContainer = Depends(get_container)
):
    return to_ticket_response(await container.ticket_service.assign(actor, ticket_id, request.assignee_id))


# ========== Posts ==========

@router.get("/tickets/{ticket_id}/posts", response_model=List[PostResponse], summary="List comments")
async def list_posts(
    ticket_id: UUID,
    actor: Actor = Depends(get_current_actor),
    container: ServiceContainer = Depends(get_container)
):
    posts = await container.ticket_service.list_posts(actor, ticket_id)
    return [PostResponse.model_validate(p, from_attributes=True) for p in posts]


@router.post(
    "/tickets/{ticket_id}/posts",
    response_model=PostResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Comment on a ticket"
)
async def add_post(
    ticket_id: UUID,
    request: PostCreateRequest,
    actor: Actor = Depends(get_current_actor),
    container: ServiceContainer = Depends(get_container)
):
    post = await container.ticket_service.add_post(actor, ticket_id, request)
    return PostResponse.model_validate(post, from_attributes=True)


# ========== Attachments ==========

@router.post(
    "/tickets/{ticket_id}/attachments",
    response_model=AttachmentResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Upload an attachment"
)
async def upload_attachment(
    ticket_id: UUID,
    file: UploadFile = File(...),
    actor: Actor = Depends(get_current_actor),
    container: ServiceContainer = Depends(get_container)
):
    data = await file.read()
    attachment = await container.ticket_service.add_attachment(
        actor, ticket_id, file.filename or "attachment", file.content_type, data
    )
    return AttachmentResponse.model_validate(attachment, from_attributes=True)


@router.get("/tickets/{ticket_id}/attachments/{filename}", summary="Download an attachment")
async def download_attachment(
    ticket_id: UUID,
    filename: str,
    actor: Actor = Depends(get_current_actor),
    container: ServiceContainer = Depends(get_container)
):
    ticket = await container.ticket_service.get_ticket(actor, ticket_id)
    attachment = next((a for a in ticket.attachments if a.filename == filename), None)
    if attachment is None:
        raise ResourceNotFoundException("Attachment", filename)
    return FileResponse(
        container.storage.path_for(attachment.filename),
        media_type=attachment.content_type or "application/octet-stream",
        filename=attachment.original_name,
    )


# ========== History and feedback ==========

@router.get(
    "/tickets/{ticket_id}/history",
    response_model=List[ChangeHistoryResponse],
    summary="Ticket change history, newest first"
)
async def list_history(
    ticket_id: UUID,
    actor: Actor = Depends(get_current_actor),
    container: ServiceContainer = Depends(get_container)
):
    entries = await container.ticket_service.list_history(actor, ticket_id)
    return [ChangeHistoryResponse.model_validate(e, from_attributes=True) for e in entries]


@router.get("/tickets/{ticket_id}/feedback", response_model=List[FeedbackResponse], summary="Satisfaction feedback")
async def list_feedback(
    ticket_id: UUID,
    actor: Actor = Depends(get_current_actor),
    container: ServiceContainer = Depends(get_container)
):
    feedback = await container.ticket_service.list_feedback(actor, ticket_id)
    return [FeedbackResponse.model_validate(f, from_attributes=True) for f in feedback]


# Export router for inclusion in main app
tickets_router = router
