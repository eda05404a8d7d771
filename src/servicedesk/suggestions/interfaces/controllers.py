"""
Suggestion Controllers (API Routes)
===================================
"""

from typing import List
from uuid import UUID

from fastapi import APIRouter, Depends, status

from servicedesk.container import ServiceContainer
from servicedesk.directory.domain import Actor
from servicedesk.shared.api.dependencies import get_container, get_current_actor
from servicedesk.suggestions.application.dto import (
    SuggestionAssignRequest,
    SuggestionCreateRequest,
    SuggestionResponse,
    SuggestionStatusRequest,
    SuggestionTestRequest,
)

router = APIRouter(prefix="/suggestions", tags=["Suggestions"])


def to_response(suggestion) -> SuggestionResponse:
    return SuggestionResponse.model_validate(suggestion, from_attributes=True)


@router.post("", response_model=SuggestionResponse, status_code=status.HTTP_201_CREATED, summary="Submit a suggestion")
async def create_suggestion(
    request: SuggestionCreateRequest,
    actor: Actor = Depends(get_current_actor),
    container: ServiceContainer = Depends(get_container)
):
    return to_response(await container.suggestion_service.create(actor, request.content))


@router.get("", response_model=List[SuggestionResponse], summary="List suggestions")
async def list_suggestions(
    actor: Actor = Depends(get_current_actor),
    container: ServiceContainer = Depends(get_container)
):
    return [to_response(s) for s in await container.suggestion_service.list_suggestions(actor)]


@router.get("/{suggestion_id}", response_model=SuggestionResponse, summary="Get a suggestion")
async def get_suggestion(
    suggestion_id: UUID,
    actor: Actor = Depends(get_current_actor),
    container: ServiceContainer = Depends(get_container)
):
    return to_response(await container.suggestion_service.get(actor, suggestion_id))


@router.post("/{suggestion_id}/assign", response_model=SuggestionResponse, summary="Assign a developer")
async def assign_developer(
    suggestion_id: UUID,
    request: SuggestionAssignRequest,
    actor: Actor = Depends(get_current_actor),
    container: ServiceContainer = Depends(get_container)
):
    return to_response(await container.suggestion_service.assign(actor, suggestion_id, request.developer_id))


@router.put("/{suggestion_id}/status", response_model=SuggestionResponse, summary="Change suggestion status")
async def change_status(
    suggestion_id: UUID,
    request: SuggestionStatusRequest,
    actor: Actor = Depends(get_current_actor),
    container: ServiceContainer = Depends(get_container)
):
    suggestion = await container.suggestion_service.change_status(
        actor, suggestion_id, request.status, request.additional_info
    )
    return to_response(suggestion)


@router.post("/{suggestion_id}/test", response_model=SuggestionResponse, summary="Record a test result")
async def record_test(
    suggestion_id: UUID,
    request: SuggestionTestRequest,
    actor: Actor = Depends(get_current_actor),
    container: ServiceContainer = Depends(get_container)
):
    suggestion = await container.suggestion_service.record_test(actor, suggestion_id, request.passed, request.notes)
    return to_response(suggestion)


@router.post(
    "/{suggestion_id}/deploy",
    response_model=SuggestionResponse,
    summary="Mark a suggestion deployed",
    responses={400: {"description": "Suggestion is not ready for deployment"}}
)
async def deploy(
    suggestion_id: UUID,
    actor: Actor = Depends(get_current_actor),
    container: ServiceContainer = Depends(get_container)
):
    return to_response(await container.suggestion_service.deploy(actor, suggestion_id))


# Export router for inclusion in main app
suggestions_router = router
