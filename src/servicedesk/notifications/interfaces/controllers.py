"""
Notification Controllers (API Routes)
=====================================

Inbox and subscription endpoints. Every route acts on the caller's own data.
"""

from typing import List
from uuid import UUID

from fastapi import APIRouter, Depends, Query, status

from servicedesk.container import ServiceContainer
from servicedesk.directory.application.dto import MessageResponse
from servicedesk.directory.domain import Actor
from servicedesk.notifications.application.dto import (
    MarkAllReadResponse,
    NotificationResponse,
    SubscriptionCreateRequest,
    SubscriptionResponse,
)
from servicedesk.shared.api.dependencies import get_container, get_current_actor

router = APIRouter(tags=["Notifications"])


# ========== Notifications ==========

@router.get("/notifications", response_model=List[NotificationResponse], summary="List own notifications")
async def list_notifications(
    unread_only: bool = Query(False, description="Only unread notifications"),
    actor: Actor = Depends(get_current_actor),
    container: ServiceContainer = Depends(get_container)
):
    notifications = await container.notification_service.list_notifications(actor, unread_only=unread_only)
    return [NotificationResponse.model_validate(n, from_attributes=True) for n in notifications]


@router.put(
    "/notifications/read-all",
    response_model=MarkAllReadResponse,
    summary="Mark every own notification read"
)
async def mark_all_read(
    actor: Actor = Depends(get_current_actor),
    container: ServiceContainer = Depends(get_container)
):
    count = await container.notification_service.mark_all_read(actor)
    return MarkAllReadResponse(message="All notifications marked as read", updated=count)


@router.put(
    "/notifications/{notification_id}/read",
    response_model=NotificationResponse,
    summary="Mark one notification read",
    responses={404: {"description": "Not found or addressed to someone else"}}
)
async def mark_read(
    notification_id: UUID,
    actor: Actor = Depends(get_current_actor),
    container: ServiceContainer = Depends(get_container)
):
    notification = await container.notification_service.mark_read(actor, notification_id)
    return NotificationResponse.model_validate(notification, from_attributes=True)


# ========== Subscriptions ==========

@router.get("/subscriptions", response_model=List[SubscriptionResponse], summary="List own subscriptions")
async def list_subscriptions(
    actor: Actor = Depends(get_current_actor),
    container: ServiceContainer = Depends(get_container)
):
    subscriptions = await container.subscription_service.list_subscriptions(actor)
    return [SubscriptionResponse.model_validate(s, from_attributes=True) for s in subscriptions]


@router.post(
    "/subscriptions",
    response_model=SubscriptionResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Subscribe to a project or a ticket",
    responses={409: {"description": "Already subscribed"}}
)
async def subscribe(
    request: SubscriptionCreateRequest,
    actor: Actor = Depends(get_current_actor),
    container: ServiceContainer = Depends(get_container)
):
    subscription = await container.subscription_service.subscribe(
        actor, project_id=request.project_id, ticket_id=request.ticket_id
    )
    return SubscriptionResponse.model_validate(subscription, from_attributes=True)


@router.delete("/subscriptions/{subscription_id}", response_model=MessageResponse, summary="Unsubscribe")
async def unsubscribe(
    subscription_id: UUID,
    actor: Actor = Depends(get_current_actor),
    container: ServiceContainer = Depends(get_container)
):
    await container.subscription_service.unsubscribe(actor, subscription_id)
    return MessageResponse(message="Unsubscribed")


# Export router for inclusion in main app
notifications_router = router
