"""
Request Dependencies
====================

FastAPI dependencies shared by the module routers: the per-request
service container and the authenticated actor.
"""

from typing import Optional

from fastapi import Depends, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.ext.asyncio import AsyncSession

from servicedesk.container import ServiceContainer
from servicedesk.core import AuthenticationException, utcnow
from servicedesk.directory.domain import Actor
from servicedesk.infrastructure.database import get_session
from servicedesk.shared.infrastructure.security import decode_access_token
from servicedesk.sla.application import ISLAConfigProvider

bearer_scheme = HTTPBearer(auto_error=False)


def get_sla_config(request: Request) -> ISLAConfigProvider:
    """SLA configuration manager loaded at startup."""
    return request.app.state.sla_config


def get_clock(request: Request):
    return getattr(request.app.state, "clock", utcnow)


async def get_container(
    request: Request,
    session: AsyncSession = Depends(get_session),
    sla_config: ISLAConfigProvider = Depends(get_sla_config)
) -> ServiceContainer:
    """Service graph bound to this request's session and client address."""
    return ServiceContainer(
        session,
        sla_config,
        clock=get_clock(request),
        client_ip=request.client.host if request.client else None,
        storage=getattr(request.app.state, "storage", None),
    )


async def get_current_actor(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
    container: ServiceContainer = Depends(get_container)
) -> Actor:
    """
    Resolve the bearer token to an Actor.

    Raises:
        AuthenticationException: no token, bad token, or the user is gone
    """
    if credentials is None:
        raise AuthenticationException("Missing bearer token")
    payload = decode_access_token(credentials.credentials)
    return await container.directory_service.load_actor(payload.user_id)
