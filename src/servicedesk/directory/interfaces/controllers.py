"""
Directory Controllers (API Routes)
==================================

Controllers are thin - they delegate to application services.
"""

from typing import List
from uuid import UUID

from fastapi import APIRouter, Depends, status

from servicedesk.container import ServiceContainer
from servicedesk.directory.application.dto import (
    LoginRequest,
    MessageResponse,
    ProfileUpdateRequest,
    ProjectCreateRequest,
    ProjectResponse,
    ProjectUpdateRequest,
    RoleResponse,
    TicketTypeCreateRequest,
    TicketTypeResponse,
    TokenResponse,
    UserCreateRequest,
    UserResponse,
    UserUpdateRequest,
)
from servicedesk.directory.domain import Actor, Project, Role, User
from servicedesk.shared.api.dependencies import get_container, get_current_actor

auth_router = APIRouter(prefix="/auth", tags=["Authentication"])
router = APIRouter(tags=["Directory"])


# ========== Mappers ==========

def to_user_response(user: User) -> UserResponse:
    return UserResponse(
        id=user.id,
        login=user.login,
        role_id=user.role_id,
        role_name=user.role_name,
        created_at=user.created_at,
    )


def to_role_response(role: Role) -> RoleResponse:
    return RoleResponse(id=role.id, name=role.name, permissions=sorted(role.permissions))


async def to_project_response(project: Project, container: ServiceContainer) -> ProjectResponse:
    ticket_types = await container.projects.list_ticket_types(project.ticket_type_ids)
    return ProjectResponse(
        id=project.id,
        name=project.name,
        key=project.key,
        manager_id=project.manager_id,
        visible_to_role_ids=project.visible_to_role_ids,
        ticket_types=[TicketTypeResponse(id=t.id, name=t.name, description=t.description) for t in ticket_types],
    )


# ========== Authentication ==========

@auth_router.post(
    "/login",
    response_model=TokenResponse,
    summary="Exchange credentials for a bearer token",
    responses={401: {"description": "Invalid login credentials"}}
)
async def login(
    request: LoginRequest,
    container: ServiceContainer = Depends(get_container)
):
    _, token = await container.directory_service.authenticate(request.login, request.password)
    return TokenResponse(access_token=token)


@auth_router.post("/logout", response_model=MessageResponse, summary="Log out (audit only)")
async def logout(
    actor: Actor = Depends(get_current_actor),
    container: ServiceContainer = Depends(get_container)
):
    await container.directory_service.logout(actor)
    return MessageResponse(message="Logged out")


@auth_router.get("/me", response_model=UserResponse, summary="The authenticated user")
async def me(
    actor: Actor = Depends(get_current_actor),
    container: ServiceContainer = Depends(get_container)
):
    user = await container.directory_service.get_user(actor, actor.user_id)
    return to_user_response(user)


# ========== Profile ==========

@router.put("/profile", response_model=UserResponse, summary="Update own login or password")
async def update_profile(
    request: ProfileUpdateRequest,
    actor: Actor = Depends(get_current_actor),
    container: ServiceContainer = Depends(get_container)
):
    user = await container.directory_service.update_profile(actor, request)
    return to_user_response(user)


# ========== Roles ==========

@router.get("/roles", response_model=List[RoleResponse], summary="List roles")
async def list_roles(
    actor: Actor = Depends(get_current_actor),
    container: ServiceContainer = Depends(get_container)
):
    return [to_role_response(r) for r in await container.directory_service.list_roles()]


# ========== Users ==========

@router.get(
    "/users",
    response_model=List[UserResponse],
    summary="List users",
    description="Available to Managers and to the manager of any project."
)
async def list_users(
    actor: Actor = Depends(get_current_actor),
    container: ServiceContainer = Depends(get_container)
):
    return [to_user_response(u) for u in await container.directory_service.list_users(actor)]


@router.post("/users", response_model=UserResponse, status_code=status.HTTP_201_CREATED, summary="Create a user")
async def create_user(
    request: UserCreateRequest,
    actor: Actor = Depends(get_current_actor),
    container: ServiceContainer = Depends(get_container)
):
    return to_user_response(await container.directory_service.create_user(actor, request))


@router.get("/users/{user_id}", response_model=UserResponse, summary="Get a user")
async def get_user(
    user_id: UUID,
    actor: Actor = Depends(get_current_actor),
    container: ServiceContainer = Depends(get_container)
):
    return to_user_response(await container.directory_service.get_user(actor, user_id))


@router.put("/users/{user_id}", response_model=UserResponse, summary="Update a user")
async def update_user(
    user_id: UUID,
    request: UserUpdateRequest,
    actor: Actor = Depends(get_current_actor),
    container: ServiceContainer = Depends(get_container)
):
    return to_user_response(await container.directory_service.update_user(actor, user_id, request))


@router.delete("/users/{user_id}", response_model=MessageResponse, summary="Delete a user")
async def delete_user(
    user_id: UUID,
    actor: Actor = Depends(get_current_actor),
    container: ServiceContainer = Depends(get_container)
):
    await container.directory_service.delete_user(actor, user_id)
    return MessageResponse(message="User deleted")


# ========== Projects ==========

@router.get("/projects", response_model=List[ProjectResponse], summary="List visible projects")
async def list_projects(
    actor: Actor = Depends(get_current_actor),
    container: ServiceContainer = Depends(get_container)
):
    projects = await container.project_service.list_projects(actor)
    return [await to_project_response(p, container) for p in projects]


@router.post(
    "/projects",
    response_model=ProjectResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Create a project",
    responses={409: {"description": "Project key already exists"}}
)
async def create_project(
    request: ProjectCreateRequest,
    actor: Actor = Depends(get_current_actor),
    container: ServiceContainer = Depends(get_container)
):
    project = await container.project_service.create_project(actor, request)
    return await to_project_response(project, container)


@router.get("/projects/{project_id}", response_model=ProjectResponse, summary="Get a project")
async def get_project(
    project_id: UUID,
    actor: Actor = Depends(get_current_actor),
    container: ServiceContainer = Depends(get_container)
):
    project = await container.project_service.get_project(actor, project_id)
    return await to_project_response(project, container)


@router.put("/projects/{project_id}", response_model=ProjectResponse, summary="Update a project")
async def update_project(
    project_id: UUID,
    request: ProjectUpdateRequest,
    actor: Actor = Depends(get_current_actor),
    container: ServiceContainer = Depends(get_container)
):
    project = await container.project_service.update_project(actor, project_id, request)
    return await to_project_response(project, container)


@router.delete(
    "/projects/{project_id}",
    response_model=MessageResponse,
    summary="Delete a project",
    description="Removes the project's tickets, their history, posts, feedback, breaches and subscriptions."
)
async def delete_project(
    project_id: UUID,
    actor: Actor = Depends(get_current_actor),
    container: ServiceContainer = Depends(get_container)
):
    await container.project_service.delete_project(actor, project_id)
    return MessageResponse(message="Project deleted")


# ========== Ticket types ==========

@router.get(
    "/projects/{project_id}/ticket-types",
    response_model=List[TicketTypeResponse],
    summary="List a project's ticket types"
)
async def list_ticket_types(
    project_id: UUID,
    actor: Actor = Depends(get_current_actor),
    container: ServiceContainer = Depends(get_container)
):
    types = await container.project_service.list_ticket_types(actor, project_id)
    return [TicketTypeResponse(id=t.id, name=t.name, description=t.description) for t in types]


@router.post(
    "/projects/{project_id}/ticket-types",
    response_model=TicketTypeResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Add a ticket type to a project"
)
async def add_ticket_type(
    project_id: UUID,
    request: TicketTypeCreateRequest,
    actor: Actor = Depends(get_current_actor),
    container: ServiceContainer = Depends(get_container)
):
    t = await container.project_service.add_ticket_type(actor, project_id, request)
    return TicketTypeResponse(id=t.id, name=t.name, description=t.description)


@router.delete(
    "/projects/{project_id}/ticket-types/{ticket_type_id}",
    response_model=MessageResponse,
    summary="Remove a ticket type from a project"
)
async def remove_ticket_type(
    project_id: UUID,
    ticket_type_id: UUID,
    actor: Actor = Depends(get_current_actor),
    container: ServiceContainer = Depends(get_container)
):
    await container.project_service.remove_ticket_type(actor, project_id, ticket_type_id)
    return MessageResponse(message="Ticket type removed")


# Export router for inclusion in main app
directory_router = router
