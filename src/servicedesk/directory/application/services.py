"""
Directory Application Services
==============================

Authentication, user administration and project management.

Every operation takes an explicit Actor and evaluates the AccessPolicy
against it; services never read the caller from ambient state.
"""

from abc import ABC, abstractmethod
from typing import Awaitable, Callable, List, Optional, Tuple
from uuid import UUID, uuid4

from servicedesk.config import Permission, RoleName
from servicedesk.core import (
    AuthenticationException,
    ConflictException,
    ResourceNotFoundException,
    ValidationException,
)
from servicedesk.directory.application.dto import (
    ProfileUpdateRequest,
    ProjectCreateRequest,
    ProjectUpdateRequest,
    TicketTypeCreateRequest,
    UserCreateRequest,
    UserUpdateRequest,
)
from servicedesk.directory.domain import AccessPolicy, Actor, Project, Role, TicketType, User
from servicedesk.history.application.services import IEventRecorder
from servicedesk.shared.infrastructure.logging import get_logger
from servicedesk.shared.infrastructure.security import (
    create_access_token,
    hash_password,
    verify_password,
)

logger = get_logger(__name__)

ProjectPurger = Callable[[UUID], Awaitable[None]]


# ========== Repository Interfaces ==========

class IRoleRepository(ABC):
    """Interface for role data access."""

    @abstractmethod
    async def get_by_id(self, role_id: UUID) -> Optional[Role]:
        """Get role by ID."""

    @abstractmethod
    async def get_by_name(self, name: str) -> Optional[Role]:
        """Get role by name."""

    @abstractmethod
    async def list(self) -> List[Role]:
        """List all roles."""

    @abstractmethod
    async def save(self, role: Role) -> Role:
        """Insert or update a role."""


class IUserRepository(ABC):
    """Interface for user data access."""

    @abstractmethod
    async def get_by_id(self, user_id: UUID) -> Optional[User]:
        """Get user by ID."""

    @abstractmethod
    async def get_by_login(self, login: str) -> Optional[User]:
        """Get user by login."""

    @abstractmethod
    async def list(self) -> List[User]:
        """List all users."""

    @abstractmethod
    async def create(self, user: User) -> User:
        """Persist a new user."""

    @abstractmethod
    async def update(self, user: User) -> User:
        """Persist changes to an existing user."""

    @abstractmethod
    async def delete(self, user_id: UUID) -> None:
        """Delete a user."""

    @abstractmethod
    async def list_ids_by_roles(self, role_names: List[str]) -> List[UUID]:
        """IDs of every user holding one of the given roles."""


class IProjectRepository(ABC):
    """Interface for project and ticket type data access."""

    @abstractmethod
    async def get_by_id(self, project_id: UUID) -> Optional[Project]:
        """Get project by ID."""

    @abstractmethod
    async def get_by_key(self, key: str) -> Optional[Project]:
        """Get project by its unique key."""

    @abstractmethod
    async def list(self) -> List[Project]:
        """List all projects."""

    @abstractmethod
    async def create(self, project: Project) -> Project:
        """Persist a new project with its role and type links."""

    @abstractmethod
    async def update(self, project: Project) -> Project:
        """Persist project fields and resynchronise its links."""

    @abstractmethod
    async def delete(self, project_id: UUID) -> None:
        """Delete a project row."""

    @abstractmethod
    async def is_manager_of_any(self, user_id: UUID) -> bool:
        """Whether the user manages at least one project."""

    @abstractmethod
    async def get_ticket_type(self, ticket_type_id: UUID) -> Optional[TicketType]:
        """Get ticket type by ID."""

    @abstractmethod
    async def list_ticket_types(self, ticket_type_ids: List[UUID]) -> List[TicketType]:
        """Load the given ticket types."""

    @abstractmethod
    async def create_ticket_type(self, ticket_type: TicketType) -> TicketType:
        """Persist a new ticket type."""

    @abstractmethod
    async def delete_ticket_type(self, ticket_type_id: UUID) -> None:
        """Delete a ticket type and its project links."""


# ========== Application Services ==========

class DirectoryService:
    """
    Authentication and user administration.

    Token issuance is stateless; logout is an audit event only.
    """

    def __init__(
        self,
        user_repository: IUserRepository,
        role_repository: IRoleRepository,
        project_repository: IProjectRepository,
        events: IEventRecorder,
        policy: Optional[AccessPolicy] = None
    ):
        self._users = user_repository
        self._roles = role_repository
        self._projects = project_repository
        self._events = events
        self._policy = policy or AccessPolicy()

    # ---------- Authentication ----------

    async def authenticate(self, login: str, password: str) -> Tuple[User, str]:
        """
        Verify credentials and issue an access token.

        Raises:
            AuthenticationException: Unknown login or wrong password
        """
        user = await self._users.get_by_login(login)
        if user is None or not verify_password(password, user.password_hash):
            logger.warning("Failed login attempt", extra={"login": login})
            raise AuthenticationException("Invalid login credentials")

        token = create_access_token(user.id, user.role_name)
        await self._events.record("LOGIN", user.id, {"login": user.login})
        logger.info("User logged in", extra={"user_id": str(user.id)})
        return user, token

    async def logout(self, actor: Actor) -> None:
        await self._events.record("LOGOUT", actor.user_id)

    async def load_actor(self, user_id: UUID) -> Actor:
        """
        Build the Actor for a token subject from a fresh directory read.

        Raises:
            AuthenticationException: The user no longer exists
        """
        user = await self._users.get_by_id(user_id)
        if user is None:
            raise AuthenticationException("User does not exist")

        role = await self._roles.get_by_id(user.role_id) if user.role_id else None
        return Actor(
            user_id=user.id,
            role_id=role.id if role else None,
            role_name=role.name if role else None,
            permissions=role.permissions if role else frozenset(),
        )

    # ---------- Roles ----------

    async def list_roles(self) -> List[Role]:
        return await self._roles.list()

    # ---------- Users ----------

    async def list_users(self, actor: Actor) -> List[User]:
        """Managers and project managers may browse the user list."""
        if not actor.has_role(RoleName.MANAGER.value):
            if not await self._projects.is_manager_of_any(actor.user_id):
                self._policy.require_role(
                    actor, RoleName.MANAGER,
                    message="Only managers can list users"
                )
        return await self._users.list()

    async def get_user(self, actor: Actor, user_id: UUID) -> User:
        if actor.user_id != user_id:
            self._policy.require(actor, Permission.MANAGE_USERS)
        user = await self._users.get_by_id(user_id)
        if user is None:
            raise ResourceNotFoundException("User", str(user_id))
        return user

    async def create_user(self, actor: Actor, request: UserCreateRequest) -> User:
        self._policy.require_role(actor, RoleName.MANAGER, message="Only managers can create users")

        if await self._users.get_by_login(request.login):
            raise ConflictException("Login already taken", {"login": request.login})
        role = await self._require_role_exists(request.role_id)

        user = await self._users.create(User(
            id=uuid4(),
            login=request.login,
            password_hash=hash_password(request.password),
            role_id=role.id,
            role_name=role.name,
        ))
        await self._events.record("CREATE_USER", actor.user_id, {"user_id": str(user.id), "login": user.login})
        logger.info("User created", extra={"user_id": str(user.id), "role": role.name})
        return user

    async def update_user(self, actor: Actor, user_id: UUID, request: UserUpdateRequest) -> User:
        self._policy.require_role(actor, RoleName.MANAGER, message="Only managers can edit users")

        user = await self._users.get_by_id(user_id)
        if user is None:
            raise ResourceNotFoundException("User", str(user_id))

        if request.login and request.login != user.login:
            if await self._users.get_by_login(request.login):
                raise ConflictException("Login already taken", {"login": request.login})
            user.login = request.login
        if request.password:
            user.password_hash = hash_password(request.password)
        if request.role_id:
            role = await self._require_role_exists(request.role_id)
            user.role_id = role.id
            user.role_name = role.name

        user = await self._users.update(user)
        await self._events.record("UPDATE_USER", actor.user_id, {"user_id": str(user.id)})
        return user

    async def delete_user(self, actor: Actor, user_id: UUID) -> None:
        self._policy.require_role(actor, RoleName.MANAGER, message="Only managers can delete users")
        if actor.user_id == user_id:
            raise ValidationException("You cannot delete your own account")

        user = await self._users.get_by_id(user_id)
        if user is None:
            raise ResourceNotFoundException("User", str(user_id))

        await self._users.delete(user_id)
        await self._events.record("DELETE_USER", actor.user_id, {"user_id": str(user_id), "login": user.login})

    async def update_profile(self, actor: Actor, request: ProfileUpdateRequest) -> User:
        """
        Change one's own login and/or password.

        A new password requires the current one.
        """
        user = await self._users.get_by_id(actor.user_id)
        if user is None:
            raise ResourceNotFoundException("User", str(actor.user_id))

        if request.login and request.login != user.login:
            if await self._users.get_by_login(request.login):
                raise ConflictException("Login already taken", {"login": request.login})
            user.login = request.login

        if request.new_password:
            if not request.current_password:
                raise ValidationException("Current password is required to set a new one")
            if not verify_password(request.current_password, user.password_hash):
                raise AuthenticationException("Current password is incorrect")
            user.password_hash = hash_password(request.new_password)

        user = await self._users.update(user)
        await self._events.record("UPDATE_PROFILE", actor.user_id)
        return user

    async def _require_role_exists(self, role_id: UUID) -> Role:
        role = await self._roles.get_by_id(role_id)
        if role is None:
            raise ValidationException("Role not found", {"role_id": str(role_id)})
        return role


class ProjectService:
    """
    Project and ticket type management.

    Deleting a project delegates removal of dependent tickets and
    subscriptions to the purger supplied by the composition root.
    """

    def __init__(
        self,
        project_repository: IProjectRepository,
        user_repository: IUserRepository,
        role_repository: IRoleRepository,
        events: IEventRecorder,
        purger: Optional[ProjectPurger] = None,
        policy: Optional[AccessPolicy] = None
    ):
        self._projects = project_repository
        self._users = user_repository
        self._roles = role_repository
        self._events = events
        self._purger = purger
        self._policy = policy or AccessPolicy()

    async def get_project(self, actor: Actor, project_id: UUID) -> Project:
        """Load a project the actor may see."""
        project = await self._projects.get_by_id(project_id)
        if project is None:
            raise ResourceNotFoundException("Project", str(project_id))
        self._policy.require_project_access(actor, project)
        return project

    async def list_projects(self, actor: Actor) -> List[Project]:
        projects = await self._projects.list()
        return [p for p in projects if self._policy.can_access_project(actor, p)]

    async def create_project(self, actor: Actor, request: ProjectCreateRequest) -> Project:
        self._policy.require(actor, Permission.MANAGE_PROJECTS)

        if await self._projects.get_by_key(request.key):
            raise ConflictException("Project key already exists", {"key": request.key})
        await self._validate_roles(request.visible_to_role_ids)
        await self._validate_manager(request.manager_id)

        project = await self._projects.create(Project(
            id=uuid4(),
            name=request.name,
            key=request.key,
            manager_id=request.manager_id,
            visible_to_role_ids=list(dict.fromkeys(request.visible_to_role_ids)),
        ))
        await self._events.record("CREATE_PROJECT", actor.user_id, {"project_id": str(project.id), "key": project.key})
        logger.info("Project created", extra={"project_id": str(project.id), "key": project.key})
        return project

    async def update_project(self, actor: Actor, project_id: UUID, request: ProjectUpdateRequest) -> Project:
        """Managers and the project's manager may edit; only Managers reassign roles or manager."""
        project = await self._projects.get_by_id(project_id)
        if project is None:
            raise ResourceNotFoundException("Project", str(project_id))

        is_manager = actor.has_role(RoleName.MANAGER.value)
        if not is_manager and not self._policy.is_project_manager(actor, project):
            self._policy.require(actor, Permission.MANAGE_PROJECTS, project)

        if request.key != project.key and await self._projects.get_by_key(request.key):
            raise ConflictException("Project key already exists", {"key": request.key})

        project.name = request.name
        project.key = request.key
        if is_manager:
            if request.visible_to_role_ids is not None:
                await self._validate_roles(request.visible_to_role_ids)
                project.visible_to_role_ids = list(dict.fromkeys(request.visible_to_role_ids))
            if request.manager_id is not None:
                await self._validate_manager(request.manager_id)
                project.manager_id = request.manager_id

        project = await self._projects.update(project)
        await self._events.record("UPDATE_PROJECT", actor.user_id, {"project_id": str(project.id)})
        return project

    async def delete_project(self, actor: Actor, project_id: UUID) -> None:
        """Delete a project together with its tickets and subscriptions."""
        self._policy.require_role(actor, RoleName.MANAGER, message="Only managers can delete projects")

        project = await self._projects.get_by_id(project_id)
        if project is None:
            raise ResourceNotFoundException("Project", str(project_id))

        if self._purger is not None:
            await self._purger(project_id)
        await self._projects.delete(project_id)
        await self._events.record("DELETE_PROJECT", actor.user_id, {"project_id": str(project_id), "key": project.key})
        logger.info("Project deleted", extra={"project_id": str(project_id)})

    # ---------- Ticket types ----------

    async def list_ticket_types(self, actor: Actor, project_id: UUID) -> List[TicketType]:
        project = await self.get_project(actor, project_id)
        return await self._projects.list_ticket_types(project.ticket_type_ids)

    async def add_ticket_type(
        self,
        actor: Actor,
        project_id: UUID,
        request: TicketTypeCreateRequest
    ) -> TicketType:
        project = await self._projects.get_by_id(project_id)
        if project is None:
            raise ResourceNotFoundException("Project", str(project_id))
        self._policy.require(actor, Permission.MANAGE_TICKET_TYPES, project)

        ticket_type = await self._projects.create_ticket_type(TicketType(
            id=uuid4(),
            name=request.name,
            description=request.description,
        ))
        project.ticket_type_ids.append(ticket_type.id)
        await self._projects.update(project)
        await self._events.record(
            "ADD_TICKET_TYPE", actor.user_id,
            {"project_id": str(project_id), "ticket_type_id": str(ticket_type.id), "name": ticket_type.name}
        )
        return ticket_type

    async def remove_ticket_type(self, actor: Actor, project_id: UUID, ticket_type_id: UUID) -> None:
        project = await self._projects.get_by_id(project_id)
        if project is None:
            raise ResourceNotFoundException("Project", str(project_id))
        self._policy.require(actor, Permission.MANAGE_TICKET_TYPES, project)

        if not project.allows_ticket_type(ticket_type_id):
            raise ResourceNotFoundException("TicketType", str(ticket_type_id))

        await self._projects.delete_ticket_type(ticket_type_id)
        await self._events.record(
            "REMOVE_TICKET_TYPE", actor.user_id,
            {"project_id": str(project_id), "ticket_type_id": str(ticket_type_id)}
        )

    async def _validate_roles(self, role_ids: List[UUID]) -> None:
        for role_id in role_ids:
            if await self._roles.get_by_id(role_id) is None:
                raise ValidationException("Role not found", {"role_id": str(role_id)})

    async def _validate_manager(self, manager_id: UUID) -> None:
        if await self._users.get_by_id(manager_id) is None:
            raise ValidationException("Manager user not found", {"manager_id": str(manager_id)})
