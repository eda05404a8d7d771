"""
Directory Infrastructure Repositories
=====================================

SQLAlchemy implementations of the directory repository interfaces.

Models never leave this module: every method returns domain entities.
"""

from typing import Dict, List, Optional
from uuid import UUID

from sqlalchemy import delete, insert, select
from sqlalchemy.ext.asyncio import AsyncSession

from servicedesk.core import RepositoryException, ensure_utc
from servicedesk.directory.application.services import (
    IProjectRepository,
    IRoleRepository,
    IUserRepository,
)
from servicedesk.directory.domain import Project, Role, TicketType, User
from servicedesk.directory.infrastructure.models import (
    ProjectModel,
    RoleModel,
    TicketTypeModel,
    UserModel,
    project_ticket_types,
    project_visible_roles,
)


class SQLAlchemyRoleRepository(IRoleRepository):
    """Role persistence."""

    def __init__(self, session: AsyncSession):
        self._session = session

    async def get_by_id(self, role_id: UUID) -> Optional[Role]:
        model = await self._session.get(RoleModel, role_id)
        return self._to_entity(model) if model else None

    async def get_by_name(self, name: str) -> Optional[Role]:
        result = await self._session.execute(select(RoleModel).where(RoleModel.name == name))
        model = result.scalar_one_or_none()
        return self._to_entity(model) if model else None

    async def list(self) -> List[Role]:
        result = await self._session.execute(select(RoleModel).order_by(RoleModel.name))
        return [self._to_entity(m) for m in result.scalars().all()]

    async def save(self, role: Role) -> Role:
        model = await self._session.get(RoleModel, role.id)
        if model is None:
            model = RoleModel(id=role.id, name=role.name)
            self._session.add(model)
        model.name = role.name
        model.permissions = sorted(role.permissions)
        await self._session.flush()
        return self._to_entity(model)

    @staticmethod
    def _to_entity(model: RoleModel) -> Role:
        return Role(id=model.id, name=model.name, permissions=frozenset(model.permissions or []))


class SQLAlchemyUserRepository(IUserRepository):
    """User persistence. Role names are joined in for convenience."""

    def __init__(self, session: AsyncSession):
        self._session = session

    def _select(self):
        return select(UserModel, RoleModel.name).outerjoin(RoleModel, UserModel.role_id == RoleModel.id)

    async def get_by_id(self, user_id: UUID) -> Optional[User]:
        result = await self._session.execute(self._select().where(UserModel.id == user_id))
        row = result.one_or_none()
        return self._to_entity(*row) if row else None

    async def get_by_login(self, login: str) -> Optional[User]:
        result = await self._session.execute(self._select().where(UserModel.login == login))
        row = result.one_or_none()
        return self._to_entity(*row) if row else None

    async def list(self) -> List[User]:
        result = await self._session.execute(self._select().order_by(UserModel.login))
        return [self._to_entity(*row) for row in result.all()]

    async def create(self, user: User) -> User:
        model = UserModel(
            id=user.id,
            login=user.login,
            password_hash=user.password_hash,
            role_id=user.role_id,
        )
        self._session.add(model)
        await self._session.flush()
        return self._to_entity(model, user.role_name)

    async def update(self, user: User) -> User:
        model = await self._session.get(UserModel, user.id)
        if model is None:
            raise RepositoryException(f"User {user.id} not found")

        model.login = user.login
        model.password_hash = user.password_hash
        model.role_id = user.role_id
        await self._session.flush()
        return self._to_entity(model, user.role_name)

    async def delete(self, user_id: UUID) -> None:
        await self._session.execute(
            ProjectModel.__table__.update()
            .where(ProjectModel.manager_id == user_id)
            .values(manager_id=None)
        )
        await self._session.execute(delete(UserModel).where(UserModel.id == user_id))
        await self._session.flush()

    async def list_ids_by_roles(self, role_names: List[str]) -> List[UUID]:
        if not role_names:
            return []
        stmt = (
            select(UserModel.id)
            .join(RoleModel, UserModel.role_id == RoleModel.id)
            .where(RoleModel.name.in_(role_names))
            .order_by(UserModel.login)
        )
        result = await self._session.execute(stmt)
        return list(result.scalars().all())

    @staticmethod
    def _to_entity(model: UserModel, role_name: Optional[str]) -> User:
        return User(
            id=model.id,
            login=model.login,
            password_hash=model.password_hash,
            role_id=model.role_id,
            role_name=role_name,
            created_at=ensure_utc(model.created_at),
        )


class SQLAlchemyProjectRepository(IProjectRepository):
    """
    Project and ticket type persistence.

    Role visibility and offered ticket types live in association tables
    and are loaded alongside each project.
    """

    def __init__(self, session: AsyncSession):
        self._session = session

    async def get_by_id(self, project_id: UUID) -> Optional[Project]:
        model = await self._session.get(ProjectModel, project_id)
        if model is None:
            return None
        return (await self._to_entities([model]))[0]

    async def get_by_key(self, key: str) -> Optional[Project]:
        result = await self._session.execute(select(ProjectModel).where(ProjectModel.key == key))
        model = result.scalar_one_or_none()
        if model is None:
            return None
        return (await self._to_entities([model]))[0]

    async def list(self) -> List[Project]:
        result = await self._session.execute(select(ProjectModel).order_by(ProjectModel.name))
        return await self._to_entities(list(result.scalars().all()))

    async def create(self, project: Project) -> Project:
        model = ProjectModel(
            id=project.id,
            name=project.name,
            key=project.key,
            manager_id=project.manager_id,
        )
        self._session.add(model)
        await self._session.flush()
        await self._sync_links(project)
        return project

    async def update(self, project: Project) -> Project:
        model = await self._session.get(ProjectModel, project.id)
        if model is None:
            raise RepositoryException(f"Project {project.id} not found")

        model.name = project.name
        model.key = project.key
        model.manager_id = project.manager_id
        await self._session.flush()
        await self._sync_links(project)
        return project

    async def delete(self, project_id: UUID) -> None:
        await self._session.execute(
            delete(project_ticket_types).where(project_ticket_types.c.project_id == project_id)
        )
        await self._session.execute(
            delete(project_visible_roles).where(project_visible_roles.c.project_id == project_id)
        )
        await self._session.execute(delete(ProjectModel).where(ProjectModel.id == project_id))
        await self._session.flush()

    async def is_manager_of_any(self, user_id: UUID) -> bool:
        stmt = select(ProjectModel.id).where(ProjectModel.manager_id == user_id).limit(1)
        result = await self._session.execute(stmt)
        return result.scalar_one_or_none() is not None

    async def get_ticket_type(self, ticket_type_id: UUID) -> Optional[TicketType]:
        model = await self._session.get(TicketTypeModel, ticket_type_id)
        return self._type_to_entity(model) if model else None

    async def list_ticket_types(self, ticket_type_ids: List[UUID]) -> List[TicketType]:
        if not ticket_type_ids:
            return []
        stmt = (
            select(TicketTypeModel)
            .where(TicketTypeModel.id.in_(ticket_type_ids))
            .order_by(TicketTypeModel.name)
        )
        result = await self._session.execute(stmt)
        return [self._type_to_entity(m) for m in result.scalars().all()]

    async def create_ticket_type(self, ticket_type: TicketType) -> TicketType:
        model = TicketTypeModel(
            id=ticket_type.id,
            name=ticket_type.name,
            description=ticket_type.description,
        )
        self._session.add(model)
        await self._session.flush()
        return self._type_to_entity(model)

    async def delete_ticket_type(self, ticket_type_id: UUID) -> None:
        await self._session.execute(
            delete(project_ticket_types).where(project_ticket_types.c.ticket_type_id == ticket_type_id)
        )
        await self._session.execute(delete(TicketTypeModel).where(TicketTypeModel.id == ticket_type_id))
        await self._session.flush()

    # ---------- Helpers ----------

    async def _sync_links(self, project: Project) -> None:
        """Replace the project's association rows with the entity's lists."""
        await self._session.execute(
            delete(project_visible_roles).where(project_visible_roles.c.project_id == project.id)
        )
        await self._session.execute(
            delete(project_ticket_types).where(project_ticket_types.c.project_id == project.id)
        )
        if project.visible_to_role_ids:
            await self._session.execute(
                insert(project_visible_roles),
                [{"project_id": project.id, "role_id": r} for r in dict.fromkeys(project.visible_to_role_ids)]
            )
        if project.ticket_type_ids:
            await self._session.execute(
                insert(project_ticket_types),
                [{"project_id": project.id, "ticket_type_id": t} for t in dict.fromkeys(project.ticket_type_ids)]
            )
        await self._session.flush()

    async def _to_entities(self, models: List[ProjectModel]) -> List[Project]:
        if not models:
            return []
        ids = [m.id for m in models]

        roles: Dict[UUID, List[UUID]] = {i: [] for i in ids}
        rows = await self._session.execute(
            select(project_visible_roles.c.project_id, project_visible_roles.c.role_id)
            .where(project_visible_roles.c.project_id.in_(ids))
        )
        for project_id, role_id in rows.all():
            roles[project_id].append(role_id)

        types: Dict[UUID, List[UUID]] = {i: [] for i in ids}
        rows = await self._session.execute(
            select(project_ticket_types.c.project_id, project_ticket_types.c.ticket_type_id)
            .where(project_ticket_types.c.project_id.in_(ids))
        )
        for project_id, type_id in rows.all():
            types[project_id].append(type_id)

        return [
            Project(
                id=m.id,
                name=m.name,
                key=m.key,
                manager_id=m.manager_id,
                visible_to_role_ids=roles[m.id],
                ticket_type_ids=types[m.id],
            )
            for m in models
        ]

    @staticmethod
    def _type_to_entity(model: TicketTypeModel) -> TicketType:
        return TicketType(id=model.id, name=model.name, description=model.description)
