"""Test configuration and fixtures."""

from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from uuid import UUID, uuid4

import pytest
import pytest_asyncio
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker
from sqlalchemy.pool import StaticPool

from servicedesk.container import ServiceContainer
from servicedesk.directory.domain import Actor, Project, Role, TicketType, User
from servicedesk.infrastructure.database import close_database, create_tables, init_database
from servicedesk.shared.infrastructure.security import hash_password
from servicedesk.sla.domain import SLAConfig, SLAPolicy
from servicedesk.sla.infrastructure import SLAConfigManager
from servicedesk.tickets.infrastructure import LocalAttachmentStorage

TEST_DATABASE_URL = "sqlite+aiosqlite:///:memory:"
T0 = datetime(2024, 1, 15, 9, 0, tzinfo=timezone.utc)
PASSWORD = "secret"

_password_hash = None


def password_hash() -> str:
    """bcrypt is slow; hash the shared test password once."""
    global _password_hash
    if _password_hash is None:
        _password_hash = hash_password(PASSWORD)
    return _password_hash


class FakeClock:
    """Deterministic clock the services read through ``clock()``."""

    def __init__(self, now: datetime = T0):
        self.now = now

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs) -> datetime:
        self.now = self.now + timedelta(**kwargs)
        return self.now


@dataclass
class World:
    """Seeded directory: one user per role and two projects."""
    roles: dict
    users: dict
    support: Project
    internal: Project
    incident: TicketType
    question: TicketType
    foreign_type: TicketType


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def sla_config() -> SLAConfigManager:
    return SLAConfigManager(SLAConfig(policies=[
        SLAPolicy(ticket_type="Incident", priority="wysoki", response_minutes=30, resolution_minutes=60),
        SLAPolicy(ticket_type="Incident", priority="normal", response_minutes=60, resolution_minutes=240),
    ]))


@pytest_asyncio.fixture
async def engine():
    """In-memory SQLite shared by every session of one test."""
    engine = init_database(
        TEST_DATABASE_URL,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    await create_tables()
    yield engine
    await close_database()


@pytest.fixture
def session_maker(engine):
    return async_sessionmaker(bind=engine, class_=AsyncSession, expire_on_commit=False, autoflush=False)


@pytest_asyncio.fixture
async def session(session_maker):
    async with session_maker() as session:
        yield session


@pytest.fixture
def storage(tmp_path) -> LocalAttachmentStorage:
    return LocalAttachmentStorage(tmp_path / "uploads")


@pytest.fixture
def container(session, sla_config, clock, storage) -> ServiceContainer:
    return ServiceContainer(session, sla_config, clock=clock, client_ip="127.0.0.1", storage=storage)


@pytest_asyncio.fixture
async def world(container, session) -> World:
    roles = {}
    for name, permissions in (
        ("Manager", ["MANAGE_SYSTEM"]),
        ("Specialist", ["VIEW_TICKET", "CHANGE_STATUS"]),
        ("Client", ["CREATE_TICKET", "VIEW_TICKET"]),
        ("Analyst", ["VIEW_ANALYTICS", "GENERATE_REPORTS"]),
        ("Developer", []),
    ):
        roles[name] = await container.roles.save(Role(id=uuid4(), name=name, permissions=frozenset(permissions)))

    users = {}
    for login, role in (
        ("manager", "Manager"),
        ("specialist", "Specialist"),
        ("client", "Client"),
        ("client2", "Client"),
        ("analyst", "Analyst"),
        ("developer", "Developer"),
        ("lead", "Specialist"),
    ):
        users[login] = await container.users.create(User(
            id=uuid4(),
            login=login,
            password_hash=password_hash(),
            role_id=roles[role].id,
            role_name=role,
        ))

    incident = await container.projects.create_ticket_type(TicketType(id=uuid4(), name="Incident"))
    question = await container.projects.create_ticket_type(TicketType(id=uuid4(), name="Question"))
    foreign_type = await container.projects.create_ticket_type(TicketType(id=uuid4(), name="Change"))

    support = await container.projects.create(Project(
        id=uuid4(),
        name="Support",
        key="SUP",
        manager_id=users["lead"].id,
        visible_to_role_ids=[roles["Client"].id, roles["Specialist"].id],
        ticket_type_ids=[incident.id, question.id],
    ))
    internal = await container.projects.create(Project(
        id=uuid4(),
        name="Internal",
        key="INT",
        manager_id=users["manager"].id,
        visible_to_role_ids=[roles["Specialist"].id],
        ticket_type_ids=[foreign_type.id],
    ))
    await session.commit()
    return World(roles, users, support, internal, incident, question, foreign_type)


async def actor_for(container: ServiceContainer, world: World, login: str) -> Actor:
    return await container.directory_service.load_actor(world.users[login].id)


def user_id(world: World, login: str) -> UUID:
    return world.users[login].id
