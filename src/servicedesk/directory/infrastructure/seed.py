"""
Directory Seeding
=================

Loads roles, ticket types, users and projects from a YAML file so a fresh
database has something to sign in with. Existing rows (matched by name,
login or key) are left untouched, so seeding is safe on every startup.

Example directory_seed.yaml:

    roles:
      - name: Manager
        permissions: [MANAGE_SYSTEM]
    users:
      - login: admin
        password: admin
        role: Manager
    projects:
      - name: Support
        key: SUP
        manager: admin
        visible_to: [Client, Specialist]
        ticket_types:
          - name: Bug
"""

from pathlib import Path
from typing import Any, Dict
from uuid import uuid4

import yaml

from servicedesk.directory.domain import Project, Role, TicketType, User
from servicedesk.directory.infrastructure.repositories import (
    SQLAlchemyProjectRepository,
    SQLAlchemyRoleRepository,
    SQLAlchemyUserRepository,
)
from servicedesk.shared.infrastructure.logging import get_logger
from servicedesk.shared.infrastructure.security import hash_password

logger = get_logger(__name__)


def load_seed_file(path: Path) -> Dict[str, Any]:
    """Read the seed YAML; a missing file yields an empty seed."""
    if not path.exists():
        logger.warning(f"Directory seed file not found: {path}")
        return {}
    with open(path, "r") as f:
        return yaml.safe_load(f) or {}


async def seed_directory(session, data: Dict[str, Any]) -> Dict[str, int]:
    """
    Insert missing roles, users and projects described by ``data``.

    Returns:
        Counts of created rows per kind
    """
    roles = SQLAlchemyRoleRepository(session)
    users = SQLAlchemyUserRepository(session)
    projects = SQLAlchemyProjectRepository(session)
    created = {"roles": 0, "users": 0, "projects": 0}

    for item in data.get("roles", []):
        if await roles.get_by_name(item["name"]) is None:
            await roles.save(Role(
                id=uuid4(),
                name=item["name"],
                permissions=frozenset(item.get("permissions", [])),
            ))
            created["roles"] += 1

    for item in data.get("users", []):
        if await users.get_by_login(item["login"]) is not None:
            continue
        role = await roles.get_by_name(item["role"])
        if role is None:
            logger.warning("Seed user references unknown role", extra={"login": item["login"], "role": item["role"]})
            continue
        await users.create(User(
            id=uuid4(),
            login=item["login"],
            password_hash=hash_password(str(item["password"])),
            role_id=role.id,
            role_name=role.name,
        ))
        created["users"] += 1

    for item in data.get("projects", []):
        if await projects.get_by_key(item["key"]) is not None:
            continue
        manager = await users.get_by_login(item["manager"]) if item.get("manager") else None

        role_ids = []
        for role_name in item.get("visible_to", []):
            role = await roles.get_by_name(role_name)
            if role is not None:
                role_ids.append(role.id)

        type_ids = []
        for type_item in item.get("ticket_types", []):
            ticket_type = await projects.create_ticket_type(TicketType(
                id=uuid4(),
                name=type_item["name"],
                description=type_item.get("description"),
            ))
            type_ids.append(ticket_type.id)

        await projects.create(Project(
            id=uuid4(),
            name=item["name"],
            key=item["key"],
            manager_id=manager.id if manager else None,
            visible_to_role_ids=role_ids,
            ticket_type_ids=type_ids,
        ))
        created["projects"] += 1

    logger.info("Directory seeded", extra=created)
    return created
