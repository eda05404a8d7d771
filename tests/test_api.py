"""HTTP surface tests against the ASGI app with an in-memory database."""

from uuid import uuid4

import httpx
import pytest_asyncio

from servicedesk.infrastructure.database import get_session
from servicedesk.main import app
from servicedesk.shared.api import get_sla_config

from tests.conftest import PASSWORD


@pytest_asyncio.fixture
async def client(session, sla_config, clock, storage, world):
    async def override_get_session():
        yield session

    app.dependency_overrides[get_session] = override_get_session
    app.dependency_overrides[get_sla_config] = lambda: sla_config
    app.state.clock = clock
    app.state.storage = storage

    transport = httpx.ASGITransport(app=app)
    async with httpx.AsyncClient(transport=transport, base_url="http://test") as http:
        yield http

    app.dependency_overrides.clear()
    del app.state.clock
    del app.state.storage


async def login(client, name="client"):
    response = await client.post("/auth/login", json={"login": name, "password": PASSWORD})
    assert response.status_code == 200
    return {"Authorization": f"Bearer {response.json()['access_token']}"}


class TestHealth:
    async def test_health(self, client):
        response = await client.get("/health")
        assert response.status_code == 200
        assert response.json()["status"] == "healthy"
        assert "X-Correlation-ID" in response.headers


class TestAuth:
    async def test_me_requires_token(self, client):
        response = await client.get("/auth/me")
        assert response.status_code == 401
        assert response.json()["message"] == "Missing bearer token"
        assert response.headers["WWW-Authenticate"] == "Bearer"

    async def test_bad_credentials(self, client):
        response = await client.post("/auth/login", json={"login": "client", "password": "wrong"})
        assert response.status_code == 401
        assert response.json()["message"] == "Invalid login credentials"

    async def test_me(self, client):
        response = await client.get("/auth/me", headers=await login(client))
        assert response.status_code == 200
        assert response.json()["login"] == "client"


class TestTicketsApi:
    async def test_create_then_read_history(self, client, world):
        headers = await login(client)
        response = await client.post("/tickets", headers=headers, json={
            "project_id": str(world.support.id),
            "type_id": str(world.incident.id),
            "title": "Mail is down",
            "description": "Outlook cannot connect",
        })
        assert response.status_code == 201
        ticket = response.json()
        assert ticket["status"] == "new"
        assert ticket["priority"] == "normal"

        history = await client.get(f"/tickets/{ticket['id']}/history", headers=headers)
        assert history.status_code == 200

    async def test_project_not_visible_is_forbidden(self, client, world):
        response = await client.post("/tickets", headers=await login(client), json={
            "project_id": str(world.internal.id),
            "type_id": str(world.foreign_type.id),
            "title": "Hidden",
            "description": "Not my project",
        })
        assert response.status_code == 403
        assert "message" in response.json()

    async def test_unknown_ticket_is_not_found(self, client):
        response = await client.get(f"/tickets/{uuid4()}", headers=await login(client))
        assert response.status_code == 404
        assert "message" in response.json()

    async def test_malformed_payload_is_bad_request(self, client, world):
        response = await client.post("/tickets", headers=await login(client), json={
            "project_id": str(world.support.id),
        })
        assert response.status_code == 400
        body = response.json()
        assert body["message"] == "Invalid request"
        assert body["details"]["errors"]

    async def test_client_cannot_change_status(self, client, world):
        headers = await login(client)
        created = await client.post("/tickets", headers=headers, json={
            "project_id": str(world.support.id),
            "type_id": str(world.question.id),
            "title": "Question",
            "description": "How do I export?",
        })
        response = await client.put(
            f"/tickets/{created.json()['id']}/status", headers=headers, json={"status": "closed"}
        )
        assert response.status_code == 403


class TestAnalyticsApi:
    async def test_analyst_reads_overview(self, client):
        response = await client.get("/analytics", headers=await login(client, "analyst"))
        assert response.status_code == 200
        assert response.json()["total_tickets"] == 0
