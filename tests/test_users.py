"""Tests for the users endpoints (serverless app, SQLite-backed store)."""

import pytest
from httpx import ASGITransport, AsyncClient
from sqlalchemy import func, select

from backend.context import AppContext
from backend.models import User
from backend.serverless import create_serverless_app
from backend.stores.postgres import Database
from backend.stores.redis import LOCAL_CACHE, UPSTASH_CACHE, Cache


async def _create(client: AsyncClient, name: str, email: str):
    return await client.post("/api/users", json={"name": name, "email": email})


@pytest.mark.asyncio
async def test_create_then_get_user(client: AsyncClient):
    created = await _create(client, "Grace", "grace@example.com")
    assert created.status_code == 201
    body = created.json()
    assert body["success"] is True
    assert body["message"] == "User created successfully"
    user_id = body["data"]["id"]

    response = await client.get(f"/api/users/{user_id}")
    assert response.status_code == 200
    data = response.json()
    assert data["success"] is True
    assert data["data"]["name"] == "Grace"
    assert data["data"]["email"] == "grace@example.com"
    assert data["data"]["is_active"] is True
    assert data["data"]["created_at"]


@pytest.mark.asyncio
async def test_create_user_example(client: AsyncClient):
    """POST Ada twice: 201 then 409 with the conflict message."""
    first = await _create(client, "Ada", "ada@example.com")
    assert first.status_code == 201
    assert first.json()["data"]["email"] == "ada@example.com"

    second = await _create(client, "Ada", "ada@example.com")
    assert second.status_code == 409
    body = second.json()
    assert body["success"] is False
    assert body["error"]["message"] == "Email already exists"
    assert body["error"]["statusCode"] == 409


@pytest.mark.asyncio
async def test_duplicate_email_keeps_single_row(client: AsyncClient, database: Database):
    await _create(client, "First", "dup@example.com")
    response = await _create(client, "Second", "dup@example.com")
    assert response.status_code == 409
    assert response.json()["success"] is False

    async with database.session() as session:
        count = await session.scalar(
            select(func.count()).select_from(User).where(User.email == "dup@example.com")
        )
    assert count == 1


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "payload",
    [
        {"name": "No Email"},
        {"email": "noname@example.com"},
        {"name": "", "email": "blank@example.com"},
        {"name": "Blank", "email": "   "},
        {},
    ],
)
async def test_create_user_requires_name_and_email(client: AsyncClient, payload: dict):
    response = await client.post("/api/users", json=payload)
    assert response.status_code == 400
    body = response.json()
    assert body["success"] is False
    assert body["error"]["message"] == "Name and email are required"


@pytest.mark.asyncio
async def test_create_user_rejects_non_json_body(client: AsyncClient):
    response = await client.post(
        "/api/users",
        content=b"not json",
        headers={"Content-Type": "application/json"},
    )
    assert response.status_code == 400
    assert response.json()["success"] is False


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "user_id",
    ["999", "0", "-1", "abc", "2147483648", "99999999999999999999", "1_0", "+1", "%201", "1.0"],
)
async def test_get_missing_user_is_404(client: AsyncClient, user_id: str):
    response = await client.get(f"/api/users/{user_id}")
    assert response.status_code == 404
    body = response.json()
    assert body["success"] is False
    assert body["error"]["message"] == "User not found"
    assert "data" not in body


@pytest.mark.asyncio
async def test_loose_integer_spellings_do_not_match_existing_user(client: AsyncClient):
    user_id = (await _create(client, "Linus", "linus@example.com")).json()["data"]["id"]

    assert (await client.get(f"/api/users/{user_id}")).status_code == 200
    for spelling in (f"+{user_id}", f"0_{user_id}", f"%20{user_id}", f"{user_id}.0"):
        response = await client.get(f"/api/users/{spelling}")
        assert response.status_code == 404, spelling


@pytest.mark.asyncio
async def test_list_users_newest_first(client: AsyncClient):
    empty = await client.get("/api/users")
    assert empty.json() == {"success": True, "data": [], "count": 0}

    for i in range(3):
        await _create(client, f"User {i}", f"user{i}@example.com")

    response = await client.get("/api/users")
    assert response.status_code == 200
    body = response.json()
    assert body["success"] is True
    assert body["count"] == 3
    assert [u["email"] for u in body["data"]] == [
        "user2@example.com",
        "user1@example.com",
        "user0@example.com",
    ]


@pytest.mark.asyncio
async def test_users_unavailable_when_database_connect_fails(settings_factory, primary_connector, fallback_connector):
    settings = settings_factory()
    context = AppContext(
        settings=settings,
        database=Database("sqlite+aiosqlite:////nonexistent-dir/users.db"),
        cache=Cache(UPSTASH_CACHE, primary_connector),
        fallback_cache=Cache(LOCAL_CACHE, fallback_connector),
    )
    app = create_serverless_app(settings, context)
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
        users = await ac.get("/api/users")
        health = await ac.get("/health")

    assert users.status_code == 503
    assert users.json()["error"]["message"] == "Database not available"
    assert health.status_code == 200
    # Caches still connected even though the store failed.
    assert context.cache.connected
    assert context.fallback_cache.connected
