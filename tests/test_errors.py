"""Tests for the error translator."""

import pytest
from httpx import ASGITransport, AsyncClient

from backend.context import AppContext
from backend.errors import ConflictError, InternalError, NotFoundError, error_body
from backend.main import create_app
from backend.serverless import create_serverless_app
from backend.stores.postgres import Database


def _app_with_context(settings, context: AppContext, serverless: bool = True):
    context.settings = settings
    if serverless:
        return create_serverless_app(settings, context)
    return create_app(settings, context)


@pytest.mark.asyncio
async def test_production_500_hides_stack(settings_factory, context: AppContext, database: Database):
    app = _app_with_context(settings_factory(environment="production"), context)
    await database.drop_tables()

    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
        response = await ac.get("/api/users")

    assert response.status_code == 500
    assert response.json() == {"success": False, "error": {"message": "Internal Server Error"}}
    assert "Traceback" not in response.text


@pytest.mark.asyncio
async def test_development_500_includes_stack(settings_factory, context: AppContext, database: Database):
    app = _app_with_context(settings_factory(environment="development"), context)
    await database.drop_tables()

    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
        response = await ac.get("/api/users")

    assert response.status_code == 500
    error = response.json()["error"]
    assert error["message"] == "Failed to fetch users"
    assert error["statusCode"] == 500
    assert "Traceback" in error["stack"]


@pytest.mark.asyncio
async def test_production_keeps_client_error_messages(settings_factory, context: AppContext):
    app = _app_with_context(settings_factory(environment="production"), context)

    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
        response = await ac.get("/api/users/12345")

    assert response.status_code == 404
    assert response.json() == {"success": False, "error": {"message": "User not found"}}


@pytest.mark.asyncio
async def test_unknown_route_uses_envelope(client: AsyncClient):
    response = await client.get("/api/does-not-exist")
    assert response.status_code == 404
    body = response.json()
    assert body["success"] is False
    assert body["error"]["message"] == "Not Found"


@pytest.mark.asyncio
async def test_unexpected_exception_becomes_500(settings_factory, context: AppContext):
    app = _app_with_context(settings_factory(environment="production"), context, serverless=False)

    @app.get("/boom")
    async def boom() -> dict:
        raise RuntimeError("secret connection string leaked")

    transport = ASGITransport(app=app, raise_app_exceptions=False)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        response = await ac.get("/boom")

    assert response.status_code == 500
    assert response.json() == {"success": False, "error": {"message": "Internal Server Error"}}
    assert "secret" not in response.text


def test_error_body_shapes():
    try:
        raise ConflictError("Email already exists")
    except ConflictError as exc:
        prod = error_body(exc, exc.status_code, exc.message, production=True)
        dev = error_body(exc, exc.status_code, exc.message, production=False)

    assert prod == {"success": False, "error": {"message": "Email already exists"}}
    assert dev["error"]["message"] == "Email already exists"
    assert dev["error"]["statusCode"] == 409
    assert "ConflictError" in dev["error"]["stack"]


def test_error_status_codes():
    assert NotFoundError("x").status_code == 404
    assert InternalError().status_code == 500
    assert InternalError().message == "Internal Server Error"
    assert ConflictError("x", status_code=418).status_code == 418
