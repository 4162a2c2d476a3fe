"""Tests for the REST endpoints."""

from collections.abc import AsyncIterator

import pytest
import pytest_asyncio
import socketio
from conftest import join, make_config
from httpx import ASGITransport, AsyncClient

import livecode
from livecode.app import create_api, create_app


@pytest_asyncio.fixture(name="api_client")
async def api_client_fixture(router) -> AsyncIterator[AsyncClient]:
    api = create_api(router.config, router)
    async with AsyncClient(
        transport=ASGITransport(app=api),
        base_url="http://test",
    ) as client:
        yield client


@pytest.mark.asyncio
async def test_health(api_client: AsyncClient):
    response = await api_client.get("/health")
    assert response.status_code == 200
    assert response.json() == {"status": "ok"}


@pytest.mark.asyncio
async def test_version(api_client: AsyncClient):
    response = await api_client.get("/v1/version")
    assert response.status_code == 200
    assert response.json() == {"version": livecode.__version__}


@pytest.mark.asyncio
async def test_edit_lock_of_unknown_room(api_client: AsyncClient):
    response = await api_client.get("/v1/rooms/nowhere/edit-lock")
    assert response.status_code == 200
    assert response.json() == {
        "roomId": "nowhere",
        "locked": False,
        "lockedBy": None,
        "username": None,
    }


@pytest.mark.asyncio
async def test_edit_lock_reports_holder(api_client: AsyncClient, router):
    await join(router, "a", "r1", "alice")
    await router.on_request_lock("a", {"roomId": "r1"})

    response = await api_client.get("/v1/rooms/r1/edit-lock")
    assert response.json() == {
        "roomId": "r1",
        "locked": True,
        "lockedBy": "a",
        "username": "alice",
    }
    await router.close()


@pytest.mark.asyncio
async def test_members(api_client: AsyncClient, router):
    await join(router, "a", "r1", "alice")
    await join(router, "b", "r1", "bob")

    response = await api_client.get("/v1/rooms/r1/members")
    assert response.status_code == 200
    assert response.json() == {
        "roomId": "r1",
        "clients": [
            {"socketId": "a", "username": "alice"},
            {"socketId": "b", "username": "bob"},
        ],
    }


@pytest.mark.asyncio
async def test_create_app_serves_api_behind_socketio():
    app = create_app(make_config())
    assert isinstance(app, socketio.ASGIApp)

    async with AsyncClient(
        transport=ASGITransport(app=app), base_url="http://test"
    ) as client:
        response = await client.get("/health")
    assert response.status_code == 200
