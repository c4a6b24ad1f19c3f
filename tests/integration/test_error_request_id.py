"""Tests for request_id in error responses and the health check."""

import pytest
from httpx import AsyncClient

from tests.helpers import bearer

pytestmark = [pytest.mark.integration, pytest.mark.asyncio]


async def test_http_exception_includes_request_id(client: AsyncClient) -> None:
    response = await client.get("/auth/nonexistent-endpoint")

    assert response.status_code == 404
    data = response.json()
    assert "detail" in data
    assert isinstance(data["request_id"], str)


async def test_service_error_includes_code_and_request_id(client: AsyncClient) -> None:
    response = await client.get("/auth/session", headers=bearer("malformed"))

    assert response.status_code == 401
    assert response.headers["WWW-Authenticate"] == "Bearer"
    data = response.json()
    assert set(data) == {"detail", "code", "request_id"}
    assert data["request_id"] == response.headers["X-Request-ID"]


async def test_request_id_format(client: AsyncClient) -> None:
    """asgi-correlation-id generates UUID4 hex strings by default."""
    response = await client.get("/auth/nonexistent-endpoint")

    request_id = response.json()["request_id"]
    assert request_id
    if "-" in request_id:
        assert len(request_id) == 36, f"Unexpected request_id format: {request_id}"


async def test_different_requests_have_different_ids(client: AsyncClient) -> None:
    first = await client.get("/auth/endpoint1")
    second = await client.get("/auth/endpoint2")

    assert first.json()["request_id"] != second.json()["request_id"]


async def test_incoming_request_id_is_echoed(client: AsyncClient) -> None:
    request_id = "0f8fad5b-d9cb-469f-a165-70867728950e"

    response = await client.get("/auth/session", headers={"X-Request-ID": request_id})

    assert response.json()["request_id"] == request_id


async def test_health(client: AsyncClient) -> None:
    response = await client.get("/health")

    assert response.status_code == 200
    assert response.json() == {"status": "healthy", "database": "healthy"}


async def test_security_headers(client: AsyncClient) -> None:
    response = await client.get("/health")

    assert response.headers["X-Content-Type-Options"] == "nosniff"
    assert "Content-Security-Policy" in response.headers
