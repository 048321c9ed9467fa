"""Tests for health check endpoints."""

import pytest
from httpx import AsyncClient


class TestHealthEndpoint:
    """Tests for the health check endpoint."""

    @pytest.mark.asyncio
    async def test_health_returns_200(self, client: AsyncClient) -> None:
        """Test that health endpoint returns 200 OK."""
        response = await client.get("/health")

        assert response.status_code == 200

    @pytest.mark.asyncio
    async def test_health_returns_correct_structure(self, client: AsyncClient) -> None:
        """Test that health endpoint returns expected structure."""
        response = await client.get("/health")
        data = response.json()

        assert "status" in data
        assert "version" in data
        assert "timestamp" in data
        assert "environment" in data

    @pytest.mark.asyncio
    async def test_health_status_is_healthy(self, client: AsyncClient) -> None:
        """Test that health status is 'healthy'."""
        response = await client.get("/health")
        data = response.json()

        assert data["status"] == "healthy"

    @pytest.mark.asyncio
    async def test_health_version_format(self, client: AsyncClient) -> None:
        """Test that version has expected format."""
        response = await client.get("/health")
        data = response.json()

        # Check version follows semver pattern
        assert data["version"] == "1.0.0"

    @pytest.mark.asyncio
    async def test_health_under_api_prefix(self, client: AsyncClient) -> None:
        """The same check is served under /api/v1."""
        response = await client.get("/api/v1/health")

        assert response.status_code == 200
        assert response.json()["status"] == "healthy"

    @pytest.mark.asyncio
    async def test_detailed_health_reports_dependencies(self, client: AsyncClient) -> None:
        """Detailed check covers the database and signing secrets."""
        response = await client.get("/health/detailed")
        data = response.json()

        assert response.status_code == 200
        assert data["database"] == "healthy"
        assert data["signing"] == "configured"
        assert data["status"] == "healthy"

    @pytest.mark.asyncio
    async def test_openapi_documents_error_body(self, client: AsyncClient) -> None:
        """Wallet routes reference the shared error schema."""
        response = await client.get("/openapi.json")
        schema = response.json()

        assert "ErrorResponse" in schema["components"]["schemas"]
        link = schema["paths"]["/api/v1/wallet/link"]["post"]
        assert "409" in link["responses"]
