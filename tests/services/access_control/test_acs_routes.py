"""Tests for the access control HTTP API."""

import httpx
import pytest


VISITOR = {
    "id": "visitor-001",
    "first_name": "Dana",
    "last_name": "Reyes",
    "email": "dana.reyes@example.com",
    "company": "Acme Logistics",
}

LENEL_CONFIG = {
    "id": "cfg-lenel",
    "tenant_id": "tenant-1",
    "name": "HQ Lenel",
    "acs_type": "lenel",
    "credentials": {},
}

CUSTOM_CONFIG = {
    "id": "cfg-custom",
    "tenant_id": "tenant-1",
    "name": "Warehouse gates",
    "acs_type": "custom",
    "api_endpoint": "https://acs.example.test/api",
    "credentials": {"token": "tok-1"},
}


class TestHealth:
    """Service endpoints."""

    @pytest.mark.asyncio
    async def test_health(self, api_client: httpx.AsyncClient) -> None:
        response = await api_client.get("/health")

        assert response.status_code == 200
        data = response.json()
        assert data["status"] == "healthy"
        assert data["service"] == "access-control"
        assert data["components"]["dispatcher"]["supported_types"] == [
            "ccure9000",
            "custom",
            "lenel",
            "s2_security",
        ]

    @pytest.mark.asyncio
    async def test_root(self, api_client: httpx.AsyncClient) -> None:
        response = await api_client.get("/")

        assert response.status_code == 200
        assert response.json()["service"] == "Visitor Access Control Integration"


class TestProvisionEndpoint:
    """POST /api/v1/acs/provision."""

    @pytest.mark.asyncio
    async def test_provision_summary(self, api_client: httpx.AsyncClient) -> None:
        response = await api_client.post(
            "/api/v1/acs/provision",
            json={
                "visitor": VISITOR,
                "facility_id": "fac-1",
                "configurations": [LENEL_CONFIG],
            },
        )

        assert response.status_code == 200
        data = response.json()
        assert data["overall_success"] is True
        assert data["status"] == "provisioned"
        assert data["results"][0]["acs_name"] == "HQ Lenel"
        assert data["results"][0]["acs_reference_id"].startswith("LENEL_")

    @pytest.mark.asyncio
    async def test_no_configurations(self, api_client: httpx.AsyncClient) -> None:
        response = await api_client.post(
            "/api/v1/acs/provision",
            json={"visitor": VISITOR, "facility_id": "fac-1", "configurations": []},
        )

        assert response.status_code == 404
        data = response.json()
        assert data["success"] is False
        assert data["error_code"] == "NO_ACS_CONFIG"

    @pytest.mark.asyncio
    async def test_only_inactive_configurations(self, api_client: httpx.AsyncClient) -> None:
        response = await api_client.post(
            "/api/v1/acs/provision",
            json={
                "visitor": VISITOR,
                "facility_id": "fac-1",
                "configurations": [{**LENEL_CONFIG, "is_active": False}],
            },
        )

        assert response.status_code == 404
        assert response.json()["error_code"] == "NO_ACS_CONFIG"

    @pytest.mark.asyncio
    async def test_unknown_configuration_id(self, api_client: httpx.AsyncClient) -> None:
        response = await api_client.post(
            "/api/v1/acs/provision",
            json={
                "visitor": VISITOR,
                "facility_id": "fac-1",
                "configurations": [LENEL_CONFIG],
                "acs_configuration_id": "cfg-missing",
            },
        )

        assert response.status_code == 404
        assert response.json()["error_code"] == "ACS_CONFIG_NOT_FOUND"

    @pytest.mark.asyncio
    async def test_invalid_credentials_rejected(self, api_client: httpx.AsyncClient) -> None:
        response = await api_client.post(
            "/api/v1/acs/provision",
            json={
                "visitor": VISITOR,
                "facility_id": "fac-1",
                "configurations": [{**CUSTOM_CONFIG, "credentials": {}}],
            },
        )

        assert response.status_code == 422


class TestRevokeEndpoint:
    """POST /api/v1/acs/revoke."""

    @pytest.mark.asyncio
    async def test_revoke_custom(self, api_client: httpx.AsyncClient, vendor) -> None:
        vendor.on("POST", "/api/revoke", 200, json={})

        response = await api_client.post(
            "/api/v1/acs/revoke",
            json={
                "visitor": VISITOR,
                "configuration": CUSTOM_CONFIG,
                "acs_reference_id": "abc123",
            },
        )

        assert response.status_code == 200
        assert response.json()["success"] is True
        assert vendor.calls("POST", "/api/revoke")[0].headers["authorization"] == "Bearer tok-1"

    @pytest.mark.asyncio
    async def test_revoke_failure_is_a_result(self, api_client: httpx.AsyncClient, vendor) -> None:
        vendor.on("POST", "/api/revoke", 500)

        response = await api_client.post(
            "/api/v1/acs/revoke",
            json={"visitor": VISITOR, "configuration": CUSTOM_CONFIG},
        )

        assert response.status_code == 200
        data = response.json()
        assert data["success"] is False
        assert data["error_code"] == "REVOCATION_ERROR"


class TestConnectionEndpoint:
    """POST /api/v1/acs/test-connection."""

    @pytest.mark.asyncio
    async def test_simulated(self, api_client: httpx.AsyncClient) -> None:
        response = await api_client.post("/api/v1/acs/test-connection", json=LENEL_CONFIG)

        assert response.status_code == 200
        assert response.json() == {
            "success": True,
            "message": "Connection successful (simulated)",
        }

    @pytest.mark.asyncio
    async def test_unsupported(self, api_client: httpx.AsyncClient) -> None:
        response = await api_client.post(
            "/api/v1/acs/test-connection",
            json={**LENEL_CONFIG, "acs_type": "genetec"},
        )

        assert response.status_code == 200
        assert response.json()["message"] == "Unsupported ACS type: genetec"
