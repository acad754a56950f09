"""Tests for the generic REST adapter."""

import json

import pytest

from services.access_control.adapters.custom_rest import CustomRestAdapter
from services.access_control.exceptions import TransportError
from shared.models import AcsConfiguration, VisitorData


PROVISION = "/api/provision"
REVOKE = "/api/revoke"
HEALTH = "/api/health"


@pytest.fixture
def adapter(custom_config: AcsConfiguration, vendor, clock) -> CustomRestAdapter:
    return CustomRestAdapter(
        api_endpoint=custom_config.api_endpoint,
        credentials=custom_config.credentials,
        transport=vendor.transport(),
        clock=clock,
    )


class TestProvision:
    """POST {endpoint}/provision."""

    @pytest.mark.asyncio
    async def test_request_shape(
        self,
        adapter: CustomRestAdapter,
        vendor,
        card_visitor: VisitorData,
    ) -> None:
        """Bearer auth, tenant headers and a 24 hour validity window are sent."""
        vendor.on("POST", PROVISION, 201, json={"id": "abc123"})

        await adapter.provision(card_visitor, "fac-1", "visitor")

        request = vendor.calls("POST", PROVISION)[0]
        assert request.headers["authorization"] == "Bearer key-123"
        assert request.headers["x-tenant"] == "tenant-1"
        assert request.headers["content-type"] == "application/json"

        body = json.loads(request.content)
        assert body["facility_id"] == "fac-1"
        assert body["access_level"] == "visitor"
        assert body["visitor"]["id"] == "visitor-001"
        assert body["visitor"]["civ_piv_card"]["edipi"] == "1234567890"
        assert body["valid_from"] == "2025-07-01T09:00:00+00:00"
        assert body["valid_until"] == "2025-07-02T09:00:00+00:00"

    @pytest.mark.asyncio
    async def test_reference_from_id(
        self,
        adapter: CustomRestAdapter,
        vendor,
        visitor: VisitorData,
    ) -> None:
        vendor.on("POST", PROVISION, 201, json={"id": "abc123"})

        result = await adapter.provision(visitor, "fac-1", "visitor")

        assert result.success
        assert result.acs_reference_id == "abc123"

    @pytest.mark.asyncio
    async def test_reference_id_preferred(
        self,
        adapter: CustomRestAdapter,
        vendor,
        visitor: VisitorData,
    ) -> None:
        vendor.on("POST", PROVISION, 200, json={"reference_id": 77, "id": "abc123"})

        result = await adapter.provision(visitor, "fac-1", "visitor")

        assert result.acs_reference_id == "77"

    @pytest.mark.asyncio
    async def test_missing_reference(
        self,
        adapter: CustomRestAdapter,
        vendor,
        visitor: VisitorData,
    ) -> None:
        vendor.on("POST", PROVISION, 200, json={"status": "ok"})

        result = await adapter.provision(visitor, "fac-1", "visitor")

        assert result.success
        assert result.acs_reference_id is None

    @pytest.mark.asyncio
    async def test_non_2xx_raises(
        self,
        adapter: CustomRestAdapter,
        vendor,
        visitor: VisitorData,
    ) -> None:
        vendor.on("POST", PROVISION, 500)

        with pytest.raises(TransportError) as exc_info:
            await adapter.provision(visitor, "fac-1", "visitor")

        assert exc_info.value.status_code == 500
        assert "500" in str(exc_info.value)


class TestRevoke:
    """POST {endpoint}/revoke."""

    @pytest.mark.asyncio
    async def test_revoke_body(
        self,
        adapter: CustomRestAdapter,
        vendor,
        visitor: VisitorData,
    ) -> None:
        vendor.on("POST", REVOKE, 200, json={})

        result = await adapter.revoke(visitor, "abc123")

        assert result.success
        body = json.loads(vendor.calls("POST", REVOKE)[0].content)
        assert body == {"visitor_id": "visitor-001", "reference_id": "abc123"}

    @pytest.mark.asyncio
    async def test_revoke_failure_raises(
        self,
        adapter: CustomRestAdapter,
        vendor,
        visitor: VisitorData,
    ) -> None:
        vendor.on("POST", REVOKE, 403)

        with pytest.raises(TransportError, match="403"):
            await adapter.revoke(visitor, "abc123")


class TestHealth:
    """GET {endpoint}/health."""

    @pytest.mark.asyncio
    async def test_healthy(self, adapter: CustomRestAdapter, vendor) -> None:
        vendor.on("GET", HEALTH, 200, json={"status": "ok"})

        result = await adapter.test_connection()

        assert result.success
        assert result.message == "Connection successful"
        assert vendor.calls("GET", HEALTH)[0].headers["authorization"] == "Bearer key-123"

    @pytest.mark.asyncio
    async def test_unhealthy(self, adapter: CustomRestAdapter, vendor) -> None:
        vendor.on("GET", HEALTH, 503)

        result = await adapter.test_connection()

        assert not result.success
        assert result.message == "Connection failed: Service Unavailable"

    @pytest.mark.asyncio
    async def test_trailing_slash_in_endpoint(self, vendor, clock, custom_config) -> None:
        adapter = CustomRestAdapter(
            api_endpoint="https://acs.example.test/api/",
            credentials=custom_config.credentials,
            transport=vendor.transport(),
            clock=clock,
        )
        vendor.on("GET", HEALTH, 200)

        result = await adapter.test_connection()

        assert result.success
