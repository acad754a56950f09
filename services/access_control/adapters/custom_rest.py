"""
Custom REST Adapter
===================

Generic bearer-authenticated REST contract for tenant-built access control
systems:

- ``POST {api_endpoint}/provision``
- ``POST {api_endpoint}/revoke``
- ``GET  {api_endpoint}/health``

Version: 0.1.0
"""

from collections.abc import Callable
from datetime import UTC, datetime, timedelta
from typing import Any

from services.access_control.adapters.base import AcsAdapter
from services.access_control.transport import AcsTransport, ensure_success
from shared.config import settings
from shared.logging import get_logger
from shared.models import (
    AccessProvisioningResult,
    ConnectionTestResult,
    RestApiCredentials,
    VisitorData,
)


logger = get_logger(__name__)


def _utcnow() -> datetime:
    return datetime.now(UTC)


class CustomRestAdapter(AcsAdapter):
    """Adapter for the generic REST integration."""

    def __init__(
        self,
        api_endpoint: str,
        credentials: RestApiCredentials,
        transport: AcsTransport,
        clock: Callable[[], datetime] = _utcnow,
        access_window: timedelta | None = None,
    ) -> None:
        """
        Initialize the adapter.

        Args:
            api_endpoint: Base URL of the tenant's ACS API
            credentials: Bearer credentials and extra headers
            transport: HTTP transport owned by this adapter
            clock: Source of "now" for validity windows
            access_window: How long provisioned access stays valid
        """
        self._endpoint = api_endpoint.rstrip("/")
        self._credentials = credentials
        self._transport = transport
        self._clock = clock
        self._access_window = access_window or timedelta(
            hours=settings.acs.access_window_hours
        )

    @property
    def vendor_name(self) -> str:
        return "custom ACS"

    def _headers(self) -> dict[str, str]:
        # Tenant-supplied headers may override Authorization
        return {
            "Authorization": f"Bearer {self._credentials.bearer_token}",
            **self._credentials.headers,
        }

    def _provision_payload(
        self,
        visitor: VisitorData,
        facility_id: str,
        access_level: str,
    ) -> dict[str, Any]:
        now = self._clock()
        card = visitor.civ_piv_card_info
        return {
            "visitor": {
                "id": visitor.id,
                "first_name": visitor.first_name,
                "last_name": visitor.last_name,
                "email": visitor.email,
                "company": visitor.company,
                "civ_piv_card": card.model_dump(mode="json") if card else None,
            },
            "facility_id": facility_id,
            "access_level": access_level,
            "valid_from": now.isoformat(),
            "valid_until": (now + self._access_window).isoformat(),
        }

    async def provision(
        self,
        visitor: VisitorData,
        facility_id: str,
        access_level: str,
    ) -> AccessProvisioningResult:
        logger.info("custom_acs_provisioning", visitor_id=visitor.id, facility_id=facility_id)

        response = await self._transport.post(
            f"{self._endpoint}/provision",
            headers=self._headers(),
            json=self._provision_payload(visitor, facility_id, access_level),
        )
        ensure_success(response)

        body = response.json()
        reference = None
        if isinstance(body, dict):
            reference = body.get("reference_id") or body.get("id")

        return AccessProvisioningResult(
            success=True,
            message="Access provisioned successfully in custom ACS",
            acs_reference_id=str(reference) if reference is not None else None,
        )

    async def revoke(
        self,
        visitor: VisitorData,
        acs_reference_id: str | None = None,
    ) -> AccessProvisioningResult:
        logger.info(
            "custom_acs_revocation",
            visitor_id=visitor.id,
            acs_reference_id=acs_reference_id,
        )

        response = await self._transport.post(
            f"{self._endpoint}/revoke",
            headers=self._headers(),
            json={"visitor_id": visitor.id, "reference_id": acs_reference_id},
        )
        ensure_success(response)

        return AccessProvisioningResult(
            success=True,
            message="Access revoked successfully in custom ACS",
        )

    async def test_connection(self) -> ConnectionTestResult:
        response = await self._transport.get(
            f"{self._endpoint}/health",
            headers=self._headers(),
        )
        if response.is_success:
            return ConnectionTestResult(success=True, message="Connection successful")
        return ConnectionTestResult(
            success=False,
            message=f"Connection failed: {response.reason_phrase}",
        )

    async def close(self) -> None:
        await self._transport.close()
