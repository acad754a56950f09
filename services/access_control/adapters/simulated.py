"""
Simulated Vendors
=================

Lenel OnGuard and S2 Security are not integrated yet. Outside production
they answer with synthetic successes; in production they fail closed.

Version: 0.1.0
"""

import time
from dataclasses import dataclass

from services.access_control.adapters.base import AcsAdapter
from services.access_control.exceptions import IntegrationNotImplementedError
from shared.config import Settings
from shared.logging import get_logger
from shared.models import AccessProvisioningResult, ConnectionTestResult, VisitorData


logger = get_logger(__name__)


@dataclass(frozen=True)
class SimulationPolicy:
    """Whether simulated vendors may fake their answers."""

    simulate: bool

    @classmethod
    def from_settings(cls, settings: Settings) -> "SimulationPolicy":
        return cls(simulate=not settings.is_production)


@dataclass(frozen=True)
class SimulatedVendor:
    """Display name and reference prefix of a simulated vendor."""

    name: str
    reference_prefix: str


LENEL_ONGUARD = SimulatedVendor(name="Lenel OnGuard", reference_prefix="LENEL")
S2_SECURITY = SimulatedVendor(name="S2 Security", reference_prefix="S2")


class SimulatedAdapter(AcsAdapter):
    """
    Stateless adapter shared by every simulated vendor.

    Never touches the network. In production every operation is refused.
    """

    def __init__(self, vendor: SimulatedVendor, policy: SimulationPolicy) -> None:
        self._vendor = vendor
        self._policy = policy

    @property
    def vendor_name(self) -> str:
        return self._vendor.name

    def _reference_id(self) -> str:
        return f"{self._vendor.reference_prefix}_{int(time.time() * 1000)}"

    async def provision(
        self,
        visitor: VisitorData,
        facility_id: str,
        access_level: str,
    ) -> AccessProvisioningResult:
        logger.info(
            "simulated_provisioning",
            vendor=self.vendor_name,
            visitor_id=visitor.id,
            simulate=self._policy.simulate,
        )
        if not self._policy.simulate:
            raise IntegrationNotImplementedError(self.vendor_name)

        return AccessProvisioningResult(
            success=True,
            message=f"Access provisioned successfully in {self.vendor_name} (simulated)",
            acs_reference_id=self._reference_id(),
        )

    async def revoke(
        self,
        visitor: VisitorData,
        acs_reference_id: str | None = None,
    ) -> AccessProvisioningResult:
        logger.info(
            "simulated_revocation",
            vendor=self.vendor_name,
            visitor_id=visitor.id,
            acs_reference_id=acs_reference_id,
        )
        if not self._policy.simulate:
            raise IntegrationNotImplementedError(self.vendor_name)

        return AccessProvisioningResult(
            success=True,
            message=f"Access revoked successfully in {self.vendor_name} (simulated)",
        )

    async def test_connection(self) -> ConnectionTestResult:
        if not self._policy.simulate:
            return ConnectionTestResult(success=False, message="Integration not yet implemented")
        return ConnectionTestResult(success=True, message="Connection successful (simulated)")
