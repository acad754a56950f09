"""
ACS Adapter Base
================

Abstract base class for vendor adapters.

Version: 0.1.0
"""

from abc import ABC, abstractmethod

from shared.models import AccessProvisioningResult, ConnectionTestResult, VisitorData


class AcsAdapter(ABC):
    """
    Abstract base class for access control system adapters.

    Implements the Strategy pattern: the dispatcher picks one adapter per
    configuration and calls the same three operations on every vendor.
    Adapters raise on failure; they do not build error results themselves.
    """

    @property
    @abstractmethod
    def vendor_name(self) -> str:
        """Human-readable vendor name used in result messages."""
        ...

    @abstractmethod
    async def provision(
        self,
        visitor: VisitorData,
        facility_id: str,
        access_level: str,
    ) -> AccessProvisioningResult:
        """
        Grant a visitor access in the vendor system.

        Args:
            visitor: Visitor to provision
            facility_id: Facility the visit takes place in
            access_level: Vendor access level / clearance name

        Returns:
            AccessProvisioningResult carrying the vendor reference id
        """
        ...

    @abstractmethod
    async def revoke(
        self,
        visitor: VisitorData,
        acs_reference_id: str | None = None,
    ) -> AccessProvisioningResult:
        """
        Remove a previously provisioned credential.

        Args:
            visitor: Visitor whose access ends
            acs_reference_id: Reference returned by ``provision``

        Returns:
            AccessProvisioningResult
        """
        ...

    @abstractmethod
    async def test_connection(self) -> ConnectionTestResult:
        """Check that the vendor is reachable with the configured credentials."""
        ...

    async def close(self) -> None:
        """Release network resources. Stateless adapters hold none."""
        return None
