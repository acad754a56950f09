"""
ACS Dispatcher
==============

Single entry point for provisioning, revoking and health-checking visitor
access in external access control systems.

The dispatcher is the error boundary of the integration layer: adapters
raise, the dispatcher turns every exception into an
``AccessProvisioningResult`` (or ``ConnectionTestResult``) and never raises
to its caller.

Usage:
    from services.access_control import get_dispatcher

    dispatcher = get_dispatcher()
    result = await dispatcher.provision_access(visitor, config, facility_id="fac-1")
    if result.success:
        store_reference(result.acs_reference_id)

Version: 0.1.0
"""

import asyncio
from collections.abc import AsyncIterator, Sequence
from contextlib import asynccontextmanager
from dataclasses import dataclass

from services.access_control.adapters.base import AcsAdapter
from services.access_control.exceptions import RevocationPreconditionError
from services.access_control.registry import AdapterContext, AdapterRegistry, default_registry
from shared.config import settings
from shared.logging import get_logger
from shared.models import (
    AccessProvisioningResult,
    AcsConfiguration,
    ConnectionTestResult,
    ProvisioningOutcome,
    ProvisioningStatus,
    ProvisioningSummary,
    VisitorData,
)


logger = get_logger(__name__)

PROVISIONING_ERROR = "PROVISIONING_ERROR"
REVOCATION_ERROR = "REVOCATION_ERROR"
UNSUPPORTED_ACS_TYPE = "UNSUPPORTED_ACS_TYPE"
ACS_CONFIG_INACTIVE = "ACS_CONFIG_INACTIVE"


@dataclass
class _CachedAdapter:
    """Adapter kept for one configuration revision and its in-flight users."""

    config_id: str
    fingerprint: str
    adapter: AcsAdapter
    users: int = 0
    retired: bool = False


class AcsDispatcher:
    """
    Routes ACS operations to the adapter registered for each configuration.

    With ``reuse_sessions`` enabled one adapter is kept per configuration
    revision, so a Ccure 9000 session survives across requests until its
    assumed expiry. Editing a configuration changes its fingerprint: new
    requests get a fresh adapter and the old one is closed once the requests
    already using it have finished.
    """

    def __init__(
        self,
        registry: AdapterRegistry | None = None,
        context: AdapterContext | None = None,
        reuse_sessions: bool | None = None,
    ) -> None:
        """
        Initialize the dispatcher.

        Args:
            registry: Adapter factories (default: every built-in vendor)
            context: Collaborators handed to adapter factories
            reuse_sessions: Cache adapters per configuration (default from settings)
        """
        self._registry = registry or default_registry()
        self._context = context or AdapterContext()
        self._reuse_sessions = (
            settings.acs.reuse_sessions if reuse_sessions is None else reuse_sessions
        )
        self._adapters: dict[str, _CachedAdapter] = {}
        self._cache_lock = asyncio.Lock()

    @property
    def registry(self) -> AdapterRegistry:
        return self._registry

    # =========================================================================
    # Adapter lifecycle
    # =========================================================================

    async def _acquire(self, config: AcsConfiguration) -> _CachedAdapter:
        fingerprint = config.fingerprint
        stale: _CachedAdapter | None = None
        async with self._cache_lock:
            entry = self._adapters.get(config.id)
            if entry is None or entry.fingerprint != fingerprint:
                fresh = _CachedAdapter(
                    config.id,
                    fingerprint,
                    self._registry.create(config, self._context),
                )
                if entry is not None:
                    logger.info("acs_adapter_replaced", acs_configuration_id=config.id)
                    entry.retired = True
                    if entry.users == 0:
                        stale = entry
                self._adapters[config.id] = fresh
                entry = fresh
            entry.users += 1

        if stale is not None:
            await self._close(stale)
        return entry

    async def _close(self, entry: _CachedAdapter) -> None:
        logger.info("acs_adapter_closed", acs_configuration_id=entry.config_id)
        await entry.adapter.close()

    async def _release(self, entry: _CachedAdapter) -> None:
        async with self._cache_lock:
            entry.users -= 1
            drained = entry.retired and entry.users == 0

        # A replaced adapter is closed by the last request still using it
        if drained:
            await self._close(entry)

    @asynccontextmanager
    async def _adapter_for(self, config: AcsConfiguration) -> AsyncIterator[AcsAdapter]:
        if self._reuse_sessions:
            entry = await self._acquire(config)
            try:
                yield entry.adapter
            finally:
                await self._release(entry)
            return

        adapter = self._registry.create(config, self._context)
        try:
            yield adapter
        finally:
            await adapter.close()

    async def aclose(self) -> None:
        """
        Close every cached adapter.

        Adapters still serving a request are closed when that request ends.
        """
        async with self._cache_lock:
            entries = list(self._adapters.values())
            self._adapters.clear()
            idle = []
            for entry in entries:
                entry.retired = True
                if entry.users == 0:
                    idle.append(entry)
        for entry in idle:
            await self._close(entry)

    def _unsupported(self, config: AcsConfiguration) -> AccessProvisioningResult | None:
        if self._registry.is_supported(config.acs_type):
            return None
        logger.warning(
            "acs_type_unsupported",
            acs_type=config.acs_type,
            acs_configuration_id=config.id,
        )
        return AccessProvisioningResult(
            success=False,
            message=f"Unsupported ACS type: {config.acs_type}",
            error_code=UNSUPPORTED_ACS_TYPE,
        )

    # =========================================================================
    # Operations
    # =========================================================================

    async def provision_access(
        self,
        visitor: VisitorData,
        config: AcsConfiguration,
        facility_id: str,
        access_level: str | None = None,
    ) -> AccessProvisioningResult:
        """
        Provision a visitor's access in one ACS.

        Args:
            visitor: Visitor to provision
            config: Tenant ACS configuration
            facility_id: Facility the visit takes place in
            access_level: Vendor access level (default from settings)

        Returns:
            AccessProvisioningResult; never raises
        """
        access_level = access_level or settings.acs.default_access_level
        logger.info(
            "acs_provisioning_started",
            visitor_id=visitor.id,
            acs_type=config.acs_type,
            acs_configuration_id=config.id,
            facility_id=facility_id,
        )

        rejected = self._unsupported(config)
        if rejected is not None:
            return rejected

        if not config.is_active:
            return AccessProvisioningResult(
                success=False,
                message=f"ACS configuration is inactive: {config.name}",
                error_code=ACS_CONFIG_INACTIVE,
            )

        try:
            async with self._adapter_for(config) as adapter:
                result = await adapter.provision(visitor, facility_id, access_level)
        except Exception as e:
            logger.error(
                "acs_provisioning_failed",
                visitor_id=visitor.id,
                acs_type=config.acs_type,
                error=str(e),
                error_type=type(e).__name__,
            )
            return AccessProvisioningResult(
                success=False,
                message=f"Failed to provision access: {e}",
                error_code=PROVISIONING_ERROR,
            )

        logger.info(
            "acs_provisioning_completed",
            visitor_id=visitor.id,
            acs_type=config.acs_type,
            success=result.success,
            acs_reference_id=result.acs_reference_id,
        )
        return result

    async def revoke_access(
        self,
        visitor: VisitorData,
        config: AcsConfiguration,
        acs_reference_id: str | None = None,
    ) -> AccessProvisioningResult:
        """
        Revoke a visitor's access in one ACS.

        Revocation is attempted even for inactive configurations so that
        deactivating an integration never strands granted access.

        Args:
            visitor: Visitor whose access ends
            config: Tenant ACS configuration
            acs_reference_id: Reference returned at provisioning time

        Returns:
            AccessProvisioningResult; never raises
        """
        logger.info(
            "acs_revocation_started",
            visitor_id=visitor.id,
            acs_type=config.acs_type,
            acs_configuration_id=config.id,
            acs_reference_id=acs_reference_id,
        )

        rejected = self._unsupported(config)
        if rejected is not None:
            return rejected

        try:
            async with self._adapter_for(config) as adapter:
                result = await adapter.revoke(visitor, acs_reference_id)
        except RevocationPreconditionError as e:
            logger.warning(
                "acs_revocation_rejected",
                visitor_id=visitor.id,
                acs_type=config.acs_type,
                reason=e.message,
            )
            return AccessProvisioningResult(
                success=False,
                message=e.message,
                error_code=REVOCATION_ERROR,
            )
        except Exception as e:
            logger.error(
                "acs_revocation_failed",
                visitor_id=visitor.id,
                acs_type=config.acs_type,
                error=str(e),
                error_type=type(e).__name__,
            )
            return AccessProvisioningResult(
                success=False,
                message=f"Failed to revoke access: {e}",
                error_code=REVOCATION_ERROR,
            )

        logger.info(
            "acs_revocation_completed",
            visitor_id=visitor.id,
            acs_type=config.acs_type,
            success=result.success,
        )
        return result

    async def test_connection(self, config: AcsConfiguration) -> ConnectionTestResult:
        """
        Health-check one ACS configuration.

        Returns:
            ConnectionTestResult; never raises
        """
        logger.info("acs_connection_test", acs_type=config.acs_type, acs_configuration_id=config.id)

        if not self._registry.is_supported(config.acs_type):
            return ConnectionTestResult(
                success=False,
                message=f"Unsupported ACS type: {config.acs_type}",
            )

        try:
            async with self._adapter_for(config) as adapter:
                return await adapter.test_connection()
        except Exception as e:
            logger.error(
                "acs_connection_test_failed",
                acs_type=config.acs_type,
                error=str(e),
                error_type=type(e).__name__,
            )
            return ConnectionTestResult(success=False, message=f"Connection failed: {e}")

    async def provision_across(
        self,
        visitor: VisitorData,
        configs: Sequence[AcsConfiguration],
        facility_id: str,
        access_level: str | None = None,
    ) -> ProvisioningSummary:
        """
        Provision a visitor in every active configuration, one after another.

        The visit counts as provisioned when at least one system succeeded.

        Args:
            visitor: Visitor to provision
            configs: Candidate configurations; inactive ones are skipped
            facility_id: Facility the visit takes place in
            access_level: Vendor access level

        Returns:
            ProvisioningSummary with one outcome per active configuration
        """
        outcomes: list[ProvisioningOutcome] = []
        for config in configs:
            if not config.is_active:
                continue
            result = await self.provision_access(visitor, config, facility_id, access_level)
            outcomes.append(
                ProvisioningOutcome(
                    **result.model_dump(),
                    acs_configuration_id=config.id,
                    acs_name=config.name,
                    acs_type=config.acs_type,
                )
            )

        overall_success = any(outcome.success for outcome in outcomes)
        status = ProvisioningStatus.PROVISIONED if overall_success else ProvisioningStatus.FAILED

        logger.info(
            "acs_provisioning_summary",
            visitor_id=visitor.id,
            status=status.value,
            systems=len(outcomes),
        )
        return ProvisioningSummary(
            overall_success=overall_success,
            status=status,
            results=outcomes,
        )


# Global dispatcher instance
_dispatcher: AcsDispatcher | None = None


def get_dispatcher() -> AcsDispatcher:
    """
    Get the application dispatcher.

    Creates and caches the instance on first call.

    Returns:
        AcsDispatcher instance
    """
    global _dispatcher

    if _dispatcher is None:
        _dispatcher = AcsDispatcher()
        logger.info(
            "acs_dispatcher_initialized",
            supported_types=_dispatcher.registry.supported_types,
        )

    return _dispatcher


def set_dispatcher(dispatcher: AcsDispatcher) -> None:
    """
    Set a custom dispatcher.

    Useful for testing or custom registries.

    Args:
        dispatcher: AcsDispatcher instance to use
    """
    global _dispatcher
    _dispatcher = dispatcher


def reset_dispatcher() -> None:
    """Reset the dispatcher to be re-initialized on next access."""
    global _dispatcher
    _dispatcher = None
