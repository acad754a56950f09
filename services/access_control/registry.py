"""
Adapter Registry
================

Maps ACS types to adapter factories. Built once at startup; supporting a new
vendor means registering a factory, not editing the dispatcher.

Version: 0.1.0
"""

from collections.abc import Callable
from dataclasses import dataclass, field
from datetime import UTC, datetime, timedelta
from typing import TypeVar

from pydantic import BaseModel

from services.access_control.adapters.base import AcsAdapter
from services.access_control.adapters.ccure9000 import Ccure9000Adapter, Ccure9000Client
from services.access_control.adapters.custom_rest import CustomRestAdapter
from services.access_control.adapters.simulated import (
    LENEL_ONGUARD,
    S2_SECURITY,
    SimulatedAdapter,
    SimulatedVendor,
    SimulationPolicy,
)
from services.access_control.exceptions import UnsupportedProviderError
from services.access_control.transport import AcsTransport
from shared.config import settings
from shared.logging import get_logger
from shared.models import AcsConfiguration, AcsType, Ccure9000Credentials, RestApiCredentials


logger = get_logger(__name__)

CredentialsT = TypeVar("CredentialsT", bound=BaseModel)


def _utcnow() -> datetime:
    return datetime.now(UTC)


@dataclass
class AdapterContext:
    """Collaborators injected into every adapter the registry builds."""

    simulation: SimulationPolicy = field(
        default_factory=lambda: SimulationPolicy.from_settings(settings)
    )
    transport_factory: Callable[[], AcsTransport] = AcsTransport
    clock: Callable[[], datetime] = _utcnow
    session_ttl: timedelta = field(
        default_factory=lambda: timedelta(minutes=settings.acs.session_ttl_minutes)
    )
    access_window: timedelta = field(
        default_factory=lambda: timedelta(hours=settings.acs.access_window_hours)
    )


AdapterFactory = Callable[[AcsConfiguration, AdapterContext], AcsAdapter]


def _credentials(config: AcsConfiguration, model: type[CredentialsT]) -> CredentialsT:
    creds = config.credentials
    if isinstance(creds, model):
        return creds
    if isinstance(creds, BaseModel):
        creds = creds.model_dump()
    return model.model_validate(creds)


def _simulated(vendor: SimulatedVendor) -> AdapterFactory:
    def build(config: AcsConfiguration, context: AdapterContext) -> AcsAdapter:
        return SimulatedAdapter(vendor, context.simulation)

    return build


def _custom_rest(config: AcsConfiguration, context: AdapterContext) -> AcsAdapter:
    return CustomRestAdapter(
        api_endpoint=config.api_endpoint,
        credentials=_credentials(config, RestApiCredentials),
        transport=context.transport_factory(),
        clock=context.clock,
        access_window=context.access_window,
    )


def _ccure9000(config: AcsConfiguration, context: AdapterContext) -> AcsAdapter:
    client = Ccure9000Client(
        credentials=_credentials(config, Ccure9000Credentials),
        transport=context.transport_factory(),
        clock=context.clock,
        session_ttl=context.session_ttl,
    )
    return Ccure9000Adapter(client)


class AdapterRegistry:
    """Registry of adapter factories keyed by ``acs_type``."""

    def __init__(self) -> None:
        self._factories: dict[str, AdapterFactory] = {}

    @staticmethod
    def _key(acs_type: AcsType | str) -> str:
        return acs_type.value if isinstance(acs_type, AcsType) else acs_type

    def register(self, acs_type: AcsType | str, factory: AdapterFactory) -> None:
        """
        Register (or replace) the factory for an ACS type.

        Args:
            acs_type: Type key as stored on configurations
            factory: Callable building an adapter for one configuration
        """
        key = self._key(acs_type)
        self._factories[key] = factory
        logger.debug("acs_adapter_registered", acs_type=key)

    def is_supported(self, acs_type: AcsType | str) -> bool:
        return self._key(acs_type) in self._factories

    @property
    def supported_types(self) -> list[str]:
        return sorted(self._factories)

    def create(self, config: AcsConfiguration, context: AdapterContext) -> AcsAdapter:
        """
        Build the adapter for a configuration.

        Raises:
            UnsupportedProviderError: If no factory is registered for its type
        """
        factory = self._factories.get(self._key(config.acs_type))
        if factory is None:
            raise UnsupportedProviderError(config.acs_type)
        return factory(config, context)


def default_registry() -> AdapterRegistry:
    """Registry with every built-in vendor."""
    registry = AdapterRegistry()
    registry.register(AcsType.LENEL, _simulated(LENEL_ONGUARD))
    registry.register(AcsType.S2_SECURITY, _simulated(S2_SECURITY))
    registry.register(AcsType.CUSTOM, _custom_rest)
    registry.register(AcsType.CCURE9000, _ccure9000)
    return registry
