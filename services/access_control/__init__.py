"""
Access Control Integration Service
==================================

Provisions and revokes visitor credentials in external access control
systems (Lenel OnGuard, S2 Security, Ccure 9000, custom REST).

Usage:
    from services.access_control import get_dispatcher

    dispatcher = get_dispatcher()
    result = await dispatcher.provision_access(visitor, config, facility_id="fac-1")
"""

from services.access_control.dispatcher import (
    AcsDispatcher,
    get_dispatcher,
    reset_dispatcher,
    set_dispatcher,
)
from services.access_control.registry import AdapterContext, AdapterRegistry, default_registry

__all__ = [
    "AcsDispatcher",
    "get_dispatcher",
    "set_dispatcher",
    "reset_dispatcher",
    "AdapterContext",
    "AdapterRegistry",
    "default_registry",
]
