"""
ACS Adapters
============

One adapter per access control system:

- SimulatedAdapter: Lenel OnGuard and S2 Security (simulated outside production)
- CustomRestAdapter: generic bearer-authenticated REST integration
- Ccure9000Adapter: session-based Ccure 9000 web service
"""

from services.access_control.adapters.base import AcsAdapter
from services.access_control.adapters.ccure9000 import (
    Authenticated,
    Ccure9000Adapter,
    Ccure9000Client,
    Session,
    Unauthenticated,
)
from services.access_control.adapters.custom_rest import CustomRestAdapter
from services.access_control.adapters.simulated import (
    LENEL_ONGUARD,
    S2_SECURITY,
    SimulatedAdapter,
    SimulatedVendor,
    SimulationPolicy,
)

__all__ = [
    # Base
    "AcsAdapter",
    # Simulated vendors
    "SimulatedAdapter",
    "SimulatedVendor",
    "SimulationPolicy",
    "LENEL_ONGUARD",
    "S2_SECURITY",
    # REST
    "CustomRestAdapter",
    # Ccure 9000
    "Ccure9000Adapter",
    "Ccure9000Client",
    "Session",
    "Authenticated",
    "Unauthenticated",
]
