"""
Shared Models
=============

Pydantic models shared between the access-control service and its callers.

Models:
- ACS models (AcsConfiguration, VisitorData, AccessProvisioningResult)
- Credential models (RestApiCredentials, Ccure9000Credentials)
- Common response models (ErrorResponse, HealthResponse)
"""

from shared.models.acs import (
    AccessProvisioningResult,
    AcsConfiguration,
    AcsCredentials,
    AcsType,
    Ccure9000Credentials,
    CivPivCardData,
    ConnectionTestResult,
    ProvisioningOutcome,
    ProvisioningStatus,
    ProvisioningSummary,
    RestApiCredentials,
    SimulatedCredentials,
    VisitorData,
)
from shared.models.common import (
    ErrorResponse,
    HealthResponse,
)

__all__ = [
    # ACS
    "AcsConfiguration",
    "AcsCredentials",
    "AcsType",
    "VisitorData",
    "CivPivCardData",
    "AccessProvisioningResult",
    "ConnectionTestResult",
    "ProvisioningOutcome",
    "ProvisioningStatus",
    "ProvisioningSummary",
    # Credentials
    "RestApiCredentials",
    "Ccure9000Credentials",
    "SimulatedCredentials",
    # Common
    "ErrorResponse",
    "HealthResponse",
]
