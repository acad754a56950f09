"""
ACS Integration Exceptions
==========================

Adapters raise these; the dispatcher is the only place that converts them
into ``AccessProvisioningResult`` values.
"""

from typing import Any


class AcsIntegrationError(Exception):
    """Base exception for ACS integration failures."""

    def __init__(self, message: str, details: dict[str, Any] | None = None) -> None:
        self.message = message
        self.details = details or {}
        super().__init__(self.message)


class AuthenticationError(AcsIntegrationError):
    """Raised when a stateful vendor rejects the login."""


class TransportError(AcsIntegrationError):
    """Raised when a vendor answers with a non-2xx status."""

    def __init__(self, status_code: int, reason_phrase: str) -> None:
        self.status_code = status_code
        self.reason_phrase = reason_phrase
        super().__init__(
            f"ACS API returned {status_code}: {reason_phrase}",
            {"status_code": status_code, "reason_phrase": reason_phrase},
        )


class UnsupportedProviderError(AcsIntegrationError):
    """Raised when no adapter is registered for an ACS type."""

    def __init__(self, acs_type: str) -> None:
        self.acs_type = acs_type
        super().__init__(f"Unsupported ACS type: {acs_type}", {"acs_type": acs_type})


class RevocationPreconditionError(AcsIntegrationError):
    """Raised before any network call when revocation lacks a reference id."""

    def __init__(self, message: str = "ACS reference ID is required for revocation") -> None:
        super().__init__(message)


class IntegrationNotImplementedError(AcsIntegrationError):
    """Raised by simulated vendors outside of simulation."""

    def __init__(self, vendor_name: str) -> None:
        self.vendor_name = vendor_name
        super().__init__(
            f"{vendor_name} integration not yet implemented",
            {"vendor": vendor_name},
        )


class PartialProvisioningWarning(UserWarning):
    """
    A best-effort provisioning step failed after the personnel record existed.

    Never raised out of an adapter; it is logged and provisioning still
    reports success.
    """

    def __init__(self, step: str, personnel_id: str, message: str) -> None:
        self.step = step
        self.personnel_id = personnel_id
        self.message = message
        super().__init__(f"{step} failed for personnel {personnel_id}: {message}")
