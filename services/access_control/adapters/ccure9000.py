"""
Ccure 9000 Adapter
==================

Session-based integration with a Ccure 9000 web service.

The vendor login answers with the bare body ``true`` and sets a session
cookie; it never states how long the session lasts. The client therefore
assumes a fixed window after each successful login and logs in again once
that window has passed.

Provisioning is a multi-step call chain:

1. create the personnel record (fatal on failure)
2. assign the access level / clearance (best effort)
3. enroll the CIV/PIV card, when the visitor presented one (best effort)

Version: 0.1.0
"""

import asyncio
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from datetime import UTC, datetime, timedelta
from typing import Any

import httpx
from pydantic import BaseModel

from services.access_control.adapters.base import AcsAdapter
from services.access_control.exceptions import (
    AcsIntegrationError,
    AuthenticationError,
    PartialProvisioningWarning,
    RevocationPreconditionError,
)
from services.access_control.transport import AcsTransport, ensure_success
from shared.config import settings
from shared.logging import get_logger
from shared.models import (
    AccessProvisioningResult,
    Ccure9000Credentials,
    CivPivCardData,
    ConnectionTestResult,
    VisitorData,
)


logger = get_logger(__name__)

MASKED_PASSWORD = "***masked***"

# Ccure keeps the real session in a cookie; this marks the client side state
SESSION_MARKER = "authenticated"

# Response fields that may carry a new personnel object id, in lookup order
PERSONNEL_ID_KEYS = ("ObjectID", "Id", "id")


def _utcnow() -> datetime:
    return datetime.now(UTC)


# =============================================================================
# Session state
# =============================================================================


@dataclass(frozen=True)
class Unauthenticated:
    """No usable session: the next operation logs in first."""


@dataclass(frozen=True)
class Authenticated:
    """Logged in; assumed valid until ``expiry``."""

    token: str
    expiry: datetime

    def is_expired(self, now: datetime) -> bool:
        return now > self.expiry


Session = Unauthenticated | Authenticated


# =============================================================================
# Client models
# =============================================================================


class LoginResult(BaseModel):
    """Outcome of a login attempt."""

    success: bool
    session_token: str | None = None
    message: str | None = None


class VendorOperationResult(BaseModel):
    """Outcome of a single Ccure 9000 operation."""

    success: bool
    message: str
    personnel_id: str | None = None


class PersonnelData(BaseModel):
    """Cardholder fields sent when creating a personnel record."""

    first_name: str
    last_name: str
    email: str | None = None
    company: str | None = None
    personnel_type: str | None = None
    access_level: str | None = None
    civ_piv_info: CivPivCardData | None = None

    @classmethod
    def from_visitor(cls, visitor: VisitorData, access_level: str) -> "PersonnelData":
        return cls(
            first_name=visitor.first_name,
            last_name=visitor.last_name,
            email=visitor.email,
            company=visitor.company,
            access_level=access_level,
            civ_piv_info=visitor.civ_piv_card_info,
        )


# =============================================================================
# Client
# =============================================================================


class Ccure9000Client:
    """
    Ccure 9000 web service client.

    Owns the session for the lifetime of one adapter. Operations return a
    ``VendorOperationResult`` instead of raising so the adapter can decide
    which failures are fatal.
    """

    LOGIN_PATH = "api/authenticate/Login"
    PERSONNEL_PATH = "api/Personnel"

    def __init__(
        self,
        credentials: Ccure9000Credentials,
        transport: AcsTransport,
        clock: Callable[[], datetime] = _utcnow,
        session_ttl: timedelta | None = None,
    ) -> None:
        """
        Initialize the client.

        Args:
            credentials: Login material; ``base_url`` ends with ``/``
            transport: HTTP transport (keeps the session cookie)
            clock: Source of "now" for session expiry
            session_ttl: Assumed session lifetime after a login
        """
        self._credentials = credentials
        self._transport = transport
        self._clock = clock
        self._session_ttl = session_ttl or timedelta(minutes=settings.acs.session_ttl_minutes)
        self._session: Session = Unauthenticated()
        self._login_lock = asyncio.Lock()

    @property
    def base_url(self) -> str:
        return self._credentials.base_url

    @property
    def session(self) -> Session:
        return self._session

    def _personnel_url(self, personnel_id: str | None = None, *parts: str) -> str:
        url = f"{self.base_url}{self.PERSONNEL_PATH}"
        if personnel_id is not None:
            url = "/".join([url, personnel_id, *parts])
        return url

    def _has_valid_session(self) -> bool:
        session = self._session
        return isinstance(session, Authenticated) and not session.is_expired(self._clock())

    # =========================================================================
    # Authentication
    # =========================================================================

    async def authenticate(self) -> LoginResult:
        """
        Log in to the Ccure 9000 web service.

        Success is signalled by the response body ``true`` and nothing else.

        Returns:
            LoginResult; never raises
        """
        creds = self._credentials
        url = f"{self.base_url}{self.LOGIN_PATH}"
        payload = {
            "UserName": creds.user_name,
            "Password": creds.password.get_secret_value(),
            "ClientName": creds.client_name,
            "ClientID": creds.client_id,
            "ClientVersion": creds.version,
        }

        logger.info(
            "ccure9000_login_request",
            endpoint=url,
            payload={**payload, "Password": MASKED_PASSWORD},
        )

        try:
            response = await self._transport.post(url, json=payload)
        except httpx.HTTPError as e:
            logger.error("ccure9000_login_error", error=str(e), error_type=type(e).__name__)
            self._session = Unauthenticated()
            return LoginResult(success=False, message=f"Authentication error: {e}")

        if not response.is_success:
            self._session = Unauthenticated()
            message = f"Authentication error: HTTP {response.status_code}: {response.reason_phrase}"
            logger.warning("ccure9000_login_rejected", status_code=response.status_code)
            return LoginResult(success=False, message=message)

        body = response.text
        logger.debug("ccure9000_login_response", body=body)

        if body.strip() != "true":
            self._session = Unauthenticated()
            return LoginResult(success=False, message=f"Authentication failed: {body}")

        self._session = Authenticated(
            token=SESSION_MARKER,
            expiry=self._clock() + self._session_ttl,
        )
        logger.info("ccure9000_authenticated", expiry=self._session.expiry.isoformat())
        return LoginResult(success=True, session_token=SESSION_MARKER)

    async def ensure_authenticated(self) -> None:
        """
        Log in unless a non-expired session exists.

        Raises:
            AuthenticationError: If the login is refused
        """
        if self._has_valid_session():
            return

        async with self._login_lock:
            # Another caller may have logged in while we waited
            if self._has_valid_session():
                return

            logger.info(
                "ccure9000_session_refresh",
                reason="expired" if isinstance(self._session, Authenticated) else "missing",
            )
            result = await self.authenticate()
            if not result.success:
                raise AuthenticationError(f"Authentication failed: {result.message}")

    async def test_connection(self) -> ConnectionTestResult:
        """Check connectivity by logging in."""
        logger.info(
            "ccure9000_connection_test",
            base_url=self.base_url,
            user_name=self._credentials.user_name,
            client_name=self._credentials.client_name,
        )

        result = await self.authenticate()
        if result.success:
            return ConnectionTestResult(
                success=True,
                message=f"Successfully connected to Ccure 9000 at {self.base_url}",
            )
        return ConnectionTestResult(
            success=False,
            message=result.message or "Authentication failed",
        )

    # =========================================================================
    # Personnel operations
    # =========================================================================

    async def _send(self, method: str, url: str, payload: dict[str, Any]) -> httpx.Response:
        await self.ensure_authenticated()
        response = await self._transport.request(method, url, json=payload)
        if response.status_code == httpx.codes.UNAUTHORIZED:
            # Server-side session ended before the assumed window did
            self._session = Unauthenticated()
        return ensure_success(response)

    async def create_personnel(self, personnel: PersonnelData) -> VendorOperationResult:
        """
        Create a cardholder record.

        Args:
            personnel: Cardholder fields

        Returns:
            VendorOperationResult with ``personnel_id`` on success
        """
        logger.info(
            "ccure9000_create_personnel",
            name=f"{personnel.first_name} {personnel.last_name}",
            company=personnel.company,
        )

        payload: dict[str, Any] = {
            "FirstName": personnel.first_name,
            "LastName": personnel.last_name,
            "EmailAddress": personnel.email,
            "Company": personnel.company,
            "PersonnelType": personnel.personnel_type or self._credentials.personnel_type_name,
            "AccessLevel": personnel.access_level or "Visitor",
        }
        card = personnel.civ_piv_info
        if card and card.edipi:
            payload["EDIPI"] = card.edipi

        try:
            response = await self._send("POST", self._personnel_url(), payload)
            body = response.json()
        except (AcsIntegrationError, httpx.HTTPError, ValueError) as e:
            logger.error("ccure9000_create_personnel_error", error=str(e))
            return VendorOperationResult(success=False, message=f"Personnel creation failed: {e}")

        personnel_id = None
        if isinstance(body, dict):
            personnel_id = next(
                (body[key] for key in PERSONNEL_ID_KEYS if body.get(key) is not None),
                None,
            )
        if personnel_id is None:
            return VendorOperationResult(
                success=False,
                message="Personnel creation failed: response did not include a personnel id",
            )

        return VendorOperationResult(
            success=True,
            message="Personnel created in Ccure 9000",
            personnel_id=str(personnel_id),
        )

    async def update_personnel(
        self,
        personnel_id: str,
        fields: dict[str, Any],
    ) -> VendorOperationResult:
        """
        Update fields on an existing cardholder record.

        Args:
            personnel_id: Ccure object id
            fields: Vendor field names and values
        """
        logger.info("ccure9000_update_personnel", personnel_id=personnel_id, fields=sorted(fields))

        try:
            await self._send("PUT", self._personnel_url(personnel_id), fields)
        except (AcsIntegrationError, httpx.HTTPError) as e:
            logger.error("ccure9000_update_personnel_error", personnel_id=personnel_id, error=str(e))
            return VendorOperationResult(success=False, message=f"Personnel update failed: {e}")

        return VendorOperationResult(
            success=True,
            message="Personnel updated in Ccure 9000",
            personnel_id=personnel_id,
        )

    async def deactivate_personnel(self, personnel_id: str) -> VendorOperationResult:
        """Disable a cardholder so none of its credentials open doors."""
        logger.info("ccure9000_deactivate_personnel", personnel_id=personnel_id)

        try:
            await self._send("PUT", self._personnel_url(personnel_id), {"Disabled": True})
        except (AcsIntegrationError, httpx.HTTPError) as e:
            logger.error(
                "ccure9000_deactivate_personnel_error",
                personnel_id=personnel_id,
                error=str(e),
            )
            return VendorOperationResult(
                success=False,
                message=f"Personnel deactivation failed: {e}",
            )

        return VendorOperationResult(
            success=True,
            message="Access revoked successfully in Ccure 9000",
            personnel_id=personnel_id,
        )

    async def assign_access_level(
        self,
        personnel_id: str,
        access_level: str,
        facility_id: str | None = None,
    ) -> VendorOperationResult:
        """Attach a clearance to a cardholder."""
        logger.info(
            "ccure9000_assign_access_level",
            personnel_id=personnel_id,
            access_level=access_level,
            facility_id=facility_id,
        )

        payload = {"ClearanceName": access_level, "FacilityID": facility_id}
        try:
            await self._send("POST", self._personnel_url(personnel_id, "Clearances"), payload)
        except (AcsIntegrationError, httpx.HTTPError) as e:
            return VendorOperationResult(
                success=False,
                message=f"Access level assignment failed: {e}",
            )

        return VendorOperationResult(
            success=True,
            message=f"Access level {access_level} assigned",
            personnel_id=personnel_id,
        )

    async def enroll_civ_piv_card(
        self,
        personnel_id: str,
        card: CivPivCardData,
    ) -> VendorOperationResult:
        """Register a CIV/PIV card as a credential of the cardholder."""
        logger.info(
            "ccure9000_enroll_card",
            personnel_id=personnel_id,
            card_type=card.card_type,
            masked_card_number=card.masked_card_number,
        )

        if not card.edipi and not card.card_number:
            return VendorOperationResult(
                success=False,
                message="CIV/PIV card enrollment failed: card has no EDIPI or card number",
            )

        payload = {
            "CardNumber": card.card_number,
            "EDIPI": card.edipi,
            "UPN": card.upn,
            "CardType": card.card_type,
        }
        try:
            await self._send("POST", self._personnel_url(personnel_id, "Credentials"), payload)
        except (AcsIntegrationError, httpx.HTTPError) as e:
            return VendorOperationResult(
                success=False,
                message=f"CIV/PIV card enrollment failed: {e}",
            )

        return VendorOperationResult(
            success=True,
            message="CIV/PIV card enrolled",
            personnel_id=personnel_id,
        )

    async def close(self) -> None:
        await self._transport.close()


# =============================================================================
# Adapter
# =============================================================================


class Ccure9000Adapter(AcsAdapter):
    """
    Adapter composing the Ccure 9000 call chain.

    Only personnel creation can fail a provisioning request. Access-level
    assignment and card enrollment failures are logged as partial
    provisioning and the request still succeeds with the personnel id.
    """

    def __init__(self, client: Ccure9000Client) -> None:
        self._client = client

    @property
    def vendor_name(self) -> str:
        return "Ccure 9000"

    def _report_partial(self, warning: PartialProvisioningWarning) -> None:
        logger.warning(
            "ccure9000_partial_provisioning",
            step=warning.step,
            personnel_id=warning.personnel_id,
            error=warning.message,
        )

    async def _best_effort(
        self,
        step: str,
        personnel_id: str,
        operation: Awaitable[VendorOperationResult],
    ) -> None:
        """Run a step that must not fail provisioning once the personnel record exists."""
        try:
            result = await operation
        except Exception as e:
            self._report_partial(
                PartialProvisioningWarning(step, personnel_id, f"{type(e).__name__}: {e}")
            )
            return
        if not result.success:
            self._report_partial(PartialProvisioningWarning(step, personnel_id, result.message))

    async def provision(
        self,
        visitor: VisitorData,
        facility_id: str,
        access_level: str,
    ) -> AccessProvisioningResult:
        card = visitor.civ_piv_card_info
        logger.info(
            "ccure9000_provisioning",
            visitor_id=visitor.id,
            has_card_info=card is not None,
        )

        created = await self._client.create_personnel(
            PersonnelData.from_visitor(visitor, access_level)
        )
        if not created.success or created.personnel_id is None:
            raise AcsIntegrationError(created.message)

        personnel_id = created.personnel_id

        await self._best_effort(
            "access_level_assignment",
            personnel_id,
            self._client.assign_access_level(personnel_id, access_level, facility_id),
        )
        if card is not None:
            await self._best_effort(
                "civ_piv_enrollment",
                personnel_id,
                self._client.enroll_civ_piv_card(personnel_id, card),
            )

        return AccessProvisioningResult(
            success=True,
            message="Access provisioned successfully in Ccure 9000",
            acs_reference_id=personnel_id,
        )

    async def revoke(
        self,
        visitor: VisitorData,
        acs_reference_id: str | None = None,
    ) -> AccessProvisioningResult:
        if not acs_reference_id:
            raise RevocationPreconditionError()

        logger.info(
            "ccure9000_revocation",
            visitor_id=visitor.id,
            acs_reference_id=acs_reference_id,
        )

        result = await self._client.deactivate_personnel(acs_reference_id)
        return AccessProvisioningResult(
            success=result.success,
            message=result.message,
            error_code=None if result.success else "REVOCATION_ERROR",
        )

    async def test_connection(self) -> ConnectionTestResult:
        return await self._client.test_connection()

    async def close(self) -> None:
        await self._client.close()
