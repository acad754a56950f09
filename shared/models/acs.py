"""
Access Control Models
=====================

Models exchanged with the external access-control-system (ACS) integration
layer: tenant ACS configurations, visitor payloads and provisioning results.

Version: 0.1.0
"""

import hashlib
import json
from enum import Enum
from typing import Annotated, Any

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    SecretStr,
    SkipValidation,
    ValidationError,
    field_validator,
    model_validator,
)


class AcsType(str, Enum):
    """Supported access control systems."""

    LENEL = "lenel"
    S2_SECURITY = "s2_security"
    CUSTOM = "custom"
    CCURE9000 = "ccure9000"


class CivPivCardData(BaseModel):
    """CIV/PIV card payload captured at check-in."""

    card_number: str | None = None
    masked_card_number: str | None = None
    edipi: str | None = None
    upn: str | None = None
    certificate_data: Any | None = None
    card_type: str | None = None


class VisitorData(BaseModel):
    """Visitor identity passed by value to the integration layer."""

    id: str
    first_name: str
    last_name: str
    email: str | None = None
    company: str | None = None
    civ_piv_card_info: CivPivCardData | None = None


# =============================================================================
# Credentials (tagged by AcsConfiguration.acs_type)
# =============================================================================


class RestApiCredentials(BaseModel):
    """Bearer credentials for the generic REST integration."""

    api_key: SecretStr | None = None
    token: SecretStr | None = None
    headers: dict[str, str] = Field(default_factory=dict)

    @model_validator(mode="after")
    def require_bearer(self) -> "RestApiCredentials":
        if not self.api_key and not self.token:
            raise ValueError("Custom ACS credentials require an api_key or token")
        return self

    @property
    def bearer_token(self) -> str:
        """API key wins over token when both are configured."""
        secret = self.api_key or self.token
        return secret.get_secret_value() if secret else ""


CCURE9000_REQUIRED_FIELDS = ("base_url", "client_id", "client_name", "user_name", "password")


class Ccure9000Credentials(BaseModel):
    """Login material for a Ccure 9000 web service."""

    base_url: str
    user_name: str
    password: SecretStr
    client_name: str
    client_id: str
    version: str = "3.0"
    personnel_type_name: str = "Visitor"

    @model_validator(mode="before")
    @classmethod
    def check_required(cls, data: Any) -> Any:
        if isinstance(data, dict):
            missing = [name for name in CCURE9000_REQUIRED_FIELDS if not data.get(name)]
            if missing:
                raise ValueError(
                    f"Missing required Ccure 9000 credentials: {', '.join(missing)}"
                )
            # Stored configurations may carry explicit nulls for the optional fields
            data = {k: v for k, v in data.items() if v is not None}
        return data

    @field_validator("base_url")
    @classmethod
    def trailing_slash(cls, v: str) -> str:
        return v if v.endswith("/") else f"{v}/"


class SimulatedCredentials(BaseModel):
    """Free-form credentials for vendors that are only simulated."""

    model_config = ConfigDict(extra="allow")


AcsCredentials = RestApiCredentials | Ccure9000Credentials | SimulatedCredentials

CREDENTIAL_MODELS: dict[AcsType, type[BaseModel]] = {
    AcsType.CUSTOM: RestApiCredentials,
    AcsType.CCURE9000: Ccure9000Credentials,
    AcsType.LENEL: SimulatedCredentials,
    AcsType.S2_SECURITY: SimulatedCredentials,
}


def _reveal(value: Any) -> Any:
    if isinstance(value, SecretStr):
        return value.get_secret_value()
    return str(value)


class AcsConfiguration(BaseModel):
    """
    A tenant's connection to one external ACS.

    ``acs_type`` stays a plain string so that configurations naming an
    unknown vendor still load; the dispatcher reports them as unsupported.
    Credentials are parsed into the model matching ``acs_type``.
    """

    id: str
    tenant_id: str
    name: str
    acs_type: str
    api_endpoint: str = ""
    credentials: Annotated[AcsCredentials | dict[str, Any], SkipValidation] = Field(
        default_factory=dict
    )
    is_active: bool = True

    @model_validator(mode="before")
    @classmethod
    def type_credentials(cls, data: Any) -> Any:
        if not isinstance(data, dict):
            return data
        try:
            model = CREDENTIAL_MODELS.get(AcsType(data.get("acs_type")))
        except ValueError:
            model = None
        raw = data.get("credentials")
        if isinstance(raw, BaseModel):
            return data
        if model is not None:
            try:
                credentials = model.model_validate(raw or {})
            except ValidationError as e:
                # Re-raised as ValueError so the error context stays JSON friendly
                reason = "; ".join(err["msg"] for err in e.errors())
                raise ValueError(f"Invalid {data['acs_type']} credentials: {reason}") from e
            return {**data, "credentials": credentials}
        return {**data, "credentials": dict(raw) if isinstance(raw, dict) else {}}

    @property
    def fingerprint(self) -> str:
        """Identity of this configuration revision, secrets included."""
        creds = self.credentials
        payload = {
            "id": self.id,
            "acs_type": self.acs_type,
            "api_endpoint": self.api_endpoint,
            "credentials": creds.model_dump() if isinstance(creds, BaseModel) else creds,
        }
        encoded = json.dumps(payload, sort_keys=True, default=_reveal)
        return hashlib.sha256(encoded.encode()).hexdigest()


# =============================================================================
# Results
# =============================================================================


class AccessProvisioningResult(BaseModel):
    """Uniform outcome of a provision or revoke call."""

    success: bool
    message: str = Field(..., min_length=1)
    acs_reference_id: str | None = None
    error_code: str | None = None


class ConnectionTestResult(BaseModel):
    """Outcome of a vendor health check."""

    success: bool
    message: str = Field(..., min_length=1)


class ProvisioningStatus(str, Enum):
    """Aggregate status after provisioning across several systems."""

    PROVISIONED = "provisioned"
    FAILED = "failed"


class ProvisioningOutcome(AccessProvisioningResult):
    """Provisioning result annotated with the configuration it came from."""

    acs_configuration_id: str
    acs_name: str
    acs_type: str


class ProvisioningSummary(BaseModel):
    """Result of provisioning one visitor in every configured system."""

    overall_success: bool
    status: ProvisioningStatus
    results: list[ProvisioningOutcome] = Field(default_factory=list)
