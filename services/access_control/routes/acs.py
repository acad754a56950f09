"""
ACS API Endpoints.

Provisioning, revocation and connection tests against tenant access control
systems. Visitors and configurations are passed in by the caller; this
service persists neither.
"""

from __future__ import annotations

from typing import Annotated

from fastapi import APIRouter, Depends, HTTPException, status
from pydantic import BaseModel, Field

from services.access_control.dispatcher import AcsDispatcher, get_dispatcher
from shared.logging import bind_context, get_logger
from shared.models import (
    AccessProvisioningResult,
    AcsConfiguration,
    ConnectionTestResult,
    ProvisioningSummary,
    VisitorData,
)


logger = get_logger(__name__)

router = APIRouter(prefix="/acs", tags=["acs"])

Dispatcher = Annotated[AcsDispatcher, Depends(get_dispatcher)]


class ProvisionRequest(BaseModel):
    """Provision one visitor in the tenant's access control systems."""

    visitor: VisitorData
    facility_id: str
    configurations: list[AcsConfiguration] = Field(default_factory=list)
    acs_configuration_id: str | None = Field(
        None, description="Restrict provisioning to this configuration"
    )
    access_level: str | None = None


class RevokeRequest(BaseModel):
    """Revoke one visitor's access in a single system."""

    visitor: VisitorData
    configuration: AcsConfiguration
    acs_reference_id: str | None = None


@router.post(
    "/provision",
    response_model=ProvisioningSummary,
    summary="Provision visitor access",
)
async def provision_access(request: ProvisionRequest, dispatcher: Dispatcher) -> ProvisioningSummary:
    """
    Provision access in every active configuration, or in the one selected
    by ``acs_configuration_id``.
    """
    configurations = request.configurations
    if request.acs_configuration_id:
        configurations = [c for c in configurations if c.id == request.acs_configuration_id]
        if not configurations:
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND,
                detail={"error": "ACS configuration not found", "error_code": "ACS_CONFIG_NOT_FOUND"},
            )

    if not any(c.is_active for c in configurations):
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail={"error": "No active ACS configurations found", "error_code": "NO_ACS_CONFIG"},
        )

    bind_context(visitor_id=request.visitor.id)
    return await dispatcher.provision_across(
        request.visitor,
        configurations,
        request.facility_id,
        request.access_level,
    )


@router.post(
    "/revoke",
    response_model=AccessProvisioningResult,
    summary="Revoke visitor access",
)
async def revoke_access(request: RevokeRequest, dispatcher: Dispatcher) -> AccessProvisioningResult:
    bind_context(visitor_id=request.visitor.id, tenant_id=request.configuration.tenant_id)
    return await dispatcher.revoke_access(
        request.visitor,
        request.configuration,
        request.acs_reference_id,
    )


@router.post(
    "/test-connection",
    response_model=ConnectionTestResult,
    summary="Test an ACS configuration",
)
async def test_connection(config: AcsConfiguration, dispatcher: Dispatcher) -> ConnectionTestResult:
    bind_context(tenant_id=config.tenant_id)
    result = await dispatcher.test_connection(config)
    logger.info("acs_connection_tested", acs_configuration_id=config.id, success=result.success)
    return result
