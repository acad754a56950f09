"""
Test Configuration
==================

Pytest fixtures for the access control integration tests.
"""

import asyncio
import os
from collections.abc import AsyncGenerator, Callable
from dataclasses import dataclass, field
from datetime import UTC, datetime, timedelta
from typing import Any

import httpx
import pytest
import pytest_asyncio
import structlog

# Set test environment
os.environ["ENVIRONMENT"] = "testing"
os.environ["ACS_REUSE_SESSIONS"] = "false"

from services.access_control.adapters.simulated import SimulationPolicy  # noqa: E402
from services.access_control.dispatcher import (  # noqa: E402
    AcsDispatcher,
    reset_dispatcher,
    set_dispatcher,
)
from services.access_control.registry import AdapterContext  # noqa: E402
from services.access_control.transport import AcsTransport  # noqa: E402
from shared.models import AcsConfiguration, CivPivCardData, VisitorData  # noqa: E402


CCURE_BASE_URL = "https://ccure.example.test/victorwebservice/"
CUSTOM_ENDPOINT = "https://acs.example.test/api"


class FakeClock:
    """Manually advanced clock."""

    def __init__(self, start: datetime | None = None) -> None:
        self.now = start or datetime(2025, 7, 1, 9, 0, tzinfo=UTC)

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs: float) -> None:
        self.now += timedelta(**kwargs)


@dataclass
class HeldRoute:
    """Gate on one vendor route: ``reached`` fires on arrival, ``release`` lets it answer."""

    reached: asyncio.Event = field(default_factory=asyncio.Event)
    release: asyncio.Event = field(default_factory=asyncio.Event)


class VendorStub:
    """
    Scripted vendor behind ``httpx.MockTransport``.

    Responses are registered per (method, path). When several are queued for
    one route they are served in order and the last one repeats.
    """

    def __init__(self) -> None:
        self._routes: dict[tuple[str, str], list[Callable[[httpx.Request], httpx.Response]]] = {}
        self._served: dict[tuple[str, str], int] = {}
        self._held: dict[tuple[str, str], HeldRoute] = {}
        self.requests: list[httpx.Request] = []

    def on(
        self,
        method: str,
        path: str,
        status_code: int = 200,
        *,
        json: Any = None,
        text: str | None = None,
    ) -> None:
        def build(request: httpx.Request) -> httpx.Response:
            if text is not None:
                return httpx.Response(status_code, text=text)
            if json is not None:
                return httpx.Response(status_code, json=json)
            return httpx.Response(status_code)

        self._routes.setdefault((method, path), []).append(build)

    def fail(self, method: str, path: str, exc: Exception) -> None:
        def build(request: httpx.Request) -> httpx.Response:
            raise exc

        self._routes.setdefault((method, path), []).append(build)

    def hold(self, method: str, path: str) -> HeldRoute:
        """Delay answers on a route until the test releases them."""
        held = HeldRoute()
        self._held[(method, path)] = held
        return held

    async def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        key = (request.method, request.url.path)
        held = self._held.get(key)
        if held is not None:
            held.reached.set()
            await held.release.wait()
        builders = self._routes.get(key)
        if not builders:
            return httpx.Response(404, text="no route")
        index = min(self._served.get(key, 0), len(builders) - 1)
        self._served[key] = self._served.get(key, 0) + 1
        return builders[index](request)

    def transport(self) -> AcsTransport:
        return AcsTransport(transport=httpx.MockTransport(self.handler))

    def calls(self, method: str | None = None, path: str | None = None) -> list[httpx.Request]:
        return [
            r
            for r in self.requests
            if (method is None or r.method == method) and (path is None or r.url.path == path)
        ]


@pytest.fixture
def vendor() -> VendorStub:
    """Fresh vendor stub for each test."""
    return VendorStub()


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def adapter_context(vendor: VendorStub, clock: FakeClock) -> AdapterContext:
    """Adapter collaborators wired to the vendor stub, simulation enabled."""
    return AdapterContext(
        simulation=SimulationPolicy(simulate=True),
        transport_factory=vendor.transport,
        clock=clock,
    )


@pytest.fixture
def dispatcher(adapter_context: AdapterContext) -> AcsDispatcher:
    return AcsDispatcher(context=adapter_context, reuse_sessions=False)


@pytest.fixture
def visitor() -> VisitorData:
    """Visitor without a CIV/PIV card."""
    return VisitorData(
        id="visitor-001",
        first_name="Dana",
        last_name="Reyes",
        email="dana.reyes@example.com",
        company="Acme Logistics",
    )


@pytest.fixture
def card_visitor(visitor: VisitorData) -> VisitorData:
    """Visitor who presented a CIV/PIV card."""
    return visitor.model_copy(
        update={
            "civ_piv_card_info": CivPivCardData(
                card_number="8000123456",
                masked_card_number="******3456",
                edipi="1234567890",
                upn="1234567890@mil",
                card_type="PIV",
            )
        }
    )


def make_config(acs_type: str, **overrides: Any) -> AcsConfiguration:
    """Build a configuration of the given type with working credentials."""
    credentials: dict[str, Any] = {}
    api_endpoint = ""
    if acs_type == "custom":
        api_endpoint = CUSTOM_ENDPOINT
        credentials = {"api_key": "key-123", "headers": {"X-Tenant": "tenant-1"}}
    elif acs_type == "ccure9000":
        credentials = {
            "base_url": CCURE_BASE_URL.rstrip("/"),
            "user_name": "svc-vms",
            "password": "s3cret-pass",
            "client_name": "VMS",
            "client_id": "client-42",
        }

    data: dict[str, Any] = {
        "id": f"cfg-{acs_type}",
        "tenant_id": "tenant-1",
        "name": f"{acs_type} main",
        "acs_type": acs_type,
        "api_endpoint": api_endpoint,
        "credentials": credentials,
        "is_active": True,
    }
    data.update(overrides)
    return AcsConfiguration.model_validate(data)


@pytest.fixture
def custom_config() -> AcsConfiguration:
    return make_config("custom")


@pytest.fixture
def ccure_config() -> AcsConfiguration:
    return make_config("ccure9000")


def ccure_path(suffix: str) -> str:
    return f"/victorwebservice/{suffix}"


@pytest.fixture
def ccure_vendor(vendor: VendorStub) -> VendorStub:
    """Vendor stub answering a full successful Ccure 9000 provisioning chain."""
    vendor.on("POST", ccure_path("api/authenticate/Login"), text="true")
    vendor.on("POST", ccure_path("api/Personnel"), 201, json={"ObjectID": 4242})
    vendor.on("POST", ccure_path("api/Personnel/4242/Clearances"), 200, json={})
    vendor.on("POST", ccure_path("api/Personnel/4242/Credentials"), 200, json={})
    vendor.on("PUT", ccure_path("api/Personnel/4242"), 200, json={})
    return vendor


@pytest_asyncio.fixture
async def api_client(dispatcher: AcsDispatcher) -> AsyncGenerator[httpx.AsyncClient, None]:
    """Create test client for the access control service."""
    from services.access_control.main import app

    # Importing the app configures logging with cached loggers; tests rely on
    # structlog.testing.capture_logs, which needs the uncached defaults
    structlog.reset_defaults()

    set_dispatcher(dispatcher)
    async with httpx.AsyncClient(
        transport=httpx.ASGITransport(app=app),
        base_url="http://test",
    ) as client:
        yield client
    reset_dispatcher()


@pytest.fixture
def config_factory() -> Callable[..., AcsConfiguration]:
    """Factory for configurations of any ACS type."""
    return make_config
