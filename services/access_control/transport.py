"""
ACS Transport
=============

Thin HTTP wrapper shared by the REST-based adapters. It knows nothing about
vendors: it sends JSON, hands back ``httpx.Response`` objects and converts
non-2xx statuses into ``TransportError`` on request.

Version: 0.1.0
"""

from types import TracebackType
from typing import Any

import httpx

from services.access_control.exceptions import TransportError
from shared.config import settings
from shared.logging import get_logger


logger = get_logger(__name__)


def ensure_success(response: httpx.Response) -> httpx.Response:
    """
    Raise ``TransportError`` unless the response is 2xx.

    Args:
        response: Vendor response

    Returns:
        The same response, for chaining
    """
    if not response.is_success:
        raise TransportError(response.status_code, response.reason_phrase)
    return response


class AcsTransport:
    """
    Async HTTP client for vendor calls.

    One instance belongs to one adapter. Cookies persist for the lifetime of
    the instance, which is what session-based vendors rely on.
    """

    def __init__(
        self,
        timeout: float | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        """
        Initialize the transport.

        Args:
            timeout: Request timeout in seconds (default from settings)
            transport: Optional httpx transport, e.g. ``httpx.MockTransport`` in tests
        """
        self._timeout = timeout or settings.acs.request_timeout_seconds
        self._client = httpx.AsyncClient(
            timeout=httpx.Timeout(self._timeout),
            transport=transport,
        )

    async def request(
        self,
        method: str,
        url: str,
        *,
        headers: dict[str, str] | None = None,
        json: Any | None = None,
    ) -> httpx.Response:
        """
        Send one request. No retries are attempted.

        Args:
            method: HTTP method
            url: Absolute URL
            headers: Extra request headers
            json: JSON-serialisable body

        Returns:
            The raw response, whatever its status
        """
        request_headers = {"Accept": "application/json"}
        if json is not None:
            request_headers["Content-Type"] = "application/json"
        request_headers.update(headers or {})

        response = await self._client.request(
            method,
            url,
            headers=request_headers,
            json=json,
        )

        logger.debug(
            "acs_http_request",
            method=method,
            url=url,
            status_code=response.status_code,
        )
        return response

    async def get(self, url: str, **kwargs: Any) -> httpx.Response:
        return await self.request("GET", url, **kwargs)

    async def post(self, url: str, **kwargs: Any) -> httpx.Response:
        return await self.request("POST", url, **kwargs)

    async def put(self, url: str, **kwargs: Any) -> httpx.Response:
        return await self.request("PUT", url, **kwargs)

    async def close(self) -> None:
        """Close the HTTP client."""
        await self._client.aclose()

    async def __aenter__(self) -> "AcsTransport":
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        await self.close()
