"""HTTP transport used to reach the token endpoint.

The token service only needs one capability: send a request, get back a
status and a body. Anything satisfying ``Transport`` can stand in for the
network, which is how tests run without one.
"""

from __future__ import annotations

import logging
from typing import Protocol

import httpx

from spotify_oauth.models.errors import TransportError
from spotify_oauth.models.http import HttpRequest, HttpResponse

logger = logging.getLogger(__name__)


class Transport(Protocol):
    """Protocol for sending token endpoint requests.

    Implementations must raise TransportError on DNS, connection or timeout
    failures instead of hanging or leaking library-specific exceptions.
    """

    async def send(self, request: HttpRequest) -> HttpResponse:
        """Send the request and return the raw response."""
        ...

    async def close(self) -> None:
        """Release any held connections."""
        ...


class HttpxTransport:
    """Transport backed by ``httpx.AsyncClient``."""

    def __init__(self, timeout: float = 30.0, client: httpx.AsyncClient | None = None):
        """Initialize the transport.

        Args:
            timeout: HTTP request timeout in seconds
            client: Optional preconfigured client; it is closed with the transport
        """
        self.timeout = timeout
        self._http_client = client or httpx.AsyncClient(timeout=timeout)

    async def send(self, request: HttpRequest) -> HttpResponse:
        try:
            response = await self._http_client.request(
                request.method,
                request.url,
                data=request.data,
                headers=request.headers,
            )
        except httpx.TimeoutException as e:
            raise TransportError(f"Timed out contacting {request.url}: {e}") from e
        except httpx.HTTPError as e:
            raise TransportError(f"HTTP error contacting {request.url}: {e}") from e

        logger.debug(f"{request.method} {request.url} -> {response.status_code}")
        return HttpResponse(
            status_code=response.status_code,
            body=response.text,
            headers=dict(response.headers),
        )

    async def close(self) -> None:
        """Close the HTTP client and clean up resources."""
        await self._http_client.aclose()
