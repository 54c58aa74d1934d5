"""PriceServiceClient: Fetch signed price update payloads from Pyth endpoints.

Uses the price service ``/api/latest_vaas`` route, which returns one
base64-encoded VAA per requested feed:

.. code-block:: text

    GET {endpoint}/api/latest_vaas?ids[]=<feed0>&ids[]=<feed1>
    ["UE5BVQEAAAAD...", "UE5BVQEAAAAD..."]

A shared httpx.AsyncClient is reused for all endpoints.
"""

from __future__ import annotations

import base64
import binascii
import logging
from typing import ClassVar

import httpx

from .errors import EndpointUnavailable

logger = logging.getLogger(__name__)

DEFAULT_ENDPOINT = "https://xc-mainnet.pyth.network"


class PriceServiceClient:
    """Client for the oracle price service.

    :cvar DEFAULT_TIMEOUT: Default HTTP request timeout in seconds.
    :ivar timeout: Request timeout in seconds.
    """

    # Class-level shared HTTP client
    _shared_client: ClassVar[httpx.AsyncClient | None] = None

    DEFAULT_TIMEOUT = 10.0

    def __init__(
        self,
        timeout: float | None = None,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        """Initialize the price service client.

        :param timeout: Request timeout in seconds (default: 10).
        :param client: Optional client overriding the shared one.
        """
        self.timeout = timeout or self.DEFAULT_TIMEOUT
        self._client = client

    @classmethod
    def get_shared_client(cls) -> httpx.AsyncClient:
        """Get or create the shared HTTP client.

        :returns: Shared httpx.AsyncClient instance.
        """
        if cls._shared_client is None or cls._shared_client.is_closed:
            cls._shared_client = httpx.AsyncClient(
                timeout=httpx.Timeout(30.0, connect=10.0),
                limits=httpx.Limits(max_connections=20, max_keepalive_connections=10),
                follow_redirects=True,
            )
        return cls._shared_client

    @classmethod
    async def close_shared_client(cls) -> None:
        """Close the shared HTTP client."""
        if cls._shared_client is not None and not cls._shared_client.is_closed:
            await cls._shared_client.aclose()
            cls._shared_client = None

    @property
    def client(self) -> httpx.AsyncClient:
        return self._client or self.get_shared_client()

    async def fetch_update_data(
        self, feed_ids: list[str], endpoint: str
    ) -> list[bytes]:
        """Fetch update payloads for every requested feed from one endpoint.

        :param feed_ids: Hex feed IDs (with or without 0x prefix).
        :param endpoint: Price service base URL.
        :returns: One binary update per feed, in request order.
        :raises EndpointUnavailable: On network errors, non-2xx responses,
            malformed bodies, or a response missing requested feeds.
        """
        url = f"{endpoint.rstrip('/')}/api/latest_vaas"
        params = [("ids[]", feed_id) for feed_id in feed_ids]

        try:
            response = await self.client.get(url, params=params, timeout=self.timeout)
        except httpx.TimeoutException as e:
            raise EndpointUnavailable(endpoint, f"Request timeout: {e}") from e
        except httpx.RequestError as e:
            raise EndpointUnavailable(endpoint, f"Request failed: {e}") from e

        if not response.is_success:
            logger.debug(
                "HTTP GET %s failed with status %s: %s",
                url,
                response.status_code,
                response.text[:200],
            )
            raise EndpointUnavailable(
                endpoint, f"HTTP {response.status_code}: {response.text[:200]}"
            )

        try:
            vaas = response.json()
            if not isinstance(vaas, list):
                raise TypeError(f"expected a list, got {type(vaas).__name__}")
            update_data = [base64.b64decode(vaa, validate=True) for vaa in vaas]
        except (ValueError, TypeError, binascii.Error) as e:
            raise EndpointUnavailable(endpoint, f"Malformed response: {e}") from e

        if len(update_data) != len(feed_ids):
            raise EndpointUnavailable(
                endpoint,
                f"Returned {len(update_data)} updates for {len(feed_ids)} feeds",
            )
        return update_data
