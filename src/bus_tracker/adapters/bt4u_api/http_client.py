"""HTTP client and XML helpers shared by the BT4U fetchers."""

from __future__ import annotations

import logging
import xml.etree.ElementTree as ET
from typing import TYPE_CHECKING

import aiohttp

from bus_tracker.adapters.bt4u_api.constants import BT4U_BASE_URL
from bus_tracker.adapters.request_logger import log_request
from bus_tracker.domain.errors import FetchError

if TYPE_CHECKING:
    from collections.abc import Iterator

    from aiohttp import ClientSession

    from bus_tracker.adapters.rate_limiter import RateLimiter

logger = logging.getLogger(__name__)


def local_name(tag: str) -> str:
    """Strip the XML namespace from a tag."""
    return tag.rsplit("}", 1)[-1]


def child_text(element: ET.Element, name: str) -> str | None:
    """Stripped text of the first child called ``name``, or None if missing or empty."""
    for child in element:
        if local_name(child.tag) == name:
            text = (child.text or "").strip()
            return text or None
    return None


def iter_elements(route_short_name: str, body: str, element_name: str) -> Iterator[ET.Element]:
    """Yield every element called ``element_name`` in a BT4U XML document.

    Raises:
        FetchError: If the document is not well-formed XML.
    """
    try:
        root = ET.fromstring(body)
    except ET.ParseError as e:
        raise FetchError(route_short_name, f"Invalid XML: {e}") from e
    return (element for element in root.iter() if local_name(element.tag) == element_name)


class Bt4uHttpClient:
    """Issues GET requests against the BT4U web service."""

    def __init__(
        self,
        session: ClientSession,
        base_url: str = BT4U_BASE_URL,
        timeout_seconds: float = 10.0,
        rate_limiter: RateLimiter | None = None,
    ) -> None:
        """Initialize the client.

        Args:
            session: aiohttp session used for all requests.
            base_url: URL of the BT4U web service.
            timeout_seconds: Total timeout of one request.
            rate_limiter: Optional limiter shared by all fetchers.
        """
        self._session = session
        self._base_url = base_url.rstrip("/")
        self._timeout = aiohttp.ClientTimeout(total=timeout_seconds)
        self._rate_limiter = rate_limiter

    async def get_xml(self, path: str, params: dict[str, str], route_short_name: str) -> str:
        """GET a web service method and return the response body.

        Raises:
            FetchError: On network errors and unexpected statuses.
        """
        url = f"{self._base_url}/{path}"
        if self._rate_limiter is not None:
            async with self._rate_limiter:
                return await self._get(url, params, route_short_name)
        return await self._get(url, params, route_short_name)

    async def _get(self, url: str, params: dict[str, str], route_short_name: str) -> str:
        log_request("GET", url, params)
        try:
            async with self._session.get(url, params=params, timeout=self._timeout) as response:
                body = await response.text()
                if response.status != 200:
                    raise FetchError(
                        route_short_name,
                        f"Unexpected response: {body[:200]}",
                        status_code=response.status,
                    )
        except (aiohttp.ClientError, TimeoutError) as e:
            raise FetchError(route_short_name, str(e) or type(e).__name__) from e
        return body
