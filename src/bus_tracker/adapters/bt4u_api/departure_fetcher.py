"""BT4U scheduled departure fetcher."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from bus_tracker.adapters.bt4u_api.constants import (
    BT4U_BASE_URL,
    BT4U_DEPARTURES_PATH,
    DEPARTURE_ELEMENT,
    DEPARTURE_NOTES_FIELD,
    DEPARTURE_ROUTE_FIELD,
)
from bus_tracker.adapters.bt4u_api.http_client import Bt4uHttpClient, child_text, iter_elements
from bus_tracker.domain.models.departure import Departure
from bus_tracker.domain.ports.departure_fetcher import DepartureFetcher

if TYPE_CHECKING:
    from aiohttp import ClientSession

    from bus_tracker.adapters.rate_limiter import RateLimiter

logger = logging.getLogger(__name__)


def parse_departures(route_short_name: str, body: str) -> list[Departure]:
    """Parse a GetNextDepartures XML document.

    Entries without a route name are skipped.

    Raises:
        FetchError: If the document is not well-formed XML.
    """
    departures = []
    for element in iter_elements(route_short_name, body, DEPARTURE_ELEMENT):
        route_name = child_text(element, DEPARTURE_ROUTE_FIELD)
        if route_name is None:
            logger.debug(f"Skipping departure without route name on route {route_short_name}")
            continue
        departures.append(
            Departure(route_name=route_name, notes=child_text(element, DEPARTURE_NOTES_FIELD) or "")
        )
    return departures


class Bt4uDepartureFetcher(DepartureFetcher):
    """Fetches upcoming departures of a route at a stop from BT4U."""

    def __init__(
        self,
        session: ClientSession,
        base_url: str = BT4U_BASE_URL,
        timeout_seconds: float = 10.0,
        rate_limiter: RateLimiter | None = None,
    ) -> None:
        self._client = Bt4uHttpClient(session, base_url, timeout_seconds, rate_limiter)

    async def fetch(self, route_short_name: str, stop_code: int) -> list[Departure]:
        """Get the next departures of a route at a stop.

        Raises:
            FetchError: On network errors, unexpected statuses or invalid XML.
        """
        body = await self._client.get_xml(
            BT4U_DEPARTURES_PATH,
            {"routeShortName": route_short_name, "stopCode": str(stop_code)},
            route_short_name,
        )
        departures = parse_departures(route_short_name, body)
        logger.debug(
            f"Fetched {len(departures)} departure(s) for route {route_short_name} "
            f"at stop {stop_code}"
        )
        return departures
