"""BT4U bus position fetcher."""

from __future__ import annotations

import logging
from datetime import datetime
from typing import TYPE_CHECKING

from bus_tracker.adapters.bt4u_api.constants import (
    BT4U_BASE_URL,
    BT4U_BUS_INFO_PATH,
    BT4U_TIME_FORMAT,
    BUS_ELEMENT,
    BUS_LATITUDE_FIELD,
    BUS_LONGITUDE_FIELD,
    BUS_PATTERN_FIELD,
    BUS_ROUTE_FIELD,
    BUS_UPDATED_FIELD,
    BUS_VEHICLE_FIELD,
)
from bus_tracker.adapters.bt4u_api.http_client import Bt4uHttpClient, child_text, iter_elements
from bus_tracker.domain.models.bus_position import BusPosition
from bus_tracker.domain.ports.bus_fetcher import BusFetcher

if TYPE_CHECKING:
    from aiohttp import ClientSession

    from bus_tracker.adapters.rate_limiter import RateLimiter

logger = logging.getLogger(__name__)


def _parse_time(value: str | None) -> datetime | None:
    if value is None:
        return None
    try:
        return datetime.strptime(value, BT4U_TIME_FORMAT)
    except ValueError:
        logger.debug(f"Unparseable bus timestamp: {value}")
        return None


def parse_bus_positions(route_short_name: str, body: str) -> list[BusPosition]:
    """Parse a GetCurrentBusInfo XML document.

    Buses without a vehicle name or coordinates are skipped.

    Raises:
        FetchError: If the document is not well-formed XML.
    """
    positions = []
    for element in iter_elements(route_short_name, body, BUS_ELEMENT):
        vehicle_id = child_text(element, BUS_VEHICLE_FIELD)
        latitude = child_text(element, BUS_LATITUDE_FIELD)
        longitude = child_text(element, BUS_LONGITUDE_FIELD)
        if vehicle_id is None or latitude is None or longitude is None:
            logger.debug(f"Skipping incomplete bus entry on route {route_short_name}")
            continue
        try:
            lat, lon = float(latitude), float(longitude)
        except ValueError:
            logger.debug(f"Skipping bus {vehicle_id} with invalid coordinates")
            continue

        positions.append(
            BusPosition(
                vehicle_id=vehicle_id,
                route_short_name=child_text(element, BUS_ROUTE_FIELD) or route_short_name,
                latitude=lat,
                longitude=lon,
                pattern_name=child_text(element, BUS_PATTERN_FIELD),
                last_updated=_parse_time(child_text(element, BUS_UPDATED_FIELD)),
            )
        )
    return positions


class Bt4uBusFetcher(BusFetcher):
    """Fetches live bus positions from the BT4U XML web service."""

    def __init__(
        self,
        session: ClientSession,
        base_url: str = BT4U_BASE_URL,
        timeout_seconds: float = 10.0,
        rate_limiter: RateLimiter | None = None,
    ) -> None:
        """Initialize the fetcher.

        Args:
            session: aiohttp session used for all requests.
            base_url: URL of the BT4U web service.
            timeout_seconds: Total timeout of one request.
            rate_limiter: Optional limiter shared by all routes.
        """
        self._client = Bt4uHttpClient(session, base_url, timeout_seconds, rate_limiter)

    async def fetch(self, route_short_name: str) -> list[BusPosition]:
        """Get current bus positions for a route.

        Raises:
            FetchError: On network errors, unexpected statuses or invalid XML.
        """
        body = await self._client.get_xml(
            BT4U_BUS_INFO_PATH, {"routeShortName": route_short_name}, route_short_name
        )
        positions = parse_bus_positions(route_short_name, body)
        logger.debug(f"Fetched {len(positions)} bus position(s) for route {route_short_name}")
        return positions
