"""Departure fetcher port."""

from typing import Protocol

from bus_tracker.domain.models.departure import Departure


class DepartureFetcher(Protocol):
    """Source of upcoming departures per route and stop."""

    async def fetch(self, route_short_name: str, stop_code: int) -> list[Departure]:
        """Get the next departures of a route at a stop.

        Raises:
            FetchError: If the departures cannot be fetched or parsed.
        """
        ...
