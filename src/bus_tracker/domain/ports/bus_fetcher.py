"""Bus fetcher port."""

from typing import Protocol

from bus_tracker.domain.models.bus_position import BusPosition


class BusFetcher(Protocol):
    """Port for retrieving current bus positions of a route."""

    async def fetch(self, route_short_name: str) -> list[BusPosition]:
        """Get current bus positions for a route.

        Raises:
            FetchError: On network or parse problems.
        """
        ...
