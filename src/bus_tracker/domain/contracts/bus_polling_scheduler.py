"""Protocol for live bus polling."""

from typing import Protocol

from bus_tracker.domain.ports.bus_listener import BusListener


class BusPollingSchedulerProtocol(Protocol):
    """Protocol for polling bus positions and fanning them out to listeners."""

    async def subscribe(self, route_short_name: str, listener: BusListener) -> None:
        """Register a listener for a route, starting its poll if needed.

        Args:
            route_short_name: The route to observe.
            listener: Receives every successful batch for the route.
        """
        ...

    async def unsubscribe(self, route_short_name: str, listener: BusListener) -> None:
        """Remove a listener, stopping the route's poll when none remain.

        Args:
            route_short_name: The observed route.
            listener: The listener to remove.
        """
        ...

    async def shutdown_all(self) -> None:
        """Stop every poll and drop all listeners."""
        ...
