"""Bus listener port."""

from typing import Protocol

from bus_tracker.domain.models.bus_position import BusPosition


class BusListener(Protocol):
    """Receives each batch of bus positions for a subscribed route."""

    async def on_buses_updated(self, buses: list[BusPosition]) -> None:
        """Handle a fresh batch of bus positions."""
        ...
