"""Bus listener that writes each batch to the log."""

import logging

from bus_tracker.domain.models.bus_position import BusPosition
from bus_tracker.domain.ports.bus_listener import BusListener

logger = logging.getLogger(__name__)


def format_bus(bus: BusPosition) -> str:
    """One-line description of a bus position."""
    route = bus.route_short_name
    if bus.pattern_name:
        route = f"{route} ({bus.pattern_name})"
    return f"Route {route} bus {bus.vehicle_id}: {bus.latitude:.5f}, {bus.longitude:.5f}"


class LoggingBusListener(BusListener):
    """Logs the bus positions of one route."""

    def __init__(self, route_short_name: str) -> None:
        self.route_short_name = route_short_name

    async def on_buses_updated(self, buses: list[BusPosition]) -> None:
        if not buses:
            logger.info(f"Route {self.route_short_name}: no buses reporting")
            return
        for bus in buses:
            logger.info(format_bus(bus))
