"""BT4U transit feed adapters."""

from bus_tracker.adapters.bt4u_api.bus_fetcher import Bt4uBusFetcher, parse_bus_positions
from bus_tracker.adapters.bt4u_api.departure_fetcher import Bt4uDepartureFetcher, parse_departures

__all__ = ["Bt4uBusFetcher", "Bt4uDepartureFetcher", "parse_bus_positions", "parse_departures"]
