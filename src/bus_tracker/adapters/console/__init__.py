"""Console adapters."""

from bus_tracker.adapters.console.bus_logger import LoggingBusListener

__all__ = ["LoggingBusListener"]
