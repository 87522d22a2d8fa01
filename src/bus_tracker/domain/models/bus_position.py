"""Bus position domain model."""

from dataclasses import dataclass
from datetime import datetime


@dataclass(frozen=True)
class BusPosition:
    """Point-in-time location of a bus on a route."""

    vehicle_id: str
    route_short_name: str
    latitude: float
    longitude: float
    pattern_name: str | None = None
    last_updated: datetime | None = None
