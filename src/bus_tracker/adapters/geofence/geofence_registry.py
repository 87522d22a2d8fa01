"""In-process registry of stop proximity triggers."""

from __future__ import annotations

import logging
from dataclasses import dataclass

from bus_tracker.domain.models.stop import Stop
from bus_tracker.domain.ports.geofence_service import GeofenceService

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Geofence:
    """A circular proximity trigger around a stop."""

    stop_code: int
    latitude: float
    longitude: float
    radius_meters: float


class GeofenceRegistry(GeofenceService):
    """Keeps one geofence per stop code.

    Registering a stop that already has a geofence replaces it, so repeated
    registrations for the same favorite leave a single trigger.
    """

    def __init__(self, radius_meters: float = 100.0) -> None:
        self._radius_meters = radius_meters
        self._geofences: dict[int, Geofence] = {}

    def register_geofence(self, stop: Stop) -> None:
        location = stop.location
        if location is None:
            logger.warning(f"Stop {stop.code} has no location, skipping geofence")
            return
        if stop.code in self._geofences:
            logger.debug(f"Replacing geofence for stop {stop.code}")
        self._geofences[stop.code] = Geofence(
            stop_code=stop.code,
            latitude=location[0],
            longitude=location[1],
            radius_meters=self._radius_meters,
        )
        logger.info(f"Registered geofence for stop {stop.code} ({stop.name})")

    def unregister_geofence(self, stop: Stop) -> None:
        if self._geofences.pop(stop.code, None) is not None:
            logger.info(f"Unregistered geofence for stop {stop.code}")

    def unregister_all_geofences(self) -> None:
        count = len(self._geofences)
        self._geofences.clear()
        if count:
            logger.info(f"Unregistered {count} geofence(s)")

    def get(self, stop_code: int) -> Geofence | None:
        return self._geofences.get(stop_code)

    @property
    def stop_codes(self) -> set[int]:
        return set(self._geofences)
