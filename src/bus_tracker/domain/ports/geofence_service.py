"""Geofence service port."""

from typing import Protocol

from bus_tracker.domain.models.stop import Stop


class GeofenceService(Protocol):
    """Registers device proximity triggers for stops. Fire-and-forget."""

    def register_geofence(self, stop: Stop) -> None:
        """Register a proximity trigger around the stop."""
        ...

    def unregister_geofence(self, stop: Stop) -> None:
        """Remove the proximity trigger of the stop, if any."""
        ...

    def unregister_all_geofences(self) -> None:
        """Remove every registered proximity trigger."""
        ...
