"""Geofence adapters."""

from bus_tracker.adapters.geofence.geofence_registry import Geofence, GeofenceRegistry

__all__ = ["Geofence", "GeofenceRegistry"]
