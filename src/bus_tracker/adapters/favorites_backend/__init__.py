"""Favorites backend adapters."""

from bus_tracker.adapters.favorites_backend.in_memory_backend import InMemoryFavoritesBackend

__all__ = ["InMemoryFavoritesBackend"]
