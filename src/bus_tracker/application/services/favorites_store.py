"""Favorite stops of the signed-in user, synced with the remote backend."""

from __future__ import annotations

import asyncio
import logging
from dataclasses import asdict, replace
from typing import TYPE_CHECKING, Any

from pydantic import TypeAdapter, ValidationError

from bus_tracker.domain.errors import UnauthenticatedOperationError
from bus_tracker.domain.models.stop import Stop

if TYPE_CHECKING:
    from collections.abc import Iterable

    from bus_tracker.application.services.session_gate import SessionGate
    from bus_tracker.domain.models.session import AuthSession
    from bus_tracker.domain.ports.favorites_backend import RemoteFavoritesBackend
    from bus_tracker.domain.ports.geofence_service import GeofenceService

logger = logging.getLogger(__name__)

FAVORITE_STOPS_PATH = "favorite-stops"

_stop_adapter = TypeAdapter(Stop)


def favorites_path(uid: str) -> str:
    """Remote path holding the favorite stops of a user."""
    return f"{uid}/{FAVORITE_STOPS_PATH}"


def stop_to_payload(stop: Stop) -> dict[str, Any]:
    """Serialize a stop for the remote store."""
    return asdict(stop)


def stop_from_payload(value: Any) -> Stop:
    """Parse a stop received from the remote store.

    Raises:
        ValidationError: If the payload is not a valid stop.
    """
    return _stop_adapter.validate_python(value)


class FavoritesStore:
    """In-memory favorite set reconciled with remote child events.

    Local mutations are applied optimistically before the remote write; the
    echoed remote event re-asserts the same state. Remote events are applied
    in receipt order and each one drives the matching geofence change.
    """

    def __init__(
        self,
        session_gate: SessionGate,
        backend: RemoteFavoritesBackend,
        geofence_service: GeofenceService,
    ) -> None:
        """Initialize the store and register it for session changes.

        Args:
            session_gate: Gate deciding whether a session is authenticated.
            backend: Remote store of favorite stops.
            geofence_service: Receives geofence registrations for favorites.
        """
        self._session_gate = session_gate
        self._backend = backend
        self._geofence_service = geofence_service
        self._favorites: set[Stop] = set()
        self._lock = asyncio.Lock()
        self._listening_path: str | None = None
        session_gate.add_observer(self)

    def is_favorited(self, stop: Stop) -> bool:
        """Whether the stop is a favorite of the signed-in user."""
        # Unlocked read; a result that is one event behind is acceptable
        return stop in self._favorites

    def favorites(self) -> list[Stop]:
        """Copies of the favorite stops, sorted by code."""
        return sorted(
            (replace(stop, favorited=True) for stop in frozenset(self._favorites)),
            key=lambda stop: stop.code,
        )

    def mark_favorites(self, stops: Iterable[Stop]) -> list[Stop]:
        """Copies of ``stops`` with their favorited flag set from the favorite set."""
        return [replace(stop, favorited=self.is_favorited(stop)) for stop in stops]

    async def add_favorite(self, stop: Stop) -> None:
        """Mark a stop as favorite.

        Raises:
            UnauthenticatedOperationError: If no session is authenticated.
        """
        session = await self._require_session("add favorite")
        async with self._lock:
            previous = self._find(stop)
            if previous is not None:
                logger.debug(f"Stop {stop.code} is already a favorite")
            self._favorites.add(stop)
        try:
            await self._backend.set_value(
                self._stop_path(session, stop), stop_to_payload(replace(stop, favorited=True))
            )
        except Exception as e:
            logger.error(f"Failed to save favorite stop {stop.code}: {e}")
            await self._restore(stop, previous)
            raise

    async def remove_favorite(self, stop: Stop) -> None:
        """Unmark a favorite stop.

        Raises:
            UnauthenticatedOperationError: If no session is authenticated.
        """
        session = await self._require_session("remove favorite")
        async with self._lock:
            previous = self._find(stop)
            self._favorites.discard(stop)
        try:
            await self._backend.remove_value(self._stop_path(session, stop))
        except Exception as e:
            logger.error(f"Failed to delete favorite stop {stop.code}: {e}")
            await self._restore(stop, previous)
            raise

    async def on_session_started(self, session: AuthSession) -> None:
        """Listen to the user's favorites path."""
        path = favorites_path(session.uid)
        if self._listening_path is not None:
            self._backend.remove_child_listener(self._listening_path, self)
        self._listening_path = path
        self._backend.add_child_listener(path, self)
        logger.info(f"Listening for favorite stops at {path}")

    async def on_session_ended(self) -> None:
        """Stop listening and forget all favorites and their geofences."""
        if self._listening_path is not None:
            self._backend.remove_child_listener(self._listening_path, self)
            self._listening_path = None
        async with self._lock:
            self._favorites.clear()
            self._geofence_service.unregister_all_geofences()
        logger.info("Cleared favorite stops")

    async def on_snapshot(self, children: dict[str, Any]) -> None:
        stops = []
        for key, value in children.items():
            stop = self._parse(key, value)
            if stop is not None:
                stops.append(stop)

        async with self._lock:
            self._favorites.clear()
            self._geofence_service.unregister_all_geofences()
            for stop in stops:
                self._favorites.add(stop)
                self._geofence_service.register_geofence(stop)
        logger.info(f"Loaded {len(stops)} favorite stop(s)")

    async def on_child_added(self, key: str, value: Any) -> None:
        stop = self._parse(key, value)
        if stop is None:
            return
        logger.info(f"Adding stop to favorites: {stop.code} {stop.name}")
        async with self._lock:
            # Replace so the remote attributes win over an optimistic copy
            self._favorites.discard(stop)
            self._favorites.add(stop)
            self._geofence_service.register_geofence(stop)

    async def on_child_removed(self, key: str, value: Any) -> None:
        stop = self._parse(key, value)
        if stop is None:
            return
        logger.info(f"Removing stop from favorites: {stop.code} {stop.name}")
        async with self._lock:
            self._favorites.discard(stop)
            self._geofence_service.unregister_geofence(stop)

    async def on_child_changed(self, key: str, value: Any) -> None:
        pass

    async def _require_session(self, operation: str) -> AuthSession:
        if not await self._session_gate.is_authenticated():
            raise UnauthenticatedOperationError(operation)
        session = self._session_gate.session
        if session is None:
            raise UnauthenticatedOperationError(operation)
        return session

    def _find(self, stop: Stop) -> Stop | None:
        """The stored stop equal to ``stop``. Caller must hold the lock."""
        for favorite in self._favorites:
            if favorite == stop:
                return favorite
        return None

    async def _restore(self, stop: Stop, previous: Stop | None) -> None:
        """Undo an optimistic change whose remote write failed."""
        async with self._lock:
            self._favorites.discard(stop)
            if previous is not None:
                self._favorites.add(previous)

    @staticmethod
    def _stop_path(session: AuthSession, stop: Stop) -> str:
        return f"{favorites_path(session.uid)}/{stop.code}"

    @staticmethod
    def _parse(key: str, value: Any) -> Stop | None:
        try:
            return stop_from_payload(value)
        except ValidationError as e:
            logger.error(f"Dropping malformed favorite stop event for key {key}: {e}")
            return None
