"""In-process realtime store standing in for the cloud favorites backend."""

from __future__ import annotations

import asyncio
import copy
import logging
from typing import TYPE_CHECKING, Any

from bus_tracker.domain.errors import AuthError
from bus_tracker.domain.models.session import AuthErrorCode
from bus_tracker.domain.ports.favorites_backend import RemoteFavoritesBackend

if TYPE_CHECKING:
    from bus_tracker.domain.models.session import AuthSession
    from bus_tracker.domain.ports.favorites_backend import ChildEventListener

logger = logging.getLogger(__name__)

# (path, listener, event name, args)
_Event = tuple[str, "ChildEventListener", str, tuple[Any, ...]]


def _split(path: str) -> tuple[str, str]:
    parent, _, key = path.strip("/").rpartition("/")
    if not key:
        raise ValueError(f"Invalid value path: {path!r}")
    return parent, key


class InMemoryFavoritesBackend(RemoteFavoritesBackend):
    """Realtime key-value store kept in memory.

    Values live under slash-separated paths. Child events are queued and
    delivered one at a time by a single dispatcher task, so listeners see them
    asynchronously and in write order, like events arriving on the
    connection of a hosted realtime database.
    """

    def __init__(self, auth_delay_seconds: float = 0.0) -> None:
        """Initialize an empty store.

        Args:
            auth_delay_seconds: Simulated latency of the token exchange.
        """
        self._auth_delay_seconds = auth_delay_seconds
        self._children: dict[str, dict[str, Any]] = {}
        self._sessions: dict[str, AuthSession] = {}
        self._rejections: dict[str, AuthErrorCode] = {}
        self._listeners: dict[str, list[ChildEventListener]] = {}
        self._session: AuthSession | None = None
        self._events: asyncio.Queue[_Event] | None = None
        self._dispatcher: asyncio.Task[None] | None = None

    def register_token(self, token: str, session: AuthSession) -> None:
        """Accept ``token`` as a login for ``session``."""
        self._sessions[token] = session
        self._rejections.pop(token, None)

    def reject_token(self, token: str, code: AuthErrorCode) -> None:
        """Make logins with ``token`` fail with ``code``."""
        self._rejections[token] = code
        self._sessions.pop(token, None)

    @property
    def current_session(self) -> AuthSession | None:
        return self._session

    async def authenticate(self, provider: str, token: str) -> AuthSession:
        if self._auth_delay_seconds:
            await asyncio.sleep(self._auth_delay_seconds)
        if token in self._rejections:
            raise AuthError(self._rejections[token], f"{provider} token rejected")
        session = self._sessions.get(token)
        if session is None:
            raise AuthError(AuthErrorCode.INVALID_TOKEN, f"Unknown {provider} token")
        self._session = session
        return session

    def unauthenticate(self) -> None:
        self._session = None

    def get_value(self, path: str) -> Any:
        """Current value at ``path``, or None."""
        parent, key = _split(path)
        return copy.deepcopy(self._children.get(parent, {}).get(key))

    def get_children(self, path: str) -> dict[str, Any]:
        """Copy of all children of ``path``."""
        return copy.deepcopy(self._children.get(path.strip("/"), {}))

    async def set_value(self, path: str, value: Any) -> None:
        parent, key = _split(path)
        children = self._children.setdefault(parent, {})
        event = "on_child_changed" if key in children else "on_child_added"
        children[key] = copy.deepcopy(value)
        self._publish(parent, event, key, value)

    async def remove_value(self, path: str) -> None:
        parent, key = _split(path)
        children = self._children.get(parent, {})
        if key not in children:
            return
        value = children.pop(key)
        if not children:
            del self._children[parent]
        self._publish(parent, "on_child_removed", key, value)

    def add_child_listener(self, path: str, listener: ChildEventListener) -> None:
        path = path.strip("/")
        self._listeners.setdefault(path, []).append(listener)
        self._enqueue((path, listener, "on_snapshot", (self.get_children(path),)))

    def remove_child_listener(self, path: str, listener: ChildEventListener) -> None:
        listeners = self._listeners.get(path.strip("/"), [])
        if listener in listeners:
            listeners.remove(listener)

    async def drain(self) -> None:
        """Wait until every queued event has been delivered."""
        if self._events is not None:
            await self._events.join()

    async def close(self) -> None:
        """Stop delivering events."""
        if self._dispatcher is not None and not self._dispatcher.done():
            self._dispatcher.cancel()
            try:
                await self._dispatcher
            except asyncio.CancelledError:
                pass
        self._dispatcher = None
        self._events = None

    def _publish(self, parent: str, event: str, key: str, value: Any) -> None:
        for listener in list(self._listeners.get(parent, [])):
            self._enqueue((parent, listener, event, (key, copy.deepcopy(value))))

    def _enqueue(self, item: _Event) -> None:
        if self._events is None:
            self._events = asyncio.Queue()
        if self._dispatcher is None or self._dispatcher.done():
            self._dispatcher = asyncio.create_task(self._dispatch_loop(self._events))
        self._events.put_nowait(item)

    async def _dispatch_loop(self, events: asyncio.Queue[_Event]) -> None:
        while True:
            path, listener, event, args = await events.get()
            try:
                # Listeners removed after the event was queued no longer receive it
                if listener in self._listeners.get(path, []):
                    await getattr(listener, event)(*args)
            except Exception as e:
                logger.error(f"Child listener failed handling {event} at {path}: {e}", exc_info=True)
            finally:
                events.task_done()
