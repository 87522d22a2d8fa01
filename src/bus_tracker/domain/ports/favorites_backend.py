"""Remote favorites backend port."""

from typing import Any, Protocol

from bus_tracker.domain.models.session import AuthSession


class ChildEventListener(Protocol):
    """Receives change events for the children of a remote path."""

    async def on_snapshot(self, children: dict[str, Any]) -> None:
        """Handle the full set of children present when listening started."""
        ...

    async def on_child_added(self, key: str, value: Any) -> None:
        """Handle a child that was added."""
        ...

    async def on_child_removed(self, key: str, value: Any) -> None:
        """Handle a child that was removed. ``value`` is the removed value."""
        ...

    async def on_child_changed(self, key: str, value: Any) -> None:
        """Handle a child whose value was replaced."""
        ...


class RemoteFavoritesBackend(Protocol):
    """Port for the realtime cloud store that holds users' favorite stops."""

    async def authenticate(self, provider: str, token: str) -> AuthSession:
        """Exchange an OAuth token for a session.

        Raises:
            AuthError: If the backend rejects the token.
        """
        ...

    def unauthenticate(self) -> None:
        """Drop the current backend session."""
        ...

    async def set_value(self, path: str, value: Any) -> None:
        """Write ``value`` at ``path``."""
        ...

    async def remove_value(self, path: str) -> None:
        """Delete the value at ``path``. Deleting a missing value is a no-op."""
        ...

    def add_child_listener(self, path: str, listener: ChildEventListener) -> None:
        """Start delivering child events of ``path`` to ``listener``."""
        ...

    def remove_child_listener(self, path: str, listener: ChildEventListener) -> None:
        """Stop delivering child events of ``path`` to ``listener``."""
        ...
