"""Protocol for reacting to session changes."""

from typing import Protocol

from bus_tracker.domain.models.session import AuthSession


class SessionObserverProtocol(Protocol):
    """Notified when an authenticated session starts or ends."""

    async def on_session_started(self, session: AuthSession) -> None:
        """Handle a freshly authenticated session.

        Args:
            session: The authenticated identity.
        """
        ...

    async def on_session_ended(self) -> None:
        """Handle logout."""
        ...
