"""Protocol for authentication completion callbacks."""

from typing import Protocol

from bus_tracker.domain.errors import AuthError
from bus_tracker.domain.models.session import AuthSession


class AuthResultHandlerProtocol(Protocol):
    """Caller-supplied completion handler for one authentication attempt."""

    async def on_authenticated(self, session: AuthSession) -> None:
        """Called after the session became authenticated."""
        ...

    async def on_authentication_error(self, error: AuthError) -> None:
        """Called after the authentication attempt failed."""
        ...
