"""Session gate coordinating the asynchronous authentication handshake."""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable, Callable, Coroutine
from typing import TYPE_CHECKING, Any

from bus_tracker.domain.errors import AuthError
from bus_tracker.domain.models.session import AuthErrorCode, SessionState
from bus_tracker.domain.ports.credential_store import OAUTH_TOKEN_KEY, USER_EMAIL_KEY

if TYPE_CHECKING:
    from bus_tracker.domain.contracts.auth_result_handler import AuthResultHandlerProtocol
    from bus_tracker.domain.contracts.session_observer import SessionObserverProtocol
    from bus_tracker.domain.models.session import AuthSession
    from bus_tracker.domain.ports.credential_store import CredentialStore
    from bus_tracker.domain.ports.favorites_backend import RemoteFavoritesBackend
    from bus_tracker.domain.ports.token_provider import TokenProvider

logger = logging.getLogger(__name__)

AUTH_PROVIDER = "google"

# Upper bound for is_authenticated() while a login is in progress
AUTH_WAIT_TIMEOUT_SECONDS = 0.5


class SessionGate:
    """Owns the session state machine.

    ``UNAUTHENTICATED -> AUTHENTICATING -> AUTHENTICATED``, back to
    ``UNAUTHENTICATED`` on failure or logout. State changes are published
    through an ``asyncio.Condition`` so that ``is_authenticated()`` can wait
    briefly for a login that is about to complete.
    """

    def __init__(
        self,
        backend: RemoteFavoritesBackend,
        credential_store: CredentialStore,
        token_provider: TokenProvider | None = None,
    ) -> None:
        """Initialize the gate.

        Args:
            backend: Remote backend performing the token exchange.
            credential_store: Persists the token and email for resumption.
            token_provider: Optional source of fresh tokens after a credential error.
        """
        self._backend = backend
        self._credential_store = credential_store
        self._token_provider = token_provider
        self._state = SessionState.UNAUTHENTICATED
        self._session: AuthSession | None = None
        self._condition = asyncio.Condition()
        self._observers: list[SessionObserverProtocol] = []
        self._tasks: set[asyncio.Task[None]] = set()

    @property
    def state(self) -> SessionState:
        return self._state

    @property
    def session(self) -> AuthSession | None:
        """The authenticated session, or None."""
        return self._session if self._state is SessionState.AUTHENTICATED else None

    @property
    def user_email(self) -> str | None:
        if self.session is None:
            return None
        return self.session.email or self._credential_store.get(USER_EMAIL_KEY)

    @property
    def display_name(self) -> str | None:
        return self.session.display_name if self.session else None

    @property
    def profile_image_url(self) -> str | None:
        return self.session.profile_image_url if self.session else None

    def add_observer(self, observer: SessionObserverProtocol) -> None:
        """Register an observer for session start and end."""
        self._observers.append(observer)

    async def is_authenticated(self) -> bool:
        """Whether a session is authenticated.

        While a login is in progress this waits up to
        ``AUTH_WAIT_TIMEOUT_SECONDS`` for it to finish, then reports the state
        at that moment.
        """
        async with self._condition:
            if self._state is SessionState.AUTHENTICATING:
                try:
                    await asyncio.wait_for(
                        self._condition.wait_for(
                            lambda: self._state is not SessionState.AUTHENTICATING
                        ),
                        AUTH_WAIT_TIMEOUT_SECONDS,
                    )
                except TimeoutError:
                    logger.debug("Authentication still in progress after bounded wait")
            return self._state is SessionState.AUTHENTICATED

    async def begin_authentication(
        self, token: str, handler: AuthResultHandlerProtocol | None = None
    ) -> None:
        """Start logging in with an OAuth token.

        Does nothing unless the session is unauthenticated. Returns as soon
        as the remote call has been issued; the outcome is reported to the
        session observers and to ``handler``.

        Args:
            token: The OAuth token to exchange.
            handler: Optional completion handler for this attempt.
        """
        await self._begin(token, handler, allow_refresh=True)

    async def resume(self) -> bool:
        """Try to resume the last session from the stored token.

        Returns:
            True if a login attempt was started.
        """
        if self._state is not SessionState.UNAUTHENTICATED:
            logger.debug(f"Not resuming while {self._state.value}")
            return False
        token = self._credential_store.get(OAUTH_TOKEN_KEY)
        if token is None:
            logger.info("No stored credentials, starting unauthenticated")
            return False
        logger.info("Resuming session from stored credentials")
        await self.begin_authentication(token)
        return self._state is not SessionState.UNAUTHENTICATED

    async def logout(self) -> None:
        """Log the user out and notify observers."""
        await self._cancel_pending()
        self._backend.unauthenticate()
        self._credential_store.remove(OAUTH_TOKEN_KEY, USER_EMAIL_KEY)
        was_authenticated = self._state is SessionState.AUTHENTICATED
        await self._transition(SessionState.UNAUTHENTICATED, session=None)
        logger.info("Logged out")
        if was_authenticated:
            for observer in list(self._observers):
                await self._notify(observer.on_session_ended)

    async def close(self) -> None:
        """Cancel outstanding login and token refresh work."""
        await self._cancel_pending()

    async def _begin(
        self, token: str, handler: AuthResultHandlerProtocol | None, allow_refresh: bool
    ) -> None:
        async with self._condition:
            if self._state is not SessionState.UNAUTHENTICATED:
                logger.debug(f"Ignoring login request while {self._state.value}")
                return
            self._state = SessionState.AUTHENTICATING
            self._condition.notify_all()
        self._credential_store.put(OAUTH_TOKEN_KEY, token)
        self._spawn(self._authenticate(token, handler, allow_refresh))

    async def _authenticate(
        self, token: str, handler: AuthResultHandlerProtocol | None, allow_refresh: bool
    ) -> None:
        try:
            session = await self._backend.authenticate(AUTH_PROVIDER, token)
        except AuthError as e:
            await self._on_authentication_error(e, handler, allow_refresh)
        except Exception as e:
            logger.error(f"Authentication call failed: {e}", exc_info=True)
            await self._on_authentication_error(
                AuthError(AuthErrorCode.OTHER, str(e)), handler, allow_refresh
            )
        else:
            await self._on_authenticated(session, handler)

    async def _on_authenticated(
        self, session: AuthSession, handler: AuthResultHandlerProtocol | None
    ) -> None:
        if session.email:
            self._credential_store.put(USER_EMAIL_KEY, session.email)
        await self._transition(SessionState.AUTHENTICATED, session=session)
        logger.info(f"Authenticated as {session.uid}")
        for observer in list(self._observers):
            await self._notify(observer.on_session_started, session)
        if handler is not None:
            await self._notify(handler.on_authenticated, session)

    async def _on_authentication_error(
        self, error: AuthError, handler: AuthResultHandlerProtocol | None, allow_refresh: bool
    ) -> None:
        await self._transition(SessionState.UNAUTHENTICATED, session=None)
        logger.error(f"Authentication error: {error}")
        if error.is_credential_problem:
            self._credential_store.remove(OAUTH_TOKEN_KEY)
            user_email = self._credential_store.get(USER_EMAIL_KEY)
            if allow_refresh and user_email is not None and self._token_provider is not None:
                self._spawn(self._refresh_and_retry(self._token_provider, user_email))
        if handler is not None:
            await self._notify(handler.on_authentication_error, error)

    async def _refresh_and_retry(self, token_provider: TokenProvider, user_email: str) -> None:
        # Best effort: the outcome is only visible through the session state
        try:
            token = await token_provider.fetch_token(user_email)
        except Exception as e:
            logger.error(f"Token refresh for {user_email} failed: {e}", exc_info=True)
            return
        logger.info(f"Retrying login with refreshed token for {user_email}")
        await self._begin(token, None, allow_refresh=False)

    async def _transition(self, state: SessionState, session: AuthSession | None) -> None:
        async with self._condition:
            self._state = state
            self._session = session
            self._condition.notify_all()

    async def _notify(self, callback: Callable[..., Awaitable[None]], *args: Any) -> None:
        try:
            await callback(*args)
        except Exception as e:
            name = getattr(callback, "__qualname__", repr(callback))
            logger.error(f"Session callback {name} failed: {e}", exc_info=True)

    def _spawn(self, coro: Coroutine[Any, Any, None]) -> None:
        task = asyncio.create_task(coro)
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)

    async def _cancel_pending(self) -> None:
        current = asyncio.current_task()
        tasks = [task for task in self._tasks if task is not current]
        for task in tasks:
            task.cancel()
        await asyncio.gather(*tasks, return_exceptions=True)
