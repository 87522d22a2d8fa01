"""Behavior tests for SessionGate."""

import asyncio
import time

import pytest

from bus_tracker.adapters.credentials import InMemoryCredentialStore
from bus_tracker.application.services import AUTH_WAIT_TIMEOUT_SECONDS, SessionGate
from bus_tracker.domain.errors import AuthError
from bus_tracker.domain.models import AuthErrorCode, AuthSession, SessionState
from bus_tracker.domain.ports import OAUTH_TOKEN_KEY, USER_EMAIL_KEY
from tests.fakes import (
    ControlledAuthBackend,
    FakeTokenProvider,
    RecordingObserver,
    wait_until,
)

HOKIE = AuthSession(
    uid="google:1234",
    provider="google",
    email="hokie@vt.edu",
    display_name="Hokie Bird",
    profile_image_url="https://example.com/hokie.png",
)


def _gate(
    backend: ControlledAuthBackend,
    store: InMemoryCredentialStore | None = None,
    token_provider: FakeTokenProvider | None = None,
) -> SessionGate:
    return SessionGate(backend, store or InMemoryCredentialStore(), token_provider)


class TestBeginAuthentication:
    """Tests for the login flow."""

    @pytest.mark.asyncio
    async def test_when_token_accepted_then_session_is_authenticated(self) -> None:
        """Given a valid token, when logging in, then the gate becomes authenticated and observers are told."""
        backend = ControlledAuthBackend({"good": HOKIE})
        store = InMemoryCredentialStore()
        gate = _gate(backend, store)
        observer = RecordingObserver()
        gate.add_observer(observer)

        await gate.begin_authentication("good")

        assert await gate.is_authenticated() is True
        assert gate.state is SessionState.AUTHENTICATED
        assert gate.session == HOKIE
        assert observer.events == [("started", HOKIE)]
        assert store.get(OAUTH_TOKEN_KEY) == "good"
        assert store.get(USER_EMAIL_KEY) == "hokie@vt.edu"
        assert backend.auth_calls == [("google", "good")]

    @pytest.mark.asyncio
    async def test_when_login_starts_then_state_is_authenticating_until_backend_answers(
        self,
    ) -> None:
        """Given a slow backend, when logging in, then the call returns while authenticating."""
        backend = ControlledAuthBackend({"good": HOKIE})
        backend.release.clear()
        gate = _gate(backend)

        await gate.begin_authentication("good")

        assert gate.state is SessionState.AUTHENTICATING
        backend.release.set()
        await wait_until(lambda: gate.state is SessionState.AUTHENTICATED)
        await gate.close()

    @pytest.mark.asyncio
    async def test_when_already_authenticating_then_second_login_is_ignored(self) -> None:
        """Given a login in progress, when logging in again, then no second remote call is made."""
        backend = ControlledAuthBackend({"good": HOKIE, "other": HOKIE})
        backend.release.clear()
        store = InMemoryCredentialStore()
        gate = _gate(backend, store)

        await gate.begin_authentication("good")
        await gate.begin_authentication("other")
        await wait_until(lambda: len(backend.auth_calls) == 1)
        backend.release.set()
        await wait_until(lambda: gate.state is SessionState.AUTHENTICATED)

        assert backend.auth_calls == [("google", "good")]
        assert store.get(OAUTH_TOKEN_KEY) == "good"

    @pytest.mark.asyncio
    async def test_when_already_authenticated_then_login_is_ignored(self) -> None:
        """Given an authenticated session, when logging in again, then nothing happens."""
        backend = ControlledAuthBackend({"good": HOKIE})
        gate = _gate(backend)
        await gate.begin_authentication("good")
        await gate.is_authenticated()

        await gate.begin_authentication("good")

        assert len(backend.auth_calls) == 1

    @pytest.mark.asyncio
    async def test_when_handler_given_then_it_is_called_on_success(self) -> None:
        """Given a completion handler, when login succeeds, then the handler gets the session."""
        backend = ControlledAuthBackend({"good": HOKIE})
        gate = _gate(backend)
        handler = RecordingObserver()

        await gate.begin_authentication("good", handler)
        await wait_until(lambda: len(handler.events) == 1)

        assert handler.events == [("authenticated", HOKIE)]


class TestIsAuthenticated:
    """Tests for the bounded readiness wait."""

    @pytest.mark.asyncio
    async def test_when_unauthenticated_then_returns_false_immediately(self) -> None:
        """Given no login, when checking, then False is returned without waiting."""
        gate = _gate(ControlledAuthBackend())

        start = time.monotonic()
        result = await gate.is_authenticated()

        assert result is False
        assert time.monotonic() - start < AUTH_WAIT_TIMEOUT_SECONDS / 2

    @pytest.mark.asyncio
    async def test_when_login_completes_during_wait_then_returns_true_early(self) -> None:
        """Given a login in progress, when it completes during the wait, then True is returned before the bound."""
        backend = ControlledAuthBackend({"good": HOKIE})
        backend.release.clear()
        gate = _gate(backend)
        await gate.begin_authentication("good")

        start = time.monotonic()
        check = asyncio.create_task(gate.is_authenticated())
        await asyncio.sleep(0.05)
        backend.release.set()
        result = await check

        assert result is True
        assert time.monotonic() - start < AUTH_WAIT_TIMEOUT_SECONDS

    @pytest.mark.asyncio
    async def test_when_login_stalls_then_wait_is_bounded(self) -> None:
        """Given a backend that never answers, when checking, then False is returned after the bounded wait."""
        backend = ControlledAuthBackend({"good": HOKIE})
        backend.release.clear()
        gate = _gate(backend)
        await gate.begin_authentication("good")

        start = time.monotonic()
        result = await gate.is_authenticated()
        elapsed = time.monotonic() - start

        assert result is False
        assert elapsed >= AUTH_WAIT_TIMEOUT_SECONDS * 0.9
        assert elapsed < AUTH_WAIT_TIMEOUT_SECONDS * 3
        assert gate.state is SessionState.AUTHENTICATING
        await gate.close()


class TestAuthenticationErrors:
    """Tests for failed logins and the credential refresh."""

    @pytest.mark.asyncio
    async def test_when_token_expired_and_no_email_then_no_retry(self) -> None:
        """Given an expired token and no stored email, when login fails, then the gate is unauthenticated without retry."""
        backend = ControlledAuthBackend(
            {"stale": AuthError(AuthErrorCode.EXPIRED_TOKEN, "token expired")}
        )
        store = InMemoryCredentialStore()
        provider = FakeTokenProvider()
        gate = _gate(backend, store, provider)

        await gate.begin_authentication("stale")
        start = time.monotonic()
        result = await gate.is_authenticated()

        assert result is False
        assert time.monotonic() - start <= AUTH_WAIT_TIMEOUT_SECONDS * 1.5
        await wait_until(lambda: gate.state is SessionState.UNAUTHENTICATED)
        assert provider.requests == []
        assert store.get(OAUTH_TOKEN_KEY) is None
        assert backend.auth_calls == [("google", "stale")]

    @pytest.mark.asyncio
    async def test_when_credentials_invalid_and_email_known_then_refreshes_once(self) -> None:
        """Given a known email, when the token is rejected, then a fresh token is fetched and login retried."""
        backend = ControlledAuthBackend(
            {
                "stale": AuthError(AuthErrorCode.INVALID_CREDENTIALS, "bad credentials"),
                "refreshed-token": HOKIE,
            }
        )
        store = InMemoryCredentialStore({USER_EMAIL_KEY: "hokie@vt.edu"})
        provider = FakeTokenProvider()
        gate = _gate(backend, store, provider)

        await gate.begin_authentication("stale")
        await wait_until(lambda: gate.state is SessionState.AUTHENTICATED)

        assert provider.requests == ["hokie@vt.edu"]
        assert [token for _, token in backend.auth_calls] == ["stale", "refreshed-token"]
        assert store.get(OAUTH_TOKEN_KEY) == "refreshed-token"

    @pytest.mark.asyncio
    async def test_when_refreshed_token_also_fails_then_no_further_retry(self) -> None:
        """Given a refreshed token that is rejected too, when login fails again, then the gate gives up."""
        backend = ControlledAuthBackend(
            {
                "stale": AuthError(AuthErrorCode.INVALID_TOKEN, "bad token"),
                "refreshed-token": AuthError(AuthErrorCode.INVALID_TOKEN, "still bad"),
            }
        )
        store = InMemoryCredentialStore({USER_EMAIL_KEY: "hokie@vt.edu"})
        provider = FakeTokenProvider()
        gate = _gate(backend, store, provider)

        await gate.begin_authentication("stale")
        await wait_until(lambda: len(backend.auth_calls) == 2)
        await wait_until(lambda: gate.state is SessionState.UNAUTHENTICATED)
        await asyncio.sleep(0.05)

        assert provider.requests == ["hokie@vt.edu"]
        assert len(backend.auth_calls) == 2
        assert store.get(OAUTH_TOKEN_KEY) is None

    @pytest.mark.asyncio
    async def test_when_token_refresh_fails_then_stays_unauthenticated(self) -> None:
        """Given a failing token provider, when refreshing, then the gate stays unauthenticated."""
        backend = ControlledAuthBackend(
            {"stale": AuthError(AuthErrorCode.EXPIRED_TOKEN, "token expired")}
        )
        store = InMemoryCredentialStore({USER_EMAIL_KEY: "hokie@vt.edu"})
        provider = FakeTokenProvider(error=RuntimeError("account removed"))
        gate = _gate(backend, store, provider)

        await gate.begin_authentication("stale")
        await wait_until(lambda: provider.requests == ["hokie@vt.edu"])
        await asyncio.sleep(0.01)

        assert gate.state is SessionState.UNAUTHENTICATED
        assert backend.auth_calls == [("google", "stale")]

    @pytest.mark.asyncio
    async def test_when_error_is_not_a_credential_problem_then_token_is_kept(self) -> None:
        """Given a generic backend error, when login fails, then the stored token survives for a later retry."""
        backend = ControlledAuthBackend({"good": AuthError(AuthErrorCode.OTHER, "network down")})
        store = InMemoryCredentialStore({USER_EMAIL_KEY: "hokie@vt.edu"})
        provider = FakeTokenProvider()
        gate = _gate(backend, store, provider)
        handler = RecordingObserver()

        await gate.begin_authentication("good", handler)
        await wait_until(lambda: len(handler.events) == 1)

        assert gate.state is SessionState.UNAUTHENTICATED
        assert store.get(OAUTH_TOKEN_KEY) == "good"
        assert provider.requests == []
        kind, error = handler.events[0]
        assert kind == "error"
        assert error.code is AuthErrorCode.OTHER

    @pytest.mark.asyncio
    async def test_when_failed_then_new_login_is_allowed(self) -> None:
        """Given a failed login, when logging in with a good token, then the gate authenticates."""
        backend = ControlledAuthBackend({"good": HOKIE})
        gate = _gate(backend)
        await gate.begin_authentication("bad")
        await wait_until(lambda: gate.state is SessionState.UNAUTHENTICATED)

        await gate.begin_authentication("good")

        assert await gate.is_authenticated() is True


class TestSessionLifecycle:
    """Tests for resume, logout and accessors."""

    @pytest.mark.asyncio
    async def test_when_token_stored_then_resume_logs_in(self) -> None:
        """Given a stored token, when resuming, then a login attempt starts."""
        backend = ControlledAuthBackend({"saved": HOKIE})
        gate = _gate(backend, InMemoryCredentialStore({OAUTH_TOKEN_KEY: "saved"}))

        started = await gate.resume()

        assert started is True
        assert await gate.is_authenticated() is True

    @pytest.mark.asyncio
    async def test_when_no_token_stored_then_resume_does_nothing(self) -> None:
        """Given no stored token, when resuming, then no login is attempted."""
        backend = ControlledAuthBackend()
        gate = _gate(backend)

        started = await gate.resume()

        assert started is False
        assert backend.auth_calls == []

    @pytest.mark.asyncio
    async def test_when_logging_out_then_state_and_credentials_are_cleared(self) -> None:
        """Given an authenticated session, when logging out, then observers are told and credentials removed."""
        backend = ControlledAuthBackend({"good": HOKIE})
        store = InMemoryCredentialStore()
        gate = _gate(backend, store)
        observer = RecordingObserver()
        gate.add_observer(observer)
        await gate.begin_authentication("good")
        await gate.is_authenticated()

        await gate.logout()

        assert gate.state is SessionState.UNAUTHENTICATED
        assert gate.session is None
        assert await gate.is_authenticated() is False
        assert observer.events[-1] == ("ended", None)
        assert backend.unauth_calls == 1
        assert store.get(OAUTH_TOKEN_KEY) is None
        assert store.get(USER_EMAIL_KEY) is None

    @pytest.mark.asyncio
    async def test_when_logging_out_during_login_then_login_result_is_discarded(self) -> None:
        """Given a pending login, when logging out, then the session never becomes authenticated."""
        backend = ControlledAuthBackend({"good": HOKIE})
        backend.release.clear()
        gate = _gate(backend)
        await gate.begin_authentication("good")

        await gate.logout()
        backend.release.set()
        await asyncio.sleep(0.01)

        assert gate.state is SessionState.UNAUTHENTICATED

    @pytest.mark.asyncio
    async def test_when_authenticated_then_profile_accessors_return_user_data(self) -> None:
        """Given an authenticated session, when reading the profile, then user data is returned."""
        backend = ControlledAuthBackend({"good": HOKIE})
        gate = _gate(backend)

        assert gate.user_email is None
        assert gate.display_name is None

        await gate.begin_authentication("good")
        await gate.is_authenticated()

        assert gate.user_email == "hokie@vt.edu"
        assert gate.display_name == "Hokie Bird"
        assert gate.profile_image_url == "https://example.com/hokie.png"

    @pytest.mark.asyncio
    async def test_when_already_authenticated_then_resume_starts_nothing(self) -> None:
        """Given an authenticated session, when resuming, then no attempt is started."""
        backend = ControlledAuthBackend({"saved": HOKIE})
        gate = _gate(backend, InMemoryCredentialStore({OAUTH_TOKEN_KEY: "saved"}))
        await gate.resume()
        await gate.is_authenticated()

        started = await gate.resume()

        assert started is False
        assert len(backend.auth_calls) == 1


class FailingObserver(RecordingObserver):
    """Observer whose session callbacks raise after recording."""

    async def on_session_started(self, session: AuthSession) -> None:
        await super().on_session_started(session)
        raise RuntimeError("observer broke")

    async def on_session_ended(self) -> None:
        await super().on_session_ended()
        raise RuntimeError("observer broke")


class TestCallbackFailures:
    """Tests for observers and handlers that raise."""

    @pytest.mark.asyncio
    async def test_when_observer_raises_on_start_then_others_and_handler_still_run(self) -> None:
        """Given a failing observer, when login succeeds, then later observers and the handler are notified."""
        backend = ControlledAuthBackend({"good": HOKIE})
        gate = _gate(backend)
        failing = FailingObserver()
        healthy = RecordingObserver()
        gate.add_observer(failing)
        gate.add_observer(healthy)
        handler = RecordingObserver()

        await gate.begin_authentication("good", handler)
        await wait_until(lambda: len(handler.events) == 1)

        assert gate.state is SessionState.AUTHENTICATED
        assert failing.events == [("started", HOKIE)]
        assert healthy.events == [("started", HOKIE)]
        assert handler.events == [("authenticated", HOKIE)]

    @pytest.mark.asyncio
    async def test_when_observer_raises_on_end_then_logout_completes(self) -> None:
        """Given a failing observer, when logging out, then every observer is told and logout returns."""
        backend = ControlledAuthBackend({"good": HOKIE})
        gate = _gate(backend)
        failing = FailingObserver()
        healthy = RecordingObserver()
        gate.add_observer(failing)
        gate.add_observer(healthy)
        await gate.begin_authentication("good")
        await gate.is_authenticated()

        await gate.logout()

        assert gate.state is SessionState.UNAUTHENTICATED
        assert healthy.events[-1] == ("ended", None)
        assert failing.events[-1] == ("ended", None)
