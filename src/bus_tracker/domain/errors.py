"""Domain errors."""

from __future__ import annotations

from typing import Any

from bus_tracker.domain.models.session import AuthErrorCode


class TransitError(Exception):
    """Base class for all bus tracking errors."""


class FetchError(TransitError):
    """Bus positions or departures for a route could not be fetched or parsed.

    Transient: the poller skips the tick and retries on the next one.
    """

    def __init__(self, route_short_name: str, reason: str, status_code: int | None = None) -> None:
        self.route_short_name = route_short_name
        self.reason = reason
        self.status_code = status_code
        status = f" (status: {status_code})" if status_code is not None else ""
        super().__init__(f"Failed to fetch route {route_short_name}: {reason}{status}")


class AuthError(TransitError):
    """The remote backend rejected an authentication attempt."""

    def __init__(self, code: AuthErrorCode, message: str = "") -> None:
        self.code = code
        self.message = message
        super().__init__(f"{code.value}: {message}" if message else code.value)

    @property
    def is_credential_problem(self) -> bool:
        """Whether the token or credentials themselves were rejected."""
        return self.code.is_credential_problem


class UnauthenticatedOperationError(TransitError):
    """A favorite was mutated without an authenticated session."""

    def __init__(self, operation: str) -> None:
        self.operation = operation
        super().__init__(f"Cannot {operation}: not authenticated")


class ListenerDeliveryError(TransitError):
    """A bus listener raised while receiving a batch of positions."""

    def __init__(self, route_short_name: str, listener: Any) -> None:
        self.route_short_name = route_short_name
        self.listener = listener
        super().__init__(f"Bus listener {listener!r} failed for route {route_short_name}")
