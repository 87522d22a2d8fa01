"""Session domain models."""

from dataclasses import dataclass
from enum import Enum


class SessionState(Enum):
    """Authentication state of the current user."""

    UNAUTHENTICATED = "unauthenticated"
    AUTHENTICATING = "authenticating"
    AUTHENTICATED = "authenticated"


class AuthErrorCode(Enum):
    """Classification of a failed remote authentication."""

    EXPIRED_TOKEN = "expired_token"
    INVALID_TOKEN = "invalid_token"
    INVALID_CREDENTIALS = "invalid_credentials"
    OTHER = "other"

    @property
    def is_credential_problem(self) -> bool:
        """Whether the stored credential should be discarded."""
        return self is not AuthErrorCode.OTHER


@dataclass(frozen=True)
class AuthSession:
    """Identity returned by the remote backend after a successful login."""

    uid: str
    provider: str
    email: str | None = None
    display_name: str | None = None
    profile_image_url: str | None = None
