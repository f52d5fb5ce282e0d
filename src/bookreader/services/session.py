"""Process-wide user session.

Holds the auth token and the current user. It is initialised explicitly
after login and cleared explicitly on logout (or when the API answers 401).
"""

from __future__ import annotations

from dataclasses import dataclass

import structlog

from bookreader.services.models import User

logger = structlog.get_logger(__name__)


@dataclass
class UserSession:
    """Authenticated user state."""

    token: str | None = None
    user: User | None = None

    @property
    def is_authenticated(self) -> bool:
        return self.token is not None

    def auth_headers(self) -> dict[str, str]:
        if self.token is None:
            return {}
        return {"Authorization": f"Bearer {self.token}"}

    def clear_token(self) -> None:
        self.token = None


# Global session instance
_session: UserSession | None = None


def init_session(token: str, user: User | None = None) -> UserSession:
    """Start a session after login, replacing any previous one."""
    global _session
    _session = UserSession(token=token, user=user)
    logger.info(
        "session.initialized",
        user_id=user.id if user else None,
        role=user.role if user else None,
    )
    return _session


def get_session() -> UserSession:
    """Get the current session (anonymous if none was initialised)."""
    global _session
    if _session is None:
        _session = UserSession()
    return _session


def clear_session() -> None:
    """Tear down the session on logout."""
    global _session
    if _session is not None and _session.is_authenticated:
        logger.info("session.cleared")
    _session = None
