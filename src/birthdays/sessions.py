"""In-memory session → access-token store.

Process-local and volatile: tokens live until ``clear()`` or a restart.
NOTE: Do not run multiple worker processes (e.g. gunicorn -w N) — a
session created in one worker is unknown to the others.
"""

from __future__ import annotations

import logging
import secrets

from birthdays.core.logging import redact_session_id

logger = logging.getLogger(__name__)


def new_session_id() -> str:
    """Generate a cryptographically random session identifier."""
    return secrets.token_urlsafe(32)


class SessionTokenStore:
    """Keyed mapping from session id to an opaque bearer token.

    At most one token is held per session; ``set`` replaces any previous
    value (last write wins). A missing session is not an error — ``get``
    simply returns ``None``.
    """

    def __init__(self) -> None:
        self._tokens: dict[str, str] = {}

    def get(self, session_id: str | None) -> str | None:
        if not session_id:
            return None
        return self._tokens.get(session_id)

    def set(self, session_id: str, token: str) -> None:
        if not session_id:
            raise ValueError("session_id must be non-empty")
        if not token:
            raise ValueError("token must be non-empty")
        self._tokens[session_id] = token
        logger.debug("Bound access token to session %s", redact_session_id(session_id))

    def clear(self, session_id: str | None) -> None:
        if not session_id:
            return
        if self._tokens.pop(session_id, None) is not None:
            logger.debug("Cleared session %s", redact_session_id(session_id))

    def __contains__(self, session_id: object) -> bool:
        return session_id in self._tokens

    def __len__(self) -> int:
        return len(self._tokens)
