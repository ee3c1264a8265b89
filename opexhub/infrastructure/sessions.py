"""Storage for signed-in portal sessions."""
from __future__ import annotations

import logging
import secrets
from threading import Lock
from typing import Protocol

from opexhub.domain import Session, User

logger = logging.getLogger(__name__)


class SessionRepository(Protocol):
    """Persistence contract for portal sessions."""

    def create(self, user: User, api_token: str | None) -> Session: ...

    def get(self, token: str) -> Session | None: ...

    def remove(self, token: str) -> bool: ...

    def count(self) -> int: ...

    def reset(self) -> None: ...


class InMemorySessionRepository:
    """Process-local session store keyed by an opaque random token."""

    def __init__(self) -> None:
        self._sessions: dict[str, Session] = {}
        self._lock = Lock()

    def create(self, user: User, api_token: str | None) -> Session:
        token = secrets.token_urlsafe(32)
        session = Session(token=token, user=user, api_token=api_token)
        with self._lock:
            self._sessions[token] = session
        logger.info("Session opened for %s (%s)", user.email, user.role)
        return session

    def get(self, token: str) -> Session | None:
        with self._lock:
            return self._sessions.get(token)

    def remove(self, token: str) -> bool:
        with self._lock:
            session = self._sessions.pop(token, None)
        if session is None:
            return False
        session.close()
        logger.info("Session closed for %s", session.user.email)
        return True

    def count(self) -> int:
        with self._lock:
            return len(self._sessions)

    def reset(self) -> None:
        with self._lock:
            sessions = list(self._sessions.values())
            self._sessions.clear()
        for session in sessions:
            session.close()
