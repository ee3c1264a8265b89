"""Portal service: the API client, the session store and per-request page context."""
from __future__ import annotations

from dataclasses import dataclass
from typing import Any

from opexhub.core.query_cache import QueryCache
from opexhub.domain import Session, User
from opexhub.infrastructure import InMemorySessionRepository, OpexApiClient, SessionRepository


@dataclass(slots=True)
class PageContext:
    """What a page needs to serve one request: the session and an authorised client."""

    session: Session
    api: OpexApiClient

    @property
    def user(self) -> User:
        return self.session.user

    @property
    def cache(self) -> QueryCache:
        return self.session.cache

    def toast(self, title: str, description: str = "", *, variant: str = "default") -> None:
        self.session.toast(title, description, variant=variant)

    def respond(self, view: dict[str, Any]) -> dict[str, Any]:
        return {"view": view, "toasts": [toast.to_view() for toast in self.session.drain_toasts()]}


class PortalService:
    """Coordinates sessions and access to the remote API."""

    def __init__(self, api: OpexApiClient | None = None, sessions: SessionRepository | None = None) -> None:
        self._api = api or OpexApiClient()
        self._sessions: SessionRepository = sessions or InMemorySessionRepository()

    @property
    def api(self) -> OpexApiClient:
        return self._api

    def configure_api(self, api: OpexApiClient) -> None:
        self._api = api

    def open_session(self, user: User, api_token: str | None) -> Session:
        return self._sessions.create(user, api_token)

    def get_session(self, token: str) -> Session | None:
        return self._sessions.get(token)

    def close_session(self, token: str) -> bool:
        return self._sessions.remove(token)

    def session_count(self) -> int:
        return self._sessions.count()

    def context(self, session: Session) -> PageContext:
        return PageContext(session=session, api=self._api.with_token(session.api_token))

    def reset(self) -> None:
        self._sessions.reset()


_service = PortalService()


def get_portal_service() -> PortalService:
    """Return the singleton portal service for the process."""

    return _service


def configure_api_client(client: OpexApiClient) -> None:
    """Install the API client used for every session."""

    _service.configure_api(client)


def reset_portal_state() -> None:
    """Drop every session (used in tests)."""

    _service.reset()
