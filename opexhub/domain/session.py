"""Domain entities for the signed-in portal session."""
from __future__ import annotations

from contextlib import contextmanager
from dataclasses import dataclass, field
from datetime import datetime, timezone
from threading import Lock
from typing import Any, Callable, Iterator, TypeVar

from opexhub.core.query_cache import QueryCache

PageT = TypeVar("PageT")


@dataclass(slots=True)
class User:
    """Identity of the signed-in user as returned by the API."""

    id: str
    email: str
    full_name: str = ""
    role: str = ""
    site: str = ""
    discipline: str | None = None
    role_name: str | None = None

    @classmethod
    def from_api(cls, payload: dict[str, Any]) -> "User":
        return cls(
            id=str(payload.get("id") or payload.get("userId") or ""),
            email=str(payload.get("email") or ""),
            full_name=str(payload.get("fullName") or payload.get("name") or ""),
            role=str(payload.get("role") or ""),
            site=str(payload.get("site") or ""),
            discipline=payload.get("discipline"),
            role_name=payload.get("roleName"),
        )

    def to_view(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "email": self.email,
            "fullName": self.full_name,
            "role": self.role,
            "roleName": self.role_name,
            "site": self.site,
            "discipline": self.discipline,
        }


@dataclass(slots=True)
class Toast:
    title: str
    description: str = ""
    variant: str = "default"

    def to_view(self) -> dict[str, str]:
        return {"title": self.title, "description": self.description, "variant": self.variant}


@dataclass
class Session:
    """Explicit per-login context: created at sign-in, dropped at sign-out."""

    token: str
    user: User
    api_token: str | None = None
    cache: QueryCache = field(default_factory=QueryCache)
    created_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    _toasts: list[Toast] = field(default_factory=list, repr=False)
    _pages: dict[str, Any] = field(default_factory=dict, repr=False)
    _lock: Lock = field(default_factory=Lock, repr=False)
    _request_lock: Lock = field(default_factory=Lock, repr=False)

    @contextmanager
    def exclusive(self) -> Iterator[None]:
        """Serve one request at a time so page state changes do not interleave."""

        with self._request_lock:
            yield

    def busy(self) -> bool:
        return self._request_lock.locked()

    def toast(self, title: str, description: str = "", *, variant: str = "default") -> None:
        with self._lock:
            self._toasts.append(Toast(title=title, description=description, variant=variant))

    def drain_toasts(self) -> list[Toast]:
        with self._lock:
            toasts, self._toasts = self._toasts, []
        return toasts

    def page(self, key: str, factory: Callable[[], PageT]) -> PageT:
        """Return the page state stored under ``key``, creating it on first use."""

        with self._lock:
            page = self._pages.get(key)
            if page is None:
                page = factory()
                self._pages[key] = page
        return page

    def close(self) -> None:
        with self._lock:
            self._pages.clear()
            self._toasts.clear()
        self.cache.clear()
