from __future__ import annotations

from contextlib import contextmanager
from typing import Iterator

from fastapi import Header, HTTPException

from opexhub.application import PageContext, get_portal_service
from opexhub.core.validation import ValidationError

SESSION_HEADER = "X-Session-Token"


def get_page_context(x_session_token: str | None = Header(default=None)) -> Iterator[PageContext]:
    """Resolve the session named by the ``X-Session-Token`` header and hold it for the request."""

    if not x_session_token:
        raise HTTPException(status_code=401, detail="Not signed in")
    service = get_portal_service()
    session = service.get_session(x_session_token)
    if session is None:
        raise HTTPException(status_code=401, detail="Session expired or unknown")
    with session.exclusive():
        yield service.context(session)


@contextmanager
def page_errors() -> Iterator[None]:
    """Translate page-level refusals into HTTP errors."""

    try:
        yield
    except LookupError as exc:
        raise HTTPException(status_code=404, detail=str(exc).strip("'\"")) from exc
    except PermissionError as exc:
        raise HTTPException(status_code=403, detail=str(exc)) from exc
    except (ValidationError, ValueError) as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc


def require_int(payload: dict, key: str) -> int:
    value = payload.get(key)
    if isinstance(value, bool):
        raise HTTPException(status_code=400, detail=f"{key} must be an integer")
    try:
        return int(value)
    except (TypeError, ValueError) as exc:
        raise HTTPException(status_code=400, detail=f"{key} must be an integer") from exc
