"""Shared success/failure handling for calls that change data on the API."""
from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Callable, Iterable

from opexhub.core.query_cache import QueryKey
from opexhub.infrastructure import OpexApiError

from .portal import PageContext

logger = logging.getLogger(__name__)


@dataclass(slots=True)
class MutationResult:
    ok: bool
    data: Any = None
    error: str | None = None


def run_mutation(
    ctx: PageContext,
    call: Callable[[], Any],
    *,
    success_title: str = "Success",
    success_description: str = "",
    failure_title: str = "Error",
    fallback: str = "Something went wrong",
    invalidate: Iterable[QueryKey] = (),
) -> MutationResult:
    """Run ``call``; toast the outcome and invalidate ``invalidate`` prefixes on success.

    Page state is left untouched here: callers change it only after ``ok``.
    """

    try:
        data = call()
    except OpexApiError as exc:
        logger.warning("%s: %s", failure_title, exc.message)
        message = exc.message or fallback
        ctx.toast(failure_title, message, variant="destructive")
        return MutationResult(ok=False, error=message)

    for prefix in invalidate:
        ctx.cache.invalidate(prefix)
    ctx.toast(success_title, success_description)
    return MutationResult(ok=True, data=data)
