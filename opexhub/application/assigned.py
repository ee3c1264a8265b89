"""Common base for pages that work on initiatives assigned through an approved stage."""
from __future__ import annotations

import logging
from typing import Any

from opexhub.core.filters import filter_assigned
from opexhub.core.initiative_rows import AssignedInitiative, assigned_initiatives
from opexhub.core.pagination import page_window, paginate
from opexhub.infrastructure import OpexApiError

from .portal import PageContext

logger = logging.getLogger(__name__)

PAGE_SIZE = 6


class AssignedInitiativesPage:
    """Initiative picker, entry dialog and form state shared by monitoring and timeline pages.

    Subclasses set the role whose pending list is queried, the stage whose
    approval grants access, and the cache prefix of their entries.
    """

    role: str = ""
    stage_number: int = 0
    assigned_key: str = ""
    entries_key: str = ""
    empty_message: str = "No initiatives assigned to you."

    def __init__(self) -> None:
        self.search = ""
        self.status_filter = "ALL"
        self.current_page = 1
        self.selected_id: int | None = None
        self.dialog_open = False
        self.editing_id: int | None = None
        self.form: dict[str, Any] = {}

    # ------------------------------------------------------------------
    # assigned initiatives
    # ------------------------------------------------------------------
    def assigned(self, ctx: PageContext) -> list[AssignedInitiative]:
        user = ctx.user
        key = (self.assigned_key, user.site, user.email)

        def loader() -> list[AssignedInitiative]:
            transactions = ctx.api.pending_transactions_for_site_role(user.site, self.role)
            return assigned_initiatives(transactions, stage_number=self.stage_number, user_email=user.email)

        try:
            return ctx.cache.fetch(key, loader)
        except OpexApiError as exc:
            logger.warning("Could not load stage %s initiatives for %s: %s", self.stage_number, user.email, exc.message)
            return []

    def visible(self, ctx: PageContext) -> list[AssignedInitiative]:
        return filter_assigned(self.assigned(ctx), self.search, self.status_filter)

    def set_filters(self, *, search: str | None = None, status: str | None = None) -> None:
        if search is not None:
            self.search = search
        if status is not None:
            self.status_filter = status or "ALL"
        self.current_page = 1

    def go_to_page(self, ctx: PageContext, page: int) -> None:
        total_pages = paginate(self.visible(ctx), 1, PAGE_SIZE).total_pages
        self.current_page = min(max(page, 1), max(total_pages, 1))

    def refresh(self, ctx: PageContext) -> None:
        """Drop the picker and selected-entries snapshots so the next render reads the server."""

        ctx.cache.invalidate((self.assigned_key,))
        if self.selected_id is not None:
            ctx.cache.invalidate((self.entries_key, self.selected_id))

    def select(self, ctx: PageContext, initiative_id: int) -> None:
        if not any(item.id == initiative_id for item in self.assigned(ctx)):
            raise LookupError(f"Initiative {initiative_id} is not assigned to you")
        ctx.cache.invalidate((self.entries_key, initiative_id))
        self.selected_id = initiative_id
        self.close_dialog()

    def back(self, ctx: PageContext) -> None:
        ctx.cache.invalidate((self.assigned_key,))
        self.selected_id = None
        self.close_dialog()

    def _require_selection(self) -> int:
        if self.selected_id is None:
            raise LookupError("No initiative selected")
        return self.selected_id

    def invalidation(self) -> list[tuple[str, ...]]:
        return [(self.entries_key,)]

    # ------------------------------------------------------------------
    # entry dialog
    # ------------------------------------------------------------------
    def open_create(self) -> None:
        self._require_selection()
        if self.editing_id is not None:
            self.form = {}
        self.editing_id = None
        self.dialog_open = True

    def close_dialog(self) -> None:
        self.dialog_open = False
        self.editing_id = None
        self.form = {}

    def update_form(self, values: dict[str, Any]) -> None:
        self.form.update(values)

    def _after_submit(self, ok: bool) -> None:
        # the draft survives a failed call so the dialog can be reopened with it
        if ok:
            self.form = {}
            self.editing_id = None

    # ------------------------------------------------------------------
    # view
    # ------------------------------------------------------------------
    def render_picker(self, ctx: PageContext) -> dict[str, Any]:
        assigned = self.assigned(ctx)
        page = paginate(filter_assigned(assigned, self.search, self.status_filter), self.current_page, PAGE_SIZE)
        if not assigned:
            empty = self.empty_message
        elif not page.data:
            empty = "No initiatives match your search."
        else:
            empty = None
        return {
            "filters": {"search": self.search, "status": self.status_filter},
            "initiatives": [item.to_view() for item in page.data],
            "emptyMessage": empty,
            "pagination": {
                "currentPage": page.current_page,
                "totalPages": page.total_pages,
                "totalItems": page.total_items,
                "hasPreviousPage": page.has_previous_page,
                "hasNextPage": page.has_next_page,
                "pages": page_window(page.current_page, page.total_pages),
            },
            "selectedInitiativeId": self.selected_id,
            "dialog": {
                "open": self.dialog_open,
                "editingId": self.editing_id,
                "form": dict(self.form),
            },
        }
