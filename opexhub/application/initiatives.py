"""Initiatives list and the initiative detail modal."""
from __future__ import annotations

import logging
from typing import Any, Callable

from opexhub.core.filters import ALL, filter_initiatives
from opexhub.core.formatting import priority_tone, status_tone
from opexhub.core.initiative_rows import SAMPLE_INITIATIVES, to_initiative_row
from opexhub.core.pagination import page_window, paginate
from opexhub.core.schema import Initiative
from opexhub.core.stages import SITES, stage_name
from opexhub.infrastructure import OpexApiError

from .mutations import MutationResult, run_mutation
from .portal import PageContext

logger = logging.getLogger(__name__)

PAGE_SIZE = 10

STATUS_OPTIONS = ["all", "registered", "in progress", "under review", "implementation", "completed"]

EDITABLE_FIELDS = (
    "title",
    "description",
    "status",
    "priority",
    "expectedSavings",
    "site",
    "discipline",
    "startDate",
    "endDate",
)


def load_initiatives(ctx: PageContext, *, status: str = ALL, site: str = ALL, search: str = "") -> list[Initiative] | None:
    """Fetch a filtered initiative page; ``None`` when the API gives no ``content`` list."""

    key = ("initiatives", status, site, search)

    def loader() -> list[Initiative] | None:
        payload = ctx.api.list_initiatives(
            status=None if status == ALL else status,
            site=None if site == ALL else site,
            search=search or None,
        )
        if isinstance(payload, dict) and isinstance(payload.get("content"), list):
            return [Initiative.model_validate(item) for item in payload["content"]]
        return None

    try:
        return ctx.cache.fetch(key, loader)
    except OpexApiError as exc:
        logger.warning("Could not load initiatives: %s", exc.message)
        return None


class InitiativeModal:
    """Detail view of one initiative with an editable draft copy."""

    def __init__(self, initiative: Initiative, mode: str = "view") -> None:
        if mode not in ("view", "edit"):
            raise ValueError(f"unknown modal mode: {mode}")
        self.initiative = initiative
        self.mode = mode
        self.is_editing = mode == "edit"
        self.draft = self._draft_from(initiative)

    @staticmethod
    def _draft_from(initiative: Initiative) -> dict[str, Any]:
        data = initiative.model_dump(by_alias=True, mode="json")
        return {name: data.get(name) for name in EDITABLE_FIELDS}

    def start_edit(self) -> None:
        self.is_editing = True

    def update_draft(self, values: dict[str, Any]) -> None:
        for name in EDITABLE_FIELDS:
            if name in values:
                self.draft[name] = values[name]

    def cancel(self) -> None:
        self.draft = self._draft_from(self.initiative)
        self.is_editing = False

    def save(self, on_save: Callable[[dict[str, Any]], MutationResult | None] | None) -> bool:
        """Hand the draft to ``on_save``; the modal never calls the API itself."""

        if on_save is None:
            self.is_editing = False
            return True
        result = on_save(dict(self.draft))
        if result is not None and not result.ok:
            return False
        self.is_editing = False
        return True

    def progress(self, ctx: PageContext) -> float:
        server = None
        if self.initiative.id is not None:
            try:
                server = ctx.cache.fetch(
                    ("initiative-progress", str(self.initiative.id)),
                    lambda: ctx.api.progress_percentage(self.initiative.id),
                )
            except OpexApiError as exc:
                logger.warning("Progress lookup failed for initiative %s: %s", self.initiative.id, exc.message)
        if server is not None:
            return server
        return self.initiative.progress_percentage or self.initiative.progress or 0

    def current_stage_name(self, ctx: PageContext) -> str:
        pending = None
        if self.initiative.id is not None:
            try:
                pending = ctx.cache.fetch(
                    ("current-pending-stage", str(self.initiative.id)),
                    lambda: ctx.api.current_pending_stage(self.initiative.id),
                )
            except OpexApiError as exc:
                logger.warning("Pending stage lookup failed for initiative %s: %s", self.initiative.id, exc.message)
        if pending is not None and pending.stage_name:
            return pending.stage_name
        return stage_name(self.initiative.current_stage or 1)

    def render(self, ctx: PageContext) -> dict[str, Any]:
        row = to_initiative_row(self.initiative)
        return {
            "mode": self.mode,
            "isEditing": self.is_editing,
            "initiative": row.to_view(),
            "draft": dict(self.draft),
            "progress": self.progress(ctx),
            "currentStageName": self.current_stage_name(ctx),
            "statusTone": status_tone(self.initiative.status),
            "priorityTone": priority_tone(self.initiative.priority),
        }


class InitiativesPage:
    def __init__(self) -> None:
        self.status = ALL
        self.site = ALL
        self.search = ""
        self.current_page = 1
        self.modal: InitiativeModal | None = None

    # ------------------------------------------------------------------
    # data
    # ------------------------------------------------------------------
    def initiatives(self, ctx: PageContext) -> list[Initiative]:
        remote = load_initiatives(ctx, status=self.status, site=self.site, search=self.search)
        if remote is not None:
            return remote
        return filter_initiatives(SAMPLE_INITIATIVES, self.status, self.site, self.search)

    # ------------------------------------------------------------------
    # filters and paging
    # ------------------------------------------------------------------
    def set_filters(self, *, status: str | None = None, site: str | None = None, search: str | None = None) -> None:
        if status is not None:
            self.status = status or ALL
        if site is not None:
            self.site = site or ALL
        if search is not None:
            self.search = search
        self.current_page = 1

    def refresh(self, ctx: PageContext) -> None:
        """Drop the list snapshots so the next render reads the server."""

        ctx.cache.invalidate(("initiatives",))
        if self.modal is not None and self.modal.initiative.id is not None:
            initiative_id = str(self.modal.initiative.id)
            ctx.cache.invalidate(("initiative-progress", initiative_id))
            ctx.cache.invalidate(("current-pending-stage", initiative_id))

    def clear_filters(self) -> None:
        self.set_filters(status=ALL, site=ALL, search="")

    def go_to_page(self, ctx: PageContext, page: int) -> None:
        total_pages = paginate(self.initiatives(ctx), 1, PAGE_SIZE).total_pages
        self.current_page = min(max(page, 1), max(total_pages, 1))

    # ------------------------------------------------------------------
    # modal
    # ------------------------------------------------------------------
    def open(self, ctx: PageContext, initiative_id: str, mode: str = "view") -> InitiativeModal:
        for item in self.initiatives(ctx):
            if str(item.id) == str(initiative_id):
                self.modal = InitiativeModal(item, mode)
                return self.modal
        raise LookupError(f"Initiative {initiative_id} not found")

    def close(self) -> None:
        self.modal = None

    def save(self, ctx: PageContext) -> bool:
        if self.modal is None:
            return False
        initiative_id = self.modal.initiative.id

        def persist(draft: dict[str, Any]) -> MutationResult:
            payload = {key: value for key, value in draft.items() if value is not None}
            return run_mutation(
                ctx,
                lambda: ctx.api.update_initiative(initiative_id, payload),
                success_title="Initiative Updated",
                success_description="Changes have been saved.",
                fallback="Failed to update initiative",
                invalidate=[("initiatives",), ("initiative-progress", str(initiative_id))],
            )

        saved = self.modal.save(persist)
        if saved:
            self.close()
        return saved

    # ------------------------------------------------------------------
    # view
    # ------------------------------------------------------------------
    def render(self, ctx: PageContext) -> dict[str, Any]:
        page = paginate(self.initiatives(ctx), self.current_page, PAGE_SIZE)
        rows = []
        for item in page.data:
            row = to_initiative_row(item).to_view()
            row["statusTone"] = status_tone(item.status)
            row["priorityTone"] = priority_tone(item.priority)
            rows.append(row)
        return {
            "filters": {"status": self.status, "site": self.site, "search": self.search},
            "statusOptions": STATUS_OPTIONS,
            "siteOptions": [ALL] + [site["code"] for site in SITES],
            "rows": rows,
            "emptyMessage": None if rows else "No initiatives match the current filters.",
            "pagination": {
                "currentPage": page.current_page,
                "totalPages": page.total_pages,
                "totalItems": page.total_items,
                "firstItem": page.first_item,
                "lastItem": page.last_item,
                "hasPreviousPage": page.has_previous_page,
                "hasNextPage": page.has_next_page,
                "pages": page_window(page.current_page, page.total_pages),
            },
            "modal": self.modal.render(ctx) if self.modal else None,
        }
