"""Timeline tracking for initiatives approved at the timeline stage."""
from __future__ import annotations

import datetime as dt
import logging
from typing import Any

from opexhub.core.analytics import timeline_overview
from opexhub.core.derivations import compute_timeline_progress
from opexhub.core.formatting import humanize_status, timeline_tone
from opexhub.core.policies import (
    can_initiative_lead_approve,
    can_manage_timeline_entry,
    can_site_lead_approve,
)
from opexhub.core.schema import TimelineEntry
from opexhub.core.stages import ROLE_INITIATIVE_LEAD, TIMELINE_STAGE_NUMBER, TIMELINE_STATUSES
from opexhub.core.validation import ValidationError, validate_timeline_form
from opexhub.infrastructure import OpexApiError

from .assigned import AssignedInitiativesPage
from .mutations import run_mutation
from .portal import PageContext

logger = logging.getLogger(__name__)

FORM_FIELDS = (
    "stageName",
    "plannedStartDate",
    "plannedEndDate",
    "actualStartDate",
    "actualEndDate",
    "status",
    "responsiblePerson",
    "remarks",
    "documentPath",
)


def build_timeline_payload(form: dict[str, Any], now: dt.datetime | None = None) -> dict[str, Any]:
    """Normalise the dialog form; approvals reset and progress derived from the planned dates."""

    status = form.get("status") or "PENDING"
    if status not in TIMELINE_STATUSES:
        raise ValidationError(f"Unknown status: {status}")
    planned_start = dt.date.fromisoformat(str(form["plannedStartDate"])[:10])
    planned_end = dt.date.fromisoformat(str(form["plannedEndDate"])[:10])
    payload = {name: form.get(name) or None for name in FORM_FIELDS}
    payload.update(
        {
            "status": status,
            "plannedStartDate": planned_start.isoformat(),
            "plannedEndDate": planned_end.isoformat(),
            "siteLeadApproval": False,
            "initiativeLeadApproval": False,
            "progressPercentage": compute_timeline_progress(status, planned_start, planned_end, now),
        }
    )
    return payload


class TimelinePage(AssignedInitiativesPage):
    role = ROLE_INITIATIVE_LEAD
    stage_number = TIMELINE_STAGE_NUMBER
    assigned_key = "stage6-approved-initiatives"
    entries_key = "timeline-entries"
    empty_message = "No initiatives have been approved for timeline tracking yet."

    # ------------------------------------------------------------------
    # data
    # ------------------------------------------------------------------
    def entries(self, ctx: PageContext) -> list[TimelineEntry]:
        if self.selected_id is None:
            return []
        initiative_id = self.selected_id
        return self._load(ctx, (self.entries_key, initiative_id), lambda: ctx.api.timeline_entries(initiative_id))

    def pending_approvals(self, ctx: PageContext) -> list[TimelineEntry]:
        if self.selected_id is None:
            return []
        initiative_id = self.selected_id
        return self._load(
            ctx,
            (self.entries_key, initiative_id, "pending-approvals"),
            lambda: ctx.api.pending_timeline_approvals(initiative_id),
        )

    @staticmethod
    def _load(ctx: PageContext, key: tuple, loader) -> list[TimelineEntry]:
        try:
            return ctx.cache.fetch(key, loader)
        except OpexApiError as exc:
            logger.warning("Could not load timeline entries %s: %s", key, exc.message)
            return []

    def _entry(self, ctx: PageContext, entry_id: int) -> TimelineEntry:
        for entry in self.entries(ctx):
            if entry.id == entry_id:
                return entry
        raise LookupError(f"Timeline entry {entry_id} not found")

    # ------------------------------------------------------------------
    # mutations
    # ------------------------------------------------------------------
    def open_edit(self, ctx: PageContext, entry_id: int) -> None:
        entry = self._entry(ctx, entry_id)
        if not can_manage_timeline_entry(ctx.user, entry):
            raise PermissionError("You cannot edit this timeline entry")
        data = entry.model_dump(by_alias=True, mode="json")
        self.form = {name: data.get(name) for name in FORM_FIELDS}
        self.editing_id = entry_id
        self.dialog_open = True

    def update_form(self, values: dict[str, Any]) -> None:
        self.form.update({name: values[name] for name in FORM_FIELDS if name in values})

    def submit(self, ctx: PageContext) -> bool:
        initiative_id = self._require_selection()
        try:
            validate_timeline_form(self.form)
            payload = build_timeline_payload(self.form)
        except ValidationError as exc:
            ctx.toast("Error", str(exc), variant="destructive")
            return False

        editing_id = self.editing_id
        self.dialog_open = False
        if editing_id is not None:
            payload["updatedBy"] = ctx.user.email
            result = run_mutation(
                ctx,
                lambda: ctx.api.update_timeline_entry(editing_id, payload),
                success_description="Timeline entry updated successfully",
                fallback="Failed to update timeline entry",
                invalidate=self.invalidation(),
            )
        else:
            payload.update({"enteredBy": ctx.user.email, "initiativeId": initiative_id})
            result = run_mutation(
                ctx,
                lambda: ctx.api.create_timeline_entry(initiative_id, payload),
                success_description="Timeline entry created successfully",
                fallback="Failed to create timeline entry",
                invalidate=self.invalidation(),
            )
        self._after_submit(result.ok)
        return result.ok

    def update_approvals(
        self,
        ctx: PageContext,
        entry_id: int,
        *,
        site_lead: bool | None = None,
        initiative_lead: bool | None = None,
    ) -> bool:
        entry = self._entry(ctx, entry_id)
        if site_lead is None and initiative_lead is None:
            raise ValueError("No approval flag given")
        if site_lead is not None and not can_site_lead_approve(ctx.user, entry):
            raise PermissionError("Only site leads can change the site lead approval")
        if initiative_lead is not None and not can_initiative_lead_approve(ctx.user, entry):
            raise PermissionError("Only initiative leads can change the initiative lead approval")
        return run_mutation(
            ctx,
            lambda: ctx.api.update_timeline_approvals(
                entry_id, site_lead_approval=site_lead, initiative_lead_approval=initiative_lead
            ),
            success_description="Approval status updated",
            fallback="Failed to update approval",
            invalidate=self.invalidation(),
        ).ok

    def delete(self, ctx: PageContext, entry_id: int) -> bool:
        entry = self._entry(ctx, entry_id)
        if not can_manage_timeline_entry(ctx.user, entry):
            raise PermissionError("You cannot delete this timeline entry")
        return run_mutation(
            ctx,
            lambda: ctx.api.delete_timeline_entry(entry_id),
            success_description="Timeline entry deleted successfully",
            fallback="Failed to delete timeline entry",
            invalidate=self.invalidation(),
        ).ok

    # ------------------------------------------------------------------
    # view
    # ------------------------------------------------------------------
    def _entry_view(self, ctx: PageContext, entry: TimelineEntry) -> dict[str, Any]:
        view = entry.model_dump(by_alias=True, mode="json")
        view["progress"] = compute_timeline_progress(entry.status, entry.planned_start_date, entry.planned_end_date)
        view["statusLabel"] = humanize_status(entry.status)
        view["tone"] = timeline_tone(entry.status)
        view["canManage"] = can_manage_timeline_entry(ctx.user, entry)
        view["canSiteLeadApprove"] = can_site_lead_approve(ctx.user, entry)
        view["canInitiativeLeadApprove"] = can_initiative_lead_approve(ctx.user, entry)
        return view

    def render(self, ctx: PageContext) -> dict[str, Any]:
        view = self.render_picker(ctx)
        view["statuses"] = TIMELINE_STATUSES
        if self.selected_id is None:
            return view

        entries = self.entries(ctx)
        view.update(
            {
                "entries": [self._entry_view(ctx, entry) for entry in entries],
                "entriesEmptyMessage": None if entries else "No timeline entries recorded yet.",
                "overview": timeline_overview(entries),
                "pendingApprovals": [self._entry_view(ctx, entry) for entry in self.pending_approvals(ctx)],
            }
        )
        return view
