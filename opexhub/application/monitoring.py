"""Monthly savings monitoring for initiatives approved at the savings-monitoring stage."""
from __future__ import annotations

import datetime as dt
import logging
from typing import Any

from opexhub.core.analytics import monitoring_chart_data, monitoring_summary
from opexhub.core.derivations import achievement_ratio, compute_deviation
from opexhub.core.policies import (
    can_approve_monitoring_entry,
    can_edit_monitoring_entry,
    can_finalize_monitoring_entry,
)
from opexhub.core.schema import MonitoringEntry
from opexhub.core.stages import MONITORING_CATEGORIES, ROLE_SITE_TSD_LEAD, SAVINGS_MONITORING_STAGE_NUMBER
from opexhub.core.validation import ValidationError, validate_month, validate_monitoring_form
from opexhub.infrastructure import OpexApiError

from .assigned import AssignedInitiativesPage
from .mutations import run_mutation
from .portal import PageContext

logger = logging.getLogger(__name__)

FORM_FIELDS = ("kpiDescription", "category", "targetValue", "achievedValue", "monitoringMonth", "remarks")


def current_month(today: dt.date | None = None) -> str:
    return (today or dt.date.today()).strftime("%Y-%m")


def _number(value: Any) -> float | None:
    if value is None or value == "":
        return None
    try:
        return float(value)
    except (TypeError, ValueError):
        return None


def build_monitoring_payload(form: dict[str, Any]) -> dict[str, Any]:
    """Normalise the dialog form and attach deviation fields."""

    target = _number(form.get("targetValue"))
    achieved = _number(form.get("achievedValue"))
    deviation = compute_deviation(achieved, target)
    return {
        "kpiDescription": str(form.get("kpiDescription") or "").strip(),
        "category": form.get("category") or "General",
        "targetValue": target,
        "achievedValue": achieved,
        "monitoringMonth": form.get("monitoringMonth"),
        "remarks": form.get("remarks") or None,
        "isFinalized": False,
        "faApproval": False,
        "deviation": deviation.deviation,
        "deviationPercentage": deviation.deviation_percentage,
    }


class MonitoringPage(AssignedInitiativesPage):
    role = ROLE_SITE_TSD_LEAD
    stage_number = SAVINGS_MONITORING_STAGE_NUMBER
    assigned_key = "stage9-approved-initiatives"
    entries_key = "monitoring-entries"
    empty_message = "No initiatives have been approved for savings monitoring yet."

    def __init__(self) -> None:
        super().__init__()
        self.selected_month = current_month()
        self.active_tab = "overview"

    # ------------------------------------------------------------------
    # data
    # ------------------------------------------------------------------
    def entries(self, ctx: PageContext) -> list[MonitoringEntry]:
        if self.selected_id is None:
            return []
        initiative_id = self.selected_id
        return self._load(ctx, (self.entries_key, initiative_id), lambda: ctx.api.monitoring_entries(initiative_id))

    def month_entries(self, ctx: PageContext) -> list[MonitoringEntry]:
        if self.selected_id is None or not self.selected_month:
            return []
        initiative_id, month = self.selected_id, self.selected_month
        return self._load(
            ctx,
            (self.entries_key, initiative_id, month),
            lambda: ctx.api.monitoring_entries(initiative_id, month),
        )

    def pending_fa_approvals(self, ctx: PageContext) -> list[MonitoringEntry]:
        if self.selected_id is None:
            return []
        initiative_id = self.selected_id
        return self._load(
            ctx,
            (self.entries_key, initiative_id, "pending-fa-approvals"),
            lambda: ctx.api.pending_fa_approvals(initiative_id),
        )

    @staticmethod
    def _load(ctx: PageContext, key: tuple, loader) -> list[MonitoringEntry]:
        try:
            return ctx.cache.fetch(key, loader)
        except OpexApiError as exc:
            logger.warning("Could not load monitoring entries %s: %s", key, exc.message)
            return []

    def _entry(self, ctx: PageContext, entry_id: int) -> MonitoringEntry:
        for entry in self.entries(ctx):
            if entry.id == entry_id:
                return entry
        raise LookupError(f"Monitoring entry {entry_id} not found")

    # ------------------------------------------------------------------
    # navigation
    # ------------------------------------------------------------------
    def set_month(self, month: str) -> None:
        self.selected_month = validate_month(month)

    def set_tab(self, tab: str) -> None:
        if tab not in ("overview", "entries", "analytics"):
            raise ValueError(f"unknown tab: {tab}")
        self.active_tab = tab

    # ------------------------------------------------------------------
    # mutations
    # ------------------------------------------------------------------
    def open_edit(self, ctx: PageContext, entry_id: int) -> None:
        entry = self._entry(ctx, entry_id)
        if not can_edit_monitoring_entry(ctx.user, entry):
            raise PermissionError("You cannot edit this monitoring entry")
        data = entry.model_dump(by_alias=True, mode="json")
        self.form = {name: data.get(name) for name in FORM_FIELDS}
        self.editing_id = entry_id
        self.dialog_open = True

    def update_form(self, values: dict[str, Any]) -> None:
        self.form.update({name: values[name] for name in FORM_FIELDS if name in values})

    def submit(self, ctx: PageContext) -> bool:
        initiative_id = self._require_selection()
        form = dict(self.form)
        form["targetValue"] = _number(form.get("targetValue"))
        try:
            validate_monitoring_form(form)
        except ValidationError as exc:
            ctx.toast("Error", str(exc), variant="destructive")
            return False

        payload = build_monitoring_payload(form)
        now = dt.datetime.now().isoformat(timespec="seconds")
        editing_id = self.editing_id
        self.dialog_open = False
        if editing_id is not None:
            payload["lastModified"] = now
            result = run_mutation(
                ctx,
                lambda: ctx.api.update_monitoring_entry(editing_id, payload),
                success_description="Monitoring entry updated successfully",
                fallback="Failed to update monitoring entry",
                invalidate=self.invalidation(),
            )
        else:
            payload.update({"enteredBy": ctx.user.email, "entryDate": now, "initiativeId": initiative_id})
            result = run_mutation(
                ctx,
                lambda: ctx.api.create_monitoring_entry(initiative_id, payload),
                success_description="Monitoring entry created successfully",
                fallback="Failed to create monitoring entry",
                invalidate=self.invalidation(),
            )
        self._after_submit(result.ok)
        return result.ok

    def finalize(self, ctx: PageContext, entry_id: int) -> bool:
        entry = self._entry(ctx, entry_id)
        if entry.is_finalized or not can_finalize_monitoring_entry(ctx.user, entry):
            raise PermissionError("You cannot finalize this monitoring entry")
        return run_mutation(
            ctx,
            lambda: ctx.api.finalize_monitoring_entry(entry_id, True),
            success_description="Finalization status updated",
            fallback="Failed to update finalization status",
            invalidate=self.invalidation(),
        ).ok

    def set_fa_approval(self, ctx: PageContext, entry_id: int, approved: bool, comments: str | None = None) -> bool:
        entry = self._entry(ctx, entry_id)
        if not can_approve_monitoring_entry(ctx.user, entry):
            raise PermissionError("Only F&A approvers can approve monitoring entries")
        return run_mutation(
            ctx,
            lambda: ctx.api.set_fa_approval(entry_id, approved, comments),
            success_description="F&A approval status updated",
            fallback="Failed to update F&A approval",
            invalidate=self.invalidation(),
        ).ok

    def delete(self, ctx: PageContext, entry_id: int) -> bool:
        self._entry(ctx, entry_id)
        return run_mutation(
            ctx,
            lambda: ctx.api.delete_monitoring_entry(entry_id),
            success_description="Monitoring entry deleted successfully",
            fallback="Failed to delete monitoring entry",
            invalidate=self.invalidation(),
        ).ok

    # ------------------------------------------------------------------
    # view
    # ------------------------------------------------------------------
    def _entry_view(self, ctx: PageContext, entry: MonitoringEntry) -> dict[str, Any]:
        view = entry.model_dump(by_alias=True, mode="json")
        view["achievementRatio"] = achievement_ratio(entry.achieved_value, entry.target_value)
        view["canEdit"] = can_edit_monitoring_entry(ctx.user, entry)
        view["canFinalize"] = not entry.is_finalized and can_finalize_monitoring_entry(ctx.user, entry)
        view["canApprove"] = can_approve_monitoring_entry(ctx.user, entry)
        view["canDelete"] = True
        return view

    def render(self, ctx: PageContext) -> dict[str, Any]:
        view = self.render_picker(ctx)
        view.update(
            {
                "activeTab": self.active_tab,
                "selectedMonth": self.selected_month,
                "categories": MONITORING_CATEGORIES,
            }
        )
        if self.selected_id is None:
            return view

        entries = self.entries(ctx)
        month_entries = self.month_entries(ctx)
        view.update(
            {
                "entries": [self._entry_view(ctx, entry) for entry in entries],
                "entriesEmptyMessage": None if entries else "No monitoring entries recorded yet.",
                "monthEntries": [self._entry_view(ctx, entry) for entry in month_entries],
                "monthEmptyMessage": None if month_entries else f"No entries for {self.selected_month}.",
                "chartData": monitoring_chart_data(entries),
                "summary": monitoring_summary(entries),
                "pendingFaApprovals": [self._entry_view(ctx, entry) for entry in self.pending_fa_approvals(ctx)],
            }
        )
        return view
