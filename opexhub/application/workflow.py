"""Workflow stage viewer and stage processing."""
from __future__ import annotations

import logging
from typing import Any, Iterable

from opexhub.core.formatting import approval_tone, format_currency
from opexhub.core.initiative_rows import SAMPLE_INITIATIVES
from opexhub.core.pagination import page_window, paginate
from opexhub.core.policies import can_process_stage
from opexhub.core.schema import Initiative, WorkflowTransaction
from opexhub.core.stages import WORKFLOW_STAGE_NAMES, describe_role
from opexhub.infrastructure import OpexApiError

from .initiatives import load_initiatives
from .monitoring import MonitoringPage
from .mutations import run_mutation
from .portal import PageContext
from .timeline import TimelinePage

logger = logging.getLogger(__name__)

PAGE_SIZE = 6
ACTIONS = ("approved", "rejected")


def next_pending_stage(transactions: Iterable[WorkflowTransaction]) -> WorkflowTransaction | None:
    """First transaction still awaiting a decision, in the order the API returned them."""

    for transaction in transactions:
        if transaction.approve_status == "pending":
            return transaction
    return None


def stage_progress(current_stage: int | None) -> int:
    return round(((current_stage or 1) - 1) * 100 / len(WORKFLOW_STAGE_NAMES))


class WorkflowPage:
    def __init__(self) -> None:
        self.current_page = 1
        self.selected_id: str | None = None
        self.dialog: WorkflowTransaction | None = None

    # ------------------------------------------------------------------
    # data
    # ------------------------------------------------------------------
    def initiatives(self, ctx: PageContext) -> list[Initiative]:
        remote = load_initiatives(ctx)
        return remote if remote else list(SAMPLE_INITIATIVES)

    def transactions(self, ctx: PageContext) -> list[WorkflowTransaction]:
        if self.selected_id is None:
            return []
        initiative_id = self.selected_id
        try:
            return ctx.cache.fetch(
                ("workflow-transactions", initiative_id),
                lambda: ctx.api.workflow_transactions(initiative_id),
            )
        except OpexApiError as exc:
            logger.warning("Could not load transactions for initiative %s: %s", initiative_id, exc.message)
            return []

    def pending_for_role(self, ctx: PageContext) -> list[WorkflowTransaction]:
        role = ctx.user.role
        if not role:
            return []
        try:
            return ctx.cache.fetch(("pending-transactions", role), lambda: ctx.api.pending_transactions_for_role(role))
        except OpexApiError as exc:
            logger.warning("Could not load pending transactions for role %s: %s", role, exc.message)
            return []

    # ------------------------------------------------------------------
    # navigation
    # ------------------------------------------------------------------
    def go_to_page(self, ctx: PageContext, page: int) -> None:
        total_pages = paginate(self.initiatives(ctx), 1, PAGE_SIZE).total_pages
        self.current_page = min(max(page, 1), max(total_pages, 1))

    def refresh(self, ctx: PageContext) -> None:
        """Drop the card list and stage snapshots so the next render reads the server."""

        ctx.cache.invalidate(("initiatives",))
        ctx.cache.invalidate(("pending-transactions",))
        if self.selected_id is not None:
            ctx.cache.invalidate(("workflow-transactions", self.selected_id))

    def select(self, ctx: PageContext, initiative_id: str) -> None:
        if not any(str(item.id) == str(initiative_id) for item in self.initiatives(ctx)):
            raise LookupError(f"Initiative {initiative_id} not found")
        ctx.cache.invalidate(("workflow-transactions", str(initiative_id)))
        self.selected_id = str(initiative_id)
        self.dialog = None

    def back(self, ctx: PageContext) -> None:
        ctx.cache.invalidate(("initiatives",))
        self.selected_id = None
        self.dialog = None

    # ------------------------------------------------------------------
    # stage processing
    # ------------------------------------------------------------------
    def open_dialog(self, ctx: PageContext, transaction_id: int) -> WorkflowTransaction:
        candidates = [*self.transactions(ctx), *self.pending_for_role(ctx)]
        for transaction in candidates:
            if transaction.id == transaction_id:
                if not can_process_stage(ctx.user, transaction):
                    raise PermissionError("You cannot process this stage")
                self.dialog = transaction
                return transaction
        raise LookupError(f"Transaction {transaction_id} not found")

    def close_dialog(self) -> None:
        self.dialog = None

    def process(self, ctx: PageContext, action: str, comment: str = "") -> bool:
        if self.dialog is None:
            raise LookupError("No stage is open for processing")
        if action not in ACTIONS:
            raise ValueError(f"action must be one of {', '.join(ACTIONS)}")

        transaction = self.dialog
        initiative_id = str(transaction.initiative_id) if transaction.initiative_id is not None else self.selected_id
        result = run_mutation(
            ctx,
            lambda: ctx.api.process_stage(transaction.id, action, comment),
            success_title="Stage approved successfully" if action == "approved" else "Stage rejected",
            success_description="The workflow has been updated.",
            failure_title="Error processing stage",
            fallback="Something went wrong",
            invalidate=[
                ("workflow-transactions", initiative_id),
                ("pending-transactions", ctx.user.role),
                ("initiative-progress", initiative_id),
                ("current-pending-stage", initiative_id),
                ("initiatives",),
                # an approved stage 6 or 9 grants access to the timeline or monitoring page
                (MonitoringPage.assigned_key,),
                (TimelinePage.assigned_key,),
            ],
        )
        if result.ok:
            self.dialog = None
        return result.ok

    # ------------------------------------------------------------------
    # view
    # ------------------------------------------------------------------
    def _transaction_view(self, ctx: PageContext, transaction: WorkflowTransaction) -> dict[str, Any]:
        view = transaction.model_dump(by_alias=True, mode="json")
        view["requiredRoleName"] = describe_role(transaction.required_role)
        view["tone"] = approval_tone(transaction.approve_status)
        view["canProcess"] = can_process_stage(ctx.user, transaction)
        return view

    def render(self, ctx: PageContext) -> dict[str, Any]:
        page = paginate(self.initiatives(ctx), self.current_page, PAGE_SIZE)
        cards = [
            {
                "id": str(item.id),
                "label": item.initiative_number or item.title,
                "status": item.status,
                "site": item.site,
                "currentStage": item.current_stage or 1,
                "expectedSavings": format_currency(item.expected_savings),
                "progress": stage_progress(item.current_stage),
            }
            for item in page.data
        ]
        transactions = self.transactions(ctx)
        pending = next_pending_stage(transactions)
        my_pending = self.pending_for_role(ctx)
        return {
            "initiatives": cards,
            "pagination": {
                "currentPage": page.current_page,
                "totalPages": page.total_pages,
                "hasPreviousPage": page.has_previous_page,
                "hasNextPage": page.has_next_page,
                "pages": page_window(page.current_page, page.total_pages),
            },
            "selectedInitiativeId": self.selected_id,
            "transactions": [self._transaction_view(ctx, item) for item in transactions],
            "nextPendingStage": pending.stage_number if pending else None,
            "emptyMessage": "No workflow transactions found for this initiative."
            if self.selected_id is not None and not transactions
            else None,
            "myPendingActions": [self._transaction_view(ctx, item) for item in my_pending],
            "myPendingEmptyMessage": None if my_pending else "No pending actions for your role.",
            "userRole": {"code": ctx.user.role, "name": describe_role(ctx.user.role)},
            "dialog": self._transaction_view(ctx, self.dialog) if self.dialog else None,
        }
