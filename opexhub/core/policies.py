"""Row-level action visibility.

Every predicate is a pure function of the viewing user and the row. Pages call
them on each render; the API remains the authority on what is allowed.
"""
from __future__ import annotations

from opexhub.core.schema import MonitoringEntry, TimelineEntry, WorkflowTransaction
from opexhub.core.stages import (
    ROLE_ADMIN,
    ROLE_FA_APPROVER,
    ROLE_INITIATIVE_LEAD,
    ROLE_SITE_TSD_LEAD,
)
from opexhub.domain.session import User


def can_create_initiative(user: User) -> bool:
    return user.role == ROLE_SITE_TSD_LEAD


def can_process_stage(user: User, transaction: WorkflowTransaction) -> bool:
    return transaction.approve_status == "pending" and transaction.required_role == user.role


def _is_entry_owner(user: User, entry: MonitoringEntry) -> bool:
    return user.role == ROLE_SITE_TSD_LEAD and user.email == entry.entered_by


def can_edit_monitoring_entry(user: User, entry: MonitoringEntry) -> bool:
    return _is_entry_owner(user, entry) or user.role in (ROLE_FA_APPROVER, ROLE_ADMIN)


def can_finalize_monitoring_entry(user: User, entry: MonitoringEntry) -> bool:
    return _is_entry_owner(user, entry) or user.role == ROLE_ADMIN


def can_approve_monitoring_entry(user: User, entry: MonitoringEntry | None = None) -> bool:
    return user.role in (ROLE_FA_APPROVER, ROLE_ADMIN)


def can_manage_timeline_entry(user: User, entry: TimelineEntry) -> bool:
    return user.email == entry.entered_by or user.role in (ROLE_INITIATIVE_LEAD, ROLE_ADMIN)


def can_site_lead_approve(user: User, entry: TimelineEntry | None = None) -> bool:
    return user.role in (ROLE_SITE_TSD_LEAD, ROLE_ADMIN)


def can_initiative_lead_approve(user: User, entry: TimelineEntry | None = None) -> bool:
    return user.role in (ROLE_INITIATIVE_LEAD, ROLE_ADMIN)
