"""Fields derived on the portal before a record is sent to the API."""
from __future__ import annotations

import datetime as dt
from dataclasses import dataclass

from opexhub.core.schema import InitiativeFormData

MOC_CAPEX_THRESHOLD = 10  # lakhs
INITIATIVE_DURATION = dt.timedelta(days=365)
DEFAULT_PRIORITY = "Medium"


@dataclass(frozen=True, slots=True)
class Deviation:
    deviation: float | None
    deviation_percentage: float | None


def compute_deviation(achieved: float | None, target: float | None) -> Deviation:
    """Return ``achieved - target`` and its percentage of ``target``.

    Both values are ``None`` unless achieved and target are present; the
    percentage is also ``None`` for a zero target.
    """

    if achieved is None or target is None:
        return Deviation(None, None)
    deviation = achieved - target
    percentage = (deviation / target) * 100 if target else None
    return Deviation(deviation, percentage)


def achievement_ratio(achieved: float | None, target: float | None) -> float | None:
    if not achieved or not target:
        return None
    return (achieved / target) * 100


def _as_datetime(value: dt.date | dt.datetime) -> dt.datetime:
    if isinstance(value, dt.datetime):
        return value
    return dt.datetime.combine(value, dt.time.min)


def compute_timeline_progress(
    status: str,
    planned_start: dt.date | dt.datetime,
    planned_end: dt.date | dt.datetime,
    now: dt.datetime | None = None,
) -> int:
    """Estimate completion of a timeline entry from elapsed planned time."""

    if status == "COMPLETED":
        return 100
    if status == "PENDING":
        return 0

    start = _as_datetime(planned_start)
    end = _as_datetime(planned_end)
    current = now or dt.datetime.now()
    if current < start:
        return 0
    if current >= end:
        return 100

    total = (end - start).total_seconds()
    elapsed = (current - start).total_seconds()
    return min(100, max(0, round(elapsed / total * 100)))


@dataclass(frozen=True, slots=True)
class CapexFlags:
    requires_moc: bool
    requires_capex: bool


def derive_capex_flags(estimated_capex: float) -> CapexFlags:
    return CapexFlags(
        requires_moc=estimated_capex > MOC_CAPEX_THRESHOLD,
        requires_capex=estimated_capex > 0,
    )


def derive_end_date(start_date: dt.date) -> dt.date:
    return start_date + INITIATIVE_DURATION


def build_initiative_payload(form: InitiativeFormData) -> dict[str, object]:
    """Translate a validated registration form into the create-initiative payload."""

    flags = derive_capex_flags(form.estimated_capex)
    start_date = form.date or dt.date.today()
    return {
        "title": form.title,
        "description": form.description,
        "priority": DEFAULT_PRIORITY,
        "expectedSavings": form.expected_value,
        "site": form.site,
        "discipline": form.discipline,
        "startDate": start_date.isoformat(),
        "endDate": derive_end_date(start_date).isoformat(),
        "requiresMoc": flags.requires_moc,
        "requiresCapex": flags.requires_capex,
    }
