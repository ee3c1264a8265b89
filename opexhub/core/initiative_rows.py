"""Display rows built from API initiatives and workflow transactions."""
from __future__ import annotations

import datetime as dt
from dataclasses import asdict, dataclass
from typing import Any, Iterable

from pydantic.alias_generators import to_camel

from opexhub.core.formatting import format_currency, format_date
from opexhub.core.schema import Initiative, WorkflowTransaction


@dataclass(slots=True)
class InitiativeRow:
    id: str
    title: str
    initiative_number: str
    site: str
    status: str
    priority: str
    expected_savings: str
    progress: float
    last_updated: str
    discipline: str
    submitted_date: str
    description: str | None = None
    start_date: str | None = None
    end_date: str | None = None
    current_stage: int | None = None
    requires_moc: bool | None = None
    requires_capex: bool | None = None
    created_by_name: str | None = None
    created_by_email: str | None = None
    created_by: str | None = None
    actual_savings: str | None = None

    def to_view(self) -> dict[str, Any]:
        return {to_camel(name): value for name, value in asdict(self).items()}


def to_initiative_row(item: Initiative, today: dt.date | None = None) -> InitiativeRow:
    today_text = (today or dt.date.today()).isoformat()
    return InitiativeRow(
        id=str(item.id) if item.id is not None else "",
        title=item.title or "",
        initiative_number=item.initiative_number or "",
        site=item.site or "",
        status=item.status or "",
        priority=item.priority or "",
        expected_savings=format_currency(item.expected_savings),
        progress=item.progress_percentage or item.progress or 0,
        last_updated=format_date(item.updated_at) or today_text,
        discipline=item.discipline or "",
        submitted_date=format_date(item.created_at) or today_text,
        description=item.description,
        start_date=format_date(item.start_date),
        end_date=format_date(item.end_date),
        current_stage=item.current_stage,
        requires_moc=item.requires_moc,
        requires_capex=item.requires_capex,
        created_by_name=item.created_by_name,
        created_by_email=item.created_by_email,
        created_by=str(item.created_by) if item.created_by is not None else None,
        actual_savings=format_currency(item.actual_savings) if item.actual_savings not in (None, "") else None,
    )


# Shown when the API answers without a page of initiatives.
SAMPLE_INITIATIVES: list[Initiative] = [
    Initiative(
        id=1,
        initiative_number="NDS/25/OP/AB/001",
        title="Steam Trap Replacement Program",
        site="NDS",
        discipline="EG",
        status="Registered",
        priority="High",
        expected_savings=250000,
        progress=10,
        current_stage=1,
        start_date=dt.date(2025, 4, 1),
        end_date=dt.date(2026, 4, 1),
    ),
    Initiative(
        id=2,
        initiative_number="HSD1/25/EV/CD/002",
        title="Effluent Water Recycling",
        site="HSD1",
        discipline="EV",
        status="In Progress",
        priority="Medium",
        expected_savings=180000,
        progress=45,
        current_stage=6,
        start_date=dt.date(2025, 5, 15),
        end_date=dt.date(2026, 5, 15),
    ),
    Initiative(
        id=3,
        initiative_number="DHJ/25/QA/EF/003",
        title="Batch Reactor Cycle Time Reduction",
        site="DHJ",
        discipline="OP",
        status="Under Review",
        priority="Low",
        expected_savings=95000,
        progress=25,
        current_stage=2,
        start_date=dt.date(2025, 6, 1),
        end_date=dt.date(2026, 6, 1),
    ),
]


@dataclass(slots=True)
class AssignedInitiative:
    """Initiative a user was assigned to through an approved workflow stage."""

    id: int | None
    initiative_number: str
    title: str
    status: str
    site: str
    initiative_lead: str
    expected_savings: float
    description: str | None
    current_stage: int

    def to_view(self) -> dict[str, Any]:
        view = {to_camel(name): value for name, value in asdict(self).items()}
        view["expectedSavingsDisplay"] = format_currency(self.expected_savings)
        return view


def assigned_initiatives(
    transactions: Iterable[WorkflowTransaction],
    *,
    stage_number: int,
    user_email: str,
) -> list[AssignedInitiative]:
    """Initiatives whose ``stage_number`` was approved with ``user_email`` assigned."""

    return [
        AssignedInitiative(
            id=item.initiative_id,
            initiative_number=item.initiative_number or "",
            title=item.initiative_title or "",
            status=item.initiative_status or "",
            site=item.site or "",
            initiative_lead=item.assigned_user_email or "",
            expected_savings=item.expected_savings or 0,
            description=item.description,
            current_stage=item.stage_number,
        )
        for item in transactions
        if item.stage_number == stage_number
        and item.status == "APPROVED"
        and item.assigned_user_email == user_email
    ]
