from __future__ import annotations

import datetime as dt
from typing import Literal

from pydantic import BaseModel, ConfigDict, ValidationError, field_validator
from pydantic.alias_generators import to_camel


class ApiModel(BaseModel):
    """Base for payloads exchanged with the OpEx Hub API (camelCase on the wire)."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, extra="ignore")

    def to_api(self) -> dict:
        return self.model_dump(by_alias=True, mode="json", exclude_none=True)


class Initiative(ApiModel):
    id: int | str | None = None
    initiative_number: str | None = None
    title: str = ""
    description: str | None = None
    site: str = ""
    discipline: str = ""
    priority: str = ""
    status: str = ""
    expected_savings: float | str | None = None
    actual_savings: float | str | None = None
    progress_percentage: float | None = None
    progress: float | None = None
    current_stage: int | None = None
    start_date: dt.date | None = None
    end_date: dt.date | None = None
    requires_moc: bool | None = None
    requires_capex: bool | None = None
    estimated_capex: float | None = None
    initiator_name: str | None = None
    created_at: dt.datetime | None = None
    updated_at: dt.datetime | None = None
    created_by_name: str | None = None
    created_by_email: str | None = None
    created_by: int | str | None = None


class WorkflowTransaction(ApiModel):
    id: int | None = None
    initiative_id: int | None = None
    stage_number: int
    stage_name: str = ""
    required_role: str | None = None
    approve_status: str | None = None
    status: str | None = None
    assigned_user_id: int | None = None
    assigned_user_email: str | None = None
    action_by: str | None = None
    action_date: dt.datetime | None = None
    comment: str | None = None
    initiative_number: str | None = None
    initiative_title: str | None = None
    initiative_status: str | None = None
    site: str | None = None
    expected_savings: float | None = None
    description: str | None = None


class MonitoringEntry(ApiModel):
    id: int | None = None
    initiative_id: int | None = None
    monitoring_month: str
    kpi_description: str
    category: str | None = None
    target_value: float
    achieved_value: float | None = None
    deviation: float | None = None
    deviation_percentage: float | None = None
    remarks: str | None = None
    is_finalized: bool = False
    fa_approval: bool = False
    fa_comments: str | None = None
    entered_by: str = ""
    entry_date: dt.datetime | None = None
    last_modified: dt.datetime | None = None


TimelineStatus = Literal["PENDING", "IN_PROGRESS", "COMPLETED", "DELAYED"]


class TimelineEntry(ApiModel):
    id: int | None = None
    initiative_id: int | None = None
    stage_name: str
    planned_start_date: dt.date
    planned_end_date: dt.date
    actual_start_date: dt.date | None = None
    actual_end_date: dt.date | None = None
    status: TimelineStatus = "PENDING"
    responsible_person: str = ""
    remarks: str | None = None
    document_path: str | None = None
    site_lead_approval: bool = False
    initiative_lead_approval: bool = False
    progress_percentage: int | None = None
    entered_by: str | None = None
    updated_by: str | None = None


def _required_text(value: object, required: str, min_length: int = 1, too_short: str | None = None) -> str:
    text = str(value or "").strip()
    if not text:
        raise ValueError(required)
    if len(text) < min_length:
        raise ValueError(too_short or required)
    return text


class InitiativeFormData(ApiModel):
    """Stage 1 registration form as entered by a Site TSD Lead."""

    model_config = ConfigDict(
        alias_generator=to_camel, populate_by_name=True, extra="ignore", validate_default=True
    )

    title: str = ""
    initiator_name: str = ""
    site: str = ""
    discipline: str = ""
    date: dt.date | None = None
    description: str = ""
    baseline_data: str = ""
    target_outcome: str = ""
    target_value: float = 0
    is_budgeted: bool = False
    expected_value: float = 0
    confidence_level: int = 80
    assumption1: str = ""
    assumption2: str = ""
    assumption3: str = ""
    estimated_capex: float = 0

    @field_validator("title")
    @classmethod
    def _check_title(cls, value: str) -> str:
        return _required_text(value, "Initiative title is required", 10, "Title must be at least 10 characters")

    @field_validator("description")
    @classmethod
    def _check_description(cls, value: str) -> str:
        return _required_text(
            value, "Description is required", 50, "Description must be at least 50 characters"
        )

    @field_validator("initiator_name")
    @classmethod
    def _check_initiator(cls, value: str) -> str:
        return _required_text(value, "Initiator name is required")

    @field_validator("site")
    @classmethod
    def _check_site(cls, value: str) -> str:
        return _required_text(value, "Site selection is required")

    @field_validator("discipline")
    @classmethod
    def _check_discipline(cls, value: str) -> str:
        return _required_text(value, "Discipline selection is required")

    @field_validator("baseline_data")
    @classmethod
    def _check_baseline(cls, value: str) -> str:
        return _required_text(value, "Baseline data is required")

    @field_validator("target_outcome")
    @classmethod
    def _check_outcome(cls, value: str) -> str:
        return _required_text(value, "Target outcome is required")

    @field_validator("assumption1")
    @classmethod
    def _check_assumption1(cls, value: str) -> str:
        return _required_text(value, "First assumption is required")

    @field_validator("assumption2")
    @classmethod
    def _check_assumption2(cls, value: str) -> str:
        return _required_text(value, "Second assumption is required")

    @field_validator("assumption3")
    @classmethod
    def _check_assumption3(cls, value: str) -> str:
        return _required_text(value, "Third assumption is required")

    @field_validator("date")
    @classmethod
    def _check_date(cls, value: dt.date | None) -> dt.date:
        if value is None:
            raise ValueError("Date is required")
        if value > dt.date.today():
            raise ValueError("Date cannot be in the future")
        if value < dt.date(2020, 1, 1):
            raise ValueError("Date cannot be before 2020-01-01")
        return value

    @field_validator("target_value")
    @classmethod
    def _check_target(cls, value: float) -> float:
        if value < 0:
            raise ValueError("Target value must be positive")
        return value

    @field_validator("expected_value")
    @classmethod
    def _check_expected(cls, value: float) -> float:
        if value < 0:
            raise ValueError("Expected value must be positive")
        return value

    @field_validator("estimated_capex")
    @classmethod
    def _check_capex(cls, value: float) -> float:
        if value < 0:
            raise ValueError("CAPEX must be positive")
        return value

    @field_validator("confidence_level")
    @classmethod
    def _check_confidence(cls, value: int) -> int:
        if value < 1 or value > 100:
            raise ValueError("Confidence level must be between 1 and 100")
        return value


def field_errors(exc: ValidationError) -> dict[str, str]:
    """Flatten a pydantic error into ``{field_alias: message}`` for inline display."""

    errors: dict[str, str] = {}
    for error in exc.errors():
        location = error.get("loc") or ("__root__",)
        field = str(location[0])
        ctx = error.get("ctx") or {}
        cause = ctx.get("error")
        message = str(cause) if isinstance(cause, ValueError) else str(error.get("msg") or "Invalid value")
        errors.setdefault(field, message)
    return errors
