from __future__ import annotations

import datetime as dt
import re
from typing import Any

MONTH_PATTERN = re.compile(r"^\d{4}-(0[1-9]|1[0-2])$")

REQUIRED_FIELDS_MESSAGE = "Please fill in all required fields"


class ValidationError(Exception):
    """Raised when a form fails the checks made before any API call."""


def _blank(value: Any) -> bool:
    return value is None or (isinstance(value, str) and not value.strip())


def validate_credentials(email: str | None, password: str | None) -> None:
    if _blank(email) or _blank(password):
        raise ValidationError("Please enter your email and password.")


def validate_signup(form: dict[str, Any]) -> None:
    for field in ("fullName", "site", "discipline", "role"):
        if _blank(form.get(field)):
            raise ValidationError("Please fill in all required fields.")
    validate_credentials(form.get("email"), form.get("password"))


def validate_month(value: str) -> str:
    if not MONTH_PATTERN.match(value or ""):
        raise ValidationError("Please enter a valid month in YYYY-MM format")
    return value


def validate_monitoring_form(form: dict[str, Any]) -> None:
    # A zero target counts as missing: the deviation percentage divides by it.
    if _blank(form.get("kpiDescription")) or not form.get("targetValue") or _blank(form.get("monitoringMonth")):
        raise ValidationError(REQUIRED_FIELDS_MESSAGE)
    validate_month(str(form["monitoringMonth"]))


def _parse_date(value: Any) -> dt.date:
    if isinstance(value, dt.datetime):
        return value.date()
    if isinstance(value, dt.date):
        return value
    try:
        return dt.date.fromisoformat(str(value)[:10])
    except ValueError as exc:
        raise ValidationError(f"Invalid date: {value}") from exc


def validate_timeline_form(form: dict[str, Any]) -> None:
    required = ("stageName", "plannedStartDate", "plannedEndDate", "responsiblePerson")
    if any(_blank(form.get(field)) for field in required):
        raise ValidationError(REQUIRED_FIELDS_MESSAGE)
    if _parse_date(form["plannedEndDate"]) < _parse_date(form["plannedStartDate"]):
        raise ValidationError("End date must be after start date")
