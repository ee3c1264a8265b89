from __future__ import annotations

import datetime as dt

CURRENCY_SYMBOL = "₹"

_STATUS_TONES = {
    "completed": "success",
    "in progress": "primary",
    "under review": "warning",
    "pending decision": "warning",
    "registered": "muted",
    "implementation": "primary",
    "moc review": "warning",
    "cmo review": "primary",
    "decision pending": "warning",
}

_PRIORITY_TONES = {"High": "destructive", "Medium": "warning", "Low": "muted"}

_APPROVAL_TONES = {"approved": "success", "rejected": "destructive", "pending": "warning"}

_TIMELINE_TONES = {
    "PENDING": "warning",
    "IN_PROGRESS": "primary",
    "COMPLETED": "success",
    "DELAYED": "destructive",
}


def _group_digits(amount: float) -> str:
    if float(amount).is_integer():
        return f"{int(amount):,}"
    return f"{amount:,.2f}".rstrip("0").rstrip(".")


def format_currency(amount: float | int | str | None) -> str:
    """Render an amount as ``₹ 150,000``; pre-formatted strings only gain the spacing."""

    if amount is None or amount == "":
        return f"{CURRENCY_SYMBOL} 0"
    if isinstance(amount, str):
        text = amount if amount.startswith(CURRENCY_SYMBOL) else f"{CURRENCY_SYMBOL}{amount}"
        return text.replace(CURRENCY_SYMBOL, f"{CURRENCY_SYMBOL} ", 1).replace("  ", " ")
    return f"{CURRENCY_SYMBOL} {_group_digits(amount)}"


def format_date(value: dt.date | dt.datetime | None) -> str | None:
    if value is None:
        return None
    if isinstance(value, dt.datetime):
        value = value.date()
    return value.isoformat()


def status_tone(status: str | None) -> str:
    return _STATUS_TONES.get((status or "").lower(), "muted")


def priority_tone(priority: str | None) -> str:
    return _PRIORITY_TONES.get(priority or "", "muted")


def approval_tone(approve_status: str | None) -> str:
    return _APPROVAL_TONES.get((approve_status or "").lower(), "muted")


def timeline_tone(status: str | None) -> str:
    return _TIMELINE_TONES.get(status or "", "muted")


def humanize_status(status: str) -> str:
    return status.replace("_", " ")
