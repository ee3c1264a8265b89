"""Static catalogues shared by the portal pages."""
from __future__ import annotations

SITES: list[dict[str, str]] = [
    {"code": "NDS", "name": "NDS"},
    {"code": "HSD1", "name": "HSD1"},
    {"code": "HSD2", "name": "HSD2"},
    {"code": "HSD3", "name": "HSD3"},
    {"code": "DHJ", "name": "DHJ"},
    {"code": "APL", "name": "APL"},
    {"code": "TCD", "name": "TCD"},
]

DISCIPLINES: list[dict[str, str]] = [
    {"code": "OP", "name": "Operation"},
    {"code": "EG", "name": "Engineering & Utility"},
    {"code": "EV", "name": "Environment"},
    {"code": "SF", "name": "Safety"},
    {"code": "QA", "name": "Quality"},
    {"code": "OT", "name": "Others"},
]

ROLE_SITE_TSD_LEAD = "STLD"
ROLE_SITE_HEAD = "SH"
ROLE_ENGINEERING_HEAD = "EH"
ROLE_INITIATIVE_LEAD = "IL"
ROLE_CORP_TSD = "CTSD"
ROLE_FA_APPROVER = "F&A Approver"
ROLE_ADMIN = "ADMIN"

ROLES: list[dict[str, str]] = [
    {"code": ROLE_SITE_TSD_LEAD, "name": "Site TSD Lead"},
    {"code": ROLE_SITE_HEAD, "name": "Site Head"},
    {"code": ROLE_ENGINEERING_HEAD, "name": "Engineering Head"},
    {"code": ROLE_INITIATIVE_LEAD, "name": "Initiative Lead"},
    {"code": ROLE_CORP_TSD, "name": "Corp TSD"},
]

# Fixed approval sequence; the remote API decides who acts on each stage.
WORKFLOW_STAGE_NAMES: dict[int, str] = {
    1: "Register Initiative",
    2: "Approval",
    3: "Define Responsibilities",
    4: "MOC Stage",
    5: "CAPEX Stage",
    6: "Initiative Timeline Tracker",
    7: "Trial Implementation & Performance Check",
    8: "Periodic Status Review with CMO",
    9: "Savings Monitoring (1 Month)",
    10: "Saving Validation with F&A",
    11: "Initiative Closure",
}

DEFAULT_STAGE_NAME = WORKFLOW_STAGE_NAMES[1]

TIMELINE_STAGE_NUMBER = 6
SAVINGS_MONITORING_STAGE_NUMBER = 9

MONITORING_CATEGORIES: list[str] = [
    "General",
    "Cost Savings",
    "Quality Improvement",
    "Process Efficiency",
    "Safety Metrics",
    "Environmental",
]

TIMELINE_STATUSES: list[str] = ["PENDING", "IN_PROGRESS", "COMPLETED", "DELAYED"]


def role_name(code: str | None) -> str:
    """Return the display name of a role code, or an empty string."""

    for role in ROLES:
        if role["code"] == code:
            return role["name"]
    return ""


def describe_role(code: str | None) -> str:
    """Return a role description, falling back to the raw code."""

    return role_name(code) or (code or "")


def stage_name(stage_number: int | None) -> str:
    if stage_number is None:
        return DEFAULT_STAGE_NAME
    return WORKFLOW_STAGE_NAMES.get(stage_number, DEFAULT_STAGE_NAME)
