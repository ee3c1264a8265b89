"""Stage 1 registration form for new initiatives."""
from __future__ import annotations

import datetime as dt
from dataclasses import dataclass
from typing import Any

from pydantic import ValidationError

from opexhub.core.derivations import build_initiative_payload, derive_capex_flags
from opexhub.core.policies import can_create_initiative
from opexhub.core.schema import InitiativeFormData, field_errors
from opexhub.core.stages import DISCIPLINES, SITES
from opexhub.domain import User

from .mutations import run_mutation
from .portal import PageContext

FORM_FIELDS = (
    "title",
    "initiatorName",
    "site",
    "discipline",
    "date",
    "description",
    "baselineData",
    "targetOutcome",
    "targetValue",
    "isBudgeted",
    "expectedValue",
    "confidenceLevel",
    "assumption1",
    "assumption2",
    "assumption3",
    "estimatedCapex",
)


@dataclass(slots=True)
class Attachment:
    """A file picked on the form. Only its metadata is kept; nothing is uploaded."""

    name: str
    size: int
    content_type: str | None = None


def default_values(user: User, today: dt.date | None = None) -> dict[str, Any]:
    return {
        "title": "",
        "initiatorName": user.full_name,
        "site": user.site,
        "discipline": "",
        "date": (today or dt.date.today()).isoformat(),
        "description": "",
        "baselineData": "",
        "targetOutcome": "",
        "targetValue": 0,
        "isBudgeted": False,
        "expectedValue": 0,
        "confidenceLevel": 80,
        "assumption1": "",
        "assumption2": "",
        "assumption3": "",
        "estimatedCapex": 0,
    }


class InitiativeFormPage:
    def __init__(self, user: User) -> None:
        self._user = user
        self.values = default_values(user)
        self.errors: dict[str, str] = {}
        self.attachments: list[Attachment] = []

    @property
    def allowed(self) -> bool:
        return can_create_initiative(self._user)

    def _require_access(self) -> None:
        if not self.allowed:
            raise PermissionError("Only users with SITE TSD LEAD role can create new initiatives.")

    def update(self, values: dict[str, Any]) -> None:
        self._require_access()
        for name in FORM_FIELDS:
            if name in values:
                self.values[name] = values[name]
                self.errors.pop(name, None)

    def add_attachment(self, name: str, size: int, content_type: str | None = None) -> None:
        self._require_access()
        self.attachments.append(Attachment(name=name, size=size, content_type=content_type))

    def remove_attachment(self, index: int) -> None:
        self._require_access()
        if index < 0 or index >= len(self.attachments):
            raise IndexError(f"No attachment at position {index}")
        del self.attachments[index]

    def reset(self) -> None:
        self.values = default_values(self._user)
        self.errors = {}
        self.attachments = []

    def submit(self, ctx: PageContext) -> bool:
        self._require_access()
        try:
            form = InitiativeFormData.model_validate(self.values)
        except ValidationError as exc:
            self.errors = field_errors(exc)
            return False

        self.errors = {}
        payload = build_initiative_payload(form)
        result = run_mutation(
            ctx,
            lambda: ctx.api.create_initiative(payload),
            success_title="Initiative Submitted Successfully!",
            success_description="Initiative has been created and sent for approval.",
            fallback="Failed to create initiative",
            invalidate=[("initiatives",)],
        )
        if result.ok:
            self.reset()
        return result.ok

    def render(self) -> dict[str, Any]:
        if not self.allowed:
            return {
                "accessDenied": True,
                "message": "Only users with SITE TSD LEAD role can create new initiatives.",
                "currentRole": self._user.role,
            }
        try:
            capex = float(self.values.get("estimatedCapex") or 0)
        except (TypeError, ValueError):
            capex = 0.0
        flags = derive_capex_flags(capex)
        return {
            "accessDenied": False,
            "values": dict(self.values),
            "errors": dict(self.errors),
            "attachments": [
                {"name": item.name, "size": item.size, "contentType": item.content_type} for item in self.attachments
            ],
            "requiresMoc": flags.requires_moc,
            "requiresCapex": flags.requires_capex,
            "sites": SITES,
            "disciplines": DISCIPLINES,
        }
