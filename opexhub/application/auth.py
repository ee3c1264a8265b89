"""Sign-in and registration."""
from __future__ import annotations

import logging
from typing import Any

from opexhub.core.stages import DISCIPLINES, ROLES, SITES, role_name
from opexhub.core.validation import ValidationError, validate_credentials, validate_signup
from opexhub.domain import Session, Toast, User
from opexhub.infrastructure import OpexApiError

from .portal import PortalService

logger = logging.getLogger(__name__)

UNEXPECTED_ERROR = "An unexpected error occurred. Please try again."

_EMPTY_FORM = {"email": "", "password": "", "fullName": "", "site": "", "discipline": "", "role": ""}


class AuthPage:
    """Login/signup switcher.

    There is no session yet while this page is shown, so toasts are kept on the
    page and returned with its view.
    """

    def __init__(self, portal: PortalService, *, is_login: bool = True) -> None:
        self._portal = portal
        self.is_login = is_login
        self.form: dict[str, str] = dict(_EMPTY_FORM)
        self.toasts: list[Toast] = []

    def _fail(self, title: str, description: str) -> None:
        self.toasts.append(Toast(title=title, description=description, variant="destructive"))

    def switch_tab(self, is_login: bool) -> None:
        self.is_login = is_login

    def update(self, values: dict[str, Any]) -> None:
        for key in _EMPTY_FORM:
            if key in values and values[key] is not None:
                self.form[key] = str(values[key])

    def login(self) -> Session | None:
        email, password = self.form["email"], self.form["password"]
        try:
            validate_credentials(email, password)
        except ValidationError as exc:
            self._fail("Login Failed", str(exc))
            return None

        try:
            result = self._portal.api.sign_in(email, password)
            token = result.get("token") or result.get("accessToken")
            user_payload = result.get("user") if isinstance(result.get("user"), dict) else result
            user = User.from_api(user_payload)
            if not user.email:
                raise ValueError("sign-in response carries no user")
        except OpexApiError as exc:
            self._fail("Login Failed", exc.message or "Invalid credentials")
            return None
        except (ValueError, TypeError, AttributeError):
            logger.exception("Unexpected sign-in response")
            self._fail("Login Failed", UNEXPECTED_ERROR)
            return None

        session = self._portal.open_session(user, token)
        session.toast("Login Successful", "Welcome back to OpEx Hub!")
        self.form["password"] = ""
        return session

    def signup(self) -> bool:
        try:
            validate_signup(self.form)
        except ValidationError as exc:
            self._fail("Signup Failed", str(exc))
            return False

        payload = {
            "fullName": self.form["fullName"],
            "email": self.form["email"],
            "password": self.form["password"],
            "site": self.form["site"],
            "discipline": self.form["discipline"],
            "role": self.form["role"],
            "roleName": role_name(self.form["role"]),
        }
        try:
            self._portal.api.sign_up(payload)
        except OpexApiError as exc:
            self._fail("Signup Failed", exc.message or "Registration failed")
            return False

        self.toasts.append(Toast(title="Signup Successful", description="Account created successfully! Please sign in."))
        self.is_login = True
        return True

    def render(self) -> dict[str, Any]:
        form = dict(self.form)
        form["password"] = ""
        return {
            "isLogin": self.is_login,
            "form": form,
            "sites": SITES,
            "disciplines": DISCIPLINES,
            "roles": ROLES,
        }

    def respond(self, **extra: Any) -> dict[str, Any]:
        toasts, self.toasts = self.toasts, []
        return {"view": self.render(), "toasts": [toast.to_view() for toast in toasts], **extra}
