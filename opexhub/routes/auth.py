from __future__ import annotations

from fastapi import APIRouter, Depends

from opexhub.application import AuthPage, PageContext, get_portal_service

from .dependencies import get_page_context

router = APIRouter(prefix="/auth", tags=["auth"])


@router.get("")
def auth_page(mode: str = "login") -> dict:
    page = AuthPage(get_portal_service(), is_login=mode != "signup")
    return page.respond()


@router.post("/login")
def login(payload: dict) -> dict:
    page = AuthPage(get_portal_service(), is_login=True)
    page.update(payload)
    session = page.login()
    if session is None:
        return page.respond(token=None, user=None)
    response = page.respond(token=session.token, user=session.user.to_view())
    response["toasts"] = [toast.to_view() for toast in session.drain_toasts()] + response["toasts"]
    return response


@router.post("/signup")
def signup(payload: dict) -> dict:
    page = AuthPage(get_portal_service(), is_login=False)
    page.update(payload)
    created = page.signup()
    return page.respond(created=created)


@router.get("/me")
def current_user(ctx: PageContext = Depends(get_page_context)) -> dict:
    return ctx.respond({"user": ctx.user.to_view()})


@router.post("/logout")
def logout(ctx: PageContext = Depends(get_page_context)) -> dict:
    closed = get_portal_service().close_session(ctx.session.token)
    return {"loggedOut": closed}
