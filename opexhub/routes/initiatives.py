from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException

from opexhub.application import InitiativesPage, PageContext

from .dependencies import get_page_context, page_errors, require_int

router = APIRouter(prefix="/initiatives", tags=["initiatives"])


def _page(ctx: PageContext) -> InitiativesPage:
    return ctx.session.page("initiatives", InitiativesPage)


def _modal_page(ctx: PageContext) -> InitiativesPage:
    page = _page(ctx)
    if page.modal is None:
        raise HTTPException(status_code=404, detail="No initiative is open")
    return page


@router.get("")
def list_initiatives(ctx: PageContext = Depends(get_page_context)) -> dict:
    page = _page(ctx)
    page.refresh(ctx)
    return ctx.respond(page.render(ctx))


@router.post("/filters")
def set_filters(payload: dict, ctx: PageContext = Depends(get_page_context)) -> dict:
    page = _page(ctx)
    page.set_filters(status=payload.get("status"), site=payload.get("site"), search=payload.get("search"))
    return ctx.respond(page.render(ctx))


@router.post("/filters/clear")
def clear_filters(ctx: PageContext = Depends(get_page_context)) -> dict:
    page = _page(ctx)
    page.clear_filters()
    return ctx.respond(page.render(ctx))


@router.post("/page")
def go_to_page(payload: dict, ctx: PageContext = Depends(get_page_context)) -> dict:
    page = _page(ctx)
    page.go_to_page(ctx, require_int(payload, "page"))
    return ctx.respond(page.render(ctx))


@router.post("/{initiative_id}/open")
def open_initiative(initiative_id: str, payload: dict | None = None, ctx: PageContext = Depends(get_page_context)) -> dict:
    page = _page(ctx)
    mode = (payload or {}).get("mode", "view")
    with page_errors():
        page.open(ctx, initiative_id, mode)
    return ctx.respond(page.render(ctx))


@router.post("/modal/edit")
def start_edit(ctx: PageContext = Depends(get_page_context)) -> dict:
    page = _modal_page(ctx)
    page.modal.start_edit()
    return ctx.respond(page.render(ctx))


@router.put("/modal/draft")
def update_draft(payload: dict, ctx: PageContext = Depends(get_page_context)) -> dict:
    page = _modal_page(ctx)
    page.modal.update_draft(payload)
    return ctx.respond(page.render(ctx))


@router.post("/modal/cancel")
def cancel_edit(ctx: PageContext = Depends(get_page_context)) -> dict:
    page = _modal_page(ctx)
    page.modal.cancel()
    return ctx.respond(page.render(ctx))


@router.post("/modal/save")
def save_initiative(ctx: PageContext = Depends(get_page_context)) -> dict:
    page = _modal_page(ctx)
    page.save(ctx)
    return ctx.respond(page.render(ctx))


@router.post("/modal/close")
def close_modal(ctx: PageContext = Depends(get_page_context)) -> dict:
    page = _page(ctx)
    page.close()
    return ctx.respond(page.render(ctx))
