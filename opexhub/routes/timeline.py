from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException

from opexhub.application import PageContext, TimelinePage

from .dependencies import get_page_context, page_errors, require_int

router = APIRouter(prefix="/timeline", tags=["timeline"])


def _page(ctx: PageContext) -> TimelinePage:
    return ctx.session.page("timeline", TimelinePage)


@router.get("")
def timeline_view(ctx: PageContext = Depends(get_page_context)) -> dict:
    page = _page(ctx)
    page.refresh(ctx)
    return ctx.respond(page.render(ctx))


@router.post("/filters")
def set_filters(payload: dict, ctx: PageContext = Depends(get_page_context)) -> dict:
    page = _page(ctx)
    page.set_filters(search=payload.get("search"), status=payload.get("status"))
    return ctx.respond(page.render(ctx))


@router.post("/page")
def go_to_page(payload: dict, ctx: PageContext = Depends(get_page_context)) -> dict:
    page = _page(ctx)
    page.go_to_page(ctx, require_int(payload, "page"))
    return ctx.respond(page.render(ctx))


@router.post("/select/{initiative_id}")
def select_initiative(initiative_id: int, ctx: PageContext = Depends(get_page_context)) -> dict:
    page = _page(ctx)
    with page_errors():
        page.select(ctx, initiative_id)
    return ctx.respond(page.render(ctx))


@router.post("/back")
def back_to_list(ctx: PageContext = Depends(get_page_context)) -> dict:
    page = _page(ctx)
    page.back(ctx)
    return ctx.respond(page.render(ctx))


@router.post("/dialog/create")
def open_create_dialog(ctx: PageContext = Depends(get_page_context)) -> dict:
    page = _page(ctx)
    with page_errors():
        page.open_create()
    return ctx.respond(page.render(ctx))


@router.post("/entries/{entry_id}/edit")
def open_edit_dialog(entry_id: int, ctx: PageContext = Depends(get_page_context)) -> dict:
    page = _page(ctx)
    with page_errors():
        page.open_edit(ctx, entry_id)
    return ctx.respond(page.render(ctx))


@router.put("/dialog/form")
def update_dialog_form(payload: dict, ctx: PageContext = Depends(get_page_context)) -> dict:
    page = _page(ctx)
    page.update_form(payload)
    return ctx.respond(page.render(ctx))


@router.post("/dialog/close")
def close_dialog(ctx: PageContext = Depends(get_page_context)) -> dict:
    page = _page(ctx)
    page.close_dialog()
    return ctx.respond(page.render(ctx))


@router.post("/dialog/submit")
def submit_entry(ctx: PageContext = Depends(get_page_context)) -> dict:
    page = _page(ctx)
    with page_errors():
        page.submit(ctx)
    return ctx.respond(page.render(ctx))


@router.post("/entries/{entry_id}/approvals")
def update_approvals(entry_id: int, payload: dict, ctx: PageContext = Depends(get_page_context)) -> dict:
    flags = {key: payload.get(key) for key in ("siteLeadApproval", "initiativeLeadApproval")}
    if any(value is not None and not isinstance(value, bool) for value in flags.values()):
        raise HTTPException(status_code=400, detail="approval flags must be true or false")
    page = _page(ctx)
    with page_errors():
        page.update_approvals(
            ctx,
            entry_id,
            site_lead=flags["siteLeadApproval"],
            initiative_lead=flags["initiativeLeadApproval"],
        )
    return ctx.respond(page.render(ctx))


@router.delete("/entries/{entry_id}")
def delete_entry(entry_id: int, ctx: PageContext = Depends(get_page_context)) -> dict:
    page = _page(ctx)
    with page_errors():
        page.delete(ctx, entry_id)
    return ctx.respond(page.render(ctx))
