from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException
from fastapi.responses import Response

from opexhub.application import MonitoringPage, PageContext
from opexhub.exporters.monitoring_csv import monitoring_csv_bytes

from .dependencies import get_page_context, page_errors, require_int

router = APIRouter(prefix="/monitoring", tags=["monitoring"])


def _page(ctx: PageContext) -> MonitoringPage:
    return ctx.session.page("monitoring", MonitoringPage)


@router.get("")
def monitoring_view(ctx: PageContext = Depends(get_page_context)) -> dict:
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


@router.post("/month")
def set_month(payload: dict, ctx: PageContext = Depends(get_page_context)) -> dict:
    page = _page(ctx)
    with page_errors():
        page.set_month(str(payload.get("month") or ""))
    return ctx.respond(page.render(ctx))


@router.post("/tab")
def set_tab(payload: dict, ctx: PageContext = Depends(get_page_context)) -> dict:
    page = _page(ctx)
    with page_errors():
        page.set_tab(str(payload.get("tab") or ""))
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


@router.post("/entries/{entry_id}/finalize")
def finalize_entry(entry_id: int, ctx: PageContext = Depends(get_page_context)) -> dict:
    page = _page(ctx)
    with page_errors():
        page.finalize(ctx, entry_id)
    return ctx.respond(page.render(ctx))


@router.post("/entries/{entry_id}/fa-approval")
def fa_approval(entry_id: int, payload: dict, ctx: PageContext = Depends(get_page_context)) -> dict:
    approved = payload.get("faApproval")
    if not isinstance(approved, bool):
        raise HTTPException(status_code=400, detail="faApproval must be true or false")
    page = _page(ctx)
    with page_errors():
        page.set_fa_approval(ctx, entry_id, approved, payload.get("faComments"))
    return ctx.respond(page.render(ctx))


@router.delete("/entries/{entry_id}")
def delete_entry(entry_id: int, ctx: PageContext = Depends(get_page_context)) -> dict:
    page = _page(ctx)
    with page_errors():
        page.delete(ctx, entry_id)
    return ctx.respond(page.render(ctx))


@router.get("/export.csv")
def export_entries(ctx: PageContext = Depends(get_page_context)) -> Response:
    page = _page(ctx)
    if page.selected_id is None:
        raise HTTPException(status_code=400, detail="Select an initiative first")
    content = monitoring_csv_bytes(page.entries(ctx))
    filename = f"monitoring_{page.selected_id}.csv"
    return Response(
        content=content,
        media_type="text/csv",
        headers={"Content-Disposition": f'attachment; filename="{filename}"'},
    )
