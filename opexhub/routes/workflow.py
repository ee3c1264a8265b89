from __future__ import annotations

from fastapi import APIRouter, Depends

from opexhub.application import PageContext, WorkflowPage

from .dependencies import get_page_context, page_errors, require_int

router = APIRouter(prefix="/workflow", tags=["workflow"])


def _page(ctx: PageContext) -> WorkflowPage:
    return ctx.session.page("workflow", WorkflowPage)


@router.get("")
def workflow_view(ctx: PageContext = Depends(get_page_context)) -> dict:
    page = _page(ctx)
    page.refresh(ctx)
    return ctx.respond(page.render(ctx))


@router.post("/page")
def go_to_page(payload: dict, ctx: PageContext = Depends(get_page_context)) -> dict:
    page = _page(ctx)
    page.go_to_page(ctx, require_int(payload, "page"))
    return ctx.respond(page.render(ctx))


@router.post("/select/{initiative_id}")
def select_initiative(initiative_id: str, ctx: PageContext = Depends(get_page_context)) -> dict:
    page = _page(ctx)
    with page_errors():
        page.select(ctx, initiative_id)
    return ctx.respond(page.render(ctx))


@router.post("/back")
def back_to_list(ctx: PageContext = Depends(get_page_context)) -> dict:
    page = _page(ctx)
    page.back(ctx)
    return ctx.respond(page.render(ctx))


@router.post("/transactions/{transaction_id}/dialog")
def open_stage_dialog(transaction_id: int, ctx: PageContext = Depends(get_page_context)) -> dict:
    page = _page(ctx)
    with page_errors():
        page.open_dialog(ctx, transaction_id)
    return ctx.respond(page.render(ctx))


@router.post("/dialog/close")
def close_stage_dialog(ctx: PageContext = Depends(get_page_context)) -> dict:
    page = _page(ctx)
    page.close_dialog()
    return ctx.respond(page.render(ctx))


@router.post("/dialog/process")
def process_stage(payload: dict, ctx: PageContext = Depends(get_page_context)) -> dict:
    page = _page(ctx)
    with page_errors():
        page.process(ctx, str(payload.get("action") or ""), str(payload.get("comment") or ""))
    return ctx.respond(page.render(ctx))
