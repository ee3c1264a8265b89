from __future__ import annotations

from fastapi import APIRouter, Depends, File, HTTPException, UploadFile

from opexhub.application import InitiativeFormPage, PageContext

from .dependencies import get_page_context, page_errors

router = APIRouter(prefix="/initiative-form", tags=["initiative-form"])

MAX_ATTACHMENT_BYTES = 10 * 1024 * 1024
CHUNK_SIZE = 64 * 1024


def _page(ctx: PageContext) -> InitiativeFormPage:
    return ctx.session.page("initiative-form", lambda: InitiativeFormPage(ctx.user))


async def _measure(upload: UploadFile) -> int:
    size = 0
    while chunk := await upload.read(CHUNK_SIZE):
        size += len(chunk)
        if size > MAX_ATTACHMENT_BYTES:
            raise HTTPException(status_code=413, detail=f"{upload.filename} is larger than 10MB")
    return size


@router.get("")
def get_form(ctx: PageContext = Depends(get_page_context)) -> dict:
    return ctx.respond(_page(ctx).render())


@router.put("")
def update_form(payload: dict, ctx: PageContext = Depends(get_page_context)) -> dict:
    page = _page(ctx)
    with page_errors():
        page.update(payload)
    return ctx.respond(page.render())


@router.post("/attachments")
async def add_attachments(files: list[UploadFile] = File(...), ctx: PageContext = Depends(get_page_context)) -> dict:
    """Record picked files on the form; their contents are not stored."""
    if not files:
        raise HTTPException(status_code=400, detail="At least one file must be provided")

    page = _page(ctx)
    picked: list[tuple[str, int, str | None]] = []
    for upload in files:
        try:
            if not upload.filename:
                raise HTTPException(status_code=400, detail="Uploaded file must have a filename")
            picked.append((upload.filename, await _measure(upload), upload.content_type))
        finally:
            await upload.close()
    with page_errors():
        for name, size, content_type in picked:
            page.add_attachment(name, size, content_type)
    return ctx.respond(page.render())


@router.delete("/attachments/{index}")
def remove_attachment(index: int, ctx: PageContext = Depends(get_page_context)) -> dict:
    page = _page(ctx)
    with page_errors():
        page.remove_attachment(index)
    return ctx.respond(page.render())


@router.post("/submit")
def submit_form(ctx: PageContext = Depends(get_page_context)) -> dict:
    page = _page(ctx)
    with page_errors():
        submitted = page.submit(ctx)
    response = ctx.respond(page.render())
    response["submitted"] = submitted
    return response


@router.post("/reset")
def reset_form(ctx: PageContext = Depends(get_page_context)) -> dict:
    page = _page(ctx)
    page.reset()
    return ctx.respond(page.render())
