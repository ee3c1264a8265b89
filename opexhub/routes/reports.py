from __future__ import annotations

from datetime import datetime

from fastapi import APIRouter, Depends, HTTPException, Query
from fastapi.responses import Response

from opexhub.application import PageContext
from opexhub.application.initiatives import load_initiatives
from opexhub.core.filters import ALL, filter_initiatives
from opexhub.core.initiative_rows import SAMPLE_INITIATIVES
from opexhub.exporters.tracker_excel import tracker_bytes
from opexhub.infrastructure import OpexApiError

from .dependencies import get_page_context

router = APIRouter(prefix="/reports", tags=["reports"])

XLSX_MEDIA_TYPE = "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet"


def _xlsx_response(content: bytes, prefix: str) -> Response:
    stamp = datetime.now().strftime("%Y%m%d_%H%M%S")
    return Response(
        content=content,
        media_type=XLSX_MEDIA_TYPE,
        headers={"Content-Disposition": f'attachment; filename="{prefix}_{stamp}.xlsx"'},
    )


@router.get("/tracker")
def export_tracker(
    site: str = Query(default=ALL),
    ctx: PageContext = Depends(get_page_context),
) -> Response:
    """Initiative tracker workbook built from the initiatives the user can see."""
    initiatives = load_initiatives(ctx, site=site)
    if initiatives is None:
        initiatives = filter_initiatives(SAMPLE_INITIATIVES, site=site)
    return _xlsx_response(tracker_bytes(initiatives), "Initiative_Tracker")


@router.get("/detailed-excel")
def export_detailed_excel(
    site: str | None = Query(default=None),
    year: str | None = Query(default=None),
    ctx: PageContext = Depends(get_page_context),
) -> Response:
    try:
        content = ctx.api.export_detailed_excel(site=site, year=year)
    except OpexApiError as exc:
        raise HTTPException(status_code=502, detail=exc.message) from exc
    return _xlsx_response(content, "Monthly_Initiative_Report")
