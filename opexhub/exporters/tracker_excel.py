from __future__ import annotations

import datetime as dt
from io import BytesIO
from pathlib import Path
from typing import Iterable

from openpyxl import Workbook
from openpyxl.styles import Alignment, Border, Font, PatternFill, Side
from openpyxl.worksheet.worksheet import Worksheet

from opexhub.core.schema import Initiative
from opexhub.core.stages import stage_name

TRACKER_MONTHS = [
    "Apr.25", "May.25", "June.25", "Jul.25", "Aug.25", "Sept.25",
    "Oct.25", "Nov.25", "Dec.25", "Jan.26", "Feb.26", "Mar.26",
]

TITLE = "INITIATIVE TRACKER SHEET"
FORM_REFERENCE = "(CRP-002/F4-01)"

HEADERS = [
    "",
    "Sr. No.",
    "Description of Initiative",
    "Category",
    "Initiative No.",
    "Initiation Date",
    "Initiative Leader",
    "Target Date",
    "Modification or CAPEX Cost",
    "Current Status",
    "Expected Savings",
    "Actual Savings",
    "Annualized Value FY25-26",
    "Remarks",
]

COLUMN_WIDTHS = [4, 10, 24, 12, 16, 12, 14, 12, 16, 14, 16, 16, 18, 12]

HEADER_ROW = 5
# blank bordered rows pad the sheet down to this row
MIN_LAST_ROW = 11

_THIN = Side(style="thin")
_BORDER = Border(top=_THIN, bottom=_THIN, left=_THIN, right=_THIN)
_HEADER_FONT = Font(bold=True, size=10)
_HEADER_FILL = PatternFill(fill_type="solid", start_color="FFC0C0C0", end_color="FFC0C0C0")
_TITLE_FONT = Font(bold=True, size=14)
_DATA_FONT = Font(size=10)


def _number(value: float | str | None) -> float | None:
    if value is None or value == "":
        return None
    try:
        return float(value)
    except (TypeError, ValueError):
        return None


def tracker_row(serial: int, initiative: Initiative) -> list[object]:
    """Cells B..N of one tracker row; column A stays empty."""

    expected = _number(initiative.expected_savings)
    actual = _number(initiative.actual_savings)
    leader = initiative.initiator_name or initiative.created_by_name or ""
    return [
        serial,
        initiative.title or "",
        initiative.discipline or "",
        initiative.initiative_number or "",
        initiative.start_date.isoformat() if initiative.start_date else None,
        leader,
        initiative.end_date.isoformat() if initiative.end_date else None,
        initiative.estimated_capex,
        initiative.status or "",
        expected,
        actual,
        actual if actual is not None else expected,
        stage_name(initiative.current_stage),
    ]


def _style_data_cell(sheet: Worksheet, row: int, column: int) -> None:
    cell = sheet.cell(row=row, column=column)
    cell.font = _DATA_FONT
    cell.border = _BORDER
    cell.alignment = Alignment(horizontal="left", vertical="center")


def _write_month_sheet(sheet: Worksheet, initiatives: list[Initiative], updated_on: dt.date) -> None:
    for index, width in enumerate(COLUMN_WIDTHS, start=1):
        sheet.column_dimensions[sheet.cell(row=1, column=index).column_letter].width = width

    title = sheet.cell(row=2, column=2, value=TITLE)
    title.font = _TITLE_FONT
    title.alignment = Alignment(horizontal="center")

    sheet.cell(row=3, column=2, value="Tracker updated on Date:")
    sheet.cell(row=3, column=3, value=updated_on.isoformat())
    sheet.cell(row=3, column=13, value=FORM_REFERENCE)
    for column in (2, 3, 13):
        _style_data_cell(sheet, 3, column)

    for column, header in enumerate(HEADERS, start=1):
        cell = sheet.cell(row=HEADER_ROW, column=column, value=header)
        cell.font = _HEADER_FONT
        cell.border = _BORDER
        cell.fill = _HEADER_FILL
        cell.alignment = Alignment(horizontal="center", vertical="center", wrap_text=True)

    row = HEADER_ROW + 1
    for serial, initiative in enumerate(initiatives, start=1):
        for column, value in enumerate(tracker_row(serial, initiative), start=2):
            sheet.cell(row=row, column=column, value=value)
            _style_data_cell(sheet, row, column)
        row += 1

    while row <= MIN_LAST_ROW:
        for column in range(2, len(HEADERS) + 1):
            _style_data_cell(sheet, row, column)
        row += 1


def build_tracker_workbook(initiatives: Iterable[Initiative], *, updated_on: dt.date | None = None) -> Workbook:
    """One sheet per fiscal month, each listing every initiative."""

    items = list(initiatives)
    stamp = updated_on or dt.date.today()
    workbook = Workbook()
    workbook.remove(workbook.active)
    for month in TRACKER_MONTHS:
        _write_month_sheet(workbook.create_sheet(month), items, stamp)
    return workbook


def tracker_bytes(initiatives: Iterable[Initiative], *, updated_on: dt.date | None = None) -> bytes:
    buffer = BytesIO()
    build_tracker_workbook(initiatives, updated_on=updated_on).save(buffer)
    return buffer.getvalue()


def export_tracker(path: Path, initiatives: Iterable[Initiative], *, updated_on: dt.date | None = None) -> Path:
    path.parent.mkdir(parents=True, exist_ok=True)
    build_tracker_workbook(initiatives, updated_on=updated_on).save(path)
    return path
