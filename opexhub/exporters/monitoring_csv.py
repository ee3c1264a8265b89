from __future__ import annotations

from pathlib import Path
from typing import Iterable

import pandas as pd

from opexhub.core.schema import MonitoringEntry

COLUMNS = [
    "monitoring_month",
    "kpi_description",
    "category",
    "target_value",
    "achieved_value",
    "deviation",
    "deviation_percentage",
    "is_finalized",
    "fa_approval",
    "fa_comments",
    "entered_by",
    "remarks",
]


def monitoring_frame(entries: Iterable[MonitoringEntry]) -> pd.DataFrame:
    records = [{column: getattr(entry, column) for column in COLUMNS} for entry in entries]
    df = pd.DataFrame(records, columns=COLUMNS)
    return df.sort_values("monitoring_month", kind="stable").reset_index(drop=True)


def monitoring_csv_bytes(entries: Iterable[MonitoringEntry]) -> bytes:
    return monitoring_frame(entries).to_csv(index=False).encode("utf-8")


def export_monitoring_csv(path: Path, entries: Iterable[MonitoringEntry]) -> Path:
    df = monitoring_frame(entries)
    path.parent.mkdir(parents=True, exist_ok=True)
    df.to_csv(path, index=False)
    return path
