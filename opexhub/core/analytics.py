"""Summary figures for the monitoring and timeline dashboards."""
from __future__ import annotations

from typing import Iterable

import pandas as pd
from pydantic.alias_generators import to_camel

from opexhub.core.schema import MonitoringEntry, TimelineEntry
from opexhub.core.stages import TIMELINE_STATUSES


def _monitoring_frame(entries: Iterable[MonitoringEntry]) -> pd.DataFrame:
    rows = [
        {
            "month": entry.monitoring_month,
            "kpi": entry.kpi_description,
            "target": entry.target_value,
            "achieved": entry.achieved_value or 0,
            "deviation": entry.deviation or 0,
            "deviation_percentage": entry.deviation_percentage or 0,
            "is_finalized": entry.is_finalized,
            "fa_approval": entry.fa_approval,
        }
        for entry in entries
    ]
    columns = ["month", "kpi", "target", "achieved", "deviation", "deviation_percentage", "is_finalized", "fa_approval"]
    return pd.DataFrame(rows, columns=columns)


def monitoring_chart_data(entries: Iterable[MonitoringEntry]) -> list[dict[str, object]]:
    """Per-entry series for the trend chart, ordered by month."""

    df = _monitoring_frame(entries)
    if df.empty:
        return []
    df = df.sort_values("month", kind="stable")
    records = df[["month", "target", "achieved", "deviation", "deviation_percentage", "kpi"]].to_dict("records")
    return [{to_camel(key): _plain(value) for key, value in record.items()} for record in records]


def monitoring_summary(entries: Iterable[MonitoringEntry]) -> dict[str, float | int]:
    df = _monitoring_frame(entries)
    total = int(len(df))
    finalized = int(df["is_finalized"].sum()) if total else 0
    approved = int(df["fa_approval"].sum()) if total else 0
    total_savings = float(df["achieved"].sum()) if total else 0.0
    return {
        "totalEntries": total,
        "finalizedEntries": finalized,
        "pendingEntries": total - finalized,
        "approvedEntries": approved,
        "averageAchievement": total_savings / total if total else 0.0,
        "totalSavings": total_savings,
        "finalizationRate": round(finalized / total * 100, 1) if total else 0.0,
        "approvalRate": round(approved / finalized * 100, 1) if finalized else 0.0,
    }


def timeline_overview(entries: Iterable[TimelineEntry]) -> dict[str, int]:
    statuses = pd.Series([entry.status for entry in entries], dtype="object")
    counts = statuses.value_counts()
    overview = {"totalEntries": int(len(statuses))}
    for status in TIMELINE_STATUSES:
        overview[to_camel(status.lower())] = int(counts.get(status, 0))
    return overview


def _plain(value: object) -> object:
    # numpy scalars are not JSON serialisable by the web layer
    return value.item() if hasattr(value, "item") else value
