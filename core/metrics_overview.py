from __future__ import annotations

from dataclasses import asdict
from datetime import datetime, timezone
from typing import Any, Dict, Sequence

from core.data import DataPoint, InsightDataset, points_frame
from core.selection import SessionState


def compute_stats(points: Sequence[DataPoint]) -> Dict[str, Any]:
    if not points:
        return {"total": 0, "avg_confidence": 0.0, "region_count": 0, "community_count": 0}
    df = points_frame(points)
    return {
        "total": int(len(df)),
        "avg_confidence": float(df["confidence"].sum() / len(df)),
        "region_count": int(df["region"].nunique()),
        "community_count": int(df["community"].nunique()),
    }


def format_time_window(start: int, end: int) -> str:
    def _fmt(ms: int) -> str:
        return datetime.fromtimestamp(ms / 1000, tz=timezone.utc).strftime("%m/%d")

    return f"{_fmt(start)} - {_fmt(end)}"


def compute_overview(state: SessionState, ctx: Dict[str, Any]) -> Dict[str, Any]:
    dataset: InsightDataset = ctx["dataset"]
    stats = ctx.get("stats") or compute_stats(ctx.get("active", []))
    tr = state.time_range
    return {
        "filters": asdict(state.filters),
        "time_range": tr.as_list(),
        "stats": stats,
        "status": {
            "total_points": len(dataset.points),
            "active_points": stats["total"],
            "time_window": format_time_window(tr.start, tr.end),
            "avg_confidence": f"{stats['avg_confidence']:.2f}",
            "coverage": f"{stats['region_count']} / {stats['community_count']}",
        },
    }
