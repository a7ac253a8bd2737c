from __future__ import annotations

from typing import Any, Dict, List, Optional, Sequence

import numpy as np
import pandas as pd

from core.charts import sparkline_chart, to_vega_spec
from core.data import DAY_MS, DataPoint, InsightDataset
from core.selection import SessionState


def build_sparkline(points: Sequence[DataPoint], dataset: InsightDataset) -> List[Dict[str, int]]:
    """Re-count ``points`` into the dataset's daily buckets, ``[time, time + 24h)``.

    The buckets' own ``count`` values are ignored; only their start times are used.
    """
    stamps = np.asarray([p.timestamp for p in points], dtype=np.int64)
    out: List[Dict[str, int]] = []
    for bucket in dataset.time_buckets:
        start = int(bucket.time)
        count = int(((stamps >= start) & (stamps < start + DAY_MS)).sum()) if stamps.size else 0
        out.append({"time": start, "count": count})
    return out


def _point_payload(point: Optional[DataPoint]) -> Optional[Dict[str, Any]]:
    if point is None:
        return None
    payload = point.to_dict()
    payload["confidence_label"] = f"{point.confidence:.2f}"
    payload["hierarchy_label"] = " / ".join(point.hierarchy_path)
    return payload


def compute_detail(state: SessionState, ctx: Dict[str, Any]) -> Dict[str, Any]:
    focus: Optional[DataPoint] = ctx.get("focus")
    spark = ctx.get("sparkline")
    if spark is None:
        spark = build_sparkline(ctx.get("active", []), ctx["dataset"])

    charts: Dict[str, Any] = {}
    if focus is not None and spark:
        charts["sparkline"] = to_vega_spec(sparkline_chart(pd.DataFrame(spark)))

    return {
        "focus_id": state.focus_id,
        "point": _point_payload(focus),
        "sparkline": spark,
        "charts": charts,
    }
