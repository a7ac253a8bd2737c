from __future__ import annotations

from typing import Any, Dict

import pandas as pd

from core.charts import timeline_chart, to_vega_spec
from core.data import InsightDataset, time_bounds
from core.selection import SessionState


def compute_timeline(state: SessionState, ctx: Dict[str, Any]) -> Dict[str, Any]:
    # Generation-time counts over the whole dataset, not the filtered set.
    dataset: InsightDataset = ctx["dataset"]
    buckets = pd.DataFrame([{"time": b.time, "count": b.count} for b in dataset.time_buckets], columns=["time", "count"])
    window = (int(state.time_range.start), int(state.time_range.end))

    charts: Dict[str, Any] = {}
    if not buckets.empty:
        charts["timeline"] = to_vega_spec(timeline_chart(buckets, window))

    return {
        "buckets": buckets.to_dict(orient="records"),
        "window": list(window),
        "bounds": list(time_bounds(dataset)),
        "charts": charts,
    }
