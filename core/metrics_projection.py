from __future__ import annotations

from typing import Any, Dict

from core.charts import projection_chart, to_vega_spec
from core.data import points_frame
from core.selection import SessionState


def compute_projection(state: SessionState, ctx: Dict[str, Any]) -> Dict[str, Any]:
    # The scatter plots the time-filtered set so a brush can be redrawn or widened.
    df = points_frame(ctx.get("time_filtered", []))
    if df.empty:
        return {"points": [], "selected_count": 0, "charts": {}}

    df = df[["id", "name", "category", "x", "y"]].copy()
    df["selected"] = df["id"].isin(state.selection)
    df["size"] = 10 + (df["x"] + df["y"]).abs() * 0.3
    df["index"] = range(len(df))

    return {
        "points": df.to_dict(orient="records"),
        "selected_count": int(df["selected"].sum()),
        "charts": {"projection": to_vega_spec(projection_chart(df))},
    }
