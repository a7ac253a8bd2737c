from __future__ import annotations

from typing import Any, Dict, Optional, Tuple

import altair as alt
import pandas as pd

alt.data_transformers.disable_max_rows()

ACCENT = "#f97316"
PRIMARY = "#4b82f5"


def to_vega_spec(chart: alt.Chart) -> Dict[str, Any]:
    """Convert an Altair chart into a Vega-Lite spec dict (JSON-serializable)."""
    return chart.to_dict()


def with_dates(df: pd.DataFrame, ms_col: str = "time", out_col: str = "date") -> pd.DataFrame:
    out = df.copy()
    out[out_col] = pd.to_datetime(out[ms_col], unit="ms")
    return out


def timeline_chart(buckets: pd.DataFrame, window: Optional[Tuple[int, int]] = None) -> alt.LayerChart:
    src = with_dates(buckets)
    base = alt.Chart(src).encode(x=alt.X("date:T", title=None, axis=alt.Axis(format="%m/%d", grid=False)))
    bars = base.mark_bar(size=10, color=PRIMARY).encode(
        y=alt.Y("count:Q", title=None, axis=alt.Axis(gridDash=[4, 4], domain=False, ticks=False)),
        tooltip=[alt.Tooltip("date:T", title="Day", format="%m/%d"), alt.Tooltip("count:Q", title="Count")],
    )
    line = base.mark_line(interpolate="monotone", color=ACCENT, strokeWidth=2, opacity=0.6).encode(y="count:Q")
    layers = [bars, line]
    if window is not None:
        win = with_dates(pd.DataFrame({"start": [window[0]], "end": [window[1]]}), "start", "start_date")
        win["end_date"] = pd.to_datetime(win["end"], unit="ms")
        layers.insert(0, alt.Chart(win).mark_rect(color="#5af1ff", opacity=0.12).encode(x="start_date:T", x2="end_date:T"))
    return alt.layer(*layers).properties(height=220)


def sparkline_chart(spark: pd.DataFrame) -> alt.LayerChart:
    src = with_dates(spark)
    base = alt.Chart(src).encode(
        x=alt.X("date:T", axis=None),
        y=alt.Y("count:Q", axis=None),
    )
    area = base.mark_area(interpolate="monotone", color="rgba(255,140,66,0.18)")
    line = base.mark_line(interpolate="monotone", color="#ff8c42", strokeWidth=2)
    return alt.layer(area, line).properties(height=60)


def projection_chart(points: pd.DataFrame) -> alt.Chart:
    brush = alt.selection_interval(name="brush", encodings=["x", "y"])
    return (
        alt.Chart(points)
        .mark_circle(opacity=0.85)
        .encode(
            x=alt.X("x:Q", title=None, axis=alt.Axis(gridOpacity=0.3)),
            y=alt.Y("y:Q", title=None, axis=alt.Axis(gridOpacity=0.3)),
            size=alt.Size("size:Q", legend=None),
            color=alt.condition("datum.selected", alt.value(ACCENT), alt.value(PRIMARY)),
            tooltip=["name:N", "category:N"],
        )
        .add_params(brush)
        .properties(height=240)
    )
