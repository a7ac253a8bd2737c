from __future__ import annotations

from typing import Any, Dict, List, Literal, Sequence, Tuple

from core.data import DataPoint, points_frame
from core.mock_data import ANOMALY_CATEGORY
from core.selection import SessionState

MapMode = Literal["points", "heat", "trajectory"]

DEFAULT_CENTER: Tuple[float, float] = (30.6, 104.0)
MAX_TRAJECTORIES = 40


def map_center(points: Sequence[DataPoint]) -> Tuple[float, float]:
    if not points:
        return DEFAULT_CENTER
    df = points_frame(points)
    return float(df["lat"].mean()), float(df["lng"].mean())


def compute_map(state: SessionState, ctx: Dict[str, Any], *, mode: MapMode = "points") -> Dict[str, Any]:
    active: List[DataPoint] = list(ctx.get("active", []))
    focus_id = state.focus_id

    markers = []
    for p in active:
        highlighted = p.id == focus_id or p.category == ANOMALY_CATEGORY
        markers.append(
            {
                "id": p.id,
                "name": p.name,
                "lat": p.coordinates.lat,
                "lng": p.coordinates.lng,
                "radius": 18 if mode == "heat" else 8 + p.confidence * 4,
                "highlighted": highlighted,
                "fill_opacity": 0.35 if mode == "heat" else 0.6,
            }
        )

    trajectories = []
    if mode == "trajectory":
        trajectories = [
            {"id": p.id, "path": [[t.lat, t.lng] for t in p.trajectory]}
            for p in active[:MAX_TRAJECTORIES]
        ]

    return {
        "mode": mode,
        "center": list(map_center(active)),
        "markers": markers,
        "trajectories": trajectories,
    }
