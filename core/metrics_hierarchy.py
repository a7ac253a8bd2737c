from __future__ import annotations

from typing import Any, Dict, List, Sequence

from core.data import DataPoint, points_frame
from core.selection import SessionState

PATH_SEPARATOR = " / "


def aggregate_hierarchy(
    points: Sequence[DataPoint],
    regions: Sequence[str],
    communities: Sequence[str],
    categories: Sequence[str],
) -> List[Dict[str, Any]]:
    """Non-zero group counts in nested vocabulary order (region, community, category)."""
    if not points:
        return []
    df = points_frame(points)
    rows: List[Dict[str, Any]] = []
    for region in regions:
        region_df = df[df["region"] == region]
        if region_df.empty:
            continue
        rows.append({"path": region, "count": int(len(region_df))})
        for community in communities:
            comm_df = region_df[region_df["community"] == community]
            if comm_df.empty:
                continue
            rows.append({"path": PATH_SEPARATOR.join([region, community]), "count": int(len(comm_df))})
            leaf_counts = comm_df["category"].value_counts()
            for category in categories:
                count = int(leaf_counts.get(category, 0))
                if count:
                    rows.append({"path": PATH_SEPARATOR.join([region, community, category]), "count": count})
    return rows


def compute_hierarchy(state: SessionState, ctx: Dict[str, Any]) -> Dict[str, Any]:
    rows = ctx.get("hierarchy")
    if rows is None:
        meta = ctx["dataset"].meta
        rows = aggregate_hierarchy(ctx.get("active", []), meta.regions, meta.communities, meta.categories)
    return {
        "rows": rows,
        "empty": not rows,
        "depths": [row["path"].count(PATH_SEPARATOR) for row in rows],
    }
