from __future__ import annotations

from dataclasses import asdict
from typing import Any, Dict

from core.selection import SessionState

EXPORT_FILENAME = "insight-export.json"


def build_export_snapshot(state: SessionState, ctx: Dict[str, Any]) -> Dict[str, Any]:
    """Point-in-time export payload; serialization is left to the caller."""
    return {
        "filtered_points": [p.to_dict() for p in ctx.get("active", [])],
        "time_range": state.time_range.as_list(),
        "filters": asdict(state.filters),
        "layout": state.layout,
    }
