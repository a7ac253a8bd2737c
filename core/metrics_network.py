from __future__ import annotations

from typing import Any, Dict, Literal

from core.linking import Subgraph, linked_subgraph
from core.metrics_hierarchy import compute_hierarchy
from core.mock_data import ANOMALY_CATEGORY
from core.selection import SessionState

NetworkMode = Literal["graph", "list"]


def compute_network(state: SessionState, ctx: Dict[str, Any], *, mode: NetworkMode = "graph") -> Dict[str, Any]:
    if mode == "list":
        return {"mode": mode, "hierarchy": compute_hierarchy(state, ctx)}

    active = ctx.get("active", [])
    graph: Subgraph = ctx.get("graph") or linked_subgraph(ctx["dataset"].edges, {p.id for p in active})
    lookup = {p.id: p for p in active}

    nodes = []
    for node_id in sorted(graph.node_ids):
        p = lookup.get(node_id)
        confidence = p.confidence if p is not None else None
        nodes.append(
            {
                "id": node_id,
                "name": p.name if p is not None else node_id,
                "value": confidence if confidence is not None else 1.0,
                "symbol_size": 10 + (confidence if confidence is not None else 0.6) * 8,
                "highlighted": node_id == state.focus_id or (p is not None and p.category == ANOMALY_CATEGORY),
            }
        )
    links = [{"source": e.source, "target": e.target, "width": e.weight * 1.2} for e in graph.edges]

    return {
        "mode": mode,
        "nodes": nodes,
        "links": links,
        "node_count": len(nodes),
        "edge_count": len(links),
    }
