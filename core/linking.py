from __future__ import annotations

from dataclasses import dataclass
from typing import AbstractSet, FrozenSet, Sequence, Tuple

from core.data import NetworkEdge


@dataclass(frozen=True)
class Subgraph:
    edges: Tuple[NetworkEdge, ...]
    node_ids: FrozenSet[str]


def linked_subgraph(edges: Sequence[NetworkEdge], allowed_ids: AbstractSet[str]) -> Subgraph:
    """Induced subgraph over ``allowed_ids``.

    Only endpoints of retained edges become nodes: an allowed id without a
    surviving edge is not part of the graph.
    """
    kept = tuple(e for e in edges if e.source in allowed_ids and e.target in allowed_ids)
    used = set()
    for e in kept:
        used.add(e.source)
        used.add(e.target)
    return Subgraph(edges=kept, node_ids=frozenset(used))
