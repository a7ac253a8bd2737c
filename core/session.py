from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Dict, Optional, Tuple

from core.data import DataPoint, InsightDataset, time_bounds
from core.filters import FilterState, TimeRange, apply_filters, filter_by_time_range
from core.linking import Subgraph, linked_subgraph
from core.metrics_detail import build_sparkline
from core.metrics_hierarchy import aggregate_hierarchy
from core.metrics_overview import compute_stats
from core.selection import InteractionEvent, SessionState, apply_event, resolve_active, resolve_focus

logger = logging.getLogger(__name__)


def default_state(dataset: InsightDataset, *, min_confidence: float = 0.0) -> SessionState:
    start, end = time_bounds(dataset)
    return SessionState(filters=FilterState(min_confidence=min_confidence), time_range=TimeRange(start, end))


def prepare_context(state: SessionState, dataset: InsightDataset) -> Dict[str, Any]:
    """Recompute every derived view from the unfiltered dataset."""
    filtered = apply_filters(dataset.points, state.filters)
    time_filtered = filter_by_time_range(filtered, state.time_range)
    active = resolve_active(time_filtered, state.selection)
    active_ids = frozenset(p.id for p in active)
    meta = dataset.meta

    return {
        "dataset": dataset,
        "state": state,
        "filtered": filtered,
        "time_filtered": time_filtered,
        "active": active,
        "active_ids": active_ids,
        "focus": resolve_focus(state.focus_id, time_filtered, active),
        "graph": linked_subgraph(dataset.edges, active_ids),
        "hierarchy": aggregate_hierarchy(active, meta.regions, meta.communities, meta.categories),
        "stats": compute_stats(active),
        "sparkline": build_sparkline(active, dataset),
    }


@dataclass(frozen=True)
class DerivedViews:
    """Read-only snapshot of the derived views for one input revision."""

    revision: int
    state: SessionState
    active: Tuple[DataPoint, ...]
    focus: Optional[DataPoint]
    graph: Subgraph
    hierarchy: Tuple[Dict[str, Any], ...]
    stats: Dict[str, Any]
    sparkline: Tuple[Dict[str, int], ...]
    context: Dict[str, Any]

    @classmethod
    def from_context(cls, revision: int, ctx: Dict[str, Any]) -> "DerivedViews":
        return cls(
            revision=revision,
            state=ctx["state"],
            active=tuple(ctx["active"]),
            focus=ctx["focus"],
            graph=ctx["graph"],
            hierarchy=tuple(ctx["hierarchy"]),
            stats=ctx["stats"],
            sparkline=tuple(ctx["sparkline"]),
            context=ctx,
        )


class DashboardSession:
    """Owns the dataset reference and the current session state.

    Every input change bumps ``revision``; a snapshot computed for an older
    revision is never published over a newer one.
    """

    def __init__(self, dataset: InsightDataset, state: Optional[SessionState] = None, *, min_confidence: float = 0.0):
        self._min_confidence = min_confidence
        self._dataset = dataset
        self._state = state or default_state(dataset, min_confidence=min_confidence)
        self._revision = 0
        self._views: Optional[DerivedViews] = None
        self.publish(self.derive())

    @property
    def dataset(self) -> InsightDataset:
        return self._dataset

    @property
    def state(self) -> SessionState:
        return self._state

    @property
    def revision(self) -> int:
        return self._revision

    @property
    def views(self) -> DerivedViews:
        assert self._views is not None
        return self._views

    def derive(self) -> DerivedViews:
        return DerivedViews.from_context(self._revision, prepare_context(self._state, self._dataset))

    def publish(self, views: DerivedViews) -> bool:
        if views.revision != self._revision:
            logger.debug("Discarding stale views rev=%d (current=%d)", views.revision, self._revision)
            return False
        self._views = views
        return True

    def _commit(self, state: SessionState) -> DerivedViews:
        self._state = state
        self._revision += 1
        self.publish(self.derive())
        return self.views

    def dispatch(self, event: InteractionEvent) -> DerivedViews:
        return self._commit(apply_event(self._state, event))

    def replace_dataset(self, dataset: InsightDataset) -> DerivedViews:
        logger.info("Replacing dataset (%d points, %d edges)", len(dataset.points), len(dataset.edges))
        self._dataset = dataset
        return self._commit(default_state(dataset, min_confidence=self._min_confidence))
