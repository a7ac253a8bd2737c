"""Selection precedence and the interactive session state.

The active set is the time-filtered set narrowed by the secondary (brush)
selection when one is in effect. The focused entity follows a different
rule: an explicit focus is looked up in the time-filtered set, so it stays
visible in the detail panel even when the brush excludes it. Without an
explicit focus the first active point is shown.
"""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from typing import AbstractSet, FrozenSet, Iterable, List, Optional, Sequence, Union

from core.data import DataPoint
from core.filters import FilterState, TimeRange


def resolve_active(time_filtered: Sequence[DataPoint], selection: AbstractSet[str]) -> List[DataPoint]:
    if selection:
        return [p for p in time_filtered if p.id in selection]
    return list(time_filtered)


def resolve_focus(
    focus_id: Optional[str],
    time_filtered: Sequence[DataPoint],
    active: Sequence[DataPoint],
) -> Optional[DataPoint]:
    if focus_id is not None:
        for p in time_filtered:
            if p.id == focus_id:
                return p
    if active:
        return active[0]
    return None


def selection_from_indices(time_filtered: Sequence[DataPoint], indices: Iterable[int]) -> FrozenSet[str]:
    """Map brushed data indices of the projection view back to point ids."""
    ids = set()
    for idx in indices:
        if 0 <= idx < len(time_filtered):
            ids.add(time_filtered[idx].id)
    return frozenset(ids)


def brush_indices(
    time_filtered: Sequence[DataPoint],
    x_range: Sequence[float],
    y_range: Sequence[float],
) -> List[int]:
    """Positions of the points whose projection falls inside a brushed box (edges inclusive)."""
    x0, x1 = sorted(x_range)
    y0, y1 = sorted(y_range)
    return [
        i
        for i, p in enumerate(time_filtered)
        if x0 <= p.projection.x <= x1 and y0 <= p.projection.y <= y1
    ]


# ---------------- Interaction events ----------------
@dataclass(frozen=True)
class FiltersChanged:
    filters: FilterState


@dataclass(frozen=True)
class RangeChanged:
    start: int
    end: int


@dataclass(frozen=True)
class SelectionChanged:
    ids: FrozenSet[str] = frozenset()


@dataclass(frozen=True)
class FocusChanged:
    id: Optional[str] = None


@dataclass(frozen=True)
class LayoutChanged:
    layout: str = "grid"


InteractionEvent = Union[FiltersChanged, RangeChanged, SelectionChanged, FocusChanged, LayoutChanged]


@dataclass(frozen=True)
class SessionState:
    filters: FilterState
    time_range: TimeRange
    selection: FrozenSet[str] = field(default_factory=frozenset)
    focus_id: Optional[str] = None
    layout: str = "grid"

    def with_filters(self, filters: FilterState) -> "SessionState":
        return replace(self, filters=filters)

    def with_time_range(self, start: int, end: int) -> "SessionState":
        return replace(self, time_range=TimeRange(int(start), int(end)))

    def with_selection(self, ids: Iterable[str]) -> "SessionState":
        return replace(self, selection=frozenset(ids))

    def with_focus(self, focus_id: Optional[str]) -> "SessionState":
        return replace(self, focus_id=focus_id or None)

    def with_layout(self, layout: str) -> "SessionState":
        return replace(self, layout=layout)


def apply_event(state: SessionState, event: InteractionEvent) -> SessionState:
    if isinstance(event, FiltersChanged):
        return state.with_filters(event.filters)
    if isinstance(event, RangeChanged):
        return state.with_time_range(event.start, event.end)
    if isinstance(event, SelectionChanged):
        return state.with_selection(event.ids)
    if isinstance(event, FocusChanged):
        return state.with_focus(event.id)
    if isinstance(event, LayoutChanged):
        return state.with_layout(event.layout)
    raise TypeError(f"Unsupported interaction event: {type(event).__name__}")
