from __future__ import annotations

from dataclasses import replace

import pytest

from core.data import Projection
from core.filters import FilterState, TimeRange
from core.selection import (
    FiltersChanged,
    FocusChanged,
    LayoutChanged,
    RangeChanged,
    SelectionChanged,
    SessionState,
    apply_event,
    brush_indices,
    resolve_active,
    resolve_focus,
    selection_from_indices,
)


def test_active_is_time_filtered_without_selection(abc_points):
    assert resolve_active(abc_points, frozenset()) == abc_points


def test_active_keeps_time_filtered_order_not_selection_order(abc_points):
    a, b, c = abc_points
    assert resolve_active(abc_points, frozenset({"C", "A"})) == [a, c]


def test_selection_ids_outside_time_filtered_are_ignored(abc_points):
    a, _, _ = abc_points
    assert resolve_active(abc_points, frozenset({"A", "Z"})) == [a]


def test_explicit_focus_wins_even_outside_active(abc_points):
    a, b, _ = abc_points
    active = resolve_active(abc_points, frozenset({"B"}))
    assert active == [b]
    assert resolve_focus("A", abc_points, active) is a


def test_focus_defaults_to_first_active(abc_points):
    _, b, c = abc_points
    assert resolve_focus(None, abc_points, [c, b]) is c


def test_unknown_focus_falls_back_to_first_active(abc_points):
    a, _, _ = abc_points
    assert resolve_focus("missing", abc_points, abc_points) is a


def test_focus_not_in_time_filtered_falls_back(abc_points):
    a, b, c = abc_points
    # C was focused but the time window dropped it.
    assert resolve_focus("C", [a, b], [b]) is b


def test_no_focus_and_nothing_active_is_none(abc_points):
    assert resolve_focus(None, abc_points, []) is None
    assert resolve_focus("A", [], []) is None


def test_selection_from_indices_ignores_out_of_range(abc_points):
    assert selection_from_indices(abc_points, [0, 2, 7, -1]) == frozenset({"A", "C"})


@pytest.fixture
def state():
    return SessionState(filters=FilterState(), time_range=TimeRange(0, 10))


def test_events_produce_new_records(state):
    s1 = apply_event(state, SelectionChanged(frozenset({"A"})))
    assert s1 is not state
    assert state.selection == frozenset()
    assert s1.selection == frozenset({"A"})

    s2 = apply_event(s1, RangeChanged(2, 5))
    assert s2.time_range == TimeRange(2, 5)
    assert s1.time_range == TimeRange(0, 10)

    s3 = apply_event(s2, FocusChanged("A"))
    assert s3.focus_id == "A"
    assert apply_event(s3, FocusChanged(None)).focus_id is None

    s4 = apply_event(s3, FiltersChanged(FilterState(region="华北")))
    assert s4.filters.region == "华北"
    assert s4.selection == frozenset({"A"})

    assert apply_event(s4, LayoutChanged("alt")).layout == "alt"


def test_unknown_event_type_raises(state):
    with pytest.raises(TypeError):
        apply_event(state, object())  # type: ignore[arg-type]


def test_brush_box_maps_to_positions_inside_it(abc_points):
    a, b, c = abc_points
    points = [
        replace(a, projection=Projection(x=-5.0, y=0.0)),
        replace(b, projection=Projection(x=3.0, y=4.0)),
        replace(c, projection=Projection(x=10.0, y=10.0)),
    ]
    # ranges may arrive in either order; edges are inclusive
    indices = brush_indices(points, [10.0, 3.0], [4.0, 12.0])
    assert indices == [1, 2]
    assert selection_from_indices(points, indices) == frozenset({"B", "C"})
    assert brush_indices(points, [20.0, 30.0], [0.0, 1.0]) == []
