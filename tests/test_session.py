from __future__ import annotations

from core.data import NetworkEdge
from core.filters import FilterState
from core.mock_data import generate_mock_data
from core.selection import FiltersChanged, FocusChanged, RangeChanged, SelectionChanged
from core.session import DashboardSession, default_state, prepare_context
from tests.conftest import BASE_TIME, make_dataset, make_point


def test_default_state_spans_dataset(abc_dataset, abc_points):
    state = default_state(abc_dataset, min_confidence=0.55)
    assert state.time_range.start == min(p.timestamp for p in abc_points)
    assert state.time_range.end == max(p.timestamp for p in abc_points)
    assert state.filters == FilterState(min_confidence=0.55)
    assert state.selection == frozenset()
    assert state.focus_id is None


def test_empty_dataset_derives_empty_views():
    dataset = make_dataset([])
    ctx = prepare_context(default_state(dataset), dataset)
    assert ctx["active"] == []
    assert ctx["focus"] is None
    assert ctx["graph"].edges == () and ctx["graph"].node_ids == frozenset()
    assert ctx["hierarchy"] == []
    assert ctx["stats"]["total"] == 0
    assert [r["count"] for r in ctx["sparkline"]] == [0, 0, 0]


def test_pipeline_order_filter_time_selection(abc_dataset):
    session = DashboardSession(abc_dataset)
    views = session.dispatch(FiltersChanged(FilterState(min_confidence=0.5)))
    assert [p.id for p in views.active] == ["A", "C"]

    views = session.dispatch(SelectionChanged(frozenset({"C", "B"})))
    # B is filtered out upstream, so the brush only keeps C.
    assert [p.id for p in views.active] == ["C"]
    assert views.graph.node_ids == frozenset()
    assert views.focus.id == "C"

    views = session.dispatch(FocusChanged("A"))
    assert views.focus.id == "A"
    assert [p.id for p in views.active] == ["C"]


def test_focus_precedence_through_session(abc_dataset):
    session = DashboardSession(abc_dataset)
    session.dispatch(SelectionChanged(frozenset({"B"})))
    views = session.dispatch(FocusChanged("A"))
    assert [p.id for p in views.context["time_filtered"]] == ["A", "B", "C"]
    assert [p.id for p in views.active] == ["B"]
    assert views.focus.id == "A"


def test_inverted_range_empties_everything(abc_dataset):
    session = DashboardSession(abc_dataset)
    views = session.dispatch(RangeChanged(BASE_TIME + 10, BASE_TIME))
    assert views.active == ()
    assert views.focus is None
    assert views.stats["avg_confidence"] == 0.0


def test_graph_tracks_active_set():
    dataset = make_dataset(
        [make_point("A"), make_point("B", region="华东"), make_point("C"), make_point("D")],
        [NetworkEdge("A", "B", 0.5), NetworkEdge("A", "C", 0.3)],
    )
    session = DashboardSession(dataset)
    assert session.views.graph.node_ids == frozenset({"A", "B", "C"})
    views = session.dispatch(FiltersChanged(FilterState(region="华北")))
    assert views.graph.node_ids == frozenset({"A", "C"})
    assert [p.id for p in views.active] == ["A", "C", "D"]


def test_stale_views_are_not_published(abc_dataset):
    session = DashboardSession(abc_dataset)
    stale = session.derive()
    session.dispatch(FiltersChanged(FilterState(region="华东")))
    assert session.publish(stale) is False
    assert [p.id for p in session.views.active] == ["B"]
    assert session.views.revision == session.revision


def test_each_input_change_bumps_revision(abc_dataset):
    session = DashboardSession(abc_dataset)
    assert session.revision == 0
    session.dispatch(FocusChanged("B"))
    session.dispatch(FocusChanged(None))
    assert session.revision == 2


def test_replace_dataset_resets_state():
    first = generate_mock_data(30, 1, base_time=BASE_TIME)
    second = generate_mock_data(40, 2, base_time=BASE_TIME)
    session = DashboardSession(first, min_confidence=0.55)
    session.dispatch(SelectionChanged(frozenset({"p-1"})))
    session.dispatch(FocusChanged("p-2"))

    views = session.replace_dataset(second)
    assert session.dataset is second
    assert views.state.selection == frozenset()
    assert views.state.focus_id is None
    assert views.state.filters.min_confidence == 0.55
    assert all(p.confidence >= 0.55 for p in views.active)
