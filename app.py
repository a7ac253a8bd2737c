import json
import random
from contextlib import contextmanager
from dataclasses import replace
from datetime import datetime, timezone
from typing import List, Optional

import altair as alt
import pandas as pd
import pydeck as pdk
import streamlit as st

from core.charts import ACCENT, PRIMARY, projection_chart, sparkline_chart, timeline_chart
from core.config import configure_logging, get_settings
from core.data import time_bounds
from core.export import EXPORT_FILENAME, build_export_snapshot
from core.filters import ALL
from core.metrics_detail import compute_detail
from core.metrics_hierarchy import compute_hierarchy
from core.metrics_map import compute_map
from core.metrics_network import compute_network
from core.metrics_overview import compute_overview
from core.metrics_projection import compute_projection
from core.metrics_timeline import compute_timeline
from core.mock_data import generate_mock_data
from core.selection import (
    FiltersChanged,
    FocusChanged,
    LayoutChanged,
    RangeChanged,
    SelectionChanged,
    SessionState,
    brush_indices,
    selection_from_indices,
)
from core.session import DashboardSession

alt.data_transformers.disable_max_rows()
settings = get_settings()
configure_logging(settings.log_level)

TRAJECTORY_COLOR = [139, 92, 246, 153]


# ---------- UI / layout helpers ----------
def inject_base_styles():
    if st.session_state.get("_base_css_injected"):
        return
    st.markdown(
        """
        <style>
        .app-top-bar {padding: 6px 0 4px;border-bottom: 1px solid #e5e7eb;margin-bottom: 10px;}
        .app-top-bar .page-title {font-size: 1.4rem;font-weight: 700;color: #111827;}
        .card {border: 1px solid #e5e7eb;border-radius: 12px;padding: 16px;background: #ffffff;
               box-shadow: 0 1px 2px rgba(0,0,0,0.04); margin-bottom: 12px;}
        .card-header {display: flex;justify-content: space-between;align-items: center;margin-bottom: 8px;}
        .card-title {font-weight: 600;font-size: 1.0rem;color: #111827;}
        .card-actions {font-size: 0.9rem;color: #2563eb;}
        .chip-row {display: flex;flex-wrap: wrap;gap: 6px;margin-top: 6px;}
        .chip {background: #f3f4f6;border: 1px solid #e5e7eb;border-radius: 14px;padding: 4px 10px;font-size: 0.85rem;color: #374151;}
        </style>
        """,
        unsafe_allow_html=True,
    )
    st.session_state["_base_css_injected"] = True


@contextmanager
def card(title: str, actions: Optional[str] = None):
    container = st.container()
    container.markdown(
        f"""
        <div class="card">
          <div class="card-header">
            <div class="card-title">{title}</div>
            <div class="card-actions">{actions or ""}</div>
          </div>
        """,
        unsafe_allow_html=True,
    )
    body = container.container()
    with body:
        yield body
    container.markdown("</div>", unsafe_allow_html=True)


def format_status_chips(status: dict) -> str:
    chips = [
        f"总量 / 过滤后: {status['total_points']} / {status['active_points']}",
        f"时间窗口: {status['time_window']}",
        f"均值可信度: {status['avg_confidence']}",
        f"区域/分组覆盖: {status['coverage']}",
    ]
    return "".join([f"<span class='chip'>{txt}</span>" for txt in chips])


def _to_dt(ms: int) -> datetime:
    return datetime.fromtimestamp(ms / 1000, tz=timezone.utc)


def _to_ms(value: datetime) -> int:
    return round(value.timestamp() * 1000)


def _rgba(hex_color: str, alpha: float) -> List[int]:
    h = hex_color.lstrip("#")
    return [int(h[i : i + 2], 16) for i in (0, 2, 4)] + [int(alpha * 255)]


# ---------- Session + widget callbacks ----------
# Widgets report user edits through on_change callbacks only; their values are
# refreshed from the session state on every run and never diffed against it.
def _session() -> DashboardSession:
    return st.session_state["session"]


def _regenerate(seed: Optional[int] = None):
    seed = seed if seed is not None else random.randint(1, 1000)
    _session().replace_dataset(generate_mock_data(settings.point_count, seed))
    st.session_state["seed"] = seed


def _on_layout_change():
    _session().dispatch(LayoutChanged(st.session_state["layout"]))


def _on_filter_change(field_name: str):
    session = _session()
    value = st.session_state[f"filter_{field_name}"]
    if field_name == "search":
        value = value.strip()
    elif field_name == "min_confidence":
        value = float(value)
    session.dispatch(FiltersChanged(replace(session.state.filters, **{field_name: value})))


def _on_range_change():
    start, end = st.session_state["time_window"]
    _session().dispatch(RangeChanged(_to_ms(start), _to_ms(end)))


def _on_selection_change():
    _session().dispatch(SelectionChanged(frozenset(st.session_state["selection_ids"])))


def _on_brush():
    session = _session()
    box = st.session_state["projection_brush"]["selection"].get("brush") or {}
    ids = frozenset()
    if "x" in box and "y" in box:
        time_filtered = session.views.context["time_filtered"]
        ids = selection_from_indices(time_filtered, brush_indices(time_filtered, box["x"], box["y"]))
    session.dispatch(SelectionChanged(ids))


def _on_focus_change():
    _session().dispatch(FocusChanged(st.session_state["focus_id"] or None))


def _sync_widgets(state: SessionState, bounds):
    ss = st.session_state
    f = state.filters
    ss["layout"] = state.layout
    ss["filter_search"] = f.search
    ss["filter_category"] = f.category
    ss["filter_community"] = f.community
    ss["filter_region"] = f.region
    ss["filter_min_confidence"] = min(1.0, max(0.5, float(f.min_confidence)))
    lo, hi = bounds
    start = min(hi, max(lo, state.time_range.start))
    ss["time_window"] = (_to_dt(start), _to_dt(max(start, min(hi, state.time_range.end))))
    ss["selection_ids"] = sorted(state.selection)
    ss["focus_id"] = state.focus_id or ""


# ---------- UI setup ----------
st.set_page_config(page_title="Insight Dashboard", layout="wide")
inject_base_styles()

if "session" not in st.session_state:
    st.session_state["session"] = DashboardSession(
        generate_mock_data(settings.point_count, settings.seed),
        min_confidence=settings.default_min_confidence,
    )
    st.session_state["seed"] = settings.seed
session = _session()
dataset = session.dataset
meta = dataset.meta
lo, hi = time_bounds(dataset)
_sync_widgets(session.state, (lo, hi))

# ----- Sidebar: dataset + filters -----
with st.sidebar:
    st.markdown("### Dataset")
    btn_cols = st.columns(2)
    btn_cols[0].button("重新生成数据", on_click=_regenerate)
    btn_cols[1].button("重置到固定种子", on_click=_regenerate, args=(settings.seed,))
    st.radio("Layout", ["grid", "alt"], key="layout", on_change=_on_layout_change, horizontal=True)

    st.markdown("---")
    st.markdown("### Filters")
    st.text_input("搜索 行程编号/名称/区域", key="filter_search", on_change=_on_filter_change, args=("search",))
    st.selectbox("类型", [ALL] + list(meta.categories), key="filter_category", on_change=_on_filter_change, args=("category",))
    st.selectbox("分组", [ALL] + list(meta.communities), key="filter_community", on_change=_on_filter_change, args=("community",))
    st.selectbox("区域", [ALL] + list(meta.regions), key="filter_region", on_change=_on_filter_change, args=("region",))
    st.slider(
        "可信度 ≥",
        min_value=0.5,
        max_value=1.0,
        step=0.01,
        key="filter_min_confidence",
        on_change=_on_filter_change,
        args=("min_confidence",),
    )

    st.markdown("---")
    if hi > lo:
        st.slider(
            "时间窗口",
            min_value=_to_dt(lo),
            max_value=_to_dt(hi),
            format="MM/DD HH:mm",
            key="time_window",
            on_change=_on_range_change,
        )

views = session.views
ctx = views.context
state = views.state

# ----- Header -----
overview = compute_overview(state, ctx)
c1, c2 = st.columns([8, 2])
with c1:
    st.markdown("<div class='app-top-bar'><div class='page-title'>城市出行状况看板</div></div>", unsafe_allow_html=True)
with c2:
    st.download_button(
        "导出当前筛选",
        data=json.dumps(build_export_snapshot(state, ctx), ensure_ascii=False, indent=2).encode("utf-8"),
        file_name=EXPORT_FILENAME,
        mime="application/json",
    )
st.markdown(f"<div class='chip-row'>{format_status_chips(overview['status'])}</div>", unsafe_allow_html=True)


# ----- Views -----
def render_map_view():
    with card("城市地图"):
        mode = st.radio("Map mode", ["points", "heat", "trajectory"], horizontal=True, key="map_mode")
        payload = compute_map(state, ctx, mode=mode)
        markers = pd.DataFrame(payload["markers"])
        if markers.empty:
            st.info("当前筛选无数据")
            return
        markers["color"] = [
            _rgba(ACCENT if hl else PRIMARY, opacity)
            for hl, opacity in zip(markers["highlighted"], markers["fill_opacity"])
        ]
        layers = [
            pdk.Layer(
                "ScatterplotLayer",
                data=markers,
                get_position="[lng, lat]",
                get_fill_color="color",
                get_radius="radius",
                radius_units="pixels",
                pickable=True,
            )
        ]
        if payload["trajectories"]:
            # deck.gl paths are [lng, lat]
            paths = pd.DataFrame(
                [{"id": t["id"], "path": [[lng, lat] for lat, lng in t["path"]]} for t in payload["trajectories"]]
            )
            layers.append(
                pdk.Layer("PathLayer", data=paths, get_path="path", get_color=TRAJECTORY_COLOR, width_min_pixels=2)
            )
        lat, lng = payload["center"]
        st.pydeck_chart(
            pdk.Deck(
                layers=layers,
                initial_view_state=pdk.ViewState(latitude=lat, longitude=lng, zoom=4),
                tooltip={"text": "{name}"},
            )
        )
        if payload["trajectories"]:
            st.caption(f"轨迹: {len(payload['trajectories'])} 条")


def render_timeline_view():
    with card("时间轴", actions="拖动过滤"):
        payload = compute_timeline(state, ctx)
        if not payload["buckets"]:
            st.info("No time buckets.")
            return
        st.altair_chart(timeline_chart(pd.DataFrame(payload["buckets"]), tuple(payload["window"])), use_container_width=True)


def render_projection_view():
    with card("出行特征散点", actions="框选 → 地图/关联联动"):
        payload = compute_projection(state, ctx)
        if not payload["points"]:
            st.info("当前筛选无数据")
            return
        st.altair_chart(
            projection_chart(pd.DataFrame(payload["points"])),
            use_container_width=True,
            key="projection_brush",
            on_select=_on_brush,
            selection_mode="brush",
        )
        # selected ids hidden by the current filters stay listed so they are kept
        options = [p["id"] for p in payload["points"]]
        options += sorted(state.selection - set(options))
        st.multiselect("Selection", options, key="selection_ids", on_change=_on_selection_change)


def render_network_view():
    with card("关联关系"):
        mode = st.radio("Network mode", ["graph", "list"], horizontal=True, key="network_mode")
        payload = compute_network(state, ctx, mode=mode)
        if mode == "list":
            rows = payload["hierarchy"]["rows"]
            if not rows:
                st.info("当前筛选无数据")
            else:
                st.dataframe(pd.DataFrame(rows), use_container_width=True, hide_index=True)
            return
        cols = st.columns(2)
        cols[0].metric("Nodes", payload["node_count"])
        cols[1].metric("Edges", payload["edge_count"])
        if payload["links"]:
            st.dataframe(pd.DataFrame(payload["links"]), use_container_width=True, hide_index=True, height=220)


def render_detail_view():
    payload = compute_detail(state, ctx)
    point = payload["point"]
    with card("详情" if point is None else f"详情 · {point['name']}"):
        options = [""] + [p.id for p in ctx["time_filtered"]]
        if state.focus_id and state.focus_id not in options:
            options.append(state.focus_id)
        st.selectbox("Focus", options, key="focus_id", on_change=_on_focus_change)
        if point is None:
            st.info("No point in view.")
            return
        cols = st.columns(2)
        cols[0].markdown(f"类型：{point['category']}  \n社区：{point['community']}")
        cols[1].markdown(f"区域：{point['region']}  \n置信度 {point['confidence_label']}")
        st.caption(f"层次路径：{point['hierarchy_label']}")
        st.altair_chart(sparkline_chart(pd.DataFrame(payload["sparkline"])), use_container_width=True)


if state.layout == "alt":
    left, right = st.columns([4, 6])
else:
    left, right = st.columns([6, 4])
with left:
    render_map_view()
with right:
    render_timeline_view()
    render_projection_view()
    render_network_view()
    render_detail_view()

with st.expander("Hierarchy"):
    st.dataframe(pd.DataFrame(compute_hierarchy(state, ctx)["rows"]), use_container_width=True, hide_index=True)
