from __future__ import annotations

import json
import logging
import math
from typing import Any, Callable, Dict, Literal, Optional

import numpy as np
from fastapi import FastAPI, Query
from fastapi.encoders import jsonable_encoder
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, Response

from api.schemas import BrushRequest, DashboardStateModel, TimeBoundsResponse, VocabularyResponse
from core.config import configure_logging, get_settings
from core.data import InsightDataset, time_bounds
from core.export import EXPORT_FILENAME, build_export_snapshot
from core.filters import FilterValidationError, TimeRange, normalize_filters
from core.metrics_detail import compute_detail
from core.metrics_hierarchy import compute_hierarchy
from core.metrics_map import compute_map
from core.metrics_network import compute_network
from core.metrics_overview import compute_overview
from core.metrics_projection import compute_projection
from core.metrics_timeline import compute_timeline
from core.mock_data import load_dashboard_data
from core.selection import SessionState, selection_from_indices
from core.session import prepare_context


settings = get_settings()
configure_logging(settings.log_level)

app = FastAPI(title="Insight Dashboard API", version="0.1.0")
logger = logging.getLogger(__name__)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

MAX_POINT_COUNT = 5000

ComputeFn = Callable[[SessionState, Dict[str, Any]], Dict[str, Any]]


def _dataset(count: Optional[int], seed: Optional[int]) -> InsightDataset:
    return load_dashboard_data(
        settings.point_count if count is None else count,
        settings.seed if seed is None else seed,
    )


def _state_from_model(model: DashboardStateModel, dataset: InsightDataset) -> SessionState:
    filters = normalize_filters(
        model.filters.model_dump(exclude_none=True),
        dataset.meta,
        default_min_confidence=settings.default_min_confidence,
    )
    if model.time_range is None:
        start, end = time_bounds(dataset)
    else:
        start, end = model.time_range.start, model.time_range.end
    return SessionState(
        filters=filters,
        time_range=TimeRange(start, end),
        selection=frozenset(model.selection),
        focus_id=model.focus_id or None,
        layout=model.layout,
    )


def _json(data: object) -> JSONResponse:
    """Return JSON with safe encoding for numpy objects."""

    def _safe_float(value: object) -> float | None:
        try:
            out = float(value)  # type: ignore[arg-type]
        except Exception:
            return None
        if math.isnan(out) or math.isinf(out):
            return None
        return out

    return JSONResponse(
        content=jsonable_encoder(
            data,
            custom_encoder={
                np.integer: int,
                float: _safe_float,
                np.floating: _safe_float,
                np.bool_: bool,
                np.ndarray: lambda arr: arr.tolist(),
                frozenset: sorted,
            },
        )
    )


def _error(status_code: int, exc: Exception) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"error": str(exc), "type": type(exc).__name__})


def _compute(name: str, model: DashboardStateModel, count: Optional[int], seed: Optional[int], fn: ComputeFn) -> JSONResponse:
    try:
        dataset = _dataset(count, seed)
        state = _state_from_model(model, dataset)
        ctx = prepare_context(state, dataset)
        return _json(fn(state, ctx))
    except FilterValidationError as exc:
        logger.warning("%s rejected: %s", name, exc)
        return _error(422, exc)
    except Exception as exc:
        logger.exception("%s failed", name)
        return _error(500, exc)


@app.get("/meta/vocabulary", response_model=VocabularyResponse)
def meta_vocabulary(count: Optional[int] = Query(default=None, ge=0, le=MAX_POINT_COUNT), seed: Optional[int] = Query(default=None)):
    try:
        meta = _dataset(count, seed).meta
        return _json({"regions": list(meta.regions), "categories": list(meta.categories), "communities": list(meta.communities)})
    except Exception as exc:
        logger.exception("meta_vocabulary failed")
        return _error(500, exc)


@app.get("/meta/time-bounds", response_model=TimeBoundsResponse)
def meta_time_bounds(count: Optional[int] = Query(default=None, ge=0, le=MAX_POINT_COUNT), seed: Optional[int] = Query(default=None)):
    try:
        start, end = time_bounds(_dataset(count, seed))
        return _json({"start": start, "end": end})
    except Exception as exc:
        logger.exception("meta_time_bounds failed")
        return _error(500, exc)


@app.post("/overview")
def overview(state: DashboardStateModel, count: Optional[int] = Query(default=None, ge=0, le=MAX_POINT_COUNT), seed: Optional[int] = Query(default=None)):
    return _compute("overview", state, count, seed, compute_overview)


@app.post("/timeline")
def timeline(state: DashboardStateModel, count: Optional[int] = Query(default=None, ge=0, le=MAX_POINT_COUNT), seed: Optional[int] = Query(default=None)):
    return _compute("timeline", state, count, seed, compute_timeline)


@app.post("/projection")
def projection(state: DashboardStateModel, count: Optional[int] = Query(default=None, ge=0, le=MAX_POINT_COUNT), seed: Optional[int] = Query(default=None)):
    return _compute("projection", state, count, seed, compute_projection)


@app.post("/map")
def map_view(
    state: DashboardStateModel,
    mode: Literal["points", "heat", "trajectory"] = Query(default="points"),
    count: Optional[int] = Query(default=None, ge=0, le=MAX_POINT_COUNT),
    seed: Optional[int] = Query(default=None),
):
    return _compute("map", state, count, seed, lambda s, ctx: compute_map(s, ctx, mode=mode))


@app.post("/network")
def network(
    state: DashboardStateModel,
    mode: Literal["graph", "list"] = Query(default="graph"),
    count: Optional[int] = Query(default=None, ge=0, le=MAX_POINT_COUNT),
    seed: Optional[int] = Query(default=None),
):
    return _compute("network", state, count, seed, lambda s, ctx: compute_network(s, ctx, mode=mode))


@app.post("/hierarchy")
def hierarchy(state: DashboardStateModel, count: Optional[int] = Query(default=None, ge=0, le=MAX_POINT_COUNT), seed: Optional[int] = Query(default=None)):
    return _compute("hierarchy", state, count, seed, compute_hierarchy)


@app.post("/detail")
def detail(state: DashboardStateModel, count: Optional[int] = Query(default=None, ge=0, le=MAX_POINT_COUNT), seed: Optional[int] = Query(default=None)):
    return _compute("detail", state, count, seed, compute_detail)


@app.post("/selection/brush")
def selection_brush(req: BrushRequest, count: Optional[int] = Query(default=None, ge=0, le=MAX_POINT_COUNT), seed: Optional[int] = Query(default=None)):
    def _brush(state: SessionState, ctx: Dict[str, Any]) -> Dict[str, Any]:
        return {"selection": sorted(selection_from_indices(ctx["time_filtered"], req.indices))}

    return _compute("selection_brush", req.state, count, seed, _brush)


@app.post("/export")
def export(state: DashboardStateModel, count: Optional[int] = Query(default=None, ge=0, le=MAX_POINT_COUNT), seed: Optional[int] = Query(default=None)):
    try:
        dataset = _dataset(count, seed)
        s = _state_from_model(state, dataset)
        snapshot = build_export_snapshot(s, prepare_context(s, dataset))
    except FilterValidationError as exc:
        logger.warning("export rejected: %s", exc)
        return _error(422, exc)
    except Exception as exc:
        logger.exception("export failed")
        return _error(500, exc)

    body = json.dumps(jsonable_encoder(snapshot), ensure_ascii=False, indent=2).encode("utf-8")
    return Response(
        content=body,
        media_type="application/json",
        headers={"Content-Disposition": f"attachment; filename={EXPORT_FILENAME}"},
    )
