"""FastAPI endpoint tests against a small seeded dataset."""

from __future__ import annotations

import json

import pytest
from fastapi.testclient import TestClient

from api.main import app
from core.data import time_bounds
from core.mock_data import load_dashboard_data

PARAMS = {"count": 40, "seed": 11}


@pytest.fixture(scope="module")
def client():
    return TestClient(app)


@pytest.fixture(scope="module")
def dataset():
    return load_dashboard_data(PARAMS["count"], PARAMS["seed"])


def _state(**overrides):
    body = {"filters": {"min_confidence": 0.0}, "selection": [], "focus_id": None, "layout": "grid"}
    body.update(overrides)
    return body


def test_meta_vocabulary(client):
    resp = client.get("/meta/vocabulary", params=PARAMS)
    assert resp.status_code == 200
    data = resp.json()
    assert data["regions"][0] == "华北"
    assert len(data["categories"]) == 5
    assert len(data["communities"]) == 4


def test_meta_time_bounds(client, dataset):
    resp = client.get("/meta/time-bounds", params=PARAMS)
    assert resp.status_code == 200
    assert resp.json() == dict(zip(["start", "end"], time_bounds(dataset)))


def test_overview_defaults_to_full_range(client, dataset):
    resp = client.post("/overview", params=PARAMS, json=_state())
    assert resp.status_code == 200
    data = resp.json()
    assert data["stats"]["total"] == len(dataset.points)
    assert data["time_range"] == list(time_bounds(dataset))


def test_overview_uses_configured_default_confidence(client, dataset):
    resp = client.post("/overview", params=PARAMS, json={})
    assert resp.status_code == 200
    expected = sum(1 for p in dataset.points if p.confidence >= 0.55)
    assert resp.json()["stats"]["total"] == expected


def test_unknown_vocabulary_value_is_422(client):
    resp = client.post("/overview", params=PARAMS, json=_state(filters={"region": "火星"}))
    assert resp.status_code == 422
    assert resp.json()["type"] == "FilterValidationError"


def test_inverted_time_range_rejected_at_boundary(client):
    resp = client.post("/overview", params=PARAMS, json=_state(time_range={"start": 10, "end": 1}))
    assert resp.status_code == 422


def test_detail_focus_precedence(client, dataset):
    first, second = dataset.points[0].id, dataset.points[1].id
    resp = client.post("/detail", params=PARAMS, json=_state(selection=[second], focus_id=first))
    assert resp.status_code == 200
    data = resp.json()
    assert data["point"]["id"] == first
    assert len(data["sparkline"]) == len(dataset.time_buckets)
    assert sum(r["count"] for r in data["sparkline"]) == 1


def test_views_respond(client):
    for path in ["/timeline", "/projection", "/hierarchy", "/map?mode=trajectory", "/network?mode=list", "/network"]:
        resp = client.post(path, params=PARAMS, json=_state())
        assert resp.status_code == 200, path


def test_invalid_mode_is_422(client):
    resp = client.post("/map", params={**PARAMS, "mode": "satellite"}, json=_state())
    assert resp.status_code == 422


def test_brush_maps_indices_to_ids(client, dataset):
    resp = client.post("/selection/brush", params=PARAMS, json={"state": _state(), "indices": [0, 2, 999]})
    assert resp.status_code == 200
    assert resp.json()["selection"] == sorted([dataset.points[0].id, dataset.points[2].id])


def test_export_is_json_attachment(client, dataset):
    target = dataset.points[3].id
    resp = client.post("/export", params=PARAMS, json=_state(selection=[target], layout="alt"))
    assert resp.status_code == 200
    assert "insight-export.json" in resp.headers["content-disposition"]
    payload = json.loads(resp.content.decode("utf-8"))
    assert [p["id"] for p in payload["filtered_points"]] == [target]
    assert payload["layout"] == "alt"
    assert set(payload) == {"filtered_points", "time_range", "filters", "layout"}


def test_point_count_is_bounded(client):
    resp = client.get("/meta/vocabulary", params={"count": 10**8, "seed": 1})
    assert resp.status_code == 422
    resp = client.post("/overview", params={"count": 5001, "seed": 1}, json=_state())
    assert resp.status_code == 422
