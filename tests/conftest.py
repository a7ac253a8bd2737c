"""Shared fixtures: a tiny hand-built dataset and a seeded generated one."""

from __future__ import annotations

from typing import Sequence

import pytest

from core.data import (
    DAY_MS,
    Coordinates,
    DataPoint,
    DatasetMeta,
    HierarchyNode,
    InsightDataset,
    NetworkEdge,
    Projection,
    TimeBucket,
)
from core.mock_data import CATEGORIES, COMMUNITIES, REGIONS, generate_mock_data

BASE_TIME = 1_700_000_000_000


def make_point(
    point_id: str,
    *,
    region: str = "华北",
    community: str = "早高峰",
    category: str = "常规出行",
    confidence: float = 0.9,
    timestamp: int = BASE_TIME,
    name: str | None = None,
    lat: float = 40.0,
    lng: float = 115.0,
) -> DataPoint:
    return DataPoint(
        id=point_id,
        name=name or f"对象-{point_id}",
        category=category,
        community=community,
        region=region,
        confidence=confidence,
        timestamp=timestamp,
        coordinates=Coordinates(lat=lat, lng=lng),
        projection=Projection(x=1.0, y=2.0),
        hierarchy_path=("全球", region, community, category),
    )


def make_dataset(points: Sequence[DataPoint], edges: Sequence[NetworkEdge] = (), days: int = 3) -> InsightDataset:
    buckets = tuple(
        TimeBucket(
            time=BASE_TIME + d * DAY_MS,
            count=sum(1 for p in points if BASE_TIME + d * DAY_MS <= p.timestamp < BASE_TIME + (d + 1) * DAY_MS),
        )
        for d in range(days)
    )
    return InsightDataset(
        points=tuple(points),
        edges=tuple(edges),
        hierarchy=HierarchyNode(name="全球", children=()),
        time_buckets=buckets,
        meta=DatasetMeta(regions=REGIONS, categories=CATEGORIES, communities=COMMUNITIES),
    )


@pytest.fixture
def abc_points():
    return [
        make_point("A", region="华北", confidence=0.9, timestamp=BASE_TIME + 1_000),
        make_point("B", region="华东", confidence=0.4, timestamp=BASE_TIME + DAY_MS + 1_000),
        make_point("C", region="华北", confidence=0.7, timestamp=BASE_TIME + 2 * DAY_MS + 1_000),
    ]


@pytest.fixture
def abc_dataset(abc_points):
    edges = [
        NetworkEdge("A", "B", 0.5),
        NetworkEdge("A", "C", 0.3),
    ]
    return make_dataset(abc_points, edges)


@pytest.fixture(scope="session")
def generated_dataset():
    return generate_mock_data(80, 7, base_time=BASE_TIME)
