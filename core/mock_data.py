"""Seeded synthetic dataset provider.

Produces an ``InsightDataset`` of urban-mobility style records. The same
``(count, seed, base_time)`` always yields the same dataset.
"""

from __future__ import annotations

import logging
import math
import time
from functools import lru_cache
from typing import Callable, Dict, List, Optional, Sequence, Tuple

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
    TrajectoryPoint,
)

logger = logging.getLogger(__name__)

CATEGORIES = ("出行异常", "常规出行", "高频地点", "拥堵提醒", "重点关注")
COMMUNITIES = ("早高峰", "晚高峰", "周末", "节假日")
REGIONS = ("华北", "华东", "华南", "西南", "东北")
ROOT_NAME = "全球"
ANOMALY_CATEGORY = CATEGORIES[0]

SPAN_DAYS = 14
FEATURE_COUNT = 6
TRAJECTORY_STEPS = 6
HOUR_MS = 60 * 60 * 1000

# Rough lat/lng boxes per region.
REGION_BOUNDS: Dict[str, Tuple[Tuple[float, float], Tuple[float, float]]] = {
    "华北": ((38, 42), (110, 118)),
    "华东": ((29, 34), (116, 123)),
    "华南": ((21, 26), (108, 116)),
    "西南": ((24, 31), (100, 107)),
    "东北": ((41, 47), (120, 129)),
}
FALLBACK_BOUNDS = ((22, 40), (100, 118))

_MODULUS = 2147483647
_MULTIPLIER = 16807


def seeded_random(seed: int) -> Callable[[], float]:
    """Park-Miller minimal standard generator returning floats in [0, 1)."""
    state = seed % _MODULUS
    if state <= 0:
        state += _MODULUS - 1

    def _next() -> float:
        nonlocal state
        state = (state * _MULTIPLIER) % _MODULUS
        return (state - 1) / (_MODULUS - 1)

    return _next


def _pick(values: Sequence[str], rand: Callable[[], float]) -> str:
    return values[int(rand() * len(values))]


def coords_for_region(region: str, rand: Callable[[], float]) -> Coordinates:
    (lat0, lat1), (lng0, lng1) = REGION_BOUNDS.get(region, FALLBACK_BOUNDS)
    lat = lat0 + rand() * (lat1 - lat0)
    lng = lng0 + rand() * (lng1 - lng0)
    return Coordinates(lat=lat, lng=lng)


def pseudo_project(features: Sequence[float], rand: Callable[[], float]) -> Projection:
    # Random linear map to 2-D; stands in for a real embedding.
    w = [[rand() * 2 - 1 for _ in features] for _ in range(2)]
    x = sum(wi * f for wi, f in zip(w[0], features))
    y = sum(wi * f for wi, f in zip(w[1], features))
    return Projection(x=x, y=y)


def build_hierarchy(points: Sequence[DataPoint]) -> HierarchyNode:
    return HierarchyNode(
        name=ROOT_NAME,
        children=tuple(
            HierarchyNode(
                name=region,
                children=tuple(
                    HierarchyNode(
                        name=community,
                        children=tuple(
                            HierarchyNode(
                                name=category,
                                point_ids=tuple(
                                    p.id
                                    for p in points
                                    if p.region == region and p.community == community and p.category == category
                                ),
                            )
                            for category in CATEGORIES
                        ),
                    )
                    for community in COMMUNITIES
                ),
            )
            for region in REGIONS
        ),
    )


def build_time_buckets(points: Sequence[DataPoint], base_time: int, days: int = SPAN_DAYS) -> Tuple[TimeBucket, ...]:
    buckets: List[TimeBucket] = []
    for d in range(days):
        start = base_time + d * DAY_MS
        count = sum(1 for p in points if start <= p.timestamp < start + DAY_MS)
        buckets.append(TimeBucket(time=start, count=count))
    return tuple(buckets)


def generate_mock_data(count: int = 90, seed: int = 42, *, base_time: Optional[int] = None) -> InsightDataset:
    rand = seeded_random(seed)
    if base_time is None:
        base_time = int(time.time() * 1000) - DAY_MS * SPAN_DAYS

    points: List[DataPoint] = []
    for i in range(count):
        category = _pick(CATEGORIES, rand)
        community = _pick(COMMUNITIES, rand)
        region = _pick(REGIONS, rand)
        timestamp = base_time + int(rand() * DAY_MS * SPAN_DAYS)
        coords = coords_for_region(region, rand)
        features = tuple(rand() * 2 - 1 for _ in range(FEATURE_COUNT))
        projection = pseudo_project(features, rand)
        trajectory = tuple(
            TrajectoryPoint(
                lat=coords.lat + (rand() - 0.5) * 1.5 + idx * 0.05,
                lng=coords.lng + (rand() - 0.5) * 1.5 + idx * 0.05,
                time=timestamp + idx * HOUR_MS,
            )
            for idx in range(TRAJECTORY_STEPS)
        )
        points.append(
            DataPoint(
                id=f"p-{i + 1}",
                name=f"对象-{i + 1}",
                category=category,
                community=community,
                region=region,
                confidence=0.5 + rand() * 0.5,
                timestamp=timestamp,
                coordinates=coords,
                trajectory=trajectory,
                features=features,
                projection=projection,
                hierarchy_path=(ROOT_NAME, region, community, category),
            )
        )

    edges: List[NetworkEdge] = []
    ids = [p.id for p in points]
    if ids:
        for _ in range(math.ceil(count * 1.2)):
            a = ids[int(rand() * len(ids))]
            b = ids[int(rand() * len(ids))]
            if a != b:
                edges.append(NetworkEdge(source=a, target=b, weight=0.2 + rand() * 0.8))

    logger.debug("Generated dataset seed=%s points=%d edges=%d", seed, len(points), len(edges))
    return InsightDataset(
        points=tuple(points),
        edges=tuple(edges),
        hierarchy=build_hierarchy(points),
        time_buckets=build_time_buckets(points, base_time),
        meta=DatasetMeta(regions=REGIONS, categories=CATEGORIES, communities=COMMUNITIES),
    )


@lru_cache(maxsize=8)
def _load_dashboard_data_cached(count: int, seed: int, day: int) -> InsightDataset:
    return generate_mock_data(count, seed, base_time=day * DAY_MS - DAY_MS * SPAN_DAYS)


def load_dashboard_data(count: int, seed: int) -> InsightDataset:
    """Cached dataset per ``(count, seed)``, anchored to the current UTC day."""
    day = int(time.time() * 1000) // DAY_MS
    return _load_dashboard_data_cached(int(count), int(seed), day)
