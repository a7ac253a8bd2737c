from __future__ import annotations

from dataclasses import asdict, dataclass, field
from typing import Any, Dict, List, Optional, Sequence, Tuple

import pandas as pd


DAY_MS = 24 * 60 * 60 * 1000

POINT_COLUMNS = [
    "id",
    "name",
    "category",
    "community",
    "region",
    "confidence",
    "timestamp",
    "lat",
    "lng",
    "x",
    "y",
]


@dataclass(frozen=True)
class Coordinates:
    lat: float
    lng: float


@dataclass(frozen=True)
class TrajectoryPoint:
    lat: float
    lng: float
    time: int


@dataclass(frozen=True)
class Projection:
    x: float
    y: float


@dataclass(frozen=True)
class DataPoint:
    id: str
    name: str
    category: str
    community: str
    region: str
    confidence: float
    timestamp: int
    coordinates: Coordinates
    trajectory: Tuple[TrajectoryPoint, ...] = ()
    features: Tuple[float, ...] = ()
    projection: Projection = field(default_factory=lambda: Projection(0.0, 0.0))
    hierarchy_path: Tuple[str, ...] = ()

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass(frozen=True)
class NetworkEdge:
    source: str
    target: str
    weight: float


@dataclass(frozen=True)
class HierarchyNode:
    """Tree node; leaves carry ``point_ids``, internal nodes carry ``children``."""

    name: str
    children: Optional[Tuple["HierarchyNode", ...]] = None
    point_ids: Optional[Tuple[str, ...]] = None

    @property
    def is_leaf(self) -> bool:
        return self.children is None


@dataclass(frozen=True)
class TimeBucket:
    time: int
    count: int


@dataclass(frozen=True)
class DatasetMeta:
    regions: Tuple[str, ...]
    categories: Tuple[str, ...]
    communities: Tuple[str, ...]


@dataclass(frozen=True)
class InsightDataset:
    """Immutable dataset snapshot; regeneration replaces the whole object.

    ``time_buckets`` counts are taken once over the full point set when the
    dataset is produced. They are not the per-selection counts shown in the
    detail sparkline.
    """

    points: Tuple[DataPoint, ...]
    edges: Tuple[NetworkEdge, ...]
    hierarchy: HierarchyNode
    time_buckets: Tuple[TimeBucket, ...]
    meta: DatasetMeta


def points_frame(points: Sequence[DataPoint]) -> pd.DataFrame:
    """One row per point, in input order, with a positional RangeIndex."""
    if not points:
        return pd.DataFrame(columns=POINT_COLUMNS)
    records = [
        {
            "id": p.id,
            "name": p.name,
            "category": p.category,
            "community": p.community,
            "region": p.region,
            "confidence": float(p.confidence),
            "timestamp": int(p.timestamp),
            "lat": float(p.coordinates.lat),
            "lng": float(p.coordinates.lng),
            "x": float(p.projection.x),
            "y": float(p.projection.y),
        }
        for p in points
    ]
    return pd.DataFrame.from_records(records, columns=POINT_COLUMNS)


def select_rows(points: Sequence[DataPoint], mask: pd.Series) -> List[DataPoint]:
    """Return the points whose row in ``points_frame(points)`` is True in ``mask``."""
    positions = mask.to_numpy(dtype=bool).nonzero()[0]
    return [points[int(i)] for i in positions]


def time_bounds(dataset: InsightDataset) -> Tuple[int, int]:
    if not dataset.points:
        return 0, 0
    times = [p.timestamp for p in dataset.points]
    return int(min(times)), int(max(times))
