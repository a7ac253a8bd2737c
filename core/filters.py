from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Iterable, List, Optional, Sequence

import pandas as pd

from core.data import DataPoint, DatasetMeta, points_frame, select_rows


ALL = "all"


class FilterValidationError(ValueError):
    """A categorical filter value is not in the dataset vocabulary."""

    def __init__(self, field_name: str, value: str, allowed: Iterable[str]):
        self.field_name = field_name
        self.value = value
        self.allowed = list(allowed)
        super().__init__(f"Unknown {field_name} {value!r}; expected {ALL!r} or one of {self.allowed}")


@dataclass(frozen=True)
class FilterState:
    category: str = ALL
    community: str = ALL
    region: str = ALL
    min_confidence: float = 0.0
    search: str = ""


@dataclass(frozen=True)
class TimeRange:
    """Closed interval in epoch ms. ``start <= end`` is not checked here."""

    start: int
    end: int

    def as_list(self) -> List[int]:
        return [int(self.start), int(self.end)]


def _as_float(value: object, default: float) -> float:
    try:
        out = float(value)  # type: ignore[arg-type]
    except (TypeError, ValueError):
        return default
    if math.isnan(out) or math.isinf(out):
        return default
    return out


def normalize_filters(raw: Optional[dict], meta: DatasetMeta, *, default_min_confidence: float = 0.0) -> FilterState:
    raw = raw or {}

    def _categorical(key: str, vocabulary: Sequence[str]) -> str:
        value = raw.get(key)
        if value is None or str(value).strip() == "":
            return ALL
        value = str(value).strip()
        if value != ALL and value not in vocabulary:
            raise FilterValidationError(key, value, vocabulary)
        return value

    min_confidence = _as_float(raw.get("min_confidence", default_min_confidence), default_min_confidence)
    min_confidence = max(0.0, min(1.0, min_confidence))

    return FilterState(
        category=_categorical("category", meta.categories),
        community=_categorical("community", meta.communities),
        region=_categorical("region", meta.regions),
        min_confidence=min_confidence,
        search=(raw.get("search") or "").strip(),
    )


def apply_filters(points: Sequence[DataPoint], filters: FilterState) -> List[DataPoint]:
    if not points:
        return []
    df = points_frame(points)

    match_category = pd.Series(filters.category == ALL, index=df.index) | df["category"].eq(filters.category)
    match_community = pd.Series(filters.community == ALL, index=df.index) | df["community"].eq(filters.community)
    match_region = pd.Series(filters.region == ALL, index=df.index) | df["region"].eq(filters.region)
    match_confidence = df["confidence"].ge(filters.min_confidence)

    query = filters.search.strip().lower()
    if query:
        match_search = (
            df["name"].astype(str).str.lower().str.contains(query, regex=False)
            | df["id"].astype(str).str.lower().str.contains(query, regex=False)
            | df["region"].astype(str).str.lower().str.contains(query, regex=False)
        )
    else:
        match_search = pd.Series(True, index=df.index)

    mask = match_category & match_community & match_region & match_confidence & match_search
    return select_rows(points, mask)


def filter_by_time_range(points: Sequence[DataPoint], time_range: TimeRange) -> List[DataPoint]:
    if not points:
        return []
    df = points_frame(points)
    mask = df["timestamp"].ge(time_range.start) & df["timestamp"].le(time_range.end)
    return select_rows(points, mask)
