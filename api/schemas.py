from __future__ import annotations

from typing import List, Optional

from pydantic import BaseModel, Field, model_validator


class FilterStateModel(BaseModel):
    category: str = "all"
    community: str = "all"
    region: str = "all"
    min_confidence: Optional[float] = None
    search: str = ""


class TimeRangeModel(BaseModel):
    start: int
    end: int

    @model_validator(mode="after")
    def _ordered(self) -> "TimeRangeModel":
        if self.start > self.end:
            raise ValueError("time_range.start must not be after time_range.end")
        return self


class DashboardStateModel(BaseModel):
    filters: FilterStateModel = Field(default_factory=FilterStateModel)
    time_range: Optional[TimeRangeModel] = None
    selection: List[str] = Field(default_factory=list)
    focus_id: Optional[str] = None
    layout: str = Field(default="grid", pattern="^(grid|alt)$")


class BrushRequest(BaseModel):
    state: DashboardStateModel = Field(default_factory=DashboardStateModel)
    indices: List[int] = Field(default_factory=list)


class VocabularyResponse(BaseModel):
    regions: List[str]
    categories: List[str]
    communities: List[str]


class TimeBoundsResponse(BaseModel):
    start: int
    end: int
