from __future__ import annotations

from typing import List, Optional

from pydantic import BaseModel, Field


class UniqueResultModel(BaseModel):
    id: str
    text: str
    first_seen: float = Field(..., description="Unix time (ms) of first acceptance")
    last_seen: float = Field(..., description="Unix time (ms) of latest acceptance")
    count: int


class ResultsResponse(BaseModel):
    count: int = Field(..., description="Number of distinct codes seen so far")
    results: List[UniqueResultModel] = Field(default_factory=list, description="Most recently seen first")


class PointModel(BaseModel):
    x: float
    y: float


class GuideRegionModel(BaseModel):
    top: float
    left: float
    width: float
    height: float
    center: PointModel


class ScanStatsModel(BaseModel):
    cycles: int
    frames_skipped: int
    decode_timeouts: int
    decode_errors: int
    detections_accepted: int
    detections_suppressed: int
    off_guide_deferred: int
    last_latency_ms: Optional[float] = None


class ScanStateResponse(BaseModel):
    mode: str = Field(..., description="idle|scanning|stopped")
    scan_interval_ms: int
    guide_state: str = Field(..., description="waiting|scanning|success|error")
    unique_count: int
    cooldown_entries: int
    stats: ScanStatsModel
    guide_region: Optional[GuideRegionModel] = None


class ViewportRequest(BaseModel):
    width: int = Field(..., gt=0, description="Container width in display pixels")
    height: int = Field(..., gt=0, description="Container height in display pixels")


class ViewportResponse(BaseModel):
    width: int
    height: int
    guide_region: Optional[GuideRegionModel] = None


class HealthResponse(BaseModel):
    status: str = Field(..., description="running|degraded|offline")
    source_open: bool
    mode: str
    warnings: List[str] = Field(default_factory=list)
    reaper_sweeps: int
    timestamp: float
