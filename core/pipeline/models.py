from __future__ import annotations

from pydantic import BaseModel, Field

from core.filters.kinds import FilterKind


class FrameStats(BaseModel):
    fps: float
    memory_used_mb: float
    memory_total_mb: float


class FaceBox(BaseModel):
    x: int
    y: int
    w: int
    h: int


class PipelineStatus(BaseModel):
    source: str
    source_available: bool
    detector: str
    faceblur_available: bool
    filter: FilterKind
    intensity: int
    ticks: int
    failed_ticks: int
    detect_interval: int
    cached_faces: list[FaceBox] = Field(default_factory=list)
    stats: FrameStats | None = None
    message: str


class ControlsUpdate(BaseModel):
    filter: str | None = None
    intensity: int | None = None


class ControlsResponse(BaseModel):
    filter: FilterKind
    intensity: int


class FilterInfo(BaseModel):
    name: FilterKind
    label: str
    available: bool


class TickRequest(BaseModel):
    count: int = Field(default=1, ge=1, le=1000)


class TickResponse(BaseModel):
    ticks: int
    ok: int
    failed: int
    halted: bool
    last_error: str | None = None
    faces: int


class FrameResponse(BaseModel):
    width: int
    height: int
    format: str
    image_base64: str


class SnapshotResponse(BaseModel):
    saved: bool
    path: str
