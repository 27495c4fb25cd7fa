from __future__ import annotations

from fastapi import Body, FastAPI, HTTPException

from core.config import ensure_directories
from core.logging.logger import get_logger
from core.pipeline.errors import PipelineError
from core.pipeline.models import (
    ControlsResponse,
    ControlsUpdate,
    FilterInfo,
    FrameResponse,
    PipelineStatus,
    SnapshotResponse,
    TickRequest,
    TickResponse,
)
from core.pipeline.service import PipelineService


def _http_error(exc: PipelineError) -> HTTPException:
    return HTTPException(status_code=exc.status_code, detail={"error": type(exc).__name__, "message": str(exc)})


def create_app(service: PipelineService | None = None) -> FastAPI:
    ensure_directories()
    get_logger()
    app = FastAPI(title="FrameFX Local")
    pipeline_service = service or PipelineService()

    @app.on_event("shutdown")
    def shutdown() -> None:
        pipeline_service.close()

    @app.get("/health")
    def health() -> dict[str, str]:
        return {"status": "ok"}

    @app.get("/pipeline/status", response_model=PipelineStatus)
    def pipeline_status() -> PipelineStatus:
        return pipeline_service.status()

    @app.get("/pipeline/filters", response_model=list[FilterInfo])
    def pipeline_filters() -> list[FilterInfo]:
        return pipeline_service.filters()

    @app.put("/pipeline/controls", response_model=ControlsResponse)
    def pipeline_controls(payload: ControlsUpdate) -> ControlsResponse:
        return pipeline_service.set_controls(filter_name=payload.filter, intensity=payload.intensity)

    @app.post("/pipeline/tick", response_model=TickResponse)
    def pipeline_tick(payload: TickRequest = Body(default_factory=TickRequest)) -> TickResponse:
        return pipeline_service.tick(payload.count)

    @app.get("/pipeline/frame", response_model=FrameResponse)
    def pipeline_frame() -> FrameResponse:
        try:
            return pipeline_service.frame()
        except PipelineError as exc:
            raise _http_error(exc) from exc

    @app.post("/pipeline/snapshot", response_model=SnapshotResponse)
    def pipeline_snapshot() -> SnapshotResponse:
        try:
            return pipeline_service.snapshot()
        except PipelineError as exc:
            raise _http_error(exc) from exc

    return app


app = create_app()
