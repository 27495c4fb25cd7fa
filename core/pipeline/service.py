from __future__ import annotations

import base64
from datetime import datetime, timezone

import cv2
import numpy as np

from core.config import PipelineConfig, ensure_directories, get_pipeline_config
from core.filters.dispatch import FilterEngine
from core.filters.faces import DetectionThrottler, FaceCache
from core.filters.kinds import FilterKind
from core.logging.audit import audit_event
from core.logging.logger import get_logger
from core.pipeline.backends.base import FaceDetector, FrameSink, FrameSource
from core.pipeline.backends.sinks import LatestFrameSink
from core.pipeline.backends.stub import StubFaceDetector, StubFrameSource, centered_face
from core.pipeline.buffers import FrameBuffers
from core.pipeline.controls import ControlState
from core.pipeline.errors import FrameProcessingError, ResourceUnavailableError
from core.pipeline.loop import FramePipeline
from core.pipeline.models import (
    ControlsResponse,
    FaceBox,
    FilterInfo,
    FrameResponse,
    PipelineStatus,
    SnapshotResponse,
    TickResponse,
)


def create_source(config: PipelineConfig) -> FrameSource:
    if config.source == "opencv":
        from core.pipeline.backends.opencv import OpenCVFrameSource

        return OpenCVFrameSource(config)
    return StubFrameSource(config)


def create_detector(config: PipelineConfig) -> FaceDetector | None:
    """Load the face detector once; a load failure only disables face blur."""
    if config.detector == "none":
        return None
    if config.detector == "stub":
        return StubFaceDetector([centered_face(config)])
    from core.pipeline.backends.opencv import HaarFaceDetector

    try:
        detector = HaarFaceDetector(config.cascade_path)
    except ResourceUnavailableError as exc:
        get_logger().error("Face detector unavailable, face blur disabled: %s", exc)
        audit_event("detector.load", detector=config.detector, result="unavailable", reason=str(exc))
        return None
    audit_event("detector.load", detector=detector.name, result="loaded", path=detector.cascade_path)
    return detector


def build_pipeline(
    config: PipelineConfig,
    *,
    source: FrameSource | None = None,
    sink: FrameSink | None = None,
    detector: FaceDetector | None = None,
) -> FramePipeline:
    buffers = FrameBuffers(width=config.width, height=config.height)
    if detector is None:
        detector = create_detector(config)
    throttler = DetectionThrottler(detector, FaceCache(), interval=config.detect_interval)
    engine = FilterEngine(
        throttler,
        buffers=buffers,
        rng=np.random.default_rng(config.noise_seed),
        ellipse_scale=config.ellipse_scale,
    )
    controls = ControlState(config.default_filter, config.default_intensity)
    return FramePipeline(
        source=source or create_source(config),
        sink=sink or LatestFrameSink(),
        engine=engine,
        buffers=buffers,
        controls=controls,
    )


class PipelineService:
    def __init__(self, config: PipelineConfig | None = None, pipeline: FramePipeline | None = None):
        self._config = config or get_pipeline_config()
        self._sink = LatestFrameSink()
        self._pipeline = pipeline or build_pipeline(self._config, sink=self._sink)
        if isinstance(self._pipeline.sink, LatestFrameSink):
            self._sink = self._pipeline.sink

    @property
    def config(self) -> PipelineConfig:
        return self._config

    @property
    def pipeline(self) -> FramePipeline:
        return self._pipeline

    def status(self) -> PipelineStatus:
        pipeline = self._pipeline
        controls = pipeline.controls.snapshot()
        throttler = pipeline.engine.throttler
        source_available = not pipeline.halted and pipeline.source.is_available()
        return PipelineStatus(
            source=pipeline.source.name,
            source_available=source_available,
            detector=throttler.detector_name,
            faceblur_available=throttler.available,
            filter=controls.filter,
            intensity=controls.intensity,
            ticks=pipeline.ticks,
            failed_ticks=pipeline.failed_ticks,
            detect_interval=throttler.interval,
            cached_faces=[FaceBox(x=f.x, y=f.y, w=f.w, h=f.h) for f in throttler.cache.faces],
            stats=pipeline.telemetry.latest,
            message=self._status_message(source_available, throttler.available),
        )

    def filters(self) -> list[FilterInfo]:
        available = set(self._pipeline.engine.available_filters())
        return [FilterInfo(name=kind, label=kind.label, available=kind in available) for kind in FilterKind]

    def set_controls(self, filter_name: str | None = None, intensity: int | None = None) -> ControlsResponse:
        controls = self._pipeline.controls
        if filter_name is not None:
            kind = controls.set_filter(filter_name)
            audit_event("controls.filter", requested=filter_name, applied=kind.value)
        if intensity is not None:
            value = controls.set_intensity(intensity)
            audit_event("controls.intensity", requested=intensity, applied=value)
        snapshot = controls.snapshot()
        return ControlsResponse(filter=snapshot.filter, intensity=snapshot.intensity)

    def tick(self, count: int = 1) -> TickResponse:
        ok = failed = 0
        last_error: str | None = None
        halted = False
        faces = 0
        for _ in range(count):
            result = self._pipeline.tick()
            if result.halted:
                halted = True
                last_error = result.error
                break
            if result.ok:
                ok += 1
            else:
                failed += 1
                last_error = result.error
            faces = result.faces
        return TickResponse(
            ticks=self._pipeline.ticks,
            ok=ok,
            failed=failed,
            halted=halted,
            last_error=last_error,
            faces=faces,
        )

    def frame(self) -> FrameResponse:
        data = self._sink.encode(".jpg", quality=self._config.jpeg_quality)
        height, width = self._sink.frame.shape[:2]
        return FrameResponse(
            width=width,
            height=height,
            format="jpeg",
            image_base64=base64.b64encode(data).decode("utf-8"),
        )

    def snapshot(self) -> SnapshotResponse:
        frame = self._sink.frame
        if frame is None:
            raise FrameProcessingError("No frame has been presented yet.", status_code=404)
        paths = ensure_directories()
        stamp = datetime.now(tz=timezone.utc).strftime("%Y%m%dT%H%M%S%fZ")
        path = paths.snapshots_dir / f"frame_{stamp}.png"
        if not cv2.imwrite(str(path), cv2.cvtColor(frame, cv2.COLOR_RGBA2BGRA)):
            raise FrameProcessingError(f"Failed to write snapshot {path}.")
        audit_event("pipeline.snapshot", path=str(path))
        return SnapshotResponse(saved=True, path=str(path))

    def close(self) -> None:
        self._pipeline.close()

    def _status_message(self, source_available: bool, faceblur_available: bool) -> str:
        if self._pipeline.halted:
            return "Frame source halted."
        if not source_available:
            return f"Frame source '{self._pipeline.source.name}' unavailable."
        if not faceblur_available:
            return "Pipeline ready (face blur disabled: no detector)."
        return "Pipeline ready."
