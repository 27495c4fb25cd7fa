from __future__ import annotations

import threading
from dataclasses import dataclass

from core.filters.dispatch import FilterEngine
from core.filters.kinds import FilterKind
from core.logging.audit import audit_event
from core.logging.logger import get_logger
from core.pipeline.backends.base import FrameSink, FrameSource
from core.pipeline.buffers import FrameBuffers
from core.pipeline.controls import ControlState
from core.pipeline.errors import FrameProcessingError, ResourceUnavailableError
from core.pipeline.telemetry import Telemetry


@dataclass(frozen=True)
class TickResult:
    index: int
    filter: FilterKind
    intensity: int
    ok: bool
    halted: bool = False
    error: str | None = None
    faces: int = 0


class FramePipeline:
    """Capture, filter and present one frame per tick.

    A failed tick keeps the previous output on screen. Only an unavailable
    frame source halts the loop.
    """

    def __init__(
        self,
        source: FrameSource,
        sink: FrameSink,
        engine: FilterEngine,
        buffers: FrameBuffers,
        controls: ControlState,
        telemetry: Telemetry | None = None,
    ):
        self.source = source
        self.sink = sink
        self.engine = engine
        self.buffers = buffers
        self.controls = controls
        self.telemetry = telemetry or Telemetry()
        self.ticks = 0
        self.failed_ticks = 0
        self.halted = False
        self._lock = threading.Lock()

    def tick(self) -> TickResult:
        with self._lock:
            return self._tick()

    def _tick(self) -> TickResult:
        controls = self.controls.snapshot()
        index = self.ticks
        if self.halted:
            return TickResult(index, controls.filter, controls.intensity, ok=False, halted=True, error="halted")

        error: str | None = None
        frame = None
        try:
            frame = self.source.read()
        except ResourceUnavailableError as exc:
            self.halted = True
            get_logger().error("Frame source '%s' unavailable: %s", self.source.name, exc)
            audit_event("pipeline.halt", source=self.source.name, reason=str(exc))
            return TickResult(index, controls.filter, controls.intensity, ok=False, halted=True, error=str(exc))
        except Exception as exc:
            error = self._failure(index, "read", controls.filter, exc)

        if frame is not None:
            try:
                self.engine.apply_filter(controls.filter, frame, self.buffers.work, controls.intensity)
            except Exception as exc:
                error = self._failure(index, "filter", controls.filter, exc)
            else:
                self.buffers.swap()

        try:
            self.sink.present(self.buffers.output)
        except Exception as exc:
            failure = self._failure(index, "present", controls.filter, exc)
            error = error or failure

        self.telemetry.frame()
        self.ticks += 1
        if error is not None:
            self.failed_ticks += 1
        faces = len(self.engine.throttler.cache.faces) if controls.filter is FilterKind.FACEBLUR else 0
        return TickResult(
            index,
            controls.filter,
            controls.intensity,
            ok=error is None,
            error=error,
            faces=faces,
        )

    @staticmethod
    def _failure(index: int, stage: str, kind: FilterKind, exc: Exception) -> str:
        logger = get_logger()
        if isinstance(exc, FrameProcessingError):
            logger.warning("Tick %s skipped at %s (%s): %s", index, stage, kind.value, exc)
            return str(exc)
        logger.exception("Tick %s failed at %s (%s)", index, stage, kind.value)
        return f"{type(exc).__name__}: {exc}"

    def run(self, max_ticks: int | None = None) -> int:
        """Tick until the source halts or ``max_ticks`` ticks ran; returns ticks run."""
        audit_event("pipeline.start", source=self.source.name, max_ticks=max_ticks)
        ran = 0
        try:
            while max_ticks is None or ran < max_ticks:
                result = self.tick()
                if result.halted:
                    break
                ran += 1
        finally:
            audit_event("pipeline.stop", source=self.source.name, ticks=ran, failed=self.failed_ticks)
        return ran

    def close(self) -> None:
        self.source.close()
        self.engine.throttler.cache.reset()
