from __future__ import annotations

import time

import psutil

from core.pipeline.models import FrameStats

_MB = 1024 * 1024


class Telemetry:
    """Frames-per-second over windows of at least ``window`` seconds, plus process memory."""

    def __init__(self, window: float = 1.0, clock=time.perf_counter):
        self._window = window
        self._clock = clock
        self._frames = 0
        self._window_start = clock()
        self._process = psutil.Process()
        self.latest: FrameStats | None = None

    def frame(self, now: float | None = None) -> FrameStats | None:
        """Count one presented frame; returns fresh stats when a window closes."""
        now = self._clock() if now is None else now
        self._frames += 1
        elapsed = now - self._window_start
        if elapsed < self._window:
            return None
        stats = FrameStats(
            fps=round(self._frames / elapsed, 1),
            memory_used_mb=round(self._process.memory_info().rss / _MB, 1),
            memory_total_mb=round(psutil.virtual_memory().total / _MB, 0),
        )
        self._frames = 0
        self._window_start = now
        self.latest = stats
        return stats
