from __future__ import annotations

from dataclasses import dataclass

import numpy as np

from core.logging.audit import audit_event
from core.logging.logger import get_logger
from core.pipeline.backends.base import FaceDetector, FaceRect

DETECT_INTERVAL = 4
SCALE_FACTOR = 1.1
MIN_NEIGHBORS = 4
MIN_FACE_SIZE = (30, 30)


@dataclass
class FaceCache:
    """Face locations carried across ticks, replaced wholesale on detection ticks."""

    faces: tuple[FaceRect, ...] = ()
    frame_counter: int = 0
    detections: int = 0
    failures: int = 0
    last_detection_index: int | None = None

    def replace(self, faces: list[FaceRect], frame_index: int) -> None:
        # Single assignment so readers never observe a partially built sequence.
        self.faces = tuple(faces)
        self.detections += 1
        self.last_detection_index = frame_index

    def reset(self) -> None:
        self.faces = ()
        self.frame_counter = 0
        self.detections = 0
        self.failures = 0
        self.last_detection_index = None


class DetectionThrottler:
    """Runs the face detector on every ``interval``-th frame and reuses results in between."""

    def __init__(
        self,
        detector: FaceDetector | None,
        cache: FaceCache | None = None,
        interval: int = DETECT_INTERVAL,
    ):
        if interval < 1:
            raise ValueError("Detection interval must be at least 1")
        self._detector = detector
        self._cache = cache if cache is not None else FaceCache()
        self._interval = interval

    @property
    def cache(self) -> FaceCache:
        return self._cache

    @property
    def interval(self) -> int:
        return self._interval

    @property
    def available(self) -> bool:
        return self._detector is not None

    @property
    def detector_name(self) -> str:
        return getattr(self._detector, "name", "none")

    def is_detection_tick(self, frame_index: int) -> bool:
        return frame_index % self._interval == 0

    def maybe_detect(self, frame_index: int, gray: np.ndarray) -> FaceCache:
        if not self.is_detection_tick(frame_index):
            return self._cache
        if self._detector is None:
            return self._cache
        try:
            faces = self._detector.detect(
                gray,
                scale_factor=SCALE_FACTOR,
                min_neighbors=MIN_NEIGHBORS,
                min_size=MIN_FACE_SIZE,
            )
        except Exception as exc:
            self._cache.failures += 1
            get_logger().warning("Face detection failed on frame %s: %s", frame_index, exc)
            audit_event(
                "faces.detect",
                frame_index=frame_index,
                detector=self.detector_name,
                result="failed",
                kept=len(self._cache.faces),
            )
            return self._cache
        self._cache.replace(list(faces), frame_index)
        return self._cache

    def next_frame(self, gray: np.ndarray) -> FaceCache:
        """Throttled detection driven by the cache's own frame counter."""
        frame_index = self._cache.frame_counter
        cache = self.maybe_detect(frame_index, gray)
        self._cache.frame_counter = frame_index + 1
        return cache
