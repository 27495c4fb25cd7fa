from __future__ import annotations

from typing import Iterable

import numpy as np

from core.config import PipelineConfig
from core.pipeline.backends.base import FaceDetector, FaceRect, FrameSource


def synthetic_frame(width: int, height: int, phase: int = 0) -> np.ndarray:
    """Opaque RGBA test pattern: diagonal gradients shifted by ``phase``."""
    xs = np.arange(width, dtype=np.uint16)[None, :]
    ys = np.arange(height, dtype=np.uint16)[:, None]
    frame = np.empty((height, width, 4), dtype=np.uint8)
    frame[..., 0] = ((xs + phase) % 256).astype(np.uint8)
    frame[..., 1] = ((ys + phase) % 256).astype(np.uint8)
    frame[..., 2] = ((xs + ys) // 2 % 256).astype(np.uint8)
    frame[..., 3] = 255
    return frame


class StubFrameSource(FrameSource):
    name = "stub"

    def __init__(self, config: PipelineConfig):
        self._config = config
        self._phase = 0

    def is_available(self) -> bool:
        return True

    def read(self) -> np.ndarray:
        frame = synthetic_frame(self._config.width, self._config.height, self._phase)
        self._phase = (self._phase + 1) % 256
        return frame

    def close(self) -> None:
        self._phase = 0


class StubFaceDetector(FaceDetector):
    name = "stub"

    def __init__(self, faces: Iterable[FaceRect] = ()):
        self._faces = list(faces)

    def detect(
        self,
        gray: np.ndarray,
        *,
        scale_factor: float = 1.1,
        min_neighbors: int = 4,
        min_size: tuple[int, int] = (30, 30),
    ) -> list[FaceRect]:
        min_w, min_h = min_size
        return [face for face in self._faces if face.w >= min_w and face.h >= min_h]


def centered_face(config: PipelineConfig) -> FaceRect:
    size = max(30, min(config.width, config.height) // 4)
    return FaceRect(
        x=(config.width - size) // 2,
        y=(config.height - size) // 2,
        w=size,
        h=size,
    )
