from __future__ import annotations

from dataclasses import dataclass
from typing import Protocol

import numpy as np


@dataclass(frozen=True)
class FaceRect:
    x: int
    y: int
    w: int
    h: int

    def is_degenerate(self) -> bool:
        return self.w <= 0 or self.h <= 0

    def clamp(self, width: int, height: int) -> FaceRect:
        """Intersect with a ``width`` x ``height`` image; may return a degenerate rect."""
        x0 = max(0, self.x)
        y0 = max(0, self.y)
        x1 = min(width, self.x + self.w)
        y1 = min(height, self.y + self.h)
        return FaceRect(x=x0, y=y0, w=max(0, x1 - x0), h=max(0, y1 - y0))


class FrameSource(Protocol):
    name: str

    def is_available(self) -> bool:
        ...

    def read(self) -> np.ndarray:
        ...

    def close(self) -> None:
        ...


class FrameSink(Protocol):
    def present(self, frame: np.ndarray) -> None:
        ...


class FaceDetector(Protocol):
    name: str

    def detect(
        self,
        gray: np.ndarray,
        *,
        scale_factor: float = 1.1,
        min_neighbors: int = 4,
        min_size: tuple[int, int] = (30, 30),
    ) -> list[FaceRect]:
        ...
