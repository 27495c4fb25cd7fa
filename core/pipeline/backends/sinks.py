from __future__ import annotations

import cv2
import numpy as np

from core.pipeline.backends.base import FrameSink
from core.pipeline.errors import FrameProcessingError


class NullFrameSink(FrameSink):
    def __init__(self) -> None:
        self.presented = 0

    def present(self, frame: np.ndarray) -> None:
        self.presented += 1


class LatestFrameSink(FrameSink):
    """Keeps a private copy of the most recently presented frame."""

    def __init__(self) -> None:
        self._frame: np.ndarray | None = None
        self.presented = 0

    @property
    def frame(self) -> np.ndarray | None:
        return self._frame

    def present(self, frame: np.ndarray) -> None:
        if self._frame is None or self._frame.shape != frame.shape:
            self._frame = np.empty_like(frame)
        np.copyto(self._frame, frame)
        self.presented += 1

    def encode(self, ext: str = ".jpg", quality: int = 85) -> bytes:
        if self._frame is None:
            raise FrameProcessingError("No frame has been presented yet.", status_code=404)
        bgr = cv2.cvtColor(self._frame, cv2.COLOR_RGBA2BGR)
        params = [cv2.IMWRITE_JPEG_QUALITY, quality] if ext == ".jpg" else []
        success, buffer = cv2.imencode(ext, bgr, params)
        if not success:
            raise FrameProcessingError("Failed to encode frame.")
        return buffer.tobytes()
