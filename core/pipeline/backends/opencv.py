from __future__ import annotations

import cv2
import numpy as np

from core.config import PipelineConfig
from core.pipeline.backends.base import FaceDetector, FaceRect, FrameSource
from core.pipeline.errors import ResourceUnavailableError

DEFAULT_CASCADE = "haarcascade_frontalface_default.xml"


class OpenCVFrameSource(FrameSource):
    name = "opencv"

    def __init__(self, config: PipelineConfig):
        self._config = config
        self._capture: cv2.VideoCapture | None = None

    def _open(self) -> cv2.VideoCapture:
        if self._capture is None:
            capture = cv2.VideoCapture(self._config.device_index)
            if not capture or not capture.isOpened():
                raise ResourceUnavailableError("Camera device not available.")
            capture.set(cv2.CAP_PROP_FRAME_WIDTH, self._config.width)
            capture.set(cv2.CAP_PROP_FRAME_HEIGHT, self._config.height)
            self._capture = capture
        return self._capture

    def is_available(self) -> bool:
        try:
            self._open()
        except ResourceUnavailableError:
            return False
        return True

    def read(self) -> np.ndarray:
        capture = self._open()
        success, frame = capture.read()
        if not success or frame is None:
            raise ResourceUnavailableError("Failed to capture frame.")
        height, width = frame.shape[:2]
        if (width, height) != (self._config.width, self._config.height):
            frame = cv2.resize(frame, (self._config.width, self._config.height))
        return cv2.cvtColor(frame, cv2.COLOR_BGR2RGBA)

    def close(self) -> None:
        if self._capture is not None:
            self._capture.release()
            self._capture = None


class HaarFaceDetector(FaceDetector):
    name = "haar"

    def __init__(self, cascade_path: str | None = None):
        path = cascade_path or (cv2.data.haarcascades + DEFAULT_CASCADE)
        classifier = cv2.CascadeClassifier(path)
        if classifier.empty():
            raise ResourceUnavailableError(f"Failed to load face cascade from {path}.")
        self.cascade_path = path
        self._classifier = classifier

    def detect(
        self,
        gray: np.ndarray,
        *,
        scale_factor: float = 1.1,
        min_neighbors: int = 4,
        min_size: tuple[int, int] = (30, 30),
    ) -> list[FaceRect]:
        faces = self._classifier.detectMultiScale(
            gray,
            scaleFactor=scale_factor,
            minNeighbors=min_neighbors,
            minSize=min_size,
        )
        return [FaceRect(x=int(x), y=int(y), w=int(w), h=int(h)) for x, y, w, h in faces]
