import numpy as np
import pytest

from core.filters.faces import DetectionThrottler, FaceCache
from core.pipeline.backends.base import FaceRect
from core.pipeline.backends.stub import StubFaceDetector


class CountingDetector:
    name = "counting"

    def __init__(self) -> None:
        self.calls: list[dict] = []

    def detect(self, gray, *, scale_factor=1.1, min_neighbors=4, min_size=(30, 30)):
        self.calls.append(
            {"scale_factor": scale_factor, "min_neighbors": min_neighbors, "min_size": min_size}
        )
        offset = len(self.calls) * 10
        return [FaceRect(offset, offset, 40, 40)]


class FlakyDetector:
    name = "flaky"

    def __init__(self, fail_on: set[int]) -> None:
        self._fail_on = fail_on
        self.calls = 0

    def detect(self, gray, *, scale_factor=1.1, min_neighbors=4, min_size=(30, 30)):
        self.calls += 1
        if self.calls in self._fail_on:
            raise RuntimeError("classifier exploded")
        return [FaceRect(5, 5, 50, 50)]


GRAY = np.zeros((120, 160), dtype=np.uint8)


def test_detector_runs_only_on_interval_frames():
    detector = CountingDetector()
    throttler = DetectionThrottler(detector, FaceCache(), interval=4)

    seen = {}
    for index in range(8):
        seen[index] = throttler.maybe_detect(index, GRAY).faces

    assert len(detector.calls) == 2
    assert all(seen[i] == (FaceRect(10, 10, 40, 40),) for i in range(4))
    assert all(seen[i] == (FaceRect(20, 20, 40, 40),) for i in range(4, 8))


def test_detector_receives_fixed_parameters():
    detector = CountingDetector()
    DetectionThrottler(detector).maybe_detect(0, GRAY)
    assert detector.calls == [{"scale_factor": 1.1, "min_neighbors": 4, "min_size": (30, 30)}]


def test_empty_detection_replaces_cache():
    cache = FaceCache(faces=(FaceRect(1, 1, 40, 40),))
    throttler = DetectionThrottler(StubFaceDetector([]), cache)

    result = throttler.maybe_detect(0, GRAY)

    assert result is cache
    assert cache.faces == ()
    assert cache.detections == 1
    assert cache.last_detection_index == 0


def test_failed_detection_keeps_last_known_good_cache():
    detector = FlakyDetector(fail_on={2})
    throttler = DetectionThrottler(detector, interval=2)

    throttler.maybe_detect(0, GRAY)
    good = throttler.cache.faces
    result = throttler.maybe_detect(2, GRAY)

    assert result.faces == good
    assert result.failures == 1
    assert result.last_detection_index == 0

    throttler.maybe_detect(4, GRAY)
    assert throttler.cache.last_detection_index == 4


def test_missing_detector_leaves_cache_untouched():
    cache = FaceCache(faces=(FaceRect(1, 1, 40, 40),))
    throttler = DetectionThrottler(None, cache)

    assert throttler.available is False
    assert throttler.detector_name == "none"
    assert throttler.maybe_detect(0, GRAY).faces == (FaceRect(1, 1, 40, 40),)


def test_next_frame_advances_own_counter():
    detector = CountingDetector()
    throttler = DetectionThrottler(detector, interval=3)

    for _ in range(7):
        throttler.next_frame(GRAY)

    assert throttler.cache.frame_counter == 7
    assert len(detector.calls) == 3


def test_stub_detector_honours_min_size():
    detector = StubFaceDetector([FaceRect(0, 0, 20, 20), FaceRect(0, 0, 40, 40)])
    assert detector.detect(GRAY, min_size=(30, 30)) == [FaceRect(0, 0, 40, 40)]


def test_interval_must_be_positive():
    with pytest.raises(ValueError):
        DetectionThrottler(None, interval=0)


def test_face_rect_clamp():
    assert FaceRect(-10, -10, 30, 30).clamp(100, 100) == FaceRect(0, 0, 20, 20)
    assert FaceRect(90, 90, 30, 30).clamp(100, 100) == FaceRect(90, 90, 10, 10)
    assert FaceRect(200, 0, 30, 30).clamp(100, 100).is_degenerate()
