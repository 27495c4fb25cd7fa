from __future__ import annotations

import sys
from pathlib import Path

import numpy as np
import pytest

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))


@pytest.fixture
def noise_frame() -> np.ndarray:
    rng = np.random.default_rng(1234)
    frame = rng.integers(0, 256, size=(480, 640, 4), dtype=np.uint8)
    frame[..., 3] = 255
    return frame
