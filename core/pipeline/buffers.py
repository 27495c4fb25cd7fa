from __future__ import annotations

from dataclasses import dataclass, field

import numpy as np


@dataclass
class FrameBuffers:
    """Frame-sized buffers allocated once for a fixed capture resolution."""

    width: int
    height: int
    output: np.ndarray = field(init=False)
    work: np.ndarray = field(init=False)
    gray: np.ndarray = field(init=False)
    edges: np.ndarray = field(init=False)
    bgr: np.ndarray = field(init=False)
    palette: np.ndarray = field(init=False)
    color: np.ndarray = field(init=False)
    edges_rgba: np.ndarray = field(init=False)
    noise: np.ndarray = field(init=False)
    noise_unit: np.ndarray = field(init=False)

    def __post_init__(self) -> None:
        if self.width <= 0 or self.height <= 0:
            raise ValueError("Frame buffers need a positive width and height")
        self.output = np.zeros((self.height, self.width, 4), dtype=np.uint8)
        self.work = np.zeros_like(self.output)
        self.gray = np.zeros((self.height, self.width), dtype=np.uint8)
        self.edges = np.zeros_like(self.gray)
        self.bgr = np.zeros((self.height, self.width, 3), dtype=np.uint8)
        self.palette = np.zeros_like(self.bgr)
        self.color = np.zeros_like(self.output)
        self.edges_rgba = np.zeros_like(self.output)
        self.noise = np.zeros_like(self.output)
        # uniform draws before they are scaled to the noise amplitude
        self.noise_unit = np.zeros(self.output.shape, dtype=np.float32)

    @property
    def shape(self) -> tuple[int, int, int]:
        return (self.height, self.width, 4)

    def swap(self) -> None:
        """Promote the work buffer to output; the old output becomes scratch."""
        self.output, self.work = self.work, self.output
