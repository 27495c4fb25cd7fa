from __future__ import annotations

from typing import Callable

import numpy as np

from core.config import clamp_intensity
from core.filters import effects
from core.filters.blend import ELLIPSE_SCALE, anonymize
from core.filters.faces import DetectionThrottler
from core.filters.kinds import FilterKind
from core.pipeline.buffers import FrameBuffers
from core.pipeline.errors import InvariantViolationError

Handler = Callable[[np.ndarray, np.ndarray, int], None]


def validate_frames(src: np.ndarray, dst: np.ndarray) -> None:
    if src.ndim != 3 or src.shape[2] != 4 or src.dtype != np.uint8:
        raise InvariantViolationError(f"Expected an RGBA uint8 source, got {src.shape} {src.dtype}")
    if dst.shape != src.shape or dst.dtype != src.dtype:
        raise InvariantViolationError(
            f"Destination {dst.shape} {dst.dtype} does not match source {src.shape} {src.dtype}"
        )
    if np.shares_memory(src, dst):
        raise InvariantViolationError("Source and destination must be distinct buffers")


class FilterEngine:
    """Applies one named filter per call, reusing the pipeline's scratch buffers."""

    def __init__(
        self,
        throttler: DetectionThrottler,
        buffers: FrameBuffers | None = None,
        rng: np.random.Generator | None = None,
        ellipse_scale: float = ELLIPSE_SCALE,
    ):
        self._throttler = throttler
        self._buffers = buffers
        self._rng = rng or np.random.default_rng()
        self._ellipse_scale = ellipse_scale
        self._handlers: dict[FilterKind, Handler] = {
            FilterKind.NONE: self._none,
            FilterKind.GRAY: self._gray,
            FilterKind.NOISY: self._noisy,
            FilterKind.COLORIZE: self._colorize,
            FilterKind.CARTOON: self._cartoon,
            FilterKind.POSTERIZE: self._posterize,
            FilterKind.FACEBLUR: self._faceblur,
        }
        missing = set(FilterKind) - set(self._handlers)
        if missing:
            raise RuntimeError(f"No handler for filters: {sorted(kind.value for kind in missing)}")

    @property
    def throttler(self) -> DetectionThrottler:
        return self._throttler

    def available_filters(self) -> list[FilterKind]:
        return [kind for kind in FilterKind if kind is not FilterKind.FACEBLUR or self._throttler.available]

    def apply_filter(self, name: FilterKind | str, src: np.ndarray, dst: np.ndarray, intensity: int) -> FilterKind:
        kind = FilterKind.parse(name)
        validate_frames(src, dst)
        self._handlers[kind](src, dst, clamp_intensity(intensity))
        return kind

    def _scratch(self, attr: str, src: np.ndarray) -> np.ndarray | None:
        if self._buffers is None or self._buffers.shape != src.shape:
            return None
        return getattr(self._buffers, attr)

    def _none(self, src: np.ndarray, dst: np.ndarray, intensity: int) -> None:
        effects.identity(src, dst)

    def _gray(self, src: np.ndarray, dst: np.ndarray, intensity: int) -> None:
        effects.gray_filter(src, dst, intensity, gray=self._scratch("gray", src))

    def _noisy(self, src: np.ndarray, dst: np.ndarray, intensity: int) -> None:
        effects.noisy_filter(
            src,
            dst,
            intensity,
            rng=self._rng,
            noise=self._scratch("noise", src),
            unit=self._scratch("noise_unit", src),
        )

    def _colorize(self, src: np.ndarray, dst: np.ndarray, intensity: int) -> None:
        effects.colorize_filter(
            src,
            dst,
            intensity,
            gray=self._scratch("gray", src),
            bgr=self._scratch("bgr", src),
            palette=self._scratch("palette", src),
        )

    def _cartoon(self, src: np.ndarray, dst: np.ndarray, intensity: int) -> None:
        effects.cartoon_filter(
            src,
            dst,
            intensity,
            gray=self._scratch("gray", src),
            edges=self._scratch("edges", src),
            color=self._scratch("color", src),
            edges_rgba=self._scratch("edges_rgba", src),
        )

    def _posterize(self, src: np.ndarray, dst: np.ndarray, intensity: int) -> None:
        effects.posterize_filter(src, dst, intensity)

    def _faceblur(self, src: np.ndarray, dst: np.ndarray, intensity: int) -> None:
        gray = effects.to_gray(src, self._scratch("gray", src))
        cache = self._throttler.next_frame(gray)
        np.copyto(dst, src)
        # Cache order; later faces overwrite earlier ones where they overlap.
        for face in cache.faces:
            anonymize(dst, face, intensity, self._ellipse_scale)
