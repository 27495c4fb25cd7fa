from __future__ import annotations

from functools import lru_cache

import cv2
import numpy as np


def _scratch(buffer: np.ndarray | None, shape: tuple[int, ...], dtype=np.uint8) -> np.ndarray:
    if buffer is not None and buffer.shape == shape and buffer.dtype == dtype:
        return buffer
    return np.empty(shape, dtype=dtype)


def _into(dst: np.ndarray, result: np.ndarray) -> None:
    # cv2 hands back ``dst`` itself when it could write in place.
    if result is not dst:
        np.copyto(dst, result)


def to_gray(src: np.ndarray, gray: np.ndarray | None = None) -> np.ndarray:
    """RGBA to single-channel gray, written into ``gray`` when it fits."""
    gray = _scratch(gray, src.shape[:2])
    return cv2.cvtColor(src, cv2.COLOR_RGBA2GRAY, dst=gray)


def brightness_factor(intensity: int) -> float:
    return 1.0 - intensity / 120.0


def noise_amplitude(intensity: int) -> int:
    return min(255, intensity * 3)


def blend_ratio(intensity: int) -> float:
    return intensity / 100.0


def cartoon_kernel_size(intensity: int) -> int:
    return max(3, (intensity // 10) * 2 + 1)


def posterize_levels(intensity: int) -> int:
    return max(2, intensity // 25 + 2)


@lru_cache(maxsize=8)
def posterize_lut(levels: int) -> np.ndarray:
    step = 255.0 / (levels - 1)
    values = np.arange(256, dtype=np.float64)
    quantized = np.floor(values / step + 0.5) * step
    # Fractional levels are truncated, matching an integer store.
    return np.clip(quantized, 0, 255).astype(np.uint8)


def identity(src: np.ndarray, dst: np.ndarray) -> None:
    np.copyto(dst, src)


def gray_filter(src: np.ndarray, dst: np.ndarray, intensity: int, *, gray: np.ndarray | None = None) -> None:
    gray = to_gray(src, gray)
    factor = brightness_factor(intensity)
    if factor != 1.0:
        gray = cv2.convertScaleAbs(gray, dst=gray, alpha=factor, beta=0)
    _into(dst, cv2.cvtColor(gray, cv2.COLOR_GRAY2RGBA, dst=dst))


def uniform_noise(
    shape: tuple[int, ...],
    amount: int,
    rng: np.random.Generator,
    *,
    noise: np.ndarray | None = None,
    unit: np.ndarray | None = None,
) -> np.ndarray:
    """Integers in ``[0, amount)`` drawn into reusable uint8/float32 buffers."""
    noise = _scratch(noise, shape)
    if amount <= 0:
        noise.fill(0)
        return noise
    unit = _scratch(unit, shape, np.float32)
    rng.random(dtype=np.float32, out=unit)
    np.multiply(unit, amount, out=unit)
    np.floor(unit, out=unit)
    np.minimum(unit, amount - 1, out=unit)
    np.copyto(noise, unit, casting="unsafe")
    return noise


def noisy_filter(
    src: np.ndarray,
    dst: np.ndarray,
    intensity: int,
    *,
    rng: np.random.Generator,
    noise: np.ndarray | None = None,
    unit: np.ndarray | None = None,
) -> None:
    noise = uniform_noise(src.shape, noise_amplitude(intensity), rng, noise=noise, unit=unit)
    _into(dst, cv2.addWeighted(src, 1.0, noise, 0.5, 0, dst=dst))


def colorize_filter(
    src: np.ndarray,
    dst: np.ndarray,
    intensity: int,
    *,
    gray: np.ndarray | None = None,
    bgr: np.ndarray | None = None,
    palette: np.ndarray | None = None,
) -> None:
    gray = to_gray(src, gray)
    color_shape = src.shape[:2] + (3,)
    palette = cv2.applyColorMap(gray, cv2.COLORMAP_JET, dst=_scratch(palette, color_shape))
    bgr = cv2.cvtColor(src, cv2.COLOR_RGBA2BGR, dst=_scratch(bgr, color_shape))
    ratio = blend_ratio(intensity)
    palette = cv2.addWeighted(bgr, 1.0 - ratio, palette, ratio, 0, dst=palette)
    _into(dst, cv2.cvtColor(palette, cv2.COLOR_BGR2RGBA, dst=dst))


def cartoon_filter(
    src: np.ndarray,
    dst: np.ndarray,
    intensity: int,
    *,
    gray: np.ndarray | None = None,
    edges: np.ndarray | None = None,
    color: np.ndarray | None = None,
    edges_rgba: np.ndarray | None = None,
) -> None:
    k = cartoon_kernel_size(intensity)
    gray = to_gray(src, gray)
    gray = cv2.medianBlur(gray, k, dst=gray)
    edges = cv2.adaptiveThreshold(
        gray,
        255,
        cv2.ADAPTIVE_THRESH_MEAN_C,
        cv2.THRESH_BINARY,
        9,
        intensity / 10.0,
        dst=_scratch(edges, gray.shape),
    )
    color = cv2.GaussianBlur(src, (k, k), 0, dst=_scratch(color, src.shape))
    edges_rgba = cv2.cvtColor(edges, cv2.COLOR_GRAY2RGBA, dst=_scratch(edges_rgba, src.shape))
    _into(dst, cv2.bitwise_and(color, edges_rgba, dst=dst))


def posterize_filter(src: np.ndarray, dst: np.ndarray, intensity: int) -> None:
    lut = posterize_lut(posterize_levels(intensity))
    _into(dst, cv2.LUT(src, lut, dst=dst))
