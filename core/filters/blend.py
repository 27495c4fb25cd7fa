from __future__ import annotations

import cv2
import numpy as np

from core.logging.logger import get_logger
from core.pipeline.backends.base import FaceRect

ELLIPSE_SCALE = 1.25


def blur_kernel_size(intensity: int) -> int:
    k = int(intensity * 0.6) + 5
    if k % 2 == 0:
        k += 1
    return k


def feathered_mask(width: int, height: int, scale: float = ELLIPSE_SCALE) -> np.ndarray:
    """Elliptical alpha mask with a linear falloff from 1 at the center to 0 at the rim.

    The ellipse is centred on the rectangle with semi-axes ``scale`` times the
    half-width and half-height, so it reaches past the rectangle's edges for
    ``scale > 1``. A zero ``scale`` yields an all-zero mask.
    """
    mask = np.zeros((height, width), dtype=np.float32)
    ax = (width / 2.0) * scale
    ay = (height / 2.0) * scale
    if ax <= 0 or ay <= 0:
        return mask
    cx = width / 2.0
    cy = height / 2.0
    xs = (np.arange(width, dtype=np.float32) - cx) / ax
    ys = (np.arange(height, dtype=np.float32) - cy) / ay
    d = ys[:, None] ** 2 + xs[None, :] ** 2
    inside = d < 1.0
    mask[inside] = 1.0 - d[inside]
    return mask


def blend_region(original: np.ndarray, blurred: np.ndarray, alpha: np.ndarray) -> np.ndarray:
    """Per-pixel ``original * (1 - alpha) + blurred * alpha`` in the original's dtype."""
    if original.shape != blurred.shape or original.shape[:2] != alpha.shape:
        raise ValueError("Region, blurred copy and mask must share width and height")
    weights = alpha[..., None] if original.ndim == 3 else alpha
    mixed = original.astype(np.float32) * (1.0 - weights) + blurred.astype(np.float32) * weights
    if np.issubdtype(original.dtype, np.integer):
        info = np.iinfo(original.dtype)
        mixed = np.clip(np.rint(mixed), info.min, info.max)
    return mixed.astype(original.dtype)


def blur_face_region(frame: np.ndarray, rect: FaceRect, k: int) -> np.ndarray:
    """Gaussian blur of ``rect`` that samples real neighbouring pixels across its edges.

    The blur runs over the rectangle grown by the kernel radius and clipped to
    the frame, so only the true frame border is reflected.
    """
    height, width = frame.shape[:2]
    radius = k // 2
    top = max(0, rect.y - radius)
    left = max(0, rect.x - radius)
    bottom = min(height, rect.y + rect.h + radius)
    right = min(width, rect.x + rect.w + radius)
    blurred = cv2.GaussianBlur(frame[top:bottom, left:right], (k, k), 0)
    y = rect.y - top
    x = rect.x - left
    return blurred[y:y + rect.h, x:x + rect.w]


def anonymize(
    frame: np.ndarray,
    face: FaceRect,
    intensity: int,
    ellipse_scale: float = ELLIPSE_SCALE,
) -> bool:
    """Blur ``face`` inside ``frame`` in place; returns False when the face was skipped."""
    height, width = frame.shape[:2]
    rect = face.clamp(width, height)
    if rect.is_degenerate():
        get_logger().debug("Skipping degenerate face rectangle %s", face)
        return False

    k = blur_kernel_size(intensity)
    roi = frame[rect.y:rect.y + rect.h, rect.x:rect.x + rect.w]
    blurred = blur_face_region(frame, rect, k)
    alpha = feathered_mask(rect.w, rect.h, ellipse_scale)
    roi[...] = blend_region(roi, blurred, alpha)
    return True
