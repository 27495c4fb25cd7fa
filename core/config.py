from __future__ import annotations

import os
import sys
from dataclasses import dataclass
from pathlib import Path

from dotenv import load_dotenv


# Load environment variables from a local .env file if present.
load_dotenv()

SOURCE_BACKENDS = {"stub", "opencv"}
DETECTOR_BACKENDS = {"haar", "stub", "none"}


@dataclass(frozen=True)
class LocalPaths:
    base_dir: Path
    snapshots_dir: Path
    logs_dir: Path


@dataclass(frozen=True)
class PipelineConfig:
    source: str
    device_index: int
    width: int
    height: int
    detect_interval: int
    ellipse_scale: float
    detector: str
    cascade_path: str | None
    default_filter: str
    default_intensity: int
    noise_seed: int | None
    jpeg_quality: int


def _default_base_dir() -> Path:
    override = os.getenv("FRAMEFX_DATA_DIR")
    if override:
        return Path(override).expanduser()
    if sys.platform == "win32":
        root = Path(os.getenv("LOCALAPPDATA", Path.home() / "AppData" / "Local"))
        return root / "FrameFX"
    if sys.platform == "darwin":
        return Path.home() / "Library" / "Application Support" / "FrameFX"
    root = Path(os.getenv("XDG_DATA_HOME", Path.home() / ".local" / "share"))
    return root / "framefx"


def get_local_paths() -> LocalPaths:
    base_dir = _default_base_dir()
    return LocalPaths(
        base_dir=base_dir,
        snapshots_dir=base_dir / "snapshots",
        logs_dir=base_dir / "logs",
    )


def ensure_directories() -> LocalPaths:
    paths = get_local_paths()
    for path in (paths.base_dir, paths.snapshots_dir, paths.logs_dir):
        path.mkdir(parents=True, exist_ok=True)
    return paths


def _parse_bool(value: str | None, default: bool) -> bool:
    if value is None:
        return default
    normalized = value.strip().lower()
    if normalized in {"1", "true", "yes", "on"}:
        return True
    if normalized in {"0", "false", "no", "off"}:
        return False
    return default


def _parse_int(value: str | None, default: int) -> int:
    if value is None:
        return default
    try:
        return int(value)
    except ValueError:
        return default


def _parse_optional_int(value: str | None) -> int | None:
    if value is None or not value.strip():
        return None
    try:
        return int(value)
    except ValueError:
        return None


def _parse_float(value: str | None, default: float) -> float:
    if value is None:
        return default
    try:
        return float(value)
    except ValueError:
        return default


def _parse_choice(value: str | None, allowed: set[str], default: str) -> str:
    normalized = (value or default).strip().lower()
    if normalized not in allowed:
        return default
    return normalized


def clamp_intensity(value: int) -> int:
    return max(0, min(100, int(value)))


def get_pipeline_config() -> PipelineConfig:
    width = _parse_int(os.getenv("FRAMEFX_FRAME_WIDTH"), 640)
    height = _parse_int(os.getenv("FRAMEFX_FRAME_HEIGHT"), 480)
    if width <= 0 or height <= 0:
        width, height = 640, 480
    cascade_path = os.getenv("FRAMEFX_CASCADE_PATH", "").strip() or None
    return PipelineConfig(
        source=_parse_choice(os.getenv("FRAMEFX_SOURCE"), SOURCE_BACKENDS, "stub"),
        device_index=_parse_int(os.getenv("FRAMEFX_DEVICE_INDEX"), 0),
        width=width,
        height=height,
        detect_interval=max(1, _parse_int(os.getenv("FRAMEFX_DETECT_INTERVAL"), 4)),
        ellipse_scale=max(0.0, _parse_float(os.getenv("FRAMEFX_ELLIPSE_SCALE"), 1.25)),
        detector=_parse_choice(os.getenv("FRAMEFX_DETECTOR"), DETECTOR_BACKENDS, "haar"),
        cascade_path=cascade_path,
        default_filter=os.getenv("FRAMEFX_DEFAULT_FILTER", "none").strip().lower() or "none",
        default_intensity=clamp_intensity(_parse_int(os.getenv("FRAMEFX_DEFAULT_INTENSITY"), 50)),
        noise_seed=_parse_optional_int(os.getenv("FRAMEFX_NOISE_SEED")),
        jpeg_quality=max(1, min(100, _parse_int(os.getenv("FRAMEFX_JPEG_QUALITY"), 85))),
    )


def get_log_level() -> str:
    """Return the configured log level name (default: INFO)."""

    level = os.getenv("FRAMEFX_LOG_LEVEL", "INFO").strip().upper()
    return level or "INFO"


def is_debug_overlay_enabled() -> bool:
    """Indicate whether cached face rectangles should be outlined in the desktop viewer."""

    return _parse_bool(os.getenv("FRAMEFX_DEBUG_OVERLAY"), False)
