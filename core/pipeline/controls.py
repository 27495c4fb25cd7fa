from __future__ import annotations

import threading
from dataclasses import dataclass

from core.config import clamp_intensity
from core.filters.kinds import FilterKind


@dataclass(frozen=True)
class ControlSnapshot:
    filter: FilterKind
    intensity: int


class ControlState:
    """Filter selection and intensity as set by a UI, polled once per tick."""

    def __init__(self, filter_name: FilterKind | str = FilterKind.NONE, intensity: int = 50):
        self._lock = threading.Lock()
        self._filter = FilterKind.parse(filter_name)
        self._intensity = clamp_intensity(intensity)

    def set_filter(self, name: FilterKind | str) -> FilterKind:
        kind = FilterKind.parse(name)
        with self._lock:
            self._filter = kind
        return kind

    def set_intensity(self, value: int) -> int:
        intensity = clamp_intensity(value)
        with self._lock:
            self._intensity = intensity
        return intensity

    def snapshot(self) -> ControlSnapshot:
        with self._lock:
            return ControlSnapshot(filter=self._filter, intensity=self._intensity)
