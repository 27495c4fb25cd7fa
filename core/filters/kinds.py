from __future__ import annotations

from enum import Enum

_ALIASES = {
    "faceblur_dnn": "faceblur",
    "default": "none",
    "grey": "gray",
}


class FilterKind(str, Enum):
    NONE = "none"
    GRAY = "gray"
    NOISY = "noisy"
    COLORIZE = "colorize"
    CARTOON = "cartoon"
    POSTERIZE = "posterize"
    FACEBLUR = "faceblur"

    @classmethod
    def parse(cls, value: FilterKind | str | None) -> FilterKind:
        """Resolve a UI filter name; unknown names fall back to NONE."""
        if isinstance(value, FilterKind):
            return value
        normalized = (value or "").strip().lower()
        normalized = _ALIASES.get(normalized, normalized)
        try:
            return cls(normalized)
        except ValueError:
            return cls.NONE

    @property
    def label(self) -> str:
        if self is FilterKind.FACEBLUR:
            return "Face blur"
        return self.value.capitalize()
