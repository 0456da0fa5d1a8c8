"""
GuideRegion model for the on-screen card alignment guide.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict

from .detection import Point


@dataclass(frozen=True)
class GuideRegion:
    """
    Guide rectangle in display (container) coordinates.

    Recomputed whenever the container size changes; never persisted.
    """
    top: float
    left: float
    width: float
    height: float
    center: Point

    @property
    def right(self) -> float:
        return self.left + self.width

    @property
    def bottom(self) -> float:
        return self.top + self.height

    def to_dict(self) -> Dict[str, Any]:
        return {
            "top": self.top,
            "left": self.left,
            "width": self.width,
            "height": self.height,
            "center": {"x": self.center.x, "y": self.center.y},
        }
