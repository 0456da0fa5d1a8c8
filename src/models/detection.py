"""
Detection models for decoded barcode results.

Geometry is expressed in the coordinate space of the image that was handed
to the decoder (usually the downscaled sample of the camera frame).
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable, List, Optional, Sequence, Tuple


@dataclass(frozen=True)
class Point:
    """A 2D point."""
    x: float
    y: float

    def as_tuple(self) -> Tuple[float, float]:
        return (self.x, self.y)


@dataclass(frozen=True)
class Quad:
    """
    Four corner points of a detected symbol.

    Attributes:
        top_left: Top-left corner.
        top_right: Top-right corner.
        bottom_right: Bottom-right corner.
        bottom_left: Bottom-left corner.
    """
    top_left: Point
    top_right: Point
    bottom_right: Point
    bottom_left: Point

    @property
    def points(self) -> List[Point]:
        return [self.top_left, self.top_right, self.bottom_right, self.bottom_left]

    def centroid(self) -> Point:
        """Mean of the four corners."""
        pts = self.points
        return Point(
            x=sum(p.x for p in pts) / 4,
            y=sum(p.y for p in pts) / 4,
        )

    def scaled(self, sx: float, sy: float) -> "Quad":
        """Return a copy with x multiplied by sx and y by sy."""
        return Quad(*(Point(p.x * sx, p.y * sy) for p in self.points))

    def translated(self, dx: float, dy: float) -> "Quad":
        """Return a copy shifted by (dx, dy)."""
        return Quad(*(Point(p.x + dx, p.y + dy) for p in self.points))

    def as_list(self) -> List[Tuple[float, float]]:
        return [p.as_tuple() for p in self.points]

    @classmethod
    def from_points(cls, points: Iterable[Sequence[float]]) -> "Quad":
        """
        Create from four (x, y) pairs in TL, TR, BR, BL order.

        Raises:
            ValueError: If the iterable does not hold exactly four points.
        """
        pts = [Point(float(p[0]), float(p[1])) for p in points]
        if len(pts) != 4:
            raise ValueError(f"Quad needs exactly 4 points, got {len(pts)}")
        return cls(*pts)

    @classmethod
    def from_rect(cls, x: float, y: float, w: float, h: float) -> "Quad":
        """Create an axis-aligned quad from (x, y, width, height)."""
        return cls(
            top_left=Point(x, y),
            top_right=Point(x + w, y),
            bottom_right=Point(x + w, y + h),
            bottom_left=Point(x, y + h),
        )


@dataclass(frozen=True)
class RawDetection:
    """
    A single decoded symbol as reported by the decoding engine.

    Produced fresh each cycle and never retained.

    Attributes:
        text: Decoded payload.
        geometry: Corner points in decoder image space, if reported.
        format: Symbology name (e.g., "QRCode"), if reported.
    """
    text: str
    geometry: Optional[Quad] = None
    format: Optional[str] = None
