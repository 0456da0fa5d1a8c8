"""
Coordinate conversion between decoder image space and display space.

Pure functions with no rendering dependency.
"""

from __future__ import annotations

from typing import Optional, Tuple

from models.detection import Quad
from models.guide import GuideRegion

# (width, height)
Size = Tuple[float, float]


def is_valid_size(size: Optional[Size]) -> bool:
    return size is not None and size[0] > 0 and size[1] > 0


def display_scale(frame_size: Size, container_size: Size) -> Tuple[float, float]:
    """Return (sx, sy) mapping image pixels to display pixels."""
    return (
        container_size[0] / frame_size[0],
        container_size[1] / frame_size[1],
    )


def to_display_space(quad: Quad, frame_size: Size, container_size: Size) -> Quad:
    """
    Map a quad from image space into display (container) space.

    Args:
        quad: Corner points in the space of the image that was decoded.
        frame_size: (width, height) of that image.
        container_size: (width, height) of the on-screen container.
    """
    sx, sy = display_scale(frame_size, container_size)
    return quad.scaled(sx, sy)


def crop_box_for_guide(
    region: GuideRegion,
    frame_size: Size,
    container_size: Size,
) -> Tuple[int, int, int, int]:
    """
    Guide region expressed as an (x, y, w, h) box in frame pixels.

    The box is clipped to the frame bounds.
    """
    sx, sy = display_scale(frame_size, container_size)
    frame_w, frame_h = int(frame_size[0]), int(frame_size[1])

    x1 = max(0, int(region.left / sx))
    y1 = max(0, int(region.top / sy))
    x2 = min(frame_w, int(region.right / sx))
    y2 = min(frame_h, int(region.bottom / sy))
    return (x1, y1, max(0, x2 - x1), max(0, y2 - y1))
