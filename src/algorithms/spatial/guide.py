"""
Guide region layout and inside/outside classification of detections.

The guide is a card-shaped rectangle centered in the display container.
A detection is "inside" when the centroid of its corners, mapped into
display space, falls within the guide expanded by a tolerance margin.
"""

from __future__ import annotations

from enum import Enum
from typing import Optional, Sequence

from models.config import GuideConfig
from models.detection import Point, Quad
from models.guide import GuideRegion
from .geometry import Size, is_valid_size, to_display_space

# Card proportions (width, height), from a standard ID card.
DEFAULT_BASE_RATIO = (252.0, 352.0)


class Placement(str, Enum):
    INSIDE = "inside"
    OUTSIDE = "outside"


def compute_guide_region(
    container_width: float,
    container_height: float,
    base_ratio: Sequence[float] = DEFAULT_BASE_RATIO,
    screen_coverage: float = 0.6,
    min_width: float = 200.0,
    max_width: float = 400.0,
) -> GuideRegion:
    """
    Lay out the guide for a container size.

    The guide covers ``screen_coverage`` of the container width, shrinks to
    fit ``screen_coverage`` of the height when it would be too tall, and its
    width is finally clamped to [min_width, max_width].
    """
    ratio = base_ratio[1] / base_ratio[0]

    width = container_width * screen_coverage
    height = width * ratio
    if height > container_height * screen_coverage:
        height = container_height * screen_coverage
        width = height / ratio

    width = max(min_width, min(max_width, width))
    height = width * ratio

    left = (container_width - width) / 2
    top = (container_height - height) / 2
    return GuideRegion(
        top=top,
        left=left,
        width=width,
        height=height,
        center=Point(left + width / 2, top + height / 2),
    )


def guide_region_from_config(
    cfg: GuideConfig,
    container_width: float,
    container_height: float,
) -> GuideRegion:
    """Adapter: lay out the guide using GuideConfig values."""
    return compute_guide_region(
        container_width,
        container_height,
        base_ratio=cfg.base_ratio,
        screen_coverage=cfg.screen_coverage,
        min_width=cfg.min_width,
        max_width=cfg.max_width,
    )


def is_point_in_guide(point: Point, region: GuideRegion, tolerance: float = 0.1) -> bool:
    """Inclusive containment test against the region grown by tolerance * width."""
    margin = region.width * tolerance
    return (
        region.left - margin <= point.x <= region.right + margin
        and region.top - margin <= point.y <= region.bottom + margin
    )


def classify(
    geometry: Optional[Quad],
    frame_size: Optional[Size],
    container_size: Optional[Size],
    region: Optional[GuideRegion],
    tolerance: float = 0.1,
) -> Placement:
    """
    Classify one detection against the guide.

    Missing geometry, an unmeasured guide, or unusable sizes all classify
    as OUTSIDE so scanning keeps working without the overlay.
    """
    if geometry is None or region is None:
        return Placement.OUTSIDE
    if not (is_valid_size(frame_size) and is_valid_size(container_size)):
        return Placement.OUTSIDE

    centroid = to_display_space(geometry, frame_size, container_size).centroid()
    if is_point_in_guide(centroid, region, tolerance):
        return Placement.INSIDE
    return Placement.OUTSIDE
