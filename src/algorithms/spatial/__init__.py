"""
Spatial classification of detections against the on-screen guide.
"""

from .geometry import Size, crop_box_for_guide, display_scale, to_display_space
from .guide import (
    Placement,
    classify,
    compute_guide_region,
    guide_region_from_config,
    is_point_in_guide,
)

__all__ = [
    "Size",
    "crop_box_for_guide",
    "display_scale",
    "to_display_space",
    "Placement",
    "classify",
    "compute_guide_region",
    "guide_region_from_config",
    "is_point_in_guide",
]
