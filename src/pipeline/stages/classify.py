"""
Classify stage: split a cycle's detections into in-guide and off-guide.

Detection geometry arrives in the space of the (possibly downscaled and
cropped) image the decoder saw; it is first mapped back onto the whole
scaled frame, then into display space for the containment test.
"""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from typing import List, Optional

from algorithms.spatial import Placement, Size, classify
from models.detection import RawDetection
from models.frame import FrameSample
from models.guide import GuideRegion


@dataclass
class ClassifiedDetections:
    """Detections of one cycle, decoder order preserved within each list."""
    inside: List[RawDetection] = field(default_factory=list)
    outside: List[RawDetection] = field(default_factory=list)

    def __len__(self) -> int:
        return len(self.inside) + len(self.outside)


class ClassifyStage:
    def __init__(self, tolerance: float = 0.1):
        self._tolerance = tolerance

    def process(
        self,
        detections: List[RawDetection],
        sample: FrameSample,
        container_size: Optional[Size],
        region: Optional[GuideRegion],
    ) -> ClassifiedDetections:
        result = ClassifiedDetections()
        dx, dy = sample.offset
        for detection in detections:
            geometry = detection.geometry
            if geometry is not None and (dx or dy):
                geometry = geometry.translated(dx, dy)
                detection = replace(detection, geometry=geometry)

            placement = classify(
                geometry, sample.full_size, container_size, region, self._tolerance
            )
            if placement == Placement.INSIDE:
                result.inside.append(detection)
            else:
                result.outside.append(detection)
        return result
