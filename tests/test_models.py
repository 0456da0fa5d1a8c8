"""
Tests for the shared model types.
"""

import numpy as np
import pytest

from models import FrameData, GuideRegion, Point, Quad, ScanState, UniqueResult, sample_frame
from models.scan_state import GuideState, ScanMode


class TestQuad:
    """Tests for Quad geometry helpers."""

    def test_centroid(self):
        quad = Quad.from_rect(10, 20, 30, 40)

        assert quad.centroid() == Point(25, 40)

    def test_scaled_and_translated(self):
        quad = Quad.from_rect(0, 0, 10, 10)

        assert quad.scaled(2, 3).bottom_right == Point(20, 30)
        assert quad.translated(5, -5).top_left == Point(5, -5)

    def test_from_points(self):
        quad = Quad.from_points([(0, 0), (4, 0), (4, 2), (0, 2)])

        assert quad.as_list() == [(0.0, 0.0), (4.0, 0.0), (4.0, 2.0), (0.0, 2.0)]

    def test_from_points_needs_four(self):
        with pytest.raises(ValueError):
            Quad.from_points([(0, 0), (1, 1), (2, 2)])


class TestSampleFrame:
    """Tests for sample_frame."""

    def _frame(self, w=640, h=480):
        return FrameData.from_numpy(np.zeros((h, w, 3), dtype=np.uint8), timestamp=0.0)

    def test_native_resolution(self):
        sample = sample_frame(self._frame(), scale=1.0)

        assert sample.image.shape[:2] == (480, 640)
        assert sample.full_size == (640, 480)
        assert sample.offset == (0, 0)

    def test_downscale(self):
        sample = sample_frame(self._frame(), scale=0.6)

        assert sample.full_size == (384, 288)
        assert sample.image.shape[:2] == (288, 384)

    def test_crop_in_scaled_space(self):
        sample = sample_frame(self._frame(), scale=0.5, crop=(100, 50, 200, 100))

        assert sample.offset == (50, 25)
        assert sample.image.shape[:2] == (50, 100)
        assert sample.full_size == (320, 240)

    def test_crop_clipped_to_frame(self):
        sample = sample_frame(self._frame(), scale=1.0, crop=(600, 400, 200, 200))

        assert sample.offset == (600, 400)
        assert sample.image.shape[:2] == (80, 40)


class TestSerialization:
    """Tests for to_dict helpers used by the API."""

    def test_unique_result(self):
        result = UniqueResult(id="QQ", text="A", first_seen=1.0, last_seen=2.0, count=3)

        assert result.to_dict() == {
            "id": "QQ", "text": "A", "first_seen": 1.0, "last_seen": 2.0, "count": 3,
        }

    def test_scan_state_uses_enum_values(self):
        state = ScanState(mode=ScanMode.SCANNING, scan_interval_ms=250, guide_state=GuideState.SUCCESS)

        assert state.to_dict() == {
            "mode": "scanning", "scan_interval_ms": 250, "guide_state": "success",
        }

    def test_guide_region(self):
        region = GuideRegion(top=1, left=2, width=3, height=4, center=Point(3.5, 3))

        assert region.right == 5
        assert region.bottom == 5
        assert region.to_dict()["center"] == {"x": 3.5, "y": 3}
