"""
Tests for observation sources and viewport providers.
"""

import numpy as np
import pytest

import cv2

from observation import (
    FixedViewport,
    ImageSource,
    ImageSourceConfig,
    MutableViewport,
    OpenCVSource,
    OpenCVSourceConfig,
    create_source_from_config,
)
from observation.opencv_source import apply_transforms


def _image(value: int, w: int = 8, h: int = 6) -> np.ndarray:
    return np.full((h, w, 3), value, dtype=np.uint8)


class TestImageSource:
    """Tests for ImageSource."""

    def test_get_frame_before_open(self):
        source = ImageSource(ImageSourceConfig(), images=[_image(1)])

        assert source.get_frame() is None

    def test_cycles_through_images(self):
        source = ImageSource(ImageSourceConfig(source_id="test"), images=[_image(1), _image(2)])
        source.open()

        values = [int(source.get_frame().frame[0, 0, 0]) for _ in range(3)]

        assert values == [1, 2, 1]
        assert source.frame_index == 3

    def test_frame_metadata(self):
        with ImageSource(ImageSourceConfig(source_id="test"), images=[_image(5, w=8, h=6)]) as source:
            frame = source.get_frame()

        assert frame.size == (8, 6)
        assert frame.source == "test"
        assert frame.frame_index == 1
        assert source.is_open is False

    def test_no_loop_runs_dry(self):
        source = ImageSource(ImageSourceConfig(loop=False), images=[_image(1)])
        source.open()

        assert source.get_frame() is not None
        assert source.get_frame() is None

    def test_loads_files(self, tmp_path):
        path = tmp_path / "card.png"
        cv2.imwrite(str(path), _image(7))
        source = ImageSource(ImageSourceConfig(image_paths=[str(path)]))

        source.open()

        assert source.get_frame().frame.shape == (6, 8, 3)

    def test_missing_file_raises(self, tmp_path):
        source = ImageSource(ImageSourceConfig(image_paths=[str(tmp_path / "missing.png")]))

        with pytest.raises(RuntimeError):
            source.open()
        assert source.is_open is False

    def test_no_images_raises(self):
        with pytest.raises(RuntimeError):
            ImageSource(ImageSourceConfig()).open()


class TestOpenCVSource:
    """Tests for OpenCVSource that need no camera."""

    def test_config_from_camera_section(self):
        cfg = OpenCVSourceConfig.from_camera_config(
            {"device_id": "rtsp://cam/stream", "resolution": [640, 480], "fps": 15, "rotate": 90},
            source_id="front",
        )

        assert cfg.source_id == "front"
        assert cfg.device_id == "rtsp://cam/stream"
        assert cfg.resolution == (640, 480)
        assert cfg.fps == 15
        assert cfg.rotate == 90

    def test_open_failure_raises(self, tmp_path):
        source = OpenCVSource(OpenCVSourceConfig(device_id=str(tmp_path / "missing.mp4"), max_retries=1))

        with pytest.raises(RuntimeError):
            source.open()
        assert source.is_open is False
        assert source.get_frame() is None
        source.close()

    def test_apply_transforms_rotate(self):
        frame = np.zeros((2, 3, 3), dtype=np.uint8)

        assert apply_transforms(frame, rotate=90).shape == (3, 2, 3)
        assert apply_transforms(frame, rotate=180).shape == (2, 3, 3)

    def test_apply_transforms_flip(self):
        frame = np.zeros((1, 2, 3), dtype=np.uint8)
        frame[0, 0] = 255

        flipped = apply_transforms(frame, flip_horizontal=True)

        assert flipped[0, 1, 0] == 255
        assert flipped[0, 0, 0] == 0


class TestCreateSource:
    """Tests for create_source_from_config."""

    def test_images_backend(self):
        source = create_source_from_config({"backend": "images", "image_paths": ["a.png"]}, source_id="x")

        assert isinstance(source, ImageSource)
        assert source.source_id == "x"

    def test_opencv_backend(self):
        source = create_source_from_config({"backend": "opencv", "device_id": 0})

        assert isinstance(source, OpenCVSource)

    def test_unknown_backend(self):
        with pytest.raises(ValueError):
            create_source_from_config({"backend": "picamera2"})


class TestViewports:
    """Tests for viewport providers."""

    def test_fixed(self):
        assert FixedViewport(390, 844).get_container_size() == (390, 844)

    def test_fixed_rejects_empty(self):
        with pytest.raises(ValueError):
            FixedViewport(0, 844)

    def test_mutable_starts_unmeasured(self):
        assert MutableViewport().get_container_size() is None

    def test_mutable_update_and_clear(self):
        viewport = MutableViewport((390, 844))
        viewport.update(844, 390)

        assert viewport.get_container_size() == (844, 390)

        viewport.clear()
        assert viewport.get_container_size() is None

    def test_mutable_rejects_negative(self):
        viewport = MutableViewport()

        with pytest.raises(ValueError):
            viewport.update(-1, 10)
        assert viewport.get_container_size() is None
