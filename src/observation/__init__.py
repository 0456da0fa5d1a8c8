"""
Observation layer: frame and viewport providers for the scan loop.
"""

from typing import Any, Dict

from .base import ObservationSource, ObservationConfig
from .opencv_source import OpenCVSource, OpenCVSourceConfig
from .image_source import ImageSource, ImageSourceConfig
from .viewport import ContainerSize, FixedViewport, MutableViewport, ViewportProvider


def create_source_from_config(camera_cfg: Dict[str, Any], source_id: str = "main-camera") -> ObservationSource:
    """Build the capture provider selected by ``camera.backend``."""
    backend = camera_cfg.get("backend", "opencv")
    if backend == "opencv":
        return OpenCVSource(OpenCVSourceConfig.from_camera_config(camera_cfg, source_id=source_id))
    if backend == "images":
        return ImageSource(ImageSourceConfig.from_camera_config(camera_cfg, source_id=source_id))
    raise ValueError(f"Unknown camera backend: {backend}")


__all__ = [
    "ObservationSource",
    "ObservationConfig",
    "OpenCVSource",
    "OpenCVSourceConfig",
    "ImageSource",
    "ImageSourceConfig",
    "ContainerSize",
    "FixedViewport",
    "MutableViewport",
    "ViewportProvider",
    "create_source_from_config",
]
