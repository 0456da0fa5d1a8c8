"""
Still-image observation source.

Serves a fixed sequence of images, one per ``get_frame()`` call, looping
at the end. Used for headless runs against sample pictures and in tests.
"""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

import cv2
import numpy as np

from models.frame import FrameData
from .base import ObservationSource, ObservationConfig

logger = logging.getLogger(__name__)


@dataclass
class ImageSourceConfig(ObservationConfig):
    """
    Attributes:
        image_paths: Files loaded with cv2.imread on open().
        loop: Start over after the last image; otherwise return None.
    """
    image_paths: List[str] = field(default_factory=list)
    loop: bool = True

    @classmethod
    def from_camera_config(cls, camera_cfg: Dict[str, Any], source_id: str = "images") -> "ImageSourceConfig":
        return cls(
            source_id=source_id,
            image_paths=list(camera_cfg.get("image_paths") or []),
            loop=camera_cfg.get("loop", True),
        )


class ImageSource(ObservationSource):
    def __init__(self, config: ImageSourceConfig, images: Optional[List[np.ndarray]] = None):
        super().__init__(config)
        self._image_config = config
        self._preloaded = list(images or [])
        self._images: List[np.ndarray] = []
        self._pos = 0

    def open(self) -> None:
        if self._is_open:
            return
        images = list(self._preloaded)
        for path in self._image_config.image_paths:
            image = cv2.imread(path)
            if image is None:
                raise RuntimeError(f"Failed to read image: {path}")
            images.append(image)
        if not images:
            raise RuntimeError("ImageSource needs at least one image")

        self._images = images
        self._pos = 0
        self._frame_index = 0
        self._is_open = True
        logger.info(f"ImageSource opened: source_id={self.source_id}, images={len(images)}")

    def get_frame(self) -> Optional[FrameData]:
        if not self._is_open:
            return None
        if self._pos >= len(self._images):
            if not self._image_config.loop:
                return None
            self._pos = 0

        image = self._images[self._pos]
        self._pos += 1
        self._frame_index += 1
        return FrameData.from_numpy(
            image, timestamp=time.time(), frame_index=self._frame_index, source=self.source_id
        )

    def close(self) -> None:
        self._is_open = False
        self._images = []
