"""
OpenCV-based observation source.

Supports USB webcams (device_id as int), network streams (URL) and video
files (path). A background thread keeps reading from ``cv2.VideoCapture``
and only the latest frame is retained, so ``get_frame()`` never blocks.
"""

from __future__ import annotations

import logging
import os
import threading
import time
from dataclasses import dataclass
from typing import Any, Dict, Optional, Union

import cv2
import numpy as np

from models.frame import FrameData
from .base import ObservationSource, ObservationConfig

logger = logging.getLogger(__name__)


@dataclass
class OpenCVSourceConfig(ObservationConfig):
    """
    Attributes:
        device_id: Camera index (int), stream URL or file path (str).
        buffer_size: OpenCV capture buffer size (1 keeps latency low).
        max_retries: Attempts when opening the device.
        max_read_failures: Consecutive read failures before reconnecting.
        rotate: Rotation in degrees (0, 90, 180, 270).
        flip_horizontal: Flip frame horizontally.
        flip_vertical: Flip frame vertically.
    """
    device_id: Union[int, str] = 0
    buffer_size: int = 1
    max_retries: int = 3
    max_read_failures: int = 3
    rotate: int = 0
    flip_horizontal: bool = False
    flip_vertical: bool = False

    @classmethod
    def from_camera_config(cls, camera_cfg: Dict[str, Any], source_id: str = "camera") -> "OpenCVSourceConfig":
        """Adapter: Create from the ``camera`` section of config.yaml."""
        resolution = camera_cfg.get("resolution")
        if resolution:
            resolution = tuple(resolution)

        return cls(
            source_id=source_id,
            resolution=resolution,
            fps=camera_cfg.get("fps"),
            device_id=camera_cfg.get("device_id", 0),
            buffer_size=camera_cfg.get("buffer_size", 1),
            max_retries=camera_cfg.get("max_retries", 3),
            max_read_failures=camera_cfg.get("max_read_failures", 3),
            rotate=camera_cfg.get("rotate", 0) or 0,
            flip_horizontal=camera_cfg.get("flip_horizontal", False),
            flip_vertical=camera_cfg.get("flip_vertical", False),
        )


def apply_transforms(frame: np.ndarray, rotate: int = 0, flip_horizontal: bool = False,
                     flip_vertical: bool = False) -> np.ndarray:
    """Apply rotation then flip."""
    if rotate == 90:
        frame = cv2.rotate(frame, cv2.ROTATE_90_CLOCKWISE)
    elif rotate == 180:
        frame = cv2.rotate(frame, cv2.ROTATE_180)
    elif rotate == 270:
        frame = cv2.rotate(frame, cv2.ROTATE_90_COUNTERCLOCKWISE)

    if flip_horizontal and flip_vertical:
        frame = cv2.flip(frame, -1)
    elif flip_horizontal:
        frame = cv2.flip(frame, 1)
    elif flip_vertical:
        frame = cv2.flip(frame, 0)
    return frame


class OpenCVSource(ObservationSource):
    """
    Example:
        with OpenCVSource(OpenCVSourceConfig(device_id=0)) as source:
            frame_data = source.get_frame()
    """

    def __init__(self, config: OpenCVSourceConfig):
        super().__init__(config)
        self._opencv_config = config
        self._cap: Optional[cv2.VideoCapture] = None
        self._latest: Optional[FrameData] = None
        self._frame_lock = threading.Lock()
        self._stop_event = threading.Event()
        self._thread: Optional[threading.Thread] = None

    @property
    def device_id(self) -> Union[int, str]:
        return self._opencv_config.device_id

    @property
    def is_file(self) -> bool:
        return isinstance(self.device_id, str) and os.path.exists(self.device_id)

    def open(self) -> None:
        if self._is_open:
            return

        self._initialize(retry_count=0)
        self._is_open = True
        self._frame_index = 0
        self._stop_event.clear()
        self._thread = threading.Thread(
            target=self._grab_loop, name=f"grab-{self.source_id}", daemon=True
        )
        self._thread.start()
        logger.info(
            f"OpenCVSource opened: source_id={self.source_id}, "
            f"device={self.device_id}, resolution={self._opencv_config.resolution}"
        )

    def _initialize(self, retry_count: int = 0) -> None:
        """Open (or reopen) the capture device, with exponential backoff."""
        if self._cap is not None:
            self._cap.release()
            self._cap = None

        if retry_count > 0:
            wait_time = min(2 ** retry_count, 10)
            logger.info(
                f"Retrying initialization (attempt {retry_count + 1}/"
                f"{self._opencv_config.max_retries}) after {wait_time}s"
            )
            time.sleep(wait_time)

        self._cap = cv2.VideoCapture(self.device_id)

        if not self._cap.isOpened():
            if retry_count < self._opencv_config.max_retries - 1:
                logger.warning(f"Failed to open device {self.device_id}, retrying...")
                return self._initialize(retry_count + 1)
            raise RuntimeError(
                f"Failed to open device {self.device_id} after "
                f"{self._opencv_config.max_retries} attempts"
            )

        if isinstance(self.device_id, int) and self._opencv_config.resolution:
            w, h = self._opencv_config.resolution
            self._cap.set(cv2.CAP_PROP_FRAME_WIDTH, w)
            self._cap.set(cv2.CAP_PROP_FRAME_HEIGHT, h)
            if self._opencv_config.fps:
                self._cap.set(cv2.CAP_PROP_FPS, self._opencv_config.fps)
            self._cap.set(cv2.CAP_PROP_BUFFERSIZE, self._opencv_config.buffer_size)

            actual_w = self._cap.get(cv2.CAP_PROP_FRAME_WIDTH)
            actual_h = self._cap.get(cv2.CAP_PROP_FRAME_HEIGHT)
            logger.info(f"Camera actual resolution: ({actual_w}x{actual_h})")

    def _grab_loop(self) -> None:
        """Read continuously and keep only the latest frame."""
        failures = 0
        file_delay = 1.0 / (self._opencv_config.fps or 30)

        while not self._stop_event.is_set():
            cap = self._cap
            ok, frame = cap.read() if cap is not None else (False, None)

            if not ok or frame is None:
                if self.is_file:
                    logger.info("End of video file reached")
                    break
                failures += 1
                if failures >= self._opencv_config.max_read_failures:
                    logger.warning(f"Failed to read frame ({failures} in a row), reconnecting")
                    with self._frame_lock:
                        self._latest = None
                    try:
                        self._initialize()
                        failures = 0
                    except RuntimeError as e:
                        logger.error(f"Reconnect failed: {e}")
                        self._stop_event.wait(1.0)
                else:
                    self._stop_event.wait(0.05)
                continue

            failures = 0
            frame = apply_transforms(
                frame,
                rotate=self._opencv_config.rotate,
                flip_horizontal=self._opencv_config.flip_horizontal,
                flip_vertical=self._opencv_config.flip_vertical,
            )
            with self._frame_lock:
                self._frame_index += 1
                self._latest = FrameData.from_numpy(
                    frame, timestamp=time.time(), frame_index=self._frame_index, source=self.source_id
                )

            # Files play back at their nominal rate rather than as fast as possible.
            if self.is_file:
                self._stop_event.wait(file_delay)

    def get_frame(self) -> Optional[FrameData]:
        with self._frame_lock:
            return self._latest

    def close(self) -> None:
        self._stop_event.set()
        if self._thread is not None:
            self._thread.join(timeout=2.0)
            self._thread = None
        if self._cap is not None:
            self._cap.release()
            self._cap = None
        with self._frame_lock:
            self._latest = None
        if self._is_open:
            logger.info(f"OpenCVSource closed: source_id={self.source_id}")
        self._is_open = False
