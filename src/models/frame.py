"""
FrameData model for captured video frames and the samples cut from them.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional, Tuple

import cv2
import numpy as np


@dataclass
class FrameData:
    """
    A captured video frame.

    Attributes:
        frame: The raw frame data as a numpy array (BGR format).
        width: Frame width in pixels.
        height: Frame height in pixels.
        timestamp: Unix timestamp when the frame was captured.
        frame_index: Sequential frame number since the source was opened.
        source: Identifier for the camera/video source.
    """
    frame: np.ndarray
    width: int
    height: int
    timestamp: float
    frame_index: int = 0
    source: Optional[str] = None

    @classmethod
    def from_numpy(
        cls,
        frame: np.ndarray,
        timestamp: float,
        frame_index: int = 0,
        source: Optional[str] = None,
    ) -> "FrameData":
        """Create FrameData from a numpy array."""
        h, w = frame.shape[:2]
        return cls(
            frame=frame,
            width=w,
            height=h,
            timestamp=timestamp,
            frame_index=frame_index,
            source=source,
        )

    @property
    def size(self) -> Tuple[int, int]:
        """Return (width, height)."""
        return (self.width, self.height)


@dataclass
class FrameSample:
    """
    The image actually submitted to the decoder.

    ``scale`` maps frame pixels to sample pixels; ``offset`` is the crop
    origin in sample pixels, so a point p in crop space lies at
    ``p + offset`` in the full scaled sample.
    """
    image: np.ndarray
    scale: float
    offset: Tuple[int, int] = (0, 0)
    full_size: Tuple[int, int] = (0, 0)


def sample_frame(
    frame_data: FrameData,
    scale: float = 1.0,
    crop: Optional[Tuple[int, int, int, int]] = None,
) -> FrameSample:
    """
    Downscale a frame and optionally crop it for decoding.

    Args:
        frame_data: Captured frame.
        scale: Resize factor in (0, 1]; 1.0 keeps the native resolution.
        crop: Optional (x, y, w, h) box in native frame pixels.

    Returns:
        FrameSample whose ``full_size`` is the scaled (width, height) of the
        whole frame, the space detections are mapped back into.
    """
    image = frame_data.frame
    full_w, full_h = frame_data.width, frame_data.height
    if scale != 1.0:
        full_w = max(1, int(frame_data.width * scale))
        full_h = max(1, int(frame_data.height * scale))
        image = cv2.resize(image, (full_w, full_h), interpolation=cv2.INTER_AREA)

    offset = (0, 0)
    if crop is not None:
        x, y, w, h = (int(v * scale) for v in crop)
        x = min(max(x, 0), full_w - 1)
        y = min(max(y, 0), full_h - 1)
        w = max(1, min(w, full_w - x))
        h = max(1, min(h, full_h - y))
        image = image[y:y + h, x:x + w]
        offset = (x, y)

    return FrameSample(image=image, scale=scale, offset=offset, full_size=(full_w, full_h))
