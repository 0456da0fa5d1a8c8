"""
QR decoding with OpenCV's built-in QRCodeDetector.
"""

from __future__ import annotations

import asyncio
import logging
import threading
from typing import List, Optional

import cv2
import numpy as np

from models.detection import Quad, RawDetection
from .base import DecodeError, DecodeOptions

logger = logging.getLogger(__name__)

QR_FORMAT = "QRCode"


class OpenCVQRDecoder:
    """
    Multi-QR decoder backed by ``cv2.QRCodeDetector.detectAndDecodeMulti``.

    The blocking OpenCV call runs in a worker thread. A call abandoned by a
    timeout keeps running in its thread; the detector lock keeps a later
    call from using the detector concurrently.
    """

    def __init__(self) -> None:
        self._detector = cv2.QRCodeDetector()
        self._lock = threading.Lock()

    async def decode(self, image: np.ndarray, options: DecodeOptions) -> List[RawDetection]:
        if not options.accepts(QR_FORMAT):
            return []
        return await asyncio.to_thread(self.decode_sync, image, options)

    def decode_sync(self, image: np.ndarray, options: DecodeOptions) -> List[RawDetection]:
        if image is None or image.size == 0:
            return []

        detections = self._detect(image)
        if not detections and options.try_harder:
            detections = self._detect(self._binarize(image))
        return detections[: options.max_symbols]

    def _detect(self, image: np.ndarray) -> List[RawDetection]:
        try:
            with self._lock:
                ok, texts, points, _ = self._detector.detectAndDecodeMulti(image)
        except cv2.error as e:
            raise DecodeError(f"OpenCV QR decode failed: {e}") from e

        if not ok or points is None:
            return []

        out: List[RawDetection] = []
        for text, corners in zip(texts, points):
            # Located but undecodable symbols come back as empty strings.
            if not text:
                continue
            out.append(RawDetection(text=text, geometry=_quad_from_corners(corners), format=QR_FORMAT))
        return out

    @staticmethod
    def _binarize(image: np.ndarray) -> np.ndarray:
        gray = cv2.cvtColor(image, cv2.COLOR_BGR2GRAY) if image.ndim == 3 else image
        return cv2.adaptiveThreshold(
            gray, 255, cv2.ADAPTIVE_THRESH_GAUSSIAN_C, cv2.THRESH_BINARY, 31, 5
        )


def _quad_from_corners(corners: Optional[np.ndarray]) -> Optional[Quad]:
    """OpenCV reports corners as a (4, 2) array in TL, TR, BR, BL order."""
    if corners is None:
        return None
    pts = np.asarray(corners, dtype=float).reshape(-1, 2)
    if len(pts) != 4:
        return None
    return Quad.from_points(pts.tolist())
