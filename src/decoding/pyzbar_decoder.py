"""
Barcode decoding with ZBar (via pyzbar).

Covers 1D symbologies as well as QR codes. Requires the zbar shared
library on the host.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Any, List, Optional

import numpy as np

from models.detection import Quad, RawDetection
from .base import DecodeError, DecodeOptions

logger = logging.getLogger(__name__)


class PyzbarDecoder:
    def __init__(self) -> None:
        try:
            from pyzbar import pyzbar  # type: ignore
        except ImportError as e:  # pragma: no cover
            raise ImportError(
                "pyzbar is not available. Install with `pip install pyzbar` and the "
                "zbar system library, or switch decoder.backend to 'opencv'."
            ) from e
        self._pyzbar = pyzbar

    async def decode(self, image: np.ndarray, options: DecodeOptions) -> List[RawDetection]:
        return await asyncio.to_thread(self.decode_sync, image, options)

    def decode_sync(self, image: np.ndarray, options: DecodeOptions) -> List[RawDetection]:
        if image is None or image.size == 0:
            return []
        try:
            symbols = self._pyzbar.decode(image)
        except Exception as e:
            raise DecodeError(f"ZBar decode failed: {e}") from e

        out: List[RawDetection] = []
        for symbol in symbols:
            detection = symbol_to_detection(symbol)
            if detection is None or not options.accepts(detection.format or ""):
                continue
            out.append(detection)
            if len(out) >= options.max_symbols:
                break
        return out


def symbol_to_detection(symbol: Any) -> Optional[RawDetection]:
    """
    Convert a pyzbar ``Decoded`` record.

    Uses the polygon when ZBar reports four corners, else the bounding rect.
    """
    try:
        text = symbol.data.decode("utf-8")
    except UnicodeDecodeError:
        logger.debug(f"Skipping non-UTF-8 {symbol.type} payload")
        return None

    polygon = list(getattr(symbol, "polygon", None) or [])
    if len(polygon) == 4:
        geometry = Quad.from_points([(p.x, p.y) for p in _clockwise(polygon)])
    else:
        rect = symbol.rect
        geometry = Quad.from_rect(rect.left, rect.top, rect.width, rect.height)
    return RawDetection(text=text, geometry=geometry, format=_format_name(symbol.type))


def _clockwise(points: List[Any]) -> List[Any]:
    """Order four points TL, TR, BR, BL."""
    by_sum = sorted(points, key=lambda p: p.x + p.y)
    by_diff = sorted(points, key=lambda p: p.x - p.y)
    return [by_sum[0], by_diff[-1], by_sum[-1], by_diff[0]]


def _format_name(zbar_type: str) -> str:
    return "QRCode" if zbar_type == "QRCODE" else zbar_type
