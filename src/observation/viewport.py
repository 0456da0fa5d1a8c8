"""
Viewport providers: report the size of the on-screen video container.

The guide region is laid out in container coordinates, so the scan loop
asks the viewport for the current size each cycle and re-lays out the
guide only when it changes.
"""

from __future__ import annotations

import logging
import threading
from typing import Optional, Protocol, Tuple

logger = logging.getLogger(__name__)

ContainerSize = Tuple[int, int]


class ViewportProvider(Protocol):
    def get_container_size(self) -> Optional[ContainerSize]:
        ...


class FixedViewport:
    """A container of constant size (e.g., a kiosk display)."""

    def __init__(self, width: int, height: int):
        if width <= 0 or height <= 0:
            raise ValueError(f"Viewport size must be positive, got {width}x{height}")
        self._size = (width, height)

    def get_container_size(self) -> Optional[ContainerSize]:
        return self._size


class MutableViewport:
    """
    Container size pushed by a client on resize/orientation change.

    Starts unmeasured unless an initial size is given.
    """

    def __init__(self, size: Optional[ContainerSize] = None):
        self._lock = threading.Lock()
        self._size = size

    def get_container_size(self) -> Optional[ContainerSize]:
        with self._lock:
            return self._size

    def update(self, width: int, height: int) -> None:
        if width <= 0 or height <= 0:
            raise ValueError(f"Viewport size must be positive, got {width}x{height}")
        with self._lock:
            changed = self._size != (width, height)
            self._size = (width, height)
        if changed:
            logger.info(f"Viewport resized to {width}x{height}")

    def clear(self) -> None:
        with self._lock:
            self._size = None
