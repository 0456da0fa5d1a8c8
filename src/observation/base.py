"""
ObservationSource interface for pluggable frame providers.

The scan loop only ever asks for "the latest frame, if any": sources must
answer immediately and never block on the camera.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any, Dict, Optional

from models.frame import FrameData


@dataclass
class ObservationConfig:
    """
    Base configuration for observation sources.

    Attributes:
        source_id: Identifier for this source (e.g., "main-camera").
        resolution: Target resolution as (width, height). None = source default.
        fps: Target frames per second. None = source default.
        metadata: Additional source-specific configuration.
    """
    source_id: str = "default"
    resolution: Optional[tuple[int, int]] = None
    fps: Optional[int] = None
    metadata: Dict[str, Any] = field(default_factory=dict)


class ObservationSource(ABC):
    """
    Abstract base class for capture providers.

    Lifecycle:
        1. Create instance with config
        2. Call open() to start acquisition
        3. Call get_frame() whenever a frame is wanted
        4. Call close() to release resources

    Can also be used as a context manager.
    """

    def __init__(self, config: ObservationConfig):
        self._config = config
        self._is_open = False
        self._frame_index = 0

    @property
    def source_id(self) -> str:
        return self._config.source_id

    @property
    def is_open(self) -> bool:
        return self._is_open

    @property
    def frame_index(self) -> int:
        """Number of frames acquired since open."""
        return self._frame_index

    @abstractmethod
    def open(self) -> None:
        """
        Start acquisition.

        Raises:
            RuntimeError: If the source cannot be opened.
        """

    @abstractmethod
    def get_frame(self) -> Optional[FrameData]:
        """
        Return the most recent frame without blocking.

        Returns:
            None when no frame is ready (not opened yet, camera warming up,
            stream interrupted).
        """

    @abstractmethod
    def close(self) -> None:
        """Release resources. Safe to call multiple times."""

    def __enter__(self) -> "ObservationSource":
        self.open()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.close()
