"""
Scan orchestration state models.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional

from .guide import GuideRegion
from .result import UniqueResult


class ScanMode(str, Enum):
    """Lifecycle mode of the scan loop."""
    IDLE = "idle"
    SCANNING = "scanning"
    STOPPED = "stopped"


class GuideState(str, Enum):
    """Visual feedback state of the guide overlay."""
    WAITING = "waiting"
    SCANNING = "scanning"
    SUCCESS = "success"
    ERROR = "error"


@dataclass
class ScanState:
    """
    Transient orchestration state.

    Attributes:
        mode: idle, scanning or stopped.
        scan_interval_ms: Delay before the next cycle.
        guide_state: Current guide feedback state.
    """
    mode: ScanMode = ScanMode.IDLE
    scan_interval_ms: int = 200
    guide_state: GuideState = GuideState.WAITING

    def to_dict(self) -> Dict[str, Any]:
        return {
            "mode": self.mode.value,
            "scan_interval_ms": self.scan_interval_ms,
            "guide_state": self.guide_state.value,
        }


@dataclass
class ScanStats:
    """Runtime counters for the scan loop."""
    cycles: int = 0
    frames_skipped: int = 0
    decode_timeouts: int = 0
    decode_errors: int = 0
    detections_accepted: int = 0
    detections_suppressed: int = 0
    off_guide_deferred: int = 0
    last_latency_ms: Optional[float] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "cycles": self.cycles,
            "frames_skipped": self.frames_skipped,
            "decode_timeouts": self.decode_timeouts,
            "decode_errors": self.decode_errors,
            "detections_accepted": self.detections_accepted,
            "detections_suppressed": self.detections_suppressed,
            "off_guide_deferred": self.off_guide_deferred,
            "last_latency_ms": self.last_latency_ms,
        }


@dataclass
class ScanSnapshot:
    """
    Read-only view handed to consumers.

    ``results`` is ordered by ``last_seen`` descending; its length is the
    number of distinct codes seen so far.
    """
    results: List[UniqueResult] = field(default_factory=list)
    state: ScanState = field(default_factory=ScanState)
    stats: ScanStats = field(default_factory=ScanStats)
    guide_region: Optional[GuideRegion] = None

    @property
    def unique_count(self) -> int:
        return len(self.results)
