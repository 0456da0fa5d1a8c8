"""
Typed models for the QR scan monitor.

Plain dataclasses shared by the dedup, spatial and pipeline layers.
"""

from .frame import FrameData, FrameSample, sample_frame
from .detection import Point, Quad, RawDetection
from .result import UniqueResult
from .guide import GuideRegion
from .scan_state import GuideState, ScanMode, ScanSnapshot, ScanState, ScanStats
from .config import (
    Config,
    CameraConfig,
    DecoderConfig,
    CooldownConfig,
    ResultsConfig,
    IntervalConfig,
    GuideConfig,
    ScanConfig,
    WebConfig,
)

__all__ = [
    # Frame
    "FrameData",
    "FrameSample",
    "sample_frame",
    # Detection
    "Point",
    "Quad",
    "RawDetection",
    # Results
    "UniqueResult",
    # Guide
    "GuideRegion",
    # Scan state
    "GuideState",
    "ScanMode",
    "ScanSnapshot",
    "ScanState",
    "ScanStats",
    # Config
    "Config",
    "CameraConfig",
    "DecoderConfig",
    "CooldownConfig",
    "ResultsConfig",
    "IntervalConfig",
    "GuideConfig",
    "ScanConfig",
    "WebConfig",
]
