"""
Scan pipeline.

The orchestrator ties the per-cycle stages together:
- Frame acquisition from an observation source
- Decoding with a timeout
- Guide classification and cooldown-filtered aggregation
- Guide feedback state and adaptive scan interval
- Periodic cooldown cleanup (MemoryReaper)
"""

from .engine import CycleReport, ScanOrchestrator, create_orchestrator_from_config
from .guide_state import GuideStateMachine
from .interval import IntervalController, validate_interval_config
from .reaper import MemoryReaper
from .stages import AggregateOutcome, AggregateStage, ClassifiedDetections, ClassifyStage

__all__ = [
    "CycleReport",
    "ScanOrchestrator",
    "create_orchestrator_from_config",
    "GuideStateMachine",
    "IntervalController",
    "validate_interval_config",
    "MemoryReaper",
    "AggregateOutcome",
    "AggregateStage",
    "ClassifiedDetections",
    "ClassifyStage",
]
