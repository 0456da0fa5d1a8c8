"""
Per-cycle processing stages of the scan loop.

- classify: in-guide / off-guide split
- aggregate: cooldown-filtered aggregation with the off-guide gate
"""

from .classify import ClassifiedDetections, ClassifyStage
from .aggregate import AggregateOutcome, AggregateStage

__all__ = ["ClassifiedDetections", "ClassifyStage", "AggregateOutcome", "AggregateStage"]
