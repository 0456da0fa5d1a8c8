"""
Aggregate stage: feed classified detections to the result aggregator.

In-guide detections are always submitted. Off-guide detections are only
considered in cycles with no in-guide detection at all, and then only once
``off_guide_cooldown_ms`` has passed since the last in-guide acceptance, so
codes the user is not aiming at do not crowd out the one being presented.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import List, Optional

from algorithms.dedup.aggregator import ResultAggregator
from .classify import ClassifiedDetections

logger = logging.getLogger(__name__)


@dataclass
class AggregateOutcome:
    """
    Attributes:
        accepted_inside: Texts accepted from inside the guide.
        accepted_outside: Texts accepted from outside the guide.
        suppressed: Detections rejected by the per-code cooldown.
        deferred: Off-guide detections skipped by the off-guide cooldown.
    """
    accepted_inside: List[str] = field(default_factory=list)
    accepted_outside: List[str] = field(default_factory=list)
    suppressed: int = 0
    deferred: int = 0

    @property
    def in_guide_success(self) -> bool:
        return bool(self.accepted_inside)

    @property
    def accepted(self) -> List[str]:
        return self.accepted_inside + self.accepted_outside


class AggregateStage:
    def __init__(self, aggregator: ResultAggregator, off_guide_cooldown_ms: float = 1000):
        self._aggregator = aggregator
        self._off_guide_cooldown_ms = off_guide_cooldown_ms
        self._last_in_guide_accept_at: Optional[float] = None

    @property
    def last_in_guide_accept_at(self) -> Optional[float]:
        return self._last_in_guide_accept_at

    def off_guide_allowed(self, now: float) -> bool:
        last = self._last_in_guide_accept_at
        return last is None or now - last >= self._off_guide_cooldown_ms

    def process(self, classified: ClassifiedDetections, now: float) -> AggregateOutcome:
        outcome = AggregateOutcome()

        for detection in classified.inside:
            if self._aggregator.add_detection(detection.text, now):
                outcome.accepted_inside.append(detection.text)
            else:
                outcome.suppressed += 1
        if outcome.accepted_inside:
            self._last_in_guide_accept_at = now

        if classified.outside:
            if not classified.inside and self.off_guide_allowed(now):
                for detection in classified.outside:
                    if self._aggregator.add_detection(detection.text, now):
                        outcome.accepted_outside.append(detection.text)
                    else:
                        outcome.suppressed += 1
            else:
                outcome.deferred += len(classified.outside)
                logger.debug(f"Deferred {len(classified.outside)} off-guide detection(s)")

        return outcome

    def reset(self) -> None:
        self._last_in_guide_accept_at = None
