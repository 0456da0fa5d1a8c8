"""
Bounded, deduplicated collection of codes seen so far.
"""

from __future__ import annotations

import logging
from dataclasses import replace
from typing import Dict, List, Optional, Tuple

from models.result import UniqueResult
from .cooldown import CooldownFilter
from .fingerprint import Fingerprint, fingerprint

logger = logging.getLogger(__name__)


class ResultAggregator:
    """
    Maintains one UniqueResult per fingerprint with counts and timestamps.

    Every detection passes through the cooldown filter first; only accepted
    detections create or bump a result. When the collection grows past
    ``capacity`` the entry with the oldest ``last_seen`` is evicted.

    All methods are synchronous and expected to be called from a single
    writer (the scan loop or an event-loop handler), so a reset can never
    interleave with a half-applied add.
    """

    def __init__(self, cooldown: CooldownFilter, capacity: int = 50):
        if capacity < 1:
            raise ValueError(f"capacity must be >= 1, got {capacity}")
        self._cooldown = cooldown
        self._capacity = capacity
        self._results: Dict[Fingerprint, UniqueResult] = {}
        # Mutation order, breaks last_seen ties.
        self._order: Dict[Fingerprint, int] = {}
        self._seq = 0

    @property
    def capacity(self) -> int:
        return self._capacity

    @property
    def cooldown(self) -> CooldownFilter:
        return self._cooldown

    def __len__(self) -> int:
        return len(self._results)

    def __contains__(self, fp: object) -> bool:
        return fp in self._results

    def add_detection(self, text: str, now: float) -> bool:
        """
        Record one detection of ``text`` at ``now`` (ms).

        Returns:
            True if a result was created or bumped, False if the detection
            was suppressed by the cooldown.
        """
        fp = fingerprint(text)
        if not self._cooldown.should_accept(fp, now):
            logger.debug(f"Suppressed {fp} (cooldown)")
            return False

        self._cooldown.record_accepted(fp, now)

        existing = self._results.get(fp)
        if existing is None:
            self._results[fp] = UniqueResult(
                id=fp, text=text, first_seen=now, last_seen=now, count=1
            )
            logger.info(f"New code: {text!r} (unique={len(self._results)})")
        else:
            existing.last_seen = now
            existing.count += 1
            logger.debug(f"Seen again: {text!r} (count={existing.count})")

        self._seq += 1
        self._order[fp] = self._seq

        if len(self._results) > self._capacity:
            self._evict_oldest()
        return True

    def _sort_key(self, fp: Fingerprint) -> Tuple[float, int]:
        return (self._results[fp].last_seen, self._order[fp])

    def _evict_oldest(self) -> None:
        oldest = min(self._results, key=self._sort_key)
        evicted = self._results.pop(oldest)
        del self._order[oldest]
        logger.debug(
            f"Result capacity ({self._capacity}) exceeded, evicted {evicted.text!r}"
        )

    def reset(self) -> None:
        """Clear unique results and the cooldown table together."""
        self._results.clear()
        self._order.clear()
        self._cooldown.clear()
        logger.info("Results and cooldown table reset")

    def get(self, fp: Fingerprint) -> Optional[UniqueResult]:
        result = self._results.get(fp)
        return replace(result) if result is not None else None

    def results(self) -> List[UniqueResult]:
        """Copies of all results, most recently seen first."""
        ordered = sorted(self._results, key=self._sort_key, reverse=True)
        return [replace(self._results[fp]) for fp in ordered]
