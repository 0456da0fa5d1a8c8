"""
Per-fingerprint cooldown table.

Suppresses re-processing of a code that stays in view across many
consecutive cycles while still allowing it to be counted again once the
window has elapsed (e.g., the card is removed and shown again).
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Dict, List, Optional

from .fingerprint import Fingerprint

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class CooldownEntry:
    """Last accepted time (ms) of a fingerprint."""
    fingerprint: Fingerprint
    last_suppressed_at: float


class CooldownFilter:
    """
    Bounded map of fingerprint -> last accepted timestamp.

    The table never holds more than ``capacity`` entries: inserting a new
    fingerprint into a full table first evicts the least recently refreshed
    entry. Evicted codes may be re-accepted before their window elapses.

    With ``ttl_ms`` set, every acceptance also purges entries not refreshed
    for more than ``ttl_ms``, so the table stays small between reaper sweeps.

    Example:
        cooldown = CooldownFilter(window_ms=3000)
        if cooldown.should_accept(fp, now):
            cooldown.record_accepted(fp, now)
    """

    def __init__(
        self,
        window_ms: float = 3000,
        capacity: int = 20,
        ttl_ms: Optional[float] = None,
    ):
        if window_ms <= 0:
            raise ValueError(f"window_ms must be positive, got {window_ms}")
        if capacity < 1:
            raise ValueError(f"capacity must be >= 1, got {capacity}")
        self._window_ms = window_ms
        self._capacity = capacity
        self._ttl_ms = ttl_ms
        self._entries: Dict[Fingerprint, float] = {}

    @property
    def window_ms(self) -> float:
        return self._window_ms

    @property
    def capacity(self) -> int:
        return self._capacity

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, fp: object) -> bool:
        return fp in self._entries

    def should_accept(self, fp: Fingerprint, now: float) -> bool:
        """Return False while ``fp`` is inside its cooldown window."""
        last = self._entries.get(fp)
        if last is not None and now - last < self._window_ms:
            return False
        return True

    def record_accepted(self, fp: Fingerprint, now: float) -> None:
        """Create or refresh the entry for ``fp``."""
        if self._ttl_ms is not None:
            purged = self.sweep(now, self._ttl_ms)
            if purged:
                logger.debug(f"Purged {purged} expired cooldown entries")
        if fp not in self._entries and len(self._entries) >= self._capacity:
            oldest = min(self._entries, key=self._entries.__getitem__)
            del self._entries[oldest]
            logger.debug(f"Cooldown table full ({self._capacity}), evicted {oldest}")
        self._entries[fp] = now

    def sweep(self, now: float, ttl_ms: float) -> int:
        """
        Remove entries not refreshed for more than ``ttl_ms``.

        Returns:
            Number of entries removed.
        """
        stale = [fp for fp, last in self._entries.items() if now - last > ttl_ms]
        for fp in stale:
            del self._entries[fp]
        return len(stale)

    def clear(self) -> None:
        self._entries.clear()

    def entries(self) -> List[CooldownEntry]:
        """Copy of the current table, oldest refresh first."""
        return [
            CooldownEntry(fingerprint=fp, last_suppressed_at=last)
            for fp, last in sorted(self._entries.items(), key=lambda kv: kv[1])
        ]
