"""
Latency-adaptive scan interval.

A simple additive controller: slow cycles grow the delay before the next
cycle, fast cycles shrink it, always within [min, max]. A success pins the
interval at max for a hold period, after which it relaxes to the default.
"""

from __future__ import annotations

import logging
from typing import Optional

from models.config import IntervalConfig

logger = logging.getLogger(__name__)


def validate_interval_config(cfg: IntervalConfig) -> None:
    """Raise ValueError for inconsistent interval settings."""
    if cfg.min_ms <= 0:
        raise ValueError(f"min_ms must be positive, got {cfg.min_ms}")
    if not cfg.min_ms <= cfg.default_ms <= cfg.max_ms:
        raise ValueError(
            f"Expected min_ms <= default_ms <= max_ms, got "
            f"{cfg.min_ms} / {cfg.default_ms} / {cfg.max_ms}"
        )
    if cfg.increase_step_ms <= 0 or cfg.decrease_step_ms <= 0:
        raise ValueError("Interval steps must be positive")
    if cfg.fast_threshold_ms > cfg.slow_threshold_ms:
        raise ValueError("fast_threshold_ms must not exceed slow_threshold_ms")


class IntervalController:
    """
    Example:
        ctrl = IntervalController(IntervalConfig())
        ctrl.record_latency(cycle_ms, now)
        await sleep(ctrl.current(now))
    """

    def __init__(self, config: Optional[IntervalConfig] = None):
        self._config = config or IntervalConfig()
        validate_interval_config(self._config)
        self._interval = self._config.default_ms
        self._hold_until: Optional[float] = None

    @property
    def config(self) -> IntervalConfig:
        return self._config

    @property
    def interval_ms(self) -> int:
        """Interval as of the last update (hold expiry not applied)."""
        return self._interval

    @property
    def holding(self) -> bool:
        return self._hold_until is not None

    def _expire_hold(self, now: float) -> None:
        if self._hold_until is not None and now >= self._hold_until:
            self._hold_until = None
            self._interval = self._config.default_ms
            logger.debug(f"Success hold expired, interval back to {self._interval}ms")

    def current(self, now: float) -> int:
        self._expire_hold(now)
        return self._interval

    def record_latency(self, latency_ms: float, now: float) -> int:
        """
        Adjust the interval for one measured cycle.

        Ignored while a success hold is active.
        """
        self._expire_hold(now)
        if self._hold_until is not None:
            return self._interval

        cfg = self._config
        if latency_ms > cfg.slow_threshold_ms:
            self._interval = min(self._interval + cfg.increase_step_ms, cfg.max_ms)
        elif latency_ms < cfg.fast_threshold_ms:
            self._interval = max(self._interval - cfg.decrease_step_ms, cfg.min_ms)
        return self._interval

    def on_success(self, now: float) -> None:
        """Pin the interval at max for ``success_hold_ms``."""
        self._interval = self._config.max_ms
        self._hold_until = now + self._config.success_hold_ms

    def reset(self) -> None:
        self._interval = self._config.default_ms
        self._hold_until = None
