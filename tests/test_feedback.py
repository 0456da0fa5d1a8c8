"""
Tests for the guide state machine, the interval controller and the memory reaper.
"""

import asyncio

import pytest

from algorithms.dedup import CooldownFilter
from models.config import IntervalConfig
from models.scan_state import GuideState
from pipeline.guide_state import GuideStateMachine
from pipeline.interval import IntervalController, validate_interval_config
from pipeline.reaper import MemoryReaper


class TestGuideStateMachine:
    """Tests for GuideStateMachine transitions."""

    def _scanning(self):
        machine = GuideStateMachine(success_display_ms=300, error_display_ms=1000)
        machine.on_start()
        machine.on_capture_started()
        return machine

    def test_initial_waiting(self):
        assert GuideStateMachine().current(0) == GuideState.WAITING

    def test_capture_started_enters_scanning(self):
        assert self._scanning().current(0) == GuideState.SCANNING

    def test_success_reverts_after_display_time(self):
        machine = self._scanning()
        machine.on_success(1000)

        assert machine.current(1299) == GuideState.SUCCESS
        assert machine.current(1300) == GuideState.SCANNING

    def test_error_reverts_after_display_time(self):
        machine = self._scanning()
        machine.on_error(1000)

        assert machine.current(1999) == GuideState.ERROR
        assert machine.current(2000) == GuideState.SCANNING

    def test_new_success_extends_deadline(self):
        machine = self._scanning()
        machine.on_success(1000)
        machine.on_success(1200)

        assert machine.current(1400) == GuideState.SUCCESS
        assert machine.revert_at == 1500

    def test_error_replaces_success(self):
        machine = self._scanning()
        machine.on_success(1000)
        machine.on_error(1100)

        assert machine.current(1400) == GuideState.ERROR

    def test_no_detection_drops_success(self):
        machine = self._scanning()
        machine.on_success(1000)
        machine.on_no_detection(1100)

        assert machine.current(1100) == GuideState.SCANNING
        assert machine.revert_at is None

    def test_no_detection_keeps_error(self):
        machine = self._scanning()
        machine.on_error(1000)
        machine.on_no_detection(1100)

        assert machine.current(1100) == GuideState.ERROR

    def test_stop_returns_to_waiting(self):
        machine = self._scanning()
        machine.on_success(1000)
        machine.on_stop()

        assert machine.current(1000) == GuideState.WAITING
        assert machine.current(5000) == GuideState.WAITING

    def test_outcomes_ignored_while_waiting(self):
        machine = GuideStateMachine()
        machine.on_start()
        machine.on_success(0)
        machine.on_error(0)

        assert machine.current(0) == GuideState.WAITING


class TestIntervalController:
    """Tests for IntervalController."""

    def test_starts_at_default(self):
        assert IntervalController().current(0) == 200

    def test_slow_cycle_increases(self):
        ctrl = IntervalController()

        assert ctrl.record_latency(150, 0) == 250

    def test_fast_cycle_decreases(self):
        ctrl = IntervalController()

        assert ctrl.record_latency(10, 0) == 175

    def test_mid_latency_unchanged(self):
        ctrl = IntervalController()

        assert ctrl.record_latency(75, 0) == 200
        assert ctrl.record_latency(100, 0) == 200
        assert ctrl.record_latency(50, 0) == 200

    def test_bounded_above(self):
        ctrl = IntervalController()
        for _ in range(20):
            ctrl.record_latency(1000, 0)

        assert ctrl.current(0) == 500

    def test_bounded_below(self):
        ctrl = IntervalController()
        for _ in range(20):
            ctrl.record_latency(1, 0)

        assert ctrl.current(0) == 100

    def test_success_pins_max_then_relaxes(self):
        ctrl = IntervalController()
        ctrl.record_latency(1, 0)
        ctrl.on_success(1000)

        assert ctrl.current(1000) == 500
        assert ctrl.holding is True
        assert ctrl.current(2999) == 500
        assert ctrl.current(3000) == 200
        assert ctrl.holding is False

    def test_latency_ignored_during_hold(self):
        ctrl = IntervalController()
        ctrl.on_success(0)

        assert ctrl.record_latency(1, 500) == 500

    def test_latency_applies_after_hold(self):
        ctrl = IntervalController()
        ctrl.on_success(0)

        assert ctrl.record_latency(1, 2000) == 175

    def test_reset(self):
        ctrl = IntervalController()
        ctrl.on_success(0)
        ctrl.reset()

        assert ctrl.current(0) == 200
        assert ctrl.holding is False

    @pytest.mark.parametrize("overrides", [
        {"min_ms": 0},
        {"default_ms": 50},
        {"default_ms": 600},
        {"increase_step_ms": 0},
        {"fast_threshold_ms": 200},
    ])
    def test_invalid_config(self, overrides):
        cfg = IntervalConfig(**overrides)
        with pytest.raises(ValueError):
            validate_interval_config(cfg)
        with pytest.raises(ValueError):
            IntervalController(cfg)


class FakeClock:
    def __init__(self, now=0.0):
        self.now = now

    def __call__(self):
        return self.now


class TestMemoryReaper:
    """Tests for MemoryReaper."""

    def test_sweep_removes_stale_entries(self):
        cooldown = CooldownFilter()
        cooldown.record_accepted("old", 0)
        cooldown.record_accepted("fresh", 9000)
        reaper = MemoryReaper(cooldown, period_ms=30000, ttl_ms=10000, clock=FakeClock(12000))

        removed = reaper.sweep()

        assert removed == 1
        assert "fresh" in cooldown
        assert reaper.sweeps == 1

    def test_sweep_with_explicit_time(self):
        cooldown = CooldownFilter()
        cooldown.record_accepted("a", 0)
        reaper = MemoryReaper(cooldown, ttl_ms=10000)

        assert reaper.sweep(now=5000) == 0
        assert reaper.sweep(now=10001) == 1

    def test_periodic_task(self):
        """The background task sweeps on its own timer and stops cleanly."""
        cooldown = CooldownFilter()
        cooldown.record_accepted("a", 0)
        reaper = MemoryReaper(cooldown, period_ms=10, ttl_ms=100, clock=FakeClock(1000))

        async def scenario():
            reaper.start()
            assert reaper.running
            await asyncio.sleep(0.1)
            await reaper.stop()

        asyncio.run(scenario())

        assert reaper.sweeps >= 1
        assert len(cooldown) == 0
        assert reaper.running is False

    def test_invalid_period(self):
        with pytest.raises(ValueError):
            MemoryReaper(CooldownFilter(), period_ms=0)
