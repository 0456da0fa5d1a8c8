"""
Scan orchestrator: the cooperative loop that drives one cycle at a time.

    frame -> decode (with timeout) -> classify -> aggregate
          -> guide state -> interval -> sleep -> next cycle

Everything runs on one asyncio event loop. The decode call is the only
suspension point inside a cycle, so aggregation steps of two cycles never
interleave and the aggregator/cooldown tables need no locking. Control
calls (start/stop/reset) must come from the same loop.
"""

from __future__ import annotations

import asyncio
import logging
import time
from dataclasses import dataclass, field, replace
from typing import Callable, List, Optional, Tuple

from algorithms.dedup import CooldownFilter, ResultAggregator
from algorithms.spatial import crop_box_for_guide, guide_region_from_config
from decoding import Decoder, DecodeOptions, create_decoder
from models.config import Config
from models.detection import RawDetection
from models.frame import sample_frame
from models.guide import GuideRegion
from models.scan_state import ScanMode, ScanSnapshot, ScanState, ScanStats
from observation import MutableViewport, ObservationSource, create_source_from_config
from observation.viewport import ContainerSize, ViewportProvider
from .guide_state import GuideStateMachine
from .interval import IntervalController
from .reaper import MemoryReaper, wall_clock_ms
from .stages import AggregateOutcome, AggregateStage, ClassifyStage

logger = logging.getLogger(__name__)


@dataclass
class CycleReport:
    """
    Outcome of one cycle, handed to registered callbacks.

    Attributes:
        frame_index: Index of the processed frame.
        detections: Raw detections returned by the decoder.
        outcome: Aggregation result (None if nothing was aggregated).
        latency_ms: Frame read to end of aggregation.
        timed_out: The decode call exceeded its budget.
        error: Decoder failure message, if any.
    """
    frame_index: int
    detections: List[RawDetection] = field(default_factory=list)
    outcome: Optional[AggregateOutcome] = None
    latency_ms: float = 0.0
    timed_out: bool = False
    error: Optional[str] = None


class ScanOrchestrator:
    """
    Owns the dedup state and runs the scan loop.

    Example:
        orchestrator = ScanOrchestrator(source, decoder, viewport, config)
        await orchestrator.open()
        orchestrator.start()
        ...
        orchestrator.stop()
        await orchestrator.close()
    """

    def __init__(
        self,
        source: ObservationSource,
        decoder: Decoder,
        viewport: Optional[ViewportProvider],
        config: Optional[Config] = None,
        clock: Callable[[], float] = wall_clock_ms,
        perf_clock: Callable[[], float] = time.perf_counter,
    ):
        self.source = source
        self.decoder = decoder
        self.viewport = viewport
        self.config = config or Config()
        self._clock = clock
        self._perf_clock = perf_clock

        cfg = self.config
        self.cooldown = CooldownFilter(
            cfg.cooldown.window_ms, cfg.cooldown.capacity, ttl_ms=cfg.cooldown.ttl_ms
        )
        self.aggregator = ResultAggregator(self.cooldown, cfg.results.capacity)
        self.guide = GuideStateMachine(cfg.guide.success_display_ms, cfg.guide.error_display_ms)
        self.interval = IntervalController(cfg.interval)
        self.reaper = MemoryReaper(
            self.cooldown, cfg.cooldown.reaper_period_ms, cfg.cooldown.ttl_ms, clock=clock
        )
        self._classify = ClassifyStage(cfg.guide.tolerance)
        self._aggregate = AggregateStage(self.aggregator, cfg.guide.off_guide_cooldown_ms)
        self._options = DecodeOptions.from_config(cfg.decoder)

        self.stats = ScanStats()
        self._mode = ScanMode.IDLE
        self._generation = 0
        self._task: Optional[asyncio.Task] = None
        self._wake: Optional[asyncio.Event] = None
        self._guide_cache: Tuple[Optional[ContainerSize], Optional[GuideRegion]] = (None, None)
        self._callbacks: List[Callable[[CycleReport], None]] = []
        self._perf_window_start: Optional[float] = None
        self._perf_window_cycles = 0

    @property
    def mode(self) -> ScanMode:
        return self._mode

    @property
    def is_scanning(self) -> bool:
        return self._mode == ScanMode.SCANNING

    def add_callback(self, callback: Callable[[CycleReport], None]) -> None:
        """Register a function called with a CycleReport after each decoded cycle."""
        self._callbacks.append(callback)

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    async def open(self) -> None:
        """
        Start the memory reaper and open the capture source.

        Raises:
            RuntimeError: If the source cannot be opened. The reaper keeps
                running until close().
        """
        self.reaper.start()
        await asyncio.to_thread(self.source.open)
        logger.info(f"Scanner ready: source={self.source.source_id}")

    async def close(self) -> None:
        self.stop()
        await self.wait_stopped()
        await self.reaper.stop()
        await asyncio.to_thread(self.source.close)
        logger.info("Scanner closed")

    def start(self) -> None:
        """Begin scanning. Must be called from inside the running event loop."""
        if self._mode == ScanMode.SCANNING:
            return
        loop = asyncio.get_running_loop()
        self._generation += 1
        self._mode = ScanMode.SCANNING
        self._wake = asyncio.Event()
        self.guide.on_start()
        self._task = loop.create_task(self.run(self._generation))
        logger.info("Scan started")

    def stop(self) -> None:
        """
        Stop scanning.

        An in-flight decode is not aborted; its result is discarded.
        """
        if self._mode != ScanMode.SCANNING:
            return
        self._mode = ScanMode.STOPPED
        self.guide.on_stop()
        if self._wake is not None:
            self._wake.set()
        logger.info(f"Scan stopped (unique codes: {len(self.aggregator)})")

    async def wait_stopped(self) -> None:
        """Wait for the loop task to finish after stop()."""
        task = self._task
        if task is not None and not task.done():
            await task
        self._task = None

    def reset(self) -> None:
        """Clear results, the cooldown table and the off-guide gate."""
        self.aggregator.reset()
        self._aggregate.reset()

    def snapshot(self) -> ScanSnapshot:
        now = self._clock()
        _, region = self._current_guide()
        return ScanSnapshot(
            results=self.aggregator.results(),
            state=ScanState(
                mode=self._mode,
                scan_interval_ms=self.interval.current(now),
                guide_state=self.guide.current(now),
            ),
            stats=replace(self.stats),
            guide_region=region,
        )

    # ------------------------------------------------------------------
    # Loop
    # ------------------------------------------------------------------

    def _is_current(self, generation: Optional[int]) -> bool:
        if self._mode != ScanMode.SCANNING:
            return False
        return generation is None or generation == self._generation

    async def _sleep(self, delay_ms: float, generation: Optional[int]) -> bool:
        """Sleep unless stopped meanwhile. Returns True if still scanning."""
        if not self._is_current(generation):
            return False
        wake = self._wake
        if wake is not None:
            try:
                await asyncio.wait_for(wake.wait(), timeout=delay_ms / 1000.0)
            except asyncio.TimeoutError:
                pass
        else:
            await asyncio.sleep(delay_ms / 1000.0)
        return self._is_current(generation)

    async def run(self, generation: Optional[int] = None) -> None:
        """Run cycles until stop(). Errors inside a cycle never end the loop."""
        if not await self._sleep(self.config.scan.start_delay_ms, generation):
            return
        self.guide.on_capture_started()
        logger.debug("Scan loop running")

        while self._is_current(generation):
            try:
                delay = await self.run_cycle(generation)
            except asyncio.CancelledError:
                raise
            except Exception:
                logger.exception("Unexpected error in scan cycle")
                now = self._clock()
                self.stats.decode_errors += 1
                self.guide.on_error(now)
                delay = self.interval.current(now)

            if not await self._sleep(delay, generation):
                break
        logger.debug("Scan loop exited")

    async def run_cycle(self, generation: Optional[int] = None) -> int:
        """
        Run one capture/decode/aggregate cycle.

        Returns:
            Delay in ms before the next cycle.
        """
        now = self._clock()
        self.guide.tick(now)

        frame_data = self.source.get_frame()
        if frame_data is None:
            self.stats.frames_skipped += 1
            return self.interval.current(now)

        started = self._perf_clock()
        container, region = self._current_guide()

        crop = None
        if self.config.guide.focus_guide_only and region is not None and container is not None:
            crop = crop_box_for_guide(region, frame_data.size, container)
            if crop[2] == 0 or crop[3] == 0:
                crop = None
        sample = sample_frame(frame_data, self.config.scan.frame_scale, crop)

        report = CycleReport(frame_index=frame_data.frame_index)
        detections: Optional[List[RawDetection]] = None
        timeout_s = self.config.scan.decode_timeout_ms / 1000.0
        try:
            detections = await asyncio.wait_for(
                self.decoder.decode(sample.image, self._options), timeout=timeout_s
            )
        except asyncio.TimeoutError:
            self.stats.decode_timeouts += 1
            report.timed_out = True
            logger.warning(
                f"Decode timed out after {self.config.scan.decode_timeout_ms}ms, retrying next cycle"
            )
        except asyncio.CancelledError:
            raise
        except Exception as e:
            self.stats.decode_errors += 1
            report.error = str(e)
            logger.error(f"Decode failed: {e}")

        if not self._is_current(generation):
            logger.debug("Scan stopped during decode, discarding result")
            return self.interval.current(self._clock())

        now = self._clock()
        if report.error is not None:
            self.guide.on_error(now)
        elif detections:
            report.detections = list(detections)
            classified = self._classify.process(report.detections, sample, container, region)
            outcome = self._aggregate.process(classified, now)
            report.outcome = outcome
            self.stats.detections_accepted += len(outcome.accepted)
            self.stats.detections_suppressed += outcome.suppressed
            self.stats.off_guide_deferred += outcome.deferred
            if outcome.in_guide_success:
                self.guide.on_success(now)
                self.interval.on_success(now)
            logger.debug(
                f"Scan result: in_guide={len(classified.inside)}, "
                f"out_guide={len(classified.outside)}, accepted={outcome.accepted}"
            )
        elif detections is not None:
            self.guide.on_no_detection(now)

        latency_ms = (self._perf_clock() - started) * 1000.0
        report.latency_ms = latency_ms
        self.stats.cycles += 1
        self.stats.last_latency_ms = latency_ms
        self.interval.record_latency(latency_ms, now)
        self._log_performance(now, latency_ms)

        for callback in self._callbacks:
            try:
                callback(report)
            except Exception as e:
                logger.warning(f"Callback error: {e}")

        return self.interval.current(now)

    def _current_guide(self) -> Tuple[Optional[ContainerSize], Optional[GuideRegion]]:
        """Container size and guide region, re-laid out only on size change."""
        if self.viewport is None:
            return None, None
        size = self.viewport.get_container_size()
        if not self.config.guide.enabled:
            return size, None
        if size is None:
            self._guide_cache = (None, None)
            return None, None

        cached_size, cached_region = self._guide_cache
        if size != cached_size:
            cached_region = guide_region_from_config(self.config.guide, size[0], size[1])
            self._guide_cache = (size, cached_region)
            logger.debug(f"Guide region recomputed for {size[0]}x{size[1]}: {cached_region}")
        return size, cached_region

    def _log_performance(self, now: float, latency_ms: float) -> None:
        if self._perf_window_start is None:
            self._perf_window_start = now
        self._perf_window_cycles += 1
        elapsed = now - self._perf_window_start
        if elapsed >= self.config.scan.stats_log_interval_ms:
            rate = self._perf_window_cycles * 1000.0 / elapsed
            logger.debug(
                f"Performance: cycles/s={rate:.1f}, latency={latency_ms:.2f}ms, "
                f"interval={self.interval.interval_ms}ms"
            )
            self._perf_window_start = now
            self._perf_window_cycles = 0


def create_orchestrator_from_config(
    config: Config,
    viewport: Optional[ViewportProvider] = None,
) -> ScanOrchestrator:
    """
    Factory wiring an orchestrator and its collaborators from typed config.

    Args:
        config: Full application config.
        viewport: Container size provider. Defaults to a MutableViewport
            seeded from ``guide.viewport`` so a client can report resizes.
    """
    source = create_source_from_config(config.camera.to_dict(), source_id="main-camera")
    decoder = create_decoder(config.decoder)
    if viewport is None:
        initial = tuple(config.guide.viewport) if config.guide.viewport else None
        viewport = MutableViewport(initial)
    return ScanOrchestrator(source, decoder, viewport, config)
