"""
Typed configuration models matching the YAML config structure.

All durations are in milliseconds.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Union


@dataclass
class CameraConfig:
    """Camera (capture provider) configuration."""
    backend: str = "opencv"
    device_id: Union[int, str] = 0
    image_paths: List[str] = field(default_factory=list)
    resolution: List[int] = field(default_factory=lambda: [1280, 720])
    fps: int = 30
    rotate: int = 0
    flip_horizontal: bool = False
    flip_vertical: bool = False
    buffer_size: int = 1
    max_retries: int = 3
    max_read_failures: int = 3
    loop: bool = True

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> "CameraConfig":
        """Adapter: Create from config dictionary."""
        return cls(
            backend=d.get("backend", "opencv"),
            device_id=d.get("device_id", 0),
            image_paths=list(d.get("image_paths") or []),
            resolution=d.get("resolution", [1280, 720]),
            fps=d.get("fps", 30),
            rotate=d.get("rotate", 0) or 0,
            flip_horizontal=d.get("flip_horizontal", False),
            flip_vertical=d.get("flip_vertical", False),
            buffer_size=d.get("buffer_size", 1),
            max_retries=d.get("max_retries", 3),
            max_read_failures=d.get("max_read_failures", 3),
            loop=d.get("loop", True),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "backend": self.backend,
            "device_id": self.device_id,
            "image_paths": list(self.image_paths),
            "resolution": self.resolution,
            "fps": self.fps,
            "rotate": self.rotate,
            "flip_horizontal": self.flip_horizontal,
            "flip_vertical": self.flip_vertical,
            "buffer_size": self.buffer_size,
            "max_retries": self.max_retries,
            "max_read_failures": self.max_read_failures,
            "loop": self.loop,
        }


@dataclass
class DecoderConfig:
    """Decoding engine configuration."""
    backend: str = "opencv"
    max_symbols: int = 2
    try_harder: bool = False
    formats: List[str] = field(default_factory=lambda: ["QRCode"])

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> "DecoderConfig":
        return cls(
            backend=d.get("backend", "opencv"),
            max_symbols=d.get("max_symbols", 2),
            try_harder=d.get("try_harder", False),
            formats=list(d.get("formats") or ["QRCode"]),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "backend": self.backend,
            "max_symbols": self.max_symbols,
            "try_harder": self.try_harder,
            "formats": list(self.formats),
        }


@dataclass
class CooldownConfig:
    """Per-code cooldown table and its reaper."""
    window_ms: int = 3000
    capacity: int = 20
    reaper_period_ms: int = 30000
    ttl_ms: int = 10000

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> "CooldownConfig":
        return cls(
            window_ms=d.get("window_ms", 3000),
            capacity=d.get("capacity", 20),
            reaper_period_ms=d.get("reaper_period_ms", 30000),
            ttl_ms=d.get("ttl_ms", 10000),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "window_ms": self.window_ms,
            "capacity": self.capacity,
            "reaper_period_ms": self.reaper_period_ms,
            "ttl_ms": self.ttl_ms,
        }


@dataclass
class ResultsConfig:
    """Unique result collection."""
    capacity: int = 50

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> "ResultsConfig":
        return cls(capacity=d.get("capacity", 50))

    def to_dict(self) -> Dict[str, Any]:
        return {"capacity": self.capacity}


@dataclass
class IntervalConfig:
    """
    Adaptive scan interval.

    Attributes:
        default_ms: Interval at start and after a success hold expires.
        min_ms: Lower bound.
        max_ms: Upper bound; also the value forced after a success.
        slow_threshold_ms: Cycles slower than this grow the interval.
        fast_threshold_ms: Cycles faster than this shrink the interval.
        increase_step_ms: Growth per slow cycle.
        decrease_step_ms: Shrink per fast cycle.
        success_hold_ms: How long the interval stays at max after a success.
    """
    default_ms: int = 200
    min_ms: int = 100
    max_ms: int = 500
    slow_threshold_ms: float = 100.0
    fast_threshold_ms: float = 50.0
    increase_step_ms: int = 50
    decrease_step_ms: int = 25
    success_hold_ms: int = 2000

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> "IntervalConfig":
        return cls(
            default_ms=d.get("default_ms", 200),
            min_ms=d.get("min_ms", 100),
            max_ms=d.get("max_ms", 500),
            slow_threshold_ms=d.get("slow_threshold_ms", 100.0),
            fast_threshold_ms=d.get("fast_threshold_ms", 50.0),
            increase_step_ms=d.get("increase_step_ms", 50),
            decrease_step_ms=d.get("decrease_step_ms", 25),
            success_hold_ms=d.get("success_hold_ms", 2000),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "default_ms": self.default_ms,
            "min_ms": self.min_ms,
            "max_ms": self.max_ms,
            "slow_threshold_ms": self.slow_threshold_ms,
            "fast_threshold_ms": self.fast_threshold_ms,
            "increase_step_ms": self.increase_step_ms,
            "decrease_step_ms": self.decrease_step_ms,
            "success_hold_ms": self.success_hold_ms,
        }


@dataclass
class GuideConfig:
    """
    Guide overlay geometry and feedback timing.

    ``viewport`` is the initial display container size [width, height];
    None means the guide is not measured until a client reports its size.
    """
    enabled: bool = True
    tolerance: float = 0.1
    screen_coverage: float = 0.6
    base_ratio: List[float] = field(default_factory=lambda: [252.0, 352.0])
    min_width: float = 200.0
    max_width: float = 400.0
    success_display_ms: int = 300
    error_display_ms: int = 1000
    off_guide_cooldown_ms: int = 1000
    focus_guide_only: bool = False
    viewport: Optional[List[int]] = None

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> "GuideConfig":
        return cls(
            enabled=d.get("enabled", True),
            tolerance=d.get("tolerance", 0.1),
            screen_coverage=d.get("screen_coverage", 0.6),
            base_ratio=d.get("base_ratio", [252.0, 352.0]),
            min_width=d.get("min_width", 200.0),
            max_width=d.get("max_width", 400.0),
            success_display_ms=d.get("success_display_ms", 300),
            error_display_ms=d.get("error_display_ms", 1000),
            off_guide_cooldown_ms=d.get("off_guide_cooldown_ms", 1000),
            focus_guide_only=d.get("focus_guide_only", False),
            viewport=d.get("viewport"),
        )

    def to_dict(self) -> Dict[str, Any]:
        d = {
            "enabled": self.enabled,
            "tolerance": self.tolerance,
            "screen_coverage": self.screen_coverage,
            "base_ratio": self.base_ratio,
            "min_width": self.min_width,
            "max_width": self.max_width,
            "success_display_ms": self.success_display_ms,
            "error_display_ms": self.error_display_ms,
            "off_guide_cooldown_ms": self.off_guide_cooldown_ms,
            "focus_guide_only": self.focus_guide_only,
        }
        if self.viewport is not None:
            d["viewport"] = self.viewport
        return d


@dataclass
class ScanConfig:
    """Scan loop configuration."""
    decode_timeout_ms: int = 1000
    start_delay_ms: int = 500
    frame_scale: float = 0.6
    stats_log_interval_ms: int = 1000

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> "ScanConfig":
        return cls(
            decode_timeout_ms=d.get("decode_timeout_ms", 1000),
            start_delay_ms=d.get("start_delay_ms", 500),
            frame_scale=d.get("frame_scale", 0.6),
            stats_log_interval_ms=d.get("stats_log_interval_ms", 1000),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "decode_timeout_ms": self.decode_timeout_ms,
            "start_delay_ms": self.start_delay_ms,
            "frame_scale": self.frame_scale,
            "stats_log_interval_ms": self.stats_log_interval_ms,
        }


@dataclass
class WebConfig:
    """HTTP control surface."""
    host: str = "0.0.0.0"
    port: int = 5000

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> "WebConfig":
        return cls(host=d.get("host", "0.0.0.0"), port=d.get("port", 5000))

    def to_dict(self) -> Dict[str, Any]:
        return {"host": self.host, "port": self.port}


@dataclass
class Config:
    """
    Complete application configuration.

    This is a typed representation of the YAML config structure.
    """
    camera: CameraConfig = field(default_factory=CameraConfig)
    decoder: DecoderConfig = field(default_factory=DecoderConfig)
    cooldown: CooldownConfig = field(default_factory=CooldownConfig)
    results: ResultsConfig = field(default_factory=ResultsConfig)
    interval: IntervalConfig = field(default_factory=IntervalConfig)
    guide: GuideConfig = field(default_factory=GuideConfig)
    scan: ScanConfig = field(default_factory=ScanConfig)
    web: WebConfig = field(default_factory=WebConfig)
    log_path: str = "logs/qr_scanner.log"
    log_level: str = "INFO"

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> "Config":
        """Adapter: Create Config from raw dictionary (e.g., from load_config)."""
        return cls(
            camera=CameraConfig.from_dict(d.get("camera") or {}),
            decoder=DecoderConfig.from_dict(d.get("decoder") or {}),
            cooldown=CooldownConfig.from_dict(d.get("cooldown") or {}),
            results=ResultsConfig.from_dict(d.get("results") or {}),
            interval=IntervalConfig.from_dict(d.get("interval") or {}),
            guide=GuideConfig.from_dict(d.get("guide") or {}),
            scan=ScanConfig.from_dict(d.get("scan") or {}),
            web=WebConfig.from_dict(d.get("web") or {}),
            log_path=d.get("log_path", "logs/qr_scanner.log"),
            log_level=d.get("log_level", "INFO"),
        )

    def to_dict(self) -> Dict[str, Any]:
        """Convert back to dictionary (for saving or the config endpoint)."""
        return {
            "camera": self.camera.to_dict(),
            "decoder": self.decoder.to_dict(),
            "cooldown": self.cooldown.to_dict(),
            "results": self.results.to_dict(),
            "interval": self.interval.to_dict(),
            "guide": self.guide.to_dict(),
            "scan": self.scan.to_dict(),
            "web": self.web.to_dict(),
            "log_path": self.log_path,
            "log_level": self.log_level,
        }
