"""
QR Scan Monitor: continuous, deduplicated barcode scanning over a live feed.

Builds the capture source, decoder, viewport and scan orchestrator from
config, then either serves the HTTP control API or scans headless.

Usage:
    python src/main.py --config config/config.yaml
    python src/main.py --config config/config.yaml --headless

Arguments:
    --config: Path to configuration file
    --headless: Scan immediately without the web API, log codes as they arrive
    --autostart: Start scanning as soon as the server is up
    --host / --port: Override web.host / web.port
"""

import os
import sys
import argparse
import asyncio
import logging
import yaml
import uvicorn
from typing import Dict, Any, Tuple, Optional

from algorithms.dedup import fingerprint
from models.config import Config, IntervalConfig
from ops.logging import setup_logging
from pipeline.engine import CycleReport, ScanOrchestrator, create_orchestrator_from_config
from pipeline.interval import validate_interval_config
from web.app import create_app

VALID_LOG_LEVELS = ['DEBUG', 'INFO', 'WARNING', 'ERROR', 'CRITICAL']


def _deep_merge(base: Dict[str, Any], override: Dict[str, Any]) -> Dict[str, Any]:
    """Recursively merge override into base and return base."""
    for k, v in (override or {}).items():
        if isinstance(v, dict) and isinstance(base.get(k), dict):
            _deep_merge(base[k], v)
        else:
            base[k] = v
    return base


def load_config(config_path: str) -> Dict[str, Any]:
    """
    Load configuration with layering:
    - `config/default.yaml` (checked in)
    - `config/config.yaml` (local overrides)
    - plus any explicitly provided `--config` path (treated as overrides)
    """
    try:
        base_path = os.path.join(os.path.dirname(config_path), "default.yaml")
        base_cfg: Dict[str, Any] = {}
        if os.path.exists(base_path):
            with open(base_path, "r") as f:
                base_cfg = yaml.safe_load(f) or {}

        local_overrides_path = os.path.join(os.path.dirname(config_path), "config.yaml")
        local_cfg: Dict[str, Any] = {}
        if os.path.exists(local_overrides_path):
            with open(local_overrides_path, "r") as f:
                local_cfg = yaml.safe_load(f) or {}

        merged = _deep_merge(base_cfg, local_cfg)

        # Finally apply explicit config_path if it's not the local override file itself
        if os.path.exists(config_path) and os.path.abspath(config_path) != os.path.abspath(local_overrides_path):
            with open(config_path, "r") as f:
                explicit_cfg = yaml.safe_load(f) or {}
            merged = _deep_merge(merged, explicit_cfg)

        return merged
    except (OSError, yaml.YAMLError) as e:
        logging.error(f"Failed to load configuration: {e}")
        sys.exit(1)


def _is_positive_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool) and value > 0


def _is_positive_int(value: Any) -> bool:
    return isinstance(value, int) and not isinstance(value, bool) and value > 0


def validate_config(config: Dict[str, Any]) -> Tuple[bool, Optional[str]]:
    """
    Validate configuration structure and values.

    Args:
        config: Configuration dictionary

    Returns:
        Tuple of (is_valid, error_message)
    """
    required_sections = ['camera', 'decoder', 'log_path', 'log_level']
    for section in required_sections:
        if section not in config:
            return False, f"Missing required configuration section: {section}"

    # Camera
    camera = config.get('camera') or {}
    backend = camera.get('backend', 'opencv')
    if backend not in ('opencv', 'images'):
        return False, "camera.backend must be one of: opencv, images"
    if backend == 'opencv':
        device_id = camera.get('device_id', 0)
        if not isinstance(device_id, (int, str)) or isinstance(device_id, bool):
            return False, "camera.device_id must be an integer (index) or string (URL/file)"
        if isinstance(device_id, int) and device_id < 0:
            return False, "camera.device_id integer must be non-negative"
    if backend == 'images':
        paths = camera.get('image_paths')
        if not isinstance(paths, list) or not paths:
            return False, "camera.image_paths must be a non-empty list when camera.backend is 'images'"
    if 'resolution' in camera:
        resolution = camera['resolution']
        if not isinstance(resolution, list) or len(resolution) != 2:
            return False, "camera.resolution must be a list of [width, height]"
        if not all(_is_positive_int(x) for x in resolution):
            return False, "camera.resolution values must be positive integers"
    if 'fps' in camera and not _is_positive_int(camera['fps']):
        return False, "camera.fps must be a positive integer"
    if camera.get('rotate', 0) not in (0, 90, 180, 270, None):
        return False, "camera.rotate must be one of: 0, 90, 180, 270"

    # Decoder
    decoder = config.get('decoder') or {}
    if decoder.get('backend', 'opencv') not in ('opencv', 'pyzbar'):
        return False, "decoder.backend must be one of: opencv, pyzbar"
    if 'max_symbols' in decoder and not _is_positive_int(decoder['max_symbols']):
        return False, "decoder.max_symbols must be a positive integer"

    # Cooldown / results
    cooldown = config.get('cooldown') or {}
    for key in ('window_ms', 'reaper_period_ms', 'ttl_ms'):
        if key in cooldown and not _is_positive_number(cooldown[key]):
            return False, f"cooldown.{key} must be a positive number"
    if 'capacity' in cooldown and not _is_positive_int(cooldown['capacity']):
        return False, "cooldown.capacity must be a positive integer"
    results = config.get('results') or {}
    if 'capacity' in results and not _is_positive_int(results['capacity']):
        return False, "results.capacity must be a positive integer"

    # Interval
    try:
        validate_interval_config(IntervalConfig.from_dict(config.get('interval') or {}))
    except (TypeError, ValueError) as e:
        return False, f"interval: {e}"

    # Guide
    guide = config.get('guide') or {}
    tolerance = guide.get('tolerance', 0.1)
    if not isinstance(tolerance, (int, float)) or tolerance < 0:
        return False, "guide.tolerance must be a non-negative number"
    coverage = guide.get('screen_coverage', 0.6)
    if not _is_positive_number(coverage) or coverage > 1:
        return False, "guide.screen_coverage must be in (0, 1]"
    ratio = guide.get('base_ratio', [252, 352])
    if not isinstance(ratio, list) or len(ratio) != 2 or not all(_is_positive_number(x) for x in ratio):
        return False, "guide.base_ratio must be a list of two positive numbers"
    min_width = guide.get('min_width', 200)
    max_width = guide.get('max_width', 400)
    if not _is_positive_number(min_width) or not _is_positive_number(max_width) or min_width > max_width:
        return False, "guide.min_width and guide.max_width must be positive with min_width <= max_width"
    viewport = guide.get('viewport')
    if viewport is not None:
        if not isinstance(viewport, list) or len(viewport) != 2 or not all(_is_positive_int(x) for x in viewport):
            return False, "guide.viewport must be a list of two positive integers"

    # Scan loop
    scan = config.get('scan') or {}
    if 'decode_timeout_ms' in scan and not _is_positive_number(scan['decode_timeout_ms']):
        return False, "scan.decode_timeout_ms must be a positive number"
    start_delay = scan.get('start_delay_ms', 500)
    if not isinstance(start_delay, (int, float)) or start_delay < 0:
        return False, "scan.start_delay_ms must be a non-negative number"
    frame_scale = scan.get('frame_scale', 0.6)
    if not _is_positive_number(frame_scale) or frame_scale > 1:
        return False, "scan.frame_scale must be in (0, 1]"

    # Logging
    if config['log_level'] not in VALID_LOG_LEVELS:
        return False, f"log_level must be one of: {', '.join(VALID_LOG_LEVELS)}"

    return True, None


def log_accepted_codes(orchestrator: ScanOrchestrator):
    """Build a cycle callback that logs every accepted code with its running count."""

    def _callback(report: CycleReport) -> None:
        if report.outcome is None:
            return
        for text in report.outcome.accepted:
            result = orchestrator.aggregator.get(fingerprint(text))
            if result is not None:
                logging.info(f"Scanned: {text!r} (seen {result.count}x)")

    return _callback


async def run_headless(orchestrator: ScanOrchestrator) -> None:
    """Open, scan until cancelled (Ctrl-C), then close."""
    await orchestrator.open()
    try:
        orchestrator.start()
        await orchestrator.wait_stopped()
    finally:
        await orchestrator.close()
        snapshot = orchestrator.snapshot()
        logging.info(f"Unique codes scanned: {snapshot.unique_count}")
        for result in snapshot.results:
            logging.info(f"  {result.text!r}: {result.count}")


def main():
    """Main application function."""
    parser = argparse.ArgumentParser(description='QR Scan Monitor')
    parser.add_argument('--config', type=str, default='config/config.yaml',
                        help='Path to configuration file')
    parser.add_argument('--headless', action='store_true',
                        help='Scan immediately without the web API')
    parser.add_argument('--autostart', action='store_true',
                        help='Start scanning as soon as the server is up')
    parser.add_argument('--host', type=str, default=None,
                        help='Override web.host')
    parser.add_argument('--port', type=int, default=None,
                        help='Override web.port')
    args = parser.parse_args()

    # Load configuration
    raw_config = load_config(args.config)

    # Validate configuration
    is_valid, error_msg = validate_config(raw_config)
    if not is_valid:
        logging.error(f"Configuration validation failed: {error_msg}")
        sys.exit(1)

    config = Config.from_dict(raw_config)
    if args.host:
        config.web.host = args.host
    if args.port:
        config.web.port = args.port

    # Setup logging
    setup_logging(config.log_path, config.log_level)
    logging.info("Starting QR Scan Monitor")

    orchestrator = create_orchestrator_from_config(config)
    orchestrator.add_callback(log_accepted_codes(orchestrator))

    try:
        if args.headless:
            asyncio.run(run_headless(orchestrator))
        else:
            app = create_app(orchestrator, autostart=args.autostart)
            logging.info(f"Web interface starting on {config.web.host}:{config.web.port}")
            uvicorn.run(app, host=config.web.host, port=config.web.port, log_level="info")
    except KeyboardInterrupt:
        logging.info("Interrupted by user")
    except RuntimeError as e:
        logging.error(f"Scanner failed: {e}")
        sys.exit(1)
    finally:
        logging.info("QR Scan Monitor stopped")


if __name__ == "__main__":
    main()
