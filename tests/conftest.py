"""
Pytest configuration and shared fixtures.
"""

import os
import sys

import pytest

# Add src to path for imports
sys.path.insert(0, os.path.join(os.path.dirname(__file__), "..", "src"))


@pytest.fixture
def temp_config_dir(tmp_path):
    """Create a temporary config directory with default.yaml."""
    config_dir = tmp_path / "config"
    config_dir.mkdir()

    default_yaml = config_dir / "default.yaml"
    default_yaml.write_text("""
camera:
  backend: "opencv"
  device_id: 0
  resolution: [640, 480]
  fps: 30

decoder:
  backend: "opencv"
  max_symbols: 2

cooldown:
  window_ms: 3000
  capacity: 20

log_path: "logs/test.log"
log_level: "INFO"
""")

    return config_dir


@pytest.fixture
def valid_config():
    """Return a valid configuration dictionary."""
    return {
        "camera": {
            "backend": "opencv",
            "device_id": 0,
            "resolution": [1280, 720],
            "fps": 30,
        },
        "decoder": {
            "backend": "opencv",
            "max_symbols": 2,
            "try_harder": False,
            "formats": ["QRCode"],
        },
        "cooldown": {
            "window_ms": 3000,
            "capacity": 20,
            "reaper_period_ms": 30000,
            "ttl_ms": 10000,
        },
        "results": {"capacity": 50},
        "interval": {"default_ms": 200, "min_ms": 100, "max_ms": 500},
        "guide": {"tolerance": 0.1, "screen_coverage": 0.6},
        "scan": {"decode_timeout_ms": 1000, "start_delay_ms": 500, "frame_scale": 0.6},
        "log_path": "logs/test.log",
        "log_level": "INFO",
    }
