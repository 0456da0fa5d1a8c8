"""
Logging setup shared by the server and headless entry points.
"""

from __future__ import annotations

import logging
import os

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


def setup_logging(log_path: str, log_level: str) -> None:
    """
    Log to ``log_path`` and stderr at ``log_level``.

    Per-cycle DEBUG lines from the scan loop are only emitted when the level
    is DEBUG; uvicorn's access log is kept at WARNING so polling clients do
    not flood the file.
    """
    log_dir = os.path.dirname(log_path)
    if log_dir and not os.path.exists(log_dir):
        os.makedirs(log_dir)

    logging.basicConfig(
        level=getattr(logging, log_level.upper(), logging.INFO),
        format=LOG_FORMAT,
        handlers=[
            logging.FileHandler(log_path),
            logging.StreamHandler(),
        ],
    )
    logging.getLogger("uvicorn.access").setLevel(logging.WARNING)
