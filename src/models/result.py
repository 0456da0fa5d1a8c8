"""
UniqueResult model: one distinct decoded code and how often it was seen.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict


@dataclass
class UniqueResult:
    """
    Aggregated record of a distinct code.

    Attributes:
        id: Fingerprint of ``text`` (the dedup key).
        text: Decoded payload.
        first_seen: Timestamp (ms) of the first accepted detection.
        last_seen: Timestamp (ms) of the latest accepted detection.
        count: Accepted detections since creation or last reset (>= 1).
    """
    id: str
    text: str
    first_seen: float
    last_seen: float
    count: int = 1

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "text": self.text,
            "first_seen": self.first_seen,
            "last_seen": self.last_seen,
            "count": self.count,
        }
