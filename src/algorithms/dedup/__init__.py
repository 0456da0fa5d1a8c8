"""
Detection deduplication.

- fingerprint: stable key derived from decoded text
- CooldownFilter: per-code suppression window with a bounded table
- ResultAggregator: bounded set of distinct codes with counts
"""

from .fingerprint import Fingerprint, fingerprint, text_from_fingerprint
from .cooldown import CooldownEntry, CooldownFilter
from .aggregator import ResultAggregator

__all__ = [
    "Fingerprint",
    "fingerprint",
    "text_from_fingerprint",
    "CooldownEntry",
    "CooldownFilter",
    "ResultAggregator",
]
