"""
Fingerprinting of decoded text.

The fingerprint is the dedup key for cooldowns and unique results. It is a
reversible encoding of the text (URL-safe base64 of the UTF-8 bytes without
padding), so distinct texts can never collide.
"""

from __future__ import annotations

import base64

Fingerprint = str


def fingerprint(text: str) -> Fingerprint:
    """Return the stable identifier for ``text``."""
    encoded = base64.urlsafe_b64encode(text.encode("utf-8"))
    return encoded.decode("ascii").rstrip("=")


def text_from_fingerprint(fp: Fingerprint) -> str:
    """Inverse of :func:`fingerprint`."""
    padded = fp + "=" * (-len(fp) % 4)
    return base64.urlsafe_b64decode(padded.encode("ascii")).decode("utf-8")
