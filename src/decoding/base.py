"""
Decoding engine interface.

Decoders turn an image into the list of symbols found in it, with corner
geometry in that image's pixel space. They are awaited by the scan loop,
which always wraps the call in a timeout.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from typing import List, Protocol, Sequence

import numpy as np

from models.config import DecoderConfig
from models.detection import RawDetection


class DecodeError(Exception):
    """The decoding engine failed on a frame."""


@dataclass(frozen=True)
class DecodeOptions:
    """
    Attributes:
        max_symbols: Upper bound on symbols returned per image.
        try_harder: Spend more effort per image (slower).
        formats: Symbologies to report (e.g., "QRCode", "EAN13").
    """
    max_symbols: int = 2
    try_harder: bool = False
    formats: Sequence[str] = field(default_factory=lambda: ("QRCode",))

    @classmethod
    def from_config(cls, cfg: DecoderConfig) -> "DecodeOptions":
        return cls(
            max_symbols=cfg.max_symbols,
            try_harder=cfg.try_harder,
            formats=tuple(cfg.formats),
        )

    def accepts(self, symbology: str) -> bool:
        wanted = {normalize_format(f) for f in self.formats}
        return normalize_format(symbology) in wanted


def normalize_format(name: str) -> str:
    """'QRCode', 'QRCODE' and 'qr_code' all normalize to 'qrcode'."""
    return re.sub(r"[^a-z0-9]", "", name.lower())


class Decoder(Protocol):
    async def decode(self, image: np.ndarray, options: DecodeOptions) -> List[RawDetection]:
        ...
