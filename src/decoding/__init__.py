"""
Decoding engines.

- OpenCVQRDecoder: QR codes via cv2.QRCodeDetector (default)
- PyzbarDecoder: QR and 1D symbologies via ZBar
"""

from models.config import DecoderConfig

from .base import Decoder, DecodeError, DecodeOptions, normalize_format
from .opencv_decoder import OpenCVQRDecoder


def create_decoder(cfg: DecoderConfig) -> Decoder:
    """Build the decoder selected by ``decoder.backend``."""
    backend = cfg.backend.lower()
    if backend == "opencv":
        return OpenCVQRDecoder()
    if backend == "pyzbar":
        from .pyzbar_decoder import PyzbarDecoder
        return PyzbarDecoder()
    raise ValueError(f"Unknown decoder backend: {cfg.backend}")


__all__ = [
    "Decoder",
    "DecodeError",
    "DecodeOptions",
    "normalize_format",
    "OpenCVQRDecoder",
    "create_decoder",
]
