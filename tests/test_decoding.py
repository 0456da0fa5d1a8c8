"""
Tests for the decoding engines.
"""

import asyncio
import sys
import types
from collections import namedtuple
from unittest.mock import patch

import cv2
import numpy as np
import pytest

from decoding import DecodeError, DecodeOptions, OpenCVQRDecoder, create_decoder, normalize_format
from decoding.pyzbar_decoder import symbol_to_detection
from models.config import DecoderConfig
from models.detection import Point

ZPoint = namedtuple("ZPoint", ["x", "y"])
ZRect = namedtuple("ZRect", ["left", "top", "width", "height"])
ZDecoded = namedtuple("ZDecoded", ["data", "type", "rect", "polygon"])


def _qr_image(text: str) -> np.ndarray:
    """Render a clean, upscaled QR code with a white quiet zone."""
    encoder = cv2.QRCodeEncoder.create()
    qr = encoder.encode(text)
    qr = cv2.resize(qr, None, fx=8, fy=8, interpolation=cv2.INTER_NEAREST)
    qr = cv2.copyMakeBorder(qr, 40, 40, 40, 40, cv2.BORDER_CONSTANT, value=255)
    return cv2.cvtColor(qr, cv2.COLOR_GRAY2BGR)


class TestDecodeOptions:
    """Tests for DecodeOptions and format names."""

    def test_normalize_format(self):
        assert normalize_format("QRCode") == "qrcode"
        assert normalize_format("QR_CODE") == "qrcode"
        assert normalize_format("EAN-13") == "ean13"

    def test_accepts(self):
        options = DecodeOptions(formats=("QRCode", "EAN13"))

        assert options.accepts("QRCODE")
        assert options.accepts("ean_13")
        assert not options.accepts("CODE128")

    def test_from_config(self):
        options = DecodeOptions.from_config(DecoderConfig(max_symbols=1, try_harder=True))

        assert options.max_symbols == 1
        assert options.try_harder is True
        assert options.formats == ("QRCode",)


class TestOpenCVQRDecoder:
    """Tests for OpenCVQRDecoder."""

    def test_blank_image_has_no_symbols(self):
        decoder = OpenCVQRDecoder()
        blank = np.full((240, 320, 3), 255, dtype=np.uint8)

        assert decoder.decode_sync(blank, DecodeOptions()) == []
        assert decoder.decode_sync(blank, DecodeOptions(try_harder=True)) == []

    def test_empty_image(self):
        decoder = OpenCVQRDecoder()

        assert decoder.decode_sync(np.zeros((0, 0, 3), dtype=np.uint8), DecodeOptions()) == []

    def test_decodes_rendered_code(self):
        decoder = OpenCVQRDecoder()
        image = _qr_image("https://example.com/ticket/42")

        detections = asyncio.run(decoder.decode(image, DecodeOptions()))

        assert [d.text for d in detections] == ["https://example.com/ticket/42"]
        detection = detections[0]
        assert detection.format == "QRCode"
        centroid = detection.geometry.centroid()
        h, w = image.shape[:2]
        assert abs(centroid.x - w / 2) < 20
        assert abs(centroid.y - h / 2) < 20

    def test_skips_when_qr_not_requested(self):
        decoder = OpenCVQRDecoder()
        image = _qr_image("hello")

        detections = asyncio.run(decoder.decode(image, DecodeOptions(formats=("EAN13",))))

        assert detections == []

    def test_opencv_failure_becomes_decode_error(self):
        decoder = OpenCVQRDecoder()
        with patch.object(decoder, "_detector") as detector:
            detector.detectAndDecodeMulti.side_effect = cv2.error("boom")
            with pytest.raises(DecodeError):
                decoder.decode_sync(np.zeros((10, 10, 3), dtype=np.uint8), DecodeOptions())

    def test_undecodable_symbols_dropped(self):
        decoder = OpenCVQRDecoder()
        corners = np.array([[[0, 0], [10, 0], [10, 10], [0, 10]]] * 3, dtype=np.float32)
        with patch.object(decoder, "_detector") as detector:
            detector.detectAndDecodeMulti.return_value = (True, ("a", "", "b"), corners, None)
            detections = decoder.decode_sync(np.zeros((10, 10, 3), dtype=np.uint8), DecodeOptions())

        assert [d.text for d in detections] == ["a", "b"]
        assert detections[0].geometry.bottom_right == Point(10.0, 10.0)

    def test_max_symbols_truncates(self):
        decoder = OpenCVQRDecoder()
        corners = np.array([[[0, 0], [10, 0], [10, 10], [0, 10]]] * 3, dtype=np.float32)
        with patch.object(decoder, "_detector") as detector:
            detector.detectAndDecodeMulti.return_value = (True, ("a", "b", "c"), corners, None)
            detections = decoder.decode_sync(
                np.zeros((10, 10, 3), dtype=np.uint8), DecodeOptions(max_symbols=2)
            )

        assert len(detections) == 2


class TestPyzbarSymbols:
    """Tests for converting ZBar records."""

    def test_polygon_ordered_clockwise(self):
        polygon = [ZPoint(10, 50), ZPoint(50, 50), ZPoint(10, 10), ZPoint(50, 10)]
        symbol = ZDecoded(b"hello", "QRCODE", ZRect(10, 10, 40, 40), polygon)

        detection = symbol_to_detection(symbol)

        assert detection.text == "hello"
        assert detection.format == "QRCode"
        assert detection.geometry.top_left == Point(10, 10)
        assert detection.geometry.top_right == Point(50, 10)
        assert detection.geometry.bottom_right == Point(50, 50)
        assert detection.geometry.bottom_left == Point(10, 50)

    def test_rect_fallback(self):
        symbol = ZDecoded(b"4006381333931", "EAN13", ZRect(5, 6, 100, 30), [ZPoint(5, 6), ZPoint(105, 36)])

        detection = symbol_to_detection(symbol)

        assert detection.format == "EAN13"
        assert detection.geometry.bottom_right == Point(105, 36)

    def test_non_utf8_payload_skipped(self):
        symbol = ZDecoded(b"\xff\xfe\xfd", "QRCODE", ZRect(0, 0, 1, 1), [])

        assert symbol_to_detection(symbol) is None


class TestPyzbarDecoder:
    """Tests for PyzbarDecoder against a stubbed pyzbar module."""

    def _decoder(self, decode):
        fake_module = types.ModuleType("pyzbar.pyzbar")
        fake_module.decode = decode
        fake_package = types.ModuleType("pyzbar")
        fake_package.pyzbar = fake_module
        with patch.dict(sys.modules, {"pyzbar": fake_package, "pyzbar.pyzbar": fake_module}):
            return create_decoder(DecoderConfig(backend="pyzbar"))

    def test_filters_formats(self):
        symbols = [
            ZDecoded(b"4006381333931", "EAN13", ZRect(0, 0, 10, 10), []),
            ZDecoded(b"hello", "QRCODE", ZRect(0, 0, 10, 10), []),
        ]
        decoder = self._decoder(lambda image: symbols)

        detections = decoder.decode_sync(np.zeros((10, 10), dtype=np.uint8), DecodeOptions())

        assert [d.text for d in detections] == ["hello"]

    def test_failure_becomes_decode_error(self):
        def broken(image):
            raise OSError("zbar crashed")

        decoder = self._decoder(broken)

        with pytest.raises(DecodeError):
            decoder.decode_sync(np.zeros((10, 10), dtype=np.uint8), DecodeOptions())


class TestCreateDecoder:
    """Tests for create_decoder."""

    def test_opencv(self):
        assert isinstance(create_decoder(DecoderConfig(backend="opencv")), OpenCVQRDecoder)

    def test_unknown(self):
        with pytest.raises(ValueError):
            create_decoder(DecoderConfig(backend="zxing"))
