"""
Tests for preprocessing.py.

Covers:
  - decode_image(): PNG/JPEG bytes → RGB, empty or garbage bytes → ValueError
  - enhance(): same size, changes pixels, failing step is skipped
  - encode_jpeg(): produces a decodable JPEG
"""
from __future__ import annotations

import io
from unittest.mock import patch

import pytest
from PIL import Image

import preprocessing


def image_bytes(fmt: str = "PNG", mode: str = "RGB", color="gray") -> bytes:
    buf = io.BytesIO()
    Image.new(mode, (20, 10), color).save(buf, format=fmt)
    return buf.getvalue()


class TestDecodeImage:
    def test_png(self):
        img = preprocessing.decode_image(image_bytes("PNG"))
        assert img.size == (20, 10)
        assert img.mode == "RGB"

    def test_converts_to_rgb(self):
        img = preprocessing.decode_image(image_bytes("PNG", mode="RGBA", color=(1, 2, 3, 4)))
        assert img.mode == "RGB"

    def test_jpeg(self):
        assert preprocessing.decode_image(image_bytes("JPEG")).size == (20, 10)

    def test_empty_raises(self):
        with pytest.raises(ValueError, match="Empty"):
            preprocessing.decode_image(b"")

    def test_garbage_raises(self):
        with pytest.raises(ValueError, match="Cannot decode"):
            preprocessing.decode_image(b"definitely not an image")


class TestEnhance:
    def test_keeps_size_and_mode(self):
        img = Image.new("RGB", (20, 10), (100, 100, 100))
        out = preprocessing.enhance(img)
        assert out.size == img.size
        assert out.mode == "RGB"

    def test_brightens_mid_gray(self):
        img = Image.new("RGB", (20, 10), (100, 100, 100))
        out = preprocessing.enhance(img)
        assert out.getpixel((10, 5))[0] > 100

    def test_does_not_modify_input(self):
        img = Image.new("RGB", (20, 10), (100, 100, 100))
        preprocessing.enhance(img)
        assert img.getpixel((10, 5)) == (100, 100, 100)

    def test_failing_step_skipped(self):
        img = Image.new("RGB", (20, 10), (100, 100, 100))
        with patch.object(preprocessing, "_FILTERS", [
            ("broken", lambda im: (_ for _ in ()).throw(OSError("no filter"))),
            ("exposure", preprocessing._exposure),
        ]):
            out = preprocessing.enhance(img)
        assert out.getpixel((10, 5))[0] > 100


class TestEncodeJpeg:
    def test_roundtrips_through_decode(self):
        img = Image.new("RGB", (20, 10), "red")
        data = preprocessing.encode_jpeg(img)
        assert data[:2] == b"\xff\xd8"
        assert preprocessing.decode_image(data).size == (20, 10)

    def test_rgba_input(self):
        data = preprocessing.encode_jpeg(Image.new("RGBA", (4, 4)))
        assert data[:2] == b"\xff\xd8"
