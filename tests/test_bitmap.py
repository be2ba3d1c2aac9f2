import io
import os
import struct
import sys

import pytest
from PIL import Image, ImageDraw

sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), "..")))

from bitmap import BitmapError, encode_bitmap, pack_image, padded_row_bytes, reflect_byte, to_image


def test_padded_row_bytes():
    assert padded_row_bytes(8) == 4
    assert padded_row_bytes(32) == 4
    assert padded_row_bytes(40) == 8
    assert padded_row_bytes(144) == 20


def test_reflect_byte_is_involution():
    for value in range(256):
        assert reflect_byte(reflect_byte(value)) == value
    assert reflect_byte(0x01) == 0x80
    assert reflect_byte(0b11010000) == 0b00001011


@pytest.mark.parametrize("width,height", [(8, 1), (16, 3), (40, 7), (144, 168)])
def test_header_fields(width, height):
    pixels = padded_row_bytes(width) * height
    bmp = encode_bitmap(bytes(pixels), width, height)
    assert len(bmp) == 62 + pixels
    assert bmp[:2] == b"BM"
    assert struct.unpack_from("<I", bmp, 2)[0] == 62 + pixels
    assert struct.unpack_from("<I", bmp, 10)[0] == 62
    info = struct.unpack_from("<IiiHHIIiiII", bmp, 14)
    assert info == (40, width, height, 1, 1, 0, pixels, 2835, 2835, 0, 0)
    assert bmp[54:62] == b"\x00\x00\x00\x00\xff\xff\xff\xff"


def test_rows_are_flipped_and_reflected():
    buffer = bytes([0x01, 0, 0, 0, 0x03, 0, 0, 0])
    bmp = encode_bitmap(buffer, 8, 2)
    assert bmp[62:] == bytes([0xC0, 0, 0, 0, 0x80, 0, 0, 0])


def test_white_screen_stays_white():
    buffer = b"\xff" * (20 * 168)
    bmp = encode_bitmap(buffer, 144, 168)
    assert bmp[62:] == b"\xff" * (20 * 168)
    img = Image.open(io.BytesIO(bmp)).convert("L")
    assert img.getextrema() == (255, 255)


def test_extra_bytes_are_ignored():
    bmp = encode_bitmap(bytes(8) + b"\xff", 8, 2)
    assert len(bmp) == 62 + 8


@pytest.mark.parametrize("width,height,length", [(144, 168, 3359), (12, 1, 4), (0, 1, 4), (8, 0, 4)])
def test_bad_geometry_raises(width, height, length):
    with pytest.raises(BitmapError):
        encode_bitmap(bytes(length), width, height)


def test_pillow_reads_encoded_drawing():
    src = Image.new("1", (144, 168), 0)
    draw = ImageDraw.Draw(src)
    draw.rectangle((10, 20, 60, 40), fill=1)
    draw.line((0, 0, 143, 167), fill=1)

    buffer = pack_image(src, 144, 168)
    assert len(buffer) == 20 * 168
    decoded = Image.open(io.BytesIO(encode_bitmap(buffer, 144, 168)))
    assert decoded.size == (144, 168)
    assert decoded.convert("L").tobytes() == src.convert("L").tobytes()


def test_to_image_matches_packed_source():
    src = Image.new("1", (16, 2), 0)
    src.putpixel((0, 0), 1)
    src.putpixel((15, 1), 1)
    buffer = pack_image(src, 16, 2)
    assert buffer == bytes([0x01, 0, 0, 0, 0, 0x80, 0, 0])
    img = to_image(buffer, 16, 2)
    assert img.mode == "1"
    assert img.convert("L").tobytes() == src.convert("L").tobytes()
