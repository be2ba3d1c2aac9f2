"""Conversion between the watch framebuffer and monochrome BMP files.

The watch packs eight pixels per byte with the leftmost pixel in the least
significant bit, rows top to bottom, each row padded to a multiple of four
bytes. A 1-bit BMP stores the leftmost pixel in the most significant bit and
rows bottom to top, so every byte is bit-reflected and the row order flipped.
"""
import struct

import numpy as np
from PIL import Image

FILE_HEADER_SIZE = 14
INFO_HEADER_SIZE = 40
PALETTE = b"\x00\x00\x00\x00" + b"\xff\xff\xff\xff"
PIXEL_OFFSET = FILE_HEADER_SIZE + INFO_HEADER_SIZE + len(PALETTE)
PIXELS_PER_METER = 2835  # 72 dpi

# Watch screen size
WIDTH = 144
HEIGHT = 168


class BitmapError(ValueError):
    """Raised when a buffer does not match the requested image geometry."""


def padded_row_bytes(width: int) -> int:
    return ((width + 7) // 8 + 3) // 4 * 4


def reflect_byte(value: int) -> int:
    result = 0
    for _ in range(8):
        result = (result << 1) | (value & 1)
        value >>= 1
    return result


_REFLECT = np.array([reflect_byte(i) for i in range(256)], dtype=np.uint8)


def _check_geometry(buffer, width: int, height: int) -> int:
    if width <= 0 or height <= 0:
        raise BitmapError(f"invalid image size {width}x{height}")
    if width % 8 != 0:
        raise BitmapError(f"width {width} is not a multiple of 8")
    size = padded_row_bytes(width) * height
    if len(buffer) < size:
        raise BitmapError(
            f"buffer holds {len(buffer)} bytes, {width}x{height} needs {size}"
        )
    return size


def _rows(buffer, width: int, height: int) -> np.ndarray:
    size = _check_geometry(buffer, width, height)
    frame = np.frombuffer(bytes(buffer[:size]), dtype=np.uint8)
    return frame.reshape((height, padded_row_bytes(width)))


def encode_bitmap(buffer, width: int, height: int) -> bytes:
    """Return a complete 1 bit per pixel BMP file for a watch framebuffer."""
    rows = _rows(buffer, width, height)
    pixels = _REFLECT[rows[::-1]].tobytes()

    file_header = struct.pack(
        "<2sIHHI", b"BM", PIXEL_OFFSET + len(pixels), 0, 0, PIXEL_OFFSET
    )
    info_header = struct.pack(
        "<IiiHHIIiiII",
        INFO_HEADER_SIZE,
        width,
        height,
        1,  # planes
        1,  # bits per pixel
        0,  # BI_RGB
        len(pixels),
        PIXELS_PER_METER,
        PIXELS_PER_METER,
        0,
        0,
    )
    return file_header + info_header + PALETTE + pixels


def to_image(buffer, width: int, height: int) -> Image.Image:
    """Decode a watch framebuffer into a mode "1" image."""
    rows = _rows(buffer, width, height)
    bits = np.unpackbits(rows, axis=1, bitorder="little")[:, :width]
    return Image.fromarray(bits * 255).convert("1")


def pack_image(image: Image.Image, width: int, height: int) -> bytes:
    """Pack an image into the watch framebuffer layout."""
    if image.size != (width, height):
        image = image.resize((width, height))
    bits = np.array(image.convert("1", dither=Image.Dither.NONE), dtype=np.uint8)
    packed = np.packbits(bits, axis=1, bitorder="little")
    pad = padded_row_bytes(width) - packed.shape[1]
    if pad:
        packed = np.pad(packed, ((0, 0), (0, pad)))
    return packed.tobytes()
