"""Convert raw camera frames to 24-bit BMP images or packed BGR888 data."""

from __future__ import annotations

import struct

from camconv.pixels import PixFormat, rgb565_pixel, yuv2rgb

__all__ = ["BMP_HEADER_LEN", "bmp_header", "fmt2bmp", "fmt2rgb888"]

BMP_HEADER_LEN = 54

_DIB_HEADER_LEN = 40
_PIXELS_PER_METER = 0x0B13  # 72 DPI
_MAX_DIMENSION = 0xFFFF

_BYTES_PER_PIXEL: dict[PixFormat, int] = {
    PixFormat.GRAYSCALE: 1,
    PixFormat.RGB888: 3,
    PixFormat.RGB565: 2,
    PixFormat.YUV422: 2,
}


def _check_dimensions(width: int, height: int) -> None:
    if not 0 <= width <= _MAX_DIMENSION or not 0 <= height <= _MAX_DIMENSION:
        raise ValueError(f"image size {width}x{height} out of range")


def bmp_header(width: int, height: int) -> bytes:
    """Return the 54-byte header of a top-down 24-bit BMP."""
    _check_dimensions(width, height)
    image_size = width * height * 3
    return b"BM" + struct.pack(
        "<IIIIiiHHIIIIII",
        image_size + BMP_HEADER_LEN,
        0,
        BMP_HEADER_LEN,
        _DIB_HEADER_LEN,
        width,
        -height,  # negative height: rows run top to bottom
        1,
        24,
        0,
        image_size,
        _PIXELS_PER_METER,
        _PIXELS_PER_METER,
        0,
        0,
    )


def _to_bgr(data: bytes, fmt: PixFormat) -> bytes:
    """Convert a whole number of source pixels to packed BGR888."""
    if fmt is PixFormat.RGB888:
        return bytes(data)
    if fmt is PixFormat.GRAYSCALE:
        return bytes(value for sample in data for value in (sample, sample, sample))
    it = iter(data)
    out = bytearray()
    if fmt is PixFormat.RGB565:
        for high, low in zip(it, it):
            r, g, b = rgb565_pixel(high, low)
            out += bytes((b, g, r))
    elif fmt is PixFormat.YUV422:
        for y0, u, y1, v in zip(it, it, it, it):
            for y in (y0, y1):
                r, g, b = yuv2rgb(y, u, v)
                out += bytes((b, g, r))
    else:
        raise ValueError(f"cannot convert {fmt.name} data")
    return bytes(out)


def fmt2bmp(src: bytes, width: int, height: int, fmt: PixFormat) -> bytes:
    """Convert a ``width`` x ``height`` frame to a complete BMP file image."""
    _check_dimensions(width, height)
    if fmt not in _BYTES_PER_PIXEL:
        raise ValueError(f"cannot convert {fmt.name} data to BMP")
    pixel_count = width * height
    needed = pixel_count * _BYTES_PER_PIXEL[fmt]
    if fmt is PixFormat.YUV422:
        needed = pixel_count // 2 * 4
    if len(src) < needed:
        raise ValueError(f"source needs {needed} bytes, got {len(src)}")

    pixels = _to_bgr(bytes(src[:needed]), fmt)
    # An odd YUV422 pixel count leaves the final pixel without data.
    pixels = pixels.ljust(pixel_count * 3, b"\x00")
    return bmp_header(width, height) + pixels


def fmt2rgb888(src: bytes, fmt: PixFormat) -> bytes:
    """Convert every whole pixel in ``src`` to packed BGR888 bytes."""
    data = bytes(src)
    if fmt is PixFormat.RGB565:
        data = data[:len(data) // 2 * 2]
    elif fmt is PixFormat.YUV422:
        data = data[:len(data) // 4 * 4]
    elif fmt not in _BYTES_PER_PIXEL:
        raise ValueError(f"cannot convert {fmt.name} data to RGB888")
    return _to_bgr(data, fmt)