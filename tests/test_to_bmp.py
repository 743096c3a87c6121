import struct

import pytest
from hypothesis import given
from hypothesis import strategies as st

from camconv.pixels import PixFormat, rgb565_pixel, yuv2rgb
from camconv.to_bmp import BMP_HEADER_LEN, bmp_header, fmt2bmp, fmt2rgb888


def test_header_fields():
    header = bmp_header(4, 3)
    assert len(header) == BMP_HEADER_LEN
    assert header[:2] == b"BM"
    fields = struct.unpack("<IIIIiiHHIIIIII", header[2:])
    filesize, reserved, offset, dib, width, height, planes, bpp = fields[:8]
    compression, image_size, ppm_y, ppm_x, colours, important = fields[8:]
    assert filesize == 4 * 3 * 3 + BMP_HEADER_LEN
    assert reserved == 0
    assert offset == BMP_HEADER_LEN
    assert dib == 40
    assert (width, height) == (4, -3)
    assert (planes, bpp) == (1, 24)
    assert compression == 0
    assert image_size == 4 * 3 * 3
    assert ppm_y == ppm_x == 0x0B13
    assert colours == important == 0


def test_header_rejects_negative_size():
    with pytest.raises(ValueError):
        bmp_header(-1, 2)


def test_fmt2bmp_grayscale_triplicates_samples():
    out = fmt2bmp(bytes((5, 200)), 2, 1, PixFormat.GRAYSCALE)
    assert out[:BMP_HEADER_LEN] == bmp_header(2, 1)
    assert out[BMP_HEADER_LEN:] == bytes((5, 5, 5, 200, 200, 200))


def test_fmt2bmp_rgb888_copies():
    src = bytes(range(12))
    assert fmt2bmp(src, 2, 2, PixFormat.RGB888)[BMP_HEADER_LEN:] == src


def test_fmt2bmp_rgb565_stores_bgr():
    out = fmt2bmp(bytes((0xF8, 0x1F)), 1, 1, PixFormat.RGB565)
    r, g, b = rgb565_pixel(0xF8, 0x1F)
    assert out[BMP_HEADER_LEN:] == bytes((b, g, r))


def test_fmt2bmp_yuv422_odd_count_leaves_last_pixel_blank():
    src = bytes((10, 100, 200, 150))
    out = fmt2bmp(src, 3, 1, PixFormat.YUV422)
    first = yuv2rgb(10, 100, 150)
    second = yuv2rgb(200, 100, 150)
    expected = bytes(first[::-1] + second[::-1]) + bytes(3)
    assert out[BMP_HEADER_LEN:] == expected


def test_fmt2bmp_rejects_jpeg():
    with pytest.raises(ValueError):
        fmt2bmp(b"\xff\xd8", 1, 1, PixFormat.JPEG)


def test_fmt2bmp_rejects_short_source():
    with pytest.raises(ValueError):
        fmt2bmp(bytes(5), 2, 1, PixFormat.RGB888)


def test_fmt2rgb888_rgb565_ignores_trailing_byte():
    out = fmt2rgb888(bytes((0x07, 0xE0, 0x55)), PixFormat.RGB565)
    r, g, b = rgb565_pixel(0x07, 0xE0)
    assert out == bytes((b, g, r))


def test_fmt2rgb888_yuv422():
    out = fmt2rgb888(bytes((10, 100, 200, 150)), PixFormat.YUV422)
    assert out == bytes(yuv2rgb(10, 100, 150)[::-1] + yuv2rgb(200, 100, 150)[::-1])


def test_fmt2rgb888_rejects_jpeg():
    with pytest.raises(ValueError):
        fmt2rgb888(b"\xff\xd8", PixFormat.JPEG)


@given(st.integers(0, 6), st.integers(0, 6), st.data())
def test_grayscale_bmp_size_and_pixels(width, height, data):
    src = data.draw(st.binary(min_size=width * height, max_size=width * height))
    out = fmt2bmp(src, width, height, PixFormat.GRAYSCALE)
    assert len(out) == BMP_HEADER_LEN + width * height * 3
    pixels = out[BMP_HEADER_LEN:]
    assert pixels[0::3] == pixels[1::3] == pixels[2::3] == src


@given(st.binary(max_size=60))
def test_rgb888_passthrough(src):
    assert fmt2rgb888(src, PixFormat.RGB888) == src