import pytest
from hypothesis import given
from hypothesis import strategies as st

from camconv.pixels import rgb565_pixel, yuv2rgb

byte = st.integers(min_value=0, max_value=255)


def test_neutral_mid_grey():
    assert yuv2rgb(128, 128, 128) == (130, 130, 130)


def test_black_and_white_are_clamped():
    assert yuv2rgb(0, 128, 128) == (0, 0, 0)
    assert yuv2rgb(255, 128, 128) == (255, 255, 255)


@given(byte)
def test_neutral_chroma_is_grey(y):
    r, g, b = yuv2rgb(y, 128, 128)
    assert r == g == b


def test_grey_ramp_is_monotonic():
    greys = [yuv2rgb(y, 128, 128)[0] for y in range(256)]
    assert greys == sorted(greys)


@given(byte, byte, byte)
def test_output_within_byte_range(y, u, v):
    assert all(0 <= c <= 255 for c in yuv2rgb(y, u, v))


@given(byte, byte)
def test_red_depends_only_on_v(y, u):
    assert yuv2rgb(y, u, 200)[0] == yuv2rgb(y, 128, 200)[0]


@given(byte, byte)
def test_blue_depends_only_on_u(y, v):
    assert yuv2rgb(y, 200, v)[2] == yuv2rgb(y, 200, 128)[2]


def test_red_rises_with_v():
    reds = [yuv2rgb(128, 128, v)[0] for v in range(256)]
    assert reds == sorted(reds)


@pytest.mark.parametrize("args", [(256, 0, 0), (0, -1, 0), (0, 0, 300)])
def test_yuv_out_of_range_rejected(args):
    with pytest.raises(ValueError):
        yuv2rgb(*args)


def test_rgb565_extremes():
    assert rgb565_pixel(0, 0) == (0, 0, 0)
    assert rgb565_pixel(0xFF, 0xFF) == (0xF8, 0xFC, 0xF8)


@given(byte, byte)
def test_rgb565_low_bits_clear(high, low):
    r, g, b = rgb565_pixel(high, low)
    assert r & 0x07 == 0
    assert g & 0x03 == 0
    assert b & 0x07 == 0


@given(byte, byte)
def test_rgb565_round_trip(high, low):
    r, g, b = rgb565_pixel(high, low)
    packed = (r << 8) | (g << 3) | (b >> 3)
    assert packed == (high << 8) | low


@pytest.mark.parametrize("args", [(256, 0), (0, -1)])
def test_rgb565_out_of_range_rejected(args):
    with pytest.raises(ValueError):
        rgb565_pixel(*args)