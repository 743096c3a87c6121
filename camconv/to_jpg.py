"""Encode raw camera frames (grayscale, RGB888, RGB565, YUV422) as JPEG."""

from __future__ import annotations

from collections.abc import Callable

from camconv.jpeg_encoder import EncoderParams, JpegEncoder, Subsampling
from camconv.pixels import PixFormat, rgb565_pixel, yuv2rgb

__all__ = ["convert_line", "fmt2jpg_cb", "fmt2jpg"]

# Largest JPEG that fmt2jpg keeps; further output is dropped.
_JPG_BUF_LEN = 128 * 1024

_MAX_DIMENSION = 0xFFFF

_BYTES_PER_PIXEL: dict[PixFormat, int] = {
    PixFormat.GRAYSCALE: 1,
    PixFormat.RGB888: 3,
    PixFormat.RGB565: 2,
    PixFormat.YUV422: 2,
}


def _stride(fmt: PixFormat, width: int) -> int:
    try:
        return width * _BYTES_PER_PIXEL[fmt]
    except KeyError:
        raise ValueError(f"cannot encode {fmt.name} data as JPEG") from None


def convert_line(src: bytes, fmt: PixFormat, width: int, line: int) -> bytes:
    """Return row ``line`` of ``src`` as encoder input: grey bytes or packed RGB."""
    if width < 0 or line < 0:
        raise ValueError("width and line must not be negative")
    stride = _stride(fmt, width)
    start = stride * line
    # YUV422 is read in four-byte pairs, so an odd width reaches one pair past the row.
    span = (stride + 3) // 4 * 4 if fmt is PixFormat.YUV422 else stride
    data = bytes(src[start:start + span])
    if len(data) < span:
        raise ValueError(f"source too short for line {line}: need {span} bytes at {start}")

    if fmt is PixFormat.GRAYSCALE:
        return data

    it = iter(data)
    out = bytearray()
    if fmt is PixFormat.RGB888:
        for first, second, third in zip(it, it, it):
            out += bytes((third, second, first))
    elif fmt is PixFormat.RGB565:
        for high, low in zip(it, it):
            out += bytes(rgb565_pixel(high, low))
    else:
        for y0, u, y1, v in zip(it, it, it, it):
            out += bytes(yuv2rgb(y0, u, v))
            out += bytes(yuv2rgb(y1, u, v))
    return bytes(out[:width * 3])


def _encode(
    src: bytes,
    width: int,
    height: int,
    fmt: PixFormat,
    quality: int,
    write: Callable[[bytes], object],
) -> None:
    if not 0 <= width <= _MAX_DIMENSION or not 0 <= height <= _MAX_DIMENSION:
        raise ValueError(f"image size {width}x{height} out of range")
    stride = _stride(fmt, width)
    if len(src) < stride * height:
        raise ValueError(f"source needs {stride * height} bytes, got {len(src)}")

    if fmt is PixFormat.GRAYSCALE:
        channels, subsampling = 1, Subsampling.Y_ONLY
    else:
        channels, subsampling = 3, Subsampling.H2V2
    quality = 1 if quality < 1 else min(quality, 100)

    encoder = JpegEncoder(write, width, height, channels, EncoderParams(quality, subsampling))
    for row in range(height):
        encoder.process_scanline(convert_line(src, fmt, width, row))
    encoder.finish()


def fmt2jpg_cb(
    src: bytes,
    width: int,
    height: int,
    fmt: PixFormat,
    quality: int,
    callback: Callable[[int, bytes], int | None],
) -> int:
    """Encode ``src`` to JPEG, handing each chunk to ``callback(index, data)``.

    ``callback`` returns how many bytes it took (``None`` means all); ``index``
    is the running total. A final call with empty data marks the end.
    Returns the final index.
    """
    index = 0

    def write(chunk: bytes) -> bool:
        nonlocal index
        taken = callback(index, chunk)
        index += len(chunk) if taken is None else taken
        return True

    _encode(src, width, height, fmt, quality, write)
    taken = callback(index, b"")
    index += 0 if taken is None else taken
    return index


def fmt2jpg(src: bytes, width: int, height: int, fmt: PixFormat, quality: int) -> bytes:
    """Encode ``src`` to JPEG bytes, keeping at most 128 KiB of output."""
    buffer = bytearray()

    def write(chunk: bytes) -> bool:
        room = _JPG_BUF_LEN - len(buffer)
        if room > 0:
            buffer.extend(chunk[:room])
        return True

    _encode(src, width, height, fmt, quality, write)
    return bytes(buffer)