# camconv

Convert raw camera frame buffers into baseline JPEG, 24-bit BMP or packed
BGR888 bytes, in pure Python with no dependencies.

Source formats are listed in `camconv.pixels.PixFormat`: `RGB565`, `RGB888`,
`YUV422` (YUYV byte order), `GRAYSCALE` and `JPEG`. Only the first four can be
converted; see "What it does not do" below.

## Installing

```
pip install .
```

To run the tests:

```
pip install .[test]
pytest
```

## Encoding to JPEG

```python
from camconv.pixels import PixFormat
from camconv.to_jpg import fmt2jpg, fmt2jpg_cb

width, height = 16, 16
frame = bytes(width * height * 2)          # an RGB565 frame

jpeg = fmt2jpg(frame, width, height, PixFormat.RGB565, 80)
with open("frame.jpg", "wb") as fh:
    fh.write(jpeg)
```

Quality below 1 is treated as 1 and anything above 100 as 100. Grayscale
frames are written as single-component JPEGs; colour frames use 2x2 chroma
subsampling. `fmt2jpg` keeps at most 128 KiB of output and silently drops the
rest. A source that is too short for the given size, or a size beyond 65535,
raises `ValueError`.

`fmt2jpg_cb` streams the compressed bytes to a callback instead of collecting
them. The callback receives the running offset and a chunk of bytes and
returns how many of them it took (`None` counts as all of them). A last call
with empty data marks the end, and the function returns the final offset:

```python
chunks = []

def sink(index, data):
    chunks.append(data)
    return len(data)

total = fmt2jpg_cb(frame, width, height, PixFormat.RGB565, 80, sink)
```

`convert_line(src, fmt, width, line)` returns one row of a frame in the form
the encoder takes: grey bytes for grayscale, packed RGB for the others.

### The encoder itself

For full control use `camconv.jpeg_encoder.JpegEncoder`, fed one scanline at
a time:

```python
from camconv.jpeg_encoder import EncoderParams, JpegEncoder, Subsampling

out = bytearray()
encoder = JpegEncoder(out.extend, width, height, 3,
                      EncoderParams(quality=90, subsampling=Subsampling.H1V1))
for row in range(height):
    encoder.process_scanline(bytes(width * 3))   # RGB bytes
encoder.finish()
```

`write` is called with chunks of at most 512 bytes; if it returns `False` the
encoder raises `OSError`. Subsampling modes are `Y_ONLY`, `H1V1`, `H2V1` and
`H2V2` (the default, with quality 85). Invalid sizes, channel counts or
parameters raise `ValueError`; feeding an encoder after `finish()` raises
`RuntimeError`.

The building blocks — quantisation tables, canonical Huffman codes, the
integer forward DCT and the RGB/YCbCr transforms — are in
`camconv.jpeg_tables` (`quant_table`, `compute_huffman_table`, `fdct`,
`rgb_to_ycc`, `rgb_to_y`, `y_to_ycc`).

## Converting to BMP and BGR888

```python
from camconv.to_bmp import bmp_header, fmt2bmp, fmt2rgb888

bmp = fmt2bmp(frame, width, height, PixFormat.RGB565)   # top-down 24-bit BMP
bgr = fmt2rgb888(frame, PixFormat.RGB565)               # 3 bytes per pixel, B G R
```

Pixels come out in B, G, R order; `RGB888` source data is copied unchanged.
`fmt2rgb888` converts every whole pixel in the buffer. `bmp_header(width,
height)` builds the 54-byte header alone.

## Pixel helpers

`camconv.pixels.yuv2rgb(y, u, v)` returns an `(r, g, b)` tuple using fixed
lookup tables, and `rgb565_pixel(high, low)` expands a two-byte RGB565 pixel
into 8-bit components. Values outside 0..255 raise `ValueError`.

## What it does not do

There is no JPEG decoder: passing `PixFormat.JPEG` to `fmt2bmp`,
`fmt2rgb888` or the JPEG encoding functions raises `ValueError`. The package
works on frame data already in memory; it does not talk to cameras and has
no command-line tool.