"""Streaming baseline JPEG encoder fed one scanline at a time."""

from __future__ import annotations

import enum
from collections.abc import Callable, Sequence
from dataclasses import dataclass, field

from camconv.jpeg_tables import (
    AC_CHROMA_BITS,
    AC_CHROMA_VAL,
    AC_LUM_BITS,
    AC_LUM_VAL,
    DC_CHROMA_BITS,
    DC_CHROMA_VAL,
    DC_LUM_BITS,
    DC_LUM_VAL,
    STD_CHROMA_QUANT,
    STD_LUM_QUANT,
    ZIGZAG,
    compute_huffman_table,
    fdct,
    quant_table,
    rgb_to_y,
    rgb_to_ycc,
    y_to_ycc,
)

__all__ = ["Subsampling", "EncoderParams", "JpegEncoder"]

_M_SOF0 = 0xC0
_M_DHT = 0xC4
_M_SOI = 0xD8
_M_EOI = 0xD9
_M_SOS = 0xDA
_M_DQT = 0xDB
_M_APP0 = 0xE0

_OUT_BUF_SIZE = 512


class Subsampling(enum.IntEnum):
    """Chroma subsampling modes."""

    Y_ONLY = 0
    H1V1 = 1
    H2V1 = 2
    H2V2 = 3


@dataclass
class EncoderParams:
    """Compression parameters: quality 1..100 and chroma subsampling."""

    quality: int = 85
    subsampling: Subsampling = field(default=Subsampling.H2V2)

    def check(self) -> bool:
        """Return True when the parameters are usable."""
        if isinstance(self.quality, bool) or not isinstance(self.quality, int):
            return False
        if not 1 <= self.quality <= 100:
            return False
        try:
            Subsampling(self.subsampling)
        except ValueError:
            return False
        return True


@dataclass(frozen=True)
class _HuffTable:
    bits: tuple[int, ...]
    values: tuple[int, ...]
    codes: tuple[int, ...]
    sizes: tuple[int, ...]


def _make_table(bits: Sequence[int], values: Sequence[int]) -> _HuffTable:
    codes, sizes = compute_huffman_table(bits, values)
    return _HuffTable(tuple(bits), tuple(values), tuple(codes), tuple(sizes))


# Index: 0 = DC luma, 1 = DC chroma, 2 = AC luma, 3 = AC chroma.
_HUFF_TABLES: tuple[_HuffTable, ...] = (
    _make_table(DC_LUM_BITS, DC_LUM_VAL),
    _make_table(DC_CHROMA_BITS, DC_CHROMA_VAL),
    _make_table(AC_LUM_BITS, AC_LUM_VAL),
    _make_table(AC_CHROMA_BITS, AC_CHROMA_VAL),
)

_LAYOUTS: dict[Subsampling, tuple[tuple[tuple[int, int], ...], int, int]] = {
    Subsampling.Y_ONLY: (((1, 1),), 8, 8),
    Subsampling.H1V1: (((1, 1), (1, 1), (1, 1)), 8, 8),
    Subsampling.H2V1: (((2, 1), (1, 1), (1, 1)), 16, 8),
    Subsampling.H2V2: (((2, 2), (1, 1), (1, 1)), 16, 16),
}


class _State(enum.Enum):
    OPEN = "open"
    FINISHED = "finished"
    FAILED = "failed"


class JpegEncoder:
    """Encode an image to baseline JPEG, handing output chunks to ``write``.

    ``write`` receives ``bytes`` chunks of at most 512 bytes; returning
    ``False`` from it signals a failed write and aborts encoding with OSError.
    """

    def __init__(
        self,
        write: Callable[[bytes], object],
        width: int,
        height: int,
        channels: int,
        params: EncoderParams | None = None,
    ) -> None:
        if params is None:
            params = EncoderParams()
        if write is None or not callable(write):
            raise ValueError("write must be a callable")
        if width < 1 or height < 1:
            raise ValueError(f"image size must be positive, got {width}x{height}")
        if channels not in (1, 3, 4):
            raise ValueError(f"channels must be 1, 3 or 4, got {channels}")
        if not params.check():
            raise ValueError(f"invalid encoder parameters: {params!r}")

        self._write = write
        self._params = params
        subsampling = Subsampling(params.subsampling)
        self._subsampling = subsampling
        self._sampling, self._mcu_x, self._mcu_y = _LAYOUTS[subsampling]
        self._num_components = len(self._sampling)

        self._width = width
        self._height = height
        self._channels = channels
        self._image_x_mcu = -(-width // self._mcu_x) * self._mcu_x
        self._mcus_per_row = self._image_x_mcu // self._mcu_x

        self._lines: list[bytes] = [b""] * self._mcu_y
        self._mcu_y_ofs = 0
        self._quant = (
            quant_table(params.quality, STD_LUM_QUANT),
            quant_table(params.quality, STD_CHROMA_QUANT),
        )
        self._last_dc = [0, 0, 0]
        self._out = bytearray()
        self._bit_buffer = 0
        self._bits_in = 0
        self._state = _State.OPEN

        self._emit_headers()

    # Output plumbing

    def _put(self, chunk: bytes) -> None:
        if self._write(chunk) is False:
            self._state = _State.FAILED
            raise OSError("output stream write failed")

    def _emit(self, data: bytes | bytearray) -> None:
        self._out += data
        while len(self._out) >= _OUT_BUF_SIZE:
            chunk = bytes(self._out[:_OUT_BUF_SIZE])
            del self._out[:_OUT_BUF_SIZE]
            self._put(chunk)

    def _flush(self) -> None:
        if self._out:
            chunk = bytes(self._out)
            self._out.clear()
            self._put(chunk)

    def _put_bits(self, bits: int, length: int) -> None:
        self._bits_in += length
        self._bit_buffer |= bits << (24 - self._bits_in)
        out = bytearray()
        while self._bits_in >= 8:
            c = (self._bit_buffer >> 16) & 0xFF
            out.append(c)
            if c == 0xFF:
                out.append(0)
            self._bit_buffer = (self._bit_buffer << 8) & 0xFFFFFF
            self._bits_in -= 8
        if out:
            self._emit(out)

    def _segment(self, marker: int, payload: bytes) -> None:
        length = len(payload) + 2
        self._emit(bytes((0xFF, marker, length >> 8, length & 0xFF)) + payload)

    # Headers

    def _emit_headers(self) -> None:
        n = self._num_components
        self._emit(bytes((0xFF, _M_SOI)))
        self._segment(_M_APP0, b"JFIF\x00" + bytes((1, 1, 0, 0, 1, 0, 1, 0, 0)))
        for index in range(2 if n == 3 else 1):
            self._segment(_M_DQT, bytes((index,)) + bytes(self._quant[index]))

        sof = bytearray((8,))
        sof += self._height.to_bytes(2, "big") + self._width.to_bytes(2, "big")
        sof.append(n)
        for i, (h, v) in enumerate(self._sampling):
            sof += bytes((i + 1, (h << 4) + v, 1 if i > 0 else 0))
        self._segment(_M_SOF0, bytes(sof))

        tables = [(0, 0, False), (2, 0, True)]
        if n == 3:
            tables += [(1, 1, False), (3, 1, True)]
        for table_no, index, is_ac in tables:
            table = _HUFF_TABLES[table_no]
            count = sum(table.bits[1:17])
            payload = bytes((index + (0x10 if is_ac else 0),))
            payload += bytes(table.bits[1:17]) + bytes(table.values[:count])
            self._segment(_M_DHT, payload)

        sos = bytearray((n,))
        for i in range(n):
            sos += bytes((i + 1, 0x00 if i == 0 else 0x11))
        sos += bytes((0, 63, 0))
        self._segment(_M_SOS, bytes(sos))

    # Block loading

    def _block_grey(self, x: int) -> list[int]:
        start = x * 8
        return [v - 128 for row in self._lines[:8] for v in row[start:start + 8]]

    def _block_8_8(self, x: int, y: int, c: int) -> list[int]:
        start = x * 24 + c
        rows = self._lines[y * 8:y * 8 + 8]
        return [v - 128 for row in rows for v in row[start:start + 24:3]]

    def _block_16_8(self, x: int, c: int) -> list[int]:
        start = x * 48 + c
        samples: list[int] = []
        for pair in range(8):
            top = self._lines[2 * pair][start:start + 48:3]
            bottom = self._lines[2 * pair + 1][start:start + 48:3]
            even_bias, odd_bias = (0, 2) if pair % 2 == 0 else (2, 0)
            for k in range(8):
                total = top[2 * k] + top[2 * k + 1] + bottom[2 * k] + bottom[2 * k + 1]
                total += even_bias if k % 2 == 0 else odd_bias
                samples.append((total >> 2) - 128)
        return samples

    def _block_16_8_8(self, x: int, c: int) -> list[int]:
        start = x * 48 + c
        samples: list[int] = []
        for row in self._lines[:8]:
            vals = row[start:start + 48:3]
            samples.extend(((vals[2 * k] + vals[2 * k + 1]) >> 1) - 128 for k in range(8))
        return samples

    # Block coding

    def _quantize(self, coefficients: list[int], component: int) -> list[int]:
        table = self._quant[1 if component > 0 else 0]
        result = []
        for pos, q in zip(ZIGZAG, table):
            value = coefficients[pos]
            magnitude = abs(value) + (q >> 1)
            if magnitude < q:
                result.append(0)
            else:
                result.append(-(magnitude // q) if value < 0 else magnitude // q)
        return result

    def _code_block(self, samples: list[int], component: int) -> None:
        coeffs = self._quantize(fdct(samples), component)
        dc_table = _HUFF_TABLES[0 if component == 0 else 1]
        ac_table = _HUFF_TABLES[2 if component == 0 else 3]

        diff = coeffs[0] - self._last_dc[component]
        self._last_dc[component] = coeffs[0]
        value = diff - 1 if diff < 0 else diff
        nbits = abs(diff).bit_length()
        self._put_bits(dc_table.codes[nbits], dc_table.sizes[nbits])
        if nbits:
            self._put_bits(value & ((1 << nbits) - 1), nbits)

        run = 0
        for coefficient in coeffs[1:]:
            if coefficient == 0:
                run += 1
                continue
            while run >= 16:
                self._put_bits(ac_table.codes[0xF0], ac_table.sizes[0xF0])
                run -= 16
            value = coefficient - 1 if coefficient < 0 else coefficient
            nbits = abs(coefficient).bit_length()
            symbol = (run << 4) + nbits
            self._put_bits(ac_table.codes[symbol], ac_table.sizes[symbol])
            self._put_bits(value & ((1 << nbits) - 1), nbits)
            run = 0
        if run:
            self._put_bits(ac_table.codes[0], ac_table.sizes[0])

    def _process_mcu_row(self) -> None:
        mode = self._subsampling
        for i in range(self._mcus_per_row):
            if mode is Subsampling.Y_ONLY:
                self._code_block(self._block_grey(i), 0)
            elif mode is Subsampling.H1V1:
                for c in range(3):
                    self._code_block(self._block_8_8(i, 0, c), c)
            elif mode is Subsampling.H2V1:
                self._code_block(self._block_8_8(i * 2, 0, 0), 0)
                self._code_block(self._block_8_8(i * 2 + 1, 0, 0), 0)
                self._code_block(self._block_16_8_8(i, 1), 1)
                self._code_block(self._block_16_8_8(i, 2), 2)
            else:
                self._code_block(self._block_8_8(i * 2, 0, 0), 0)
                self._code_block(self._block_8_8(i * 2 + 1, 0, 0), 0)
                self._code_block(self._block_8_8(i * 2, 1, 0), 0)
                self._code_block(self._block_8_8(i * 2 + 1, 1, 0), 0)
                self._code_block(self._block_16_8(i, 1), 1)
                self._code_block(self._block_16_8(i, 2), 2)

    # Public interface

    def _ensure_open(self) -> None:
        if self._state is _State.FAILED:
            raise OSError("output stream write failed earlier")
        if self._state is _State.FINISHED:
            raise RuntimeError("encoder has already finished")

    def process_scanline(self, line: bytes | bytearray | memoryview) -> None:
        """Feed one scanline of ``width * channels`` bytes."""
        self._ensure_open()
        data = bytes(line)
        needed = self._width * self._channels
        if len(data) < needed:
            raise ValueError(f"scanline needs {needed} bytes, got {len(data)}")

        width = self._width
        if self._num_components == 1:
            converted = rgb_to_y(data[:width * 3]) if self._channels == 3 else data[:width]
        elif self._channels == 3:
            converted = rgb_to_ycc(data[:width * 3])
        else:
            converted = y_to_ycc(data[:width])

        last_pixel = converted[-self._num_components:]
        self._lines[self._mcu_y_ofs] = converted + last_pixel * (self._image_x_mcu - width)
        self._mcu_y_ofs += 1
        if self._mcu_y_ofs == self._mcu_y:
            self._process_mcu_row()
            self._mcu_y_ofs = 0

    def finish(self) -> None:
        """Encode any pending rows and write the end of the image."""
        self._ensure_open()
        if self._mcu_y_ofs:
            last = self._lines[self._mcu_y_ofs - 1]
            for i in range(self._mcu_y_ofs, self._mcu_y):
                self._lines[i] = last
            self._process_mcu_row()
            self._mcu_y_ofs = 0
        self._put_bits(0x7F, 7)
        self._emit(bytes((0xFF, _M_EOI)))
        self._flush()
        self._state = _State.FINISHED