import pytest
from hypothesis import given, strategies as st

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

SPECS = [
    (DC_LUM_BITS, DC_LUM_VAL),
    (AC_LUM_BITS, AC_LUM_VAL),
    (DC_CHROMA_BITS, DC_CHROMA_VAL),
    (AC_CHROMA_BITS, AC_CHROMA_VAL),
]


def test_zigzag_is_permutation_and_usable_as_base_table():
    assert sorted(ZIGZAG) == list(range(64))
    values = [z + 1 for z in ZIGZAG]
    assert list(quant_table(50, values)) == values


def test_quality_50_keeps_base_table():
    assert quant_table(50, STD_LUM_QUANT) == STD_LUM_QUANT
    assert quant_table(50, STD_CHROMA_QUANT) == STD_CHROMA_QUANT


def test_quality_100_is_all_ones():
    assert set(quant_table(100, STD_LUM_QUANT)) == {1}


@given(st.integers(min_value=1, max_value=100))
def test_quant_values_in_byte_range(quality):
    table = quant_table(quality, STD_LUM_QUANT)
    assert len(table) == 64
    assert all(1 <= v <= 255 for v in table)


@given(st.integers(min_value=1, max_value=99))
def test_higher_quality_never_coarser(quality):
    low = quant_table(quality, STD_CHROMA_QUANT)
    high = quant_table(quality + 1, STD_CHROMA_QUANT)
    assert all(h <= l for h, l in zip(high, low))


@pytest.mark.parametrize("quality", [0, 101, -5])
def test_quant_rejects_bad_quality(quality):
    with pytest.raises(ValueError):
        quant_table(quality, STD_LUM_QUANT)


def test_quant_rejects_short_base():
    with pytest.raises(ValueError):
        quant_table(75, STD_LUM_QUANT[:10])


@pytest.mark.parametrize("bits,values", SPECS)
def test_huffman_sizes_match_bit_counts(bits, values):
    codes, sizes = compute_huffman_table(bits, values)
    for length in range(1, 17):
        assert sum(1 for s in sizes if s == length) == bits[length]
    assert sum(1 for s in sizes if s) == sum(bits[1:])


@pytest.mark.parametrize("bits,values", SPECS)
def test_huffman_codes_are_prefix_free(bits, values):
    codes, sizes = compute_huffman_table(bits, values)
    words = [format(codes[v], f"0{sizes[v]}b") for v in values[: sum(bits[1:])]]
    assert all(len(w) == sizes[v] for w, v in zip(words, values))
    for a in words:
        for b in words:
            if a is not b:
                assert not b.startswith(a)


def test_huffman_dc_luminance_first_code():
    codes, sizes = compute_huffman_table(DC_LUM_BITS, DC_LUM_VAL)
    assert (codes[0], sizes[0]) == (0, 2)


def test_huffman_rejects_bad_input():
    with pytest.raises(ValueError):
        compute_huffman_table(DC_LUM_BITS[:5], DC_LUM_VAL)
    with pytest.raises(ValueError):
        compute_huffman_table(AC_LUM_BITS, AC_LUM_VAL[:10])


def test_fdct_zero_block():
    assert fdct([0] * 64) == [0] * 64


@pytest.mark.parametrize("level", [-128, -3, 5, 127])
def test_fdct_constant_block_has_only_dc(level):
    out = fdct([level] * 64)
    assert out[1:] == [0] * 63
    assert (out[0] > 0) == (level > 0)


def test_fdct_dc_is_monotonic():
    assert fdct([10] * 64)[0] < fdct([20] * 64)[0]


def test_fdct_does_not_modify_input():
    block = list(range(-32, 32))
    copy = list(block)
    fdct(block)
    assert block == copy


def test_fdct_rejects_wrong_size():
    with pytest.raises(ValueError):
        fdct([0] * 63)


@given(st.integers(min_value=0, max_value=255))
def test_grey_rgb_maps_to_neutral_ycc(v):
    assert rgb_to_ycc(bytes((v, v, v))) == bytes((v, 128, 128))


@given(st.binary(min_size=0, max_size=60).filter(lambda b: len(b) % 3 == 0))
def test_rgb_to_y_matches_ycc_luma(data):
    assert rgb_to_y(data) == rgb_to_ycc(data)[0::3]


@given(st.binary(max_size=40))
def test_y_to_ycc_layout(data):
    out = y_to_ycc(data)
    assert len(out) == 3 * len(data)
    assert out[0::3] == data
    assert set(out[1::3]) | set(out[2::3]) <= {128}


def test_rgb_rejects_partial_pixel():
    with pytest.raises(ValueError):
        rgb_to_ycc(b"\x01\x02")
    with pytest.raises(ValueError):
        rgb_to_y(b"\x01")