"""Property tests for the 32-bit price codec."""

from __future__ import annotations

import importlib.util

import pytest

if importlib.util.find_spec("hypothesis") is None:  # pragma: no cover
    pytest.skip("hypothesis not installed", allow_module_level=True)

import hypothesis.strategies as st
from hypothesis import given, settings

from src.kernels.python.price_codec import CODEWORD_MAX, MAX_PRICE_BITS, pack_price, unpack_price


prices = st.integers(min_value=1, max_value=(1 << MAX_PRICE_BITS) - 1)
codewords = st.integers(min_value=0, max_value=CODEWORD_MAX)


@given(st.integers(min_value=1, max_value=(1 << 25) - 1))
def test_exact_round_trip_below_2_25(v: int) -> None:
    assert unpack_price(pack_price(v)) == v


@settings(max_examples=500)
@given(prices)
def test_relative_error_bounded(v: int) -> None:
    q = unpack_price(pack_price(v))
    assert q <= v
    # (v - q) / v <= 2^-24
    assert (v - q) << 24 <= v


@settings(max_examples=500)
@given(prices, prices)
def test_monotonic(a: int, b: int) -> None:
    if a <= b:
        assert pack_price(a) <= pack_price(b)
    else:
        assert pack_price(a) >= pack_price(b)


@given(codewords)
def test_decode_is_total_and_canonical_above_zero(c: int) -> None:
    v = unpack_price(c)
    assert 0 <= v < (1 << MAX_PRICE_BITS)
    if v > 0:
        assert unpack_price(pack_price(v)) == v
