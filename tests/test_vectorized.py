"""Tests for vectorised batch pricing."""

import numpy as np
import pytest
from optformula import (
    OptionSpec, BlackMarketData, NormalMarketData, SimpleOptionDatum, CALL, PUT,
    black, bachelier,
)
from optformula.formulas_vec import (
    to_arrays, black_price_vec, black_vega_vec, bachelier_price_vec,
)

BOOK = [
    SimpleOptionDatum(forward=104.0, K=94.0, T=4.5, discount_factor=0.9, kind=CALL),
    SimpleOptionDatum(forward=104.0, K=124.0, T=4.5, discount_factor=0.9, kind=PUT),
    SimpleOptionDatum(forward=100.0, K=100.0, T=0.25, discount_factor=0.99, kind=CALL),
    SimpleOptionDatum(forward=100.0, K=0.0, T=1.0, discount_factor=0.95, kind=CALL),
    SimpleOptionDatum(forward=100.0, K=90.0, T=0.0, discount_factor=0.95, kind=CALL),
    SimpleOptionDatum(forward=100.0, K=90.0, T=0.0, discount_factor=0.95, kind=PUT),
]


def _scalar(engine, market_cls, datum, sigma):
    option = OptionSpec(K=datum.K, T=datum.T, kind=datum.kind)
    return engine(option, market_cls(datum.forward, datum.discount_factor, sigma))


class TestToArrays:
    def test_shapes_and_sign(self):
        F, K, T, df, sign = to_arrays(BOOK)
        for arr in (F, K, T, df, sign):
            assert arr.shape == (len(BOOK),)
        np.testing.assert_array_equal(sign, [1, -1, 1, 1, 1, -1])


class TestBlackVec:
    def test_matches_scalar(self):
        got = black_price_vec(BOOK, 0.3)
        expected = [_scalar(black.price, BlackMarketData, d, 0.3) for d in BOOK]
        np.testing.assert_allclose(got, expected, rtol=1e-12, atol=1e-14)

    def test_per_option_vols(self):
        vols = np.array([0.1, 0.2, 0.3, 0.4, 0.5, 0.6])
        got = black_price_vec(BOOK, vols)
        expected = [_scalar(black.price, BlackMarketData, d, v) for d, v in zip(BOOK, vols)]
        np.testing.assert_allclose(got, expected, rtol=1e-12, atol=1e-14)

    def test_zero_vol_intrinsic(self):
        got = black_price_vec(BOOK, 0.0)
        assert np.all(np.isfinite(got))
        assert got[0] == pytest.approx(0.9 * 10.0, abs=1e-15)
        assert got[1] == pytest.approx(0.9 * 20.0, abs=1e-15)
        assert got[2] == 0.0

    def test_vega_matches_scalar(self):
        got = black_vega_vec(BOOK, 0.3)
        expected = [_scalar(black.vega, BlackMarketData, d, 0.3) for d in BOOK]
        np.testing.assert_allclose(got, expected, rtol=1e-12, atol=1e-14)

    def test_prices_decrease_with_strike(self):
        book = [SimpleOptionDatum(100.0, K, 1.0, 1.0, CALL) for K in np.linspace(80, 120, 41)]
        assert np.all(np.diff(black_price_vec(book, 0.2)) < 0)


class TestBachelierVec:
    def test_matches_scalar(self):
        got = bachelier_price_vec(BOOK, 15.0)
        expected = [_scalar(bachelier.price, NormalMarketData, d, 15.0) for d in BOOK]
        np.testing.assert_allclose(got, expected, rtol=1e-12, atol=1e-14)

    def test_zero_vol_intrinsic(self):
        got = bachelier_price_vec(BOOK, 0.0)
        expected = [_scalar(bachelier.price, NormalMarketData, d, 0.0) for d in BOOK]
        np.testing.assert_array_equal(got, expected)
