"""Tests for the value types."""

from dataclasses import FrozenInstanceError

import pytest
from optformula import (
    OptionSpec, BlackMarketData, NormalMarketData, DerivativeResult,
    SimpleOptionDatum, CALL, PUT, FORWARD, VOLATILITY, STRIKE,
)


class TestOptionSpec:
    def test_sign(self):
        assert OptionSpec(K=100.0, T=1.0, kind=CALL).sign == 1
        assert OptionSpec(K=100.0, T=1.0, kind=PUT).sign == -1
        assert OptionSpec(K=100.0, T=1.0).is_call

    def test_value_equality(self):
        assert OptionSpec(K=100.0, T=1.0, kind=PUT) == OptionSpec(K=100.0, T=1.0, kind=PUT)
        assert OptionSpec(K=100.0, T=1.0, kind=PUT) != OptionSpec(K=100.0, T=1.0, kind=CALL)

    def test_zero_strike_allowed(self):
        assert OptionSpec(K=0.0, T=1.0).K == 0.0

    def test_bad_kind(self):
        with pytest.raises(ValueError):
            OptionSpec(K=100.0, T=1.0, kind="straddle")

    def test_immutable(self):
        opt = OptionSpec(K=100.0, T=1.0)
        with pytest.raises(FrozenInstanceError):
            opt.K = 90.0


class TestMarketData:
    def test_fields(self):
        data = BlackMarketData(forward=104.0, numeraire=0.9, sigma=0.5)
        assert (data.forward, data.numeraire, data.sigma) == (104.0, 0.9, 0.5)

    def test_immutable(self):
        data = NormalMarketData(forward=-0.001, numeraire=0.99, sigma=0.01)
        with pytest.raises(FrozenInstanceError):
            data.sigma = 0.02


class TestDerivativeResult:
    def test_access(self):
        res = DerivativeResult(1.5, (0.1, 0.2, 0.3))
        assert res.value == 1.5
        assert res.derivative(FORWARD) == 0.1
        assert res.derivative(VOLATILITY) == 0.2
        assert res.derivative(STRIKE) == 0.3
        assert res.derivatives == (0.1, 0.2, 0.3)

    def test_list_input_becomes_tuple(self):
        res = DerivativeResult(1.0, [1, 2, 3])
        assert res.derivatives == (1.0, 2.0, 3.0)
        assert isinstance(res.derivatives, tuple)

    def test_wrong_length(self):
        with pytest.raises(ValueError):
            DerivativeResult(1.0, (0.1, 0.2))
        with pytest.raises(ValueError):
            DerivativeResult(1.0, (0.1, 0.2, 0.3, 0.4))


class TestSimpleOptionDatum:
    def test_fields(self):
        d = SimpleOptionDatum(forward=100.0, K=95.0, T=0.5, discount_factor=0.97, kind=PUT)
        assert (d.forward, d.K, d.T, d.discount_factor, d.kind) == (100.0, 95.0, 0.5, 0.97, PUT)

    def test_bad_kind(self):
        with pytest.raises(ValueError):
            SimpleOptionDatum(forward=100.0, K=95.0, T=0.5, discount_factor=0.97, kind="c")
