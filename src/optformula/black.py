# black.py
# Black-76 (lognormal forward) price with exact first- and second-order
# derivatives.  All prices are numeraire-scaled.

from __future__ import annotations
import logging
import math
from dataclasses import dataclass

import numpy as np
from scipy.optimize import brentq

from .core import (
    NEAR_ZERO, CALL, PUT, FORWARD, VOLATILITY, STRIKE, N_AXES,
    OptionSpec, BlackMarketData, DerivativeResult, check_not_none,
)
from .gaussian import norm_cdf, norm_pdf, norm_ppf

logger = logging.getLogger(__name__)

__all__ = [
    "BlackPriceFunction",
    "price_function",
    "price",
    "price_adjoint",
    "price_adjoint2",
    "delta",
    "gamma",
    "vega",
    "vanna",
    "vomma",
    "dual_delta",
    "dual_gamma",
    "cross_gamma",
    "theta",
    "strike_for_delta",
    "strike_for_delta_adjoint",
    "implied_volatility",
]


# ---------------------------------------------------------------------------
# Internal helpers
# ---------------------------------------------------------------------------
def _check(option, data) -> None:
    check_not_none(option, "option")
    check_not_none(data, "data")


def _sigma_root_t(option: OptionSpec, data: BlackMarketData) -> float:
    return data.sigma * math.sqrt(option.T)


def _is_limit(option: OptionSpec, s: float) -> bool:
    """Strike zero or vanishing sigma*sqrt(T): the payoff is deterministic."""
    return option.K < NEAR_ZERO or s < NEAR_ZERO


def _d1_d2(F: float, K: float, s: float) -> tuple[float, float]:
    d1 = math.log(F / K) / s + 0.5 * s
    return d1, d1 - s


def _intrinsic(option: OptionSpec, data: BlackMarketData) -> DerivativeResult:
    """Discounted intrinsic value and its one-sided slopes."""
    sign = option.sign
    x = sign * (data.forward - option.K)
    D = data.numeraire
    logger.debug(
        "Black limit branch: K=%g, sigma=%g, T=%g", option.K, data.sigma, option.T
    )
    if x > 0:
        return DerivativeResult(D * x, (D * sign, 0.0, -D * sign))
    return DerivativeResult(0.0, (0.0, 0.0, 0.0))


# ---------------------------------------------------------------------------
# Price function
# ---------------------------------------------------------------------------
@dataclass(frozen=True)
class BlackPriceFunction:
    """Black price bound to one option; call it with market data.

    Holds nothing but the (immutable) option, so one instance can be kept
    and reused from any thread.
    """
    option: OptionSpec

    def __call__(self, data: BlackMarketData) -> float:
        return price(self.option, data)


def price_function(option: OptionSpec) -> BlackPriceFunction:
    """Return a reusable ``BlackMarketData -> price`` callable for *option*."""
    return BlackPriceFunction(check_not_none(option, "option"))


# ---------------------------------------------------------------------------
# Price and adjoints
# ---------------------------------------------------------------------------
def price(option: OptionSpec, data: BlackMarketData) -> float:
    """Black-76 price, scaled by the numeraire.

    Strike zero gives ``numeraire * forward`` for a call and 0 for a put;
    ``sigma * sqrt(T) < 1e-16`` gives the discounted intrinsic value.
    """
    _check(option, data)
    s = _sigma_root_t(option, data)
    if _is_limit(option, s):
        return _intrinsic(option, data).value
    sign = option.sign
    F, K = data.forward, option.K
    d1, d2 = _d1_d2(F, K, s)
    return data.numeraire * sign * (F * norm_cdf(sign * d1) - K * norm_cdf(sign * d2))


def price_adjoint(option: OptionSpec, data: BlackMarketData) -> DerivativeResult:
    """Price and its derivatives with respect to forward, volatility, strike."""
    _check(option, data)
    s = _sigma_root_t(option, data)
    if _is_limit(option, s):
        return _intrinsic(option, data)
    sign = option.sign
    F, K, D = data.forward, option.K, data.numeraire
    d1, d2 = _d1_d2(F, K, s)
    nF = norm_cdf(sign * d1)
    nS = norm_cdf(sign * d2)
    value = D * sign * (F * nF - K * nS)
    forward_bar = D * sign * nF
    vol_bar = D * F * math.sqrt(option.T) * norm_pdf(d1)
    strike_bar = -D * sign * nS
    return DerivativeResult(value, (forward_bar, vol_bar, strike_bar))


def price_adjoint2(
    option: OptionSpec, data: BlackMarketData
) -> tuple[DerivativeResult, np.ndarray]:
    """Price, first derivatives and the 3x3 Hessian.

    Axes are (forward, volatility, strike) for both the gradient and the
    Hessian.  The Hessian is zero in the strike-zero and intrinsic branches.

    Returns
    -------
    tuple[DerivativeResult, np.ndarray]
        First-order result and a freshly allocated symmetric Hessian.
    """
    first = price_adjoint(option, data)
    hessian = np.zeros((N_AXES, N_AXES))
    s = _sigma_root_t(option, data)
    if _is_limit(option, s):
        return first, hessian

    F, K, D, T = data.forward, option.K, data.numeraire, option.T
    sqrt_T = math.sqrt(T)
    d1, d2 = _d1_d2(F, K, s)
    n1 = norm_pdf(d1)
    n2 = norm_pdf(d2)

    ff = D * n1 / (F * s)
    vv = D * F * T * n1 * d1 * d2 / s
    kk = D * n2 / (K * s)
    fv = -D * sqrt_T * n1 * d2 / s
    fk = -D * n1 / (K * s)
    kv = D * sqrt_T * n2 * d1 / s

    hessian[FORWARD, FORWARD] = ff
    hessian[VOLATILITY, VOLATILITY] = vv
    hessian[STRIKE, STRIKE] = kk
    hessian[FORWARD, VOLATILITY] = hessian[VOLATILITY, FORWARD] = fv
    hessian[FORWARD, STRIKE] = hessian[STRIKE, FORWARD] = fk
    hessian[STRIKE, VOLATILITY] = hessian[VOLATILITY, STRIKE] = kv
    return first, hessian


# ---------------------------------------------------------------------------
# Named Greeks
# ---------------------------------------------------------------------------
def delta(option: OptionSpec, data: BlackMarketData) -> float:
    """dPrice/dForward, numeraire-scaled."""
    return price_adjoint(option, data).derivative(FORWARD)


def vega(option: OptionSpec, data: BlackMarketData) -> float:
    """dPrice/dSigma (absolute vol units, not per 1%)."""
    return price_adjoint(option, data).derivative(VOLATILITY)


def gamma(option: OptionSpec, data: BlackMarketData) -> float:
    return float(price_adjoint2(option, data)[1][FORWARD, FORWARD])


def vanna(option: OptionSpec, data: BlackMarketData) -> float:
    return float(price_adjoint2(option, data)[1][FORWARD, VOLATILITY])


def vomma(option: OptionSpec, data: BlackMarketData) -> float:
    """Second volatility derivative (volga)."""
    return float(price_adjoint2(option, data)[1][VOLATILITY, VOLATILITY])


def dual_delta(option: OptionSpec, data: BlackMarketData) -> float:
    """dPrice/dStrike."""
    return price_adjoint(option, data).derivative(STRIKE)


def dual_gamma(option: OptionSpec, data: BlackMarketData) -> float:
    return float(price_adjoint2(option, data)[1][STRIKE, STRIKE])


def cross_gamma(option: OptionSpec, data: BlackMarketData) -> float:
    """d2Price/dForward/dStrike."""
    return float(price_adjoint2(option, data)[1][FORWARD, STRIKE])


def theta(option: OptionSpec, data: BlackMarketData) -> float:
    """Driftless theta, -dPrice/dT with forward and numeraire held fixed."""
    _check(option, data)
    s = _sigma_root_t(option, data)
    if _is_limit(option, s):
        return 0.0
    d1, _ = _d1_d2(data.forward, option.K, s)
    return -data.numeraire * data.forward * norm_pdf(d1) * data.sigma / (2.0 * math.sqrt(option.T))


def _delta_sign(forward: float, forward_delta: float, T: float, sigma: float, kind: str) -> float:
    if forward < 0.0 or T < 0.0 or sigma < 0.0:
        raise ValueError(
            f"forward, T and sigma must be non-negative; have {forward}, {T}, {sigma}"
        )
    if kind not in (CALL, PUT):
        raise ValueError(f"kind must be {CALL!r} or {PUT!r}; have {kind!r}")
    is_call = kind == CALL
    if not (0.0 < forward_delta < 1.0 if is_call else -1.0 < forward_delta < 0.0):
        raise ValueError(f"{kind} delta out of range: {forward_delta}")
    return 1.0 if is_call else -1.0


def strike_for_delta(
    forward: float, forward_delta: float, T: float, sigma: float, kind: str = CALL,
) -> float:
    """Strike whose undiscounted forward delta is *forward_delta*.

    Inverts ``N(d1)`` (call) or ``-N(-d1)`` (put) in closed form.

    Raises
    ------
    ValueError
        For a negative forward, time or volatility, or a delta outside
        ``(0, 1)`` for a call / ``(-1, 0)`` for a put.
    """
    sign = _delta_sign(forward, forward_delta, T, sigma, kind)
    d1 = sign * norm_ppf(sign * forward_delta)
    s = sigma * math.sqrt(T)
    return forward * math.exp(-d1 * s + 0.5 * s * s)


def strike_for_delta_adjoint(
    forward: float, forward_delta: float, T: float, sigma: float, kind: str = CALL,
) -> tuple[float, np.ndarray]:
    """``strike_for_delta`` and its derivatives.

    Returns
    -------
    tuple[float, np.ndarray]
        The strike and its derivatives with respect to
        ``[forward_delta, forward, T, sigma]``.  Needs ``T > 0``.
    """
    sign = _delta_sign(forward, forward_delta, T, sigma, kind)
    if T <= 0.0:
        raise ValueError("strike derivatives need a positive time to expiry")
    sqrt_T = math.sqrt(T)
    d1 = sign * norm_ppf(sign * forward_delta)
    s = sigma * sqrt_T
    growth = math.exp(-d1 * s + 0.5 * s * s)
    K = forward * growth
    derivatives = np.array([
        -K * s / norm_pdf(d1),
        growth,
        K * (-sigma * d1 / (2.0 * sqrt_T) + 0.5 * sigma * sigma),
        K * (-sqrt_T * d1 + sigma * T),
    ])
    return K, derivatives


# ---------------------------------------------------------------------------
# Implied volatility
# ---------------------------------------------------------------------------
def implied_volatility(
    option: OptionSpec, forward: float, numeraire: float, target_price: float,
    *, tol: float = 1e-12, maxiter: int = 200, max_vol: float = 100.0,
) -> float:
    """Brent root find on the lognormal volatility.

    Raises
    ------
    ValueError
        If *target_price* lies outside ``[intrinsic, numeraire * forward]``
        for a call or ``[intrinsic, numeraire * K]`` for a put.
    """
    check_not_none(option, "option")
    lower = numeraire * max(option.sign * (forward - option.K), 0.0)
    upper = numeraire * (forward if option.is_call else option.K)
    if not lower <= target_price < upper:
        logger.warning(
            "target price %g outside Black bounds [%g, %g)", target_price, lower, upper
        )
        raise ValueError(
            f"target_price {target_price} outside arbitrage bounds [{lower}, {upper})"
        )
    if target_price == lower:
        return 0.0

    def f(sig):
        return price(option, BlackMarketData(forward, numeraire, sig)) - target_price

    a, b = 1e-12, 1.0
    while f(b) < 0:
        if b >= max_vol:
            raise ValueError(f"no implied volatility below {max_vol}")
        a, b = b, 2.0 * b
    return float(brentq(f, a, b, xtol=tol, maxiter=maxiter))
