# bachelier.py
# Bachelier (normal, additive volatility) price, adjoint and Greeks.
#
# ``raw_price`` is the forward (unscaled) formula; every other public
# function multiplies by the numeraire.

from __future__ import annotations
import logging
import math
from dataclasses import dataclass

from scipy.optimize import brentq

from .core import (
    NEAR_ZERO, CALL,
    OptionSpec, NormalMarketData, DerivativeResult, check_not_none,
)
from .gaussian import norm_cdf, norm_pdf

logger = logging.getLogger(__name__)

__all__ = [
    "NormalPriceFunction",
    "raw_price",
    "price_function",
    "price",
    "price_adjoint",
    "delta",
    "gamma",
    "vega",
    "theta",
    "implied_volatility",
]

_SQRT_2PI = math.sqrt(2.0 * math.pi)

# forward and strike closer than this count as at the money on the limit branch
SMALL = 1e-13


def _check(option, data) -> None:
    check_not_none(option, "option")
    check_not_none(data, "data")


def raw_price(forward: float, K: float, T: float, sigma: float, kind: str = CALL) -> float:
    """Bachelier price before numeraire scaling.

    With ``d = sign * (F - K) / (sigma * sqrt(T))``:
    ``sign * (F - K) * N(d) + sigma * sqrt(T) * n(d)``, or the intrinsic value
    ``max(sign * (F - K), 0)`` when ``sigma * sqrt(T) < 1e-16``.
    """
    sign = 1 if kind == CALL else -1
    s = sigma * math.sqrt(T)
    x = sign * (forward - K)
    if s < NEAR_ZERO:
        return max(x, 0.0)
    d = x / s
    return x * norm_cdf(d) + s * norm_pdf(d)


# ---------------------------------------------------------------------------
# Price function
# ---------------------------------------------------------------------------
@dataclass(frozen=True)
class NormalPriceFunction:
    """Bachelier price bound to one option; call it with market data."""
    option: OptionSpec

    def __call__(self, data: NormalMarketData) -> float:
        return price(self.option, data)


def price_function(option: OptionSpec) -> NormalPriceFunction:
    """Return a reusable ``NormalMarketData -> price`` callable for *option*."""
    return NormalPriceFunction(check_not_none(option, "option"))


def price(option: OptionSpec, data: NormalMarketData) -> float:
    """Numeraire-scaled Bachelier price."""
    _check(option, data)
    return data.numeraire * raw_price(
        data.forward, option.K, option.T, data.sigma, option.kind
    )


# ---------------------------------------------------------------------------
# Adjoint
# ---------------------------------------------------------------------------
def price_adjoint(option: OptionSpec, data: NormalMarketData) -> DerivativeResult:
    """Price and its derivatives with respect to forward, volatility, strike.

    In the limit branch the slopes are the one-sided intrinsic ones
    (``sign``/``-sign`` in the money, zero otherwise) and vega is zero.
    """
    _check(option, data)
    sign = option.sign
    D, T = data.numeraire, option.T
    s = data.sigma * math.sqrt(T)
    x = sign * (data.forward - option.K)
    if s < NEAR_ZERO:
        logger.debug("Bachelier limit branch: sigma=%g, T=%g", data.sigma, T)
        if x > 0:
            return DerivativeResult(D * x, (D * sign, 0.0, -D * sign))
        return DerivativeResult(0.0, (0.0, 0.0, 0.0))
    d = x / s
    cdf = norm_cdf(d)
    pdf = norm_pdf(d)
    value = D * (x * cdf + s * pdf)
    return DerivativeResult(
        value, (D * sign * cdf, D * math.sqrt(T) * pdf, -D * sign * cdf)
    )


# ---------------------------------------------------------------------------
# Greeks
# ---------------------------------------------------------------------------
def delta(option: OptionSpec, data: NormalMarketData) -> float:
    """dPrice/dForward; identical to ``price_adjoint`` slot 0."""
    _check(option, data)
    sign = option.sign
    s = data.sigma * math.sqrt(option.T)
    x = sign * (data.forward - option.K)
    if s < NEAR_ZERO:
        return data.numeraire * sign if x > 0 else 0.0
    return data.numeraire * sign * norm_cdf(x / s)


def vega(option: OptionSpec, data: NormalMarketData) -> float:
    """dPrice/dSigma; identical to ``price_adjoint`` slot 1."""
    _check(option, data)
    s = data.sigma * math.sqrt(option.T)
    if s < NEAR_ZERO:
        return 0.0
    x = option.sign * (data.forward - option.K)
    return data.numeraire * math.sqrt(option.T) * norm_pdf(x / s)


def gamma(option: OptionSpec, data: NormalMarketData) -> float:
    """d2Price/dForward2.

    At zero ``sigma * sqrt(T)`` the intrinsic payoff has a kink at the
    strike: the result is ``+inf`` when ``abs(forward - K) < SMALL`` and 0
    elsewhere.
    """
    _check(option, data)
    s = data.sigma * math.sqrt(option.T)
    dx = data.forward - option.K
    if s < NEAR_ZERO:
        return math.inf if abs(dx) < SMALL else 0.0
    return data.numeraire * norm_pdf(dx / s) / s


def theta(option: OptionSpec, data: NormalMarketData) -> float:
    """-dPrice/dT.

    In the limit branch the price no longer depends on time (0), except an
    at-the-money option (within ``SMALL``) with positive volatility at
    expiry, whose time value decays like sqrt(T) (``-inf``).
    """
    _check(option, data)
    T, sigma = option.T, data.sigma
    s = sigma * math.sqrt(T)
    dx = data.forward - option.K
    if s < NEAR_ZERO:
        if abs(dx) < SMALL and sigma > 0.0:
            return -math.inf
        return 0.0
    return -data.numeraire * sigma * norm_pdf(dx / s) / (2.0 * math.sqrt(T))


# ---------------------------------------------------------------------------
# Implied volatility
# ---------------------------------------------------------------------------
def implied_volatility(
    option: OptionSpec, forward: float, numeraire: float, target_price: float,
    *, tol: float = 1e-12, maxiter: int = 200,
) -> float:
    """Brent root find on the normal volatility.

    Raises
    ------
    ValueError
        If *target_price* is below the discounted intrinsic value.
    """
    check_not_none(option, "option")
    lower = numeraire * max(option.sign * (forward - option.K), 0.0)
    if target_price < lower:
        logger.warning("target price %g below intrinsic %g", target_price, lower)
        raise ValueError(
            f"target_price {target_price} below discounted intrinsic {lower}"
        )
    if target_price == lower:
        return 0.0
    if option.T <= 0.0:
        raise ValueError("implied volatility undefined at zero time to expiry")

    def f(sig):
        return price(option, NormalMarketData(forward, numeraire, sig)) - target_price

    # ATM price is sigma*sqrt(T)/sqrt(2*pi); start the bracket from that inversion.
    b = max(_SQRT_2PI * (target_price / numeraire) / math.sqrt(option.T), 1e-8)
    while f(b) < 0:
        b *= 2.0
    return float(brentq(f, 0.0, b, xtol=tol, maxiter=maxiter))
