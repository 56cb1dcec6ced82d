# gaussian.py
# Standard-normal CDF / PDF used by the formula engines.

from __future__ import annotations
from scipy.stats import norm

_N = norm.cdf   # standard-normal CDF (ndtr; clean underflow in the tails)
_n = norm.pdf   # standard-normal PDF


def norm_cdf(x: float) -> float:
    """N(x) as a Python float."""
    return float(_N(x))


def norm_pdf(x: float) -> float:
    """n(x) as a Python float."""
    return float(_n(x))


def norm_ppf(p: float) -> float:
    """Inverse of N, as a Python float."""
    return float(norm.ppf(p))
