# formulas_vec.py
# Vectorised Black-76 / Bachelier batch pricing over SimpleOptionDatum records.
# ``sigma`` may be a scalar or an array broadcasting against the records.

from __future__ import annotations
from typing import Sequence

import numpy as np
from scipy.stats import norm

from .core import NEAR_ZERO, CALL, SimpleOptionDatum

_N = norm.cdf   # vectorised standard-normal CDF
_n = norm.pdf   # vectorised standard-normal PDF

__all__ = [
    "to_arrays",
    "black_price_vec",
    "black_vega_vec",
    "bachelier_price_vec",
]


# ---------------------------------------------------------------------------
# Internal helpers
# ---------------------------------------------------------------------------
def to_arrays(data: Sequence[SimpleOptionDatum]):
    """Unpack records into ``(forward, K, T, discount_factor, sign)`` arrays."""
    F = np.array([d.forward for d in data], dtype=float)
    K = np.array([d.K for d in data], dtype=float)
    T = np.array([d.T for d in data], dtype=float)
    df = np.array([d.discount_factor for d in data], dtype=float)
    sign = np.array([1.0 if d.kind == CALL else -1.0 for d in data])
    return F, K, T, df, sign


def _safe(limit: np.ndarray, x: np.ndarray, fill: float = 1.0) -> np.ndarray:
    """Replace entries on the limit branch so the smooth formula stays finite."""
    return np.where(limit, fill, x)


# ---------------------------------------------------------------------------
# Black-76
# ---------------------------------------------------------------------------
def black_price_vec(data: Sequence[SimpleOptionDatum], sigma) -> np.ndarray:
    """Vectorised Black-76 price, discounted by each record's factor.

    Returns
    -------
    np.ndarray
        One price per record.  Strike-zero and ``sigma*sqrt(T) < 1e-16``
        entries take the discounted intrinsic value.
    """
    F, K, T, df, sign = to_arrays(data)
    sigma = np.asarray(sigma, dtype=float)
    s = sigma * np.sqrt(T)
    limit = (K < NEAR_ZERO) | (s < NEAR_ZERO)

    s_ = _safe(limit, s)
    K_ = _safe(limit, K)
    d1 = np.log(F / K_) / s_ + 0.5 * s_
    d2 = d1 - s_
    smooth = sign * (F * _N(sign * d1) - K * _N(sign * d2))
    intrinsic = np.maximum(sign * (F - K), 0.0)
    return df * np.where(limit, intrinsic, smooth)


def black_vega_vec(data: Sequence[SimpleOptionDatum], sigma) -> np.ndarray:
    """Vectorised Black vega (dPrice/dSigma), zero on the limit branch."""
    F, K, T, df, _ = to_arrays(data)
    sigma = np.asarray(sigma, dtype=float)
    s = sigma * np.sqrt(T)
    limit = (K < NEAR_ZERO) | (s < NEAR_ZERO)

    s_ = _safe(limit, s)
    K_ = _safe(limit, K)
    d1 = np.log(F / K_) / s_ + 0.5 * s_
    return np.where(limit, 0.0, df * F * np.sqrt(T) * _n(d1))


# ---------------------------------------------------------------------------
# Bachelier
# ---------------------------------------------------------------------------
def bachelier_price_vec(data: Sequence[SimpleOptionDatum], sigma) -> np.ndarray:
    """Vectorised Bachelier price, discounted by each record's factor."""
    F, K, T, df, sign = to_arrays(data)
    sigma = np.asarray(sigma, dtype=float)
    s = sigma * np.sqrt(T)
    limit = s < NEAR_ZERO
    x = sign * (F - K)

    s_ = _safe(limit, s)
    d = x / s_
    smooth = x * _N(d) + s_ * _n(d)
    return df * np.where(limit, np.maximum(x, 0.0), smooth)
