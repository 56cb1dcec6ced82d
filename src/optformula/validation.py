"""Finite-difference verification oracle.

Bump-and-reprice estimates of the gradient, Hessian and Greeks that work
with either engine, plus an analytic-vs-numerical cross-validation report.
This is the independent check of the closed-form adjoints; the engines
themselves never differentiate numerically.
"""

from __future__ import annotations

from dataclasses import replace
from typing import Callable, Sequence

import numpy as np

from .core import OptionSpec, N_AXES, FORWARD, VOLATILITY, STRIKE
from . import black, bachelier

__all__ = [
    "numerical_gradient",
    "numerical_hessian",
    "numerical_greeks",
    "cross_validate_adjoint",
]

# model name -> (price, price_adjoint)
_ENGINES = {
    "black": (black.price, black.price_adjoint),
    "normal": (bachelier.price, bachelier.price_adjoint),
}


# ---------------------------------------------------------------------------
# Bumping
# ---------------------------------------------------------------------------
def _steps(option: OptionSpec, data, bump_pct: float, bump_vol: float):
    """Forward, volatility and strike steps, relative to each level."""
    scale_f = abs(data.forward) if data.forward != 0 else 1.0
    scale_k = option.K if option.K > 0 else scale_f
    eps_v = bump_vol * data.sigma if data.sigma > 0 else bump_vol
    return bump_pct * scale_f, eps_v, bump_pct * scale_k


def _bumped(option: OptionSpec, data, axis: int, h: float):
    """Return (option, data) with one axis shifted by *h*."""
    if axis == FORWARD:
        return option, replace(data, forward=data.forward + h)
    if axis == VOLATILITY:
        return option, replace(data, sigma=data.sigma + h)
    return replace(option, K=option.K + h), data


def _difference(fn, option, data, axis: int, h: float, one_sided: bool):
    up = fn(*_bumped(option, data, axis, h))
    if one_sided:
        base = fn(option, data)
        return (np.asarray(up) - np.asarray(base)) / h
    dn = fn(*_bumped(option, data, axis, -h))
    return (np.asarray(up) - np.asarray(dn)) / (2.0 * h)


def _one_sided(option: OptionSpec, data, axis: int, h: float) -> bool:
    # Negative strikes / vols are outside the formulas' domain.
    if axis == STRIKE:
        return option.K - h < 0.0
    if axis == VOLATILITY:
        return data.sigma - h < 0.0
    return False


# ---------------------------------------------------------------------------
# Gradient and Hessian
# ---------------------------------------------------------------------------
def numerical_gradient(
    pricer: Callable[..., float],
    option: OptionSpec,
    data,
    *,
    bump_pct: float = 1e-4,
    bump_vol: float = 1e-5,
) -> np.ndarray:
    """Central-difference ``[d/dforward, d/dvolatility, d/dstrike]``.

    Parameters
    ----------
    pricer : callable
        ``pricer(option, data) -> float``.
    bump_pct : float
        Relative bump for forward and strike (a zero strike is bumped by
        ``bump_pct * forward``, one-sided).
    bump_vol : float
        Volatility bump relative to sigma (absolute when sigma is zero).
    """
    steps = _steps(option, data, bump_pct, bump_vol)
    grad = np.empty(N_AXES)
    for axis, h in enumerate(steps):
        grad[axis] = _difference(
            pricer, option, data, axis, h, _one_sided(option, data, axis, h)
        )
    return grad


def numerical_hessian(
    gradient_fn: Callable[..., Sequence[float]],
    option: OptionSpec,
    data,
    *,
    bump_pct: float = 1e-5,
    bump_vol: float = 1e-5,
) -> np.ndarray:
    """Hessian from central differences of an (analytic) gradient.

    ``gradient_fn(option, data)`` must return the three first derivatives in
    the usual axis order.  Column ``j`` is the difference quotient of the
    gradient along axis ``j``; the result is not symmetrised.
    """
    steps = _steps(option, data, bump_pct, bump_vol)
    hess = np.empty((N_AXES, N_AXES))
    for axis, h in enumerate(steps):
        hess[:, axis] = _difference(
            gradient_fn, option, data, axis, h, _one_sided(option, data, axis, h)
        )
    return hess


def numerical_greeks(
    pricer: Callable[..., float],
    option: OptionSpec,
    data,
    *,
    bump_pct: float = 1e-4,
    bump_vol: float = 1e-5,
    bump_time: float = 1e-5,
) -> dict[str, float]:
    """Delta, gamma, vega and theta (``-dPrice/dT``) by bump-and-reprice.

    Returns
    -------
    dict[str, float]
        Keys: ``delta``, ``gamma``, ``vega``, ``theta``.
    """
    P0 = pricer(option, data)
    eps_F, eps_v, _ = _steps(option, data, bump_pct, bump_vol)

    P_up = pricer(option, replace(data, forward=data.forward + eps_F))
    P_dn = pricer(option, replace(data, forward=data.forward - eps_F))
    delta = (P_up - P_dn) / (2.0 * eps_F)
    gamma = (P_up - 2.0 * P0 + P_dn) / (eps_F ** 2)

    vega = _difference(
        pricer, option, data, VOLATILITY, eps_v,
        _one_sided(option, data, VOLATILITY, eps_v),
    )

    P_tup = pricer(replace(option, T=option.T + bump_time), data)
    if option.T > bump_time:
        P_tdn = pricer(replace(option, T=option.T - bump_time), data)
        theta = -(P_tup - P_tdn) / (2.0 * bump_time)
    else:
        theta = -(P_tup - P0) / bump_time

    return {
        "delta": float(delta),
        "gamma": float(gamma),
        "vega": float(vega),
        "theta": float(theta),
    }


# ---------------------------------------------------------------------------
# Cross-validation
# ---------------------------------------------------------------------------
def cross_validate_adjoint(
    option: OptionSpec,
    data,
    *,
    model: str = "black",
    bump_pct: float = 1e-4,
    bump_vol: float = 1e-5,
) -> dict:
    """Compare an engine's analytic gradient with bump-and-reprice.

    Parameters
    ----------
    model : str
        ``"black"`` or ``"normal"``.

    Returns
    -------
    dict
        ``"price"``, ``"analytic"`` and ``"numerical"`` (ndarray, shape (3,)),
        ``"max_discrepancy"``.
    """
    try:
        pricer, adjoint = _ENGINES[model]
    except KeyError:
        raise ValueError(f"Unknown model: {model}") from None

    result = adjoint(option, data)
    analytic = np.array(result.derivatives)
    numerical = numerical_gradient(
        pricer, option, data, bump_pct=bump_pct, bump_vol=bump_vol
    )
    return {
        "price": result.value,
        "analytic": analytic,
        "numerical": numerical,
        "max_discrepancy": float(np.max(np.abs(analytic - numerical))),
    }
