from __future__ import annotations
from dataclasses import dataclass


CALL = "call"
PUT  = "put"

# Derivative slot order shared by both models and both orders.
FORWARD = 0
VOLATILITY = 1
STRIKE = 2
N_AXES = 3

# sigma * sqrt(T) (and the Black strike) below this routes to the intrinsic limit.
NEAR_ZERO = 1e-16


def check_not_none(value, name: str):
    """Fail fast on a missing argument, before any computation."""
    if value is None:
        raise ValueError(f"{name} must not be None")
    return value


# ---------------------------------------------------------------------------
# Option descriptor
# ---------------------------------------------------------------------------
@dataclass(frozen=True)
class OptionSpec:
    """What the contract *is*: strike, expiry and call/put flag.

    Parameters
    ----------
    K : float
        Strike.  Zero is a valid (specially handled) strike.
    T : float
        Time to expiry in years.
    kind : str
        ``"call"`` or ``"put"``.
    """
    K: float
    T: float
    kind: str = CALL

    def __post_init__(self):
        if self.kind not in (CALL, PUT):
            raise ValueError(f"kind must be 'call' or 'put', got {self.kind!r}")

    @property
    def is_call(self) -> bool:
        return self.kind == CALL

    @property
    def sign(self) -> int:
        return 1 if self.kind == CALL else -1


# ---------------------------------------------------------------------------
# Market data
# ---------------------------------------------------------------------------
@dataclass(frozen=True)
class BlackMarketData:
    """Forward, numeraire and lognormal (relative) volatility."""
    forward: float
    numeraire: float
    sigma: float


@dataclass(frozen=True)
class NormalMarketData:
    """Forward, numeraire and normal (absolute, forward units) volatility."""
    forward: float
    numeraire: float
    sigma: float


# ---------------------------------------------------------------------------
# Results
# ---------------------------------------------------------------------------
@dataclass(frozen=True)
class DerivativeResult:
    """A value with its first derivatives.

    Slots are ``[d/dforward, d/dvolatility, d/dstrike]``; use the
    ``FORWARD``, ``VOLATILITY`` and ``STRIKE`` indices.
    """
    value: float
    derivatives: tuple[float, ...]

    def __post_init__(self):
        derivs = tuple(float(d) for d in self.derivatives)
        if len(derivs) != N_AXES:
            raise ValueError(
                f"expected {N_AXES} derivatives, got {len(derivs)}"
            )
        object.__setattr__(self, "value", float(self.value))
        object.__setattr__(self, "derivatives", derivs)

    def derivative(self, i: int) -> float:
        return self.derivatives[i]


@dataclass(frozen=True)
class SimpleOptionDatum:
    """Flat record of one option's pricing inputs, for batch pricing."""
    forward: float
    K: float
    T: float
    discount_factor: float
    kind: str = CALL

    def __post_init__(self):
        if self.kind not in (CALL, PUT):
            raise ValueError(f"kind must be 'call' or 'put', got {self.kind!r}")
