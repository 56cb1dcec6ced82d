# optformula: analytic Black-76 / Bachelier formulas with exact derivatives
# Public API

# Data model
from .core import (
    OptionSpec, CALL, PUT,
    BlackMarketData, NormalMarketData,
    DerivativeResult, SimpleOptionDatum,
    FORWARD, VOLATILITY, STRIKE, NEAR_ZERO,
)

# Engines (one module per model)
from . import black, bachelier
from .black import BlackPriceFunction
from .bachelier import NormalPriceFunction

# Vectorised batch pricers
from .formulas_vec import black_price_vec, black_vega_vec, bachelier_price_vec

# Finite-difference verification
from .validation import (
    numerical_gradient, numerical_hessian, numerical_greeks,
    cross_validate_adjoint,
)

__all__ = [
    # Data model
    "OptionSpec", "CALL", "PUT",
    "BlackMarketData", "NormalMarketData",
    "DerivativeResult", "SimpleOptionDatum",
    "FORWARD", "VOLATILITY", "STRIKE", "NEAR_ZERO",
    # Engines
    "black", "bachelier",
    "BlackPriceFunction", "NormalPriceFunction",
    # Vectorised
    "black_price_vec", "black_vega_vec", "bachelier_price_vec",
    # Validation
    "numerical_gradient", "numerical_hessian", "numerical_greeks",
    "cross_validate_adjoint",
]

__version__ = "0.1.0"
