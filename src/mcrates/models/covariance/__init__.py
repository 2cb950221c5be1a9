from mcrates.models.covariance.short_rate_volatility import (
    ShortRateVolatilityModelConstant,
    ShortRateVolatilityModelPiecewiseConstant,
)
from mcrates.models.covariance.libor_volatility import LIBORVolatilityModelPiecewiseConstant
from mcrates.models.covariance.libor_correlation import LIBORCorrelationModelThreeParameterExponentialDecay
from mcrates.models.covariance.libor_covariance import LIBORCovarianceModelFromVolatilityAndCorrelation

__all__ = [
    "ShortRateVolatilityModelConstant",
    "ShortRateVolatilityModelPiecewiseConstant",
    "LIBORVolatilityModelPiecewiseConstant",
    "LIBORCorrelationModelThreeParameterExponentialDecay",
    "LIBORCovarianceModelFromVolatilityAndCorrelation",
]
