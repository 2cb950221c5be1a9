from mcrates.common.config import SimulationConfig
from mcrates.common.exceptions import CalculationException, UnsupportedOperationError, ProcessNotAssignedError
from mcrates.common.logger import configure_logging
from mcrates.discretization.time_grid import TimeGrid, TimeIndex
from mcrates.stochastic.pathwise_value import PathwiseValue
from mcrates.marketdata.curves import (
    AnalyticModel,
    DiscountCurveFromForwardCurve,
    DiscountCurveInterpolation,
    ForwardCurveFromDiscountCurve,
)
from mcrates.engine.brownian_motion import BrownianMotionLazyInit
from mcrates.engine.engine import MonteCarloEngine, SimulationScheme
from mcrates.engine.simulation import LIBORMonteCarloSimulation
from mcrates.models.hull_white import HullWhiteModel
from mcrates.models.covariance import (
    LIBORCorrelationModelThreeParameterExponentialDecay,
    LIBORCovarianceModelFromVolatilityAndCorrelation,
    LIBORVolatilityModelPiecewiseConstant,
    ShortRateVolatilityModelConstant,
    ShortRateVolatilityModelPiecewiseConstant,
)
from mcrates.maths.regression import MonteCarloConditionalExpectationRegression
from mcrates.maths.monomials import Polynomials
from mcrates.products.schedule import ExerciseSchedule
from mcrates.products.swap import IRSType, SimpleSwap
from mcrates.products.bermudan_swaption import BermudanSwaption
from mcrates.controller.controller import SimulationController, SimulationResults

__version__ = "0.1.0"

__all__ = [
    "SimulationConfig",
    "CalculationException",
    "UnsupportedOperationError",
    "ProcessNotAssignedError",
    "configure_logging",
    "TimeGrid",
    "TimeIndex",
    "PathwiseValue",
    "AnalyticModel",
    "DiscountCurveFromForwardCurve",
    "DiscountCurveInterpolation",
    "ForwardCurveFromDiscountCurve",
    "BrownianMotionLazyInit",
    "MonteCarloEngine",
    "SimulationScheme",
    "LIBORMonteCarloSimulation",
    "HullWhiteModel",
    "LIBORCorrelationModelThreeParameterExponentialDecay",
    "LIBORCovarianceModelFromVolatilityAndCorrelation",
    "LIBORVolatilityModelPiecewiseConstant",
    "ShortRateVolatilityModelConstant",
    "ShortRateVolatilityModelPiecewiseConstant",
    "MonteCarloConditionalExpectationRegression",
    "Polynomials",
    "ExerciseSchedule",
    "IRSType",
    "SimpleSwap",
    "BermudanSwaption",
    "SimulationController",
    "SimulationResults",
]
