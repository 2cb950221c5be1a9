import pytest

from mcrates import (
    AnalyticModel,
    BrownianMotionLazyInit,
    DiscountCurveInterpolation,
    ExerciseSchedule,
    HullWhiteModel,
    LIBORMonteCarloSimulation,
    MonteCarloEngine,
    TimeGrid,
)

RATE = 0.03
MEAN_REVERSION = 0.1
VOLATILITY = 0.01


@pytest.fixture
def discount_curve():
    return DiscountCurveInterpolation.flat("discount", RATE)


@pytest.fixture
def analytic_model(discount_curve):
    return AnalyticModel([discount_curve])


@pytest.fixture
def time_grid():
    return TimeGrid.from_step(0.0, 6.0, 0.25)


@pytest.fixture
def libor_grid():
    return TimeGrid.from_step(0.0, 6.0, 1.0)


@pytest.fixture
def make_model(libor_grid, analytic_model, discount_curve):
    """Factory for constant coefficient Hull-White models on the flat curve."""
    def _make(mean_reversion=MEAN_REVERSION, volatility=VOLATILITY, curve=None):
        curve = curve if curve is not None else discount_curve
        return HullWhiteModel.with_constant_coefficients(
            libor_grid, analytic_model, None, curve, mean_reversion, volatility)
    return _make


@pytest.fixture
def make_simulation(time_grid):
    """Factory binding a model to a fresh engine."""
    def _make(model, num_paths=4000, seed=3141, grid=None, num_factors=1):
        brownian_motion = BrownianMotionLazyInit(grid if grid is not None else time_grid, num_factors, num_paths, seed)
        engine = MonteCarloEngine(brownian_motion, model)
        return LIBORMonteCarloSimulation(model, engine)
    return _make


@pytest.fixture
def par_rate(discount_curve):
    annuity = sum(discount_curve.get_discount_factor(t) for t in range(2, 7))
    return (discount_curve.get_discount_factor(1.0) - discount_curve.get_discount_factor(6.0)) / annuity


@pytest.fixture
def atm_schedule(par_rate):
    # 5 annual periods fixing in 1..5, paying in 2..6
    return ExerciseSchedule.regular(start=1.0, num_periods=5, period_length=1.0, swap_rate=par_rate)
