import numpy as np
from mcrates.common.packages import *
from mcrates.common.exceptions import CalculationException
from mcrates.discretization.time_grid import TimeGrid


def _as_parameter(values):
    if isinstance(values, torch.Tensor):
        if values.dim() == 0:
            values = values.reshape(1)
        return values.to(dtype=FLOAT, device=device)
    return torch.tensor(np.atleast_1d(np.asarray(values, dtype=np.float64)), dtype=FLOAT, device=device)


# Piecewise constant short rate volatility and mean reversion.
# Coefficient i applies on [t_i, t_{i+1}); the last one applies beyond the grid
# and the first one before it.
class ShortRateVolatilityModelPiecewiseConstant:
    def __init__(self,
                 time_grid,         # TimeGrid of the coefficient pieces
                 volatility,        # One value per grid time, or a single value
                 mean_reversion     # One value per grid time, or a single value
                 ):
        self.time_grid = time_grid
        self.volatility = _as_parameter(volatility)
        self.mean_reversion = _as_parameter(mean_reversion)

        for name, values in (("volatility", self.volatility), ("mean_reversion", self.mean_reversion)):
            if values.numel() not in (1, len(time_grid)):
                raise ValueError(
                    f"{name} requires 1 or {len(time_grid)} values, got {values.numel()}.")

        with torch.no_grad():
            if bool((self.volatility < 0.0).any()):
                raise ValueError("Volatility must be non-negative.")
            if bool((self.mean_reversion <= 0.0).any()):
                raise ValueError("Mean reversion must be strictly positive.")

    def get_time_discretization(self):
        return self.time_grid

    def get_model_params(self):
        return [self.volatility, self.mean_reversion]

    def get_parameter(self):
        return torch.cat([self.volatility, self.mean_reversion])

    def get_clone_with_modified_parameter(self, parameter):
        parameter = _as_parameter(parameter)
        num_volatilities = self.volatility.numel()
        return type(self)(self.time_grid, parameter[:num_volatilities], parameter[num_volatilities:])

    def index_for_time(self, time):
        return self.time_grid.floor_index(time)

    def get_volatility(self, index):
        return self.volatility[min(index, self.volatility.numel() - 1)]

    def get_mean_reversion(self, index):
        return self.mean_reversion[min(index, self.mean_reversion.numel() - 1)]

    def get_volatility_for_time(self, time):
        return self.get_volatility(self.index_for_time(time))

    def get_mean_reversion_for_time(self, time):
        return self.get_mean_reversion(self.index_for_time(time))

    def _zero(self):
        return torch.zeros((), dtype=FLOAT, device=device)

    def _check_interval(self, time, maturity):
        if maturity < time:
            raise CalculationException(f"Maturity {maturity} is before time {time}.")

    # Pieces of [time, maturity] with constant coefficients, ordered from time to maturity
    def _pieces(self, time, maturity):
        inner = [t for t in self.time_grid if time < t < maturity]
        bounds = [time] + inner + [maturity]
        return [(start, end, self.index_for_time(start)) for start, end in zip(bounds, bounds[1:])]

    # Walk the pieces backward from maturity, yielding the mean reversion integral
    # from the end and from the start of each piece to maturity
    def _backward_pieces(self, time, maturity):
        integral_end = self._zero()
        for start, end, index in reversed(self._pieces(time, maturity)):
            a = self.get_mean_reversion(index)
            integral_start = integral_end + a * (end - start)
            yield index, a, integral_end, integral_start
            integral_end = integral_start

    # int_t^T a(s) ds
    def mean_reversion_integral(self, time, maturity):
        self._check_interval(time, maturity)
        integral = self._zero()
        for start, end, index in self._pieces(time, maturity):
            integral = integral + self.get_mean_reversion(index) * (end - start)
        return integral

    # B(t,T) = int_t^T exp(-int_s^T a) ds
    def B(self, time, maturity):
        self._check_interval(time, maturity)
        integral = self._zero()
        for _, a, mr_end, mr_start in self._backward_pieces(time, maturity):
            integral = integral + (torch.exp(-mr_end) - torch.exp(-mr_start)) / a
        return integral

    # int_t^T sigma(s)^2 exp(-2 int_s^T a) ds
    def short_rate_conditional_variance(self, time, maturity):
        self._check_interval(time, maturity)
        integral = self._zero()
        for index, a, mr_end, mr_start in self._backward_pieces(time, maturity):
            sigma = self.get_volatility(index)
            integral = integral + sigma * sigma * (torch.exp(-2.0 * mr_end) - torch.exp(-2.0 * mr_start)) / (2.0 * a)
        return integral

    # Convexity integral int_t^T sigma(s)^2 exp(-int_s^T a) B(s,T) ds.
    # On a piece [s0, s1] with constant a, B(s,T) = (exp(-I(s1)) - exp(-I(s)))/a + B(s1,T)
    # where I(s) = int_s^T a, so B(s1,T) is carried along the backward walk.
    def phi(self, time, maturity):
        self._check_interval(time, maturity)
        integral = self._zero()
        bond_end = self._zero()
        for index, a, mr_end, mr_start in self._backward_pieces(time, maturity):
            sigma_squared = self.get_volatility(index) ** 2
            decay = torch.exp(-mr_end) - torch.exp(-mr_start)
            decay_squared = torch.exp(-2.0 * mr_end) - torch.exp(-2.0 * mr_start)
            integral = integral + sigma_squared * (
                (torch.exp(-mr_end) / a + bond_end) * decay / a - decay_squared / (2.0 * a * a))
            bond_end = bond_end + decay / a
        return integral


# Constant coefficients with closed form integrals
class ShortRateVolatilityModelConstant(ShortRateVolatilityModelPiecewiseConstant):
    def __init__(self, volatility, mean_reversion):
        super().__init__(TimeGrid([0.0]), volatility, mean_reversion)

    def get_clone_with_modified_parameter(self, parameter):
        parameter = _as_parameter(parameter)
        return ShortRateVolatilityModelConstant(parameter[0], parameter[1])

    def mean_reversion_integral(self, time, maturity):
        self._check_interval(time, maturity)
        return self.mean_reversion[0] * (maturity - time)

    def B(self, time, maturity):
        self._check_interval(time, maturity)
        a = self.mean_reversion[0]
        return (1.0 - torch.exp(-a * (maturity - time))) / a

    def short_rate_conditional_variance(self, time, maturity):
        self._check_interval(time, maturity)
        a = self.mean_reversion[0]
        sigma = self.volatility[0]
        return sigma * sigma * (1.0 - torch.exp(-2.0 * a * (maturity - time))) / (2.0 * a)

    def phi(self, time, maturity):
        self._check_interval(time, maturity)
        a = self.mean_reversion[0]
        sigma = self.volatility[0]
        return sigma * sigma / (2.0 * a * a) * (1.0 - torch.exp(-a * (maturity - time))) ** 2
