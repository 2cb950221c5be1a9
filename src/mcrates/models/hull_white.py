import logging
import math
import threading
from mcrates.common.packages import *
from mcrates.common.exceptions import CalculationException
from mcrates.marketdata.curves import DiscountCurveFromForwardCurve
from mcrates.models.model import Model
from mcrates.models.covariance.short_rate_volatility import ShortRateVolatilityModelConstant
from mcrates.stochastic.pathwise_value import PathwiseValue

logger = logging.getLogger(__name__)


# Hull-White short rate model dr = (theta(t) - a(t) r) dt + sigma(t) dW
# with piecewise constant a and sigma. The drift and factor loading are chosen
# such that the Euler step of the engine reproduces the exact transition over
# each grid interval. Bonds and forward rates are reconstructed analytically
# from the simulated short rate.
class HullWhiteModel(Model):
    def __init__(self,
                 libor_period_discretization,   # TimeGrid of the forward rate periods
                 analytic_model,                # AnalyticModel passed through to curve lookups
                 forward_rate_curve,            # Forward curve defining the initial term structure (optional)
                 discount_curve,                # Discount curve the numeraire is adjusted to (optional)
                 volatility_model,              # Short rate volatility model
                 properties=None
                 ):
        super().__init__()

        if forward_rate_curve is None and discount_curve is None:
            raise ValueError("Either a forward rate curve or a discount curve is required.")

        self.libor_period_discretization = libor_period_discretization
        self.analytic_model = analytic_model
        self.forward_rate_curve = forward_rate_curve
        self.discount_curve = discount_curve
        self.volatility_model = volatility_model
        self.properties = dict(properties or {})

        if forward_rate_curve is not None:
            self.discount_curve_from_forward_curve = DiscountCurveFromForwardCurve(forward_rate_curve)
        else:
            self.discount_curve_from_forward_curve = discount_curve

        self.model_params = volatility_model.get_model_params()

        self._numeraires = {}
        self._adjusted_numeraires = {}
        self._integrated_rates = {}
        self._integrated_index = 0
        self._numeraire_version = None
        self._numeraire_lock = threading.RLock()

    @classmethod
    def with_constant_coefficients(cls, libor_period_discretization, analytic_model, forward_rate_curve,
                                   discount_curve, mean_reversion, volatility, properties=None):
        volatility_model = ShortRateVolatilityModelConstant(volatility, mean_reversion)
        return cls(libor_period_discretization, analytic_model, forward_rate_curve,
                   discount_curve, volatility_model, properties)

    def _df(self, time):
        return self.discount_curve_from_forward_curve.get_discount_factor(time, self.analytic_model)

    def _initial_short_rate(self):
        dt = self.get_process().get_time_discretization().get_time_step(0)
        return math.log(self._df(0.0) / self._df(dt)) / dt

    def get_initial_state(self):
        return [PathwiseValue.constant(self._initial_short_rate())]

    def get_drift(self, time_index, state, predictor=None):
        time_grid = self.get_process().get_time_discretization()

        t0 = time_grid.get_time(time_index)
        t1 = time_grid.get_time(time_index + 1)
        if time_index < time_grid.number_of_times - 2:
            t2 = time_grid.get_time(time_index + 2)
        else:
            t2 = t1 + time_grid.get_time_step(time_index)
        dt = t1 - t0

        df0 = self._df(t0)
        df1 = self._df(t1)
        df2 = self._df(t2)

        forward = -math.log(df1 / df0) / dt if t0 > 0 else self._initial_short_rate()
        forward_next = -math.log(df2 / df1) / (t2 - t1)
        forward_change = (forward_next - forward) / dt

        vol = self.volatility_model
        # exp(-int_t0^t1 a) is the exact decay over the step, also across coefficient pieces
        decay = torch.exp(-vol.mean_reversion_integral(t0, t1))
        mean_reversion_effective = (1.0 - decay) / dt

        phi = (vol.phi(0.0, t1) - decay * vol.phi(0.0, t0)) / dt

        # forward_change moves the forward to the next period, the mean reversion
        # term on the forward removes it from the reverting part
        theta = forward_change + mean_reversion_effective * forward + phi

        return [state[0] * (-mean_reversion_effective) + theta]

    def get_factor_loading(self, time_index, component, state):
        time_grid = self.get_process().get_time_discretization()
        t0 = time_grid.get_time(time_index)
        t1 = time_grid.get_time(time_index + 1)

        # Matches the conditional variance of the short rate over the step
        variance = self.volatility_model.short_rate_conditional_variance(t0, t1)
        return [PathwiseValue(torch.sqrt(variance / (t1 - t0)))]

    def get_short_rate(self, time_index):
        return self.get_process().get_process_value(time_index, 0)

    def get_numeraire(self, time):
        process = self.get_process()
        time_grid = process.get_time_discretization()
        time = float(time)

        lookup = time_grid.get_time_index(time)
        if lookup.previous < 0 or lookup.next >= time_grid.number_of_times:
            raise CalculationException(
                f"Numeraire requested at time {time} outside the simulated range [{time_grid.first()}, {time_grid.last()}].")

        if lookup.is_exact and lookup.index == 0:
            return PathwiseValue.constant(1.0)

        if not lookup.is_exact:
            # Piecewise constant short rate from the previous grid time
            previous_time = time_grid.get_time(lookup.previous)
            rate = self.get_short_rate(lookup.previous)
            return self.get_numeraire(previous_time) * (rate * (time - previous_time)).exp()

        time_index = lookup.index
        with self._numeraire_lock:
            if self._numeraire_version != process.version:
                if self._numeraires:
                    logger.debug("Numeraire cache invalidated (engine version %s -> %s)",
                                 self._numeraire_version, process.version)
                self._numeraires = {}
                self._adjusted_numeraires = {}
                self._integrated_rates = {}
                self._integrated_index = 0
                self._numeraire_version = process.version

            numeraire = self._numeraires.get(time_index)
            if numeraire is None:
                numeraire = self._integrate_numeraire(time_index)

            if self.discount_curve is None:
                return numeraire

            adjusted = self._adjusted_numeraires.get(time_index)
            if adjusted is None:
                # Deterministic adjustment such that E_w[1/N(t)] = P(t)
                weights = process.get_monte_carlo_weights(time_index)
                weighted_mean = (numeraire.invert() * weights).values.sum() / weights.values.sum()
                adjustment = weighted_mean / self.discount_curve.get_discount_factor(time, self.analytic_model)
                adjusted = numeraire * adjustment
                self._adjusted_numeraires[time_index] = adjusted

            return adjusted

    def _integrate_numeraire(self, time_index):
        time_grid = self.get_process().get_time_discretization()

        # Rates are integrated contiguously from index 0, so continue from the last one
        start_index = self._integrated_index
        if start_index == 0:
            integrated_rate = PathwiseValue.constant(0.0)
        else:
            integrated_rate = self._integrated_rates[start_index]

        numeraire = None
        for i in range(start_index, time_index):
            integrated_rate = integrated_rate.add_product(self.get_short_rate(i), time_grid.get_time_step(i))
            numeraire = integrated_rate.exp()
            self._integrated_rates[i + 1] = integrated_rate
            self._numeraires[i + 1] = numeraire
        self._integrated_index = time_index

        return numeraire

    def _check_bond_arguments(self, time, maturity):
        if maturity < time:
            raise CalculationException(f"Maturity {maturity} is before time {time}.")
        return self.get_process().get_time_discretization().index_of(time)

    def get_zero_coupon_bond(self, time, maturity):
        time_index = self._check_bond_arguments(time, maturity)
        short_rate = self.get_short_rate(time_index)
        return (short_rate * (-self.B(time, maturity))).exp() * self.A(time, maturity)

    # A(t,T) = P(T)/P(t) exp(B(t,T) f(t) - 1/2 Var(0,t) B(t,T)^2)
    def A(self, time, maturity):
        time_index = self._check_bond_arguments(time, maturity)
        time_grid = self.get_process().get_time_discretization()
        if time_index < time_grid.number_of_time_steps:
            dt = time_grid.get_time_step(time_index)
        else:
            dt = time_grid.get_time_step(time_index - 1)

        zero_rate = -math.log(self._df(time + dt) / self._df(time)) / dt
        B = self.B(time, maturity)

        ln_A = (math.log(self._df(maturity) / self._df(time))
                + B * zero_rate - 0.5 * self.get_short_rate_conditional_variance(0.0, time) * B * B)
        return torch.exp(ln_A)

    def B(self, time, maturity):
        return self.volatility_model.B(time, maturity)

    def get_short_rate_conditional_variance(self, time, maturity):
        return self.volatility_model.short_rate_conditional_variance(time, maturity)

    def get_integrated_bond_squared_volatility(self, time, maturity):
        B = self.B(time, maturity)
        return self.get_short_rate_conditional_variance(0.0, time) * B * B

    def get_libor(self, time, period_start, period_end):
        if period_end <= period_start:
            raise CalculationException(f"Period end {period_end} must be after period start {period_start}.")
        bond_start = self.get_zero_coupon_bond(time, period_start)
        bond_end = self.get_zero_coupon_bond(time, period_end)
        return (bond_start / bond_end - 1.0) / (period_end - period_start)

    def get_libor_for_period(self, time_index, libor_index):
        time = self.get_process().get_time(time_index)
        return self.get_libor(time, self.get_libor_period(libor_index), self.get_libor_period(libor_index + 1))

    def get_libor_period_discretization(self):
        return self.libor_period_discretization

    def get_number_of_libors(self):
        return self.libor_period_discretization.number_of_time_steps

    def get_libor_period(self, index):
        return self.libor_period_discretization.get_time(index)

    def get_libor_period_index(self, time):
        return self.libor_period_discretization.get_time_index(time)

    def get_random_variable_for_constant(self, value):
        return self.get_process().get_stochastic_driver().get_random_variable_for_constant(value)

    def get_analytic_model(self):
        return self.analytic_model

    def get_discount_curve(self):
        return self.discount_curve

    def get_forward_rate_curve(self):
        return self.forward_rate_curve

    def get_volatility_model(self):
        return self.volatility_model
