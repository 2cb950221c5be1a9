import numpy as np


# Discount curve with log-linear interpolation of discount factors.
# Before the first and after the last pillar the zero rate is held constant.
class DiscountCurveInterpolation:
    def __init__(self, name, times, discount_factors):
        times = np.asarray(times, dtype=np.float64)
        discount_factors = np.asarray(discount_factors, dtype=np.float64)

        if times.ndim != 1 or times.shape != discount_factors.shape or len(times) == 0:
            raise ValueError("Times and discount factors must be non-empty 1-d arrays of equal length.")
        if np.any(np.diff(times) <= 0.0):
            raise ValueError("Curve times must be strictly increasing.")
        if np.any(discount_factors <= 0.0):
            raise ValueError("Discount factors must be positive.")

        # Anchor the curve at P(0) = 1
        if times[0] > 0.0:
            times = np.concatenate(([0.0], times))
            discount_factors = np.concatenate(([1.0], discount_factors))

        self.name = name
        self.times = times
        self.discount_factors = discount_factors
        self._log_discount_factors = np.log(discount_factors)

    @classmethod
    def from_zero_rates(cls, name, times, zero_rates):
        times = np.asarray(times, dtype=np.float64)
        zero_rates = np.asarray(zero_rates, dtype=np.float64)
        return cls(name, times, np.exp(-zero_rates * times))

    @classmethod
    def flat(cls, name, rate, maturity=100.0):
        return cls.from_zero_rates(name, [maturity], [rate])

    def get_name(self):
        return self.name

    def get_discount_factor(self, time, model=None):
        time = float(time)
        last = self.times[-1]
        if time <= last:
            return float(np.exp(np.interp(time, self.times, self._log_discount_factors)))

        # Constant zero rate extrapolation
        return float(np.exp(self._log_discount_factors[-1] * time / last))

    def get_zero_rate(self, time, model=None):
        if time <= 0.0:
            time = 1e-6
        return -np.log(self.get_discount_factor(time, model)) / time

    def __repr__(self):
        return f"DiscountCurveInterpolation(name={self.name!r}, pillars={len(self.times)})"


# Forward curve implied by a discount curve for a fixed payment offset
class ForwardCurveFromDiscountCurve:
    def __init__(self, discount_curve, payment_offset, name=None):
        if payment_offset <= 0.0:
            raise ValueError(f"Payment offset must be positive, got {payment_offset}.")
        self.discount_curve = discount_curve
        self.payment_offset = payment_offset
        self.name = name or f"forward-{discount_curve.get_name()}"

    def get_name(self):
        return self.name

    def get_payment_offset(self, fixing_time):
        return self.payment_offset

    def get_forward(self, fixing_time, model=None):
        offset = self.get_payment_offset(fixing_time)
        df_start = self.discount_curve.get_discount_factor(fixing_time, model)
        df_end = self.discount_curve.get_discount_factor(fixing_time + offset, model)
        return (df_start / df_end - 1.0) / offset


# Discount curve obtained by compounding the forwards of a forward curve
class DiscountCurveFromForwardCurve:
    def __init__(self, forward_curve, time_offset=0.0):
        self.forward_curve = forward_curve
        self.time_offset = time_offset
        self.name = f"discount-from-{forward_curve.get_name()}"

    def get_name(self):
        return self.name

    def get_discount_factor(self, maturity, model=None):
        time = 0.0
        discount_factor = 1.0
        while time < maturity:
            payment_offset = self.forward_curve.get_payment_offset(time + self.time_offset)
            if payment_offset <= 0.0:
                raise ValueError("Forward curve must provide a positive payment offset.")
            forward = self.forward_curve.get_forward(time + self.time_offset, model)
            discount_factor /= 1.0 + forward * min(payment_offset, maturity - time)
            time += payment_offset
        return discount_factor


# Named collection of curves passed through to curve lookups
class AnalyticModel:
    def __init__(self, curves=()):
        self._curves = {}
        for curve in curves:
            self.add_curve(curve)

    def add_curve(self, curve):
        self._curves[curve.get_name()] = curve
        return self

    def get_curve(self, name):
        if name not in self._curves:
            raise KeyError(f"Curve '{name}' is not part of the analytic model.")
        return self._curves[name]

    def get_discount_curve(self, name):
        return self.get_curve(name)

    def get_forward_curve(self, name):
        return self.get_curve(name)

    def get_curve_names(self):
        return list(self._curves)

    def __contains__(self, name):
        return name in self._curves
