from enum import Enum
from mcrates.products.product import Product, ValuationResults


class IRSType(Enum):
    PAYER = 0       # pay fixed, receive float
    RECEIVER = 1    # receive fixed, pay float


# Swap paying (LIBOR - swap rate) * period length * notional per period
class SimpleSwap(Product):
    def __init__(self, fixing_dates, payment_dates, swap_rates, notionals=1.0,
                 irs_type=IRSType.PAYER, period_lengths=None):
        super().__init__()
        num_periods = len(fixing_dates)
        if isinstance(notionals, (int, float)):
            notionals = [notionals] * num_periods
        if period_lengths is None:
            period_lengths = [payment - fixing for fixing, payment in zip(fixing_dates, payment_dates)]

        self.fixing_dates = tuple(float(t) for t in fixing_dates)
        self.payment_dates = tuple(float(t) for t in payment_dates)
        self.swap_rates = tuple(float(k) for k in swap_rates)
        self.notionals = tuple(float(n) for n in notionals)
        self.period_lengths = tuple(float(d) for d in period_lengths)
        self.irs_type = irs_type

        if len({len(self.fixing_dates), len(self.payment_dates), len(self.swap_rates),
                len(self.notionals), len(self.period_lengths)}) != 1:
            raise ValueError("All swap sequences must have the same length.")

    @classmethod
    def from_schedule(cls, schedule, irs_type=IRSType.PAYER):
        return cls(schedule.fixing_dates, schedule.payment_dates, schedule.swap_rates,
                   schedule.notionals, irs_type, schedule.period_lengths)

    def __eq__(self, other):
        return (
            isinstance(other, SimpleSwap) and
            self.fixing_dates == other.fixing_dates and
            self.payment_dates == other.payment_dates and
            self.swap_rates == other.swap_rates and
            self.notionals == other.notionals and
            self.period_lengths == other.period_lengths and
            self.irs_type == other.irs_type
        )

    def __hash__(self):
        return hash((
            self.fixing_dates,
            self.payment_dates,
            self.swap_rates,
            self.notionals,
            self.period_lengths,
            self.irs_type
        ))

    def get_values(self, evaluation_time, model):
        values = model.get_random_variable_for_constant(0.0)

        for period in range(len(self.fixing_dates)):
            fixing_date = self.fixing_dates[period]
            if fixing_date < evaluation_time:
                continue
            period_length = self.period_lengths[period]
            payment_date = self.payment_dates[period]

            libor = model.get_libor(fixing_date, fixing_date, fixing_date + period_length)
            payoff = (libor - self.swap_rates[period]) * period_length * self.notionals[period]
            if self.irs_type == IRSType.RECEIVER:
                payoff = -payoff

            numeraire = model.get_numeraire(payment_date)
            weights = model.get_monte_carlo_weights(payment_date)
            values = values + payoff / numeraire * weights

        numeraire_at_evaluation = model.get_numeraire(evaluation_time)
        weights_at_evaluation = model.get_monte_carlo_weights(evaluation_time)
        values = values * numeraire_at_evaluation / weights_at_evaluation

        return ValuationResults(values, values.standard_error())
