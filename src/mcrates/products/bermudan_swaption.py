import logging
from bisect import bisect_left
from mcrates.common.packages import *
from mcrates.maths.regression import MonteCarloConditionalExpectationRegression
from mcrates.products.product import Product, ValuationResults
from mcrates.products.swap import SimpleSwap, IRSType

logger = logging.getLogger(__name__)


# Bermudan swaption valued by backward induction with regression estimated
# continuation values (American Monte Carlo).
# A callable swaption is the right to enter the swap paying (LIBOR - swap rate) at an
# exercise date; a cancelable one is the right to terminate the running swap.
class BermudanSwaption(Product):
    def __init__(self,
                 schedule,                          # ExerciseSchedule of the underlying swap
                 is_callable : bool = True,
                 basis_functions_provider = None    # Optional provider of get_basis_functions(fixing_date, model)
                 ):
        super().__init__()
        self.schedule = schedule
        self.is_callable = is_callable
        self.basis_functions_provider = basis_functions_provider

    def get_values(self, evaluation_time, model, regression_coefficients=None):
        values, error, exercise_time, _ = self._backward_induction(evaluation_time, model, regression_coefficients)
        return ValuationResults(values, error, exercise_time)

    # Regression coefficients per exercise date, to be applied to an independent simulation
    def estimate_regression_coefficients(self, model, evaluation_time=0.0):
        _, _, _, coefficients = self._backward_induction(evaluation_time, model, None)
        return coefficients

    def _backward_induction(self, evaluation_time, model, regression_coefficients):
        schedule = self.schedule

        # After the last period the product has value zero
        values = model.get_random_variable_for_constant(0.0)
        values_underlying = model.get_random_variable_for_constant(0.0)
        exercise_time = model.get_random_variable_for_constant(float("inf"))
        coefficients_used = {}

        for period in reversed(range(len(schedule))):
            fixing_date = schedule.fixing_dates[period]
            if fixing_date < evaluation_time:
                break
            period_length = schedule.period_lengths[period]
            payment_date = schedule.payment_dates[period]

            # Rate observed at the fixing date
            libor = model.get_libor(fixing_date, fixing_date, fixing_date + period_length)
            payoff = (libor - schedule.swap_rates[period]) * period_length * schedule.notionals[period]

            numeraire = model.get_numeraire(payment_date)
            weights = model.get_monte_carlo_weights(payment_date)
            payoff = payoff / numeraire * weights

            if self.is_callable:
                values_underlying = values_underlying + payoff
            else:
                values = values + payoff

            if schedule.is_exercise_date[period]:
                trigger_values_discounted = values - values_underlying

                # Remove foresight through the conditional expectation
                estimator = self.get_conditional_expectation_estimator(fixing_date, model)
                if regression_coefficients is not None:
                    coefficients = regression_coefficients[fixing_date]
                else:
                    coefficients = estimator.get_regression_coefficients(trigger_values_discounted)
                trigger_values = estimator.get_value_for_coefficients(coefficients)
                coefficients_used[fixing_date] = coefficients

                values = trigger_values.choose(values, values_underlying)
                exercise_time = trigger_values.choose(exercise_time, fixing_date)

                if logger.isEnabledFor(logging.DEBUG):
                    logger.debug("Exercise date %.4f: exercised on %.2f%% of paths",
                                 fixing_date, 100.0 * (trigger_values.values < 0.0).double().mean().item())

        # values is a relative price: rescale to the evaluation time
        numeraire_at_evaluation = model.get_numeraire(evaluation_time)
        weights_at_evaluation = model.get_monte_carlo_weights(evaluation_time)
        values = values * numeraire_at_evaluation / weights_at_evaluation

        return values, values.standard_error(), exercise_time, coefficients_used

    def get_conditional_expectation_estimator(self, fixing_date, model):
        if self.basis_functions_provider is not None:
            basis_functions = self.basis_functions_provider.get_basis_functions(fixing_date, model)
        else:
            basis_functions = self.get_basis_functions(fixing_date, model)
        return MonteCarloConditionalExpectationRegression(basis_functions)

    def get_basis_functions(self, fixing_date, model):
        schedule = self.schedule
        basis_functions = [model.get_random_variable_for_constant(1.0)]

        # Period starting at (or next after) the fixing date
        fixing_date_index = min(bisect_left(schedule.fixing_dates, fixing_date), len(schedule) - 1)

        # Discount factor over the next period
        payment_date = schedule.payment_dates[fixing_date_index]
        rate_short = model.get_libor(fixing_date, fixing_date, payment_date)
        discount_short = (rate_short * (payment_date - fixing_date) + 1.0).invert()
        basis_functions.append(discount_short)
        basis_functions.append(discount_short ** 2)

        # Discount factor to the end of the product
        period_start = schedule.fixing_dates[fixing_date_index]
        final_maturity = self.final_maturity
        rate_long = model.get_libor(fixing_date, period_start, final_maturity)
        discount_long = (rate_long * (final_maturity - period_start) + 1.0).invert()
        basis_functions.append(discount_long)
        basis_functions.append(discount_long ** 2)

        basis_functions.append(model.get_numeraire(fixing_date).invert())

        return basis_functions

    def get_exercise_times(self):
        return list(self.schedule.exercise_times)

    def get_fixing_dates(self, evaluation_time=0.0):
        return list(self.schedule.fixing_dates_after(evaluation_time))

    def get_swap(self):
        return SimpleSwap.from_schedule(self.schedule, IRSType.PAYER)

    @property
    def final_maturity(self):
        return self.schedule.final_maturity
