from mcrates.stochastic.pathwise_value import PathwiseValue


# Facade combining a model and its simulation process.
# Products are valued against this surface only.
class LIBORMonteCarloSimulation:
    def __init__(self, model, process):
        model.set_process(process)
        self.model = model
        self.process = process

    def get_model(self):
        return self.model

    def get_process(self):
        return self.process

    def get_libor(self, time, period_start, period_end):
        return self.model.get_libor(time, period_start, period_end)

    def get_numeraire(self, time):
        return self.model.get_numeraire(time)

    def get_zero_coupon_bond(self, time, maturity):
        return self.model.get_zero_coupon_bond(time, maturity)

    def get_monte_carlo_weights(self, time):
        time_grid = self.process.get_time_discretization()
        return self.process.get_monte_carlo_weights(time_grid.floor_index(time))

    def get_process_value(self, time_index, component=0):
        return self.process.get_process_value(time_index, component)

    def get_time_index(self, time):
        return self.process.get_time_index(time)

    def get_time(self, time_index):
        return self.process.get_time(time_index)

    def get_time_discretization(self):
        return self.process.get_time_discretization()

    def get_random_variable_for_constant(self, value):
        return PathwiseValue.constant(value)

    def get_number_of_paths(self):
        return self.process.get_number_of_paths()

    def get_number_of_factors(self):
        return self.process.get_number_of_factors()
