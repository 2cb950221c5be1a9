from mcrates.common.packages import *


# Forward rate covariance built from a volatility and a correlation model
class LIBORCovarianceModelFromVolatilityAndCorrelation:
    def __init__(self, volatility_model, correlation_model):
        if volatility_model.get_libor_period_discretization() != correlation_model.get_libor_period_discretization():
            raise ValueError("Volatility and correlation model must share the LIBOR period grid.")
        self.volatility_model = volatility_model
        self.correlation_model = correlation_model

    def get_number_of_factors(self):
        return self.correlation_model.get_number_of_factors()

    def get_factor_loading(self, time_index, factor, component):
        volatility = self.volatility_model.get_volatility(time_index, component)
        return volatility * self.correlation_model.get_factor_loading(time_index, factor, component)

    def get_factor_loadings(self, time_index, component):
        return torch.stack([
            self.get_factor_loading(time_index, factor, component)
            for factor in range(self.get_number_of_factors())
        ])

    def get_covariance(self, time_index, component1, component2):
        volatility1 = self.volatility_model.get_volatility(time_index, component1)
        volatility2 = self.volatility_model.get_volatility(time_index, component2)
        return volatility1 * volatility2 * self.correlation_model.get_correlation(time_index, component1, component2)

    def get_time_discretization(self):
        return self.volatility_model.get_time_discretization()

    def get_libor_period_discretization(self):
        return self.volatility_model.get_libor_period_discretization()
