import threading
from mcrates.common.packages import *
from mcrates.maths.linear_algebra import factor_reduction, correlation_from_factors


# Correlation rho_ij = b + (1-b) exp(-a |T_i - T_j| - c max(T_i, T_j)) between the
# forward rates of a LIBOR period grid, reduced to num_factors factors
class LIBORCorrelationModelThreeParameterExponentialDecay:
    def __init__(self,
                 time_grid,                     # Simulation TimeGrid
                 libor_period_grid,             # TimeGrid of the forward rate periods
                 num_factors : int,
                 a : float,
                 b : float,
                 c : float,
                 is_calibrateable : bool = False
                 ):
        self.time_grid = time_grid
        self.libor_period_grid = libor_period_grid
        self.num_factors = num_factors
        self.a = a
        self.b = b
        self.c = c
        self.is_calibrateable = is_calibrateable

        num_libors = libor_period_grid.number_of_time_steps
        if not 1 <= num_factors <= num_libors:
            raise ValueError(f"num_factors must be in [1, {num_libors}], got {num_factors}.")

        self._full_correlation = None
        self._correlation = None
        self._factor_matrix = None
        self._lock = threading.Lock()

    def _ensure_initialized(self):
        if self._factor_matrix is not None:
            return
        with self._lock:
            if self._factor_matrix is None:
                self._initialize()

    def _initialize(self):
        a = max(self.a, 0.0)
        b = min(max(self.b, 0.0), 1.0)
        c = max(self.c, 0.0)

        num_libors = self.libor_period_grid.number_of_time_steps
        periods = torch.tensor(self.libor_period_grid.times[:num_libors], dtype=FLOAT, device=device)
        T1 = periods.unsqueeze(1)
        T2 = periods.unsqueeze(0)

        full = b + (1.0 - b) * torch.exp(-a * torch.abs(T1 - T2) - c * torch.maximum(T1, T2))
        full.fill_diagonal_(1.0)

        factor_matrix = factor_reduction(full, self.num_factors)

        self._full_correlation = full
        self._correlation = correlation_from_factors(factor_matrix)
        self._factor_matrix = factor_matrix

    def get_parameter(self):
        if not self.is_calibrateable:
            return None
        return torch.tensor([self.a, self.b, self.c], dtype=FLOAT, device=device)

    def get_clone_with_modified_parameter(self, parameter):
        if not self.is_calibrateable:
            return self
        a, b, c = (float(p) for p in parameter)
        return LIBORCorrelationModelThreeParameterExponentialDecay(
            self.time_grid, self.libor_period_grid, self.num_factors, a, b, c, self.is_calibrateable)

    def get_factor_loading(self, time_index, factor, component):
        self._ensure_initialized()
        return self._factor_matrix[component, factor]

    def get_correlation(self, time_index, component1, component2):
        self._ensure_initialized()
        return self._correlation[component1, component2]

    def get_correlation_matrix(self):
        self._ensure_initialized()
        return self._correlation

    def get_full_correlation_matrix(self):
        self._ensure_initialized()
        return self._full_correlation

    def get_factor_matrix(self):
        self._ensure_initialized()
        return self._factor_matrix

    def get_number_of_factors(self):
        return self.num_factors

    def get_time_discretization(self):
        return self.time_grid

    def get_libor_period_discretization(self):
        return self.libor_period_grid
