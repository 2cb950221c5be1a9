import numpy as np
from mcrates.common.packages import *
from mcrates.common.exceptions import CalculationException


# Piecewise constant forward rate volatility on a (simulation time x time to maturity) grid.
# Cells with simulation time + time to maturity beyond the last LIBOR period carry no parameter.
class LIBORVolatilityModelPiecewiseConstant:
    def __init__(self,
                 time_grid,                 # Simulation TimeGrid
                 libor_period_grid,         # TimeGrid of the forward rate periods
                 simulation_time_grid,      # TimeGrid of the volatility rows
                 time_to_maturity_grid,     # TimeGrid of the volatility columns
                 volatility,                # Single value or one value per included cell
                 is_calibrateable : bool = True
                 ):
        self.time_grid = time_grid
        self.libor_period_grid = libor_period_grid
        self.simulation_time_grid = simulation_time_grid
        self.time_to_maturity_grid = time_to_maturity_grid
        self.is_calibrateable = is_calibrateable

        self.index_map = self._build_index_map()
        num_parameters = sum(len(row) for row in self.index_map.values())

        if isinstance(volatility, torch.Tensor):
            volatility = volatility.reshape(-1).to(dtype=FLOAT, device=device)
        else:
            volatility = torch.tensor(np.atleast_1d(np.asarray(volatility, dtype=np.float64)), dtype=FLOAT, device=device)

        if volatility.numel() == 1:
            volatility = volatility.expand(num_parameters)
        elif volatility.numel() != num_parameters:
            raise ValueError(
                f"Volatility length {volatility.numel()} does not match the number of free parameters {num_parameters}.")
        self.volatility = volatility

    def _build_index_map(self):
        max_maturity = self.libor_period_grid.last()
        index_map = {}
        parameter_index = 0
        for i, simulation_time in enumerate(self.simulation_time_grid):
            row = {}
            for j, time_to_maturity in enumerate(self.time_to_maturity_grid):
                if simulation_time + time_to_maturity > max_maturity:
                    continue
                row[j] = parameter_index
                parameter_index += 1
            index_map[i] = row
        return index_map

    @classmethod
    def from_volatility_matrix(cls, time_grid, libor_period_grid, simulation_time_grid,
                               time_to_maturity_grid, volatility_matrix, is_calibrateable=True):
        volatility_matrix = np.asarray(volatility_matrix, dtype=np.float64)
        expected_shape = (len(simulation_time_grid), len(time_to_maturity_grid))
        if volatility_matrix.shape != expected_shape:
            raise ValueError(f"Volatility matrix must have shape {expected_shape}, got {volatility_matrix.shape}.")

        max_maturity = libor_period_grid.last()
        values = [
            volatility_matrix[i, j]
            for i, simulation_time in enumerate(simulation_time_grid)
            for j, time_to_maturity in enumerate(time_to_maturity_grid)
            if simulation_time + time_to_maturity <= max_maturity
        ]
        return cls(time_grid, libor_period_grid, simulation_time_grid, time_to_maturity_grid, values, is_calibrateable)

    def get_number_of_parameters(self):
        return self.volatility.numel()

    def get_parameter(self):
        return self.volatility if self.is_calibrateable else None

    def get_clone_with_modified_parameter(self, parameter):
        return LIBORVolatilityModelPiecewiseConstant(
            self.time_grid, self.libor_period_grid, self.simulation_time_grid,
            self.time_to_maturity_grid, parameter, self.is_calibrateable)

    def get_volatility(self, time_index, libor_index):
        time = self.time_grid.get_time(time_index)
        maturity = self.libor_period_grid.get_time(libor_index)
        time_to_maturity = maturity - time

        # Already fixed forward rates have no volatility
        if time_to_maturity <= 0.0:
            return torch.zeros((), dtype=FLOAT, device=device)

        row = self.simulation_time_grid.floor_index(time)
        column = self.time_to_maturity_grid.floor_index(time_to_maturity)

        parameter_index = self.index_map[row].get(column)
        if parameter_index is None:
            raise CalculationException(
                f"No volatility for simulation time {time} and time to maturity {time_to_maturity}.")
        return self.volatility[parameter_index]

    def get_time_discretization(self):
        return self.time_grid

    def get_libor_period_discretization(self):
        return self.libor_period_grid

    def get_simulation_time_discretization(self):
        return self.simulation_time_grid

    def get_time_to_maturity_discretization(self):
        return self.time_to_maturity_grid
