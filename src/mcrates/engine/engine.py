import itertools
import logging
import threading
import time as timer
from enum import Enum
from mcrates.common.packages import *
from mcrates.stochastic.pathwise_value import PathwiseValue

logger = logging.getLogger(__name__)

# Every engine instance receives a unique, increasing version
_versions = itertools.count(1)


# Enum for simulation schemes
class SimulationScheme(Enum):
    EULER = 0


# Monte Carlo engine advancing the model state over the time grid of its driver
class MonteCarloEngine:
    def __init__(self,
                 brownian_motion,                                   # Stochastic driver
                 model,                                             # Model supplying initial state, drift and factor loadings
                 simulation_scheme : SimulationScheme = SimulationScheme.EULER
                 ):
        if simulation_scheme != SimulationScheme.EULER:
            raise ValueError(f"Unsupported simulation scheme {simulation_scheme}.")

        self.brownian_motion = brownian_motion
        self.model = model
        self.simulation_scheme = simulation_scheme
        self.version = next(_versions)

        self._initial_state = None
        self._states = None
        self._lock = threading.RLock()

        model.set_process(self)

    def get_initial_state(self):
        with self._lock:
            if self._initial_state is None:
                self._initial_state = self.model.get_initial_state()
            return self._initial_state

    def _ensure_initialized(self):
        if self._states is not None:
            return
        with self._lock:
            if self._states is None:
                self._states = self.generate_paths()

    def generate_paths(self):
        start = timer.perf_counter()
        time_grid = self.get_time_discretization()
        num_paths = self.get_number_of_paths()

        state = list(self.get_initial_state())
        states = [torch.stack([component.expand(num_paths) for component in state])]

        for time_index in range(time_grid.number_of_time_steps):
            dt = time_grid.get_time_step(time_index)
            drift = self.model.get_drift(time_index, state)

            next_state = []
            for component in range(len(state)):
                value = state[component] + drift[component] * dt
                loadings = self.model.get_factor_loading(time_index, component, state)
                for factor, loading in enumerate(loadings):
                    value = value + loading * self.brownian_motion.get_brownian_increment(time_index, factor)
                next_state.append(value)

            state = next_state
            states.append(torch.stack([component.expand(num_paths) for component in state]))

        logger.debug("Generated %d paths over %d time steps in %.3fs (engine version %d)",
                     num_paths, time_grid.number_of_time_steps, timer.perf_counter() - start, self.version)

        # shape: [num_times, num_components, num_paths]
        return torch.stack(states)

    def get_process_value(self, time_index, component=0):
        if not 0 <= time_index < self.get_time_discretization().number_of_times:
            raise IndexError(f"Time index {time_index} out of range [0, {self.get_time_discretization().number_of_times}).")
        self._ensure_initialized()
        if not 0 <= component < self._states.shape[1]:
            raise IndexError(f"Component {component} out of range [0, {self._states.shape[1]}).")
        return PathwiseValue(self._states[time_index, component])

    def get_monte_carlo_weights(self, time_index):
        num_paths = self.get_number_of_paths()
        return PathwiseValue(torch.full((num_paths,), 1.0 / num_paths, dtype=FLOAT, device=device))

    def get_time_discretization(self):
        return self.brownian_motion.get_time_discretization()

    def get_time(self, time_index):
        return self.get_time_discretization().get_time(time_index)

    def get_time_index(self, time):
        return self.get_time_discretization().get_time_index(time)

    def get_number_of_paths(self):
        return self.brownian_motion.get_number_of_paths()

    def get_number_of_factors(self):
        return self.brownian_motion.get_number_of_factors()

    def get_stochastic_driver(self):
        return self.brownian_motion

    def get_model(self):
        return self.model
