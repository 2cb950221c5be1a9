import logging
import threading
import time as timer
from mcrates.common.packages import *
from mcrates.stochastic.pathwise_value import PathwiseValue

logger = logging.getLogger(__name__)


# Brownian increments for a fixed (time grid, factors, paths, seed) tuple.
# The increments are generated once, on first access, and are read-only afterwards.
class BrownianMotionLazyInit:
    def __init__(self,
                 time_grid,             # TimeGrid of the simulation
                 num_factors : int,     # Number of independent factors
                 num_paths   : int,     # Number of Monte Carlo paths
                 seed        : int      # Seed of the uniform generator
                 ):
        if num_factors < 1:
            raise ValueError(f"num_factors must be positive, got {num_factors}.")
        if num_paths < 1:
            raise ValueError(f"num_paths must be positive, got {num_paths}.")

        self.time_grid = time_grid
        self.num_factors = num_factors
        self.num_paths = num_paths
        self.seed = seed

        self._increments = None
        self._lock = threading.Lock()

    def _ensure_initialized(self):
        if self._increments is not None:
            return
        with self._lock:
            if self._increments is None:
                self._increments = self._generate_increments()

    def _generate_increments(self):
        start = timer.perf_counter()
        num_steps = self.time_grid.number_of_time_steps

        generator = torch.Generator(device="cpu").manual_seed(self.seed)

        # Path-major draws: for each path all (time, factor) uniforms are consecutive
        uniforms = torch.rand((self.num_paths, num_steps, self.num_factors), generator=generator, dtype=FLOAT)
        uniforms = uniforms.clamp_min(torch.finfo(FLOAT).tiny)

        time_steps = torch.tensor([self.time_grid.get_time_step(i) for i in range(num_steps)], dtype=FLOAT)
        increments = torch.special.ndtri(uniforms) * torch.sqrt(time_steps).view(1, num_steps, 1)

        increments = increments.permute(1, 2, 0).contiguous().to(device)

        logger.debug("Generated %d x %d x %d Brownian increments in %.3fs",
                     num_steps, self.num_factors, self.num_paths, timer.perf_counter() - start)
        return increments

    def get_brownian_increment(self, time_index, factor):
        if not 0 <= time_index < self.time_grid.number_of_time_steps:
            raise IndexError(f"Time index {time_index} out of range [0, {self.time_grid.number_of_time_steps}).")
        if not 0 <= factor < self.num_factors:
            raise IndexError(f"Factor {factor} out of range [0, {self.num_factors}).")

        self._ensure_initialized()
        return PathwiseValue(self._increments[time_index, factor])

    def get_increment(self, time_index, factor):
        return self.get_brownian_increment(time_index, factor)

    def get_time_discretization(self):
        return self.time_grid

    def get_number_of_factors(self):
        return self.num_factors

    def get_number_of_paths(self):
        return self.num_paths

    def get_random_variable_for_constant(self, value):
        return PathwiseValue.constant(value)

    def get_clone_with_modified_seed(self, seed):
        return BrownianMotionLazyInit(self.time_grid, self.num_factors, self.num_paths, seed)

    def get_clone_with_modified_time_discretization(self, time_grid):
        return BrownianMotionLazyInit(time_grid, self.num_factors, self.num_paths, self.seed)

    def __eq__(self, other):
        return (
            isinstance(other, BrownianMotionLazyInit) and
            self.time_grid == other.time_grid and
            self.num_factors == other.num_factors and
            self.num_paths == other.num_paths and
            self.seed == other.seed
        )

    def __hash__(self):
        return hash((
            self.time_grid,
            self.num_factors,
            self.num_paths,
            self.seed
        ))

    def __repr__(self):
        return (f"BrownianMotionLazyInit(steps={self.time_grid.number_of_time_steps}, "
                f"factors={self.num_factors}, paths={self.num_paths}, seed={self.seed})")
