import logging
import time as timer
from mcrates.common.packages import *
from mcrates.common.config import SimulationConfig
from mcrates.engine.brownian_motion import BrownianMotionLazyInit
from mcrates.engine.engine import MonteCarloEngine, SimulationScheme
from mcrates.engine.simulation import LIBORMonteCarloSimulation

logger = logging.getLogger(__name__)


class SimulationResults:
    def __init__(self, results, derivatives):
        self.valuations = results
        self.results = [self._to_numpy_nested(result.to_numpy()) for result in results]
        self.prices = [result.get_price().item() for result in results]
        self.derivatives = self._to_numpy_nested(derivatives)

    def _to_numpy_nested(self, obj):
        if isinstance(obj, torch.Tensor):
            return obj.detach().cpu().numpy()
        elif isinstance(obj, dict):
            return {key: self._to_numpy_nested(value) for key, value in obj.items()}
        elif isinstance(obj, (list, tuple)):
            return type(obj)(self._to_numpy_nested(x) for x in obj)
        else:
            return obj

    def get_results(self, prod_idx):
        return self.results[prod_idx]

    def get_price(self, prod_idx):
        return self.prices[prod_idx]

    def get_error(self, prod_idx):
        return float(self.results[prod_idx]["error"])

    def get_derivatives(self, prod_idx):
        return self.derivatives[prod_idx]


# Runs the optional regression pre-simulation and the main simulation for a portfolio
class SimulationController:
    def __init__(self,
                 portfolio,                         # List of products
                 model,                             # Model, bound to the engines created here
                 time_grid,                         # TimeGrid containing all product dates
                 config : SimulationConfig = None,
                 differentiate : bool = False,
                 simulation_scheme : SimulationScheme = SimulationScheme.EULER
                 ):
        self.portfolio = portfolio
        self.model = model
        self.time_grid = time_grid
        self.config = config if config is not None else SimulationConfig()
        self.differentiate = differentiate
        self.simulation_scheme = simulation_scheme

        for prod_id, prod in enumerate(portfolio):
            prod.product_id = prod_id

    def _create_simulation(self, num_paths, seed):
        brownian_motion = BrownianMotionLazyInit(self.time_grid, self.config.num_factors, num_paths, seed)
        engine = MonteCarloEngine(brownian_motion, self.model, self.simulation_scheme)
        return LIBORMonteCarloSimulation(self.model, engine)

    def _perform_regression(self, evaluation_time):
        start = timer.perf_counter()
        simulation = self._create_simulation(self.config.num_paths_presim, self.config.seed_presim)

        regression_coefficients = {}
        with torch.no_grad():
            for prod in self.portfolio:
                if hasattr(prod, "estimate_regression_coefficients"):
                    regression_coefficients[prod.product_id] = prod.estimate_regression_coefficients(
                        simulation, evaluation_time)

        logger.info("Pre-simulation with %d paths finished in %.3fs",
                    self.config.num_paths_presim, timer.perf_counter() - start)
        return regression_coefficients

    def evaluate_products(self, simulation, evaluation_time, regression_coefficients):
        results = []
        for prod in self.portfolio:
            if prod.product_id in regression_coefficients:
                result = prod.get_values(evaluation_time, simulation,
                                         regression_coefficients=regression_coefficients[prod.product_id])
            else:
                result = prod.get_values(evaluation_time, simulation)
            results.append(result)

        grads = []
        if self.differentiate:
            model_params = self.model.get_model_params()
            for result in results:
                _grads = torch.autograd.grad(
                    result.get_price(),
                    model_params,
                    retain_graph=True,
                    allow_unused=True,
                )
                grads.append(list(_grads))

        return SimulationResults(results, grads)

    def run_simulation(self, evaluation_time=0.0):
        if self.differentiate:
            self.model.requires_grad()

        regression_coefficients = {}
        if self.config.uses_presimulation:
            regression_coefficients = self._perform_regression(evaluation_time)

        start = timer.perf_counter()
        simulation = self._create_simulation(self.config.num_paths, self.config.seed)
        results = self.evaluate_products(simulation, evaluation_time, regression_coefficients)

        logger.info("Main simulation with %d paths and %d products finished in %.3fs",
                    self.config.num_paths, len(self.portfolio), timer.perf_counter() - start)
        return results
