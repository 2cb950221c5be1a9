"""
Run configuration for Monte Carlo valuations.

Holds the path counts, seeds and logging level used by the simulation
controller. Model and product parameters are not part of the configuration.
"""

import json
from dataclasses import dataclass, asdict, fields
from pathlib import Path
from typing import Any, Dict


@dataclass
class SimulationConfig:
    """
    Settings for one valuation run.

    A pre-simulation with ``num_paths_presim`` paths is used to estimate the
    exercise regression coefficients on paths independent of the main
    simulation. With ``num_paths_presim = 0`` the regression is performed
    in-sample on the main simulation paths.
    """

    # ============================================================================
    # Monte Carlo Settings
    # ============================================================================
    num_paths: int = 10000          # Number of paths of the main simulation
    num_paths_presim: int = 0       # Number of paths of the regression pre-simulation (0 = in-sample)
    seed: int = 43                  # Seed of the main simulation
    seed_presim: int = 42           # Seed of the pre-simulation
    num_factors: int = 1            # Number of Brownian factors driving the model

    # ============================================================================
    # Output Configuration
    # ============================================================================
    log_level: str = "INFO"         # Level passed to configure_logging by scripts

    def __post_init__(self):
        if self.num_paths < 1:
            raise ValueError(f"num_paths must be positive, got {self.num_paths}.")
        if self.num_paths_presim < 0:
            raise ValueError(f"num_paths_presim must be non-negative, got {self.num_paths_presim}.")
        if self.num_factors < 1:
            raise ValueError(f"num_factors must be positive, got {self.num_factors}.")
        if self.num_paths_presim > 0 and self.seed_presim == self.seed:
            raise ValueError("Pre-simulation and main simulation must use different seeds.")

    @property
    def uses_presimulation(self) -> bool:
        return self.num_paths_presim > 0

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "SimulationConfig":
        known = {f.name for f in fields(cls)}
        unknown = set(data) - known
        if unknown:
            raise ValueError(f"Unknown configuration keys: {sorted(unknown)}")
        return cls(**data)

    @classmethod
    def from_json(cls, path) -> "SimulationConfig":
        with open(Path(path), "r") as f:
            return cls.from_dict(json.load(f))

    def save(self, path):
        with open(Path(path), "w") as f:
            json.dump(self.to_dict(), f, indent=2)
