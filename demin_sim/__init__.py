"""Time-stepped simulator for a demineralized water treatment plant shift."""

from demin_sim.engine import SimulationEngine, SimulationResult, initialize, run
from demin_sim.models.config import SimulationConfig, default_config, validate_config
from demin_sim.models.constants import DEFAULT_PARAMETERS, PlantParameters

__all__ = [
    "SimulationEngine",
    "SimulationResult",
    "initialize",
    "run",
    "SimulationConfig",
    "default_config",
    "validate_config",
    "PlantParameters",
    "DEFAULT_PARAMETERS",
]
