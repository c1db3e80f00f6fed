from demin_sim.models.constants import DEFAULT_PARAMETERS, PlantParameters, SHIFT_INFO
from demin_sim.models.config import SimulationConfig, default_config, validate_config
from demin_sim.models.plant_state import (
    EquipmentStatus,
    ExchangerType,
    ExchangerUnit,
    SimulationState,
    Tank,
    TankStatus,
)

__all__ = [
    "DEFAULT_PARAMETERS",
    "PlantParameters",
    "SHIFT_INFO",
    "SimulationConfig",
    "default_config",
    "validate_config",
    "EquipmentStatus",
    "ExchangerType",
    "ExchangerUnit",
    "SimulationState",
    "Tank",
    "TankStatus",
]
