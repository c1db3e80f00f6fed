from demin_sim.controllers.base import ControlRule, PlantReadings
from demin_sim.controllers.policy import ControlPolicyEngine, default_rules
from demin_sim.controllers.transfer import TransferController

__all__ = [
    "ControlRule",
    "PlantReadings",
    "ControlPolicyEngine",
    "default_rules",
    "TransferController",
]
