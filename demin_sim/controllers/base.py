"""Abstract control-rule interface."""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass

from demin_sim.models.constants import ControlThresholds
from demin_sim.models.plant_state import SimulationState
from demin_sim.recording.events import TickRecorder


@dataclass(frozen=True)
class PlantReadings:
    """Levels the policy reacts to, read once per tick after integration."""

    dg_level: float
    avg_dm_level: float

    @classmethod
    def from_state(cls, state: SimulationState) -> PlantReadings:
        return cls(
            dg_level=state.dg_level,
            avg_dm_level=state.average_service_dm_level,
        )


class ControlRule(ABC):
    """Base class for automatic-control rules.

    A rule is a predicate (``applies``) plus an action (``act``) that
    returns the updated state. Rules are evaluated in a fixed order.
    """

    def __init__(self, control: ControlThresholds):
        self.control = control

    @property
    @abstractmethod
    def name(self) -> str:
        """Human-readable rule name."""

    @abstractmethod
    def applies(self, state: SimulationState, readings: PlantReadings) -> bool:
        """Whether the rule's trigger condition holds this tick."""

    @abstractmethod
    def act(
        self,
        state: SimulationState,
        readings: PlantReadings,
        recorder: TickRecorder,
    ) -> SimulationState:
        """Apply the rule and return the new state."""
