"""Automatic control policy: an ordered rule table evaluated every tick."""

from __future__ import annotations

from typing import Iterable, List, Optional

from demin_sim.controllers.base import ControlRule, PlantReadings
from demin_sim.controllers.rules import (
    SacToServiceRule,
    SacToStandbyRule,
    SbaToServiceRule,
    SbaToStandbyRule,
    StreamBalanceRule,
)
from demin_sim.models.constants import ControlThresholds, PlantParameters
from demin_sim.models.plant_state import SimulationState
from demin_sim.recording.events import TickRecorder


def default_rules(control: ControlThresholds) -> List[ControlRule]:
    """Rule order matters: cations first, then anions, then mixed beds."""
    return [
        SacToServiceRule(control),
        SacToStandbyRule(control),
        SbaToStandbyRule(control),
        SbaToServiceRule(control),
        StreamBalanceRule(control),
    ]


class ControlPolicyEngine:
    """Applies each triggered rule in order against this tick's readings."""

    def __init__(
        self,
        params: PlantParameters,
        rules: Optional[Iterable[ControlRule]] = None,
    ):
        self.params = params
        self.rules = list(rules) if rules is not None else default_rules(params.control)

    def step(self, state: SimulationState, recorder: TickRecorder) -> SimulationState:
        readings = PlantReadings.from_state(state)
        for rule in self.rules:
            if rule.applies(state, readings):
                state = rule.act(state, readings, recorder)
        return state
