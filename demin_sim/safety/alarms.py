"""Tank level alarms.

Raised once when a level leaves its operating band, not on every tick it
stays outside.
"""

from __future__ import annotations

from typing import Iterable

from demin_sim.models.constants import PlantParameters
from demin_sim.models.plant_state import SimulationState, Tank, TankType
from demin_sim.recording.events import EventKind, Severity, TickRecorder


class LevelAlarm:
    """Compares tank levels at the start and end of a tick."""

    def __init__(self, params: PlantParameters):
        self.params = params

    def _band(self, tank: Tank):
        geo = self.params.tanks
        if tank.type is TankType.DG:
            return geo.dg_min_level_m, geo.dg_overflow_level_m
        return geo.dm_min_level_m, geo.dm_overflow_level_m

    def check(
        self,
        before: SimulationState,
        after: SimulationState,
        recorder: TickRecorder,
    ) -> None:
        previous = {t.id: t.level for t in before.dg_tanks + before.dm_tanks}
        # The DG tanks share one level, so one alarm covers both
        tanks: Iterable[Tank] = after.dg_tanks[:1] + after.dm_tanks
        for tank in tanks:
            was = previous.get(tank.id)
            if was is None:
                continue
            low, high = self._band(tank)
            if was >= low > tank.level:
                recorder.event(
                    EventKind.LEVEL_WARNING,
                    tank.id,
                    f"{tank.id} level LOW at {tank.level:.2f}m (below {low}m)",
                    Severity.WARNING,
                )
            elif was <= high < tank.level:
                recorder.event(
                    EventKind.LEVEL_WARNING,
                    tank.id,
                    f"{tank.id} level HIGH at {tank.level:.2f}m (above {high}m)",
                    Severity.WARNING,
                )
