"""Shift summary statistics.

Aggregates the timeline and event list of a finished run into the figures
shown at the end of a shift: level ranges, regeneration counts, alarm
counts and water totals.
"""

from __future__ import annotations

from dataclasses import asdict, dataclass
from typing import Dict, Sequence, TYPE_CHECKING

import numpy as np

from demin_sim.models.plant_state import TankType
from demin_sim.recording.events import EventKind, Severity, SimulationEvent

if TYPE_CHECKING:
    from demin_sim.engine import TimelineSnapshot


@dataclass(frozen=True)
class SimulationSummary:
    total_water_produced: float     # m3 of MB output over the shift
    total_water_supplied: float     # m3 delivered to consumers
    regenerations_completed: int
    regenerations_started: int
    average_dg_level: float
    average_dm_level: float
    min_dg_level: float
    min_dm_level: float
    max_dg_level: float
    max_dm_level: float
    critical_events: int
    warnings: int

    def to_dict(self) -> Dict[str, float]:
        return asdict(self)


def summarize(
    timeline: Sequence["TimelineSnapshot"],
    events: Sequence[SimulationEvent],
    tick_minutes: int = 1,
) -> SimulationSummary:
    """Build the summary for a completed timeline (t=0 snapshot first)."""
    dg = np.array([snap.dg_level for snap in timeline])
    dm = np.array(
        [
            t.level
            for snap in timeline
            for t in snap.tanks.values()
            if t.type is TankType.DM
        ]
    )

    # The t=0 snapshot integrates nothing; every later one covers one tick
    hours = tick_minutes / 60.0
    produced = float(np.sum([s.flows.mb_total_output for s in timeline[1:]]) * hours)
    supplied = float(np.sum([s.flows.total_supply for s in timeline[1:]]) * hours)

    def count(kind: EventKind) -> int:
        return sum(1 for e in events if e.kind is kind)

    def level_stats(levels: np.ndarray):
        if levels.size == 0:
            return 0.0, 0.0, 0.0
        return float(np.mean(levels)), float(np.min(levels)), float(np.max(levels))

    dg_avg, dg_min, dg_max = level_stats(dg)
    dm_avg, dm_min, dm_max = level_stats(dm)

    return SimulationSummary(
        total_water_produced=round(produced, 1),
        total_water_supplied=round(supplied, 1),
        regenerations_completed=count(EventKind.REGEN_COMPLETE),
        regenerations_started=count(EventKind.REGEN_START),
        average_dg_level=dg_avg,
        average_dm_level=dm_avg,
        min_dg_level=dg_min,
        min_dm_level=dm_min,
        max_dg_level=dg_max,
        max_dm_level=dm_max,
        critical_events=sum(1 for e in events if e.severity is Severity.ERROR),
        warnings=sum(1 for e in events if e.severity is Severity.WARNING),
    )
