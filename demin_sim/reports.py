"""Tabular views of a finished run.

Each frame has one row per tick, event or logsheet entry so results can be
charted, filtered or exported with the usual pandas tooling.
"""

from __future__ import annotations

from typing import Dict, List

import pandas as pd

from demin_sim.engine import SimulationResult, TimelineSnapshot
from demin_sim.models.plant_state import EXCHANGER_TYPES, TankType


def _timeline_row(snap: TimelineSnapshot) -> Dict[str, object]:
    row: Dict[str, object] = {
        "timestamp": snap.timestamp,
        "dg_level": snap.dg_level,
    }
    for t in EXCHANGER_TYPES:
        row[f"{t.value.lower()}_in_service"] = snap.count_in_service(t)
    for tank in snap.tanks.values():
        if tank.type is TankType.DM:
            row[f"{tank.id}_level"] = tank.level
    flows = snap.flows
    row.update(
        sac_output=flows.sac_total_output,
        sba_output=flows.sba_total_output,
        mb_output=flows.mb_total_output,
        supply=flows.total_supply,
        dg_net_flow=flows.dg_net_flow,
        dm_net_flow=flows.dm_net_flow,
        dg_regen=flows.dg_regen_consumption,
        dm_regen=flows.dm_regen_consumption,
        transfer_mode=snap.transfer.mode.value,
        transfer_rate=flows.transfer_rate,
        regenerating=",".join(snap.regeneration.active),
        queued=",".join(snap.regeneration.queued),
        stream_out_of_service=snap.stream_out_of_service or "",
        events=len(snap.events),
    )
    return row


def timeline_frame(result: SimulationResult) -> pd.DataFrame:
    """One row per tick (t=0..end) indexed by timestamp."""
    df = pd.DataFrame([_timeline_row(s) for s in result.timeline])
    return df.set_index("timestamp")


def events_frame(result: SimulationResult) -> pd.DataFrame:
    rows: List[Dict[str, object]] = [e.to_dict() for e in result.all_events]
    columns = ["timestamp", "type", "message", "equipmentId", "severity", "forced"]
    return pd.DataFrame(rows, columns=columns)


def logsheet_frame(result: SimulationResult) -> pd.DataFrame:
    rows = [entry.to_dict() for entry in result.logsheet]
    columns = [
        "timestamp",
        "actualTime",
        "action",
        "equipmentId",
        "reason",
        "operatorAction",
        "dgLevel",
        "dmLevel",
    ]
    return pd.DataFrame(rows, columns=columns)
