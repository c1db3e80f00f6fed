"""DM inter-tank transfer: one shared pump, two mutually exclusive modes.

DRAW_FROM_STANDBY is the emergency mode, pumping a standby tank into the
service pool when both DM and DG are critically low. FILL_STANDBY diverts
part of the MB outlet into the lowest standby tank while the service tanks
are comfortably full.
"""

from __future__ import annotations

from dataclasses import replace

from demin_sim.models.constants import PlantParameters
from demin_sim.models.plant_state import (
    IDLE_TRANSFER,
    SimulationState,
    TransferMode,
    TransferOperation,
)
from demin_sim.recording.events import EventKind, LogsheetAction, Severity, TickRecorder


class TransferController:
    """Stops the running transfer when its goal is met, then looks for a new one."""

    def __init__(self, params: PlantParameters):
        self.params = params
        self.settings = params.transfer

    def step(self, state: SimulationState, recorder: TickRecorder) -> SimulationState:
        if state.transfer.mode is TransferMode.DRAW_FROM_STANDBY:
            state = self._check_draw_stop(state, recorder)
        elif state.transfer.mode is TransferMode.FILL_STANDBY:
            state = self._check_fill_stop(state, recorder)

        if not state.transfer.active:
            state = self._check_draw_start(state, recorder)
        if not state.transfer.active:
            state = self._check_fill_start(state, recorder)
        return state

    # ------------------------------------------------------------------
    # Emergency draw
    # ------------------------------------------------------------------

    def _check_draw_start(self, state, recorder):
        s = self.settings
        dm_level = state.average_service_dm_level
        dg_level = state.dg_level
        if not (dm_level < s.dm_critical_m and dg_level < s.dg_critical_m):
            return state

        source = next(
            (t for t in state.standby_dm_tanks if t.level > s.draw_trigger_level_m),
            None,
        )
        if source is None:
            return state

        recorder.event(
            EventKind.TRANSFER_START,
            source.id,
            f"EMERGENCY: Drawing water from {source.id} - both DM and DG critical",
            Severity.ERROR,
        )
        recorder.log(
            LogsheetAction.TRANSFER_STARTED,
            source.id,
            f"EMERGENCY: Both DM ({dm_level:.2f}m) and DG ({dg_level:.2f}m) critically "
            f"low (below {s.dm_critical_m}m). Drawing water from standby tank "
            f"{source.id} at {source.level:.2f}m.",
            f"Started emergency transfer from {source.id} at {s.draw_rate_m3hr:.0f} m3/hr",
            dg_level,
            dm_level,
        )
        return replace(
            state,
            transfer=TransferOperation(
                mode=TransferMode.DRAW_FROM_STANDBY,
                source_id=source.id,
                rate=s.draw_rate_m3hr,
            ),
        )

    def _check_draw_stop(self, state, recorder):
        s = self.settings
        source_id = state.transfer.source_id
        source = state.dm_tank(source_id)
        recovered = all(t.level > s.service_recovered_m for t in state.service_dm_tanks)
        depleted = source is None or source.level <= s.draw_stop_level_m
        if not (recovered or depleted):
            return state

        if recovered:
            reason = (
                f"Service tanks recovered above {s.service_recovered_m}m. "
                f"Transfer no longer needed."
            )
        else:
            level = source.level if source is not None else 0.0
            reason = f"Source tank {source_id} depleted to {level:.2f}m. Stopping transfer."

        recorder.event(
            EventKind.TRANSFER_END,
            source_id or "",
            f"Transfer from {source_id} stopped",
        )
        recorder.log(
            LogsheetAction.TRANSFER_STOPPED,
            source_id or "",
            reason,
            f"Stopped transfer from {source_id}",
            state.dg_level,
            state.average_service_dm_level,
        )
        return replace(state, transfer=IDLE_TRANSFER)

    # ------------------------------------------------------------------
    # Opportunistic standby fill
    # ------------------------------------------------------------------

    def _check_fill_start(self, state, recorder):
        s = self.settings
        standby = state.standby_dm_tanks
        if not standby:
            return state
        if not all(t.level < s.fill_target_m for t in standby):
            return state
        if not all(t.level > s.service_min_for_fill_m for t in state.service_dm_tanks):
            return state

        target = min(standby, key=lambda t: t.level)
        recorder.event(
            EventKind.TRANSFER_START,
            target.id,
            f"Filling standby tank {target.id} from MB outlet",
        )
        recorder.log(
            LogsheetAction.STANDBY_FILL_STARTED,
            target.id,
            f"Service DM tanks healthy (all above {s.service_min_for_fill_m}m). Standby "
            f"tanks below {s.fill_target_m}m target. Filling {target.id} (current: "
            f"{target.level:.2f}m) from MB outlet at {s.fill_rate_m3hr:.0f} m3/hr.",
            f"Started filling {target.id} at {s.fill_rate_m3hr:.0f} m3/hr",
            state.dg_level,
            state.average_service_dm_level,
        )
        return replace(
            state,
            transfer=TransferOperation(
                mode=TransferMode.FILL_STANDBY,
                target_id=target.id,
                rate=s.fill_rate_m3hr,
            ),
        )

    def _check_fill_stop(self, state, recorder):
        s = self.settings
        target_id = state.transfer.target_id
        target = state.dm_tank(target_id)
        reached = target is None or target.level >= s.fill_target_m
        service_low = any(
            t.level <= s.service_min_for_fill_m for t in state.service_dm_tanks
        )
        if not (reached or service_low):
            return state

        if reached:
            reason = f"{target_id} reached target level of {s.fill_target_m}m. Filling complete."
            message = f"{target_id} filled to target level"
            operator_action = f"Completed filling {target_id} to {s.fill_target_m}m"
        else:
            reason = (
                f"Service tank levels dropped below {s.service_min_for_fill_m}m. "
                f"Stopping standby fill to preserve service supply."
            )
            message = "Standby fill stopped - service tanks need priority"
            operator_action = f"Stopped filling {target_id} - service tanks low"

        recorder.event(EventKind.TRANSFER_END, target_id or "", message)
        recorder.log(
            LogsheetAction.STANDBY_FILL_COMPLETED,
            target_id or "",
            reason,
            operator_action,
            state.dg_level,
            state.average_service_dm_level,
        )
        return replace(state, transfer=IDLE_TRANSFER)
