"""Tests for the regeneration lifecycle and bay queueing."""

from dataclasses import replace

import pytest

from demin_sim.engine import initialize
from demin_sim.models.config import default_config
from demin_sim.models.constants import DEFAULT_PARAMETERS
from demin_sim.models.plant_state import (
    EquipmentStatus,
    ExchangerType,
    RegenerationPhase,
)
from demin_sim.recording.events import EventKind, LogsheetAction, TickRecorder
from demin_sim.regeneration.state_machine import (
    RegenerationStateMachine,
    advance_cycle,
    begin_regeneration,
    queue_for_regeneration,
    regeneration_draw,
    start_cycle,
)

PARAMS = DEFAULT_PARAMETERS


def _make_state(dg_level=1.5, dm_level=4.0, time=0):
    state = initialize(default_config())
    return replace(
        state,
        current_time=time,
        dg_tanks=tuple(replace(t, level=dg_level) for t in state.dg_tanks),
        dm_tanks=tuple(replace(t, level=dm_level) for t in state.dm_tanks),
    )


def _regenerating(state, unit_id):
    return begin_regeneration(state, unit_id, TickRecorder(state.current_time), PARAMS, "test")


def _step_at(state, time):
    state = replace(state, current_time=time)
    recorder = TickRecorder(time)
    return RegenerationStateMachine(PARAMS).step(state, recorder), recorder


class TestCycleTiming:
    def test_sac_cycle_times(self):
        cycle = start_cycle("SAC-A", ExchangerType.SAC, 10, PARAMS)
        assert cycle.phase is RegenerationPhase.CHEMICAL
        assert cycle.chemical_end_time == 160
        assert cycle.total_end_time == 190
        assert cycle.dg_window_end_time is None

    def test_sba_dg_window_end(self):
        cycle = start_cycle("SBA-A", ExchangerType.SBA, 10, PARAMS)
        assert cycle.dg_window_end_time == 30

    def test_phase_progression(self):
        cycle = start_cycle("SBA-A", ExchangerType.SBA, 0, PARAMS)
        assert advance_cycle(cycle, 149).phase is RegenerationPhase.CHEMICAL
        rinse = advance_cycle(cycle, 150)
        assert rinse.phase is RegenerationPhase.RINSE
        assert advance_cycle(rinse, 169).phase is RegenerationPhase.RINSE
        assert advance_cycle(rinse, 170).phase is RegenerationPhase.COMPLETE

    def test_elapsed_and_remaining(self):
        cycle = start_cycle("MB-A", ExchangerType.MB, 5, PARAMS)
        assert cycle.elapsed(30) == 25
        assert cycle.remaining(30) == 145
        assert cycle.remaining(500) == 0


class TestRegenerationDraw:
    def test_idle_bay_draws_nothing(self):
        assert regeneration_draw(None, 10, PARAMS) == (0.0, 0.0)

    def test_sba_dg_window(self):
        cycle = start_cycle("SBA-A", ExchangerType.SBA, 0, PARAMS)
        assert regeneration_draw(cycle, 19, PARAMS) == (30.0, 25.0)
        assert regeneration_draw(cycle, 20, PARAMS) == (0.0, 25.0)

    def test_mb_dg_window(self):
        cycle = start_cycle("MB-A", ExchangerType.MB, 0, PARAMS)
        assert regeneration_draw(cycle, 39, PARAMS)[0] == 30.0
        assert regeneration_draw(cycle, 40, PARAMS)[0] == 0.0

    @pytest.mark.parametrize(
        "exchanger_type, unit_id, minutes",
        [
            (ExchangerType.SBA, "SBA-A", 19),
            (ExchangerType.MB, "MB-A", 39),
            (ExchangerType.SAC, "SAC-A", 150),
        ],
    )
    def test_dg_draw_minutes_per_cycle(self, exchanger_type, unit_id, minutes):
        cycle = start_cycle(unit_id, exchanger_type, 0, PARAMS)
        drawing = 0
        for t in range(1, 151):
            if regeneration_draw(cycle, t, PARAMS)[0] > 0:
                drawing += 1
        assert drawing == minutes

    def test_sac_draws_dg_for_whole_chemical_phase(self):
        cycle = start_cycle("SAC-A", ExchangerType.SAC, 0, PARAMS)
        assert regeneration_draw(cycle, 150, PARAMS) == (30.0, 0.0)

    def test_rinse_rates(self):
        sba = advance_cycle(start_cycle("SBA-A", ExchangerType.SBA, 0, PARAMS), 150)
        sac = advance_cycle(start_cycle("SAC-A", ExchangerType.SAC, 0, PARAMS), 150)
        assert regeneration_draw(sba, 151, PARAMS) == (120.0, 0.0)
        assert regeneration_draw(sac, 151, PARAMS) == (0.0, 0.0)


class TestBeginAndQueue:
    def test_begin_regeneration(self):
        state = _make_state(time=3)
        recorder = TickRecorder(3)
        state = begin_regeneration(state, "SAC-A", recorder, PARAMS, "exhausted")

        assert state.exchanger("SAC-A").status is EquipmentStatus.REGENERATION
        assert state.bay(ExchangerType.SAC).active.exchanger_id == "SAC-A"
        assert state.bay(ExchangerType.SAC).active.start_time == 3
        assert [e.kind for e in recorder.events] == [EventKind.REGEN_START]
        assert recorder.events[0].forced
        assert recorder.logsheet[0].action is LogsheetAction.REGENERATION_STARTED

    def test_queue_preserves_arrival_order(self):
        state = _regenerating(_make_state(), "SBA-A")
        recorder = TickRecorder(0)
        state = queue_for_regeneration(state, "SBA-B", recorder)
        state = queue_for_regeneration(state, "SBA-C", recorder)

        assert state.bay(ExchangerType.SBA).queue == ("SBA-B", "SBA-C")
        assert state.exchanger("SBA-B").status is EquipmentStatus.EXHAUST
        assert all(e.forced for e in recorder.events)


class TestRegenerationStateMachine:
    def test_phase_change_event(self):
        state = _regenerating(_make_state(), "SAC-A")
        state, recorder = _step_at(state, 150)
        assert state.bay(ExchangerType.SAC).active.phase is RegenerationPhase.RINSE
        assert [e.kind for e in recorder.events] == [EventKind.REGEN_PHASE_CHANGE]

    def test_no_events_mid_phase(self):
        state = _regenerating(_make_state(), "SAC-A")
        _, recorder = _step_at(state, 100)
        assert recorder.events == []

    def test_completion_resets_load_and_frees_bay(self):
        state = _make_state()
        unit = state.exchanger("SAC-A")
        state = state.replace_exchanger(replace(unit, current_load=1500.0))
        state = _regenerating(state, "SAC-A")
        state, recorder = _step_at(state, 180)

        assert state.exchanger("SAC-A").current_load == 0.0
        assert state.exchanger("SAC-A").last_status_change == 180
        assert state.bay(ExchangerType.SAC).is_idle
        assert EventKind.REGEN_COMPLETE in [e.kind for e in recorder.events]
        assert recorder.logsheet[0].action is LogsheetAction.REGENERATION_COMPLETED

    def test_sac_goes_to_standby_when_dg_healthy(self):
        state = _regenerating(_make_state(dg_level=1.5), "SAC-A")
        state, _ = _step_at(state, 180)
        assert state.exchanger("SAC-A").status is EquipmentStatus.STANDBY

    def test_sac_goes_to_service_when_dg_low_and_anions_available(self):
        state = _regenerating(_make_state(dg_level=1.0), "SAC-A")
        state, recorder = _step_at(state, 180)
        # SAC 2 in service, SBA 3: room for one more cation
        assert state.exchanger("SAC-A").status is EquipmentStatus.SERVICE
        kinds = [e.kind for e in recorder.events]
        assert kinds == [EventKind.REGEN_COMPLETE, EventKind.STATUS_CHANGE]

    def test_sac_held_back_when_anions_insufficient(self):
        state = _make_state(dg_level=1.0)
        state = state.set_status("SAC-D", EquipmentStatus.SERVICE)
        state = _regenerating(state, "SAC-A")
        state, _ = _step_at(state, 180)
        # SAC 3 in service, SBA 3
        assert state.exchanger("SAC-A").status is EquipmentStatus.STANDBY

    def test_sba_placement_follows_dm_level(self):
        low = _regenerating(_make_state(dm_level=5.0, dg_level=1.5), "SBA-A")
        high = _regenerating(_make_state(dm_level=6.8, dg_level=1.5), "SBA-A")
        low, _ = _step_at(low, 170)
        high, _ = _step_at(high, 170)
        assert low.exchanger("SBA-A").status is EquipmentStatus.SERVICE
        assert high.exchanger("SBA-A").status is EquipmentStatus.STANDBY

    def test_mb_returns_to_service_to_match_sba(self):
        state = _regenerating(_make_state(), "MB-A")
        state, _ = _step_at(state, 170)
        assert state.exchanger("MB-A").status is EquipmentStatus.SERVICE

    def test_queued_bed_starts_in_same_tick(self):
        state = _regenerating(_make_state(), "SAC-A")
        state = queue_for_regeneration(state, "SAC-B", TickRecorder(0))
        state, recorder = _step_at(state, 180)

        bay = state.bay(ExchangerType.SAC)
        assert bay.active.exchanger_id == "SAC-B"
        assert bay.active.start_time == 180
        assert bay.queue == ()
        assert state.exchanger("SAC-B").status is EquipmentStatus.REGENERATION
        kinds = [e.kind for e in recorder.events]
        assert kinds.index(EventKind.REGEN_COMPLETE) < kinds.index(EventKind.REGEN_START)

    def test_bays_are_independent(self):
        state = _regenerating(_make_state(), "SAC-A")
        state = _regenerating(state, "SBA-A")
        state = _regenerating(state, "MB-A")
        assert all(not b.is_idle for b in state.bays)
        assert state.bay(ExchangerType.SBA).active.exchanger_id == "SBA-A"

    def test_advance_is_idempotent_within_phase(self):
        cycle = start_cycle("SAC-A", ExchangerType.SAC, 0, PARAMS)
        assert advance_cycle(cycle, 10) == cycle

    @pytest.mark.parametrize(
        "exchanger_type,total",
        [(ExchangerType.SAC, 180), (ExchangerType.SBA, 170), (ExchangerType.MB, 170)],
    )
    def test_total_duration(self, exchanger_type, total):
        cycle = start_cycle("X-A", exchanger_type, 0, PARAMS)
        assert cycle.total_end_time == total
