"""Tests for plant state and the mass-balance integrator."""

from dataclasses import replace

import pytest

from demin_sim.engine import initialize
from demin_sim.models.config import default_config
from demin_sim.models.constants import DEFAULT_PARAMETERS
from demin_sim.models.plant import TickIntegrator, compute_flows
from demin_sim.models.plant_state import (
    EquipmentStatus,
    ExchangerType,
    TankStatus,
    TransferMode,
    TransferOperation,
)
from demin_sim.regeneration.state_machine import start_cycle


def _make_state(dg_level=1.5, dm_level=4.0, time=0):
    state = initialize(default_config())
    return replace(
        state,
        current_time=time,
        dg_tanks=tuple(replace(t, level=dg_level) for t in state.dg_tanks),
        dm_tanks=tuple(replace(t, level=dm_level) for t in state.dm_tanks),
    )


def _step(state):
    return TickIntegrator(DEFAULT_PARAMETERS).step(state, 1)


class TestSimulationState:
    """SimulationState helpers."""

    def test_immutability(self):
        state = _make_state()
        with pytest.raises(AttributeError):
            state.current_time = 5

    def test_set_status_stamps_current_time(self):
        state = _make_state(time=42)
        state = state.set_status("SAC-D", EquipmentStatus.SERVICE)
        unit = state.exchanger("SAC-D")
        assert unit.status is EquipmentStatus.SERVICE
        assert unit.last_status_change == 42

    def test_unknown_exchanger_raises(self):
        with pytest.raises(KeyError):
            _make_state().exchanger("SAC-Z")

    def test_stream_letter(self):
        assert _make_state().exchanger("MB-C").stream == "C"

    def test_average_service_dm_level_without_service_tanks(self):
        state = _make_state()
        state = replace(
            state,
            dm_tanks=tuple(replace(t, status=TankStatus.STANDBY) for t in state.dm_tanks),
        )
        assert state.average_service_dm_level == 0.0

    def test_is_held_only_for_shut_down_stream(self):
        state = replace(_make_state(), stream_out_of_service="B")
        assert state.is_held(state.exchanger("SBA-B"))
        assert not state.is_held(state.exchanger("SBA-A"))


class TestComputeFlows:
    def test_default_plant_flows(self):
        flows = compute_flows(_make_state(), 1, DEFAULT_PARAMETERS)
        assert flows.sac_total_output == pytest.approx(420.0)
        assert flows.sba_total_output == pytest.approx(330.0)
        assert flows.mb_total_output == pytest.approx(330.0)
        assert flows.total_supply == pytest.approx(410.0)
        assert flows.dg_net_flow == pytest.approx(90.0)
        assert flows.dm_net_flow == pytest.approx(-80.0)
        assert flows.transfer_rate == 0.0

    def test_regeneration_draw_reduces_dg_net(self):
        state = _make_state()
        cycle = start_cycle("SBA-A", ExchangerType.SBA, 0, DEFAULT_PARAMETERS)
        state = state.replace_bay(replace(state.bay(ExchangerType.SBA), active=cycle))
        flows = compute_flows(state, 1, DEFAULT_PARAMETERS)
        assert flows.dg_regen_consumption == pytest.approx(30.0)
        assert flows.dm_regen_consumption == pytest.approx(25.0)
        assert flows.dg_net_flow == pytest.approx(60.0)
        assert flows.dm_net_flow == pytest.approx(-105.0)


class TestTickIntegrator:
    """One-minute integration step."""

    def test_time_advances(self):
        state, _ = _step(_make_state(time=7))
        assert state.current_time == 8

    def test_step_does_not_mutate_input(self):
        before = _make_state()
        _step(before)
        assert before.current_time == 0
        assert before.dg_level == 1.5

    def test_dg_mass_balance(self):
        state, flows = _step(_make_state())
        expected = 1.5 + flows.dg_net_flow / 60.0 / 77.0
        assert state.dg_level == pytest.approx(expected)

    def test_dg_tanks_share_one_level(self):
        state, _ = _step(_make_state())
        levels = {t.level for t in state.dg_tanks}
        assert len(levels) == 1

    def test_dm_net_split_across_service_tanks(self):
        state, _ = _step(_make_state())
        expected = 4.0 - 80.0 / 60.0 / 2 / 100.0
        for tank in state.service_dm_tanks:
            assert tank.level == pytest.approx(expected)

    def test_standby_tanks_untouched_without_transfer(self):
        state, _ = _step(_make_state())
        for tank in state.standby_dm_tanks:
            assert tank.level == 4.0

    def test_only_service_beds_accumulate_load(self):
        state, _ = _step(_make_state())
        assert state.exchanger("SAC-A").current_load == pytest.approx(140.0 / 60.0)
        assert state.exchanger("MB-B").current_load == pytest.approx(110.0 / 60.0)
        assert state.exchanger("SAC-D").current_load == 0.0

    def test_load_grows_by_flow_times_ticks(self):
        state = _make_state()
        start = state.exchanger("SAC-A").current_load
        for n in range(1, 61):
            state, _ = _step(state)
            assert state.exchanger("SAC-A").current_load == pytest.approx(
                start + 140.0 * n / 60.0
            )

    def test_dg_level_clamped_at_zero(self):
        state = _make_state(dg_level=0.001)
        for unit in state.in_service(ExchangerType.SAC):
            state = state.set_status(unit.id, EquipmentStatus.STANDBY)
        state, _ = _step(state)
        assert state.dg_level == 0.0

    def test_dm_level_clamped_at_height(self):
        state = _make_state(dm_level=7.999)
        state = replace(state, supply_demand=0.0)
        state, _ = _step(state)
        for tank in state.service_dm_tanks:
            assert tank.level == 8.0

    def test_no_service_dm_tanks_does_not_divide_by_zero(self):
        state = _make_state()
        state = replace(
            state,
            dm_tanks=tuple(replace(t, status=TankStatus.STANDBY) for t in state.dm_tanks),
        )
        state, flows = _step(state)
        assert flows.dm_net_flow == pytest.approx(-80.0)
        assert all(t.level == 4.0 for t in state.dm_tanks)

    def test_fill_transfer_moves_water_to_target(self):
        state = replace(
            _make_state(),
            transfer=TransferOperation(
                mode=TransferMode.FILL_STANDBY, target_id="DMT-C", rate=100.0
            ),
        )
        state, flows = _step(state)
        assert flows.dm_net_flow == pytest.approx(-180.0)
        assert flows.transfer_rate == pytest.approx(100.0)
        assert state.dm_tank("DMT-C").level == pytest.approx(4.0 + 100.0 / 60.0 / 100.0)
        assert state.dm_tank("DMT-D").level == 4.0

    def test_draw_transfer_empties_source_into_service(self):
        state = replace(
            _make_state(),
            transfer=TransferOperation(
                mode=TransferMode.DRAW_FROM_STANDBY, source_id="DMT-E", rate=400.0
            ),
        )
        state, flows = _step(state)
        assert flows.dm_net_flow == pytest.approx(320.0)
        assert state.dm_tank("DMT-E").level == pytest.approx(4.0 - 400.0 / 60.0 / 100.0)

    def test_draw_source_clamped_at_zero(self):
        state = _make_state()
        state = replace(
            state,
            dm_tanks=tuple(
                replace(t, level=0.01) if t.id == "DMT-E" else t for t in state.dm_tanks
            ),
            transfer=TransferOperation(
                mode=TransferMode.DRAW_FROM_STANDBY, source_id="DMT-E", rate=400.0
            ),
        )
        state, _ = _step(state)
        assert state.dm_tank("DMT-E").level == 0.0
