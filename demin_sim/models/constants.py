"""Plant geometry, control thresholds, regeneration profiles and shift table."""

from dataclasses import dataclass, field
from typing import Optional

from demin_sim.models.plant_state import ExchangerType


SIMULATION_DURATION_MINUTES = 480   # One 8-hour shift
TICK_MINUTES = 1

EXCHANGER_LABELS = ("A", "B", "C", "D", "E")


@dataclass(frozen=True)
class TankGeometry:
    """Tank dimensions."""

    # Degasser tanks (two tanks, one hydraulic volume)
    dg_area_m2: float = 38.5
    dg_combined_area_m2: float = 77.0
    dg_height_m: float = 4.0
    dg_min_level_m: float = 0.8
    dg_overflow_level_m: float = 2.2

    # DM storage tanks
    dm_height_m: float = 8.0
    dm_volume_per_meter: float = 100.0
    dm_min_level_m: float = 0.8
    dm_overflow_level_m: float = 7.3


@dataclass(frozen=True)
class ControlThresholds:
    """Hysteresis bands and unit-count limits for the control policy."""

    min_time_in_state_minutes: int = 15
    min_in_service: int = 1
    max_in_service: int = 4

    # SAC follows the DG level
    dg_sac_service_low_m: float = 1.2
    dg_sac_standby_high_m: float = 2.0

    # SBA follows the average service DM level, guarded by DG
    dm_sba_service_low_m: float = 6.5
    dm_sba_standby_high_m: float = 7.0
    dg_sba_critical_m: float = 0.8
    dg_sba_min_m: float = 1.0


@dataclass(frozen=True)
class TransferSettings:
    """DM inter-tank transfer pump settings."""

    # Emergency draw from a standby tank
    draw_rate_m3hr: float = 400.0
    dm_critical_m: float = 0.8
    dg_critical_m: float = 0.8
    draw_trigger_level_m: float = 1.0
    draw_stop_level_m: float = 0.8
    service_recovered_m: float = 1.5

    # Opportunistic standby fill from the MB outlet
    fill_rate_m3hr: float = 100.0
    fill_target_m: float = 7.0
    service_min_for_fill_m: float = 3.0


@dataclass(frozen=True)
class OverflowSettings:
    overflow_level_m: float = 7.3
    recovery_level_m: float = 6.5


@dataclass(frozen=True)
class RegenerationProfile:
    """Durations (min) and water draw rates (m3/h) of one regeneration."""

    chemical_minutes: int
    total_minutes: int
    dg_window_minutes: Optional[int]    # None: the whole chemical phase
    chemical_dg_rate_m3hr: float
    chemical_dm_rate_m3hr: float
    rinse_dg_rate_m3hr: float


SAC_REGENERATION = RegenerationProfile(
    chemical_minutes=150,
    total_minutes=180,
    dg_window_minutes=None,
    chemical_dg_rate_m3hr=30.0,
    chemical_dm_rate_m3hr=0.0,
    rinse_dg_rate_m3hr=0.0,
)

SBA_REGENERATION = RegenerationProfile(
    chemical_minutes=150,
    total_minutes=170,
    dg_window_minutes=20,
    chemical_dg_rate_m3hr=30.0,
    chemical_dm_rate_m3hr=25.0,
    rinse_dg_rate_m3hr=120.0,
)

MB_REGENERATION = RegenerationProfile(
    chemical_minutes=150,
    total_minutes=170,
    dg_window_minutes=40,
    chemical_dg_rate_m3hr=30.0,
    chemical_dm_rate_m3hr=25.0,
    rinse_dg_rate_m3hr=120.0,
)


@dataclass(frozen=True)
class PlantParameters:
    """Every tunable constant the engine uses, injected as one object."""

    tanks: TankGeometry = field(default_factory=TankGeometry)
    control: ControlThresholds = field(default_factory=ControlThresholds)
    transfer: TransferSettings = field(default_factory=TransferSettings)
    overflow: OverflowSettings = field(default_factory=OverflowSettings)
    sac_regeneration: RegenerationProfile = SAC_REGENERATION
    sba_regeneration: RegenerationProfile = SBA_REGENERATION
    mb_regeneration: RegenerationProfile = MB_REGENERATION
    duration_minutes: int = SIMULATION_DURATION_MINUTES
    tick_minutes: int = TICK_MINUTES

    def regeneration_profile(self, exchanger_type: ExchangerType) -> RegenerationProfile:
        if exchanger_type is ExchangerType.SAC:
            return self.sac_regeneration
        if exchanger_type is ExchangerType.SBA:
            return self.sba_regeneration
        return self.mb_regeneration


DEFAULT_PARAMETERS = PlantParameters()


@dataclass(frozen=True)
class ShiftInfo:
    type: str
    name: str
    start_hour: int
    end_hour: int


SHIFT_INFO = {
    "A": ShiftInfo(type="A", name="A Shift (Morning)", start_hour=6, end_hour=14),
    "B": ShiftInfo(type="B", name="B Shift (Afternoon)", start_hour=14, end_hour=22),
    "C": ShiftInfo(type="C", name="C Shift (Night)", start_hour=22, end_hour=6),
}


# Defaults for a freshly configured plant
DEFAULT_FLOW_RATES = {
    ExchangerType.SAC: 140.0,
    ExchangerType.SBA: 110.0,
    ExchangerType.MB: 110.0,
}

DEFAULT_OBR_LIMITS = {
    ExchangerType.SAC: 1500.0,
    ExchangerType.SBA: 1100.0,
    ExchangerType.MB: 7000.0,
}

DEFAULT_SUPPLY = {
    "TPP": 250.0,    # m3/h
    "CDCP": 150.0,
    "Mills": 10.0,
}

DEFAULT_DG_LEVEL_M = 1.5
DEFAULT_DM_LEVEL_M = 4.0
DEFAULT_UNITS_IN_SERVICE = 3
DEFAULT_DM_TANKS_IN_SERVICE = 2
