"""Simulation input configuration.

The JSON shape accepted by ``SimulationConfig.from_dict`` mirrors what the
configuration screen produces (camelCase keys). ``validate_config`` holds
the structural checks that must pass before a run; the engine itself
assumes a valid configuration.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, List, Tuple

from demin_sim.models.constants import (
    DEFAULT_DG_LEVEL_M,
    DEFAULT_DM_LEVEL_M,
    DEFAULT_DM_TANKS_IN_SERVICE,
    DEFAULT_FLOW_RATES,
    DEFAULT_OBR_LIMITS,
    DEFAULT_SUPPLY,
    DEFAULT_UNITS_IN_SERVICE,
    EXCHANGER_LABELS,
    SHIFT_INFO,
)
from demin_sim.models.plant_state import (
    EXCHANGER_TYPES,
    EquipmentStatus,
    ExchangerType,
    TankStatus,
)


@dataclass(frozen=True)
class ExchangerConfig:
    id: str
    initial_status: EquipmentStatus
    initial_load: float
    obr_limit: float
    flow_rate: float

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "initialStatus": self.initial_status.value,
            "initialLoad": self.initial_load,
            "obrLimit": self.obr_limit,
            "flowRate": self.flow_rate,
        }

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> ExchangerConfig:
        return cls(
            id=d["id"],
            initial_status=EquipmentStatus(d["initialStatus"]),
            initial_load=float(d["initialLoad"]),
            obr_limit=float(d["obrLimit"]),
            flow_rate=float(d["flowRate"]),
        )


@dataclass(frozen=True)
class TankConfig:
    id: str
    initial_level: float

    def to_dict(self) -> Dict[str, Any]:
        return {"id": self.id, "initialLevel": self.initial_level}

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> TankConfig:
        return cls(id=d["id"], initial_level=float(d["initialLevel"]))


@dataclass(frozen=True)
class DMTankConfig:
    id: str
    initial_level: float
    initial_status: TankStatus = TankStatus.SERVICE

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "initialLevel": self.initial_level,
            "initialStatus": self.initial_status.value,
        }

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> DMTankConfig:
        return cls(
            id=d["id"],
            initial_level=float(d["initialLevel"]),
            initial_status=TankStatus(d.get("initialStatus", "SERVICE")),
        )


@dataclass(frozen=True)
class SupplyConfig:
    """Plant-wide DM water demand by consumer (m3/h)."""

    TPP: float
    CDCP: float
    Mills: float

    @property
    def total(self) -> float:
        return self.TPP + self.CDCP + self.Mills

    def to_dict(self) -> Dict[str, float]:
        return {"TPP": self.TPP, "CDCP": self.CDCP, "Mills": self.Mills}

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> SupplyConfig:
        return cls(TPP=float(d["TPP"]), CDCP=float(d["CDCP"]), Mills=float(d["Mills"]))


@dataclass(frozen=True)
class SimulationConfig:
    """Fully specified initial conditions for one shift."""

    exchangers: Dict[ExchangerType, Tuple[ExchangerConfig, ...]]
    dg_tanks: Tuple[TankConfig, ...]
    dm_tanks: Tuple[DMTankConfig, ...]
    supply: SupplyConfig
    shift: str = "A"

    def exchangers_of(self, exchanger_type: ExchangerType) -> Tuple[ExchangerConfig, ...]:
        return self.exchangers.get(exchanger_type, ())

    def to_dict(self) -> Dict[str, Any]:
        return {
            "exchangers": {
                t.value: [e.to_dict() for e in self.exchangers_of(t)]
                for t in EXCHANGER_TYPES
            },
            "tanks": {
                "DG": [t.to_dict() for t in self.dg_tanks],
                "DM": [t.to_dict() for t in self.dm_tanks],
            },
            "supply": self.supply.to_dict(),
            "shift": self.shift,
        }

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> SimulationConfig:
        exchangers = {
            t: tuple(ExchangerConfig.from_dict(e) for e in d["exchangers"].get(t.value, []))
            for t in EXCHANGER_TYPES
        }
        return cls(
            exchangers=exchangers,
            dg_tanks=tuple(TankConfig.from_dict(t) for t in d["tanks"]["DG"]),
            dm_tanks=tuple(DMTankConfig.from_dict(t) for t in d["tanks"]["DM"]),
            supply=SupplyConfig.from_dict(d["supply"]),
            shift=d.get("shift", "A"),
        )


def default_config(shift: str = "A") -> SimulationConfig:
    """Standard plant: five streams, A-C in service, two DM tanks in service."""
    exchangers = {
        t: tuple(
            ExchangerConfig(
                id=f"{t.value}-{label}",
                initial_status=(
                    EquipmentStatus.SERVICE
                    if i < DEFAULT_UNITS_IN_SERVICE
                    else EquipmentStatus.STANDBY
                ),
                initial_load=0.0,
                obr_limit=DEFAULT_OBR_LIMITS[t],
                flow_rate=DEFAULT_FLOW_RATES[t],
            )
            for i, label in enumerate(EXCHANGER_LABELS)
        )
        for t in EXCHANGER_TYPES
    }
    return SimulationConfig(
        exchangers=exchangers,
        dg_tanks=(
            TankConfig(id="DG-A", initial_level=DEFAULT_DG_LEVEL_M),
            TankConfig(id="DG-B", initial_level=DEFAULT_DG_LEVEL_M),
        ),
        dm_tanks=tuple(
            DMTankConfig(
                id=f"DMT-{label}",
                initial_level=DEFAULT_DM_LEVEL_M,
                initial_status=(
                    TankStatus.SERVICE
                    if i < DEFAULT_DM_TANKS_IN_SERVICE
                    else TankStatus.STANDBY
                ),
            )
            for i, label in enumerate(EXCHANGER_LABELS)
        ),
        supply=SupplyConfig(**DEFAULT_SUPPLY),
        shift=shift,
    )


def _streams(units: Tuple[ExchangerConfig, ...]) -> List[str]:
    return [u.id.rsplit("-", 1)[-1] for u in units]


def validate_config(config: SimulationConfig) -> List[str]:
    """Return a list of human-readable problems; empty when the config is runnable."""
    errors: List[str] = []

    if config.shift not in SHIFT_INFO:
        errors.append(f"Unknown shift '{config.shift}' (expected one of A, B, C)")

    for t in EXCHANGER_TYPES:
        available = [
            e for e in config.exchangers_of(t)
            if e.initial_status is not EquipmentStatus.MAINTENANCE
        ]
        if len(available) < 2:
            errors.append(f"At least 2 {t.value} exchangers must be available")
        for e in config.exchangers_of(t):
            if e.initial_status not in (
                EquipmentStatus.SERVICE,
                EquipmentStatus.STANDBY,
                EquipmentStatus.MAINTENANCE,
            ):
                errors.append(f"{e.id} initial status must be SERVICE, STANDBY or MAINTENANCE")
            if e.initial_load >= e.obr_limit:
                errors.append(f"{e.id} initial load must be less than OBR")
            if e.flow_rate <= 0:
                errors.append(f"{e.id} flow rate must be positive")

    sac_streams = _streams(config.exchangers_of(ExchangerType.SAC))
    for t in (ExchangerType.SBA, ExchangerType.MB):
        if _streams(config.exchangers_of(t)) != sac_streams:
            errors.append(f"{t.value} stream letters must match SAC stream letters")

    def initially_in_service(t: ExchangerType) -> int:
        return sum(
            1 for e in config.exchangers_of(t)
            if e.initial_status is EquipmentStatus.SERVICE
        )

    sac, sba, mb = (initially_in_service(t) for t in EXCHANGER_TYPES)
    if sba < sac:
        errors.append(f"SBA in service ({sba}) must be at least SAC in service ({sac})")
    if mb != sba:
        errors.append(f"MB in service ({mb}) must equal SBA in service ({sba})")

    if len(config.dg_tanks) != 2:
        errors.append("Exactly 2 DG tanks must be configured")

    dm_in_service = sum(
        1 for t in config.dm_tanks if t.initial_status is TankStatus.SERVICE
    )
    if dm_in_service != 2:
        errors.append("Exactly 2 DM tanks must be in service")

    return errors
