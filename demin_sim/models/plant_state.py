"""Immutable plant state representation.

Every tick derives a brand-new ``SimulationState`` from the previous one;
helpers here return modified copies and never mutate in place.
"""

from __future__ import annotations

from dataclasses import dataclass, replace
from enum import Enum
from typing import List, Optional, Tuple


class ExchangerType(str, Enum):
    SAC = "SAC"
    SBA = "SBA"
    MB = "MB"


EXCHANGER_TYPES: Tuple[ExchangerType, ...] = (
    ExchangerType.SAC,
    ExchangerType.SBA,
    ExchangerType.MB,
)


class EquipmentStatus(str, Enum):
    SERVICE = "SERVICE"
    STANDBY = "STANDBY"
    REGENERATION = "REGENERATION"
    EXHAUST = "EXHAUST"
    MAINTENANCE = "MAINTENANCE"


class TankType(str, Enum):
    DG = "DG"
    DM = "DM"


class TankStatus(str, Enum):
    SERVICE = "SERVICE"
    STANDBY = "STANDBY"


class RegenerationPhase(str, Enum):
    CHEMICAL = "CHEMICAL"
    RINSE = "RINSE"
    COMPLETE = "COMPLETE"


class TransferMode(str, Enum):
    NONE = "NONE"
    DRAW_FROM_STANDBY = "DRAW_FROM_STANDBY"
    FILL_STANDBY = "FILL_STANDBY"


@dataclass(frozen=True)
class ExchangerUnit:
    """One ion-exchange bed."""

    id: str
    type: ExchangerType
    status: EquipmentStatus
    current_load: float      # Throughput since last regeneration (m3)
    obr_limit: float         # Operating bed run capacity (m3)
    flow_rate: float         # Service flow (m3/h)
    last_status_change: int = 0

    @property
    def in_service(self) -> bool:
        return self.status is EquipmentStatus.SERVICE

    @property
    def load_percentage(self) -> float:
        if self.obr_limit <= 0:
            return 0.0
        return self.current_load / self.obr_limit * 100.0

    @property
    def stream(self) -> str:
        """Stream letter, e.g. ``SAC-B`` -> ``B``."""
        return self.id.rsplit("-", 1)[-1]


@dataclass(frozen=True)
class Tank:
    id: str
    type: TankType
    level: float             # m
    status: TankStatus = TankStatus.SERVICE


@dataclass(frozen=True)
class RegenerationCycle:
    exchanger_id: str
    exchanger_type: ExchangerType
    phase: RegenerationPhase
    start_time: int
    chemical_end_time: int
    total_end_time: int
    dg_window_end_time: Optional[int]

    def elapsed(self, time: int) -> int:
        return time - self.start_time

    def remaining(self, time: int) -> int:
        return max(0, self.total_end_time - time)


@dataclass(frozen=True)
class RegenerationBay:
    """Capacity-one regeneration facility for one exchanger type.

    ``active`` is None while the bay is idle. Exhausted units waiting for
    the bay sit in ``queue`` in arrival order.
    """

    exchanger_type: ExchangerType
    active: Optional[RegenerationCycle] = None
    queue: Tuple[str, ...] = ()

    @property
    def is_idle(self) -> bool:
        return self.active is None


@dataclass(frozen=True)
class TransferOperation:
    mode: TransferMode = TransferMode.NONE
    source_id: Optional[str] = None
    target_id: Optional[str] = None
    rate: float = 0.0        # m3/h

    @property
    def active(self) -> bool:
        return self.mode is not TransferMode.NONE


IDLE_TRANSFER = TransferOperation()


@dataclass(frozen=True)
class SimulationState:
    """Snapshot of the whole plant at one tick."""

    current_time: int
    exchangers: Tuple[ExchangerUnit, ...]
    dg_tanks: Tuple[Tank, ...]
    dm_tanks: Tuple[Tank, ...]
    supply_demand: float     # TPP + CDCP + Mills (m3/h)
    bays: Tuple[RegenerationBay, ...]
    transfer: TransferOperation = IDLE_TRANSFER
    stream_out_of_service: Optional[str] = None

    # --- exchangers -------------------------------------------------------

    def of_type(self, exchanger_type: ExchangerType) -> List[ExchangerUnit]:
        return [e for e in self.exchangers if e.type is exchanger_type]

    def with_status(
        self, exchanger_type: ExchangerType, status: EquipmentStatus
    ) -> List[ExchangerUnit]:
        return [
            e for e in self.exchangers
            if e.type is exchanger_type and e.status is status
        ]

    def in_service(self, exchanger_type: ExchangerType) -> List[ExchangerUnit]:
        return self.with_status(exchanger_type, EquipmentStatus.SERVICE)

    def count_in_service(self, exchanger_type: ExchangerType) -> int:
        return len(self.in_service(exchanger_type))

    def exchanger(self, exchanger_id: str) -> ExchangerUnit:
        for e in self.exchangers:
            if e.id == exchanger_id:
                return e
        raise KeyError(exchanger_id)

    def is_held(self, unit: ExchangerUnit) -> bool:
        """True when the unit belongs to a stream shut down for overflow."""
        return (
            self.stream_out_of_service is not None
            and unit.stream == self.stream_out_of_service
        )

    def replace_exchanger(self, unit: ExchangerUnit) -> SimulationState:
        exchangers = tuple(unit if e.id == unit.id else e for e in self.exchangers)
        return replace(self, exchangers=exchangers)

    def set_status(self, exchanger_id: str, status: EquipmentStatus) -> SimulationState:
        """Change a unit's status, stamping the change with the current tick."""
        unit = self.exchanger(exchanger_id)
        return self.replace_exchanger(
            replace(unit, status=status, last_status_change=self.current_time)
        )

    # --- tanks ------------------------------------------------------------

    @property
    def dg_level(self) -> float:
        return self.dg_tanks[0].level if self.dg_tanks else 0.0

    @property
    def service_dm_tanks(self) -> List[Tank]:
        return [t for t in self.dm_tanks if t.status is TankStatus.SERVICE]

    @property
    def standby_dm_tanks(self) -> List[Tank]:
        return [t for t in self.dm_tanks if t.status is TankStatus.STANDBY]

    @property
    def average_service_dm_level(self) -> float:
        service = self.service_dm_tanks
        if not service:
            return 0.0
        return sum(t.level for t in service) / len(service)

    def dm_tank(self, tank_id: Optional[str]) -> Optional[Tank]:
        for t in self.dm_tanks:
            if t.id == tank_id:
                return t
        return None

    # --- regeneration -----------------------------------------------------

    def bay(self, exchanger_type: ExchangerType) -> RegenerationBay:
        for b in self.bays:
            if b.exchanger_type is exchanger_type:
                return b
        raise KeyError(exchanger_type)

    def replace_bay(self, bay: RegenerationBay) -> SimulationState:
        bays = tuple(
            bay if b.exchanger_type is bay.exchanger_type else b for b in self.bays
        )
        return replace(self, bays=bays)
