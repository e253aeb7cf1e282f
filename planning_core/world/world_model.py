from __future__ import annotations

import threading
from dataclasses import dataclass, field, replace
from enum import Enum
from types import MappingProxyType
from typing import Any, Dict, Iterable, Mapping, Optional, Tuple


class SignalState(str, Enum):
    RED = "RED"
    YELLOW = "YELLOW"
    GREEN = "GREEN"
    OFF = "OFF"
    UNKNOWN = "UNKNOWN"

    @classmethod
    def parse(cls, value: Any) -> "SignalState":
        try:
            return cls(str(value).upper())
        except ValueError:
            return cls.UNKNOWN


@dataclass(frozen=True)
class DynamicObject:
    id: int
    x: float
    y: float
    z: float = 0.0
    yaw: float = 0.0
    speed: float = 0.0
    accel: float = 0.0
    yaw_rate: float = 0.0
    classification: str = "vehicle"
    length: float = 4.5
    width: float = 2.0

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> "DynamicObject":
        return cls(
            id=int(d["id"]),
            x=float(d.get("x", 0.0)),
            y=float(d.get("y", 0.0)),
            z=float(d.get("z", 0.0)),
            yaw=float(d.get("yaw", 0.0)),
            speed=float(d.get("speed", 0.0)),
            accel=float(d.get("accel", 0.0)),
            yaw_rate=float(d.get("yaw_rate", 0.0)),
            classification=str(d.get("classification", "vehicle")),
            length=float(d.get("length", 4.5)),
            width=float(d.get("width", 2.0)),
        )


@dataclass(frozen=True)
class TrafficSignalStatus:
    id: int
    state: SignalState = SignalState.UNKNOWN

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> "TrafficSignalStatus":
        return cls(id=int(d["id"]), state=SignalState.parse(d.get("state", "UNKNOWN")))


@dataclass(frozen=True)
class TrafficSignalInfo:
    """Signal geometry; the trigger volume is the stop region the signal controls."""

    id: int
    center_x: float
    center_y: float
    center_z: float = 0.0
    size: Tuple[float, float, float] = (1.0, 1.0, 1.0)
    yaw: float = 0.0

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> "TrafficSignalInfo":
        center = d.get("center", {})
        return cls(
            id=int(d["id"]),
            center_x=float(center.get("x", d.get("x", 0.0))),
            center_y=float(center.get("y", d.get("y", 0.0))),
            center_z=float(center.get("z", d.get("z", 0.0))),
            size=tuple(float(v) for v in d.get("size", (1.0, 1.0, 1.0))),
            yaw=float(d.get("yaw", 0.0)),
        )


@dataclass(frozen=True)
class EgoVehicleStatus:
    velocity: float = 0.0
    acceleration: float = 0.0
    steer: float = 0.0

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> "EgoVehicleStatus":
        return cls(
            velocity=float(d.get("velocity", 0.0)),
            acceleration=float(d.get("acceleration", 0.0)),
            steer=float(d.get("steer", 0.0)),
        )


@dataclass(frozen=True)
class EgoVehicleInfo:
    id: int
    wheelbase: float = 2.8

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> "EgoVehicleInfo":
        return cls(id=int(d["id"]), wheelbase=float(d.get("wheelbase", 2.8)))


def _frozen_map(items: Iterable[Any]) -> Mapping[int, Any]:
    # Last writer wins for duplicate ids inside one delivery.
    return MappingProxyType({item.id: item for item in items})


_EMPTY: Mapping[int, Any] = MappingProxyType({})


@dataclass(frozen=True)
class WorldSnapshot:
    """
    Immutable view of everything the transport layer has delivered so far.
    One snapshot is read per planning cycle.
    """

    ego_id: Optional[int] = None
    ego_status: EgoVehicleStatus = field(default_factory=EgoVehicleStatus)
    ego_info: Optional[EgoVehicleInfo] = None
    objects: Mapping[int, DynamicObject] = field(default_factory=lambda: _EMPTY)
    signal_status: Mapping[int, TrafficSignalStatus] = field(default_factory=lambda: _EMPTY)
    signal_info: Mapping[int, TrafficSignalInfo] = field(default_factory=lambda: _EMPTY)

    @property
    def ego_object(self) -> Optional[DynamicObject]:
        if self.ego_id is None:
            return None
        return self.objects.get(self.ego_id)

    def summary(self) -> str:
        return (
            f"ego={self.ego_id} "
            f"objects={len(self.objects)} "
            f"signals={len(self.signal_status)}/{len(self.signal_info)}"
        )


class WorldState:
    """
    Process-wide world holder. Inbound handlers swap in a new snapshot under
    a lock; readers take the current snapshot by reference, which is safe
    because snapshots are never mutated.
    """

    def __init__(self):
        self._lock = threading.Lock()
        self._snapshot = WorldSnapshot()

    def snapshot(self) -> WorldSnapshot:
        with self._lock:
            return self._snapshot

    def _swap(self, **changes: Any) -> None:
        with self._lock:
            self._snapshot = replace(self._snapshot, **changes)

    def update_ego_status(self, status: EgoVehicleStatus) -> None:
        self._swap(ego_status=status)

    def update_ego_info(self, info: EgoVehicleInfo) -> None:
        self._swap(ego_info=info, ego_id=info.id)

    def update_objects(self, objects: Iterable[DynamicObject]) -> None:
        self._swap(objects=_frozen_map(objects))

    def update_signal_status(self, statuses: Iterable[TrafficSignalStatus]) -> None:
        self._swap(signal_status=_frozen_map(statuses))

    def update_signal_info(self, infos: Iterable[TrafficSignalInfo]) -> None:
        self._swap(signal_info=_frozen_map(infos))
