from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Optional, Union

from planning_core.utils.types import Trajectory
from planning_core.world.world_model import DynamicObject, TrafficSignalInfo, TrafficSignalStatus


class ObstacleKind(str, Enum):
    DYNAMIC_OBJECT = "DYNAMIC_OBJECT"
    TRAFFIC_SIGNAL = "TRAFFIC_SIGNAL"


@dataclass(frozen=True)
class SignalData:
    info: TrafficSignalInfo
    status: TrafficSignalStatus


@dataclass
class Obstacle:
    """
    One constraint for the optimizer. The payload is either the dynamic
    object or the signal info/status pair; geometry is shared.
    """

    id: int
    kind: ObstacleKind
    payload: Union[DynamicObject, SignalData]
    x: float
    y: float
    z: float = 0.0
    theta: float = 0.0
    speed: float = 0.0
    length: float = 0.0
    width: float = 0.0
    trajectory: Trajectory = field(default_factory=Trajectory)

    @classmethod
    def from_object(cls, obj: DynamicObject) -> "Obstacle":
        return cls(
            id=obj.id,
            kind=ObstacleKind.DYNAMIC_OBJECT,
            payload=obj,
            x=obj.x,
            y=obj.y,
            z=obj.z,
            theta=obj.yaw,
            speed=obj.speed,
            length=obj.length,
            width=obj.width,
        )

    @classmethod
    def from_signal(cls, info: TrafficSignalInfo, status: TrafficSignalStatus) -> "Obstacle":
        # A red/yellow signal is a static wall across its trigger volume.
        sx, sy, _ = info.size
        return cls(
            id=info.id,
            kind=ObstacleKind.TRAFFIC_SIGNAL,
            payload=SignalData(info=info, status=status),
            x=info.center_x,
            y=info.center_y,
            z=info.center_z,
            theta=info.yaw,
            speed=0.0,
            length=sx,
            width=sy,
        )

    @property
    def is_static(self) -> bool:
        return self.kind == ObstacleKind.TRAFFIC_SIGNAL

    @property
    def object(self) -> Optional[DynamicObject]:
        return self.payload if self.kind == ObstacleKind.DYNAMIC_OBJECT else None

    @property
    def signal(self) -> Optional[SignalData]:
        return self.payload if self.kind == ObstacleKind.TRAFFIC_SIGNAL else None
