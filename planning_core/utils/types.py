from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import List, Optional


class TrajectoryStatus(str, Enum):
    NORMAL = "NORMAL"
    EMPTY = "EMPTY"
    EMERGENCY_STOP = "EMERGENCY_STOP"


@dataclass
class TrajectoryPoint:
    x: float = 0.0
    y: float = 0.0
    theta: float = 0.0
    s: float = 0.0
    kappa: float = 0.0
    dkappa: float = 0.0
    v: float = 0.0
    a: float = 0.0
    jerk: float = 0.0
    steer_angle: float = 0.0
    relative_time: float = 0.0


@dataclass
class Trajectory:
    points: List[TrajectoryPoint] = field(default_factory=list)
    timestamp: float = 0.0
    status: TrajectoryStatus = TrajectoryStatus.NORMAL

    def __len__(self) -> int:
        return len(self.points)

    def summary(self) -> str:
        if not self.points:
            return f"status={self.status.value} points=0"
        return (
            f"status={self.status.value} "
            f"points={len(self.points)} "
            f"t=[{self.points[0].relative_time:.2f}, {self.points[-1].relative_time:.2f}]s "
            f"v0={self.points[0].v:.2f}m/s"
        )


@dataclass
class PlanningTarget:
    ref_line: object
    desired_vel: float
    has_stop_point: bool = False
    stop_s: float = float("inf")
    is_best_behaviour: bool = False


@dataclass
class Pose:
    x: float = 0.0
    y: float = 0.0
    z: float = 0.0
    yaw: float = 0.0


@dataclass
class CycleStats:
    elapsed_ms: float = 0.0
    stages_ms: dict = field(default_factory=dict)
    reference_line_count: int = 0
    obstacle_count: int = 0
    target_count: int = 0
    reinit: Optional[bool] = None
