from __future__ import annotations

import math
from typing import List, Optional

from planning_core.utils.logger import get_logger
from planning_core.utils.types import TrajectoryPoint
from planning_core.world.obstacle import Obstacle
from planning_core.world.prediction import Predictor, constant_velocity_prediction
from planning_core.world.world_model import SignalState, WorldSnapshot

# Signals in these states do not constrain the ego vehicle.
_PASSABLE_SIGNALS = (SignalState.GREEN, SignalState.UNKNOWN)


class ObstacleSelector:
    """
    Gates the world snapshot down to the obstacles the optimizer has to
    consider: everything inside a planar radius around the planning origin
    and on roughly the same level as the ego vehicle.
    """

    def __init__(
        self,
        radius: float = 50.0,
        height_gate: float = 1.5,
        horizon: float = 8.0,
        time_step: float = 0.1,
        predictor: Optional[Predictor] = None,
    ):
        self.radius = radius
        self.height_gate = height_gate
        self.horizon = horizon
        self.time_step = time_step
        self.predictor = predictor or constant_velocity_prediction
        self.logger = get_logger(__name__)

    def _in_gate(self, origin: TrajectoryPoint, ego_z: float, x: float, y: float, z: float) -> bool:
        dist = math.hypot(origin.x - x, origin.y - y)
        return dist < self.radius and abs(z - ego_z) < self.height_gate

    def select(self, snapshot: WorldSnapshot, origin: TrajectoryPoint, ego_id: int) -> List[Obstacle]:
        ego = snapshot.objects.get(ego_id)
        if ego is None:
            self.logger.warning("Ego %s missing from snapshot; no obstacles selected", ego_id)
            return []

        obstacles: List[Obstacle] = []
        for obj_id, obj in snapshot.objects.items():
            if obj_id == ego_id:
                continue
            if self._in_gate(origin, ego.z, obj.x, obj.y, obj.z):
                obstacles.append(Obstacle.from_object(obj))

        for signal_id, info in snapshot.signal_info.items():
            status = snapshot.signal_status.get(signal_id)
            if status is None or status.state in _PASSABLE_SIGNALS:
                continue
            if self._in_gate(origin, ego.z, info.center_x, info.center_y, info.center_z):
                obstacles.append(Obstacle.from_signal(info, status))

        for obstacle in obstacles:
            self.predictor(obstacle, self.horizon, self.time_step)

        self.logger.debug("Selected %d obstacles around (%.1f, %.1f)", len(obstacles), origin.x, origin.y)
        return obstacles


def select_obstacles(
    snapshot: WorldSnapshot,
    origin: TrajectoryPoint,
    ego_id: int,
    radius: float,
    height_gate: float,
    horizon: float = 8.0,
    time_step: float = 0.1,
    predictor: Optional[Predictor] = None,
) -> List[Obstacle]:
    selector = ObstacleSelector(radius, height_gate, horizon, time_step, predictor)
    return selector.select(snapshot, origin, ego_id)
