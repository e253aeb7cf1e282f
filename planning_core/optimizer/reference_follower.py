from __future__ import annotations

import math
from dataclasses import replace
from typing import Optional, Sequence

from planning_core.optimizer.base_optimizer import BaseTrajectoryOptimizer
from planning_core.utils.config import PlanningConfig
from planning_core.utils.logger import get_logger
from planning_core.utils.types import PlanningTarget, Trajectory, TrajectoryPoint
from planning_core.world.obstacle import Obstacle

# seconds over which the origin's lateral offset is blended back onto the line
_LATERAL_BLEND_TIME = 2.0
# closer than this to the stop station the profile holds zero speed
_STOP_TOLERANCE = 0.1


class ReferenceFollowerOptimizer(BaseTrajectoryOptimizer):
    """
    Baseline optimizer: rides the preferred target's reference line with a
    trapezoidal speed profile, stopping short of the target's stop point or
    the first in-lane obstacle.
    """

    def __init__(self, cfg: PlanningConfig, stop_buffer: float = 5.0):
        self.horizon = cfg.max_lookahead_time
        self.dt = cfg.delta_t
        self.max_acc = max(cfg.max_lon_acc, 1e-3)
        self.stop_buffer = stop_buffer
        self.logger = get_logger(__name__)

    def _pick_target(self, targets: Sequence[PlanningTarget]) -> PlanningTarget:
        for target in targets:
            if target.is_best_behaviour:
                return target
        return targets[0]

    def _blocking_s(self, target: PlanningTarget, obstacles: Sequence[Obstacle], origin_s: float) -> float:
        line = target.ref_line
        stop_s = target.stop_s
        for obstacle in obstacles:
            sl = line.xy_to_sl(obstacle.x, obstacle.y)
            if sl is None or sl.s <= origin_s:
                continue
            if -line.right_width <= sl.l <= line.left_width:
                stop_s = min(stop_s, sl.s - 0.5 * obstacle.length)
        return stop_s

    def process(
        self,
        obstacles: Sequence[Obstacle],
        origin: TrajectoryPoint,
        targets: Sequence[PlanningTarget],
    ) -> Optional[Trajectory]:
        if not targets:
            self.logger.warning("No planning targets; nothing to follow")
            return None

        target = self._pick_target(targets)
        line = target.ref_line
        sl = line.xy_to_sl(origin.x, origin.y)
        if sl is None:
            return None

        stop_s = self._blocking_s(target, obstacles, sl.s) - self.stop_buffer
        points = [replace(origin, s=0.0)]
        s, v = sl.s, max(0.0, origin.v)
        steps = int(math.floor(self.horizon / self.dt + 1e-9))
        for i in range(1, steps + 1):
            remaining = stop_s - s
            if remaining <= _STOP_TOLERANCE:
                v_allowed = 0.0
            else:
                v_allowed = min(target.desired_vel, math.sqrt(2.0 * self.max_acc * remaining))
            a = min(self.max_acc, max(-self.max_acc, (v_allowed - v) / self.dt))
            v_next = max(0.0, v + a * self.dt)
            if v_next < 1e-6:
                v_next = 0.0
                a = -v / self.dt
            s = min(s + 0.5 * (v + v_next) * self.dt, line.length)
            v = v_next

            t = i * self.dt
            l = sl.l * max(0.0, 1.0 - t / _LATERAL_BLEND_TIME)
            ref = line.get_reference_point(s)
            points.append(
                TrajectoryPoint(
                    x=ref.x - l * math.sin(ref.theta),
                    y=ref.y + l * math.cos(ref.theta),
                    theta=ref.theta,
                    s=s - sl.s,
                    kappa=ref.kappa,
                    dkappa=ref.dkappa,
                    v=v,
                    a=a,
                    relative_time=origin.relative_time + t,
                )
            )
        return Trajectory(points=points)
