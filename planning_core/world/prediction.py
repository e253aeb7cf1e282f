from __future__ import annotations

import math
from typing import Callable

from planning_core.utils.types import Trajectory, TrajectoryPoint
from planning_core.world.obstacle import Obstacle

# predictor(obstacle, horizon, time_step) attaches obstacle.trajectory in place
Predictor = Callable[[Obstacle, float, float], None]


def constant_velocity_prediction(obstacle: Obstacle, horizon: float, time_step: float) -> None:
    """
    Straight-line, constant-speed rollout along the obstacle heading.
    Signals never move.
    """
    speed = 0.0 if obstacle.is_static else obstacle.speed
    steps = int(math.floor(horizon / time_step + 1e-9)) if time_step > 0 else 0
    cos_t = math.cos(obstacle.theta)
    sin_t = math.sin(obstacle.theta)

    points = []
    for i in range(steps + 1):
        t = i * time_step
        s = speed * t
        points.append(
            TrajectoryPoint(
                x=obstacle.x + s * cos_t,
                y=obstacle.y + s * sin_t,
                theta=obstacle.theta,
                s=s,
                v=speed,
                relative_time=t,
            )
        )
    obstacle.trajectory = Trajectory(points=points)
