from __future__ import annotations

import math
from dataclasses import replace
from typing import List

from planning_core.utils.types import Trajectory, TrajectoryPoint, TrajectoryStatus

_STOP_EPS = 1e-9


class EmergencyStopProfileGenerator:
    """
    Closed-form constant-deceleration braking profile.

    Braking runs in a straight line along the origin heading. Velocity is
    clamped at zero; once stopped the profile holds position with zero
    acceleration for the rest of the horizon.
    """

    def __init__(self, max_horizon: float = 8.0, time_step: float = 0.1, max_deceleration: float = 3.0):
        self.max_horizon = max_horizon
        self.time_step = time_step
        self.max_deceleration = max_deceleration

    def generate(self, origin: TrajectoryPoint) -> Trajectory:
        return generate_stop_trajectory(origin, self.max_horizon, self.time_step, self.max_deceleration)


def generate_stop_trajectory(
    origin: TrajectoryPoint,
    max_horizon: float,
    time_step: float,
    max_deceleration: float,
) -> Trajectory:
    decel = max(0.0, max_deceleration)
    v0 = max(0.0, origin.v)
    # The origin always carries the braking command, even when already stopped.
    first = replace(origin, v=v0, a=-decel, jerk=0.0)
    points: List[TrajectoryPoint] = [first]

    if time_step <= 0.0 or max_horizon <= 0.0:
        return Trajectory(points=points, status=TrajectoryStatus.EMERGENCY_STOP)

    num_steps = int(math.floor(max_horizon / time_step + 1e-9))
    cos_t = math.cos(origin.theta)
    sin_t = math.sin(origin.theta)
    last = first
    for i in range(1, num_steps + 1):
        braking = decel if last.v > 0.0 else 0.0
        v = last.v - braking * time_step
        if braking > 0.0 and v <= _STOP_EPS:
            # stops inside this step
            ds = last.v * last.v / (2.0 * braking)
            v = 0.0
        else:
            ds = last.v * time_step - 0.5 * braking * time_step * time_step

        tp = TrajectoryPoint(
            x=last.x + cos_t * ds,
            y=last.y + sin_t * ds,
            theta=origin.theta,
            s=last.s + ds,
            kappa=origin.kappa,
            dkappa=0.0,
            v=v,
            a=-decel if v > 0.0 else 0.0,
            jerk=0.0,
            steer_angle=origin.steer_angle,
            relative_time=origin.relative_time + i * time_step,
        )
        points.append(tp)
        last = tp

    return Trajectory(points=points, status=TrajectoryStatus.EMERGENCY_STOP)
