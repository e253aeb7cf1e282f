from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Tuple

from planning_core.utils.types import TrajectoryPoint

_KAPPA_EPS = 1e-6


@dataclass(frozen=True)
class KinoDynamicState:
    x: float = 0.0
    y: float = 0.0
    z: float = 0.0
    theta: float = 0.0
    v: float = 0.0
    a: float = 0.0
    kappa: float = 0.0

    def next_state(self, dt: float) -> "KinoDynamicState":
        """
        Propagate with constant acceleration and constant curvature.
        Velocity is not allowed to cross zero; a vehicle braking to a halt
        inside dt stays where it stopped.
        """
        if dt <= 0.0:
            return self

        v_next = self.v + self.a * dt
        if self.a < 0.0 and v_next < 0.0 <= self.v:
            ds = self.v * self.v / (2.0 * -self.a)
            v_next = 0.0
        else:
            ds = self.v * dt + 0.5 * self.a * dt * dt

        x, y, theta = advance_along_arc(self.x, self.y, self.theta, self.kappa, ds)
        return KinoDynamicState(x=x, y=y, z=self.z, theta=theta, v=v_next, a=self.a, kappa=self.kappa)

    def to_trajectory_point(self, relative_time: float) -> TrajectoryPoint:
        return TrajectoryPoint(
            x=self.x,
            y=self.y,
            theta=self.theta,
            s=0.0,
            kappa=self.kappa,
            dkappa=0.0,
            v=self.v,
            a=self.a,
            jerk=0.0,
            relative_time=relative_time,
        )


def normalize_angle(angle: float) -> float:
    a = math.fmod(angle + math.pi, 2.0 * math.pi)
    if a < 0.0:
        a += 2.0 * math.pi
    return a - math.pi


def advance_along_arc(x: float, y: float, theta: float, kappa: float, ds: float) -> Tuple[float, float, float]:
    """Move (x, y, theta) forward by arc-length ds on a circle of curvature kappa."""
    if abs(kappa) < _KAPPA_EPS:
        return x + ds * math.cos(theta), y + ds * math.sin(theta), theta
    theta_next = theta + kappa * ds
    x_next = x + (math.sin(theta_next) - math.sin(theta)) / kappa
    y_next = y + (math.cos(theta) - math.cos(theta_next)) / kappa
    return x_next, y_next, normalize_angle(theta_next)


def frenet_offset(x: float, y: float, point: TrajectoryPoint) -> Tuple[float, float]:
    """
    Longitudinal / lateral decomposition of (x, y) about a trajectory point.

    lon = offset . heading + point.s
    lat = offset x heading  (signed)
    """
    dx = x - point.x
    dy = y - point.y
    nx = math.cos(point.theta)
    ny = math.sin(point.theta)
    lon = dx * nx + dy * ny + point.s
    lat = dx * ny - dy * nx
    return lon, lat
