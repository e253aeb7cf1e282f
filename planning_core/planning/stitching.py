from __future__ import annotations

from dataclasses import replace
from typing import List, Optional, Sequence

import numpy as np

from planning_core.geometry.kinematics import KinoDynamicState, frenet_offset
from planning_core.utils.logger import get_logger
from planning_core.utils.types import Trajectory, TrajectoryPoint

TIME_MATCH_EPS = 1.0e-5
POSITION_MATCH_EPS = 1.0e-5
# Below these the vehicle is treated as standing still on reinit.
STATIONARY_V = 0.1
STATIONARY_A = 0.4

logger = get_logger(__name__)


def time_match_index(relative_time: float, points: Sequence[TrajectoryPoint], eps: float = TIME_MATCH_EPS) -> int:
    """Earliest index whose relative_time + eps >= relative_time; last index when past the end."""
    if not points:
        raise ValueError("time_match_index needs a non-empty trajectory")
    if relative_time > points[-1].relative_time:
        return len(points) - 1
    times = np.fromiter((p.relative_time for p in points), dtype=float, count=len(points))
    return int(np.searchsorted(times + eps, relative_time, side="left"))


def position_match_index(x: float, y: float, points: Sequence[TrajectoryPoint], eps: float = POSITION_MATCH_EPS) -> int:
    """Nearest point to (x, y); among points within eps of the best, the earliest wins."""
    if not points:
        raise ValueError("position_match_index needs a non-empty trajectory")
    xy = np.array([(p.x, p.y) for p in points], dtype=float)
    dist_sqr = (xy[:, 0] - x) ** 2 + (xy[:, 1] - y) ** 2
    return int(np.flatnonzero(dist_sqr <= dist_sqr.min() + eps)[0])


def compute_reinit_stitching(cycle_period: float, state: KinoDynamicState) -> List[TrajectoryPoint]:
    if abs(state.v) < STATIONARY_V and abs(state.a) < STATIONARY_A:
        return [state.to_trajectory_point(cycle_period)]
    return [state.next_state(cycle_period).to_trajectory_point(cycle_period)]


class StitchingTrajectoryComputer:
    """
    Decides how much of the last committed trajectory the new plan continues
    from. The last point of the returned prefix is the planning origin.
    """

    def __init__(self, max_lat_deviation: float = 0.5, max_lon_deviation: float = 2.5):
        self.max_lat_deviation = max_lat_deviation
        self.max_lon_deviation = max_lon_deviation
        self.last_reinit_reason: Optional[str] = None

    def _reinit(self, reason: str, cycle_period: float, state: KinoDynamicState) -> List[TrajectoryPoint]:
        self.last_reinit_reason = reason
        logger.info("Stitching reinit: %s", reason)
        return compute_reinit_stitching(cycle_period, state)

    def compute(
        self,
        now: float,
        cycle_period: float,
        preserve_count: int,
        history: Optional[Trajectory],
        state: KinoDynamicState,
    ) -> List[TrajectoryPoint]:
        self.last_reinit_reason = None
        if history is None or not history.points:
            return self._reinit("no history trajectory", cycle_period, state)

        points = history.points
        relative_time = now - history.timestamp
        time_idx = time_match_index(relative_time, points)

        if time_idx == 0 and relative_time < points[0].relative_time:
            return self._reinit("current time precedes history", cycle_period, state)
        if time_idx >= len(points) - 1:
            return self._reinit("history exhausted", cycle_period, state)

        position_idx = position_match_index(state.x, state.y, points)
        lon, lat = frenet_offset(state.x, state.y, points[position_idx])
        lon_diff = points[time_idx].s - lon
        if abs(lat) > self.max_lat_deviation:
            return self._reinit(f"lateral deviation {lat:.2f}m", cycle_period, state)
        if abs(lon_diff) > self.max_lon_deviation:
            return self._reinit(f"longitudinal deviation {lon_diff:.2f}m", cycle_period, state)

        forward_idx = time_match_index(relative_time + cycle_period, points)
        matched_idx = min(position_idx, time_idx)
        prefix = points[max(0, matched_idx - preserve_count) : forward_idx + 1]

        zero_s = prefix[-1].s
        time_shift = history.timestamp - now
        return [replace(p, s=p.s - zero_s, relative_time=p.relative_time + time_shift) for p in prefix]


def compute_stitching_prefix(
    now: float,
    cycle_period: float,
    preserve_count: int,
    history: Optional[Trajectory],
    state: KinoDynamicState,
    max_lat_deviation: float = 0.5,
    max_lon_deviation: float = 2.5,
) -> List[TrajectoryPoint]:
    computer = StitchingTrajectoryComputer(max_lat_deviation, max_lon_deviation)
    return computer.compute(now, cycle_period, preserve_count, history, state)
