from __future__ import annotations

from dataclasses import dataclass
from typing import Optional, Sequence

import numpy as np

from planning_core.geometry.kinematics import KinoDynamicState, normalize_angle
from planning_core.utils.logger import get_logger

logger = get_logger(__name__)

_MIN_SEGMENT = 1e-9
_PROJECTION_TOL = 1e-6


@dataclass(frozen=True)
class SLPoint:
    s: float
    l: float


@dataclass(frozen=True)
class ReferencePoint:
    x: float
    y: float
    theta: float
    kappa: float
    dkappa: float


class ReferenceLine:
    """
    Immutable arc-length parameterised path built from a polyline.

    Heading, curvature and curvature rate are estimated with finite
    differences along s. Lateral offsets are positive to the left of the
    direction of travel.
    """

    def __init__(
        self,
        xy: np.ndarray,
        s: np.ndarray,
        theta: np.ndarray,
        kappa: np.ndarray,
        dkappa: np.ndarray,
        left_width: float = 1.75,
        right_width: float = 1.75,
    ):
        self._xy = xy
        self._s = s
        self._theta = theta
        self._kappa = kappa
        self._dkappa = dkappa
        self.left_width = float(left_width)
        self.right_width = float(right_width)
        for arr in (self._xy, self._s, self._theta, self._kappa, self._dkappa):
            arr.setflags(write=False)

    @classmethod
    def from_waypoints(
        cls,
        waypoints: Sequence[Sequence[float]],
        left_width: float = 1.75,
        right_width: float = 1.75,
    ) -> "ReferenceLine":
        xy = np.asarray(waypoints, dtype=float).reshape(-1, 2)
        if len(xy) >= 2:
            seg_len = np.hypot(*np.diff(xy, axis=0).T)
            xy = xy[np.concatenate(([True], seg_len > _MIN_SEGMENT))]
        if len(xy) < 2:
            raise ValueError("Reference line needs at least two distinct waypoints")

        seg_len = np.hypot(*np.diff(xy, axis=0).T)
        s = np.concatenate(([0.0], np.cumsum(seg_len)))
        dx = np.gradient(xy[:, 0], s)
        dy = np.gradient(xy[:, 1], s)
        theta = np.unwrap(np.arctan2(dy, dx))
        kappa = np.gradient(theta, s)
        dkappa = np.gradient(kappa, s)
        return cls(xy, s, theta, kappa, dkappa, left_width=left_width, right_width=right_width)

    @property
    def length(self) -> float:
        return float(self._s[-1])

    @property
    def xy(self) -> np.ndarray:
        return self._xy

    @property
    def stations(self) -> np.ndarray:
        return self._s

    def xy_to_sl(self, x: float, y: float) -> Optional[SLPoint]:
        """
        Project a world point onto its nearest foot point on the polyline.
        None when the nearest foot is an end of the line and the point lies
        beyond it. l is the signed distance to the foot point.
        """
        p = np.array([x, y], dtype=float)
        start = self._xy[:-1]
        seg = np.diff(self._xy, axis=0)
        seg_len = np.diff(self._s)

        t = np.einsum("ij,ij->i", p - start, seg) / (seg_len * seg_len)
        t_clipped = np.clip(t, 0.0, 1.0)
        foot = start + t_clipped[:, None] * seg
        dist = np.hypot(*(p - foot).T)
        idx = int(np.argmin(dist))

        if idx == 0 and t[0] * seg_len[0] < -_PROJECTION_TOL:
            return None
        last = len(seg_len) - 1
        if idx == last and (t[last] - 1.0) * seg_len[last] > _PROJECTION_TOL:
            return None

        s = float(self._s[idx] + t_clipped[idx] * seg_len[idx])
        ux, uy = seg[idx] / seg_len[idx]
        rx, ry = p - start[idx]
        side = 1.0 if ux * ry - uy * rx >= 0.0 else -1.0
        return SLPoint(s=min(max(s, 0.0), self.length), l=side * float(dist[idx]))

    def get_reference_point(self, s: float) -> ReferencePoint:
        s = min(max(float(s), 0.0), self.length)
        return ReferencePoint(
            x=float(np.interp(s, self._s, self._xy[:, 0])),
            y=float(np.interp(s, self._s, self._xy[:, 1])),
            theta=normalize_angle(float(np.interp(s, self._s, self._theta))),
            kappa=float(np.interp(s, self._s, self._kappa)),
            dkappa=float(np.interp(s, self._s, self._dkappa)),
        )

    def is_on_lane(self, sl: SLPoint) -> bool:
        if sl.s < 0.0 or sl.s > self.length:
            return False
        return -self.right_width <= sl.l <= self.left_width

    def __repr__(self) -> str:
        return f"ReferenceLine(points={len(self._xy)}, length={self.length:.1f}m)"


def retrieve_reference_line(
    state: KinoDynamicState,
    waypoints: Sequence[Sequence[float]],
    lookahead: float,
    lookback: float,
    left_width: float = 1.75,
    right_width: float = 1.75,
) -> Optional[ReferenceLine]:
    """
    Cut a candidate line out of a lane's waypoints around the given state,
    keeping [s - lookback, s + lookahead].
    """
    try:
        full = ReferenceLine.from_waypoints(waypoints, left_width, right_width)
    except ValueError:
        logger.warning("Cannot build reference line from %d waypoints", len(waypoints))
        return None

    sl = full.xy_to_sl(state.x, state.y)
    if sl is None:
        return None

    lo = max(0.0, sl.s - lookback)
    hi = min(full.length, sl.s + lookahead)
    if hi - lo <= _MIN_SEGMENT:
        return None
    # Cut points are interpolated so sparse waypoints still bracket the state.
    stations = full.stations
    inner = (stations > lo + _PROJECTION_TOL) & (stations < hi - _PROJECTION_TOL)
    cut_s = np.concatenate(([lo], stations[inner], [hi]))
    xy = np.stack([np.interp(cut_s, stations, full.xy[:, 0]), np.interp(cut_s, stations, full.xy[:, 1])], axis=1)
    try:
        return ReferenceLine.from_waypoints(xy, left_width, right_width)
    except ValueError:
        return None
