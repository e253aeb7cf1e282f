from __future__ import annotations

from typing import List, Sequence

from planning_core.geometry.reference_line import ReferenceLine
from planning_core.utils.logger import get_logger
from planning_core.utils.types import PlanningTarget, TrajectoryPoint

KAPPA_EPS = 1e-4
DEFAULT_STOP_MARGIN = 50.0

logger = get_logger(__name__)


def build_planning_targets(
    reference_lines: Sequence[ReferenceLine],
    origin: TrajectoryPoint,
    desired_velocity_cap: float,
    max_lateral_acceleration: float,
    stop_margin: float = DEFAULT_STOP_MARGIN,
) -> List[PlanningTarget]:
    """
    One target per reference line that the origin projects onto.

    A line ending within stop_margin of the projected station gets a stop
    point at its end. Speed is capped by the lateral acceleration budget at
    the local curvature.
    """
    targets: List[PlanningTarget] = []
    for idx, ref_line in enumerate(reference_lines):
        sl = ref_line.xy_to_sl(origin.x, origin.y)
        if sl is None:
            logger.warning("Origin (%.2f, %.2f) does not project onto reference line %d; dropped", origin.x, origin.y, idx)
            continue

        has_stop_point = ref_line.length < sl.s + stop_margin
        kappa = ref_line.get_reference_point(sl.s).kappa
        targets.append(
            PlanningTarget(
                ref_line=ref_line,
                desired_vel=min(desired_velocity_cap, max_lateral_acceleration / (abs(kappa) + KAPPA_EPS)),
                has_stop_point=has_stop_point,
                stop_s=ref_line.length if has_stop_point else float("inf"),
                is_best_behaviour=ref_line.is_on_lane(sl),
            )
        )
    return targets


class PlanningTargetBuilder:
    def __init__(self, desired_velocity_cap: float, max_lateral_acceleration: float, stop_margin: float = DEFAULT_STOP_MARGIN):
        self.desired_velocity_cap = desired_velocity_cap
        self.max_lateral_acceleration = max_lateral_acceleration
        self.stop_margin = stop_margin

    def build(self, reference_lines: Sequence[ReferenceLine], origin: TrajectoryPoint) -> List[PlanningTarget]:
        return build_planning_targets(
            reference_lines,
            origin,
            self.desired_velocity_cap,
            self.max_lateral_acceleration,
            self.stop_margin,
        )
