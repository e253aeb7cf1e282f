from __future__ import annotations

from typing import Callable, Dict, List, Optional

from planning_core.geometry.kinematics import KinoDynamicState
from planning_core.geometry.reference_line import ReferenceLine, retrieve_reference_line
from planning_core.inputs.base_input import BaseReferenceProvider, Route, Waypoints
from planning_core.utils.logger import get_logger
from planning_core.utils.types import Pose

Router = Callable[[Pose, Pose], Optional[Route]]


class WaypointReferenceProvider(BaseReferenceProvider):
    """
    Reference lines cut from fixed lane polylines around the latest vehicle
    state. Route requests go to an injected router; without one they fail.
    """

    def __init__(
        self,
        lanes: Optional[Route] = None,
        lookahead: float = 300.0,
        lookback: float = 30.0,
        lane_half_width: float = 1.75,
        agent_routes: Optional[Dict[int, List[Waypoints]]] = None,
        router: Optional[Router] = None,
    ):
        self.lanes: Route = list(lanes or [])
        self.lookahead = lookahead
        self.lookback = lookback
        self.lane_half_width = lane_half_width
        self.router = router
        self._agent_routes = dict(agent_routes or {})
        self._state: Optional[KinoDynamicState] = None
        self.logger = get_logger(__name__)

    def update_vehicle_state(self, state: KinoDynamicState) -> None:
        self._state = state

    def get_reference_lines(self) -> Optional[List[ReferenceLine]]:
        if self._state is None or not self.lanes:
            return None
        lines = []
        for idx, lane in enumerate(self.lanes):
            line = retrieve_reference_line(
                self._state,
                lane,
                self.lookahead,
                self.lookback,
                left_width=self.lane_half_width,
                right_width=self.lane_half_width,
            )
            if line is None:
                self.logger.debug("Lane %d not retrievable around (%.1f, %.1f)", idx, self._state.x, self._state.y)
                continue
            lines.append(line)
        return lines or None

    def update_route_response(self, route: Route) -> bool:
        lanes = [lane for lane in route if len(lane) >= 2]
        if not lanes:
            self.logger.warning("Route response has no usable lanes")
            return False
        self.lanes = lanes
        self.logger.info("Route updated: %d lanes", len(lanes))
        return True

    def request_route(self, start: Pose, goal: Pose) -> Optional[Route]:
        if self.router is None:
            return None
        return self.router(start, goal)

    def agent_routes(self, agent_id: int) -> Optional[List[Waypoints]]:
        return self._agent_routes.get(agent_id)
