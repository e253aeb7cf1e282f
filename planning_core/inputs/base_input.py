import abc
from typing import Iterator, List, Optional, Sequence, Tuple

from planning_core.geometry.kinematics import KinoDynamicState
from planning_core.geometry.reference_line import ReferenceLine
from planning_core.utils.types import Pose

Waypoints = Sequence[Tuple[float, float]]
# A route response is the list of lanes (waypoint polylines) to follow.
Route = List[Waypoints]


class BaseInput(abc.ABC):
    @abc.abstractmethod
    def start(self) -> None:
        ...

    @abc.abstractmethod
    def stop(self) -> None:
        ...

    @abc.abstractmethod
    def frames(self) -> Iterator:
        ...


class BaseReferenceProvider(abc.ABC):
    """Supplies candidate reference lines and answers route requests."""

    @abc.abstractmethod
    def update_vehicle_state(self, state: KinoDynamicState) -> None:
        ...

    @abc.abstractmethod
    def get_reference_lines(self) -> Optional[List[ReferenceLine]]:
        """None (or an empty list) when no candidate is available this cycle."""

    @abc.abstractmethod
    def update_route_response(self, route: Route) -> bool:
        ...

    @abc.abstractmethod
    def request_route(self, start: Pose, goal: Pose) -> Optional[Route]:
        ...

    @abc.abstractmethod
    def agent_routes(self, agent_id: int) -> Optional[List[Waypoints]]:
        ...
