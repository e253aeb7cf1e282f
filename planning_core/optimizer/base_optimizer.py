import abc
from typing import Optional, Sequence

from planning_core.utils.types import PlanningTarget, Trajectory, TrajectoryPoint
from planning_core.world.obstacle import Obstacle


class BaseTrajectoryOptimizer(abc.ABC):
    @abc.abstractmethod
    def process(
        self,
        obstacles: Sequence[Obstacle],
        origin: TrajectoryPoint,
        targets: Sequence[PlanningTarget],
    ) -> Optional[Trajectory]:
        """
        Returns a trajectory whose first point is the origin, or None when no
        feasible trajectory was found. None is a total failure for the cycle.
        """
