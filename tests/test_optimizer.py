import pytest

from planning_core.geometry.reference_line import ReferenceLine
from planning_core.optimizer.reference_follower import ReferenceFollowerOptimizer
from planning_core.planning.planning_target import build_planning_targets
from planning_core.utils.config import PlanningConfig
from planning_core.utils.types import TrajectoryPoint
from planning_core.world.obstacle import Obstacle
from planning_core.world.world_model import DynamicObject

LINE = ReferenceLine.from_waypoints([(float(x), 0.0) for x in range(0, 401, 10)])


def _plan(origin, obstacles=()):
    targets = build_planning_targets([LINE], origin, 10.0, 2.0)
    return ReferenceFollowerOptimizer(PlanningConfig()).process(list(obstacles), origin, targets)


def test_no_targets_is_a_failure():
    assert ReferenceFollowerOptimizer(PlanningConfig()).process([], TrajectoryPoint(), []) is None


def test_first_point_is_the_origin():
    origin = TrajectoryPoint(x=10.0, v=8.0, relative_time=0.1)
    traj = _plan(origin)
    assert len(traj.points) == 81
    assert traj.points[0].x == origin.x
    assert traj.points[0].s == 0.0
    assert traj.points[1].relative_time == pytest.approx(0.2)


def test_speed_stays_under_desired_velocity():
    traj = _plan(TrajectoryPoint(x=10.0, v=8.0))
    assert max(p.v for p in traj.points) <= 10.0 + 1e-9
    assert traj.points[-1].v == pytest.approx(10.0)
    for a, b in zip(traj.points, traj.points[1:]):
        assert b.s >= a.s


def test_stops_behind_in_lane_obstacle():
    blocker = Obstacle.from_object(DynamicObject(id=2, x=40.0, y=0.0, length=4.0))
    traj = _plan(TrajectoryPoint(x=10.0, v=8.0), [blocker])
    assert traj.points[-1].v == 0.0
    assert 30.0 < traj.points[-1].x < 35.0


def test_ignores_obstacles_outside_the_lane_or_behind():
    aside = Obstacle.from_object(DynamicObject(id=2, x=40.0, y=5.0))
    behind = Obstacle.from_object(DynamicObject(id=3, x=5.0, y=0.0))
    traj = _plan(TrajectoryPoint(x=10.0, v=8.0), [aside, behind])
    assert traj.points[-1].v == pytest.approx(10.0)


def test_lateral_offset_is_blended_out():
    traj = _plan(TrajectoryPoint(x=10.0, y=0.4, v=8.0))
    assert traj.points[1].y > 0.0
    assert traj.points[-1].y == pytest.approx(0.0, abs=1e-9)
