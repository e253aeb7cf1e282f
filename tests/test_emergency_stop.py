import math

import pytest

from planning_core.safety.emergency_stop import EmergencyStopProfileGenerator, generate_stop_trajectory
from planning_core.utils.types import TrajectoryPoint, TrajectoryStatus


def test_braking_from_nine_mps_stops_after_three_seconds():
    traj = generate_stop_trajectory(TrajectoryPoint(v=9.0), max_horizon=8.0, time_step=0.1, max_deceleration=3.0)
    velocities = [p.v for p in traj.points]

    assert traj.status == TrajectoryStatus.EMERGENCY_STOP
    assert len(traj.points) == 81
    assert traj.points[0].a == -3.0
    for i in range(1, 31):
        assert velocities[i] < velocities[i - 1]
    assert velocities[30] == 0.0
    assert all(v == 0.0 for v in velocities[30:])
    assert all(p.a == 0.0 for p in traj.points[30:])
    assert traj.points[-1].s == pytest.approx(13.5)


def test_profile_is_monotonic_and_never_negative():
    traj = generate_stop_trajectory(TrajectoryPoint(v=7.3), 8.0, 0.1, 2.2)
    for a, b in zip(traj.points, traj.points[1:]):
        assert b.v <= a.v
        assert b.s >= a.s
        assert b.relative_time > a.relative_time
    assert min(p.v for p in traj.points) >= 0.0
    assert all(p.jerk == 0.0 for p in traj.points)


def test_braking_follows_origin_heading_and_holds_curvature():
    origin = TrajectoryPoint(x=1.0, y=2.0, theta=math.pi / 2, kappa=0.02, v=4.0, relative_time=0.1)
    traj = EmergencyStopProfileGenerator(max_horizon=4.0, time_step=0.1, max_deceleration=2.0).generate(origin)
    assert all(p.x == pytest.approx(1.0) for p in traj.points)
    assert traj.points[-1].y == pytest.approx(2.0 + 4.0)
    assert all(p.kappa == 0.02 for p in traj.points)
    assert traj.points[5].relative_time == pytest.approx(0.6)


def test_standing_vehicle_stays_put():
    traj = generate_stop_trajectory(TrajectoryPoint(x=3.0, v=0.0), 1.0, 0.1, 3.0)
    assert len(traj.points) == 11
    assert traj.points[0].a == -3.0
    assert all(p.v == 0.0 and p.x == 3.0 for p in traj.points)
    assert all(p.a == 0.0 for p in traj.points[1:])


def test_negative_origin_velocity_is_clamped():
    traj = generate_stop_trajectory(TrajectoryPoint(v=-1.0), 1.0, 0.1, 3.0)
    assert traj.points[0].v == 0.0
    assert traj.points[0].a == -3.0
    assert all(p.v == 0.0 and p.s == 0.0 for p in traj.points)


def test_degenerate_step_returns_origin_only():
    traj = generate_stop_trajectory(TrajectoryPoint(v=5.0), 8.0, 0.0, 3.0)
    assert len(traj.points) == 1
    assert traj.status == TrajectoryStatus.EMERGENCY_STOP
