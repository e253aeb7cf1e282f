import math

import pytest

from planning_core.geometry.kinematics import KinoDynamicState, advance_along_arc, frenet_offset, normalize_angle
from planning_core.utils.types import TrajectoryPoint


def test_next_state_constant_velocity_moves_along_heading():
    nxt = KinoDynamicState(x=1.0, y=2.0, theta=math.pi / 2, v=5.0).next_state(0.1)
    assert nxt.x == pytest.approx(1.0)
    assert nxt.y == pytest.approx(2.5)
    assert nxt.v == pytest.approx(5.0)


def test_next_state_never_reverses_when_braking():
    nxt = KinoDynamicState(v=1.0, a=-10.0).next_state(0.5)
    assert nxt.v == 0.0
    assert nxt.x == pytest.approx(0.05)


def test_advance_along_arc_quarter_circle():
    x, y, theta = advance_along_arc(0.0, 0.0, 0.0, 0.1, 5.0 * math.pi)
    assert x == pytest.approx(10.0)
    assert y == pytest.approx(10.0)
    assert theta == pytest.approx(math.pi / 2)


def test_normalize_angle_wraps_into_pi_range():
    assert normalize_angle(0.5) == pytest.approx(0.5)
    assert normalize_angle(2.0 * math.pi + 0.25) == pytest.approx(0.25)
    assert abs(normalize_angle(3.0 * math.pi)) == pytest.approx(math.pi)


def test_frenet_offset_adds_point_station():
    point = TrajectoryPoint(x=0.0, y=0.0, theta=0.0, s=10.0)
    lon, lat = frenet_offset(3.0, 1.0, point)
    assert lon == pytest.approx(13.0)
    assert abs(lat) == pytest.approx(1.0)


def test_to_trajectory_point_resets_station():
    tp = KinoDynamicState(x=3.0, v=2.0, a=0.5, kappa=0.01).to_trajectory_point(0.1)
    assert tp.s == 0.0
    assert tp.relative_time == 0.1
    assert tp.kappa == 0.01
    assert tp.jerk == 0.0
