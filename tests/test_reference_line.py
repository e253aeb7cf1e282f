import math

import numpy as np
import pytest

from planning_core.geometry.kinematics import KinoDynamicState
from planning_core.geometry.reference_line import ReferenceLine, SLPoint, retrieve_reference_line


def _straight(length=20.0, step=10.0):
    n = int(length / step) + 1
    return ReferenceLine.from_waypoints([(i * step, 0.0) for i in range(n)])


def test_projection_is_positive_to_the_left():
    sl = _straight().xy_to_sl(5.0, 1.0)
    assert sl.s == pytest.approx(5.0)
    assert sl.l == pytest.approx(1.0)


def test_projection_off_either_end_fails():
    line = _straight()
    assert line.xy_to_sl(-5.0, 0.0) is None
    assert line.xy_to_sl(25.0, 0.0) is None


def test_duplicate_waypoints_are_dropped():
    line = ReferenceLine.from_waypoints([(0.0, 0.0), (0.0, 0.0), (10.0, 0.0)])
    assert line.length == pytest.approx(10.0)
    assert len(line.xy) == 2


def test_single_point_is_rejected():
    with pytest.raises(ValueError):
        ReferenceLine.from_waypoints([(1.0, 1.0), (1.0, 1.0)])


def test_reference_point_clamps_station():
    ref = _straight().get_reference_point(100.0)
    assert ref.x == pytest.approx(20.0)
    assert ref.theta == pytest.approx(0.0)


def test_circle_curvature():
    radius = 20.0
    phi = np.linspace(0.0, math.pi / 2, 200)
    line = ReferenceLine.from_waypoints(np.stack([radius * np.sin(phi), radius - radius * np.cos(phi)], axis=1))
    assert line.get_reference_point(line.length / 2).kappa == pytest.approx(1.0 / radius, abs=1e-3)


def test_arrays_are_read_only():
    line = _straight()
    with pytest.raises(ValueError):
        line.xy[0, 0] = 5.0


def test_lane_membership():
    line = _straight()
    assert line.is_on_lane(SLPoint(s=5.0, l=1.0))
    assert not line.is_on_lane(SLPoint(s=5.0, l=-2.0))
    assert not line.is_on_lane(SLPoint(s=25.0, l=0.0))


def test_retrieve_cuts_window_around_state():
    lane = [(float(i), 0.0) for i in range(401)]
    line = retrieve_reference_line(KinoDynamicState(x=100.0), lane, lookahead=50.0, lookback=10.0)
    assert line is not None
    assert line.length == pytest.approx(60.0)
    assert line.xy[0, 0] == pytest.approx(90.0)


def test_retrieve_fails_when_state_is_off_lane_ends():
    lane = [(float(i), 0.0) for i in range(101)]
    assert retrieve_reference_line(KinoDynamicState(x=-50.0), lane, 50.0, 10.0) is None
    assert retrieve_reference_line(KinoDynamicState(x=0.0), [(0.0, 0.0)], 50.0, 10.0) is None


def test_retrieve_between_sparse_waypoints_keeps_the_state_on_the_line():
    lane = [(float(x), 0.0) for x in range(0, 401, 50)]
    line = retrieve_reference_line(KinoDynamicState(x=40.0), lane, lookahead=300.0, lookback=30.0)

    assert line.xy[0, 0] == pytest.approx(10.0)
    assert line.xy[-1, 0] == pytest.approx(340.0)
    assert line.length == pytest.approx(330.0)
    sl = line.xy_to_sl(40.0, 0.0)
    assert sl.s == pytest.approx(30.0)
    assert sl.l == pytest.approx(0.0)


def test_retrieve_window_clamps_at_lane_ends():
    lane = [(0.0, 0.0), (50.0, 0.0), (100.0, 0.0)]
    line = retrieve_reference_line(KinoDynamicState(x=20.0), lane, lookahead=300.0, lookback=30.0)
    assert line.xy[0, 0] == pytest.approx(0.0)
    assert line.length == pytest.approx(100.0)


def test_point_outside_corner_projects_onto_the_vertex():
    corner = ReferenceLine.from_waypoints([(0.0, 0.0), (10.0, 0.0), (10.0, 10.0)])
    sl = corner.xy_to_sl(12.0, -1.0)
    assert sl.s == pytest.approx(10.0)
    assert sl.l == pytest.approx(-math.sqrt(5.0))
    assert not corner.is_on_lane(sl)


def test_points_inside_corner_still_project():
    corner = ReferenceLine.from_waypoints([(0.0, 0.0), (10.0, 0.0), (10.0, 10.0)])
    on_first = corner.xy_to_sl(9.0, 1.0)
    assert on_first.s == pytest.approx(9.0)
    assert on_first.l == pytest.approx(1.0)

    on_second = corner.xy_to_sl(11.0, 5.0)
    assert on_second.s == pytest.approx(15.0)
    assert on_second.l == pytest.approx(-1.0)
