import pytest

from planning_core.world.ego_state import build_kinodynamic_state
from planning_core.world.world_model import (
    DynamicObject,
    EgoVehicleInfo,
    EgoVehicleStatus,
    SignalState,
    TrafficSignalInfo,
    WorldState,
)


def test_ego_info_sets_ego_identity():
    world = WorldState()
    assert world.snapshot().ego_id is None
    world.update_ego_info(EgoVehicleInfo(id=7, wheelbase=3.0))
    assert world.snapshot().ego_id == 7
    assert world.snapshot().ego_object is None


def test_snapshot_is_not_affected_by_later_updates():
    world = WorldState()
    world.update_objects([DynamicObject(id=1, x=0.0, y=0.0)])
    before = world.snapshot()
    world.update_objects([DynamicObject(id=2, x=1.0, y=1.0)])

    assert set(before.objects) == {1}
    assert set(world.snapshot().objects) == {2}


def test_snapshot_maps_are_read_only():
    world = WorldState()
    world.update_objects([DynamicObject(id=1, x=0.0, y=0.0)])
    with pytest.raises(TypeError):
        world.snapshot().objects[2] = DynamicObject(id=2, x=0.0, y=0.0)


def test_duplicate_ids_last_writer_wins():
    world = WorldState()
    world.update_objects([DynamicObject(id=1, x=0.0, y=0.0), DynamicObject(id=1, x=9.0, y=0.0)])
    assert world.snapshot().objects[1].x == 9.0


def test_signal_state_parsing():
    assert SignalState.parse("red") == SignalState.RED
    assert SignalState.parse("blinking") == SignalState.UNKNOWN


def test_signal_info_accepts_center_block():
    info = TrafficSignalInfo.from_dict({"id": 3, "center": {"x": 1.0, "y": 2.0, "z": 0.5}, "size": [1, 2, 3]})
    assert (info.center_x, info.center_y, info.center_z) == (1.0, 2.0, 0.5)
    assert info.size == (1.0, 2.0, 3.0)


def test_kinodynamic_state_from_status_and_pose():
    ego = DynamicObject(id=1, x=3.0, y=4.0, z=0.2, yaw=0.5, yaw_rate=0.4)
    state = build_kinodynamic_state(EgoVehicleStatus(velocity=8.0, acceleration=1.0), ego)
    assert (state.x, state.y, state.z, state.theta) == (3.0, 4.0, 0.2, 0.5)
    assert state.v == 8.0 and state.a == 1.0
    assert state.kappa == pytest.approx(0.05)


def test_kinodynamic_state_ignores_yaw_rate_when_standing():
    ego = DynamicObject(id=1, x=0.0, y=0.0, yaw_rate=0.4)
    assert build_kinodynamic_state(EgoVehicleStatus(velocity=0.0), ego).kappa == 0.0
