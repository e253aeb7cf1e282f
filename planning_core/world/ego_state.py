from __future__ import annotations

from planning_core.geometry.kinematics import KinoDynamicState
from planning_core.world.world_model import DynamicObject, EgoVehicleStatus

# Below this speed the yaw-rate based curvature is too noisy to use.
_MIN_CURVATURE_SPEED = 0.1


def build_kinodynamic_state(status: EgoVehicleStatus, ego: DynamicObject) -> KinoDynamicState:
    """Fuse the vehicle status (speed, accel) with the ego object's pose."""
    v = status.velocity
    kappa = ego.yaw_rate / v if abs(v) > _MIN_CURVATURE_SPEED else 0.0
    return KinoDynamicState(
        x=ego.x,
        y=ego.y,
        z=ego.z,
        theta=ego.yaw,
        v=v,
        a=status.acceleration,
        kappa=kappa,
    )
