from planning_core.optimizer.base_optimizer import BaseTrajectoryOptimizer
from planning_core.optimizer.reference_follower import ReferenceFollowerOptimizer
from planning_core.utils.config import PlanningConfig

_OPTIMIZERS = {
    "reference_follower": ReferenceFollowerOptimizer,
}


def make_optimizer(cfg: PlanningConfig) -> BaseTrajectoryOptimizer:
    try:
        optimizer_cls = _OPTIMIZERS[cfg.planner_type]
    except KeyError:
        raise ValueError(
            f"No such trajectory optimizer [{cfg.planner_type}]; available: {sorted(_OPTIMIZERS)}"
        ) from None
    return optimizer_cls(cfg)
