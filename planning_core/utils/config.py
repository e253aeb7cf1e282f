from __future__ import annotations

from dataclasses import dataclass, fields
from pathlib import Path
from typing import Any, Dict, Optional

import yaml


def load_yaml(path: str | Path) -> Dict[str, Any]:
    config_path = Path(path)
    if not config_path.exists():
        raise FileNotFoundError(f"Config not found: {config_path.resolve()}")
    with config_path.open("r", encoding="utf-8") as f:
        return yaml.safe_load(f) or {}


def get(cfg: Dict[str, Any], key: str, default: Any = None) -> Any:
    """
    Dot-access helper:
      get(cfg, "runtime.output_dir", "results")
    """
    cur: Any = cfg
    for part in key.split("."):
        if not isinstance(cur, dict) or part not in cur:
            return default
        cur = cur[part]
    return cur


@dataclass(frozen=True)
class PlanningConfig:
    """
    Planner parameters, built once at startup and handed to each component.
    """

    planner_type: str = "reference_follower"
    loop_rate: int = 10
    preserve_history_trajectory_point_num: int = 20
    max_replan_lat_distance_threshold: float = 0.5
    max_replan_lon_distance_threshold: float = 2.5
    max_lookahead_time: float = 8.0
    delta_t: float = 0.1
    max_lon_acc: float = 3.0
    desired_velocity: float = 10.0
    max_lat_acc: float = 2.0
    obstacle_radius: float = 50.0
    obstacle_height_gate: float = 1.5
    stop_safety_margin: float = 50.0
    reference_lookahead: float = 300.0
    reference_lookback: float = 30.0
    agent_lookahead: float = 100.0
    agent_lookback: float = 20.0
    lane_half_width: float = 1.75
    watchdog_ms: Optional[float] = None
    log_level: str = "INFO"
    output_dir: str = "results"

    def __post_init__(self):
        if self.loop_rate <= 0:
            raise ValueError(f"loop_rate must be positive, got {self.loop_rate}")
        if self.delta_t <= 0.0:
            raise ValueError(f"delta_t must be positive, got {self.delta_t}")
        if self.max_lon_acc < 0.0:
            raise ValueError(f"max_lon_acc must be non-negative, got {self.max_lon_acc}")
        if self.preserve_history_trajectory_point_num < 0:
            raise ValueError("preserve_history_trajectory_point_num must be non-negative")

    @property
    def cycle_period(self) -> float:
        return 1.0 / float(self.loop_rate)

    @property
    def watchdog_budget_ms(self) -> float:
        return float(self.watchdog_ms) if self.watchdog_ms else self.cycle_period * 1000.0

    @classmethod
    def from_dict(cls, cfg: Dict[str, Any]) -> "PlanningConfig":
        known = {f.name: f for f in fields(cls)}
        values: Dict[str, Any] = {}
        for section in ("planning", "runtime"):
            for key, value in (cfg.get(section) or {}).items():
                if key in known:
                    values[key] = value
        return cls(**values)

    @classmethod
    def from_yaml(cls, path: str | Path) -> "PlanningConfig":
        return cls.from_dict(load_yaml(path))
