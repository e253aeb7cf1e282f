from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, Generator, List, Optional, Tuple

from planning_core.inputs.base_input import BaseInput, Route, Waypoints
from planning_core.utils.config import load_yaml
from planning_core.utils.logger import get_logger
from planning_core.utils.types import Pose
from planning_core.world.world_model import (
    DynamicObject,
    EgoVehicleInfo,
    EgoVehicleStatus,
    TrafficSignalInfo,
    TrafficSignalStatus,
    WorldState,
)


@dataclass
class ScenarioMeta:
    name: str
    frame_count: int
    duration_s: float


@dataclass
class ScenarioFrame:
    """One batch of transport deliveries; None means nothing arrived for that topic."""

    timestamp: float
    ego_status: Optional[EgoVehicleStatus] = None
    objects: Optional[List[DynamicObject]] = None
    signal_status: Optional[List[TrafficSignalStatus]] = None
    signal_info: Optional[List[TrafficSignalInfo]] = None
    goal: Optional[Pose] = None

    def apply(self, world: WorldState) -> None:
        if self.ego_status is not None:
            world.update_ego_status(self.ego_status)
        if self.objects is not None:
            world.update_objects(self.objects)
        if self.signal_status is not None:
            world.update_signal_status(self.signal_status)
        if self.signal_info is not None:
            world.update_signal_info(self.signal_info)


def _waypoints(raw: Any) -> Waypoints:
    return [(float(p[0]), float(p[1])) for p in raw]


def _parse_frame(raw: Dict[str, Any]) -> ScenarioFrame:
    def listed(key, parser):
        items = raw.get(key)
        return None if items is None else [parser(item) for item in items]

    goal = raw.get("goal")
    return ScenarioFrame(
        timestamp=float(raw["t"]),
        ego_status=EgoVehicleStatus.from_dict(raw["ego_status"]) if "ego_status" in raw else None,
        objects=listed("objects", DynamicObject.from_dict),
        signal_status=listed("signal_status", TrafficSignalStatus.from_dict),
        signal_info=listed("signal_info", TrafficSignalInfo.from_dict),
        goal=Pose(x=float(goal["x"]), y=float(goal["y"]), yaw=float(goal.get("yaw", 0.0))) if goal else None,
    )


@dataclass
class Scenario:
    name: str
    ego_info: Optional[EgoVehicleInfo]
    lanes: Route
    route: Route = field(default_factory=list)
    agent_routes: Dict[int, List[Waypoints]] = field(default_factory=dict)
    frames: List[ScenarioFrame] = field(default_factory=list)


class ScenarioInput(BaseInput):
    """Replays a recorded/hand-written YAML scenario into the world state."""

    def __init__(self, path: str | Path):
        self.path = Path(path)
        self.logger = get_logger(__name__)
        raw = load_yaml(self.path)

        ego = raw.get("ego")
        self.scenario = Scenario(
            name=str(raw.get("name", self.path.stem)),
            ego_info=EgoVehicleInfo.from_dict(ego) if ego else None,
            lanes=[_waypoints(lane) for lane in raw.get("lanes", [])],
            route=[_waypoints(lane) for lane in raw.get("route", [])],
            agent_routes={
                int(agent_id): [_waypoints(lane) for lane in lanes]
                for agent_id, lanes in (raw.get("agent_routes") or {}).items()
            },
            frames=sorted((_parse_frame(f) for f in raw.get("frames", [])), key=lambda f: f.timestamp),
        )
        frames = self.scenario.frames
        self.meta = ScenarioMeta(
            name=self.scenario.name,
            frame_count=len(frames),
            duration_s=(frames[-1].timestamp - frames[0].timestamp) if frames else 0.0,
        )
        self.logger.info(
            "Scenario loaded: %s frames=%d duration=%.2fs lanes=%d",
            self.meta.name,
            self.meta.frame_count,
            self.meta.duration_s,
            len(self.scenario.lanes),
        )

    def start(self) -> None:
        # Parsing handled in __init__
        return

    def frames(self) -> Generator[Tuple[int, ScenarioFrame], None, None]:
        for idx, frame in enumerate(self.scenario.frames, start=1):
            yield idx, frame

    def stop(self) -> None:
        self.logger.info("Closed scenario %s", self.path)
