from __future__ import annotations

import threading
import time
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Callable, List, Optional

from planning_core.geometry.kinematics import KinoDynamicState
from planning_core.geometry.reference_line import ReferenceLine, retrieve_reference_line
from planning_core.inputs.base_input import BaseReferenceProvider
from planning_core.optimizer.base_optimizer import BaseTrajectoryOptimizer
from planning_core.planning.obstacle_selector import ObstacleSelector
from planning_core.planning.planning_target import PlanningTargetBuilder
from planning_core.planning.stitching import StitchingTrajectoryComputer
from planning_core.runtime.health_monitor import HealthMonitor
from planning_core.runtime.trajectory_sink import TrajectorySink
from planning_core.safety.emergency_stop import EmergencyStopProfileGenerator
from planning_core.utils.config import PlanningConfig
from planning_core.utils.logger import get_logger
from planning_core.utils.timing import FPSMeter, LoopRate, StageTimer
from planning_core.utils.types import CycleStats, Pose, Trajectory, TrajectoryPoint, TrajectoryStatus
from planning_core.world.ego_state import build_kinodynamic_state
from planning_core.world.prediction import Predictor
from planning_core.world.world_model import WorldState


class CycleState(str, Enum):
    NO_EGO = "NO_EGO"
    EGO_UNRESOLVED = "EGO_UNRESOLVED"
    NORMAL = "NORMAL"


@dataclass
class CycleResult:
    state: CycleState
    trajectory: Optional[Trajectory] = None
    # History to hand to the next cycle; None means the next cycle reinits.
    history: Optional[Trajectory] = None
    stats: CycleStats = field(default_factory=CycleStats)
    message: str = ""

    @property
    def published(self) -> bool:
        return self.trajectory is not None


class Orchestrator:
    """
    Per-cycle decision loop: stitch onto the last plan, gather reference
    lines, obstacles and targets, run the optimizer and publish. Every
    failure inside a NORMAL cycle ends in a published emergency stop.
    """

    def __init__(
        self,
        cfg: PlanningConfig,
        world: WorldState,
        reference_provider: BaseReferenceProvider,
        optimizer: BaseTrajectoryOptimizer,
        sink: Optional[TrajectorySink] = None,
        predictor: Optional[Predictor] = None,
        clock: Callable[[], float] = time.time,
    ):
        self.cfg = cfg
        self.world = world
        self.reference_provider = reference_provider
        self.optimizer = optimizer
        self.sink = sink or TrajectorySink()
        self.clock = clock
        self.logger = get_logger(__name__)

        self.stitcher = StitchingTrajectoryComputer(
            max_lat_deviation=cfg.max_replan_lat_distance_threshold,
            max_lon_deviation=cfg.max_replan_lon_distance_threshold,
        )
        self.stop_generator = EmergencyStopProfileGenerator(cfg.max_lookahead_time, cfg.delta_t, cfg.max_lon_acc)
        self.obstacle_selector = ObstacleSelector(
            radius=cfg.obstacle_radius,
            height_gate=cfg.obstacle_height_gate,
            horizon=cfg.max_lookahead_time,
            time_step=cfg.delta_t,
            predictor=predictor,
        )
        self.target_builder = PlanningTargetBuilder(cfg.desired_velocity, cfg.max_lat_acc, cfg.stop_safety_margin)
        self.health = HealthMonitor(cfg.watchdog_budget_ms)
        self.fps_meter = FPSMeter()
        self._vehicle_state: Optional[KinoDynamicState] = None

    @property
    def vehicle_state(self) -> Optional[KinoDynamicState]:
        return self._vehicle_state

    def _guarded(self, stage: str, timer: StageTimer, fn: Callable[..., Any], *args: Any) -> Any:
        """Run one collaborator step; an exception is logged and reported as None."""
        try:
            with timer.stage(stage):
                return fn(*args)
        except Exception:
            self.logger.exception("Stage %s raised; degrading this cycle", stage)
            return None

    def _emergency_stop(self, now: float, origin: TrajectoryPoint, reason: str, stats: CycleStats) -> CycleResult:
        trajectory = self.stop_generator.generate(origin)
        trajectory.timestamp = now
        trajectory.status = TrajectoryStatus.EMERGENCY_STOP
        self.logger.error("Emergency stop: %s (v0=%.2f m/s)", reason, origin.v)
        self.sink.publish(trajectory)
        return CycleResult(CycleState.NORMAL, trajectory=trajectory, history=None, stats=stats, message=reason)

    def run_once(self, now: float, history: Optional[Trajectory]) -> CycleResult:
        timer = StageTimer()
        snapshot = self.world.snapshot()

        if snapshot.ego_id is None:
            return CycleResult(CycleState.NO_EGO, history=history, message="ego id unknown")

        ego = snapshot.ego_object
        if ego is None:
            self.logger.critical("No ego vehicle %s in object map; skipping cycle", snapshot.ego_id)
            return CycleResult(CycleState.EGO_UNRESOLVED, history=history, message="ego not in snapshot")

        state = build_kinodynamic_state(snapshot.ego_status, ego)
        self._vehicle_state = state
        stats = CycleStats()

        with timer.stage("stitching"):
            prefix = self.stitcher.compute(
                now,
                self.cfg.cycle_period,
                self.cfg.preserve_history_trajectory_point_num,
                history,
                state,
            )
        stats.reinit = self.stitcher.last_reinit_reason is not None
        origin = prefix[-1]

        def finish(result: CycleResult) -> CycleResult:
            stats.stages_ms = dict(timer.stages_ms)
            stats.elapsed_ms = timer.elapsed_ms()
            return result

        def fetch_reference_lines() -> Optional[List[ReferenceLine]]:
            self.reference_provider.update_vehicle_state(state)
            return self.reference_provider.get_reference_lines()

        ref_lines = self._guarded("reference_lines", timer, fetch_reference_lines)
        if not ref_lines:
            return finish(self._emergency_stop(now, origin, "no reference lines", stats))
        stats.reference_line_count = len(ref_lines)
        self.logger.info("Reference line count: %d", len(ref_lines))

        obstacles = self._guarded("obstacles", timer, self.obstacle_selector.select, snapshot, origin, snapshot.ego_id)
        if obstacles is None:
            return finish(self._emergency_stop(now, origin, "obstacle selection failed", stats))
        stats.obstacle_count = len(obstacles)

        with timer.stage("targets"):
            targets = self.target_builder.build(ref_lines, origin)
        stats.target_count = len(targets)

        optimal = self._guarded("optimizer", timer, self.optimizer.process, obstacles, origin, targets)
        if optimal is None:
            return finish(self._emergency_stop(now, origin, "optimizer failed", stats))

        # The optimizer's first point is the origin, i.e. the prefix's last point.
        points = list(prefix[:-1]) + list(optimal.points)
        trajectory = Trajectory(
            points=points,
            timestamp=now,
            status=TrajectoryStatus.NORMAL if points else TrajectoryStatus.EMPTY,
        )
        self.sink.publish(trajectory)
        return finish(CycleResult(CycleState.NORMAL, trajectory=trajectory, history=trajectory, stats=stats))

    def launch(
        self,
        max_cycles: Optional[int] = None,
        stop_event: Optional[threading.Event] = None,
        rate: Optional[LoopRate] = None,
    ) -> Optional[Trajectory]:
        """Fixed-rate loop. Owns the history between cycles and returns the last one."""
        rate = rate or LoopRate(self.cfg.loop_rate)
        history: Optional[Trajectory] = None
        cycles = 0
        while max_cycles is None or cycles < max_cycles:
            if stop_event is not None and stop_event.is_set():
                break
            begin = time.perf_counter()
            result = self.run_once(self.clock(), history)
            history = result.history
            elapsed_ms = (time.perf_counter() - begin) * 1000.0
            self.health.check_latency(elapsed_ms)
            self.logger.info(
                "RunOnce %s elapsed %.2f ms rate %.1f Hz",
                result.state.value,
                elapsed_ms,
                self.fps_meter.tick(),
            )
            cycles += 1
            rate.sleep()
        return history

    def on_goal_pose(self, goal: Pose) -> bool:
        """Request a route from the current vehicle pose to goal; False if it is not honoured."""
        if self.world.snapshot().ego_id is None:
            return False
        state = self._vehicle_state
        if state is None:
            self.logger.warning("Goal received before the first vehicle state; ignored")
            return False

        start = Pose(x=state.x, y=state.y, z=state.z, yaw=state.theta)
        try:
            route = self.reference_provider.request_route(start, goal)
        except Exception:
            self.logger.exception("Route request to (%.1f, %.1f) raised", goal.x, goal.y)
            return False
        if not route:
            self.logger.warning("Route request to (%.1f, %.1f) failed", goal.x, goal.y)
            return False
        return self.reference_provider.update_route_response(route)

    def get_agent_potential_reference_lines(
        self,
        agent_state: KinoDynamicState,
        agent_id: int,
        lookahead: Optional[float] = None,
        lookback: Optional[float] = None,
    ) -> Optional[List[ReferenceLine]]:
        """Candidate lines for another agent; None when its route lookup fails."""
        lookahead = self.cfg.agent_lookahead if lookahead is None else lookahead
        lookback = self.cfg.agent_lookback if lookback is None else lookback
        try:
            lanes = self.reference_provider.agent_routes(agent_id)
        except Exception:
            self.logger.exception("Route lookup for agent %d raised", agent_id)
            return None
        if lanes is None:
            return None

        width = self.cfg.lane_half_width
        lines: List[ReferenceLine] = []
        for lane in lanes:
            if not lane:
                continue
            line = retrieve_reference_line(agent_state, lane, lookahead, lookback, width, width)
            if line is None:
                self.logger.debug("Skipping lane for agent %d: not retrievable", agent_id)
                continue
            lines.append(line)
        return lines
