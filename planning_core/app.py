from __future__ import annotations

import argparse
import json
from dataclasses import asdict
from datetime import datetime
from pathlib import Path
from typing import Any, Dict, Optional

from rich.console import Console
from tqdm import tqdm

from planning_core.inputs.scenario_input import ScenarioInput
from planning_core.inputs.waypoint_provider import WaypointReferenceProvider
from planning_core.optimizer.factory import make_optimizer
from planning_core.runtime.orchestrator import Orchestrator
from planning_core.runtime.trajectory_sink import TrajectorySink
from planning_core.safety.safety_logger import SafetyLogger
from planning_core.utils.config import PlanningConfig, load_yaml
from planning_core.utils.logger import setup_logger
from planning_core.utils.types import Trajectory
from planning_core.world.world_model import WorldState


def make_run_dir(base_dir: str | Path) -> Path:
    ts = datetime.now().strftime("%Y%m%d_%H%M%S")
    run_dir = Path(base_dir) / f"run_{ts}"
    run_dir.mkdir(parents=True, exist_ok=True)
    return run_dir


def main(argv: Optional[list] = None) -> Path:
    parser = argparse.ArgumentParser(description="planning_core - motion planning cycle replay")
    parser.add_argument("--config", default="configs/planning.yaml", help="Path to YAML config")
    parser.add_argument("--scenario", required=True, help="Path to scenario YAML")
    parser.add_argument("--output-dir", default=None, help="Overrides runtime.output_dir")
    args = parser.parse_args(argv)

    cfg = PlanningConfig.from_dict(load_yaml(args.config))

    run_dir = make_run_dir(args.output_dir or cfg.output_dir)
    logger = setup_logger(log_dir=run_dir, level=cfg.log_level)

    console = Console()
    console.print(f"[bold]planning_core[/bold] run dir: {run_dir}")

    scenario_in = ScenarioInput(args.scenario)
    scenario = scenario_in.scenario
    logger.info("Scenario: %s", args.scenario)
    safety_logger = SafetyLogger(run_dir)

    # Fails before the loop starts on an unknown optimizer.
    optimizer = make_optimizer(cfg)

    world = WorldState()
    if scenario.ego_info is not None:
        world.update_ego_info(scenario.ego_info)
    provider = WaypointReferenceProvider(
        lanes=scenario.lanes,
        lookahead=cfg.reference_lookahead,
        lookback=cfg.reference_lookback,
        lane_half_width=cfg.lane_half_width,
        agent_routes=scenario.agent_routes,
        router=(lambda start, goal: scenario.route) if scenario.route else None,
    )
    sink = TrajectorySink()
    orchestrator = Orchestrator(cfg, world, provider, optimizer, sink)

    metrics: Dict[str, Any] = {
        "scenario": {"path": args.scenario, "meta": scenario_in.meta.__dict__},
        "config": asdict(cfg),
        "cycles": [],
    }

    history: Optional[Trajectory] = None
    for cycle_idx, frame in tqdm(scenario_in.frames(), total=scenario_in.meta.frame_count, desc="Planning"):
        frame.apply(world)
        if frame.goal is not None:
            honoured = orchestrator.on_goal_pose(frame.goal)
            logger.info("Goal (%.1f, %.1f) honoured=%s", frame.goal.x, frame.goal.y, honoured)

        result = orchestrator.run_once(frame.timestamp, history)
        history = result.history
        orchestrator.health.check_latency(result.stats.elapsed_ms)

        status = result.trajectory.status.value if result.trajectory is not None else None
        metrics["cycles"].append(
            {
                "cycle": cycle_idx,
                "time_s": frame.timestamp,
                "state": result.state.value,
                "status": status,
                "points": len(result.trajectory) if result.trajectory is not None else 0,
                "reinit": result.stats.reinit,
                "reference_lines": result.stats.reference_line_count,
                "obstacles": result.stats.obstacle_count,
                "targets": result.stats.target_count,
                "elapsed_ms": result.stats.elapsed_ms,
                "stages_ms": result.stats.stages_ms,
                "message": result.message,
            }
        )
        if status is not None:
            safety_logger.log(
                cycle_idx=cycle_idx,
                timestamp_s=frame.timestamp,
                status=status,
                message=result.message or "planning OK",
                details={"state": result.state.value, "reinit": result.stats.reinit},
            )
        if result.trajectory is not None and cycle_idx % 10 == 0:
            logger.info("[PLAN] cycle=%d %s", cycle_idx, result.trajectory.summary())

    scenario_in.stop()

    metrics_path = run_dir / "metrics.json"
    metrics_path.write_text(json.dumps(metrics, indent=2, default=str), encoding="utf-8")
    logger.info("Saved metrics: %s", metrics_path)
    logger.info("Published %d trajectories. Done.", sink.published_count)
    return run_dir


if __name__ == "__main__":
    main()
