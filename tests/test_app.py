import json
from pathlib import Path

from planning_core.app import main

ROOT = Path(__file__).resolve().parents[1]


def test_scenario_replay_writes_metrics_and_safety_log(tmp_path):
    run_dir = main(
        [
            "--config",
            str(ROOT / "configs" / "planning.yaml"),
            "--scenario",
            str(ROOT / "scenarios" / "straight_road.yaml"),
            "--output-dir",
            str(tmp_path),
        ]
    )

    metrics = json.loads((run_dir / "metrics.json").read_text())
    cycles = metrics["cycles"]
    assert len(cycles) == 10
    assert all(c["state"] == "NORMAL" for c in cycles)
    assert all(c["status"] == "NORMAL" for c in cycles)
    assert cycles[0]["reinit"] is True
    assert metrics["config"]["planner_type"] == "reference_follower"

    events = (run_dir / "safety_events.jsonl").read_text().splitlines()
    assert len(events) == 1
