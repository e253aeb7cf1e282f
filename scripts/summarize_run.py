#!/usr/bin/env python3
import json
import sys
from pathlib import Path
from statistics import mean, median


def safe_mean(xs):
    xs = [x for x in xs if x is not None]
    return mean(xs) if xs else None


def pct(n, d):
    return (100.0 * n / d) if d else 0.0


STAGES = ["stitching", "reference_lines", "obstacles", "targets", "optimizer"]
STATUSES = ["NORMAL", "EMPTY", "EMERGENCY_STOP", "NONE"]


def main():
    if len(sys.argv) < 2:
        print("Usage: python scripts/summarize_run.py results/run_YYYYMMDD_HHMMSS")
        sys.exit(1)

    run_dir = Path(sys.argv[1])
    metrics_path = run_dir / "metrics.json"
    if not metrics_path.exists():
        raise FileNotFoundError(f"Missing: {metrics_path}")

    m = json.loads(metrics_path.read_text())
    cycles = m.get("cycles", [])
    n = len(cycles)
    if n == 0:
        print("No cycles found in metrics.json")
        return

    elapsed = [c.get("elapsed_ms") for c in cycles if c.get("elapsed_ms") is not None]

    status_counts = {k: 0 for k in STATUSES}
    for c in cycles:
        st = c.get("status") or "NONE"
        status_counts[st] = status_counts.get(st, 0) + 1

    reinits = sum(1 for c in cycles if c.get("reinit"))
    obstacles = [c.get("obstacles") for c in cycles]

    print("\n============== PLANNING RUN SUMMARY ==============")
    print(f"Run dir: {run_dir}")
    print(f"Cycles: {n}")
    if elapsed:
        print(f"Cycle ms  avg={mean(elapsed):.2f}  med={median(elapsed):.2f}  max={max(elapsed):.2f}")
    else:
        print("Cycle ms: (missing)")

    print("\nStage latency (ms) (avg):")
    for stage in STAGES:
        sm = safe_mean([(c.get("stages_ms") or {}).get(stage) for c in cycles])
        print(f"  {stage:16s} {sm:.3f}" if sm is not None else f"  {stage:16s} (missing)")

    print("\nTrajectory status distribution:")
    for k in STATUSES:
        cnt = status_counts.get(k, 0)
        print(f"  {k:15s}: {cnt:4d} ({pct(cnt, n):.1f}%)")

    print("\nStitching:")
    print(f"  reinit cycles: {reinits}/{n} ({pct(reinits, n):.1f}%)")

    sm = safe_mean(obstacles)
    print(f"\nObstacles per cycle (avg): {sm:.2f}" if sm is not None else "\nObstacles per cycle: (missing)")
    print("==================================================\n")


if __name__ == "__main__":
    main()
