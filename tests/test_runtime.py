import pytest

from planning_core.runtime.health_monitor import HealthMonitor
from planning_core.runtime.trajectory_sink import TrajectorySink
from planning_core.utils.timing import LoopRate, StageTimer
from planning_core.utils.types import Trajectory


class FakeClock:
    def __init__(self):
        self.now = 0.0
        self.slept = []

    def __call__(self):
        return self.now

    def sleep(self, seconds):
        self.slept.append(seconds)
        self.now += seconds


def test_loop_rate_sleeps_out_the_period():
    clock = FakeClock()
    rate = LoopRate(10.0, clock=clock, sleeper=clock.sleep)
    clock.now = 0.03
    assert rate.sleep() == pytest.approx(0.07)
    clock.now = 0.25
    assert rate.sleep() == 0.0
    assert clock.slept == [pytest.approx(0.07)]


def test_loop_rate_rejects_non_positive_rate():
    with pytest.raises(ValueError):
        LoopRate(0.0)


def test_stage_timer_records_stages():
    timer = StageTimer()
    with timer.stage("stitching"):
        pass
    assert "stitching" in timer.stages_ms
    assert timer.elapsed_ms() >= timer.stages_ms["stitching"]


def test_health_monitor_counts_overruns():
    health = HealthMonitor(watchdog_ms=100.0)
    assert health.check_latency(20.0)
    assert not health.check_latency(150.0)
    assert health.overruns == 1


def test_sink_keeps_latest_and_notifies_subscribers():
    sink = TrajectorySink(max_buffer=2)
    seen = []
    sink.subscribe(seen.append)
    trajectories = [Trajectory(timestamp=float(i)) for i in range(3)]
    for traj in trajectories:
        sink.publish(traj)

    assert sink.latest() is trajectories[-1]
    assert len(sink.buffer) == 2
    assert sink.published_count == 3
    assert seen == trajectories


def test_sink_logs_subscriber_failures_and_keeps_delivering():
    sink = TrajectorySink()
    seen = []

    def broken(trajectory):
        raise ValueError("bad consumer")

    sink.subscribe(broken)
    sink.subscribe(seen.append)
    traj = Trajectory()
    sink.publish(traj)

    assert seen == [traj]
    assert sink.subscriber_errors == 1
    assert sink.latest() is traj
