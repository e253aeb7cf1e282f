from __future__ import annotations

import time
from contextlib import contextmanager
from dataclasses import dataclass, field
from typing import Callable, Dict, Iterator


@dataclass
class StageTimer:
    """Lightweight per-stage timing for a single planning cycle."""

    start_ts: float = field(default_factory=time.perf_counter)
    stages_ms: Dict[str, float] = field(default_factory=dict)

    def mark(self, stage_name: str, stage_start_ts: float) -> None:
        self.stages_ms[stage_name] = (time.perf_counter() - stage_start_ts) * 1000.0

    @contextmanager
    def stage(self, stage_name: str) -> Iterator[None]:
        t0 = time.perf_counter()
        try:
            yield
        finally:
            self.mark(stage_name, t0)

    def elapsed_ms(self) -> float:
        return (time.perf_counter() - self.start_ts) * 1000.0


@dataclass
class FPSMeter:
    """Exponential moving average cycle-rate estimator."""

    smoothing: float = 0.9
    fps: float = 0.0
    _last_ts: float = field(default_factory=time.perf_counter)

    def tick(self) -> float:
        now = time.perf_counter()
        dt = max(now - self._last_ts, 1e-9)
        inst_fps = 1.0 / dt
        self.fps = inst_fps if self.fps <= 0 else (self.smoothing * self.fps + (1 - self.smoothing) * inst_fps)
        self._last_ts = now
        return self.fps


class LoopRate:
    """
    Fixed-rate ticker. sleep() waits out whatever is left of the current
    period; an overrun is not made up, the next period starts late.
    """

    def __init__(
        self,
        rate_hz: float,
        clock: Callable[[], float] = time.monotonic,
        sleeper: Callable[[float], None] = time.sleep,
    ):
        if rate_hz <= 0:
            raise ValueError(f"rate_hz must be positive, got {rate_hz}")
        self.period = 1.0 / float(rate_hz)
        self._clock = clock
        self._sleep = sleeper
        self._next = self._clock() + self.period

    def sleep(self) -> float:
        """Returns the time slept in seconds (0 after an overrun)."""
        now = self._clock()
        remaining = self._next - now
        if remaining > 0:
            self._sleep(remaining)
            self._next += self.period
            return remaining
        self._next = now + self.period
        return 0.0
