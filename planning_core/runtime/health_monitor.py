from planning_core.utils.logger import get_logger


class HealthMonitor:
    def __init__(self, watchdog_ms: float):
        self.watchdog_ms = watchdog_ms
        self.overruns = 0
        self.logger = get_logger(__name__)

    def check_latency(self, latency_ms: float) -> bool:
        if self.watchdog_ms and latency_ms > self.watchdog_ms:
            self.overruns += 1
            self.logger.warning(
                "Cycle budget exceeded: %.2f ms > %.2f ms (overruns=%d)",
                latency_ms,
                self.watchdog_ms,
                self.overruns,
            )
            return False
        return True
