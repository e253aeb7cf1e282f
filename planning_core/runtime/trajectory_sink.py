from collections import deque
from typing import Callable, Deque, List, Optional

from planning_core.utils.logger import get_logger
from planning_core.utils.types import Trajectory


class TrajectorySink:
    """
    Publish endpoint for the control stack. Keeps the last few published
    trajectories and forwards each one to the registered subscribers.
    A failing subscriber is logged and does not stop delivery to the rest.
    """

    def __init__(self, max_buffer: int = 4):
        self.buffer: Deque[Trajectory] = deque(maxlen=max_buffer)
        self._subscribers: List[Callable[[Trajectory], None]] = []
        self.published_count = 0
        self.subscriber_errors = 0
        self.logger = get_logger(__name__)

    def subscribe(self, callback: Callable[[Trajectory], None]) -> None:
        self._subscribers.append(callback)

    def publish(self, trajectory: Trajectory) -> None:
        self.buffer.append(trajectory)
        self.published_count += 1
        for callback in self._subscribers:
            try:
                callback(trajectory)
            except Exception:
                self.subscriber_errors += 1
                self.logger.exception("Trajectory subscriber %r raised", callback)

    def latest(self) -> Optional[Trajectory]:
        return self.buffer[-1] if self.buffer else None
