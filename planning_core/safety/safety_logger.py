import json
from pathlib import Path


class SafetyLogger:
    def __init__(self, run_dir: Path):
        self.log_path = Path(run_dir) / "safety_events.jsonl"
        self.last_status = None
        self.log_path.touch(exist_ok=True)

    def log(self, cycle_idx: int, timestamp_s: float, status: str, message: str, details: dict) -> bool:
        """Append an event only when the published trajectory status changes."""
        if status == self.last_status:
            return False
        event = {
            "cycle": cycle_idx,
            "time_s": round(timestamp_s, 3),
            "status": status,
            "message": message,
            "details": details,
        }
        with open(self.log_path, "a", encoding="utf-8") as f:
            f.write(json.dumps(event) + "\n")
        self.last_status = status
        return True
