import threading
from collections import defaultdict
from typing import Dict


class ScoringCounters:
    """Operation counters owned by the dependency container and injected into services."""

    RECOMPUTES = "recomputes"
    TEAMS_UPDATED = "teams_updated"
    TEAMS_SKIPPED = "teams_skipped"
    TEAM_FAILURES = "team_failures"
    OUTCOMES_RECORDED = "outcomes_recorded"

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._counts: Dict[str, int] = defaultdict(int)

    def increment(self, name: str, amount: int = 1) -> None:
        with self._lock:
            self._counts[name] += amount

    def get(self, name: str) -> int:
        with self._lock:
            return self._counts.get(name, 0)

    def snapshot(self) -> Dict[str, int]:
        with self._lock:
            return dict(self._counts)

    def reset(self) -> None:
        with self._lock:
            self._counts.clear()
