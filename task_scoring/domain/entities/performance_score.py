from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import List, Optional
import uuid

from task_scoring.utils.datetime_utils import ensure_timezone, utc_now

DEFAULT_SCORE = 100.0
MIN_SCORE = 0.0
MAX_SCORE = 100.0
HISTORY_LIMIT = 100

ACTION_RECALCULATION = "recalculation"
ACTION_TASK_COMPLETED = "task_completed"
ACTION_TASK_OVERDUE = "task_overdue"


def clamp_score(value: float) -> float:
    return max(MIN_SCORE, min(MAX_SCORE, value))


@dataclass(slots=True)
class ScoreHistoryEntry:
    date: datetime
    score_change: float
    reason: str
    team_id: Optional[str] = None
    action_type: Optional[str] = None


@dataclass(slots=True)
class DetailedMetrics:
    total_tasks: int = 0
    completed_tasks: int = 0
    overdue_tasks: int = 0
    in_progress_tasks: int = 0
    completion_rate: float = 0.0
    on_time_completions: int = 0
    average_completion_days: float = 0.0


@dataclass(slots=True)
class PerformanceScore:
    user_id: str
    team_id: Optional[str] = None
    id: str = field(default_factory=lambda: uuid.uuid4().hex)
    score: float = DEFAULT_SCORE
    completed_tasks_count: int = 0
    overdue_tasks_count: int = 0
    total_tasks_assigned: int = 0
    last_updated: datetime = field(default_factory=utc_now)
    metrics: Optional[DetailedMetrics] = None
    history: List[ScoreHistoryEntry] = field(default_factory=list)

    @classmethod
    def initial(
        cls,
        user_id: str,
        team_id: Optional[str] = None,
        created_at: Optional[datetime] = None,
    ) -> PerformanceScore:
        """初回アクセス時のスコア（満点スタート）"""
        return cls(
            user_id=user_id,
            team_id=team_id,
            score=DEFAULT_SCORE,
            last_updated=created_at or utc_now(),
        )

    @property
    def key(self) -> tuple[str, Optional[str]]:
        return self.user_id, self.team_id

    def record_history(self, entry: ScoreHistoryEntry) -> None:
        self.history.append(entry)

    def trim_history_by_age(self, limit: int = HISTORY_LIMIT) -> None:
        """上限超過時は日付の新しい順に並べ替えて上位のみ残す"""
        if len(self.history) <= limit:
            return
        self.history = sorted(
            self.history,
            key=lambda entry: ensure_timezone(entry.date),
            reverse=True,
        )[:limit]

    def trim_history_by_append_order(self, limit: int = HISTORY_LIMIT) -> None:
        """上限超過時は追加順で末尾（最新）のみ残す"""
        if len(self.history) <= limit:
            return
        self.history = self.history[-limit:]
