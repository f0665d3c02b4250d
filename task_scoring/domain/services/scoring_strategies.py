"""Two scoring strategies behind one interface.

BatchScoringStrategy rebuilds a score from a full task list (recompute path).
IncrementalScoringStrategy applies one delta per task outcome (event path).
They compute the same conceptual score with different formulas and do not
agree with each other.
"""
from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from datetime import datetime
from typing import Optional, Sequence

from task_scoring.domain.entities.performance_score import (
    ACTION_RECALCULATION,
    ACTION_TASK_COMPLETED,
    ACTION_TASK_OVERDUE,
    DetailedMetrics,
    PerformanceScore,
    ScoreHistoryEntry,
    clamp_score,
)
from task_scoring.domain.entities.task import Task
from task_scoring.domain.services.performance_calculator import aggregate, calculate_detailed_metrics
from task_scoring.utils.datetime_utils import ensure_timezone, normalize_reference_time, total_days, total_hours

RECALCULATION_REASON = "Performance recalculated based on task updates"

DIFFICULTY_POINTS = {
    "Low": 5.0,
    "Medium": 10.0,
    "High": 15.0,
}
DEFAULT_DIFFICULTY_POINTS = 5.0
MAX_LATE_PENALTY_FACTOR = 0.5
LATE_PENALTY_PER_DAY = 0.1
STREAK_BONUS_PER_TASK = 0.5
MAX_STREAK_BONUS = 20.0
OVERDUE_POINTS_PER_DAY = 2.0
MAX_OVERDUE_PENALTY = 10.0


@dataclass(slots=True)
class ScoringEvent:
    tasks: Sequence[Task]
    team_id: Optional[str] = None
    is_completed: Optional[bool] = None


@dataclass(slots=True)
class ScoreChange:
    new_score: float
    delta: float
    reason: str
    action_type: str
    team_id: Optional[str] = None
    completed_tasks_count: Optional[int] = None
    overdue_tasks_count: Optional[int] = None
    total_tasks_assigned: Optional[int] = None
    metrics: Optional[DetailedMetrics] = field(default=None)

    def apply_to(self, record: PerformanceScore, applied_at: datetime) -> ScoreHistoryEntry:
        """レコードへ反映し、追加した履歴エントリを返す（履歴の切り詰めは呼び出し側）"""
        record.score = self.new_score
        if self.completed_tasks_count is not None:
            record.completed_tasks_count = self.completed_tasks_count
        if self.overdue_tasks_count is not None:
            record.overdue_tasks_count = self.overdue_tasks_count
        if self.total_tasks_assigned is not None:
            record.total_tasks_assigned = self.total_tasks_assigned
        if self.metrics is not None:
            record.metrics = self.metrics
        record.last_updated = applied_at

        entry = ScoreHistoryEntry(
            date=applied_at,
            score_change=self.delta,
            reason=self.reason,
            team_id=self.team_id,
            action_type=self.action_type,
        )
        record.record_history(entry)
        return entry


class ScoringStrategy(ABC):
    """スコア計算戦略のインターフェース"""

    name: str = ""

    @abstractmethod
    def evaluate(
        self,
        record: PerformanceScore,
        event: ScoringEvent,
        reference_time: Optional[datetime] = None,
    ) -> ScoreChange:
        """現在のレコードとイベントから変更内容を算出（レコードは変更しない）"""


class BatchScoringStrategy(ScoringStrategy):
    name = "batch"

    def evaluate(
        self,
        record: PerformanceScore,
        event: ScoringEvent,
        reference_time: Optional[datetime] = None,
    ) -> ScoreChange:
        now = normalize_reference_time(reference_time)
        tasks = list(event.tasks)
        metrics = calculate_detailed_metrics(tasks)
        new_score = aggregate(tasks, now)

        return ScoreChange(
            new_score=new_score,
            delta=new_score - record.score,
            reason=RECALCULATION_REASON,
            action_type=ACTION_RECALCULATION,
            team_id=event.team_id,
            completed_tasks_count=metrics.completed_tasks,
            overdue_tasks_count=metrics.overdue_tasks,
            total_tasks_assigned=metrics.total_tasks,
            metrics=metrics,
        )


class IncrementalScoringStrategy(ScoringStrategy):
    name = "incremental"

    def evaluate(
        self,
        record: PerformanceScore,
        event: ScoringEvent,
        reference_time: Optional[datetime] = None,
    ) -> ScoreChange:
        if len(event.tasks) != 1:
            raise ValueError("IncrementalScoringStrategy expects exactly one task per event")

        now = normalize_reference_time(reference_time)
        task = event.tasks[0]
        completed_count: Optional[int] = None

        if event.is_completed:
            delta, reason = self._completion_points(task, now)
            delta += min(record.completed_tasks_count * STREAK_BONUS_PER_TASK, MAX_STREAK_BONUS)
            completed_count = record.completed_tasks_count + 1
            action_type = ACTION_TASK_COMPLETED
        else:
            days_overdue = total_days(now - ensure_timezone(task.due_date)) if task.due_date else 0.0
            delta = -min(MAX_OVERDUE_PENALTY, days_overdue * OVERDUE_POINTS_PER_DAY)
            reason = f"Task overdue - Penalty points: {delta:.2f}"
            action_type = ACTION_TASK_OVERDUE

        return ScoreChange(
            new_score=clamp_score(record.score + delta),
            delta=delta,
            reason=reason,
            action_type=action_type,
            team_id=event.team_id,
            completed_tasks_count=completed_count,
        )

    @staticmethod
    def difficulty_points(task: Task) -> float:
        return DIFFICULTY_POINTS.get(task.difficulty or "", DEFAULT_DIFFICULTY_POINTS)

    def _completion_points(self, task: Task, now: datetime) -> tuple[float, str]:
        base_points = self.difficulty_points(task)

        efficiency = 1.0
        if task.start_date and task.due_date:
            start = ensure_timezone(task.start_date)
            expected_hours = total_hours(ensure_timezone(task.due_date) - start)
            if expected_hours > 0:
                efficiency = total_hours(now - start) / expected_hours

        if efficiency < 1:
            points = base_points * (2 - efficiency)
            return points, f"Task completed early - Bonus points: {points:.2f}"

        if task.due_date and now > ensure_timezone(task.due_date):
            days_late = total_days(now - ensure_timezone(task.due_date))
            penalty_factor = min(MAX_LATE_PENALTY_FACTOR, days_late * LATE_PENALTY_PER_DAY)
            points = base_points * (1 - penalty_factor)
            return points, f"Task completed late - Reduced points: {points:.2f}"

        return base_points, f"Task completed on time - Base points: {base_points:.2f}"
