from __future__ import annotations

from datetime import datetime
from typing import Iterable, List, Optional, Sequence

from task_scoring.domain.entities.performance_score import DEFAULT_SCORE, DetailedMetrics, clamp_score
from task_scoring.domain.entities.task import Task, TaskStatus
from task_scoring.domain.exceptions import ValidationError
from task_scoring.utils.datetime_utils import ensure_timezone, normalize_reference_time, total_days

EARLY_COMPLETION_BONUS = 0.02
LATE_COMPLETION_PENALTY = 0.015
OVERDUE_PENALTY = 0.05
# 最大スコアは「全タスクを納期5日前に完了」とみなす
BEST_CASE_DAYS_EARLY = 5

PRIORITY_SCORES = {
    "high": 30,
    "medium": 20,
    "low": 10,
}


def base_priority(task: Task) -> int:
    priority = (task.priority or "").strip().lower()
    try:
        return PRIORITY_SCORES[priority]
    except KeyError:
        raise ValidationError(f"Unknown task priority: {task.priority!r} (task {task.id})") from None


def task_score(task: Task, reference_time: Optional[datetime] = None) -> float:
    """1タスクの符号付きポイント"""
    base = base_priority(task)
    assigned = task.assigned_users_count

    if task.is_completed():
        days_delta = 0.0
        if task.due_date and task.completed_date:
            days_delta = total_days(
                ensure_timezone(task.due_date) - ensure_timezone(task.completed_date)
            )

        # 遅延時は days_delta が負なので、-1 を掛けると係数は正になる
        if days_delta > 0:
            time_factor = days_delta * EARLY_COMPLETION_BONUS
        else:
            time_factor = days_delta * LATE_COMPLETION_PENALTY * -1

        return base * (1 + time_factor) / assigned

    if task.is_overdue():
        if not task.due_date:
            return 0.0
        now = normalize_reference_time(reference_time)
        overdue_days = total_days(now - ensure_timezone(task.due_date))
        if overdue_days <= 0:
            return 0.0
        return base * overdue_days * OVERDUE_PENALTY * -1 / assigned

    return 0.0


def max_possible_score(task: Task) -> float:
    return base_priority(task) * (1 + BEST_CASE_DAYS_EARLY * EARLY_COMPLETION_BONUS) / task.assigned_users_count


def aggregate(tasks: Iterable[Task], reference_time: Optional[datetime] = None) -> float:
    """タスク集合を 0〜100 のスコアに正規化"""
    task_list = list(tasks)
    if not task_list:
        return DEFAULT_SCORE

    now = normalize_reference_time(reference_time)
    total = 0.0
    max_possible = 0.0
    for task in task_list:
        total += task_score(task, now)
        max_possible += max_possible_score(task)

    if max_possible == 0:
        return DEFAULT_SCORE

    return clamp_score(total / max_possible * 100)


def filter_team_tasks(tasks: Iterable[Task], team_id: Optional[str]) -> List[Task]:
    return [task for task in tasks if task.team_id == team_id]


def aggregate_for_team(
    tasks: Iterable[Task],
    team_id: Optional[str],
    reference_time: Optional[datetime] = None,
) -> float:
    return aggregate(filter_team_tasks(tasks, team_id), reference_time)


def calculate_detailed_metrics(tasks: Sequence[Task]) -> DetailedMetrics:
    completed = [task for task in tasks if task.is_completed()]
    overdue = sum(1 for task in tasks if task.is_overdue())
    in_progress = sum(1 for task in tasks if task.has_status(TaskStatus.IN_PROGRESS))

    on_time = 0
    durations: List[float] = []
    for task in completed:
        if not task.completed_date:
            continue
        completed_at = ensure_timezone(task.completed_date)
        if task.due_date and completed_at <= ensure_timezone(task.due_date):
            on_time += 1
        durations.append(total_days(completed_at - ensure_timezone(task.created_at)))

    total = len(tasks)
    return DetailedMetrics(
        total_tasks=total,
        completed_tasks=len(completed),
        overdue_tasks=overdue,
        in_progress_tasks=in_progress,
        completion_rate=(len(completed) * 100.0 / total) if total else 0.0,
        on_time_completions=on_time,
        average_completion_days=(sum(durations) / len(durations)) if durations else 0.0,
    )
