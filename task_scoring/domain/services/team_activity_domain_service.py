from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import List, Optional, Sequence

from task_scoring.domain.entities.task import Task
from task_scoring.domain.entities.team import Team
from task_scoring.domain.services.performance_calculator import calculate_detailed_metrics
from task_scoring.utils.datetime_utils import utc_now

COMPLETION_WEIGHT = 0.4
ON_TIME_WEIGHT = 0.3
OVERDUE_WEIGHT = 0.2
DURATION_WEIGHT = 0.1
TARGET_DURATION_DAYS = 5
TOP_CONTRIBUTORS_LIMIT = 5


@dataclass(slots=True)
class ContributorSummary:
    user_id: str
    role: str
    tasks_completed: int
    performance_score: float


@dataclass(slots=True)
class TeamActivitySummary:
    team_id: str
    total_tasks: int
    completed_tasks_count: int
    completion_rate: float
    average_task_duration: float
    performance_score: float
    top_contributors: List[ContributorSummary] = field(default_factory=list)
    calculated_at: datetime = field(default_factory=utc_now)


def activity_score(
    total_tasks: int,
    completed_tasks: int,
    overdue_tasks: int,
    on_time_completions: int,
    average_duration: float,
) -> float:
    """完了率・期限内完了率・超過率・平均所要日数の加重合計（0〜100）"""
    if total_tasks == 0:
        return 0.0

    completion_score = completed_tasks * 100.0 / total_tasks
    on_time_score = on_time_completions * 100.0 / completed_tasks if completed_tasks > 0 else 0.0
    overdue_score = 100 - overdue_tasks * 100.0 / total_tasks
    if average_duration <= TARGET_DURATION_DAYS:
        duration_score = 100.0
    else:
        duration_score = max(0.0, 100 - (average_duration - TARGET_DURATION_DAYS) * 10)

    final_score = (
        completion_score * COMPLETION_WEIGHT
        + on_time_score * ON_TIME_WEIGHT
        + overdue_score * OVERDUE_WEIGHT
        + duration_score * DURATION_WEIGHT
    )
    return min(100.0, max(0.0, final_score))


class TeamActivityDomainService:
    """チーム単位のアクティビティ集計ロジック"""

    def build_team_summary(
        self,
        team: Team,
        team_tasks: Sequence[Task],
        reference_time: Optional[datetime] = None,
    ) -> TeamActivitySummary:
        metrics = calculate_detailed_metrics(team_tasks)
        score = activity_score(
            metrics.total_tasks,
            metrics.completed_tasks,
            metrics.overdue_tasks,
            metrics.on_time_completions,
            metrics.average_completion_days,
        )

        return TeamActivitySummary(
            team_id=team.id,
            total_tasks=metrics.total_tasks,
            completed_tasks_count=metrics.completed_tasks,
            completion_rate=round(metrics.completion_rate, 1),
            average_task_duration=round(metrics.average_completion_days, 1),
            performance_score=round(score, 1),
            top_contributors=self.rank_contributors(team, team_tasks),
            calculated_at=reference_time or utc_now(),
        )

    def rank_contributors(
        self,
        team: Team,
        team_tasks: Sequence[Task],
        limit: int = TOP_CONTRIBUTORS_LIMIT,
    ) -> List[ContributorSummary]:
        contributors: List[ContributorSummary] = []
        for member in team.members:
            member_tasks = [task for task in team_tasks if task.is_assigned_to(member.user_id)]
            metrics = calculate_detailed_metrics(member_tasks)
            contributors.append(
                ContributorSummary(
                    user_id=member.user_id,
                    role=member.role,
                    tasks_completed=metrics.completed_tasks,
                    performance_score=activity_score(
                        metrics.total_tasks,
                        metrics.completed_tasks,
                        metrics.overdue_tasks,
                        metrics.on_time_completions,
                        metrics.average_completion_days,
                    ),
                )
            )

        contributors.sort(key=lambda c: c.performance_score, reverse=True)
        return contributors[:limit]
