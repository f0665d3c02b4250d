from typing import Any, Dict, Optional

from task_scoring.domain.entities.performance_score import (
    DEFAULT_SCORE,
    DetailedMetrics,
    PerformanceScore,
    ScoreHistoryEntry,
)
from task_scoring.domain.entities.team import MemberMetrics, Team, TeamMember
from task_scoring.utils.datetime_utils import format_datetime, parse_datetime, utc_now


def score_to_document(score: PerformanceScore) -> Dict[str, Any]:
    document: Dict[str, Any] = {
        "id": score.id,
        "userId": score.user_id,
        "teamId": score.team_id,
        "score": score.score,
        "completedTasksCount": score.completed_tasks_count,
        "overdueTasksCount": score.overdue_tasks_count,
        "totalTasksAssigned": score.total_tasks_assigned,
        "lastUpdated": format_datetime(score.last_updated),
        "history": [
            {
                "date": format_datetime(entry.date),
                "scoreChange": entry.score_change,
                "reason": entry.reason,
                "teamId": entry.team_id,
                "actionType": entry.action_type,
            }
            for entry in score.history
        ],
    }
    if score.metrics is not None:
        document["metrics"] = {
            "totalTasks": score.metrics.total_tasks,
            "completedTasks": score.metrics.completed_tasks,
            "overdueTasks": score.metrics.overdue_tasks,
            "inProgressTasks": score.metrics.in_progress_tasks,
            "completionRate": score.metrics.completion_rate,
            "onTimeCompletions": score.metrics.on_time_completions,
            "averageCompletionDays": score.metrics.average_completion_days,
        }
    return document


def score_from_document(document: Dict[str, Any]) -> Optional[PerformanceScore]:
    score_id = document.get("id")
    user_id = document.get("userId")
    if not score_id or not user_id:
        return None

    history = []
    for item in document.get("history") or []:
        date = parse_datetime(item.get("date"))
        if date is None:
            continue
        history.append(
            ScoreHistoryEntry(
                date=date,
                score_change=float(item.get("scoreChange") or 0.0),
                reason=item.get("reason") or "",
                team_id=item.get("teamId"),
                action_type=item.get("actionType"),
            )
        )

    metrics = None
    raw_metrics = document.get("metrics")
    if raw_metrics:
        metrics = DetailedMetrics(
            total_tasks=int(raw_metrics.get("totalTasks") or 0),
            completed_tasks=int(raw_metrics.get("completedTasks") or 0),
            overdue_tasks=int(raw_metrics.get("overdueTasks") or 0),
            in_progress_tasks=int(raw_metrics.get("inProgressTasks") or 0),
            completion_rate=float(raw_metrics.get("completionRate") or 0.0),
            on_time_completions=int(raw_metrics.get("onTimeCompletions") or 0),
            average_completion_days=float(raw_metrics.get("averageCompletionDays") or 0.0),
        )

    raw_score = document.get("score")
    return PerformanceScore(
        id=score_id,
        user_id=user_id,
        team_id=document.get("teamId"),
        score=float(raw_score) if raw_score is not None else DEFAULT_SCORE,
        completed_tasks_count=int(document.get("completedTasksCount") or 0),
        overdue_tasks_count=int(document.get("overdueTasksCount") or 0),
        total_tasks_assigned=int(document.get("totalTasksAssigned") or 0),
        last_updated=parse_datetime(document.get("lastUpdated")) or utc_now(),
        metrics=metrics,
        history=history,
    )


def team_to_document(team: Team) -> Dict[str, Any]:
    return {
        "id": team.id,
        "name": team.name,
        "createdAt": format_datetime(team.created_at),
        "updatedAt": format_datetime(team.updated_at) if team.updated_at else None,
        "members": [
            {
                "id": member.user_id,
                "role": member.role,
                "status": member.status,
                "performanceScore": member.performance_score,
                "completedTasksCount": member.completed_tasks_count,
                "metrics": {
                    "performanceScore": member.metrics.performance_score,
                    "completedTasks": member.metrics.completed_tasks,
                    "overdueTasks": member.metrics.overdue_tasks,
                    "totalTasks": member.metrics.total_tasks,
                },
            }
            for member in team.members
        ],
    }


def team_from_document(document: Dict[str, Any]) -> Optional[Team]:
    team_id = document.get("id")
    if not team_id:
        return None

    members = []
    for item in document.get("members") or []:
        user_id = item.get("id")
        if not user_id:
            continue
        raw_metrics = item.get("metrics") or {}
        members.append(
            TeamMember(
                user_id=user_id,
                role=item.get("role") or "member",
                status=item.get("status") or "active",
                performance_score=float(item.get("performanceScore") or 0.0),
                completed_tasks_count=int(item.get("completedTasksCount") or 0),
                metrics=MemberMetrics(
                    performance_score=float(raw_metrics.get("performanceScore") or 0.0),
                    completed_tasks=int(raw_metrics.get("completedTasks") or 0),
                    overdue_tasks=int(raw_metrics.get("overdueTasks") or 0),
                    total_tasks=int(raw_metrics.get("totalTasks") or 0),
                ),
            )
        )

    return Team(
        id=team_id,
        name=document.get("name") or "",
        members=members,
        created_at=parse_datetime(document.get("createdAt")) or utc_now(),
        updated_at=parse_datetime(document.get("updatedAt")),
    )
