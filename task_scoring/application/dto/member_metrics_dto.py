from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, Field

from task_scoring.domain.entities.performance_score import PerformanceScore
from task_scoring.domain.entities.team import MemberMetrics


class MemberMetricsUpdateDto(BaseModel):
    """チームメンバーのメトリクス更新DTO"""
    team_id: Optional[str] = Field(None, description="対象チームID")
    performance_score: float = Field(..., ge=0, le=100, description="パフォーマンススコア（0〜100）")
    completed_tasks: int = Field(0, ge=0, description="完了タスク数")
    overdue_tasks: int = Field(0, ge=0, description="期限超過タスク数")
    total_tasks: int = Field(0, ge=0, description="担当タスク数")

    @classmethod
    def from_score(cls, score: PerformanceScore) -> "MemberMetricsUpdateDto":
        return cls(
            team_id=score.team_id,
            performance_score=score.score,
            completed_tasks=score.completed_tasks_count,
            overdue_tasks=score.overdue_tasks_count,
            total_tasks=score.total_tasks_assigned,
        )

    def to_entity(self) -> MemberMetrics:
        return MemberMetrics(
            performance_score=self.performance_score,
            completed_tasks=self.completed_tasks,
            overdue_tasks=self.overdue_tasks,
            total_tasks=self.total_tasks,
        )


class ScoreHistoryEntryDto(BaseModel):
    date: datetime
    score_change: float
    reason: str
    team_id: Optional[str] = None
    action_type: Optional[str] = None


class PerformanceScoreResponseDto(BaseModel):
    """パフォーマンススコアのレスポンスDTO"""
    id: str
    user_id: str
    team_id: Optional[str] = None
    score: float
    completed_tasks_count: int
    overdue_tasks_count: int
    total_tasks_assigned: int
    last_updated: datetime
    history: List[ScoreHistoryEntryDto] = Field(default_factory=list)

    @classmethod
    def from_entity(cls, score: PerformanceScore) -> "PerformanceScoreResponseDto":
        return cls(
            id=score.id,
            user_id=score.user_id,
            team_id=score.team_id,
            score=round(score.score, 2),
            completed_tasks_count=score.completed_tasks_count,
            overdue_tasks_count=score.overdue_tasks_count,
            total_tasks_assigned=score.total_tasks_assigned,
            last_updated=score.last_updated,
            history=[
                ScoreHistoryEntryDto(
                    date=entry.date,
                    score_change=entry.score_change,
                    reason=entry.reason,
                    team_id=entry.team_id,
                    action_type=entry.action_type,
                )
                for entry in score.history
            ],
        )
