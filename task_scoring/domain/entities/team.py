from dataclasses import dataclass, field
from datetime import datetime
from typing import List, Optional

from task_scoring.utils.datetime_utils import utc_now


@dataclass(slots=True)
class MemberMetrics:
    """チームドキュメントに埋め込まれる非正規化メトリクス"""
    performance_score: float = 0.0
    completed_tasks: int = 0
    overdue_tasks: int = 0
    total_tasks: int = 0


@dataclass
class TeamMember:
    user_id: str
    role: str = "member"
    status: str = "active"
    # 旧来の読み取り経路向けのミラー項目
    performance_score: float = 0.0
    completed_tasks_count: int = 0
    metrics: MemberMetrics = field(default_factory=MemberMetrics)

    def apply_metrics(self, metrics: MemberMetrics) -> None:
        self.metrics = MemberMetrics(
            performance_score=metrics.performance_score,
            completed_tasks=metrics.completed_tasks,
            overdue_tasks=metrics.overdue_tasks,
            total_tasks=metrics.total_tasks,
        )
        self.performance_score = metrics.performance_score
        self.completed_tasks_count = metrics.completed_tasks


@dataclass
class Team:
    """チームエンティティ"""
    id: str
    name: str = ""
    members: List[TeamMember] = field(default_factory=list)
    created_at: datetime = field(default_factory=utc_now)
    updated_at: Optional[datetime] = None

    def find_member(self, user_id: str) -> Optional[TeamMember]:
        for member in self.members:
            if member.user_id == user_id:
                return member
        return None

    def has_member(self, user_id: str) -> bool:
        return self.find_member(user_id) is not None
