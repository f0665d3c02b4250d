from dataclasses import dataclass, field, fields
from datetime import datetime
from enum import Enum
from typing import Iterable, List, Optional
import uuid

from task_scoring.utils.datetime_utils import utc_now


class TaskStatus(str, Enum):
    PENDING = "pending"
    IN_PROGRESS = "in-progress"
    COMPLETED = "completed"
    OVERDUE = "overdue"

    @classmethod
    def parse(cls, value: object) -> Optional["TaskStatus"]:
        if isinstance(value, cls):
            return value
        if not value:
            return None
        normalized = str(value).strip().lower().replace("_", "-")
        for status in cls:
            if status.value == normalized:
                return status
        return None


@dataclass
class Task:
    """タスクエンティティ（タスク管理側の所有データ、ここでは読み取り専用）"""
    id: str = field(default_factory=lambda: uuid.uuid4().hex)
    title: str = ""
    status: Optional[str] = TaskStatus.PENDING.value
    priority: str = "medium"
    difficulty: Optional[str] = None
    assigned_user_ids: List[str] = field(default_factory=list)
    start_date: Optional[datetime] = None
    due_date: Optional[datetime] = None
    completed_date: Optional[datetime] = None
    team_id: Optional[str] = None
    created_at: datetime = field(default_factory=utc_now)

    @property
    def assigned_users_count(self) -> int:
        return len(self.assigned_user_ids) or 1

    def has_status(self, status: TaskStatus) -> bool:
        return TaskStatus.parse(self.status) == status

    def is_completed(self) -> bool:
        return self.has_status(TaskStatus.COMPLETED)

    def is_overdue(self) -> bool:
        return self.has_status(TaskStatus.OVERDUE)

    def is_assigned_to(self, user_id: str) -> bool:
        return user_id in self.assigned_user_ids

    def project(self, field_names: Iterable[str]) -> "Task":
        """指定フィールドのみを残したコピーを返す（ストアのプロジェクション相当）"""
        keep = set(field_names) | {"id"}
        values = {f.name: getattr(self, f.name) for f in fields(self) if f.name in keep}
        if "assigned_user_ids" in values:
            values["assigned_user_ids"] = list(values["assigned_user_ids"])
        return Task(**values)


# 再計算で必要なフィールドのみを取得する
SCORING_TASK_FIELDS = (
    "id",
    "team_id",
    "status",
    "priority",
    "due_date",
    "created_at",
    "completed_date",
    "assigned_user_ids",
)
