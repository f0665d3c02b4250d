from abc import ABC, abstractmethod
from typing import List, Optional, Sequence

from task_scoring.domain.entities.task import Task


class TaskRepositoryInterface(ABC):
    """タスク参照用リポジトリのインターフェース（読み取り専用）"""

    @abstractmethod
    async def find_by_assignee(
        self, user_id: str, fields: Optional[Sequence[str]] = None
    ) -> List[Task]:
        """担当者でタスクを検索（fields 指定時はそのフィールドのみ）"""
        pass

    @abstractmethod
    async def find_by_team(self, team_id: str) -> List[Task]:
        """チームでタスクを検索"""
        pass
