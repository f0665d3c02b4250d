import copy
from typing import Dict, List, Optional, Sequence

from task_scoring.domain.entities.task import Task
from task_scoring.domain.repositories.task_repository import TaskRepositoryInterface


class InMemoryTaskRepository(TaskRepositoryInterface):
    """インメモリタスクリポジトリ実装"""

    def __init__(self):
        self._tasks: Dict[str, Task] = {}

    async def save(self, task: Task) -> Task:
        """タスクを保存"""
        self._tasks[task.id] = copy.deepcopy(task)
        return task

    async def find_by_assignee(
        self, user_id: str, fields: Optional[Sequence[str]] = None
    ) -> List[Task]:
        """担当者でタスクを検索"""
        tasks = [
            task
            for task in self._tasks.values()
            if task.is_assigned_to(user_id)
        ]
        if fields:
            return [task.project(fields) for task in tasks]
        return [copy.deepcopy(task) for task in tasks]

    async def find_by_team(self, team_id: str) -> List[Task]:
        """チームでタスクを検索"""
        return [
            copy.deepcopy(task)
            for task in self._tasks.values()
            if task.team_id == team_id
        ]
