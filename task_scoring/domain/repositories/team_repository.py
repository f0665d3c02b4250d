from abc import ABC, abstractmethod
from typing import List, Optional

from task_scoring.domain.entities.team import MemberMetrics, Team, TeamMember


class TeamRepositoryInterface(ABC):
    """チームリポジトリのインターフェース"""

    @abstractmethod
    async def find_by_id(self, team_id: str) -> Optional[Team]:
        """IDでチームを取得"""
        pass

    @abstractmethod
    async def find_by_member(self, user_id: str) -> List[Team]:
        """ユーザーが所属するチームを取得"""
        pass

    @abstractmethod
    async def save(self, team: Team) -> Team:
        """チームを保存"""
        pass

    @abstractmethod
    async def update_member_metrics(
        self, team_id: str, user_id: str, metrics: MemberMetrics
    ) -> bool:
        """該当メンバーのメトリクスのみ更新。一致するメンバーがいなければ False"""
        pass

    @abstractmethod
    async def update_member_status(self, member_id: str, status: str) -> Optional[TeamMember]:
        """メンバーの状態を更新"""
        pass
