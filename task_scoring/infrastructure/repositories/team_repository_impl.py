import copy
from typing import Dict, List, Optional

from task_scoring.domain.entities.team import MemberMetrics, Team, TeamMember
from task_scoring.domain.repositories.team_repository import TeamRepositoryInterface
from task_scoring.utils.datetime_utils import utc_now


class InMemoryTeamRepository(TeamRepositoryInterface):
    """インメモリチームリポジトリ実装"""

    def __init__(self):
        self._teams: Dict[str, Team] = {}

    async def find_by_id(self, team_id: str) -> Optional[Team]:
        """IDでチームを取得"""
        team = self._teams.get(team_id)
        return copy.deepcopy(team) if team else None

    async def find_by_member(self, user_id: str) -> List[Team]:
        """ユーザーが所属するチームを取得"""
        return [
            copy.deepcopy(team)
            for team in self._teams.values()
            if team.has_member(user_id)
        ]

    async def save(self, team: Team) -> Team:
        """チームを保存"""
        self._teams[team.id] = copy.deepcopy(team)
        return team

    async def update_member_metrics(
        self, team_id: str, user_id: str, metrics: MemberMetrics
    ) -> bool:
        """該当メンバーのメトリクスとミラー項目を更新"""
        team = self._teams.get(team_id)
        if not team:
            return False
        member = team.find_member(user_id)
        if not member:
            return False
        member.apply_metrics(metrics)
        team.updated_at = utc_now()
        return True

    async def update_member_status(self, member_id: str, status: str) -> Optional[TeamMember]:
        """メンバーが最初に見つかったチームで状態を更新"""
        for team in self._teams.values():
            member = team.find_member(member_id)
            if member:
                member.status = status
                team.updated_at = utc_now()
                return copy.deepcopy(member)
        return None
