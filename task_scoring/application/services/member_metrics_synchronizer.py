import logging
from typing import Optional

from task_scoring.application.dto.member_metrics_dto import MemberMetricsUpdateDto
from task_scoring.application.services.cache_coordinator import CacheCoordinator
from task_scoring.domain.entities.team import MemberMetrics
from task_scoring.domain.exceptions import require_identifier
from task_scoring.domain.repositories.team_repository import TeamRepositoryInterface

logger = logging.getLogger(__name__)


class MemberMetricsSynchronizer:
    """スコアをチームドキュメント内のメンバー情報へ反映する"""

    def __init__(
        self,
        team_repository: TeamRepositoryInterface,
        cache: Optional[CacheCoordinator] = None,
    ) -> None:
        self.team_repository = team_repository
        self.cache = cache

    async def sync(self, team_id: str, user_id: str, metrics: MemberMetrics) -> bool:
        """一致するメンバーがいなければ何もせず False を返す"""
        team_id = require_identifier(team_id, "team_id")
        user_id = require_identifier(user_id, "user_id")

        updated = await self.team_repository.update_member_metrics(team_id, user_id, metrics)
        if not updated:
            logger.warning(f"⚠️ No member entry to sync: team={team_id} user={user_id}")
            return False

        if self.cache is not None:
            self.cache.invalidate_team(team_id)
            self.cache.invalidate_user(user_id)

        logger.info(
            f"🔁 Member metrics synced: team={team_id} user={user_id} "
            f"score={metrics.performance_score:.2f}"
        )
        return True

    async def sync_from_dto(self, user_id: str, dto: MemberMetricsUpdateDto) -> bool:
        team_id = require_identifier(dto.team_id, "team_id")
        return await self.sync(team_id, user_id, dto.to_entity())
